from __future__ import annotations

import abc
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from dbus_next import Variant
from dbus_next.aio import MessageBus

NOTIFY_BUS = "org.freedesktop.Notifications"
NOTIFY_PATH = "/org/freedesktop/Notifications"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Action:
    label: str
    callback: Callable[[], Awaitable[Any] | Any]


class Notifier(abc.ABC):
    """Shows a transient desktop notification with at most one action."""

    @abc.abstractmethod
    async def notify(self, title: str, body: str = "", action: Action | None = None) -> None:
        raise NotImplementedError


class DbusNotifier(Notifier):
    def __init__(self, bus: MessageBus, app_name: str = "Screenpad"):
        self._bus = bus
        self._app_name = app_name
        self._iface: Any = None
        self._actions: dict[int, Action] = {}
        self._tasks: set[asyncio.Task] = set()

    async def _interface(self) -> Any:
        if self._iface is None:
            introspection = await self._bus.introspect(NOTIFY_BUS, NOTIFY_PATH)
            obj = self._bus.get_proxy_object(NOTIFY_BUS, NOTIFY_PATH, introspection)
            self._iface = obj.get_interface(NOTIFY_BUS)
            self._iface.on_action_invoked(self._on_action_invoked)
            self._iface.on_notification_closed(self._on_closed)
        return self._iface

    async def notify(self, title: str, body: str = "", action: Action | None = None) -> None:
        iface = await self._interface()
        actions = ["default", action.label] if action else []
        hints = {"transient": Variant("b", True)}
        nid = await iface.call_notify(
            self._app_name, 0, "video-display", title, body, actions, hints, -1
        )
        if action:
            self._actions[nid] = action

    def _on_action_invoked(self, nid: int, key: str) -> None:
        action = self._actions.pop(nid, None)
        if action is None:
            return
        result = action.callback()
        if asyncio.iscoroutine(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def _on_closed(self, nid: int, reason: int) -> None:
        self._actions.pop(nid, None)
