from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dbus_next.aio import MessageBus

from screenpad_broker import brightness
from screenpad_broker.dbus_service import Callbacks, ScreenpadInterface, serve
from screenpad_broker.errors import ScreenpadError, describe
from screenpad_broker.facade import BridgeClient, BrightnessWriter
from screenpad_broker.lifecycle import ExitCode, LifecycleManager, Outcome, Status
from screenpad_broker.notify import Action, Notifier
from screenpad_broker.policy import decide_slider, decide_toggle, myasus_command, screenshot_command
from screenpad_broker.system import spawn
from screenpad_broker.system.attribute import AttributeStore

MODULE_README_URL = "https://github.com/Plippo/asus-wmi-screenpad#readme"
LEGACY_RULE_HELP_URL = (
    "https://github.com/laurinneff/gnome-shell-extension-zenbook-duo/blob/master/"
    "docs/permissions.md#removing-the-old-udev-rule"
)

_logger = logging.getLogger(__name__)

# verb -> (success title, success body, failure title)
_LIFECYCLE_MESSAGES = {
    "install": (
        "Successfully installed files",
        "The files have been installed successfully. You can now use the Screenpad.",
        "Failed to install the files",
    ),
    "update": (
        "Successfully updated files",
        "The files have been updated successfully. You can now use the Screenpad.",
        "Failed to update the files",
    ),
    "uninstall": (
        "Successfully uninstalled files",
        "The files have been uninstalled successfully.",
        "Failed to uninstall the files",
    ),
}


@dataclass
class FirstRun:
    """Survives enable/disable cycles of the host for the process lifetime."""

    pending: bool = True


@dataclass
class Controller:
    cfg: dict[str, Any]
    client: BridgeClient
    notifier: Notifier
    first_run: FirstRun
    launch: Callable[[list[str], str], bool] = spawn.launch
    open_uri: Callable[[str], bool] = spawn.open_uri

    def __post_init__(self) -> None:
        self.slider = 1.0
        self._writer = BrightnessWriter(self.client)
        self._store = AttributeStore(Path(self.cfg["screenpad"]["attribute_path"]))
        self._lifecycle = LifecycleManager(self.cfg)
        self._tasks: set[asyncio.Task] = set()
        self._bus: MessageBus | None = None

        self._keys: dict[str, Callable[[], Awaitable[None]]] = {
            "Launch7": self.toggle,
            "Launch6": self.swap_windows,
            "<Shift><Super>s": self.screenshot,
            "Tools": self.myasus,
            "WebCam": self.toggle_webcam,
        }

    async def _notify(self, title: str, body: str = "", action: Action | None = None) -> None:
        # Failures are logged, never raised.
        try:
            await self.notifier.notify(title, body, action)
        except Exception as e:
            _logger.warning("cannot show notification %r: %s", title, e)

    # Key handlers.

    async def toggle(self) -> None:
        decision = decide_toggle(await self.client.get(), self.slider)
        _logger.info("toggle: %s -> %s", decision.why, decision.brightness)
        assert decision.brightness is not None
        await self._writer.set(decision.brightness)

    async def swap_windows(self) -> None:
        await self._notify("This key is not implemented yet.")

    async def toggle_webcam(self) -> None:
        await self._notify("This key is not implemented yet.")

    async def screenshot(self) -> None:
        settings = self.cfg["settings"]
        cmd = screenshot_command(
            settings["screenshot_type"], bool(settings["screenshot_include_cursor"])
        )
        self.launch(cmd, "screenshot")

    async def myasus(self) -> None:
        cmd = myasus_command(self.cfg["settings"]["myasus_cmd"])
        if cmd is None:
            await self._notify(
                "No MyASUS command configured", "Set settings.myasus_cmd in the config file."
            )
            return
        self.launch(cmd, "MyASUS key")

    async def handle_key(self, key: str) -> bool:
        handler = self._keys.get(key)
        if handler is None:
            _logger.warning("no action bound to key %r", key)
            return False
        try:
            await handler()
        except ScreenpadError as e:
            _logger.error("%s failed (%s): %s", key, describe(e.kind), e)
            return False
        except Exception:
            _logger.exception("%s failed", key)
            return False
        return True

    async def set_slider(self, value: float) -> None:
        try:
            brightness.from_slider(value)
            self.slider = min(max(float(value), 0.0), 1.0)
            decision = decide_slider(await self.client.get(), self.slider)
            if decision.changes:
                assert decision.brightness is not None
                await self._writer.set(decision.brightness)
        except ScreenpadError as e:
            _logger.error("following the slider failed (%s): %s", describe(e.kind), e)
        except Exception:
            _logger.exception("following the slider failed")

    # Install lifecycle.

    async def startup_check(self) -> None:
        if not self.first_run.pending:
            return
        self.first_run.pending = False
        try:
            await self._startup_notices()
        except Exception:
            _logger.exception("startup check failed")

    async def _startup_notices(self) -> None:
        if not self._store.exists():
            await self._notify(
                "The Screenpad brightness file does not exist",
                "Ensure the asus-wmi-screenpad module is installed and loaded and that your "
                "device is compatible with this module.",
                Action(
                    "Click here to see how to do this",
                    lambda: self.open_uri(MODULE_README_URL),
                ),
            )
            return

        try:
            state = self._lifecycle.check()
        except OSError as e:
            _logger.error("cannot determine install state: %s", e)
            return
        _logger.info("helper %s", state.describe())

        if state.status is Status.INSTALLED:
            if self._lifecycle.legacy_rule_present():
                await self._notify(
                    "You still have the old udev rule on your system",
                    "This rule was previously used to get write access on the brightness file, "
                    "but it isn't needed anymore.",
                    Action(
                        "Click here to see how to remove it",
                        lambda: self.open_uri(LEGACY_RULE_HELP_URL),
                    ),
                )
        elif state.status is Status.NOT_INSTALLED:
            await self._notify(
                "The Screenpad requires additional configuration",
                "A small helper needs to be installed to change the Screenpad brightness. "
                "You can undo this later with 'screenpad-broker uninstall'.",
                Action("Click here to do this automatically", self.install),
            )
        else:
            await self._notify(
                "The Screenpad helper files require an update",
                "screenpad-broker has been updated, but the helper files need to be "
                "updated separately.",
                Action("Click here to do this automatically", self.update),
            )

    async def _run_lifecycle(self, verb: str) -> Outcome:
        result = await self.client.run_lifecycle(verb)
        ok_title, ok_body, fail_title = _LIFECYCLE_MESSAGES[verb]
        if result.outcome is Outcome.SUCCESS:
            await self._notify(ok_title, ok_body)
        elif result.outcome is Outcome.ALREADY_SATISFIED:
            await self._notify("Nothing to do", result.message)
        else:
            _logger.error("%s failed: %s", verb, result.message)
            body = describe(result.cause) if result.cause else result.message
            await self._notify(fail_title, f"The files could not be changed: {body}.")
        return result.outcome

    async def install(self) -> Outcome:
        return await self._run_lifecycle("install")

    async def update(self) -> Outcome:
        return await self._run_lifecycle("update")

    async def uninstall(self) -> Outcome:
        return await self._run_lifecycle("uninstall")

    def check_install(self) -> int:
        try:
            return int(self._lifecycle.check().exit_code)
        except OSError as e:
            _logger.error("cannot determine install state: %s", e)
            return int(ExitCode.FAILURE)

    # Service plumbing.

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _handle_key_cb(self, key: str) -> bool:
        if key not in self._keys:
            _logger.warning("no action bound to key %r", key)
            return False
        self._spawn(self.handle_key(key))
        return True

    def callbacks(self) -> Callbacks:
        return Callbacks(
            enable=lambda: self._spawn(self.startup_check()),
            handle_key=self._handle_key_cb,
            set_slider=lambda value: self._spawn(self.set_slider(value)),
            check_install=self.check_install,
            install=lambda: self._spawn(self.install()),
            update=lambda: self._spawn(self.update()),
            uninstall=lambda: self._spawn(self.uninstall()),
        )

    async def run(self, bus: MessageBus | None = None) -> None:
        self._bus = await serve(ScreenpadInterface(self.callbacks()), bus)
        try:
            await self.startup_check()
            await self._bus.wait_for_disconnect()
        finally:
            for task in list(self._tasks):
                task.cancel()
            self._bus.disconnect()
