from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method

# dbus-next uses signature strings ("s", "b") in annotations.
# Ruff tries to treat these as Python types.


BUS_NAME = "io.github.screenpad_broker"
OBJ_PATH = "/io/github/screenpad_broker"


@dataclass(frozen=True)
class Callbacks:
    enable: Callable[[], None]
    handle_key: Callable[[str], bool]
    set_slider: Callable[[float], None]
    check_install: Callable[[], int]
    install: Callable[[], None]
    update: Callable[[], None]
    uninstall: Callable[[], None]


class ScreenpadInterface(ServiceInterface):
    def __init__(self, cb: Callbacks):
        super().__init__(BUS_NAME)
        self._cb = cb

    @method()
    def Enable(self) -> "b":  # noqa: N802
        self._cb.enable()
        return True

    @method()
    def HandleKey(self, key: "s") -> "b":  # noqa: N802
        return bool(self._cb.handle_key(key))

    @method()
    def SetSlider(self, value: "d") -> "b":  # noqa: N802
        self._cb.set_slider(value)
        return True

    @method()
    def CheckInstall(self) -> "i":  # noqa: N802
        return int(self._cb.check_install())

    @method()
    def Install(self) -> "b":  # noqa: N802
        self._cb.install()
        return True

    @method()
    def Update(self) -> "b":  # noqa: N802
        self._cb.update()
        return True

    @method()
    def Uninstall(self) -> "b":  # noqa: N802
        self._cb.uninstall()
        return True


async def serve(iface: ScreenpadInterface, bus: MessageBus | None = None) -> MessageBus:
    if bus is None:
        bus = await MessageBus().connect()
    bus.export(OBJ_PATH, iface)
    await bus.request_name(BUS_NAME)
    return bus
