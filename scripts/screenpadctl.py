#!/usr/bin/env python3
"""Small helper for manual overrides via the broker's D-Bus API."""

import argparse
import asyncio

from dbus_next.aio import MessageBus

BUS = "io.github.screenpad_broker"
OBJ = "/io/github/screenpad_broker"


async def call(method: str, arg: str | None) -> None:
    bus = await MessageBus().connect()
    introspection = await bus.introspect(BUS, OBJ)
    obj = bus.get_proxy_object(BUS, OBJ, introspection)
    iface = obj.get_interface(BUS)

    if method == "key":
        assert arg
        print(await iface.call_handle_key(arg))
    elif method == "toggle":
        await iface.call_handle_key("Launch7")
    elif method == "slider":
        assert arg
        await iface.call_set_slider(float(arg))
    elif method == "check":
        print(await iface.call_check_install())
    elif method == "install":
        await iface.call_install()
    elif method == "update":
        await iface.call_update()
    elif method == "uninstall":
        await iface.call_uninstall()

    bus.disconnect()


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument(
        "cmd",
        choices=["key", "toggle", "slider", "check", "install", "update", "uninstall"],
    )
    ap.add_argument("arg", nargs="?")
    args = ap.parse_args()
    asyncio.run(call(args.cmd, args.arg))


if __name__ == "__main__":
    main()
