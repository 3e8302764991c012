from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from dbus_next.aio import MessageBus

from screenpad_broker import __version__, brightness
from screenpad_broker.config import ConfigError, load
from screenpad_broker.controller import Controller, FirstRun
from screenpad_broker.errors import ScreenpadError, describe
from screenpad_broker.facade import BridgeClient
from screenpad_broker.lifecycle import ExitCode, LifecycleManager
from screenpad_broker.notify import DbusNotifier
from screenpad_broker.paths import default_config_path

_logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="screenpad-broker")
    ap.add_argument("--version", action="version", version=__version__)
    ap.add_argument("-c", "--config", help="config file (default: per-user config.yaml)")
    ap.add_argument("-v", "--verbose", action="store_true", help="log debug output")

    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("run", help="Serve the Screenpad D-Bus interface for the desktop shell")
    sub.add_parser("get", help="Print the current Screenpad brightness")
    set_ = sub.add_parser("set", help="Set the Screenpad brightness (0-255)")
    set_.add_argument("value")
    sub.add_parser("check", help="Report whether the helper files are installed")
    sub.add_parser("install", help="Install the helper files (needs root)")
    sub.add_parser("update", help="Update outdated helper files (needs root)")
    sub.add_parser("uninstall", help="Remove the helper files (needs root)")

    return ap


def _config_path(arg: str | None) -> str | None:
    """Absolute path of the config file in effect, None for built-in defaults.

    Elevated runs get this path on their command line because pkexec resets
    HOME and XDG_CONFIG_HOME.
    """

    if arg is not None:
        return str(Path(arg).resolve())
    p = default_config_path()
    return str(p.resolve()) if p.exists() else None


def _configure_logging(cfg: dict[str, Any], verbose: bool) -> None:
    level = logging.DEBUG if verbose else cfg["logging"]["level"]
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _serve(cfg: dict[str, Any], config_path: str | None) -> None:
    bus = await MessageBus().connect()
    ctl = Controller(
        cfg,
        BridgeClient(cfg, config_path=config_path),
        DbusNotifier(bus),
        FirstRun(),
    )
    await ctl.run(bus)


def _check(cfg: dict[str, Any]) -> int:
    mgr = LifecycleManager(cfg)
    state = mgr.check()
    print(f"helper: {state.describe()}")
    if mgr.rule_outdated():
        print("access rule: outdated format, run 'update' to rewrite it")
    if mgr.legacy_rule_present():
        print(
            f"advisory: the old udev rule {mgr.paths.legacy_rule} is no longer needed "
            "and can be removed"
        )
    return int(state.exit_code)


def _lifecycle(cfg: dict[str, Any], verb: str) -> int:
    mgr = LifecycleManager(cfg)
    result = getattr(mgr, verb)()
    print(result.to_line())
    return int(result.exit_code)


def _brightness(cfg: dict[str, Any], cmd: str, raw_value: str | None) -> int:
    client = BridgeClient(cfg)
    try:
        if cmd == "get":
            print(asyncio.run(client.get()))
        else:
            assert raw_value is not None
            asyncio.run(client.set(brightness.parse(raw_value)))
    except ScreenpadError as e:
        print(f"screenpad-broker: {describe(e.kind)}: {e}", file=sys.stderr)
        return int(ExitCode.FAILURE)
    return int(ExitCode.SUCCESS)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config_path = _config_path(args.config)
    try:
        cfg = load(config_path)
    except (ConfigError, OSError) as e:
        print(f"screenpad-broker: bad config: {e}", file=sys.stderr)
        return int(ExitCode.FAILURE)
    _configure_logging(cfg, args.verbose)

    if args.cmd == "run":
        _logger.info("screenpad-broker %s serving on the session bus", __version__)
        asyncio.run(_serve(cfg, config_path))
        return int(ExitCode.SUCCESS)
    if args.cmd in ("get", "set"):
        return _brightness(cfg, args.cmd, getattr(args, "value", None))
    if args.cmd == "check":
        try:
            return _check(cfg)
        except OSError as e:
            print(f"screenpad-broker: {e}", file=sys.stderr)
            return int(ExitCode.FAILURE)
    return _lifecycle(cfg, args.cmd)


if __name__ == "__main__":
    sys.exit(main())
