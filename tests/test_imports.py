from __future__ import annotations

import compileall
import importlib
from pathlib import Path

import pytest


def test_compileall_src() -> None:
    root = Path(__file__).resolve().parents[1]
    assert compileall.compile_dir(str(root / "src"), quiet=1)
    assert compileall.compile_dir(str(root / "scripts"), quiet=1)


@pytest.mark.parametrize(
    "module",
    [
        "screenpad_broker",
        "screenpad_broker.bridge",
        "screenpad_broker.cli",
        "screenpad_broker.config",
        "screenpad_broker.controller",
        "screenpad_broker.dbus_service",
        "screenpad_broker.facade",
        "screenpad_broker.lifecycle",
        "screenpad_broker.notify",
        "screenpad_broker.policy",
    ],
)
def test_import_modules(module: str) -> None:
    importlib.import_module(module)
