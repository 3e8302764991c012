from __future__ import annotations

from pathlib import Path

import pytest

from screenpad_broker.paths import default_config_path, under_root


def test_default_config_path_honours_xdg(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", "/tmp/xdg")
    assert default_config_path() == Path("/tmp/xdg/screenpad-broker/config.yaml")


def test_default_config_path_falls_back_to_home(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    p = default_config_path()
    assert str(p).startswith(str(Path.home()))
    assert p.parts[-3:] == (".config", "screenpad-broker", "config.yaml")


def test_under_root() -> None:
    assert under_root("/", "/etc/polkit-1/rules.d/x.rules") == Path("/etc/polkit-1/rules.d/x.rules")
    assert under_root("/tmp/r", "/etc/x") == Path("/tmp/r/etc/x")
