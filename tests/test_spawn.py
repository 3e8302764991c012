from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from screenpad_broker.system import spawn


def test_launch_missing_program_returns_false(tmp_path: Path) -> None:
    assert spawn.launch([str(tmp_path / "no-such-tool")], reason="test") is False


@pytest.mark.skipif(shutil.which("true") is None, reason="no 'true' binary")
def test_launch_starts_program() -> None:
    assert spawn.launch(["true"], reason="test") is True


def test_open_uri_uses_xdg_open(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[tuple[list[str], str]] = []
    monkeypatch.setattr(spawn, "launch", lambda cmd, reason: seen.append((cmd, reason)) or True)
    assert spawn.open_uri("https://example.test") is True
    assert seen == [(["xdg-open", "https://example.test"], "open link")]
