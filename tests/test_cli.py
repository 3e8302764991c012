from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from screenpad_broker import cli
from screenpad_broker.facade import BridgeClient, ProcessResult


@pytest.fixture
def user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    p = tmp_path / "xdg" / "screenpad-broker" / "config.yaml"
    p.parent.mkdir(parents=True)
    p.write_text("bridge:\n  path: /opt/sp/screenpad-bridge\n", encoding="utf-8")
    return p


def test_default_user_config_reaches_elevated_runs(
    user_config: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    served: list[tuple[dict[str, Any], str | None]] = []

    async def fake_serve(cfg: dict[str, Any], config_path: str | None) -> None:
        served.append((cfg, config_path))

    monkeypatch.setattr(cli, "_serve", fake_serve)
    assert cli.main(["run"]) == 0

    [(cfg, config_path)] = served
    assert cfg["bridge"]["path"] == "/opt/sp/screenpad-bridge"
    assert config_path == str(user_config.resolve())

    seen: list[list[str]] = []

    async def runner(argv: Sequence[str]) -> ProcessResult:
        seen.append(list(argv))
        return ProcessResult(0, "success installed version 1.0\n")

    client = BridgeClient(cfg, runner=runner, config_path=config_path)
    asyncio.run(client.run_lifecycle("install"))
    assert seen[0][-3:] == ["--config", str(user_config.resolve()), "install"]


def test_config_path_without_user_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert cli._config_path(None) is None


def test_relative_config_option_is_made_absolute(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    assert cli._config_path("sp.yaml") == str(tmp_path.resolve() / "sp.yaml")


def test_check_reports_not_installed(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (tmp_path / "sp.yaml").write_text(f"install:\n  root: {root}\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert cli.main(["-c", "sp.yaml", "check"]) == 2
    assert capsys.readouterr().out == "helper: not installed\n"


def test_bad_config_is_reported(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    p = tmp_path / "sp.yaml"
    p.write_text("screenpad:\n  attribute_path: /etc/shadow\n", encoding="utf-8")
    assert cli.main(["-c", str(p), "check"]) == 1
    assert "bad config" in capsys.readouterr().err
