from __future__ import annotations

import errno
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from screenpad_broker.config import defaults


@pytest.fixture
def cfg(tmp_path: Path) -> dict[str, Any]:
    """Default config with the install root and the attribute under tmp_path."""

    c = defaults()
    root = tmp_path / "root"
    root.mkdir()
    c["install"]["root"] = str(root)
    c["screenpad"]["attribute_path"] = str(tmp_path / "brightness")
    c["bridge"]["lock_path"] = str(tmp_path / "bridge.lock")
    return c


@pytest.fixture
def deny_reading(monkeypatch: pytest.MonkeyPatch) -> Callable[[Path], None]:
    """Make reading one file fail with EACCES, like a root-only directory."""

    real_read_text = Path.read_text
    denied: set[Path] = set()

    def read_text(self: Path, *args: Any, **kwargs: Any) -> str:
        if self in denied:
            raise PermissionError(errno.EACCES, "Permission denied", str(self))
        return real_read_text(self, *args, **kwargs)

    monkeypatch.setattr(Path, "read_text", read_text)
    return denied.add
