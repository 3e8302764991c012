from __future__ import annotations

from pathlib import Path

import pytest

from screenpad_broker.errors import DeviceIOError, NotFoundError, ValidationError
from screenpad_broker.system.attribute import AttributeStore


def _attr(tmp_path: Path, value: str = "0") -> Path:
    p = tmp_path / "brightness"
    p.write_text(value, encoding="ascii")
    return p


def test_write_then_read_round_trips(tmp_path: Path) -> None:
    store = AttributeStore(_attr(tmp_path, "200"))
    for value in (0, 1, 9, 10, 99, 100, 128, 254, 255):
        store.write(value)
        assert store.read() == value


def test_write_truncates_longer_previous_value(tmp_path: Path) -> None:
    p = _attr(tmp_path, "255")
    AttributeStore(p).write(7)
    assert p.read_text(encoding="ascii") == "7"


def test_read_tolerates_trailing_newline(tmp_path: Path) -> None:
    assert AttributeStore(_attr(tmp_path, "42\n")).read() == 42


@pytest.mark.parametrize("value", [-1, 256, 1000, True, 12.5, "12"])
def test_invalid_write_does_no_io(tmp_path: Path, value: object) -> None:
    p = _attr(tmp_path, "17")
    before = p.stat().st_mtime_ns
    with pytest.raises(ValidationError):
        AttributeStore(p).write(value)  # type: ignore[arg-type]
    assert p.read_text(encoding="ascii") == "17"
    assert p.stat().st_mtime_ns == before


def test_missing_attribute_is_not_found_and_never_created(tmp_path: Path) -> None:
    p = tmp_path / "missing"
    store = AttributeStore(p)
    assert store.exists() is False
    with pytest.raises(NotFoundError):
        store.read()
    with pytest.raises(NotFoundError):
        store.write(10)
    assert not p.exists()


def test_garbage_content_is_io_error(tmp_path: Path) -> None:
    with pytest.raises(DeviceIOError):
        AttributeStore(_attr(tmp_path, "bright")).read()
    with pytest.raises(DeviceIOError):
        AttributeStore(_attr(tmp_path, "300")).read()


@pytest.mark.parametrize("content", ["+5", "1_0", "0x10", "-0", "0012", "1 2"])
def test_read_accepts_plain_decimal_only(tmp_path: Path, content: str) -> None:
    with pytest.raises(DeviceIOError):
        AttributeStore(_attr(tmp_path, content)).read()
