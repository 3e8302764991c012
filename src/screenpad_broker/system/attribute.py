from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from screenpad_broker import brightness
from screenpad_broker.errors import DeviceIOError, from_os_error

DEFAULT_ATTRIBUTE_PATH = Path("/sys/class/leds/asus::screenpad/brightness")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttributeStore:
    """The Screenpad brightness attribute (a single integer, 0..255)."""

    path: Path = DEFAULT_ATTRIBUTE_PATH

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> int:
        try:
            raw = self.path.read_text(encoding="ascii")
        except OSError as e:
            raise from_os_error(e, str(self.path)) from e
        except UnicodeDecodeError as e:
            raise DeviceIOError(f"{self.path}: unreadable content") from e

        try:
            return brightness.parse(raw.strip())
        except ValueError as e:
            raise DeviceIOError(f"{self.path}: unexpected content {raw.strip()!r}") from e

    def write(self, value: int) -> None:
        value = brightness.validate(value)
        data = str(value).encode("ascii")

        # No O_CREAT: a missing attribute means the driver is not loaded.
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_TRUNC)
        except OSError as e:
            raise from_os_error(e, str(self.path)) from e
        try:
            written = os.write(fd, data)
        except OSError as e:
            raise from_os_error(e, str(self.path)) from e
        finally:
            os.close(fd)

        if written != len(data):
            raise DeviceIOError(f"{self.path}: short write ({written} of {len(data)} bytes)")
        _logger.debug("wrote brightness %d to %s", value, self.path)
