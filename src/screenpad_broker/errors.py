from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    PERMISSION = "permission"
    NOT_FOUND = "not-found"
    IO = "io"
    BRIDGE = "bridge"


class ScreenpadError(Exception):
    """Base class so callers can catch every broker failure in one place."""

    kind: ErrorKind = ErrorKind.BRIDGE


class ValidationError(ScreenpadError, ValueError):
    kind = ErrorKind.VALIDATION


class PermissionDeniedError(ScreenpadError, PermissionError):
    kind = ErrorKind.PERMISSION


class NotFoundError(ScreenpadError, LookupError):
    kind = ErrorKind.NOT_FOUND


class DeviceIOError(ScreenpadError, OSError):
    kind = ErrorKind.IO


class BridgeError(ScreenpadError, RuntimeError):
    """The bridge failed, or replied with something we could not parse.

    ``kind`` is the underlying cause reported by the bridge, or
    ``ErrorKind.BRIDGE`` when the reply itself was unexpected.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.BRIDGE):
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind.value}: {super().__str__()}"


def from_os_error(e: OSError, what: str) -> ScreenpadError:
    """Translate an OSError raised while touching ``what`` into our taxonomy."""

    if isinstance(e, FileNotFoundError):
        return NotFoundError(f"{what} does not exist")
    if isinstance(e, PermissionError):
        return PermissionDeniedError(f"no permission to access {what}")
    return DeviceIOError(f"{what}: {e.strerror or e}")


def describe(kind: ErrorKind) -> str:
    """A short, user-facing explanation for a failure kind."""

    return {
        ErrorKind.VALIDATION: "invalid brightness value",
        ErrorKind.PERMISSION: "permission denied (is the helper installed?)",
        ErrorKind.NOT_FOUND: "Screenpad not found (is asus-wmi-screenpad loaded?)",
        ErrorKind.IO: "the Screenpad device reported an I/O error",
        ErrorKind.BRIDGE: "the brightness helper replied unexpectedly",
    }[kind]
