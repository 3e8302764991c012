"""Privileged brightness helper.

Run through ``pkexec`` by the installed launcher::

    screenpad-bridge get
    screenpad-bridge set 128

The attribute and lock paths come from environment variables that the
launcher sets itself; callers can only choose the verb and the value.
Replies are a single stdout line: the value for ``get``, ``ok`` for ``set``,
or ``error <kind> <message>``.
"""

from __future__ import annotations

import fcntl
import logging
import os
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from screenpad_broker import brightness
from screenpad_broker.errors import ErrorKind, ScreenpadError, ValidationError, from_os_error
from screenpad_broker.system.attribute import DEFAULT_ATTRIBUTE_PATH, AttributeStore

ATTRIBUTE_ENV = "SCREENPAD_BRIDGE_ATTRIBUTE"
LOCK_ENV = "SCREENPAD_BRIDGE_LOCK"
DEFAULT_LOCK_PATH = Path("/run/lock/screenpad-bridge.lock")

EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: os.EX_USAGE,
    ErrorKind.NOT_FOUND: os.EX_NOINPUT,
    ErrorKind.PERMISSION: os.EX_NOPERM,
    ErrorKind.IO: os.EX_IOERR,
    ErrorKind.BRIDGE: os.EX_SOFTWARE,
}

_logger = logging.getLogger(__name__)


def parse_args(args: Sequence[str]) -> tuple[str, int | None]:
    """Validate the command line: ``get`` or ``set <0..255>``, nothing else."""

    if not args:
        raise ValidationError("missing command (expected 'get' or 'set <value>')")
    verb, rest = args[0], list(args[1:])
    if verb == "get":
        if rest:
            raise ValidationError("'get' takes no arguments")
        return verb, None
    if verb == "set":
        if len(rest) != 1:
            raise ValidationError("'set' takes exactly one value")
        return verb, brightness.parse(rest[0])
    raise ValidationError(f"unknown command: {verb!r}")


@contextmanager
def write_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive lock so concurrent bridges never interleave writes."""

    try:
        f = path.open("a")
    except OSError as e:
        raise from_os_error(e, str(path)) from e
    with f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def run(args: Sequence[str], store: AttributeStore, lock_path: Path, out: TextIO) -> int:
    try:
        verb, value = parse_args(args)
        if verb == "get":
            out.write(f"{store.read()}\n")
        else:
            assert value is not None
            with write_lock(lock_path):
                store.write(value)
            out.write("ok\n")
        return 0
    except ScreenpadError as e:
        _logger.warning("%s failed: %s", " ".join(args) or "bridge", e)
        out.write(f"error {e.kind.value} {e}\n")
        return EXIT_CODES[e.kind]


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr, format="%(name)s: %(message)s")
    store = AttributeStore(Path(os.environ.get(ATTRIBUTE_ENV) or DEFAULT_ATTRIBUTE_PATH))
    lock_path = Path(os.environ.get(LOCK_ENV) or DEFAULT_LOCK_PATH)
    args = sys.argv[1:] if argv is None else argv
    return run(args, store, lock_path, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
