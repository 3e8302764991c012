from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from screenpad_broker import brightness
from screenpad_broker.bridge import EXIT_CODES
from screenpad_broker.errors import BridgeError, ErrorKind, ScreenpadError
from screenpad_broker.lifecycle import Outcome, TransitionResult

# pkexec: 126 when the user dismissed the prompt, 127 when not authorized.
_PKEXEC_REFUSED = (126, 127)
_KIND_BY_EXIT = {code: kind for kind, code in EXIT_CODES.items()}

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str = ""


Runner = Callable[[Sequence[str]], Awaitable[ProcessResult]]


async def run_process(argv: Sequence[str]) -> ProcessResult:
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise BridgeError(f"{argv[0]} not found", ErrorKind.NOT_FOUND) from e
    except PermissionError as e:
        raise BridgeError(f"{argv[0]} is not executable", ErrorKind.PERMISSION) from e
    except OSError as e:
        raise BridgeError(f"cannot run {argv[0]}: {e}", ErrorKind.IO) from e
    out, err = await proc.communicate()
    assert proc.returncode is not None
    return ProcessResult(
        proc.returncode, out.decode(errors="replace"), err.decode(errors="replace")
    )


def _failure(result: ProcessResult, what: str) -> BridgeError:
    """Collapse a failed bridge run into one BridgeError carrying the cause."""

    line = result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""
    if line.startswith("error "):
        kind_text, _, message = line[len("error ") :].partition(" ")
        try:
            return BridgeError(message or what, ErrorKind(kind_text))
        except ValueError:
            pass

    if result.returncode in _PKEXEC_REFUSED:
        return BridgeError(f"{what}: authorization refused", ErrorKind.PERMISSION)
    kind = _KIND_BY_EXIT.get(result.returncode, ErrorKind.BRIDGE)
    detail = result.stderr.strip() or line or f"exit status {result.returncode}"
    return BridgeError(f"{what}: {detail}", kind)


class BridgeClient:
    """Talks to the bridge as a separate process.

    ``get`` runs the launcher directly because the attribute is world
    readable; ``set`` and the lifecycle verbs go through ``pkexec``.
    """

    def __init__(
        self,
        cfg: dict[str, Any],
        runner: Runner = run_process,
        config_path: str | None = None,
    ):
        self._launcher = str(cfg["bridge"]["path"])
        self._pkexec = str(cfg["bridge"]["pkexec"])
        self._python = str(cfg["install"]["python"])
        self._config_path = config_path
        self._runner = runner

    async def get(self) -> int:
        result = await self._runner([self._launcher, "get"])
        if result.returncode != 0:
            raise _failure(result, "get")
        text = result.stdout.strip()
        try:
            return brightness.parse(text)
        except ScreenpadError as e:
            raise BridgeError(f"unexpected reply to get: {text!r}") from e

    async def set(self, value: int) -> None:
        value = brightness.validate(value)
        result = await self._runner([self._pkexec, self._launcher, "set", str(value)])
        if result.returncode != 0:
            raise _failure(result, f"set {value}")
        if result.stdout.strip() != "ok":
            raise BridgeError(f"unexpected reply to set: {result.stdout.strip()!r}")

    async def run_lifecycle(self, verb: str) -> TransitionResult:
        """Run install/update/uninstall elevated and parse its result line.

        Never raises: failures come back as a FAILURE result.
        """

        argv = [self._pkexec, self._python, "-I", "-m", "screenpad_broker.cli"]
        if self._config_path:
            argv += ["--config", self._config_path]
        argv.append(verb)

        try:
            result = await self._runner(argv)
        except BridgeError as e:
            return TransitionResult(Outcome.FAILURE, str(e), e.kind)

        lines = result.stdout.strip().splitlines()
        if lines:
            try:
                return TransitionResult.from_line(lines[-1])
            except ValueError:
                pass
        err = _failure(result, verb)
        return TransitionResult(Outcome.FAILURE, str(err), err.kind)


class BrightnessWriter:
    """Serialize ``set`` calls: one write in flight, last write wins.

    While a write is running, newer requests replace the queued value instead
    of queueing behind it. Each caller is resolved with the result of the
    write that carried its value or superseded it.
    """

    def __init__(self, client: BridgeClient):
        self._client = client
        self._pending: int | None = None
        self._waiters: list[asyncio.Future] = []
        self._task: asyncio.Task | None = None

    async def set(self, value: int) -> None:
        value = brightness.validate(value)
        fut = asyncio.get_running_loop().create_future()
        if self._pending is not None:
            _logger.debug("brightness %d superseded by %d", self._pending, value)
        self._pending = value
        self._waiters.append(fut)
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._drain())
        await fut

    async def _drain(self) -> None:
        waiters: list[asyncio.Future] = []
        try:
            while self._pending is not None:
                value, self._pending = self._pending, None
                waiters, self._waiters = self._waiters, []
                try:
                    await self._client.set(value)
                except Exception as e:
                    for w in waiters:
                        if not w.done():
                            w.set_exception(e)
                else:
                    for w in waiters:
                        if not w.done():
                            w.set_result(None)
        finally:
            # Only reached with unresolved waiters when the drain was cancelled.
            leftover, self._waiters = waiters + self._waiters, []
            self._pending = None
            for w in leftover:
                if not w.done():
                    w.cancel()
