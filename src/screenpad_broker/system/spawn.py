from __future__ import annotations

import logging
import subprocess

_logger = logging.getLogger(__name__)


def launch(cmd: list[str], reason: str) -> bool:
    """Start a detached helper program (screenshot tool, MyASUS, xdg-open).

    Returns True if the command was started. The outcome of the program
    itself is not awaited.
    """

    try:
        subprocess.Popen(  # noqa: S603
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        _logger.error("failed to start %s for %s: %s", cmd[0], reason, e)
        return False
    _logger.debug("started %s for %s", cmd[0], reason)
    return True


def open_uri(uri: str) -> bool:
    return launch(["xdg-open", uri], reason="open link")
