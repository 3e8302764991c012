"""Install, update and uninstall the bridge launcher and its polkit rule.

Three files make up an installation: the launcher script that ``pkexec``
runs, the polkit rule that lets the local session run it without a password,
and a version marker. The marker is written last and removed first.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import tempfile
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any

from packaging.version import InvalidVersion, Version

from screenpad_broker import __version__
from screenpad_broker.bridge import ATTRIBUTE_ENV, LOCK_ENV
from screenpad_broker.errors import ErrorKind, from_os_error
from screenpad_broker.paths import under_root

RULE_FORMAT = 2
UNKNOWN_FORMAT = -1

_RULE_HEADER = re.compile(r"^// screenpad-broker access rule, format (\d+)$", re.MULTILINE)
_LEGACY_RULE = re.compile(r"asus::screenpad.*brightness", re.DOTALL)

_logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1
    NOT_INSTALLED = 2
    NEEDS_UPDATE = 3


class Status(Enum):
    NOT_INSTALLED = "not-installed"
    INSTALLED = "installed"
    NEEDS_UPDATE = "needs-update"


@dataclass(frozen=True)
class InstallState:
    status: Status
    installed_version: str | None = None
    required_version: str | None = None

    @property
    def exit_code(self) -> ExitCode:
        return {
            Status.INSTALLED: ExitCode.SUCCESS,
            Status.NOT_INSTALLED: ExitCode.NOT_INSTALLED,
            Status.NEEDS_UPDATE: ExitCode.NEEDS_UPDATE,
        }[self.status]

    def describe(self) -> str:
        if self.status is Status.INSTALLED:
            return f"installed (version {self.installed_version})"
        if self.status is Status.NEEDS_UPDATE:
            return (
                f"needs update (installed {self.installed_version}, "
                f"required {self.required_version})"
            )
        return "not installed"


class Outcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ALREADY_SATISFIED = "already-satisfied"


@dataclass(frozen=True)
class TransitionResult:
    outcome: Outcome
    message: str
    cause: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILURE

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.SUCCESS if self.ok else ExitCode.FAILURE

    def to_line(self) -> str:
        """The one-line stdout discriminator read back by the facade."""

        if self.outcome is Outcome.FAILURE:
            kind = (self.cause or ErrorKind.IO).value
            return f"{self.outcome.value} {kind} {self.message}"
        return f"{self.outcome.value} {self.message}"

    @classmethod
    def from_line(cls, line: str) -> TransitionResult:
        word, _, rest = line.strip().partition(" ")
        outcome = Outcome(word)
        if outcome is Outcome.FAILURE:
            kind, _, message = rest.partition(" ")
            return cls(outcome, message, ErrorKind(kind))
        return cls(outcome, rest)


@dataclass(frozen=True)
class InstallPaths:
    launcher: Path
    marker: Path
    rule: Path
    legacy_rule: Path

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> InstallPaths:
        root = cfg["install"]["root"]
        return cls(
            launcher=under_root(root, cfg["bridge"]["path"]),
            marker=under_root(root, cfg["install"]["marker_path"]),
            rule=under_root(root, cfg["install"]["rule_path"]),
            legacy_rule=under_root(root, cfg["install"]["legacy_rule_path"]),
        )


def render_launcher(python: str, attribute_path: str, lock_path: str, version: str) -> str:
    q = shlex.quote
    return (
        "#!/bin/sh\n"
        f"# screenpad-broker bridge launcher, version {version}\n"
        f"export {ATTRIBUTE_ENV}={q(attribute_path)}\n"
        f"export {LOCK_ENV}={q(lock_path)}\n"
        f'exec {q(python)} -I -m screenpad_broker.bridge "$@"\n'
    )


def render_rule(launcher_path: str) -> str:
    # polkit compares against the program path as it is seen at run time,
    # which is the system path, not the install-root path.
    return (
        f"// screenpad-broker access rule, format {RULE_FORMAT}\n"
        "polkit.addRule(function(action, subject) {\n"
        '    if (action.id == "org.freedesktop.policykit.exec" &&\n'
        f'        action.lookup("program") == "{launcher_path}" &&\n'
        "        subject.local && subject.active) {\n"
        "        return polkit.Result.YES;\n"
        "    }\n"
        "});\n"
    )


def _write_atomic(path: Path, content: str, mode: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class LifecycleManager:
    def __init__(self, cfg: dict[str, Any], version: str = __version__):
        self._cfg = cfg
        self._version = version
        self.paths = InstallPaths.from_config(cfg)

    def _installed_version(self) -> str | None:
        try:
            return self.paths.marker.read_text(encoding="utf-8").strip() or None
        except FileNotFoundError:
            return None

    def _rule_format(self) -> int | None:
        """Format number of the installed rule.

        None when there is no rule and 0 for an unrecognised one. The rules
        directory is often readable by root only; a rule we may not read is
        taken as present with UNKNOWN_FORMAT.
        """

        try:
            text = self.paths.rule.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except PermissionError:
            _logger.debug("cannot read %s, assuming the rule is present", self.paths.rule)
            return UNKNOWN_FORMAT
        m = _RULE_HEADER.search(text)
        return int(m.group(1)) if m else 0

    def check(self) -> InstallState:
        installed = self._installed_version()
        if installed is None or not self.paths.launcher.exists() or self._rule_format() is None:
            return InstallState(Status.NOT_INSTALLED, required_version=self._version)

        try:
            outdated = Version(installed) < Version(self._version)
        except InvalidVersion:
            _logger.warning("unreadable version marker %r, treating as outdated", installed)
            outdated = True

        if outdated:
            return InstallState(Status.NEEDS_UPDATE, installed, self._version)
        if installed != self._version:
            _logger.warning(
                "installed helper (%s) is newer than this package (%s)", installed, self._version
            )
        return InstallState(Status.INSTALLED, installed, self._version)

    def rule_outdated(self) -> bool:
        fmt = self._rule_format()
        return fmt is not None and 0 <= fmt < RULE_FORMAT

    def legacy_rule_present(self) -> bool:
        try:
            text = self.paths.legacy_rule.read_text(encoding="utf-8")
        except FileNotFoundError:
            return False
        except OSError as e:
            _logger.warning("cannot read %s: %s", self.paths.legacy_rule, e)
            return False
        return bool(_LEGACY_RULE.search(text))

    def install(self) -> TransitionResult:
        try:
            state = self.check()
            if state.status is Status.INSTALLED and not self.rule_outdated():
                return TransitionResult(Outcome.ALREADY_SATISFIED, state.describe())
            self._write_files()
        except OSError as e:
            err = from_os_error(e, getattr(e, "filename", None) or "install target")
            _logger.error("install failed: %s", err)
            return TransitionResult(Outcome.FAILURE, str(err), err.kind)

        verb = "updated" if state.status is Status.NEEDS_UPDATE else "installed"
        _logger.info("helper %s (version %s)", verb, self._version)
        return TransitionResult(Outcome.SUCCESS, f"{verb} version {self._version}")

    def update(self) -> TransitionResult:
        try:
            state = self.check()
        except OSError as e:
            err = from_os_error(e, "install target")
            return TransitionResult(Outcome.FAILURE, str(err), err.kind)
        if state.status is Status.NOT_INSTALLED:
            return TransitionResult(Outcome.FAILURE, "helper is not installed", ErrorKind.NOT_FOUND)
        return self.install()

    def _write_files(self) -> None:
        cfg = self._cfg
        _write_atomic(
            self.paths.launcher,
            render_launcher(
                python=cfg["install"]["python"],
                attribute_path=cfg["screenpad"]["attribute_path"],
                lock_path=cfg["bridge"]["lock_path"],
                version=self._version,
            ),
            0o755,
        )

        fmt = self._rule_format()
        if fmt is None or fmt < RULE_FORMAT:
            _write_atomic(self.paths.rule, render_rule(cfg["bridge"]["path"]), 0o644)

        _write_atomic(self.paths.marker, f"{self._version}\n", 0o644)

    def uninstall(self) -> TransitionResult:
        removed: list[Path] = []
        try:
            for path in (self.paths.marker, self.paths.launcher, self.paths.rule):
                if path.exists():
                    path.unlink()
                    removed.append(path)
            # Only our own directory, and only once it is empty.
            launcher_dir = self.paths.launcher.parent
            if launcher_dir.name == "screenpad-broker" and launcher_dir.is_dir():
                if not any(launcher_dir.iterdir()):
                    launcher_dir.rmdir()
        except OSError as e:
            err = from_os_error(e, getattr(e, "filename", None) or "install target")
            _logger.error("uninstall failed: %s", err)
            return TransitionResult(Outcome.FAILURE, str(err), err.kind)

        if not removed:
            return TransitionResult(Outcome.ALREADY_SATISFIED, "nothing to remove")
        _logger.info("removed %s", ", ".join(str(p) for p in removed))
        return TransitionResult(Outcome.SUCCESS, f"removed {len(removed)} file(s)")
