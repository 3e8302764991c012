from __future__ import annotations

import copy
import logging
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from screenpad_broker.paths import default_config_path

SCREENSHOT_TYPES = ("Screen", "Window", "Selection", "Interactive")

DEFAULTS: dict[str, Any] = {
    "screenpad": {
        "attribute_path": "/sys/class/leds/asus::screenpad/brightness",
    },
    "bridge": {
        "path": "/usr/local/libexec/screenpad-broker/screenpad-bridge",
        "lock_path": "/run/lock/screenpad-bridge.lock",
        "pkexec": "pkexec",
    },
    "install": {
        "root": "/",
        "python": "/usr/bin/python3",
        "marker_path": "/usr/local/libexec/screenpad-broker/version",
        "rule_path": "/etc/polkit-1/rules.d/50-screenpad-broker.rules",
        "legacy_rule_path": "/etc/udev/rules.d/99-screenpad.rules",
    },
    "settings": {
        "screenshot_type": "Screen",
        "screenshot_include_cursor": False,
        "myasus_cmd": "",
    },
    "logging": {
        "level": "INFO",
    },
}

_PATH_KEYS = (
    ("screenpad", "attribute_path"),
    ("bridge", "path"),
    ("bridge", "lock_path"),
    ("install", "root"),
    ("install", "python"),
    ("install", "marker_path"),
    ("install", "rule_path"),
    ("install", "legacy_rule_path"),
)


class ConfigError(ValueError):
    pass


def defaults() -> dict[str, Any]:
    return copy.deepcopy(DEFAULTS)


def load(path: str | Path | None = None) -> dict[str, Any]:
    """Load, normalize and validate a config file.

    Without an explicit path the per-user default is used, and a missing
    default file simply means "all defaults".
    """

    if path is None:
        p = default_config_path()
        if not p.exists():
            return defaults()
    else:
        p = Path(path)

    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level config must be a mapping")
    normalize(data)
    validate(data)
    return data


def normalize(cfg: dict[str, Any]) -> None:
    """Fill in defaults and strip stray whitespace, in place."""

    for section, values in DEFAULTS.items():
        current = cfg.get(section)
        if current is None:
            current = cfg[section] = {}
        if not isinstance(current, dict):
            raise ConfigError(f"{section} must be a mapping")
        for key, default in values.items():
            current.setdefault(key, default)

    for section, key in _PATH_KEYS:
        cfg[section][key] = str(cfg[section][key]).strip()

    settings = cfg["settings"]
    settings["screenshot_type"] = str(settings["screenshot_type"]).strip()
    settings["myasus_cmd"] = str(settings["myasus_cmd"] or "").strip()
    cfg["logging"]["level"] = str(cfg["logging"]["level"]).strip().upper()


def validate(cfg: dict[str, Any]) -> None:
    for section, key in _PATH_KEYS:
        value = str(cfg[section][key])
        if not Path(value).is_absolute():
            raise ConfigError(f"{section}.{key} must be an absolute path: {value!r}")

    # The installed launcher writes this path as root.
    attribute = PurePosixPath(cfg["screenpad"]["attribute_path"])
    if attribute.parts[:2] != ("/", "sys") or len(attribute.parts) < 3 or ".." in attribute.parts:
        raise ConfigError(f"screenpad.attribute_path must be a file below /sys: {str(attribute)!r}")

    if not str(cfg["bridge"]["pkexec"]).strip():
        raise ConfigError("bridge.pkexec must not be empty")

    settings = cfg["settings"]
    if settings["screenshot_type"] not in SCREENSHOT_TYPES:
        raise ConfigError(f"settings.screenshot_type must be one of {', '.join(SCREENSHOT_TYPES)}")
    if not isinstance(settings["screenshot_include_cursor"], bool):
        raise ConfigError("settings.screenshot_include_cursor must be true or false")

    level = cfg["logging"]["level"]
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"logging.level is not a known level: {level}")
