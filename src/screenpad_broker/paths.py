from __future__ import annotations

import os
from pathlib import Path


def default_config_path(app_name: str = "screenpad-broker") -> Path:
    """Return the per-user config file location.

    Uses XDG_CONFIG_HOME when available, else ~/.config.
    """

    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        root = Path(base)
    else:
        root = Path.home() / ".config"
    return root / app_name / "config.yaml"


def under_root(root: str | Path, path: str | Path) -> Path:
    """Re-anchor an absolute system path below an install root.

    ``under_root("/tmp/x", "/etc/foo")`` is ``/tmp/x/etc/foo``; with the
    default root ``/`` the path is unchanged.
    """

    p = Path(path)
    return Path(root) / p.relative_to(p.anchor)
