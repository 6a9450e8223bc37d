"""Path helpers for pkgporter."""

import os
from pathlib import Path

DEFAULT_STORE_DIR = "/tmp/ubuntu_package_porter"


def get_config_dir() -> Path:
    """Return XDG-compliant config directory: ~/.config/pkgporter"""
    return Path.home() / ".config" / "pkgporter"


def get_config_path() -> Path | None:
    """Return path to the user config file, or None when there is none.

    Priority:
    1. PKGPORTER_CONFIG environment variable (if set, even if missing on disk)
    2. ~/.config/pkgporter/config.json if it exists
    """
    if "PKGPORTER_CONFIG" in os.environ:
        return Path(os.environ["PKGPORTER_CONFIG"])

    default = get_config_dir() / "config.json"
    if default.exists():
        return default
    return None


def get_store_dir(override: str | os.PathLike | None = None) -> Path:
    """Return the artifact store directory.

    Priority: explicit override, PKGPORTER_STORE, then the built-in default.
    """
    if override:
        return Path(override)
    if os.environ.get("PKGPORTER_STORE"):
        return Path(os.environ["PKGPORTER_STORE"])
    return Path(DEFAULT_STORE_DIR)
