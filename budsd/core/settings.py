"""Filesystem locations used by the daemon and client.

Lookup order for each path: explicit CLI option, ``BUDSD_*`` environment
variable, XDG base directory.
"""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "budsd"


def _xdg_dir(variable: str, fallback: str) -> Path:
    return Path(os.environ.get(variable) or Path.home() / fallback)


def plugin_dirs() -> tuple[Path, Path]:
    return (
        _xdg_dir("XDG_CONFIG_HOME", ".config") / APP_NAME / "plugins",
        _xdg_dir("XDG_DATA_HOME", ".local/share") / APP_NAME / "plugins",
    )


def default_config_path() -> Path:
    override = os.environ.get("BUDSD_CONFIG")
    if override:
        return Path(override)
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / APP_NAME / "config.yaml"


def default_socket_path() -> Path:
    override = os.environ.get("BUDSD_SOCKET")
    if override:
        return Path(override)
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
    if runtime_dir:
        return Path(runtime_dir) / f"{APP_NAME}.sock"
    return Path("/tmp") / f"{APP_NAME}.sock"
