# CUI // SP-CTI
"""Platform detection and per-user directory helpers."""

import os
import platform
from pathlib import Path

IS_WINDOWS = platform.system() == "Windows"
IS_MACOS = platform.system() == "Darwin"
IS_LINUX = platform.system() == "Linux"


def get_home_dir() -> Path:
    """Return user home directory cross-platform."""
    return Path.home()


def get_data_home() -> Path:
    """Return the platform base directory for per-user application data.

    Windows: %APPDATA%
    macOS:   ~/Library/Application Support
    Linux:   ~/.local/share (XDG_DATA_HOME respected)
    """
    if IS_WINDOWS:
        return Path(os.environ.get(
            "APPDATA", str(get_home_dir() / "AppData" / "Roaming")
        ))
    if IS_MACOS:
        return get_home_dir() / "Library" / "Application Support"
    return Path(os.environ.get(
        "XDG_DATA_HOME", str(get_home_dir() / ".local" / "share")
    ))
