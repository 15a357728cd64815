"""Shared filesystem path helpers for Release Guardian."""
from __future__ import annotations

import sys
from pathlib import Path

from platformdirs import PlatformDirs

_APP_NAME = "Release Guardian"
_LINUX_APP_NAME = "release-guardian"

PROJECT_CONFIG_DIR = ".release-guardian"


def runtime_config_dir() -> Path:
    """Return the per-user configuration directory."""
    if sys.platform in ("win32", "darwin"):
        dirs = PlatformDirs(appname=_APP_NAME, appauthor=None, roaming=True)
    else:
        dirs = PlatformDirs(appname=_LINUX_APP_NAME, appauthor=None, roaming=False)
    return Path(dirs.user_config_path)


def default_config_path() -> Path:
    return runtime_config_dir() / "config.yaml"
