#!/usr/bin/env python3
# CUI // SP-CTI
"""Per-user application directory holding component definition bundles.

Root resolution order:
  1. ``app_dir`` argument
  2. ``COMPLYPLAN_APP_DIR`` environment variable
  3. ``<platform data home>/complyplan``
"""

import os
from pathlib import Path

from complyplan.compat.platform_utils import get_data_home

APP_DIR_ENV = "COMPLYPLAN_APP_DIR"
APP_NAME = "complyplan"
BUNDLES_DIR = "bundles"


def default_app_dir() -> Path:
    env_path = os.environ.get(APP_DIR_ENV)
    if env_path:
        return Path(env_path)
    return get_data_home() / APP_NAME


class ApplicationDirectory:
    """Locations of complyplan's per-user data."""

    def __init__(self, app_dir=None, create=False):
        self._app_dir = Path(app_dir) if app_dir else default_app_dir()
        if create:
            self.bundle_dir().mkdir(parents=True, exist_ok=True)

    def app_dir(self) -> Path:
        return self._app_dir

    def bundle_dir(self) -> Path:
        return self._app_dir / BUNDLES_DIR
