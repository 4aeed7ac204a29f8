from __future__ import annotations

import os
import sys
from pathlib import Path

DATA_DIR_ENV = "PALETS_DATA_DIR"


def app_dir() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


def resources_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "resources"


def default_data_dir() -> Path:
    env_value = os.getenv(DATA_DIR_ENV, "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return app_dir() / "data"
