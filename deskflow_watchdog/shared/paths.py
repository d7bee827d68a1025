from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "deskflow-watchdog"

def app_data_dir() -> Path:
    base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_NAME

def config_path() -> Path:
    return app_data_dir() / "config.json"

def log_path() -> Path:
    return app_data_dir() / f"{APP_NAME}.log"

def ensure_app_dirs() -> None:
    app_data_dir().mkdir(parents=True, exist_ok=True)
