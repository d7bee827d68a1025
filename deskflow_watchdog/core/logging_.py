from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from deskflow_watchdog.shared.paths import log_path, ensure_app_dirs

LOG_FORMAT = "%(asctime)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(path: Optional[Path] = None) -> None:
    if path is None:
        ensure_app_dirs()
        path = log_path()
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    if root.handlers:
        return

    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    # Append-only, never rotated
    fh = logging.FileHandler(str(path), mode="a", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(fmt)
    root.addHandler(fh)
