"""Centralized path utilities for writable app directories."""

import os
import sys
from pathlib import Path


def get_log_dir() -> Path:
    """Returns a writable directory for logs."""
    if sys.platform == "darwin":
        log_dir = Path.home() / "Library" / "Logs" / "ConvoMap"
    elif sys.platform == "win32":
        log_dir = Path(os.environ.get("LOCALAPPDATA", Path.home())) / "ConvoMap" / "logs"
    else:
        log_dir = Path.home() / ".convomap" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir
