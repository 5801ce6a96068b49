from __future__ import annotations

import logging
import os
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

LOG_DIR_ENV = "SPOON_GRID_LOG_DIR"
LOG_DIR_NAME = "SpoonGrid"


def log_dir_candidates(log_dir_name: str = LOG_DIR_NAME, *, platform: Optional[str] = None) -> List[Path]:
    """Directories to try for the log file, most preferred first.

    ``SPOON_GRID_LOG_DIR`` wins; on macOS the per-user ``~/Library/Logs``
    comes next so Console.app lists the file, then the XDG state and cache
    homes for other desktops.
    """
    platform = platform or sys.platform
    candidates: List[Path] = []
    override = os.environ.get(LOG_DIR_ENV, "").strip()
    if override:
        candidates.append(Path(override).expanduser() / log_dir_name)
    home = Path.home()
    if platform == "darwin":
        candidates.append(home / "Library" / "Logs" / log_dir_name)
    state_home = Path(os.environ.get("XDG_STATE_HOME") or home / ".local" / "state")
    cache_home = Path(os.environ.get("XDG_CACHE_HOME") or home / ".cache")
    candidates.append(state_home / "spoongrid" / log_dir_name)
    candidates.append(cache_home / "spoongrid" / log_dir_name)
    return candidates


def resolve_logs_dir(log_dir_name: str = LOG_DIR_NAME, *, platform: Optional[str] = None) -> Path:
    """First candidate that can be created; the temp directory as a last resort."""
    for target in log_dir_candidates(log_dir_name, platform=platform):
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError:
            continue
        return target
    fallback = Path(tempfile.gettempdir()) / "spoongrid" / log_dir_name
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Size-rotated UTF-8 log keeping ``retention`` files in total (current plus backups)."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=max(1, retention) - 1,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler
