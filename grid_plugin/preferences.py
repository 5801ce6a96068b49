"""Preferences management for the grid spoons."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from grid_plugin.item_store import DEFAULT_STORAGE_PATH

PREFERENCES_FILE = "settings.json"
CONFIG_DIR_ENV = "SPOON_GRID_CONFIG_DIR"
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "spoongrid"
LAUNCHER_AXIS_MAX = 16


def resolve_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_DIR


def _coerce_float(value: Any, default: float, lower: float, upper: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(lower, min(number, upper))


def _coerce_int(value: Any, default: int, lower: int, upper: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(lower, min(number, upper))


@dataclass
class Preferences:
    """Simple JSON-backed preferences store."""

    config_dir: Path = field(default_factory=resolve_config_dir)
    debug_logging: bool = False
    log_retention: int = 5
    open_fade_seconds: float = 0.10
    page_fade_seconds: float = 0.08
    grid_width_fraction: float = 2 / 3
    grid_height_fraction: float = 0.60
    paste_storage_path: str = str(DEFAULT_STORAGE_PATH)
    launcher_columns: int = 10
    launcher_rows: int = 10
    hotkeys: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.config_dir = Path(self.config_dir)
        self._path = self.config_dir / PREFERENCES_FILE
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def overlay_options(self, *, include_size: bool = True) -> Dict[str, float]:
        """Keyword arguments for an OverlayRequest."""
        options = {"open_fade": self.open_fade_seconds, "page_fade": self.page_fade_seconds}
        if include_size:
            options["width_fraction"] = self.grid_width_fraction
            options["height_fraction"] = self.grid_height_fraction
        return options

    @property
    def storage_path(self) -> Path:
        return Path(self.paste_storage_path).expanduser()

    # Persistence ---------------------------------------------------------

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict):
            return
        self.debug_logging = bool(data.get("debug_logging", False))
        self.log_retention = _coerce_int(data.get("log_retention", 5), 5, 1, 50)
        self.open_fade_seconds = _coerce_float(data.get("open_fade_seconds", 0.10), 0.10, 0.0, 2.0)
        self.page_fade_seconds = _coerce_float(data.get("page_fade_seconds", 0.08), 0.08, 0.0, 2.0)
        self.grid_width_fraction = _coerce_float(data.get("grid_width_fraction", 2 / 3), 2 / 3, 0.2, 1.0)
        self.grid_height_fraction = _coerce_float(data.get("grid_height_fraction", 0.60), 0.60, 0.2, 1.0)
        storage = data.get("paste_storage_path")
        if isinstance(storage, str) and storage.strip():
            self.paste_storage_path = storage.strip()
        self.launcher_columns = _coerce_int(data.get("launcher_columns", 10), 10, 1, LAUNCHER_AXIS_MAX)
        self.launcher_rows = _coerce_int(data.get("launcher_rows", 10), 10, 1, LAUNCHER_AXIS_MAX)
        hotkeys = data.get("hotkeys")
        if isinstance(hotkeys, dict):
            self.hotkeys = {str(action): str(combo) for action, combo in hotkeys.items() if isinstance(combo, str)}

    def save(self) -> None:
        payload: Dict[str, Any] = {
            "debug_logging": bool(self.debug_logging),
            "log_retention": int(self.log_retention),
            "open_fade_seconds": float(self.open_fade_seconds),
            "page_fade_seconds": float(self.page_fade_seconds),
            "grid_width_fraction": float(self.grid_width_fraction),
            "grid_height_fraction": float(self.grid_height_fraction),
            "paste_storage_path": str(self.paste_storage_path),
            "launcher_columns": int(self.launcher_columns),
            "launcher_rows": int(self.launcher_rows),
            "hotkeys": dict(self.hotkeys),
        }
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    @classmethod
    def load(cls, config_dir: Optional[Path] = None) -> "Preferences":
        if config_dir is None:
            return cls()
        return cls(config_dir=config_dir)
