"""JSON persistence for PasteLibrary items."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List

from grid_plugin.errors import StorageDecodeError, StorageWriteError

DEFAULT_STORAGE_PATH = Path.home() / ".config" / "pastelibrary" / "items.json"


@dataclass(frozen=True)
class PasteItem:
    title: str
    body: str


def normalize_items(raw: Any) -> List[PasteItem]:
    """Keep only entries carrying a string ``title`` and ``body``; drop the rest."""
    if not isinstance(raw, list):
        return []
    items: List[PasteItem] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        body = entry.get("body")
        if isinstance(title, str) and isinstance(body, str):
            items.append(PasteItem(title, body))
    return items


class ItemStore:
    """Loads and saves ``[{title, body}, ...]`` at a fixed per-user path."""

    def __init__(self, path: Path = DEFAULT_STORAGE_PATH) -> None:
        self.path = Path(path).expanduser()

    def _ensure_directory(self) -> None:
        directory = self.path.parent
        if directory.exists() and not directory.is_dir():
            raise StorageWriteError(f"storage path exists and is not a directory: {directory}")
        directory.mkdir(parents=True, exist_ok=True)

    def load(self) -> List[PasteItem]:
        """Return the stored items; a missing or blank file is an empty list.

        Raises :class:`StorageDecodeError` when the file holds invalid JSON.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageDecodeError(f"could not read {self.path.name}: {exc}") from exc
        if not text.strip():
            return []
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageDecodeError(f"could not decode {self.path.name}: {exc}") from exc
        return normalize_items(decoded)

    def save(self, items: Iterable[PasteItem]) -> None:
        """Write ``items`` atomically (temp file then replace)."""
        payload = [{"title": item.title, "body": item.body} for item in items]
        try:
            self._ensure_directory()
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageWriteError(str(exc)) from exc
