"""ItemSource implementations backing the three grid spoons."""
from __future__ import annotations

from typing import Callable, List, Sequence

from grid_overlay.items import GridItem
from grid_plugin.dock_apps import AppEntry
from grid_plugin.item_store import PasteItem

LABEL_MAX_CHARS = 30


def truncate_label(text: str, max_chars: int = LABEL_MAX_CHARS) -> str:
    if len(text) > max_chars:
        return text[: max(0, max_chars - 3)] + "..."
    return text


class PasteItemSource:
    """Saved snippets: title as label, body as payload."""

    supports_delete = True

    def __init__(
        self,
        items: Callable[[], Sequence[PasteItem]],
        *,
        paste: Callable[[str], None],
        remove: Callable[[int], None],
    ) -> None:
        self._items = items
        self._paste = paste
        self._remove = remove

    def count(self) -> int:
        return len(self._items())

    def item_at(self, index: int) -> GridItem:
        item = self._items()[index]
        return GridItem(label=item.title, payload=item.body)

    def activate(self, item: GridItem) -> None:
        self._paste(item.payload)

    def delete(self, index: int) -> None:
        self._remove(index)


class WindowItemSource:
    """Windows of one application, already in display order."""

    supports_delete = False

    def __init__(self, windows: Sequence[object], *, focus: Callable[[object], None]) -> None:
        self._windows: List[object] = list(windows)
        self._focus = focus

    def count(self) -> int:
        return len(self._windows)

    def item_at(self, index: int) -> GridItem:
        window = self._windows[index]
        return GridItem(label=truncate_label(getattr(window, "title", "") or ""), payload=window)

    def activate(self, item: GridItem) -> None:
        self._focus(item.payload)

    def delete(self, index: int) -> None:
        raise TypeError("windows cannot be deleted from the switcher")


class AppItemSource:
    """Dock and running applications; running ones are emphasized."""

    supports_delete = False

    def __init__(
        self,
        apps: Sequence[AppEntry],
        *,
        launch: Callable[[AppEntry], None],
    ) -> None:
        self._apps: List[AppEntry] = list(apps)
        self._launch = launch

    def count(self) -> int:
        return len(self._apps)

    def item_at(self, index: int) -> GridItem:
        app = self._apps[index]
        return GridItem(label=app.name, payload=app, icon=app.path, emphasized=app.running)

    def activate(self, item: GridItem) -> None:
        self._launch(item.payload)

    def delete(self, index: int) -> None:
        raise TypeError("applications cannot be deleted from the launcher")
