"""PasteLibrary: a paged 3x5 grid of saved snippets pasted into the focused app."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from grid_overlay.grid_config import KEY_ESCAPE, KEY_LEFT, KEY_RIGHT, GridConfig
from grid_overlay.overlay_session import OverlayController, OverlayRequest, OverlaySession
from grid_plugin.errors import StorageDecodeError, StorageWriteError
from grid_plugin.item_sources import PasteItemSource
from grid_plugin.item_store import ItemStore, PasteItem
from grid_plugin.preferences import Preferences

_LOGGER = logging.getLogger("SpoonGrid.PasteLibrary")

NAME = "PasteLibrary"
COLUMNS = ("A", "B", "C")
ROWS = ("A", "B", "C", "D", "E")
ITEMS_PER_PAGE = 14
ADD_LABEL = "➕ Add new item"

PromptFn = Callable[..., Optional[str]]


def paste_grid_config() -> GridConfig:
    return GridConfig(
        columns=COLUMNS,
        rows=ROWS,
        items_per_page=ITEMS_PER_PAGE,
        reserved_cell=(0, 0),
        traversal="balanced",
        quit_keys=("Q", KEY_ESCAPE),
        delete_toggle_keys=("X",),
        next_page_keys=("J", KEY_RIGHT),
        prev_page_keys=("K", KEY_LEFT),
    )


class PasteLibrary:
    """Owns the snippet list and opens the grid over it."""

    def __init__(
        self,
        controller: OverlayController,
        *,
        store: ItemStore,
        paste: Callable[[str], None],
        prompt: PromptFn,
        alert: Callable[[str], None],
        preferences: Optional[Preferences] = None,
    ) -> None:
        self._controller = controller
        self._store = store
        self._paste = paste
        self._prompt = prompt
        self._alert = alert
        self._preferences = preferences
        self._config = paste_grid_config()
        self.items: List[PasteItem] = []

    def start(self) -> "PasteLibrary":
        self.load_items()
        return self

    # Persistence ---------------------------------------------------------

    def load_items(self) -> None:
        try:
            self.items = self._store.load()
        except StorageDecodeError as exc:
            _LOGGER.warning("Discarding unreadable items: %s", exc)
            self._alert(f"{NAME}: Could not decode {self._store.path.name}; starting empty.")
            self.items = []

    def save_items(self) -> None:
        try:
            self._store.save(self.items)
        except StorageWriteError as exc:
            _LOGGER.warning("Saving items failed: %s", exc)
            self._alert(f"{NAME}: Failed to save {self._store.path.name}: {exc}")

    def add_item(self, title: str, body: str) -> None:
        self.items.append(PasteItem(title, body))
        self.save_items()

    def delete_item_by_index(self, index: int) -> None:
        if not 0 <= index < len(self.items):
            return
        del self.items[index]
        self.save_items()

    def delete_item_by_title(self, title: str) -> None:
        self.items = [item for item in self.items if item.title != title]
        self.save_items()

    # Overlay -------------------------------------------------------------

    def build_request(self) -> OverlayRequest:
        source = PasteItemSource(lambda: self.items, paste=self._paste, remove=self.delete_item_by_index)
        options = self._preferences.overlay_options() if self._preferences is not None else {}
        return OverlayRequest(
            name=NAME,
            config=self._config,
            source=source,
            reserved_label=ADD_LABEL,
            on_reserved=self.show_add_dialog,
            **options,
        )

    def show_grid(self) -> Optional[OverlaySession]:
        return self._controller.open(self.build_request())

    def show_add_dialog(self) -> None:
        title = self._prompt(f"{NAME}: New Item", "Enter the Title (the Body will be asked next):")
        if title is None:
            return
        if not title:
            self._alert(f"{NAME}: Title is required.")
            return
        body = self._prompt(
            f"{NAME}: Body",
            "Enter the Body text (multiline supported):",
            multiline=True,
            ok_label="Save",
        )
        if body is None:
            return
        self.add_item(title, body)
        self._alert(f'{NAME}: Saved "{title}"')

    def bind_hotkeys(self, binder) -> None:
        binder.register_action("paste_library.show", self.show_grid)
        binder.register_action("paste_library.add", self.show_add_dialog)
