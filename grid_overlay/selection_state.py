"""Two-stage (column, then row) chord state machine for the grid overlay."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

from grid_overlay.grid_config import Cell, GridConfig
from grid_overlay.page_mapping import PageMapping, mapping_for_config, total_pages


@dataclass(frozen=True)
class SelectionState:
    selected_column: Optional[int] = None
    delete_mode: bool = False
    current_page: int = 1
    total_pages: int = 1


@dataclass(frozen=True)
class CloseRequested:
    pass


@dataclass(frozen=True)
class DeleteModeToggled:
    delete_mode: bool


@dataclass(frozen=True)
class PageChanged:
    previous: int
    current: int


@dataclass(frozen=True)
class ColumnSelected:
    column: int


@dataclass(frozen=True)
class ItemActivated:
    cell: Cell
    index: int


@dataclass(frozen=True)
class ReservedActivated:
    cell: Cell


@dataclass(frozen=True)
class EmptyCellActivated:
    cell: Cell


@dataclass(frozen=True)
class DeleteRequested:
    cell: Cell
    index: int


@dataclass(frozen=True)
class Swallowed:
    token: str


Outcome = Union[
    CloseRequested,
    DeleteModeToggled,
    PageChanged,
    ColumnSelected,
    ItemActivated,
    ReservedActivated,
    EmptyCellActivated,
    DeleteRequested,
    Swallowed,
]


class SelectionStateMachine:
    """Consumes key tokens and tracks column/page/delete-mode state.

    The machine only decides; callers perform the side effects named by the
    returned outcome (closing, pasting, deleting) and report item-count changes
    back through :meth:`items_changed`.  Every key is consumed while the
    overlay is open, so unmatched keys come back as :class:`Swallowed`.
    """

    def __init__(self, config: GridConfig, item_count: Callable[[], int]) -> None:
        self._config = config
        self._item_count = item_count
        pages = total_pages(item_count(), config.items_per_page)
        self._state = SelectionState(total_pages=pages)
        self._mapping = mapping_for_config(config, item_count(), 1)

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def mapping(self) -> PageMapping:
        return self._mapping

    @property
    def config(self) -> GridConfig:
        return self._config

    def handle_key(self, token: str) -> Outcome:
        token = (token or "").strip().upper()
        config = self._config

        if token in config.quit_keys:
            return CloseRequested()

        if token in config.delete_toggle_keys:
            self._state = replace(self._state, delete_mode=not self._state.delete_mode, selected_column=None)
            return DeleteModeToggled(self._state.delete_mode)

        if token in config.next_page_keys or token in config.prev_page_keys:
            return self._change_page(1 if token in config.next_page_keys else -1, token)

        if self._state.selected_column is None:
            column = config.column_index(token)
            if column is None:
                return Swallowed(token)
            self._state = replace(self._state, selected_column=column)
            return ColumnSelected(column)

        row = config.row_index(token)
        if row is None:
            return Swallowed(token)
        return self._resolve((row, self._state.selected_column))

    def items_changed(self) -> SelectionState:
        """Recompute paging after the backing list changed, clamping the page."""
        count = self._item_count()
        pages = total_pages(count, self._config.items_per_page)
        page = min(self._state.current_page, pages)
        self._state = replace(self._state, total_pages=pages, current_page=page, selected_column=None)
        self._mapping = mapping_for_config(self._config, count, page)
        return self._state

    def clear_column(self) -> None:
        self._state = replace(self._state, selected_column=None)

    def _change_page(self, delta: int, token: str) -> Outcome:
        pages = self._state.total_pages
        if pages <= 1:
            return Swallowed(token)
        previous = self._state.current_page
        page = previous + delta
        if page > pages:
            page = 1
        elif page < 1:
            page = pages
        self._state = replace(self._state, current_page=page, selected_column=None)
        self._mapping = mapping_for_config(self._config, self._item_count(), page)
        return PageChanged(previous=previous, current=page)

    def _resolve(self, cell: Cell) -> Outcome:
        reserved = self._config.reserved_cell
        index = self._mapping.index_at(cell)
        if self._state.delete_mode:
            if cell == reserved or index is None:
                return Swallowed(self._config.cell_name(cell))
            return DeleteRequested(cell=cell, index=index)

        self._state = replace(self._state, selected_column=None)
        if cell == reserved:
            return ReservedActivated(cell)
        if index is None:
            return EmptyCellActivated(cell)
        return ItemActivated(cell=cell, index=index)
