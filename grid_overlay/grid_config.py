"""Immutable grid/key configuration for a chorded selection overlay."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

Cell = Tuple[int, int]

TRAVERSAL_ORDERS = ("row_major", "column_major", "balanced")

KEY_ESCAPE = "ESCAPE"
KEY_LEFT = "LEFT"
KEY_RIGHT = "RIGHT"


class InvalidConfig(ValueError):
    """Raised when a grid configuration cannot hold its page of items."""


def _normalise_keys(keys: Iterable[str]) -> Tuple[str, ...]:
    result = []
    for key in keys:
        token = str(key).strip().upper()
        if not token:
            raise InvalidConfig("Key tokens cannot be empty")
        result.append(token)
    return tuple(result)


@dataclass(frozen=True)
class GridConfig:
    """Columns/rows/paging/key bindings for one overlay session.

    ``reserved_cell`` is a zero-based ``(row, column)`` pair that never receives
    an item (e.g. "add new item").  ``items_per_page`` defaults to every cell
    that is not reserved.
    """

    columns: Tuple[str, ...]
    rows: Tuple[str, ...]
    items_per_page: int = 0
    reserved_cell: Optional[Cell] = None
    traversal: str = "row_major"
    quit_keys: Tuple[str, ...] = ("Q", KEY_ESCAPE)
    delete_toggle_keys: Tuple[str, ...] = ()
    next_page_keys: Tuple[str, ...] = (KEY_RIGHT,)
    prev_page_keys: Tuple[str, ...] = (KEY_LEFT,)
    _column_lookup: dict = field(default_factory=dict, init=False, repr=False, compare=False)
    _row_lookup: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        columns = _normalise_keys(self.columns)
        rows = _normalise_keys(self.rows)
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "rows", rows)
        for name in ("quit_keys", "delete_toggle_keys", "next_page_keys", "prev_page_keys"):
            object.__setattr__(self, name, _normalise_keys(getattr(self, name)))

        if not columns or not rows:
            raise InvalidConfig("A grid needs at least one column and one row")
        if len(set(columns)) != len(columns):
            raise InvalidConfig(f"Duplicate column keys: {columns}")
        if len(set(rows)) != len(rows):
            raise InvalidConfig(f"Duplicate row keys: {rows}")
        if self.traversal not in TRAVERSAL_ORDERS:
            raise InvalidConfig(f"Unknown traversal order '{self.traversal}'")

        reserved = self.reserved_cell
        if reserved is not None:
            row, col = reserved
            if not (0 <= row < len(rows) and 0 <= col < len(columns)):
                raise InvalidConfig(f"Reserved cell {reserved} lies outside the grid")

        capacity = len(rows) * len(columns) - (1 if reserved is not None else 0)
        per_page = int(self.items_per_page) if self.items_per_page else capacity
        if per_page < 1:
            raise InvalidConfig("items_per_page must be at least 1")
        if per_page > capacity:
            raise InvalidConfig(
                f"{len(columns)}x{len(rows)} grid holds {capacity} items per page, not {per_page}"
            )
        object.__setattr__(self, "items_per_page", per_page)

        control = set(self.quit_keys) | set(self.delete_toggle_keys) | set(self.next_page_keys) | set(self.prev_page_keys)
        clashes = control & (set(columns) | set(rows))
        if clashes:
            raise InvalidConfig(f"Control keys shadow grid keys: {sorted(clashes)}")

        object.__setattr__(self, "_column_lookup", {key: idx for idx, key in enumerate(columns)})
        object.__setattr__(self, "_row_lookup", {key: idx for idx, key in enumerate(rows)})

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def delete_enabled(self) -> bool:
        return bool(self.delete_toggle_keys)

    def column_index(self, token: str) -> Optional[int]:
        return self._column_lookup.get(token)

    def row_index(self, token: str) -> Optional[int]:
        return self._row_lookup.get(token)

    def cell_name(self, cell: Cell) -> str:
        row, col = cell
        return f"{self.columns[col]},{self.rows[row]}"


def letter_keys(count: int) -> Tuple[str, ...]:
    """Return ``count`` consecutive letters starting at ``A``."""
    if not 0 < count <= 26:
        raise InvalidConfig(f"Cannot label {count} rows/columns with single letters")
    return tuple(chr(ord("A") + idx) for idx in range(count))
