"""Cell ↔ item-index assignment for one page of the grid."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from grid_overlay.grid_config import Cell, GridConfig


def total_pages(count: int, per_page: int) -> int:
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    return max(1, math.ceil(max(0, count) / per_page))


def traversal_order(rows: int, columns: int, order: str = "row_major", reserved: Optional[Cell] = None) -> List[Cell]:
    """Fixed permutation of the non-reserved cells used to place items.

    ``balanced`` fills the reserved cell's row first (the cells after it, then
    the ones before it) and then the remaining rows row-major; for a reserved
    cell in the top-left corner this is the same as row-major.
    """
    if order == "column_major":
        cells = [(r, c) for c in range(columns) for r in range(rows)]
    elif order == "balanced" and reserved is not None:
        res_row, res_col = reserved
        first = [(res_row, c) for c in range(res_col + 1, columns)] + [(res_row, c) for c in range(res_col)]
        rest = [(r, c) for r in range(rows) if r != res_row for c in range(columns)]
        cells = first + rest
    else:
        cells = [(r, c) for r in range(rows) for c in range(columns)]
    return [cell for cell in cells if cell != reserved]


@dataclass(frozen=True)
class PageMapping:
    page: int
    slots: Dict[Cell, Optional[int]]
    reserved: Optional[Cell] = None

    def index_at(self, cell: Cell) -> Optional[int]:
        return self.slots.get(cell)

    def cell_of(self, index: int) -> Optional[Cell]:
        for cell, value in self.slots.items():
            if value == index:
                return cell
        return None

    def occupied(self) -> List[Cell]:
        return [cell for cell, value in self.slots.items() if value is not None]


def assign_items_to_page(
    count: int,
    page: int,
    per_page: int,
    order: Sequence[Cell],
    reserved: Optional[Cell] = None,
) -> PageMapping:
    start = (page - 1) * per_page
    slots: Dict[Cell, Optional[int]] = {}
    offset = 0
    for cell in order:
        if cell == reserved:
            continue
        index = start + offset
        slots[cell] = index if offset < per_page and 0 <= index < count else None
        offset += 1
    return PageMapping(page=page, slots=slots, reserved=reserved)


def mapping_for_config(config: GridConfig, count: int, page: int) -> PageMapping:
    order = traversal_order(config.row_count, config.column_count, config.traversal, config.reserved_cell)
    return assign_items_to_page(count, page, config.items_per_page, order, config.reserved_cell)
