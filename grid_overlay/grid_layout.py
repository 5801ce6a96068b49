"""Pure geometry for the grid overlay panel, its cells, header, and footer."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def inset(self, dx: float, dy: Optional[float] = None) -> "Rect":
        dy = dx if dy is None else dy
        return Rect(self.x + dx, self.y + dy, max(0.0, self.w - 2 * dx), max(0.0, self.h - 2 * dy))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.w, self.h)


@dataclass(frozen=True)
class GridLayout:
    screen: Rect
    panel: Rect
    header: Optional[Rect]
    cells: Tuple[Tuple[Rect, ...], ...]
    footer: Optional[Rect]

    def cell(self, row: int, col: int) -> Rect:
        return self.cells[row][col]

    @property
    def cell_size(self) -> Tuple[float, float]:
        first = self.cells[0][0]
        return (first.w, first.h)


def compute_grid_layout(
    screen: Rect,
    *,
    rows: int,
    columns: int,
    width_fraction: float = 2 / 3,
    height_fraction: float = 0.60,
    margin: float = 16,
    cell_inset: float = 1,
    max_width: Optional[float] = 1600,
    header_height: float = 0,
    footer_height: float = 0,
    footer_gap: float = 8,
) -> GridLayout:
    """Return the panel/cell/footer geometry for a ``rows`` x ``columns`` grid.

    The panel is centred on ``screen``; cells split the inner panel area evenly.
    Coordinates are absolute (same space as ``screen``) and floored to whole
    pixels so repeated calls produce identical frames.
    """
    if rows < 1 or columns < 1:
        raise ValueError("rows and columns must be positive")

    panel_w = math.floor(screen.w * max(0.05, min(width_fraction, 1.0)))
    if max_width is not None and max_width > 0:
        panel_w = min(panel_w, math.floor(max_width))
    panel_h = math.floor(screen.h * max(0.05, min(height_fraction, 1.0)))

    footer_block = (footer_gap + footer_height) if footer_height > 0 else 0
    if panel_h + footer_block > screen.h:
        panel_h = max(1, math.floor(screen.h - footer_block))

    panel_x = math.floor(screen.x + (screen.w - panel_w) / 2)
    panel_y = math.floor(screen.y + (screen.h - panel_h - footer_block) / 2)
    panel = Rect(panel_x, panel_y, panel_w, panel_h)

    header: Optional[Rect] = None
    top = panel_y + margin
    if header_height > 0:
        header = Rect(panel_x + margin, top, panel_w - 2 * margin, header_height)
        top += header_height

    inner_w = max(0, panel_w - 2 * margin)
    inner_h = max(0, panel_y + panel_h - margin - top)
    cell_w = math.floor(inner_w / columns)
    cell_h = math.floor(inner_h / rows)

    grid: List[Tuple[Rect, ...]] = []
    for r in range(rows):
        line = []
        for c in range(columns):
            slot = Rect(panel_x + margin + c * cell_w, top + r * cell_h, cell_w, cell_h)
            line.append(slot.inset(cell_inset))
        grid.append(tuple(line))

    footer: Optional[Rect] = None
    if footer_height > 0:
        footer = Rect(panel_x, panel_y + panel_h + footer_gap, panel_w, footer_height)

    return GridLayout(screen=screen, panel=panel, header=header, cells=tuple(grid), footer=footer)
