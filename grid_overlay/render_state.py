"""Turns selection state into draw primitives, with partial-redraw helpers.

Full builds lay primitives out in paint order: backdrop, panel, header, cell
backgrounds and tints, (delete overlay slot), icons, titles, identity letters,
footer.  Partial updates address primitives by key so the rectangles stay in
place while colours and labels change.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from grid_overlay.grid_config import Cell, GridConfig
from grid_overlay.grid_layout import GridLayout, Rect
from grid_overlay.items import GridItem
from grid_overlay.page_mapping import PageMapping
from grid_overlay.paint_commands import Color, DrawSurface, ImagePrimitive, RectPrimitive, TextPrimitive
from grid_overlay.selection_state import SelectionState

LAYER_BACKDROP = "backdrop"
LAYER_GRID = "grid"
LAYER_FOOTER = "footer"
LAYERS = (LAYER_BACKDROP, LAYER_GRID, LAYER_FOOTER)

DELETE_OVERLAY_KEY = "delete_overlay"
DELETE_FOOTER_TEXT = "DELETE MODE — press X to cancel"


@dataclass(frozen=True)
class Palette:
    backdrop: Color = Color(0.0, 0.0, 0.0, 0.25)
    panel: Color = Color.white(0.04, 0.95)
    border: Color = Color.white(1.0, 0.08)
    cell: Color = Color.white(0.06, 0.96)
    cell_selected: Color = Color.white(0.10, 0.98)
    cell_tint: Color = Color(0.2, 0.4, 1.0, 0.10)
    title: Color = Color.white(0.95, 0.95)
    ident: Color = Color(1.0, 1.0, 0.0, 1.0)
    ident_active: Color = Color(0.15, 0.45, 1.0, 1.0)
    footer: Color = Color.white(0.08, 0.95)
    footer_text: Color = Color.white(0.90, 0.90)
    delete_overlay: Color = Color(0.60, 0.0, 0.0, 0.25)
    delete_flash: Color = Color(0.90, 0.20, 0.20, 0.40)
    footer_delete: Color = Color.white(0.06, 0.97)
    footer_text_delete: Color = Color(1.0, 0.35, 0.35, 0.98)


@dataclass(frozen=True)
class GridStyle:
    fade_alpha: float = 0.28
    cell_padding: float = 10
    corner_radius: float = 12
    panel_radius: float = 14
    footer_radius: float = 10
    title_size: float = 16
    hint_size: float = 14
    footer_size: float = 13
    header_size: float = 22
    icon_fraction: float = 0.25


def cell_key(kind: str, cell: Cell) -> str:
    return f"{kind}_{cell[0]}_{cell[1]}"


ItemLookup = Callable[[int], GridItem]


class GridRenderState:
    def __init__(
        self,
        config: GridConfig,
        layout: GridLayout,
        *,
        palette: Optional[Palette] = None,
        style: Optional[GridStyle] = None,
        title: Optional[str] = None,
        header_icon: Any = None,
        reserved_label: str = "",
        show_icons: bool = False,
    ) -> None:
        self._config = config
        self._layout = layout
        self.palette = palette or Palette()
        self.style = style or GridStyle()
        self._title = title
        self._header_icon = header_icon
        self._reserved_label = reserved_label
        self._show_icons = show_icons

    @property
    def layout(self) -> GridLayout:
        return self._layout

    def cells(self) -> list[Cell]:
        return [(r, c) for r in range(self._config.row_count) for c in range(self._config.column_count)]

    # Full build ----------------------------------------------------------

    def build(self, surface: DrawSurface, mapping: PageMapping, state: SelectionState, item_at: ItemLookup) -> None:
        palette, style, layout = self.palette, self.style, self._layout
        surface.clear()
        surface.apply_diff("backdrop", RectPrimitive("backdrop", layout.screen, LAYER_BACKDROP, fill=palette.backdrop))
        surface.apply_diff(
            "panel",
            RectPrimitive(
                "panel",
                layout.panel,
                LAYER_GRID,
                fill=palette.panel,
                stroke=palette.border,
                radius=style.panel_radius,
            ),
        )
        if layout.header is not None:
            header = layout.header
            text_x = header.x
            if self._header_icon is not None:
                icon_size = min(48.0, header.h)
                icon_frame = Rect(header.x, header.y + (header.h - icon_size) / 2, icon_size, icon_size)
                surface.apply_diff("header_icon", ImagePrimitive("header_icon", icon_frame, LAYER_GRID, image=self._header_icon))
                text_x = header.x + icon_size + 12
            surface.apply_diff(
                "header_title",
                TextPrimitive(
                    "header_title",
                    Rect(text_x, header.y, header.right - text_x, header.h),
                    LAYER_GRID,
                    text=self._title or "",
                    color=Color.white(1.0),
                    size=style.header_size,
                ),
            )

        for cell in self.cells():
            frame = layout.cell(*cell)
            surface.apply_diff(
                cell_key("rect", cell),
                RectPrimitive(
                    cell_key("rect", cell),
                    frame,
                    LAYER_GRID,
                    fill=palette.cell,
                    stroke=palette.border,
                    radius=style.corner_radius,
                ),
            )
        for cell in self.cells():
            surface.apply_diff(
                cell_key("tint", cell),
                RectPrimitive(cell_key("tint", cell), layout.cell(*cell).inset(3), LAYER_GRID, radius=style.corner_radius),
            )
        if self._show_icons:
            for cell in self.cells():
                surface.apply_diff(cell_key("icon", cell), ImagePrimitive(cell_key("icon", cell), self._icon_frame(cell), LAYER_GRID))
        for cell in self.cells():
            surface.apply_diff(
                cell_key("title", cell),
                TextPrimitive(
                    cell_key("title", cell),
                    self._title_frame(cell),
                    LAYER_GRID,
                    color=palette.title,
                    size=style.title_size,
                    align="center" if self._show_icons else "left",
                ),
            )
        for cell in self.cells():
            col_frame, row_frame = self._ident_frames(cell)
            surface.apply_diff(
                cell_key("col", cell),
                TextPrimitive(
                    cell_key("col", cell),
                    col_frame,
                    LAYER_GRID,
                    text=self._config.columns[cell[1]],
                    color=palette.ident,
                    size=style.hint_size,
                ),
            )
            surface.apply_diff(
                cell_key("row", cell),
                TextPrimitive(
                    cell_key("row", cell),
                    row_frame,
                    LAYER_GRID,
                    text=self._config.rows[cell[0]],
                    color=palette.ident,
                    size=style.hint_size,
                    align="right",
                ),
            )

        if layout.footer is not None:
            footer = layout.footer
            surface.apply_diff(
                "footer_bg",
                RectPrimitive(
                    "footer_bg",
                    footer,
                    LAYER_FOOTER,
                    fill=palette.footer,
                    stroke=palette.border,
                    radius=style.footer_radius,
                ),
            )
            surface.apply_diff(
                "footer_text",
                TextPrimitive("footer_text", footer, LAYER_FOOTER, color=palette.footer_text, size=style.footer_size, align="center"),
            )

        self.refresh_page_contents(surface, mapping, item_at)
        self.apply_column_visuals(surface, state.selected_column)
        self.apply_footer(surface, state)
        self.set_delete_overlay(surface, state.delete_mode)

    # Partial updates -----------------------------------------------------

    def refresh_page_contents(self, surface: DrawSurface, mapping: PageMapping, item_at: ItemLookup) -> None:
        palette = self.palette
        for cell in self.cells():
            label, icon, emphasized = self._cell_content(cell, mapping, item_at)
            surface.apply_diff(cell_key("title", cell), {"text": label})
            surface.apply_diff(cell_key("tint", cell), {"fill": palette.cell_tint if emphasized else Color(0, 0, 0, 0)})
            if self._show_icons:
                surface.apply_diff(cell_key("icon", cell), {"image": icon})

    def apply_column_visuals(self, surface: DrawSurface, selected_column: Optional[int]) -> None:
        palette, style = self.palette, self.style
        for cell in self.cells():
            is_selected = selected_column == cell[1]
            faded = selected_column is not None and not is_selected
            factor = style.fade_alpha if faded else 1.0
            background = palette.cell_selected if is_selected else palette.cell
            col_color = palette.ident_active if is_selected else palette.ident
            surface.apply_diff(cell_key("rect", cell), {"fill": background.faded(factor)})
            surface.apply_diff(cell_key("title", cell), {"color": palette.title.faded(factor)})
            surface.apply_diff(cell_key("col", cell), {"color": col_color.faded(factor)})
            surface.apply_diff(cell_key("row", cell), {"color": palette.ident.faded(factor)})

    def apply_footer(self, surface: DrawSurface, state: SelectionState) -> None:
        palette = self.palette
        if state.delete_mode:
            surface.apply_diff("footer_bg", {"fill": palette.footer_delete})
            surface.apply_diff("footer_text", {"text": DELETE_FOOTER_TEXT, "color": palette.footer_text_delete})
        else:
            surface.apply_diff("footer_bg", {"fill": palette.footer})
            surface.apply_diff(
                "footer_text",
                {"text": f"Page {state.current_page} / {state.total_pages}", "color": palette.footer_text},
            )

    def set_delete_overlay(self, surface: DrawSurface, enabled: bool) -> None:
        if not enabled:
            surface.apply_diff(DELETE_OVERLAY_KEY, None)
            return
        overlay = RectPrimitive(
            DELETE_OVERLAY_KEY,
            self._layout.panel,
            LAYER_GRID,
            fill=self.palette.delete_overlay,
            radius=self.style.panel_radius,
        )
        anchor = cell_key("icon", (0, 0)) if self._show_icons else cell_key("title", (0, 0))
        surface.apply_diff(DELETE_OVERLAY_KEY, overlay, before=anchor)

    def flash_primitive(self, cell: Cell) -> RectPrimitive:
        return RectPrimitive(
            cell_key("flash", cell),
            self._layout.cell(*cell),
            LAYER_GRID,
            fill=self.palette.delete_flash.with_alpha(0.0),
            radius=self.style.corner_radius,
        )

    # Helpers -------------------------------------------------------------

    def _cell_content(self, cell: Cell, mapping: PageMapping, item_at: ItemLookup) -> tuple[str, Any, bool]:
        if cell == self._config.reserved_cell:
            return self._reserved_label, None, False
        index = mapping.index_at(cell)
        if index is None:
            return "", None, False
        item = item_at(index)
        return item.label, item.icon, item.emphasized

    def _title_frame(self, cell: Cell) -> Rect:
        frame = self._layout.cell(*cell)
        pad = self.style.cell_padding
        if self._show_icons:
            label_h = self.style.title_size + 8
            return Rect(frame.x + 2, frame.bottom - label_h - self.style.hint_size - 8, frame.w - 4, label_h)
        return frame.inset(pad)

    def _icon_frame(self, cell: Cell) -> Rect:
        frame = self._layout.cell(*cell)
        size = max(0.0, min(frame.w * self.style.icon_fraction * 1.6, frame.h - self.style.title_size - self.style.hint_size - 24))
        return Rect(frame.x + (frame.w - size) / 2, frame.y + 6, size, size)

    def _ident_frames(self, cell: Cell) -> tuple[Rect, Rect]:
        frame = self._layout.cell(*cell)
        hint = self.style.hint_size
        top = frame.bottom - (hint + 6)
        half = frame.w / 2
        return (
            Rect(frame.x + 6, top, max(0.0, half - 8), hint + 2),
            Rect(frame.x + half, top, max(0.0, half - 8), hint + 2),
        )
