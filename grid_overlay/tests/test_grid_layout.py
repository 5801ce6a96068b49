from __future__ import annotations

from grid_overlay.grid_layout import Rect, compute_grid_layout


def test_panel_is_centred_and_cells_are_uniform() -> None:
    screen = Rect(0, 0, 2000, 1000)
    layout = compute_grid_layout(
        screen, rows=5, columns=3, width_fraction=0.5, height_fraction=0.5, footer_height=40, footer_gap=8
    )

    assert layout.panel.w == 1000
    assert layout.panel.h == 500
    assert layout.panel.x == 500
    # panel + gap + footer are centred as one block
    assert layout.panel.y == (1000 - 500 - 48) // 2
    sizes = {(cell.w, cell.h) for row in layout.cells for cell in row}
    assert len(sizes) == 1
    assert len(layout.cells) == 5 and len(layout.cells[0]) == 3


def test_width_is_clamped_on_wide_displays() -> None:
    layout = compute_grid_layout(Rect(0, 0, 5120, 1440), rows=5, columns=3, max_width=1600)

    assert layout.panel.w == 1600
    assert layout.panel.x == (5120 - 1600) // 2


def test_no_clamp_when_max_width_is_none() -> None:
    layout = compute_grid_layout(Rect(0, 0, 5000, 1000), rows=10, columns=10, width_fraction=0.8, max_width=None)

    assert layout.panel.w == 4000


def test_footer_sits_below_panel_with_gap() -> None:
    layout = compute_grid_layout(Rect(100, 50, 1200, 800), rows=2, columns=2, footer_height=40, footer_gap=8)

    assert layout.footer is not None
    assert layout.footer.y == layout.panel.bottom + 8
    assert layout.footer.x == layout.panel.x
    assert layout.footer.w == layout.panel.w


def test_cells_stay_inside_panel_and_below_header() -> None:
    layout = compute_grid_layout(Rect(0, 0, 1920, 1080), rows=5, columns=3, header_height=64)

    assert layout.header is not None
    for row in layout.cells:
        for cell in row:
            assert cell.x >= layout.panel.x
            assert cell.right <= layout.panel.right
            assert cell.y >= layout.header.bottom
            assert cell.bottom <= layout.panel.bottom


def test_panel_shrinks_when_footer_would_overflow() -> None:
    layout = compute_grid_layout(Rect(0, 0, 800, 600), rows=2, columns=2, height_fraction=1.0, footer_height=40, footer_gap=8)

    assert layout.footer is not None
    assert layout.footer.bottom <= 600


def test_layout_is_deterministic() -> None:
    screen = Rect(0, 0, 1366, 768)
    assert compute_grid_layout(screen, rows=3, columns=3) == compute_grid_layout(screen, rows=3, columns=3)
