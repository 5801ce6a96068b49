from __future__ import annotations

import gc
import time
from typing import List

import pytest

pytest.importorskip("PyQt6")

from PyQt6.QtCore import Qt  # noqa: E402
from PyQt6.QtGui import QPixmap  # noqa: E402
from PyQt6.QtWidgets import QApplication  # noqa: E402

from grid_overlay.grid_config import KEY_ESCAPE, KEY_LEFT, KEY_RIGHT  # noqa: E402
from grid_overlay.grid_layout import Rect  # noqa: E402
from grid_overlay.paint_commands import Color  # noqa: E402
from grid_overlay.qt_host import QtHost, QtPainterAdapter, key_token  # noqa: E402


@pytest.fixture
def qt_app():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


def _pump(app, seconds: float) -> None:
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        app.processEvents()
        time.sleep(0.005)


def test_key_token_maps_letters_and_specials() -> None:
    assert key_token(Qt.Key.Key_A.value, "a") == "A"
    assert key_token(Qt.Key.Key_Escape.value, "\x1b") == KEY_ESCAPE
    assert key_token(Qt.Key.Key_Left.value, "") == KEY_LEFT
    assert key_token(Qt.Key.Key_Right.value, "") == KEY_RIGHT
    assert key_token(Qt.Key.Key_Shift.value, "") is None


class _RecordingPainter:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def names(self) -> List[str]:
        return [name for name, _args in self.calls]

    def __getattr__(self, name: str):
        def _record(*args, **_kwargs):
            self.calls.append((name, args))

        return _record


@pytest.mark.pyqt_required
def test_painter_adapter_skips_missing_images() -> None:
    painter = _RecordingPainter()
    adapter = QtPainterAdapter(painter, resolve_image=lambda image: None)

    adapter.draw_image(Rect(0, 0, 10, 10), "/Applications/Missing.app", opacity=1.0)
    adapter.fill_rect(Rect(0, 0, 10, 10), Color(1, 0, 0, 0.5), radius=4, stroke=None, stroke_width=1)

    assert "drawPixmap" not in painter.names()
    assert "drawPath" in painter.names()


@pytest.mark.pyqt_required
def test_painter_adapter_draws_images_at_layer_opacity(qt_app) -> None:
    pixmap = QPixmap(8, 8)
    pixmap.fill(Qt.GlobalColor.red)
    painter = _RecordingPainter()
    adapter = QtPainterAdapter(painter, resolve_image=lambda image: pixmap)

    adapter.draw_image(Rect(0, 0, 16, 16), "/Applications/Safari.app", opacity=0.5)

    assert painter.names() == ["save", "setOpacity", "drawPixmap", "restore"]
    assert painter.calls[1] == ("setOpacity", (0.5,))


@pytest.mark.pyqt_required
def test_discarded_timer_handle_still_fires(qt_app) -> None:
    host = QtHost()
    fired: List[int] = []

    host.after(20, lambda: fired.append(1))
    gc.collect()
    _pump(qt_app, 0.3)

    assert fired == [1]
    assert host._timers == set()


@pytest.mark.pyqt_required
def test_cancelled_timer_never_fires(qt_app) -> None:
    host = QtHost()
    fired: List[int] = []

    handle = host.after(20, lambda: fired.append(1))
    host.after_cancel(handle)
    del handle
    gc.collect()
    _pump(qt_app, 0.1)

    assert fired == []
    assert host._timers == set()
