"""Qt presentation of the grid overlay: window, painter adapter, host services."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from PyQt6.QtCore import QFileInfo, QObject, QRectF, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QFont, QGuiApplication, QIcon, QImage, QKeyEvent, QPainter, QPainterPath, QPaintEvent, QPen, QPixmap
from PyQt6.QtWidgets import QFileIconProvider, QInputDialog, QLabel, QWidget

from grid_overlay.grid_config import KEY_ESCAPE, KEY_LEFT, KEY_RIGHT
from grid_overlay.grid_layout import Rect
from grid_overlay.overlay_session import HostServices, RestoreFocusFn
from grid_overlay.paint_commands import Color, DrawSurface, PrimitivePainterAdapter

_LOGGER = logging.getLogger("SpoonGrid.Qt")

_SPECIAL_KEYS = {
    Qt.Key.Key_Escape: KEY_ESCAPE,
    Qt.Key.Key_Left: KEY_LEFT,
    Qt.Key.Key_Right: KEY_RIGHT,
}

_ALIGNMENT = {
    "left": (Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop).value,
    "right": (Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignTop).value,
    "center": (Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignVCenter).value,
}

ALERT_SECONDS = 2.0


def key_token(key: int, text: str) -> Optional[str]:
    """Map a Qt key press to the overlay's key tokens (upper-case letters, arrows, ESCAPE)."""
    try:
        special = _SPECIAL_KEYS.get(Qt.Key(key))
    except ValueError:
        special = None
    if special is not None:
        return special
    text = (text or "").strip()
    if len(text) == 1 and text.isprintable():
        return text.upper()
    return None


def _qcolor(color: Color) -> QColor:
    red, green, blue, alpha = color.rgba()
    return QColor(red, green, blue, alpha)


def _qrect(frame: Rect) -> QRectF:
    return QRectF(frame.x, frame.y, frame.w, frame.h)


class QtPainterAdapter(PrimitivePainterAdapter):
    def __init__(self, painter: QPainter, resolve_image: Callable[[Any], Optional[QPixmap]]) -> None:
        self._painter = painter
        self._resolve_image = resolve_image

    def fill_rect(self, frame: Rect, color: Color, *, radius: float, stroke: Optional[Color], stroke_width: float) -> None:
        painter = self._painter
        if stroke is not None and stroke.alpha > 0:
            pen = QPen(_qcolor(stroke))
            pen.setWidthF(stroke_width)
            painter.setPen(pen)
        else:
            painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(_qcolor(color)))
        path = QPainterPath()
        path.addRoundedRect(_qrect(frame), radius, radius)
        painter.drawPath(path)

    def draw_text(self, frame: Rect, text: str, color: Color, *, size: float, align: str) -> None:
        painter = self._painter
        font = QFont()
        font.setPointSizeF(size)
        painter.setFont(font)
        painter.setPen(_qcolor(color))
        flags = int(_ALIGNMENT.get(align, _ALIGNMENT["left"])) | int(Qt.TextFlag.TextWordWrap.value)
        painter.drawText(_qrect(frame), flags, text)

    def draw_image(self, frame: Rect, image: Any, *, opacity: float) -> None:
        pixmap = self._resolve_image(image)
        if pixmap is None or pixmap.isNull():
            return
        target = _qrect(frame)
        scaled = pixmap.scaled(
            int(target.width()),
            int(target.height()),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        x = target.x() + (target.width() - scaled.width()) / 2
        y = target.y() + (target.height() - scaled.height()) / 2
        painter = self._painter
        painter.save()
        painter.setOpacity(max(0.0, min(1.0, opacity)))
        painter.drawPixmap(int(x), int(y), scaled)
        painter.restore()


class OverlayWindow(QWidget):
    """Frameless, translucent, top-most window painting one :class:`DrawSurface`."""

    def __init__(self, surface: DrawSurface, screen_rect: Rect) -> None:
        super().__init__()
        self._surface = surface
        self._origin = screen_rect
        self._key_handler: Optional[Callable[[str], bool]] = None
        self._pixmaps: Dict[str, QPixmap] = {}
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground, True)
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
        )
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setGeometry(int(screen_rect.x), int(screen_rect.y), int(screen_rect.w), int(screen_rect.h))
        surface.set_listener(self.update)

    def set_key_handler(self, handler: Optional[Callable[[str], bool]]) -> None:
        self._key_handler = handler

    def paintEvent(self, event: QPaintEvent) -> None:  # noqa: N802 - Qt override
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.translate(-self._origin.x, -self._origin.y)
            self._surface.paint(QtPainterAdapter(painter, self._resolve_image))
        finally:
            painter.end()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802 - Qt override
        handler = self._key_handler
        if handler is None:
            super().keyPressEvent(event)
            return
        token = key_token(event.key(), event.text())
        if token is not None:
            handler(token)
        event.accept()

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self._surface.set_listener(None)
        super().closeEvent(event)

    def _resolve_image(self, image: Any) -> Optional[QPixmap]:
        if isinstance(image, QPixmap):
            return image
        if isinstance(image, QImage):
            return QPixmap.fromImage(image)
        if isinstance(image, QIcon):
            return image.pixmap(128, 128)
        if isinstance(image, str) and image:
            pixmap = self._pixmaps.get(image)
            if pixmap is None:
                if image.endswith(".app"):
                    pixmap = QFileIconProvider().icon(QFileInfo(image)).pixmap(128, 128)
                else:
                    pixmap = QPixmap(image)
                self._pixmaps[image] = pixmap
            return pixmap
        return None


class _Dispatcher(QObject):
    invoke = pyqtSignal(object)

    def __init__(self) -> None:
        super().__init__()
        self.invoke.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def _run(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as exc:
            _LOGGER.error("Dispatched callback failed: %s", exc, exc_info=exc)


class QtHost:
    """Builds :class:`HostServices` on top of a running ``QApplication``."""

    def __init__(self, *, focus_snapshot: Optional[Callable[[], Optional[RestoreFocusFn]]] = None) -> None:
        self._focus_snapshot = focus_snapshot
        self._dispatcher = _Dispatcher()
        self._alerts: list[QLabel] = []
        self._timers: set[QTimer] = set()

    def services(self) -> HostServices:
        return HostServices(
            after=self.after,
            after_cancel=self.after_cancel,
            screen_frame=self.screen_frame,
            alert=self.alert,
            present=self.present,
            dismiss=self.dismiss,
            start_key_capture=self.start_key_capture,
            stop_key_capture=self.stop_key_capture,
            focus_snapshot=self.focus_snapshot,
            time_source=time.monotonic,
        )

    # Timers --------------------------------------------------------------

    def after(self, ms: int, callback: Callable[[], None]) -> QTimer:
        """One-shot timer; held by the host until it fires or is cancelled."""
        timer = QTimer(self._dispatcher)
        timer.setSingleShot(True)
        self._timers.add(timer)

        def _fire() -> None:
            self._timers.discard(timer)
            timer.deleteLater()
            callback()

        timer.timeout.connect(_fire)
        timer.start(max(0, int(ms)))
        return timer

    def after_cancel(self, handle: object) -> None:
        if isinstance(handle, QTimer):
            self._timers.discard(handle)
            handle.stop()
            handle.deleteLater()

    def dispatch(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the Qt thread; safe to call from listener threads."""
        self._dispatcher.invoke.emit(callback)

    # Screen / presentation ----------------------------------------------

    def screen_frame(self) -> Rect:
        screen = QGuiApplication.primaryScreen()
        if screen is None:
            raise RuntimeError("No screen available")
        geometry = screen.availableGeometry()
        return Rect(geometry.x(), geometry.y(), geometry.width(), geometry.height())

    def present(self, surface: DrawSurface) -> OverlayWindow:
        window = OverlayWindow(surface, self.screen_frame())
        window.show()
        window.raise_()
        return window

    def dismiss(self, handle: object) -> None:
        if isinstance(handle, OverlayWindow):
            handle.set_key_handler(None)
            handle.close()
            handle.deleteLater()

    def start_key_capture(self, presenter: object, handler: Callable[[str], bool]) -> object:
        if not isinstance(presenter, OverlayWindow):
            raise TypeError("Key capture needs an OverlayWindow presenter")
        presenter.set_key_handler(handler)
        presenter.activateWindow()
        presenter.setFocus(Qt.FocusReason.ActiveWindowFocusReason)
        presenter.grabKeyboard()
        return presenter

    def stop_key_capture(self, handle: object) -> None:
        if isinstance(handle, OverlayWindow):
            handle.releaseKeyboard()
            handle.set_key_handler(None)

    def focus_snapshot(self) -> Optional[RestoreFocusFn]:
        if self._focus_snapshot is None:
            return None
        return self._focus_snapshot()

    # Notices / prompts ---------------------------------------------------

    def alert(self, message: str, seconds: float = ALERT_SECONDS) -> None:
        _LOGGER.info("%s", message)
        label = QLabel(message)
        label.setWindowFlags(
            Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint | Qt.WindowType.ToolTip
        )
        label.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating, True)
        label.setStyleSheet(
            "color: white; background: rgba(20, 20, 20, 220); border-radius: 12px; padding: 14px 22px; font-size: 20px;"
        )
        label.adjustSize()
        frame = self.screen_frame()
        label.move(int(frame.x + (frame.w - label.width()) / 2), int(frame.y + frame.h * 0.75))
        label.show()
        self._alerts.append(label)

        def _expire() -> None:
            if label in self._alerts:
                self._alerts.remove(label)
            label.close()
            label.deleteLater()

        self.after(int(seconds * 1000), _expire)

    def prompt_text(self, title: str, message: str, *, multiline: bool = False, ok_label: str = "OK") -> Optional[str]:
        """Modal text prompt; returns ``None`` when cancelled."""
        dialog = QInputDialog()
        dialog.setWindowTitle(title)
        dialog.setLabelText(message)
        dialog.setOkButtonText(ok_label)
        dialog.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, True)
        if multiline:
            dialog.setOption(QInputDialog.InputDialogOption.UsePlainTextEditForTextInput, True)
        dialog.activateWindow()
        if not dialog.exec():
            return None
        return dialog.textValue()
