"""Overlay session lifecycle: one active chorded grid at a time."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from grid_overlay.animation import (
    AfterCancelFn,
    AfterFn,
    AnimationScheduler,
    crossfade,
    fade_layers,
    fade_out_and_teardown,
    pulse_flash,
)
from grid_overlay.grid_config import Cell, GridConfig
from grid_overlay.grid_layout import Rect, compute_grid_layout
from grid_overlay.items import GridItem, ItemSource
from grid_overlay.paint_commands import DrawSurface
from grid_overlay.render_state import (
    LAYER_FOOTER,
    LAYER_GRID,
    LAYERS,
    GridRenderState,
    GridStyle,
    Palette,
)
from grid_overlay.selection_state import (
    CloseRequested,
    ColumnSelected,
    DeleteModeToggled,
    DeleteRequested,
    EmptyCellActivated,
    ItemActivated,
    PageChanged,
    ReservedActivated,
    SelectionStateMachine,
)

_LOGGER = logging.getLogger("SpoonGrid.Overlay")

RestoreFocusFn = Callable[[], None]


@dataclass
class HostServices:
    """Host capabilities the overlay needs; Qt and test harnesses provide them."""

    after: AfterFn
    after_cancel: AfterCancelFn
    screen_frame: Callable[[], Rect]
    alert: Callable[[str], None]
    present: Callable[[DrawSurface], object]
    dismiss: Callable[[object], None]
    start_key_capture: Callable[[object, Callable[[str], bool]], object]
    stop_key_capture: Callable[[object], None]
    focus_snapshot: Callable[[], Optional[RestoreFocusFn]] = lambda: None
    time_source: Callable[[], float] = time.monotonic


@dataclass
class OverlayRequest:
    name: str
    config: GridConfig
    source: ItemSource
    title: Optional[str] = None
    header_icon: Any = None
    reserved_label: str = ""
    on_reserved: Optional[Callable[[], None]] = None
    show_icons: bool = False
    width_fraction: float = 2 / 3
    height_fraction: float = 0.60
    max_width: Optional[float] = 1600
    header_height: float = 0
    footer_height: float = 40
    footer_gap: float = 8
    open_fade: float = 0.10
    page_fade: float = 0.08
    activation_delay: float = 0.0
    reserved_delay: float = 0.02
    empty_notice: Optional[Callable[[str], str]] = None
    palette: Optional[Palette] = None
    style: Optional[GridStyle] = None


class OverlaySession:
    """Owns selection state, render state, surface, and key capture for one overlay."""

    def __init__(
        self,
        request: OverlayRequest,
        host: HostServices,
        *,
        restore_focus: Optional[RestoreFocusFn] = None,
        on_closed: Optional[Callable[["OverlaySession"], None]] = None,
    ) -> None:
        self.request = request
        self._host = host
        self._restore_focus = restore_focus
        self._on_closed = on_closed
        self.status = "new"
        self.surface = DrawSurface({layer: 0.0 for layer in LAYERS})
        self.scheduler = AnimationScheduler(
            after=host.after,
            after_cancel=host.after_cancel,
            time_source=host.time_source,
            guard=lambda: self.status in ("open", "closing"),
            logger=_LOGGER.debug,
        )
        self.machine = SelectionStateMachine(request.config, request.source.count)
        self.render: Optional[GridRenderState] = None
        self._presenter: object | None = None
        self._capture: object | None = None

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    @property
    def restore_focus(self) -> Optional[RestoreFocusFn]:
        return self._restore_focus

    # Lifecycle -----------------------------------------------------------

    def open(self) -> None:
        request = self.request
        try:
            layout = compute_grid_layout(
                self._host.screen_frame(),
                rows=request.config.row_count,
                columns=request.config.column_count,
                width_fraction=request.width_fraction,
                height_fraction=request.height_fraction,
                max_width=request.max_width,
                header_height=request.header_height,
                footer_height=request.footer_height,
                footer_gap=request.footer_gap,
            )
            self.render = GridRenderState(
                request.config,
                layout,
                palette=request.palette,
                style=request.style,
                title=request.title,
                header_icon=request.header_icon,
                reserved_label=request.reserved_label,
                show_icons=request.show_icons,
            )
            self.render.build(self.surface, self.machine.mapping, self.machine.state, self._item_at)
            self._presenter = self._host.present(self.surface)
            self.status = "open"
            fade_layers(self.scheduler, self.surface, LAYERS, start=0.0, end=1.0, duration=request.open_fade)
            self._capture = self._host.start_key_capture(self._presenter, self.handle_key)
        except Exception:
            self._teardown()
            raise
        _LOGGER.debug(
            "Opened %s overlay: items=%d pages=%d",
            request.name,
            request.source.count(),
            self.machine.state.total_pages,
        )

    def close(self, *, animate: bool = True) -> None:
        if self.status not in ("open", "new"):
            if not animate and self.status == "closing":
                self._teardown()
            return
        self._release_keys()
        self.scheduler.cancel_all()
        if not animate or self.status == "new":
            self._teardown()
            return
        self.status = "closing"
        fade_out_and_teardown(self.scheduler, self.surface, LAYERS, self._teardown, duration=self.request.open_fade)

    def _release_keys(self) -> None:
        capture = self._capture
        self._capture = None
        if capture is not None:
            try:
                self._host.stop_key_capture(capture)
            except Exception as exc:
                _LOGGER.warning("Failed to release key capture for %s: %s", self.request.name, exc)

    def _teardown(self) -> None:
        if self.status == "closed":
            return
        self._release_keys()
        self.status = "closed"
        self.scheduler.cancel_all()
        self.surface.clear()
        presenter = self._presenter
        self._presenter = None
        if presenter is not None:
            try:
                self._host.dismiss(presenter)
            except Exception as exc:
                _LOGGER.warning("Failed to dismiss %s overlay: %s", self.request.name, exc)
        if self._on_closed is not None:
            self._on_closed(self)

    # Input ---------------------------------------------------------------

    def handle_key(self, token: str) -> bool:
        """Route one key token; always consumes it while the overlay is open."""
        if not self.is_open or self.render is None:
            return True
        outcome = self.machine.handle_key(token)
        render = self.render
        state = self.machine.state

        if isinstance(outcome, CloseRequested):
            self.close()
            self._restore()
        elif isinstance(outcome, DeleteModeToggled):
            render.apply_column_visuals(self.surface, None)
            render.set_delete_overlay(self.surface, outcome.delete_mode)
            render.apply_footer(self.surface, state)
        elif isinstance(outcome, PageChanged):
            render.apply_column_visuals(self.surface, None)
            crossfade(
                self.scheduler,
                self.surface,
                (LAYER_GRID, LAYER_FOOTER),
                self._refresh_page,
                duration=self.request.page_fade,
            )
        elif isinstance(outcome, ColumnSelected):
            render.apply_column_visuals(self.surface, outcome.column)
        elif isinstance(outcome, DeleteRequested):
            self._delete(outcome.cell, outcome.index)
        elif isinstance(outcome, ItemActivated):
            self._activate_item(outcome.cell, outcome.index)
        elif isinstance(outcome, ReservedActivated):
            self.close()
            self._restore()
            if self.request.on_reserved is not None:
                self._defer(self.request.reserved_delay, self.request.on_reserved)
        elif isinstance(outcome, EmptyCellActivated):
            self.close()
            self._restore()
            self._host.alert(self._empty_notice(outcome.cell))
        return True

    def _refresh_page(self) -> None:
        render = self.render
        if render is None or not self.is_open:
            return
        state = self.machine.state
        render.refresh_page_contents(self.surface, self.machine.mapping, self._item_at)
        render.apply_column_visuals(self.surface, state.selected_column)
        render.apply_footer(self.surface, state)
        render.set_delete_overlay(self.surface, state.delete_mode)

    def _delete(self, cell: Cell, index: int) -> None:
        render = self.render
        assert render is not None
        pulse_flash(self.scheduler, self.surface, render.flash_primitive(cell), render.palette.delete_flash)
        try:
            self.request.source.delete(index)
        except Exception as exc:
            _LOGGER.warning("Deleting item %d from %s failed: %s", index, self.request.name, exc)
            self._host.alert(f"{self.request.name}: could not delete item ({exc})")
        self.machine.items_changed()
        self._refresh_page()

    def _activate_item(self, cell: Cell, index: int) -> None:
        try:
            item = self.request.source.item_at(index)
        except IndexError:
            item = None
        self.close()
        self._restore()
        if item is None:
            self._host.alert(self._empty_notice(cell))
            return
        self._defer(self.request.activation_delay, lambda: self._deliver(item))

    def _deliver(self, item: GridItem) -> None:
        try:
            self.request.source.activate(item)
        except Exception as exc:
            _LOGGER.warning("Activating %r from %s failed: %s", item.label, self.request.name, exc)
            self._host.alert(f"{self.request.name}: {exc}")

    # Helpers -------------------------------------------------------------

    def _item_at(self, index: int) -> GridItem:
        return self.request.source.item_at(index)

    def _restore(self) -> None:
        restore = self._restore_focus
        if restore is None:
            return
        try:
            restore()
        except Exception as exc:
            _LOGGER.debug("Focus restore failed: %s", exc)

    def _defer(self, delay: float, callback: Callable[[], None]) -> None:
        if delay <= 0:
            callback()
            return
        self._host.after(int(round(delay * 1000)), callback)

    def _empty_notice(self, cell: Cell) -> str:
        name = self.request.config.cell_name(cell)
        if self.request.empty_notice is not None:
            return self.request.empty_notice(name)
        return f"{self.request.name}: No item in {name}"


class OverlayController:
    """Keeps at most one overlay session alive and replaces it on reopen."""

    def __init__(self, host: HostServices) -> None:
        self._host = host
        self._active: Optional[OverlaySession] = None

    @property
    def active(self) -> Optional[OverlaySession]:
        return self._active

    def open(self, request: OverlayRequest) -> Optional[OverlaySession]:
        previous = self._active
        restore: Optional[RestoreFocusFn] = None
        if previous is not None and previous.status in ("open", "closing"):
            # a closing session has already handed focus back
            if previous.status == "open":
                restore = previous.restore_focus
            previous.close(animate=False)
        if restore is None:
            try:
                restore = self._host.focus_snapshot()
            except Exception as exc:
                _LOGGER.debug("Focus snapshot failed: %s", exc)
                restore = None

        session = OverlaySession(request, self._host, restore_focus=restore, on_closed=self._session_closed)
        self._active = session
        try:
            session.open()
        except Exception as exc:
            _LOGGER.error("Could not open %s overlay: %s", request.name, exc, exc_info=exc)
            self._active = None
            self._host.alert(f"{request.name}: could not open overlay")
            return None
        return session

    def close(self, *, animate: bool = True) -> None:
        session = self._active
        if session is not None:
            session.close(animate=animate)

    def _session_closed(self, session: OverlaySession) -> None:
        if self._active is session:
            self._active = None
