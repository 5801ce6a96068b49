"""AppWindowSwitcher: pick one of the focused application's windows from a grid."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence

from grid_overlay.grid_config import KEY_ESCAPE, KEY_LEFT, KEY_RIGHT, GridConfig
from grid_overlay.overlay_session import OverlayController, OverlayRequest, OverlaySession
from grid_plugin.errors import NoApplication, NoFocusedWindow
from grid_plugin.item_sources import WindowItemSource
from grid_plugin.preferences import Preferences

_LOGGER = logging.getLogger("SpoonGrid.WindowSwitcher")

NAME = "AppWindowSwitcher"
COLUMNS = ("A", "B", "C")
ROWS = ("A", "B", "C", "D", "E")
ACTIVATION_DELAY_SECONDS = 0.05
HEADER_HEIGHT = 64
MAX_PANEL_WIDTH = 1600


class WindowDesktop(Protocol):
    def focused_application(self): ...

    def windows_of(self, app) -> Sequence: ...

    def focus_window(self, window) -> None: ...


def window_grid_config() -> GridConfig:
    return GridConfig(
        columns=COLUMNS,
        rows=ROWS,
        traversal="column_major",
        quit_keys=("Q", KEY_ESCAPE),
        next_page_keys=("J", KEY_RIGHT),
        prev_page_keys=("K", KEY_LEFT),
    )


def sort_windows(windows: Sequence) -> List:
    return sorted(windows, key=lambda window: (getattr(window, "title", "") or "").lower())


class AppWindowSwitcher:
    def __init__(
        self,
        controller: OverlayController,
        *,
        desktop: WindowDesktop,
        alert: Callable[[str], None],
        preferences: Optional[Preferences] = None,
    ) -> None:
        self._controller = controller
        self._desktop = desktop
        self._alert = alert
        self._preferences = preferences
        self._config = window_grid_config()

    def build_request(self) -> Optional[OverlayRequest]:
        """Request for the focused app's windows, or ``None`` after a notice."""
        try:
            app = self._desktop.focused_application()
        except (NoFocusedWindow, NoApplication) as exc:
            self._alert(str(exc))
            return None
        windows = sort_windows(self._desktop.windows_of(app))
        if not windows:
            self._alert("No windows found")
            return None
        _LOGGER.debug("Switching among %d windows of %s", len(windows), app.name)
        options = self._preferences.overlay_options() if self._preferences is not None else {}
        return OverlayRequest(
            name=NAME,
            config=self._config,
            source=WindowItemSource(windows, focus=self._desktop.focus_window),
            title=app.name,
            header_icon=app.path,
            header_height=HEADER_HEIGHT,
            max_width=MAX_PANEL_WIDTH,
            activation_delay=ACTIVATION_DELAY_SECONDS,
            **options,
        )

    def show_window_chooser(self) -> Optional[OverlaySession]:
        request = self.build_request()
        if request is None:
            return None
        return self._controller.open(request)

    def bind_hotkeys(self, binder) -> None:
        binder.register_action("window_switcher.show", self.show_window_chooser)
