"""AppLauncherSwitcher: launch or switch to Dock and running applications."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from grid_overlay.grid_config import KEY_ESCAPE, KEY_LEFT, KEY_RIGHT, GridConfig, letter_keys
from grid_overlay.overlay_session import OverlayController, OverlayRequest, OverlaySession
from grid_plugin.dock_apps import AppEntry, merge_apps, read_dock_apps
from grid_plugin.item_sources import AppItemSource
from grid_plugin.preferences import Preferences

_LOGGER = logging.getLogger("SpoonGrid.Launcher")

NAME = "AppLauncherSwitcher"
DEFAULT_AXIS = 10
SCREEN_FRACTION = 0.8


class AppDesktop(Protocol):
    def running_apps(self) -> List[AppEntry]: ...

    def launch_or_activate(self, app: AppEntry) -> None: ...


def launcher_grid_config(columns: int = DEFAULT_AXIS, rows: int = DEFAULT_AXIS) -> GridConfig:
    return GridConfig(
        columns=letter_keys(columns),
        rows=letter_keys(rows),
        traversal="row_major",
        quit_keys=("Q", KEY_ESCAPE),
        next_page_keys=(KEY_RIGHT,),
        prev_page_keys=(KEY_LEFT,),
    )


class AppLauncherSwitcher:
    def __init__(
        self,
        controller: OverlayController,
        *,
        desktop: AppDesktop,
        alert: Callable[[str], None],
        dock_apps: Callable[[], List[AppEntry]] = read_dock_apps,
        preferences: Optional[Preferences] = None,
    ) -> None:
        self._controller = controller
        self._desktop = desktop
        self._alert = alert
        self._dock_apps = dock_apps
        self._preferences = preferences
        if preferences is not None:
            self._config = launcher_grid_config(preferences.launcher_columns, preferences.launcher_rows)
        else:
            self._config = launcher_grid_config()

    def collect_apps(self) -> List[AppEntry]:
        try:
            dock = self._dock_apps()
        except Exception as exc:
            _LOGGER.warning("Reading Dock apps failed: %s", exc)
            dock = []
        try:
            running = self._desktop.running_apps()
        except Exception as exc:
            _LOGGER.warning("Listing running apps failed: %s", exc)
            running = []
        return merge_apps(dock, running)

    def build_request(self) -> Optional[OverlayRequest]:
        apps = self.collect_apps()
        if not apps:
            self._alert(f"{NAME}: No applications found")
            return None
        options = self._preferences.overlay_options(include_size=False) if self._preferences is not None else {}
        return OverlayRequest(
            name=NAME,
            config=self._config,
            source=AppItemSource(apps, launch=self._desktop.launch_or_activate),
            show_icons=True,
            width_fraction=SCREEN_FRACTION,
            height_fraction=SCREEN_FRACTION,
            max_width=None,
            **options,
        )

    def show_grid(self) -> Optional[OverlaySession]:
        request = self.build_request()
        if request is None:
            return None
        return self._controller.open(request)

    def bind_hotkeys(self, binder) -> None:
        binder.register_action("launcher.show", self.show_grid)
