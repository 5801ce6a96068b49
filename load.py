"""Primary entry point for the SpoonGrid plugin."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from version import __version__ as SPOON_GRID_VERSION
from grid_overlay.logging_utils import build_rotating_file_handler, resolve_logs_dir
from grid_plugin.hotkeys import HotkeyBinder, HotkeyConfig
from grid_plugin.item_store import ItemStore
from grid_plugin.preferences import Preferences

PLUGIN_NAME = "SpoonGrid"
PLUGIN_VERSION = SPOON_GRID_VERSION
LOGGER_NAME = "SpoonGrid"
LOG_TAG = "SpoonGrid"
LOG_FILENAME = "spoongrid.log"
PROPAGATE_ENV = "SPOON_GRID_PROPAGATE_LOGS"


def _propagate_requested() -> bool:
    return os.environ.get(PROPAGATE_ENV, "").strip().lower() in {"1", "true", "yes", "on"}


def _configure_logger(
    log_dir: Optional[Path] = None,
    *,
    retention: int = 5,
    debug: bool = False,
) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if log_dir is not None and not any(getattr(handler, "_spoongrid_handler", False) for handler in logger.handlers):
        formatter = logging.Formatter(f"[%(asctime)s] [{LOG_TAG}] %(message)s", "%H:%M:%S")
        try:
            handler = build_rotating_file_handler(log_dir, LOG_FILENAME, retention=retention, formatter=formatter)
        except OSError as exc:
            logger.warning("Could not open log file in %s: %s", log_dir, exc)
        else:
            handler._spoongrid_handler = True  # type: ignore[attr-defined]
            logger.addHandler(handler)
    logger.propagate = _propagate_requested()
    return logger


LOGGER = _configure_logger()


def _log(message: str) -> None:
    LOGGER.info(message)


class _PluginRuntime:
    """Owns the Qt host, the overlay controller, the spoons and the hotkey listener."""

    def __init__(self, plugin_dir: str, preferences: Preferences) -> None:
        self.plugin_dir = Path(plugin_dir)
        self._preferences = preferences
        self._running = False
        self._app: Any = None
        self.host: Any = None
        self.controller: Any = None
        self.binder: Optional[HotkeyBinder] = None
        self.spoons: List[Any] = []

    # Lifecycle ------------------------------------------------------------

    def start(self) -> str:
        if self._running:
            return PLUGIN_NAME
        if sys.platform != "darwin":
            LOGGER.error("SpoonGrid drives macOS applications; plugin remains inactive on %s", sys.platform)
            return PLUGIN_NAME

        from PyQt6.QtWidgets import QApplication

        from grid_overlay.overlay_session import OverlayController
        from grid_overlay.qt_host import QtHost
        from grid_plugin.app_launcher import AppLauncherSwitcher
        from grid_plugin.macos import MacDesktop
        from grid_plugin.paste_library import PasteLibrary
        from grid_plugin.window_switcher import AppWindowSwitcher

        app = QApplication.instance()
        if app is None:
            app = QApplication(sys.argv[:1])
        app.setQuitOnLastWindowClosed(False)
        self._app = app

        prefs = self._preferences
        desktop = MacDesktop()
        host = QtHost(focus_snapshot=desktop.focus_snapshot)
        self.host = host
        services = host.services()
        self.controller = OverlayController(services)
        paste_library = PasteLibrary(
            self.controller,
            store=ItemStore(prefs.storage_path),
            paste=lambda text: desktop.paste_text(text, after=host.after),
            prompt=host.prompt_text,
            alert=host.alert,
            preferences=prefs,
        ).start()
        switcher = AppWindowSwitcher(self.controller, desktop=desktop, alert=host.alert, preferences=prefs)
        launcher = AppLauncherSwitcher(self.controller, desktop=desktop, alert=host.alert, preferences=prefs)
        self.spoons = [paste_library, switcher, launcher]

        self.binder = HotkeyBinder(HotkeyConfig.from_mapping(prefs.hotkeys), dispatch=host.dispatch)
        for spoon in self.spoons:
            spoon.bind_hotkeys(self.binder)
        self.binder.start()
        self._running = True
        _log(f"Plugin started (version {PLUGIN_VERSION})")
        return PLUGIN_NAME

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        _log("Plugin stopping")
        if self.binder is not None:
            self.binder.stop()
            self.binder = None
        if self.controller is not None:
            self.controller.close(animate=False)
            self.controller = None
        self.spoons = []

    def exec(self) -> int:
        if self._app is None:
            return 1
        return int(self._app.exec())


# Host hook functions -------------------------------------------------------

_plugin: Optional[_PluginRuntime] = None
_preferences: Optional[Preferences] = None


def plugin_start(plugin_dir: str) -> str:
    global _plugin, _preferences
    if _plugin is not None:
        return PLUGIN_NAME
    _preferences = Preferences()
    _configure_logger(
        resolve_logs_dir(),
        retention=_preferences.log_retention,
        debug=_preferences.debug_logging,
    )
    _log(f"Initialising SpoonGrid plugin from {plugin_dir}")
    _plugin = _PluginRuntime(plugin_dir, _preferences)
    return _plugin.start()


def plugin_stop() -> None:
    global _plugin, _preferences
    if _plugin:
        try:
            _plugin.stop()
        finally:
            _plugin = None
    _preferences = None


def main() -> int:  # pragma: no cover - interactive entry point
    plugin_start(str(Path(__file__).resolve().parent))
    runtime = _plugin
    try:
        return runtime.exec() if runtime is not None else 1
    finally:
        plugin_stop()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
