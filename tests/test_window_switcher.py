from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from grid_overlay.overlay_session import OverlayController
from grid_plugin.errors import NoApplication, NoFocusedWindow
from grid_plugin.window_switcher import ACTIVATION_DELAY_SECONDS, AppWindowSwitcher, sort_windows, window_grid_config


@dataclass(frozen=True)
class App:
    name: str
    path: Optional[str] = None


@dataclass(frozen=True)
class Window:
    title: str


class FakeDesktop:
    def __init__(self, windows: List[Window], *, error: Optional[Exception] = None) -> None:
        self.windows = windows
        self.error = error
        self.focused: List[Window] = []

    def focused_application(self) -> App:
        if self.error is not None:
            raise self.error
        return App("Terminal", "/System/Applications/Utilities/Terminal.app")

    def windows_of(self, app: App) -> List[Window]:
        return list(self.windows)

    def focus_window(self, window: Window) -> None:
        self.focused.append(window)


def make_switcher(host, desktop: FakeDesktop) -> AppWindowSwitcher:
    return AppWindowSwitcher(OverlayController(host.services()), desktop=desktop, alert=host.alerts.append)


def test_sort_windows_is_case_insensitive() -> None:
    windows = [Window("zsh"), Window("Build"), Window("alpha")]

    assert [window.title for window in sort_windows(windows)] == ["alpha", "Build", "zsh"]


def test_windows_fill_columns_first() -> None:
    config = window_grid_config()

    assert config.traversal == "column_major"
    assert not config.delete_enabled
    assert config.items_per_page == 15


def test_choosing_window_focuses_it_after_delay(host, loop) -> None:
    desktop = FakeDesktop([Window("zsh"), Window("Build"), Window("alpha")])
    switcher = make_switcher(host, desktop)

    session = switcher.show_window_chooser()
    assert session is not None
    assert session.surface.get("header_title").text == "Terminal"
    assert session.surface.get("title_1_0").text == "Build"

    host.press("A", "B")
    assert desktop.focused == []
    loop.advance(ACTIVATION_DELAY_SECONDS)
    assert desktop.focused == [Window("Build")]
    assert host.restores == 1


def test_no_focused_window_or_app_is_reported(host) -> None:
    for error in (NoFocusedWindow("No focused window"), NoApplication("Could not get application")):
        switcher = make_switcher(host, FakeDesktop([], error=error))
        assert switcher.show_window_chooser() is None

    assert host.alerts == ["No focused window", "Could not get application"]
    assert host.presented == []


def test_app_without_windows_is_reported(host) -> None:
    switcher = make_switcher(host, FakeDesktop([]))

    assert switcher.show_window_chooser() is None
    assert host.alerts == ["No windows found"]
