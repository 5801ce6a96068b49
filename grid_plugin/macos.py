"""macOS desktop integration: focus, windows, applications and paste injection.

Imported only on darwin; everything here talks to AppKit / the accessibility API
through pyobjc, and synthesises keystrokes with pynput.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from AppKit import (
    NSApplicationActivateIgnoringOtherApps,
    NSApplicationActivationPolicyRegular,
    NSPasteboard,
    NSPasteboardTypeString,
    NSRunningApplication,
    NSURL,
    NSWorkspace,
)
from ApplicationServices import (
    AXUIElementCopyAttributeValue,
    AXUIElementCreateApplication,
    AXUIElementPerformAction,
    AXUIElementSetAttributeValue,
    kAXErrorSuccess,
    kAXFocusedWindowAttribute,
    kAXMainAttribute,
    kAXRaiseAction,
    kAXTitleAttribute,
    kAXWindowsAttribute,
)
from pynput.keyboard import Controller, Key

from grid_plugin.dock_apps import AppEntry, is_background_app
from grid_plugin.errors import NoApplication, NoFocusedWindow

_LOGGER = logging.getLogger("SpoonGrid.MacOS")

PASTE_DELAY_SECONDS = 0.08

AfterFn = Callable[[int, Callable[[], None]], object]


@dataclass(frozen=True)
class FocusedApp:
    name: str
    pid: int
    bundle_id: Optional[str]
    path: Optional[str]


@dataclass(frozen=True)
class WindowRef:
    title: str
    pid: int
    element: Any


def _ax_get(element: Any, attribute: str) -> Any:
    err, value = AXUIElementCopyAttributeValue(element, attribute, None)
    if err != kAXErrorSuccess:
        return None
    return value


def _bundle_path(app: Any) -> Optional[str]:
    url = app.bundleURL()
    return str(url.path()) if url is not None else None


class MacDesktop:
    """Thin facade over NSWorkspace, the AX API and the pasteboard."""

    def __init__(self, keyboard: Optional[Controller] = None) -> None:
        self._keyboard = keyboard or Controller()

    # Focus ---------------------------------------------------------------

    def focus_snapshot(self) -> Optional[Callable[[], None]]:
        """Capture the frontmost app and window; returns a callable that restores them."""
        app = NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            return None
        window = _ax_get(AXUIElementCreateApplication(app.processIdentifier()), kAXFocusedWindowAttribute)

        def _restore() -> None:
            app.activateWithOptions_(NSApplicationActivateIgnoringOtherApps)
            if window is not None:
                AXUIElementSetAttributeValue(window, kAXMainAttribute, True)
                AXUIElementPerformAction(window, kAXRaiseAction)

        return _restore

    def focused_application(self) -> FocusedApp:
        """Application owning the focused window.

        Raises :class:`NoFocusedWindow` or :class:`NoApplication`.
        """
        app = NSWorkspace.sharedWorkspace().frontmostApplication()
        if app is None:
            raise NoFocusedWindow("No focused window")
        pid = int(app.processIdentifier())
        if _ax_get(AXUIElementCreateApplication(pid), kAXFocusedWindowAttribute) is None:
            raise NoFocusedWindow("No focused window")
        name = app.localizedName()
        if not name:
            raise NoApplication("Could not get application")
        bundle_id = app.bundleIdentifier()
        return FocusedApp(
            name=str(name),
            pid=pid,
            bundle_id=str(bundle_id) if bundle_id else None,
            path=_bundle_path(app),
        )

    # Windows -------------------------------------------------------------

    def windows_of(self, app: FocusedApp) -> List[WindowRef]:
        windows = _ax_get(AXUIElementCreateApplication(app.pid), kAXWindowsAttribute) or []
        refs: List[WindowRef] = []
        for element in windows:
            title = _ax_get(element, kAXTitleAttribute)
            refs.append(WindowRef(title=str(title or ""), pid=app.pid, element=element))
        return refs

    def focus_window(self, window: WindowRef) -> None:
        running = NSRunningApplication.runningApplicationWithProcessIdentifier_(window.pid)
        if running is not None:
            running.activateWithOptions_(NSApplicationActivateIgnoringOtherApps)
        AXUIElementSetAttributeValue(window.element, kAXMainAttribute, True)
        AXUIElementPerformAction(window.element, kAXRaiseAction)

    # Applications --------------------------------------------------------

    def running_apps(self) -> List[AppEntry]:
        apps: List[AppEntry] = []
        for app in NSWorkspace.sharedWorkspace().runningApplications():
            if app.activationPolicy() != NSApplicationActivationPolicyRegular:
                continue
            name = app.localizedName()
            bundle_id = app.bundleIdentifier()
            if is_background_app(name, bundle_id):
                continue
            apps.append(AppEntry(name=str(name), bundle_id=str(bundle_id), path=_bundle_path(app), running=True))
        return apps

    def launch_or_activate(self, app: AppEntry) -> None:
        workspace = NSWorkspace.sharedWorkspace()
        if app.bundle_id:
            running = NSRunningApplication.runningApplicationsWithBundleIdentifier_(app.bundle_id)
            if len(running) > 0:
                running[0].activateWithOptions_(NSApplicationActivateIgnoringOtherApps)
                return
            url = workspace.URLForApplicationWithBundleIdentifier_(app.bundle_id)
            if url is not None:
                workspace.openURL_(url)
                return
        if app.path:
            workspace.openURL_(NSURL.fileURLWithPath_(app.path))
            return
        raise NoApplication(f"Cannot launch {app.name}")

    # Paste ---------------------------------------------------------------

    def paste_text(self, text: str, *, after: AfterFn) -> None:
        """Put ``text`` on the pasteboard, then send Cmd+V once focus has settled."""
        board = NSPasteboard.generalPasteboard()
        board.clearContents()
        board.setString_forType_(text, NSPasteboardTypeString)
        after(int(PASTE_DELAY_SECONDS * 1000), self._send_paste)

    def _send_paste(self) -> None:
        keyboard = self._keyboard
        with keyboard.pressed(Key.cmd):
            keyboard.press("v")
            keyboard.release("v")
        _LOGGER.debug("Sent Cmd+V")
