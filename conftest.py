from __future__ import annotations

import os
from typing import Callable, List, Optional, Tuple

import pytest

from grid_overlay.grid_layout import Rect
from grid_overlay.overlay_session import HostServices


def pytest_runtest_setup(item):
    if item.get_closest_marker("pyqt_required"):
        if not os.getenv("PYQT_TESTS"):
            pytest.skip("PYQT_TESTS not set; skipping PyQt-dependent test")


class FakeLoop:
    """Virtual UI timeline: ``after`` timers fire only when :meth:`advance` passes them."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = 0
        self._timers: List[Tuple[float, int, str, Callable[[], None]]] = []
        self.cancelled: List[object] = []

    def time(self) -> float:
        return self.now

    def after(self, ms: int, callback: Callable[[], None]) -> str:
        self._seq += 1
        handle = f"t{self._seq}"
        self._timers.append((self.now + ms / 1000.0, self._seq, handle, callback))
        return handle

    def cancel(self, handle: object) -> None:
        self.cancelled.append(handle)
        self._timers = [timer for timer in self._timers if timer[2] != handle]

    def pending(self) -> int:
        return len(self._timers)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [timer for timer in self._timers if timer[0] <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda entry: (entry[0], entry[1]))
            self._timers.remove(timer)
            self.now = max(self.now, timer[0])
            timer[3]()
        self.now = target

    def run_all(self, limit: float = 5.0) -> None:
        self.advance(limit)


class FakeHost:
    def __init__(self, loop: FakeLoop, screen: Optional[Rect] = None) -> None:
        self.loop = loop
        self.screen = screen or Rect(0, 0, 1920, 1080)
        self.alerts: List[str] = []
        self.presented: List[object] = []
        self.dismissed: List[object] = []
        self.captures: List[Tuple[object, Callable[[str], bool]]] = []
        self.released: List[object] = []
        self.snapshots = 0
        self.restores = 0
        self.fail_present = False

    def services(self) -> HostServices:
        return HostServices(
            after=self.loop.after,
            after_cancel=self.loop.cancel,
            screen_frame=lambda: self.screen,
            alert=self.alerts.append,
            present=self._present,
            dismiss=self.dismissed.append,
            start_key_capture=self._start_capture,
            stop_key_capture=self.released.append,
            focus_snapshot=self._snapshot,
            time_source=self.loop.time,
        )

    @property
    def capturing(self) -> bool:
        return len(self.captures) > len(self.released)

    def press(self, *tokens: str) -> None:
        for token in tokens:
            _presenter, handler = self.captures[-1]
            handler(token)

    def _present(self, surface) -> object:
        if self.fail_present:
            raise RuntimeError("no window server")
        handle = f"window{len(self.presented) + 1}"
        self.presented.append(handle)
        return handle

    def _start_capture(self, presenter: object, handler: Callable[[str], bool]) -> object:
        self.captures.append((presenter, handler))
        return f"capture:{presenter}"

    def _snapshot(self) -> Callable[[], None]:
        self.snapshots += 1

        def _restore() -> None:
            self.restores += 1

        return _restore


@pytest.fixture
def loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def host(loop: FakeLoop) -> FakeHost:
    return FakeHost(loop)
