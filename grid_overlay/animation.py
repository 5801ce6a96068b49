from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from grid_overlay.paint_commands import Color, DrawSurface, RectPrimitive

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]
LoggerFn = Callable[..., None]
Step = Tuple[float, Callable[[], None]]

OPEN_FADE_SECONDS = 0.10
CLOSE_TEARDOWN_BUFFER = 0.02
PAGE_FADE_SECONDS = 0.08
PAGE_FADE_BUFFER = 0.01
FLASH_STEPS = (0.01, 0.12, 0.22)


def _noop_log(message: str, *args: object) -> None:
    return None


@dataclass
class _Entry:
    fire_at: float
    seq: int
    key: str
    apply: Callable[[], None]


class AnimationScheduler:
    """Deferred one-shot visual steps on the UI timeline.

    Steps live in an explicit pending list of ``(fire_at, key, apply)`` entries.
    One host timer is armed for the earliest entry; :meth:`tick` applies every
    due entry in order.  Scheduling a sequence for a key drops whatever was
    still pending for that key, and ``guard`` is consulted before each step so
    nothing mutates a surface that has been torn down.
    """

    def __init__(
        self,
        *,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        time_source: Callable[[], float] = time.monotonic,
        guard: Optional[Callable[[], bool]] = None,
        logger: Optional[LoggerFn] = None,
    ) -> None:
        self._after = after
        self._after_cancel = after_cancel
        self._time = time_source
        self._guard = guard
        self._logger = logger or _noop_log
        self._pending: List[_Entry] = []
        self._seq = 0
        self._handle: object | None = None
        self._armed_at: Optional[float] = None

    # Scheduling ----------------------------------------------------------

    def run_sequence(self, key: str, steps: Iterable[Step]) -> None:
        """Replace any pending steps for ``key`` with ``steps`` (delays in seconds).

        Steps with a non-positive delay are applied immediately.
        """
        self.cancel(key, rearm=False)
        now = self._time()
        immediate: List[Callable[[], None]] = []
        for delay, apply in steps:
            if delay <= 0:
                immediate.append(apply)
                continue
            self._seq += 1
            self._pending.append(_Entry(now + delay, self._seq, key, apply))
        self._pending.sort(key=lambda entry: (entry.fire_at, entry.seq))
        for apply in immediate:
            self._apply(key, apply)
        self._arm()

    def cancel(self, key: str, *, rearm: bool = True) -> None:
        before = len(self._pending)
        self._pending = [entry for entry in self._pending if entry.key != key]
        if rearm and len(self._pending) != before:
            self._arm()

    def cancel_all(self) -> None:
        self._pending.clear()
        self._disarm()

    def pending(self, key: Optional[str] = None) -> List[Tuple[float, str]]:
        return [(entry.fire_at, entry.key) for entry in self._pending if key is None or entry.key == key]

    def has_pending(self) -> bool:
        return bool(self._pending)

    # Execution -----------------------------------------------------------

    def tick(self) -> int:
        """Apply all entries due at the current time; returns how many ran."""
        now = self._time()
        applied = 0
        while self._pending and self._pending[0].fire_at <= now + 1e-9:
            entry = self._pending.pop(0)
            self._apply(entry.key, entry.apply)
            applied += 1
        self._arm()
        return applied

    def _apply(self, key: str, apply: Callable[[], None]) -> None:
        if self._guard is not None and not self._guard():
            self._log("Dropping stale animation step for %s", key)
            return
        try:
            apply()
        except Exception as exc:
            self._log("Animation step for %s failed: %s", key, exc)

    def _on_timer(self) -> None:
        self._handle = None
        self._armed_at = None
        self.tick()

    def _arm(self) -> None:
        if not self._pending:
            self._disarm()
            return
        due = self._pending[0].fire_at
        if self._handle is not None and self._armed_at is not None and self._armed_at <= due:
            return
        self._disarm()
        delay_ms = max(0, math.ceil((due - self._time()) * 1000 - 1e-6))
        self._armed_at = due
        self._handle = self._after(delay_ms, self._on_timer)

    def _disarm(self) -> None:
        handle = self._handle
        self._handle = None
        self._armed_at = None
        if handle is not None:
            try:
                self._after_cancel(handle)
            except Exception:
                pass

    def _log(self, message: str, *args: object) -> None:
        try:
            self._logger(message, *args)
        except Exception:
            pass


def layer_key(layer: str) -> str:
    return f"layer:{layer}"


def fade_steps(
    surface: DrawSurface,
    layer: str,
    start: float,
    end: float,
    duration: float,
    *,
    offset: float = 0.0,
    frames: int = 4,
) -> List[Step]:
    frames = max(1, frames)
    steps: List[Step] = [(offset, lambda: surface.set_layer_alpha(layer, start))]
    for idx in range(1, frames + 1):
        value = start + (end - start) * idx / frames
        steps.append((offset + duration * idx / frames, lambda value=value: surface.set_layer_alpha(layer, value)))
    return steps


def fade_layers(
    scheduler: AnimationScheduler,
    surface: DrawSurface,
    layers: Sequence[str],
    *,
    start: float,
    end: float,
    duration: float = OPEN_FADE_SECONDS,
) -> None:
    for layer in layers:
        scheduler.run_sequence(layer_key(layer), fade_steps(surface, layer, start, end, duration))


def fade_out_and_teardown(
    scheduler: AnimationScheduler,
    surface: DrawSurface,
    layers: Sequence[str],
    teardown: Callable[[], None],
    *,
    duration: float = OPEN_FADE_SECONDS,
) -> None:
    for layer in layers:
        current = surface.layer_alpha(layer)
        scheduler.run_sequence(layer_key(layer), fade_steps(surface, layer, current, 0.0, duration))
    scheduler.run_sequence("teardown", [(duration + CLOSE_TEARDOWN_BUFFER, teardown)])


def crossfade(
    scheduler: AnimationScheduler,
    surface: DrawSurface,
    layers: Sequence[str],
    refresh: Callable[[], None],
    *,
    duration: float = PAGE_FADE_SECONDS,
    buffer: float = PAGE_FADE_BUFFER,
    target: float = 1.0,
) -> None:
    """Hide ``layers``, run ``refresh`` once hidden, then show them again."""
    swap_at = duration + buffer
    scheduler.run_sequence("page", [(swap_at, refresh)])
    for layer in layers:
        current = surface.layer_alpha(layer)
        steps = fade_steps(surface, layer, current, 0.0, duration)
        steps += fade_steps(surface, layer, 0.0, target, duration, offset=swap_at)[1:]
        scheduler.run_sequence(layer_key(layer), steps)


def pulse_flash(
    scheduler: AnimationScheduler,
    surface: DrawSurface,
    primitive: RectPrimitive,
    color: Color,
) -> None:
    """Transparent → ``color`` → transparent → removed, on ``primitive.key``."""
    key = primitive.key
    clear = color.with_alpha(0.0)

    def _add() -> None:
        surface.apply_diff(key, primitive)
        surface.apply_diff(key, {"fill": clear})

    rise, fall, remove = FLASH_STEPS
    scheduler.run_sequence(
        key,
        [
            (0.0, _add),
            (rise, lambda: surface.apply_diff(key, {"fill": color})),
            (fall, lambda: surface.apply_diff(key, {"fill": clear})),
            (remove, lambda: surface.apply_diff(key, None)),
        ],
    )
