"""Global hotkey configuration and binding."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

_LOGGER = logging.getLogger("SpoonGrid.Hotkeys")

DEFAULT_HOTKEYS: Dict[str, str] = {
    "paste_library.show": "<cmd>+<alt>+v",
    "paste_library.add": "<cmd>+<alt>+<shift>+v",
    "window_switcher.show": "<cmd>+<alt>+w",
    "launcher.show": "<cmd>+<alt>+space",
}

Dispatch = Callable[[Callable[[], None]], None]


def _global_hotkeys(mapping: Dict[str, Callable[[], None]]) -> Any:
    from pynput import keyboard

    return keyboard.GlobalHotKeys(mapping)


@dataclass
class HotkeyConfig:
    """Action identifier -> key combination (pynput ``GlobalHotKeys`` syntax)."""

    bindings: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HOTKEYS))

    @classmethod
    def from_mapping(cls, overrides: Optional[Mapping[str, Any]] = None) -> "HotkeyConfig":
        """Defaults overlaid with ``overrides``; unknown actions are ignored.

        An override set to an empty string disables the action.
        """
        bindings = dict(DEFAULT_HOTKEYS)
        for action, combo in (overrides or {}).items():
            if action not in DEFAULT_HOTKEYS:
                _LOGGER.debug("Ignoring hotkey for unknown action %s", action)
                continue
            if not isinstance(combo, str):
                continue
            combo = combo.strip().lower()
            if combo:
                bindings[action] = combo
            else:
                bindings.pop(action, None)
        return cls(bindings)

    def combo_for(self, action: str) -> Optional[str]:
        return self.bindings.get(action)


class HotkeyBinder:
    """Registers active bindings with ``pynput.keyboard.GlobalHotKeys``.

    Callbacks fire on the listener thread, so each one is handed to ``dispatch``
    which runs it on the UI thread.
    """

    def __init__(
        self,
        config: HotkeyConfig,
        *,
        dispatch: Dispatch,
        listener_factory: Optional[Callable[[Dict[str, Callable[[], None]]], Any]] = None,
    ) -> None:
        self._config = config
        self._dispatch = dispatch
        self._listener_factory = listener_factory or _global_hotkeys
        self._handlers: Dict[str, Callable[[], None]] = {}
        self._listener: Any = None

    def register_action(self, action: str, handler: Callable[[], None]) -> None:
        self._handlers[action] = handler

    def hotkey_map(self) -> Dict[str, Callable[[], None]]:
        mapping: Dict[str, Callable[[], None]] = {}
        for action, handler in self._handlers.items():
            combo = self._config.combo_for(action)
            if not combo:
                continue
            if combo in mapping:
                _LOGGER.warning("Hotkey %s for %s is already bound; skipping", combo, action)
                continue
            mapping[combo] = self._wrap(action, handler)
        return mapping

    def start(self) -> None:
        self.stop()
        mapping = self.hotkey_map()
        if not mapping:
            return
        try:
            listener = self._listener_factory(mapping)
        except ValueError as exc:
            _LOGGER.warning("Invalid hotkey configuration: %s", exc)
            return
        listener.start()
        self._listener = listener
        _LOGGER.info("Registered %d global hotkeys", len(mapping))

    def stop(self) -> None:
        listener = self._listener
        self._listener = None
        if listener is not None:
            listener.stop()

    @property
    def running(self) -> bool:
        return self._listener is not None

    def _wrap(self, action: str, handler: Callable[[], None]) -> Callable[[], None]:
        def _fire() -> None:
            _LOGGER.debug("Hotkey fired: %s", action)
            self._dispatch(handler)

        return _fire
