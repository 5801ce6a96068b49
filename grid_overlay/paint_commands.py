"""Declarative draw primitives and the key-addressable surface that holds them."""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from grid_overlay.grid_layout import Rect

_LOGGER = logging.getLogger("SpoonGrid.Surface")


@dataclass(frozen=True)
class Color:
    red: float
    green: float
    blue: float
    alpha: float = 1.0

    @classmethod
    def white(cls, level: float, alpha: float = 1.0) -> "Color":
        return cls(level, level, level, alpha)

    def faded(self, factor: float) -> "Color":
        return replace(self, alpha=max(0.0, min(1.0, self.alpha * factor)))

    def with_alpha(self, alpha: float) -> "Color":
        return replace(self, alpha=max(0.0, min(1.0, alpha)))

    def rgba(self) -> tuple[int, int, int, int]:
        return (
            int(round(self.red * 255)),
            int(round(self.green * 255)),
            int(round(self.blue * 255)),
            int(round(self.alpha * 255)),
        )


TRANSPARENT = Color(0.0, 0.0, 0.0, 0.0)


class PrimitivePainterAdapter:
    def fill_rect(self, frame: Rect, color: Color, *, radius: float, stroke: Optional[Color], stroke_width: float) -> None: ...
    def draw_text(self, frame: Rect, text: str, color: Color, *, size: float, align: str) -> None: ...
    def draw_image(self, frame: Rect, image: Any, *, opacity: float) -> None: ...


@dataclass(frozen=True)
class DrawPrimitive:
    key: str
    frame: Rect
    layer: str = "grid"

    def paint(self, adapter: PrimitivePainterAdapter, layer_alpha: float) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class RectPrimitive(DrawPrimitive):
    fill: Color = TRANSPARENT
    stroke: Optional[Color] = None
    stroke_width: float = 1.0
    radius: float = 0.0

    def paint(self, adapter: PrimitivePainterAdapter, layer_alpha: float) -> None:
        stroke = self.stroke.faded(layer_alpha) if self.stroke is not None else None
        adapter.fill_rect(
            self.frame,
            self.fill.faded(layer_alpha),
            radius=self.radius,
            stroke=stroke,
            stroke_width=self.stroke_width,
        )


@dataclass(frozen=True)
class TextPrimitive(DrawPrimitive):
    text: str = ""
    color: Color = Color.white(1.0)
    size: float = 14.0
    align: str = "left"

    def paint(self, adapter: PrimitivePainterAdapter, layer_alpha: float) -> None:
        if not self.text:
            return
        adapter.draw_text(self.frame, self.text, self.color.faded(layer_alpha), size=self.size, align=self.align)


@dataclass(frozen=True)
class ImagePrimitive(DrawPrimitive):
    image: Any = None

    def paint(self, adapter: PrimitivePainterAdapter, layer_alpha: float) -> None:
        if self.image is None or layer_alpha <= 0.0:
            return
        adapter.draw_image(self.frame, self.image, opacity=layer_alpha)


DiffState = Union[DrawPrimitive, Mapping[str, Any], None]


class DrawSurface:
    """Ordered, key-addressed list of primitives; later entries paint on top.

    All mutations go through :meth:`apply_diff` (and :meth:`set_layer_alpha`
    for whole-layer opacity), which bump :attr:`revision` and notify the
    change listener so the presenter can repaint.
    """

    def __init__(self, layers: Optional[Mapping[str, float]] = None) -> None:
        self._items: List[DrawPrimitive] = []
        self._index: Dict[str, int] = {}
        self._layer_alpha: Dict[str, float] = dict(layers or {})
        self._listener: Optional[Callable[[], None]] = None
        self.revision = 0

    # Queries -------------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._items)

    def get(self, key: str) -> Optional[DrawPrimitive]:
        pos = self._index.get(key)
        return None if pos is None else self._items[pos]

    def keys(self) -> List[str]:
        return [item.key for item in self._items]

    def primitives(self) -> List[DrawPrimitive]:
        return list(self._items)

    def layer_alpha(self, layer: str) -> float:
        return self._layer_alpha.get(layer, 1.0)

    # Mutation ------------------------------------------------------------

    def set_listener(self, listener: Optional[Callable[[], None]]) -> None:
        self._listener = listener

    def apply_diff(self, key: str, state: DiffState, *, before: Optional[str] = None) -> None:
        """Replace, update, insert, or (``state=None``) remove the primitive ``key``."""
        pos = self._index.get(key)
        if state is None:
            if pos is None:
                return
            del self._items[pos]
            self._reindex()
        elif isinstance(state, DrawPrimitive):
            if state.key != key:
                state = replace(state, key=key)
            if pos is not None:
                self._items[pos] = state
            else:
                anchor = self._index.get(before) if before is not None else None
                if anchor is None:
                    self._items.append(state)
                else:
                    self._items.insert(anchor, state)
                self._reindex()
        else:
            if pos is None:
                return
            current = self._items[pos]
            allowed = {f.name for f in fields(current)}
            updates = {name: value for name, value in state.items() if name in allowed and name != "key"}
            if not updates:
                return
            self._items[pos] = replace(current, **updates)
        self._commit()

    def set_layer_alpha(self, layer: str, alpha: float) -> None:
        value = max(0.0, min(1.0, float(alpha)))
        if self._layer_alpha.get(layer) == value:
            return
        self._layer_alpha[layer] = value
        self._commit()

    def clear(self) -> None:
        if not self._items:
            return
        self._items.clear()
        self._index.clear()
        self._commit()

    def paint(self, adapter: PrimitivePainterAdapter) -> None:
        for item in self._items:
            alpha = self.layer_alpha(item.layer)
            if alpha <= 0.0:
                continue
            item.paint(adapter, alpha)

    def _reindex(self) -> None:
        self._index = {item.key: idx for idx, item in enumerate(self._items)}

    def _commit(self) -> None:
        self.revision += 1
        listener = self._listener
        if listener is None:
            return
        try:
            listener()
        except Exception as exc:
            _LOGGER.debug("Surface listener failed: %s", exc)
