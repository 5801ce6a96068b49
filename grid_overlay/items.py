from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class GridItem:
    """One selectable entry; ``payload`` is opaque to the overlay."""

    label: str
    payload: Any = None
    icon: Optional[Any] = None
    emphasized: bool = False


class ItemSource(Protocol):
    supports_delete: bool

    def count(self) -> int: ...

    def item_at(self, index: int) -> GridItem: ...

    def activate(self, item: GridItem) -> None: ...

    def delete(self, index: int) -> None: ...
