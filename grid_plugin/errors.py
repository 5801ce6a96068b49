"""Error kinds surfaced by the spoons; all of them end up as transient notices."""
from __future__ import annotations


class SpoonGridError(Exception):
    """Base class for recoverable spoon failures."""


class StorageDecodeError(SpoonGridError):
    """Persisted items could not be decoded; callers continue with an empty list."""


class StorageWriteError(SpoonGridError):
    """Persisting items failed; the in-memory list is kept."""


class NoFocusedWindow(SpoonGridError):
    pass


class NoApplication(SpoonGridError):
    pass
