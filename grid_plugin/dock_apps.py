"""Dock-pinned and running application enumeration (pure parts)."""
from __future__ import annotations

import os
import plistlib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import unquote

DOCK_PLIST_PATH = Path.home() / "Library" / "Preferences" / "com.apple.dock.plist"
BACKGROUND_MARKERS = ("service", "helper", "agent", "daemon", "windowserver")
OWN_BUNDLE_PREFIXES = ("org.python",)

BundleInfoFn = Callable[[str], Tuple[Optional[str], Optional[str]]]


@dataclass(frozen=True)
class AppEntry:
    name: str
    bundle_id: Optional[str] = None
    path: Optional[str] = None
    running: bool = False


def decode_file_url(url: str) -> str:
    """``file:///Applications/Visual%20Studio%20Code.app/`` -> decoded filesystem path."""
    if url.startswith("file://"):
        url = url[len("file://"):]
    return unquote(url)


def dock_app_paths(plist_data: Mapping[str, Any]) -> List[str]:
    """Return ``.app`` paths listed under ``persistent-apps``, in Dock order."""
    paths: List[str] = []
    for entry in plist_data.get("persistent-apps") or []:
        if not isinstance(entry, Mapping):
            continue
        tile = entry.get("tile-data")
        file_data = tile.get("file-data") if isinstance(tile, Mapping) else None
        url = file_data.get("_CFURLString") if isinstance(file_data, Mapping) else None
        if not isinstance(url, str):
            continue
        path = decode_file_url(url).rstrip("/")
        if path.endswith(".app"):
            paths.append(path)
    return paths


def read_bundle_info(path: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(bundle_id, display_name)`` from the bundle's ``Info.plist``."""
    try:
        with open(os.path.join(path, "Contents", "Info.plist"), "rb") as handle:
            info = plistlib.load(handle)
    except (OSError, plistlib.InvalidFileException, ValueError):
        return None, None
    bundle_id = info.get("CFBundleIdentifier")
    name = info.get("CFBundleDisplayName") or info.get("CFBundleName")
    return (
        bundle_id if isinstance(bundle_id, str) else None,
        name if isinstance(name, str) else None,
    )


def app_name_from_path(path: str) -> str:
    base = os.path.basename(path.rstrip("/"))
    return base[: -len(".app")] if base.endswith(".app") else base


def read_dock_apps(
    plist_path: Path = DOCK_PLIST_PATH,
    *,
    exists: Callable[[str], bool] = os.path.exists,
    bundle_info: BundleInfoFn = read_bundle_info,
) -> List[AppEntry]:
    """Dock apps whose bundle still exists; an unreadable plist yields no apps."""
    try:
        with open(plist_path, "rb") as handle:
            data = plistlib.load(handle)
    except (OSError, plistlib.InvalidFileException, ValueError):
        return []
    if not isinstance(data, Mapping):
        return []
    apps: List[AppEntry] = []
    for path in dock_app_paths(data):
        if not exists(path):
            continue
        bundle_id, name = bundle_info(path)
        apps.append(AppEntry(name=name or app_name_from_path(path), bundle_id=bundle_id, path=path))
    return apps


def is_background_app(
    name: Optional[str],
    bundle_id: Optional[str],
    *,
    own_bundle_prefixes: Iterable[str] = OWN_BUNDLE_PREFIXES,
) -> bool:
    """Helpers, agents, daemons and the host itself never show up in the launcher."""
    if not name or not bundle_id:
        return True
    lowered = name.lower()
    if any(marker in lowered for marker in BACKGROUND_MARKERS):
        return True
    return any(bundle_id.startswith(prefix) for prefix in own_bundle_prefixes)


def merge_apps(dock: Iterable[AppEntry], running: Iterable[AppEntry]) -> List[AppEntry]:
    """Dock entries first, then running apps not already present (by bundle id).

    Dock entries whose bundle is running are marked ``running``.
    """
    running = list(running)
    running_ids = {app.bundle_id for app in running if app.bundle_id}
    merged: List[AppEntry] = []
    seen: set[str] = set()
    for app in dock:
        if app.bundle_id and app.bundle_id in seen:
            continue
        merged.append(replace(app, running=app.bundle_id in running_ids) if app.bundle_id else app)
        if app.bundle_id:
            seen.add(app.bundle_id)
    for app in running:
        if not app.bundle_id or app.bundle_id in seen:
            continue
        merged.append(replace(app, running=True))
        seen.add(app.bundle_id)
    return merged
