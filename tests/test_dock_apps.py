from __future__ import annotations

import plistlib

from grid_plugin.dock_apps import (
    AppEntry,
    decode_file_url,
    dock_app_paths,
    is_background_app,
    merge_apps,
    read_dock_apps,
)


def _tile(url: str) -> dict:
    return {"tile-data": {"file-data": {"_CFURLString": url, "_CFURLStringType": 15}}}


def test_decode_file_url_unquotes() -> None:
    assert decode_file_url("file:///Applications/Visual%20Studio%20Code.app/") == "/Applications/Visual Studio Code.app/"
    assert decode_file_url("/Applications/Safari.app") == "/Applications/Safari.app"


def test_dock_app_paths_keeps_app_bundles_in_order() -> None:
    data = {
        "persistent-apps": [
            _tile("file:///Applications/Safari.app/"),
            {"tile-data": {}},
            _tile("file:///Users/me/Downloads/"),
            "junk",
            _tile("file:///System/Applications/Mail.app/"),
        ]
    }

    assert dock_app_paths(data) == ["/Applications/Safari.app", "/System/Applications/Mail.app"]
    assert dock_app_paths({}) == []


def test_read_dock_apps_skips_missing_bundles(tmp_path) -> None:
    plist_path = tmp_path / "com.apple.dock.plist"
    data = {
        "persistent-apps": [
            _tile("file:///Applications/Safari.app/"),
            _tile("file:///Applications/Gone.app/"),
            _tile("file:///Applications/No%20Info.app/"),
        ]
    }
    with open(plist_path, "wb") as handle:
        plistlib.dump(data, handle)
    info = {"/Applications/Safari.app": ("com.apple.Safari", "Safari")}

    apps = read_dock_apps(
        plist_path,
        exists=lambda path: not path.endswith("Gone.app"),
        bundle_info=lambda path: info.get(path, (None, None)),
    )

    assert apps == [
        AppEntry("Safari", "com.apple.Safari", "/Applications/Safari.app"),
        AppEntry("No Info", None, "/Applications/No Info.app"),
    ]


def test_unreadable_dock_plist_yields_nothing(tmp_path) -> None:
    broken = tmp_path / "broken.plist"
    broken.write_bytes(b"definitely not a plist")

    assert read_dock_apps(tmp_path / "missing.plist") == []
    assert read_dock_apps(broken) == []


def test_background_filter() -> None:
    assert is_background_app("Safari", "com.apple.Safari") is False
    assert is_background_app("Dropbox Helper", "com.dropbox.helper") is True
    assert is_background_app("CoreServicesUIAgent", "com.apple.coreservices.uiagent") is True
    assert is_background_app("Python", "org.python.python") is True
    assert is_background_app("", "com.example") is True
    assert is_background_app("Nameless", None) is True


def test_merge_puts_dock_first_and_dedupes_by_bundle() -> None:
    dock = [
        AppEntry("Safari", "com.apple.Safari", "/Applications/Safari.app"),
        AppEntry("Mail", "com.apple.mail", "/System/Applications/Mail.app"),
        AppEntry("Safari again", "com.apple.Safari", "/Applications/Safari.app"),
    ]
    running = [
        AppEntry("Terminal", "com.apple.Terminal", "/System/Applications/Utilities/Terminal.app"),
        AppEntry("Mail", "com.apple.mail", "/System/Applications/Mail.app"),
    ]

    merged = merge_apps(dock, running)

    assert [app.name for app in merged] == ["Safari", "Mail", "Terminal"]
    assert [app.running for app in merged] == [False, True, True]
