from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pytest

from grid_plugin.dock_apps import AppEntry
from grid_plugin.item_sources import AppItemSource, PasteItemSource, WindowItemSource, truncate_label
from grid_plugin.item_store import PasteItem


@dataclass
class FakeWindow:
    title: str


def test_truncate_label() -> None:
    assert truncate_label("short") == "short"
    assert truncate_label("x" * 30) == "x" * 30
    assert truncate_label("y" * 31) == "y" * 27 + "..."


def test_paste_source_reads_live_list() -> None:
    items = [PasteItem("one", "body one")]
    pasted: List[str] = []
    removed: List[int] = []
    source = PasteItemSource(lambda: items, paste=pasted.append, remove=removed.append)

    assert source.supports_delete
    assert source.count() == 1
    items.append(PasteItem("two", "body two"))
    assert source.count() == 2

    item = source.item_at(1)
    assert (item.label, item.payload) == ("two", "body two")
    source.activate(item)
    source.delete(0)
    assert pasted == ["body two"]
    assert removed == [0]


def test_window_source_truncates_and_focuses() -> None:
    focused: List[FakeWindow] = []
    windows = [FakeWindow("A" * 40), FakeWindow("")]
    source = WindowItemSource(windows, focus=focused.append)

    assert not source.supports_delete
    assert source.item_at(0).label == "A" * 27 + "..."
    assert source.item_at(1).label == ""
    source.activate(source.item_at(1))
    assert focused == [windows[1]]
    with pytest.raises(TypeError):
        source.delete(0)


def test_app_source_marks_running_apps() -> None:
    launched: List[AppEntry] = []
    apps = [
        AppEntry("Safari", "com.apple.Safari", "/Applications/Safari.app", running=True),
        AppEntry("Mail", "com.apple.mail", "/System/Applications/Mail.app"),
    ]
    source = AppItemSource(apps, launch=launched.append)

    first = source.item_at(0)
    assert first.emphasized is True
    assert first.icon == "/Applications/Safari.app"
    assert source.item_at(1).emphasized is False
    source.activate(source.item_at(1))
    assert launched == [apps[1]]
