from __future__ import annotations

from typing import List

import pytest

from grid_overlay.grid_config import KEY_ESCAPE, KEY_LEFT, KEY_RIGHT, GridConfig
from grid_overlay.items import GridItem
from grid_overlay.overlay_session import OverlayController, OverlayRequest
from grid_overlay.render_state import DELETE_FOOTER_TEXT, DELETE_OVERLAY_KEY, LAYER_GRID


class ListSource:
    supports_delete = True

    def __init__(self, labels: List[str], *, fail_activate: bool = False) -> None:
        self.labels = list(labels)
        self.activated: List[str] = []
        self.deleted: List[str] = []
        self._fail_activate = fail_activate

    def count(self) -> int:
        return len(self.labels)

    def item_at(self, index: int) -> GridItem:
        return GridItem(self.labels[index], payload=self.labels[index])

    def activate(self, item: GridItem) -> None:
        if self._fail_activate:
            raise RuntimeError("boom")
        self.activated.append(item.payload)

    def delete(self, index: int) -> None:
        self.deleted.append(self.labels.pop(index))


def paste_config() -> GridConfig:
    return GridConfig(
        columns=("A", "B", "C"),
        rows=("A", "B", "C", "D", "E"),
        items_per_page=14,
        reserved_cell=(0, 0),
        traversal="balanced",
        quit_keys=("Q", KEY_ESCAPE),
        delete_toggle_keys=("X",),
        next_page_keys=("J", KEY_RIGHT),
        prev_page_keys=("K", KEY_LEFT),
    )


def make_request(source: ListSource, **kwargs) -> OverlayRequest:
    return OverlayRequest(
        name=kwargs.pop("name", "PasteLibrary"),
        config=paste_config(),
        source=source,
        reserved_label="➕ Add new item",
        **kwargs,
    )


def open_session(host, source: ListSource, **kwargs):
    controller = OverlayController(host.services())
    session = controller.open(make_request(source, **kwargs))
    assert session is not None
    return controller, session


def test_open_presents_captures_keys_and_fades_in(host, loop) -> None:
    _controller, session = open_session(host, ListSource(["a", "b"]))

    assert session.is_open
    assert host.presented == ["window1"]
    assert host.capturing
    assert host.snapshots == 1
    assert session.surface.layer_alpha(LAYER_GRID) == 0.0

    loop.advance(0.10)
    assert session.surface.layer_alpha(LAYER_GRID) == pytest.approx(1.0)


def test_selecting_item_closes_restores_focus_then_activates(host, loop) -> None:
    source = ListSource(["a", "b", "c"])
    controller, session = open_session(host, source)

    host.press("B", "A")

    assert source.activated == ["a"]
    assert host.restores == 1
    assert not host.capturing
    assert session.status == "closing"
    assert host.dismissed == []

    loop.advance(0.12)
    assert host.dismissed == ["window1"]
    assert session.status == "closed"
    assert controller.active is None
    assert len(session.surface) == 0


def test_activation_delay_is_honoured(host, loop) -> None:
    source = ListSource(["a"])
    open_session(host, source, activation_delay=0.05)

    host.press("B", "A")
    assert source.activated == []
    loop.advance(0.05)
    assert source.activated == ["a"]


def test_empty_cell_closes_with_notice(host, loop) -> None:
    source = ListSource(["a", "b", "c"])
    open_session(host, source)

    host.press("C", "E")

    assert host.alerts == ["PasteLibrary: No item in C,E"]
    assert source.activated == []
    assert host.restores == 1
    assert not host.capturing


def test_quit_key_fades_out_before_teardown(host, loop) -> None:
    _controller, session = open_session(host, ListSource(["a"]))
    loop.advance(0.10)

    host.press("escape")

    assert host.restores == 1
    loop.advance(0.11)
    assert host.dismissed == []
    loop.advance(0.01)
    assert host.dismissed == ["window1"]
    assert session.status == "closed"


def test_reserved_cell_runs_callback_after_close(host, loop) -> None:
    opened: List[float] = []
    open_session(host, ListSource(["a"]), on_reserved=lambda: opened.append(loop.now))

    host.press("A", "A")

    assert opened == []
    assert not host.capturing
    loop.advance(0.02)
    assert opened == [pytest.approx(0.02)]


def test_delete_mode_removes_item_and_stays_open(host, loop) -> None:
    source = ListSource(["a", "b", "c"])
    _controller, session = open_session(host, source)
    surface = session.surface

    host.press("X")
    assert session.machine.state.delete_mode
    assert DELETE_OVERLAY_KEY in surface
    assert surface.get("footer_text").text == DELETE_FOOTER_TEXT

    host.press("B", "A")
    assert source.deleted == ["a"]
    assert session.is_open
    assert surface.get("title_0_1").text == "b"
    assert "flash_0_1" in surface
    assert session.machine.state.delete_mode

    loop.advance(0.25)
    assert "flash_0_1" not in surface

    host.press("X")
    assert DELETE_OVERLAY_KEY not in surface
    assert surface.get("footer_text").text == "Page 1 / 1"


def test_delete_mode_ignores_reserved_and_empty_cells(host) -> None:
    source = ListSource(["a"])
    _controller, session = open_session(host, source)

    host.press("X", "A", "A")
    host.press("C", "E")

    assert source.deleted == []
    assert session.is_open
    assert host.alerts == []


def test_page_change_crossfades_new_contents(host, loop) -> None:
    source = ListSource([f"item {idx}" for idx in range(20)])
    _controller, session = open_session(host, source)
    surface = session.surface
    loop.advance(0.10)

    host.press(KEY_RIGHT)
    assert session.machine.state.current_page == 2
    assert surface.get("title_0_1").text == "item 0"

    loop.advance(0.09)
    assert surface.get("title_0_1").text == "item 14"
    assert surface.get("footer_text").text == "Page 2 / 2"
    assert surface.layer_alpha(LAYER_GRID) == 0.0

    loop.advance(0.08)
    assert surface.layer_alpha(LAYER_GRID) == pytest.approx(1.0)

    host.press("J")
    loop.advance(0.20)
    assert surface.get("title_0_1").text == "item 0"


def test_reopening_replaces_the_active_session(host) -> None:
    controller = OverlayController(host.services())
    first = controller.open(make_request(ListSource(["a"])))
    second = controller.open(make_request(ListSource(["b"]), name="Other"))

    assert first is not None and second is not None
    assert first.status == "closed"
    assert host.dismissed == ["window1"]
    assert controller.active is second
    assert host.capturing
    assert len(host.released) == 1
    assert host.snapshots == 1
    assert second.restore_focus is first.restore_focus


def test_reopening_during_close_fade_takes_a_fresh_snapshot(host, loop) -> None:
    controller = OverlayController(host.services())
    first = controller.open(make_request(ListSource(["a"])))
    host.press("Q")
    assert first.status == "closing"
    assert host.restores == 1

    second = controller.open(make_request(ListSource(["b"]), name="Other"))

    assert first.status == "closed"
    assert host.snapshots == 2
    assert second.restore_focus is not first.restore_focus
    assert controller.active is second


def test_deleting_last_item_on_final_page_falls_back_a_page(host) -> None:
    source = ListSource([f"item {idx}" for idx in range(15)])
    _controller, session = open_session(host, source)
    surface = session.surface

    host.press(KEY_RIGHT, "X", "B", "A")

    assert source.deleted == ["item 14"]
    state = session.machine.state
    assert (state.current_page, state.total_pages) == (1, 1)
    assert surface.get("title_0_1").text == "item 0"
    assert surface.get("title_4_2").text == "item 13"

    host.press("X")
    assert surface.get("footer_text").text == "Page 1 / 1"


def test_closing_mid_crossfade_leaves_nothing_behind(host, loop) -> None:
    source = ListSource([f"item {idx}" for idx in range(20)])
    _controller, session = open_session(host, source)
    surface = session.surface
    loop.advance(0.10)

    host.press(KEY_RIGHT)
    loop.advance(0.03)
    host.press("Q")
    loop.advance(0.5)

    assert session.status == "closed"
    assert len(surface) == 0
    assert host.dismissed == ["window1"]
    assert loop.pending() == 0


def test_open_failure_alerts_and_leaves_no_capture(host) -> None:
    host.fail_present = True
    controller = OverlayController(host.services())

    session = controller.open(make_request(ListSource(["a"])))

    assert session is None
    assert controller.active is None
    assert host.alerts == ["PasteLibrary: could not open overlay"]
    assert not host.capturing


def test_activation_failure_is_reported(host) -> None:
    source = ListSource(["a"], fail_activate=True)
    open_session(host, source)

    host.press("B", "A")

    assert host.alerts == ["PasteLibrary: boom"]


def test_keys_after_close_are_consumed_without_effect(host) -> None:
    source = ListSource(["a", "b"])
    controller, session = open_session(host, source)
    controller.close(animate=False)

    assert session.handle_key("B") is True
    assert session.handle_key("A") is True
    assert source.activated == []
