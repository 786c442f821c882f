"""Test the blessed-backed frame buffer with a fake terminal."""

import pytest

from markview.terminal import TerminalInterface


class FakeTerm:
    width = 12
    height = 4
    normal = ""
    home = ""
    clear = "<clear>"
    bold = "<b>"
    reverse = "<r>"
    cyan = "<c>"

    def move(self, y, x):
        return f"<{y},{x}>"

    def __getattr__(self, name):
        return ""


@pytest.fixture
def interface():
    return TerminalInterface(FakeTerm())


def test_height_reserves_status_line(interface):
    assert interface.width == 12
    assert interface.height == 3


def test_style_falls_back_to_parent_key(interface):
    assert interface.style("selection") == "<r>"
    # An unknown sub-key resolves through its parent
    assert interface.style("heading.1.icon") == interface.style("heading.1")
    assert interface.style("no-such-style") == ""


def test_paint_clips_to_screen(interface):
    interface.begin_frame()
    interface.paint(10, 0, "abcdef")
    interface.paint(-2, 1, "xyz")
    interface.paint(0, 9, "offscreen")
    assert [ch for ch, _ in interface._cells[0][10:]] == ["a", "b"]
    assert interface._cells[1][0] == ("z", "text")


def test_end_frame_writes_only_changed_rows(interface, capsys):
    interface.begin_frame()
    interface.paint(0, 0, "hello")
    interface.end_frame()
    first = capsys.readouterr().out
    assert "<clear>" in first
    assert "hello" in first

    interface.begin_frame()
    interface.paint(0, 0, "hello")
    interface.paint(0, 2, "world")
    interface.end_frame()
    second = capsys.readouterr().out
    assert "<clear>" not in second
    assert "hello" not in second
    assert "<2,0>" in second and "world" in second


def test_invalidate_frame_forces_full_redraw(interface, capsys):
    interface.begin_frame()
    interface.end_frame()
    capsys.readouterr()

    interface.invalidate_frame()
    interface.begin_frame()
    interface.end_frame()
    assert "<clear>" in capsys.readouterr().out


def test_get_key_without_input(interface):
    assert interface.get_key(timeout=0) is None
