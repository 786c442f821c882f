"""Test drag selection over frozen rows."""

from markview.selection import SelectionPos, SelectionState


def make_selection(lines, anchor, cursor, width=40):
    s = SelectionState()
    s.enter(anchor[0], anchor[1], lines, width)
    s.update_cursor(cursor[0], cursor[1])
    return s


def test_inactive_by_default():
    s = SelectionState()
    assert not s.is_active()
    assert not s.has_selection()
    assert s.get_selected_text() is None


def test_single_row_selection_is_inclusive():
    s = make_selection(["hello world"], (2, 0), (5, 0))
    assert s.get_selected_text() == "llo "


def test_backward_drag_is_normalized():
    s = make_selection(["hello world"], (5, 0), (2, 0))
    assert s.normalized() == (SelectionPos(2, 0), SelectionPos(5, 0))
    assert s.get_selected_text() == "llo "


def test_multi_row_selection():
    lines = ["first row", "second row", "third row"]
    s = make_selection(lines, (6, 0), (4, 2))
    assert s.get_selected_text() == "row\nsecond row\nthird"


def test_enter_without_motion_has_no_selection():
    s = SelectionState()
    s.enter(3, 1, ["abc", "def"], 10)
    assert s.is_active()
    assert not s.has_selection()


def test_frozen_rows_ignore_later_changes():
    lines = ["original text"]
    s = make_selection(lines, (0, 0), (7, 0))
    lines[0] = "changed"
    assert s.get_selected_text() == "original"


def test_selection_past_row_end_is_clipped():
    s = make_selection(["short"], (0, 0), (30, 0))
    assert s.get_selected_text() == "short"


def test_rows_beyond_snapshot_are_ignored():
    s = make_selection(["one", "two"], (0, 0), (2, 9))
    assert s.get_selected_text() == "one\ntwo"


def test_selection_ranges_in_viewport():
    lines = [f"row {i}" for i in range(10)]
    s = make_selection(lines, (2, 3), (1, 5), width=8)
    ranges = s.selection_ranges(offset=2, height=5)
    # Viewport rows 2..6; selection covers rows 3..5
    assert ranges[0] is None
    assert ranges[1] == (2, 8)
    assert ranges[2] == (0, 8)
    assert ranges[3] == (0, 2)
    assert ranges[4] is None


def test_exit_clears_state():
    s = make_selection(["abc"], (0, 0), (2, 0))
    s.exit()
    assert not s.is_active()
    assert s.frozen_lines is None
    assert s.get_selected_text() is None
    assert s.selection_ranges(0, 3) == [None, None, None]
