"""Test the view's mouse contract."""

from unittest.mock import Mock

import pytest

from markview.clipboard import ClipboardError
from markview.events import (
    Area,
    Copied,
    CopyFailed,
    DoubleClick,
    FocusedLine,
    HeadingToggled,
    MouseButton,
    MouseEvent,
    MouseKind,
    NoEvent,
    Scrolled,
    SelectionEnded,
    SelectionStarted,
    ViewMode,
)
from markview.widget import MarkdownView

DOC = "# A\n\nalpha\n\n## B\n\nbeta\n\n# C\n\ngamma"
AREA = Area(0, 0, 40, 10)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def clipboard():
    return Mock()


def make_view(clock, clipboard, text=DOC):
    return MarkdownView.from_string(text, highlighter=None, clipboard=clipboard, clock=clock)


def mouse(kind, column, row, button=MouseButton.LEFT):
    return MouseEvent(kind, column, row, button)


def test_single_click_waits_for_pending_check(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    assert view.handle_mouse_event(mouse(MouseKind.DOWN, 3, 2), AREA) == NoEvent()

    # Still inside the double-click window
    assert view.check_pending_click(AREA, now=0.1) == NoEvent()

    assert view.check_pending_click(AREA, now=1.0) == FocusedLine(3)
    assert view.scroll.current_line == 3


def test_click_on_heading_toggles_section(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DOWN, 3, 0), AREA)
    event = view.check_pending_click(AREA, now=1.0)
    assert event == HeadingToggled(1, "A", True)

    texts = [row.text for row in view.render(AREA)]
    assert not any("alpha" in text for text in texts)

    # A second single click expands it again
    clock.now = 5.0
    view.handle_mouse_event(mouse(MouseKind.DOWN, 3, 0), AREA)
    assert view.check_pending_click(AREA, now=6.0) == HeadingToggled(1, "A", False)
    assert any("alpha" in row.text for row in view.render(AREA))


def test_double_click_reports_line(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DOWN, 1, 2), AREA)
    clock.now = 0.2
    event = view.handle_mouse_event(mouse(MouseKind.DOWN, 1, 2), AREA)
    assert event == DoubleClick(3, "Paragraph", "alpha")

    # No single-click action follows a double click
    assert view.check_pending_click(AREA, now=5.0) == NoEvent()


def test_double_click_does_not_toggle_heading(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DOWN, 3, 0), AREA)
    clock.now = 0.1
    event = view.handle_mouse_event(mouse(MouseKind.DOWN, 3, 0), AREA)
    assert isinstance(event, DoubleClick)
    assert not view.collapse.is_directly_collapsed(0)


def test_drag_selects_and_release_copies(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DOWN, 0, 2), AREA)
    assert view.handle_mouse_event(mouse(MouseKind.DRAG, 0, 2), AREA) == SelectionStarted()
    assert view.mode == ViewMode.DRAG
    assert view.handle_mouse_event(mouse(MouseKind.DRAG, 4, 2), AREA) == NoEvent()

    assert view.handle_mouse_event(mouse(MouseKind.UP, 4, 2), AREA) == Copied("alpha")
    clipboard.assert_called_once_with("alpha")
    assert view.mode == ViewMode.NORMAL

    # The drag cancelled the pending single click
    assert view.check_pending_click(AREA, now=5.0) == NoEvent()


def test_multi_row_drag_copies_rendered_text(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 2, 2), AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 39, 4), AREA)
    event = view.handle_mouse_event(mouse(MouseKind.UP, 39, 4), AREA)
    assert isinstance(event, Copied)
    assert event.text.startswith("pha\n\n")
    assert event.text.endswith("B")


def test_release_without_drag_copies_nothing(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    assert view.handle_mouse_event(mouse(MouseKind.UP, 0, 0), AREA) == NoEvent()
    clipboard.assert_not_called()


def test_clipboard_failure_is_reported(clock):
    failing = Mock(side_effect=ClipboardError("no clipboard"))
    view = make_view(clock, failing)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 0, 2), AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 4, 2), AREA)
    assert view.handle_mouse_event(mouse(MouseKind.UP, 4, 2), AREA) == CopyFailed("no clipboard")


def test_selection_survives_collapse_during_drag(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 0, 2), AREA)
    view.collapse_all()
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 4, 2), AREA)
    assert view.handle_mouse_event(mouse(MouseKind.UP, 4, 2), AREA) == Copied("alpha")


def test_wheel_scrolls_five_rows(clock, clipboard):
    text = "\n\n".join(f"para {i}" for i in range(50))
    view = make_view(clock, clipboard, text)
    view.render(AREA)
    assert view.handle_mouse_event(mouse(MouseKind.SCROLL_DOWN, 1, 1, MouseButton.NONE), AREA) == Scrolled(5, 5)
    assert view.handle_mouse_event(mouse(MouseKind.SCROLL_UP, 1, 1, MouseButton.NONE), AREA) == Scrolled(0, -5)
    assert view.handle_mouse_event(mouse(MouseKind.SCROLL_UP, 1, 1, MouseButton.NONE), AREA) == Scrolled(0, 0)


def test_click_resolves_with_scroll_offset(clock, clipboard):
    text = "\n\n".join(f"para {i}" for i in range(50))
    view = make_view(clock, clipboard, text)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.SCROLL_DOWN, 1, 1, MouseButton.NONE), AREA)
    view.handle_mouse_event(mouse(MouseKind.DOWN, 0, 1), AREA)
    clock.now = 0.1
    event = view.handle_mouse_event(mouse(MouseKind.DOWN, 0, 1), AREA)
    # Document row 6 holds the fourth paragraph
    assert event == DoubleClick(7, "Paragraph", "para 3")


def test_events_outside_area(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    assert view.handle_mouse_event(mouse(MouseKind.DOWN, 60, 2), AREA) == NoEvent()

    view.handle_mouse_event(mouse(MouseKind.DRAG, 0, 2), AREA)
    assert view.handle_mouse_event(mouse(MouseKind.DRAG, 60, 2), AREA) == SelectionEnded()
    assert not view.selection.is_active()
    assert view.mode == ViewMode.NORMAL


def test_new_click_ends_previous_selection(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 0, 2), AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 4, 2), AREA)
    view.handle_mouse_event(mouse(MouseKind.UP, 4, 2), AREA)
    view.handle_mouse_event(mouse(MouseKind.DOWN, 0, 6), AREA)
    assert not view.selection.is_active()


def test_right_button_is_ignored(clock, clipboard):
    view = make_view(clock, clipboard)
    view.render(AREA)
    assert view.handle_mouse_event(mouse(MouseKind.DOWN, 0, 0, MouseButton.RIGHT), AREA) == NoEvent()
    assert not view.double_click.has_pending()


def test_drag_freezes_rendered_rows(clock, clipboard):
    view = make_view(clock, clipboard, "hello world")
    view.render(AREA)
    # Content changes after painting but before the drag begins
    view.set_content("HELLO THERE")
    view.handle_mouse_event(mouse(MouseKind.DRAG, 2, 0), AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 5, 0), AREA)
    assert view.selection.frozen_lines == ["hello world"]
    assert view.handle_mouse_event(mouse(MouseKind.UP, 5, 0), AREA) == Copied("llo ")


def test_drag_before_first_render_uses_projection(clock, clipboard):
    view = make_view(clock, clipboard)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 0, 2), AREA)
    view.handle_mouse_event(mouse(MouseKind.DRAG, 4, 2), AREA)
    assert view.handle_mouse_event(mouse(MouseKind.UP, 4, 2), AREA) == Copied("alpha")
