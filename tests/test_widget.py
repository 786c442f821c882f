"""Test the view's keyboard contract, caches, sources and status line."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from markview.events import (
    Area,
    Copied,
    HeadingToggled,
    MouseEvent,
    MouseKind,
    NoEvent,
    Reloaded,
    ReloadFailed,
)
from markview.keyboard import KeyEvent, KeyType
from markview.widget import MarkdownView

DOC = "# A\n\nalpha\n\n## B\n\nbeta\n\n# C\n\ngamma"
AREA = Area(0, 0, 40, 10)


def key(value, key_type=KeyType.REGULAR):
    return KeyEvent(key_type=key_type, value=value, raw=value)


def make_view(text=DOC, **options):
    options.setdefault("highlighter", None)
    options.setdefault("clipboard", Mock())
    view = MarkdownView.from_string(text, **options)
    view.render(AREA)
    return view


class TestKeyboard:

    def test_j_and_k_move_current_line(self):
        view = make_view()
        view.handle_key_event(key('j'), AREA)
        view.handle_key_event(key('j'), AREA)
        assert view.scroll.current_line == 3
        view.handle_key_event(key('up', KeyType.SPECIAL), AREA)
        assert view.scroll.current_line == 2

    def test_moving_past_viewport_scrolls(self):
        view = make_view("\n\n".join(f"para {i}" for i in range(50)))
        for _ in range(10):
            view.handle_key_event(key('down', KeyType.SPECIAL), AREA)
        assert view.scroll.current_line == 11
        assert view.scroll.scroll_offset == 1

    def test_page_keys_scroll_one_viewport(self):
        view = make_view("\n\n".join(f"para {i}" for i in range(50)))
        view.handle_key_event(key('page_down', KeyType.SPECIAL), AREA)
        assert view.scroll.scroll_offset == 10
        view.handle_key_event(key(' '), AREA)
        assert view.scroll.scroll_offset == 20
        view.handle_key_event(key('b', KeyType.CTRL), AREA)
        assert view.scroll.scroll_offset == 10

    def test_top_and_bottom(self):
        view = make_view("\n\n".join(f"para {i}" for i in range(50)))
        view.handle_key_event(key('G'), AREA)
        assert view.scroll.scroll_offset == view.scroll.max_scroll_offset()
        assert view.scroll.current_line == view.scroll.total_lines
        view.handle_key_event(key('g'), AREA)
        assert view.scroll.scroll_offset == 0
        assert view.scroll.current_line == 1

    def test_enter_toggles_heading_under_current_line(self):
        view = make_view()
        event = view.handle_key_event(key('enter', KeyType.SPECIAL), AREA)
        assert event == HeadingToggled(1, "A", True)
        assert not any("alpha" in row.text for row in view.render(AREA))

    def test_enter_on_paragraph_does_nothing(self):
        view = make_view()
        view.handle_key_event(key('j'), AREA)
        view.handle_key_event(key('j'), AREA)
        assert view.handle_key_event(key('enter', KeyType.SPECIAL), AREA) == NoEvent()

    def test_collapse_and_expand_all(self):
        view = make_view()
        view.handle_key_event(key('C'), AREA)
        texts = [row.text for row in view.render(AREA)]
        assert len(texts) == 2  # only the top-level headings remain
        view.handle_key_event(key('E'), AREA)
        assert any("beta" in row.text for row in view.render(AREA))

    def test_y_copies_active_selection(self):
        clipboard = Mock()
        view = make_view(clipboard=clipboard)
        view.handle_mouse_event(MouseEvent(MouseKind.DRAG, 0, 2), AREA)
        view.handle_mouse_event(MouseEvent(MouseKind.DRAG, 2, 2), AREA)
        assert view.handle_key_event(key('y'), AREA) == Copied("alp")
        clipboard.assert_called_once_with("alp")

    def test_escape_clears_selection(self):
        view = make_view()
        view.handle_mouse_event(MouseEvent(MouseKind.DRAG, 0, 2), AREA)
        view.handle_key_event(key('escape', KeyType.SPECIAL), AREA)
        assert not view.selection.is_active()

    def test_toggle_display_settings(self):
        view = make_view("```\nx\n```")
        view.handle_key_event(key('n'), AREA)
        assert view.show_line_numbers
        assert any("  1 x" in row.text for row in view.render(AREA))
        view.handle_key_event(key('m'), AREA)
        assert view.show_minimap

    def test_unknown_key_is_no_event(self):
        view = make_view()
        assert view.handle_key_event(key('z'), AREA) == NoEvent()


class TestCaches:

    def test_cold_rebuild_matches_cache(self):
        view = make_view()
        view.collapse.collapse(4)
        cached = [row.text for row in view.render(AREA)]
        view.invalidate_cache()
        assert [row.text for row in view.render(AREA)] == cached

    def test_projection_cached_until_collapse_changes(self):
        view = make_view()
        first = view.projection(40)
        assert view.projection(40) is first
        view.collapse.toggle(0)
        assert view.projection(40) is not first

    def test_width_change_rewraps(self):
        view = make_view("word " * 30)
        wide = view.projection(80).row_count
        narrow = view.projection(20).row_count
        assert narrow > wide

    def test_set_content_rebuilds(self):
        view = make_view()
        assert view.set_content("# New\n\nbody")
        assert view.render(AREA)[0].text.endswith("New")
        assert not view.set_content("# New\n\nbody")

    def test_rendered_lines_kept_for_selection(self):
        view = make_view()
        assert view.rendered_lines[2] == "alpha"

    def test_minimap_takes_right_columns(self):
        view = make_view()
        view.set_show_minimap(True)
        assert view.content_area(Area(0, 0, 40, 10)).width == 30
        # Too narrow: the minimap is dropped
        assert view.content_area(Area(0, 0, 15, 10)).width == 15


class TestFrontmatter:

    def test_frontmatter_starts_collapsed(self):
        view = make_view("---\ntitle: T\ncontext_id: notes\n---\n# H\n\nbody")
        assert view.collapse.is_directly_collapsed(0)
        assert view.render(AREA)[0].text == "▶ --- notes ---"

    def test_heading_at_top_is_not_collapsed(self):
        view = make_view()
        assert not view.collapse.is_directly_collapsed(0)

    def test_frontmatter_collapse_round_trip(self):
        view = make_view('---\ntitle: "A"\ntags: x\n---\nbody')
        collapsed = [row.text for row in view.render(AREA)]
        assert collapsed[0] == "▶ --- frontmatter ---"
        assert not any("title" in text for text in collapsed)

        view.collapse.toggle(0)
        expanded = [row.text for row in view.render(AREA)]
        assert expanded[:4] == ["▼ ---", "  title: A", "  tags: x", "  ---"]

        view.collapse.toggle(0)
        assert [row.text for row in view.render(AREA)] == collapsed

    def test_frontmatter_toggle_survives_rebuild(self):
        view = make_view("---\ntitle: T\n---\nbody")
        view.collapse.expand(0)
        view.invalidate_cache()
        texts = [row.text for row in view.render(AREA)]
        assert "  title: T" in texts


class TestSources:

    def test_reload_picks_up_changes(self, tmp_path: Path):
        path = tmp_path / "doc.md"
        path.write_text("# One\n", encoding="utf-8")
        view = MarkdownView.from_file(path, highlighter=None)
        assert view.render(AREA)[0].text.endswith("One")

        path.write_text("# Two\n", encoding="utf-8")
        assert view.reload_source() == Reloaded(True)
        assert view.render(AREA)[0].text.endswith("Two")
        assert view.reload_source() == Reloaded(False)

    def test_reload_failure_keeps_state(self, tmp_path: Path):
        path = tmp_path / "doc.md"
        path.write_text(DOC, encoding="utf-8")
        view = MarkdownView.from_file(path, highlighter=None)
        view.render(AREA)
        view.collapse.collapse(4)
        before = [row.text for row in view.render(AREA)]

        path.unlink()
        event = view.reload_source()
        assert isinstance(event, ReloadFailed)
        assert event.error
        assert [row.text for row in view.render(AREA)] == before
        assert view.collapse.is_directly_collapsed(4)

    def test_from_file_missing_raises(self, tmp_path: Path):
        with pytest.raises(OSError):
            MarkdownView.from_file(tmp_path / "missing.md")

    def test_string_source_reload_is_noop(self):
        view = make_view()
        assert view.reload_source() == Reloaded(False)

    def test_set_source_string_resets_state(self):
        view = make_view()
        view.collapse.collapse(0)
        view.set_source_string("# Other")
        assert not view.collapse.has_flag(0)
        assert view.scroll.scroll_offset == 0


class TestStatusLine:

    def test_status_for_string_source(self):
        view = make_view()
        assert view.status_text() == " NORMAL  9%/11 "

    def test_status_shows_file_name_and_drag_mode(self, tmp_path: Path):
        path = tmp_path / "notes.md"
        path.write_text("text", encoding="utf-8")
        view = MarkdownView.from_file(path, highlighter=None)
        view.render(AREA)
        view.handle_mouse_event(MouseEvent(MouseKind.DRAG, 0, 0), AREA)
        assert view.status_text() == " DRAG  notes.md  100%/1 "


class RecordingCanvas:
    def __init__(self):
        self.calls = []

    def paint(self, x, y, text, style):
        self.calls.append((x, y, text, style))


def test_paint_blits_rows_and_selection():
    view = make_view()
    view.handle_mouse_event(MouseEvent(MouseKind.DRAG, 0, 2), AREA)
    view.handle_mouse_event(MouseEvent(MouseKind.DRAG, 1, 2), AREA)
    canvas = RecordingCanvas()
    view.paint(canvas, AREA)
    assert (0, 2, "al", "selection") in canvas.calls
    assert (2, 2, "pha", "paragraph") in canvas.calls


def test_paint_draws_minimap_column():
    view = make_view()
    view.set_show_minimap(True)
    canvas = RecordingCanvas()
    view.paint(canvas, AREA)
    minimap_calls = [call for call in canvas.calls if call[3].startswith("minimap")]
    assert len(minimap_calls) == AREA.height
    assert all(call[0] == 30 for call in minimap_calls)
