"""The interactive markdown view.

``MarkdownView`` owns every piece of state for one document: the source,
the cached IR and projection, collapse, scroll and selection state, and
the pending-click tracker. Host applications feed it mouse and key events
plus a periodic ``check_pending_click`` tick, and blit ``render`` output
onto their own grid.
"""

import logging
import math
import time
from typing import Callable, Optional

from .builder import Document, Highlighter, build_document
from .clicks import DoubleClickState
from .commands import CommandRegistry
from .clipboard import ClipboardError, set_clipboard_text
from .constants import ViewerConstants
from .events import (
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
    Reloaded,
    ReloadFailed,
    Scrolled,
    SelectionEnded,
    SelectionStarted,
    ViewEvent,
    ViewMode,
)
from .highlight import highlight
from .minimap import Minimap, minimap_fits
from .projector import Projection, project, toggle_line
from .render import ScreenRow
from .scroll import ScrollState
from .sections import CollapseState
from .selection import SelectionState
from .source import MarkdownSource
from .styled_line import FRONTMATTER_SECTION_ID, Heading, Span

logger = logging.getLogger(__name__)


def split_for_selection(spans: list[Span], selected: Optional[tuple[int, int]]) -> list[Span]:
    """Restyle the columns ``[start, end)`` of a row as ``"selection"``."""
    if not selected:
        return spans
    start, end = selected
    result = []
    col = 0
    for span in spans:
        span_end = col + len(span.text)
        lo, hi = max(start, col), min(end, span_end)
        if lo >= hi:
            result.append(span)
        else:
            if lo > col:
                result.append(Span(span.text[:lo - col], span.style))
            result.append(Span(span.text[lo - col:hi - col], "selection"))
            if hi < span_end:
                result.append(Span(span.text[hi - col:], span.style))
        col = span_end
    return result


class MarkdownView:
    """Scrollable, collapsible, selectable view of one markdown document."""

    def __init__(self, source: Optional[MarkdownSource] = None,
                 highlighter: Optional[Highlighter] = highlight,
                 compact_frontmatter: bool = False,
                 fold_code_over: Optional[int] = None,
                 clipboard: Callable[[str], None] = set_clipboard_text,
                 clock: Callable[[], float] = time.monotonic):
        self.source = source if source is not None else MarkdownSource.from_string("")
        self.highlighter = highlighter
        self.compact_frontmatter = compact_frontmatter
        self.fold_code_over = fold_code_over
        self.clipboard = clipboard

        self.collapse = CollapseState()
        self.scroll = ScrollState()
        self.selection = SelectionState()
        self.double_click = DoubleClickState(clock=clock)
        self.mode = ViewMode.NORMAL

        self.show_line_numbers = False
        self.show_minimap = False
        self.minimap_width = ViewerConstants.MINIMAP_WIDTH

        # Rows of the last render; a drag selection freezes these
        self.rendered_lines: list[str] = []
        self._document: Optional[Document] = None
        self._projection: Optional[Projection] = None
        self._projection_key: Optional[tuple] = None

        self.commands = CommandRegistry()

    # Sources

    @classmethod
    def from_string(cls, text: str, **options) -> "MarkdownView":
        return cls(MarkdownSource.from_string(text), **options)

    @classmethod
    def from_file(cls, path, **options) -> "MarkdownView":
        return cls(MarkdownSource.from_file(path), **options)

    def set_source(self, source: MarkdownSource) -> None:
        self.source = source
        self.end_selection()
        self.rendered_lines = []
        self.collapse.reset()
        self.invalidate_cache()
        self.scroll.scroll_to_top()

    def set_source_string(self, text: str) -> None:
        self.set_source(MarkdownSource.from_string(text))

    def set_source_file(self, path) -> None:
        """Switch to a file source.

        Raises:
            OSError: If the file cannot be read; the current source is kept
        """
        self.set_source(MarkdownSource.from_file(path))

    def set_content(self, text: str) -> bool:
        """Replace the document text; returns True if it changed."""
        changed = self.source.set_content(text)
        if changed:
            self.invalidate_cache()
        return changed

    def reload_source(self) -> ViewEvent:
        """Re-read a file source.

        A failed read keeps the previous content and all caches.
        """
        try:
            changed = self.source.reload()
        except OSError as e:
            logger.warning(f"Reload of {self.source.path} failed: {e}")
            return ReloadFailed(str(e))
        if changed:
            self.invalidate_cache()
        return Reloaded(changed)

    # Caches

    def invalidate_cache(self) -> None:
        """Drop the IR, hierarchy and projection; the next use rebuilds them."""
        self._document = None
        self.invalidate_render_cache()

    def invalidate_render_cache(self) -> None:
        self._projection = None
        self._projection_key = None

    def document(self) -> Document:
        if self._document is None:
            document = build_document(self.source.content,
                                      highlighter=self.highlighter,
                                      compact_frontmatter=self.compact_frontmatter,
                                      fold_code_over=self.fold_code_over,
                                      collapse=self.collapse)
            if document.has_frontmatter and not self.collapse.has_flag(FRONTMATTER_SECTION_ID):
                self.collapse.collapse(FRONTMATTER_SECTION_ID)
            self._document = document
        return self._document

    def projection(self, width: int) -> Projection:
        document = self.document()
        key = (width, self.collapse.version, self.show_line_numbers)
        if self._projection is None or self._projection_key != key:
            self._projection = project(document.lines, self.collapse, width, self.show_line_numbers)
            self._projection_key = key
        return self._projection

    # Settings

    def set_show_line_numbers(self, enabled: bool) -> None:
        if enabled != self.show_line_numbers:
            self.show_line_numbers = enabled
            self.invalidate_cache()

    def set_show_minimap(self, enabled: bool) -> None:
        if enabled != self.show_minimap:
            self.show_minimap = enabled
            self.invalidate_render_cache()

    # Layout

    def minimap_visible(self, area: Area) -> bool:
        return self.show_minimap and minimap_fits(area.width, self.minimap_width)

    def content_area(self, area: Area) -> Area:
        if self.minimap_visible(area):
            return Area(area.x, area.y, area.width - self.minimap_width, area.height)
        return area

    def _sync(self, area: Area) -> Projection:
        """Bring scroll bounds in line with the projection for ``area``."""
        content = self.content_area(area)
        projection = self.projection(content.width)
        self.scroll.update_viewport(content.height)
        self.scroll.update_total_lines(projection.row_count)
        return projection

    def render(self, area: Area) -> list[ScreenRow]:
        """Rows visible in ``area`` at the current scroll offset."""
        projection = self._sync(area)
        self.rendered_lines = projection.texts()
        return projection.rows_slice(self.scroll.scroll_offset, self.content_area(area).height)

    def minimap(self, area: Area) -> Minimap:
        """Minimap of the source with the viewport mapped onto source lines."""
        projection = self._sync(area)
        source_lines = self.source.line_count()
        rows = max(projection.row_count, 1)
        start = self.scroll.scroll_offset * source_lines // rows
        end = math.ceil((self.scroll.scroll_offset + self.scroll.viewport_height) * source_lines / rows)
        return Minimap(self.source.content, self.minimap_width).viewport(start, min(end, source_lines), source_lines)

    def paint(self, canvas, area: Area) -> None:
        """Blit the view onto any object with ``paint(x, y, text, style)``."""
        rows = self.render(area)
        content = self.content_area(area)
        ranges = self.selection.selection_ranges(self.scroll.scroll_offset, content.height)
        for rel_y in range(content.height):
            y = area.y + rel_y
            canvas.paint(area.x, y, " " * content.width, "text")
            if rel_y >= len(rows):
                continue
            x = area.x
            for span in split_for_selection(rows[rel_y].spans, ranges[rel_y]):
                text = span.text[:max(0, area.x + content.width - x)]
                if text:
                    canvas.paint(x, y, text, span.style)
                x += len(span.text)
        if self.minimap_visible(area):
            minimap = self.minimap(area)
            x = area.x + content.width
            for rel_y, (glyphs, in_view) in enumerate(minimap.render_rows(area.height)):
                canvas.paint(x, area.y + rel_y, glyphs, "minimap.viewport" if in_view else "minimap")

    # Selection

    def end_selection(self) -> None:
        self.selection.exit()
        self.mode = ViewMode.NORMAL

    def copy_selection(self) -> ViewEvent:
        if not (self.selection.is_active() and self.selection.has_selection()):
            return NoEvent()
        text = self.selection.get_selected_text()
        if not text:
            return NoEvent()
        try:
            self.clipboard(text)
        except ClipboardError as e:
            return CopyFailed(str(e))
        return Copied(text)

    # Mouse

    def handle_mouse_event(self, event: MouseEvent, area: Area) -> ViewEvent:
        if not area.contains(event.column, event.row):
            if self.selection.is_active():
                self.end_selection()
                return SelectionEnded()
            return NoEvent()

        projection = self._sync(area)
        relative_y = event.row - area.y
        relative_x = event.column - area.x
        document_y = relative_y + self.scroll.scroll_offset
        left = event.button == MouseButton.LEFT

        if event.kind == MouseKind.DOWN and left:
            if self.selection.is_active():
                self.end_selection()
            if self.double_click.process_click(event.column, event.row):
                info = projection.resolve(document_y)
                if info is not None:
                    return DoubleClick(info.line_number, info.line_kind, info.content)
            # Single-click actions wait for check_pending_click so the
            # content does not shift between the clicks of a double click
            return NoEvent()

        if event.kind == MouseKind.DRAG and left:
            result: ViewEvent = NoEvent()
            if not self.selection.is_active():
                self.double_click.clear_pending()
                # Freeze what is on screen, not a rebuild of changed content
                frozen = self.rendered_lines or projection.texts()
                self.selection.enter(relative_x, document_y, frozen,
                                     self.content_area(area).width)
                self.mode = ViewMode.DRAG
                result = SelectionStarted()
            self.selection.update_cursor(relative_x, document_y)
            return result

        if event.kind == MouseKind.UP and left:
            if self.mode == ViewMode.DRAG:
                self.mode = ViewMode.NORMAL
            return self.copy_selection()

        if event.kind == MouseKind.SCROLL_UP:
            old = self.scroll.scroll_offset
            self.scroll.scroll_up(ViewerConstants.SCROLL_STEP)
            return Scrolled(self.scroll.scroll_offset, -(old - self.scroll.scroll_offset))

        if event.kind == MouseKind.SCROLL_DOWN:
            old = self.scroll.scroll_offset
            self.scroll.scroll_down(ViewerConstants.SCROLL_STEP)
            return Scrolled(self.scroll.scroll_offset, self.scroll.scroll_offset - old)

        return NoEvent()

    def check_pending_click(self, area: Area, now: Optional[float] = None) -> ViewEvent:
        """Run the deferred single-click action once the double-click window closes."""
        released = self.double_click.check_pending_timeout(now)
        if released is None:
            return NoEvent()
        _, y = released
        projection = self._sync(area)
        relative_y = max(0, y - area.y)
        document_y = self.scroll.scroll_offset + relative_y
        clicked_line = document_y + 1
        if clicked_line <= self.scroll.total_lines:
            self.scroll.set_current_line(clicked_line)

        entry = projection.entry_at_row(document_y)
        if entry is not None and toggle_line(entry.line, self.collapse):
            self.invalidate_render_cache()
            line = entry.line
            if isinstance(line, Heading):
                return HeadingToggled(line.level, line.text,
                                      self.collapse.is_directly_collapsed(line.section_id))
        return FocusedLine(clicked_line)

    # Keyboard and collapse helpers

    def handle_key_event(self, key_event, area: Optional[Area] = None) -> ViewEvent:
        if area is not None:
            self._sync(area)
        return self.commands.execute(self, key_event)

    def toggle_current_line(self) -> Optional[Heading]:
        """Toggle the collapsible line under ``current_line``, if any."""
        if self._projection is None:
            return None
        entry = self._projection.entry_at_row(self.scroll.current_line - 1)
        if entry is None or not toggle_line(entry.line, self.collapse):
            return None
        self.invalidate_render_cache()
        return entry.line if isinstance(entry.line, Heading) else None

    def collapse_all(self) -> None:
        self.document()
        self.collapse.collapse_all()
        self.invalidate_render_cache()

    def expand_all(self) -> None:
        self.document()
        self.collapse.expand_all()
        self.invalidate_render_cache()

    # Status line

    def status_segments(self) -> list[Span]:
        if self.mode == ViewMode.DRAG:
            spans = [Span(ViewerConstants.MODE_DRAG_LABEL, "status.mode.drag")]
        else:
            spans = [Span(ViewerConstants.MODE_NORMAL_LABEL, "status.mode.normal")]
        if self.source.path is not None:
            spans.append(Span(f" {self.source.path.name} ", "status.file"))
        total = max(self.scroll.total_lines, 1)
        percentage = self.scroll.current_line * 100 // total
        spans.append(Span(f" {percentage}%/{total} ", "status.position"))
        return spans

    def status_text(self) -> str:
        return "".join(span.text for span in self.status_segments())
