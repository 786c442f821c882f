"""Render styled lines into word-wrapped rows of styled spans.

Rows carry semantic style keys only (``"heading.2"``, ``"code.keyword"``,
``"list.marker"`` ...). Mapping keys to terminal attributes is up to the
painter.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from .sections import CollapseState
from .styled_line import (
    BULLET_MARKERS,
    FRONTMATTER_SECTION_ID,
    HEADING_ICONS,
    Blockquote,
    CodeBlockBorder,
    CodeBlockBorderKind,
    CodeBlockContent,
    CodeBlockHeader,
    Empty,
    Expandable,
    ExpandToggle,
    Frontmatter,
    FrontmatterEnd,
    FrontmatterField,
    FrontmatterStart,
    Heading,
    HorizontalRule,
    ListItem,
    Paragraph,
    SegmentFormat,
    Span,
    StyledLine,
    TableBorder,
    TableBorderKind,
    TableRow,
    TextSegment,
)

_WORD = re.compile(r"\S+")

BLOCKQUOTE_PREFIX = "▋ "
COLLAPSED_INDICATOR = "▶ "
EXPANDED_INDICATOR = "▼ "

_SEGMENT_STYLES = {
    SegmentFormat.BOLD: "bold",
    SegmentFormat.ITALIC: "italic",
    SegmentFormat.BOLD_ITALIC: "bold_italic",
    SegmentFormat.INLINE_CODE: "code.inline",
    SegmentFormat.LINK: "link",
    SegmentFormat.STRIKETHROUGH: "strikethrough",
    SegmentFormat.HTML: "html",
    SegmentFormat.CHECKBOX: "checkbox",
}

_TABLE_BORDERS = {
    TableBorderKind.TOP: ("┌", "┬", "┐"),
    TableBorderKind.HEADER_SEPARATOR: ("├", "┼", "┤"),
    TableBorderKind.BOTTOM: ("└", "┴", "┘"),
}

_CODE_BORDERS = {
    CodeBlockBorderKind.TOP: "╭",
    CodeBlockBorderKind.HEADER_SEPARATOR: "├",
    CodeBlockBorderKind.BOTTOM: "╰",
}


@dataclass
class ScreenRow:
    """One wrapped screen row and the IR index of the line it came from."""
    spans: list[Span] = field(default_factory=list)
    line_index: int = 0

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


def _wrap_ranges(text: str, width: int) -> list[list[tuple[int, int]]]:
    """Greedy word wrap returning the (start, end) of the words on each row."""
    rows: list[list[tuple[int, int]]] = []
    current: list[tuple[int, int]] = []
    current_len = 0
    for match in _WORD.finditer(text):
        start, end = match.span()
        word_len = end - start
        if not current:
            current = [(start, end)]
            current_len = word_len
        elif current_len + 1 + word_len <= width:
            current.append((start, end))
            current_len += 1 + word_len
        else:
            rows.append(current)
            current = [(start, end)]
            current_len = word_len
    if current:
        rows.append(current)
    return rows


def wrap_text(text: str, width: int) -> list[str]:
    """Word-wrap text to width.

    Splits on whitespace runs and fills rows greedily. A word longer than
    ``width`` is kept whole on its own row. Empty text yields one empty
    row; a width of 0 returns the text unchanged.
    """
    if width == 0:
        return [text]
    rows = _wrap_ranges(text, width)
    if not rows:
        return [""]
    return [" ".join(text[start:end] for start, end in row) for row in rows]


def _compress(chars: list[tuple[str, str]]) -> list[Span]:
    spans: list[Span] = []
    for ch, style in chars:
        if spans and spans[-1].style == style:
            spans[-1].text += ch
        else:
            spans.append(Span(ch, style))
    return spans


def wrap_segments(segments: list[TextSegment], width: int, base_style: str) -> list[list[Span]]:
    """Word-wrap inline segments, keeping each character's style."""
    text = ""
    styles: list[str] = []
    for segment in segments:
        shown = segment.display_text()
        text += shown
        styles.extend([_SEGMENT_STYLES.get(segment.fmt, base_style)] * len(shown))

    if width == 0:
        return [_compress(list(zip(text, styles)))]
    rows = _wrap_ranges(text, width)
    if not rows:
        return [[]]

    wrapped = []
    for row in rows:
        chars: list[tuple[str, str]] = []
        for i, (start, end) in enumerate(row):
            if i > 0:
                # The joining space keeps the style of the whitespace it replaces
                prev_end = row[i - 1][1]
                chars.append((" ", styles[prev_end]))
            chars.extend(zip(text[start:end], styles[start:end]))
        wrapped.append(_compress(chars))
    return wrapped


def _row(*spans: Span) -> list[Span]:
    return [span for span in spans if span.text]


def _prefixed(first_prefix: list[Span], rest_prefix: list[Span],
              rows: list[list[Span]]) -> list[list[Span]]:
    return [_row(*(first_prefix if i == 0 else rest_prefix), *row) for i, row in enumerate(rows)]


def _render_heading(line: Heading, width: int, collapse: CollapseState) -> list[list[Span]]:
    level = min(max(line.level, 1), 6)
    own_flag = line.section_id is not None and collapse.is_directly_collapsed(line.section_id)
    indicator = COLLAPSED_INDICATOR if own_flag else EXPANDED_INDICATOR
    icon = HEADING_ICONS[level - 1]
    prefix_len = len(indicator) + len(icon)
    style = f"heading.{level}"
    rows = wrap_text(line.text, max(0, width - prefix_len)) if width > prefix_len else [line.text]
    result = []
    for i, text in enumerate(rows):
        if i == 0:
            result.append(_row(Span(indicator, "heading.indicator"),
                               Span(icon, f"{style}.icon"),
                               Span(text, style)))
        else:
            result.append(_row(Span(" " * prefix_len, style), Span(text, style)))
    return result


def _render_list_item(line: ListItem, width: int) -> list[list[Span]]:
    indent = "  " * line.depth
    if line.ordered:
        marker = f"{line.number if line.number is not None else 1}. "
    else:
        marker = BULLET_MARKERS[line.depth % len(BULLET_MARKERS)]
    prefix_len = len(indent) + len(marker)
    rows = wrap_segments(line.segments, max(0, width - prefix_len), "list")
    return _prefixed([Span(indent, "list"), Span(marker, "list.marker")],
                     [Span(" " * prefix_len, "list")], rows)


def _render_frontmatter_summary(context_id: Optional[str]) -> list[Span]:
    return _row(Span(COLLAPSED_INDICATOR, "frontmatter.indicator"),
                Span("---", "frontmatter.border"),
                Span(" "),
                Span(context_id or "frontmatter", "frontmatter.key"),
                Span(" "),
                Span("---", "frontmatter.border"))


def _render_frontmatter_open() -> list[Span]:
    return _row(Span(EXPANDED_INDICATOR, "frontmatter.indicator"), Span("---", "frontmatter.border"))


def _render_frontmatter_field(key: str, value: str) -> list[Span]:
    return _row(Span("  "), Span(f"{key}: ", "frontmatter.key"), Span(value, "frontmatter.value"))


def _render_frontmatter_close() -> list[Span]:
    return _row(Span("  "), Span("---", "frontmatter.border"))


def flatten_expandable(line: Expandable, collapse: CollapseState) -> list[StyledLine]:
    """Lines an expandable block currently shows, including its toggle row."""
    max_lines = collapse.get_max_lines(line.content_id)
    collapsed = collapse.is_expandable_collapsed(line.content_id)
    total = len(line.lines)
    if total <= max_lines:
        return list(line.lines)
    shown = line.lines[:max_lines] if collapsed else list(line.lines)
    toggle = ExpandToggle(content_id=line.content_id,
                          expanded=not collapsed,
                          hidden_count=total - max_lines if collapsed else 0,
                          section_id=line.section_id)
    return shown + [toggle]


def render_styled_line(line: StyledLine, width: int, collapse: CollapseState,
                       show_line_numbers: bool = False) -> list[list[Span]]:
    """Render one styled line into rows of spans.

    Always returns at least one row.
    """
    if isinstance(line, Heading):
        return _render_heading(line, width, collapse)
    if isinstance(line, Paragraph):
        return wrap_segments(line.segments, width, "paragraph")
    if isinstance(line, ListItem):
        return _render_list_item(line, width)
    if isinstance(line, Blockquote):
        prefix = BLOCKQUOTE_PREFIX * max(1, line.depth)
        rows = wrap_segments(line.segments, max(0, width - len(prefix)), "blockquote")
        bar = [Span(prefix, "blockquote.bar")]
        return _prefixed(bar, bar, rows)
    if isinstance(line, CodeBlockHeader):
        return [_row(Span("│ ", "code.border"), Span(line.language or "text", "code.language"))]
    if isinstance(line, CodeBlockContent):
        spans = [Span("│ ", "code.border")]
        if show_line_numbers:
            spans.append(Span(f"{line.line_number:>3} ", "code.line_number"))
        spans.extend(Span(span.text, span.style) for span in line.highlighted)
        if not line.highlighted:
            spans.append(Span(line.content, "code"))
        return [_row(*spans)]
    if isinstance(line, CodeBlockBorder):
        return [[Span(_CODE_BORDERS[line.border] + "─" * max(0, width - 1), "code.border")]]
    if isinstance(line, TableRow):
        style = "table.header" if line.is_header else "table.cell"
        spans = [Span("│ ", "table.border")]
        for i, cell in enumerate(line.cells):
            if i > 0:
                spans.append(Span(" │ ", "table.border"))
            spans.append(Span(cell, style))
        spans.append(Span(" │", "table.border"))
        return [_row(*spans)]
    if isinstance(line, TableBorder):
        left, mid, right = _TABLE_BORDERS[line.border]
        text = left + mid.join("─" * (w + 2) for w in line.widths) + right
        return [[Span(text, "table.border")]]
    if isinstance(line, HorizontalRule):
        return [_row(Span("─" * width, "rule"))]
    if isinstance(line, Empty):
        return [[]]
    if isinstance(line, Frontmatter):
        if collapse.is_collapsed(FRONTMATTER_SECTION_ID):
            return [_render_frontmatter_summary(line.context_id)]
        rows = [_render_frontmatter_open()]
        rows.extend(_render_frontmatter_field(key, value) for key, value in line.fields)
        rows.append(_render_frontmatter_close())
        return rows
    if isinstance(line, FrontmatterStart):
        if collapse.is_collapsed(FRONTMATTER_SECTION_ID):
            return [_render_frontmatter_summary(line.context_id)]
        return [_render_frontmatter_open()]
    if isinstance(line, FrontmatterField):
        return [_render_frontmatter_field(line.key, line.value)]
    if isinstance(line, FrontmatterEnd):
        return [_render_frontmatter_close()]
    if isinstance(line, ExpandToggle):
        if line.expanded:
            label = "▲ Show less"
        else:
            label = f"▼ Show {line.hidden_count} more line{'s' if line.hidden_count != 1 else ''}"
        return [[Span(label, "expand.toggle")]]
    if isinstance(line, Expandable):
        rows = []
        for inner in flatten_expandable(line, collapse):
            rows.extend(render_styled_line(inner, width, collapse, show_line_numbers))
        return rows or [[]]
    return [[]]
