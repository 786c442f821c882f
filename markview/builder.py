"""Build the styled-line IR from markdown text.

The markdown grammar itself is handled by markdown-it-py; this module walks
its token stream and turns block and inline tokens into ``StyledLine``
records, registering a collapsible section for every heading on the way.
Building never fails: any input, including empty or malformed text,
produces at least one line.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from markdown_it import MarkdownIt

from .highlight import highlight
from .sections import CollapseState, SectionHierarchy
from .styled_line import (
    FRONTMATTER_SECTION_ID,
    Blockquote,
    CodeBlockBorder,
    CodeBlockBorderKind,
    CodeBlockContent,
    CodeBlockHeader,
    ColumnAlignment,
    Empty,
    Expandable,
    Frontmatter,
    FrontmatterEnd,
    FrontmatterField,
    FrontmatterStart,
    Heading,
    HorizontalRule,
    ListItem,
    Paragraph,
    Span,
    StyledLine,
    TableBorder,
    TableBorderKind,
    TableRow,
    SegmentFormat,
    TextSegment,
    segments_to_plain_text,
)

Highlighter = Callable[[str, str], list[Span]]

_TASK_MARKERS = {"[ ] ": False, "[x] ": True, "[X] ": True}


def _make_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable(["table", "strikethrough"])


@dataclass
class Document:
    """Result of a build: the IR and the section table built alongside it."""
    lines: list[StyledLine]
    hierarchy: SectionHierarchy
    frontmatter: Optional[list[tuple[str, str]]] = None

    @property
    def has_frontmatter(self) -> bool:
        return bool(self.frontmatter)


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_frontmatter(text: str) -> tuple[Optional[list[tuple[str, str]]], str]:
    """Split a leading ``---`` delimited block off the document.

    Returns:
        (fields, body). ``fields`` is None when there is no frontmatter,
        in which case ``body`` is the unchanged text.
    """
    stripped = text.lstrip()
    if not stripped.startswith("---"):
        return None, text
    rest = stripped[3:]
    end = rest.find("\n---")
    if end == -1:
        return None, text

    fields = []
    for raw_line in rest[:end].splitlines():
        line = raw_line.strip()
        if not line or ":" not in line:
            continue
        key, _, value = line.partition(":")
        key = key.strip()
        if not key:
            continue
        fields.append((key, _strip_quotes(value.strip())))
    if not fields:
        return None, text

    after = rest[end + len("\n---"):]
    newline = after.find("\n")
    body = after[newline + 1:] if newline != -1 else ""
    return fields, body


def _alignment_from_style(style: Optional[str]) -> ColumnAlignment:
    if not style:
        return ColumnAlignment.NONE
    if "right" in style:
        return ColumnAlignment.RIGHT
    if "center" in style:
        return ColumnAlignment.CENTER
    if "left" in style:
        return ColumnAlignment.LEFT
    return ColumnAlignment.NONE


def pad_cell(text: str, width: int, alignment: ColumnAlignment) -> str:
    """Pad a table cell to ``width`` according to its column alignment."""
    gap = max(0, width - len(text))
    if alignment == ColumnAlignment.RIGHT:
        return " " * gap + text
    if alignment == ColumnAlignment.CENTER:
        left = gap // 2
        return " " * left + text + " " * (gap - left)
    return text + " " * gap


def inline_segments(children) -> list[Optional[TextSegment]]:
    """Convert inline child tokens to segments.

    A hard line break is returned as ``None`` so the caller can decide
    whether to split the line there.
    """
    segments: list[Optional[TextSegment]] = []
    bold = italic = strike = 0
    links: list[str] = []

    def text_format() -> tuple[SegmentFormat, Optional[str]]:
        if links:
            return SegmentFormat.LINK, links[-1]
        if strike:
            return SegmentFormat.STRIKETHROUGH, None
        if bold and italic:
            return SegmentFormat.BOLD_ITALIC, None
        if bold:
            return SegmentFormat.BOLD, None
        if italic:
            return SegmentFormat.ITALIC, None
        return SegmentFormat.PLAIN, None

    for token in children or []:
        kind = token.type
        if kind == "text":
            if token.content:
                fmt, url = text_format()
                segments.append(TextSegment(token.content, fmt, url=url))
        elif kind == "code_inline":
            segments.append(TextSegment(token.content, SegmentFormat.INLINE_CODE))
        elif kind == "softbreak":
            segments.append(TextSegment(" "))
        elif kind == "hardbreak":
            segments.append(None)
        elif kind == "strong_open":
            bold += 1
        elif kind == "strong_close":
            bold = max(0, bold - 1)
        elif kind == "em_open":
            italic += 1
        elif kind == "em_close":
            italic = max(0, italic - 1)
        elif kind == "s_open":
            strike += 1
        elif kind == "s_close":
            strike = max(0, strike - 1)
        elif kind == "link_open":
            links.append(token.attrGet("href") or "")
        elif kind == "link_close":
            if links:
                links.pop()
        elif kind == "image":
            alt = token.content or "".join(child.content for child in token.children or [])
            segments.append(TextSegment(alt, SegmentFormat.LINK, url=token.attrGet("src") or ""))
        elif kind == "html_inline":
            segments.append(TextSegment(token.content, SegmentFormat.HTML))
    return segments


def _split_task_marker(segments: list[TextSegment]) -> list[TextSegment]:
    if not segments or segments[0].fmt != SegmentFormat.PLAIN:
        return segments
    first = segments[0]
    for marker, checked in _TASK_MARKERS.items():
        if first.text.startswith(marker):
            rest = first.text[len(marker):]
            head = [TextSegment("", SegmentFormat.CHECKBOX, checked=checked)]
            if rest:
                head.append(TextSegment(rest))
            return head + segments[1:]
    return segments


@dataclass
class _ListLevel:
    ordered: bool
    counter: int
    item_emitted: bool = False


@dataclass
class _TableBuffer:
    rows: list[tuple[list[str], bool]] = field(default_factory=list)
    alignments: list[ColumnAlignment] = field(default_factory=list)
    current: Optional[list[str]] = None
    in_head: bool = False


class _LineBuilder:
    """Walks a markdown-it token stream and accumulates styled lines."""

    def __init__(self, highlighter: Optional[Highlighter], fold_code_over: Optional[int],
                 collapse: Optional[CollapseState] = None):
        self.lines: list[StyledLine] = []
        self.collapse = collapse if collapse is not None else CollapseState()
        self.hierarchy = self.collapse.hierarchy
        self.highlighter = highlighter
        self.fold_code_over = fold_code_over
        self.section: Optional[int] = None
        self.heading_stack: list[tuple[int, int]] = []  # (level, section_id)
        self.heading_level: Optional[int] = None
        self.segments: list[TextSegment] = []
        self.list_stack: list[_ListLevel] = []
        self.quote_depth = 0
        self.table: Optional[_TableBuffer] = None

    # Output helpers

    def push(self, line: StyledLine) -> None:
        if line.section_id is None:
            line.section_id = self.section
        self.lines.append(line)

    def spacer(self) -> None:
        if self.lines and not isinstance(self.lines[-1], Empty):
            self.push(Empty())

    def flush_paragraph(self) -> None:
        """Emit accumulated segments as a paragraph or blockquote line."""
        if not self.segments:
            return
        segments, self.segments = self.segments, []
        if self.quote_depth:
            self.push(Blockquote(depth=self.quote_depth, segments=segments))
        else:
            self.push(Paragraph(segments=segments))

    def flush_list_item(self) -> None:
        level = self.list_stack[-1]
        if level.item_emitted:
            return
        segments, self.segments = _split_task_marker(self.segments), []
        self.push(ListItem(
            depth=len(self.list_stack) - 1,
            ordered=level.ordered,
            number=level.counter if level.ordered else None,
            segments=segments,
        ))
        level.item_emitted = True

    # Frontmatter

    def add_frontmatter(self, fields: list[tuple[str, str]], compact: bool) -> None:
        sid = FRONTMATTER_SECTION_ID
        if compact:
            self.push(Frontmatter(fields=fields, section_id=sid))
        else:
            context_id = next((value for key, value in fields if key == "context_id"), None)
            self.push(FrontmatterStart(context_id=context_id, section_id=sid))
            for key, value in fields:
                self.push(FrontmatterField(key=key, value=value, section_id=sid))
            self.push(FrontmatterEnd(section_id=sid))
        self.spacer()

    # Token dispatch

    def feed(self, tokens) -> None:
        for token in tokens:
            handler = getattr(self, "_on_" + token.type, None)
            if handler is not None:
                handler(token)

    def _on_heading_open(self, token) -> None:
        self.flush_paragraph()
        self.heading_level = int(token.tag[1:])

    def _on_heading_close(self, token) -> None:
        level = self.heading_level or 1
        self.heading_level = None
        text = segments_to_plain_text(self.segments)
        self.segments = []

        section_id = len(self.lines)
        while self.heading_stack and self.heading_stack[-1][0] >= level:
            self.heading_stack.pop()
        parent = self.heading_stack[-1][1] if self.heading_stack else None
        self.heading_stack.append((level, section_id))
        self.collapse.register_section(section_id, level, parent)
        self.section = section_id

        self.push(Heading(level=level, text=text, collapsed=False, section_id=section_id))
        self.spacer()

    def _on_paragraph_open(self, token) -> None:
        if self.list_stack and self.segments and not self.list_stack[-1].item_emitted:
            # Second paragraph of a loose list item joins the first
            self.segments.append(TextSegment(" "))

    def _on_paragraph_close(self, token) -> None:
        if self.list_stack:
            return
        was_quote = self.quote_depth > 0
        self.flush_paragraph()
        if not was_quote:
            self.spacer()

    def _on_inline(self, token) -> None:
        if self.table is not None and self.table.current is not None:
            self.table.current.append(segments_to_plain_text(
                [seg for seg in inline_segments(token.children) if seg is not None]))
            return
        splits = self.heading_level is None and not self.list_stack
        for segment in inline_segments(token.children):
            if segment is None:
                if splits:
                    self.flush_paragraph()
                else:
                    self.segments.append(TextSegment(" "))
            else:
                self.segments.append(segment)

    def _on_html_block(self, token) -> None:
        self.flush_paragraph()
        for raw in token.content.rstrip("\n").split("\n"):
            self.push(Paragraph(segments=[TextSegment(raw, SegmentFormat.HTML)]))
        self.spacer()

    def _on_hr(self, token) -> None:
        self.flush_paragraph()
        self.push(HorizontalRule())
        self.spacer()

    # Blockquotes

    def _on_blockquote_open(self, token) -> None:
        if self.list_stack:
            self.flush_list_item()
        else:
            self.flush_paragraph()
        self.quote_depth += 1

    def _on_blockquote_close(self, token) -> None:
        self.flush_paragraph()
        self.quote_depth = max(0, self.quote_depth - 1)
        if not self.quote_depth and not self.list_stack:
            self.spacer()

    # Lists

    def _open_list(self, ordered: bool, start: int) -> None:
        if self.list_stack:
            # The parent item's text precedes its nested items
            self.flush_list_item()
        else:
            self.flush_paragraph()
        self.list_stack.append(_ListLevel(ordered, start))

    def _close_list(self) -> None:
        if self.list_stack:
            self.list_stack.pop()
        if not self.list_stack:
            self.spacer()

    def _on_bullet_list_open(self, token) -> None:
        self._open_list(False, 1)

    def _on_bullet_list_close(self, token) -> None:
        self._close_list()

    def _on_ordered_list_open(self, token) -> None:
        start = token.attrGet("start")
        self._open_list(True, int(start) if start is not None else 1)

    def _on_ordered_list_close(self, token) -> None:
        self._close_list()

    def _on_list_item_open(self, token) -> None:
        if self.list_stack:
            self.list_stack[-1].item_emitted = False
            self.segments = []

    def _on_list_item_close(self, token) -> None:
        if not self.list_stack:
            return
        level = self.list_stack[-1]
        if level.item_emitted and self.segments:
            # Text that followed a nested list inside the same item
            segments, self.segments = self.segments, []
            self.push(Paragraph(segments=segments))
        self.flush_list_item()
        level.counter += 1

    # Code blocks

    def _on_fence(self, token) -> None:
        language = token.info.strip().split()[0] if token.info.strip() else ""
        self.add_code_block(token.content, language)

    def _on_code_block(self, token) -> None:
        self.add_code_block(token.content, "")

    def add_code_block(self, content: str, language: str) -> None:
        if self.list_stack:
            self.flush_list_item()
        else:
            self.flush_paragraph()

        framed = False

        def frame() -> None:
            nonlocal framed
            if not framed:
                self.push(CodeBlockBorder(border=CodeBlockBorderKind.TOP))
                self.push(CodeBlockHeader(language=language))
                self.push(CodeBlockBorder(border=CodeBlockBorderKind.HEADER_SEPARATOR))
                framed = True

        body: list[StyledLine] = []
        source_lines = content.split("\n")
        if source_lines and source_lines[-1] == "":
            source_lines.pop()
        for number, source_line in enumerate(source_lines, start=1):
            frame()
            spans = self.highlighter(source_line, language) if self.highlighter else []
            body.append(CodeBlockContent(
                content=source_line,
                highlighted=spans,
                line_number=number,
                section_id=self.section,
            ))
        frame()

        if self.fold_code_over is not None and len(body) > self.fold_code_over:
            self.push(Expandable(content_id=f"code-{len(self.lines)}", lines=body))
        else:
            for line in body:
                self.push(line)
        self.push(CodeBlockBorder(border=CodeBlockBorderKind.BOTTOM))
        self.spacer()

    # Tables

    def _on_table_open(self, token) -> None:
        self.flush_paragraph()
        self.table = _TableBuffer()

    def _on_thead_open(self, token) -> None:
        if self.table is not None:
            self.table.in_head = True

    def _on_thead_close(self, token) -> None:
        if self.table is not None:
            self.table.in_head = False

    def _on_tr_open(self, token) -> None:
        if self.table is not None:
            self.table.current = []

    def _on_th_open(self, token) -> None:
        if self.table is not None:
            self.table.alignments.append(_alignment_from_style(token.attrGet("style")))

    def _on_tr_close(self, token) -> None:
        if self.table is not None and self.table.current is not None:
            self.table.rows.append((self.table.current, self.table.in_head))
            self.table.current = None

    def _on_table_close(self, token) -> None:
        table, self.table = self.table, None
        if table is None or not table.rows:
            return
        columns = max(len(cells) for cells, _ in table.rows)
        alignments = table.alignments + [ColumnAlignment.NONE] * (columns - len(table.alignments))
        widths = [0] * columns
        for cells, _ in table.rows:
            for i, cell in enumerate(cells):
                widths[i] = max(widths[i], len(cell))

        self.push(TableBorder(border=TableBorderKind.TOP, widths=list(widths)))
        header_done = False
        for cells, is_header in table.rows:
            if not is_header and not header_done:
                self.push(TableBorder(border=TableBorderKind.HEADER_SEPARATOR, widths=list(widths)))
                header_done = True
            cells = cells + [""] * (columns - len(cells))
            padded = [pad_cell(cell, widths[i], alignments[i]) for i, cell in enumerate(cells)]
            self.push(TableRow(cells=padded, is_header=is_header, alignments=list(alignments)))
        self.push(TableBorder(border=TableBorderKind.BOTTOM, widths=list(widths)))
        self.spacer()

    # Finish

    def finish(self) -> list[StyledLine]:
        self.flush_paragraph()
        while self.lines and isinstance(self.lines[-1], Empty):
            self.lines.pop()
        if not self.lines:
            self.lines.append(Empty())
        return self.lines


def build_document(text: str, highlighter: Optional[Highlighter] = highlight,
                   compact_frontmatter: bool = False,
                   fold_code_over: Optional[int] = None,
                   collapse: Optional[CollapseState] = None) -> Document:
    """Build the IR and section hierarchy for a markdown document.

    Args:
        text: Markdown source
        highlighter: ``highlight(line, language)`` callable for code lines,
            or None to skip highlighting
        compact_frontmatter: Emit frontmatter as one ``Frontmatter`` line
            instead of start/field/end lines
        fold_code_over: Wrap code blocks longer than this many lines in an
            ``Expandable`` block
        collapse: Collapse state whose hierarchy is rebuilt from the
            headings; its collapse flags are kept

    Returns:
        Document with the styled lines and the section hierarchy
    """
    fields, body = parse_frontmatter(text)
    if collapse is not None:
        collapse.clear_hierarchy()
    builder = _LineBuilder(highlighter, fold_code_over, collapse)
    if fields:
        builder.add_frontmatter(fields, compact_frontmatter)
    builder.feed(_make_parser().parse(body))
    return Document(builder.finish(), builder.hierarchy, fields)


def build_styled_lines(text: str, **options) -> list[StyledLine]:
    """Build only the styled-line IR for ``text``."""
    return build_document(text, **options).lines
