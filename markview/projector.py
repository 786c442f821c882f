"""Project the styled-line IR onto visible, wrapped screen rows.

A projection keeps a reverse index from every row back to the logical line
that produced it, so a document-space row (``scroll_offset + relative_y``)
resolves to the IR line under the pointer.
"""

from dataclasses import dataclass, field
from typing import Optional

from .render import ScreenRow, flatten_expandable, render_styled_line
from .sections import CollapseState
from .styled_line import (
    FRONTMATTER_SECTION_ID,
    Blockquote,
    CodeBlockBorder,
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
    StyledLine,
    TableBorder,
    TableRow,
    segments_to_plain_text,
)


@dataclass
class ProjectedLine:
    """A visible logical line and the rows it occupies."""
    index: int  # IR index; children of an expandable block share its index
    logical_number: int  # 1-based position among visible logical lines
    line: StyledLine
    first_row: int
    row_count: int


@dataclass
class LineInfo:
    line_number: int
    line_kind: str
    content: str


def should_render_line(line: StyledLine, collapse: CollapseState) -> bool:
    """Whether a line survives the collapse filter.

    Headings are hidden only by collapsed ancestors, never by their own
    flag. The frontmatter summary line is always visible since it is the
    toggle affordance.
    """
    if isinstance(line, Heading):
        if line.section_id is None:
            return True
        return not collapse.is_hidden_by_ancestor(line.section_id)
    if isinstance(line, (Frontmatter, FrontmatterStart)):
        return True
    if isinstance(line, (FrontmatterField, FrontmatterEnd)):
        return not collapse.is_collapsed(FRONTMATTER_SECTION_ID)
    if line.section_id is not None and collapse.is_collapsed(line.section_id):
        return False
    return True


def line_kind_label(line: StyledLine) -> str:
    if isinstance(line, Heading):
        return f"Heading (H{line.level})"
    if isinstance(line, CodeBlockHeader):
        return f"Code Block Header ({line.language or 'text'})"
    if isinstance(line, CodeBlockContent):
        return "Code Block Content"
    if isinstance(line, CodeBlockBorder):
        return "Code Block Border"
    if isinstance(line, Paragraph):
        return "Paragraph"
    if isinstance(line, ListItem):
        kind = "Ordered" if line.ordered else "Unordered"
        return f"{kind} List Item (depth {line.depth})"
    if isinstance(line, Blockquote):
        return f"Blockquote (depth {line.depth})"
    if isinstance(line, TableRow):
        return "Table Header" if line.is_header else "Table Row"
    if isinstance(line, TableBorder):
        return "Table Border"
    if isinstance(line, HorizontalRule):
        return "Horizontal Rule"
    if isinstance(line, Empty):
        return "Empty"
    if isinstance(line, Frontmatter):
        return "Frontmatter"
    if isinstance(line, FrontmatterStart):
        return "Frontmatter Start"
    if isinstance(line, FrontmatterField):
        return f"Frontmatter Field ({line.key})"
    if isinstance(line, FrontmatterEnd):
        return "Frontmatter End"
    if isinstance(line, Expandable):
        return "Expandable Content"
    if isinstance(line, ExpandToggle):
        return "Expand Toggle"
    return type(line).__name__


def line_plain_text(line: StyledLine) -> str:
    if isinstance(line, Heading):
        return line.text
    if isinstance(line, (Paragraph, ListItem, Blockquote)):
        return segments_to_plain_text(line.segments)
    if isinstance(line, CodeBlockHeader):
        return f"```{line.language}"
    if isinstance(line, CodeBlockContent):
        return line.content
    if isinstance(line, TableRow):
        return " | ".join(line.cells)
    if isinstance(line, Frontmatter):
        return ", ".join(f"{key}: {value}" for key, value in line.fields)
    if isinstance(line, FrontmatterStart):
        return line.context_id or "---"
    if isinstance(line, FrontmatterField):
        return f"{line.key}: {line.value}"
    if isinstance(line, FrontmatterEnd):
        return "---"
    return ""


@dataclass
class Projection:
    """Visible rows of a document at one width and collapse state."""
    width: int
    rows: list[ScreenRow] = field(default_factory=list)
    entries: list[ProjectedLine] = field(default_factory=list)
    row_entries: list[int] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def row_text(self, row: int) -> str:
        if 0 <= row < len(self.rows):
            return self.rows[row].text
        return ""

    def texts(self) -> list[str]:
        return [row.text for row in self.rows]

    def rows_slice(self, offset: int, height: int) -> list[ScreenRow]:
        offset = max(0, offset)
        return self.rows[offset:offset + max(0, height)]

    def entry_at_row(self, doc_y: int) -> Optional[ProjectedLine]:
        if 0 <= doc_y < len(self.row_entries):
            return self.entries[self.row_entries[doc_y]]
        return None

    def first_row_of(self, index: int) -> Optional[int]:
        """First row of the IR line at ``index``, or None if it is hidden."""
        for entry in self.entries:
            if entry.index == index:
                return entry.first_row
        return None

    def resolve(self, doc_y: int) -> Optional[LineInfo]:
        """Describe the logical line under a document-space row."""
        entry = self.entry_at_row(doc_y)
        if entry is None:
            return None
        return LineInfo(entry.logical_number, line_kind_label(entry.line), line_plain_text(entry.line))


def project(lines: list[StyledLine], collapse: CollapseState, width: int,
            show_line_numbers: bool = False) -> Projection:
    """Filter and wrap the IR into screen rows.

    Args:
        lines: Styled-line IR
        collapse: Section and expandable state deciding visibility
        width: Row width in columns
        show_line_numbers: Prefix code-block lines with their line number

    Returns:
        Projection with rows and the row to line index
    """
    projection = Projection(width=width)
    for index, line in enumerate(lines):
        if not should_render_line(line, collapse):
            continue
        items = flatten_expandable(line, collapse) if isinstance(line, Expandable) else [line]
        for item in items:
            rendered = render_styled_line(item, width, collapse, show_line_numbers) or [[]]
            entry = ProjectedLine(index=index,
                                  logical_number=len(projection.entries) + 1,
                                  line=item,
                                  first_row=len(projection.rows),
                                  row_count=len(rendered))
            for spans in rendered:
                projection.rows.append(ScreenRow(spans, index))
                projection.row_entries.append(len(projection.entries))
            projection.entries.append(entry)
    return projection


def toggle_line(line: StyledLine, collapse: CollapseState) -> bool:
    """Apply the collapse action of a clicked line.

    Returns:
        True if a section or expandable block was toggled
    """
    if isinstance(line, Heading) and line.section_id is not None:
        collapse.toggle(line.section_id)
        return True
    if isinstance(line, (Frontmatter, FrontmatterStart)):
        collapse.toggle(FRONTMATTER_SECTION_ID)
        return True
    if isinstance(line, ExpandToggle):
        collapse.toggle_expandable(line.content_id)
        return True
    return False


def toggle_at(projection: Projection, collapse: CollapseState, doc_y: int) -> Optional[StyledLine]:
    """Toggle whatever collapsible line sits at a document-space row.

    Returns:
        The toggled line, or None if the row holds nothing collapsible
    """
    entry = projection.entry_at_row(doc_y)
    if entry is None:
        return None
    return entry.line if toggle_line(entry.line, collapse) else None
