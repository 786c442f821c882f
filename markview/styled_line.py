"""Intermediate representation of a markdown document.

A document is an ordered list of ``StyledLine`` records. Each record is one
logical unit (a heading, a paragraph, one code line, one table row, ...)
and is tagged with the collapsible section that owns it. Inline runs inside
paragraph-like lines are ``TextSegment`` values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional


# Heading icons by level (H1..H6)
HEADING_ICONS = ["󰲡 ", "󰲣 ", "󰲥 ", "󰲧 ", "󰲩 ", "󰲫 "]

# Bullet markers cycle by nesting depth
BULLET_MARKERS = ["● ", "○ ", "◆ ", "◇ "]

# Section id reserved for the frontmatter block
FRONTMATTER_SECTION_ID = 0


class LineKind(Enum):
    """Kinds of styled lines."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST_ITEM = "list_item"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK_HEADER = "code_block_header"
    CODE_BLOCK_CONTENT = "code_block_content"
    CODE_BLOCK_BORDER = "code_block_border"
    TABLE_ROW = "table_row"
    TABLE_BORDER = "table_border"
    HORIZONTAL_RULE = "horizontal_rule"
    EMPTY = "empty"
    FRONTMATTER = "frontmatter"
    FRONTMATTER_START = "frontmatter_start"
    FRONTMATTER_FIELD = "frontmatter_field"
    FRONTMATTER_END = "frontmatter_end"
    EXPANDABLE = "expandable"
    EXPAND_TOGGLE = "expand_toggle"


class SegmentFormat(Enum):
    """Inline formatting of a text segment."""
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bold_italic"
    INLINE_CODE = "inline_code"
    LINK = "link"
    STRIKETHROUGH = "strikethrough"
    HTML = "html"
    CHECKBOX = "checkbox"


class ColumnAlignment(Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


class CodeBlockBorderKind(Enum):
    TOP = "top"
    HEADER_SEPARATOR = "header_separator"
    BOTTOM = "bottom"


class TableBorderKind(Enum):
    TOP = "top"
    HEADER_SEPARATOR = "header_separator"
    BOTTOM = "bottom"


@dataclass
class Span:
    """A run of text with a semantic style key (e.g. ``"heading.1"``)."""
    text: str
    style: str = "text"


@dataclass
class TextSegment:
    """An inline run of markdown text."""
    text: str
    fmt: SegmentFormat = SegmentFormat.PLAIN
    url: Optional[str] = None
    checked: bool = False

    def plain_text(self) -> str:
        """Text used for copying and line descriptions."""
        if self.fmt == SegmentFormat.INLINE_CODE:
            return f"`{self.text}`"
        if self.fmt == SegmentFormat.CHECKBOX:
            return ""
        return self.text

    def display_text(self) -> str:
        """Text as it appears on screen."""
        if self.fmt == SegmentFormat.CHECKBOX:
            return "☑ " if self.checked else "☐ "
        return self.plain_text()


def segments_to_plain_text(segments: list[TextSegment]) -> str:
    return "".join(segment.plain_text() for segment in segments)


@dataclass(kw_only=True)
class StyledLine:
    """Base class for all line variants.

    ``section_id`` names the collapsible section owning the line: the id of
    the nearest preceding heading, ``FRONTMATTER_SECTION_ID`` for frontmatter
    lines, or None for content before the first heading.
    """
    kind: ClassVar[LineKind]
    section_id: Optional[int] = None


@dataclass(kw_only=True)
class Heading(StyledLine):
    kind: ClassVar[LineKind] = LineKind.HEADING
    level: int
    text: str
    collapsed: bool = False


@dataclass(kw_only=True)
class Paragraph(StyledLine):
    kind: ClassVar[LineKind] = LineKind.PARAGRAPH
    segments: list[TextSegment] = field(default_factory=list)


@dataclass(kw_only=True)
class ListItem(StyledLine):
    kind: ClassVar[LineKind] = LineKind.LIST_ITEM
    depth: int = 0
    ordered: bool = False
    number: Optional[int] = None
    segments: list[TextSegment] = field(default_factory=list)


@dataclass(kw_only=True)
class Blockquote(StyledLine):
    kind: ClassVar[LineKind] = LineKind.BLOCKQUOTE
    depth: int = 1
    segments: list[TextSegment] = field(default_factory=list)


@dataclass(kw_only=True)
class CodeBlockHeader(StyledLine):
    kind: ClassVar[LineKind] = LineKind.CODE_BLOCK_HEADER
    language: str = ""


@dataclass(kw_only=True)
class CodeBlockContent(StyledLine):
    kind: ClassVar[LineKind] = LineKind.CODE_BLOCK_CONTENT
    content: str
    highlighted: list[Span] = field(default_factory=list)
    line_number: int = 0


@dataclass(kw_only=True)
class CodeBlockBorder(StyledLine):
    kind: ClassVar[LineKind] = LineKind.CODE_BLOCK_BORDER
    border: CodeBlockBorderKind


@dataclass(kw_only=True)
class TableRow(StyledLine):
    kind: ClassVar[LineKind] = LineKind.TABLE_ROW
    cells: list[str]
    is_header: bool = False
    alignments: list[ColumnAlignment] = field(default_factory=list)


@dataclass(kw_only=True)
class TableBorder(StyledLine):
    kind: ClassVar[LineKind] = LineKind.TABLE_BORDER
    border: TableBorderKind
    widths: list[int] = field(default_factory=list)


@dataclass(kw_only=True)
class HorizontalRule(StyledLine):
    kind: ClassVar[LineKind] = LineKind.HORIZONTAL_RULE


@dataclass(kw_only=True)
class Empty(StyledLine):
    kind: ClassVar[LineKind] = LineKind.EMPTY


@dataclass(kw_only=True)
class Frontmatter(StyledLine):
    """Compact frontmatter block rendered as a single collapsible unit."""
    kind: ClassVar[LineKind] = LineKind.FRONTMATTER
    fields: list[tuple[str, str]] = field(default_factory=list)

    @property
    def context_id(self) -> Optional[str]:
        for key, value in self.fields:
            if key == "context_id":
                return value
        return None


@dataclass(kw_only=True)
class FrontmatterStart(StyledLine):
    kind: ClassVar[LineKind] = LineKind.FRONTMATTER_START
    context_id: Optional[str] = None


@dataclass(kw_only=True)
class FrontmatterField(StyledLine):
    kind: ClassVar[LineKind] = LineKind.FRONTMATTER_FIELD
    key: str
    value: str


@dataclass(kw_only=True)
class FrontmatterEnd(StyledLine):
    kind: ClassVar[LineKind] = LineKind.FRONTMATTER_END


@dataclass(kw_only=True)
class Expandable(StyledLine):
    """A run of lines shown truncated until expanded.

    ``content_id`` keys the expandable state and lives in its own namespace,
    separate from numeric section ids.
    """
    kind: ClassVar[LineKind] = LineKind.EXPANDABLE
    content_id: str
    lines: list[StyledLine] = field(default_factory=list)


@dataclass(kw_only=True)
class ExpandToggle(StyledLine):
    kind: ClassVar[LineKind] = LineKind.EXPAND_TOGGLE
    content_id: str
    expanded: bool = False
    hidden_count: int = 0
