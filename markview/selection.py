"""Mouse drag selection over a frozen snapshot of rendered rows."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SelectionPos:
    """Document-space position: column x, row y (scroll offset included)."""
    x: int
    y: int


class SelectionState:
    """Anchor/cursor selection over rows frozen at drag start.

    The snapshot keeps an active selection stable even if the document is
    re-wrapped or scrolled while the drag is in progress. Both ends of the
    selection are inclusive columns.
    """

    def __init__(self):
        self.active = False
        self.anchor: Optional[SelectionPos] = None
        self.cursor: Optional[SelectionPos] = None
        self.frozen_lines: Optional[list[str]] = None
        self.frozen_width = 0

    def is_active(self) -> bool:
        return self.active

    def enter(self, x: int, y: int, frozen_lines: list[str], width: int) -> None:
        self.active = True
        self.anchor = SelectionPos(x, y)
        self.cursor = SelectionPos(x, y)
        self.frozen_lines = list(frozen_lines)
        self.frozen_width = width

    def update_cursor(self, x: int, y: int) -> None:
        if self.active:
            self.cursor = SelectionPos(x, y)

    def has_selection(self) -> bool:
        return self.active and self.anchor is not None and self.anchor != self.cursor

    def normalized(self) -> Optional[tuple[SelectionPos, SelectionPos]]:
        """(start, end) ordered by row then column."""
        if not self.active or self.anchor is None or self.cursor is None:
            return None
        a, c = self.anchor, self.cursor
        if (a.y, a.x) <= (c.y, c.x):
            return a, c
        return c, a

    def get_selected_text(self) -> Optional[str]:
        bounds = self.normalized()
        if bounds is None or self.frozen_lines is None:
            return None
        start, end = bounds
        parts = []
        for row in range(max(0, start.y), min(end.y, len(self.frozen_lines) - 1) + 1):
            text = self.frozen_lines[row]
            first = start.x if row == start.y else 0
            last = end.x if row == end.y else len(text) - 1
            first = max(0, first)
            parts.append(text[first:last + 1])
        return "\n".join(parts)

    def selection_ranges(self, offset: int, height: int) -> list[Optional[tuple[int, int]]]:
        """Per viewport row, the half-open column range to highlight."""
        ranges: list[Optional[tuple[int, int]]] = [None] * max(0, height)
        bounds = self.normalized()
        if bounds is None or not self.has_selection():
            return ranges
        start, end = bounds
        for rel in range(len(ranges)):
            row = offset + rel
            if row < start.y or row > end.y:
                continue
            first = start.x if row == start.y else 0
            last = end.x + 1 if row == end.y else max(self.frozen_width, 0)
            if last > first:
                ranges[rel] = (max(0, first), last)
        return ranges

    def exit(self) -> None:
        self.active = False
        self.anchor = None
        self.cursor = None
        self.frozen_lines = None
        self.frozen_width = 0
