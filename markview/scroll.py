"""Scroll and viewport state for the markdown view."""


class ScrollState:
    """Scroll offset and focused line over a document of wrapped rows.

    ``scroll_offset`` is the number of rows above the viewport and always
    stays in ``[0, max_scroll_offset()]``. ``current_line`` is 1-indexed and
    stays in ``[1, total_lines]``; ``total_lines`` is never below 1.
    """

    def __init__(self, viewport_height: int = 0, total_lines: int = 1):
        self.scroll_offset = 0
        self.current_line = 1
        self.total_lines = max(1, total_lines)
        self.viewport_height = max(0, viewport_height)

    def max_scroll_offset(self) -> int:
        return max(0, self.total_lines - self.viewport_height)

    def _clamp_offset(self) -> None:
        self.scroll_offset = min(max(0, self.scroll_offset), self.max_scroll_offset())

    def scroll_up(self, amount: int) -> None:
        self.scroll_offset = max(0, self.scroll_offset - amount)
        self._clamp_offset()

    def scroll_down(self, amount: int) -> None:
        self.scroll_offset = min(self.scroll_offset + amount, self.max_scroll_offset())

    def line_up(self) -> None:
        if self.current_line > 1:
            self.current_line -= 1
        self.adjust_scroll_for_current_line()

    def line_down(self) -> None:
        if self.current_line < self.total_lines:
            self.current_line += 1
        self.adjust_scroll_for_current_line()

    def adjust_scroll_for_current_line(self) -> None:
        """Scroll just enough to bring the current line into the viewport."""
        if self.viewport_height == 0:
            return
        if self.current_line < self.scroll_offset + 1:
            self.scroll_offset = self.current_line - 1
        elif self.current_line > self.scroll_offset + self.viewport_height:
            self.scroll_offset = self.current_line - self.viewport_height
        self._clamp_offset()

    def set_current_line(self, line: int) -> None:
        self.current_line = min(max(1, line), self.total_lines)
        self.adjust_scroll_for_current_line()

    def scroll_to_top(self) -> None:
        self.scroll_offset = 0
        self.current_line = 1

    def scroll_to_bottom(self) -> None:
        self.scroll_offset = self.max_scroll_offset()
        self.current_line = self.total_lines

    def visible_range(self) -> tuple[int, int]:
        """First and last visible rows, 1-indexed and inclusive."""
        return (self.scroll_offset + 1,
                min(self.scroll_offset + self.viewport_height, self.total_lines))

    def scroll_percentage(self) -> float:
        max_offset = self.max_scroll_offset()
        if max_offset == 0:
            return 0.0
        return self.scroll_offset / max_offset

    def is_current_line_visible(self) -> bool:
        return self.scroll_offset < self.current_line <= self.scroll_offset + self.viewport_height

    def update_viewport(self, height: int) -> None:
        self.viewport_height = max(0, height)
        self._clamp_offset()

    def update_total_lines(self, total: int) -> None:
        self.total_lines = max(1, total)
        self.current_line = min(max(1, self.current_line), self.total_lines)
        self._clamp_offset()
