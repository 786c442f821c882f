"""Terminal interface using Blessed for display and Curtsies for input."""

import blessed
from typing import Optional
import sys
import select

# Blessed formatting attribute for each style key the view emits
STYLE_ATTRIBUTES = {
    "text": "",
    "heading.1": "bold_magenta",
    "heading.2": "bold_cyan",
    "heading.3": "bold_green",
    "heading.4": "bold_yellow",
    "heading.5": "bold_blue",
    "heading.6": "bold",
    "heading.indicator": "bright_black",
    "bold": "bold",
    "italic": "italic",
    "bold_italic": "bold_italic",
    "strikethrough": "bright_black",
    "html": "bright_black",
    "link": "underline_blue",
    "checkbox": "cyan",
    "list.marker": "cyan",
    "blockquote": "italic_bright_black",
    "blockquote.bar": "blue",
    "code": "white",
    "code.border": "bright_black",
    "code.language": "bold_bright_black",
    "code.line_number": "bright_black",
    "code.comment": "bright_black",
    "code.keyword": "magenta",
    "code.string": "green",
    "code.number": "yellow",
    "code.function": "blue",
    "code.type": "cyan",
    "code.builtin": "cyan",
    "code.inline": "yellow",
    "code.operator": "red",
    "code.punctuation": "white",
    "table": "",
    "table.header": "bold",
    "table.border": "bright_black",
    "rule": "bright_black",
    "frontmatter": "bright_black",
    "frontmatter.key": "cyan",
    "frontmatter.value": "",
    "frontmatter.border": "bright_black",
    "frontmatter.indicator": "bright_black",
    "expand.toggle": "italic_blue",
    "selection": "reverse",
    "minimap": "bright_black",
    "minimap.viewport": "white",
    "status": "reverse",
    "status.mode.normal": "black_on_green",
    "status.mode.drag": "black_on_yellow",
    "status.file": "reverse",
    "status.position": "reverse",
    "status.hint": "bright_black",
}

# xterm: button-event tracking plus SGR extended coordinates
MOUSE_ON = "\x1b[?1002h\x1b[?1006h"
MOUSE_OFF = "\x1b[?1006l\x1b[?1002l"


class TerminalInterface:
    """Handles terminal I/O using Blessed.

    Drawing goes through a cell buffer: callers ``begin_frame``, ``paint``
    styled text at positions, then ``end_frame`` writes only the rows that
    changed since the previous frame.
    """

    def __init__(self, terminal: Optional[blessed.Terminal] = None):
        """Initialize with a terminal instance (or create one)."""
        self.term = terminal or blessed.Terminal()
        self.is_fullscreen = False
        self._curtsies_input: Optional[object] = None
        self._curtsies_active: bool = False
        # Virtual screen state for minimal updates
        self._cells: list[list[tuple[str, str]]] = []
        self._last_lines: list[str] | None = None
        self._last_size: tuple[int, int] | None = None

    def setup(self):
        """Enter fullscreen mode, enable mouse reporting and prepare input."""
        print(self.term.enter_fullscreen, end='')
        print(self.term.hide_cursor, end='')
        print(self.term.clear, end='')
        print(MOUSE_ON, end='', flush=True)
        self.is_fullscreen = True
        if self._curtsies_input is None:
            try:
                from curtsies import Input  # type: ignore
                self._curtsies_input = Input(keynames='curtsies')  # type: ignore
                self._curtsies_input.__enter__()
                self._curtsies_active = True
            except Exception:
                # curtsies may fail to initialize without a real tty;
                # the viewer then runs without input.
                self._curtsies_input = None
                self._curtsies_active = False

    def cleanup(self):
        """Exit fullscreen mode and restore terminal."""
        if self.is_fullscreen:
            print(MOUSE_OFF, end='')
            print(self.term.exit_fullscreen, end='')
            print(self.term.normal_cursor, end='', flush=True)
            self.is_fullscreen = False
        if self._curtsies_input is not None:
            try:
                if self._curtsies_active:
                    self._curtsies_input.__exit__(None, None, None)  # type: ignore
            except Exception:
                # Teardown must not mask the original exit path.
                pass
            finally:
                self._curtsies_input = None
                self._curtsies_active = False

    def invalidate_frame(self) -> None:
        """Invalidate cached frame so next update does a full clear."""
        self._last_lines = None
        self._last_size = None

    def style(self, key: str) -> str:
        """Escape sequence for a view style key; unknown keys fall back to their parent."""
        while key not in STYLE_ATTRIBUTES and '.' in key:
            key = key.rsplit('.', 1)[0]
        name = STYLE_ATTRIBUTES.get(key, "")
        if not name:
            return ""
        return str(getattr(self.term, name, ""))

    def begin_frame(self) -> None:
        """Start a new frame of blank cells covering the whole screen."""
        width, height = self.term.width, self.term.height
        self._cells = [[(' ', "text")] * width for _ in range(height)]

    def paint(self, x: int, y: int, text: str, style: str = "text") -> None:
        """Write styled text into the frame buffer, clipped to the screen."""
        if y < 0 or y >= len(self._cells):
            return
        row = self._cells[y]
        for i, ch in enumerate(text):
            col = x + i
            if col >= len(row):
                break
            if col >= 0:
                row[col] = (ch, style)

    def _compose_row(self, cells: list[tuple[str, str]]) -> str:
        out = []
        current = None
        for ch, style in cells:
            if style != current:
                out.append(self.term.normal)
                out.append(self.style(style))
                current = style
            out.append(ch)
        out.append(self.term.normal)
        return ''.join(out)

    def end_frame(self) -> None:
        """Diff against last frame and write only changed rows."""
        size = (self.term.width, self.term.height)
        lines = [self._compose_row(cells) for cells in self._cells]
        if self._last_lines is None or self._last_size != size:
            print(self.term.home + self.term.clear, end='')
            self._last_lines = ["" for _ in lines]
            self._last_size = size
        for y, line in enumerate(lines):
            if y >= len(self._last_lines) or self._last_lines[y] != line:
                print(self.term.move(y, 0) + line, end='')
                if y < len(self._last_lines):
                    self._last_lines[y] = line
        sys.stdout.flush()

    def get_key(self, timeout=None):
        """Get the next input token from the user.

        Args:
            timeout: Timeout in seconds (None for blocking, 0 for non-blocking)

        Returns:
            The curtsies token as a string, or None on timeout
        """
        if self._curtsies_input is not None:
            if timeout is None:
                evt = next(self._curtsies_input)  # blocks
                return str(evt)
            t = 0.0 if timeout == 0 else float(timeout)
            r, _, _ = select.select([sys.stdin], [], [], t)
            if not r:
                return None
            evt = next(self._curtsies_input)
            return str(evt)
        return None

    @property
    def width(self):
        """Terminal width in columns."""
        return self.term.width

    @property
    def height(self):
        """Terminal height in rows (excluding status line)."""
        return self.term.height - 1  # Reserve one line for status
