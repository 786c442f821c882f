"""Terminal viewer application hosting one MarkdownView."""

import logging
import os
import select
import signal
import sys
import termios
import time
from typing import Optional

from .constants import ViewerConstants
from .events import (
    Area,
    Copied,
    CopyFailed,
    DoubleClick,
    MouseEvent,
    NoEvent,
    Reloaded,
    ReloadFailed,
    ViewEvent,
)
from .keyboard import KeyboardHandler, KeyEvent, KeyType
from .settings_persistence import SettingsPersistence, get_persistence
from .terminal import TerminalInterface
from .widget import MarkdownView

logger = logging.getLogger(__name__)

HELP_LINES = [
    "",
    "NAVIGATION                    SECTIONS",
    "  j / ↓     Line down          Enter/Tab  Toggle heading",
    "  k / ↑     Line up            C          Collapse all",
    "  Space     Page down          E          Expand all",
    "  Ctrl-B    Page up            Click      Toggle heading",
    "  g / G     Top / bottom",
    "  Wheel     Scroll             DISPLAY",
    "                               n          Line numbers",
    "SELECTION                     m          Minimap",
    "  Drag      Select and copy    r          Reload file",
    "  y         Copy selection",
    "  Esc       Clear selection    q          Quit",
]


class Viewer:
    """Main viewer controller: input loop, drawing and settings."""

    def __init__(self, view: MarkdownView, terminal: Optional[TerminalInterface] = None,
                 persistence: Optional[SettingsPersistence] = None,
                 clock=time.monotonic):
        """Initialize the viewer components."""
        self.view = view
        self.terminal = terminal or TerminalInterface()
        self.keyboard = KeyboardHandler(self.terminal)
        self.persistence = persistence or get_persistence()
        self.clock = clock
        self.running = False
        self.help_visible = False
        self.status_message: Optional[str] = None
        self._last_reload_check = 0.0
        self._resize_pipe_r: Optional[int] = None
        self._resize_pipe_w: Optional[int] = None

    def area(self) -> Area:
        """Screen region of the view; the last row is the status line."""
        return Area(0, 0, self.terminal.width, max(0, self.terminal.height))

    # Settings

    def load_settings(self) -> None:
        """Apply the persisted settings of the current file, if any."""
        path = self.view.source.path
        if path is None:
            return
        settings = self.persistence.load_settings(str(path))
        if settings.get('show_minimap') is not None:
            self.view.set_show_minimap(settings['show_minimap'])
        if settings.get('show_line_numbers') is not None:
            self.view.set_show_line_numbers(settings['show_line_numbers'])
        for section_id in settings.get('collapsed_sections') or []:
            self.view.collapse.collapse(section_id)
        # Offsets are clamped once the first render knows the row count
        if settings.get('scroll_offset') is not None:
            self.view.scroll.scroll_offset = settings['scroll_offset']
        if settings.get('current_line') is not None:
            self.view.scroll.current_line = max(1, settings['current_line'])

    def save_settings(self) -> bool:
        path = self.view.source.path
        if path is None:
            return False
        document = self.view.document()
        collapsed = [i for i in self.view.collapse.collapsed_ids() if i in document.hierarchy]
        return self.persistence.save_settings(str(path), {
            'show_minimap': self.view.show_minimap,
            'show_line_numbers': self.view.show_line_numbers,
            'scroll_offset': self.view.scroll.scroll_offset,
            'current_line': self.view.scroll.current_line,
            'collapsed_sections': collapsed,
        })

    # Event handling

    def _handle_resize(self, signum, frame):
        """Handle terminal resize signal."""
        del signum, frame  # Unused
        os.write(self._resize_pipe_w, ViewerConstants.RESIZE_PIPE_MARKER)

    def report(self, event: ViewEvent) -> None:
        """Turn a view result into a status-line message."""
        if isinstance(event, Copied):
            self.status_message = f"Copied {len(event.text)} characters"
        elif isinstance(event, CopyFailed):
            self.status_message = f"Copy failed: {event.error}"
        elif isinstance(event, ReloadFailed):
            self.status_message = f"Reload failed: {event.error}"
        elif isinstance(event, Reloaded):
            self.status_message = "Reloaded" if event.changed else "No changes"
        elif isinstance(event, DoubleClick):
            self.status_message = f"{event.line_kind} at line {event.line_number}"

    def handle_key_event(self, key_event: KeyEvent) -> None:
        """Handle a keyboard event.

        Args:
            key_event: KeyEvent object with parsed key information
        """
        if self.help_visible:
            self.help_visible = False
            self.terminal.invalidate_frame()
            return

        self.status_message = None

        if (key_event.key_type == KeyType.REGULAR and key_event.value == 'q') or \
                (key_event.key_type == KeyType.CTRL and key_event.value == 'q'):
            self.running = False
            return
        if (key_event.key_type == KeyType.REGULAR and key_event.value == '?') or \
                (key_event.key_type == KeyType.SPECIAL and key_event.value == 'f1'):
            self.help_visible = True
            return

        self.report(self.view.handle_key_event(key_event, self.area()))

    def handle_mouse_event(self, event: MouseEvent) -> None:
        if self.help_visible:
            return
        self.report(self.view.handle_mouse_event(event, self.area()))

    def tick(self) -> bool:
        """Per-iteration housekeeping.

        Resolves pending single clicks and polls the open file for changes.

        Returns:
            True if the screen needs a redraw
        """
        event = self.view.check_pending_click(self.area())
        redraw = not isinstance(event, NoEvent)

        now = self.clock()
        if self.view.source.is_file() and now - self._last_reload_check >= ViewerConstants.RELOAD_POLL_INTERVAL:
            self._last_reload_check = now
            if self.view.source.modified_on_disk():
                logger.debug(f"{self.view.source.path} changed on disk, reloading")
                result = self.view.reload_source()
                self.report(result)
                redraw = True
        return redraw

    # Drawing

    def draw(self) -> None:
        """Paint the view, status line and help overlay into one frame."""
        term = self.terminal
        term.begin_frame()
        area = self.area()
        self.view.paint(term, area)
        self._draw_status(area.height)
        if self.help_visible:
            self._draw_help(area)
        term.end_frame()

    def _draw_status(self, y: int) -> None:
        term = self.terminal
        width = term.width
        term.paint(0, y, " " * width, "status")
        x = 0
        for span in self.view.status_segments():
            term.paint(x, y, span.text, span.style)
            x += len(span.text)
        message = self.status_message or ViewerConstants.HELP_HINT
        style = "status" if self.status_message else "status.hint"
        term.paint(max(x + 1, width - len(message) - 1), y, message, style)

    def _draw_help(self, area: Area) -> None:
        term = self.terminal
        max_line_length = max(len(line) for line in HELP_LINES)
        left = max(0, (area.width - max_line_length) // 2)
        top = max(0, (area.height - len(HELP_LINES) - 2) // 2)
        title = "MARKVIEW HELP"
        for i in range(len(HELP_LINES) + 3):
            term.paint(left - 2, top + i, " " * (max_line_length + 4), "text")
        term.paint((area.width - len(title)) // 2, top, title, "heading.1")
        for i, line in enumerate(HELP_LINES):
            term.paint(left, top + 1 + i, line, "text")
        term.paint(left, top + len(HELP_LINES) + 2, "Press any key to continue", "status.hint")

    # Main loop

    def run(self, load_settings: bool = True) -> None:
        """Run the main viewer loop."""
        if load_settings:
            self.load_settings()
        self._resize_pipe_r, self._resize_pipe_w = os.pipe()
        self.terminal.setup()
        self.running = True
        original_winch_handler = signal.signal(signal.SIGWINCH, self._handle_resize)

        try:
            with self.terminal.term.cbreak():
                old_settings = None
                try:
                    old_settings = termios.tcgetattr(sys.stdin)
                    new_settings = list(old_settings)
                    # Let Ctrl-Q through as a key instead of flow control
                    new_settings[0] &= ~(termios.IXON | termios.IXOFF)
                    termios.tcsetattr(sys.stdin, termios.TCSANOW, new_settings)
                except (termios.error, AttributeError, OSError):
                    pass

                need_draw = True
                while self.running:
                    if need_draw:
                        self.draw()
                        need_draw = False

                    ready, _, _ = select.select([0, self._resize_pipe_r], [], [],
                                                ViewerConstants.TICK_INTERVAL)

                    if self._resize_pipe_r in ready:
                        os.read(self._resize_pipe_r, 1024)
                        self.terminal.invalidate_frame()
                        need_draw = True
                    if 0 in ready:
                        event = self.keyboard.get_event(timeout=0)
                        if isinstance(event, MouseEvent):
                            self.handle_mouse_event(event)
                            need_draw = True
                        elif event is not None:
                            self.handle_key_event(event)
                            need_draw = True
                    if self.tick():
                        need_draw = True

                if old_settings:
                    try:
                        termios.tcsetattr(sys.stdin, termios.TCSANOW, old_settings)
                    except (termios.error, OSError):
                        pass
        except KeyboardInterrupt:
            pass
        finally:
            signal.signal(signal.SIGWINCH, original_winch_handler)
            os.close(self._resize_pipe_r)
            os.close(self._resize_pipe_w)
            self.terminal.cleanup()
            self.save_settings()
