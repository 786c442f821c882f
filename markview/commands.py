"""Command pattern implementation for view key bindings."""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Optional, TYPE_CHECKING

from .events import HeadingToggled, NoEvent, ViewEvent
from .keyboard import KeyType

if TYPE_CHECKING:
    from .widget import MarkdownView
    from .keyboard import KeyEvent


class ViewCommand(ABC):
    """Base class for view commands."""

    @abstractmethod
    def execute(self, view: 'MarkdownView', key_event: 'KeyEvent') -> ViewEvent:
        """Execute the command.

        Args:
            view: MarkdownView instance
            key_event: The key event that triggered this command

        Returns:
            Event describing what happened
        """
        pass


class MovementCommand(ViewCommand):
    """Base class for commands that only move the current line or offset."""

    def execute(self, view: 'MarkdownView', key_event: 'KeyEvent') -> ViewEvent:
        self._move(view)
        return NoEvent()

    @abstractmethod
    def _move(self, view: 'MarkdownView'):
        """Perform the movement."""
        pass


class LineUpCommand(MovementCommand):
    def _move(self, view):
        view.scroll.line_up()


class LineDownCommand(MovementCommand):
    def _move(self, view):
        view.scroll.line_down()


class PageUpCommand(MovementCommand):
    def _move(self, view):
        view.scroll.scroll_up(max(1, view.scroll.viewport_height))


class PageDownCommand(MovementCommand):
    def _move(self, view):
        view.scroll.scroll_down(max(1, view.scroll.viewport_height))


class TopCommand(MovementCommand):
    def _move(self, view):
        view.scroll.scroll_to_top()


class BottomCommand(MovementCommand):
    def _move(self, view):
        view.scroll.scroll_to_bottom()


class ClearSelectionCommand(ViewCommand):
    def execute(self, view, key_event):
        view.end_selection()
        return NoEvent()


class CopySelectionCommand(ViewCommand):
    def execute(self, view, key_event):
        return view.copy_selection()


class ToggleSectionCommand(ViewCommand):
    """Collapse or expand whatever collapsible line holds the current line."""

    def execute(self, view, key_event):
        heading = view.toggle_current_line()
        if heading is None:
            return NoEvent()
        return HeadingToggled(heading.level, heading.text,
                              view.collapse.is_directly_collapsed(heading.section_id))


class CollapseAllCommand(ViewCommand):
    def execute(self, view, key_event):
        view.collapse_all()
        return NoEvent()


class ExpandAllCommand(ViewCommand):
    def execute(self, view, key_event):
        view.expand_all()
        return NoEvent()


class ToggleLineNumbersCommand(ViewCommand):
    def execute(self, view, key_event):
        view.set_show_line_numbers(not view.show_line_numbers)
        return NoEvent()


class ToggleMinimapCommand(ViewCommand):
    def execute(self, view, key_event):
        view.set_show_minimap(not view.show_minimap)
        return NoEvent()


class ReloadCommand(ViewCommand):
    def execute(self, view, key_event):
        return view.reload_source()


class CommandRegistry:
    """Registry mapping key events to commands."""

    def __init__(self):
        """Initialize the command registry with default bindings."""
        self._commands: Dict[Tuple[KeyType, str], ViewCommand] = {}
        self._register_default_commands()

    def _register_default_commands(self):
        """Register the default key bindings."""
        line_up, line_down = LineUpCommand(), LineDownCommand()
        page_up, page_down = PageUpCommand(), PageDownCommand()
        top, bottom = TopCommand(), BottomCommand()
        copy = CopySelectionCommand()

        # Navigation
        self.register(KeyType.SPECIAL, 'up', line_up)
        self.register(KeyType.REGULAR, 'k', line_up)
        self.register(KeyType.SPECIAL, 'down', line_down)
        self.register(KeyType.REGULAR, 'j', line_down)
        self.register(KeyType.SPECIAL, 'page_up', page_up)
        self.register(KeyType.CTRL, 'b', page_up)
        self.register(KeyType.SPECIAL, 'page_down', page_down)
        self.register(KeyType.CTRL, 'f', page_down)
        self.register(KeyType.REGULAR, ' ', page_down)
        self.register(KeyType.SPECIAL, 'home', top)
        self.register(KeyType.REGULAR, 'g', top)
        self.register(KeyType.SPECIAL, 'end', bottom)
        self.register(KeyType.REGULAR, 'G', bottom)

        # Selection
        self.register(KeyType.SPECIAL, 'escape', ClearSelectionCommand())
        self.register(KeyType.REGULAR, 'y', copy)
        self.register(KeyType.CTRL, 'c', copy)

        # Sections and display
        self.register(KeyType.SPECIAL, 'enter', ToggleSectionCommand())
        self.register(KeyType.REGULAR, '\t', ToggleSectionCommand())
        self.register(KeyType.REGULAR, 'C', CollapseAllCommand())
        self.register(KeyType.REGULAR, 'E', ExpandAllCommand())
        self.register(KeyType.REGULAR, 'n', ToggleLineNumbersCommand())
        self.register(KeyType.REGULAR, 'm', ToggleMinimapCommand())
        self.register(KeyType.REGULAR, 'r', ReloadCommand())

    def register(self, key_type: KeyType, value: str, command: ViewCommand):
        """Register a command for a key combination."""
        self._commands[(key_type, value)] = command

    def get_command(self, key_type: KeyType, value: str) -> Optional[ViewCommand]:
        """Get command for a key combination."""
        return self._commands.get((key_type, value))

    def execute(self, view: 'MarkdownView', key_event: 'KeyEvent') -> ViewEvent:
        """Execute the command for the given key event.

        Returns:
            The command's event, or NoEvent for unbound keys
        """
        if key_event.is_alt:
            command = self.get_command(KeyType.ALT, key_event.value)
        else:
            command = self.get_command(key_event.key_type, key_event.value)
        if command:
            return command.execute(view, key_event)
        return NoEvent()
