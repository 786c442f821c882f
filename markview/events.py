"""Input events fed to the view and the results it reports back."""

from dataclasses import dataclass
from enum import Enum


class MouseKind(Enum):
    DOWN = "down"
    UP = "up"
    DRAG = "drag"
    MOVED = "moved"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"


class MouseButton(Enum):
    LEFT = "left"
    MIDDLE = "middle"
    RIGHT = "right"
    NONE = "none"


@dataclass
class MouseEvent:
    """A mouse event in screen coordinates (0-based column and row)."""
    kind: MouseKind
    column: int
    row: int
    button: MouseButton = MouseButton.LEFT


@dataclass
class Area:
    """Screen rectangle occupied by the view."""
    x: int
    y: int
    width: int
    height: int

    def contains(self, column: int, row: int) -> bool:
        return self.x <= column < self.x + self.width and self.y <= row < self.y + self.height


class ViewMode(Enum):
    NORMAL = "normal"
    DRAG = "drag"


class ViewEvent:
    """Base class of the results returned by the view's event handlers."""


@dataclass
class NoEvent(ViewEvent):
    pass


@dataclass
class SelectionStarted(ViewEvent):
    pass


@dataclass
class SelectionEnded(ViewEvent):
    pass


@dataclass
class DoubleClick(ViewEvent):
    line_number: int
    line_kind: str
    content: str


@dataclass
class Scrolled(ViewEvent):
    offset: int
    direction: int  # negative when scrolled up, rows moved


@dataclass
class Copied(ViewEvent):
    text: str


@dataclass
class CopyFailed(ViewEvent):
    error: str


@dataclass
class FocusedLine(ViewEvent):
    line: int


@dataclass
class HeadingToggled(ViewEvent):
    level: int
    text: str
    collapsed: bool


@dataclass
class Reloaded(ViewEvent):
    changed: bool


@dataclass
class ReloadFailed(ViewEvent):
    error: str
