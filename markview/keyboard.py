"""Keyboard and mouse input parsing from curtsies-style tokens."""

import re
from typing import Optional, Union
from dataclasses import dataclass
from enum import Enum

from .constants import ViewerConstants
from .events import MouseButton, MouseEvent, MouseKind


class KeyType(Enum):
    """Types of key events."""
    REGULAR = "regular"
    ALT = "alt"
    CTRL = "ctrl"
    SPECIAL = "special"
    SHIFT_SPECIAL = "shift_special"  # Shift + arrow keys, etc.


@dataclass
class KeyEvent:
    """Represents a parsed keyboard event."""
    key_type: KeyType
    value: str  # The base key (e.g., 'j', 'down', 'page_up')
    raw: str  # The raw token string
    is_alt: bool = False
    is_ctrl: bool = False
    is_shift: bool = False
    is_sequence: bool = False


# SGR (1006) mouse report: ESC [ < button ; column ; row (M press/drag | m release)
_SGR_MOUSE = re.compile(r"^\x1b\[<(\d+);(\d+);(\d+)([Mm])$")

_SPECIALS = {
    'left', 'right', 'up', 'down', 'home', 'end', 'enter', 'backspace', 'delete',
    'page_up', 'page_down', 'insert', 'f1',
}


def parse_sgr_mouse(token: str) -> Optional[MouseEvent]:
    """Decode an SGR mouse report into a MouseEvent with 0-based coordinates."""
    m = _SGR_MOUSE.match(token)
    if not m:
        return None
    code, column, row, final = int(m.group(1)), int(m.group(2)) - 1, int(m.group(3)) - 1, m.group(4)
    column, row = max(0, column), max(0, row)

    if code & 64:
        kind = MouseKind.SCROLL_UP if (code & 1) == 0 else MouseKind.SCROLL_DOWN
        return MouseEvent(kind, column, row, MouseButton.NONE)

    button = {0: MouseButton.LEFT, 1: MouseButton.MIDDLE, 2: MouseButton.RIGHT}.get(code & 3, MouseButton.NONE)
    if final == 'm':
        kind = MouseKind.UP
    elif code & 32:
        kind = MouseKind.DRAG if button != MouseButton.NONE else MouseKind.MOVED
    else:
        kind = MouseKind.DOWN
    return MouseEvent(kind, column, row, button)


class KeyboardHandler:
    """Turns terminal tokens into KeyEvent and MouseEvent objects."""

    def __init__(self, terminal_interface):
        """Initialize with a terminal interface."""
        self.terminal = terminal_interface

    def get_event(self, timeout: Optional[float] = None) -> Union[KeyEvent, MouseEvent, None]:
        """Get the next key or mouse event."""
        key = self.terminal.get_key(timeout)
        if not key:
            return None
        token = str(key)
        if token.startswith('\x1b[<'):
            # Mouse reports can arrive split across reads
            while not token.endswith(('M', 'm')):
                more = self.terminal.get_key(ViewerConstants.ESCAPE_SEQUENCE_TIMEOUT)
                if not more:
                    break
                token += str(more)
            mouse = parse_sgr_mouse(token)
            if mouse is not None:
                return mouse
        return self.parse_key(token)

    def parse_key(self, key) -> KeyEvent:
        """Parse a curtsies token into a KeyEvent.

        Args:
            key: Token such as ``'j'``, ``'<DOWN>'``, ``'<Ctrl-c>'`` or ``'<PAGEUP>'``

        Returns:
            Parsed KeyEvent
        """
        key_str = str(key)

        if key_str.startswith('<') and key_str.endswith('>') and len(key_str) > 2:
            name = key_str[1:-1].lower().replace('+', '-')
            parts = name.split('-') if '-' in name else [name]
            base = parts[-1]
            mods = set(parts[:-1])
            if 'meta' in mods or 'esc' in mods:
                mods.add('alt')
            if base in ('pageup', 'page_up'):
                base = 'page_up'
            elif base in ('pagedown', 'page_down'):
                base = 'page_down'

            if base in ('space', 'spacebar', 'spc') and not mods:
                return KeyEvent(key_type=KeyType.REGULAR, value=' ', raw=' ')
            if base == 'tab' and not mods:
                return KeyEvent(key_type=KeyType.REGULAR, value='\t', raw='\t')
            if 'ctrl' in mods and len(base) == 1:
                if base in ('j', 'm'):
                    return KeyEvent(key_type=KeyType.SPECIAL, value='enter', raw=key_str, is_sequence=True)
                return KeyEvent(key_type=KeyType.CTRL, value=base, raw=key_str, is_ctrl=True)
            if 'alt' in mods and (base in _SPECIALS or len(base) == 1):
                return KeyEvent(key_type=KeyType.ALT, value=base, raw=key_str, is_alt=True)
            if 'shift' in mods and base in _SPECIALS:
                return KeyEvent(key_type=KeyType.SHIFT_SPECIAL, value=base, raw=key_str,
                                is_shift=True, is_sequence=True)
            if base in ('esc', 'escape'):
                return KeyEvent(key_type=KeyType.SPECIAL, value='escape', raw='\x1b')
            return KeyEvent(key_type=KeyType.SPECIAL, value=base, raw=key_str, is_sequence=True)

        if len(key_str) == 1:
            o = ord(key_str)
            if 1 <= o <= 26:  # Ctrl-A .. Ctrl-Z
                ch = chr(ord('a') + o - 1)
                if ch in ('j', 'm'):
                    return KeyEvent(key_type=KeyType.SPECIAL, value='enter', raw=key_str)
                return KeyEvent(key_type=KeyType.CTRL, value=ch, raw=key_str, is_ctrl=True)

        if key_str == '\x1b':
            return KeyEvent(key_type=KeyType.SPECIAL, value='escape', raw='\x1b')

        return KeyEvent(key_type=KeyType.REGULAR, value=key_str, raw=key_str)
