"""System clipboard integration."""

import logging

import pyperclip

logger = logging.getLogger(__name__)


class ClipboardError(Exception):
    """Raised when the system clipboard cannot be written."""


class ClipboardManager:
    """Manages system clipboard operations through pyperclip.

    Only plain text is exchanged; the view copies the rendered text of a
    selection, not the markdown source.
    """

    @staticmethod
    def copy_text(text: str) -> None:
        """Copy text to system clipboard.

        Args:
            text: Plain text to copy (may contain newlines)

        Raises:
            ClipboardError: If no clipboard mechanism is available
        """
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            logger.warning(f"Clipboard copy failed: {e}")
            raise ClipboardError(str(e)) from e


def set_clipboard_text(text: str) -> None:
    ClipboardManager.copy_text(text)
