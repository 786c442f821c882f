"""Markdown content sources: an in-memory string or a file on disk."""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class MarkdownSource:
    """Holds markdown text and, for file sources, knows how to re-read it."""

    def __init__(self, content: str = "", path: Optional[Path] = None):
        self._content = content
        self._path = path
        self._mtime: Optional[float] = None

    @classmethod
    def from_string(cls, content: str) -> "MarkdownSource":
        return cls(content)

    @classmethod
    def from_file(cls, path) -> "MarkdownSource":
        """Load a file source.

        Raises:
            OSError: If the file cannot be read
        """
        path = Path(path)
        source = cls("", path)
        source._content = source._read(path)
        return source

    @property
    def content(self) -> str:
        return self._content

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def is_file(self) -> bool:
        return self._path is not None

    def _read(self, path: Path) -> str:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            text = f.read()
        self._mtime = os.stat(path).st_mtime
        return text

    def reload(self) -> bool:
        """Re-read a file source.

        Returns:
            True if the content changed; always False for string sources

        Raises:
            OSError: If the file cannot be read. The previous content is kept.
        """
        if self._path is None:
            return False
        text = self._read(self._path)
        changed = text != self._content
        self._content = text
        if changed:
            logger.debug(f"Reloaded {self._path} ({len(text)} chars)")
        return changed

    def modified_on_disk(self) -> bool:
        """Whether the file's mtime moved since the last read."""
        if self._path is None:
            return False
        try:
            mtime = os.stat(self._path).st_mtime
        except OSError as e:
            logger.warning(f"Could not stat {self._path}: {e}")
            return False
        return self._mtime is None or mtime != self._mtime

    def set_content(self, content: str) -> bool:
        """Replace the content; returns True if it changed."""
        changed = content != self._content
        self._content = content
        return changed

    def line_count(self) -> int:
        return len(self._content.splitlines())
