"""Section hierarchy and collapse state.

Sections are rooted at headings and keyed by the IR index of the heading.
The hierarchy is a flat ``id -> (level, parent_id)`` table; only direct
collapse flags are stored, and effective collapse is derived by walking
the parent chain on every read.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from .constants import ViewerConstants
from .styled_line import FRONTMATTER_SECTION_ID


@dataclass
class SectionInfo:
    level: int
    parent_id: Optional[int] = None


class SectionHierarchy:
    """Flat table of collapsible sections."""

    def __init__(self):
        self._sections: dict[int, SectionInfo] = {}

    def register(self, section_id: int, level: int, parent_id: Optional[int] = None) -> None:
        self._sections[section_id] = SectionInfo(level, parent_id)

    def get(self, section_id: int) -> Optional[SectionInfo]:
        return self._sections.get(section_id)

    def parent_of(self, section_id: int) -> Optional[int]:
        info = self._sections.get(section_id)
        return info.parent_id if info else None

    def ancestors(self, section_id: int) -> Iterator[int]:
        """Yield parent, grandparent, ... of a section (not the section itself)."""
        seen = {section_id}
        parent = self.parent_of(section_id)
        while parent is not None and parent not in seen:
            yield parent
            seen.add(parent)
            parent = self.parent_of(parent)

    def ids(self) -> list[int]:
        return list(self._sections)

    def clear(self) -> None:
        self._sections.clear()

    def __contains__(self, section_id) -> bool:
        return section_id in self._sections

    def __len__(self) -> int:
        return len(self._sections)


@dataclass
class ExpandableEntry:
    collapsed: bool = True
    max_lines: int = ViewerConstants.DEFAULT_MAX_LINES


class CollapseState:
    """Direct collapse flags for sections plus state of expandable blocks.

    ``version`` increments on every mutation so that render caches keyed
    on collapse state can tell when they are stale.
    """

    def __init__(self, hierarchy: Optional[SectionHierarchy] = None,
                 default_max_lines: int = ViewerConstants.DEFAULT_MAX_LINES):
        self.hierarchy = hierarchy if hierarchy is not None else SectionHierarchy()
        self._collapsed: dict[int, bool] = {}
        self._expandables: dict[str, ExpandableEntry] = {}
        self.default_max_lines = max(1, default_max_lines)
        self.version = 0

    def _changed(self) -> None:
        self.version += 1

    # Hierarchy

    def register_section(self, section_id: int, level: int, parent_id: Optional[int] = None) -> None:
        self.hierarchy.register(section_id, level, parent_id)
        self._changed()

    def clear_hierarchy(self) -> None:
        self.hierarchy.clear()
        self._changed()

    # Section flags

    def is_directly_collapsed(self, section_id: int) -> bool:
        return self._collapsed.get(section_id, False)

    def has_flag(self, section_id: int) -> bool:
        return section_id in self._collapsed

    def is_collapsed(self, section_id: int) -> bool:
        """True if the section or any of its ancestors is collapsed."""
        if self._collapsed.get(section_id, False):
            return True
        return self.is_hidden_by_ancestor(section_id)

    def is_hidden_by_ancestor(self, section_id: int) -> bool:
        for ancestor in self.hierarchy.ancestors(section_id):
            if self._collapsed.get(ancestor, False):
                return True
        return False

    def set_collapsed(self, section_id: int, collapsed: bool) -> None:
        self._collapsed[section_id] = collapsed
        self._changed()

    def toggle(self, section_id: int) -> bool:
        """Flip a section's direct flag and return the new value."""
        collapsed = not self._collapsed.get(section_id, False)
        self.set_collapsed(section_id, collapsed)
        return collapsed

    def collapse(self, section_id: int) -> None:
        self.set_collapsed(section_id, True)

    def expand(self, section_id: int) -> None:
        self.set_collapsed(section_id, False)

    def _known_ids(self) -> set[int]:
        return set(self.hierarchy.ids()) | set(self._collapsed)

    def collapse_all(self) -> None:
        for section_id in self._known_ids():
            self._collapsed[section_id] = True
        self._changed()

    def expand_all(self) -> None:
        for section_id in self._known_ids():
            self._collapsed[section_id] = False
        self._changed()

    def frontmatter_collapsed(self) -> bool:
        return self.is_collapsed(FRONTMATTER_SECTION_ID)

    # Expandable blocks

    def _entry(self, content_id: str) -> ExpandableEntry:
        entry = self._expandables.get(content_id)
        if entry is None:
            entry = ExpandableEntry(max_lines=self.default_max_lines)
            self._expandables[content_id] = entry
        return entry

    def is_expandable_collapsed(self, content_id: str) -> bool:
        entry = self._expandables.get(content_id)
        return entry.collapsed if entry else True

    def toggle_expandable(self, content_id: str) -> bool:
        """Flip an expandable block and return True if it is now collapsed."""
        entry = self._entry(content_id)
        entry.collapsed = not entry.collapsed
        self._changed()
        return entry.collapsed

    def expand_expandable(self, content_id: str) -> None:
        self._entry(content_id).collapsed = False
        self._changed()

    def collapse_expandable(self, content_id: str) -> None:
        self._entry(content_id).collapsed = True
        self._changed()

    def get_max_lines(self, content_id: str) -> int:
        entry = self._expandables.get(content_id)
        return entry.max_lines if entry else self.default_max_lines

    def set_max_lines(self, content_id: str, max_lines: int) -> None:
        self._entry(content_id).max_lines = max(1, max_lines)
        self._changed()

    def set_default_max_lines(self, max_lines: int) -> None:
        self.default_max_lines = max(1, max_lines)
        self._changed()

    def reset(self) -> None:
        """Forget every collapse flag and expandable state."""
        self._collapsed.clear()
        self._expandables.clear()
        self._changed()

    # Persistence helpers

    def collapsed_ids(self) -> list[int]:
        return sorted(sid for sid, flag in self._collapsed.items() if flag)
