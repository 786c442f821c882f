"""Braille minimap giving a compact overview of the document.

Each braille cell is a 2x4 dot grid, so one glyph shows two columns of
density with four levels each.
"""

import math
from typing import Optional

from .constants import ViewerConstants

BRAILLE_BASE = 0x2800
BRAILLE_EMPTY = chr(BRAILLE_BASE)
BRAILLE_FULL = chr(BRAILLE_BASE + 0xFF)

# Dot bits filled bottom-up per column: left column, then right column
_LEFT_BITS = [0x01, 0x02, 0x04, 0x40]
_RIGHT_BITS = [0x08, 0x10, 0x20, 0x80]
_ALL_BITS = _LEFT_BITS + _RIGHT_BITS


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _dots(density: float, levels: int) -> int:
    # Round half up so that exactly half a dot still shows
    return min(levels, int(_clamp(density) * levels + 0.5))


def non_whitespace_count(line: str) -> int:
    return sum(1 for ch in line if not ch.isspace())


def line_to_density(line: str, max_width: int) -> float:
    """Fraction of the widest line's non-whitespace characters present in ``line``."""
    if max_width == 0:
        return 0.0
    return min(non_whitespace_count(line) / max_width, 1.0)


def density_to_braille(density: float) -> str:
    """One density as an 8-dot glyph."""
    code = BRAILLE_BASE
    for bit in _ALL_BITS[:_dots(density, 8)]:
        code |= bit
    return chr(code)


def density_pair_to_braille(left: float, right: float) -> str:
    """Two densities as one glyph, four dots per column."""
    code = BRAILLE_BASE
    for bit in _LEFT_BITS[:_dots(left, 4)]:
        code |= bit
    for bit in _RIGHT_BITS[:_dots(right, 4)]:
        code |= bit
    return chr(code)


class Minimap:
    """Density overview of raw text with a viewport band.

    The viewport is given in source lines: ``viewport_start`` inclusive,
    ``viewport_end`` exclusive, both 0-indexed.
    """

    def __init__(self, content: str, width: int = ViewerConstants.MINIMAP_WIDTH):
        self.content = content
        self.lines = content.splitlines()
        self.width = max(1, width)
        self.viewport_start = 0
        self.viewport_end = 0
        self.total_lines = len(self.lines)

    def viewport(self, start: int, end: int, total: Optional[int] = None) -> "Minimap":
        self.viewport_start = start
        self.viewport_end = end
        if total is not None:
            self.total_lines = total
        return self

    def max_line_width(self) -> int:
        return max((non_whitespace_count(line) for line in self.lines), default=0)

    def line_densities(self) -> list[float]:
        max_width = max(self.max_line_width(), 1)
        return [line_to_density(line, max_width) for line in self.lines]

    def lines_per_row(self, height: int) -> int:
        if self.total_lines == 0 or height == 0:
            return 0
        return math.ceil(self.total_lines / height)

    def is_in_viewport(self, row: int, height: int) -> bool:
        """Whether the source band drawn on minimap ``row`` overlaps the viewport."""
        if self.total_lines == 0 or height == 0:
            return False
        per_row = self.lines_per_row(height)
        start = row * per_row
        end = (row + 1) * per_row
        return start < self.viewport_end and end > self.viewport_start

    def render_rows(self, height: int) -> list[tuple[str, bool]]:
        """Render ``height`` glyph rows.

        Each row shows the mean density of its band of source lines in
        both dot columns of every glyph.

        Returns:
            (glyphs, in_viewport) per row; rows past the end of the
            document are blank
        """
        rows: list[tuple[str, bool]] = []
        per_row = self.lines_per_row(height)
        densities = self.line_densities()
        for row in range(height):
            band = densities[row * per_row:(row + 1) * per_row] if per_row else []
            density = sum(band) / len(band) if band else 0.0
            glyph = density_pair_to_braille(density, density)
            rows.append((glyph * self.width, self.is_in_viewport(row, height)))
        return rows


def minimap_fits(area_width: int, minimap_width: int = ViewerConstants.MINIMAP_WIDTH) -> bool:
    """Whether an area is wide enough to give up columns to the minimap."""
    return area_width > minimap_width + ViewerConstants.MINIMAP_MIN_CONTENT_WIDTH
