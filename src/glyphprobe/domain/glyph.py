"""Glyph records.

This module defines the per-glyph views derived from a font:
- Glyph: a codepoint resolved to its glyph index and name
- GlyphOutline: the raw 'glyf' record of a glyph
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Glyph:
    """A mapped glyph.

    Attributes:
        index: Glyph index within the font
        codepoint: Unicode codepoint that maps to the glyph
        name: Glyph name (None when the font carries no names)
    """

    index: int
    codepoint: int
    name: str | None = None

    @property
    def char(self) -> str | None:
        """The character for ``codepoint``, or None if it is not a scalar value."""
        if 0xD800 <= self.codepoint <= 0xDFFF or not 0 <= self.codepoint <= 0x10FFFF:
            return None
        return chr(self.codepoint)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary representation of the glyph
        """
        return {
            "index": self.index,
            "codepoint": self.codepoint,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Glyph":
        """Deserialize from dictionary."""
        return cls(index=data["index"], codepoint=data["codepoint"], name=data.get("name"))


@dataclass(frozen=True)
class GlyphOutline:
    """Raw outline record for one glyph.

    The record is not decoded beyond its fixed header; point data is left
    as stored so callers can hand it to an outline library.

    Attributes:
        index: Glyph index
        data: Record bytes exactly as stored in 'glyf'
        number_of_contours: Contour count (-1 for composite glyphs)
        bounds: (x_min, y_min, x_max, y_max) in font units
    """

    index: int
    data: bytes
    number_of_contours: int = 0
    bounds: tuple[int, int, int, int] = (0, 0, 0, 0)

    def is_empty(self) -> bool:
        """Check if the glyph has no outline (e.g. space)."""
        return len(self.data) == 0

    def is_composite(self) -> bool:
        """Check if the glyph is assembled from other glyphs."""
        return self.number_of_contours < 0
