"""Font content enumeration.

FontMapper walks a font's codepoint map and resolves each entry to a
Glyph record (index, codepoint, name).
"""

from glyphprobe.core.font import Font
from glyphprobe.domain import Glyph
from glyphprobe.exceptions import CodepointNotMapped, MalformedMappingTable, NameNotAvailable, UnsupportedNameFormat


class FontMapper:
    """Maps out the glyphs of a font.

    Codepoints whose glyph lies outside the font are skipped, and glyphs
    whose name cannot be read get ``name=None``.

    Example:
        mapper = FontMapper(font)
        for glyph in mapper.all_glyphs():
            print(glyph.codepoint, glyph.name)
    """

    def __init__(self, font: Font) -> None:
        """Bind the mapper to a font.

        Raises:
            TableNotFound: If the font has no 'cmap' table
            MalformedMappingTable: If the 'cmap' table is corrupt
        """
        self.font = font
        self.cmap = font.codepoint_map

    def name_of(self, index: int) -> str | None:
        """Return the name of glyph ``index``, or None if the font has none for it.

        Raises:
            MalformedNameTable: If the 'post' table is corrupt
        """
        try:
            return self.font.glyph_name(index)
        except (NameNotAvailable, UnsupportedNameFormat):
            return None

    def find_glyph(self, codepoint: int) -> Glyph | None:
        """Return the Glyph for ``codepoint``, or None if it is not mapped.

        A codepoint mapped to a glyph the font does not have counts as
        not mapped.
        """
        try:
            index = self.font.index_of(codepoint)
        except (CodepointNotMapped, MalformedMappingTable):
            return None
        return Glyph(index=index, codepoint=codepoint, name=self.name_of(index))

    def all_glyphs(self) -> list[Glyph]:
        """Return a Glyph for every mapped codepoint, in codepoint order."""
        return [
            Glyph(index=index, codepoint=codepoint, name=self.name_of(index))
            for codepoint, index in self.font.mapped_glyphs()
        ]
