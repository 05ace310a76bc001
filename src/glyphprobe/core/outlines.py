"""TrueType outline records ('loca' and 'glyf').

'loca' is a per-glyph offset table into 'glyf': glyph ``i`` spans
``[offsets[i], offsets[i + 1])``. Offsets are checked on every access
so a decreasing pair or a range past the end of 'glyf' is reported
instead of returning another glyph's bytes.
"""

from glyphprobe.domain.glyph import GlyphOutline
from glyphprobe.exceptions import MalformedGlyphTable
from glyphprobe.io.binary import Buffer, read_slice, read_struct

GLYPH_HEADER_FORMAT = ">hhhhh"

SHORT_OFFSETS = 0
LONG_OFFSETS = 1


class OutlineTable:
    """Random access to 'glyf' records through 'loca'.

    Example:
        outlines = OutlineTable(buffer.table("loca"), buffer.table("glyf"), 1, 12)
        outline = outlines.outline_for(3)
    """

    def __init__(self, loca: Buffer, glyf: Buffer, index_to_loc_format: int, num_glyphs: int) -> None:
        """Check that 'loca' holds an offset for every glyph.

        Raises:
            MalformedGlyphTable: If 'loca' is too short or the format is unknown
        """
        if index_to_loc_format == SHORT_OFFSETS:
            self._entry_format, self._entry_size, self._scale = ">HH", 2, 2
        elif index_to_loc_format == LONG_OFFSETS:
            self._entry_format, self._entry_size, self._scale = ">II", 4, 1
        else:
            raise MalformedGlyphTable(f"unknown indexToLocFormat {index_to_loc_format}")

        needed = (num_glyphs + 1) * self._entry_size
        if len(loca) < needed:
            raise MalformedGlyphTable(
                f"loca has {len(loca)} bytes, {num_glyphs} glyphs need {needed}"
            )
        self._loca = loca
        self._glyf = glyf
        self.num_glyphs = num_glyphs

    def span(self, glyph_index: int) -> tuple[int, int]:
        """Return the [start, end) byte range of a glyph in 'glyf'.

        Raises:
            MalformedGlyphTable: If the offsets decrease or pass the end of 'glyf'
        """
        start, end = read_struct(
            self._entry_format,
            self._loca,
            glyph_index * self._entry_size,
            MalformedGlyphTable,
            f"loca entry {glyph_index}",
        )
        start, end = start * self._scale, end * self._scale
        if end < start:
            raise MalformedGlyphTable(f"loca offsets for glyph {glyph_index} decrease ({start} > {end})")
        if end > len(self._glyf):
            raise MalformedGlyphTable(
                f"glyph {glyph_index} spans {start}..{end} but glyf is {len(self._glyf)} bytes"
            )
        return start, end

    def outline_for(self, glyph_index: int) -> GlyphOutline:
        """Return the raw outline record of a glyph."""
        start, end = self.span(glyph_index)
        if start == end:
            return GlyphOutline(index=glyph_index, data=b"")

        record = read_slice(self._glyf, start, end - start, MalformedGlyphTable, "glyf record")
        number_of_contours, x_min, y_min, x_max, y_max = read_struct(
            GLYPH_HEADER_FORMAT, record, 0, MalformedGlyphTable, f"glyph {glyph_index} header"
        )
        return GlyphOutline(
            index=glyph_index,
            data=bytes(record),
            number_of_contours=number_of_contours,
            bounds=(x_min, y_min, x_max, y_max),
        )
