"""Font-level header tables ('head' and 'maxp')."""

from dataclasses import dataclass

from glyphprobe.exceptions import MalformedHeader
from glyphprobe.io.binary import Buffer, read_struct

HEAD_FORMAT = ">IIIIHHqqhhhhHHhhh"
HEAD_MAGIC = 0x5F0F3CF5
MAXP_FORMAT = ">IH"


@dataclass(frozen=True)
class FontHeader:
    """Fields of the 'head' table that glyph lookup depends on.

    Attributes:
        units_per_em: Design units per em
        index_to_loc_format: 0 for short (u16 * 2) 'loca' offsets, 1 for long
        bounds: Union of all glyph bounding boxes (x_min, y_min, x_max, y_max)
        lowest_rec_ppem: Smallest readable size in pixels
    """

    units_per_em: int
    index_to_loc_format: int
    bounds: tuple[int, int, int, int]
    lowest_rec_ppem: int


def parse_head(table: Buffer) -> FontHeader:
    """Decode the 'head' table.

    Raises:
        MalformedHeader: If the table is truncated or has the wrong magic number
    """
    (
        _version,
        _revision,
        _checksum_adjustment,
        magic,
        _flags,
        units_per_em,
        _created,
        _modified,
        x_min,
        y_min,
        x_max,
        y_max,
        _mac_style,
        lowest_rec_ppem,
        _direction_hint,
        index_to_loc_format,
        _glyph_data_format,
    ) = read_struct(HEAD_FORMAT, table, 0, MalformedHeader, "head table")
    if magic != HEAD_MAGIC:
        raise MalformedHeader(f"head table has bad magic number 0x{magic:08X}")
    return FontHeader(units_per_em, index_to_loc_format, (x_min, y_min, x_max, y_max), lowest_rec_ppem)


def parse_num_glyphs(table: Buffer) -> int:
    """Return 'maxp' numGlyphs.

    Raises:
        MalformedHeader: If the table is truncated
    """
    _version, num_glyphs = read_struct(MAXP_FORMAT, table, 0, MalformedHeader, "maxp table")
    return num_glyphs
