"""Glyph names ('post' table).

Versions 1.0 and 2.0 of the 'post' table carry glyph names. Version 1.0
fonts use the 258 standard Macintosh glyph names in order; version 2.0
maps each glyph to either a standard name or a Pascal string stored after
the index array. Version 3.0 declares that the font has no names.
"""

import logging
from dataclasses import dataclass

from fontTools.ttLib.standardGlyphOrder import standardGlyphOrder

from glyphprobe.exceptions import MalformedNameTable, NameNotAvailable, UnsupportedNameFormat
from glyphprobe.io.binary import Buffer, read_array, read_slice, read_struct

logger = logging.getLogger(__name__)

POST_HEADER_FORMAT = ">IihhIIIII"
POST_HEADER_SIZE = 32

VERSION_1 = 0x00010000
VERSION_2 = 0x00020000
VERSION_3 = 0x00030000

STANDARD_NAME_COUNT = len(standardGlyphOrder)


@dataclass(frozen=True)
class GlyphNames:
    """Glyph names decoded from a 'post' table.

    Attributes:
        version: Raw table version (16.16 fixed)
        names: Name per glyph index, empty for version 3.0
    """

    version: int
    names: tuple[str, ...] = ()

    def name(self, index: int) -> str:
        """Return the name of glyph ``index``.

        Raises:
            NameNotAvailable: If the table carries no name for the glyph
        """
        if self.version == VERSION_3:
            raise NameNotAvailable(index, "post table version 3.0 carries no names")
        if index >= len(self.names):
            raise NameNotAvailable(index, f"post table names only {len(self.names)} glyphs")
        return self.names[index]


def _read_pascal_strings(table: Buffer, offset: int, count: int) -> list[str]:
    strings = []
    for i in range(count):
        (length,) = read_struct(">B", table, offset, MalformedNameTable, f"name string {i} length")
        raw = read_slice(table, offset + 1, length, MalformedNameTable, f"name string {i}")
        strings.append(bytes(raw).decode("latin-1"))
        offset += 1 + length
    return strings


def _parse_version_2(table: Buffer) -> tuple[str, ...]:
    (num_glyphs,) = read_struct(">H", table, POST_HEADER_SIZE, MalformedNameTable, "numGlyphs")
    name_indices = read_array(
        "H", num_glyphs, table, POST_HEADER_SIZE + 2, MalformedNameTable, "glyphNameIndex array"
    )
    custom_count = max((i - STANDARD_NAME_COUNT + 1 for i in name_indices), default=0)
    strings_at = POST_HEADER_SIZE + 2 + 2 * num_glyphs
    try:
        custom = _read_pascal_strings(table, strings_at, custom_count)
    except MalformedNameTable as e:
        raise MalformedNameTable(
            f"glyph name index refers to string {custom_count - 1} but the table ends first"
        ) from e

    names = []
    for name_index in name_indices:
        if name_index < STANDARD_NAME_COUNT:
            names.append(standardGlyphOrder[name_index])
        else:
            names.append(custom[name_index - STANDARD_NAME_COUNT])
    return tuple(names)


def parse_post(table: Buffer) -> GlyphNames:
    """Decode glyph names from a 'post' table.

    Args:
        table: Raw 'post' table bytes

    Returns:
        GlyphNames for the table's version

    Raises:
        MalformedNameTable: If the header or name data is truncated
        UnsupportedNameFormat: For version 2.5 and unknown versions
    """
    (version, *_rest) = read_struct(
        POST_HEADER_FORMAT, table, 0, MalformedNameTable, "post header"
    )

    if version == VERSION_1:
        names = tuple(standardGlyphOrder)
    elif version == VERSION_2:
        names = _parse_version_2(table)
    elif version == VERSION_3:
        names = ()
    else:
        raise UnsupportedNameFormat("post", f"0x{version:08X}")

    logger.debug("Parsed post table version 0x%08X: %d names", version, len(names))
    return GlyphNames(version=version, names=names)
