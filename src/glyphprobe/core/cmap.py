"""Character to glyph mapping ('cmap' table).

This module parses the preferred Unicode subtable of a 'cmap' table into a
CodepointMap: a sorted tuple of non-overlapping segments, validated once
when the map is built. Lookups are a binary search over segment starts
followed by an offset into the matching segment.

Supported subtable formats:
- 4: segment mapping to delta values (BMP)
- 12: segmented coverage (full Unicode)
- 13: many-to-one range mappings
- 0, 6: byte encoding and trimmed table mapping (flat arrays)
"""

import logging
from bisect import bisect_right
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from glyphprobe.exceptions import (
    CodepointNotMapped,
    MalformedMappingTable,
    UnsupportedMappingFormat,
)
from glyphprobe.io.binary import Buffer, read_array, read_slice, read_struct

logger = logging.getLogger(__name__)

MAX_CODEPOINT = 0x10FFFF

# (platformID, encodingID) in order of preference
UNICODE_SUBTABLE_PREFERENCE: tuple[tuple[int, int], ...] = (
    (3, 10),  # Windows, Unicode full repertoire
    (0, 6),  # Unicode full repertoire (format 13)
    (0, 4),  # Unicode 2.0+ full repertoire
    (3, 1),  # Windows, Unicode BMP
    (0, 3),  # Unicode 2.0+ BMP
    (0, 2),
    (0, 1),
    (0, 0),
    (3, 0),  # Windows symbol
)

VARIATION_SEQUENCES_FORMAT = 14
SUPPORTED_FORMATS = (0, 4, 6, 12, 13)


@dataclass(frozen=True, slots=True)
class Segment:
    """A contiguous run of codepoints sharing one mapping rule.

    Attributes:
        start: First codepoint of the run
        end: Last codepoint of the run (inclusive)
        start_glyph: Glyph for ``start`` (delta and constant segments)
        glyph_ids: Explicit glyph per codepoint (array segments)
        id_delta: Added modulo 65536 to non-zero ``glyph_ids`` entries
        constant: Every codepoint maps to ``start_glyph``
        wrap16: Glyph arithmetic is modulo 65536 (format 4)
    """

    start: int
    end: int
    start_glyph: int = 0
    glyph_ids: tuple[int, ...] | None = None
    id_delta: int = 0
    constant: bool = False
    wrap16: bool = False

    def glyph_for(self, codepoint: int) -> int:
        """Glyph index for a codepoint inside this segment (0 means missing)."""
        offset = codepoint - self.start
        if self.glyph_ids is not None:
            glyph = self.glyph_ids[offset]
            if glyph and self.id_delta:
                glyph = (glyph + self.id_delta) & 0xFFFF
            return glyph
        if self.constant:
            return self.start_glyph
        glyph = self.start_glyph + offset
        return glyph & 0xFFFF if self.wrap16 else glyph

    def max_glyph(self) -> int:
        """Largest glyph index this segment can produce."""
        if self.glyph_ids is not None:
            if not self.id_delta:
                return max(self.glyph_ids, default=0)
            return max((self.glyph_for(c) for c in range(self.start, self.end + 1)), default=0)
        if self.constant:
            return self.start_glyph
        last = self.start_glyph + (self.end - self.start)
        if self.wrap16 and last > 0xFFFF:
            return 0xFFFF
        return last


class CodepointMap:
    """Immutable codepoint to glyph index mapping.

    Example:
        cmap = parse_cmap(buffer.table("cmap"))
        glyph = cmap.lookup(0xE88A)
    """

    def __init__(
        self,
        segments: Sequence[Segment],
        format: int,
        platform_id: int = 3,
        encoding_id: int = 1,
    ) -> None:
        """Build the map, validating segment order.

        Raises:
            MalformedMappingTable: If segments are inverted, unsorted or overlap
        """
        previous: Segment | None = None
        for segment in segments:
            if segment.start > segment.end:
                raise MalformedMappingTable(
                    f"segment start U+{segment.start:04X} after end U+{segment.end:04X}"
                )
            if previous is not None and segment.start <= previous.end:
                raise MalformedMappingTable(
                    f"segment U+{segment.start:04X}..U+{segment.end:04X} overlaps or precedes "
                    f"U+{previous.start:04X}..U+{previous.end:04X}"
                )
            previous = segment

        self._segments = tuple(segments)
        self._starts = [segment.start for segment in self._segments]
        self.format = format
        self.platform_id = platform_id
        self.encoding_id = encoding_id

    @property
    def segments(self) -> tuple[Segment, ...]:
        """Segments in codepoint order."""
        return self._segments

    def get(self, codepoint: int) -> int | None:
        """Return the glyph index for ``codepoint``, or None if unmapped."""
        if not 0 <= codepoint <= MAX_CODEPOINT:
            return None
        position = bisect_right(self._starts, codepoint) - 1
        if position < 0:
            return None
        segment = self._segments[position]
        if codepoint > segment.end:
            return None
        glyph = segment.glyph_for(codepoint)
        return glyph or None

    def lookup(self, codepoint: int) -> int:
        """Return the glyph index for ``codepoint``.

        Raises:
            CodepointNotMapped: If the codepoint has no glyph
        """
        glyph = self.get(codepoint)
        if glyph is None:
            raise CodepointNotMapped(codepoint)
        return glyph

    def __contains__(self, codepoint: object) -> bool:
        return isinstance(codepoint, int) and self.get(codepoint) is not None

    def items(self) -> Iterator[tuple[int, int]]:
        """Iterate over (codepoint, glyph index) pairs in codepoint order."""
        for segment in self._segments:
            for codepoint in range(segment.start, min(segment.end, MAX_CODEPOINT) + 1):
                glyph = segment.glyph_for(codepoint)
                if glyph:
                    yield codepoint, glyph

    def codepoints(self) -> Iterator[int]:
        """Iterate over mapped codepoints in ascending order."""
        for codepoint, _glyph in self.items():
            yield codepoint

    @property
    def max_glyph_index(self) -> int:
        """Largest glyph index any segment can produce (0 for an empty map)."""
        return max((segment.max_glyph() for segment in self._segments), default=0)

    def __repr__(self) -> str:
        return (
            f"CodepointMap(format={self.format}, platform={self.platform_id}/"
            f"{self.encoding_id}, segments={len(self._segments)})"
        )


def _subtable_bounds(table: Buffer, offset: int, length: int) -> memoryview:
    return read_slice(table, offset, length, MalformedMappingTable, "cmap subtable")


def _parse_format_0(table: Buffer, offset: int) -> list[Segment]:
    _format, length, _language = read_struct(">HHH", table, offset, MalformedMappingTable, "format 0 header")
    data = _subtable_bounds(table, offset, length)
    glyph_ids = read_array("B", 256, data, 6, MalformedMappingTable, "format 0 glyph array")
    return [Segment(0, 255, glyph_ids=glyph_ids)]


def _parse_format_4(table: Buffer, offset: int) -> list[Segment]:
    _format, length, _language, seg_count_x2 = read_struct(
        ">HHHH", table, offset, MalformedMappingTable, "format 4 header"
    )
    if seg_count_x2 % 2:
        raise MalformedMappingTable(f"odd segCountX2 {seg_count_x2}")
    data = _subtable_bounds(table, offset, length)

    seg_count = seg_count_x2 // 2
    ends = read_array("H", seg_count, data, 14, MalformedMappingTable, "endCode array")
    starts = read_array("H", seg_count, data, 16 + seg_count_x2, MalformedMappingTable, "startCode array")
    deltas = read_array("h", seg_count, data, 16 + 2 * seg_count_x2, MalformedMappingTable, "idDelta array")
    range_offsets_at = 16 + 3 * seg_count_x2
    range_offsets = read_array("H", seg_count, data, range_offsets_at, MalformedMappingTable, "idRangeOffset array")

    segments = []
    for i in range(seg_count):
        start, end, delta, range_offset = starts[i], ends[i], deltas[i], range_offsets[i]
        if start == 0xFFFF:
            # terminator segment
            continue
        if start > end:
            raise MalformedMappingTable(f"format 4 segment {i} has start {start} > end {end}")
        if range_offset == 0:
            segments.append(Segment(start, end, start_glyph=(start + delta) & 0xFFFF, wrap16=True))
            continue
        address = range_offsets_at + 2 * i + range_offset
        glyph_ids = read_array(
            "H", end - start + 1, data, address, MalformedMappingTable,
            f"format 4 glyphIdArray for segment {i}",
        )
        segments.append(Segment(start, end, glyph_ids=glyph_ids, id_delta=delta & 0xFFFF))
    return segments


def _parse_format_6(table: Buffer, offset: int) -> list[Segment]:
    _format, length, _language, first_code, entry_count = read_struct(
        ">HHHHH", table, offset, MalformedMappingTable, "format 6 header"
    )
    data = _subtable_bounds(table, offset, length)
    glyph_ids = read_array("H", entry_count, data, 10, MalformedMappingTable, "format 6 glyph array")
    if not entry_count:
        return []
    return [Segment(first_code, first_code + entry_count - 1, glyph_ids=glyph_ids)]


def _parse_groups(table: Buffer, offset: int, subtable_format: int) -> list[Segment]:
    _format, _reserved, length, _language, num_groups = read_struct(
        ">HHIII", table, offset, MalformedMappingTable, f"format {subtable_format} header"
    )
    data = _subtable_bounds(table, offset, length)
    if 16 + num_groups * 12 > length:
        raise MalformedMappingTable(
            f"format {subtable_format} declares {num_groups} groups but is only {length} bytes"
        )
    raw = read_array("I", num_groups * 3, data, 16, MalformedMappingTable, f"format {subtable_format} groups")

    segments = []
    for i in range(num_groups):
        start, end, glyph = raw[3 * i : 3 * i + 3]
        if start > end:
            raise MalformedMappingTable(f"format {subtable_format} group {i} has start {start} > end {end}")
        segments.append(Segment(start, end, start_glyph=glyph, constant=(subtable_format == 13)))
    return segments


_PARSERS = {
    0: _parse_format_0,
    4: _parse_format_4,
    6: _parse_format_6,
    12: lambda table, offset: _parse_groups(table, offset, 12),
    13: lambda table, offset: _parse_groups(table, offset, 13),
}


def read_encoding_records(table: Buffer) -> list[tuple[int, int, int, int]]:
    """Read the cmap encoding records.

    Returns:
        List of (platform_id, encoding_id, subtable offset, subtable format)

    Raises:
        MalformedMappingTable: If a record or subtable header is out of bounds
    """
    _version, num_tables = read_struct(">HH", table, 0, MalformedMappingTable, "cmap header")
    records = []
    for i in range(num_tables):
        platform_id, encoding_id, offset = read_struct(
            ">HHI", table, 4 + 8 * i, MalformedMappingTable, "encoding record"
        )
        (subtable_format,) = read_struct(
            ">H", table, offset, MalformedMappingTable, "subtable format"
        )
        records.append((platform_id, encoding_id, offset, subtable_format))
    return records


def select_subtable(records: list[tuple[int, int, int, int]]) -> tuple[int, int, int, int]:
    """Pick the preferred Unicode subtable.

    Raises:
        MalformedMappingTable: If the table has no encoding records
        UnsupportedMappingFormat: If no Unicode subtable is present
    """
    if not records:
        raise MalformedMappingTable("no encoding records")
    candidates: dict[tuple[int, int], tuple[int, int, int, int]] = {}
    for record in records:
        platform_id, encoding_id, _offset, subtable_format = record
        if subtable_format != VARIATION_SEQUENCES_FORMAT:
            candidates.setdefault((platform_id, encoding_id), record)

    for key in UNICODE_SUBTABLE_PREFERENCE:
        if key in candidates:
            return candidates[key]
    available = ", ".join(f"{p}/{e}" for p, e, _o, _f in records)
    raise UnsupportedMappingFormat("cmap", "non-Unicode", f"no Unicode subtable (found {available})")


def parse_cmap(table: Buffer) -> CodepointMap:
    """Parse the preferred Unicode subtable of a 'cmap' table.

    Args:
        table: Raw 'cmap' table bytes

    Returns:
        Validated CodepointMap

    Raises:
        MalformedMappingTable: If the table contradicts its declared format
        UnsupportedMappingFormat: If the chosen subtable format is not supported
    """
    platform_id, encoding_id, offset, subtable_format = select_subtable(
        read_encoding_records(table)
    )
    parser = _PARSERS.get(subtable_format)
    if parser is None:
        raise UnsupportedMappingFormat(
            "cmap", subtable_format, f"subtable {platform_id}/{encoding_id} cannot be decoded"
        )

    segments = parser(table, offset)
    codepoint_map = CodepointMap(segments, subtable_format, platform_id, encoding_id)
    logger.debug(
        "Built codepoint map: format %d (%d/%d), %d segments",
        subtable_format, platform_id, encoding_id, len(segments),
    )
    return codepoint_map
