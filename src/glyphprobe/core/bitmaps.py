"""Embedded bitmap glyphs ('EBLC'/'EBDT' and 'CBLC'/'CBDT').

The location table ('EBLC' or 'CBLC') lists bitmap strikes, one per pixel
size. Each strike holds index subtables that map a range of glyph indices to
records in the data table ('EBDT' or 'CBDT'). This module finds the record
for a glyph, checks that it lies inside the data table, and decodes it into
a byte-aligned Bitmap or an EncapsulatedImage.

Index subtable formats: 1 and 3 (per-glyph offset arrays), 2 (constant
image size), 4 (sparse glyph/offset pairs), 5 (constant size, sparse).
Image formats: 1, 6 (byte aligned), 2, 5, 7 (bit aligned), 17, 18, 19
(embedded PNG). Composite formats 8 and 9 are not decoded.
"""

import logging
from bisect import bisect_left
from dataclasses import dataclass

from glyphprobe.domain.bitmap import BitDepth, Bitmap, EncapsulatedImage, ImageFormat, row_size
from glyphprobe.exceptions import MalformedGlyphTable, UnsupportedGlyphFormat
from glyphprobe.io.binary import Buffer, read_array, read_slice, read_struct

logger = logging.getLogger(__name__)

LOCATION_HEADER_FORMAT = ">II"
LOCATION_HEADER_SIZE = 8
BITMAP_SIZE_FORMAT = ">IIII12s12sHHBBBb"
BITMAP_SIZE_SIZE = 48
INDEX_ARRAY_ENTRY_FORMAT = ">HHI"
INDEX_SUBHEADER_FORMAT = ">HHI"
INDEX_SUBHEADER_SIZE = 8

SMALL_METRICS_FORMAT = ">BBbbB"
SMALL_METRICS_SIZE = 5
BIG_METRICS_FORMAT = ">BBbbBbbB"
BIG_METRICS_SIZE = 8

SUPPORTED_LOCATION_VERSIONS = (2, 3)

# (location tag, data tag)
MONOCHROME_TABLES = ("EBLC", "EBDT")
COLOR_TABLES = ("CBLC", "CBDT")

COMPOSITE_IMAGE_FORMATS = (8, 9)


@dataclass(frozen=True)
class GlyphMetrics:
    """Size and placement of one bitmap glyph, in pixels."""

    height: int
    width: int
    bearing_x: int
    bearing_y: int
    advance: int

    @classmethod
    def small(cls, data: Buffer, offset: int) -> "GlyphMetrics":
        """Read a SmallGlyphMetrics record."""
        height, width, bearing_x, bearing_y, advance = read_struct(
            SMALL_METRICS_FORMAT, data, offset, MalformedGlyphTable, "small glyph metrics"
        )
        return cls(height, width, bearing_x, bearing_y, advance)

    @classmethod
    def big(cls, data: Buffer, offset: int) -> "GlyphMetrics":
        """Read a BigGlyphMetrics record (horizontal metrics only are kept)."""
        height, width, bearing_x, bearing_y, advance, *_vertical = read_struct(
            BIG_METRICS_FORMAT, data, offset, MalformedGlyphTable, "big glyph metrics"
        )
        return cls(height, width, bearing_x, bearing_y, advance)


@dataclass(frozen=True)
class IndexSubtable:
    """Header of one index subtable.

    Attributes:
        first_glyph: First glyph index covered
        last_glyph: Last glyph index covered (inclusive)
        offset: Offset of the subtable header within the location table
        index_format: Index subtable format (1-5)
        image_format: Image record format in the data table
        image_data_offset: Offset of this subtable's records in the data table
    """

    first_glyph: int
    last_glyph: int
    offset: int
    index_format: int
    image_format: int
    image_data_offset: int

    def covers(self, glyph_index: int) -> bool:
        """Check if the glyph falls in this subtable's range."""
        return self.first_glyph <= glyph_index <= self.last_glyph


@dataclass(frozen=True)
class Strike:
    """One bitmap size (a BitmapSize record)."""

    ppem_x: int
    ppem_y: int
    bit_depth: int
    start_glyph: int
    end_glyph: int
    subtables: tuple[IndexSubtable, ...]

    def subtable_for(self, glyph_index: int) -> IndexSubtable | None:
        """Return the index subtable covering ``glyph_index``, if any."""
        if not self.start_glyph <= glyph_index <= self.end_glyph:
            return None
        for subtable in self.subtables:
            if subtable.covers(glyph_index):
                return subtable
        return None


@dataclass(frozen=True)
class GlyphLocation:
    """Where a glyph's image record lives in the data table."""

    offset: int
    length: int
    metrics: GlyphMetrics | None = None


def _parse_strike(table: Buffer, index: int) -> Strike:
    (
        array_offset,
        _tables_size,
        num_subtables,
        _color_ref,
        _hori,
        _vert,
        start_glyph,
        end_glyph,
        ppem_x,
        ppem_y,
        bit_depth,
        _flags,
    ) = read_struct(
        BITMAP_SIZE_FORMAT,
        table,
        LOCATION_HEADER_SIZE + index * BITMAP_SIZE_SIZE,
        MalformedGlyphTable,
        f"bitmap size record {index}",
    )

    subtables = []
    for j in range(num_subtables):
        first, last, additional_offset = read_struct(
            INDEX_ARRAY_ENTRY_FORMAT,
            table,
            array_offset + 8 * j,
            MalformedGlyphTable,
            f"index subtable array entry {j} of strike {index}",
        )
        if first > last:
            raise MalformedGlyphTable(
                f"index subtable {j} of strike {index} covers glyphs {first}..{last}"
            )
        subtable_offset = array_offset + additional_offset
        index_format, image_format, image_data_offset = read_struct(
            INDEX_SUBHEADER_FORMAT,
            table,
            subtable_offset,
            MalformedGlyphTable,
            f"index subtable {j} header of strike {index}",
        )
        subtables.append(
            IndexSubtable(first, last, subtable_offset, index_format, image_format, image_data_offset)
        )

    return Strike(ppem_x, ppem_y, bit_depth, start_glyph, end_glyph, tuple(subtables))


def parse_strikes(table: Buffer, tag: str = "EBLC") -> tuple[Strike, ...]:
    """Parse all strikes of a bitmap location table.

    Raises:
        MalformedGlyphTable: If a record lies outside the table
        UnsupportedGlyphFormat: If the table version is unknown
    """
    version, num_sizes = read_struct(
        LOCATION_HEADER_FORMAT, table, 0, MalformedGlyphTable, f"{tag} header"
    )
    major = version >> 16
    if major not in SUPPORTED_LOCATION_VERSIONS:
        raise UnsupportedGlyphFormat(tag, f"version 0x{version:08X}")

    strikes = tuple(_parse_strike(table, i) for i in range(num_sizes))
    logger.debug(
        "Parsed %s: %d strikes (%s ppem)",
        tag, len(strikes), ", ".join(str(s.ppem_y) for s in strikes),
    )
    return strikes


def _checked_range(start: int, end: int, glyph_index: int) -> int:
    if end < start:
        raise MalformedGlyphTable(
            f"offsets for glyph {glyph_index} decrease ({start} > {end})"
        )
    return end - start


def locate_glyph(table: Buffer, subtable: IndexSubtable, glyph_index: int) -> GlyphLocation | None:
    """Find a glyph's record in the data table via its index subtable.

    Args:
        table: Location table bytes
        subtable: Index subtable covering the glyph
        glyph_index: Glyph to find

    Returns:
        GlyphLocation with an offset into the data table, or None when a
        sparse subtable has no entry for the glyph

    Raises:
        MalformedGlyphTable: If offsets decrease or lie outside the table
        UnsupportedGlyphFormat: If the index format is unknown
    """
    body = subtable.offset + INDEX_SUBHEADER_SIZE
    position = glyph_index - subtable.first_glyph
    base = subtable.image_data_offset

    if subtable.index_format == 1:
        start, end = read_struct(">II", table, body + 4 * position, MalformedGlyphTable, "sbitOffsets")
        return GlyphLocation(base + start, _checked_range(start, end, glyph_index))

    if subtable.index_format == 3:
        start, end = read_struct(">HH", table, body + 2 * position, MalformedGlyphTable, "sbitOffsets")
        return GlyphLocation(base + start, _checked_range(start, end, glyph_index))

    if subtable.index_format == 2:
        (image_size,) = read_struct(">I", table, body, MalformedGlyphTable, "imageSize")
        metrics = GlyphMetrics.big(table, body + 4)
        return GlyphLocation(base + image_size * position, image_size, metrics)

    if subtable.index_format == 4:
        (num_glyphs,) = read_struct(">I", table, body, MalformedGlyphTable, "numGlyphs")
        pairs = read_array("H", 2 * (num_glyphs + 1), table, body + 4, MalformedGlyphTable, "glyphArray")
        glyph_ids = pairs[0 : 2 * num_glyphs : 2]
        k = bisect_left(glyph_ids, glyph_index)
        if k == num_glyphs or glyph_ids[k] != glyph_index:
            return None
        start, end = pairs[2 * k + 1], pairs[2 * k + 3]
        return GlyphLocation(base + start, _checked_range(start, end, glyph_index))

    if subtable.index_format == 5:
        (image_size,) = read_struct(">I", table, body, MalformedGlyphTable, "imageSize")
        metrics = GlyphMetrics.big(table, body + 4)
        (num_glyphs,) = read_struct(">I", table, body + 4 + BIG_METRICS_SIZE, MalformedGlyphTable, "numGlyphs")
        glyph_ids = read_array(
            "H", num_glyphs, table, body + 8 + BIG_METRICS_SIZE, MalformedGlyphTable, "glyphIdArray"
        )
        k = bisect_left(glyph_ids, glyph_index)
        if k == num_glyphs or glyph_ids[k] != glyph_index:
            return None
        return GlyphLocation(base + image_size * k, image_size, metrics)

    raise UnsupportedGlyphFormat("EBLC index subtable", subtable.index_format)


def _byte_aligned(data: Buffer, width: int, height: int, depth: int) -> bytes:
    needed = row_size(width, depth) * height
    return bytes(read_slice(data, 0, needed, MalformedGlyphTable, f"{width}x{height} image data"))


def _bit_aligned(data: Buffer, width: int, height: int, depth: int) -> bytes:
    row_bits = width * depth
    needed = (row_bits * height + 7) // 8
    packed = read_slice(data, 0, needed, MalformedGlyphTable, f"{width}x{height} image data")

    bits = int.from_bytes(packed, "big")
    total_bits = needed * 8
    stride = row_size(width, depth)
    pad = stride * 8 - row_bits
    row_mask = (1 << row_bits) - 1

    rows = []
    for y in range(height):
        shift = total_bits - (y + 1) * row_bits
        row = (bits >> shift) & row_mask
        rows.append((row << pad).to_bytes(stride, "big"))
    return b"".join(rows)


def _bit_depth(depth: int) -> BitDepth:
    try:
        return BitDepth(depth)
    except ValueError:
        raise UnsupportedGlyphFormat("EBLC bitDepth", depth) from None


def _png(record: Buffer, at: int, metrics: GlyphMetrics, ppem: int) -> EncapsulatedImage:
    (data_length,) = read_struct(">I", record, at, MalformedGlyphTable, "PNG data length")
    data = read_slice(record, at + 4, data_length, MalformedGlyphTable, "PNG data")
    return EncapsulatedImage(
        format=ImageFormat.PNG,
        data=bytes(data),
        width=metrics.width,
        height=metrics.height,
        ppem=ppem,
    )


def decode_image(
    record: Buffer,
    image_format: int,
    bit_depth: int,
    ppem: int,
    index_metrics: GlyphMetrics | None = None,
) -> Bitmap | EncapsulatedImage:
    """Decode one image record from the data table.

    Args:
        record: The glyph's record bytes
        image_format: Image format from the index subtable header
        bit_depth: Bit depth of the strike
        ppem: Pixels per em of the strike
        index_metrics: Metrics from a constant-metrics index subtable

    Returns:
        A byte-aligned Bitmap, or an EncapsulatedImage for PNG records

    Raises:
        MalformedGlyphTable: If the record is shorter than its metrics need
        UnsupportedGlyphFormat: For composite, unknown or unsupported formats
    """
    if image_format in (1, 2):
        metrics, body = GlyphMetrics.small(record, 0), SMALL_METRICS_SIZE
    elif image_format in (6, 7):
        metrics, body = GlyphMetrics.big(record, 0), BIG_METRICS_SIZE
    elif image_format in (5, 19):
        if index_metrics is None:
            raise MalformedGlyphTable(
                f"image format {image_format} needs metrics from the index subtable"
            )
        metrics, body = index_metrics, 0
    elif image_format == 17:
        return _png(record, SMALL_METRICS_SIZE, GlyphMetrics.small(record, 0), ppem)
    elif image_format == 18:
        return _png(record, BIG_METRICS_SIZE, GlyphMetrics.big(record, 0), ppem)
    elif image_format in COMPOSITE_IMAGE_FORMATS:
        raise UnsupportedGlyphFormat("EBDT image", image_format, "composite bitmaps are not decoded")
    else:
        raise UnsupportedGlyphFormat("EBDT image", image_format)

    if image_format == 19:
        return _png(record, 0, metrics, ppem)

    depth = _bit_depth(bit_depth)
    pixels = memoryview(record)[body:]
    if image_format in (1, 6):
        data = _byte_aligned(pixels, metrics.width, metrics.height, depth)
    else:
        data = _bit_aligned(pixels, metrics.width, metrics.height, depth)

    return Bitmap(
        width=metrics.width,
        height=metrics.height,
        bit_depth=depth,
        data=data,
        ppem=ppem,
        bearing_x=metrics.bearing_x,
        bearing_y=metrics.bearing_y,
        advance=metrics.advance,
    )


class BitmapStrikes:
    """Bitmap strikes of one location/data table pair.

    Example:
        strikes = BitmapStrikes(buffer.table("EBLC"), buffer.table("EBDT"))
        bitmap = strikes.image_for(5, ppem=16)
    """

    def __init__(self, location: Buffer, data: Buffer, tags: tuple[str, str] = MONOCHROME_TABLES) -> None:
        """Parse the strike list of ``location``.

        Args:
            location: Location table bytes ('EBLC' or 'CBLC')
            data: Data table bytes ('EBDT' or 'CBDT')
            tags: (location tag, data tag) for messages
        """
        self._location = location
        self._data = data
        self.tags = tags
        self.strikes = parse_strikes(location, tags[0])

    def select(
        self, glyph_index: int, ppem: int | None = None, max_bit_depth: int = 32
    ) -> tuple[Strike, IndexSubtable] | None:
        """Pick the strike to read ``glyph_index`` from.

        Strikes deeper than ``max_bit_depth`` are skipped. With ``ppem``
        set, the strike closest to it wins (ties go to the larger strike);
        otherwise the largest strike wins.
        """
        candidates = []
        for strike in self.strikes:
            if strike.bit_depth > max_bit_depth:
                continue
            subtable = strike.subtable_for(glyph_index)
            if subtable is not None:
                candidates.append((strike, subtable))

        if not candidates:
            return None
        if ppem is None:
            return max(candidates, key=lambda c: c[0].ppem_y)
        return min(candidates, key=lambda c: (abs(c[0].ppem_y - ppem), -c[0].ppem_y))

    def image_for(
        self, glyph_index: int, ppem: int | None = None, max_bit_depth: int = 32
    ) -> Bitmap | EncapsulatedImage:
        """Return the decoded image for a glyph.

        Glyphs without a record in any eligible strike yield an empty Bitmap.

        Raises:
            MalformedGlyphTable: If the record lies outside the data table
            UnsupportedGlyphFormat: If the record cannot be decoded
        """
        selected = self.select(glyph_index, ppem, max_bit_depth)
        if selected is None:
            return Bitmap.empty()
        strike, subtable = selected

        location = locate_glyph(self._location, subtable, glyph_index)
        if location is None or location.length == 0:
            return Bitmap.empty(_bit_depth(strike.bit_depth), ppem=strike.ppem_y)

        record = read_slice(
            self._data,
            location.offset,
            location.length,
            MalformedGlyphTable,
            f"{self.tags[1]} record for glyph {glyph_index}",
        )
        return decode_image(
            record, subtable.image_format, strike.bit_depth, strike.ppem_y, location.metrics
        )
