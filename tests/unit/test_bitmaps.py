"""Unit tests for embedded bitmap tables.

Tests for strike parsing, strike selection, index subtable formats and
image record decoding.
"""

import struct

import pytest

from glyphprobe.core.bitmaps import (
    BitmapStrikes,
    GlyphMetrics,
    IndexSubtable,
    decode_image,
    locate_glyph,
    parse_strikes,
)
from glyphprobe.domain import BitDepth, Bitmap, EncapsulatedImage
from glyphprobe.exceptions import MalformedGlyphTable, UnsupportedGlyphFormat

BIG_METRICS = struct.pack(">BBbbBbbB", 3, 3, 0, 3, 4, 0, 0, 3)


class TestDecodeImage:
    """Tests for decode_image function."""

    def test_byte_aligned(self, factory):
        """Test image format 1: small metrics, padded rows."""
        record = factory.small_record(3, 3, b"\xa0\x40\xe0", bearing_x=1, bearing_y=2)
        bitmap = decode_image(record, 1, 1, 12)

        assert isinstance(bitmap, Bitmap)
        assert (bitmap.width, bitmap.height) == (3, 3)
        assert bitmap.data == b"\xa0\x40\xe0"
        assert bitmap.bearing_x == 1
        assert bitmap.bearing_y == 2
        assert bitmap.advance == 3
        assert bitmap.ppem == 12

    def test_bit_aligned_repacked(self, factory):
        """Test image format 2: rows packed without padding are split into bytes."""
        record = factory.small_record(3, 3, b"\xab\x80")
        bitmap = decode_image(record, 2, 1, 12)
        assert bitmap.data == b"\xa0\x40\xe0"
        assert [bitmap.pixel(x, 1) for x in range(3)] == [0, 1, 0]

    def test_bit_aligned_gray(self, factory):
        """Test bit-aligned 2-bit pixels spanning byte boundaries."""
        # 3x2 pixels at 2 bpp: rows 0b111001 and 0b100111
        record = factory.small_record(3, 2, bytes([0b11100110, 0b01110000]))
        bitmap = decode_image(record, 2, 2, 12)
        assert bitmap.bit_depth == BitDepth.GRAY2
        assert bitmap.data == bytes([0b11100100, 0b10011100])

    def test_big_metrics(self, factory):
        """Test image formats 6 and 7."""
        byte_aligned = decode_image(factory.big_record(3, 3, b"\xa0\x40\xe0"), 6, 1, 20)
        bit_aligned = decode_image(factory.big_record(3, 3, b"\xab\x80"), 7, 1, 20)
        assert byte_aligned.data == bit_aligned.data == b"\xa0\x40\xe0"

    def test_gray8(self, factory):
        """Test 8-bit grayscale records."""
        bitmap = decode_image(factory.small_record(2, 1, b"\x00\xff"), 1, 8, 12)
        assert bitmap.pixel(1, 0) == 255

    def test_format_5_uses_index_metrics(self):
        """Test image format 5 with metrics from the index subtable."""
        metrics = GlyphMetrics(height=3, width=3, bearing_x=0, bearing_y=3, advance=4)
        bitmap = decode_image(b"\xab\x80", 5, 1, 12, metrics)
        assert bitmap.data == b"\xa0\x40\xe0"
        assert bitmap.advance == 4

    def test_format_5_without_metrics(self):
        """Test that format 5 needs metrics from the index subtable."""
        with pytest.raises(MalformedGlyphTable):
            decode_image(b"\xab\x80", 5, 1, 12)

    def test_png(self, factory):
        """Test that format 17 yields an embedded PNG."""
        image = decode_image(factory.png_record(16, 16, b"\x89PNG\r\n\x1a\nDATA"), 17, 32, 109)
        assert isinstance(image, EncapsulatedImage)
        assert image.export() == ("png", b"\x89PNG\r\n\x1a\nDATA")
        assert (image.width, image.height, image.ppem) == (16, 16, 109)

    def test_truncated_pixels(self, factory):
        """Test a record shorter than its metrics need."""
        with pytest.raises(MalformedGlyphTable):
            decode_image(factory.small_record(8, 8, b"\xff" * 4), 1, 1, 12)

    def test_composite_unsupported(self):
        """Test that composite formats are reported as unsupported."""
        with pytest.raises(UnsupportedGlyphFormat, match="composite"):
            decode_image(b"\0" * 16, 8, 1, 12)

    def test_unknown_format(self):
        """Test an image format that does not exist."""
        with pytest.raises(UnsupportedGlyphFormat) as exc_info:
            decode_image(b"\0" * 16, 3, 1, 12)
        assert exc_info.value.format_id == 3

    def test_unknown_bit_depth(self, factory):
        """Test a strike bit depth that does not exist."""
        with pytest.raises(UnsupportedGlyphFormat):
            decode_image(factory.small_record(1, 1, b"\x00"), 1, 3, 12)


class TestLocateGlyph:
    """Tests for index subtable formats 2, 4 and 5."""

    def test_format_2(self):
        """Test constant image size with shared metrics."""
        table = struct.pack(">HHI", 2, 5, 100) + struct.pack(">I", 2) + BIG_METRICS
        subtable = IndexSubtable(10, 20, 0, 2, 5, 100)

        location = locate_glyph(table, subtable, 13)

        assert location.offset == 100 + 2 * 3
        assert location.length == 2
        assert location.metrics.advance == 4

    def test_format_4(self):
        """Test sparse glyph and offset pairs."""
        pairs = [(3, 0), (7, 10), (9, 25), (0, 30)]
        table = struct.pack(">HHI", 4, 1, 50) + struct.pack(">I", 3)
        table += b"".join(struct.pack(">HH", g, o) for g, o in pairs)
        subtable = IndexSubtable(3, 9, 0, 4, 1, 50)

        location = locate_glyph(table, subtable, 7)

        assert (location.offset, location.length) == (60, 15)
        assert locate_glyph(table, subtable, 8) is None

    def test_format_5(self):
        """Test sparse glyphs with constant image size."""
        table = struct.pack(">HHI", 5, 5, 40) + struct.pack(">I", 2) + BIG_METRICS
        table += struct.pack(">I3H", 3, 4, 6, 9)
        subtable = IndexSubtable(4, 9, 0, 5, 5, 40)

        location = locate_glyph(table, subtable, 9)

        assert (location.offset, location.length) == (44, 2)
        assert locate_glyph(table, subtable, 5) is None

    def test_unknown_index_format(self):
        """Test an index format that does not exist."""
        table = struct.pack(">HHI", 6, 1, 0) + bytes(16)
        with pytest.raises(UnsupportedGlyphFormat):
            locate_glyph(table, IndexSubtable(0, 1, 0, 6, 1, 0), 0)


class TestParseStrikes:
    """Tests for parse_strikes function."""

    def test_strikes(self, factory):
        """Test reading strike sizes and glyph ranges."""
        location, _data = factory.bitmap_tables(
            [
                {"first": 1, "records": [b"", b""], "ppem": 8},
                {"first": 1, "records": [b""], "ppem": 16, "bit_depth": 8},
            ]
        )
        strikes = parse_strikes(location)

        assert [s.ppem_y for s in strikes] == [8, 16]
        assert strikes[0].end_glyph == 2
        assert strikes[1].bit_depth == 8
        assert strikes[0].subtable_for(2).index_format == 1
        assert strikes[0].subtable_for(3) is None

    def test_color_version(self, factory):
        """Test that CBLC version 3.0 is accepted."""
        location, _data = factory.bitmap_tables([{"first": 0, "records": [b""]}], version=0x00030000)
        assert len(parse_strikes(location, "CBLC")) == 1

    def test_unknown_version(self, factory):
        """Test rejecting unknown table versions."""
        location, _data = factory.bitmap_tables([], version=0x00040000)
        with pytest.raises(UnsupportedGlyphFormat):
            parse_strikes(location)

    def test_truncated_size_records(self, factory):
        """Test a header declaring more strikes than the table holds."""
        location = struct.pack(">II", 0x00020000, 3) + bytes(48)
        with pytest.raises(MalformedGlyphTable):
            parse_strikes(location)


class TestBitmapStrikes:
    """Tests for BitmapStrikes class."""

    def _two_strikes(self, factory):
        small = [factory.small_record(1, 1, b"\x80")]
        large = [factory.small_record(2, 2, b"\x10\x20\x30\x40")]
        return factory.bitmap_tables(
            [
                {"first": 1, "records": small, "ppem": 8},
                {"first": 1, "records": large, "ppem": 16, "bit_depth": 8},
            ]
        )

    def test_largest_strike_by_default(self, factory):
        """Test that the largest strike is chosen without a preferred size."""
        strikes = BitmapStrikes(*self._two_strikes(factory))
        bitmap = strikes.image_for(1)
        assert bitmap.ppem == 16
        assert bitmap.bit_depth == BitDepth.GRAY8
        assert bitmap.pixel(1, 1) == 0x40

    def test_closest_strike(self, factory):
        """Test choosing the strike closest to a preferred size."""
        strikes = BitmapStrikes(*self._two_strikes(factory))
        assert strikes.image_for(1, ppem=9).ppem == 8
        assert strikes.image_for(1, ppem=12).ppem == 16

    def test_max_bit_depth(self, factory):
        """Test skipping strikes deeper than allowed."""
        strikes = BitmapStrikes(*self._two_strikes(factory))
        bitmap = strikes.image_for(1, max_bit_depth=1)
        assert bitmap.ppem == 8
        assert bitmap.data == b"\x80"

    def test_uncovered_glyph_is_blank(self, factory):
        """Test that a glyph outside every strike yields an empty bitmap."""
        strikes = BitmapStrikes(*self._two_strikes(factory))
        assert strikes.image_for(5).is_empty()

    def test_zero_length_record_is_blank(self, factory):
        """Test a covered glyph without image data."""
        records = [factory.small_record(1, 1, b"\x80"), b""]
        strikes = BitmapStrikes(*factory.bitmap_tables([{"first": 0, "records": records, "ppem": 10}]))

        bitmap = strikes.image_for(1)

        assert bitmap.is_empty()
        assert bitmap.ppem == 10

    def test_short_offsets(self, factory):
        """Test index format 3."""
        records = [factory.small_record(1, 1, b"\x80"), factory.small_record(1, 1, b"\x00")]
        strikes = BitmapStrikes(*factory.bitmap_tables([{"first": 0, "records": records, "index_format": 3}]))
        assert strikes.image_for(0).data == b"\x80"
        assert strikes.image_for(1).data == b"\x00"

    def test_decreasing_offsets(self, factory):
        """Test an offset array that runs backwards."""
        records = [factory.small_record(1, 1, b"\x80")]
        strikes = BitmapStrikes(*factory.bitmap_tables([{"first": 0, "records": records, "offsets": [6, 0]}]))
        with pytest.raises(MalformedGlyphTable, match="decrease"):
            strikes.image_for(0)

    def test_record_outside_data_table(self, factory):
        """Test an offset pointing past the end of the data table."""
        records = [factory.small_record(1, 1, b"\x80")]
        strikes = BitmapStrikes(*factory.bitmap_tables([{"first": 0, "records": records, "offsets": [0, 600]}]))
        with pytest.raises(MalformedGlyphTable, match="EBDT record for glyph 0"):
            strikes.image_for(0)

    def test_bounds_never_read_other_records(self, factory):
        """Test that a record ends where the next one starts."""
        records = [factory.small_record(8, 1, b"\xff"), factory.small_record(8, 1, b"\x0f")]
        strikes = BitmapStrikes(*factory.bitmap_tables([{"first": 0, "records": records}]))
        assert strikes.image_for(0).data == b"\xff"
        assert strikes.image_for(1).data == b"\x0f"
