"""Shared fixtures: synthetic fonts assembled table by table."""

import struct
from typing import Any

import pytest
from fontTools.ttLib.standardGlyphOrder import standardGlyphOrder


def table_checksum(data: bytes) -> int:
    """sfnt checksum of a table."""
    padded = data + b"\0" * (-len(data) % 4)
    return sum(struct.unpack(f">{len(padded) // 4}I", padded)) & 0xFFFFFFFF


class FontFactory:
    """Builds the raw bytes of sfnt fonts and their tables."""

    def sfnt(self, tables: dict[str, bytes], sfnt_version: int = 0x00010000, base: int = 0) -> bytes:
        """Assemble an sfnt from tables; offsets are relative to ``base``."""
        directory = b""
        body = b""
        data_start = 12 + 16 * len(tables)
        for tag, data in tables.items():
            directory += struct.pack(
                ">4sIII",
                tag.encode("latin-1"),
                table_checksum(data),
                base + data_start + len(body),
                len(data),
            )
            body += data + b"\0" * (-len(data) % 4)
        header = struct.pack(">IHHHH", sfnt_version, len(tables), 0, 0, 0)
        return header + directory + body

    def collection(self, fonts: list[dict[str, bytes]]) -> bytes:
        """Assemble a TrueType Collection (each font stored unshared)."""
        header_size = 12 + 4 * len(fonts)
        offsets = []
        blobs = b""
        for tables in fonts:
            offset = header_size + len(blobs)
            offsets.append(offset)
            blobs += self.sfnt(tables, base=offset)
        header = struct.pack(">4sII", b"ttcf", 0x00010000, len(fonts))
        header += struct.pack(f">{len(fonts)}I", *offsets)
        return header + blobs

    # cmap

    def cmap(self, *subtables: tuple[int, int, bytes]) -> bytes:
        """Assemble a cmap from (platform, encoding, subtable bytes)."""
        records = b""
        body = b""
        offset = 4 + 8 * len(subtables)
        for platform_id, encoding_id, data in subtables:
            records += struct.pack(">HHI", platform_id, encoding_id, offset + len(body))
            body += data
        return struct.pack(">HH", 0, len(subtables)) + records + body

    def cmap_format4(self, segments: list[tuple[int, int, Any]]) -> bytes:
        """Format 4 subtable.

        Each segment is (start, end, first glyph) for a delta segment or
        (start, end, [glyph ids]) for an idRangeOffset segment. The 0xFFFF
        terminator is appended.
        """
        segments = list(segments) + [(0xFFFF, 0xFFFF, 0)]
        n = len(segments)
        ends, starts, deltas, range_offsets = [], [], [], []
        glyph_array: list[int] = []
        for i, (start, end, glyphs) in enumerate(segments):
            ends.append(end)
            starts.append(start)
            if isinstance(glyphs, list):
                deltas.append(0)
                range_offsets.append(2 * n + 2 * len(glyph_array) - 2 * i)
                glyph_array.extend(glyphs)
            else:
                delta = 1 if start == 0xFFFF else glyphs - start
                deltas.append(((delta + 0x8000) & 0xFFFF) - 0x8000)
                range_offsets.append(0)

        length = 16 + 8 * n + 2 * len(glyph_array)
        data = struct.pack(">HHHHHHH", 4, length, 0, 2 * n, 0, 0, 0)
        data += struct.pack(f">{n}H", *ends) + b"\0\0"
        data += struct.pack(f">{n}H", *starts)
        data += struct.pack(f">{n}h", *deltas)
        data += struct.pack(f">{n}H", *range_offsets)
        data += struct.pack(f">{len(glyph_array)}H", *glyph_array)
        return data

    def cmap_groups(self, groups: list[tuple[int, int, int]], subtable_format: int = 12) -> bytes:
        """Format 12 or 13 subtable from (start, end, glyph) groups."""
        data = struct.pack(">HHIII", subtable_format, 0, 16 + 12 * len(groups), 0, len(groups))
        for group in groups:
            data += struct.pack(">III", *group)
        return data

    def cmap_format6(self, first_code: int, glyph_ids: list[int]) -> bytes:
        """Format 6 subtable."""
        data = struct.pack(">HHHHH", 6, 10 + 2 * len(glyph_ids), 0, first_code, len(glyph_ids))
        return data + struct.pack(f">{len(glyph_ids)}H", *glyph_ids)

    def cmap_format0(self, glyph_ids: dict[int, int]) -> bytes:
        """Format 0 subtable from {byte code: glyph}."""
        array = [glyph_ids.get(code, 0) for code in range(256)]
        return struct.pack(">HHH", 0, 262, 0) + bytes(array)

    # header tables

    def maxp(self, num_glyphs: int) -> bytes:
        """Version 0.5 maxp."""
        return struct.pack(">IH", 0x00005000, num_glyphs)

    def head(self, index_to_loc_format: int = 0, magic: int = 0x5F0F3CF5) -> bytes:
        """Minimal head table."""
        return struct.pack(
            ">IIIIHHqqhhhhHHhhh",
            0x00010000, 0, 0, magic, 0, 1000, 0, 0,
            0, -200, 1000, 800, 0, 8, 2, index_to_loc_format, 0,
        )

    # post

    def post(self, version: int = 0x00030000) -> bytes:
        """post header only (versions 1.0 and 3.0)."""
        return struct.pack(">IihhIIIII", version, 0, 0, 0, 0, 0, 0, 0, 0)

    def post_v2(self, names: list[str]) -> bytes:
        """Version 2.0 post with the given glyph names."""
        indices = []
        custom: list[str] = []
        for name in names:
            if name in standardGlyphOrder:
                indices.append(standardGlyphOrder.index(name))
            else:
                if name not in custom:
                    custom.append(name)
                indices.append(len(standardGlyphOrder) + custom.index(name))
        data = self.post(0x00020000)
        data += struct.pack(f">H{len(indices)}H", len(indices), *indices)
        for name in custom:
            encoded = name.encode("latin-1")
            data += bytes([len(encoded)]) + encoded
        return data

    # loca / glyf

    def glyf_record(self, number_of_contours: int = 1, bounds=(0, 0, 100, 100), body: bytes = b"\0\0") -> bytes:
        """A glyf record: header plus opaque body bytes."""
        return struct.pack(">hhhhh", number_of_contours, *bounds) + body

    def loca_glyf(self, records: list[bytes], long_offsets: bool = True) -> tuple[bytes, bytes]:
        """Build loca and glyf from per-glyph records."""
        offsets = [0]
        glyf = b""
        for record in records:
            record += b"\0" * (-len(record) % 4)
            glyf += record
            offsets.append(len(glyf))
        if long_offsets:
            loca = struct.pack(f">{len(offsets)}I", *offsets)
        else:
            loca = struct.pack(f">{len(offsets)}H", *(o // 2 for o in offsets))
        return loca, glyf

    # embedded bitmaps

    def small_record(self, width: int, height: int, pixels: bytes, bearing_x: int = 0, bearing_y: int | None = None) -> bytes:
        """Image format 1/2 record: SmallGlyphMetrics then pixel data."""
        bearing_y = height if bearing_y is None else bearing_y
        return struct.pack(">BBbbB", height, width, bearing_x, bearing_y, width) + pixels

    def big_record(self, width: int, height: int, pixels: bytes) -> bytes:
        """Image format 6/7 record: BigGlyphMetrics then pixel data."""
        return struct.pack(">BBbbBbbB", height, width, 0, height, width, 0, 0, height) + pixels

    def png_record(self, width: int, height: int, png: bytes) -> bytes:
        """Image format 17 record: SmallGlyphMetrics, length, PNG bytes."""
        return struct.pack(">BBbbBI", height, width, 0, height, width, len(png)) + png

    def bitmap_tables(self, strikes: list[dict[str, Any]], version: int = 0x00020000) -> tuple[bytes, bytes]:
        """Build a location/data table pair.

        Each strike dict holds ``first`` (first glyph), ``records`` (image
        record per glyph, b"" for none) and optionally ``index_format``
        (1 or 3), ``image_format``, ``bit_depth``, ``ppem`` and ``offsets``
        (to override the computed offset array).
        """
        data = bytearray(struct.pack(">I", version))
        sizes = b""
        blocks = b""
        location_offset = 8 + 48 * len(strikes)
        for strike in strikes:
            first = strike["first"]
            records = strike["records"]
            last = first + len(records) - 1
            image_data_offset = len(data)

            offsets = [0]
            for record in records:
                data += record
                offsets.append(offsets[-1] + len(record))
            offsets = strike.get("offsets", offsets)

            index_format = strike.get("index_format", 1)
            code = "I" if index_format == 1 else "H"
            subtable = struct.pack(">HHI", index_format, strike.get("image_format", 1), image_data_offset)
            subtable += struct.pack(f">{len(offsets)}{code}", *offsets)
            block = struct.pack(">HHI", first, last, 8) + subtable

            ppem = strike.get("ppem", 16)
            sizes += struct.pack(
                ">IIII12s12sHHBBBb",
                location_offset, len(block), 1, 0, bytes(12), bytes(12),
                first, last, ppem, ppem, strike.get("bit_depth", 1), 1,
            )
            blocks += block
            location_offset += len(block)

        location = struct.pack(">II", version, len(strikes)) + sizes + blocks
        return location, bytes(data)


@pytest.fixture
def factory() -> FontFactory:
    """Synthetic font builder."""
    return FontFactory()


@pytest.fixture
def alphabet_font(factory: FontFactory) -> bytes:
    """A font with a single table: cmap mapping A-Z to glyphs 1-26."""
    cmap = factory.cmap((3, 1, factory.cmap_format4([(0x41, 0x5A, 1)])))
    return factory.sfnt({"cmap": cmap})


@pytest.fixture
def bitmap_font(factory: FontFactory) -> bytes:
    """27 glyphs (.notdef, A-Z) with names and 8x8 monochrome bitmaps.

    Glyph ``i`` is a filled box whose first row has the bits of ``i``.
    """
    cmap = factory.cmap((3, 1, factory.cmap_format4([(0x41, 0x5A, 1)])))
    names = [".notdef"] + [chr(c) for c in range(0x41, 0x5B)]
    records = [
        factory.small_record(8, 8, bytes([i]) + b"\xff" * 7)
        for i in range(27)
    ]
    location, data = factory.bitmap_tables([{"first": 0, "records": records, "ppem": 8}])
    return factory.sfnt(
        {
            "EBDT": data,
            "EBLC": location,
            "cmap": cmap,
            "head": factory.head(),
            "maxp": factory.maxp(27),
            "post": factory.post_v2(names),
        }
    )
