"""Font aggregate and glyph resolution.

This module provides the Font class: it owns a FontBuffer and resolves
codepoints to glyph indices, glyph indices to names, bitmaps and outline
records. Table parsers run at most once per font; their outcome (value or
error) is memoized behind a lock so concurrent first calls neither race
nor build twice.
"""

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

from glyphprobe.config import ParserConfig
from glyphprobe.core.bitmaps import COLOR_TABLES, MONOCHROME_TABLES, BitmapStrikes
from glyphprobe.core.cmap import CodepointMap, parse_cmap
from glyphprobe.core.header import FontHeader, parse_head, parse_num_glyphs
from glyphprobe.core.outlines import OutlineTable
from glyphprobe.core.post import GlyphNames, parse_post
from glyphprobe.domain import Bitmap, EncapsulatedImage, GlyphOutline
from glyphprobe.exceptions import (
    GlyphIndexOutOfRange,
    GlyphProbeError,
    MalformedGlyphTable,
    MalformedMappingTable,
    NameNotAvailable,
    UnsupportedGlyphFormat,
)
from glyphprobe.io import FontBuffer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BuildOnce(Generic[T]):
    """Build a value on first use and remember the outcome.

    A GlyphProbeError raised by the builder is remembered too and raised
    again on every later call: the bytes it came from never change.
    """

    def __init__(self, build: Callable[[], T]) -> None:
        self._build = build
        self._lock = threading.Lock()
        self._done = False
        self._value: T | None = None
        self._error: GlyphProbeError | None = None

    @property
    def done(self) -> bool:
        """Whether the builder has run."""
        return self._done

    def get(self) -> T:
        """Return the built value, building it under the lock if needed."""
        if not self._done:
            with self._lock:
                if not self._done:
                    try:
                        self._value = self._build()
                    except GlyphProbeError as e:
                        self._error = e
                    self._done = True
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]


class Font:
    """A parsed font.

    The Font is immutable after construction apart from memoized lookup
    structures, and may be shared between threads.

    Example:
        font = Font(Path("MaterialIcons-Regular.ttf").read_bytes())
        index = font.index_of(0xE88A)
        name = font.glyph_name(index)
        bitmap = font.bitmap_for(index)
    """

    def __init__(self, data: bytes | bytearray | memoryview, config: ParserConfig | None = None) -> None:
        """Load a font from its bytes.

        Args:
            data: Complete font file contents
            config: Parser configuration (defaults if None)

        Raises:
            MalformedHeader: If the sfnt header or 'maxp' is invalid
            InvalidTableEntry: If a table directory entry lies outside the data
        """
        self.config = config or ParserConfig()
        self.buffer = FontBuffer(
            data,
            font_index=self.config.font_index,
            verify_checksums=self.config.verify_checksums,
        )

        self._codepoint_map = BuildOnce(self._build_codepoint_map)
        self._glyph_names = BuildOnce(self._build_glyph_names)
        self._bitmap_strikes = BuildOnce(self._build_bitmap_strikes)
        self._header = BuildOnce(lambda: parse_head(self.buffer.table("head")))
        self._outlines = BuildOnce(self._build_outlines)

        self.glyph_count = self._read_glyph_count()

        if self.config.eager:
            try:
                self._codepoint_map.get()
            except GlyphProbeError as e:
                logger.debug("Codepoint map unavailable: %s", e)

        logger.debug("Loaded %s font with %d glyphs", self.buffer.flavor, self.glyph_count)

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview, config: ParserConfig | None = None) -> "Font":
        """Load a font from its bytes (alias for the constructor)."""
        return cls(data, config)

    def _read_glyph_count(self) -> int:
        if "maxp" in self.buffer:
            return parse_num_glyphs(self.buffer.table("maxp"))
        try:
            highest = self._codepoint_map.get().max_glyph_index
        except GlyphProbeError:
            highest = 0
        logger.debug("No maxp table; glyph count derived from cmap (%d)", highest + 1)
        return highest + 1

    def _build_codepoint_map(self) -> CodepointMap:
        return parse_cmap(self.buffer.table("cmap"))

    def _build_glyph_names(self) -> GlyphNames | None:
        if "post" not in self.buffer:
            return None
        return parse_post(self.buffer.table("post"))

    def _build_bitmap_strikes(self) -> BitmapStrikes | None:
        pairs = [MONOCHROME_TABLES, COLOR_TABLES]
        if self.config.prefer_color_bitmaps:
            pairs.reverse()
        for location_tag, data_tag in pairs:
            if location_tag not in self.buffer:
                continue
            if data_tag not in self.buffer:
                raise MalformedGlyphTable(f"'{location_tag}' present without '{data_tag}'")
            return BitmapStrikes(
                self.buffer.table(location_tag),
                self.buffer.table(data_tag),
                (location_tag, data_tag),
            )
        return None

    def _build_outlines(self) -> OutlineTable:
        return OutlineTable(
            self.buffer.table("loca"),
            self.buffer.table("glyf"),
            self.header.index_to_loc_format,
            self.glyph_count,
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.glyph_count:
            raise GlyphIndexOutOfRange(index, self.glyph_count)

    @property
    def codepoint_map(self) -> CodepointMap:
        """The font's codepoint map.

        Raises:
            TableNotFound: If the font has no 'cmap' table
            MalformedMappingTable: If the 'cmap' table is corrupt
            UnsupportedMappingFormat: If no supported Unicode subtable exists
        """
        return self._codepoint_map.get()

    @property
    def header(self) -> FontHeader:
        """Decoded 'head' table.

        Raises:
            TableNotFound: If the font has no 'head' table
        """
        return self._header.get()

    @property
    def has_names(self) -> bool:
        """Whether the font has a 'post' table."""
        return "post" in self.buffer

    @property
    def has_bitmaps(self) -> bool:
        """Whether the font has an embedded bitmap location table."""
        return any(tag in self.buffer for tag in (MONOCHROME_TABLES[0], COLOR_TABLES[0]))

    @property
    def has_outlines(self) -> bool:
        """Whether the font has TrueType outlines."""
        return "glyf" in self.buffer and "loca" in self.buffer

    def index_of(self, codepoint: int) -> int:
        """Look up a glyph index by Unicode codepoint.

        Raises:
            CodepointNotMapped: If the font has no glyph for the codepoint
            TableNotFound: If the font has no 'cmap' table
            MalformedMappingTable: If the 'cmap' table is corrupt or maps the
                codepoint to a glyph the font does not have
            UnsupportedMappingFormat: If no supported Unicode subtable exists
        """
        index = self.codepoint_map.lookup(codepoint)
        if index >= self.glyph_count:
            raise MalformedMappingTable(
                f"U+{codepoint:04X} maps to glyph {index} but the font has {self.glyph_count} glyphs"
            )
        return index

    def mapped_glyphs(self) -> list[tuple[int, int]]:
        """(codepoint, glyph index) pairs in codepoint order.

        Pairs whose glyph lies outside the font are left out.
        """
        pairs = []
        for codepoint, index in self.codepoint_map.items():
            if index < self.glyph_count:
                pairs.append((codepoint, index))
            else:
                logger.debug("Skipping U+%04X: glyph %d out of range", codepoint, index)
        return pairs

    def codepoints(self) -> tuple[int, ...]:
        """All mapped codepoints in ascending order."""
        return tuple(codepoint for codepoint, _index in self.mapped_glyphs())

    def glyph_name(self, index: int) -> str:
        """Look up a glyph's name by index.

        Raises:
            GlyphIndexOutOfRange: If ``index`` is not a glyph of this font
            NameNotAvailable: If the font carries no name for the glyph
            MalformedNameTable: If the 'post' table is corrupt
            UnsupportedNameFormat: If the 'post' version is not supported
        """
        self._check_index(index)
        names = self._glyph_names.get()
        if names is None:
            raise NameNotAvailable(index, "font has no post table")
        return names.name(index)

    def glyph_image(self, index: int) -> Bitmap | EncapsulatedImage:
        """Look up a glyph's embedded image by index.

        Glyphs without an embedded image (including every glyph of a font
        without bitmap tables) yield an empty Bitmap.

        Raises:
            GlyphIndexOutOfRange: If ``index`` is not a glyph of this font
            MalformedGlyphTable: If the bitmap tables are corrupt
            UnsupportedGlyphFormat: If the record cannot be decoded
        """
        self._check_index(index)
        strikes = self._bitmap_strikes.get()
        if strikes is None:
            return Bitmap.empty()
        return strikes.image_for(index, self.config.strike_ppem, self.config.max_bit_depth)

    def bitmap_for(self, index: int) -> Bitmap:
        """Look up a glyph's bitmap by index.

        Raises:
            GlyphIndexOutOfRange: If ``index`` is not a glyph of this font
            MalformedGlyphTable: If the bitmap tables are corrupt
            UnsupportedGlyphFormat: If the record cannot be decoded into
                pixels (including embedded PNG images)
        """
        image = self.glyph_image(index)
        if isinstance(image, EncapsulatedImage):
            raise UnsupportedGlyphFormat(
                "CBDT image", image.extension, "embedded image file, use glyph_image()"
            )
        return image

    def outline_for(self, index: int) -> GlyphOutline:
        """Return a glyph's raw 'glyf' record.

        Raises:
            GlyphIndexOutOfRange: If ``index`` is not a glyph of this font
            TableNotFound: If the font has no 'head', 'loca' or 'glyf' table
            MalformedGlyphTable: If 'loca' offsets are inconsistent
        """
        self._check_index(index)
        return self._outlines.get().outline_for(index)

    def __repr__(self) -> str:
        return f"Font({self.buffer.flavor}, {self.glyph_count} glyphs, tables={self.buffer.tags})"
