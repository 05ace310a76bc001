"""Exception hierarchy for glyphprobe."""


class GlyphProbeError(Exception):
    """Base exception for all glyphprobe errors."""

    pass


class MalformedFontError(GlyphProbeError):
    """Structural corruption in the font bytes.

    Retrying will not help: the same bytes always fail the same way.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class MalformedHeader(MalformedFontError):
    """The sfnt header or a font-level header table is truncated or invalid."""

    pass


class InvalidTableEntry(MalformedFontError):
    """A table directory entry points outside the font data."""

    def __init__(self, tag: str, reason: str) -> None:
        self.tag = tag
        super().__init__(f"Invalid table entry '{tag}': {reason}")


class MalformedMappingTable(MalformedFontError):
    """The 'cmap' table contradicts its declared format."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed cmap table: {reason}")


class MalformedGlyphTable(MalformedFontError):
    """A per-glyph offset table or glyph data table is inconsistent."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed glyph table: {reason}")


class MalformedNameTable(MalformedFontError):
    """The 'post' table glyph names are inconsistent."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed post table: {reason}")


class MissingFeatureError(GlyphProbeError):
    """An optional part of the font format is absent."""

    pass


class TableNotFound(MissingFeatureError):
    """Requested table is not in the table directory."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"Table '{tag}' not found in font")


class NameNotAvailable(MissingFeatureError):
    """The font carries no name for the requested glyph."""

    def __init__(self, index: int, reason: str = "font has no glyph names") -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"No name for glyph {index}: {reason}")


class LookupMissError(GlyphProbeError):
    """Caller asked for a codepoint or glyph the font does not define."""

    pass


class CodepointNotMapped(LookupMissError):
    """Codepoint has no glyph in the font's character map."""

    def __init__(self, codepoint: int) -> None:
        self.codepoint = codepoint
        super().__init__(f"Codepoint U+{codepoint:04X} is not mapped")


class GlyphIndexOutOfRange(LookupMissError):
    """Glyph index is outside [0, glyph_count)."""

    def __init__(self, index: int, glyph_count: int) -> None:
        self.index = index
        self.glyph_count = glyph_count
        super().__init__(f"Glyph index {index} out of range (font has {glyph_count} glyphs)")


class UnsupportedFormatError(GlyphProbeError):
    """Font uses an encoding variant that glyphprobe does not decode."""

    def __init__(self, table: str, format_id: int | str, reason: str = "") -> None:
        self.table = table
        self.format_id = format_id
        self.reason = reason
        message = f"Unsupported {table} format {format_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class UnsupportedGlyphFormat(UnsupportedFormatError):
    """Bitmap index or image format is not supported."""

    pass


class UnsupportedMappingFormat(UnsupportedFormatError):
    """cmap subtable format is not supported."""

    pass


class UnsupportedNameFormat(UnsupportedFormatError):
    """post table version is not supported."""

    pass
