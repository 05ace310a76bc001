"""Glyph resolution for glyphprobe.

This module contains the table parsers and the Font aggregate built on
top of them:

- Character mapping ('cmap'): codepoint to glyph index
- Glyph names ('post'): glyph index to name
- Embedded bitmaps ('EBLC'/'EBDT', 'CBLC'/'CBDT'): glyph index to bitmap
- Outline records ('loca'/'glyf'): glyph index to raw outline bytes

All parsers read through bounds-checked helpers and report corrupt input
as typed errors; none of them mutates the font.

Key functions:
- parse_cmap: Build a CodepointMap from a 'cmap' table
- parse_post: Decode glyph names from a 'post' table
- parse_strikes: Read the strike list of a bitmap location table

Key classes:
- Font: Owns the font bytes and resolves glyphs
- FontMapper: Enumerates every mapped glyph
- CodepointMap: Validated codepoint to glyph index mapping
- BitmapStrikes: Bitmap strike selection and decoding
- OutlineTable: 'glyf' access through 'loca'
"""

from glyphprobe.core.bitmaps import BitmapStrikes, Strike, parse_strikes
from glyphprobe.core.cmap import CodepointMap, Segment, parse_cmap
from glyphprobe.core.font import BuildOnce, Font
from glyphprobe.core.header import FontHeader, parse_head
from glyphprobe.core.mapper import FontMapper
from glyphprobe.core.outlines import OutlineTable
from glyphprobe.core.post import GlyphNames, parse_post

__all__ = [
    # Bitmap classes
    "BitmapStrikes",
    "BuildOnce",
    # Mapping classes
    "CodepointMap",
    # Font classes
    "Font",
    "FontHeader",
    "FontMapper",
    "GlyphNames",
    "OutlineTable",
    "Segment",
    "Strike",
    # Parser functions
    "parse_cmap",
    "parse_head",
    "parse_post",
    "parse_strikes",
]
