"""Domain models for glyphprobe.

This module contains the values handed back to callers. All models are
immutable (frozen dataclasses) and independent of the binary layout they
were decoded from.

Key classes:
- Glyph: A codepoint resolved to a glyph index and name
- GlyphOutline: The raw outline record of a glyph
- Bitmap: A decoded embedded bitmap
- EncapsulatedImage: An image file embedded in a color bitmap table
"""

from glyphprobe.domain.bitmap import BitDepth, Bitmap, EncapsulatedImage, ImageFormat
from glyphprobe.domain.glyph import Glyph, GlyphOutline

__all__: list[str] = [
    # Enums
    "BitDepth",
    "ImageFormat",
    # Core types
    "Bitmap",
    "EncapsulatedImage",
    "Glyph",
    "GlyphOutline",
]
