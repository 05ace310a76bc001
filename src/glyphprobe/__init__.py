"""glyphprobe - Look up glyphs in TrueType/OpenType font files.

glyphprobe parses a font's raw bytes and answers three questions about it:
which glyph a Unicode codepoint maps to, what that glyph is called, and what
its embedded bitmap looks like. Font bytes are treated as untrusted input;
every read is bounds-checked and corrupt data raises a typed error.

Example:
    >>> from glyphprobe import Font
    >>> font = Font(open("MaterialIcons-Regular.ttf", "rb").read())
    >>> index = font.index_of(0xE88A)
    >>> font.glyph_name(index)
    'home'
"""

__version__ = "0.1.0"

from glyphprobe.core import Font, FontMapper
from glyphprobe.domain import BitDepth, Bitmap, EncapsulatedImage, Glyph, GlyphOutline
from glyphprobe.io import FontBuffer

__all__ = [
    "BitDepth",
    "Bitmap",
    "EncapsulatedImage",
    "Font",
    "FontBuffer",
    "FontMapper",
    "Glyph",
    "GlyphOutline",
    "__version__",
]
