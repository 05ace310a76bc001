"""Font container layer for glyphprobe.

This module owns the raw font bytes. It validates the sfnt header and
table directory once and hands out bounds-checked table views; table
contents are decoded by glyphprobe.core.

Key classes:
- FontBuffer: Font bytes plus validated table directory
- TableRecord: One table directory entry
"""

from glyphprobe.io.container import FontBuffer, TableRecord, normalize_tag

__all__ = [
    "FontBuffer",
    "TableRecord",
    "normalize_tag",
]
