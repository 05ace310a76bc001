"""Glyph bitmap representations.

This module defines the decoded forms of embedded bitmap glyph records:
- Bitmap: uncompressed pixel rows, always byte-aligned per row
- EncapsulatedImage: a complete image file (e.g. PNG) stored in the font
- BitDepth / ImageFormat: enums describing the pixel encoding
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any


class BitDepth(IntEnum):
    """Bits per pixel of an embedded bitmap strike.

    1, 2, 4 and 8 bit strikes are grayscale (1 bit is monochrome);
    32 bit strikes are premultiplied BGRA.
    """

    MONO = 1
    GRAY2 = 2
    GRAY4 = 4
    GRAY8 = 8
    BGRA32 = 32


class ImageFormat(str, Enum):
    """Encapsulated image file formats."""

    PNG = "png"


def row_size(width: int, bit_depth: int) -> int:
    """Bytes needed for one byte-aligned row of ``width`` pixels."""
    return (width * bit_depth + 7) // 8


@dataclass(frozen=True, slots=True)
class Bitmap:
    """A decoded glyph bitmap.

    Rows are stored top to bottom, each padded to a whole byte, with the
    most significant bits holding the leftmost pixel.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        bit_depth: Bits per pixel
        data: Packed rows, exactly ``row_bytes * height`` bytes
        ppem: Pixels per em of the strike the bitmap came from
        bearing_x: Horizontal distance from origin to the left edge
        bearing_y: Vertical distance from baseline to the top edge
        advance: Horizontal advance in pixels
    """

    width: int
    height: int
    bit_depth: BitDepth
    data: bytes
    ppem: int = 0
    bearing_x: int = 0
    bearing_y: int = 0
    advance: int = 0

    def __post_init__(self) -> None:
        expected = row_size(self.width, self.bit_depth) * self.height
        if len(self.data) != expected:
            raise ValueError(
                f"Bitmap data is {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} at {int(self.bit_depth)} bpp"
            )

    @classmethod
    def empty(cls, bit_depth: BitDepth = BitDepth.MONO, ppem: int = 0) -> "Bitmap":
        """Create a blank 0x0 bitmap."""
        return cls(width=0, height=0, bit_depth=bit_depth, data=b"", ppem=ppem)

    @property
    def row_bytes(self) -> int:
        """Bytes per row."""
        return row_size(self.width, self.bit_depth)

    def is_empty(self) -> bool:
        """Check if the bitmap has no pixels."""
        return self.width == 0 or self.height == 0

    def rows(self) -> Iterator[bytes]:
        """Iterate over packed rows, top to bottom."""
        stride = self.row_bytes
        for y in range(self.height):
            yield self.data[y * stride : (y + 1) * stride]

    def pixel(self, x: int, y: int) -> int:
        """Return the raw value of one pixel.

        Grayscale values are in ``[0, 2**bit_depth)``; BGRA pixels are
        returned as a single 32-bit integer.

        Raises:
            IndexError: If (x, y) is outside the bitmap
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} bitmap")

        depth = int(self.bit_depth)
        row_start = y * self.row_bytes
        if depth == 32:
            start = row_start + x * 4
            return int.from_bytes(self.data[start : start + 4], "big")

        bit = x * depth
        byte = self.data[row_start + bit // 8]
        shift = 8 - depth - bit % 8
        return (byte >> shift) & ((1 << depth) - 1)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (pixel data as hex).

        Returns:
            Dictionary representation of the bitmap
        """
        return {
            "width": self.width,
            "height": self.height,
            "bit_depth": int(self.bit_depth),
            "ppem": self.ppem,
            "bearing_x": self.bearing_x,
            "bearing_y": self.bearing_y,
            "advance": self.advance,
            "data": self.data.hex(),
        }


@dataclass(frozen=True, slots=True)
class EncapsulatedImage:
    """An image file embedded in a color bitmap table.

    Attributes:
        format: File format of ``data``
        data: Complete image file contents
        width: Width in pixels from the glyph metrics
        height: Height in pixels from the glyph metrics
        ppem: Pixels per em of the strike
    """

    format: ImageFormat
    data: bytes
    width: int = 0
    height: int = 0
    ppem: int = 0

    @property
    def extension(self) -> str:
        """File extension for the embedded image."""
        return self.format.value

    def export(self) -> tuple[str, bytes]:
        """Return the image as a (file extension, file contents) pair."""
        return self.extension, self.data
