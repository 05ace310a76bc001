"""Bounds-checked big-endian readers.

Every table parser reads through these helpers so that truncated or
corrupted data surfaces as the parser's own malformed-font error instead
of a bare ``struct.error`` or a silently short slice.
"""

import struct
from collections.abc import Callable
from functools import lru_cache

from glyphprobe.exceptions import MalformedFontError

Buffer = bytes | memoryview
ErrorFactory = Callable[[str], MalformedFontError]


@lru_cache(maxsize=128)
def _compiled(fmt: str) -> struct.Struct:
    return struct.Struct(fmt)


def _check_span(data: Buffer, offset: int, size: int, error: ErrorFactory, what: str) -> None:
    if offset < 0 or size < 0 or offset + size > len(data):
        available = max(len(data) - offset, 0)
        raise error(
            f"{what} at offset {offset} needs {size} bytes, {available} available"
        )


def read_struct(fmt: str, data: Buffer, offset: int, error: ErrorFactory, what: str) -> tuple:
    """Unpack ``fmt`` at ``offset``, raising ``error`` if it does not fit.

    Args:
        fmt: struct format string (big-endian, e.g. ">HHI")
        data: Buffer to read from
        offset: Byte offset of the first field
        error: Exception class raised on a short read
        what: Human-readable name of the structure for the error message

    Returns:
        Tuple of unpacked values
    """
    packer = _compiled(fmt)
    _check_span(data, offset, packer.size, error, what)
    return packer.unpack_from(data, offset)


def read_array(
    code: str, count: int, data: Buffer, offset: int, error: ErrorFactory, what: str
) -> tuple[int, ...]:
    """Read ``count`` big-endian values of struct type ``code`` (e.g. "H")."""
    if count == 0:
        return ()
    return read_struct(f">{count}{code}", data, offset, error, what)


def read_slice(
    data: Buffer, offset: int, length: int, error: ErrorFactory, what: str
) -> memoryview:
    """Return a zero-copy view of ``data[offset:offset + length]``."""
    _check_span(data, offset, length, error, what)
    return memoryview(data)[offset : offset + length]
