"""sfnt container parsing.

This module provides the FontBuffer class, which owns a font's raw bytes
and the validated table directory. Table data is handed out as read-only
memoryview slices of the owned buffer, so no table is ever copied.
"""

import logging
from dataclasses import dataclass

from glyphprobe.exceptions import InvalidTableEntry, MalformedHeader, TableNotFound
from glyphprobe.io.binary import read_array, read_struct

logger = logging.getLogger(__name__)

SFNT_HEADER_FORMAT = ">IHHHH"
SFNT_HEADER_SIZE = 12
DIRECTORY_ENTRY_FORMAT = ">4sIII"
DIRECTORY_ENTRY_SIZE = 16
COLLECTION_HEADER_FORMAT = ">4sII"
COLLECTION_HEADER_SIZE = 12

SFNT_VERSIONS = {
    0x00010000: "TrueType",
    0x4F54544F: "OpenType",  # 'OTTO'
    0x74727565: "TrueType",  # 'true'
    0x74797031: "PostScript",  # 'typ1'
}
COLLECTION_TAG = b"ttcf"
WOFF_TAGS = (b"wOFF", b"wOF2")

MAX_UINT32 = 0xFFFFFFFF


def normalize_tag(tag: str | bytes) -> str:
    """Return a table tag as a 4-character string.

    Short tags are padded with spaces the way 'CFF ' is spelled.
    """
    if isinstance(tag, bytes):
        tag = tag.decode("latin-1")
    if len(tag) > 4:
        raise ValueError(f"Table tag must be at most 4 characters: {tag!r}")
    return tag.ljust(4)


def calc_checksum(data: bytes | memoryview) -> int:
    """Compute the sfnt table checksum (sum of big-endian u32 words)."""
    remainder = len(data) % 4
    if remainder:
        data = bytes(data) + b"\0" * (4 - remainder)
    words = read_array("I", len(data) // 4, data, 0, MalformedHeader, "checksum words")
    return sum(words) & MAX_UINT32


@dataclass(frozen=True)
class TableRecord:
    """One table directory entry.

    Attributes:
        tag: 4-character table tag (e.g. "cmap", "CFF ")
        checksum: Checksum declared in the directory
        offset: Byte offset of the table from the start of the file
        length: Table length in bytes
    """

    tag: str
    checksum: int
    offset: int
    length: int

    @property
    def end(self) -> int:
        """Offset one past the last byte of the table."""
        return self.offset + self.length


class FontBuffer:
    """Immutable font bytes plus a validated table directory.

    Example:
        buffer = FontBuffer(Path("icons.ttf").read_bytes())
        cmap = buffer.table("cmap")
    """

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        font_index: int = 0,
        verify_checksums: bool = False,
    ) -> None:
        """Parse the sfnt header and table directory.

        Args:
            data: Complete font file contents
            font_index: Font to read when ``data`` is a TrueType Collection
            verify_checksums: Log a warning for every table whose checksum
                does not match the directory

        Raises:
            MalformedHeader: If the header is truncated or not an sfnt
            InvalidTableEntry: If a directory entry lies outside the data
        """
        self._data = bytes(data)
        self._view = memoryview(self._data)
        self._font_index = font_index

        directory_offset = self._locate_directory(font_index)
        self._sfnt_version, self._records = self._read_directory(directory_offset)

        logger.debug(
            "Parsed table directory: %d tables (%s)",
            len(self._records),
            " ".join(self._records),
        )

        if verify_checksums:
            self.verify_checksums()

    def _locate_directory(self, font_index: int) -> int:
        magic = bytes(self._view[:4])
        if len(magic) < 4:
            raise MalformedHeader(
                f"Font data is {len(self._data)} bytes, too short for an sfnt header"
            )
        if magic in WOFF_TAGS:
            raise MalformedHeader(f"Compressed {magic.decode()} fonts are not supported")
        if magic != COLLECTION_TAG:
            if font_index != 0:
                raise MalformedHeader(
                    f"Font index {font_index} requested but data is a single font"
                )
            return 0

        _tag, version, num_fonts = read_struct(
            COLLECTION_HEADER_FORMAT, self._view, 0, MalformedHeader, "collection header"
        )
        offsets = read_array(
            "I", num_fonts, self._view, COLLECTION_HEADER_SIZE, MalformedHeader,
            "collection offset table",
        )
        if not 0 <= font_index < num_fonts:
            raise MalformedHeader(
                f"Font index {font_index} out of range (collection has {num_fonts} fonts)"
            )
        logger.debug(
            "Reading font %d of %d from collection version 0x%08X",
            font_index, num_fonts, version,
        )
        return offsets[font_index]

    def _read_directory(self, offset: int) -> tuple[int, dict[str, TableRecord]]:
        sfnt_version, num_tables, _search_range, _entry_selector, _range_shift = read_struct(
            SFNT_HEADER_FORMAT, self._view, offset, MalformedHeader, "sfnt header"
        )
        if sfnt_version not in SFNT_VERSIONS:
            raise MalformedHeader(f"Not an sfnt font (bad sfntVersion 0x{sfnt_version:08X})")

        directory_start = offset + SFNT_HEADER_SIZE
        directory_end = directory_start + num_tables * DIRECTORY_ENTRY_SIZE
        if directory_end > len(self._data):
            raise MalformedHeader(
                f"Header declares {num_tables} tables but the directory would end at "
                f"byte {directory_end} of {len(self._data)}"
            )

        records: dict[str, TableRecord] = {}
        for i in range(num_tables):
            raw_tag, checksum, table_offset, length = read_struct(
                DIRECTORY_ENTRY_FORMAT,
                self._view,
                directory_start + i * DIRECTORY_ENTRY_SIZE,
                MalformedHeader,
                "table directory entry",
            )
            tag = raw_tag.decode("latin-1")
            end = table_offset + length
            if end > MAX_UINT32:
                raise InvalidTableEntry(tag, f"offset {table_offset} + length {length} overflows")
            if end > len(self._data):
                raise InvalidTableEntry(
                    tag,
                    f"spans bytes {table_offset}..{end} but font data is {len(self._data)} bytes",
                )
            if tag in records:
                raise InvalidTableEntry(tag, "duplicate table tag")
            records[tag] = TableRecord(tag, checksum, table_offset, length)

        return sfnt_version, records

    def verify_checksums(self) -> list[str]:
        """Log and return the tags of tables whose checksum does not match."""
        mismatched = []
        for tag, record in self._records.items():
            data = self._view[record.offset : record.end]
            if tag == "head" and len(data) >= 12:
                data = bytes(data[:8]) + b"\0\0\0\0" + bytes(data[12:])
            actual = calc_checksum(data)
            if actual != record.checksum:
                logger.warning(
                    "Bad checksum for '%s' table: expected 0x%08X, got 0x%08X",
                    tag, record.checksum, actual,
                )
                mismatched.append(tag)
        return mismatched

    @property
    def data(self) -> bytes:
        """The complete font bytes."""
        return self._data

    @property
    def sfnt_version(self) -> int:
        """Raw sfntVersion value of the selected font."""
        return self._sfnt_version

    @property
    def flavor(self) -> str:
        """Outline flavor implied by the sfnt version."""
        return SFNT_VERSIONS[self._sfnt_version]

    @property
    def font_index(self) -> int:
        """Index of the selected font within a collection (0 otherwise)."""
        return self._font_index

    @property
    def tags(self) -> list[str]:
        """Table tags in directory order."""
        return list(self._records)

    @property
    def records(self) -> list[TableRecord]:
        """Table directory entries in directory order."""
        return list(self._records.values())

    def has_table(self, tag: str | bytes) -> bool:
        """Check whether the directory contains ``tag``."""
        return normalize_tag(tag) in self._records

    __contains__ = has_table

    def record(self, tag: str | bytes) -> TableRecord:
        """Return the directory entry for ``tag``.

        Raises:
            TableNotFound: If the font has no such table
        """
        tag = normalize_tag(tag)
        try:
            return self._records[tag]
        except KeyError:
            raise TableNotFound(tag) from None

    def table(self, tag: str | bytes) -> memoryview:
        """Return the exact bytes of a table as a read-only view.

        Raises:
            TableNotFound: If the font has no such table
        """
        record = self.record(tag)
        return self._view[record.offset : record.end]

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FontBuffer({len(self._data)} bytes, tables={self.tags})"
