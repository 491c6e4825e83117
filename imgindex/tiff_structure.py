# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
TIFF structure inside a JPEG APP1 (Exif) block

Exif APP1 blocks are laid out as follows (all offsets relative to the start
of the block, i.e. the 0xFFE1 marker):

    [Record]         [size]   [description]
    ----------------------------------------
    Marker           2 bytes  0xFFE1, always big-endian
    Length           2 bytes  segment length, always big-endian
    Identifier       6 bytes  "Exif\\0\\0"
    Byte order       2 bytes  'II' (little-endian) or 'MM' (big-endian)
    Signature        2 bytes  fixed value 42
    IFD0 pointer     4 bytes  offset of IFD0, relative to the byte order mark
    IFD0 ...                  main image IFD, sub-IFDs, IFD1, thumbnail

Each IFD is a 2-byte entry count, ``count`` 12-byte entries and a 4-byte
link to the next IFD. Each entry is:

    Tag              2 bytes
    Type             2 bytes  one of the 12 TIFF field types
    Count            4 bytes  number of values
    Value/Offset     4 bytes  the value itself if it fits, else an offset

The classes here are read-only views over a caller-owned block; nothing is
copied apart from the 4-byte value slot of an entry.

Copyright 2025 DNAi inc.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from imgindex.byte_reader import ByteOrder, ByteReader
from imgindex.exceptions import MalformedHeaderError, OffsetOutOfRangeError


TIFF_SIGNATURE = 42
TIFF_HEADER_SIZE = 8
IFD_ENTRY_SIZE = 12

# Entry type ids get this bit when count > 1, so scalar and sequence
# reads of the same field type dispatch separately.
ARRAY_FLAG = 0x0100

# Pointer tags: their value is the offset of another IFD
EXIF_IFD_POINTER = 0x8769
GPS_IFD_POINTER = 0x8825
INTEROP_IFD_POINTER = 0xA005


class IfdKind(Enum):
    """Which directory an IFD is; decides which pointer tags are edges."""
    IFD0 = "IFD0"
    EXIF = "ExifIFD"
    GPS = "GPS"
    INTEROP = "InteropIFD"
    IFD1 = "IFD1"


# (kind of the IFD holding the tag, tag id) -> kind of the IFD it points to
POINTER_TAGS = {
    (IfdKind.IFD0, EXIF_IFD_POINTER): IfdKind.EXIF,
    (IfdKind.IFD0, GPS_IFD_POINTER): IfdKind.GPS,
    (IfdKind.EXIF, INTEROP_IFD_POINTER): IfdKind.INTEROP,
}


@dataclass(frozen=True)
class TiffHeader:
    """
    Parsed 8-byte TIFF header.

    Attributes:
        byte_order: Byte order of the whole TIFF body
        ifd0_offset: Offset of IFD0, relative to the byte order mark
        base_offset: Position of the byte order mark within the block
    """
    byte_order: ByteOrder
    ifd0_offset: int
    base_offset: int = 0


def parse_tiff_header(block, base_offset: int = 0) -> TiffHeader:
    """
    Parse the TIFF header found at ``base_offset`` in ``block``.

    Args:
        block: Bytes-like object or ByteReader holding the header
        base_offset: Position of the 'II'/'MM' mark

    Returns:
        TiffHeader

    Raises:
        MalformedHeaderError: If the block is too short, the byte order mark
            is unknown, or the signature is not 42
    """
    reader = block if isinstance(block, ByteReader) else ByteReader(block)
    if base_offset < 0 or len(reader) < base_offset + TIFF_HEADER_SIZE:
        raise MalformedHeaderError(
            f"Block of {len(reader)} bytes is too short for a TIFF header at offset {base_offset}",
            offset=base_offset,
        )

    mark = reader.read_bytes(base_offset, 2)
    if mark == b'II':
        byte_order = ByteOrder.LITTLE_ENDIAN
    elif mark == b'MM':
        byte_order = ByteOrder.BIG_ENDIAN
    else:
        raise MalformedHeaderError(f"Invalid byte order mark {mark!r}", offset=base_offset)

    reader = reader.with_order(byte_order)
    signature = reader.uint16(base_offset + 2)
    if signature != TIFF_SIGNATURE:
        raise MalformedHeaderError(
            f"Invalid TIFF signature {signature} (expected {TIFF_SIGNATURE})",
            offset=base_offset + 2,
        )

    return TiffHeader(
        byte_order=byte_order,
        ifd0_offset=reader.uint32(base_offset + 4),
        base_offset=base_offset,
    )


@dataclass(frozen=True)
class IfdEntry:
    """
    One 12-byte IFD entry.

    Attributes:
        tag_id: Tag number
        type_id: TIFF field type as stored (without ARRAY_FLAG)
        count: Number of values
        value_slot: The raw 4-byte value/offset field
        value_offset: ``value_slot`` read as an unsigned 32-bit integer
        position: Position of the entry within the block
    """
    tag_id: int
    type_id: int
    count: int
    value_slot: bytes
    value_offset: int
    position: int

    @property
    def type_tag(self) -> int:
        """Type id with ARRAY_FLAG set when the entry holds more than one value."""
        if self.count > 1:
            return self.type_id | ARRAY_FLAG
        return self.type_id

    @property
    def is_array(self) -> bool:
        return self.count > 1


class Ifd:
    """
    View of one Image File Directory.

    ``offset`` is relative to the TIFF header, as stored in the file.
    ``position`` is the matching position within the APP1 block.
    """

    def __init__(self, reader: ByteReader, header: TiffHeader, offset: int, kind: IfdKind = IfdKind.IFD0):
        self.reader = reader
        self.header = header
        self.offset = offset
        self.kind = kind
        self.position = header.base_offset + offset

    def __repr__(self) -> str:
        return f"Ifd(kind={self.kind.name}, offset={self.offset})"

    def entry_count(self) -> int:
        """Number of entries declared by the 2-byte count field."""
        return self.reader.uint16(self.position)

    def entry(self, index: int) -> IfdEntry:
        """
        Parse entry ``index`` in place.

        Raises:
            OffsetOutOfRangeError: If ``index`` is past the declared count or
                the entry lies outside the block
        """
        count = self.entry_count()
        if index < 0 or index >= count:
            raise OffsetOutOfRangeError(
                f"Entry {index} requested from {self.kind.value} with {count} entries",
                offset=self.position,
            )
        position = self.position + 2 + index * IFD_ENTRY_SIZE
        self.reader.check(position, IFD_ENTRY_SIZE)
        return IfdEntry(
            tag_id=self.reader.uint16(position),
            type_id=self.reader.uint16(position + 2),
            count=self.reader.uint32(position + 4),
            value_slot=self.reader.read_bytes(position + 8, 4),
            value_offset=self.reader.uint32(position + 8),
            position=position,
        )

    def entries(self) -> Iterator[IfdEntry]:
        for index in range(self.entry_count()):
            yield self.entry(index)

    def find_entry(self, tag_id: int) -> Optional[IfdEntry]:
        """Return the first entry with ``tag_id`` in this IFD only, or None."""
        for entry in self.entries():
            if entry.tag_id == tag_id:
                return entry
        return None

    def next_ifd_offset(self) -> int:
        """Link to the next IFD (0 when there is none)."""
        return self.reader.uint32(self.position + 2 + self.entry_count() * IFD_ENTRY_SIZE)
