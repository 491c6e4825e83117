# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF tag value decoding

Turns an IFD entry (type, count, 4-byte slot) into a Python value. Values of
at most 4 bytes live in the slot itself; larger values live at an offset
that is relative to the owning IFD, not to the TIFF header.

Copyright 2025 DNAi inc.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from imgindex.byte_reader import ByteReader
from imgindex.exceptions import UnsupportedTypeError
from imgindex.tiff_structure import ARRAY_FLAG, IfdEntry


class ExifTagType(IntEnum):
    """TIFF/EXIF field types"""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12


# Field type sizes in bytes
TAG_SIZES = {
    ExifTagType.BYTE: 1,
    ExifTagType.ASCII: 1,
    ExifTagType.SHORT: 2,
    ExifTagType.LONG: 4,
    ExifTagType.RATIONAL: 8,
    ExifTagType.SBYTE: 1,
    ExifTagType.UNDEFINED: 1,
    ExifTagType.SSHORT: 2,
    ExifTagType.SLONG: 4,
    ExifTagType.SRATIONAL: 8,
    ExifTagType.FLOAT: 4,
    ExifTagType.DOUBLE: 8,
}

# struct format of one element, for the plain numeric types
_STRUCT_FORMATS = {
    ExifTagType.BYTE: 'B',
    ExifTagType.SHORT: 'H',
    ExifTagType.LONG: 'I',
    ExifTagType.SBYTE: 'b',
    ExifTagType.SSHORT: 'h',
    ExifTagType.SLONG: 'i',
    ExifTagType.FLOAT: 'f',
    ExifTagType.DOUBLE: 'd',
}


@dataclass(frozen=True)
class TagValue:
    """
    A decoded tag.

    ``tag_type`` discriminates the payload in ``value``:
    int for BYTE/SHORT/LONG/SBYTE/SSHORT/SLONG, float for RATIONAL/SRATIONAL/
    FLOAT/DOUBLE, str for ASCII, bytes for UNDEFINED, and a list of the
    scalar payload when ``count`` > 1 (except ASCII and UNDEFINED).
    """
    tag_id: int
    tag_type: ExifTagType
    count: int
    value: Any

    @property
    def is_array(self) -> bool:
        return isinstance(self.value, list)


def tag_type_of(entry: IfdEntry) -> ExifTagType:
    """
    Resolve an entry's field type.

    Raises:
        UnsupportedTypeError: If the type id is not one of the 12 field types
    """
    try:
        return ExifTagType(entry.type_id)
    except ValueError:
        raise UnsupportedTypeError(
            f"Unsupported EXIF field type {entry.type_id} for tag 0x{entry.tag_id:04X}",
            type_id=entry.type_id,
            offset=entry.position,
        ) from None


def rational(numerator: int, denominator: int) -> float:
    """
    Divide as IEEE-754 doubles.

    A zero denominator gives +/-inf, or nan for 0/0, instead of raising.
    """
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return float(numerator) / float(denominator)


def decode_ascii(data: bytes) -> str:
    """Decode an ASCII field up to its first NUL; UTF-8 first, then Latin-1."""
    text = data.split(b'\x00', 1)[0]
    try:
        value = text.decode('utf-8')
    except UnicodeDecodeError:
        value = text.decode('latin-1')
    return value


def decode_value(reader: ByteReader, entry: IfdEntry, ifd_position: int) -> TagValue:
    """
    Decode the value of ``entry``.

    Args:
        reader: Reader over the APP1 block, in the segment's byte order
        entry: The entry to decode
        ifd_position: Position of the owning IFD within the block; out-of-line
            values are read at ``ifd_position + entry.value_offset``

    Returns:
        TagValue

    Raises:
        UnsupportedTypeError: If the field type is unknown
        OffsetOutOfRangeError: If the value lies outside the block
    """
    tag_type = tag_type_of(entry)
    count = entry.count
    size = TAG_SIZES[tag_type] * count

    if size <= 4:
        data = ByteReader(entry.value_slot, reader.byte_order)
        offset = 0
    else:
        data = reader
        offset = ifd_position + entry.value_offset

    type_tag = entry.type_tag

    if tag_type == ExifTagType.ASCII:
        value = decode_ascii(data.read_bytes(offset, count))
    elif tag_type == ExifTagType.UNDEFINED:
        value = data.read_bytes(offset, count)
    elif tag_type in (ExifTagType.RATIONAL, ExifTagType.SRATIONAL):
        fmt = 'I' if tag_type == ExifTagType.RATIONAL else 'i'
        if type_tag & ARRAY_FLAG:
            pairs = data.array(fmt, offset, 2 * count)
            value = [rational(pairs[i], pairs[i + 1]) for i in range(0, len(pairs), 2)]
        elif count == 1:
            numerator, denominator = data.array(fmt, offset, 2)
            value = rational(numerator, denominator)
        else:
            value = []
    else:
        fmt = _STRUCT_FORMATS[tag_type]
        if type_tag & ARRAY_FLAG or count == 0:
            value = data.array(fmt, offset, count)
        else:
            value = data.array(fmt, offset, 1)[0]

    return TagValue(tag_id=entry.tag_id, tag_type=tag_type, count=count, value=value)
