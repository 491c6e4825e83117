# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Bounds-checked fixed-width reads over an immutable byte block

Every offset handed to the EXIF decoder comes from the file itself, so every
read goes through ByteReader, which converts an out-of-range access into
OffsetOutOfRangeError instead of letting struct or slicing fail.

Copyright 2025 DNAi inc.
"""

import struct
from enum import Enum
from typing import List, Union

from imgindex.exceptions import OffsetOutOfRangeError


class ByteOrder(Enum):
    """TIFF byte orders, valued by their struct prefix."""
    LITTLE_ENDIAN = '<'
    BIG_ENDIAN = '>'

    @property
    def marker(self) -> bytes:
        """The 2-byte TIFF marker for this order ('II' or 'MM')."""
        return b'II' if self is ByteOrder.LITTLE_ENDIAN else b'MM'


class ByteReader:
    """
    Read integers and floats from a byte block under one byte order.

    The reader never copies or mutates the block; a memoryview keeps
    sub-slicing cheap for large APP1 segments.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview], byte_order: ByteOrder = ByteOrder.BIG_ENDIAN):
        self.data = memoryview(data).toreadonly()
        self.byte_order = byte_order
        self.endian = byte_order.value

    def __len__(self) -> int:
        return len(self.data)

    def with_order(self, byte_order: ByteOrder) -> 'ByteReader':
        """Return a reader over the same block with another byte order."""
        return ByteReader(self.data, byte_order)

    def check(self, offset: int, length: int) -> None:
        """
        Make sure ``length`` bytes starting at ``offset`` lie inside the block.

        Raises:
            OffsetOutOfRangeError: If any byte of the range is outside the block
        """
        if offset < 0 or length < 0 or offset + length > len(self.data):
            raise OffsetOutOfRangeError(
                f"Read of {length} bytes at offset {offset} exceeds block of {len(self.data)} bytes",
                offset=offset,
            )

    def read_bytes(self, offset: int, length: int) -> bytes:
        self.check(offset, length)
        return self.data[offset:offset + length].tobytes()

    def _unpack(self, fmt: str, offset: int):
        size = struct.calcsize(fmt)
        self.check(offset, size)
        return struct.unpack_from(f'{self.endian}{fmt}', self.data, offset)[0]

    def int8(self, offset: int) -> int:
        return self._unpack('b', offset)

    def uint16(self, offset: int) -> int:
        return self._unpack('H', offset)

    def int16(self, offset: int) -> int:
        return self._unpack('h', offset)

    def uint32(self, offset: int) -> int:
        return self._unpack('I', offset)

    def int32(self, offset: int) -> int:
        return self._unpack('i', offset)

    def array(self, fmt: str, offset: int, count: int) -> List:
        """
        Read ``count`` consecutive values of struct format ``fmt``.

        Args:
            fmt: Single struct format character (e.g. 'H', 'i')
            offset: Offset of the first value
            count: Number of values

        Returns:
            List of decoded values
        """
        size = struct.calcsize(fmt) * count
        self.check(offset, size)
        return list(struct.unpack_from(f'{self.endian}{count}{fmt}', self.data, offset))
