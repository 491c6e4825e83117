# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF metadata parser

This module answers "what is the value of tag T" for one JPEG APP1 (Exif)
block. IFD0 is the root of a small graph of directories linked by offsets:

    IFD0 --ExifIFDPointer--> ExifIFD --InteropPointer--> InteropIFD
    IFD0 --GPSInfoPointer--> GPS
    IFD0 --next link-------> IFD1 (thumbnail)

A lookup walks that graph depth-first from IFD0 with a LIFO work list and
returns the first entry whose tag id matches. Nothing is cached between
lookups: every call re-reads the header and re-walks the graph.

Copyright 2025 DNAi inc.
"""

from typing import Iterator, Tuple, Union

from imgindex.byte_reader import ByteOrder, ByteReader
from imgindex.exceptions import (
    CyclicReferenceError,
    ExifDecodeError,
    MalformedHeaderError,
    TagNotFoundError,
)
from imgindex.exif_values import TagValue, decode_value
from imgindex.tiff_structure import (
    POINTER_TAGS,
    Ifd,
    IfdEntry,
    IfdKind,
    TiffHeader,
    parse_tiff_header,
)


EXIF_IDENTIFIER = b'Exif\x00\x00'
# marker (2) + length (2) + identifier (6)
TIFF_HEADER_OFFSET = 10

BlockLike = Union[bytes, bytearray, memoryview]


class IfdGraphWalker:
    """
    Depth-first traversal of the IFD graph of one TIFF body.

    Pending IFDs are kept on a stack, so the last pointer seen in IFD0 is
    explored first (for a usual IFD0 holding ExifIFDPointer then
    GPSInfoPointer the order is IFD0, GPS, ExifIFD, InteropIFD). IFD1 is
    visited last: IFD0's next link is only read once the stack is empty.
    """

    def __init__(self, reader: ByteReader, header: TiffHeader):
        self.reader = reader.with_order(header.byte_order)
        self.header = header

    def iter_entries(self) -> Iterator[Tuple[Ifd, IfdEntry]]:
        """
        Yield ``(ifd, entry)`` for every entry of every reachable IFD.

        Raises:
            CyclicReferenceError: If an IFD offset is reached a second time
            OffsetOutOfRangeError: If an IFD or entry lies outside the block
        """
        pending = [(self.header.ifd0_offset, IfdKind.IFD0)]
        visited = set()
        ifd0 = None

        while pending or ifd0 is not None:
            if not pending:
                next_offset = ifd0.next_ifd_offset()
                ifd0 = None
                if not next_offset:
                    break
                pending.append((next_offset, IfdKind.IFD1))

            offset, kind = pending.pop()
            if offset in visited:
                raise CyclicReferenceError(
                    f"{kind.value} at offset {offset} was already visited",
                    offset=self.header.base_offset + offset,
                )
            visited.add(offset)

            ifd = Ifd(self.reader, self.header, offset, kind)
            for entry in ifd.entries():
                yield ifd, entry

                child_kind = POINTER_TAGS.get((kind, entry.tag_id))
                if child_kind is not None:
                    pending.append((entry.value_offset, child_kind))

            if kind is IfdKind.IFD0:
                ifd0 = ifd

    def find_entry(self, tag_id: int) -> Tuple[Ifd, IfdEntry]:
        """
        Return the first ``(ifd, entry)`` whose tag id is ``tag_id``.

        Raises:
            TagNotFoundError: If no reachable IFD holds the tag
        """
        for ifd, entry in self.iter_entries():
            if entry.tag_id == tag_id:
                return ifd, entry
        raise TagNotFoundError(f"EXIF tag 0x{tag_id:04X} not found", tag=tag_id)

    def find_tag_value(self, tag_id: int) -> TagValue:
        ifd, entry = self.find_entry(tag_id)
        return decode_value(self.reader, entry, ifd.position)


class ExifSegment:
    """
    Decoder for one JPEG APP1 block holding Exif data.

    The block starts at the 0xFFE1 marker. The segment object only keeps a
    read-only view of the block, so it can be shared between threads.
    """

    def __init__(self, block: BlockLike):
        # JPEG segment fields are big-endian whatever the TIFF body says
        self.reader = ByteReader(block, ByteOrder.BIG_ENDIAN)

    @property
    def marker(self) -> int:
        return self.reader.uint16(0)

    @property
    def length(self) -> int:
        return self.reader.uint16(2)

    def has_identifier(self) -> bool:
        return len(self.reader) >= TIFF_HEADER_OFFSET and self.reader.read_bytes(4, 6) == EXIF_IDENTIFIER

    def parse_header(self) -> TiffHeader:
        """
        Check the Exif identifier and parse the TIFF header behind it.

        Raises:
            MalformedHeaderError: If the identifier or the TIFF header is invalid
        """
        if not self.has_identifier():
            raise MalformedHeaderError("APP1 block does not carry the Exif identifier", offset=4)
        return parse_tiff_header(self.reader, TIFF_HEADER_OFFSET)

    def walker(self) -> IfdGraphWalker:
        return IfdGraphWalker(self.reader, self.parse_header())

    def read_tag(self, tag_id: int) -> TagValue:
        """
        Look up ``tag_id`` in every IFD reachable from IFD0.

        Returns:
            TagValue of the first matching entry

        Raises:
            TagNotFoundError: If the tag is absent
            ExifDecodeError: If the block is malformed
        """
        return self.walker().find_tag_value(tag_id)

    def read_tag_value(self, tag_id: int):
        """Same as read_tag but returns only the decoded Python value."""
        return self.read_tag(tag_id).value

    def iter_tags(self) -> Iterator[Tuple[IfdKind, IfdEntry]]:
        """Yield ``(kind, entry)`` for every reachable entry, in walk order."""
        for ifd, entry in self.walker().iter_entries():
            yield ifd.kind, entry

    def iter_values(self) -> Iterator[Tuple[IfdKind, TagValue]]:
        """Yield ``(kind, value)`` for every reachable entry, in walk order."""
        walker = self.walker()
        for ifd, entry in walker.iter_entries():
            yield ifd.kind, decode_value(walker.reader, entry, ifd.position)

    def iter_decoded(self) -> Iterator[Tuple[IfdKind, IfdEntry, Union[TagValue, ExifDecodeError]]]:
        """
        Yield ``(kind, entry, value)`` for every reachable entry.

        A tag that cannot be decoded yields its ExifDecodeError as ``value``
        and the walk goes on. Errors of the walk itself are raised.
        """
        walker = self.walker()
        for ifd, entry in walker.iter_entries():
            try:
                value = decode_value(walker.reader, entry, ifd.position)
            except ExifDecodeError as e:
                value = e
            yield ifd.kind, entry, value


def read_tag_value(block: BlockLike, tag_id: int):
    """
    Decode ``tag_id`` from a raw APP1 block.

    Convenience wrapper around ``ExifSegment(block).read_tag_value(tag_id)``.
    """
    return ExifSegment(block).read_tag_value(tag_id)
