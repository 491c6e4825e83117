# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
JPEG container parser

Splits a JPEG file into its marker segments and decodes the frame header
(SOF0 and friends). Segment lengths are always big-endian and count the
length field itself but not the marker:

    [Record]   [size]
    FF xx      2 bytes   marker
    length     2 bytes   payload length + 2
    payload    length-2 bytes

Scanning stops at the first SOS (entropy-coded data follows) or EOI.

Copyright 2025 DNAi inc.
"""

import struct
from dataclasses import dataclass
from typing import List, Optional, Union

from imgindex.exceptions import MetadataReadError, TagNotFoundError


# Markers
SOI = 0xFFD8
EOI = 0xFFD9
SOS = 0xFFDA
APP0 = 0xFFE0
APP1 = 0xFFE1
APP13 = 0xFFED
SOF0 = 0xFFC0
SOF1 = 0xFFC1
SOF2 = 0xFFC2

# Frame headers whose layout matches SOF0
FRAME_MARKERS = (SOF0, SOF1, SOF2)

# Markers without a length field
STANDALONE_MARKERS = {0xFF01} | {0xFFD0 + n for n in range(8)}

# SOF0 pseudo tags
SOF0_BITS_PER_SAMPLE = 0x0000
SOF0_IMAGE_HEIGHT = 0x0001
SOF0_IMAGE_WIDTH = 0x0002
SOF0_COMPONENTS = 0x0003

SOF0_TAG_NAMES = {
    SOF0_BITS_PER_SAMPLE: "BitsPerSample",
    SOF0_IMAGE_HEIGHT: "ImageHeight",
    SOF0_IMAGE_WIDTH: "ImageWidth",
    SOF0_COMPONENTS: "Components",
}

SOF0_TAG_IDS = {name: tag_id for tag_id, name in SOF0_TAG_NAMES.items()}


@dataclass(frozen=True)
class JpegSegment:
    """
    One marker segment.

    Attributes:
        marker: Two-byte marker, e.g. 0xFFE1
        offset: Position of the marker in the file
        data: The whole segment, marker and length field included
    """
    marker: int
    offset: int
    data: bytes

    @property
    def payload(self) -> bytes:
        return self.data[4:]

    def startswith(self, identifier: bytes) -> bool:
        """True if the payload begins with ``identifier``."""
        return self.data[4:4 + len(identifier)] == identifier


def read_segments(data: Union[bytes, bytearray, memoryview]) -> List[JpegSegment]:
    """
    Scan the marker segments of a JPEG file.

    Args:
        data: Complete file contents

    Returns:
        Segments from the first marker after SOI up to and including SOS

    Raises:
        MetadataReadError: If the data is not a JPEG or a segment is truncated
    """
    data = bytes(data)
    if len(data) < 4 or data[:2] != b'\xff\xd8':
        raise MetadataReadError("Not a JPEG file (missing SOI marker)")

    segments = []
    offset = 2
    while offset < len(data):
        if data[offset] != 0xFF:
            raise MetadataReadError(f"Expected a marker at offset {offset}, found 0x{data[offset]:02X}")
        # Fill bytes: any number of 0xFF may precede a marker
        while offset + 1 < len(data) and data[offset + 1] == 0xFF:
            offset += 1
        if offset + 1 >= len(data):
            raise MetadataReadError(f"Truncated marker at offset {offset}")

        marker = 0xFF00 | data[offset + 1]
        if marker == EOI:
            break
        if marker in STANDALONE_MARKERS:
            offset += 2
            continue

        if offset + 4 > len(data):
            raise MetadataReadError(f"Truncated segment header for marker 0x{marker:04X} at offset {offset}")
        length = struct.unpack('>H', data[offset + 2:offset + 4])[0]
        end = offset + 2 + length
        if length < 2 or end > len(data):
            raise MetadataReadError(
                f"Segment 0x{marker:04X} at offset {offset} declares length {length} "
                f"beyond end of file ({len(data)} bytes)"
            )

        segments.append(JpegSegment(marker=marker, offset=offset, data=data[offset:end]))
        if marker == SOS:
            break
        offset = end

    return segments


class Sof0Segment:
    """
    Frame header decoder.

    Layout after the length field: precision (1), height (2), width (2),
    number of components (1), then 3 bytes per component.
    """

    def __init__(self, block: bytes):
        if len(block) < 10:
            raise MetadataReadError(f"Frame header of {len(block)} bytes is truncated")
        self.block = block

    def read_tag_value(self, tag_id: int) -> int:
        """
        Raises:
            TagNotFoundError: If ``tag_id`` is not one of the SOF0 pseudo tags
        """
        if tag_id == SOF0_BITS_PER_SAMPLE:
            return self.block[4]
        if tag_id == SOF0_IMAGE_HEIGHT:
            return struct.unpack('>H', self.block[5:7])[0]
        if tag_id == SOF0_IMAGE_WIDTH:
            return struct.unpack('>H', self.block[7:9])[0]
        if tag_id == SOF0_COMPONENTS:
            return self.block[9]
        raise TagNotFoundError(f"SOF0 tag 0x{tag_id:04X} not found", tag=tag_id)


def find_segment(segments: List[JpegSegment], marker: int, identifier: Optional[bytes] = None) -> Optional[JpegSegment]:
    """First segment with ``marker`` (and payload prefix ``identifier``), or None."""
    for segment in segments:
        if segment.marker != marker:
            continue
        if identifier is None or segment.startswith(identifier):
            return segment
    return None
