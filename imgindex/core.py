# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Core JpegImage class

This module provides the main API for reading metadata from one JPEG file.
It splits the file into segments and routes "(namespace, tag)" lookups to
the EXIF, IPTC, SOF0 and XMP decoders.

Copyright 2025 DNAi inc.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from imgindex.exceptions import (
    MetadataReadError,
    SegmentNotFoundError,
    TagNotFoundError,
    UnsupportedNamespaceError,
)
from imgindex.exif_parser import EXIF_IDENTIFIER, ExifSegment
from imgindex.exif_tags import tag_id_for
from imgindex.iptc_parser import IPTC_TAG_IDS, PHOTOSHOP_IDENTIFIER, IptcSegment
from imgindex.jpeg_parser import (
    APP1,
    APP13,
    FRAME_MARKERS,
    SOF0_TAG_IDS,
    JpegSegment,
    Sof0Segment,
    find_segment,
    read_segments,
)
from imgindex.log import get_logger
from imgindex.xmp_parser import XMP_IDENTIFIER, XmpSegment

logger = get_logger(__name__)

NAMESPACES = ('EXIF', 'IPTC', 'SOF0', 'XMP')

TagKey = Union[int, str]


class JpegImage:
    """
    Metadata view of one JPEG file.

    Segment decoders are created on first use and reused for later lookups.

    Example:
        >>> image = JpegImage.open('photo.jpg')
        >>> image.read_tag_value('EXIF', 0x0112)
        1
        >>> image.read_tag_value('IPTC', 'Keywords')
        'holiday'
    """

    def __init__(self, data: bytes, file_path: Optional[Union[str, Path]] = None):
        """
        Args:
            data: Complete file contents
            file_path: Where the data came from, for messages only

        Raises:
            MetadataReadError: If the data is not a readable JPEG
        """
        self.data = bytes(data)
        self.file_path = Path(file_path) if file_path is not None else None
        self.segments: List[JpegSegment] = read_segments(self.data)
        self._decoders: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"JpegImage({str(self.file_path) if self.file_path else '<bytes>'!r}, segments={len(self.segments)})"

    @classmethod
    def from_bytes(cls, data: bytes) -> 'JpegImage':
        return cls(data)

    @classmethod
    def open(cls, file_path: Union[str, Path]) -> 'JpegImage':
        """
        Read and scan a JPEG file.

        Raises:
            MetadataReadError: If the file cannot be read or is not a JPEG
        """
        path = Path(file_path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise MetadataReadError(f"Failed to read {path}: {e}") from e
        logger.debug("Read %d bytes from %s", len(data), path)
        return cls(data, path)

    def has_segment(self, namespace: str) -> bool:
        return self._find(namespace.upper()) is not None

    def _find(self, namespace: str) -> Optional[JpegSegment]:
        if namespace == 'EXIF':
            return find_segment(self.segments, APP1, EXIF_IDENTIFIER)
        if namespace == 'XMP':
            return find_segment(self.segments, APP1, XMP_IDENTIFIER)
        if namespace == 'IPTC':
            return find_segment(self.segments, APP13, PHOTOSHOP_IDENTIFIER)
        if namespace == 'SOF0':
            for segment in self.segments:
                if segment.marker in FRAME_MARKERS:
                    return segment
            return None
        raise UnsupportedNamespaceError(
            f"Unsupported namespace {namespace!r} (expected one of {', '.join(NAMESPACES)})"
        )

    def decoder(self, namespace: str):
        """
        Decoder object for ``namespace`` (ExifSegment, IptcSegment, Sof0Segment
        or XmpSegment).

        Raises:
            UnsupportedNamespaceError: If the namespace is unknown
            SegmentNotFoundError: If the image has no such segment
        """
        namespace = namespace.upper()
        if namespace not in self._decoders:
            segment = self._find(namespace)
            if segment is None:
                raise SegmentNotFoundError(f"No {namespace} segment in {self.file_path or 'image'}")
            if namespace == 'EXIF':
                decoder = ExifSegment(segment.data)
            elif namespace == 'IPTC':
                decoder = IptcSegment(segment.data)
            elif namespace == 'SOF0':
                decoder = Sof0Segment(segment.data)
            else:
                decoder = XmpSegment(segment.data)
            self._decoders[namespace] = decoder
        return self._decoders[namespace]

    @property
    def exif(self) -> ExifSegment:
        return self.decoder('EXIF')

    @property
    def iptc(self) -> IptcSegment:
        return self.decoder('IPTC')

    @property
    def sof0(self) -> Sof0Segment:
        return self.decoder('SOF0')

    @property
    def xmp(self) -> XmpSegment:
        return self.decoder('XMP')

    @staticmethod
    def resolve_tag(namespace: str, tag: TagKey) -> TagKey:
        """
        Turn a tag name into the id the decoder of ``namespace`` expects.

        Integers pass through unchanged; XMP tags are always names.
        """
        namespace = namespace.upper()
        if isinstance(tag, int) or namespace == 'XMP':
            return tag
        try:
            if namespace == 'EXIF':
                return tag_id_for(tag)
            table = IPTC_TAG_IDS if namespace == 'IPTC' else SOF0_TAG_IDS
            if tag in table:
                return table[tag]
            return int(tag, 0)
        except (KeyError, ValueError):
            raise TagNotFoundError(f"Unknown {namespace} tag name {tag!r}", tag=tag) from None

    def read_tag_value(self, namespace: str, tag: TagKey) -> Any:
        """
        Read one tag from the segment of ``namespace``.

        Args:
            namespace: 'EXIF', 'IPTC', 'SOF0' or 'XMP' (case-insensitive)
            tag: Numeric tag id, or tag name ("Orientation", "Keywords",
                "ImageWidth", "dc:title")

        Returns:
            The decoded value

        Raises:
            UnsupportedNamespaceError: If the namespace is unknown
            SegmentNotFoundError: If the image has no segment for it
            TagNotFoundError: If the segment has no such tag
            MetadataReadError: If the segment is malformed
        """
        namespace = namespace.upper()
        if namespace not in NAMESPACES:
            raise UnsupportedNamespaceError(
                f"Unsupported namespace {namespace!r} (expected one of {', '.join(NAMESPACES)})"
            )
        return self.decoder(namespace).read_tag_value(self.resolve_tag(namespace, tag))
