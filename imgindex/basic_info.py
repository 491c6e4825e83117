# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Basic image information

Collects the handful of values most callers ask for first (dimensions,
title, description, keywords, capture time) from whichever segment holds
them.

Copyright 2025 DNAi inc.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional

from imgindex import exif_tags
from imgindex.core import JpegImage
from imgindex.exceptions import MetadataReadError, SegmentNotFoundError, TagNotFoundError
from imgindex.iptc_parser import IPTC_TAG_APPLICATION2_CAPTION, IPTC_TAG_APPLICATION2_KEYWORDS
from imgindex.jpeg_parser import SOF0_IMAGE_HEIGHT, SOF0_IMAGE_WIDTH
from imgindex.log import get_logger
from imgindex.value_formatter import decode_xp_text

logger = get_logger(__name__)

_MISSING = object()


@dataclass
class BasicInfo:
    """The most basic information that could be asked for."""
    width: Optional[int] = None
    height: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    date_time_original: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _lookup(read: Callable[[], Any], what: str, image: JpegImage) -> Any:
    """Run one read; absent values give _MISSING, malformed segments are logged."""
    try:
        return read()
    except (TagNotFoundError, SegmentNotFoundError):
        return _MISSING
    except MetadataReadError as e:
        logger.warning("Cannot read %s from %s: %s", what, image.file_path or "image", e)
        return _MISSING


def _first(image: JpegImage, what: str, *reads: Callable[[], Any]) -> Any:
    for read in reads:
        value = _lookup(read, what, image)
        if value is not _MISSING and value not in ('', [], None):
            return value
    return None


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def _xp_keywords(value: Any) -> List[str]:
    # XPKeywords separates keywords with semicolons
    return [keyword.strip() for keyword in decode_xp_text(value).split(';') if keyword.strip()]


def get_basic_info(image: JpegImage) -> BasicInfo:
    """
    Gather basic information from the image's metadata.

    Dimensions come from the frame header, falling back to the EXIF pixel
    dimensions. The title is the IPTC caption, then XMP dc:title, then
    XPTitle. Keywords are the IPTC keywords, then XMP dc:subject, then
    XPKeywords. Values that are absent stay None (keywords stay empty).
    """
    info = BasicInfo()

    info.width = _first(
        image, "image width",
        lambda: image.read_tag_value('SOF0', SOF0_IMAGE_WIDTH),
        lambda: image.read_tag_value('EXIF', exif_tags.PIXEL_X_DIMENSION),
    )
    info.height = _first(
        image, "image height",
        lambda: image.read_tag_value('SOF0', SOF0_IMAGE_HEIGHT),
        lambda: image.read_tag_value('EXIF', exif_tags.PIXEL_Y_DIMENSION),
    )
    info.title = _first(
        image, "title",
        lambda: image.read_tag_value('IPTC', IPTC_TAG_APPLICATION2_CAPTION),
        lambda: image.read_tag_value('XMP', 'dc:title'),
        lambda: decode_xp_text(image.read_tag_value('EXIF', exif_tags.XP_TITLE)),
    )
    info.description = _first(
        image, "description",
        lambda: image.read_tag_value('EXIF', exif_tags.IMAGE_DESCRIPTION),
        lambda: image.read_tag_value('XMP', 'dc:description'),
    )
    info.keywords = _as_list(_first(
        image, "keywords",
        lambda: image.iptc.read_tag_values(IPTC_TAG_APPLICATION2_KEYWORDS),
        lambda: image.read_tag_value('XMP', 'dc:subject'),
        lambda: _xp_keywords(image.read_tag_value('EXIF', exif_tags.XP_KEYWORDS)),
    ))
    info.date_time_original = _first(
        image, "capture time",
        lambda: image.read_tag_value('EXIF', exif_tags.DATE_TIME_ORIGINAL),
    )

    logger.debug("%s: %sx%s %r", image.file_path or "image", info.width, info.height, info.title)
    return info
