# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
imgindex - JPEG image metadata indexer

Reads EXIF, IPTC, XMP and frame-header metadata from JPEG files by decoding
the binary segments directly, and aggregates selected fields of whole
directory trees into a JSON index.

Copyright 2025 DNAi inc.
"""

__version__ = "0.1.0"
__author__ = "DNAi inc."

from imgindex.core import JpegImage
from imgindex.exceptions import (
    ConfigError,
    CyclicReferenceError,
    ExifDecodeError,
    ImgIndexError,
    MalformedHeaderError,
    MetadataReadError,
    OffsetOutOfRangeError,
    SegmentNotFoundError,
    TagNotFoundError,
    UnsupportedNamespaceError,
    UnsupportedTypeError,
)
from imgindex.exif_parser import ExifSegment, read_tag_value
from imgindex.exif_values import ExifTagType, TagValue
from imgindex.basic_info import BasicInfo, get_basic_info
from imgindex.config import FieldSpec, IndexConfig, load_config
from imgindex.indexer import Indexer, write_index

__all__ = [
    'JpegImage',
    'ExifSegment',
    'read_tag_value',
    'ExifTagType',
    'TagValue',
    'BasicInfo',
    'get_basic_info',
    'FieldSpec',
    'IndexConfig',
    'load_config',
    'Indexer',
    'write_index',
    'ImgIndexError',
    'MetadataReadError',
    'ExifDecodeError',
    'MalformedHeaderError',
    'OffsetOutOfRangeError',
    'UnsupportedTypeError',
    'CyclicReferenceError',
    'TagNotFoundError',
    'SegmentNotFoundError',
    'UnsupportedNamespaceError',
    'ConfigError',
]
