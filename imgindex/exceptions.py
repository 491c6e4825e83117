# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Exception classes for imgindex

This module defines the exceptions raised while decoding image metadata
and while building a directory index.

Copyright 2025 DNAi inc.
"""

from typing import Optional


class ImgIndexError(Exception):
    """
    Base exception for all imgindex errors.

    All imgindex exceptions inherit from this class, allowing
    catch-all error handling for any imgindex-related errors.
    """
    def __init__(self, message: str = ""):
        """
        Initialize the exception with an optional error message.

        Args:
            message: Descriptive error message explaining what went wrong
        """
        self.message = message
        super().__init__(message)


class MetadataReadError(ImgIndexError):
    """
    Raised when metadata cannot be read from a file or segment.

    This exception is raised when:
    - File is not a JPEG or is truncated
    - A metadata segment cannot be parsed
    - File permissions prevent reading
    """
    pass


class ExifDecodeError(MetadataReadError):
    """
    Raised when an EXIF/TIFF segment is malformed.

    Carries the byte offset (relative to the start of the APP1 block)
    at which decoding failed, when one is known.
    """
    def __init__(self, message: str = "", offset: Optional[int] = None):
        self.offset = offset
        super().__init__(message)


class MalformedHeaderError(ExifDecodeError):
    """Raised when the TIFF header or Exif identifier is missing or invalid."""
    pass


class OffsetOutOfRangeError(ExifDecodeError):
    """Raised when a computed read would fall outside the segment."""
    pass


class UnsupportedTypeError(ExifDecodeError):
    """Raised when a tag declares a type id outside the 12 TIFF field types."""

    def __init__(self, message: str = "", type_id: Optional[int] = None, offset: Optional[int] = None):
        self.type_id = type_id
        super().__init__(message, offset)


class CyclicReferenceError(ExifDecodeError):
    """Raised when an IFD offset is reached twice during one lookup."""
    pass


class TagNotFoundError(ImgIndexError):
    """
    Raised when a tag is absent from every IFD reachable from IFD0.

    This is not a MetadataReadError: an absent tag is an ordinary outcome
    and the indexer simply omits the field.
    """
    def __init__(self, message: str = "", tag=None):
        self.tag = tag
        super().__init__(message)


class SegmentNotFoundError(ImgIndexError):
    """Raised when an image has no segment for the requested namespace."""
    pass


class UnsupportedNamespaceError(ImgIndexError):
    """Raised when a namespace other than EXIF, IPTC, SOF0 or XMP is queried."""
    pass


class ConfigError(ImgIndexError):
    """
    Raised when the configuration is invalid.

    This exception is raised when:
    - The YAML file cannot be parsed
    - A field definition is missing its type or id
    - Mutually exclusive options are both enabled
    """
    pass
