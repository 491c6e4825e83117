# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Directory indexer

Walks a directory tree, reads the configured metadata fields of every JPEG
file and aggregates them into a JSON-serializable list, one entry per file.

Each file is decoded independently, so files can be processed in parallel;
the resulting list is always in sorted path order.

Copyright 2025 DNAi inc.
"""

import json
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, Optional, Union

from imgindex import __version__
from imgindex.config import FieldSpec, IndexConfig
from imgindex.core import JpegImage
from imgindex.exceptions import MetadataReadError, SegmentNotFoundError, TagNotFoundError
from imgindex.exif_tags import (
    GPS_ALTITUDE,
    GPS_ALTITUDE_REF,
    GPS_LATITUDE,
    GPS_LATITUDE_REF,
    GPS_LONGITUDE,
    GPS_LONGITUDE_REF,
    tag_name_for,
)
from imgindex.iptc_parser import (
    IPTC_TAG_APPLICATION2_BYLINE,
    IPTC_TAG_APPLICATION2_KEYWORDS,
    IPTC_TAG_NAMES,
)
from imgindex.jpeg_parser import SOF0_TAG_NAMES
from imgindex.log import get_logger
from imgindex.value_formatter import format_exif_value, gps_altitude, gps_decimal, to_json_value

logger = get_logger(__name__)

# IPTC datasets that may repeat; indexed as lists
REPEATABLE_IPTC_TAGS = {
    IPTC_TAG_APPLICATION2_KEYWORDS,
    IPTC_TAG_APPLICATION2_BYLINE,
    0x0214,  # SupplementalCategories
    0x0255,  # BylineTitle
    0x0276,  # Contact
    0x027A,  # WriterEditor
}

ErrorHandler = Callable[[Path, Exception], None]


class _Absent(Exception):
    """Field has no value for this image."""


class Indexer:
    """
    Build index entries for the JPEG files below a directory.

    Example:
        >>> entries = Indexer(load_config()).index('photos')
        >>> write_index(entries, 'index.json')
    """

    def __init__(self, config: Optional[IndexConfig] = None, error_handler: Optional[ErrorHandler] = None):
        """
        Args:
            config: Index configuration (defaults apply when None)
            error_handler: Called with (path, exception) for files that
                cannot be read; the default logs the error
        """
        self.config = config or IndexConfig()
        self.error_handler = error_handler or self._log_error

    @staticmethod
    def _log_error(path: Path, error: Exception) -> None:
        logger.error("Skipping %s: %s", path, error)

    def _is_hidden(self, name: str) -> bool:
        return not self.config.include_hidden and name.startswith('.')

    def _matches(self, path: Path) -> bool:
        return path.suffix.lower() in self.config.extensions and not self._is_hidden(path.name)

    def find_files(self, root: Union[str, Path]) -> List[Path]:
        """
        JPEG files below ``root`` in sorted order.

        Hidden files and directories (dot-names) are skipped unless
        include_hidden is set. A file given as ``root`` is returned as is.

        Raises:
            MetadataReadError: If ``root`` does not exist
        """
        root = Path(root)
        if root.is_file():
            return [root]
        if not root.is_dir():
            raise MetadataReadError(f"No such file or directory: {root}")

        files = []
        if self.config.recursive:
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = [d for d in dirnames if not self._is_hidden(d)]
                for name in filenames:
                    path = Path(dirpath) / name
                    if self._matches(path):
                        files.append(path)
        else:
            files = [path for path in root.iterdir() if path.is_file() and self._matches(path)]
        return sorted(files)

    def index(self, root: Union[str, Path]) -> List[Dict[str, Any]]:
        """
        Index every JPEG file below ``root``.

        Returns:
            One dict per readable file, keyed by field name, in sorted path
            order. Unreadable files are reported to the error handler and
            left out.
        """
        root = Path(root)
        files = self.find_files(root)
        base = root.parent if root.is_file() else root
        logger.info("Indexing %d files below %s", len(files), root)

        if self.config.workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                results = list(executor.map(lambda path: self._index_file(path, base), files))
        else:
            results = [self._index_file(path, base) for path in files]

        entries = [entry for entry in results if entry is not None]
        logger.info("Indexed %d of %d files", len(entries), len(files))
        return entries

    def _index_file(self, path: Path, base: Path) -> Optional[Dict[str, Any]]:
        try:
            image = JpegImage.open(path)
            return self.index_image(image, path, base)
        except Exception as e:
            # one bad file never stops the run
            self.error_handler(path, e)
            return None

    def index_image(self, image: JpegImage, path: Path, base: Path) -> Dict[str, Any]:
        """Build the entry of one image from the configured fields."""
        entry: Dict[str, Any] = {}
        for spec in self.config.fields:
            try:
                entry[spec.name] = self.field_value(image, spec, path, base)
            except (_Absent, TagNotFoundError, SegmentNotFoundError):
                continue
            except MetadataReadError as e:
                logger.warning("%s: cannot read %s field %r: %s", path, spec.type, spec.id, e)
        return entry

    def field_value(self, image: JpegImage, spec: FieldSpec, path: Path, base: Path) -> Any:
        if spec.type == 'core':
            return self._core_value(spec.id, path, base)
        if spec.type == 'composite':
            return self._composite_value(image, spec.id)

        namespace = spec.type.upper()
        tag = image.resolve_tag(namespace, spec.id)

        if namespace == 'IPTC' and tag in REPEATABLE_IPTC_TAGS:
            values = image.iptc.read_tag_values(tag)
            if not values:
                raise _Absent()
            return values if spec.format == 'raw' else ', '.join(str(v) for v in values)

        value = image.read_tag_value(namespace, tag)
        tag_name = self._tag_name(namespace, tag)
        if spec.format == 'text':
            if namespace == 'EXIF':
                return format_exif_value(tag_name, value)
            if isinstance(value, list):
                return ', '.join(str(v) for v in value)
            return str(value)
        return to_json_value(tag_name, value)

    @staticmethod
    def _tag_name(namespace: str, tag: Any) -> str:
        if namespace == 'EXIF':
            return tag_name_for(tag)
        if namespace == 'IPTC':
            return IPTC_TAG_NAMES.get(tag, str(tag))
        if namespace == 'SOF0':
            return SOF0_TAG_NAMES.get(tag, str(tag))
        return str(tag)

    @staticmethod
    def _core_value(field_id: str, path: Path, base: Path) -> Any:
        if field_id == 'filename':
            return path.name
        if field_id == 'filenameRelative':
            return path.relative_to(base).as_posix()
        if field_id == 'version':
            return __version__
        if field_id == 'size':
            return path.stat().st_size
        raise _Absent()

    @staticmethod
    def _composite_value(image: JpegImage, field_id: str) -> Any:
        def optional(tag_id: int) -> Any:
            try:
                return image.read_tag_value('EXIF', tag_id)
            except TagNotFoundError:
                return None

        if field_id == 'gpsAltitude':
            value = gps_altitude(image.read_tag_value('EXIF', GPS_ALTITUDE), optional(GPS_ALTITUDE_REF) or 0)
        elif field_id == 'gpsLatitude':
            value = gps_decimal(image.read_tag_value('EXIF', GPS_LATITUDE), optional(GPS_LATITUDE_REF))
        elif field_id == 'gpsLongitude':
            value = gps_decimal(image.read_tag_value('EXIF', GPS_LONGITUDE), optional(GPS_LONGITUDE_REF))
        else:
            value = None
        if value is None:
            raise _Absent()
        return value


def write_index(entries: List[Dict[str, Any]], destination: Union[str, Path, IO[str], None] = None) -> str:
    """
    Serialize index entries as JSON.

    Args:
        entries: Entries returned by Indexer.index
        destination: File path or text stream; None only returns the text

    Returns:
        The JSON text
    """
    text = json.dumps(entries, indent=2, ensure_ascii=False)
    if destination is None:
        return text
    if isinstance(destination, (str, Path)):
        with open(destination, 'w', encoding='utf-8') as f:
            f.write(text)
            f.write('\n')
    else:
        destination.write(text)
        destination.write('\n')
    return text
