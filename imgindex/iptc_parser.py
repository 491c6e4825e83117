# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
IPTC metadata parser

IPTC-IIM data lives in the JPEG APP13 segment, wrapped in Photoshop image
resource blocks:

    "Photoshop 3.0\\0"
    "8BIM" id:u16 name:pascal(padded to even) size:u32 data(padded to even)
    ...

Resource 0x0404 holds the IIM records:

    0x1C record:u8 dataset:u8 length:u16 data

Tags are addressed as ``(record << 8) | dataset``, so Application Record
keywords (2:25) are 0x0219.

Copyright 2025 DNAi inc.
"""

import struct
from typing import Any, Dict, Iterator, List, Tuple

from imgindex.exceptions import MetadataReadError, TagNotFoundError


PHOTOSHOP_IDENTIFIER = b'Photoshop 3.0\x00'
RESOURCE_SIGNATURE = b'8BIM'
IPTC_RESOURCE_ID = 0x0404
IIM_TAG_MARKER = 0x1C

IPTC_TAG_APPLICATION2_RECORD_VERSION = 0x0200
IPTC_TAG_APPLICATION2_OBJECT_NAME = 0x0205
IPTC_TAG_APPLICATION2_KEYWORDS = 0x0219
IPTC_TAG_APPLICATION2_DATE_CREATED = 0x0237
IPTC_TAG_APPLICATION2_BYLINE = 0x0250
IPTC_TAG_APPLICATION2_CITY = 0x025A
IPTC_TAG_APPLICATION2_HEADLINE = 0x0269
IPTC_TAG_APPLICATION2_COPYRIGHT_NOTICE = 0x0274
IPTC_TAG_APPLICATION2_CAPTION = 0x0278

# Application Record (record 2) datasets
IPTC_TAG_NAMES = {
    0x0200: "RecordVersion",
    0x0205: "ObjectName",
    0x0207: "EditStatus",
    0x020A: "Urgency",
    0x020F: "Category",
    0x0214: "SupplementalCategories",
    0x0219: "Keywords",
    0x021A: "ContentLocationCode",
    0x021B: "ContentLocationName",
    0x0228: "SpecialInstructions",
    0x0237: "DateCreated",
    0x023C: "TimeCreated",
    0x0241: "OriginatingProgram",
    0x0246: "ProgramVersion",
    0x0250: "Byline",
    0x0255: "BylineTitle",
    0x025A: "City",
    0x025C: "Sublocation",
    0x025F: "ProvinceState",
    0x0264: "CountryCode",
    0x0265: "CountryName",
    0x0267: "OriginalTransmissionReference",
    0x0269: "Headline",
    0x026E: "Credit",
    0x0273: "Source",
    0x0274: "CopyrightNotice",
    0x0276: "Contact",
    0x0278: "Caption",
    0x027A: "WriterEditor",
}

IPTC_TAG_IDS = {name: tag_id for tag_id, name in IPTC_TAG_NAMES.items()}


def _decode_text(data: bytes) -> str:
    try:
        value = data.decode('utf-8')
    except UnicodeDecodeError:
        value = data.decode('latin-1')
    return value.strip()


class IptcSegment:
    """
    Decoder for one APP13 segment.

    The IIM records are parsed once, on first access.
    """

    def __init__(self, block: bytes):
        """
        Args:
            block: The whole APP13 segment, marker and length included
        """
        self.block = bytes(block)
        self._records = None

    def _resources(self) -> Iterator[Tuple[int, bytes]]:
        """Yield ``(resource_id, data)`` for every 8BIM resource."""
        data = self.block[4:]
        if not data.startswith(PHOTOSHOP_IDENTIFIER):
            raise MetadataReadError("APP13 segment does not carry the Photoshop 3.0 identifier")

        offset = len(PHOTOSHOP_IDENTIFIER)
        while offset + 7 <= len(data):
            if data[offset:offset + 4] != RESOURCE_SIGNATURE:
                raise MetadataReadError(f"Invalid image resource signature at offset {offset}")
            resource_id = struct.unpack('>H', data[offset + 4:offset + 6])[0]

            # Pascal name: length byte + name, padded to an even size
            name_len = data[offset + 6]
            name_end = offset + 7 + name_len
            if name_len % 2 == 0:
                name_end += 1

            if name_end + 4 > len(data):
                raise MetadataReadError(f"Truncated image resource 0x{resource_id:04X}")
            size = struct.unpack('>I', data[name_end:name_end + 4])[0]
            start = name_end + 4
            if start + size > len(data):
                raise MetadataReadError(f"Image resource 0x{resource_id:04X} exceeds the segment")

            yield resource_id, data[start:start + size]

            offset = start + size + (size % 2)

    def _parse_records(self, iim: bytes) -> List[Tuple[int, Any]]:
        records = []
        offset = 0
        while offset + 5 <= len(iim):
            if iim[offset] != IIM_TAG_MARKER:
                # Trailing padding
                break
            record, dataset = iim[offset + 1], iim[offset + 2]
            length = struct.unpack('>H', iim[offset + 3:offset + 5])[0]
            offset += 5
            if length & 0x8000:
                # Extended dataset: the low bits give the size of the length field
                size_len = length & 0x7FFF
                if offset + size_len > len(iim):
                    raise MetadataReadError("Truncated extended IIM dataset length")
                length = int.from_bytes(iim[offset:offset + size_len], 'big')
                offset += size_len
            if offset + length > len(iim):
                raise MetadataReadError(f"IIM dataset {record}:{dataset} exceeds the resource")

            data = iim[offset:offset + length]
            tag_id = (record << 8) | dataset
            if dataset == 0 and length == 2:
                value = struct.unpack('>H', data)[0]
            else:
                value = _decode_text(data)
            records.append((tag_id, value))
            offset += length
        return records

    @property
    def records(self) -> List[Tuple[int, Any]]:
        """
        All ``(tag_id, value)`` records in file order.

        Raises:
            MetadataReadError: If the segment is malformed
        """
        if self._records is None:
            records = []
            for resource_id, data in self._resources():
                if resource_id == IPTC_RESOURCE_ID:
                    records.extend(self._parse_records(data))
            self._records = records
        return self._records

    def read_tag_values(self, tag_id: int) -> List[Any]:
        """Every value of a repeatable dataset (e.g. keywords); empty if absent."""
        return [value for record_tag, value in self.records if record_tag == tag_id]

    def read_tag_value(self, tag_id: int) -> Any:
        """
        First value of ``tag_id``.

        Raises:
            TagNotFoundError: If the dataset is absent
        """
        for record_tag, value in self.records:
            if record_tag == tag_id:
                return value
        raise TagNotFoundError(f"IPTC tag 0x{tag_id:04X} not found", tag=tag_id)

    def to_dict(self) -> Dict[str, Any]:
        """Records keyed by dataset name; repeated datasets become lists."""
        metadata: Dict[str, Any] = {}
        for tag_id, value in self.records:
            tag_name = IPTC_TAG_NAMES.get(tag_id, f"Unknown_{tag_id:04X}")
            if tag_name in metadata:
                if isinstance(metadata[tag_name], list):
                    metadata[tag_name].append(value)
                else:
                    metadata[tag_name] = [metadata[tag_name], value]
            else:
                metadata[tag_name] = value
        return metadata
