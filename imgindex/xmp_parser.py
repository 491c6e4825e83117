# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
XMP (Extensible Metadata Platform) parser

Handles the XMP packet carried by a JPEG APP1 segment whose payload starts
with "http://ns.adobe.com/xap/1.0/\\0". Properties are addressed by their
qualified name as written in the packet, e.g. "dc:title" or
"photoshop:Headline".

Copyright 2025 DNAi inc.
"""

import io
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional

from imgindex.exceptions import MetadataReadError, TagNotFoundError


XMP_IDENTIFIER = b'http://ns.adobe.com/xap/1.0/\x00'

RDF_NS = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'

# Used when a packet does not declare a prefix we need to name a property
DEFAULT_NAMESPACES = {
    'http://ns.adobe.com/xap/1.0/': 'xmp',
    'http://purl.org/dc/elements/1.1/': 'dc',
    'http://ns.adobe.com/photoshop/1.0/': 'photoshop',
    'http://ns.adobe.com/xap/1.0/rights/': 'xmpRights',
    'http://ns.adobe.com/tiff/1.0/': 'tiff',
    'http://ns.adobe.com/exif/1.0/': 'exif',
    'http://ns.adobe.com/xap/1.0/mm/': 'xmpMM',
    'http://iptc.org/std/Iptc4xmpCore/1.0/xmlns/': 'Iptc4xmpCore',
    'http://iptc.org/std/Iptc4xmpExt/2008-02-29/': 'Iptc4xmpExt',
    'http://ns.adobe.com/lightroom/1.0/': 'lr',
}

_XPACKET_RE = re.compile(rb'<\?xpacket[^>]*\?>', re.IGNORECASE)
_CLARK_RE = re.compile(r'^\{([^}]*)\}(.*)$')


class XmpSegment:
    """
    Decoder for one XMP APP1 segment.

    The packet is parsed once, on first access, into a flat dictionary of
    ``prefix:Name`` -> value. Values are strings, lists for rdf:Bag and
    rdf:Seq, the first item for rdf:Alt, and dictionaries for structures.
    """

    def __init__(self, block: bytes):
        """
        Args:
            block: The whole APP1 segment, marker and length included
        """
        self.block = bytes(block)
        self._properties: Optional[Dict[str, Any]] = None

    @property
    def packet(self) -> bytes:
        payload = self.block[4:]
        if not payload.startswith(XMP_IDENTIFIER):
            raise MetadataReadError("APP1 segment does not carry the XMP identifier")
        return payload[len(XMP_IDENTIFIER):]

    @property
    def properties(self) -> Dict[str, Any]:
        """
        Raises:
            MetadataReadError: If the packet is not well-formed XML
        """
        if self._properties is None:
            self._properties = self._parse(self.packet)
        return self._properties

    def _parse(self, packet: bytes) -> Dict[str, Any]:
        xml = _XPACKET_RE.sub(b'', packet).strip(b'\x00 \t\r\n')
        prefixes = dict(DEFAULT_NAMESPACES)
        root = None
        try:
            for event, item in ET.iterparse(io.BytesIO(xml), events=('start-ns', 'end')):
                if event == 'start-ns':
                    prefix, uri = item
                    if prefix:
                        prefixes[uri] = prefix
                else:
                    root = item
        except ET.ParseError as e:
            raise MetadataReadError(f"Failed to parse XMP packet: {e}") from e
        if root is None:
            raise MetadataReadError("Empty XMP packet")

        properties: Dict[str, Any] = {}
        for description in root.iter(f'{{{RDF_NS}}}Description'):
            for name, value in description.attrib.items():
                qname = self._qualified(name, prefixes)
                if qname and not qname.startswith('rdf:'):
                    properties.setdefault(qname, value.strip())
            for child in description:
                qname = self._qualified(child.tag, prefixes)
                if qname:
                    properties.setdefault(qname, self._value(child, prefixes))
        return properties

    @staticmethod
    def _qualified(name: str, prefixes: Dict[str, str]) -> Optional[str]:
        match = _CLARK_RE.match(name)
        if not match:
            return None
        uri, local = match.groups()
        if uri == RDF_NS:
            return f'rdf:{local}'
        prefix = prefixes.get(uri)
        if prefix is None:
            return None
        return f'{prefix}:{local}'

    def _value(self, element: ET.Element, prefixes: Dict[str, str]) -> Any:
        resource = element.get(f'{{{RDF_NS}}}resource')
        if resource is not None:
            return resource

        for container in element:
            if container.tag == f'{{{RDF_NS}}}Alt':
                items = [self._value(li, prefixes) for li in container]
                return items[0] if items else ''
            if container.tag in (f'{{{RDF_NS}}}Bag', f'{{{RDF_NS}}}Seq'):
                return [self._value(li, prefixes) for li in container]

        children = list(element)
        qualifiers = [self._qualified(key, prefixes) for key in element.attrib]
        if children or any(q and not q.startswith('rdf:') for q in qualifiers):
            # Structure: child properties, either as elements or as attributes
            fields = {}
            for node in [element] + [c for c in children if c.tag == f'{{{RDF_NS}}}Description']:
                for name, value in node.attrib.items():
                    qname = self._qualified(name, prefixes)
                    if qname and not qname.startswith('rdf:'):
                        fields[qname] = value.strip()
            for child in children:
                if child.tag == f'{{{RDF_NS}}}Description':
                    for grandchild in child:
                        qname = self._qualified(grandchild.tag, prefixes)
                        if qname:
                            fields[qname] = self._value(grandchild, prefixes)
                    continue
                qname = self._qualified(child.tag, prefixes)
                if qname:
                    fields[qname] = self._value(child, prefixes)
            return fields

        return (element.text or '').strip()

    def read_tag_value(self, tag: str) -> Any:
        """
        Value of the property named ``tag`` ("prefix:Name").

        Raises:
            TagNotFoundError: If the packet has no such property
            MetadataReadError: If the packet is malformed
        """
        try:
            return self.properties[tag]
        except KeyError:
            raise TagNotFoundError(f"XMP property {tag} not found", tag=tag) from None
