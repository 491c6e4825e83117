# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Shared fixtures: in-memory builders for Exif APP1 blocks, IPTC APP13
segments, XMP segments and complete JPEG files.

Copyright 2025 DNAi inc.
"""

import struct

import pytest


BYTE, ASCII, SHORT, LONG, RATIONAL, SBYTE, UNDEFINED, SSHORT, SLONG, SRATIONAL, FLOAT, DOUBLE = range(1, 13)

_FORMATS = {BYTE: 'B', SHORT: 'H', LONG: 'I', SBYTE: 'b', SSHORT: 'h', SLONG: 'i', FLOAT: 'f', DOUBLE: 'd'}


class Raw:
    """An entry written exactly as given (type, count and 4-byte slot)."""

    def __init__(self, tag, type_id, count, slot=b'\x00\x00\x00\x00', extra=b''):
        self.tag = tag
        self.type_id = type_id
        self.count = count
        self.slot = slot
        # Appended to the IFD data area; a slot of None points at it
        self.extra = extra


class TiffBuilder:
    """
    Lay out a TIFF body: header, IFD0, then the optional Exif, GPS, Interop
    and IFD1 directories, each followed by its own data area.

    Entries are ``(tag, type_id, values)``: values is a list of numbers, a
    list of (numerator, denominator) pairs for rationals, a str for ASCII
    or bytes for UNDEFINED. Out-of-line offsets are written relative to the
    owning IFD. Pointer entries are added automatically.
    """

    def __init__(self, byte_order='<'):
        self.e = byte_order

    def pack(self, type_id, values):
        if type_id == ASCII:
            data = values.encode('utf-8') + b'\x00' if isinstance(values, str) else bytes(values)
            return len(data), data
        if type_id == UNDEFINED:
            data = bytes(values)
            return len(data), data
        if type_id in (RATIONAL, SRATIONAL):
            fmt = 'I' if type_id == RATIONAL else 'i'
            flat = [n for pair in values for n in pair]
            return len(values), struct.pack(f'{self.e}{len(flat)}{fmt}', *flat)
        fmt = _FORMATS[type_id]
        return len(values), struct.pack(f'{self.e}{len(values)}{fmt}', *values)

    def _ifd_size(self, entries):
        size = 2 + 12 * len(entries) + 4
        for entry in entries:
            if isinstance(entry, Raw):
                size += len(entry.extra)
                continue
            _, data = self.pack(entry[1], entry[2])
            if len(data) > 4:
                size += len(data) + (len(data) % 2)
        return size

    def _write_ifd(self, position, entries, next_offset, pointers):
        """Serialize one IFD located at ``position`` (relative to the TIFF header)."""
        head = struct.pack(f'{self.e}H', len(entries))
        data_area = b''
        data_start = 2 + 12 * len(entries) + 4
        for entry in entries:
            if isinstance(entry, Raw):
                slot = entry.slot
                if slot is None:
                    slot = struct.pack(f'{self.e}I', data_start + len(data_area))
                data_area += entry.extra
                head += struct.pack(f'{self.e}HHI', entry.tag, entry.type_id, entry.count) + slot
                continue
            tag, type_id, values = entry
            if tag in pointers:
                values = [pointers[tag]]
            count, data = self.pack(type_id, values)
            if len(data) <= 4:
                slot = data.ljust(4, b'\x00')
            else:
                slot = struct.pack(f'{self.e}I', data_start + len(data_area))
                data_area += data + b'\x00' * (len(data) % 2)
            head += struct.pack(f'{self.e}HHI', tag, type_id, count) + slot
        return head + struct.pack(f'{self.e}I', next_offset) + data_area

    def build(self, ifd0, exif=None, gps=None, interop=None, ifd1=None):
        ifd0 = list(ifd0)
        exif = list(exif) if exif is not None else None
        if exif is not None and interop is not None:
            exif.append((0xA005, LONG, [0]))
        if exif is not None:
            ifd0.append((0x8769, LONG, [0]))
        if gps is not None:
            ifd0.append((0x8825, LONG, [0]))

        layout = [('ifd0', ifd0), ('exif', exif), ('gps', gps), ('interop', interop), ('ifd1', ifd1)]
        positions = {}
        position = 8
        for name, entries in layout:
            if entries is None:
                continue
            positions[name] = position
            position += self._ifd_size(entries)

        pointers = {0x8769: positions.get('exif'), 0x8825: positions.get('gps'), 0xA005: positions.get('interop')}
        body = (b'II' if self.e == '<' else b'MM') + struct.pack(f'{self.e}HI', 42, 8)
        for name, entries in layout:
            if entries is None:
                continue
            next_offset = positions.get('ifd1', 0) if name == 'ifd0' else 0
            body += self._write_ifd(positions[name], entries, next_offset, pointers)
        return body


def app1_exif(tiff_body):
    """Wrap a TIFF body into an APP1 block (marker, length, Exif identifier)."""
    return b'\xff\xe1' + struct.pack('>H', len(tiff_body) + 8) + b'Exif\x00\x00' + tiff_body


def app13_iptc(records):
    """APP13 segment with one IPTC resource; records are (record, dataset, text)."""
    iim = b''
    for record, dataset, value in records:
        data = value.encode('utf-8') if isinstance(value, str) else value
        iim += b'\x1c' + bytes([record, dataset]) + struct.pack('>H', len(data)) + data
    resource = b'8BIM' + struct.pack('>H', 0x0404) + b'\x00\x00' + struct.pack('>I', len(iim)) + iim
    if len(iim) % 2:
        resource += b'\x00'
    payload = b'Photoshop 3.0\x00' + resource
    return b'\xff\xed' + struct.pack('>H', len(payload) + 2) + payload


def app1_xmp(xml):
    payload = b'http://ns.adobe.com/xap/1.0/\x00' + xml.encode('utf-8')
    return b'\xff\xe1' + struct.pack('>H', len(payload) + 2) + payload


def sof0(width, height, components=3, marker=0xC0):
    payload = bytes([8]) + struct.pack('>HH', height, width) + bytes([components])
    for index in range(components):
        payload += bytes([index + 1, 0x11, 0])
    return bytes([0xFF, marker]) + struct.pack('>H', len(payload) + 2) + payload


def jpeg(*segments):
    """A JPEG file: SOI, the given segments, a minimal scan, EOI."""
    sos = b'\xff\xda' + struct.pack('>H', 12) + bytes([3, 1, 0, 2, 0x11, 3, 0x11, 0, 63, 0])
    return b'\xff\xd8' + b''.join(segments) + sos + b'\x12\x34\x56\x78' + b'\xff\xd9'


XMP_PACKET = """<?xpacket begin="﻿" id="W5M0MpCehiHzreSzNTczkc9d"?>
<x:xmpmeta xmlns:x="adobe:ns:meta/">
 <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
  <rdf:Description rdf:about=""
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmlns:xmp="http://ns.adobe.com/xap/1.0/"
    xmlns:photoshop="http://ns.adobe.com/photoshop/1.0/"
    xmp:Rating="4"
    photoshop:City="Berlin">
   <dc:title>
    <rdf:Alt>
     <rdf:li xml:lang="x-default">Sunset over the bay</rdf:li>
     <rdf:li xml:lang="de">Sonnenuntergang</rdf:li>
    </rdf:Alt>
   </dc:title>
   <dc:subject>
    <rdf:Bag>
     <rdf:li>sunset</rdf:li>
     <rdf:li>sea</rdf:li>
    </rdf:Bag>
   </dc:subject>
   <dc:creator>
    <rdf:Seq>
     <rdf:li>Jane Doe</rdf:li>
    </rdf:Seq>
   </dc:creator>
   <xmp:CreatorTool>imgindex tests</xmp:CreatorTool>
  </rdf:Description>
 </rdf:RDF>
</x:xmpmeta>
<?xpacket end="w"?>"""


@pytest.fixture(params=['<', '>'], ids=['little-endian', 'big-endian'])
def builder(request):
    return TiffBuilder(request.param)


@pytest.fixture
def le_builder():
    return TiffBuilder('<')


@pytest.fixture
def sample_exif_block():
    """A realistic little-endian Exif block with IFD0, Exif, GPS, Interop and IFD1."""
    body = TiffBuilder('<').build(
        ifd0=[
            (0x010E, ASCII, 'A quiet harbour'),
            (0x010F, ASCII, 'Canon'),
            (0x0110, ASCII, 'Canon EOS 5D'),
            (0x0112, SHORT, [1]),
            (0x011A, RATIONAL, [(72, 1)]),
            (0x0128, SHORT, [2]),
            (0x9C9B, BYTE, list('Harbour'.encode('utf-16-le')) + [0, 0]),
        ],
        exif=[
            (0x829A, RATIONAL, [(1, 250)]),
            (0x829D, RATIONAL, [(28, 10)]),
            (0x9000, UNDEFINED, b'0231'),
            (0x9003, ASCII, '2020:05:17 18:42:07'),
            (0x9209, SHORT, [0x19]),
            (0x920A, RATIONAL, [(50, 1)]),
            (0xA002, LONG, [640]),
            (0xA003, LONG, [480]),
        ],
        gps=[
            (0x0000, BYTE, [2, 3, 0, 0]),
            (0x0001, ASCII, 'N'),
            (0x0002, RATIONAL, [(52, 1), (30, 1), (36, 1)]),
            (0x0003, ASCII, 'W'),
            (0x0004, RATIONAL, [(13, 1), (24, 1), (0, 1)]),
            (0x0005, BYTE, [0]),
            (0x0006, RATIONAL, [(345, 10)]),
        ],
        interop=[
            (0x0001, ASCII, 'R98'),
        ],
        ifd1=[
            (0x0103, SHORT, [6]),
            (0x0201, LONG, [0]),
        ],
    )
    return app1_exif(body)


@pytest.fixture
def sample_jpeg(sample_exif_block):
    return jpeg(
        b'\xff\xe0' + struct.pack('>H', 16) + b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00',
        sample_exif_block,
        app13_iptc([
            (2, 0, b'\x00\x04'),
            (2, 25, 'harbour'),
            (2, 25, 'boats'),
            (2, 120, 'Evening at the harbour'),
        ]),
        app1_xmp(XMP_PACKET),
        sof0(640, 480),
    )


@pytest.fixture
def photo_tree(tmp_path, sample_jpeg):
    """
    photos/
        b.jpg           full metadata
        a.JPEG          frame header only
        broken.jpg      not a JPEG
        notes.txt
        .hidden.jpg
        sub/c.jpg
        .cache/d.jpg
    """
    root = tmp_path / 'photos'
    (root / 'sub').mkdir(parents=True)
    (root / '.cache').mkdir()
    (root / 'b.jpg').write_bytes(sample_jpeg)
    (root / 'a.JPEG').write_bytes(jpeg(sof0(100, 50)))
    (root / 'broken.jpg').write_bytes(b'definitely not a jpeg')
    (root / 'notes.txt').write_text('not an image')
    (root / '.hidden.jpg').write_bytes(sample_jpeg)
    (root / 'sub' / 'c.jpg').write_bytes(jpeg(sof0(10, 20)))
    (root / '.cache' / 'd.jpg').write_bytes(sample_jpeg)
    return root
