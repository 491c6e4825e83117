# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Tests for the JpegImage facade, basic information, tag tables and value
formatting.

Copyright 2025 DNAi inc.
"""

import json
import math

import pytest

from imgindex import exif_tags
from imgindex.basic_info import BasicInfo, get_basic_info
from imgindex.core import JpegImage
from imgindex.exceptions import (
    MetadataReadError,
    SegmentNotFoundError,
    TagNotFoundError,
    UnsupportedNamespaceError,
)
from imgindex.exif_parser import ExifSegment
from imgindex.iptc_parser import IPTC_TAG_APPLICATION2_KEYWORDS
from imgindex.jpeg_parser import SOF0_IMAGE_WIDTH
from imgindex.tiff_structure import IfdKind
from imgindex.value_formatter import decode_xp_text, format_exif_value, gps_altitude, gps_decimal, to_json_value

from conftest import ASCII, BYTE, LONG, app1_exif, jpeg, sof0


class TestJpegImage:
    def test_dispatch_by_namespace(self, sample_jpeg):
        image = JpegImage.from_bytes(sample_jpeg)
        assert image.read_tag_value('EXIF', 0x0112) == 1
        assert image.read_tag_value('SOF0', SOF0_IMAGE_WIDTH) == 640
        assert image.read_tag_value('IPTC', IPTC_TAG_APPLICATION2_KEYWORDS) == 'harbour'
        assert image.read_tag_value('XMP', 'dc:title') == 'Sunset over the bay'

    def test_namespace_is_case_insensitive(self, sample_jpeg):
        image = JpegImage.from_bytes(sample_jpeg)
        assert image.read_tag_value('exif', 0x0112) == image.read_tag_value('Exif', 0x0112)

    def test_tag_names(self, sample_jpeg):
        image = JpegImage.from_bytes(sample_jpeg)
        assert image.read_tag_value('EXIF', 'Orientation') == 1
        assert image.read_tag_value('EXIF', 'DateTimeOriginal') == '2020:05:17 18:42:07'
        assert image.read_tag_value('EXIF', '0x0112') == 1
        assert image.read_tag_value('IPTC', 'Caption') == 'Evening at the harbour'
        assert image.read_tag_value('SOF0', 'ImageHeight') == 480

    def test_unknown_tag_name(self, sample_jpeg):
        with pytest.raises(TagNotFoundError):
            JpegImage.from_bytes(sample_jpeg).read_tag_value('EXIF', 'NoSuchTag')

    def test_unsupported_namespace(self, sample_jpeg):
        with pytest.raises(UnsupportedNamespaceError):
            JpegImage.from_bytes(sample_jpeg).read_tag_value('ICC', 1)

    def test_missing_segment(self):
        image = JpegImage.from_bytes(jpeg(sof0(10, 10)))
        assert not image.has_segment('EXIF')
        with pytest.raises(SegmentNotFoundError):
            image.read_tag_value('EXIF', 0x0112)

    def test_decoders_are_reused(self, sample_jpeg):
        image = JpegImage.from_bytes(sample_jpeg)
        assert isinstance(image.exif, ExifSegment)
        assert image.exif is image.exif

    def test_open(self, tmp_path, sample_jpeg):
        path = tmp_path / 'photo.jpg'
        path.write_bytes(sample_jpeg)
        image = JpegImage.open(path)
        assert image.file_path == path
        assert image.read_tag_value('EXIF', 'Make') == 'Canon'

    def test_open_missing_file(self, tmp_path):
        with pytest.raises(MetadataReadError):
            JpegImage.open(tmp_path / 'missing.jpg')

    def test_not_a_jpeg(self):
        with pytest.raises(MetadataReadError):
            JpegImage.from_bytes(b'GIF89a')


class TestBasicInfo:
    def test_full_metadata(self, sample_jpeg):
        info = get_basic_info(JpegImage.from_bytes(sample_jpeg))
        assert info == BasicInfo(
            width=640,
            height=480,
            title='Evening at the harbour',
            description='A quiet harbour',
            keywords=['harbour', 'boats'],
            date_time_original='2020:05:17 18:42:07',
        )

    def test_empty_image(self):
        info = get_basic_info(JpegImage.from_bytes(jpeg()))
        assert info.to_dict() == {
            'width': None,
            'height': None,
            'title': None,
            'description': None,
            'keywords': [],
            'date_time_original': None,
        }

    def test_falls_back_to_exif_dimensions(self, le_builder):
        block = app1_exif(le_builder.build(
            ifd0=[(0x9C9B, BYTE, list('Pier'.encode('utf-16-le')) + [0, 0])],
            exif=[(0xA002, LONG, [320]), (0xA003, LONG, [200])],
        ))
        info = get_basic_info(JpegImage.from_bytes(jpeg(block)))
        assert (info.width, info.height) == (320, 200)
        assert info.title == 'Pier'

    def test_malformed_exif_is_skipped(self, caplog):
        broken = b'\xff\xe1\x00\x10Exif\x00\x00II*\x00\xff\xff\x00\x00'
        image = JpegImage.from_bytes(jpeg(broken, sof0(8, 6)))
        with caplog.at_level('WARNING', logger='imgindex'):
            info = get_basic_info(image)
        assert (info.width, info.height) == (8, 6)
        assert info.date_time_original is None
        assert 'capture time' in caplog.text

    def test_malformed_xp_title_is_skipped(self, le_builder, caplog):
        # a single BYTE decodes to an int, not UTF-16 text
        block = app1_exif(le_builder.build(ifd0=[
            (0x010E, ASCII, 'Pier at dusk'),
            (0x9C9B, BYTE, [0x41]),
        ]))
        with caplog.at_level('WARNING', logger='imgindex'):
            info = get_basic_info(JpegImage.from_bytes(jpeg(block, sof0(4, 3))))
        assert info.title is None
        assert info.description == 'Pier at dusk'
        assert (info.width, info.height) == (4, 3)
        assert 'title' in caplog.text

    def test_keywords_fall_back_to_xp_keywords(self, le_builder):
        block = app1_exif(le_builder.build(ifd0=[
            (0x9C9E, BYTE, list('pier; dusk;'.encode('utf-16-le')) + [0, 0]),
        ]))
        assert get_basic_info(JpegImage.from_bytes(jpeg(block))).keywords == ['pier', 'dusk']


class TestExifTags:
    def test_lookups(self):
        assert exif_tags.tag_id_for('DateTimeOriginal') == 0x9003
        assert exif_tags.tag_id_for('GPSLatitude') == 0x0002
        assert exif_tags.tag_id_for('XPKeywords') == 0x9C9E
        assert exif_tags.tag_id_for('274') == 0x0112
        assert exif_tags.tag_name_for(0x0112) == 'Orientation'
        assert exif_tags.tag_name_for(0xBEEF) == 'Unknown_BEEF'

    def test_lookup_within_ifd(self):
        assert exif_tags.tag_name_for(0x0001, IfdKind.GPS) == 'GPSLatitudeRef'
        assert exif_tags.tag_name_for(0x0001, IfdKind.INTEROP) == 'InteroperabilityIndex'
        assert exif_tags.EXIF_TAG_IFDS['FNumber'] is IfdKind.EXIF

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            exif_tags.tag_id_for('NotATag')

    def test_names_unique_per_partition(self):
        for table in (exif_tags.IFD0_TAGS, exif_tags.EXIF_TAGS, exif_tags.GPS_TAGS, exif_tags.XP_TAGS):
            assert len(set(table.values())) == len(table)


class TestValueFormatter:
    @pytest.mark.parametrize('tag, value, expected', [
        ('Orientation', 6, 'Rotate 90 CW'),
        ('EXIF:Flash', 0x19, 'Flash fired, auto mode'),
        ('MeteringMode', 5, 'Pattern'),
        ('LightSource', 99, 'Unknown (99)'),
        ('ExposureProgram', 3, 'Aperture priority'),
        ('SceneType', b'\x01', 'Directly photographed'),
        ('FileSource', b'\x03', 'DSC'),
        ('ComponentsConfiguration', b'\x01\x02\x03\x00', 'YCbCr'),
        ('ExposureTime', 0.004, '1/250'),
        ('FNumber', 2.8, '2.8'),
        ('FocalLength', 50.0, '50 mm'),
        ('XResolution', 72.0, '72'),
        ('ExifVersion', b'0231', '0231'),
        ('GPSLatitude', [52.0, 30.0, 36.0], '52 deg 30\' 36"'),
        ('GPSVersionID', [2, 3, 0, 0], '2.3.0.0'),
        ('XPTitle', list('Harbour'.encode('utf-16-le')) + [0, 0], 'Harbour'),
        ('Make', 'Canon', 'Canon'),
    ])
    def test_format_exif_value(self, tag, value, expected):
        assert format_exif_value(tag, value) == expected

    def test_json_values_are_serializable(self):
        values = {
            'ExposureTime': math.inf,
            'Brightness': math.nan,
            'ExifVersion': b'0231',
            'MakerNote': b'\x00\x01\xff',
            'FileSource': b'\x03',
            'XPKeywords': list('a;b'.encode('utf-16-le')),
            'UserComment': b'ASCII\x00\x00\x00hello\x00',
            'Values': [1.0, -math.inf],
        }
        rendered = {name: to_json_value(name, value) for name, value in values.items()}
        assert rendered == {
            'ExposureTime': 'inf',
            'Brightness': 'nan',
            'ExifVersion': '0231',
            'MakerNote': [0, 1, 255],
            'FileSource': 3,
            'XPKeywords': 'a;b',
            'UserComment': 'hello',
            'Values': [1.0, '-inf'],
        }
        json.dumps(rendered, allow_nan=False)

    @pytest.mark.parametrize('value, expected', [
        (b'H\x00i\x00', 'Hi'),
        ([0x48, 0, 0x69, 0, 0], 'Hi'),
        ([0x4F60, 0x597D], '你好'),
        (0, ''),
    ])
    def test_xp_text_shapes(self, value, expected):
        assert format_exif_value('XPTitle', value) == expected
        assert to_json_value('XPComment', value) == expected

    @pytest.mark.parametrize('value', [0x41, [0x41], b'abc', 'text', [1.5, 2.0], [70000]])
    def test_undecodable_xp_text(self, value):
        with pytest.raises(MetadataReadError):
            decode_xp_text(value)
        with pytest.raises(MetadataReadError):
            to_json_value('XPTitle', value)
        with pytest.raises(MetadataReadError):
            format_exif_value('XPTitle', value)

    @pytest.mark.parametrize('tag, value, text, raw', [
        ('MakerNote', b'', '', ''),
        ('SceneType', b'', '', ''),
        ('FileSource', b'\x00\x01', '0 1', [0, 1]),
        ('ComponentsConfiguration', b'\x09', '', 9),
        ('Orientation', 'sideways', 'sideways', 'sideways'),
        ('GPSLatitude', [1.0, 2.0], '1 2', [1.0, 2.0]),
    ])
    def test_unexpected_shapes(self, tag, value, text, raw):
        assert format_exif_value(tag, value) == text
        assert to_json_value(tag, value) == raw

    def test_gps_decimal(self):
        assert gps_decimal([52.0, 30.0, 36.0], 'N') == 52.51
        assert gps_decimal([13.0, 24.0, 0.0], 'W') == -13.4
        assert gps_decimal([1.0, 2.0], 'N') is None
        assert gps_decimal([math.inf, 0.0, 0.0], 'N') is None
        assert gps_decimal([52.0, 30.0, 36.0], b'S\x00') == -52.51
        assert gps_decimal(['52', 30.0, 36.0], 'N') is None

    def test_gps_altitude(self):
        assert gps_altitude(34.5, 0) == 34.5
        assert gps_altitude(34.5, 1) == -34.5
        assert gps_altitude(34.5, b'\x01') == -34.5
        assert gps_altitude(math.nan) is None
