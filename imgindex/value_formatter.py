# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Value formatter for converting decoded tag values to index output.

Two renderings are provided: ``to_json_value`` keeps the value raw but
makes it JSON-safe, ``format_exif_value`` turns it into a human-readable
string (enumerated descriptions, fractions, units).

Copyright 2025 DNAi inc.
"""

import math
import struct
from typing import Any, List, Optional

from imgindex.exceptions import MetadataReadError
from imgindex.exif_tags import EXIF_VALUE_DESCRIPTIONS

# Windows XP tags are BYTE arrays holding UTF-16LE text
XP_TAG_NAMES = ('XPTitle', 'XPComment', 'XPAuthor', 'XPKeywords', 'XPSubject')

VERSION_TAG_NAMES = ('ExifVersion', 'FlashpixVersion', 'InteroperabilityVersion')

# UserComment starts with an 8-byte character code
USER_COMMENT_CODES = {
    b'ASCII\x00\x00\x00': 'ascii',
    b'UNICODE\x00': 'utf-16',
    b'JIS\x00\x00\x00\x00\x00': 'shift_jis',
}


def _tag_key(tag_name: str) -> str:
    return tag_name.split(':', 1)[-1] if ':' in tag_name else tag_name


def _json_float(value: float) -> Any:
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return value


def _xp_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        value = [value]
    if isinstance(value, (list, tuple)) and all(isinstance(v, int) and not isinstance(v, bool) for v in value):
        if all(0 <= v <= 0xFF for v in value):
            return bytes(value)
        # SHORT-typed tags hold one UTF-16 code unit per value
        if all(0 <= v <= 0xFFFF for v in value):
            return struct.pack(f'<{len(value)}H', *value)
    raise MetadataReadError(f"Cannot decode Windows XP text from {value!r}")


def decode_xp_text(value: Any) -> str:
    """
    Decode a Windows XP tag as UTF-16LE.

    Raises:
        MetadataReadError: If the value is not bytes, a byte/short value or a
            list of them, or holds an odd number of bytes
    """
    data = _xp_bytes(value)
    if len(data) % 2:
        if data[-1] != 0:
            raise MetadataReadError(f"Windows XP text of odd length {len(data)}")
        data = data[:-1]
    return data.decode('utf-16-le', errors='replace').rstrip('\x00').strip()


def decode_user_comment(data: bytes) -> str:
    code, text = data[:8], data[8:]
    encoding = USER_COMMENT_CODES.get(code)
    if encoding is None:
        encoding = 'latin-1'
        text = data
    return text.decode(encoding, errors='replace').rstrip('\x00').strip()


def _bytes_value(tag_key: str, value: bytes) -> Any:
    if tag_key in VERSION_TAG_NAMES:
        return value.decode('ascii', errors='replace').strip('\x00')
    if tag_key == 'UserComment':
        return decode_user_comment(value)
    if len(value) == 1:
        return value[0]
    try:
        text = value.decode('ascii')
    except UnicodeDecodeError:
        return list(value)
    if text.isprintable():
        return text
    return list(value)


def to_json_value(tag_name: str, value: Any) -> Any:
    """
    Make a decoded value serializable with ``json.dumps``.

    bytes become text when they hold a version, a user comment or printable
    ASCII, else a list of ints; inf and nan become "inf", "-inf" and "nan";
    Windows XP tags are decoded to text.
    """
    tag_key = _tag_key(tag_name)
    if tag_key in XP_TAG_NAMES:
        return decode_xp_text(value)
    if isinstance(value, bytes):
        return _bytes_value(tag_key, value)
    if isinstance(value, float):
        return _json_float(value)
    if isinstance(value, (list, tuple)):
        return [to_json_value(tag_name, v) for v in value]
    if isinstance(value, dict):
        return {k: to_json_value(k, v) for k, v in value.items()}
    return value


def _number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_exif_value(tag_name: str, value: Any) -> str:
    """
    Format an EXIF tag value to a human-readable string.

    Args:
        tag_name: Tag name, optionally with a group prefix ("EXIF:Flash")
        value: Decoded value

    Returns:
        Formatted string value
    """
    if value is None:
        return ""

    tag_key = _tag_key(tag_name)

    if tag_key in XP_TAG_NAMES:
        return decode_xp_text(value)

    if tag_key == 'ComponentsConfiguration':
        components = EXIF_VALUE_DESCRIPTIONS['ComponentsConfiguration']
        codes = list(value) if isinstance(value, (bytes, list, tuple)) else [value]
        return ''.join(components.get(code, '') for code in codes)

    descriptions = EXIF_VALUE_DESCRIPTIONS.get(tag_key)
    if descriptions is not None:
        code = value
        if isinstance(value, bytes) and len(value) == 1:
            code = value[0]
        if isinstance(code, int):
            return descriptions.get(code, f"Unknown ({code})")

    if isinstance(value, bytes):
        rendered = _bytes_value(tag_key, value)
        if isinstance(rendered, list):
            return ' '.join(str(v) for v in rendered)
        return str(rendered)

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return str(value)
        if tag_key == 'ExposureTime' and 0 < value < 1:
            closest_den = round(1.0 / value)
            if abs(value - 1.0 / closest_den) < 0.001:
                return f"1/{closest_den}"
        if tag_key == 'FNumber':
            return f"{value:.1f}"
        if tag_key in ('FocalLength', 'GPSAltitude'):
            unit = 'mm' if tag_key == 'FocalLength' else 'm'
            return f"{_number(value)} {unit}"
        return _number(value)

    if isinstance(value, (list, tuple)):
        if tag_key in ('GPSLatitude', 'GPSLongitude', 'GPSDestLatitude', 'GPSDestLongitude') and len(value) == 3:
            degrees, minutes, seconds = value
            return f"{_number(degrees)} deg {_number(minutes)}' {_number(seconds)}\""
        if tag_key == 'GPSVersionID':
            return '.'.join(str(v) for v in value)
        return ' '.join(format_exif_value(tag_name, v) if isinstance(v, float) else str(v) for v in value)

    return str(value)


def gps_decimal(dms: Any, ref: Optional[str]) -> Optional[float]:
    """
    Convert degrees/minutes/seconds to signed decimal degrees.

    Args:
        dms: GPSLatitude or GPSLongitude value (three rationals)
        ref: Matching reference ('N', 'S', 'E' or 'W'); S and W are negative

    Returns:
        Decimal degrees, or None if the value is not a finite triple
    """
    if not isinstance(dms, (list, tuple)) or len(dms) != 3:
        return None
    if not all(isinstance(v, (int, float)) for v in dms):
        return None
    parts: List[float] = [float(v) for v in dms]
    if not all(math.isfinite(v) for v in parts):
        return None
    degrees = parts[0] + parts[1] / 60.0 + parts[2] / 3600.0
    if isinstance(ref, bytes):
        ref = ref.decode('latin-1')
    if isinstance(ref, str) and ref.strip('\x00 ').upper() in ('S', 'W'):
        degrees = -degrees
    return round(degrees, 7)


def gps_altitude(altitude: Any, ref: Any = 0) -> Optional[float]:
    """Altitude in metres; reference 1 means below sea level."""
    if not isinstance(altitude, (int, float)) or not math.isfinite(altitude):
        return None
    if isinstance(ref, bytes):
        ref = ref[0] if ref else 0
    if ref == 1:
        return -float(altitude)
    return float(altitude)
