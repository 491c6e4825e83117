# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF tag definitions

Tag ids and names partitioned by the IFD they belong to (IFD0, Exif
sub-IFD, GPS sub-IFD, Windows XP extension tags stored in IFD0), together
with the descriptions of enumerated tag values.

Tag ids are only unique within one IFD: GPS ids start at 0x0000 and clash
with the Interoperability IFD ids, so lookups by name go through the
partitioned tables.

Copyright 2025 DNAi inc.
"""

from typing import Dict, Optional

from imgindex.tiff_structure import (
    EXIF_IFD_POINTER,
    GPS_IFD_POINTER,
    INTEROP_IFD_POINTER,
    IfdKind,
)


# ============================================================
# IFD0 (primary image) tags
# ============================================================
IFD0_TAGS = {
    0x0100: "ImageWidth",
    0x0101: "ImageLength",
    0x0102: "BitsPerSample",
    0x0103: "Compression",
    0x0106: "PhotometricInterpretation",
    0x010E: "ImageDescription",
    0x010F: "Make",
    0x0110: "Model",
    0x0111: "StripOffsets",
    0x0112: "Orientation",
    0x0115: "SamplesPerPixel",
    0x0116: "RowsPerStrip",
    0x0117: "StripByteCounts",
    0x011A: "XResolution",
    0x011B: "YResolution",
    0x011C: "PlanarConfiguration",
    0x0128: "ResolutionUnit",
    0x012D: "TransferFunction",
    0x0131: "Software",
    0x0132: "DateTime",
    0x013B: "Artist",
    0x013E: "WhitePoint",
    0x013F: "PrimaryChromaticities",
    0x0201: "JPEGInterchangeFormat",
    0x0202: "JPEGInterchangeFormatLength",
    0x0211: "YCbCrCoefficients",
    0x0212: "YCbCrSubSampling",
    0x0213: "YCbCrPositioning",
    0x0214: "ReferenceBlackWhite",
    0x8298: "Copyright",
    EXIF_IFD_POINTER: "ExifIFDPointer",
    GPS_IFD_POINTER: "GPSInfoIFDPointer",
}

# ============================================================
# Exif sub-IFD tags
# ============================================================
EXIF_TAGS = {
    0x829A: "ExposureTime",
    0x829D: "FNumber",
    0x8822: "ExposureProgram",
    0x8824: "SpectralSensitivity",
    0x8827: "PhotographicSensitivity",
    0x8828: "OECF",
    0x8830: "SensitivityType",
    0x8831: "StandardOutputSensitivity",
    0x8832: "RecommendedExposureIndex",
    0x8833: "ISOSpeed",
    0x8834: "ISOSpeedLatitudeyyy",
    0x8835: "ISOSpeedLatitudezzz",
    0x9000: "ExifVersion",
    0x9003: "DateTimeOriginal",
    0x9004: "DateTimeDigitized",
    0x9101: "ComponentsConfiguration",
    0x9102: "CompressedBitsPerPixel",
    0x9201: "ShutterSpeedValue",
    0x9202: "ApertureValue",
    0x9203: "BrightnessValue",
    0x9204: "ExposureBiasValue",
    0x9205: "MaxApertureValue",
    0x9206: "SubjectDistance",
    0x9207: "MeteringMode",
    0x9208: "LightSource",
    0x9209: "Flash",
    0x920A: "FocalLength",
    0x9214: "SubjectArea",
    0x927C: "MakerNote",
    0x9286: "UserComment",
    0x9290: "SubsecTime",
    0x9291: "SubsecTimeOriginal",
    0x9292: "SubsecTimeDigitized",
    0xA000: "FlashpixVersion",
    0xA001: "ColorSpace",
    0xA002: "PixelXDimension",
    0xA003: "PixelYDimension",
    0xA004: "RelatedSoundFile",
    0xA20B: "FlashEnergy",
    0xA20C: "SpatialFrequencyResponse",
    0xA20E: "FocalPlaneXResolution",
    0xA20F: "FocalPlaneYResolution",
    0xA210: "FocalPlaneResolutionUnit",
    0xA214: "SubjectLocation",
    0xA215: "ExposureIndex",
    0xA217: "SensingMethod",
    0xA300: "FileSource",
    0xA301: "SceneType",
    0xA302: "CFAPattern",
    0xA401: "CustomRendered",
    0xA402: "ExposureMode",
    0xA403: "WhiteBalance",
    0xA404: "DigitalZoomRatio",
    0xA405: "FocalLengthIn35mmFilm",
    0xA406: "SceneCaptureType",
    0xA407: "GainControl",
    0xA408: "Contrast",
    0xA409: "Saturation",
    0xA40A: "Sharpness",
    0xA40B: "DeviceSettingDescription",
    0xA40C: "SubjectDistanceRange",
    0xA420: "ImageUniqueID",
    0xA430: "CameraOwnerName",
    0xA431: "BodySerialNumber",
    0xA432: "LensSpecification",
    0xA433: "LensMake",
    0xA434: "LensModel",
    0xA435: "LensSerialNumber",
    INTEROP_IFD_POINTER: "InteropIFDPointer",
}

# ============================================================
# GPS sub-IFD tags
# ============================================================
GPS_TAGS = {
    0x0000: "GPSVersionID",
    0x0001: "GPSLatitudeRef",
    0x0002: "GPSLatitude",
    0x0003: "GPSLongitudeRef",
    0x0004: "GPSLongitude",
    0x0005: "GPSAltitudeRef",
    0x0006: "GPSAltitude",
    0x0007: "GPSTimestamp",
    0x0008: "GPSSatellites",
    0x0009: "GPSStatus",
    0x000A: "GPSMeasureMode",
    0x000B: "GPSDOP",
    0x000C: "GPSSpeedRef",
    0x000D: "GPSSpeed",
    0x000E: "GPSTrackRef",
    0x000F: "GPSTrack",
    0x0010: "GPSImgDirectionRef",
    0x0011: "GPSImgDirection",
    0x0012: "GPSMapDatum",
    0x0013: "GPSDestLatitudeRef",
    0x0014: "GPSDestLatitude",
    0x0015: "GPSDestLongitudeRef",
    0x0016: "GPSDestLongitude",
    0x0017: "GPSDestBearingRef",
    0x0018: "GPSDestBearing",
    0x0019: "GPSDestDistanceRef",
    0x001A: "GPSDestDistance",
    0x001B: "GPSProcessingMethod",
    0x001C: "GPSAreaInformation",
    0x001D: "GPSDateStamp",
    0x001E: "GPSDifferential",
    0x001F: "GPSHPositioningError",
}

# ============================================================
# Interoperability sub-IFD tags
# ============================================================
INTEROP_TAGS = {
    0x0001: "InteroperabilityIndex",
    0x0002: "InteroperabilityVersion",
}

# ============================================================
# Microsoft Windows tags (stored in IFD0, BYTE arrays of UTF-16LE text)
# ============================================================
XP_TAGS = {
    0x9C9B: "XPTitle",
    0x9C9C: "XPComment",
    0x9C9D: "XPAuthor",
    0x9C9E: "XPKeywords",
    0x9C9F: "XPSubject",
}

TAGS_BY_IFD: Dict[IfdKind, Dict[int, str]] = {
    IfdKind.IFD0: {**IFD0_TAGS, **XP_TAGS},
    IfdKind.EXIF: EXIF_TAGS,
    IfdKind.GPS: GPS_TAGS,
    IfdKind.INTEROP: INTEROP_TAGS,
    IfdKind.IFD1: IFD0_TAGS,
}

# Name -> id and name -> IFD. Interop ids clash with GPS ids, so Interop
# names are only reachable through TAGS_BY_IFD.
EXIF_TAG_IDS: Dict[str, int] = {}
EXIF_TAG_IFDS: Dict[str, IfdKind] = {}
for _kind, _table in ((IfdKind.IFD0, IFD0_TAGS), (IfdKind.IFD0, XP_TAGS),
                      (IfdKind.EXIF, EXIF_TAGS), (IfdKind.GPS, GPS_TAGS)):
    for _tag_id, _name in _table.items():
        EXIF_TAG_IDS[_name] = _tag_id
        EXIF_TAG_IFDS[_name] = _kind
del _kind, _table, _tag_id, _name

# Frequently used ids
IMAGE_DESCRIPTION = EXIF_TAG_IDS["ImageDescription"]
ORIENTATION = EXIF_TAG_IDS["Orientation"]
DATE_TIME_ORIGINAL = EXIF_TAG_IDS["DateTimeOriginal"]
PIXEL_X_DIMENSION = EXIF_TAG_IDS["PixelXDimension"]
PIXEL_Y_DIMENSION = EXIF_TAG_IDS["PixelYDimension"]
GPS_LATITUDE_REF = EXIF_TAG_IDS["GPSLatitudeRef"]
GPS_LATITUDE = EXIF_TAG_IDS["GPSLatitude"]
GPS_LONGITUDE_REF = EXIF_TAG_IDS["GPSLongitudeRef"]
GPS_LONGITUDE = EXIF_TAG_IDS["GPSLongitude"]
GPS_ALTITUDE_REF = EXIF_TAG_IDS["GPSAltitudeRef"]
GPS_ALTITUDE = EXIF_TAG_IDS["GPSAltitude"]
XP_TITLE = EXIF_TAG_IDS["XPTitle"]
XP_KEYWORDS = EXIF_TAG_IDS["XPKeywords"]


def tag_id_for(name: str) -> int:
    """
    Resolve a tag name (e.g. "DateTimeOriginal") or a numeric string
    (e.g. "0x9003", "36867") to a tag id.

    Raises:
        KeyError: If the name is unknown
    """
    if name in EXIF_TAG_IDS:
        return EXIF_TAG_IDS[name]
    try:
        return int(name, 0)
    except ValueError:
        raise KeyError(f"Unknown EXIF tag name: {name}") from None


def tag_name_for(tag_id: int, kind: Optional[IfdKind] = None) -> str:
    """Name of ``tag_id`` (within ``kind`` when given), or "Unknown_XXXX"."""
    if kind is not None:
        name = TAGS_BY_IFD[kind].get(tag_id)
    else:
        name = (IFD0_TAGS.get(tag_id) or XP_TAGS.get(tag_id)
                or EXIF_TAGS.get(tag_id) or GPS_TAGS.get(tag_id))
    return name or f"Unknown_{tag_id:04X}"


# ============================================================
# Descriptions of enumerated values
# ============================================================
EXIF_VALUE_DESCRIPTIONS: Dict[str, Dict[int, str]] = {
    "Orientation": {
        1: "Horizontal (normal)",
        2: "Mirror horizontal",
        3: "Rotate 180",
        4: "Mirror vertical",
        5: "Mirror horizontal and rotate 270 CW",
        6: "Rotate 90 CW",
        7: "Mirror horizontal and rotate 90 CW",
        8: "Rotate 270 CW",
    },
    "ResolutionUnit": {
        1: "None",
        2: "inches",
        3: "cm",
    },
    "ColorSpace": {
        1: "sRGB",
        65535: "Uncalibrated",
    },
    "ExposureProgram": {
        0: "Not defined",
        1: "Manual",
        2: "Normal program",
        3: "Aperture priority",
        4: "Shutter priority",
        5: "Creative program",
        6: "Action program",
        7: "Portrait mode",
        8: "Landscape mode",
    },
    "MeteringMode": {
        0: "Unknown",
        1: "Average",
        2: "CenterWeightedAverage",
        3: "Spot",
        4: "MultiSpot",
        5: "Pattern",
        6: "Partial",
        255: "Other",
    },
    "LightSource": {
        0: "Unknown",
        1: "Daylight",
        2: "Fluorescent",
        3: "Tungsten (incandescent light)",
        4: "Flash",
        9: "Fine weather",
        10: "Cloudy weather",
        11: "Shade",
        12: "Daylight fluorescent (D 5700 - 7100K)",
        13: "Day white fluorescent (N 4600 - 5400K)",
        14: "Cool white fluorescent (W 3900 - 4500K)",
        15: "White fluorescent (WW 3200 - 3700K)",
        17: "Standard light A",
        18: "Standard light B",
        19: "Standard light C",
        20: "D55",
        21: "D65",
        22: "D75",
        23: "D50",
        24: "ISO studio tungsten",
        255: "Other",
    },
    "Flash": {
        0x0000: "Flash did not fire",
        0x0001: "Flash fired",
        0x0005: "Strobe return light not detected",
        0x0007: "Strobe return light detected",
        0x0009: "Flash fired, compulsory flash mode",
        0x000D: "Flash fired, compulsory flash mode, return light not detected",
        0x000F: "Flash fired, compulsory flash mode, return light detected",
        0x0010: "Flash did not fire, compulsory flash mode",
        0x0018: "Flash did not fire, auto mode",
        0x0019: "Flash fired, auto mode",
        0x001D: "Flash fired, auto mode, return light not detected",
        0x001F: "Flash fired, auto mode, return light detected",
        0x0020: "No flash function",
        0x0041: "Flash fired, red-eye reduction mode",
        0x0045: "Flash fired, red-eye reduction mode, return light not detected",
        0x0047: "Flash fired, red-eye reduction mode, return light detected",
        0x0049: "Flash fired, compulsory flash mode, red-eye reduction mode",
        0x004D: "Flash fired, compulsory flash mode, red-eye reduction mode, return light not detected",
        0x004F: "Flash fired, compulsory flash mode, red-eye reduction mode, return light detected",
        0x0059: "Flash fired, auto mode, red-eye reduction mode",
        0x005D: "Flash fired, auto mode, return light not detected, red-eye reduction mode",
        0x005F: "Flash fired, auto mode, return light detected, red-eye reduction mode",
    },
    "SensingMethod": {
        1: "Not defined",
        2: "One-chip color area sensor",
        3: "Two-chip color area sensor",
        4: "Three-chip color area sensor",
        5: "Color sequential area sensor",
        7: "Trilinear sensor",
        8: "Color sequential linear sensor",
    },
    "SceneCaptureType": {
        0: "Standard",
        1: "Landscape",
        2: "Portrait",
        3: "Night scene",
    },
    "SceneType": {
        1: "Directly photographed",
    },
    "CustomRendered": {
        0: "Normal process",
        1: "Custom process",
    },
    "WhiteBalance": {
        0: "Auto white balance",
        1: "Manual white balance",
    },
    "GainControl": {
        0: "None",
        1: "Low gain up",
        2: "High gain up",
        3: "Low gain down",
        4: "High gain down",
    },
    "Contrast": {
        0: "Normal",
        1: "Soft",
        2: "Hard",
    },
    "Saturation": {
        0: "Normal",
        1: "Low saturation",
        2: "High saturation",
    },
    "Sharpness": {
        0: "Normal",
        1: "Soft",
        2: "Hard",
    },
    "SubjectDistanceRange": {
        0: "Unknown",
        1: "Macro",
        2: "Close view",
        3: "Distant view",
    },
    "FileSource": {
        3: "DSC",
    },
    "ComponentsConfiguration": {
        0: "",
        1: "Y",
        2: "Cb",
        3: "Cr",
        4: "R",
        5: "G",
        6: "B",
    },
}
