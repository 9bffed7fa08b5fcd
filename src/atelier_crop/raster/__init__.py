"""
Raster Module
=============

Decoding and pixel-surface primitives.

    - decode_source: bytes / data URL / base64 -> SourceImage
    - RasterBuffer: scoped canvas-like surface (draw, get, put, encode)
"""

from atelier_crop.raster.decoder import (
    DecodeError,
    decode_source,
    parse_data_url,
    sniff_media_type,
)
from atelier_crop.raster.buffer import MEDIA_TYPES, RasterBuffer, RasterReleasedError


__all__ = [
    "DecodeError",
    "decode_source",
    "parse_data_url",
    "sniff_media_type",
    "MEDIA_TYPES",
    "RasterBuffer",
    "RasterReleasedError",
]
