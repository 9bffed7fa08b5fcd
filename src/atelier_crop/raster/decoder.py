"""
Source Decoder
==============

Dedicated module for decoding user-selected images into BGRA matrices.

Accepted inputs:
    - Raw encoded bytes (bytes, bytearray, memoryview)
    - Data URLs, e.g. "data:image/png;base64,iVBORw0..."
    - Bare base64 strings

Design Rules:
    - This is the ONLY place in the codebase that decodes images
    - Always returns 8-bit BGRA so downstream code handles one layout
    - JPEG EXIF orientation is applied, so width/height match what the
      crop editor displayed
    - Fails fast with DecodeError; the underlying cause is chained
"""

import base64
import binascii
import logging
from typing import Optional, Tuple, Union
from urllib.parse import unquote_to_bytes

import cv2
import numpy as np

from atelier_crop.errors import CropError
from atelier_crop.models.image import SourceImage


logger = logging.getLogger(__name__)


RawSource = Union[bytes, bytearray, memoryview, str]

_SIGNATURES = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)


class DecodeError(CropError):
    """Raised when source bytes cannot be decoded as an image."""
    pass


def parse_data_url(url: str) -> Tuple[str, bytes]:
    """
    Split a data URL into its media type and payload.

    Args:
        url: String of the form "data:[<mediatype>][;base64],<data>"

    Returns:
        Tuple of (media_type, payload bytes)

    Raises:
        DecodeError: If the URL is malformed or its base64 payload is invalid
    """
    if not url.startswith("data:"):
        raise DecodeError("Not a data URL")

    header, sep, payload = url[5:].partition(",")
    if not sep:
        raise DecodeError("Malformed data URL: missing ',' separator")

    params = header.split(";")
    is_base64 = params[-1].strip().lower() == "base64"
    if is_base64:
        params = params[:-1]
    media_type = params[0].strip() or "application/octet-stream"

    if is_base64:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Base64 decode failed for data URL: {e}") from e
    else:
        data = unquote_to_bytes(payload)

    return media_type, data


def sniff_media_type(data: bytes) -> str:
    """Guess the MIME type of encoded image bytes from their signature."""
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    for signature, media_type in _SIGNATURES:
        if data.startswith(signature):
            return media_type
    return "application/octet-stream"


def decode_source(
    data: RawSource,
    max_bytes: Optional[int] = None,
) -> SourceImage:
    """
    Decode a user-selected image into a SourceImage.

    Args:
        data: Encoded bytes, data URL, or base64 string
        max_bytes: Reject encoded payloads larger than this (None = no limit)

    Returns:
        SourceImage with BGRA pixels

    Raises:
        DecodeError: If the input is empty, too large, or not a decodable image
    """
    media_type: Optional[str] = None

    if isinstance(data, str):
        if data.startswith("data:"):
            media_type, raw = parse_data_url(data)
        else:
            try:
                raw = base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise DecodeError(f"Base64 decode failed: {e}") from e
    elif isinstance(data, (bytes, bytearray, memoryview)):
        raw = bytes(data)
    else:
        raise DecodeError(f"Unsupported source type: {type(data).__name__}")

    if not raw:
        raise DecodeError("Source is empty")

    if max_bytes is not None and len(raw) > max_bytes:
        raise DecodeError(
            f"Source is {len(raw)} bytes, larger than the {max_bytes} byte limit"
        )

    if media_type is None or not media_type.startswith("image/"):
        media_type = sniff_media_type(raw)

    # JPEG carries no alpha; IMREAD_COLOR applies its EXIF orientation the
    # way a browser <img> does. Other formats keep their alpha channel.
    if sniff_media_type(raw) == "image/jpeg":
        flags = cv2.IMREAD_COLOR
    else:
        flags = cv2.IMREAD_UNCHANGED

    try:
        nparr = np.frombuffer(raw, np.uint8)
        decoded = cv2.imdecode(nparr, flags)
    except cv2.error as e:
        raise DecodeError(f"Image decode failed: {e}") from e

    if decoded is None:
        raise DecodeError("Failed to decode source: cv2.imdecode returned None")

    pixels = _to_bgra8(decoded)

    logger.debug(
        f"Decoded source: {pixels.shape[1]}x{pixels.shape[0]}, "
        f"{media_type}, {len(raw)} bytes"
    )

    return SourceImage(pixels=pixels, media_type=media_type)


def _to_bgra8(image: np.ndarray) -> np.ndarray:
    """Normalise a decoded image to contiguous 8-bit BGRA."""
    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    elif image.dtype in (np.float32, np.float64):
        image = np.clip(image * 255.0, 0, 255).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise DecodeError(f"Unsupported pixel dtype: {image.dtype}")

    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    elif image.ndim == 3 and image.shape[2] == 1:
        image = cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGRA)
    elif image.ndim == 3 and image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    elif not (image.ndim == 3 and image.shape[2] == 4):
        raise DecodeError(f"Unsupported image shape: {image.shape}")

    if image.shape[0] == 0 or image.shape[1] == 0:
        raise DecodeError(f"Decoded image has no pixels: {image.shape}")

    return np.ascontiguousarray(image)
