"""
Test Configuration
==================

Pytest fixtures and helpers for Atelier Crop.

Sources are synthesised with numpy and encoded with OpenCV so tests never
depend on binary fixtures checked into the repo.
"""

import base64
import struct

import cv2
import numpy as np
import pytest

from atelier_crop.config import CropConfig
from atelier_crop.engine import CropTransformEngine


RED = (0, 0, 255)
BLUE = (255, 0, 0)
WHITE = (255, 255, 255)


def encode_png(pixels: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", pixels)
    assert ok
    return buf.tobytes()


def encode_jpeg(pixels: np.ndarray, orientation=None) -> bytes:
    """Encode as JPEG, optionally with an EXIF orientation tag in an APP1 segment."""
    ok, buf = cv2.imencode(".jpg", pixels, [cv2.IMWRITE_JPEG_QUALITY, 95])
    assert ok
    data = buf.tobytes()
    if orientation is None:
        return data

    # Little-endian TIFF header, one IFD with a single SHORT entry for tag 0x0112
    tiff = (
        b"II*\x00"
        + struct.pack("<I", 8)
        + struct.pack("<H", 1)
        + struct.pack("<HHIHH", 0x0112, 3, 1, orientation, 0)
        + struct.pack("<I", 0)
    )
    payload = b"Exif\x00\x00" + tiff
    segment = b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload
    return data[:2] + segment + data[2:]


def decode_output(data: bytes) -> np.ndarray:
    image = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_UNCHANGED)
    assert image is not None
    return image


def solid(width: int, height: int, bgr=WHITE) -> np.ndarray:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = bgr
    return image


@pytest.fixture
def landscape_png():
    """400x300 opaque white PNG."""
    return encode_png(solid(400, 300))


@pytest.fixture
def square_png():
    """200x200 opaque white PNG."""
    return encode_png(solid(200, 200))


@pytest.fixture
def split_png():
    """40x20 PNG, left half red, right half blue."""
    image = solid(40, 20, RED)
    image[:, 20:] = BLUE
    return encode_png(image)


@pytest.fixture
def png_data_url(landscape_png):
    return "data:image/png;base64," + base64.b64encode(landscape_png).decode("ascii")


@pytest.fixture
def jpeg_engine():
    """Engine with the default JPEG 0.9 output."""
    return CropTransformEngine(CropConfig())


@pytest.fixture
def png_engine():
    """Engine with lossless output, for exact pixel checks."""
    return CropTransformEngine(CropConfig(output_format="png"))
