"""
Image Containers
================

Transient containers for the pixels going into the engine and the bytes
coming out of it. Neither carries identity beyond a single call.

Design Rules:
    - SourceImage pixels are ALWAYS 8-bit BGRA, shape (H, W, 4)
    - OutputImage holds encoded bytes only, never a raster
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class SourceImage:
    """
    Fully decoded source raster.

    Attributes:
        pixels: BGRA image as np.ndarray (H, W, 4), dtype=uint8
        media_type: MIME type of the encoded source, when known
    """

    pixels: np.ndarray
    media_type: str = "application/octet-stream"

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"SourceImage pixels must be (H, W, 4), got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"SourceImage pixels must be uint8, got {self.pixels.dtype}")
        if self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise ValueError("SourceImage must have positive dimensions")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel array."""
        return (
            f"SourceImage(width={self.width}, "
            f"height={self.height}, "
            f"media_type={self.media_type!r})"
        )


@dataclass(frozen=True, slots=True)
class OutputImage:
    """
    Encoded crop result.

    Attributes:
        data: Encoded image bytes
        width: Pixel width of the encoded image
        height: Pixel height of the encoded image
        media_type: MIME type matching the encoding (e.g. image/jpeg)
    """

    data: bytes
    width: int
    height: int
    media_type: str

    def __repr__(self) -> str:
        return (
            f"OutputImage(width={self.width}, height={self.height}, "
            f"media_type={self.media_type!r}, bytes={len(self.data)})"
        )
