"""
Raster Buffer
=============

Scoped drawing surface used by the crop engine.

A RasterBuffer behaves like a small 2D canvas with four operations:
    - draw:       composite an image through an affine transform
    - get_pixels: copy the whole surface out
    - put_pixels: replace a rectangle of the surface (no blending)
    - encode:     compress the surface to JPEG, PNG or WebP bytes

Design Rules:
    - Pixels are stored PREMULTIPLIED BGRA uint8, starting fully transparent
    - Transforms use canvas conventions (pixel EDGES at integer coordinates)
    - Storage is released when the `with` block exits, on every path
    - Any operation after release raises RasterReleasedError

Example:
    with RasterBuffer(512, 512) as canvas:
        canvas.draw(source.pixels, matrix)
        pixels = canvas.get_pixels()
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from atelier_crop.errors import CropError


logger = logging.getLogger(__name__)


INTERPOLATION_FLAGS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
}

MEDIA_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}


class RasterReleasedError(CropError):
    """Raised when a RasterBuffer is used after its storage was released."""
    pass


class RasterBuffer:
    """
    Transparent BGRA surface with canvas-like drawing semantics.

    Attributes:
        width: Surface width in pixels
        height: Surface height in pixels
        released: True once storage has been dropped
    """

    def __init__(self, width: int, height: int) -> None:
        """
        Allocate a transparent surface.

        Args:
            width: Surface width in pixels. Must be >= 1.
            height: Surface height in pixels. Must be >= 1.
        """
        if width < 1 or height < 1:
            raise ValueError(f"RasterBuffer size must be positive, got {width}x{height}")

        self._width = int(width)
        self._height = int(height)
        self._pixels: Optional[np.ndarray] = np.zeros(
            (self._height, self._width, 4), dtype=np.uint8
        )
        self._drawn = False

    def __enter__(self) -> "RasterBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def released(self) -> bool:
        return self._pixels is None

    def release(self) -> None:
        """Drop pixel storage. Safe to call more than once."""
        self._pixels = None

    def _require(self) -> np.ndarray:
        if self._pixels is None:
            raise RasterReleasedError(
                f"RasterBuffer {self._width}x{self._height} was already released"
            )
        return self._pixels

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def draw(
        self,
        image: np.ndarray,
        matrix: np.ndarray,
        interpolation: str = "linear",
    ) -> None:
        """
        Composite an image onto the surface through an affine transform.

        Source-over compositing, as a canvas drawImage call does.

        Args:
            image: Straight (non-premultiplied) BGRA image (H, W, 4), uint8
            matrix: 2x3 affine matrix mapping image coordinates to surface
                coordinates, with pixel edges at integer positions
            interpolation: "nearest", "linear" or "cubic"
        """
        pixels = self._require()

        if image.ndim != 3 or image.shape[2] != 4 or image.dtype != np.uint8:
            raise ValueError(
                f"draw expects uint8 BGRA (H, W, 4), got {image.dtype} {image.shape}"
            )
        if interpolation not in INTERPOLATION_FLAGS:
            raise ValueError(f"Unknown interpolation: {interpolation}")

        warped = cv2.warpAffine(
            _premultiply(image),
            _edges_to_centers(matrix),
            (self._width, self._height),
            flags=INTERPOLATION_FLAGS[interpolation],
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0, 0, 0, 0),
        )

        if not self._drawn:
            self._pixels = warped
        else:
            inverse_alpha = cv2.merge([255 - warped[:, :, 3]] * 4)
            self._pixels = cv2.add(warped, cv2.multiply(pixels, inverse_alpha, scale=1 / 255))
        self._drawn = True

    def get_pixels(self) -> np.ndarray:
        """
        Copy the whole surface.

        Returns:
            Premultiplied BGRA array (height, width, 4), uint8
        """
        return self._require().copy()

    def put_pixels(self, data: np.ndarray, dx: int, dy: int) -> None:
        """
        Replace the surface rectangle at (dx, dy) with `data`.

        Parts of `data` falling outside the surface are clipped. No blending
        takes place: transparent pixels in `data` overwrite what was there.

        Args:
            data: Premultiplied BGRA array (h, w, 4), uint8
            dx: Destination x of data's top-left corner (may be negative)
            dy: Destination y of data's top-left corner (may be negative)
        """
        pixels = self._require()

        src_h, src_w = data.shape[:2]
        x0, y0 = max(dx, 0), max(dy, 0)
        x1, y1 = min(dx + src_w, self._width), min(dy + src_h, self._height)

        if x0 >= x1 or y0 >= y1:
            logger.debug(f"put_pixels at ({dx}, {dy}) misses the surface entirely")
            return

        pixels[y0:y1, x0:x1] = data[y0 - dy:y1 - dy, x0 - dx:x1 - dx]
        self._drawn = True

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def encode(
        self,
        fmt: str = "jpeg",
        quality: float = 0.9,
        background: Tuple[int, int, int] = (0, 0, 0),
    ) -> bytes:
        """
        Compress the surface.

        JPEG has no alpha channel, so the surface is composited onto
        `background` first. PNG and WebP keep transparency.

        Args:
            fmt: "jpeg", "png" or "webp"
            quality: Lossy quality in (0, 1]; ignored for PNG
            background: RGB fill behind transparent pixels for JPEG

        Returns:
            Encoded image bytes

        Raises:
            ValueError: If the format is unknown
            CropError: If the encoder fails
        """
        pixels = self._require()

        level = int(min(max(round(quality * 100), 1), 100))

        if fmt == "jpeg":
            image = _flatten(pixels, background)
            ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, level])
        elif fmt == "png":
            ok, buf = cv2.imencode(".png", _unpremultiply(pixels))
        elif fmt == "webp":
            ok, buf = cv2.imencode(
                ".webp", _unpremultiply(pixels), [cv2.IMWRITE_WEBP_QUALITY, level]
            )
        else:
            raise ValueError(f"Unknown output format: {fmt}")

        if not ok:
            raise CropError(f"Encoding {self._width}x{self._height} surface as {fmt} failed")

        return buf.tobytes()

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"RasterBuffer({self._width}x{self._height}, {state})"


# =============================================================================
# Pixel Helpers
# =============================================================================

def _edges_to_centers(matrix: np.ndarray) -> np.ndarray:
    """
    Convert a canvas-convention affine matrix to OpenCV's convention.

    Canvas coordinates put pixel edges on integers; warpAffine puts pixel
    centres there. With p_edge = p_idx + 0.5 on both sides:
        q_idx = A p_idx + b + A (0.5, 0.5) - (0.5, 0.5)
    """
    m = np.asarray(matrix, dtype=np.float64).reshape(2, 3).copy()
    half = np.array([0.5, 0.5])
    m[:, 2] += m[:, :2] @ half - half
    return m


def _premultiply(image: np.ndarray) -> np.ndarray:
    alpha = np.ascontiguousarray(image[:, :, 3])
    if np.all(alpha == 255):
        return image
    alpha4 = cv2.merge([alpha, alpha, alpha, np.full_like(alpha, 255)])
    return cv2.multiply(image, alpha4, scale=1 / 255)


def _unpremultiply(pixels: np.ndarray) -> np.ndarray:
    alpha = pixels[:, :, 3:4].astype(np.float32)
    rgb = pixels[:, :, :3].astype(np.float32)
    with np.errstate(divide="ignore", invalid="ignore"):
        straight = np.where(alpha > 0, rgb * 255.0 / alpha, 0.0)
    out = np.empty_like(pixels)
    out[:, :, :3] = np.clip(np.rint(straight), 0, 255).astype(np.uint8)
    out[:, :, 3] = pixels[:, :, 3]
    return out


def _flatten(pixels: np.ndarray, background: Tuple[int, int, int]) -> np.ndarray:
    """Composite premultiplied BGRA onto an opaque RGB background, returning BGR."""
    r, g, b = background
    inverse_alpha = cv2.merge([255 - pixels[:, :, 3]] * 3)
    fill = np.empty((pixels.shape[0], pixels.shape[1], 3), dtype=np.uint8)
    fill[:] = (b, g, r)
    return cv2.add(
        np.ascontiguousarray(pixels[:, :, :3]),
        cv2.multiply(fill, inverse_alpha, scale=1 / 255),
    )
