"""
Crop Geometry
=============

Pure functions for the rotate-then-crop placement math.

Coordinate System:
    Canvas conventions throughout: origin top-left, x rightward, y downward,
    pixel edges at integer coordinates. A positive angle turns the image
    clockwise on screen.

Safe Area:
    Rotating a W x H rectangle about its centre sweeps a circle whose
    diameter is the rectangle's diagonal. The square

        safe_area = 2 * ((max(W, H) / 2) * sqrt(2))

    has side >= sqrt(W^2 + H^2) for every W, H, so the rotated image never
    clips, and equals the diagonal exactly when W == H.
"""

import math
from typing import Tuple

import numpy as np

from atelier_crop.models.region import CropRegion


def safe_area_size(width: float, height: float) -> float:
    """
    Side of the square that holds a width x height image at any rotation.

    Args:
        width: Source width in pixels
        height: Source height in pixels

    Returns:
        Safe-area side length (not truncated)
    """
    max_size = max(width, height)
    return 2 * ((max_size / 2) * math.sqrt(2))


def canvas_extent(value: float) -> int:
    """Integer surface dimension for a fractional size, truncated as a canvas does."""
    if not math.isfinite(value) or value <= 0:
        return 0
    return int(value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity."""
    return int(math.floor(value + 0.5))


def paste_offset(
    width: float,
    height: float,
    safe_area: float,
    region: CropRegion,
) -> Tuple[int, int]:
    """
    Where the safe-area pixels land on the output surface.

    The source sits centred in the safe area, so its top-left corner is at
    (safe_area/2 - W/2, safe_area/2 - H/2). Shifting by that corner plus the
    region origin brings (region.x, region.y) to the output origin.

    Args:
        width: Source width
        height: Source height
        safe_area: Safe-area side (untruncated)
        region: Crop rectangle in source pixels

    Returns:
        (dx, dy) integer offset for put_pixels
    """
    dx = round_half_up(0 - safe_area / 2 + width * 0.5 - region.x)
    dy = round_half_up(0 - safe_area / 2 + height * 0.5 - region.y)
    return dx, dy


def rotation_matrix(
    rotation_degrees: float,
    safe_area: float,
    width: float,
    height: float,
) -> np.ndarray:
    """
    Affine matrix drawing the source centred and rotated in the safe area.

    Equivalent to the canvas sequence
        translate(S/2, S/2); rotate(theta); translate(-S/2, -S/2)
        drawImage(src, S/2 - W/2, S/2 - H/2)

    Non-finite angles leave the image unrotated, as canvas rotate() does.

    Args:
        rotation_degrees: Clockwise rotation in degrees
        safe_area: Safe-area side (untruncated)
        width: Source width
        height: Source height

    Returns:
        2x3 float64 matrix mapping source coordinates to safe-area coordinates
    """
    theta = rotation_degrees * math.pi / 180 if math.isfinite(rotation_degrees) else 0.0
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)

    centre = safe_area / 2
    # Offset of the source's own centre from its top-left corner
    ox, oy = -width * 0.5, -height * 0.5

    return np.array(
        [
            [cos_t, -sin_t, cos_t * ox - sin_t * oy + centre],
            [sin_t, cos_t, sin_t * ox + cos_t * oy + centre],
        ],
        dtype=np.float64,
    )


def scale_matrix(region: CropRegion, out_width: float, out_height: float) -> np.ndarray:
    """
    Affine matrix that maps `region` of an image onto an out_width x out_height surface.

    Args:
        region: Source rectangle (pixels)
        out_width: Destination width
        out_height: Destination height

    Returns:
        2x3 float64 matrix
    """
    sx = out_width / region.width
    sy = out_height / region.height
    return np.array(
        [
            [sx, 0.0, -region.x * sx],
            [0.0, sy, -region.y * sy],
        ],
        dtype=np.float64,
    )
