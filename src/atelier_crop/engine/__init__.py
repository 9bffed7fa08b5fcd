"""
Engine Module
=============

Crop pipelines built on the raster primitives.

    - CropTransformEngine: rotate about the centre, then crop (editor export)
    - crop_to_size: scaled fixed-size square export (avatars)
    - geometry: safe-area and placement math
"""

from atelier_crop.engine.transform import (
    CropTransformEngine,
    InvalidRegionError,
    validate_region,
)
from atelier_crop.engine.avatar import centered_crop, crop_to_size, scale_to_natural


__all__ = [
    "CropTransformEngine",
    "InvalidRegionError",
    "validate_region",
    "centered_crop",
    "crop_to_size",
    "scale_to_natural",
]
