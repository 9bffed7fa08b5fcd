"""
Data Models
===========

Value types passed into and out of the crop engine.

Models:
    Images:
        - SourceImage: Decoded BGRA raster
        - OutputImage: Encoded crop result

    Regions:
        - CropRegion: Pixel-space crop rectangle
        - PercentCrop: Percent-space crop rectangle (avatar cropper)
"""

from atelier_crop.models.image import OutputImage, SourceImage
from atelier_crop.models.region import CropRegion, PercentCrop

__all__ = [
    # Images
    "SourceImage",
    "OutputImage",
    # Regions
    "CropRegion",
    "PercentCrop",
]
