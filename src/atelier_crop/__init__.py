"""
Atelier Crop
============

Image crop/rotate/export engine for the tailoring marketplace.

Profile photos, portfolio pieces and landing-page imagery pass through this
package after the user has chosen a crop rectangle and rotation in the
browser-side editor. The engine rebuilds the rotated view, cuts the requested
window out of it and returns an encoded image ready for upload.

Components:
    - models: SourceImage, CropRegion, OutputImage
    - raster: source decoding and the scoped RasterBuffer
    - engine: CropTransformEngine and the fixed-size avatar crop

Example:
    from atelier_crop import CropRegion, CropTransformEngine

    engine = CropTransformEngine()
    output = engine.transform(
        data_url,
        CropRegion(x=50, y=50, width=100, height=100),
        rotation_degrees=90,
    )
    upload(output.data, content_type=output.media_type)
"""

__version__ = "0.1.0"
__author__ = "Atelier Marketplace"

from atelier_crop.errors import CropError
from atelier_crop.models import CropRegion, OutputImage, PercentCrop, SourceImage
from atelier_crop.raster import DecodeError, RasterBuffer, RasterReleasedError, decode_source
from atelier_crop.engine import (
    CropTransformEngine,
    InvalidRegionError,
    centered_crop,
    crop_to_size,
    scale_to_natural,
)

__all__ = [
    "__version__",
    # Errors
    "CropError",
    "DecodeError",
    "InvalidRegionError",
    "RasterReleasedError",
    # Models
    "SourceImage",
    "CropRegion",
    "PercentCrop",
    "OutputImage",
    # Raster
    "RasterBuffer",
    "decode_source",
    # Engine
    "CropTransformEngine",
    "centered_crop",
    "scale_to_natural",
    "crop_to_size",
]
