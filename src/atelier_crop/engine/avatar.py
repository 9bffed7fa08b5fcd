"""
Avatar Crop
===========

Fixed-size square export used for profile photos.

The avatar cropper works on the image as DISPLAYED (scaled to fit the
modal), starts with a centred square covering 80% of the shorter side, and
always exports a small square regardless of the selection size.

Flow:
    1. centered_crop(display_w, display_h) -> initial selection
    2. user adjusts the selection in display pixels
    3. scale_to_natural(selection, display size, natural size)
    4. crop_to_size(source, natural_region) -> 256x256 JPEG
"""

import logging
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from atelier_crop.config import CropConfig, settings
from atelier_crop.models.image import OutputImage, SourceImage
from atelier_crop.models.region import CropRegion, PercentCrop
from atelier_crop.raster.buffer import MEDIA_TYPES, RasterBuffer
from atelier_crop.raster.decoder import RawSource, decode_source
from atelier_crop.engine.geometry import scale_matrix
from atelier_crop.engine.transform import validate_region


logger = logging.getLogger(__name__)


def centered_crop(
    display_width: float,
    display_height: float,
    fraction: Optional[float] = None,
    config: Optional[CropConfig] = None,
) -> CropRegion:
    """
    Default square selection centred on the displayed image.

    Args:
        display_width: Displayed image width
        display_height: Displayed image height
        fraction: Share of the shorter side to cover. None uses
            config.avatar_fraction (0.8).
        config: Crop parameters. Defaults to the global settings.

    Returns:
        Square CropRegion in display pixels
    """
    if fraction is None:
        fraction = (config or settings.crop).avatar_fraction
    size = min(display_width, display_height) * fraction
    return CropRegion(
        x=(display_width - size) / 2,
        y=(display_height - size) / 2,
        width=size,
        height=size,
    )


def scale_to_natural(
    region: CropRegion,
    display_size: Tuple[float, float],
    natural_size: Tuple[float, float],
) -> CropRegion:
    """
    Map a selection made on a scaled preview back to source pixels.

    Args:
        region: Selection in display pixels
        display_size: (width, height) the image was shown at
        natural_size: (width, height) of the decoded source

    Returns:
        CropRegion in natural (source) pixels
    """
    display_w, display_h = display_size
    natural_w, natural_h = natural_size
    if display_w <= 0 or display_h <= 0:
        raise ValueError(f"Display size must be positive, got {display_w}x{display_h}")
    return region.scaled(natural_w / display_w, natural_h / display_h)


def crop_to_size(
    source: Union[SourceImage, RawSource],
    region: Union[CropRegion, PercentCrop],
    output_size: Optional[int] = None,
    config: Optional[CropConfig] = None,
) -> OutputImage:
    """
    Resample a region of the source onto a fixed square.

    Selections much larger than the output are first shrunk with area
    averaging so fine detail does not alias.

    Args:
        source: Decoded SourceImage, or encoded bytes / data URL / base64
        region: Selection in natural (source) pixels, or a PercentCrop of
            the source
        output_size: Edge of the output square. None uses config.avatar_size.
        config: Crop parameters. Defaults to the global settings.

    Returns:
        OutputImage of output_size x output_size

    Raises:
        InvalidRegionError: If the region has no usable area
        DecodeError: If the source cannot be decoded
    """
    config = config or settings.crop
    size = output_size if output_size is not None else config.avatar_size
    if size < 1:
        raise ValueError(f"output_size must be >= 1, got {size}")

    if isinstance(region, CropRegion):
        validate_region(region)
    if not isinstance(source, SourceImage):
        source = decode_source(source, max_bytes=config.max_source_bytes)
    if isinstance(region, PercentCrop):
        region = region.to_pixels(source.width, source.height)
        validate_region(region)

    pixels, scaled_region = _shrink_for_output(source.pixels, region, size)

    with RasterBuffer(size, size) as canvas:
        canvas.draw(
            pixels,
            scale_matrix(scaled_region, size, size),
            interpolation=config.interpolation,
        )
        data = canvas.encode(
            fmt=config.output_format,
            quality=config.quality,
            background=config.background,
        )

    logger.debug(
        f"Avatar crop of {source.width}x{source.height} source: "
        f"region=({region.x:.1f}, {region.y:.1f}, {region.width:.1f}x{region.height:.1f}), "
        f"output={size}x{size}"
    )

    return OutputImage(
        data=data,
        width=size,
        height=size,
        media_type=MEDIA_TYPES[config.output_format],
    )


def _shrink_for_output(
    pixels: np.ndarray,
    region: CropRegion,
    size: int,
) -> Tuple[np.ndarray, CropRegion]:
    """Area-downsample the source when the region maps onto fewer output pixels."""
    fx = min(size / region.width, 1.0)
    fy = min(size / region.height, 1.0)
    if fx == 1.0 and fy == 1.0:
        return pixels, region

    height, width = pixels.shape[:2]
    new_w = max(1, round(width * fx))
    new_h = max(1, round(height * fy))
    shrunk = cv2.resize(pixels, (new_w, new_h), interpolation=cv2.INTER_AREA)
    return shrunk, region.scaled(new_w / width, new_h / height)
