"""
Crop Transform Engine
=====================

Rebuilds the rotated view the user saw in the crop editor and cuts the
selected window out of it.

Pipeline (per call):
    1. Decode the source if raw bytes / a data URL were given
    2. Size a square safe area that fits the source at any rotation
    3. Draw the source centred and rotated into the safe area
    4. Copy the safe-area pixels out
    5. Paste them onto a region-sized surface, shifted so the crop origin
       lands at (0, 0)
    6. Encode the region-sized surface

Design Rules:
    - Stateless between calls; every call owns its own RasterBuffers
    - Both buffers are released on every exit path
    - Out-of-bounds regions are allowed and produce blank margins
    - No retries, no partial results: errors propagate to the caller
"""

import asyncio
import logging
import math
import time
from typing import Optional, Union

from atelier_crop.config import CropConfig, settings
from atelier_crop.errors import CropError
from atelier_crop.models.image import OutputImage, SourceImage
from atelier_crop.models.region import CropRegion
from atelier_crop.raster.buffer import MEDIA_TYPES, RasterBuffer
from atelier_crop.raster.decoder import RawSource, decode_source
from atelier_crop.engine.geometry import (
    canvas_extent,
    paste_offset,
    rotation_matrix,
    safe_area_size,
)


logger = logging.getLogger(__name__)


class InvalidRegionError(CropError):
    """Raised when a crop region has no usable area."""
    pass


def validate_region(region: CropRegion) -> None:
    """
    Check that a region describes a non-empty output surface.

    Position is NOT checked against the source bounds.

    Raises:
        InvalidRegionError: If width/height are non-positive, non-finite or
            truncate to zero pixels, or if x/y are non-finite
    """
    if not (math.isfinite(region.width) and math.isfinite(region.height)):
        raise InvalidRegionError(
            f"Region size must be finite, got {region.width}x{region.height}"
        )
    if region.width <= 0 or region.height <= 0:
        raise InvalidRegionError(
            f"Region size must be positive, got {region.width}x{region.height}"
        )
    if canvas_extent(region.width) == 0 or canvas_extent(region.height) == 0:
        raise InvalidRegionError(
            f"Region {region.width}x{region.height} is smaller than one pixel"
        )
    if not (math.isfinite(region.x) and math.isfinite(region.y)):
        raise InvalidRegionError(
            f"Region origin must be finite, got ({region.x}, {region.y})"
        )


class CropTransformEngine:
    """
    Rotate-then-crop exporter.

    Attributes:
        config: Encoding and drawing parameters

    Example:
        engine = CropTransformEngine()
        output = engine.transform(photo_bytes, CropRegion(x=0, y=0, width=300, height=300), 90)
    """

    def __init__(self, config: Optional[CropConfig] = None) -> None:
        """
        Initialize the engine.

        Args:
            config: Crop parameters. Defaults to the global settings.
        """
        self.config = config or settings.crop

        logger.info(
            f"CropTransformEngine initialized: format={self.config.output_format}, "
            f"quality={self.config.quality}, interpolation={self.config.interpolation}"
        )

    def load(self, source: Union[SourceImage, RawSource]) -> SourceImage:
        """Return `source` decoded, honouring the configured size limit."""
        if isinstance(source, SourceImage):
            return source
        return decode_source(source, max_bytes=self.config.max_source_bytes)

    def transform(
        self,
        source: Union[SourceImage, RawSource],
        region: CropRegion,
        rotation_degrees: Optional[float] = None,
    ) -> OutputImage:
        """
        Produce the encoded crop of a rotated source.

        Args:
            source: Decoded SourceImage, or encoded bytes / data URL / base64
            region: Crop rectangle in the unrotated source's pixel space
            rotation_degrees: Clockwise rotation about the image centre,
                applied before cropping. None uses config.default_rotation.

        Returns:
            OutputImage of exactly int(region.width) x int(region.height)

        Raises:
            InvalidRegionError: If the region has no usable area
            DecodeError: If the source cannot be decoded
        """
        validate_region(region)
        image = self.load(source)

        if rotation_degrees is None:
            rotation_degrees = self.config.default_rotation
        if not math.isfinite(rotation_degrees):
            logger.warning(f"Ignoring non-finite rotation: {rotation_degrees}")

        start_time = time.time()

        width, height = image.width, image.height
        safe_area = safe_area_size(width, height)
        side = canvas_extent(safe_area)

        with RasterBuffer(side, side) as stage:
            stage.draw(
                image.pixels,
                rotation_matrix(rotation_degrees, safe_area, width, height),
                interpolation=self.config.interpolation,
            )
            rotated = stage.get_pixels()

        out_width = canvas_extent(region.width)
        out_height = canvas_extent(region.height)
        dx, dy = paste_offset(width, height, safe_area, region)

        with RasterBuffer(out_width, out_height) as window:
            window.put_pixels(rotated, dx, dy)
            del rotated
            data = window.encode(
                fmt=self.config.output_format,
                quality=self.config.quality,
                background=self.config.background,
            )

        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Cropped {width}x{height} source: rotation={rotation_degrees}, "
            f"safe_area={side}, offset=({dx}, {dy}), "
            f"output={out_width}x{out_height}, {len(data)} bytes, {elapsed_ms:.1f}ms"
        )

        return OutputImage(
            data=data,
            width=out_width,
            height=out_height,
            media_type=MEDIA_TYPES[self.config.output_format],
        )

    async def transform_async(
        self,
        source: Union[SourceImage, RawSource],
        region: CropRegion,
        rotation_degrees: Optional[float] = None,
    ) -> OutputImage:
        """
        Run `transform` in a worker thread.

        Concurrent calls do not share buffers. There is no cancellation: a
        cancelled awaiter stops waiting but the worker runs to completion.
        """
        return await asyncio.to_thread(self.transform, source, region, rotation_degrees)
