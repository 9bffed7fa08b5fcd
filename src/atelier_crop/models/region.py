"""
Crop Region Models
==================

Rectangles describing which part of an image to keep.

Coordinate Conventions:
    - CropRegion is in SOURCE PIXEL SPACE: origin at the top-left of the
      unrotated source, x rightward, y downward. Values may be fractional.
    - PercentCrop is in PERCENT of the displayed image, as emitted by the
      avatar cropper before the image has been measured.

Note:
    CropRegion deliberately does not constrain its values. Regions that
    extend past the source are legal and yield partially blank output.
    Width and height are checked by the engine, which raises
    InvalidRegionError rather than a validation error.
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class CropRegion(BaseModel):
    """
    Pixel-space crop rectangle.

    Attributes:
        x: Left edge (pixels, may be negative)
        y: Top edge (pixels, may be negative)
        width: Width of the output window (pixels)
        height: Height of the output window (pixels)
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(default=0.0, description="Left edge in source pixels")
    y: float = Field(default=0.0, description="Top edge in source pixels")
    width: float = Field(..., description="Window width in source pixels")
    height: float = Field(..., description="Window height in source pixels")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CropRegion":
        """Build a region from an editor payload like {x, y, width, height}."""
        return cls.model_validate(dict(data))

    def scaled(self, scale_x: float, scale_y: float) -> "CropRegion":
        """Return this region with x/width multiplied by scale_x and y/height by scale_y."""
        return CropRegion(
            x=self.x * scale_x,
            y=self.y * scale_y,
            width=self.width * scale_x,
            height=self.height * scale_y,
        )


class PercentCrop(BaseModel):
    """
    Crop rectangle in percent of the displayed image.

    Attributes:
        x: Left edge (% of width)
        y: Top edge (% of height)
        width: Width (% of width)
        height: Height (% of height)
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(default=0.0, ge=0, le=100, description="Left edge, % of width")
    y: float = Field(default=0.0, ge=0, le=100, description="Top edge, % of height")
    width: float = Field(..., gt=0, le=100, description="Width, % of width")
    height: float = Field(..., gt=0, le=100, description="Height, % of height")

    def to_pixels(self, image_width: float, image_height: float) -> CropRegion:
        """
        Convert to a pixel-space region for an image of the given size.

        Args:
            image_width: Width of the image the percentages refer to
            image_height: Height of the image the percentages refer to

        Returns:
            CropRegion in the same pixel space as the given size
        """
        return CropRegion(
            x=self.x * image_width / 100.0,
            y=self.y * image_height / 100.0,
            width=self.width * image_width / 100.0,
            height=self.height * image_height / 100.0,
        )
