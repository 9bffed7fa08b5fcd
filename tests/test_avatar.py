"""
Avatar Crop Tests
=================

Default selection, display-to-natural scaling and fixed-size export.
"""

import numpy as np
import pytest

from atelier_crop.config import CropConfig
from atelier_crop.engine import InvalidRegionError, centered_crop, crop_to_size, scale_to_natural
from atelier_crop.models import CropRegion, PercentCrop

from conftest import BLUE, RED, decode_output, encode_png, solid


@pytest.fixture
def halves_png():
    """200x100 PNG, left half red, right half blue."""
    image = solid(200, 100, RED)
    image[:, 100:] = BLUE
    return encode_png(image)


class TestCenteredCrop:
    """Tests for the default selection."""

    def test_default_fraction(self):
        region = centered_crop(500, 400)
        assert region.width == pytest.approx(320)
        assert region.height == pytest.approx(320)
        assert region.x == pytest.approx(90)
        assert region.y == pytest.approx(40)

    def test_custom_fraction(self):
        region = centered_crop(100, 300, fraction=0.5)
        assert (region.x, region.y, region.width, region.height) == pytest.approx((25, 125, 50, 50))

    def test_fraction_from_config(self):
        region = centered_crop(200, 100, config=CropConfig(avatar_fraction=0.5))
        assert (region.x, region.y, region.width, region.height) == pytest.approx((75, 25, 50, 50))

    def test_explicit_fraction_wins_over_config(self):
        region = centered_crop(200, 100, fraction=1.0, config=CropConfig(avatar_fraction=0.5))
        assert region.width == pytest.approx(100)


class TestScaleToNatural:
    """Tests for display-space to source-space mapping."""

    def test_scales_each_axis(self):
        region = CropRegion(x=10, y=20, width=100, height=100)
        natural = scale_to_natural(region, (500, 400), (1000, 1200))
        assert (natural.x, natural.y, natural.width, natural.height) == pytest.approx(
            (20, 60, 200, 300)
        )

    def test_rejects_empty_display(self):
        with pytest.raises(ValueError):
            scale_to_natural(CropRegion(width=1, height=1), (0, 400), (100, 100))


class TestCropToSize:
    """Tests for fixed-size export."""

    def test_default_is_256_jpeg(self, landscape_png):
        output = crop_to_size(landscape_png, CropRegion(x=50, y=0, width=300, height=300))
        assert (output.width, output.height) == (256, 256)
        assert output.media_type == "image/jpeg"
        assert decode_output(output.data).shape[:2] == (256, 256)

    def test_custom_size(self, landscape_png):
        output = crop_to_size(landscape_png, CropRegion(x=0, y=0, width=10, height=10), output_size=64)
        assert decode_output(output.data).shape[:2] == (64, 64)

    def test_keeps_selected_content(self, halves_png):
        config = CropConfig(output_format="png")
        left = decode_output(
            crop_to_size(halves_png, CropRegion(x=0, y=0, width=100, height=100), 32, config).data
        )
        right = decode_output(
            crop_to_size(halves_png, CropRegion(x=100, y=0, width=100, height=100), 32, config).data
        )
        np.testing.assert_array_equal(left[16, 16], [0, 0, 255, 255])
        np.testing.assert_array_equal(right[16, 16], [255, 0, 0, 255])

    def test_full_editor_flow(self, halves_png):
        """Default selection on a half-size preview, mapped back and exported."""
        selection = centered_crop(100, 50)
        natural = scale_to_natural(selection, (100, 50), (200, 100))
        output = crop_to_size(halves_png, natural)
        assert natural.width == pytest.approx(80)
        assert (output.width, output.height) == (256, 256)

    def test_invalid_region(self, landscape_png):
        with pytest.raises(InvalidRegionError):
            crop_to_size(landscape_png, CropRegion(x=0, y=0, width=0, height=10))

    def test_percent_region(self, halves_png):
        """Percentages refer to the decoded source size."""
        config = CropConfig(output_format="png")
        output = crop_to_size(halves_png, PercentCrop(x=50, y=0, width=50, height=100), 32, config)
        image = decode_output(output.data)
        assert image.shape == (32, 32, 4)
        np.testing.assert_array_equal(image[16, 16], [255, 0, 0, 255])
        np.testing.assert_array_equal(image[0, 0], [255, 0, 0, 255])

    def test_downscale_averages_fine_detail(self):
        """A 4x reduction of 1-in-4 white stripes comes out flat grey, not black."""
        stripes = np.zeros((1024, 1024, 3), dtype=np.uint8)
        stripes[:, ::4] = 255
        config = CropConfig(output_format="png")
        output = crop_to_size(
            encode_png(stripes), CropRegion(x=0, y=0, width=1024, height=1024), 256, config
        )
        image = decode_output(output.data)
        assert image.shape == (256, 256, 4)
        grey = image[:, :, 0].astype(np.int32)
        assert abs(grey.mean() - 64) <= 2
        assert grey.max() - grey.min() <= 2
        assert (image[:, :, 3] == 255).all()

    def test_upscale_is_unaffected_by_shrinking(self, halves_png):
        config = CropConfig(output_format="png")
        output = crop_to_size(halves_png, CropRegion(x=0, y=0, width=50, height=50), 100, config)
        image = decode_output(output.data)
        np.testing.assert_array_equal(image[50, 50], [0, 0, 255, 255])


class TestPercentCrop:
    """Tests for percent-space selections."""

    def test_to_pixels(self):
        region = PercentCrop(x=10, y=10, width=80, height=50).to_pixels(500, 200)
        assert (region.x, region.y, region.width, region.height) == pytest.approx((50, 20, 400, 100))

    def test_rejects_over_100(self):
        with pytest.raises(ValueError):
            PercentCrop(width=120, height=10)
