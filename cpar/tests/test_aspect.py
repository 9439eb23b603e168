"""
Tests for the aspect-ratio-preserving output size.
"""

import pytest

from cpar.core.aspect import TargetDimensions, compute_target_dimensions, limiting_axis
from cpar.core.bounds import CropRectangle
from cpar.core.errors import InvalidDimensionsError


def test_x_limited_example():
    target = compute_target_dimensions(100, 100, CropRectangle(39, 59))

    assert target == TargetDimensions(39, 39)


def test_y_limited():
    # rel_x = 0.75, rel_y = 0.5
    target = compute_target_dimensions(200, 100, CropRectangle(150, 50))

    assert target.as_tuple() == (100, 50)


def test_equal_ratios_are_y_limited():
    crop = CropRectangle(50, 25)

    assert limiting_axis(100, 50, crop) == 'y'
    assert compute_target_dimensions(100, 50, crop).as_tuple() == (50, 25)


def test_flooring_without_float_error():
    # 29 / 100 * 100 is 28.999... in floating point
    target = compute_target_dimensions(100, 100, CropRectangle(29, 80))

    assert target.as_tuple() == (29, 29)


@pytest.mark.parametrize("width, height", [(100, 100), (640, 480), (37, 91), (1920, 1080)])
def test_preserves_original_ratio(width, height):
    for fx in (0.3, 0.5, 0.77, 1.0):
        for fy in (0.25, 0.6, 0.9, 1.0):
            crop = CropRectangle(max(1, int(width * fx)), max(1, int(height * fy)))
            try:
                target = compute_target_dimensions(width, height, crop)
            except InvalidDimensionsError:
                continue

            assert target.width <= crop.x_edge
            assert target.height <= crop.y_edge
            # Off from the exact ratio by less than one pixel of flooring
            assert abs(target.width * height - target.height * width) < max(width, height)


def test_exact_ratio_when_divisible():
    target = compute_target_dimensions(640, 480, CropRectangle(320, 400))

    assert target.as_tuple() == (320, 240)
    assert target.width / target.height == pytest.approx(640 / 480)


def test_no_op_crop_is_identity():
    assert compute_target_dimensions(123, 45, CropRectangle(123, 45)).as_tuple() == (123, 45)


def test_downscale_floors_both_sides():
    assert compute_target_dimensions(101, 51, CropRectangle(101, 51), 2.0).as_tuple() == (50, 25)
    assert compute_target_dimensions(100, 100, CropRectangle(100, 100), 1.5).as_tuple() == (66, 66)


def test_zero_crop_is_invalid():
    with pytest.raises(InvalidDimensionsError):
        compute_target_dimensions(100, 100, CropRectangle(0, 50))


def test_large_downscale_is_invalid():
    with pytest.raises(InvalidDimensionsError) as excinfo:
        compute_target_dimensions(100, 100, CropRectangle(100, 100), 200.0)

    assert excinfo.value.kind == 'invalid_dimensions'


def test_non_positive_downscale():
    with pytest.raises(ValueError):
        compute_target_dimensions(100, 100, CropRectangle(50, 50), 0.0)


def test_crop_larger_than_image():
    with pytest.raises(ValueError):
        compute_target_dimensions(100, 100, CropRectangle(101, 50))
