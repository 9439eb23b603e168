"""
Tests for luminance conversion and whitespace edge scanning.
"""

import cv2
import numpy as np
import pytest

from cpar.core.config import AxisConfig
from cpar.core.errors import DetectionError
from cpar.core.image import scan_axes, scan_axis, scan_offsets, to_luminance


def create_artwork(width=100, height=100, rect_w=40, rect_h=60):
    """White canvas with a black rectangle anchored at the top-left corner."""
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    cv2.rectangle(img, (0, 0), (rect_w - 1, rect_h - 1), (0, 0, 0), -1)
    return img


def reference_offsets(luma, axis, threshold):
    """Straightforward per-line scan from the far edge inward."""
    h, w = luma.shape
    offsets = []
    if axis == 'x':
        for y in range(h):
            for x in range(w - 1, -1, -1):
                if luma[y, x] < threshold:
                    offsets.append(x)
                    break
    else:
        for x in range(w):
            for y in range(h - 1, -1, -1):
                if luma[y, x] < threshold:
                    offsets.append(y)
                    break
    return offsets


def test_rectangle_offsets_x_axis():
    luma = to_luminance(create_artwork())

    offsets = scan_offsets(luma, 'x', 250)

    # Rows 0..59 reach column 39, rows 60..99 contribute nothing
    assert len(offsets) == 60
    assert set(offsets.tolist()) == {39}


def test_rectangle_offsets_y_axis():
    luma = to_luminance(create_artwork())

    offsets = scan_offsets(luma, 'y', 250)

    assert len(offsets) == 40
    assert set(offsets.tolist()) == {59}


def test_matches_reference_scan_on_noise():
    rng = np.random.default_rng(7)
    luma = rng.integers(200, 256, size=(37, 53), dtype=np.uint8)
    # Sprinkle dark pixels, leaving some lines entirely light
    for _ in range(40):
        luma[rng.integers(0, 30), rng.integers(0, 45)] = rng.integers(0, 120)

    for axis in ('x', 'y'):
        expected = reference_offsets(luma, axis, 128)
        assert scan_offsets(luma, axis, 128).tolist() == expected


def test_threshold_is_strict():
    luma = np.full((4, 4), 250, dtype=np.uint8)

    assert scan_offsets(luma, 'x', 250).size == 0
    assert scan_offsets(luma, 'x', 251).tolist() == [3, 3, 3, 3]


def test_innermost_pixel_wins():
    luma = np.full((1, 10), 255, dtype=np.uint8)
    luma[0, 2] = 0
    luma[0, 7] = 0

    assert scan_offsets(luma, 'x', 128).tolist() == [7]


def test_blank_axis_raises_detection_error():
    luma = np.full((20, 20), 255, dtype=np.uint8)

    with pytest.raises(DetectionError) as excinfo:
        scan_axis(luma, 'y', 250)

    assert excinfo.value.axis == 'y'
    assert excinfo.value.kind == 'detection'


def test_unknown_axis():
    with pytest.raises(ValueError):
        scan_offsets(np.zeros((2, 2), dtype=np.uint8), 'z', 10)


def test_scan_axes_uses_per_axis_thresholds():
    img = np.full((10, 10), 255, dtype=np.uint8)
    img[:5, :5] = 100

    x_offsets, y_offsets = scan_axes(img, AxisConfig(threshold=150), AxisConfig(threshold=250))
    assert x_offsets.tolist() == [4] * 5
    assert y_offsets.tolist() == [4] * 5

    with pytest.raises(DetectionError):
        scan_axes(img, AxisConfig(threshold=50), AxisConfig(threshold=250))


def test_luminance_of_grayscale_bgra_and_16_bit():
    gray = np.full((3, 3), 17, dtype=np.uint8)
    assert np.array_equal(to_luminance(gray), gray)

    bgra = np.zeros((3, 3, 4), dtype=np.uint8)
    bgra[..., 3] = 255
    assert to_luminance(bgra).shape == (3, 3)
    assert to_luminance(bgra).max() == 0

    deep = np.full((3, 3, 3), 65535, dtype=np.uint16)
    luma = to_luminance(deep)
    assert luma.dtype == np.uint8
    assert luma.min() == 255


def test_luminance_rejects_float_samples():
    hdr = np.full((3, 3, 3), 4.0, dtype=np.float32)

    with pytest.raises(ValueError):
        to_luminance(hdr)
