"""
Tests for the per-image pipeline and per-file processing.
"""

from pathlib import Path

import cv2
import numpy as np
import pytest

from cpar.core.bounds import CropRectangle
from cpar.core.config import AxisConfig, CropConfig
from cpar.core.errors import DetectionError, InvalidDimensionsError, IoError
from cpar.core.pipeline import CropPipeline, process_file, process_image


def create_artwork(width=100, height=100, rect_w=40, rect_h=60, channels=3):
    """White canvas with a black rectangle anchored at the top-left corner."""
    shape = (height, width) if channels == 1 else (height, width, channels)
    img = np.full(shape, 255, dtype=np.uint8)
    img[:rect_h, :rect_w] = 0
    if channels == 4:
        img[:rect_h, :rect_w, 3] = 255
    return img


def make_config(percentile=100, threshold=250, extra=0, blur=None, downscale=1.0):
    axis = AxisConfig.from_percentile(threshold, percentile, extra)
    return CropConfig(x_axis=axis, y_axis=axis, blur_sigma=blur, downscale=downscale)


def test_end_to_end_example():
    result = process_image(create_artwork(), make_config(percentile=100))

    assert result.crop == CropRectangle(39, 59)
    assert result.target.as_tuple() == (39, 39)
    assert result.original_size == (100, 100)
    assert result.image.shape == (39, 39, 3)


def test_percentile_ignores_stray_pixel():
    img = create_artwork(200, 200, 100, 100)
    # A speck of dust well inside the whitespace
    img[150, 20] = 0

    robust = process_image(img, make_config(percentile=95))
    assert robust.crop == CropRectangle(99, 99)
    assert robust.target.as_tuple() == (99, 99)

    strict = process_image(img, make_config(percentile=100))
    assert strict.crop == CropRectangle(20, 99)
    assert strict.target.as_tuple() == (20, 20)


def test_blur_keeps_output_size():
    img = create_artwork()
    img[20:24, 5:15] = 255

    plain = process_image(img, make_config())
    blurred = process_image(img, make_config(blur=1.5))

    assert blurred.image.shape == plain.image.shape
    assert not np.array_equal(blurred.image, plain.image)


def test_downscale_applies_after_fit():
    result = process_image(create_artwork(), make_config(downscale=2.0))

    assert result.target.as_tuple() == (19, 19)
    assert result.image.shape[:2] == (19, 19)


def test_channels_are_preserved():
    gray = process_image(create_artwork(channels=1), make_config())
    assert gray.image.shape == (39, 39)

    bgra = process_image(create_artwork(channels=4), make_config())
    assert bgra.image.shape == (39, 39, 4)


def test_blank_image_fails_detection():
    blank = np.full((50, 50, 3), 255, dtype=np.uint8)

    with pytest.raises(DetectionError):
        process_image(blank, make_config())


def test_margin_larger_than_edge_is_invalid():
    with pytest.raises(InvalidDimensionsError):
        process_image(create_artwork(), make_config(extra=1000))


def test_detect_only():
    pipeline = CropPipeline(make_config(extra=9))

    assert pipeline.detect(create_artwork()) == CropRectangle(30, 50)


def test_process_file_writes_same_filename(tmp_path):
    src = tmp_path / "art.png"
    out = tmp_path / "out"
    out.mkdir()
    cv2.imwrite(str(src), create_artwork())
    (out / "art.png").write_bytes(b"stale")

    result = process_file(src, out, make_config())

    assert result.success
    assert result.destination == out / "art.png"
    assert result.output_size == (39, 39)
    written = cv2.imread(str(out / "art.png"))
    assert written.shape == (39, 39, 3)


def test_process_file_reports_decode_error(tmp_path):
    src = tmp_path / "broken.png"
    src.write_bytes(b"this is not an image")

    result = process_file(src, tmp_path, make_config())

    assert not result.success
    assert result.error_kind == "decode"
    assert "broken.png" in result.describe()


def test_process_file_rejects_float_images(tmp_path):
    src = tmp_path / "radiance.tif"
    img = np.full((20, 20, 3), 2.5, dtype=np.float32)
    img[:10, :10] = 0.0
    assert cv2.imwrite(str(src), img)
    out = tmp_path / "out"
    out.mkdir()

    result = process_file(src, out, make_config())

    assert result.error_kind == "decode"
    assert "float32" in result.describe()
    assert not (out / "radiance.tif").exists()


def test_process_file_reports_missing_input(tmp_path):
    result = process_file(tmp_path / "missing.png", tmp_path, make_config())

    assert result.error_kind == "io"


def test_process_file_reports_detection_error(tmp_path):
    src = tmp_path / "blank.png"
    cv2.imwrite(str(src), np.full((20, 20, 3), 255, dtype=np.uint8))
    out = tmp_path / "out"
    out.mkdir()

    result = process_file(src, out, make_config())

    assert result.error_kind == "detection"
    assert not (out / "blank.png").exists()


def test_process_file_reports_encode_error(tmp_path):
    # PNG content decodes fine, but there is no writer for this extension
    png = tmp_path / "art.png"
    cv2.imwrite(str(png), create_artwork())
    src = tmp_path / "art.unknownext"
    src.write_bytes(png.read_bytes())
    out = tmp_path / "out"
    out.mkdir()

    result = process_file(src, out, make_config())

    assert result.error_kind == "encode"


def test_missing_output_directory_is_fatal(tmp_path):
    src = tmp_path / "art.png"
    cv2.imwrite(str(src), create_artwork())

    with pytest.raises(IoError) as excinfo:
        process_file(src, tmp_path / "nowhere", make_config())

    assert excinfo.value.fatal
    assert isinstance(excinfo.value.path, Path)
