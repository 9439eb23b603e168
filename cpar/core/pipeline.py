"""
Per-image cropping pipeline.

scan both axes -> select crop edges -> compute target size -> crop ->
optional blur -> Gaussian resample.

``process_image`` works on a decoded array. ``process_file`` adds decoding
and encoding and turns every per-file failure into a ``FileResult`` so that
one bad input never stops its siblings.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import numpy as np

from .aspect import TargetDimensions, compute_target_dimensions
from .bounds import CropRectangle, select_crop
from .config import CropConfig
from .effects import apply_gaussian_blur, resample_gaussian
from .errors import CparError, IoError
from .image import crop_to_rectangle, image_size, read_image, scan_axes, write_image

logger = logging.getLogger(__name__)


@dataclass
class CropResult:
    """Output of the pipeline for one image."""
    image: np.ndarray
    crop: CropRectangle
    target: TargetDimensions
    original_size: Tuple[int, int]


@dataclass
class FileResult:
    """Outcome of processing one file in a batch."""
    source: Path
    destination: Optional[Path] = None
    success: bool = False
    error_kind: Optional[str] = None
    message: Optional[str] = None
    original_size: Optional[Tuple[int, int]] = None
    output_size: Optional[Tuple[int, int]] = None
    duration_seconds: float = 0.0

    def describe(self) -> str:
        if self.success:
            ow, oh = self.original_size
            nw, nh = self.output_size
            return f"{self.source.name}: {ow}x{oh} -> {nw}x{nh}"
        return f"{self.source.name}: [{self.error_kind}] {self.message}"


class CropPipeline:
    """Crops images with a fixed configuration."""

    def __init__(self, config: CropConfig):
        """
        Initialize pipeline.

        Args:
            config: Resolved crop configuration
        """
        self.config = config

    def detect(self, image: np.ndarray) -> CropRectangle:
        """Scan both axes and select the crop rectangle."""
        x_offsets, y_offsets = scan_axes(image, self.config.x_axis, self.config.y_axis)
        return select_crop(x_offsets, y_offsets, self.config.x_axis, self.config.y_axis)

    def process(self, image: np.ndarray) -> CropResult:
        """
        Crop an image and restore the original aspect ratio.

        Raises:
            DetectionError: If either axis has no foreground
            InvalidDimensionsError: If the output would be empty
        """
        width, height = image_size(image)
        crop = self.detect(image)

        # Pure size computation first, so degenerate crops never reach OpenCV
        target = compute_target_dimensions(width, height, crop, self.config.downscale)

        result = crop_to_rectangle(image, crop)
        if self.config.blur_sigma is not None:
            result = apply_gaussian_blur(result, self.config.blur_sigma)
        result = resample_gaussian(result, target.width, target.height)

        return CropResult(image=result, crop=crop, target=target, original_size=(width, height))


def process_image(image: np.ndarray, config: CropConfig) -> CropResult:
    """Convenience function for running the pipeline on one decoded image."""
    return CropPipeline(config).process(image)


def process_file(source: Path, output_dir: Path, config: CropConfig) -> FileResult:
    """
    Decode, crop and encode one file.

    The output keeps the source filename and overwrites any existing file.
    Per-file errors are returned in the result; a fatal ``IoError`` (the
    output directory itself is unusable) is raised.
    """
    source = Path(source)
    destination = Path(output_dir) / source.name
    result = FileResult(source=source, destination=destination)
    start = time.perf_counter()

    try:
        image = read_image(source)
        cropped = CropPipeline(config).process(image)
        write_image(cropped.image, destination)
    except IoError as e:
        if e.fatal:
            raise
        result.error_kind = e.kind
        result.message = e.message
    except CparError as e:
        result.error_kind = e.kind
        result.message = e.message
    else:
        result.success = True
        result.original_size = cropped.original_size
        result.output_size = cropped.target.as_tuple()
        logger.debug(f"{source.name}: crop {cropped.crop.x_edge}x{cropped.crop.y_edge}, "
                     f"output {cropped.target.width}x{cropped.target.height}")
    finally:
        result.duration_seconds = time.perf_counter() - start

    return result
