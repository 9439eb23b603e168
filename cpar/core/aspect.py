"""
Aspect-ratio-preserving output size.

Given the crop box and the original size, find the largest rectangle inside
the crop box that has the original image's aspect ratio, then apply the
downscale factor.
"""

import math
from dataclasses import dataclass

from .bounds import CropRectangle
from .errors import InvalidDimensionsError


@dataclass(frozen=True)
class TargetDimensions:
    """Final output size in pixels."""
    width: int
    height: int

    def as_tuple(self):
        return (self.width, self.height)


def limiting_axis(width: int, height: int, crop: CropRectangle) -> str:
    """
    Return the crop-limited axis.

    Compares x_edge / width < y_edge / height by cross-multiplying, so equal
    ratios are always detected as equal and resolve to 'y'.
    """
    return 'x' if crop.x_edge * height < crop.y_edge * width else 'y'


def fit_original_ratio(width: int, height: int, crop: CropRectangle):
    """
    Largest (width, height) within the crop box with the original ratio.

    Returns:
        tuple: (new_width, new_height) before downscaling
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Original size must be positive, got {width}x{height}")
    if crop.x_edge > width or crop.y_edge > height:
        raise ValueError(f"Crop {crop.x_edge}x{crop.y_edge} exceeds original size {width}x{height}")

    # floor(x_edge / width * height), in integers
    if limiting_axis(width, height, crop) == 'x':
        return crop.x_edge, crop.x_edge * height // width
    return crop.y_edge * width // height, crop.y_edge


def compute_target_dimensions(width: int, height: int, crop: CropRectangle,
                              downscale: float = 1.0) -> TargetDimensions:
    """
    Compute the output size for a crop.

    Args:
        width: Original image width
        height: Original image height
        crop: Selected crop rectangle
        downscale: Factor to divide both dimensions by

    Returns:
        TargetDimensions with both sides at least one pixel

    Raises:
        InvalidDimensionsError: If either dimension collapses to zero
    """
    if downscale <= 0:
        raise ValueError(f"downscale factor must be positive, got {downscale}")

    new_width, new_height = fit_original_ratio(width, height, crop)

    if downscale != 1.0:
        new_width = math.floor(new_width / downscale)
        new_height = math.floor(new_height / downscale)

    if new_width < 1 or new_height < 1:
        raise InvalidDimensionsError(
            f"target size {new_width}x{new_height} is empty "
            f"(crop {crop.x_edge}x{crop.y_edge} of {width}x{height}, downscale {downscale})"
        )

    return TargetDimensions(width=int(new_width), height=int(new_height))
