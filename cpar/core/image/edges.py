"""
Whitespace edge scanning.

For every line along an axis, find the innermost pixel darker than the
threshold when scanning inward from the far edge (right edge for rows,
bottom edge for columns). The resulting offsets say how far the foreground
reaches on each line.
"""

from typing import Tuple

import numpy as np

from ..errors import DetectionError
from .processing import to_luminance


def scan_offsets(luma: np.ndarray, axis: str, threshold: int) -> np.ndarray:
    """
    Scan a luminance image along one axis.

    Args:
        luma: 2-D luminance array (height x width)
        axis: 'x' to scan each row from the right, 'y' to scan each column from the bottom
        threshold: Pixels strictly below this value are foreground

    Returns:
        Offsets of the last foreground pixel per line. Lines without any
        foreground are omitted, so the result may be shorter than the number
        of lines.
    """
    if luma.ndim != 2:
        raise ValueError(f"Expected a 2-D luminance array, got shape {luma.shape}")

    if axis == 'x':
        lines = luma
    elif axis == 'y':
        lines = luma.T
    else:
        raise ValueError(f"Unknown axis: {axis!r}")

    mask = lines < threshold
    length = mask.shape[1]
    if length == 0:
        return np.empty(0, dtype=np.int64)
    has_foreground = mask.any(axis=1)

    # argmax on the reversed line finds the first hit when scanning inward
    last = length - 1 - np.argmax(mask[:, ::-1], axis=1)

    return last[has_foreground].astype(np.int64)


def scan_axis(luma: np.ndarray, axis: str, threshold: int) -> np.ndarray:
    """
    Scan one axis and require at least one foreground line.

    Raises:
        DetectionError: If no line contains a foreground pixel
    """
    offsets = scan_offsets(luma, axis, threshold)
    if offsets.size == 0:
        raise DetectionError(
            f"no foreground below threshold {threshold} along the {axis}-axis",
            axis=axis,
        )
    return offsets


def scan_axes(image: np.ndarray, x_axis, y_axis) -> Tuple[np.ndarray, np.ndarray]:
    """
    Scan both axes of an image.

    Args:
        image: Decoded image (grayscale, BGR or BGRA)
        x_axis: AxisConfig for the x-axis
        y_axis: AxisConfig for the y-axis

    Returns:
        tuple: (x_offsets, y_offsets)
    """
    luma = to_luminance(image)
    x_offsets = scan_axis(luma, 'x', x_axis.threshold)
    y_offsets = scan_axis(luma, 'y', y_axis.threshold)
    return x_offsets, y_offsets
