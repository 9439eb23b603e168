"""
Percentile-based crop boundary selection.

A handful of stray dark pixels near the whitespace edge should not stop the
crop, so the edge is taken at a percentile of the per-line offsets instead of
their minimum.
"""

import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Sequence

import numpy as np

from .errors import DetectionError


@dataclass(frozen=True)
class CropRectangle:
    """Region [0, x_edge) x [0, y_edge) to keep."""
    x_edge: int
    y_edge: int

    def __post_init__(self):
        if self.x_edge < 0 or self.y_edge < 0:
            raise ValueError(f"Crop edges must be non-negative, got ({self.x_edge}, {self.y_edge})")


def saturating_subtract(value: int, amount: int) -> int:
    """Subtract without going below zero."""
    return value - amount if amount < value else 0


def percentile_index(count: int, percentile_fraction: float) -> int:
    """Index into a sorted sequence of ``count`` items, clamped to [0, count-1]."""
    if not isinstance(percentile_fraction, Fraction):
        # Shortest decimal form, so 0.3 counts as 3/10 rather than 0.29999...
        percentile_fraction = Fraction(str(float(percentile_fraction)))
    index = math.floor(percentile_fraction * (count - 1))
    return min(max(index, 0), count - 1)


def select_edge(offsets: Sequence[int], percentile_fraction: float, extra_margin: int = 0) -> int:
    """
    Pick a crop edge from per-line offsets.

    Args:
        offsets: Per-line foreground offsets for one axis, in any order
        percentile_fraction: 0.0 keeps the tightest offset, 1.0 the loosest
        extra_margin: Pixels to remove beyond the selected offset

    Returns:
        The crop edge, never negative

    Raises:
        DetectionError: If there are no offsets
    """
    values = np.sort(np.asarray(offsets, dtype=np.int64))
    if values.size == 0:
        raise DetectionError("no offsets to select a crop edge from")

    raw_edge = int(values[percentile_index(values.size, percentile_fraction)])
    return saturating_subtract(raw_edge, int(extra_margin))


def select_crop(x_offsets: Sequence[int], y_offsets: Sequence[int], x_axis, y_axis) -> CropRectangle:
    """
    Select both crop edges.

    Args:
        x_offsets: Offsets from scanning rows
        y_offsets: Offsets from scanning columns
        x_axis: AxisConfig for the x-axis
        y_axis: AxisConfig for the y-axis
    """
    try:
        x_edge = select_edge(x_offsets, x_axis.percentile_fraction, x_axis.extra_margin)
    except DetectionError as e:
        raise DetectionError(e.message, axis='x') from e
    try:
        y_edge = select_edge(y_offsets, y_axis.percentile_fraction, y_axis.extra_margin)
    except DetectionError as e:
        raise DetectionError(e.message, axis='y') from e

    return CropRectangle(x_edge=x_edge, y_edge=y_edge)
