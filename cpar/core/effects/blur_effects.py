"""
Gaussian Effects Module for CPAR

Provides the two filtering primitives used after cropping:
- Gaussian blur with a user-supplied sigma (optional quality pass)
- Gaussian-filtered resampling to an exact output size
"""

import math

import cv2
import numpy as np


def gaussian_kernel_size(sigma: float) -> int:
    """Odd kernel size covering +/- 3 sigma."""
    if sigma <= 0:
        return 1
    return 2 * int(math.ceil(3.0 * sigma)) + 1


def apply_gaussian_blur(image: np.ndarray, sigma: float) -> np.ndarray:
    """
    Apply Gaussian blur to an image.

    Args:
        image: Input image array
        sigma: Standard deviation of the Gaussian kernel, in pixels

    Returns:
        Gaussian blurred image array
    """
    if sigma <= 0:
        raise ValueError(f"blur sigma must be positive, got {sigma}")

    k = gaussian_kernel_size(sigma)
    return cv2.GaussianBlur(image, (k, k), sigmaX=sigma, sigmaY=sigma)


def resample_gaussian(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize an image to exactly width x height with a Gaussian anti-aliasing filter.

    When shrinking, each axis is first smoothed with sigma = (scale - 1) / 2,
    then sampled with bilinear interpolation. Axes that are not shrunk are
    left unfiltered.

    Args:
        image: Input image array
        width: Target width
        height: Target height

    Returns:
        Resampled image array
    """
    if width < 1 or height < 1:
        raise ValueError(f"Target size must be positive, got {width}x{height}")

    h, w = image.shape[:2]
    if (w, h) == (width, height):
        return image.copy()

    sigma_x = max(0.0, (w / width - 1.0) / 2.0)
    sigma_y = max(0.0, (h / height - 1.0) / 2.0)

    if sigma_x > 0 or sigma_y > 0:
        kx = gaussian_kernel_size(sigma_x)
        ky = gaussian_kernel_size(sigma_y)
        image = cv2.GaussianBlur(image, (kx, ky), sigmaX=sigma_x, sigmaY=sigma_y)

    return cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)
