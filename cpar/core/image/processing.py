"""
Image Processing Utilities for CPAR

This module provides the pixel-level primitives used by the cropping pipeline:
- Luminance conversion
- Cropping to a top-left anchored rectangle
- Image decoding and encoding with per-file error kinds
- Image discovery in folders
"""

import os
import re
from pathlib import Path
from typing import List, Tuple

import cv2
import numpy as np

from ..errors import DecodeError, EncodeError, IoError


IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff', '.webp')


def to_luminance(image: np.ndarray) -> np.ndarray:
    """
    Convert an image to 8-bit luminance.

    Args:
        image: Grayscale, BGR or BGRA image (uint8 or uint16)

    Returns:
        2-D uint8 luminance array with the same height and width
    """
    if image.ndim == 2:
        gray = image
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    elif image.ndim == 3 and image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    elif image.ndim == 3 and image.shape[2] == 4:
        # Alpha does not take part in the luminance
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        raise ValueError(f"Unsupported image shape: {image.shape}")

    if gray.dtype == np.uint8:
        return gray
    if gray.dtype == np.uint16:
        return (gray // 257).astype(np.uint8)
    raise ValueError(f"Unsupported image dtype: {gray.dtype}")


def crop_to_rectangle(image: np.ndarray, crop) -> np.ndarray:
    """
    Crop an image to the region [0, x_edge) x [0, y_edge).

    Args:
        image: Input image
        crop: CropRectangle (anything with x_edge and y_edge)

    Returns:
        Cropped view of the image
    """
    h, w = image.shape[:2]
    if not (0 <= crop.x_edge <= w and 0 <= crop.y_edge <= h):
        raise ValueError(f"Crop {crop.x_edge}x{crop.y_edge} exceeds image size {w}x{h}")

    return image[:crop.y_edge, :crop.x_edge]


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of an image array."""
    h, w = image.shape[:2]
    return int(w), int(h)


def read_image(path: Path) -> np.ndarray:
    """
    Decode an image from disk, keeping its depth and alpha channel.

    Raises:
        IoError: If the file does not exist or cannot be read
        DecodeError: If the file is not a supported image or holds
            samples other than 8- or 16-bit integers
    """
    path = Path(path)
    if not path.is_file():
        raise IoError("input file does not exist", path)
    if not os.access(path, os.R_OK):
        raise IoError("input file is not readable", path)

    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None or image.size == 0:
        raise DecodeError("cannot decode image", path)
    if image.dtype not in (np.uint8, np.uint16):
        raise DecodeError(f"unsupported sample type {image.dtype}", path)

    return image


def write_image(image: np.ndarray, path: Path) -> Path:
    """
    Encode an image to disk, overwriting any existing file.

    Raises:
        IoError: If the output directory is missing or not writable (fatal)
        EncodeError: If the image cannot be encoded in the requested format
    """
    path = Path(path)
    parent = path.parent
    if not parent.is_dir():
        raise IoError(f"output directory {parent} does not exist", path, fatal=True)
    if not os.access(parent, os.W_OK):
        raise IoError(f"output directory {parent} is not writable", path, fatal=True)

    try:
        ok = cv2.imwrite(str(path), image)
    except cv2.error as e:
        raise EncodeError(f"cannot encode image: {e}", path) from e

    if not ok:
        raise EncodeError("cannot encode image", path)

    return path


def ensure_output_directory(output_dir: Path) -> Path:
    """
    Create the output directory once before processing.

    Raises:
        IoError: If the directory cannot be created (fatal)
    """
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IoError(f"cannot create output directory: {e}", output_dir, fatal=True) from e

    if not output_dir.is_dir():
        raise IoError("output path is not a directory", output_dir, fatal=True)

    return output_dir


def natural_sort_key(path: Path) -> list:
    """Split a filename into text and number parts for natural sorting."""
    parts = re.split(r'(\d+)', Path(path).name)
    return [int(part) if part.isdigit() else part.lower() for part in parts]


def get_image_files(folder_path: Path, extensions: Tuple[str, ...] = IMAGE_EXTENSIONS) -> List[Path]:
    """
    Get all image files from a folder sorted naturally.

    Args:
        folder_path: Path to folder containing images
        extensions: Tuple of valid image extensions

    Returns:
        List of image file paths sorted naturally
    """
    folder_path = Path(folder_path)
    if not folder_path.is_dir():
        return []

    image_files = [
        p for p in folder_path.iterdir()
        if p.is_file() and p.suffix.lower() in extensions
    ]

    return sorted(image_files, key=natural_sort_key)
