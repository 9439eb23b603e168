"""
Image Processing Module
Luminance, edge scanning, cropping and image file handling.
"""

from .processing import (
    to_luminance,
    crop_to_rectangle,
    image_size,
    read_image,
    write_image,
    ensure_output_directory,
    get_image_files,
    IMAGE_EXTENSIONS
)
from .edges import scan_offsets, scan_axis, scan_axes

__all__ = [
    'to_luminance',
    'crop_to_rectangle',
    'image_size',
    'read_image',
    'write_image',
    'ensure_output_directory',
    'get_image_files',
    'IMAGE_EXTENSIONS',
    'scan_offsets',
    'scan_axis',
    'scan_axes'
]
