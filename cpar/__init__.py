"""
CPAR - Crop Preserving Aspect Ratio.
Crops artwork to where its whitespace border ends and restores the original
aspect ratio of the input image.
"""

__version__ = "1.0.0"

from .core import (
    AxisConfig,
    CropConfig,
    CropSettings,
    CropPipeline,
    BatchProcessor,
    process_image,
    process_file
)
