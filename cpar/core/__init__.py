"""
CPAR Core Module
Cropping components shared by the command line and library users.

- image: Luminance, edge scanning, cropping and image file handling
- effects: Gaussian blur and resampling
- bounds: Percentile-based crop edge selection
- aspect: Aspect-ratio-preserving output size
- pipeline: Per-image and per-file processing
- batch: Parallel batch processing
"""

from . import effects
from . import image
from .aspect import TargetDimensions, compute_target_dimensions
from .batch import BatchProcessor, BatchReport
from .bounds import CropRectangle, select_crop, select_edge, saturating_subtract
from .config import AxisConfig, CropConfig, CropSettings, load_settings
from .errors import (
    CparError,
    IoError,
    DecodeError,
    DetectionError,
    InvalidDimensionsError,
    EncodeError
)
from .pipeline import CropPipeline, CropResult, FileResult, process_image, process_file

__all__ = [
    "effects",
    "image",
    "TargetDimensions",
    "compute_target_dimensions",
    "BatchProcessor",
    "BatchReport",
    "CropRectangle",
    "select_crop",
    "select_edge",
    "saturating_subtract",
    "AxisConfig",
    "CropConfig",
    "CropSettings",
    "load_settings",
    "CparError",
    "IoError",
    "DecodeError",
    "DetectionError",
    "InvalidDimensionsError",
    "EncodeError",
    "CropPipeline",
    "CropResult",
    "FileResult",
    "process_image",
    "process_file"
]
