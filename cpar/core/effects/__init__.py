"""
Effects Module
Gaussian blur and resampling for CPAR processing.
"""

from .blur_effects import apply_gaussian_blur, resample_gaussian, gaussian_kernel_size

__all__ = [
    'apply_gaussian_blur',
    'resample_gaussian',
    'gaussian_kernel_size'
]
