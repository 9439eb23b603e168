"""
Error kinds raised while cropping a single image or running a batch.

Every error carries a short ``kind`` string so that batch reports can group
failures without inspecting exception types.
"""

from pathlib import Path
from typing import Optional, Union


class CparError(Exception):
    """Base class for all cropping errors."""

    kind = "error"

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        if self.path is not None:
            return f"{self.path.name}: {self.message}"
        return self.message

    def __reduce__(self):
        # Keep subclass attributes when crossing process boundaries
        return (_rebuild, (self.__class__, self.__dict__.copy()))


class IoError(CparError):
    """
    Filesystem failure.

    Unreadable inputs only affect their own file. Problems with the output
    directory are ``fatal`` because nothing can be written at all.
    """

    kind = "io"

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None, fatal: bool = False):
        super().__init__(message, path)
        self.fatal = fatal


class DecodeError(CparError):
    """Input is not a valid or supported image."""

    kind = "decode"


class DetectionError(CparError):
    """No foreground pixel was found along an axis."""

    kind = "detection"

    def __init__(self, message: str, axis: Optional[str] = None, path: Optional[Union[str, Path]] = None):
        super().__init__(message, path)
        self.axis = axis


class InvalidDimensionsError(CparError):
    """Target dimensions collapsed to zero."""

    kind = "invalid_dimensions"


class EncodeError(CparError):
    """Output image could not be encoded or written."""

    kind = "encode"


def _rebuild(cls, state):
    error = cls.__new__(cls)
    Exception.__init__(error, state['message'])
    error.__dict__.update(state)
    return error
