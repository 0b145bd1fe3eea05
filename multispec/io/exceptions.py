"""Exceptions raised by the image I/O layer."""

from multispec.core.exceptions import MultiSpecError


class ImageLoadError(MultiSpecError, RuntimeError):
    """Raised when an image file cannot be read or decoded."""
    pass

class ImageSaveError(MultiSpecError, RuntimeError):
    """Raised when writing a composite to disk fails."""
    pass

class UnsupportedFormatError(MultiSpecError, ValueError):
    """Raised for file extensions or pixel formats the I/O layer does not handle."""
    pass
