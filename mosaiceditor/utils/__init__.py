"""Utils module - Image codec and validation helpers."""

from .image import ImageDecodeError, ImageEncodeError, ImageError, ImageUtils

__all__ = [
    "ImageDecodeError",
    "ImageEncodeError",
    "ImageError",
    "ImageUtils",
]
