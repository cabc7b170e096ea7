"""Filter module - Pixel-level redaction filters."""

from mosaiceditor.filters.base import (
    BaseFilter,
    FilterError,
    FilterInvariantError,
    clamp_region,
)
from mosaiceditor.filters.blur import GaussianBlurFilter, gaussian_kernel
from mosaiceditor.filters.factory import create_filter
from mosaiceditor.filters.mosaic import MosaicFilter

__all__ = [
    # Filters
    "BaseFilter",
    "GaussianBlurFilter",
    "MosaicFilter",
    "create_filter",
    # Helpers
    "clamp_region",
    "gaussian_kernel",
    # Exceptions
    "FilterError",
    "FilterInvariantError",
]
