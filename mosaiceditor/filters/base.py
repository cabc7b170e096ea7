"""Base filter interface and region clamping shared by all redaction filters."""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod

import numpy as np

from mosaiceditor.core.buffer import PixelBuffer
from mosaiceditor.core.models import Rectangle

logger = logging.getLogger(__name__)

# (x0, y0, x1, y1), exclusive end
Bounds = tuple[int, int, int, int]


def clamp_region(
    x: float,
    y: float,
    width: float,
    height: float,
    buffer_width: int,
    buffer_height: int,
) -> Bounds | None:
    """Clamp a region to ``[0, buffer_width) x [0, buffer_height)``.

    Returns None when nothing of the region lies inside the buffer.
    """
    x0 = max(0, math.floor(x))
    y0 = max(0, math.floor(y))
    x1 = min(buffer_width, math.floor(x + width))
    y1 = min(buffer_height, math.floor(y + height))
    if x1 <= x0 or y1 <= y0:
        return None
    return (x0, y0, x1, y1)


class BaseFilter(ABC):
    """Abstract base class for in-place region filters."""

    name: str = "base"

    @property
    @abstractmethod
    def parameter(self) -> int:
        """The filter's strength parameter (block size or radius)."""

    def apply(
        self, buffer: PixelBuffer, region: Rectangle | tuple[float, float, float, float]
    ) -> bool:
        """Filter ``region`` of ``buffer`` in place.

        Returns False when the region lies fully outside the buffer.
        """
        if isinstance(region, Rectangle):
            region = region.as_region()
        bounds = clamp_region(*region, buffer.width, buffer.height)
        if bounds is None:
            logger.debug("%s skipped: region %s outside %dx%d", self.name, region, *buffer.size)
            return False

        self._apply_clamped(buffer.data, bounds)
        logger.debug("%s(%d) applied to %s", self.name, self.parameter, bounds)
        return True

    @abstractmethod
    def _apply_clamped(self, data: np.ndarray, bounds: Bounds) -> None:
        """Filter ``data[y0:y1, x0:x1]`` in place; bounds are already clamped."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.parameter})"


class FilterError(Exception):
    """Base exception for filter-related errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class FilterInvariantError(FilterError):
    """An averaging step had no contributing pixels.

    Clamped regions are never empty, so this signals a bug rather than bad
    input and is not meant to be recovered from.
    """
