"""Gaussian blur redaction filter."""

from __future__ import annotations

import cv2
import numpy as np

from mosaiceditor.filters.base import BaseFilter, Bounds, FilterInvariantError


def gaussian_kernel(radius: int) -> np.ndarray:
    """Square ``(2r+1) x (2r+1)`` Gaussian kernel, sigma ``r/3``, summing to 1."""
    if radius < 1:
        msg = f"radius must be >= 1, got {radius}"
        raise ValueError(msg)
    sigma = radius / 3
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    dx, dy = np.meshgrid(offsets, offsets)
    kernel = np.exp(-(dx**2 + dy**2) / (2 * sigma**2))
    return kernel / kernel.sum()


class GaussianBlurFilter(BaseFilter):
    """Convolve the region with a Gaussian kernel.

    Taps falling outside the buffer are dropped and each output pixel is
    renormalized by the weight of the taps actually used, so pixels near the
    border are neither darkened nor lightened. Sampling reads a snapshot taken
    before any pixel is written.
    """

    name = "blur"

    def __init__(self, radius: int) -> None:
        self.kernel = gaussian_kernel(radius)
        self.radius = radius

    @property
    def parameter(self) -> int:
        return self.radius

    def _apply_clamped(self, data: np.ndarray, bounds: Bounds) -> None:
        x0, y0, x1, y1 = bounds
        height, width = data.shape[:2]
        r = self.radius

        # Every tap inside the buffer for a region pixel lies inside this window
        wx0, wy0 = max(0, x0 - r), max(0, y0 - r)
        wx1, wy1 = min(width, x1 + r), min(height, y1 + r)
        source = data[wy0:wy1, wx0:wx1].astype(np.float64)

        weighted = cv2.filter2D(source, -1, self.kernel, borderType=cv2.BORDER_CONSTANT)
        coverage = cv2.filter2D(
            np.ones(source.shape[:2], dtype=np.float64),
            -1,
            self.kernel,
            borderType=cv2.BORDER_CONSTANT,
        )

        rows = slice(y0 - wy0, y1 - wy0)
        cols = slice(x0 - wx0, x1 - wx0)
        used_weight = coverage[rows, cols][:, :, np.newaxis]

        if np.any(used_weight <= 0):
            msg = f"Blur taps with no weight in region {bounds}"
            raise FilterInvariantError(msg, error_code="empty_kernel")

        blurred = np.floor(weighted[rows, cols] / used_weight + 0.5)
        data[y0:y1, x0:x1] = np.clip(blurred, 0, 255).astype(np.uint8)
