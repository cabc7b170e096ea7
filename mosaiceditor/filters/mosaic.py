"""Mosaic (block-average) redaction filter."""

from __future__ import annotations

import numpy as np

from mosaiceditor.filters.base import BaseFilter, Bounds, FilterInvariantError


def _block_layout(length: int, block_size: int) -> tuple[np.ndarray, np.ndarray]:
    """Start offsets and sizes of blocks along one axis; the last may be truncated."""
    starts = np.arange(0, length, block_size)
    sizes = np.diff(np.append(starts, length))
    return starts, sizes


class MosaicFilter(BaseFilter):
    """Replace each block of the region by its per-channel mean.

    Blocks are laid out from the region's clamped top-left corner. Means are
    rounded half up, so a block that is already uniform keeps its value and
    re-applying the filter with the same layout changes nothing.
    """

    name = "mosaic"

    def __init__(self, block_size: int) -> None:
        if block_size < 1:
            msg = f"block_size must be >= 1, got {block_size}"
            raise ValueError(msg)
        self.block_size = block_size

    @property
    def parameter(self) -> int:
        return self.block_size

    def _apply_clamped(self, data: np.ndarray, bounds: Bounds) -> None:
        x0, y0, x1, y1 = bounds
        region = data[y0:y1, x0:x1]

        row_starts, row_sizes = _block_layout(y1 - y0, self.block_size)
        col_starts, col_sizes = _block_layout(x1 - x0, self.block_size)

        sums = np.add.reduceat(region.astype(np.int64), row_starts, axis=0)
        sums = np.add.reduceat(sums, col_starts, axis=1)
        counts = np.outer(row_sizes, col_sizes)[:, :, np.newaxis]

        if np.any(counts == 0):
            msg = f"Mosaic block with no pixels in region {bounds}"
            raise FilterInvariantError(msg, error_code="empty_block")

        means = np.floor(sums / counts + 0.5).astype(np.uint8)
        region[:] = np.repeat(np.repeat(means, row_sizes, axis=0), col_sizes, axis=1)
