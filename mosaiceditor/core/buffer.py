"""RGBA pixel buffer shared by the filter, compose and export stages."""

from __future__ import annotations

import numpy as np

from mosaiceditor.core.constants import PIXEL_CHANNELS

GRAY_NDIM = 2
RGB_CHANNELS = 3


class PixelBuffer:
    """Interleaved 8-bit R,G,B,A samples with integer width and height.

    Storage is a C-contiguous ``uint8`` array of shape ``(height, width, 4)``,
    so ``samples`` (the flat view) always holds ``width * height * 4`` values.
    Filters mutate ``data`` in place; stages hand buffers over with
    ``copy()`` so no two stages write the same storage.
    """

    __slots__ = ("data",)

    def __init__(self, data: np.ndarray) -> None:
        if data.dtype != np.uint8:
            msg = f"Pixel data must be uint8, got {data.dtype}"
            raise ValueError(msg)
        if data.ndim != 3 or data.shape[2] != PIXEL_CHANNELS:
            msg = f"Pixel data must have shape (height, width, 4), got {data.shape}"
            raise ValueError(msg)
        if data.shape[0] == 0 or data.shape[1] == 0:
            msg = f"Pixel buffer cannot be empty: {data.shape[1]}x{data.shape[0]}"
            raise ValueError(msg)
        self.data = np.ascontiguousarray(data)

    @classmethod
    def blank(
        cls, width: int, height: int, fill: tuple[int, int, int, int] = (0, 0, 0, 255)
    ) -> PixelBuffer:
        """Create a buffer filled with a single color."""
        data = np.empty((height, width, PIXEL_CHANNELS), dtype=np.uint8)
        data[:, :] = fill
        return cls(data)

    @classmethod
    def from_samples(cls, samples: bytes | bytearray, width: int, height: int) -> PixelBuffer:
        """Build a buffer from flat interleaved RGBA bytes."""
        expected = width * height * PIXEL_CHANNELS
        if len(samples) != expected:
            msg = (
                f"Sample count mismatch: got {len(samples)}, "
                f"expected {expected} for {width}x{height} RGBA"
            )
            raise ValueError(msg)
        data = np.frombuffer(bytes(samples), dtype=np.uint8).reshape(
            height, width, PIXEL_CHANNELS
        )
        return cls(data.copy())

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """Build a buffer from a gray, RGB or RGBA array (RGB order).

        Missing alpha is filled with 255.
        """
        array = np.asarray(array)
        if array.dtype != np.uint8:
            array = np.clip(array, 0, 255).astype(np.uint8)

        if array.ndim == GRAY_NDIM:
            array = np.repeat(array[:, :, np.newaxis], RGB_CHANNELS, axis=2)

        if array.ndim != 3 or array.shape[2] not in (RGB_CHANNELS, PIXEL_CHANNELS):
            msg = f"Unsupported array shape for pixel buffer: {array.shape}"
            raise ValueError(msg)

        if array.shape[2] == RGB_CHANNELS:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)

        return cls(array.copy())

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """``(width, height)``."""
        return (self.width, self.height)

    @property
    def samples(self) -> np.ndarray:
        """Flat interleaved RGBA view of the storage."""
        return self.data.reshape(-1)

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Return the RGBA value at ``(x, y)``."""
        r, g, b, a = self.data[y, x]
        return (int(r), int(g), int(b), int(a))

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.data.copy())

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and np.array_equal(self.data, other.data)

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"
