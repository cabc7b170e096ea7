"""Shared test fixtures: deterministic pixel buffers."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from mosaiceditor.core.buffer import PixelBuffer


def gradient_buffer_factory(width: int = 100, height: int = 100) -> PixelBuffer:
    """R = x/width*255, G = y/height*255, B = 128, A = 255."""
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:, :, 0] = np.rint(np.arange(width) / width * 255)[np.newaxis, :]
    data[:, :, 1] = np.rint(np.arange(height) / height * 255)[:, np.newaxis]
    data[:, :, 2] = 128
    data[:, :, 3] = 255
    return PixelBuffer(data)


def checkerboard_buffer_factory(width: int = 100, height: int = 100) -> PixelBuffer:
    """One-pixel black/white checkerboard, opaque."""
    ys, xs = np.indices((height, width))
    value = np.where((xs + ys) % 2 == 0, 255, 0).astype(np.uint8)
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:, :, :3] = value[:, :, np.newaxis]
    data[:, :, 3] = 255
    return PixelBuffer(data)


def noise_buffer_factory(width: int = 40, height: int = 30, seed: int = 7) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))


def encode_with_pillow(buffer: PixelBuffer, image_format: str = "PNG") -> bytes:
    """Encode a buffer with Pillow (independent of the code under test)."""
    image = Image.fromarray(buffer.data)
    if image_format in ("JPEG", "GIF"):
        image = image.convert("RGB")
    out = io.BytesIO()
    image.save(out, format=image_format)
    return out.getvalue()


@pytest.fixture(scope="session")
def make_gradient():
    return gradient_buffer_factory


@pytest.fixture(scope="session")
def make_checkerboard():
    return checkerboard_buffer_factory


@pytest.fixture(scope="session")
def make_noise():
    return noise_buffer_factory


@pytest.fixture(scope="session")
def encode_png():
    return encode_with_pillow


@pytest.fixture
def gradient_buffer() -> PixelBuffer:
    return gradient_buffer_factory()
