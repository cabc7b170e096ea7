"""Image utilities for decoding sources, validating uploads and encoding exports."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import cv2
import numpy as np
from PIL import ExifTags, Image, UnidentifiedImageError

from mosaiceditor.core.buffer import PixelBuffer
from mosaiceditor.core.constants import (
    EXPORT_FORMATS,
    MAX_UPLOAD_BYTES,
    SUPPORTED_SOURCE_FORMATS,
)
from mosaiceditor.core.models import ValidationResult, round_half_up

logger = logging.getLogger(__name__)

MIN_RECOMMENDED_DIMENSION = 16
MAX_RECOMMENDED_MEGAPIXELS = 50.0
PNG_COMPRESSION_LEVEL = 3

# EXIF orientation tag values; 5-8 swap width and height for display
EXIF_ORIENTATIONS = range(1, 9)
TRANSPOSED_ORIENTATIONS = (5, 6, 7, 8)


class ImageError(Exception):
    """Base exception for image decode/encode errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class ImageDecodeError(ImageError):
    """Source bytes could not be accepted or decoded."""


class ImageEncodeError(ImageError):
    """A pixel buffer could not be encoded."""


class ImageUtils:
    """Utilities for moving images between encoded bytes and pixel buffers."""

    @staticmethod
    def detect_format(data: bytes) -> str | None:
        """Identify the encoded format from content (Pillow format name)."""
        try:
            with Image.open(io.BytesIO(data)) as image:
                return image.format
        except (UnidentifiedImageError, OSError):
            return None

    @staticmethod
    def validate_image_bytes(
        data: bytes,
        max_bytes: int = MAX_UPLOAD_BYTES,
        allowed_formats: dict[str, str] | list[str] | None = None,
    ) -> ValidationResult:
        """Check an upload against the size ceiling and accepted formats.

        The first failure's code is stored in ``context["error_code"]``.
        """
        allowed = list(allowed_formats or SUPPORTED_SOURCE_FORMATS)
        result = ValidationResult(is_valid=True)
        size = len(data)
        result.context["file_size"] = size

        if size == 0:
            result.add_error("Image data is empty")
            result.context["error_code"] = "empty"
            return result

        if size > max_bytes:
            result.add_error(
                f"Image too large: {size / (1024 * 1024):.1f}MB "
                f"(maximum {max_bytes / (1024 * 1024):.0f}MB)"
            )
            result.context["error_code"] = "too_large"
            return result

        try:
            with Image.open(io.BytesIO(data)) as image:
                image_format = image.format
                width, height = image.size
                orientation = image.getexif().get(ExifTags.Base.Orientation, 1)
        except (UnidentifiedImageError, OSError) as e:
            result.add_error(f"Unrecognized image data: {e}")
            result.context["error_code"] = "unsupported_format"
            return result

        result.context["format"] = str(image_format)
        if image_format not in allowed:
            result.add_error(
                f"Unsupported image format: {image_format}. Must be one of {allowed}"
            )
            result.context["error_code"] = "unsupported_format"
            return result

        if orientation not in EXIF_ORIENTATIONS:
            orientation = 1
        if orientation in TRANSPOSED_ORIENTATIONS:
            width, height = height, width
        result.context["orientation"] = int(orientation)
        result.context["width"] = int(width)
        result.context["height"] = int(height)
        megapixels = round((width * height) / 1_000_000, 2)
        result.context["megapixels"] = megapixels

        if width < MIN_RECOMMENDED_DIMENSION or height < MIN_RECOMMENDED_DIMENSION:
            result.add_warning(f"Very small image dimensions: {width}x{height}")
        if megapixels > MAX_RECOMMENDED_MEGAPIXELS:
            result.add_warning(f"Very large image: {megapixels}MP, filtering may be slow")

        return result

    @staticmethod
    def decode_image(
        data: bytes,
        max_bytes: int = MAX_UPLOAD_BYTES,
        allowed_formats: dict[str, str] | list[str] | None = None,
    ) -> PixelBuffer:
        """Validate and decode encoded bytes into an RGBA pixel buffer."""
        validation = ImageUtils.validate_image_bytes(data, max_bytes, allowed_formats)
        if not validation.is_valid:
            msg = "; ".join(validation.errors)
            logger.warning("Rejected image: %s", msg)
            raise ImageDecodeError(msg, error_code=str(validation.context["error_code"]))

        raw = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if raw is None:
            msg = f"Failed to decode {validation.context['format']} image"
            logger.error(msg)
            raise ImageDecodeError(msg, error_code="decode_failed")

        rgba = ImageUtils._to_rgba_order(raw)
        orientation = int(validation.context.get("orientation", 1))
        buffer = PixelBuffer.from_array(ImageUtils._apply_orientation(rgba, orientation))
        logger.debug("Decoded %s image: %dx%d", validation.context["format"], *buffer.size)
        return buffer

    @staticmethod
    def _to_rgba_order(image: np.ndarray) -> np.ndarray:
        """Convert an OpenCV-decoded array (BGR/BGRA/gray, 8 or 16 bit) to RGB(A) uint8."""
        if image.dtype == np.uint16:
            image = (image // 257).astype(np.uint8)
        elif image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)

        if image.ndim == 2:
            return image
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        if image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return image[:, :, 0]

    @staticmethod
    def _apply_orientation(image: np.ndarray, orientation: int) -> np.ndarray:
        """Transpose a stored-layout array into its EXIF display orientation."""
        match orientation:
            case 2:
                return image[:, ::-1]
            case 3:
                return image[::-1, ::-1]
            case 4:
                return image[::-1]
            case 5:
                return np.swapaxes(image, 0, 1)
            case 6:
                return np.rot90(image, k=-1)
            case 7:
                return np.swapaxes(image[::-1, ::-1], 0, 1)
            case 8:
                return np.rot90(image, k=1)
            case _:
                return image

    @staticmethod
    def load_image(image_path: Path, max_bytes: int = MAX_UPLOAD_BYTES) -> PixelBuffer:
        """Read, validate and decode an image file."""
        if not image_path.exists():
            msg = f"Image file not found: {image_path}"
            logger.error(msg)
            raise FileNotFoundError(msg)

        buffer = ImageUtils.decode_image(image_path.read_bytes(), max_bytes)
        logger.info("Loaded image: %s (%dx%d)", image_path, *buffer.size)
        return buffer

    @staticmethod
    def resize(buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
        """Resample a buffer; area interpolation when shrinking."""
        if width <= 0 or height <= 0:
            msg = f"Invalid target dimensions: {width}x{height}"
            raise ImageEncodeError(msg, error_code="invalid_size")
        if (width, height) == buffer.size:
            return buffer.copy()

        shrinking = width * height < buffer.width * buffer.height
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
        resized = cv2.resize(buffer.data, (width, height), interpolation=interpolation)
        logger.debug("Resized buffer from %dx%d to %dx%d", *buffer.size, width, height)
        return PixelBuffer(resized)

    @staticmethod
    def encode_image(buffer: PixelBuffer, image_format: str = "png", quality: float = 0.9) -> bytes:
        """Encode a buffer as PNG (keeps alpha) or JPEG (drops alpha)."""
        if image_format not in EXPORT_FORMATS:
            msg = f"Unsupported export format: {image_format}"
            raise ImageEncodeError(msg, error_code="unsupported_format")

        if image_format == "jpeg":
            image = cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2BGR)
            jpeg_quality = max(0, min(100, round_half_up(quality * 100)))
            ext, params = ".jpg", [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]
        else:
            image = cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2BGRA)
            ext, params = ".png", [cv2.IMWRITE_PNG_COMPRESSION, PNG_COMPRESSION_LEVEL]

        try:
            success, encoded = cv2.imencode(ext, image, params)
        except cv2.error as e:
            msg = f"Error encoding {image_format} image: {e}"
            logger.exception(msg)
            raise ImageEncodeError(msg, error_code="encode_failed") from e

        if not success:
            msg = f"Failed to encode {image_format} image ({buffer.width}x{buffer.height})"
            logger.error(msg)
            raise ImageEncodeError(msg, error_code="encode_failed")

        return encoded.tobytes()
