"""Rasterize a composed buffer at the requested size and encode it."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from pathlib import PurePath

from mosaiceditor.core.buffer import PixelBuffer
from mosaiceditor.core.models import EffectConfig, ExportOptions, SelectionSet
from mosaiceditor.pipeline.compose import compose
from mosaiceditor.utils.image import ImageUtils

logger = logging.getLogger(__name__)

MAX_STEM_LENGTH = 80
_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w.-]+")


class ExportPipeline:
    """Encodes composed buffers according to ``ExportOptions``."""

    def __init__(self, options: ExportOptions | None = None) -> None:
        self.options = options or ExportOptions()

    def rasterize(self, buffer: PixelBuffer) -> PixelBuffer:
        """Resample to the target resolution (a copy at native size otherwise)."""
        width, height = self.options.target_size(buffer.width, buffer.height)
        return ImageUtils.resize(buffer, width, height)

    def encode(self, buffer: PixelBuffer) -> bytes:
        """Rasterize and encode; raises ``ImageEncodeError`` on failure."""
        output = self.rasterize(buffer)
        data = ImageUtils.encode_image(output, self.options.format, self.options.quality)
        logger.info(
            "Exported %s %dx%d (%d bytes)",
            self.options.format,
            output.width,
            output.height,
            len(data),
        )
        return data

    def export(
        self, source: PixelBuffer, selections: SelectionSet, effect: EffectConfig
    ) -> bytes:
        """Compose ``selections`` over ``source`` and encode the result."""
        return self.encode(compose(source, selections, effect))


def export_image(
    buffer: PixelBuffer, options: ExportOptions | None = None
) -> bytes:
    """Encode an already composed buffer."""
    return ExportPipeline(options).encode(buffer)


def build_export_filename(
    original_name: str | None, image_format: str = "png", now: datetime | None = None
) -> str:
    """``<stem>_processed_<YYYYMMDDTHHMMSS>.<ext>`` for a download."""
    stem = PurePath(original_name).stem if original_name else ""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", stem).strip("._")[:MAX_STEM_LENGTH] or "image"
    extension = ExportOptions(format=image_format).extension
    timestamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%S")
    return f"{stem}_processed_{timestamp}.{extension}"
