"""Build the filter matching an effect configuration."""

from __future__ import annotations

from mosaiceditor.core.models import EffectConfig
from mosaiceditor.filters.base import BaseFilter
from mosaiceditor.filters.blur import GaussianBlurFilter
from mosaiceditor.filters.mosaic import MosaicFilter


def create_filter(effect: EffectConfig) -> BaseFilter:
    """Create the filter for ``effect.kind`` with its active parameter."""
    match effect.kind:
        case "mosaic":
            return MosaicFilter(effect.mosaic_block_size)
        case "blur":
            return GaussianBlurFilter(effect.blur_radius)
        case _:
            msg = f"No filter for effect kind: {effect.kind}"
            raise ValueError(msg)
