"""Apply the redaction filter to every selection of a selection-set."""

from __future__ import annotations

import logging
import time

from mosaiceditor.core.buffer import PixelBuffer
from mosaiceditor.core.models import EffectConfig, Rectangle, Selection, SelectionSet
from mosaiceditor.core.selection import selection_bounds
from mosaiceditor.filters.factory import create_filter

logger = logging.getLogger(__name__)


def selection_to_region(selection: Selection) -> Rectangle:
    """Rectangle the filter runs over; a brush dab becomes its bounding box."""
    return selection_bounds(selection)


def compose(
    source: PixelBuffer, selections: SelectionSet, effect: EffectConfig
) -> PixelBuffer:
    """Return a filtered copy of ``source``; ``source`` is never modified.

    Selections are applied in order on the same working buffer, so a later
    selection overlapping an earlier one filters the already-filtered pixels.
    """
    start = time.perf_counter()
    result = source.copy()
    if not selections:
        return result

    pixel_filter = create_filter(effect)
    applied = 0
    for selection in selections:
        if pixel_filter.apply(result, selection_to_region(selection)):
            applied += 1

    logger.debug(
        "Composed %d/%d selections with %r in %.3fs",
        applied,
        len(selections),
        pixel_filter,
        time.perf_counter() - start,
    )
    return result
