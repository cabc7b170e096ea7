"""Selection construction: rectangle drags, brush strokes and hit testing."""

from __future__ import annotations

import logging
import math
from typing import assert_never

from mosaiceditor.core.constants import MIN_SELECTION_SIZE
from mosaiceditor.core.models import (
    Brush,
    Point,
    Rectangle,
    Selection,
    SelectionSet,
    round_half_up,
)

logger = logging.getLogger(__name__)


def rectangle_from_drag(
    start: Point, end: Point, *, constrain_square: bool = False
) -> Rectangle:
    """Normalize a drag from ``start`` to ``end`` into a top-left rectangle.

    With ``constrain_square`` the signed height is forced to the signed width
    before normalization, so the square grows along the horizontal direction
    of the drag.
    """
    dx = end.x - start.x
    dy = dx if constrain_square else end.y - start.y
    return Rectangle(
        x=min(start.x, start.x + dx),
        y=min(start.y, start.y + dy),
        width=abs(dx),
        height=abs(dy),
    )


def is_committable(rect: Rectangle, min_size: int = MIN_SELECTION_SIZE) -> bool:
    """Rectangles must exceed ``min_size`` on both sides to be kept."""
    return rect.width > min_size and rect.height > min_size


def brush_radius(brush_diameter: int) -> int:
    return max(1, brush_diameter // 2)


def brush_spacing(brush_diameter: int) -> int:
    return max(1, brush_diameter // 4)


def interpolate_dabs(previous: Point, current: Point, brush_diameter: int) -> list[Brush]:
    """Dabs covering the segment from ``previous`` to ``current`` without gaps.

    Emits ``steps + 1`` dabs at ``t = i / steps`` where
    ``steps = max(1, ceil(d / spacing))``.
    """
    radius = brush_radius(brush_diameter)
    spacing = brush_spacing(brush_diameter)
    distance = previous.distance_to(current)
    steps = max(1, math.ceil(distance / spacing))

    dabs = []
    for i in range(steps + 1):
        t = i / steps
        dabs.append(
            Brush(
                cx=round_half_up(previous.x + (current.x - previous.x) * t),
                cy=round_half_up(previous.y + (current.y - previous.y) * t),
                r=radius,
            )
        )
    return dabs


class BrushStroke:
    """Accumulates the dabs of one freehand stroke."""

    def __init__(self, brush_diameter: int) -> None:
        if brush_diameter < 1:
            msg = f"brush_diameter must be >= 1, got {brush_diameter}"
            raise ValueError(msg)
        self.brush_diameter = brush_diameter
        self.dabs: list[Brush] = []
        self._last_point: Point | None = None

    @property
    def radius(self) -> int:
        return brush_radius(self.brush_diameter)

    @property
    def last_point(self) -> Point | None:
        return self._last_point

    def add_point(self, point: Point) -> list[Brush]:
        """Record a sampled point and return the dabs it produced."""
        if self._last_point is None:
            new_dabs = [Brush(cx=point.x, cy=point.y, r=self.radius)]
        else:
            new_dabs = interpolate_dabs(self._last_point, point, self.brush_diameter)
        self._last_point = point
        self.dabs.extend(new_dabs)
        return new_dabs

    def __len__(self) -> int:
        return len(self.dabs)


def selection_bounds(selection: Selection) -> Rectangle:
    """Axis-aligned rectangle a selection is filtered over."""
    match selection:
        case Rectangle():
            return selection
        case Brush():
            return selection.bounds
        case _:
            assert_never(selection)


def find_selection_at(selections: SelectionSet, point: Point) -> int | None:
    """Index of the topmost rectangle containing ``point``.

    Brush dabs are not hit-testable by point.
    """
    for index in range(len(selections) - 1, -1, -1):
        selection = selections[index]
        match selection:
            case Rectangle():
                if selection.contains(point):
                    return index
            case Brush():
                continue
            case _:
                assert_never(selection)
    return None


def remove_selection_at(selections: SelectionSet, point: Point) -> SelectionSet:
    """Selection-set without the rectangle hit at ``point`` (unchanged on miss)."""
    index = find_selection_at(selections, point)
    if index is None:
        return selections
    logger.debug("Removing selection %d at (%d, %d)", index, point.x, point.y)
    return selections[:index] + selections[index + 1 :]
