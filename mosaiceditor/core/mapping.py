"""Mapping between view space (scaled, on screen) and image space (original pixels)."""

from __future__ import annotations

from mosaiceditor.core.models import Point, ScaleState, round_half_up


class CoordinateMapper:
    """Pure conversion pair driven by a single scale factor."""

    def __init__(self, scale: float | ScaleState = 1.0) -> None:
        if isinstance(scale, ScaleState):
            scale = scale.scale
        if scale <= 0:
            msg = f"scale must be > 0, got {scale}"
            raise ValueError(msg)
        self.scale = float(scale)

    def to_image_space(self, view_x: float, view_y: float) -> Point:
        """View coordinates to the nearest image pixel."""
        return Point(
            x=round_half_up(view_x / self.scale),
            y=round_half_up(view_y / self.scale),
        )

    def to_view_space(self, image_x: float, image_y: float) -> tuple[float, float]:
        """Image coordinates to view coordinates, unrounded."""
        return (image_x * self.scale, image_y * self.scale)

    def size_to_view_space(self, width: float, height: float) -> tuple[float, float]:
        return self.to_view_space(width, height)

    def __repr__(self) -> str:
        return f"CoordinateMapper(scale={self.scale})"


def compute_scale(
    image_width: int, image_height: int, view_width: float, view_height: float
) -> ScaleState:
    """Fit scale for an image in a display area: ``min(vw/iw, vh/ih, 1)``."""
    return ScaleState.fit(image_width, image_height, view_width, view_height)
