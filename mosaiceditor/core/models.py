"""Core data models for the image redaction editor."""

from __future__ import annotations

import math
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from mosaiceditor.core.constants import (
    BLUR_RADIUS_RANGE,
    DEFAULT_BLUR_RADIUS,
    DEFAULT_EXPORT_QUALITY,
    DEFAULT_MOSAIC_BLOCK_SIZE,
    EFFECT_TYPES,
    EXPORT_FORMATS,
    MOSAIC_BLOCK_SIZE_RANGE,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity."""
    return math.floor(value + 0.5)


class Point(BaseModel):
    """A point in image space (original pixel grid)."""

    x: int = Field(..., description="Horizontal pixel coordinate")
    y: int = Field(..., description="Vertical pixel coordinate")

    model_config = {"frozen": True}

    def distance_to(self, other: Point) -> float:
        """Euclidean distance to another point."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def as_tuple(self) -> tuple[int, int]:
        return (self.x, self.y)


class Rectangle(BaseModel):
    """Axis-aligned rectangular selection in image space.

    The origin may lie outside the image when a drag leaves the canvas;
    filters clamp the region to the buffer before processing.
    """

    type: Literal["rectangle"] = "rectangle"
    x: int = Field(..., description="Left coordinate")
    y: int = Field(..., description="Top coordinate")
    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")

    model_config = {"frozen": True}

    @property
    def x2(self) -> int:
        """Exclusive right coordinate."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Exclusive bottom coordinate."""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, point: tuple[int, int] | Point) -> bool:
        """Check if a point is inside this rectangle (right/bottom exclusive)."""
        px, py = point.as_tuple() if isinstance(point, Point) else point
        return self.x <= px < self.x2 and self.y <= py < self.y2

    def as_region(self) -> tuple[int, int, int, int]:
        """Return ``(x, y, width, height)``."""
        return (self.x, self.y, self.width, self.height)

    def __str__(self) -> str:
        return f"Rectangle(x={self.x}, y={self.y}, w={self.width}, h={self.height})"


class Brush(BaseModel):
    """A single circular brush dab in image space."""

    type: Literal["brush"] = "brush"
    cx: int = Field(..., description="Center x")
    cy: int = Field(..., description="Center y")
    r: int = Field(..., ge=1, description="Radius in pixels")

    model_config = {"frozen": True}

    @property
    def bounds(self) -> Rectangle:
        """Bounding box of the dab: ``[cx - r, cy - r, 2r, 2r]``."""
        return Rectangle(
            x=self.cx - self.r, y=self.cy - self.r, width=2 * self.r, height=2 * self.r
        )

    def __str__(self) -> str:
        return f"Brush(cx={self.cx}, cy={self.cy}, r={self.r})"


Selection = Annotated[Rectangle | Brush, Field(discriminator="type")]

SelectionSet = tuple[Selection, ...]

_selection_list_adapter: TypeAdapter[list[Selection]] = TypeAdapter(list[Selection])


def parse_selections(data: Any) -> SelectionSet:
    """Parse a list of selection mappings (or a JSON string) into a selection-set."""
    if isinstance(data, str | bytes):
        return tuple(_selection_list_adapter.validate_json(data))
    return tuple(_selection_list_adapter.validate_python(data))


def dump_selections(selections: SelectionSet) -> list[dict[str, Any]]:
    """Serialize a selection-set to plain mappings."""
    return _selection_list_adapter.dump_python(list(selections))


class EffectConfig(BaseModel):
    """Redaction effect settings.

    Both parameters are kept so switching ``kind`` does not lose the other
    setting. Values outside the supported envelope are accepted.
    """

    kind: str = Field(default="mosaic", description="Effect: mosaic or blur")
    mosaic_block_size: int = Field(
        default=DEFAULT_MOSAIC_BLOCK_SIZE, ge=2, description="Mosaic block side"
    )
    blur_radius: int = Field(
        default=DEFAULT_BLUR_RADIUS, ge=1, description="Gaussian kernel radius"
    )

    model_config = {"frozen": True}

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        """Validate effect kind against supported effects."""
        v = v.strip().lower()
        if v not in EFFECT_TYPES:
            supported = list(EFFECT_TYPES.keys())
            msg = f"Unsupported effect: {v}. Must be one of {supported}"
            raise ValueError(msg)
        return v

    @property
    def active_parameter(self) -> int:
        """The parameter used by the current effect kind."""
        return self.mosaic_block_size if self.kind == "mosaic" else self.blur_radius

    @property
    def in_supported_range(self) -> bool:
        """Whether the active parameter lies in the supported envelope."""
        low, high = MOSAIC_BLOCK_SIZE_RANGE if self.kind == "mosaic" else BLUR_RADIUS_RANGE
        return low <= self.active_parameter <= high

    def with_kind(self, kind: str) -> EffectConfig:
        """Return a copy using another effect kind."""
        return EffectConfig.model_validate({**self.model_dump(), "kind": kind})

    def with_parameter(self, value: int) -> EffectConfig:
        """Return a copy with the active parameter replaced."""
        field = "mosaic_block_size" if self.kind == "mosaic" else "blur_radius"
        return EffectConfig.model_validate({**self.model_dump(), field: value})


class ScaleState(BaseModel):
    """Ratio of view-space to image-space pixels; never upscales."""

    scale: float = Field(default=1.0, gt=0.0, le=1.0)

    model_config = {"frozen": True}

    @classmethod
    def fit(
        cls, image_width: int, image_height: int, view_width: float, view_height: float
    ) -> ScaleState:
        """Largest scale that fits the image in the view, capped at 1."""
        if image_width <= 0 or image_height <= 0:
            msg = f"Invalid image size: {image_width}x{image_height}"
            raise ValueError(msg)
        if view_width <= 0 or view_height <= 0:
            msg = f"Invalid view size: {view_width}x{view_height}"
            raise ValueError(msg)
        return cls(scale=min(view_width / image_width, view_height / image_height, 1.0))

    def display_size(self, image_width: int, image_height: int) -> tuple[float, float]:
        """Size of the image in view space."""
        return (image_width * self.scale, image_height * self.scale)

    @property
    def percent(self) -> int:
        return round_half_up(self.scale * 100)


class ExportOptions(BaseModel):
    """Export request: output encoding and rasterisation size."""

    format: str = Field(default="png", description="Output format: png or jpeg")
    quality: float = Field(
        default=DEFAULT_EXPORT_QUALITY, ge=0.0, le=1.0, description="JPEG quality"
    )
    target_width: int | None = Field(default=None, gt=0)
    target_height: int | None = Field(default=None, gt=0)

    model_config = {"frozen": True}

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Normalise and validate the output format."""
        v = v.strip().lower()
        if v == "jpg":
            v = "jpeg"
        if v not in EXPORT_FORMATS:
            msg = f"Unsupported export format: {v}. Must be one of {list(EXPORT_FORMATS)}"
            raise ValueError(msg)
        return v

    @property
    def extension(self) -> str:
        return EXPORT_FORMATS[self.format]["extension"]

    @property
    def media_type(self) -> str:
        return EXPORT_FORMATS[self.format]["media_type"]

    def target_size(self, width: int, height: int) -> tuple[int, int]:
        """Resolve the output size for a ``width`` x ``height`` buffer.

        A single given dimension keeps the aspect ratio.
        """
        if self.target_width is not None and self.target_height is not None:
            return (self.target_width, self.target_height)
        if self.target_width is not None:
            return (self.target_width, max(1, round_half_up(height * self.target_width / width)))
        if self.target_height is not None:
            return (max(1, round_half_up(width * self.target_height / height)), self.target_height)
        return (width, height)


class PointerEvent(BaseModel):
    """Pointer input in view space."""

    x: float
    y: float
    constrain_square: bool = False

    model_config = {"frozen": True}


class ValidationResult(BaseModel):
    """Result of validation operations with errors and warnings."""

    is_valid: bool = Field(..., description="Whether validation passed")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    context: dict[str, str | int | float | bool] = Field(default_factory=dict)

    def add_error(self, error: str) -> None:
        """Add an error message and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    @model_validator(mode="after")
    def validate_consistency(self) -> Self:
        """A result carrying errors is never valid."""
        if self.errors:
            self.is_valid = False
        return self

    def __str__(self) -> str:
        status = "valid" if self.is_valid else "invalid"
        return (
            f"ValidationResult({status}, {len(self.errors)} errors, "
            f"{len(self.warnings)} warnings)"
        )
