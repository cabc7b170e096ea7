"""Configuration model for the redaction editor."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from mosaiceditor.core.constants import (
    BRUSH_SIZE_RANGE,
    DEFAULT_BLUR_RADIUS,
    DEFAULT_BRUSH_SIZE,
    DEFAULT_EXPORT_QUALITY,
    DEFAULT_MOSAIC_BLOCK_SIZE,
    EDITOR_TOOLS,
    EFFECT_TYPES,
    EXPORT_FORMATS,
    MAX_UPLOAD_BYTES,
    MIN_SELECTION_SIZE,
    SUPPORTED_SOURCE_FORMATS,
)
from mosaiceditor.core.models import EffectConfig, ExportOptions

logger = logging.getLogger(__name__)


class EditorConfig(BaseModel):
    """Editor defaults and limits."""

    default_effect: str = Field("mosaic", description="Effect selected on load")
    mosaic_block_size: int = Field(DEFAULT_MOSAIC_BLOCK_SIZE, ge=2)
    blur_radius: int = Field(DEFAULT_BLUR_RADIUS, ge=1)
    default_tool: str = Field("rectangle")
    brush_size: int = Field(DEFAULT_BRUSH_SIZE, ge=1, le=200, description="Brush diameter")
    min_selection_size: int = Field(
        MIN_SELECTION_SIZE, ge=0, description="Rectangles must exceed this on both sides"
    )
    max_upload_bytes: int = Field(MAX_UPLOAD_BYTES, gt=0)
    allowed_formats: list[str] = Field(
        default_factory=lambda: list(SUPPORTED_SOURCE_FORMATS),
        description="Pillow format names accepted by the loader",
    )
    export_format: str = Field("png")
    export_quality: float = Field(DEFAULT_EXPORT_QUALITY, ge=0.0, le=1.0)
    history_max_depth: int | None = Field(
        None, ge=1, description="Cap on undo depth; None keeps all history"
    )
    preview_during_gesture: bool = Field(
        False, description="Recompute the preview while a drag or stroke is active"
    )

    @field_validator("default_effect")
    @classmethod
    def _validate_effect(cls, v: str) -> str:
        if v not in EFFECT_TYPES:
            msg = f"default_effect must be one of {list(EFFECT_TYPES)}"
            raise ValueError(msg)
        return v

    @field_validator("default_tool")
    @classmethod
    def _validate_tool(cls, v: str) -> str:
        if v not in EDITOR_TOOLS:
            msg = f"default_tool must be one of {EDITOR_TOOLS}"
            raise ValueError(msg)
        return v

    @field_validator("export_format")
    @classmethod
    def _validate_export_format(cls, v: str) -> str:
        v = "jpeg" if v.lower() == "jpg" else v.lower()
        if v not in EXPORT_FORMATS:
            msg = f"export_format must be one of {list(EXPORT_FORMATS)}"
            raise ValueError(msg)
        return v

    @field_validator("allowed_formats")
    @classmethod
    def _validate_allowed_formats(cls, v: list[str]) -> list[str]:
        v = [fmt.upper() for fmt in v]
        unknown = [fmt for fmt in v if fmt not in SUPPORTED_SOURCE_FORMATS]
        if unknown:
            msg = f"Unsupported source formats: {unknown}"
            raise ValueError(msg)
        return v

    @property
    def brush_size_in_supported_range(self) -> bool:
        """Whether ``brush_size`` lies in the envelope the editor controls offer."""
        low, high = BRUSH_SIZE_RANGE
        return low <= self.brush_size <= high

    def effect(self) -> EffectConfig:
        """Initial effect settings."""
        return EffectConfig(
            kind=self.default_effect,
            mosaic_block_size=self.mosaic_block_size,
            blur_radius=self.blur_radius,
        )

    def export_options(self) -> ExportOptions:
        return ExportOptions(format=self.export_format, quality=self.export_quality)

    @classmethod
    def from_file(cls, path: Path) -> EditorConfig:
        """Load configuration from a JSON file."""
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        config = cls.model_validate(data)
        logger.debug("Loaded editor config from %s", path)
        return config
