"""Core module - Pixel buffers, selection geometry, coordinate mapping and history."""

from mosaiceditor.core.buffer import PixelBuffer
from mosaiceditor.core.constants import (
    EFFECT_TYPES,
    EXPORT_FORMATS,
    SELECTION_TYPES,
    SUPPORTED_SOURCE_FORMATS,
)
from mosaiceditor.core.history import SelectionHistory
from mosaiceditor.core.mapping import CoordinateMapper, compute_scale
from mosaiceditor.core.models import (
    Brush,
    EffectConfig,
    ExportOptions,
    Point,
    PointerEvent,
    Rectangle,
    ScaleState,
    Selection,
    SelectionSet,
    ValidationResult,
    dump_selections,
    parse_selections,
)
from mosaiceditor.core.selection import (
    BrushStroke,
    find_selection_at,
    rectangle_from_drag,
    remove_selection_at,
    selection_bounds,
)

__all__ = [
    # Models
    "Brush",
    "EffectConfig",
    "ExportOptions",
    "PixelBuffer",
    "Point",
    "PointerEvent",
    "Rectangle",
    "ScaleState",
    "Selection",
    "SelectionSet",
    "ValidationResult",
    # Geometry and history
    "BrushStroke",
    "CoordinateMapper",
    "SelectionHistory",
    "compute_scale",
    "dump_selections",
    "find_selection_at",
    "parse_selections",
    "rectangle_from_drag",
    "remove_selection_at",
    "selection_bounds",
    # Constants
    "EFFECT_TYPES",
    "EXPORT_FORMATS",
    "SELECTION_TYPES",
    "SUPPORTED_SOURCE_FORMATS",
]
