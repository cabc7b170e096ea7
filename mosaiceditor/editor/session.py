"""Editor session: owned state for one source image and its redaction edits."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from mosaiceditor.config import EditorConfig
from mosaiceditor.core.buffer import PixelBuffer
from mosaiceditor.core.constants import EDITOR_TOOLS
from mosaiceditor.core.history import SelectionHistory
from mosaiceditor.core.mapping import CoordinateMapper
from mosaiceditor.core.models import (
    EffectConfig,
    ExportOptions,
    Point,
    PointerEvent,
    Rectangle,
    ScaleState,
    Selection,
    SelectionSet,
)
from mosaiceditor.core.selection import (
    BrushStroke,
    is_committable,
    rectangle_from_drag,
    remove_selection_at,
    selection_bounds,
)
from mosaiceditor.filters.base import clamp_region
from mosaiceditor.pipeline.compose import compose
from mosaiceditor.pipeline.export import ExportPipeline, build_export_filename
from mosaiceditor.utils.image import ImageUtils

logger = logging.getLogger(__name__)

Observer = Callable[["RedactionSession"], None]


class RedactionSession:
    """Explicit editor state behind a small API.

    Holds the source buffer, the view scale, the effect settings and the
    selection history, turns view-space pointer input into selections, and
    keeps a preview buffer up to date. Renderers either poll ``render()`` and
    the geometry properties or register with ``subscribe``.

    All methods run synchronously on the caller's thread.
    """

    def __init__(self, config: EditorConfig | None = None) -> None:
        self.config = config or EditorConfig()
        self.effect: EffectConfig = self.config.effect()
        self.tool: str = self.config.default_tool
        self.brush_size: int = self.config.brush_size
        self.history = SelectionHistory(max_depth=self.config.history_max_depth)
        self.preview_enabled = True

        self._source: PixelBuffer | None = None
        self._source_name: str | None = None
        self._scale = ScaleState()
        self._mapper = CoordinateMapper(self._scale)
        self._preview: PixelBuffer | None = None
        self._observers: list[Observer] = []

        self._drag_start: Point | None = None
        self._current_rect: Rectangle | None = None
        self._stroke: BrushStroke | None = None

    # Image lifecycle

    @property
    def has_image(self) -> bool:
        return self._source is not None

    @property
    def source(self) -> PixelBuffer | None:
        return self._source

    @property
    def source_name(self) -> str | None:
        return self._source_name

    def load_image(
        self,
        buffer: PixelBuffer,
        name: str | None = None,
        view_size: tuple[float, float] | None = None,
    ) -> None:
        """Replace any current image; history and selections start empty."""
        self._source = buffer
        self._source_name = name
        self.history.reset()
        self._cancel_gesture()
        self.preview_enabled = True
        if view_size is not None:
            self._set_scale(ScaleState.fit(buffer.width, buffer.height, *view_size))
        else:
            self._set_scale(ScaleState())
        self._recompute_preview()
        logger.info("Image loaded: %s (%dx%d)", name or "<buffer>", *buffer.size)
        self._notify()

    def load_image_bytes(
        self,
        data: bytes,
        name: str | None = None,
        view_size: tuple[float, float] | None = None,
    ) -> None:
        """Decode and load an encoded image; raises ``ImageDecodeError``."""
        buffer = ImageUtils.decode_image(
            data, self.config.max_upload_bytes, self.config.allowed_formats
        )
        self.load_image(buffer, name=name, view_size=view_size)

    def remove_image(self) -> None:
        """Discard the image together with its history."""
        if self._source is None:
            return
        self._source = None
        self._source_name = None
        self._preview = None
        self.history.reset()
        self._cancel_gesture()
        self._set_scale(ScaleState())
        logger.info("Image removed")
        self._notify()

    # View scale

    @property
    def scale(self) -> ScaleState:
        return self._scale

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    def set_view_size(self, view_width: float, view_height: float) -> ScaleState:
        """Refit the scale to a new display area."""
        source = self._require_image()
        self._set_scale(ScaleState.fit(source.width, source.height, view_width, view_height))
        self._notify()
        return self._scale

    def _set_scale(self, scale: ScaleState) -> None:
        self._scale = scale
        self._mapper = CoordinateMapper(scale)

    # Effect and tool settings

    def set_effect(self, effect: EffectConfig) -> None:
        if effect == self.effect:
            return
        self.effect = effect
        self._recompute_preview()
        self._notify()

    def set_effect_kind(self, kind: str) -> None:
        self.set_effect(self.effect.with_kind(kind))

    def set_effect_parameter(self, value: int) -> None:
        """Change the block size or blur radius, whichever is active."""
        self.set_effect(self.effect.with_parameter(value))

    def set_tool(self, tool: str) -> None:
        if tool not in EDITOR_TOOLS:
            msg = f"Unknown tool: {tool}. Must be one of {EDITOR_TOOLS}"
            raise ValueError(msg)
        self.tool = tool

    def set_brush_size(self, size: int) -> None:
        if size < 1:
            msg = f"Brush size must be >= 1, got {size}"
            raise ValueError(msg)
        self.brush_size = size

    # Selections and history

    @property
    def selections(self) -> SelectionSet:
        """The committed selection-set that is rendered and exported."""
        return self.history.present

    @property
    def pending_selections(self) -> SelectionSet:
        """Committed selections plus the dabs of a stroke in progress."""
        if self._stroke is None:
            return self.history.present
        return self.history.present + tuple(self._stroke.dabs)

    @property
    def current_rectangle(self) -> Rectangle | None:
        """Rectangle being dragged, for overlay rendering."""
        return self._current_rect

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def set_selections(self, selections: SelectionSet) -> bool:
        """Commit a new selection-set; no-op if unchanged."""
        self._require_image()
        if not self.history.commit(self._drop_unrenderable(selections)):
            return False
        self._after_history_change()
        return True

    def add_selection(self, selection: Selection) -> bool:
        return self.set_selections(self.selections + (selection,))

    def remove_selection(self, index: int) -> bool:
        if not 0 <= index < len(self.selections):
            return False
        current = self.selections
        return self.set_selections(current[:index] + current[index + 1 :])

    def update_selection(self, index: int, **changes: Any) -> bool:
        """Replace fields of one selection (validated through its model)."""
        if not 0 <= index < len(self.selections):
            return False
        current = self.selections
        selection = current[index]
        updated = type(selection).model_validate({**selection.model_dump(), **changes})
        return self.set_selections(current[:index] + (updated,) + current[index + 1 :])

    def clear_selections(self) -> bool:
        return self.set_selections(())

    def undo(self) -> bool:
        if not self.history.undo():
            return False
        self._after_history_change()
        return True

    def redo(self) -> bool:
        if not self.history.redo():
            return False
        self._after_history_change()
        return True

    def go_to(self, index: int) -> bool:
        if not self.history.go_to(index):
            return False
        self._after_history_change()
        return True

    def _drop_unrenderable(self, selections: SelectionSet) -> SelectionSet:
        """Selections whose region is empty once clamped to the image are never stored."""
        source = self._require_image()
        kept = tuple(
            selection
            for selection in selections
            if clamp_region(
                *selection_bounds(selection).as_region(), source.width, source.height
            )
            is not None
        )
        if len(kept) != len(selections):
            logger.debug("Dropped %d selections outside the image", len(selections) - len(kept))
        return kept

    def _after_history_change(self) -> None:
        self._recompute_preview()
        self._notify()

    # Pointer input

    @property
    def gesture_active(self) -> bool:
        return self._drag_start is not None or self._stroke is not None

    def pointer_down(self, event: PointerEvent) -> None:
        """Start a rectangle drag or a brush stroke at a view-space point."""
        self._require_image()
        point = self._mapper.to_image_space(event.x, event.y)
        self._begin_gesture()

        if self.tool == "rectangle":
            self._drag_start = point
            self._current_rect = Rectangle(x=point.x, y=point.y, width=0, height=0)
        else:
            self._stroke = BrushStroke(self.brush_size)
            self._stroke.add_point(point)
        self._notify()

    def pointer_move(self, event: PointerEvent) -> None:
        if not self.gesture_active:
            return
        point = self._mapper.to_image_space(event.x, event.y)

        if self._drag_start is not None:
            self._current_rect = rectangle_from_drag(
                self._drag_start, point, constrain_square=event.constrain_square
            )
        elif self._stroke is not None:
            self._stroke.add_point(point)
        self._notify()

    def pointer_up(self, event: PointerEvent | None = None) -> bool:
        """Finish the gesture; returns True if a selection was committed."""
        if not self.gesture_active:
            return False
        if event is not None:
            self.pointer_move(event)

        committed = False
        if self._current_rect is not None:
            rect = self._current_rect
            if is_committable(rect, self.config.min_selection_size):
                committed = self.history.commit(
                    self._drop_unrenderable(self.selections + (rect,))
                )
            else:
                logger.debug("Discarded undersized selection %s", rect)
        elif self._stroke is not None and self._stroke.dabs:
            committed = self.history.commit(
                self._drop_unrenderable(self.selections + tuple(self._stroke.dabs))
            )
            logger.debug("Brush stroke committed with %d dabs", len(self._stroke))

        self._cancel_gesture()
        self._end_gesture()
        return committed

    def double_activate(self, event: PointerEvent) -> bool:
        """Delete the topmost rectangle under a view-space point."""
        self._require_image()
        point = self._mapper.to_image_space(event.x, event.y)
        remaining = remove_selection_at(self.selections, point)
        if remaining == self.selections:
            return False
        return self.set_selections(remaining)

    def _begin_gesture(self) -> None:
        self.preview_enabled = self.config.preview_during_gesture

    def _end_gesture(self) -> None:
        self.preview_enabled = True
        self._recompute_preview(force=True)
        self._notify()

    def _cancel_gesture(self) -> None:
        self._drag_start = None
        self._current_rect = None
        self._stroke = None

    # Rendering and export

    def render(self) -> PixelBuffer | None:
        """Latest preview; stale while a gesture suspends recomputation."""
        return self._preview

    def refresh_preview(self) -> PixelBuffer | None:
        self._recompute_preview(force=True)
        return self._preview

    def _recompute_preview(self, *, force: bool = False) -> None:
        if self._source is None:
            self._preview = None
            return
        if not (self.preview_enabled or force):
            return
        self._preview = compose(self._source, self.selections, self.effect)

    def export(self, options: ExportOptions | None = None) -> bytes:
        """Compose at native resolution and encode; raises ``ImageEncodeError``."""
        source = self._require_image()
        pipeline = ExportPipeline(options or self.config.export_options())
        return pipeline.export(source, self.selections, self.effect)

    def export_filename(
        self, options: ExportOptions | None = None, now: datetime | None = None
    ) -> str:
        options = options or self.config.export_options()
        return build_export_filename(self._source_name, options.format, now)

    # Observers

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Call ``callback(session)`` after each state change."""
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._observers):
            callback(self)

    def _require_image(self) -> PixelBuffer:
        if self._source is None:
            msg = "No image loaded"
            raise RuntimeError(msg)
        return self._source

    def __repr__(self) -> str:
        size = f"{self._source.width}x{self._source.height}" if self._source else "none"
        return (
            f"RedactionSession(image={size}, effect={self.effect.kind}, "
            f"selections={len(self.selections)})"
        )
