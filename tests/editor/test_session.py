"""Tests for the editor session."""

from __future__ import annotations

import io
from datetime import datetime

import numpy as np
import pytest
from PIL import Image
from pydantic import ValidationError

from mosaiceditor.config import EditorConfig
from mosaiceditor.core.models import (
    Brush,
    EffectConfig,
    ExportOptions,
    PointerEvent,
    Rectangle,
)
from mosaiceditor.editor.session import RedactionSession
from mosaiceditor.pipeline.compose import compose
from mosaiceditor.utils.image import ImageDecodeError


@pytest.fixture
def session(make_gradient) -> RedactionSession:
    editor = RedactionSession()
    editor.load_image(make_gradient(100, 100), name="photo.png", view_size=(50, 50))
    return editor


def drag(editor: RedactionSession, start, end, *, constrain_square: bool = False) -> bool:
    editor.pointer_down(PointerEvent(x=start[0], y=start[1]))
    editor.pointer_move(PointerEvent(x=end[0], y=end[1], constrain_square=constrain_square))
    return editor.pointer_up()


class TestImageLifecycle:
    """Tests for loading and removing images."""

    def test_requires_image(self):
        """Test operations that need an image fail without one."""
        editor = RedactionSession()
        assert editor.has_image is False
        assert editor.render() is None
        with pytest.raises(RuntimeError, match="No image loaded"):
            editor.pointer_down(PointerEvent(x=0, y=0))
        with pytest.raises(RuntimeError, match="No image loaded"):
            editor.export()

    def test_load_fits_scale(self, session):
        """Test loading fits the scale to the view."""
        assert session.scale.scale == 0.5
        assert session.source_name == "photo.png"
        assert session.render() == session.source

    def test_load_resets_history(self, session, make_noise):
        """Test loading a new image resets history and scale."""
        session.add_selection(Rectangle(x=0, y=0, width=10, height=10))
        session.load_image(make_noise(40, 30))
        assert session.selections == ()
        assert session.can_undo is False
        assert session.scale.scale == 1.0

    def test_load_image_bytes(self, make_noise, encode_png):
        """Test loading from encoded bytes."""
        editor = RedactionSession()
        editor.load_image_bytes(encode_png(make_noise(40, 30)), name="noise.png")
        assert editor.source == make_noise(40, 30)

    def test_load_image_bytes_respects_config_limit(self, make_noise, encode_png):
        """Test the configured upload limit applies."""
        editor = RedactionSession(EditorConfig(max_upload_bytes=64))
        with pytest.raises(ImageDecodeError) as exc_info:
            editor.load_image_bytes(encode_png(make_noise(40, 30)))
        assert exc_info.value.error_code == "too_large"
        assert editor.has_image is False

    def test_remove_image(self, session):
        """Test removing the image discards its history."""
        session.add_selection(Rectangle(x=0, y=0, width=10, height=10))
        session.remove_image()
        assert session.has_image is False
        assert session.selections == ()
        assert session.render() is None

    def test_set_view_size(self, session):
        """Test refitting to a new view size."""
        assert session.set_view_size(200, 25).scale == 0.25
        assert session.mapper.scale == 0.25


class TestRectangleTool:
    """Tests for drag-to-select."""

    def test_drag_commits_image_space_rectangle(self, session):
        """Test a drag commits its image-space rectangle."""
        assert drag(session, (10, 10), (40, 30)) is True
        assert session.selections == (Rectangle(x=20, y=20, width=60, height=40),)
        assert session.current_rectangle is None

    def test_reverse_drag(self, session):
        """Test a reverse drag is normalized."""
        drag(session, (40, 30), (10, 10))
        assert session.selections == (Rectangle(x=20, y=20, width=60, height=40),)

    def test_square_constraint(self, session):
        """Test the square constraint during a drag."""
        drag(session, (10, 10), (40, 45), constrain_square=True)
        assert session.selections == (Rectangle(x=20, y=20, width=60, height=60),)

    def test_accidental_click_is_discarded(self, session):
        """Test tiny drags are discarded."""
        assert drag(session, (10, 10), (12, 30)) is False
        assert session.selections == ()
        assert session.can_undo is False

    def test_current_rectangle_during_drag(self, session):
        """Test the live rectangle during a drag."""
        session.pointer_down(PointerEvent(x=10, y=10))
        session.pointer_move(PointerEvent(x=20, y=20))
        assert session.current_rectangle == Rectangle(x=20, y=20, width=20, height=20)
        assert session.gesture_active is True

    def test_pointer_up_with_final_event(self, session):
        """Test a final pointer position is applied on release."""
        session.pointer_down(PointerEvent(x=0, y=0))
        assert session.pointer_up(PointerEvent(x=25, y=25)) is True
        assert session.selections == (Rectangle(x=0, y=0, width=50, height=50),)

    def test_pointer_up_without_gesture(self, session):
        """Test releasing without a gesture."""
        assert session.pointer_up() is False

    def test_drag_outside_image_commits_nothing(self, make_gradient):
        """Test a drag that never touches the image leaves history untouched."""
        editor = RedactionSession()
        editor.load_image(make_gradient(100, 100))
        assert drag(editor, (150, 150), (200, 200)) is False
        assert editor.selections == ()
        assert editor.can_undo is False

    def test_partly_visible_drag_is_kept(self, make_gradient):
        """Test a drag overlapping the image edge is committed as drawn."""
        editor = RedactionSession()
        editor.load_image(make_gradient(100, 100))
        assert drag(editor, (80, 80), (130, 130)) is True
        assert editor.selections == (Rectangle(x=80, y=80, width=50, height=50),)

    def test_double_activate_deletes_topmost(self, session):
        """Test double activation deletes the topmost rectangle."""
        drag(session, (0, 0), (30, 30))
        drag(session, (10, 10), (40, 40))
        assert session.double_activate(PointerEvent(x=20, y=20)) is True
        assert session.selections == (Rectangle(x=0, y=0, width=60, height=60),)
        assert session.double_activate(PointerEvent(x=45, y=45)) is False


class TestBrushTool:
    """Tests for freehand strokes."""

    def test_stroke_is_one_history_entry(self, session):
        """Test a whole stroke is one history entry."""
        session.set_tool("brush")
        session.set_brush_size(8)
        session.pointer_down(PointerEvent(x=5, y=5))
        session.pointer_move(PointerEvent(x=15, y=5))
        session.pointer_move(PointerEvent(x=15, y=15))

        assert session.selections == ()
        pending = session.pending_selections
        assert len(pending) > 2
        assert all(isinstance(dab, Brush) and dab.r == 4 for dab in pending)

        assert session.pointer_up() is True
        assert session.selections == pending
        assert session.history.history_length == 2

        session.undo()
        assert session.selections == ()

    def test_dabs_are_not_deletable_by_point(self, session):
        """Test brush dabs cannot be deleted by point."""
        session.set_tool("brush")
        session.pointer_down(PointerEvent(x=25, y=25))
        session.pointer_up()
        assert session.double_activate(PointerEvent(x=25, y=25)) is False
        assert len(session.selections) == 1

    def test_invalid_tool_and_size(self, session):
        """Test unknown tools and bad brush sizes are rejected."""
        with pytest.raises(ValueError, match="Unknown tool"):
            session.set_tool("lasso")
        with pytest.raises(ValueError, match="Brush size"):
            session.set_brush_size(0)


class TestPreview:
    """Tests for preview recomputation."""

    def test_preview_tracks_selections_and_effect(self, session):
        """Test the preview follows selections and effect changes."""
        rect = Rectangle(x=20, y=20, width=60, height=60)
        session.add_selection(rect)
        expected = compose(session.source, (rect,), session.effect)
        assert session.render() == expected

        session.set_effect_kind("blur")
        assert session.effect.kind == "blur"
        assert session.render() == compose(session.source, (rect,), session.effect)

        session.set_effect_parameter(3)
        assert session.effect.blur_radius == 3
        assert session.effect.mosaic_block_size == 10

    def test_preview_suspended_during_gesture(self, session):
        """Test preview recomputation waits for the gesture to end."""
        session.add_selection(Rectangle(x=0, y=0, width=20, height=20))
        before = session.render()

        session.pointer_down(PointerEvent(x=0, y=0))
        assert session.preview_enabled is False
        session.set_effect_kind("blur")
        assert session.render() is before

        session.pointer_up()
        assert session.preview_enabled is True
        assert session.render() == compose(session.source, session.selections, session.effect)

    def test_refresh_preview_during_gesture(self, session):
        """Test a forced refresh recomputes while the gesture suspends previews."""
        session.add_selection(Rectangle(x=0, y=0, width=20, height=20))
        session.pointer_down(PointerEvent(x=0, y=0))
        session.set_effect_kind("blur")

        refreshed = session.refresh_preview()
        assert refreshed == compose(session.source, session.selections, session.effect)
        assert session.render() is refreshed
        assert session.preview_enabled is False

    def test_preview_during_gesture_option(self, make_gradient):
        """Test the preview can stay live during gestures."""
        editor = RedactionSession(EditorConfig(preview_during_gesture=True))
        editor.load_image(make_gradient(50, 50))
        editor.pointer_down(PointerEvent(x=0, y=0))
        assert editor.preview_enabled is True

    def test_source_never_mutated(self, session, make_gradient):
        """Test the source buffer is never mutated."""
        drag(session, (0, 0), (50, 50))
        session.set_effect_kind("blur")
        session.export()
        assert session.source == make_gradient(100, 100)


class TestHistoryEditing:
    """Tests for programmatic selection edits and history navigation."""

    def test_undo_redo(self, session):
        """Test session undo and redo."""
        drag(session, (0, 0), (20, 20))
        drag(session, (25, 25), (45, 45))
        assert session.undo() is True
        assert len(session.selections) == 1
        assert session.redo() is True
        assert len(session.selections) == 2
        assert session.redo() is False

    def test_commit_after_undo_discards_redo(self, session):
        """Test a new commit after undo clears redo."""
        drag(session, (0, 0), (20, 20))
        session.undo()
        drag(session, (25, 25), (45, 45))
        assert session.can_redo is False

    def test_update_and_remove(self, session):
        """Test updating and removing a selection by index."""
        session.add_selection(Rectangle(x=0, y=0, width=10, height=10))
        assert session.update_selection(0, width=30) is True
        assert session.selections == (Rectangle(x=0, y=0, width=30, height=10),)
        assert session.update_selection(3, width=30) is False
        with pytest.raises(ValidationError):
            session.update_selection(0, width=-1)
        assert session.remove_selection(0) is True
        assert session.selections == ()

    def test_clear_and_go_to(self, session):
        """Test clearing and jumping through history."""
        session.add_selection(Rectangle(x=0, y=0, width=10, height=10))
        session.add_selection(Brush(cx=50, cy=50, r=5))
        assert session.clear_selections() is True
        assert session.go_to(1) is True
        assert session.selections == (Rectangle(x=0, y=0, width=10, height=10),)

    def test_unrenderable_selections_are_not_stored(self, session):
        """Test empty and off-image selections never reach the history."""
        assert session.add_selection(Rectangle(x=0, y=0, width=0, height=0)) is False
        assert session.add_selection(Rectangle(x=150, y=150, width=50, height=50)) is False
        assert session.add_selection(Brush(cx=300, cy=300, r=10)) is False
        assert session.selections == ()
        assert session.can_undo is False

    def test_update_to_empty_drops_selection(self, session):
        """Test an edit that leaves a rectangle empty removes it."""
        session.add_selection(Rectangle(x=0, y=0, width=10, height=10))
        assert session.update_selection(0, width=0) is True
        assert session.selections == ()


class TestObservers:
    """Tests for change notification."""

    def test_subscribe_and_unsubscribe(self, session):
        """Test observers are notified until unsubscribed."""
        calls = []
        unsubscribe = session.subscribe(calls.append)

        session.add_selection(Rectangle(x=0, y=0, width=10, height=10))
        assert calls == [session]

        unsubscribe()
        session.undo()
        assert len(calls) == 1

    def test_unchanged_effect_does_not_notify(self, session):
        """Test an unchanged effect does not notify."""
        calls = []
        session.subscribe(calls.append)
        session.set_effect(EffectConfig())
        assert calls == []


class TestExport:
    """Tests for exporting from a session."""

    def test_png_export_matches_preview(self, session):
        """Test PNG export matches the preview."""
        drag(session, (10, 10), (40, 40))
        data = session.export()
        image = Image.open(io.BytesIO(data))
        assert np.array_equal(np.asarray(image), session.render().data)

    def test_jpeg_export_and_filename(self, session):
        """Test JPEG export and its filename."""
        options = ExportOptions(format="jpeg", quality=0.7, target_width=50)
        image = Image.open(io.BytesIO(session.export(options)))
        assert image.format == "JPEG"
        assert image.size == (50, 50)

        name = session.export_filename(options, now=datetime(2024, 1, 2, 3, 4, 5))
        assert name == "photo_processed_20240102T030405.jpg"
