"""Tests for the selection undo/redo history."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from mosaiceditor.core.history import SelectionHistory
from mosaiceditor.core.models import Brush, Rectangle

RECT_A = Rectangle(x=0, y=0, width=10, height=10)
RECT_B = Rectangle(x=20, y=20, width=10, height=10)
DAB = Brush(cx=5, cy=5, r=3)

selection_sets = st.lists(
    st.builds(
        Rectangle,
        x=st.integers(min_value=0, max_value=50),
        y=st.integers(min_value=0, max_value=50),
        width=st.integers(min_value=6, max_value=30),
        height=st.integers(min_value=6, max_value=30),
    ),
    max_size=4,
).map(tuple)


class TestSelectionHistory:
    """Tests for SelectionHistory."""

    def test_initial_state(self):
        """Test a fresh history holds only the empty set."""
        history = SelectionHistory()
        assert history.present == ()
        assert history.can_undo is False
        assert history.can_redo is False
        assert history.history_length == 1
        assert history.current_index == 0

    def test_commit_undo_redo(self):
        """Test commit, undo and redo move the present."""
        history = SelectionHistory()
        assert history.commit((RECT_A,)) is True
        assert history.commit((RECT_A, RECT_B)) is True

        assert history.undo() is True
        assert history.present == (RECT_A,)
        assert history.undo() is True
        assert history.present == ()
        assert history.undo() is False

        assert history.redo() is True
        assert history.redo() is True
        assert history.present == (RECT_A, RECT_B)
        assert history.redo() is False

    def test_commit_equal_state_is_ignored(self):
        """Test committing the present state is a no-op."""
        history = SelectionHistory()
        history.commit((RECT_A,))
        assert history.commit((RECT_A,)) is False
        assert history.history_length == 2

    def test_commit_after_undo_discards_future(self):
        """Test a commit after undo drops the redo branch."""
        history = SelectionHistory()
        history.commit((RECT_A,))
        history.commit((RECT_A, RECT_B))
        history.undo()
        history.commit((RECT_A, DAB))

        assert history.can_redo is False
        assert history.future == []
        assert history.past == [()]
        assert history.present == (RECT_A, DAB)

        assert history.redo() is False
        assert history.present == (RECT_A, DAB)

    def test_go_to(self):
        """Test jumping to an absolute history index."""
        history = SelectionHistory()
        history.commit((RECT_A,))
        history.commit((RECT_A, RECT_B))

        assert history.go_to(0) is True
        assert history.present == ()
        assert history.future == [(RECT_A,), (RECT_A, RECT_B)]
        assert history.go_to(2) is True
        assert history.present == (RECT_A, RECT_B)

    def test_go_to_rejects_out_of_range_and_current(self):
        """Test invalid or current indices are refused."""
        history = SelectionHistory()
        history.commit((RECT_A,))
        assert history.go_to(1) is False
        assert history.go_to(5) is False
        assert history.go_to(-1) is False

    def test_max_depth_drops_oldest(self):
        """Test the oldest states are dropped past the depth cap."""
        history = SelectionHistory(max_depth=2)
        for width in range(6, 11):
            history.commit((Rectangle(x=0, y=0, width=width, height=10),))
        assert len(history.past) == 2
        assert history.past[0] == (Rectangle(x=0, y=0, width=8, height=10),)

    def test_invalid_max_depth(self):
        """Test non-positive depth caps are rejected."""
        with pytest.raises(ValueError, match="max_depth"):
            SelectionHistory(max_depth=0)

    def test_reset(self):
        """Test reset returns to the initial state."""
        history = SelectionHistory()
        history.commit((RECT_A,))
        history.undo()
        history.reset()
        assert history.present == ()
        assert history.can_undo is False
        assert history.can_redo is False

    @given(sets=st.lists(selection_sets, min_size=1, max_size=8))
    def test_undo_then_redo_restores_present(self, sets):
        """Test undo followed by redo restores the present."""
        history = SelectionHistory()
        for selection_set in sets:
            history.commit(selection_set)
        before = (history.past, history.present, history.future)

        if history.undo():
            history.redo()

        assert (history.past, history.present, history.future) == before

    @given(
        sets=st.lists(selection_sets, min_size=2, max_size=8),
        extra=selection_sets,
        undos=st.integers(min_value=1, max_value=4),
    )
    def test_commit_always_empties_future(self, sets, extra, undos):
        """Test every commit leaves no redo states."""
        history = SelectionHistory()
        for selection_set in sets:
            history.commit(selection_set)
        for _ in range(undos):
            history.undo()

        if history.commit(extra):
            assert history.future == []
            assert history.present == extra
