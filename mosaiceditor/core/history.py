"""Linear undo/redo history of selection-set snapshots."""

from __future__ import annotations

import logging
from collections import deque

from mosaiceditor.core.models import SelectionSet

logger = logging.getLogger(__name__)


class SelectionHistory:
    """Past/present/future zipper over selection-sets.

    ``commit`` after an ``undo`` discards the undone branch. Depth is
    unbounded unless ``max_depth`` is given, in which case the oldest past
    entries are dropped first.
    """

    def __init__(
        self, initial: SelectionSet = (), max_depth: int | None = None
    ) -> None:
        if max_depth is not None and max_depth < 1:
            msg = f"max_depth must be >= 1, got {max_depth}"
            raise ValueError(msg)
        self._initial: SelectionSet = tuple(initial)
        self.max_depth = max_depth
        self._past: deque[SelectionSet] = deque(maxlen=max_depth)
        self._present: SelectionSet = self._initial
        self._future: deque[SelectionSet] = deque()

    @property
    def present(self) -> SelectionSet:
        return self._present

    @property
    def past(self) -> list[SelectionSet]:
        """Snapshot of past states, oldest first."""
        return list(self._past)

    @property
    def future(self) -> list[SelectionSet]:
        """Snapshot of future states, next redo first."""
        return list(self._future)

    @property
    def can_undo(self) -> bool:
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    @property
    def history_length(self) -> int:
        return len(self._past) + 1 + len(self._future)

    @property
    def current_index(self) -> int:
        return len(self._past)

    def commit(self, new_set: SelectionSet) -> bool:
        """Make ``new_set`` the present state.

        Returns False (and records nothing) when it equals the present state.
        """
        new_set = tuple(new_set)
        if new_set == self._present:
            return False
        self._past.append(self._present)
        self._present = new_set
        self._future.clear()
        logger.debug(
            "History commit: %d selections, depth %d", len(new_set), len(self._past)
        )
        return True

    def undo(self) -> bool:
        if not self._past:
            return False
        self._future.appendleft(self._present)
        self._present = self._past.pop()
        logger.debug("History undo: index %d", self.current_index)
        return True

    def redo(self) -> bool:
        if not self._future:
            return False
        self._past.append(self._present)
        self._present = self._future.popleft()
        logger.debug("History redo: index %d", self.current_index)
        return True

    def go_to(self, index: int) -> bool:
        """Jump to an absolute position in ``past + [present] + future``."""
        if index < 0 or index >= self.history_length or index == self.current_index:
            return False
        states = [*self._past, self._present, *self._future]
        self._past = deque(states[:index], maxlen=self.max_depth)
        self._present = states[index]
        self._future = deque(states[index + 1 :])
        logger.debug("History jump: index %d", index)
        return True

    def reset(self) -> None:
        """Clear past and future and return to the initial (empty) selection-set."""
        self._past.clear()
        self._future.clear()
        self._present = self._initial

    def __repr__(self) -> str:
        return (
            f"SelectionHistory(past={len(self._past)}, "
            f"present={len(self._present)} selections, future={len(self._future)})"
        )
