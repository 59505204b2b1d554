"""Undo/redo history for builder sessions."""

from __future__ import annotations

from vagabond_builder.builder.state import BuilderState
from vagabond_builder.core.constants import HISTORY_SIZE


class SessionHistory:
    """Manages the undo/redo stack of builder state snapshots.

    The first pushed state is the baseline and can never be undone past.
    Pushing after an undo discards the redo branch.
    """

    def __init__(self, max_history: int = HISTORY_SIZE) -> None:
        self._history: list[BuilderState] = []
        self._current_index: int = -1
        self._max_history = max(1, max_history)

    def push(self, state: BuilderState) -> None:
        """Add a snapshot, truncating any redo history."""
        self._history = self._history[: self._current_index + 1]
        self._history.append(state.model_copy(deep=True))
        self._current_index += 1

        if len(self._history) > self._max_history:
            self._history.pop(0)
            self._current_index -= 1

    def undo(self) -> BuilderState | None:
        """Move back in history, returning a copy of the earlier state."""
        if self.can_undo:
            self._current_index -= 1
            return self._history[self._current_index].model_copy(deep=True)
        return None

    def redo(self) -> BuilderState | None:
        """Move forward in history, returning a copy of the later state."""
        if self.can_redo:
            self._current_index += 1
            return self._history[self._current_index].model_copy(deep=True)
        return None

    @property
    def can_undo(self) -> bool:
        return self._current_index > 0

    @property
    def can_redo(self) -> bool:
        return self._current_index < len(self._history) - 1

    def __len__(self) -> int:
        return len(self._history)


__all__ = [
    "SessionHistory",
]
