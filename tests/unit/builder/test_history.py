"""Tests for builder undo/redo history."""

from __future__ import annotations

from conftest import HUMAN, WIZARD
from vagabond_builder.builder.history import SessionHistory
from vagabond_builder.builder.state import BuilderState


class TestSessionHistory:
    """Tests for SessionHistory."""

    def test_baseline_cannot_be_undone(self) -> None:
        """Test that undo stops at the first snapshot."""
        history = SessionHistory()
        history.push(BuilderState())

        assert history.can_undo is False
        assert history.undo() is None

    def test_undo_redo(self) -> None:
        """Test moving back and forward."""
        history = SessionHistory()
        history.push(BuilderState())
        history.push(BuilderState(ancestry=HUMAN))
        history.push(BuilderState(ancestry=HUMAN, character_class=WIZARD))

        previous = history.undo()
        assert previous is not None
        assert previous.character_class is None
        assert history.can_redo is True

        following = history.redo()
        assert following is not None
        assert following.character_class == WIZARD
        assert history.redo() is None

    def test_push_truncates_redo(self) -> None:
        """Test that a new snapshot discards the redo branch."""
        history = SessionHistory()
        history.push(BuilderState())
        history.push(BuilderState(ancestry=HUMAN))
        history.undo()

        history.push(BuilderState(character_class=WIZARD))

        assert history.can_redo is False
        assert len(history) == 2

    def test_bounded(self) -> None:
        """Test that old snapshots are dropped beyond the limit."""
        history = SessionHistory(max_history=3)
        for index in range(5):
            history.push(BuilderState(gear=[str(index)]))

        assert len(history) == 3
        history.undo()
        oldest = history.undo()
        assert oldest is not None
        assert oldest.gear == ["2"]
        assert history.undo() is None

    def test_snapshots_are_copies(self) -> None:
        """Test that stored and returned states are independent."""
        history = SessionHistory()
        state = BuilderState()
        history.push(state)
        history.push(BuilderState(ancestry=HUMAN))
        state.ancestry = WIZARD

        restored = history.undo()
        assert restored is not None
        assert restored.ancestry is None

        restored.gear.append("x")
        history.redo()
        baseline = history.undo()
        assert baseline is not None
        assert baseline.gear == []
