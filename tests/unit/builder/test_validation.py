"""Tests for step gating and pre-commit validation."""

from __future__ import annotations

import pytest

from conftest import FIREBALL, HUMAN, LIGHT, MEND, WIZARD
from vagabond_builder.builder.economy import Economy
from vagabond_builder.builder.state import BuilderState, StatAssignment
from vagabond_builder.builder.validation import gate_reasons, step_complete, validate_state
from vagabond_builder.models.enums import BuilderStep, Stat


@pytest.fixture
def complete_state() -> BuilderState:
    return BuilderState(
        ancestry=HUMAN,
        character_class=WIZARD,
        stats=StatAssignment(array_id=3, slots=dict(zip(Stat, (6, 5, 4, 4, 4, 3)))),
        required_spells=[LIGHT],
        spells=[LIGHT, FIREBALL],
    )


class TestGating:
    """Tests for step gating."""

    def test_fresh_state(self) -> None:
        """Test which steps a new session may visit."""
        state = BuilderState()

        assert gate_reasons(state, BuilderStep.ANCESTRY) == []
        assert gate_reasons(state, BuilderStep.CLASS) == ["ancestry"]
        assert gate_reasons(state, BuilderStep.GEAR) == ["ancestry", "class", "stats"]

    def test_stats_gate(self) -> None:
        """Test that steps after stats need every stat assigned."""
        state = BuilderState(ancestry=HUMAN, character_class=WIZARD)

        assert gate_reasons(state, BuilderStep.STATS) == []
        assert gate_reasons(state, BuilderStep.PERKS) == ["stats"]

    def test_step_complete(self, complete_state: BuilderState) -> None:
        """Test that only the stats step has a completion test."""
        assert step_complete(BuilderState(), BuilderStep.STATS) is False
        assert step_complete(BuilderState(), BuilderStep.GEAR) is True
        assert step_complete(complete_state, BuilderStep.STATS) is True


class TestValidateState:
    """Tests for validate_state."""

    def test_valid(self, complete_state: BuilderState) -> None:
        """Test a complete state."""
        report = validate_state(complete_state, spell_cap=2)

        assert report.is_valid
        assert report.warnings == []

    def test_missing_selections(self) -> None:
        """Test that ancestry, class and stats are errors."""
        report = validate_state(BuilderState(), spell_cap=0)

        assert report.errors == ["ancestry", "class", "stats"]
        assert not report.is_valid

    def test_too_many_spells(self, complete_state: BuilderState) -> None:
        """Test that manual spells beyond the cap are an error."""
        complete_state.spells = [LIGHT, FIREBALL, MEND]

        assert validate_state(complete_state, spell_cap=2).errors == ["spells"]

    def test_required_spells_over_cap_allowed(self, complete_state: BuilderState) -> None:
        """Test that required spells alone never exceed the cap."""
        complete_state.required_spells = [LIGHT, MEND]
        complete_state.spells = [LIGHT, MEND]

        assert validate_state(complete_state, spell_cap=0).is_valid

    def test_warnings(self, complete_state: BuilderState) -> None:
        """Test budget, bonus point and skill warnings."""
        report = validate_state(
            complete_state,
            spell_cap=2,
            economy=Economy(budget=10, spend=20),
            bonus_budget=1,
            unfilled_skill_choices=2,
        )

        assert report.is_valid
        assert report.warnings == ["budget", "bonus_points", "skills"]
