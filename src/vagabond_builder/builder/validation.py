"""Step gating and pre-commit validation."""

from __future__ import annotations

from pydantic import BaseModel, Field

from vagabond_builder.builder import stats as stat_assignment
from vagabond_builder.builder.economy import Economy
from vagabond_builder.builder.state import BuilderState
from vagabond_builder.models.enums import BuilderStep


class ValidationReport(BaseModel):
    """Result of validating a builder state.

    Errors block the commit; warnings are shown but do not.
    """

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def gate_reasons(state: BuilderState, target: BuilderStep) -> list[str]:
    """List what must be done before a step can be visited.

    Steps from class onward need an ancestry, steps from stats onward need
    a class, and steps after stats need all six stats assigned.
    """
    reasons: list[str] = []
    if target.index >= BuilderStep.CLASS.index and not state.ancestry:
        reasons.append("ancestry")
    if target.index >= BuilderStep.STATS.index and not state.character_class:
        reasons.append("class")
    if target.index > BuilderStep.STATS.index and not stat_assignment.is_complete(state.stats):
        reasons.append("stats")
    return reasons


def step_complete(state: BuilderState, step: BuilderStep) -> bool:
    """Whether a step is finished; only the stats step has a real test."""
    if step == BuilderStep.STATS:
        return stat_assignment.is_complete(state.stats)
    return True


def validate_state(
    state: BuilderState,
    *,
    spell_cap: int,
    economy: Economy | None = None,
    bonus_budget: int = 0,
    unfilled_skill_choices: int = 0,
) -> ValidationReport:
    """Validate the selections before commit.

    Args:
        state: Builder state.
        spell_cap: Spells allowed by the class.
        economy: Current economy, for the budget warning.
        bonus_budget: Ancestry stat bonus points available.
        unfilled_skill_choices: Skill picks still open.

    Returns:
        The ValidationReport.
    """
    report = ValidationReport()
    if not state.ancestry:
        report.errors.append("ancestry")
    if not state.character_class:
        report.errors.append("class")
    if not stat_assignment.is_complete(state.stats):
        report.errors.append("stats")
    manual_spells = [spell for spell in state.spells if spell not in state.required_spells]
    if manual_spells and len(state.spells) > spell_cap:
        report.errors.append("spells")

    if economy is not None and economy.is_over:
        report.warnings.append("budget")
    if state.stats.bonus_points_spent < bonus_budget:
        report.warnings.append("bonus_points")
    if unfilled_skill_choices > 0:
        report.warnings.append("skills")
    return report


__all__ = [
    "ValidationReport",
    "gate_reasons",
    "step_complete",
    "validate_state",
]
