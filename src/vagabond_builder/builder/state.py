"""In-memory builder session state.

Nothing here is persisted until the character is committed. The state is
a plain pydantic model so it can be snapshotted for undo with
`model_copy(deep=True)` and round-tripped with `model_dump`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from vagabond_builder.models.enums import BuilderStep, Skill, Stat


class PickedValue(BaseModel):
    """A pool value picked up and waiting to be placed on a stat."""

    value: int
    pool_index: int


class StatAssignment(BaseModel):
    """Assignment of a d12 stat array to the six stats.

    Attributes:
        array_id: Selected array, or None before one is chosen.
        pool: Array values not yet placed on a stat.
        slots: Value placed on each stat.
        picked: Pool value currently picked up.
        bonus_points: Ancestry bonus points allocated per stat.
    """

    model_config = ConfigDict(validate_assignment=True)

    array_id: int | None = None
    pool: list[int] = Field(default_factory=list)
    slots: dict[Stat, int | None] = Field(default_factory=lambda: {stat: None for stat in Stat})
    picked: PickedValue | None = None
    bonus_points: dict[Stat, int] = Field(default_factory=dict)

    @property
    def assigned(self) -> list[int]:
        return [value for value in self.slots.values() if value is not None]

    @property
    def bonus_points_spent(self) -> int:
        return sum(self.bonus_points.values())


class BuilderState(BaseModel):
    """Everything the player has chosen so far.

    Attributes:
        current_step: Step being displayed.
        preview: Reference shown in the detail pane.
        ancestry: Selected ancestry reference.
        character_class: Selected class reference.
        stats: Stat array assignment.
        skills: Trained skills, including the class's guaranteed ones.
        perks: Perks the player added.
        class_perks: Perks granted automatically; not removable.
        required_spells: Spells granted by ancestry, class or perks.
        spells: Spell tray, required spells included.
        starting_pack: Selected starter pack reference.
        gear: Purchased gear references.
    """

    model_config = ConfigDict(validate_assignment=True)

    current_step: BuilderStep = BuilderStep.ANCESTRY
    preview: str | None = None
    ancestry: str | None = None
    character_class: str | None = None
    stats: StatAssignment = Field(default_factory=StatAssignment)
    skills: list[Skill] = Field(default_factory=list)
    perks: list[str] = Field(default_factory=list)
    class_perks: list[str] = Field(default_factory=list)
    required_spells: list[str] = Field(default_factory=list)
    spells: list[str] = Field(default_factory=list)
    starting_pack: str | None = None
    gear: list[str] = Field(default_factory=list)

    @property
    def all_perks(self) -> list[str]:
        """Granted and manual perks, deduplicated, granted first."""
        return list(dict.fromkeys([*self.class_perks, *self.perks]))

    def clear_preview_if(self, uuid: str) -> None:
        if self.preview == uuid:
            self.preview = None


__all__ = [
    "PickedValue",
    "StatAssignment",
    "BuilderState",
]
