"""Level progression.

The XP needed for the next level depends on the table's pacing curve:

- quick: always 5
- normal: 5 x next level
- epic: 7 x next level
- saga: 10 x next level
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from vagabond_builder.models.enums import LevelPacing


class LevelProgress(BaseModel):
    """Level-up eligibility for a character.

    Attributes:
        level: Current level.
        xp: Accumulated experience.
        pacing: Curve used to compute the threshold.
        xp_required: XP needed to reach the next level.
        can_level_up: Whether the threshold has been met.
    """

    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=1)
    xp: int = Field(ge=0)
    pacing: LevelPacing
    xp_required: int
    can_level_up: bool

    @property
    def xp_remaining(self) -> int:
        return max(0, self.xp_required - self.xp)


def xp_required(level: int, pacing: LevelPacing | str = LevelPacing.NORMAL) -> int:
    """Get the XP needed to advance from a level to the next."""
    return LevelPacing(pacing).xp_required(level + 1)


def level_progress(
    level: int,
    xp: int,
    pacing: LevelPacing | str = LevelPacing.NORMAL,
) -> LevelProgress:
    """Compute level-up eligibility.

    Args:
        level: Current level.
        xp: Accumulated experience.
        pacing: XP curve name.

    Returns:
        LevelProgress for the character.
    """
    curve = LevelPacing(pacing)
    required = xp_required(level, curve)
    return LevelProgress(
        level=level,
        xp=xp,
        pacing=curve,
        xp_required=required,
        can_level_up=xp >= required,
    )


__all__ = [
    "LevelProgress",
    "xp_required",
    "level_progress",
]
