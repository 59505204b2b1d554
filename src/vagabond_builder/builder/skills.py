"""Class skill training during the build.

A class trains some skills outright and offers choice pools ("pick two of
arcana, craft, medicine"). Extra training on the ancestry's traits adds one
more pool offering any skill. The state's skill list holds the guaranteed
skills plus the player's picks.
"""

from __future__ import annotations

import random

from vagabond_builder.builder.state import BuilderState
from vagabond_builder.core.exceptions import LockedSelectionError, SelectionError, SelectionLimitError
from vagabond_builder.models.enums import Skill
from vagabond_builder.models.items import AncestryItem, ClassItem, SkillChoice


def apply_class_skills(state: BuilderState, class_item: ClassItem) -> None:
    """Reset the trained skills to the class's guaranteed skills."""
    state.skills = list(dict.fromkeys(class_item.system.skill_grant.guaranteed))


def extra_training(ancestry: AncestryItem | None) -> int:
    """Extra skill picks granted by the ancestry's traits."""
    return sum(trait.extra_training for trait in ancestry.system.traits) if ancestry else 0


def skill_choices(class_item: ClassItem, ancestry: AncestryItem | None = None) -> list[SkillChoice]:
    """The class's choice pools followed by an any-skill pool for extra training."""
    choices = list(class_item.system.skill_grant.choices)
    extra = extra_training(ancestry)
    if extra:
        choices.append(SkillChoice(count=extra))
    return choices


def _allocate(state: BuilderState, choices: list[SkillChoice], guaranteed: list[Skill]) -> list[int]:
    """Count the picks held by each pool; a pick fills the first pool offering it with room."""
    filled = [0] * len(choices)
    for skill in state.skills:
        if skill in guaranteed:
            continue
        for index, choice in enumerate(choices):
            if filled[index] < choice.count and skill in choice.options():
                filled[index] += 1
                break
    return filled


def toggle_skill(
    state: BuilderState,
    class_item: ClassItem | None,
    skill: Skill,
    ancestry: AncestryItem | None = None,
) -> bool:
    """Train or untrain a skill.

    Adding is allowed when any choice pool offering the skill still has
    room, or when no pool offers it at all. Extra training from the
    ancestry is an extra pool offering every skill.

    Args:
        state: Builder state to mutate.
        class_item: The selected class.
        skill: Skill to toggle.
        ancestry: The selected ancestry, for extra training.

    Returns:
        True if the skill is now trained.

    Raises:
        SelectionError: If no class is selected.
        LockedSelectionError: If the skill is guaranteed by the class.
        SelectionLimitError: If every pool offering the skill is full.
    """
    if class_item is None:
        raise SelectionError("Select a class first", field_name="skills", invalid_value=skill.value)
    guaranteed = class_item.system.skill_grant.guaranteed
    if skill in guaranteed:
        raise LockedSelectionError("Class skills cannot be removed", field_name="skills", invalid_value=skill.value)

    if skill in state.skills:
        state.skills = [existing for existing in state.skills if existing != skill]
        return False

    choices = skill_choices(class_item, ancestry)
    filled = _allocate(state, choices, guaranteed)
    pools = [index for index, choice in enumerate(choices) if skill in choice.options()]
    if pools and not any(filled[index] < choices[index].count for index in pools):
        limit = max(choices[index].count for index in pools)
        raise SelectionLimitError("Skill choice is full", limit=limit, field_name="skills", invalid_value=skill.value)
    state.skills = [*state.skills, skill]
    return True


def randomize_skills(
    state: BuilderState,
    class_item: ClassItem,
    rng: random.Random,
    ancestry: AncestryItem | None = None,
) -> None:
    """Train the guaranteed skills plus a random fill of every choice pool."""
    apply_class_skills(state, class_item)
    guaranteed = class_item.system.skill_grant.guaranteed
    choices = skill_choices(class_item, ancestry)
    for index, choice in enumerate(choices):
        room = choice.count - _allocate(state, choices, guaranteed)[index]
        candidates = [skill for skill in choice.options() if skill not in state.skills]
        if room > 0 and candidates:
            state.skills = [*state.skills, *rng.sample(candidates, min(room, len(candidates)))]


def unfilled_choices(
    state: BuilderState,
    class_item: ClassItem | None,
    ancestry: AncestryItem | None = None,
) -> int:
    """Count the picks still open across the class's pools and extra training."""
    if class_item is None:
        return 0
    choices = skill_choices(class_item, ancestry)
    filled = _allocate(state, choices, class_item.system.skill_grant.guaranteed)
    return sum(max(0, choice.count - count) for choice, count in zip(choices, filled))


def trained_skills(state: BuilderState, class_item: ClassItem | None) -> list[Skill]:
    """Player picks merged with the class's guaranteed skills, deduplicated."""
    guaranteed = class_item.system.skill_grant.guaranteed if class_item else []
    return list(dict.fromkeys([*state.skills, *guaranteed]))


__all__ = [
    "apply_class_skills",
    "extra_training",
    "skill_choices",
    "toggle_skill",
    "randomize_skills",
    "unfilled_choices",
    "trained_skills",
]
