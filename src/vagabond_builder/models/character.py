"""Character document schema.

Only base fields are persisted here. Every total, difficulty and maximum is
computed by the derived-stat engine on read and never stored back; bonus
contributions live in a per-pass ledger, not on the document.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from vagabond_builder.core.constants import (
    DEFAULT_CRIT_NUMBER,
    DEFAULT_SPELL_DIE_SIZE,
    MAX_DIE_SIZE,
    MAX_FATIGUE,
    MIN_CRIT_NUMBER,
    MIN_DIE_SIZE,
    STAT_MAX,
    STAT_MIN,
)
from vagabond_builder.models.base import DocumentModel, coerce_flag
from vagabond_builder.models.enums import (
    BeingType,
    FavorHinder,
    Size,
    Skill,
    Stat,
    WeaponSkill,
)
from vagabond_builder.models.items import Currency, Item


class StatValue(DocumentModel):
    """A base stat. Unassigned stats have no value."""

    value: int | None = Field(default=None, ge=STAT_MIN, le=STAT_MAX)


class SkillTraining(DocumentModel):
    """Training flag for a skill or weapon skill."""

    trained: bool = False


class Attributes(DocumentModel):
    """Level, experience, size, and spellcasting attributes.

    Spellcasting attributes are normally loaded from the embedded class
    item during derivation; the persisted values are the fallback.
    """

    level: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0)
    size: Size | None = None
    being_type: BeingType | None = None
    is_spellcaster: bool = False
    mana_multiplier: int = Field(default=0, ge=0)
    casting_stat: Stat = Stat.REASON
    mana_skill: Skill | None = None

    @field_validator("is_spellcaster", mode="before")
    @classmethod
    def coerce_spellcaster(cls, value: Any) -> bool:
        """Accept string and numeric spellcaster flags."""
        return coerce_flag(value)


class Details(DocumentModel):
    """Builder bookkeeping flags."""

    constructed: bool = False
    builder_dismissed: bool = False


class ResourcePool(DocumentModel):
    """The persisted current value of a resource whose maximum is derived."""

    current: int = Field(default=0, ge=0)


class CharacterData(DocumentModel):
    """The persisted `system` tree of a character.

    Attributes:
        attributes: Level, XP and spellcasting attributes.
        details: Builder flags.
        currency: Coins carried.
        stats: Base stat values.
        skills: Skill training flags.
        weapon_skills: Weapon skill training flags.
        health: Current HP.
        mana: Current mana.
        current_luck: Current luck, None until first derived.
        fatigue: Fatigue level; each point costs an inventory slot.
        studied_dice: Studied dice available.
        universal_check_bonus: Player-controlled check bonus.
        crit_number: Base critical threshold.
        spell_damage_die_size: Base spell damage die.
        favor_hinder: Active roll modifier.
    """

    attributes: Attributes = Field(default_factory=Attributes)
    details: Details = Field(default_factory=Details)
    currency: Currency = Field(default_factory=Currency)
    stats: dict[Stat, StatValue] = Field(default_factory=dict)
    skills: dict[Skill, SkillTraining] = Field(default_factory=dict)
    weapon_skills: dict[WeaponSkill, SkillTraining] = Field(default_factory=dict)
    health: ResourcePool = Field(default_factory=ResourcePool)
    mana: ResourcePool = Field(default_factory=ResourcePool)
    current_luck: int | None = Field(default=None, ge=0)
    fatigue: int = Field(default=0, ge=0, le=MAX_FATIGUE)
    studied_dice: int = Field(default=0, ge=0)
    universal_check_bonus: int = 0
    crit_number: int = Field(default=DEFAULT_CRIT_NUMBER, ge=MIN_CRIT_NUMBER, le=DEFAULT_CRIT_NUMBER)
    spell_damage_die_size: int = Field(default=DEFAULT_SPELL_DIE_SIZE, ge=MIN_DIE_SIZE, le=MAX_DIE_SIZE)
    favor_hinder: FavorHinder = FavorHinder.NONE

    @model_validator(mode="after")
    def fill_missing_entries(self) -> "CharacterData":
        """Ensure every stat, skill and weapon skill has an entry."""
        for stat in Stat:
            self.stats.setdefault(stat, StatValue())
        for skill in Skill:
            self.skills.setdefault(skill, SkillTraining())
        for weapon_skill in WeaponSkill:
            self.weapon_skills.setdefault(weapon_skill, SkillTraining())
        return self

    def stat_value(self, stat: Stat) -> int:
        """Get a base stat value, treating unassigned as 0."""
        return self.stats[stat].value or 0


class CharacterDocument(DocumentModel):
    """A character with its embedded items.

    Attributes:
        id: Document id.
        name: Character name.
        system: Persisted character data.
        items: Embedded items.
    """

    id: str
    name: str = ""
    system: CharacterData = Field(default_factory=CharacterData)
    items: list[Item] = Field(default_factory=list)


__all__ = [
    "StatValue",
    "SkillTraining",
    "Attributes",
    "Details",
    "ResourcePool",
    "CharacterData",
    "CharacterDocument",
]
