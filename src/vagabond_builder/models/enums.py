"""Enumeration types for the Vagabond character engine.

This module defines the enumerations used throughout the engine and the
builder: stats, skills, saves, item and equipment categories, builder
steps, and rule options. Fixed pairings (a skill's governing stat, a
save's stat pair, a metal's cost multiplier) are exposed as properties so
rules code never reaches for a global lookup table.
"""

from __future__ import annotations

from enum import StrEnum
from typing import NamedTuple


class Stat(StrEnum):
    """The six Vagabond stats, in canonical order.

    The declaration order is also the order used when a randomized stat
    array is auto-assigned.
    """

    MIGHT = "might"
    DEXTERITY = "dexterity"
    AWARENESS = "awareness"
    REASON = "reason"
    PRESENCE = "presence"
    LUCK = "luck"

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'MIG' for MIGHT).
        """
        return self.name[:3]


class Skill(StrEnum):
    """The twelve Vagabond skills.

    Each skill is governed by one stat, used for its difficulty.
    """

    # Reason skills
    ARCANA = "arcana"
    CRAFT = "craft"
    MEDICINE = "medicine"

    # Might skills
    BRAWL = "brawl"

    # Dexterity skills
    FINESSE = "finesse"
    SNEAK = "sneak"

    # Awareness skills
    DETECT = "detect"
    MYSTICISM = "mysticism"
    SURVIVAL = "survival"

    # Presence skills
    INFLUENCE = "influence"
    LEADERSHIP = "leadership"
    PERFORMANCE = "performance"

    @property
    def stat(self) -> Stat:
        """Get the stat that governs this skill.

        Returns:
            The Stat used for this skill's difficulty.
        """
        skill_stats: dict[Skill, Stat] = {
            Skill.ARCANA: Stat.REASON,
            Skill.CRAFT: Stat.REASON,
            Skill.MEDICINE: Stat.REASON,
            Skill.BRAWL: Stat.MIGHT,
            Skill.FINESSE: Stat.DEXTERITY,
            Skill.SNEAK: Stat.DEXTERITY,
            Skill.DETECT: Stat.AWARENESS,
            Skill.MYSTICISM: Stat.AWARENESS,
            Skill.SURVIVAL: Stat.AWARENESS,
            Skill.INFLUENCE: Stat.PRESENCE,
            Skill.LEADERSHIP: Stat.PRESENCE,
            Skill.PERFORMANCE: Stat.PRESENCE,
        }
        return skill_stats[self]


class WeaponSkill(StrEnum):
    """The four weapon skills used for attack checks."""

    MELEE = "melee"
    BRAWL = "brawl"
    FINESSE = "finesse"
    RANGED = "ranged"

    @property
    def stat(self) -> Stat:
        """Get the stat that governs this weapon skill.

        Returns:
            The Stat used for this weapon skill's difficulty.
        """
        weapon_stats: dict[WeaponSkill, Stat] = {
            WeaponSkill.MELEE: Stat.MIGHT,
            WeaponSkill.BRAWL: Stat.MIGHT,
            WeaponSkill.FINESSE: Stat.DEXTERITY,
            WeaponSkill.RANGED: Stat.AWARENESS,
        }
        return weapon_stats[self]


class Save(StrEnum):
    """The three saving throws."""

    REFLEX = "reflex"
    ENDURE = "endure"
    WILL = "will"

    @property
    def stats(self) -> tuple[Stat, Stat]:
        """Get the pair of stats summed for this save.

        Endure counts Might twice.

        Returns:
            Tuple of the two stats that reduce this save's difficulty.
        """
        save_stats: dict[Save, tuple[Stat, Stat]] = {
            Save.REFLEX: (Stat.DEXTERITY, Stat.AWARENESS),
            Save.ENDURE: (Stat.MIGHT, Stat.MIGHT),
            Save.WILL: (Stat.REASON, Stat.PRESENCE),
        }
        return save_stats[self]


class ItemType(StrEnum):
    """Document type of an item."""

    ANCESTRY = "ancestry"
    CLASS = "class"
    PERK = "perk"
    SPELL = "spell"
    EQUIPMENT = "equipment"
    WEAPON = "weapon"
    ARMOR = "armor"
    GEAR = "gear"
    STARTER_PACK = "starterPack"
    VEHICLE_PART = "vehiclePart"

    @property
    def is_inventory(self) -> bool:
        """Whether items of this type occupy inventory slots."""
        return self in (ItemType.EQUIPMENT, ItemType.WEAPON, ItemType.ARMOR, ItemType.GEAR)


class EquipmentType(StrEnum):
    """Category of an equipment item."""

    WEAPON = "weapon"
    ARMOR = "armor"
    GEAR = "gear"
    ALCHEMICAL = "alchemical"
    RELIC = "relic"
    CONTAINER = "container"


class Grip(StrEnum):
    """How a weapon is held."""

    ONE_HANDED = "1H"
    TWO_HANDED = "2H"
    FIST = "F"
    VERSATILE = "V"


class EquipmentState(StrEnum):
    """How a weapon is currently equipped."""

    UNEQUIPPED = "unequipped"
    ONE_HAND = "oneHand"
    TWO_HANDS = "twoHands"


class ArmorType(StrEnum):
    """Armor weight class."""

    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"

    @property
    def rating(self) -> int:
        """Get the base armor rating.

        Returns:
            Armor rating before metal adjustments.
        """
        ratings = {ArmorType.LIGHT: 1, ArmorType.MEDIUM: 2, ArmorType.HEAVY: 3}
        return ratings[self]

    @property
    def might_requirement(self) -> int:
        """Get the Might needed to wear this armor unhindered.

        Returns:
            Minimum Might value.
        """
        requirements = {ArmorType.LIGHT: 3, ArmorType.MEDIUM: 4, ArmorType.HEAVY: 5}
        return requirements[self]


class MetalData(NamedTuple):
    """Cost multiplier and slot/armor adjustments for an equipment metal."""

    multiplier: int
    slot_modifier: int = 0
    armor_modifier: int = 0


class Metal(StrEnum):
    """Material an equipment item is forged from."""

    NONE = "none"
    COMMON = "common"
    ADAMANT = "adamant"
    COLD_IRON = "coldIron"
    SILVER = "silver"
    MYTHRAL = "mythral"
    ORICHALCUM = "orichalcum"

    @property
    def data(self) -> MetalData:
        """Get the cost and slot effects of this metal.

        Returns:
            MetalData for this metal.
        """
        metals = {
            Metal.NONE: MetalData(multiplier=1),
            Metal.COMMON: MetalData(multiplier=1),
            Metal.ADAMANT: MetalData(multiplier=50, slot_modifier=1, armor_modifier=1),
            Metal.COLD_IRON: MetalData(multiplier=20),
            Metal.SILVER: MetalData(multiplier=10),
            Metal.MYTHRAL: MetalData(multiplier=50, slot_modifier=-1),
            Metal.ORICHALCUM: MetalData(multiplier=50),
        }
        return metals[self]


class Size(StrEnum):
    """Creature sizes."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE = "huge"
    GIANT = "giant"
    COLOSSAL = "colossal"


class BeingType(StrEnum):
    """Being types for ancestries and creatures."""

    HUMANLIKE = "Humanlike"
    FAE = "Fae"
    CRYPTID = "Cryptid"
    ARTIFICIALS = "Artificials"
    BEASTS = "Beasts"
    OUTERS = "Outers"
    PRIMORDIALS = "Primordials"
    UNDEAD = "Undead"


class FavorHinder(StrEnum):
    """Roll modifier state."""

    NONE = "none"
    FAVOR = "favor"
    HINDER = "hinder"


class LevelPacing(StrEnum):
    """XP curves for level advancement."""

    QUICK = "quick"
    NORMAL = "normal"
    EPIC = "epic"
    SAGA = "saga"

    def xp_required(self, next_level: int) -> int:
        """Get the XP needed to reach the given level.

        Args:
            next_level: The level being advanced to.

        Returns:
            XP threshold for that level.
        """
        if self is LevelPacing.QUICK:
            return 5
        multipliers = {LevelPacing.NORMAL: 5, LevelPacing.EPIC: 7, LevelPacing.SAGA: 10}
        return multipliers[self] * next_level


class AttackCategory(StrEnum):
    """Sources of damage that carry separate bonuses."""

    WEAPON = "weapon"
    SPELL = "spell"
    ALCHEMICAL = "alchemical"


class ContributionMode(StrEnum):
    """How an active contribution is applied during derivation."""

    ADD = "add"
    """Append the value to a bonus list."""

    OVERRIDE = "override"
    """Replace an attribute value outright."""


class BuilderStep(StrEnum):
    """Character builder steps, in the order they are visited."""

    ANCESTRY = "ancestry"
    CLASS = "class"
    STATS = "stats"
    PERKS = "perks"
    SPELLS = "spells"
    STARTING_PACKS = "starting-packs"
    GEAR = "gear"

    @property
    def index(self) -> int:
        """Get the zero-based position of this step."""
        return list(BuilderStep).index(self)

    @property
    def next(self) -> BuilderStep | None:
        """Get the following step, or None on the last step."""
        steps = list(BuilderStep)
        position = steps.index(self)
        return steps[position + 1] if position + 1 < len(steps) else None

    @property
    def previous(self) -> BuilderStep | None:
        """Get the preceding step, or None on the first step."""
        steps = list(BuilderStep)
        position = steps.index(self)
        return steps[position - 1] if position > 0 else None


__all__ = [
    "Stat",
    "Skill",
    "WeaponSkill",
    "Save",
    "ItemType",
    "EquipmentType",
    "Grip",
    "EquipmentState",
    "ArmorType",
    "MetalData",
    "Metal",
    "Size",
    "BeingType",
    "FavorHinder",
    "LevelPacing",
    "AttackCategory",
    "ContributionMode",
    "BuilderStep",
]
