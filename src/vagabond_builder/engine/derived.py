"""Derived-stat engine.

Every total, difficulty and maximum on a Vagabond character is computed
here from the persisted base fields, the embedded items, and the active
bonus contributions. Nothing derived is stored; each pass starts from an
empty BonusLedger and runs in a fixed order:

1. Spellcasting attributes from the class item, then contributions.
2. Stat totals, with bonuses evaluated against the pre-bonus snapshot.
3. All other bonus lists, against a snapshot holding the stat totals.
4-12. Health, mana, speed, armor, inventory, saves, skills, luck, level.

A pass never raises for bad content: formulas fall back to 0 and
unknown contribution keys are logged and skipped.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vagabond_builder.core.config import Settings, get_settings
from vagabond_builder.core.constants import (
    DEFAULT_CRIT_NUMBER,
    DIFFICULTY_BASE,
    MAX_DIE_SIZE,
    MIN_CRIT_NUMBER,
    MIN_DIE_SIZE,
    SPEED_TABLE,
    STAT_MAX,
    STAT_MIN,
)
from vagabond_builder.core.logging import get_logger
from vagabond_builder.engine.formula import BonusSpec, RollData, evaluate
from vagabond_builder.engine.progression import LevelProgress, level_progress
from vagabond_builder.models.base import coerce_flag
from vagabond_builder.models.character import CharacterData, CharacterDocument
from vagabond_builder.models.enums import (
    AttackCategory,
    BeingType,
    ContributionMode,
    FavorHinder,
    ItemType,
    LevelPacing,
    Save,
    Size,
    Skill,
    Stat,
    WeaponSkill,
)
from vagabond_builder.models.items import AncestryItem, ClassItem, EquipmentItem, Item


logger = get_logger(__name__)

_E = TypeVar("_E", bound=StrEnum)


# =============================================================================
# Contribution Keys
# =============================================================================


def _category_key(category: AttackCategory, suffix: str) -> str:
    return f"universal{category.value.title()}{suffix}"


def _bonus_keys() -> frozenset[str]:
    keys = {f"stats.{stat}.bonus" for stat in Stat}
    keys |= {f"saves.{save}.bonus" for save in Save}
    keys |= {f"skills.{skill}.bonus" for skill in Skill}
    keys |= {f"weaponSkills.{skill}.bonus" for skill in WeaponSkill}
    keys |= {
        "health.bonus",
        "bonuses.hpPerLevel",
        "mana.bonus",
        "mana.castingMaxBonus",
        "speed.bonus",
        "inventory.bonusSlots",
        "armorBonus",
        "universalCheckBonus",
        "universalDamageBonus",
        "critBonus",
        "dieSizeBonus",
    }
    for category in AttackCategory:
        keys |= {
            _category_key(category, "DamageBonus"),
            f"critBonus.{category}",
            f"dieSizeBonus.{category}",
        }
    return frozenset(keys)


BONUS_KEYS = _bonus_keys()
"""Keys whose contributions are summed numeric bonus lists."""

DICE_KEYS = frozenset(
    {"universalDamageDice"} | {_category_key(category, "DamageDice") for category in AttackCategory}
)
"""Keys whose contributions are dice strings joined with '+'."""

OVERRIDE_KEYS = frozenset({
    "attributes.isSpellcaster",
    "attributes.manaMultiplier",
    "attributes.castingStat",
    "attributes.manaSkill",
    "attributes.size",
    "attributes.beingType",
    "critNumber",
    "spellDamageDieSize",
    "favorHinder",
})
"""Keys whose contributions replace an attribute outright."""


class Contribution(BaseModel):
    """A single active bonus contribution.

    Attributes:
        key: Host path of the bonus list or attribute, e.g. 'stats.might.bonus'.
            A leading 'system.' is stripped.
        value: Literal number or formula string.
        mode: Append to a bonus list or override an attribute.
        source: Optional label of the granting item or effect.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: BonusSpec = None
    mode: ContributionMode = ContributionMode.ADD
    source: str | None = None

    @field_validator("key", mode="after")
    @classmethod
    def strip_system_prefix(cls, value: str) -> str:
        return value.removeprefix("system.")


class BonusLedger:
    """Bonus lists and overrides accumulated for one derivation pass.

    A ledger is created empty for every pass, which is what keeps bonus
    aggregates from ever being persisted.
    """

    def __init__(self) -> None:
        self._bonuses: dict[str, list[BonusSpec]] = {key: [] for key in BONUS_KEYS}
        self._dice: dict[str, list[str]] = {key: [] for key in DICE_KEYS}
        self._overrides: dict[str, BonusSpec] = {}

    @classmethod
    def from_contributions(cls, contributions: Iterable[Contribution]) -> BonusLedger:
        ledger = cls()
        for contribution in contributions:
            ledger.apply(contribution)
        return ledger

    def apply(self, contribution: Contribution) -> bool:
        """Record a contribution.

        Args:
            contribution: The contribution to record.

        Returns:
            True if the key was recognized for the contribution's mode.
        """
        key = contribution.key
        if contribution.mode == ContributionMode.OVERRIDE:
            if key in OVERRIDE_KEYS:
                self._overrides[key] = contribution.value
                return True
        elif key in BONUS_KEYS:
            self._bonuses[key].append(contribution.value)
            return True
        elif key in DICE_KEYS:
            if contribution.value not in (None, ""):
                self._dice[key].append(str(contribution.value).strip())
            return True

        logger.warning(
            "Ignoring contribution with unknown key",
            key=key,
            mode=contribution.mode.value,
            source=contribution.source,
        )
        return False

    def bonuses(self, key: str) -> list[BonusSpec]:
        return list(self._bonuses.get(key, ()))

    def dice(self, key: str) -> list[str]:
        return list(self._dice.get(key, ()))

    def has_override(self, key: str) -> bool:
        return key in self._overrides

    def override(self, key: str) -> BonusSpec:
        return self._overrides.get(key)


# =============================================================================
# Derived Output
# =============================================================================


class SheetModel(BaseModel):
    """Base for derived, read-only sheet values."""

    model_config = ConfigDict(frozen=True)


class StatResult(SheetModel):
    value: int | None
    bonus: int
    total: int


class SaveResult(SheetModel):
    stats: tuple[Stat, Stat]
    bonus: int
    difficulty: int


class SkillResult(SheetModel):
    stat: Stat
    trained: bool
    bonus: int
    difficulty: int


class HealthResult(SheetModel):
    current: int
    max: int
    bonus: int
    per_level_bonus: int


class SpellcastingResult(SheetModel):
    is_spellcaster: bool
    mana_multiplier: int
    casting_stat: Stat
    mana_skill: Skill | None


class ManaResult(SheetModel):
    current: int
    max: int
    casting_max: int
    bonus: int
    casting_max_bonus: int


class SpeedResult(SheetModel):
    base: int
    crawl: int
    travel: int
    bonus: int


class InventoryResult(SheetModel):
    """Carrying capacity.

    Attributes:
        max_slots: 8 + Might + bonus slots - fatigue, at least 0.
        occupied_slots: Slots used by items that are not inside a container.
        available_slots: max_slots - occupied_slots, may be negative.
        total_items: Count of those items including zero-slot ones.
        bonus_slots: Evaluated bonus slots.
        fatigue: Fatigue level subtracted from capacity.
    """

    max_slots: int
    occupied_slots: int
    available_slots: int
    total_items: int
    bonus_slots: int
    fatigue: int


class LuckResult(SheetModel):
    current: int
    max: int


class CombatResult(SheetModel):
    """Universal combat bonuses.

    Attributes:
        check_bonus: Persisted check bonus plus contributions.
        damage_bonus: Bonus applied to every damage roll.
        category_damage_bonus: Extra damage bonus per attack category.
        damage_dice: Extra damage dice per category, general dice first.
        crit_threshold: Natural roll needed to crit, per category.
        die_size_bonus: Die size steps per category.
        spell_die_size: Final spell damage die.
        favor_hinder: Active roll modifier.
    """

    check_bonus: int
    damage_bonus: int
    category_damage_bonus: dict[AttackCategory, int]
    damage_dice: dict[AttackCategory, str]
    crit_threshold: dict[AttackCategory, int]
    die_size_bonus: dict[AttackCategory, int]
    spell_die_size: int
    favor_hinder: FavorHinder


class CharacterSheet(SheetModel):
    """Every derived value for one character, produced by a single pass."""

    level: int
    stats: dict[Stat, StatResult]
    saves: dict[Save, SaveResult]
    skills: dict[Skill, SkillResult]
    weapon_skills: dict[WeaponSkill, SkillResult]
    health: HealthResult
    spellcasting: SpellcastingResult
    mana: ManaResult
    speed: SpeedResult
    armor: int
    inventory: InventoryResult
    luck: LuckResult
    progress: LevelProgress
    combat: CombatResult
    size: Size
    being_type: BeingType
    ancestry: str | None = None
    character_class: str | None = None
    roll_data: dict[str, Any] = Field(default_factory=dict, repr=False)

    def total(self, stat: Stat) -> int:
        return self.stats[stat].total

    def difficulty(self, target: Save | Skill | WeaponSkill) -> int:
        """Get the difficulty of a save, skill or weapon skill."""
        if isinstance(target, Save):
            return self.saves[target].difficulty
        if isinstance(target, WeaponSkill):
            return self.weapon_skills[target].difficulty
        return self.skills[target].difficulty


# =============================================================================
# Engine
# =============================================================================


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _first_of(items: Sequence[Item], kind: type[Any]) -> Any:
    return next((item for item in items if isinstance(item, kind)), None)


def _coerce_enum(enum_type: type[_E], value: Any, key: str) -> _E | None:
    """Coerce an override value to an enum member, logging on failure."""
    try:
        return enum_type(str(value).strip())
    except ValueError:
        logger.warning("Ignoring invalid override", key=key, value=value)
        return None


class DerivedStatEngine:
    """Computes the CharacterSheet for a character.

    Example:
        >>> engine = DerivedStatEngine()
        >>> sheet = engine.prepare(document)
        >>> sheet.health.max
        3
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the engine.

        Args:
            settings: Rule settings; defaults to the global settings.
        """
        self._settings = settings or get_settings()

    def prepare(
        self,
        document: CharacterDocument,
        contributions: Iterable[Contribution] = (),
        *,
        pacing: LevelPacing | str | None = None,
    ) -> CharacterSheet:
        """Derive the sheet for a character document and its embedded items."""
        return self.derive(document.system, document.items, contributions, pacing=pacing)

    def derive(
        self,
        character: CharacterData,
        items: Sequence[Item] = (),
        contributions: Iterable[Contribution] = (),
        *,
        pacing: LevelPacing | str | None = None,
    ) -> CharacterSheet:
        """Run a full derivation pass.

        Args:
            character: Persisted character data.
            items: Embedded items.
            contributions: Active bonus contributions.
            pacing: XP curve; unknown names fall back to the configured level pacing.

        Returns:
            The derived CharacterSheet.
        """
        items = list(items)
        level = character.attributes.level
        class_item: ClassItem | None = _first_of(items, ClassItem)
        ancestry_item: AncestryItem | None = _first_of(items, AncestryItem)

        # Phase 1
        ledger = BonusLedger.from_contributions(contributions)

        # Phase 2
        base_totals = {stat: _clamp(character.stat_value(stat), STAT_MIN, STAT_MAX) for stat in Stat}
        pre_bonus = RollData.build(character, base_totals)
        stats: dict[Stat, StatResult] = {}
        for stat in Stat:
            bonus = evaluate(ledger.bonuses(f"stats.{stat}.bonus"), pre_bonus)
            stats[stat] = StatResult(
                value=character.stats[stat].value,
                bonus=bonus,
                total=_clamp(character.stat_value(stat) + bonus, STAT_MIN, STAT_MAX),
            )
        totals = {stat: result.total for stat, result in stats.items()}

        # Phase 3
        roll_data = RollData.build(character, totals)

        def bonus_for(key: str) -> int:
            return evaluate(ledger.bonuses(key), roll_data)

        spellcasting = self._spellcasting(character, class_item, ledger, roll_data)

        # Phase 4: health
        hp_bonus = bonus_for("health.bonus")
        per_level = bonus_for("bonuses.hpPerLevel")
        health = HealthResult(
            current=character.health.current,
            max=max(1, totals[Stat.MIGHT] * level + per_level * level + hp_bonus),
            bonus=hp_bonus,
            per_level_bonus=per_level,
        )

        # Phase 5: mana
        mana_bonus = bonus_for("mana.bonus")
        casting_bonus = bonus_for("mana.castingMaxBonus")
        if spellcasting.is_spellcaster:
            mana_max = spellcasting.mana_multiplier * level + mana_bonus
            casting_max = totals[spellcasting.casting_stat] + math.ceil(level / 2) + casting_bonus
        else:
            mana_max = casting_max = 0
        mana = ManaResult(
            current=character.mana.current,
            max=mana_max,
            casting_max=casting_max,
            bonus=mana_bonus,
            casting_max_bonus=casting_bonus,
        )

        # Phases 6-8
        speed = self._speed(totals[Stat.DEXTERITY], bonus_for("speed.bonus"))
        armor = self._armor(items) + bonus_for("armorBonus")
        inventory = self._inventory(character, items, totals[Stat.MIGHT], bonus_for("inventory.bonusSlots"))

        # Phase 9: saves
        saves: dict[Save, SaveResult] = {}
        for save in Save:
            first, second = save.stats
            bonus = bonus_for(f"saves.{save}.bonus")
            saves[save] = SaveResult(
                stats=save.stats,
                bonus=bonus,
                difficulty=DIFFICULTY_BASE - (totals[first] + totals[second]) - bonus,
            )

        # Phase 10: skills
        skills = {
            skill: self._skill(skill.stat, character.skills[skill].trained, totals, bonus_for(f"skills.{skill}.bonus"))
            for skill in Skill
        }
        weapon_skills = {
            skill: self._skill(
                skill.stat,
                character.weapon_skills[skill].trained,
                totals,
                bonus_for(f"weaponSkills.{skill}.bonus"),
            )
            for skill in WeaponSkill
        }

        # Phase 11: luck
        luck_max = totals[Stat.LUCK]
        current_luck = luck_max if character.current_luck is None else character.current_luck
        luck = LuckResult(current=_clamp(current_luck, 0, luck_max), max=luck_max)

        # Phase 12: level
        curve = _coerce_enum(LevelPacing, pacing, "pacing") if pacing else None
        progress = level_progress(level, character.attributes.xp, curve or self._settings.rules.level_pacing)

        size, being_type = self._ancestry_traits(character, ancestry_item, ledger)

        return CharacterSheet(
            level=level,
            stats=stats,
            saves=saves,
            skills=skills,
            weapon_skills=weapon_skills,
            health=health,
            spellcasting=spellcasting,
            mana=mana,
            speed=speed,
            armor=armor,
            inventory=inventory,
            luck=luck,
            progress=progress,
            combat=self._combat(character, ledger, roll_data),
            size=size,
            being_type=being_type,
            ancestry=ancestry_item.name if ancestry_item else None,
            character_class=class_item.name if class_item else None,
            roll_data=roll_data.to_dict(),
        )

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def _spellcasting(
        self,
        character: CharacterData,
        class_item: ClassItem | None,
        ledger: BonusLedger,
        roll_data: RollData,
    ) -> SpellcastingResult:
        """Load spellcasting attributes from the class, then apply overrides.

        Without a class item the persisted attributes are used.
        """
        attributes = character.attributes
        if class_item is not None:
            system = class_item.system
            is_spellcaster = system.is_spellcaster
            multiplier = system.mana_multiplier
            casting_stat = system.casting_stat or attributes.casting_stat
            mana_skill = system.mana_skill or attributes.mana_skill
        else:
            is_spellcaster = attributes.is_spellcaster
            multiplier = attributes.mana_multiplier
            casting_stat = attributes.casting_stat
            mana_skill = attributes.mana_skill

        if ledger.has_override("attributes.isSpellcaster"):
            is_spellcaster = coerce_flag(ledger.override("attributes.isSpellcaster"))
        if ledger.has_override("attributes.manaMultiplier"):
            multiplier = max(0, evaluate(ledger.override("attributes.manaMultiplier"), roll_data))
        if ledger.has_override("attributes.castingStat"):
            casting_stat = (
                _coerce_enum(Stat, ledger.override("attributes.castingStat"), "attributes.castingStat")
                or casting_stat
            )
        if ledger.has_override("attributes.manaSkill"):
            mana_skill = (
                _coerce_enum(Skill, ledger.override("attributes.manaSkill"), "attributes.manaSkill")
                or mana_skill
            )

        return SpellcastingResult(
            is_spellcaster=is_spellcaster,
            mana_multiplier=multiplier,
            casting_stat=casting_stat,
            mana_skill=mana_skill,
        )

    def _speed(self, dexterity: int, bonus: int) -> SpeedResult:
        threshold = max((key for key in SPEED_TABLE if key <= dexterity), default=min(SPEED_TABLE))
        tier = SPEED_TABLE[threshold]
        return SpeedResult(
            base=max(0, tier.base + bonus),
            crawl=max(0, tier.crawl),
            travel=max(0, tier.travel),
            bonus=bonus,
        )

    def _armor(self, items: Sequence[Item]) -> int:
        return sum(
            item.system.final_rating
            for item in items
            if isinstance(item, EquipmentItem) and item.is_armor and item.is_equipped
        )

    def _inventory(
        self,
        character: CharacterData,
        items: Sequence[Item],
        might: int,
        bonus_slots: int,
    ) -> InventoryResult:
        carried = [
            item
            for item in items
            if ItemType(item.type).is_inventory
            and isinstance(item, EquipmentItem)
            and not item.system.container_id
        ]
        occupied = sum(item.system.slots for item in carried if item.system.slots > 0)
        max_slots = max(
            0,
            self._settings.rules.base_inventory_slots + might + bonus_slots - character.fatigue,
        )
        return InventoryResult(
            max_slots=max_slots,
            occupied_slots=occupied,
            available_slots=max_slots - occupied,
            total_items=len(carried),
            bonus_slots=bonus_slots,
            fatigue=character.fatigue,
        )

    def _skill(self, stat: Stat, trained: bool, totals: Mapping[Stat, int], bonus: int) -> SkillResult:
        stat_total = totals[stat]
        contribution = stat_total * 2 if trained else stat_total
        return SkillResult(
            stat=stat,
            trained=trained,
            bonus=bonus,
            difficulty=DIFFICULTY_BASE - contribution - bonus,
        )

    def _combat(self, character: CharacterData, ledger: BonusLedger, roll_data: RollData) -> CombatResult:
        def bonus_for(key: str) -> int:
            return evaluate(ledger.bonuses(key), roll_data)

        crit_number = character.crit_number
        if ledger.has_override("critNumber"):
            crit_number = evaluate(ledger.override("critNumber"), roll_data) or DEFAULT_CRIT_NUMBER
        die_size = character.spell_damage_die_size
        if ledger.has_override("spellDamageDieSize"):
            die_size = evaluate(ledger.override("spellDamageDieSize"), roll_data) or die_size
        favor_hinder = character.favor_hinder
        if ledger.has_override("favorHinder"):
            favor_hinder = (
                _coerce_enum(FavorHinder, ledger.override("favorHinder"), "favorHinder") or favor_hinder
            )

        general_crit = bonus_for("critBonus")
        general_die = bonus_for("dieSizeBonus")
        general_dice = ledger.dice("universalDamageDice")

        category_damage: dict[AttackCategory, int] = {}
        damage_dice: dict[AttackCategory, str] = {}
        crit_threshold: dict[AttackCategory, int] = {}
        die_size_bonus: dict[AttackCategory, int] = {}
        for category in AttackCategory:
            category_damage[category] = bonus_for(_category_key(category, "DamageBonus"))
            dice = general_dice + ledger.dice(_category_key(category, "DamageDice"))
            damage_dice[category] = "+".join(dice)
            crit_threshold[category] = _clamp(
                crit_number - general_crit - bonus_for(f"critBonus.{category}"),
                MIN_CRIT_NUMBER,
                DEFAULT_CRIT_NUMBER,
            )
            die_size_bonus[category] = general_die + bonus_for(f"dieSizeBonus.{category}")

        return CombatResult(
            check_bonus=character.universal_check_bonus + bonus_for("universalCheckBonus"),
            damage_bonus=bonus_for("universalDamageBonus"),
            category_damage_bonus=category_damage,
            damage_dice=damage_dice,
            crit_threshold=crit_threshold,
            die_size_bonus=die_size_bonus,
            spell_die_size=_clamp(
                die_size + die_size_bonus[AttackCategory.SPELL],
                MIN_DIE_SIZE,
                MAX_DIE_SIZE,
            ),
            favor_hinder=favor_hinder,
        )

    def _ancestry_traits(
        self,
        character: CharacterData,
        ancestry_item: AncestryItem | None,
        ledger: BonusLedger,
    ) -> tuple[Size, BeingType]:
        """Resolve size and being type: override, then ancestry, then defaults."""
        size = character.attributes.size
        being_type = character.attributes.being_type
        if ledger.has_override("attributes.size"):
            size = _coerce_enum(Size, ledger.override("attributes.size"), "attributes.size") or size
        if ledger.has_override("attributes.beingType"):
            being_type = (
                _coerce_enum(BeingType, ledger.override("attributes.beingType"), "attributes.beingType")
                or being_type
            )
        if ancestry_item is not None:
            size = size or ancestry_item.system.size
            being_type = being_type or ancestry_item.system.ancestry_type
        return size or Size.MEDIUM, being_type or BeingType.HUMANLIKE


def prepare_character(
    document: CharacterDocument,
    contributions: Iterable[Contribution] = (),
    *,
    settings: Settings | None = None,
) -> CharacterSheet:
    """Convenience function to derive a sheet with a fresh engine."""
    return DerivedStatEngine(settings).prepare(document, contributions)


__all__ = [
    "BONUS_KEYS",
    "DICE_KEYS",
    "OVERRIDE_KEYS",
    "Contribution",
    "BonusLedger",
    "StatResult",
    "SaveResult",
    "SkillResult",
    "HealthResult",
    "SpellcastingResult",
    "ManaResult",
    "SpeedResult",
    "InventoryResult",
    "LuckResult",
    "CombatResult",
    "CharacterSheet",
    "DerivedStatEngine",
    "prepare_character",
]
