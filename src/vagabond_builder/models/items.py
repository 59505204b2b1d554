"""Item document schemas.

Items are polymorphic on their `type` field. Each variant carries a
schema-validated `system` payload:

- Ancestry: size, being type, and traits that may grant stat bonus
  points, required spells, or perks.
- Class: spellcasting metadata, skill grants, leveled features and the
  leveled spell table.
- Perk: prerequisites and spells the perk requires.
- Spell: damage metadata and the favorite flag.
- Equipment (equipment/weapon/armor/gear): cost, slots and
  type-specific stat blocks, with metal adjustments derived on read.
- StarterPack: bundled item references plus a currency grant.
- VehiclePart: descriptive only.

Items are either embedded in a character or referenced by `uuid` from a
library pack during the build.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from vagabond_builder.core.constants import (
    COPPER_PER_BASE_UNIT,
    GOLD_IN_BASE_UNITS,
    SILVER_IN_BASE_UNITS,
)
from vagabond_builder.models.base import DocumentModel, coerce_flag
from vagabond_builder.models.enums import (
    ArmorType,
    BeingType,
    EquipmentState,
    EquipmentType,
    Grip,
    Metal,
    Size,
    Skill,
    Stat,
    WeaponSkill,
)


# =============================================================================
# Shared Fragments
# =============================================================================


class Currency(DocumentModel):
    """An amount of money in the three coin denominations."""

    gold: int = Field(default=0, ge=0)
    silver: int = Field(default=0, ge=0)
    copper: int = Field(default=0, ge=0)

    def to_base_units(self) -> float:
        """Convert to base units (silver): gold x10 + silver + copper/10."""
        return (
            self.gold * GOLD_IN_BASE_UNITS
            + self.silver * SILVER_IN_BASE_UNITS
            + self.copper / COPPER_PER_BASE_UNIT
        )

    def scaled(self, multiplier: int) -> Currency:
        """Return a copy with every denomination multiplied."""
        return Currency(
            gold=self.gold * multiplier,
            silver=self.silver * multiplier,
            copper=self.copper * multiplier,
        )

    @property
    def display(self) -> str:
        """Short human-readable form such as '5g 2s', or '-' when empty."""
        parts = [
            f"{amount}{suffix}"
            for amount, suffix in ((self.gold, "g"), (self.silver, "s"), (self.copper, "c"))
            if amount > 0
        ]
        return " ".join(parts) if parts else "-"


class ItemBase(DocumentModel):
    """Fields common to every item document.

    Attributes:
        id: Embedded document id, set once the item is owned by a character.
        uuid: Library reference the item was resolved from.
        name: Display name.
        img: Optional image path.
        flags: Host flags, passed through untouched.
    """

    id: str | None = None
    uuid: str | None = None
    name: str = ""
    img: str | None = None
    flags: dict[str, Any] = Field(default_factory=dict)

    def to_creation_data(self) -> dict[str, Any]:
        """Build the payload used to embed a copy of this item.

        The library identity is dropped and kept only as the `sourceId`
        flag, so the created item is a new document.

        Returns:
            Host-layout dictionary ready for create_embedded_items.
        """
        data = self.model_dump(by_alias=True, mode="json", exclude={"id", "uuid"})
        if self.uuid:
            data.setdefault("flags", {}).setdefault("core", {})["sourceId"] = self.uuid
        return data


# =============================================================================
# Ancestry
# =============================================================================


class AncestryTrait(DocumentModel):
    """A single ancestry trait and the builder grants attached to it."""

    name: str = ""
    description: str = ""
    stat_bonus_points: int = Field(default=0, ge=0, le=10)
    extra_training: int = Field(default=0, ge=0, le=10)
    required_spells: list[str] = Field(default_factory=list)
    allowed_perks: list[str] = Field(default_factory=list)
    perk_amount: int = Field(default=0, ge=0, le=10)


class AncestrySystem(DocumentModel):
    """Ancestry payload."""

    size: Size = Size.MEDIUM
    ancestry_type: BeingType = BeingType.HUMANLIKE
    traits: list[AncestryTrait] = Field(default_factory=list)

    @property
    def stat_bonus_points(self) -> int:
        """Total stat bonus points granted by all traits."""
        return sum(trait.stat_bonus_points for trait in self.traits)


class AncestryItem(ItemBase):
    """An ancestry item."""

    type: Literal["ancestry"] = "ancestry"
    system: AncestrySystem = Field(default_factory=AncestrySystem)


# =============================================================================
# Class
# =============================================================================


class SkillChoice(DocumentModel):
    """A pool the player picks `count` trained skills from.

    An empty pool means any skill may be picked.
    """

    count: int = Field(default=1, ge=0)
    pool: list[Skill] = Field(default_factory=list)

    def options(self) -> list[Skill]:
        """Get the skills this choice draws from."""
        return list(self.pool) if self.pool else list(Skill)


class SkillGrant(DocumentModel):
    """Skills a class trains outright plus the choices it offers."""

    guaranteed: list[Skill] = Field(default_factory=list)
    choices: list[SkillChoice] = Field(default_factory=list)


class LevelFeature(DocumentModel):
    """A class feature gained at a level."""

    level: int = Field(default=1, ge=1, le=10)
    name: str = ""
    description: str = ""
    required_spells: list[str] = Field(default_factory=list)
    allowed_perks: list[str] = Field(default_factory=list)
    perk_amount: int = Field(default=0, ge=0, le=10)
    granted_perks: list[str] = Field(default_factory=list)


class LevelSpells(DocumentModel):
    """Number of spells known at a level."""

    level: int = Field(default=1, ge=1, le=10)
    spells: int = Field(default=0, ge=0)


class ClassSystem(DocumentModel):
    """Class payload with spellcasting metadata."""

    is_spellcaster: bool = False
    mana_multiplier: int = Field(default=2, ge=0)
    casting_stat: Stat | None = None
    mana_skill: Skill | None = None
    skill_grant: SkillGrant = Field(default_factory=SkillGrant)
    level_features: list[LevelFeature] = Field(default_factory=list)
    level_spells: list[LevelSpells] = Field(default_factory=list)

    @field_validator("is_spellcaster", mode="before")
    @classmethod
    def coerce_spellcaster(cls, value: Any) -> bool:
        """Accept string and numeric spellcaster flags."""
        return coerce_flag(value)

    def features_at(self, level: int) -> list[LevelFeature]:
        """Get the features gained at a level."""
        return [feature for feature in self.level_features if feature.level == level]

    def spells_at(self, level: int) -> int:
        """Get the number of spells known at a level, 0 if unlisted."""
        for entry in self.level_spells:
            if entry.level == level:
                return entry.spells
        return 0


class ClassItem(ItemBase):
    """A class item."""

    type: Literal["class"] = "class"
    system: ClassSystem = Field(default_factory=ClassSystem)


# =============================================================================
# Perk & Spell
# =============================================================================


class StatRequirement(DocumentModel):
    """A minimum stat value, e.g. 'DEX 5+'."""

    stat: Stat = Stat.MIGHT
    value: int = Field(default=1, ge=1, le=10)


class PerkPrerequisites(DocumentModel):
    """Requirements a character must meet to take a perk."""

    stats: list[StatRequirement] = Field(default_factory=list)
    trained_skills: list[Skill | WeaponSkill] = Field(default_factory=list)
    spells: list[str] = Field(default_factory=list)
    has_any_spell: bool = False
    other: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether the perk has no checkable prerequisites."""
        return not (self.stats or self.trained_skills or self.spells or self.has_any_spell)


class PerkSystem(DocumentModel):
    """Perk payload."""

    description: str = ""
    prerequisites: PerkPrerequisites = Field(default_factory=PerkPrerequisites)
    required_spells: list[str] = Field(default_factory=list)


class PerkItem(ItemBase):
    """A perk item."""

    type: Literal["perk"] = "perk"
    system: PerkSystem = Field(default_factory=PerkSystem)


class SpellSystem(DocumentModel):
    """Spell payload."""

    description: str = ""
    damage_type: str = "-"
    damage_die_size: int | None = Field(default=None, ge=4, le=20)
    favorite: bool = False


class SpellItem(ItemBase):
    """A spell item."""

    type: Literal["spell"] = "spell"
    system: SpellSystem = Field(default_factory=SpellSystem)


# =============================================================================
# Equipment
# =============================================================================


class EquipmentSystem(DocumentModel):
    """Equipment payload shared by weapons, armor, gear, alchemicals and relics.

    Persisted fields hold base values; cost, slots and armor rating are
    derived properties that apply the metal adjustments. Relics ignore
    metal entirely.
    """

    equipment_type: EquipmentType = EquipmentType.GEAR
    equipped: bool = False
    quantity: int = Field(default=1, ge=0)
    base_cost: Currency = Field(default_factory=Currency)
    base_slots: int = 1
    container_id: str | None = None
    metal: Metal = Metal.NONE
    consumable: bool = False

    # Weapon fields
    grip: Grip = Grip.ONE_HANDED
    equipment_state: EquipmentState = EquipmentState.UNEQUIPPED
    weapon_skill: WeaponSkill = WeaponSkill.MELEE
    damage_one_hand: str = ""
    damage_two_hands: str = ""
    range: str = "close"
    properties: list[str] = Field(default_factory=list)

    # Armor fields
    armor_type: ArmorType = ArmorType.LIGHT

    @property
    def is_relic(self) -> bool:
        return self.equipment_type == EquipmentType.RELIC

    @property
    def metal_multiplier(self) -> int:
        """Cost multiplier from the metal, 1 for relics."""
        return 1 if self.is_relic else self.metal.data.multiplier

    @property
    def cost(self) -> Currency:
        """Final cost after the metal multiplier."""
        return self.base_cost.scaled(self.metal_multiplier)

    @property
    def slots(self) -> int:
        """Final slot cost after metal adjustments.

        Adamant adds a slot; mythral removes one but never below 1.
        """
        if self.is_relic:
            return self.base_slots
        if self.metal == Metal.MYTHRAL:
            return max(1, self.base_slots - 1)
        return self.base_slots + self.metal.data.slot_modifier

    @property
    def rating(self) -> int:
        return self.armor_type.rating

    @property
    def final_rating(self) -> int:
        """Armor rating including the metal bonus."""
        bonus = 0 if self.is_relic else self.metal.data.armor_modifier
        return self.rating + bonus

    @property
    def might_requirement(self) -> int:
        return self.armor_type.might_requirement

    @property
    def current_damage(self) -> str:
        """Damage formula for the current grip, with the adamant bonus."""
        if self.equipment_state == EquipmentState.TWO_HANDS:
            damage = self.damage_two_hands
        else:
            damage = self.damage_one_hand
        if self.metal != Metal.ADAMANT or self.is_relic:
            return damage
        if "d" in damage:
            return f"{damage}+1"
        try:
            return str(int(damage) + 1)
        except ValueError:
            return "1"


class EquipmentItem(ItemBase):
    """An inventory item: equipment, weapon, armor or gear."""

    type: Literal["equipment", "weapon", "armor", "gear"] = "equipment"
    system: EquipmentSystem = Field(default_factory=EquipmentSystem)

    @property
    def is_armor(self) -> bool:
        return self.type == "armor" or (
            self.type == "equipment" and self.system.equipment_type == EquipmentType.ARMOR
        )

    @property
    def is_weapon(self) -> bool:
        return self.type == "weapon" or (
            self.type == "equipment" and self.system.equipment_type == EquipmentType.WEAPON
        )

    @property
    def is_equipped(self) -> bool:
        """Whether the item is worn or wielded.

        Weapons track their grip state; anything other than unequipped
        counts as equipped.
        """
        if self.is_weapon:
            return self.system.equipment_state != EquipmentState.UNEQUIPPED
        return self.system.equipped


# =============================================================================
# Starter Pack & Vehicle Part
# =============================================================================


class StarterPackEntry(DocumentModel):
    """A library item bundled in a starter pack."""

    uuid: str
    quantity: int = Field(default=1, ge=1)


class StarterPackSystem(DocumentModel):
    """Starter pack payload."""

    description: str = ""
    items: list[StarterPackEntry] = Field(default_factory=list)
    currency: Currency = Field(default_factory=Currency)


class StarterPackItem(ItemBase):
    """A starter pack item."""

    type: Literal["starterPack"] = "starterPack"
    system: StarterPackSystem = Field(default_factory=StarterPackSystem)


class VehiclePartSystem(DocumentModel):
    """Vehicle part payload."""

    description: str = ""


class VehiclePartItem(ItemBase):
    """A vehicle part item."""

    type: Literal["vehiclePart"] = "vehiclePart"
    system: VehiclePartSystem = Field(default_factory=VehiclePartSystem)


Item = Annotated[
    Union[
        AncestryItem,
        ClassItem,
        PerkItem,
        SpellItem,
        EquipmentItem,
        StarterPackItem,
        VehiclePartItem,
    ],
    Field(discriminator="type"),
]
"""Any item document, discriminated on `type`."""

_ITEM_ADAPTER: TypeAdapter[Item] = TypeAdapter(Item)


def parse_item(data: Any) -> Item:
    """Validate raw host data into the matching item variant.

    Args:
        data: Item document as a mapping, or an already-parsed item.

    Returns:
        The typed item.

    Raises:
        pydantic.ValidationError: If the data matches no variant.
    """
    return _ITEM_ADAPTER.validate_python(data)


class IndexEntry(BaseModel):
    """One row of a compendium index listing.

    Only uuid, name and type are guaranteed; requested extra fields are
    kept as additional attributes.
    """

    model_config = ConfigDict(extra="allow")

    uuid: str
    name: str
    type: str
    img: str | None = None


__all__ = [
    "Currency",
    "ItemBase",
    "AncestryTrait",
    "AncestrySystem",
    "AncestryItem",
    "SkillChoice",
    "SkillGrant",
    "LevelFeature",
    "LevelSpells",
    "ClassSystem",
    "ClassItem",
    "StatRequirement",
    "PerkPrerequisites",
    "PerkSystem",
    "PerkItem",
    "SpellSystem",
    "SpellItem",
    "EquipmentSystem",
    "EquipmentItem",
    "StarterPackEntry",
    "StarterPackSystem",
    "StarterPackItem",
    "VehiclePartSystem",
    "VehiclePartItem",
    "Item",
    "parse_item",
    "IndexEntry",
]
