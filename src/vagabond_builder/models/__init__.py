"""Data models for the Vagabond character engine.

Exports the enumerations, the persisted character schema, and the
polymorphic item schemas.
"""

from __future__ import annotations

from vagabond_builder.models.base import DocumentModel, coerce_flag
from vagabond_builder.models.character import (
    Attributes,
    CharacterData,
    CharacterDocument,
    Details,
    ResourcePool,
    SkillTraining,
    StatValue,
)
from vagabond_builder.models.enums import (
    ArmorType,
    AttackCategory,
    BeingType,
    BuilderStep,
    ContributionMode,
    EquipmentState,
    EquipmentType,
    FavorHinder,
    Grip,
    ItemType,
    LevelPacing,
    Metal,
    Save,
    Size,
    Skill,
    Stat,
    WeaponSkill,
)
from vagabond_builder.models.items import (
    AncestryItem,
    AncestrySystem,
    AncestryTrait,
    ClassItem,
    ClassSystem,
    Currency,
    EquipmentItem,
    EquipmentSystem,
    IndexEntry,
    Item,
    ItemBase,
    LevelFeature,
    LevelSpells,
    PerkItem,
    PerkPrerequisites,
    PerkSystem,
    SkillChoice,
    SkillGrant,
    SpellItem,
    SpellSystem,
    StarterPackEntry,
    StarterPackItem,
    StarterPackSystem,
    StatRequirement,
    VehiclePartItem,
    parse_item,
)


__all__ = [
    # Base
    "DocumentModel",
    "coerce_flag",
    # Enums
    "Stat",
    "Skill",
    "WeaponSkill",
    "Save",
    "ItemType",
    "EquipmentType",
    "Grip",
    "EquipmentState",
    "ArmorType",
    "Metal",
    "Size",
    "BeingType",
    "FavorHinder",
    "LevelPacing",
    "AttackCategory",
    "ContributionMode",
    "BuilderStep",
    # Character
    "StatValue",
    "SkillTraining",
    "Attributes",
    "Details",
    "ResourcePool",
    "CharacterData",
    "CharacterDocument",
    # Items
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
    "VehiclePartItem",
    "Item",
    "parse_item",
    "IndexEntry",
]
