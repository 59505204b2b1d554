"""Tests for item schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from vagabond_builder.models.enums import EquipmentState, EquipmentType, Grip, ItemType, Metal, Skill
from vagabond_builder.models.items import (
    AncestryItem,
    ClassItem,
    Currency,
    EquipmentItem,
    EquipmentSystem,
    PerkItem,
    SkillChoice,
    StarterPackItem,
    parse_item,
)


class TestCurrency:
    """Tests for the Currency fragment."""

    def test_base_units(self) -> None:
        """Test gold x10 + silver + copper/10."""
        assert Currency(gold=1, silver=2, copper=5).to_base_units() == 12.5

    def test_scaled(self) -> None:
        """Test multiplying every denomination."""
        assert Currency(gold=1, copper=3).scaled(10) == Currency(gold=10, copper=30)

    def test_display(self) -> None:
        """Test the short form."""
        assert Currency(gold=5, silver=2).display == "5g 2s"
        assert Currency().display == "-"

    def test_negative_rejected(self) -> None:
        """Test that coins cannot be negative."""
        with pytest.raises(PydanticValidationError):
            Currency(gold=-1)


class TestEquipmentMetal:
    """Tests for metal adjustments on equipment."""

    def test_adamant(self) -> None:
        """Test adamant cost, slot and armor effects."""
        system = EquipmentSystem(
            equipment_type=EquipmentType.ARMOR,
            base_cost=Currency(gold=1),
            base_slots=2,
            metal=Metal.ADAMANT,
        )

        assert system.cost == Currency(gold=50)
        assert system.slots == 3
        assert system.final_rating == 2

    @pytest.mark.parametrize(("base_slots", "expected"), [(1, 1), (3, 2)])
    def test_mythral_slots(self, base_slots: int, expected: int) -> None:
        """Test that mythral saves a slot but never goes below 1."""
        assert EquipmentSystem(base_slots=base_slots, metal=Metal.MYTHRAL).slots == expected

    def test_relic_ignores_metal(self) -> None:
        """Test that relics keep their base values."""
        system = EquipmentSystem(
            equipment_type=EquipmentType.RELIC,
            base_cost=Currency(silver=3),
            base_slots=2,
            metal=Metal.ADAMANT,
        )

        assert system.cost == Currency(silver=3)
        assert system.slots == 2

    def test_adamant_damage(self) -> None:
        """Test that adamant weapons deal one more damage."""
        system = EquipmentSystem(damage_one_hand="d8", damage_two_hands="3", metal=Metal.ADAMANT)

        assert system.current_damage == "d8+1"
        system.equipment_state = EquipmentState.TWO_HANDS
        assert system.current_damage == "4"


class TestItems:
    """Tests for polymorphic item parsing."""

    def test_parse_discriminates(self) -> None:
        """Test that the type field selects the variant."""
        assert isinstance(parse_item({"type": "ancestry", "name": "Elf"}), AncestryItem)
        assert isinstance(parse_item({"type": "perk", "name": "Tough"}), PerkItem)
        assert isinstance(parse_item({"type": "starterPack", "name": "Pack"}), StarterPackItem)
        weapon = parse_item({"type": "weapon", "name": "Sword", "system": {"grip": "2H"}})
        assert isinstance(weapon, EquipmentItem)
        assert weapon.system.grip == Grip.TWO_HANDED

    def test_parse_unknown_type(self) -> None:
        """Test that unknown item types are rejected."""
        with pytest.raises(PydanticValidationError):
            parse_item({"type": "vehicle", "name": "Cart"})

    def test_host_layout(self) -> None:
        """Test camelCase host fields."""
        item = parse_item({
            "type": "class",
            "name": "Wizard",
            "system": {"isSpellcaster": "true", "manaMultiplier": 4, "levelSpells": [{"level": 1, "spells": 2}]},
        })

        assert isinstance(item, ClassItem)
        assert item.system.is_spellcaster is True
        assert item.system.spells_at(1) == 2
        assert item.system.spells_at(5) == 0

    def test_equipment_categories(self) -> None:
        """Test armor and weapon detection by type or equipment type."""
        assert EquipmentItem(type="armor").is_armor
        assert EquipmentItem(system=EquipmentSystem(equipment_type=EquipmentType.WEAPON)).is_weapon
        assert not EquipmentItem(type="gear").is_weapon
        assert ItemType("gear").is_inventory
        assert not ItemType("spell").is_inventory

    def test_weapon_equipped_by_state(self) -> None:
        """Test that weapons are equipped when held."""
        weapon = EquipmentItem(type="weapon")
        assert not weapon.is_equipped

        weapon.system.equipment_state = EquipmentState.ONE_HAND
        assert weapon.is_equipped

    def test_creation_data(self) -> None:
        """Test that creation payloads drop library identity."""
        item = AncestryItem(id="abc", uuid="Compendium.vagabond.ancestries.Item.elf", name="Elf")

        data = item.to_creation_data()

        assert "id" not in data
        assert "uuid" not in data
        assert data["flags"]["core"]["sourceId"] == "Compendium.vagabond.ancestries.Item.elf"
        assert data["system"]["ancestryType"] == "Humanlike"

    def test_empty_skill_pool_means_any(self) -> None:
        """Test that an empty choice pool offers every skill."""
        assert SkillChoice(count=1).options() == list(Skill)
