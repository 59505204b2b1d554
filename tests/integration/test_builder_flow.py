"""Integration tests for the builder lifecycle.

Walks a wizard through every step with the in-memory host, commits it,
and checks what landed on the character.
"""

from __future__ import annotations

import pytest

from conftest import (
    ADVENTURER_PACK,
    CHARACTER_ID,
    FIREBALL,
    FROSTBITE,
    GREATSWORD,
    HUMAN,
    LIGHT,
    MAGIC_TRAINING,
    WIZARD,
    InMemoryDocumentStore,
    RecordingNotifier,
)
from vagabond_builder.builder.session import CharacterBuilder
from vagabond_builder.models.enums import BuilderStep, EquipmentState, Skill, Stat
from vagabond_builder.models.items import EquipmentItem, SpellItem


pytestmark = pytest.mark.integration


async def _build_wizard(builder: CharacterBuilder, notifier: RecordingNotifier) -> None:
    assert await builder.select_ancestry(HUMAN)
    assert await builder.next_step()

    assert await builder.select_class(WIZARD)
    assert builder.state.class_perks == [MAGIC_TRAINING]
    assert builder.required_spells == [LIGHT]
    assert await builder.toggle_skill(Skill.ARCANA)
    assert await builder.toggle_skill(Skill.CRAFT)
    assert await builder.next_step()

    assert builder.step == BuilderStep.STATS
    assert await builder.randomize_stats(auto_assign=True)
    assert await builder.allocate_bonus_point(Stat.MIGHT)
    assert await builder.next_step()

    assert await builder.goto(BuilderStep.SPELLS)
    assert await builder.add_spell(FIREBALL)
    assert await builder.add_spell(FROSTBITE) is False
    assert notifier.warnings == ["Spell limit reached"]


class TestBuilderFlow:
    """Test building and committing a character end to end."""

    @pytest.mark.asyncio
    async def test_wizard(
        self,
        builder: CharacterBuilder,
        notifier: RecordingNotifier,
        store: InMemoryDocumentStore,
    ) -> None:
        """Build a human wizard and commit it."""
        await _build_wizard(builder, notifier)

        result = await builder.finish()

        assert result is not None
        sheet = result.sheet
        assert sheet.spellcasting.is_spellcaster is True
        assert sheet.mana.max == 4
        assert sheet.health.max == 7
        assert sheet.luck.max == 3
        assert sheet.skills[Skill.BRAWL].trained is True
        assert sheet.skills[Skill.ARCANA].trained is True
        assert sheet.skills[Skill.BRAWL].difficulty == 6

        document = await store.fetch(CHARACTER_ID)
        assert document.system.stats[Stat.MIGHT].value == 7
        assert document.system.details.constructed is True
        assert document.system.health.current == 7
        assert document.system.mana.current == 4
        assert document.system.current_luck == 3

        spells = [item for item in document.items if isinstance(item, SpellItem)]
        assert sorted(spell.name for spell in spells) == ["Fireball", "Light"]
        assert all(spell.system.favorite for spell in spells)
        assert [item.name for item in document.items if item.type == "perk"] == ["Magic Training"]
        assert notifier.infos == ["Character created"]

    @pytest.mark.asyncio
    async def test_wizard_with_gear(
        self,
        builder: CharacterBuilder,
        notifier: RecordingNotifier,
        store: InMemoryDocumentStore,
    ) -> None:
        """Build a wizard with a starter pack and a weapon."""
        await _build_wizard(builder, notifier)
        assert await builder.goto(BuilderStep.STARTING_PACKS)
        assert await builder.select_starting_pack(ADVENTURER_PACK)
        assert await builder.next_step()
        assert await builder.add_gear(GREATSWORD)
        assert (await builder.economy()).remaining == 20

        assert await builder.finish() is not None

        document = await store.fetch(CHARACTER_ID)
        equipment = {item.name: item for item in document.items if isinstance(item, EquipmentItem)}
        assert equipment["Greatsword"].system.equipment_state == EquipmentState.TWO_HANDS
        assert equipment["Greatsword"].is_equipped is True
        assert equipment["Rope"].system.quantity == 2
        assert document.system.currency.gold == 0

    @pytest.mark.asyncio
    async def test_undo_back_to_start(self, builder: CharacterBuilder, notifier: RecordingNotifier) -> None:
        """Undo every action and finish nothing."""
        await _build_wizard(builder, notifier)

        while builder.undo():
            pass

        assert builder.state.ancestry is None
        assert builder.step == BuilderStep.ANCESTRY
        assert await builder.finish() is None

    @pytest.mark.asyncio
    async def test_manual_array_placement(
        self,
        builder: CharacterBuilder,
        store: InMemoryDocumentStore,
    ) -> None:
        """Place array 1 by hand and commit with two spells."""
        assert await builder.select_ancestry(HUMAN)
        assert await builder.select_class(WIZARD)
        assert await builder.select_array(1)
        for stat in Stat:
            assert await builder.pick_up(0)
            assert await builder.place(stat)
        assert builder.state.stats.pool == []
        assert sorted(builder.state.stats.assigned) == [3, 4, 4, 5, 5, 5]
        assert await builder.add_spell(FIREBALL)

        result = await builder.finish()

        assert result is not None
        document = await store.fetch(CHARACTER_ID)
        assert result.sheet.spellcasting.is_spellcaster is True
        assert len([item for item in document.items if isinstance(item, SpellItem)]) == 2
        assert document.system.skills[Skill.BRAWL].trained is True
        assert document.system.health.current == result.sheet.health.max == 5
