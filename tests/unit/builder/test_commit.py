"""Tests for committing builder selections to a character."""

from __future__ import annotations

import pytest

from conftest import (
    ADVENTURER_PACK,
    CHARACTER_ID,
    GREATSWORD,
    HUMAN,
    LEATHER,
    LIGHT,
    MAGIC_TRAINING,
    WIZARD,
    InMemoryDocumentStore,
    InMemoryResolver,
)
from vagabond_builder.builder.commit import collect_items, commit_character, flag_for_creation
from vagabond_builder.builder.state import BuilderState, StatAssignment
from vagabond_builder.builder.validation import ValidationReport
from vagabond_builder.core.config import Settings
from vagabond_builder.core.exceptions import IncompleteCharacterError, ReferenceResolutionError
from vagabond_builder.engine.derived import DerivedStatEngine
from vagabond_builder.models.enums import EquipmentState, Skill, Stat
from vagabond_builder.models.items import EquipmentItem, SpellItem


@pytest.fixture
def state() -> BuilderState:
    return BuilderState(
        ancestry=HUMAN,
        character_class=WIZARD,
        stats=StatAssignment(array_id=3, slots=dict(zip(Stat, (6, 5, 4, 4, 4, 3)))),
        skills=[Skill.BRAWL, Skill.ARCANA],
        class_perks=[MAGIC_TRAINING],
        required_spells=[LIGHT],
        spells=[LIGHT],
        starting_pack=ADVENTURER_PACK,
        gear=[GREATSWORD, LEATHER],
    )


class TestFlagForCreation:
    """Tests for the per-category starting flags."""

    def test_two_handed_weapon(self, greatsword: EquipmentItem) -> None:
        """Test that a two-handed weapon is wielded in both hands."""
        flagged = flag_for_creation(greatsword)

        assert flagged.system.equipped is True
        assert flagged.system.equipment_state == EquipmentState.TWO_HANDS
        assert greatsword.system.equipped is False

    def test_armor_and_spell(self, leather: EquipmentItem, spells: dict[str, SpellItem]) -> None:
        """Test that armor is equipped and spells are favorited."""
        assert flag_for_creation(leather).system.equipped is True
        assert flag_for_creation(spells[LIGHT]).system.favorite is True

    def test_gear_untouched(self, rope: EquipmentItem) -> None:
        """Test that ordinary gear is carried, not equipped."""
        assert flag_for_creation(rope).is_equipped is False


class TestCollectItems:
    """Tests for resolving selections into items."""

    @pytest.mark.asyncio
    async def test_order_and_pack_contents(self, state: BuilderState, resolver: InMemoryResolver) -> None:
        """Test that items come out in commit order with pack quantities."""
        items = await collect_items(state, resolver)

        assert [item.name for item in items] == [
            "Human",
            "Wizard",
            "Adventurer Pack",
            "Magic Training",
            "Light",
            "Greatsword",
            "Leather Armor",
            "Rope",
        ]
        rope = items[-1]
        assert isinstance(rope, EquipmentItem)
        assert rope.system.quantity == 2

    @pytest.mark.asyncio
    async def test_unresolvable_optional_skipped(self, state: BuilderState, resolver: InMemoryResolver) -> None:
        """Test that missing perks, spells and gear are skipped."""
        state.perks = ["Compendium.vagabond.perks.Item.gone"]
        state.gear = [GREATSWORD, "Compendium.vagabond.equipment.Item.gone", WIZARD]

        names = [item.name for item in await collect_items(state, resolver)]

        assert names.count("Wizard") == 1
        assert "Greatsword" in names

    @pytest.mark.asyncio
    async def test_missing_ancestry(self, state: BuilderState, resolver: InMemoryResolver) -> None:
        """Test that an unresolvable ancestry is an error."""
        state.ancestry = "Compendium.vagabond.ancestries.Item.gone"

        with pytest.raises(ReferenceResolutionError):
            await collect_items(state, resolver)


class TestCommitCharacter:
    """Tests for commit_character."""

    @pytest.mark.asyncio
    async def test_write_order(
        self,
        state: BuilderState,
        resolver: InMemoryResolver,
        store: InMemoryDocumentStore,
        settings: Settings,
    ) -> None:
        """Test the sequence of store calls and the final resources."""
        result = await commit_character(
            state,
            CHARACTER_ID,
            report=ValidationReport(),
            resolver=resolver,
            store=store,
            engine=DerivedStatEngine(settings),
        )

        assert [call[0] for call in store.calls] == ["update", "create", "update", "fetch", "update", "fetch"]
        stats_write = store.calls[0][1]
        assert stats_write["system.stats.might.value"] == 6
        assert stats_write["system.details.constructed"] is True
        assert len(result.items) == 8
        assert result.sheet.health.max == 6
        assert result.sheet.health.current == 6
        assert result.sheet.mana.current == 4

    @pytest.mark.asyncio
    async def test_incomplete_refused(
        self,
        resolver: InMemoryResolver,
        store: InMemoryDocumentStore,
        settings: Settings,
    ) -> None:
        """Test that an invalid report stops the commit before any write."""
        with pytest.raises(IncompleteCharacterError):
            await commit_character(
                BuilderState(),
                CHARACTER_ID,
                report=ValidationReport(errors=["ancestry"]),
                resolver=resolver,
                store=store,
                engine=DerivedStatEngine(settings),
            )

        assert store.calls == []

    @pytest.mark.asyncio
    async def test_unresolvable_class_before_writes(
        self,
        state: BuilderState,
        resolver: InMemoryResolver,
        store: InMemoryDocumentStore,
        settings: Settings,
    ) -> None:
        """Test that reference failures happen before the first write."""
        state.character_class = "Compendium.vagabond.classes.Item.gone"

        with pytest.raises(ReferenceResolutionError):
            await commit_character(
                state,
                CHARACTER_ID,
                report=ValidationReport(),
                resolver=resolver,
                store=store,
                engine=DerivedStatEngine(settings),
            )

        assert store.calls == []

    @pytest.mark.asyncio
    async def test_store_failure_propagates(
        self,
        state: BuilderState,
        resolver: InMemoryResolver,
        store: InMemoryDocumentStore,
        settings: Settings,
    ) -> None:
        """Test that a failed item creation leaves the stats written."""
        store.fail_on = "create"

        with pytest.raises(RuntimeError):
            await commit_character(
                state,
                CHARACTER_ID,
                report=ValidationReport(),
                resolver=resolver,
                store=store,
                engine=DerivedStatEngine(settings),
            )

        assert store.documents[CHARACTER_ID]["system"]["details"]["constructed"] is True
