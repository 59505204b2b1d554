"""Pytest configuration and shared fixtures.

This module provides the in-memory host collaborators (resolver,
compendium source, document store, localizer, die roller and notifier)
and a small item library used across the Vagabond builder test suite.
"""

from __future__ import annotations

import copy
import random
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import pytest

from vagabond_builder.builder.compendium import CompendiumCatalog
from vagabond_builder.builder.session import CharacterBuilder
from vagabond_builder.core.config import RandomizerSettings, Settings
from vagabond_builder.models.character import CharacterData, CharacterDocument
from vagabond_builder.models.enums import (
    ArmorType,
    EquipmentType,
    Grip,
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
    LevelFeature,
    LevelSpells,
    PerkItem,
    PerkPrerequisites,
    PerkSystem,
    SkillChoice,
    SkillGrant,
    SpellItem,
    StarterPackEntry,
    StarterPackItem,
    StarterPackSystem,
    StatRequirement,
    parse_item,
)


if TYPE_CHECKING:
    from collections.abc import Generator


CHARACTER_ID = "actor-1"

HUMAN = "Compendium.vagabond.ancestries.Item.human"
DWARF = "Compendium.vagabond.ancestries.Item.dwarf"
ELF = "Compendium.vagabond.ancestries.Item.elf"
HALFLING = "Compendium.vagabond.ancestries.Item.halfling"
WIZARD = "Compendium.vagabond.classes.Item.wizard"
FIGHTER = "Compendium.vagabond.classes.Item.fighter"
MAGIC_TRAINING = "Compendium.vagabond.perks.Item.magicTraining"
TOUGH = "Compendium.vagabond.perks.Item.tough"
SPELL_SNIPER = "Compendium.vagabond.perks.Item.spellSniper"
LIGHT = "Compendium.vagabond.spells.Item.light"
FIREBALL = "Compendium.vagabond.spells.Item.fireball"
FROSTBITE = "Compendium.vagabond.spells.Item.frostbite"
MEND = "Compendium.vagabond.spells.Item.mend"
GREATSWORD = "Compendium.vagabond.equipment.Item.greatsword"
LEATHER = "Compendium.vagabond.equipment.Item.leather"
ROPE = "Compendium.vagabond.equipment.Item.rope"
ADVENTURER_PACK = "Compendium.vagabond.starting-packs.Item.adventurer"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from vagabond_builder.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Provide settings with a fixed randomizer seed.

    Returns:
        Settings instance.
    """
    return Settings(randomizer=RandomizerSettings(seed=7))


# =============================================================================
# Item Library Fixtures
# =============================================================================


@pytest.fixture
def human() -> AncestryItem:
    """Provide a human ancestry with one stat bonus point and one perk pick."""
    return AncestryItem(
        uuid=HUMAN,
        name="Human",
        system=AncestrySystem(
            traits=[
                AncestryTrait(name="Versatile", stat_bonus_points=1, perk_amount=1),
            ],
        ),
    )


@pytest.fixture
def wizard() -> ClassItem:
    """Provide a spellcasting class.

    Trains Brawl outright, offers two picks from the Reason skills, knows
    two spells at level 1, and links the Magic Training perk in its
    level-1 feature text.
    """
    return ClassItem(
        uuid=WIZARD,
        name="Wizard",
        system=ClassSystem(
            is_spellcaster=True,
            mana_multiplier=4,
            casting_stat=Stat.REASON,
            mana_skill=Skill.ARCANA,
            skill_grant=SkillGrant(
                guaranteed=[Skill.BRAWL],
                choices=[SkillChoice(count=2, pool=[Skill.ARCANA, Skill.CRAFT, Skill.MEDICINE])],
            ),
            level_features=[
                LevelFeature(
                    level=1,
                    name="Spellcasting",
                    description=f"You gain @UUID[{MAGIC_TRAINING}]{{Magic Training}}.",
                ),
            ],
            level_spells=[LevelSpells(level=1, spells=2), LevelSpells(level=2, spells=3)],
        ),
    )


@pytest.fixture
def fighter() -> ClassItem:
    """Provide a non-spellcasting class with one free skill pick."""
    return ClassItem(
        uuid=FIGHTER,
        name="Fighter",
        system=ClassSystem(
            skill_grant=SkillGrant(
                guaranteed=[Skill.BRAWL],
                choices=[SkillChoice(count=1)],
            ),
        ),
    )


@pytest.fixture
def perks() -> dict[str, PerkItem]:
    """Provide perks keyed by reference."""
    return {
        MAGIC_TRAINING: PerkItem(
            uuid=MAGIC_TRAINING,
            name="Magic Training",
            system=PerkSystem(required_spells=[LIGHT]),
        ),
        TOUGH: PerkItem(
            uuid=TOUGH,
            name="Tough",
            system=PerkSystem(
                prerequisites=PerkPrerequisites(stats=[StatRequirement(stat=Stat.MIGHT, value=5)]),
            ),
        ),
        SPELL_SNIPER: PerkItem(
            uuid=SPELL_SNIPER,
            name="Spell Sniper",
            system=PerkSystem(
                prerequisites=PerkPrerequisites(
                    has_any_spell=True,
                    trained_skills=[WeaponSkill.RANGED],
                ),
            ),
        ),
    }


@pytest.fixture
def spells() -> dict[str, SpellItem]:
    """Provide spells keyed by reference."""
    return {
        uuid: SpellItem(uuid=uuid, name=name)
        for uuid, name in (
            (LIGHT, "Light"),
            (FIREBALL, "Fireball"),
            (FROSTBITE, "Frostbite"),
            (MEND, "Mend"),
        )
    }


@pytest.fixture
def greatsword() -> EquipmentItem:
    """Provide a two-handed weapon costing 10g."""
    return EquipmentItem(
        uuid=GREATSWORD,
        name="Greatsword",
        type="weapon",
        system=EquipmentSystem(
            equipment_type=EquipmentType.WEAPON,
            grip=Grip.TWO_HANDED,
            base_cost=Currency(gold=10),
            base_slots=2,
            damage_one_hand="d8",
            damage_two_hands="d10",
        ),
    )


@pytest.fixture
def leather() -> EquipmentItem:
    """Provide light armor costing 5g."""
    return EquipmentItem(
        uuid=LEATHER,
        name="Leather Armor",
        type="armor",
        system=EquipmentSystem(
            equipment_type=EquipmentType.ARMOR,
            armor_type=ArmorType.LIGHT,
            base_cost=Currency(gold=5),
        ),
    )


@pytest.fixture
def rope() -> EquipmentItem:
    """Provide a piece of gear costing 5s."""
    return EquipmentItem(
        uuid=ROPE,
        name="Rope",
        type="gear",
        system=EquipmentSystem(base_cost=Currency(silver=5)),
    )


@pytest.fixture
def starter_pack() -> StarterPackItem:
    """Provide a starter pack worth 12g that bundles two ropes."""
    return StarterPackItem(
        uuid=ADVENTURER_PACK,
        name="Adventurer Pack",
        system=StarterPackSystem(
            items=[StarterPackEntry(uuid=ROPE, quantity=2)],
            currency=Currency(gold=12),
        ),
    )


@pytest.fixture
def library(
    human: AncestryItem,
    wizard: ClassItem,
    fighter: ClassItem,
    perks: dict[str, PerkItem],
    spells: dict[str, SpellItem],
    greatsword: EquipmentItem,
    leather: EquipmentItem,
    rope: EquipmentItem,
    starter_pack: StarterPackItem,
) -> dict[str, Item]:
    """Provide every library item keyed by reference."""
    items: list[Item] = [
        human,
        AncestryItem(uuid=DWARF, name="Dwarf"),
        AncestryItem(uuid=ELF, name="Elf"),
        AncestryItem(uuid=HALFLING, name="Halfling"),
        wizard,
        fighter,
        *perks.values(),
        *spells.values(),
        greatsword,
        leather,
        rope,
        starter_pack,
    ]
    return {item.uuid: item for item in items if item.uuid}


# =============================================================================
# Host Collaborator Fakes
# =============================================================================


class InMemoryResolver:
    """Resolves references from a dictionary."""

    def __init__(self, items: Mapping[str, Item]) -> None:
        self.items = dict(items)
        self.requests: list[str] = []

    async def resolve(self, uuid: str) -> Item | None:
        self.requests.append(uuid)
        item = self.items.get(uuid)
        return item.model_copy(deep=True) if item is not None else None


class InMemoryCompendiumSource:
    """Lists packs built from the item library, counting requests."""

    def __init__(self, items: Mapping[str, Item]) -> None:
        self.packs: dict[str, list[IndexEntry]] = {}
        for uuid, item in items.items():
            pack_id = uuid.split(".Item.")[0].removeprefix("Compendium.")
            self.packs.setdefault(pack_id, []).append(
                IndexEntry(uuid=uuid, name=item.name, type=item.type)
            )
        self.calls: list[tuple[str, list[str]]] = []

    async def list_index(self, pack_id: str, fields: Sequence[str]) -> list[IndexEntry]:
        self.calls.append((pack_id, list(fields)))
        return list(self.packs.get(pack_id, []))


def _set_path(data: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    node = data
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value


class InMemoryDocumentStore:
    """Keeps characters as host-layout dictionaries.

    Every call is recorded in `calls` so tests can assert write order.
    Set `fail_on` to a method name to make that method raise.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_on: str | None = None
        self._next_id = 0

    def add(self, document: CharacterDocument) -> None:
        self.documents[document.id] = document.to_host()

    def _check(self, method: str) -> None:
        if self.fail_on == method:
            raise RuntimeError(f"{method} failed")

    async def fetch(self, character_id: str) -> CharacterDocument:
        self.calls.append(("fetch", character_id))
        self._check("fetch")
        return CharacterDocument.model_validate(copy.deepcopy(self.documents[character_id]))

    async def update(self, character_id: str, changes: Mapping[str, Any]) -> None:
        self.calls.append(("update", dict(changes)))
        self._check("update")
        document = self.documents[character_id]
        for path, value in changes.items():
            _set_path(document, path, value)
        CharacterDocument.model_validate(document)

    async def create_embedded_items(
        self,
        character_id: str,
        items: Sequence[Mapping[str, Any]],
    ) -> list[Item]:
        self.calls.append(("create", [dict(item) for item in items]))
        self._check("create")
        created: list[Item] = []
        for payload in items:
            self._next_id += 1
            item = parse_item({**copy.deepcopy(dict(payload)), "id": f"item{self._next_id}"})
            created.append(item)
            self.documents[character_id].setdefault("items", []).append(item.to_host())
        return created


class DictLocalizer:
    """Looks keys up in a dictionary, echoing unknown keys like a host does."""

    def __init__(self, strings: Mapping[str, str] | None = None) -> None:
        self.strings = dict(strings or {})

    def localize(self, key: str) -> str:
        return self.strings.get(key, key)


class SequenceDieRoller:
    """Returns preset results in order, repeating the last one."""

    def __init__(self, results: Sequence[int]) -> None:
        self.results = list(results)
        self.requests: list[int] = []

    async def roll(self, sides: int) -> int:
        self.requests.append(sides)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class RecordingNotifier:
    """Records every notification by severity."""

    def __init__(self) -> None:
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def resolver(library: dict[str, Item]) -> InMemoryResolver:
    return InMemoryResolver(library)


@pytest.fixture
def compendium_source(library: dict[str, Item]) -> InMemoryCompendiumSource:
    return InMemoryCompendiumSource(library)


@pytest.fixture
def catalog(compendium_source: InMemoryCompendiumSource, settings: Settings) -> CompendiumCatalog:
    return CompendiumCatalog(compendium_source, settings.compendium)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Provide a store holding one blank character."""
    document_store = InMemoryDocumentStore()
    document_store.add(CharacterDocument(id=CHARACTER_ID, name="Test Vagabond", system=CharacterData()))
    return document_store


@pytest.fixture
def localizer() -> DictLocalizer:
    return DictLocalizer()


@pytest.fixture
def roller() -> SequenceDieRoller:
    """Provide a die roller that always lands on array 3 (6, 5, 4, 4, 4, 3)."""
    return SequenceDieRoller([3])


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# =============================================================================
# Builder Fixtures
# =============================================================================


@pytest.fixture
def builder(
    resolver: InMemoryResolver,
    catalog: CompendiumCatalog,
    store: InMemoryDocumentStore,
    localizer: DictLocalizer,
    roller: SequenceDieRoller,
    notifier: RecordingNotifier,
    settings: Settings,
) -> CharacterBuilder:
    """Provide a builder session wired to the in-memory collaborators."""
    return CharacterBuilder(
        CHARACTER_ID,
        resolver=resolver,
        catalog=catalog,
        store=store,
        localizer=localizer,
        roller=roller,
        notifier=notifier,
        settings=settings,
        rng=random.Random(1234),
    )
