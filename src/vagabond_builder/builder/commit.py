"""Materialize builder selections into a character.

The commit runs in a fixed order:

1. Refuse unless ancestry, class and all six stats are chosen.
2. Resolve the ancestry, class, starter pack, perks, spells and gear,
   then expand the starter pack's bundled items with their quantities.
   Favorite and equipped flags are set by item category.
3. Write the six stat values and the constructed flag.
4. Create the items.
5. Write the trained skills.
6. Re-read the character, derive its stats, and fill HP, mana and luck
   to their maxima.

Store failures propagate and leave the character partially written; there
is no rollback.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from vagabond_builder.builder import stats as stat_assignment
from vagabond_builder.builder.protocols import DocumentResolver, DocumentStore
from vagabond_builder.builder.skills import trained_skills
from vagabond_builder.builder.state import BuilderState
from vagabond_builder.builder.validation import ValidationReport
from vagabond_builder.core.exceptions import IncompleteCharacterError, ReferenceResolutionError
from vagabond_builder.core.logging import bind_context, clear_context, get_logger
from vagabond_builder.engine.derived import CharacterSheet, DerivedStatEngine
from vagabond_builder.models.enums import EquipmentState, Grip, Skill, Stat
from vagabond_builder.models.items import (
    AncestryItem,
    ClassItem,
    EquipmentItem,
    Item,
    ItemBase,
    PerkItem,
    SpellItem,
    StarterPackItem,
)


logger = get_logger(__name__)

_T = TypeVar("_T", bound=ItemBase)


class CommitResult(BaseModel):
    """Outcome of a successful commit.

    Attributes:
        character_id: The committed character.
        items: Items as created by the store.
        sheet: Derived sheet after the final write.
    """

    model_config = ConfigDict(frozen=True)

    character_id: str
    items: list[Item]
    sheet: CharacterSheet


async def _resolve_optional(resolver: DocumentResolver, uuid: str, kind: type[_T]) -> _T | None:
    """Resolve a reference, skipping it when missing or of the wrong type."""
    item = await resolver.resolve(uuid)
    if item is None:
        logger.warning("Skipping unresolvable reference", uuid=uuid, expected=kind.__name__)
        return None
    if not isinstance(item, kind):
        logger.warning("Skipping reference of unexpected type", uuid=uuid, expected=kind.__name__, actual=item.type)
        return None
    return item


async def _resolve_required(resolver: DocumentResolver, uuid: str | None, kind: type[_T]) -> _T:
    item = await resolver.resolve(uuid) if uuid else None
    if not isinstance(item, kind):
        raise ReferenceResolutionError(f"Could not resolve {kind.__name__}", uuid=uuid)
    return item


def flag_for_creation(item: Item) -> Item:
    """Return a copy of an item with its category's starting flags set.

    Spells are favorited, armor is equipped, and weapons are equipped in
    one or both hands depending on their grip.
    """
    flagged = item.model_copy(deep=True)
    if isinstance(flagged, SpellItem):
        flagged.system.favorite = True
    elif isinstance(flagged, EquipmentItem):
        if flagged.is_armor:
            flagged.system.equipped = True
        elif flagged.is_weapon:
            flagged.system.equipped = True
            flagged.system.equipment_state = (
                EquipmentState.TWO_HANDS if flagged.system.grip == Grip.TWO_HANDED else EquipmentState.ONE_HAND
            )
    return flagged


async def collect_items(state: BuilderState, resolver: DocumentResolver) -> list[Item]:
    """Resolve every selection into the list of items to create.

    Raises:
        ReferenceResolutionError: If the ancestry or class cannot be resolved.
    """
    ancestry = await _resolve_required(resolver, state.ancestry, AncestryItem)
    class_item = await _resolve_required(resolver, state.character_class, ClassItem)
    items: list[Item] = [ancestry, class_item]

    pack: StarterPackItem | None = None
    if state.starting_pack:
        pack = await _resolve_optional(resolver, state.starting_pack, StarterPackItem)
        if pack is not None:
            items.append(pack)

    for uuid in state.all_perks:
        perk = await _resolve_optional(resolver, uuid, PerkItem)
        if perk is not None:
            items.append(perk)
    for uuid in state.spells:
        spell = await _resolve_optional(resolver, uuid, SpellItem)
        if spell is not None:
            items.append(spell)
    for uuid in state.gear:
        gear = await _resolve_optional(resolver, uuid, EquipmentItem)
        if gear is not None:
            items.append(gear)

    if pack is not None:
        for entry in pack.system.items:
            bundled = await resolver.resolve(entry.uuid)
            if bundled is None:
                logger.warning("Skipping unresolvable pack item", uuid=entry.uuid, pack=pack.name)
                continue
            bundled = bundled.model_copy(deep=True)
            if isinstance(bundled, EquipmentItem):
                bundled.system.quantity = entry.quantity
            items.append(bundled)

    return [flag_for_creation(item) for item in items]


async def commit_character(
    state: BuilderState,
    character_id: str,
    *,
    report: ValidationReport,
    resolver: DocumentResolver,
    store: DocumentStore,
    engine: DerivedStatEngine,
) -> CommitResult:
    """Write the builder's selections to a character.

    Args:
        state: Builder state to commit.
        character_id: Character to write to.
        report: Validation of the state.
        resolver: Reference resolver.
        store: Character persistence.
        engine: Engine used to derive the final maxima.

    Returns:
        The CommitResult.

    Raises:
        IncompleteCharacterError: If mandatory selections are missing.
        ReferenceResolutionError: If the ancestry or class cannot be resolved.
    """
    if not report.is_valid:
        raise IncompleteCharacterError("Character is not complete", missing=report.errors)

    bind_context(builder_session=character_id)
    try:
        items = await collect_items(state, resolver)

        values = stat_assignment.final_values(state.stats)
        changes: dict[str, Any] = {f"system.stats.{stat}.value": values[stat] for stat in Stat}
        changes["system.details.constructed"] = True
        await store.update(character_id, changes)

        class_item = next(item for item in items if isinstance(item, ClassItem))
        created = await store.create_embedded_items(character_id, [item.to_creation_data() for item in items])
        logger.info("Builder items created", count=len(created))

        trained = set(trained_skills(state, class_item))
        await store.update(
            character_id,
            {f"system.skills.{skill}.trained": skill in trained for skill in Skill},
        )

        sheet = engine.prepare(await store.fetch(character_id))
        await store.update(
            character_id,
            {
                "system.health.current": sheet.health.max,
                "system.mana.current": sheet.mana.max,
                "system.currentLuck": sheet.luck.max,
            },
        )
        sheet = engine.prepare(await store.fetch(character_id))
        logger.info("Character committed", character_id=character_id, hp=sheet.health.max)
        return CommitResult(character_id=character_id, items=created, sheet=sheet)
    finally:
        clear_context()


__all__ = [
    "CommitResult",
    "flag_for_creation",
    "collect_items",
    "commit_character",
]
