"""Perk, spell and gear trays.

Trays hold item references. Perks granted by the class or ancestry live
in `class_perks`, count as present, and cannot be removed. Spells granted
by the ancestry, class or perks live in `required_spells`, are merged into
the spell tray, count against the spell cap, and cannot be removed.

Mutators raise BuilderError subclasses; the caller decides how to report
them.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping, Sequence

from pydantic import BaseModel, Field

from vagabond_builder.builder.state import BuilderState
from vagabond_builder.core.exceptions import (
    DuplicateSelectionError,
    LockedSelectionError,
    SelectionError,
    SelectionLimitError,
)
from vagabond_builder.models.enums import Skill, Stat, WeaponSkill
from vagabond_builder.models.items import AncestryItem, ClassItem, LevelFeature, PerkItem


def _level_one_features(class_item: ClassItem | None) -> list[LevelFeature]:
    return class_item.system.features_at(1) if class_item else []


def _dedupe(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(value for value in values if value))


# =============================================================================
# Grants
# =============================================================================


def perk_link_pattern(perk_pack: str) -> re.Pattern[str]:
    """Pattern matching perk links such as @UUID[Compendium.<pack>.Item.<id>]."""
    return re.compile(rf"@UUID\[(Compendium\.{re.escape(perk_pack)}\.Item\.[^\]]+)\]")


def class_granted_perks(class_item: ClassItem | None, perk_pack: str) -> list[str]:
    """Perks the class grants: listed grants plus perk links in feature text."""
    if class_item is None:
        return []
    pattern = perk_link_pattern(perk_pack)
    granted: list[str] = []
    for feature in class_item.system.level_features:
        granted.extend(feature.granted_perks)
        granted.extend(pattern.findall(feature.description))
    return _dedupe(granted)


class PerkGrant(BaseModel):
    """One perk slot offered by an ancestry trait or level-1 class feature.

    Attributes:
        source: Name of the trait or feature.
        allowed_perks: Perks the slot accepts; empty accepts any perk.
        fulfilled: Perk filling the slot, or None while open.
        guaranteed: Filled automatically because the source grants every option.
    """

    source: str = ""
    allowed_perks: list[str] = Field(default_factory=list)
    fulfilled: str | None = None
    guaranteed: bool = False

    @property
    def is_open(self) -> bool:
        return self.fulfilled is None

    def accepts(self, uuid: str) -> bool:
        return not self.allowed_perks or uuid in self.allowed_perks


def collect_perk_grants(ancestry: AncestryItem | None, class_item: ClassItem | None) -> list[PerkGrant]:
    """Perk slots from ancestry traits and level-1 class features.

    Each point of `perk_amount` is one slot. A source whose amount covers
    all of its allowed perks fills its slots up front. Restricted slots sort
    before unrestricted ones, fewest options first, so a specific perk never
    takes a slot that would accept anything.
    """
    sources = [*(ancestry.system.traits if ancestry else []), *_level_one_features(class_item)]
    grants: list[PerkGrant] = []
    for source in sources:
        allowed = list(source.allowed_perks)
        guaranteed = bool(allowed) and source.perk_amount >= len(allowed)
        for index in range(source.perk_amount):
            fulfilled = (allowed[index] if index < len(allowed) else allowed[0]) if guaranteed else None
            grants.append(
                PerkGrant(source=source.name, allowed_perks=allowed, fulfilled=fulfilled, guaranteed=guaranteed)
            )
    return sorted(grants, key=lambda grant: (not grant.allowed_perks, len(grant.allowed_perks)))


def fill_grants(grants: Sequence[PerkGrant], perks: Iterable[str]) -> list[PerkGrant]:
    """Assign manually added perks to open slots, first accepting slot wins.

    Perks that fit no open slot are left unassigned.
    """
    filled = [grant.model_copy() for grant in grants]
    for uuid in perks:
        slot = next((grant for grant in filled if grant.is_open and grant.accepts(uuid)), None)
        if slot is not None:
            slot.fulfilled = uuid
    return filled


def guaranteed_perks(ancestry: AncestryItem | None, class_item: ClassItem | None) -> list[str]:
    """Perks filled automatically by guaranteed slots."""
    return _dedupe(grant.fulfilled for grant in collect_perk_grants(ancestry, class_item) if grant.guaranteed)


def collect_required_spells(
    ancestry: AncestryItem | None,
    class_item: ClassItem | None,
    perks: Iterable[PerkItem],
) -> list[str]:
    """Spells the ancestry traits, level-1 class features and perks require."""
    required: list[str] = []
    if ancestry is not None:
        for trait in ancestry.system.traits:
            required.extend(trait.required_spells)
    for feature in _level_one_features(class_item):
        required.extend(feature.required_spells)
    for perk in perks:
        required.extend(perk.system.required_spells)
    return _dedupe(required)


def check_prerequisites(
    perk: PerkItem,
    stats: Mapping[Stat, int | None],
    trained: Iterable[Skill | WeaponSkill],
    spells: Collection[str],
) -> list[str]:
    """List the prerequisites a perk has that the character does not meet.

    Args:
        perk: The perk to check.
        stats: Final stat values.
        trained: Trained skills.
        spells: Spell references and names in the tray.

    Returns:
        Human-readable descriptions of unmet prerequisites.
    """
    requirements = perk.system.prerequisites
    trained_values = {skill.value for skill in trained}
    unmet: list[str] = []
    for requirement in requirements.stats:
        if (stats.get(requirement.stat) or 0) < requirement.value:
            unmet.append(f"{requirement.stat.abbreviation} {requirement.value}+")
    for skill in requirements.trained_skills:
        if skill.value not in trained_values:
            unmet.append(f"Trained in {skill.value}")
    for spell in requirements.spells:
        if spell not in spells:
            unmet.append(f"Spell: {spell}")
    if requirements.has_any_spell and not spells:
        unmet.append("Any spell")
    return unmet


def sync_required_spells(state: BuilderState, required: Sequence[str]) -> None:
    """Replace the required spells and merge them into the spell tray.

    Spells that stop being required stay in the tray as ordinary picks.
    """
    state.required_spells = _dedupe(required)
    state.spells = _dedupe([*state.required_spells, *state.spells])


# =============================================================================
# Perk Tray
# =============================================================================


def add_perk(state: BuilderState, uuid: str, grants: Sequence[PerkGrant]) -> None:
    """Add a perk to the manual tray, filling an open grant slot.

    Args:
        state: Builder state.
        uuid: Perk reference.
        grants: Slots from collect_perk_grants; perks already in the tray
            are assigned to them before checking.

    Raises:
        DuplicateSelectionError: If the perk is already granted or added.
        SelectionLimitError: If every slot is filled.
        SelectionError: If no open slot allows the perk.
    """
    if uuid in state.perks or uuid in state.class_perks:
        raise DuplicateSelectionError("Perk already selected", field_name="perks", invalid_value=uuid)
    open_slots = [grant for grant in fill_grants(grants, state.perks) if grant.is_open]
    if not open_slots:
        raise SelectionLimitError(
            "All perk grants have been fulfilled",
            limit=len(grants),
            field_name="perks",
            invalid_value=uuid,
        )
    if not any(grant.accepts(uuid) for grant in open_slots):
        raise SelectionError("This perk is not allowed for the current grant", field_name="perks", invalid_value=uuid)
    state.perks = [*state.perks, uuid]


def remove_perk(state: BuilderState, uuid: str) -> None:
    """Remove a manually added perk.

    Raises:
        LockedSelectionError: If the perk is granted automatically.
        SelectionError: If the perk is not in the tray.
    """
    if uuid in state.class_perks:
        raise LockedSelectionError("Granted perks cannot be removed", field_name="perks", invalid_value=uuid)
    if uuid not in state.perks:
        raise SelectionError("Perk is not selected", field_name="perks", invalid_value=uuid)
    state.perks = [perk for perk in state.perks if perk != uuid]
    state.clear_preview_if(uuid)


# =============================================================================
# Spell Tray
# =============================================================================


def spell_cap(class_item: ClassItem | None) -> int:
    """Spells known at level 1; 0 without a spellcasting class."""
    if class_item is None or not class_item.system.is_spellcaster:
        return 0
    return class_item.system.spells_at(1)


def add_spell(state: BuilderState, uuid: str, cap: int) -> None:
    """Add a spell to the tray.

    Raises:
        DuplicateSelectionError: If the spell is already in the tray.
        SelectionLimitError: If the tray is at the cap.
    """
    if uuid in state.spells:
        raise DuplicateSelectionError("Spell already selected", field_name="spells", invalid_value=uuid)
    if len(state.spells) >= cap:
        raise SelectionLimitError("Spell limit reached", limit=cap, field_name="spells", invalid_value=uuid)
    state.spells = [*state.spells, uuid]


def remove_spell(state: BuilderState, uuid: str) -> None:
    """Remove a spell from the tray.

    Raises:
        LockedSelectionError: If the spell is required.
        SelectionError: If the spell is not in the tray.
    """
    if uuid in state.required_spells:
        raise LockedSelectionError("Required spells cannot be removed", field_name="spells", invalid_value=uuid)
    if uuid not in state.spells:
        raise SelectionError("Spell is not selected", field_name="spells", invalid_value=uuid)
    state.spells = [spell for spell in state.spells if spell != uuid]
    state.clear_preview_if(uuid)


def clear_spells(state: BuilderState) -> None:
    """Empty the spell tray except for required spells."""
    removed = [spell for spell in state.spells if spell not in state.required_spells]
    state.spells = list(state.required_spells)
    if state.preview in removed:
        state.preview = None


# =============================================================================
# Gear Tray
# =============================================================================


def add_gear(state: BuilderState, uuid: str) -> None:
    """Add gear to the tray. Budget is checked by the caller and never blocks.

    Raises:
        DuplicateSelectionError: If the gear is already in the tray.
    """
    if uuid in state.gear:
        raise DuplicateSelectionError("Gear already selected", field_name="gear", invalid_value=uuid)
    state.gear = [*state.gear, uuid]


def remove_gear(state: BuilderState, uuid: str) -> None:
    """Remove gear from the tray.

    Raises:
        SelectionError: If the gear is not in the tray.
    """
    if uuid not in state.gear:
        raise SelectionError("Gear is not selected", field_name="gear", invalid_value=uuid)
    state.gear = [item for item in state.gear if item != uuid]
    state.clear_preview_if(uuid)


__all__ = [
    "perk_link_pattern",
    "class_granted_perks",
    "guaranteed_perks",
    "PerkGrant",
    "collect_perk_grants",
    "fill_grants",
    "collect_required_spells",
    "check_prerequisites",
    "sync_required_spells",
    "add_perk",
    "remove_perk",
    "spell_cap",
    "add_spell",
    "remove_spell",
    "clear_spells",
    "add_gear",
    "remove_gear",
]
