"""The character builder facade.

CharacterBuilder holds one builder session: the BuilderState, its undo
history, and the host collaborators it was constructed with. Every player
action goes through the same envelope:

1. Snapshot the state.
2. Run the mutation, which raises a BuilderError when the rules refuse.
3. On refusal, restore the snapshot, notify the player, and return False.
4. On success, push the new state onto the undo history and return True.

Errors raised by the host collaborators are not BuilderErrors and
propagate to the caller.

Example:
    >>> builder = CharacterBuilder("actor-1", resolver=..., catalog=..., store=...,
    ...                            localizer=..., roller=..., notifier=...)
    >>> await builder.select_ancestry("Compendium.vagabond.ancestries.Item.human")
    True
"""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from vagabond_builder.builder import randomizer, skills, trays
from vagabond_builder.builder import stats as stat_assignment
from vagabond_builder.builder.commit import CommitResult, commit_character
from vagabond_builder.builder.compendium import CompendiumCatalog
from vagabond_builder.builder.economy import Economy, compute_economy
from vagabond_builder.builder.history import SessionHistory
from vagabond_builder.builder.protocols import (
    DieRoller,
    DocumentResolver,
    DocumentStore,
    Localizer,
    Notifier,
    safe_localize,
)
from vagabond_builder.builder.state import BuilderState
from vagabond_builder.builder.validation import ValidationReport, gate_reasons, step_complete, validate_state
from vagabond_builder.core.config import Settings, get_settings
from vagabond_builder.core.constants import STAT_ARRAY_DIE
from vagabond_builder.core.exceptions import BuilderError, SelectionError, StepGateError
from vagabond_builder.core.logging import get_logger
from vagabond_builder.engine.derived import CharacterSheet, DerivedStatEngine
from vagabond_builder.models.character import CharacterData, SkillTraining, StatValue
from vagabond_builder.models.enums import BuilderStep, Skill, Stat
from vagabond_builder.models.items import (
    AncestryItem,
    ClassItem,
    EquipmentItem,
    IndexEntry,
    Item,
    ItemBase,
    PerkItem,
    SpellItem,
    StarterPackItem,
)


logger = get_logger(__name__)

_T = TypeVar("_T", bound=ItemBase)

Action = Callable[[], Awaitable[None]]


class CharacterBuilder:
    """Drives a character through the build steps.

    Attributes:
        character_id: Character the session will commit to.
    """

    def __init__(
        self,
        character_id: str,
        *,
        resolver: DocumentResolver,
        catalog: CompendiumCatalog,
        store: DocumentStore,
        localizer: Localizer,
        roller: DieRoller,
        notifier: Notifier,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize a builder session.

        Args:
            character_id: Character to commit to.
            resolver: Reference resolver.
            catalog: Compendium listings for each step.
            store: Character persistence.
            localizer: Message localization.
            roller: Die roller for the stat array roll.
            notifier: Player notifications.
            settings: Library settings; defaults to the global settings.
            rng: Random source for randomizers; seeded from settings by default.
        """
        self.character_id = character_id
        self._resolver = resolver
        self._catalog = catalog
        self._store = store
        self._localizer = localizer
        self._roller = roller
        self._notifier = notifier
        self._settings = settings or get_settings()
        self._rng = rng or random.Random(self._settings.randomizer.seed)
        self._engine = DerivedStatEngine(self._settings)
        self._state = BuilderState()
        self._history = SessionHistory(self._settings.history_size)
        self._history.push(self._state)

    # -------------------------------------------------------------------------
    # Envelope
    # -------------------------------------------------------------------------

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def step(self) -> BuilderStep:
        return self._state.current_step

    @property
    def history(self) -> SessionHistory:
        return self._history

    async def _run(self, action: str, operation: Action) -> bool:
        snapshot = self._state.model_copy(deep=True)
        try:
            await operation()
        except BuilderError as exc:
            self._state = snapshot
            logger.info("Builder action refused", action=action, error=str(exc))
            self._report(exc)
            return False
        self._history.push(self._state)
        logger.debug("Builder action applied", action=action, step=self._state.current_step.value)
        return True

    def _text(self, key: str, fallback: str) -> str:
        localized = safe_localize(self._localizer, key)
        return fallback if localized == key else localized

    def _report(self, exc: BuilderError) -> None:
        message = self._text(f"VAGABOND.Builder.Errors.{type(exc).__name__}", exc.message)
        if exc.severity == "error":
            self._notifier.error(message)
        else:
            self._notifier.warn(message)

    async def _resolve_as(self, uuid: str | None, kind: type[_T]) -> _T | None:
        if not uuid:
            return None
        item = await self._resolver.resolve(uuid)
        return item if isinstance(item, kind) else None

    async def _require(self, uuid: str, kind: type[_T], field_name: str) -> _T:
        item = await self._resolve_as(uuid, kind)
        if item is None:
            raise SelectionError(f"Not a valid {field_name}", field_name=field_name, invalid_value=uuid)
        return item

    async def _ancestry(self) -> AncestryItem | None:
        return await self._resolve_as(self._state.ancestry, AncestryItem)

    async def _class(self) -> ClassItem | None:
        return await self._resolve_as(self._state.character_class, ClassItem)

    async def _refresh_grants(self) -> None:
        """Recompute granted perks and required spells from the selections."""
        ancestry = await self._ancestry()
        class_item = await self._class()
        state = self._state
        state.class_perks = list(
            dict.fromkeys([
                *trays.class_granted_perks(class_item, self._settings.compendium.perks),
                *trays.guaranteed_perks(ancestry, class_item),
            ])
        )
        state.perks = [perk for perk in state.perks if perk not in state.class_perks]
        perks = [await self._resolve_as(uuid, PerkItem) for uuid in state.all_perks]
        required = trays.collect_required_spells(ancestry, class_item, [perk for perk in perks if perk])
        trays.sync_required_spells(state, required)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def _move_to(self, target: BuilderStep) -> None:
        reasons = gate_reasons(self._state, target)
        if reasons:
            raise StepGateError(
                "Complete the earlier steps first",
                current_step=self._state.current_step.value,
                target_step=target.value,
                missing=reasons,
            )
        self._state.current_step = target
        self._state.preview = None

    async def next_step(self) -> bool:
        async def operation() -> None:
            current = self._state.current_step
            if current.next is None:
                raise StepGateError("Already on the last step", current_step=current.value)
            if not step_complete(self._state, current):
                raise StepGateError(
                    "Finish this step first",
                    current_step=current.value,
                    target_step=current.next.value,
                    missing=[current.value],
                )
            self._move_to(current.next)

        return await self._run("next_step", operation)

    async def prev_step(self) -> bool:
        async def operation() -> None:
            previous = self._state.current_step.previous
            if previous is None:
                raise StepGateError("Already on the first step", current_step=self._state.current_step.value)
            self._move_to(previous)

        return await self._run("prev_step", operation)

    async def goto(self, step: BuilderStep) -> bool:
        async def operation() -> None:
            self._move_to(step)

        return await self._run("goto", operation)

    # -------------------------------------------------------------------------
    # Selections
    # -------------------------------------------------------------------------

    async def _select_ancestry(self, uuid: str) -> None:
        await self._require(uuid, AncestryItem, "ancestry")
        state = self._state
        if state.ancestry != uuid:
            state.ancestry = uuid
            state.perks = []
            state.stats.bonus_points = {}
        state.preview = uuid
        await self._refresh_grants()

    async def _select_class(self, uuid: str) -> None:
        class_item = await self._require(uuid, ClassItem, "class")
        state = self._state
        if state.character_class != uuid:
            state.character_class = uuid
            skills.apply_class_skills(state, class_item)
            state.spells = []
        state.preview = uuid
        await self._refresh_grants()

    async def _select_starting_pack(self, uuid: str | None) -> None:
        if uuid is not None:
            await self._require(uuid, StarterPackItem, "starting pack")
        self._state.starting_pack = uuid
        self._state.preview = uuid

    async def select_ancestry(self, uuid: str) -> bool:
        return await self._run("select_ancestry", lambda: self._select_ancestry(uuid))

    async def select_class(self, uuid: str) -> bool:
        return await self._run("select_class", lambda: self._select_class(uuid))

    async def select_starting_pack(self, uuid: str | None) -> bool:
        return await self._run("select_starting_pack", lambda: self._select_starting_pack(uuid))

    async def options(self, step: BuilderStep) -> list[IndexEntry]:
        """List the entries a step offers."""
        return await self._catalog.options(step)

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    async def _sync(self, mutate: Callable[[], None]) -> None:
        mutate()

    async def select_array(self, array_id: int) -> bool:
        return await self._run(
            "select_array",
            lambda: self._sync(lambda: stat_assignment.select_array(self._state.stats, array_id)),
        )

    async def pick_up(self, pool_index: int) -> bool:
        return await self._run(
            "pick_up",
            lambda: self._sync(lambda: stat_assignment.pick_up(self._state.stats, pool_index)),
        )

    async def place(self, stat: Stat) -> bool:
        return await self._run(
            "place",
            lambda: self._sync(lambda: stat_assignment.place(self._state.stats, stat)),
        )

    async def drop(self, stat: Stat, value: int, pool_index: int) -> bool:
        """Assign a dragged pool value directly to a stat."""
        return await self._run(
            "drop",
            lambda: self._sync(lambda: stat_assignment.assign(self._state.stats, stat, value, pool_index)),
        )

    async def unassign(self, stat: Stat) -> bool:
        return await self._run(
            "unassign",
            lambda: self._sync(lambda: stat_assignment.unassign(self._state.stats, stat)),
        )

    async def reset_stats(self) -> bool:
        return await self._run(
            "reset_stats",
            lambda: self._sync(lambda: stat_assignment.reset(self._state.stats)),
        )

    async def _randomize_stats(self, auto_assign: bool) -> None:
        roll = await self._roller.roll(STAT_ARRAY_DIE)
        stat_assignment.randomize(self._state.stats, roll, auto_assign=auto_assign)

    async def randomize_stats(self, *, auto_assign: bool | None = None) -> bool:
        """Roll a d12 for the stat array, auto-assigning per settings by default."""
        if auto_assign is None:
            auto_assign = self._settings.randomizer.auto_assign_stats
        return await self._run("randomize_stats", lambda: self._randomize_stats(auto_assign))

    async def bonus_point_budget(self) -> int:
        ancestry = await self._ancestry()
        return ancestry.system.stat_bonus_points if ancestry else 0

    async def _allocate_bonus_point(self, stat: Stat) -> None:
        budget = await self.bonus_point_budget()
        stat_assignment.allocate_bonus_point(self._state.stats, stat, budget, self._settings.rules)

    async def allocate_bonus_point(self, stat: Stat) -> bool:
        return await self._run("allocate_bonus_point", lambda: self._allocate_bonus_point(stat))

    async def remove_bonus_point(self, stat: Stat) -> bool:
        return await self._run(
            "remove_bonus_point",
            lambda: self._sync(lambda: stat_assignment.remove_bonus_point(self._state.stats, stat)),
        )

    # -------------------------------------------------------------------------
    # Skills & Trays
    # -------------------------------------------------------------------------

    async def _toggle_skill(self, skill: Skill) -> None:
        skills.toggle_skill(self._state, await self._class(), skill, await self._ancestry())

    async def toggle_skill(self, skill: Skill) -> bool:
        return await self._run("toggle_skill", lambda: self._toggle_skill(skill))

    async def _add_perk(self, uuid: str) -> None:
        perk = await self._require(uuid, PerkItem, "perk")
        ancestry = await self._ancestry()
        class_item = await self._class()
        trays.add_perk(self._state, uuid, trays.collect_perk_grants(ancestry, class_item))
        self._state.preview = uuid

        spell_names = [spell.name for spell in [await self._resolve_as(s, SpellItem) for s in self._state.spells] if spell]
        unmet = trays.check_prerequisites(
            perk,
            stat_assignment.final_values(self._state.stats),
            skills.trained_skills(self._state, class_item),
            [*self._state.spells, *spell_names],
        )
        if unmet:
            self._notifier.warn(
                self._text("VAGABOND.Builder.Warnings.PerkPrerequisites", "Prerequisites not met")
                + f": {', '.join(unmet)}"
            )
        await self._refresh_grants()

    async def add_perk(self, uuid: str) -> bool:
        return await self._run("add_perk", lambda: self._add_perk(uuid))

    async def _remove_perk(self, uuid: str) -> None:
        trays.remove_perk(self._state, uuid)
        await self._refresh_grants()

    async def remove_perk(self, uuid: str) -> bool:
        return await self._run("remove_perk", lambda: self._remove_perk(uuid))

    async def spell_cap(self) -> int:
        return trays.spell_cap(await self._class())

    @property
    def required_spells(self) -> list[str]:
        return list(self._state.required_spells)

    async def _add_spell(self, uuid: str) -> None:
        await self._require(uuid, SpellItem, "spell")
        trays.add_spell(self._state, uuid, await self.spell_cap())
        self._state.preview = uuid

    async def add_spell(self, uuid: str) -> bool:
        return await self._run("add_spell", lambda: self._add_spell(uuid))

    async def remove_spell(self, uuid: str) -> bool:
        return await self._run(
            "remove_spell",
            lambda: self._sync(lambda: trays.remove_spell(self._state, uuid)),
        )

    async def clear_spells(self) -> bool:
        return await self._run("clear_spells", lambda: self._sync(lambda: trays.clear_spells(self._state)))

    async def _add_gear(self, uuid: str) -> None:
        await self._require(uuid, EquipmentItem, "gear")
        trays.add_gear(self._state, uuid)
        self._state.preview = uuid
        economy = await self.economy()
        if economy.is_over:
            self._notifier.warn(
                self._text("VAGABOND.Builder.Warnings.OverBudget", "Over budget")
                + f": {economy.remaining:g}"
            )

    async def add_gear(self, uuid: str) -> bool:
        return await self._run("add_gear", lambda: self._add_gear(uuid))

    async def remove_gear(self, uuid: str) -> bool:
        return await self._run(
            "remove_gear",
            lambda: self._sync(lambda: trays.remove_gear(self._state, uuid)),
        )

    def set_preview(self, uuid: str | None) -> None:
        """Show an item in the detail pane. Not recorded in the history."""
        self._state.preview = uuid

    async def economy(self) -> Economy:
        pack = await self._resolve_as(self._state.starting_pack, StarterPackItem)
        gear = [await self._resolve_as(uuid, EquipmentItem) for uuid in self._state.gear]
        return compute_economy(pack, gear, self._settings.rules.default_budget)

    # -------------------------------------------------------------------------
    # Randomizers
    # -------------------------------------------------------------------------

    async def _randomize_ancestry(self) -> None:
        entries = await self._catalog.options(BuilderStep.ANCESTRY)
        choice = randomizer.weighted_choice(entries, self._settings.randomizer.ancestry_weights, self._rng)
        await self._select_ancestry(choice.uuid)

    async def _randomize_class(self) -> None:
        choice = randomizer.uniform_choice(await self._catalog.options(BuilderStep.CLASS), self._rng)
        await self._select_class(choice.uuid)
        class_item = await self._class()
        if class_item is not None:
            skills.randomize_skills(self._state, class_item, self._rng, await self._ancestry())

    async def _randomize_spells(self) -> None:
        entries = await self._catalog.options(BuilderStep.SPELLS)
        self._state.spells = randomizer.sample_spells(
            [entry.uuid for entry in entries],
            self._state.required_spells,
            await self.spell_cap(),
            self._rng,
        )

    async def _randomize_starting_pack(self) -> None:
        choice = randomizer.uniform_choice(await self._catalog.options(BuilderStep.STARTING_PACKS), self._rng)
        await self._select_starting_pack(choice.uuid)

    async def _randomize_all(self) -> None:
        await self._randomize_ancestry()
        await self._randomize_class()
        await self._randomize_stats(True)
        await self._randomize_spells()
        await self._randomize_starting_pack()

    async def randomize_ancestry(self) -> bool:
        return await self._run("randomize_ancestry", self._randomize_ancestry)

    async def randomize_class(self) -> bool:
        return await self._run("randomize_class", self._randomize_class)

    async def randomize_spells(self) -> bool:
        return await self._run("randomize_spells", self._randomize_spells)

    async def randomize_starting_pack(self) -> bool:
        return await self._run("randomize_starting_pack", self._randomize_starting_pack)

    async def randomize_all(self) -> bool:
        """Randomize ancestry, class, stats, spells and starting pack in order."""
        return await self._run("randomize_all", self._randomize_all)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def undo(self) -> bool:
        state = self._history.undo()
        if state is None:
            return False
        self._state = state
        return True

    def redo(self) -> bool:
        state = self._history.redo()
        if state is None:
            return False
        self._state = state
        return True

    # -------------------------------------------------------------------------
    # Validation, Preview & Commit
    # -------------------------------------------------------------------------

    async def validate(self) -> ValidationReport:
        class_item = await self._class()
        return validate_state(
            self._state,
            spell_cap=trays.spell_cap(class_item),
            economy=await self.economy(),
            bonus_budget=await self.bonus_point_budget(),
            unfilled_skill_choices=skills.unfilled_choices(self._state, class_item, await self._ancestry()),
        )

    async def preview_sheet(self) -> CharacterSheet:
        """Derive the sheet the current selections would produce."""
        class_item = await self._class()
        trained = set(skills.trained_skills(self._state, class_item))
        values = stat_assignment.final_values(self._state.stats)
        character = CharacterData(
            stats={stat: StatValue(value=values[stat]) for stat in Stat},
            skills={skill: SkillTraining(trained=skill in trained) for skill in Skill},
        )
        uuids = [
            self._state.ancestry,
            self._state.character_class,
            *self._state.all_perks,
            *self._state.spells,
            *self._state.gear,
        ]
        items: list[Item] = []
        for uuid in uuids:
            item = await self._resolve_as(uuid, ItemBase)
            if item is not None:
                items.append(item)
        return self._engine.derive(character, items)

    async def finish(self) -> CommitResult | None:
        """Commit the character.

        Returns:
            The CommitResult, or None if the commit was refused.
        """
        try:
            report = await self.validate()
            result = await commit_character(
                self._state,
                self.character_id,
                report=report,
                resolver=self._resolver,
                store=self._store,
                engine=self._engine,
            )
        except BuilderError as exc:
            logger.info("Commit refused", error=str(exc))
            self._report(exc)
            return None
        self._notifier.info(self._text("VAGABOND.Builder.Finished", "Character created"))
        return result


__all__ = [
    "CharacterBuilder",
]
