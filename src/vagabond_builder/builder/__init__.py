"""Character builder: step-by-step creation of a new character.

The builder keeps every choice in an in-memory BuilderState until the
player finishes, then commits the selections to the character through the
host's DocumentStore. Host services (reference resolution, compendium
listings, persistence, localization, dice and notifications) are passed in
as protocol implementations.

Example:
    >>> builder = CharacterBuilder("actor-1", resolver=resolver, catalog=catalog,
    ...                            store=store, localizer=localizer,
    ...                            roller=roller, notifier=notifier)
    >>> await builder.randomize_all()
    True
    >>> result = await builder.finish()
"""

from __future__ import annotations

from vagabond_builder.builder.commit import CommitResult, collect_items, commit_character, flag_for_creation
from vagabond_builder.builder.compendium import CompendiumCatalog
from vagabond_builder.builder.economy import Economy, compute_economy
from vagabond_builder.builder.history import SessionHistory
from vagabond_builder.builder.protocols import (
    CompendiumSource,
    DieRoller,
    DocumentResolver,
    DocumentStore,
    Localizer,
    Notifier,
    safe_localize,
)
from vagabond_builder.builder.session import CharacterBuilder
from vagabond_builder.builder.state import BuilderState, PickedValue, StatAssignment
from vagabond_builder.builder.validation import ValidationReport, gate_reasons, step_complete, validate_state


__all__ = [
    # Facade
    "CharacterBuilder",
    # State
    "BuilderState",
    "StatAssignment",
    "PickedValue",
    "SessionHistory",
    # Host protocols
    "DocumentResolver",
    "CompendiumSource",
    "DocumentStore",
    "Localizer",
    "DieRoller",
    "Notifier",
    "safe_localize",
    # Catalog & economy
    "CompendiumCatalog",
    "Economy",
    "compute_economy",
    # Validation & commit
    "ValidationReport",
    "gate_reasons",
    "step_complete",
    "validate_state",
    "CommitResult",
    "collect_items",
    "commit_character",
    "flag_for_creation",
]
