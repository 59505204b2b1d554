"""Vagabond character engine.

Derives a Vagabond character's sheet from its persisted base values and
items, and builds new characters step by step.

- Persisted documents hold base values only (stats, training, current
  resources); every total and maximum is derived on read.
- Dice are rolled with d20; random choices use a seedable random source.

Example:
    >>> from vagabond_builder import CharacterDocument, DerivedStatEngine
    >>>
    >>> document = CharacterDocument.model_validate(host_actor_data)
    >>> sheet = DerivedStatEngine().prepare(document)
    >>> sheet.health.max, sheet.speed.base
    (12, 30)

Modules:
    core: Configuration, logging, constants and exceptions.
    models: Pydantic V2 schemas for characters and items.
    engine: Bonus formulas, derived stats, progression and dice.
    builder: The step-by-step character builder.
"""

from __future__ import annotations

# Core
from vagabond_builder.core.config import Settings, get_settings
from vagabond_builder.core.exceptions import BuilderError, VagabondError
from vagabond_builder.core.logging import configure_logging, get_logger

# Models
from vagabond_builder.models.character import CharacterData, CharacterDocument
from vagabond_builder.models.enums import BuilderStep, Skill, Stat
from vagabond_builder.models.items import Item, parse_item

# Engine
from vagabond_builder.engine.derived import CharacterSheet, Contribution, DerivedStatEngine, prepare_character
from vagabond_builder.engine.dice import DiceRoller

# Builder
from vagabond_builder.builder.compendium import CompendiumCatalog
from vagabond_builder.builder.session import CharacterBuilder


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "VagabondError",
    "BuilderError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "CharacterData",
    "CharacterDocument",
    "BuilderStep",
    "Skill",
    "Stat",
    "Item",
    "parse_item",
    # Engine
    "CharacterSheet",
    "Contribution",
    "DerivedStatEngine",
    "prepare_character",
    "DiceRoller",
    # Builder
    "CompendiumCatalog",
    "CharacterBuilder",
]
