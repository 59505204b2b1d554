"""Rules constants for the Vagabond character engine.

This module holds the plain numeric tables of the ruleset: stat ranges,
the d12 stat arrays, the speed table, and economy conversion rates.
Tables keyed by enumerations (skill/stat pairings, metals, armor types)
are properties of the enums in vagabond_builder.models.enums.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import NamedTuple


# =============================================================================
# Stat Constants
# =============================================================================

STAT_MIN = 0
"""Lowest possible stat value or total."""

STAT_MAX = 12
"""Highest possible stat value or total."""

STAT_ARRAYS: MappingProxyType[int, tuple[int, ...]] = MappingProxyType({
    1: (5, 5, 5, 4, 4, 3),
    2: (5, 5, 5, 5, 3, 2),
    3: (6, 5, 4, 4, 4, 3),
    4: (6, 5, 5, 4, 3, 2),
    5: (6, 6, 4, 3, 3, 3),
    6: (6, 6, 4, 4, 3, 2),
    7: (6, 6, 5, 3, 2, 2),
    8: (7, 4, 4, 4, 4, 2),
    9: (7, 4, 4, 4, 3, 3),
    10: (7, 5, 4, 3, 3, 2),
    11: (7, 5, 5, 2, 2, 2),
    12: (7, 6, 4, 2, 2, 2),
})
"""The twelve d12 stat arrays, keyed by the die face that selects them."""

STAT_ARRAY_DIE = 12

DIFFICULTY_BASE = 20
"""Difficulty before stats and bonuses are subtracted (lower is better)."""

# =============================================================================
# Movement
# =============================================================================


class SpeedTier(NamedTuple):
    """Movement values granted at a Dexterity threshold."""

    base: int
    crawl: int
    travel: int


SPEED_TABLE: MappingProxyType[int, SpeedTier] = MappingProxyType({
    0: SpeedTier(base=25, crawl=75, travel=5),
    2: SpeedTier(base=25, crawl=75, travel=5),
    4: SpeedTier(base=30, crawl=90, travel=6),
    6: SpeedTier(base=35, crawl=105, travel=7),
})
"""Speed tiers keyed by minimum Dexterity total; the highest match wins."""

# =============================================================================
# Inventory
# =============================================================================

BASE_INVENTORY_SLOTS = 8
"""Slots every character has before Might and bonuses."""

MAX_FATIGUE = 5

# =============================================================================
# Economy
# =============================================================================

GOLD_IN_BASE_UNITS = 10
SILVER_IN_BASE_UNITS = 1
COPPER_PER_BASE_UNIT = 10

DEFAULT_STARTING_BUDGET = 300
"""Budget in base units when no starting pack has been chosen."""

# =============================================================================
# Combat
# =============================================================================

DEFAULT_CRIT_NUMBER = 20
MIN_CRIT_NUMBER = 1
DEFAULT_SPELL_DIE_SIZE = 6
MIN_DIE_SIZE = 4
MAX_DIE_SIZE = 20

# =============================================================================
# Builder
# =============================================================================

STAT_BONUS_ELIGIBLE_MAX = 6
"""Only stats at or below this value may receive ancestry bonus points."""

STAT_BONUS_CAP = 7
"""A stat raised by ancestry bonus points may not exceed this value."""

DEFAULT_ANCESTRY_WEIGHTS: MappingProxyType[str, int] = MappingProxyType({
    "Human": 5,
    "Dwarf": 1,
    "Elf": 1,
    "Halfling": 1,
})

HISTORY_SIZE = 50
"""Default number of undo snapshots kept per builder session."""


__all__ = [
    "STAT_MIN",
    "STAT_MAX",
    "STAT_ARRAYS",
    "STAT_ARRAY_DIE",
    "DIFFICULTY_BASE",
    "SpeedTier",
    "SPEED_TABLE",
    "BASE_INVENTORY_SLOTS",
    "MAX_FATIGUE",
    "GOLD_IN_BASE_UNITS",
    "SILVER_IN_BASE_UNITS",
    "COPPER_PER_BASE_UNIT",
    "DEFAULT_STARTING_BUDGET",
    "DEFAULT_CRIT_NUMBER",
    "MIN_CRIT_NUMBER",
    "DEFAULT_SPELL_DIE_SIZE",
    "MIN_DIE_SIZE",
    "MAX_DIE_SIZE",
    "STAT_BONUS_ELIGIBLE_MAX",
    "STAT_BONUS_CAP",
    "DEFAULT_ANCESTRY_WEIGHTS",
    "HISTORY_SIZE",
]
