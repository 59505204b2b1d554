"""Rules engine: bonus formulas, derived stats, progression and dice."""

from __future__ import annotations

from vagabond_builder.engine.derived import (
    BONUS_KEYS,
    DICE_KEYS,
    OVERRIDE_KEYS,
    BonusLedger,
    CharacterSheet,
    CombatResult,
    Contribution,
    DerivedStatEngine,
    HealthResult,
    InventoryResult,
    LuckResult,
    ManaResult,
    SaveResult,
    SkillResult,
    SpeedResult,
    SpellcastingResult,
    StatResult,
    prepare_character,
)
from vagabond_builder.engine.dice import (
    CheckResult,
    D20DieRoller,
    DiceResult,
    DiceRoller,
    roll,
)
from vagabond_builder.engine.formula import (
    BonusInput,
    BonusSpec,
    RollData,
    evaluate,
    evaluate_strict,
)
from vagabond_builder.engine.progression import (
    LevelProgress,
    level_progress,
    xp_required,
)


__all__ = [
    # Formula
    "BonusSpec",
    "BonusInput",
    "RollData",
    "evaluate",
    "evaluate_strict",
    # Derived stats
    "BONUS_KEYS",
    "DICE_KEYS",
    "OVERRIDE_KEYS",
    "Contribution",
    "BonusLedger",
    "StatResult",
    "SaveResult",
    "SkillResult",
    "HealthResult",
    "SpellcastingResult",
    "ManaResult",
    "SpeedResult",
    "InventoryResult",
    "LuckResult",
    "CombatResult",
    "CharacterSheet",
    "DerivedStatEngine",
    "prepare_character",
    # Progression
    "LevelProgress",
    "level_progress",
    "xp_required",
    # Dice
    "DiceResult",
    "CheckResult",
    "DiceRoller",
    "D20DieRoller",
    "roll",
]
