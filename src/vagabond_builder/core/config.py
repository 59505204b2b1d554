"""Configuration management for the Vagabond character engine.

This module provides centralized configuration using pydantic-settings,
supporting environment variables, .env files, and explicit overrides.
Settings are loaded once and passed into the engine and builder rather
than read from ambient state inside rules code.

Example:
    >>> from vagabond_builder.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.level_pacing
    'normal'

Environment Variables:
    VAGABOND_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    VAGABOND_RULES_LEVEL_PACING: XP curve (quick, normal, epic, saga)
    VAGABOND_RULES_DEFAULT_BUDGET: Starting budget without a pack, in base units
    VAGABOND_COMPENDIUM_SPELLS: Pack id that lists spells
    VAGABOND_RANDOM_SEED: Seed for builder randomizers
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vagabond_builder.core.constants import (
    BASE_INVENTORY_SLOTS,
    DEFAULT_ANCESTRY_WEIGHTS,
    DEFAULT_STARTING_BUDGET,
    HISTORY_SIZE,
    STAT_BONUS_CAP,
    STAT_BONUS_ELIGIBLE_MAX,
)
from vagabond_builder.core.exceptions import ConfigurationError


class RulesSettings(BaseSettings):
    """Configuration for table-level rule options.

    Attributes:
        level_pacing: XP curve used for level-up eligibility.
        default_budget: Builder budget in base units when no pack is chosen.
        base_inventory_slots: Inventory slots before Might and bonuses.
        stat_bonus_eligible_max: Highest stat value that may take a bonus point.
        stat_bonus_cap: Highest value a bonus point may raise a stat to.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAGABOND_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level_pacing: Literal["quick", "normal", "epic", "saga"] = Field(
        default="normal",
        description="XP pacing curve",
    )
    default_budget: int = Field(
        default=DEFAULT_STARTING_BUDGET,
        ge=0,
        description="Starting budget without a pack, in base units",
    )
    base_inventory_slots: int = Field(
        default=BASE_INVENTORY_SLOTS,
        ge=0,
        description="Inventory slots before Might and bonuses",
    )
    stat_bonus_eligible_max: int = Field(
        default=STAT_BONUS_ELIGIBLE_MAX,
        ge=0,
        le=12,
        description="Highest stat value that may receive a bonus point",
    )
    stat_bonus_cap: int = Field(
        default=STAT_BONUS_CAP,
        ge=0,
        le=12,
        description="Highest value a bonus point may raise a stat to",
    )

    @model_validator(mode="after")
    def validate_bonus_bounds(self) -> "RulesSettings":
        """Ensure the bonus cap is above the eligibility threshold.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If no stat could ever receive a bonus point.
        """
        if self.stat_bonus_cap <= self.stat_bonus_eligible_max:
            raise ConfigurationError(
                f"stat_bonus_cap ({self.stat_bonus_cap}) must be greater than "
                f"stat_bonus_eligible_max ({self.stat_bonus_eligible_max})",
                config_key="stat_bonus_cap",
            )
        return self


class CompendiumSettings(BaseSettings):
    """Pack identifiers the builder lists its options from.

    Attributes:
        ancestries: Pack listing ancestry items.
        classes: Pack listing class items.
        perks: Pack listing perk items; also the pack perk links point into.
        spells: Pack listing spell items.
        starting_packs: Pack listing starter pack items.
        gear: Pack listing purchasable equipment.
        index_fields: Extra index fields requested for every listing.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAGABOND_COMPENDIUM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ancestries: str = Field(default="vagabond.ancestries")
    classes: str = Field(default="vagabond.classes")
    perks: str = Field(default="vagabond.perks")
    spells: str = Field(default="vagabond.spells")
    starting_packs: str = Field(default="vagabond.starting-packs")
    gear: str = Field(default="vagabond.equipment")
    index_fields: list[str] = Field(
        default_factory=lambda: ["system.isSpellcaster", "system.baseCost"],
        description="Extra index fields requested for every listing",
    )


class RandomizerSettings(BaseSettings):
    """Configuration for the builder randomizers.

    Attributes:
        ancestry_weights: Relative weight of each ancestry name.
        auto_assign_stats: Place a randomized array into the slots directly.
        seed: Optional seed for reproducible randomization.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAGABOND_RANDOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ancestry_weights: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_ANCESTRY_WEIGHTS),
        description="Relative weight of each ancestry name",
    )
    auto_assign_stats: bool = Field(
        default=True,
        description="Place randomized arrays straight into the stat slots",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for reproducible randomization",
    )

    @field_validator("ancestry_weights", mode="after")
    @classmethod
    def validate_weights(cls, value: dict[str, int]) -> dict[str, int]:
        """Reject negative weights and tables that weigh nothing.

        Args:
            value: The weight table to validate.

        Returns:
            The validated weight table.

        Raises:
            ConfigurationError: If any weight is negative or all are zero.
        """
        negative = [name for name, weight in value.items() if weight < 0]
        if negative:
            raise ConfigurationError(
                "Ancestry weights must not be negative",
                config_key="ancestry_weights",
                details={"negative": negative},
            )
        if value and sum(value.values()) == 0:
            raise ConfigurationError(
                "Ancestry weights must not all be zero",
                config_key="ancestry_weights",
            )
        return value


class Settings(BaseSettings):
    """Top-level settings aggregating all configuration domains.

    Attributes:
        app_name: Library name used in log context.
        debug: Enable debug mode.
        log_level: Logging level.
        log_json: Render logs as JSON.
        history_size: Undo snapshots kept per builder session.
        rules: Rule options.
        compendium: Pack identifiers.
        randomizer: Randomizer options.
    """

    model_config = SettingsConfigDict(
        env_prefix="VAGABOND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Vagabond Character Builder",
        description="Library name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON",
    )
    history_size: int = Field(
        default=HISTORY_SIZE,
        ge=0,
        le=500,
        description="Undo snapshots kept per builder session",
    )

    rules: RulesSettings = Field(default_factory=RulesSettings)
    compendium: CompendiumSettings = Field(default_factory=CompendiumSettings)
    randomizer: RandomizerSettings = Field(default_factory=RandomizerSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "RulesSettings",
    "CompendiumSettings",
    "RandomizerSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
