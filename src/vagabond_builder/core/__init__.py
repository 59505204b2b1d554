"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        VagabondError: Base exception for all library errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Data validation errors.

    Configuration:
        Settings: Top-level settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from vagabond_builder.core.config import (
    CompendiumSettings,
    RandomizerSettings,
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from vagabond_builder.core.exceptions import (
    BuilderError,
    ConfigurationError,
    DiceRollError,
    DuplicateSelectionError,
    EngineError,
    FormulaError,
    IncompleteCharacterError,
    LockedSelectionError,
    ReferenceResolutionError,
    SelectionError,
    SelectionLimitError,
    StepGateError,
    VagabondError,
    ValidationError,
)
from vagabond_builder.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "VagabondError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Engine exceptions
    "EngineError",
    "FormulaError",
    "DiceRollError",
    # Builder exceptions
    "BuilderError",
    "StepGateError",
    "SelectionError",
    "DuplicateSelectionError",
    "SelectionLimitError",
    "LockedSelectionError",
    "IncompleteCharacterError",
    "ReferenceResolutionError",
    # Configuration
    "Settings",
    "RulesSettings",
    "CompendiumSettings",
    "RandomizerSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
