"""Custom exception hierarchy for the Vagabond character engine.

This module defines the exception hierarchy shared by the derived-stat
engine and the character builder. All exceptions inherit from
VagabondError, enabling unified error handling at the library boundary
while preserving domain-specific context.

Example:
    >>> from vagabond_builder.core.exceptions import FormulaError
    >>> raise FormulaError("Unknown reference", formula="@might.total + 1", path="might.total")
"""

from __future__ import annotations

from typing import Any


class VagabondError(Exception):
    """Base exception for all Vagabond engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(VagabondError):
    """Raised when library configuration is invalid.

    This includes invalid rule settings, malformed weight tables, or
    values that cannot be loaded from the environment.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(VagabondError):
    """Raised when data validation fails.

    This includes constraint violations in persisted character data or
    values supplied by the host that the engine cannot accept.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


# =============================================================================
# Engine Domain Exceptions
# =============================================================================


class EngineError(VagabondError):
    """Base exception for derived-stat engine errors."""


class FormulaError(EngineError):
    """Raised when a bonus formula cannot be evaluated.

    Only the strict evaluator raises this. The derivation pass always goes
    through the fail-soft evaluator, which logs and substitutes 0.
    """

    def __init__(
        self,
        message: str,
        *,
        formula: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize formula error with expression context.

        Args:
            message: Human-readable error description.
            formula: The formula text that failed.
            path: The @path reference that could not be resolved, if any.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if formula is not None:
            combined_details["formula"] = formula
        if path:
            combined_details["path"] = path
        super().__init__(message, details=combined_details)


class DiceRollError(EngineError):
    """Raised when dice rolling operations fail.

    This typically occurs when parsing invalid dice notation or when a
    die size is out of range.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# Builder Domain Exceptions
# =============================================================================


class BuilderError(VagabondError):
    """Base exception for character builder errors.

    Builder errors describe actions the player attempted that the rules do
    not allow. The CharacterBuilder facade turns them into notifications.
    """

    severity: str = "warn"


class StepGateError(BuilderError):
    """Raised when navigation to a builder step is not yet allowed."""

    def __init__(
        self,
        message: str,
        *,
        current_step: str | None = None,
        target_step: str | None = None,
        missing: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize step gate error with navigation context.

        Args:
            message: Human-readable error description.
            current_step: The step the builder is on.
            target_step: The step that was requested.
            missing: Prerequisites that are not yet satisfied.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if current_step:
            combined_details["current_step"] = current_step
        if target_step:
            combined_details["target_step"] = target_step
        if missing:
            combined_details["missing"] = missing
        super().__init__(message, details=combined_details)


class SelectionError(BuilderError):
    """Raised when a selection, tray or assignment action is rejected."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize selection error with field context.

        Args:
            message: Human-readable error description.
            field_name: The selection field being mutated.
            invalid_value: The value that was rejected.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class DuplicateSelectionError(SelectionError):
    """Raised when an item is already present in a tray."""


class SelectionLimitError(SelectionError):
    """Raised when a tray or pool is already at its limit."""

    def __init__(
        self,
        message: str,
        *,
        limit: int | None = None,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize selection limit error.

        Args:
            message: Human-readable error description.
            limit: The limit that was reached.
            field_name: The selection field being mutated.
            invalid_value: The value that was rejected.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if limit is not None:
            combined_details["limit"] = limit
        super().__init__(
            message,
            field_name=field_name,
            invalid_value=invalid_value,
            details=combined_details,
        )


class LockedSelectionError(SelectionError):
    """Raised when removing a selection granted by the class or ancestry."""


class IncompleteCharacterError(BuilderError):
    """Raised when a commit is attempted before mandatory steps are done."""

    severity = "error"

    def __init__(
        self,
        message: str,
        *,
        missing: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize incomplete character error.

        Args:
            message: Human-readable error description.
            missing: Names of the mandatory selections that are missing.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if missing:
            combined_details["missing"] = missing
        super().__init__(message, details=combined_details)


class ReferenceResolutionError(BuilderError):
    """Raised when a mandatory reference resolves to nothing during commit."""

    severity = "error"

    def __init__(
        self,
        message: str,
        *,
        uuid: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize reference resolution error.

        Args:
            message: Human-readable error description.
            uuid: The reference that could not be resolved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if uuid:
            combined_details["uuid"] = uuid
        super().__init__(message, details=combined_details)


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
]
