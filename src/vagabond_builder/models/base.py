"""Shared pydantic base for persisted documents.

Persisted documents use a camelCase `system.*` tree on the host side while
the Python API stays snake_case. DocumentModel wires the alias generator
so that `model_validate` accepts either spelling and
`model_dump(by_alias=True)` produces the host layout.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Base class for every persisted schema fragment.

    Configured for:
    - Assignment validation (mutations are checked)
    - Ignoring unknown host fields
    - camelCase aliases with snake_case population
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_host(self) -> dict[str, Any]:
        """Dump this model in the host's camelCase JSON layout.

        Returns:
            JSON-compatible dictionary keyed by host field names.
        """
        return self.model_dump(by_alias=True, mode="json")


def coerce_flag(value: Any) -> bool:
    """Coerce a host flag value to a boolean.

    Active contributions deliver flags as strings or numbers; "true", "1"
    and "yes" are true, as is any number above zero.

    Args:
        value: Raw flag value.

    Returns:
        The flag as a boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    if isinstance(value, (int, float)):
        return value > 0
    return bool(value)


__all__ = [
    "DocumentModel",
    "coerce_flag",
]
