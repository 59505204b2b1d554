"""Collaborator interfaces the builder is constructed with.

The host application supplies every service the builder needs: document
lookup, compendium listings, persistence, localization, dice and user
notifications. Each is a structural Protocol so hosts and tests can pass
any object with the right methods.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from vagabond_builder.core.logging import get_logger
from vagabond_builder.models.character import CharacterDocument
from vagabond_builder.models.items import IndexEntry, Item


logger = get_logger(__name__)


@runtime_checkable
class DocumentResolver(Protocol):
    """Turns stored references into item documents."""

    async def resolve(self, uuid: str) -> Item | None:
        """Resolve a reference, returning None when it no longer exists."""
        ...


@runtime_checkable
class CompendiumSource(Protocol):
    """Lists the contents of a library pack."""

    async def list_index(self, pack_id: str, fields: Sequence[str]) -> list[IndexEntry]:
        """List a pack's entries with the requested extra fields."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Persists character documents.

    Failures are raised by the host and propagate through the builder
    unchanged.
    """

    async def fetch(self, character_id: str) -> CharacterDocument:
        """Load a character with its embedded items."""
        ...

    async def update(self, character_id: str, changes: Mapping[str, Any]) -> None:
        """Apply dotted-path changes such as {'system.stats.might.value': 5}."""
        ...

    async def create_embedded_items(
        self,
        character_id: str,
        items: Sequence[Mapping[str, Any]],
    ) -> list[Item]:
        """Embed new items in a character and return them as created."""
        ...


@runtime_checkable
class Localizer(Protocol):
    """Looks up translated strings."""

    def localize(self, key: str) -> str:
        ...


@runtime_checkable
class DieRoller(Protocol):
    """Rolls a single die; asynchronous so hosts may synchronize rolls."""

    async def roll(self, sides: int) -> int:
        """Return a uniformly distributed integer in [1, sides]."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Shows messages to the player."""

    def info(self, message: str) -> None:
        ...

    def warn(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...


def safe_localize(localizer: Localizer, key: str) -> str:
    """Localize a key, falling back to the key itself on any failure.

    Args:
        localizer: The host localizer.
        key: Translation key.

    Returns:
        The translated string, or the key.
    """
    try:
        text = localizer.localize(key)
    except Exception as exc:
        logger.debug("Localization failed", key=key, error=str(exc))
        return key
    return text if isinstance(text, str) and text else key


__all__ = [
    "DocumentResolver",
    "CompendiumSource",
    "DocumentStore",
    "Localizer",
    "DieRoller",
    "Notifier",
    "safe_localize",
]
