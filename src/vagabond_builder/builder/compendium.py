"""Cached compendium listings for the builder steps."""

from __future__ import annotations

from collections.abc import Sequence

from vagabond_builder.builder.protocols import CompendiumSource
from vagabond_builder.core.config import CompendiumSettings
from vagabond_builder.core.logging import get_logger
from vagabond_builder.models.enums import BuilderStep
from vagabond_builder.models.items import IndexEntry


logger = get_logger(__name__)


class CompendiumCatalog:
    """Lazily loads and caches pack indices for one builder session.

    Each pack is listed at most once per session. The cache is never
    invalidated; a new session gets a new catalog.

    Attributes:
        hits: Number of index requests served from the cache.
        misses: Number of index requests that reached the source.
    """

    def __init__(self, source: CompendiumSource, settings: CompendiumSettings) -> None:
        self._source = source
        self._settings = settings
        self._cache: dict[str, list[IndexEntry]] = {}
        self.hits = 0
        self.misses = 0

    @property
    def settings(self) -> CompendiumSettings:
        return self._settings

    def pack_for(self, step: BuilderStep) -> str | None:
        """Get the pack a builder step lists its options from.

        The stats step has no pack.
        """
        packs = {
            BuilderStep.ANCESTRY: self._settings.ancestries,
            BuilderStep.CLASS: self._settings.classes,
            BuilderStep.PERKS: self._settings.perks,
            BuilderStep.SPELLS: self._settings.spells,
            BuilderStep.STARTING_PACKS: self._settings.starting_packs,
            BuilderStep.GEAR: self._settings.gear,
        }
        return packs.get(step)

    async def index(self, pack_id: str, fields: Sequence[str] | None = None) -> list[IndexEntry]:
        """Get a pack's index, listing it on first use.

        Args:
            pack_id: Pack identifier.
            fields: Extra index fields; defaults to the configured fields.

        Returns:
            The pack's entries.
        """
        cached = self._cache.get(pack_id)
        if cached is not None:
            self.hits += 1
            return list(cached)

        self.misses += 1
        requested = list(fields) if fields is not None else list(self._settings.index_fields)
        entries = await self._source.list_index(pack_id, requested)
        self._cache[pack_id] = list(entries)
        logger.debug("Compendium indexed", pack_id=pack_id, entries=len(entries))
        return list(entries)

    async def options(self, step: BuilderStep) -> list[IndexEntry]:
        """Get the selectable entries for a builder step, sorted by name."""
        pack_id = self.pack_for(step)
        if pack_id is None:
            return []
        entries = await self.index(pack_id)
        return sorted(entries, key=lambda entry: entry.name)


__all__ = [
    "CompendiumCatalog",
]
