"""Random choices for the builder's randomize buttons."""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence

from vagabond_builder.core.exceptions import SelectionError
from vagabond_builder.core.logging import get_logger
from vagabond_builder.models.items import IndexEntry


logger = get_logger(__name__)


def uniform_choice(entries: Sequence[IndexEntry], rng: random.Random) -> IndexEntry:
    """Pick an entry uniformly.

    Raises:
        SelectionError: If there is nothing to choose from.
    """
    if not entries:
        raise SelectionError("Nothing to choose from")
    return rng.choice(list(entries))


def weighted_choice(
    entries: Sequence[IndexEntry],
    weights: Mapping[str, int],
    rng: random.Random,
) -> IndexEntry:
    """Pick an entry using a name-keyed weight table.

    Entries whose names are not in the table are not candidates. When no
    entry matches the table, the choice falls back to uniform.

    Args:
        entries: Candidates.
        weights: Relative weight per entry name.
        rng: Random source.

    Returns:
        The chosen entry.

    Raises:
        SelectionError: If there is nothing to choose from.
    """
    weighted = [(entry, weights[entry.name]) for entry in entries if weights.get(entry.name, 0) > 0]
    if not weighted:
        logger.debug("No weighted candidates, choosing uniformly", candidates=len(entries))
        return uniform_choice(entries, rng)
    candidates, entry_weights = zip(*weighted)
    return rng.choices(candidates, weights=entry_weights, k=1)[0]


def sample_spells(
    candidates: Sequence[str],
    required: Sequence[str],
    cap: int,
    rng: random.Random,
) -> list[str]:
    """Keep the required spells and fill the rest of the cap at random.

    Args:
        candidates: Spell references to sample from.
        required: Spells that must stay in the tray.
        cap: Spell cap.
        rng: Random source.

    Returns:
        The new spell tray, required spells first.
    """
    chosen = list(dict.fromkeys(required))
    pool = [uuid for uuid in dict.fromkeys(candidates) if uuid not in chosen]
    room = max(0, cap - len(chosen))
    return chosen + rng.sample(pool, min(room, len(pool)))


__all__ = [
    "uniform_choice",
    "weighted_choice",
    "sample_spells",
]
