"""Stat array assignment.

The player picks one of twelve d12 stat arrays, then moves its six values
from the pool onto the stats, either by picking a value up and placing it
or by dropping a (value, pool index) pair directly on a stat. Both paths
go through assign(), which keeps the invariant that the assigned slots and
the pool together always hold exactly the selected array's values.

All functions mutate the StatAssignment in place and raise SelectionError
when an action is not allowed.
"""

from __future__ import annotations

from collections import Counter

from vagabond_builder.builder.state import PickedValue, StatAssignment
from vagabond_builder.core.config import RulesSettings
from vagabond_builder.core.constants import STAT_ARRAY_DIE, STAT_ARRAYS
from vagabond_builder.core.exceptions import SelectionError, SelectionLimitError
from vagabond_builder.core.logging import get_logger
from vagabond_builder.models.enums import Stat


logger = get_logger(__name__)


def select_array(assignment: StatAssignment, array_id: int) -> None:
    """Select a stat array, clearing every slot and bonus point.

    Raises:
        SelectionError: If the id is not between 1 and 12.
    """
    if array_id not in STAT_ARRAYS:
        raise SelectionError("Unknown stat array", field_name="array_id", invalid_value=array_id)
    assignment.array_id = array_id
    assignment.pool = list(STAT_ARRAYS[array_id])
    assignment.slots = {stat: None for stat in Stat}
    assignment.picked = None
    assignment.bonus_points = {}


def pick_up(assignment: StatAssignment, pool_index: int) -> None:
    """Pick up the pool value at an index so it can be placed.

    Raises:
        SelectionError: If the index is outside the pool.
    """
    if not 0 <= pool_index < len(assignment.pool):
        raise SelectionError("No value at that pool position", field_name="pool", invalid_value=pool_index)
    assignment.picked = PickedValue(value=assignment.pool[pool_index], pool_index=pool_index)


def assign(assignment: StatAssignment, stat: Stat, value: int, pool_index: int) -> None:
    """Move a pool value onto a stat.

    A value already on the stat goes back to the end of the pool. The pool
    entry at pool_index is removed; if that index is stale, the first pool
    entry equal to the value is removed instead.

    Raises:
        SelectionError: If no array is selected or the value is not in the pool.
    """
    if assignment.array_id is None:
        raise SelectionError("Select a stat array first", field_name="array_id")

    pool = list(assignment.pool)
    if 0 <= pool_index < len(pool) and pool[pool_index] == value:
        remove_at = pool_index
    elif value in pool:
        remove_at = pool.index(value)
    else:
        raise SelectionError("Value is not in the pool", field_name="pool", invalid_value=value)

    pool.pop(remove_at)
    previous = assignment.slots.get(stat)
    if previous is not None:
        pool.append(previous)

    slots = dict(assignment.slots)
    slots[stat] = value
    assignment.slots = slots
    assignment.pool = pool
    assignment.picked = None
    if previous != value and stat in assignment.bonus_points:
        _drop_bonus_points(assignment, stat)


def place(assignment: StatAssignment, stat: Stat) -> None:
    """Place the picked-up value on a stat.

    Raises:
        SelectionError: If nothing is picked up.
    """
    if assignment.picked is None:
        raise SelectionError("Pick up a value first", field_name="picked")
    assign(assignment, stat, assignment.picked.value, assignment.picked.pool_index)


def unassign(assignment: StatAssignment, stat: Stat) -> None:
    """Return a stat's value to the pool.

    Raises:
        SelectionError: If the stat has no value.
    """
    value = assignment.slots.get(stat)
    if value is None:
        raise SelectionError("Stat has no value", field_name="slots", invalid_value=stat.value)
    slots = dict(assignment.slots)
    slots[stat] = None
    assignment.slots = slots
    assignment.pool = [*assignment.pool, value]
    assignment.picked = None
    _drop_bonus_points(assignment, stat)


def reset(assignment: StatAssignment) -> None:
    """Return every value to the pool, keeping the selected array."""
    if assignment.array_id is None:
        assignment.pool = []
    else:
        assignment.pool = list(STAT_ARRAYS[assignment.array_id])
    assignment.slots = {stat: None for stat in Stat}
    assignment.picked = None
    assignment.bonus_points = {}


def randomize(assignment: StatAssignment, roll: int, *, auto_assign: bool = True) -> None:
    """Select the array a d12 roll lands on.

    With auto_assign the six values are placed on the stats in canonical
    stat order; otherwise they are left in the pool.

    Args:
        assignment: Assignment to mutate.
        roll: Result of a d12 roll.
        auto_assign: Place the values directly.

    Raises:
        SelectionError: If the roll is outside 1-12.
    """
    if not 1 <= roll <= STAT_ARRAY_DIE:
        raise SelectionError("Stat array roll out of range", field_name="array_id", invalid_value=roll)
    select_array(assignment, roll)
    if auto_assign:
        for stat in Stat:
            assign(assignment, stat, assignment.pool[0], 0)
    logger.debug("Stat array randomized", array_id=roll, auto_assign=auto_assign)


def is_complete(assignment: StatAssignment) -> bool:
    """Whether all six stats have a value."""
    return all(assignment.slots.get(stat) is not None for stat in Stat)


# =============================================================================
# Ancestry Bonus Points
# =============================================================================


def allocate_bonus_point(
    assignment: StatAssignment,
    stat: Stat,
    budget: int,
    rules: RulesSettings,
) -> None:
    """Spend one ancestry bonus point on a stat.

    Args:
        assignment: Assignment to mutate.
        stat: Stat to raise.
        budget: Total points granted by the ancestry's traits.
        rules: Eligibility threshold and cap.

    Raises:
        SelectionError: If the stat has no value or is above the threshold.
        SelectionLimitError: If the budget is spent or the cap would be exceeded.
    """
    value = assignment.slots.get(stat)
    if value is None:
        raise SelectionError("Assign a value to the stat first", field_name="bonus_points", invalid_value=stat.value)
    if value > rules.stat_bonus_eligible_max:
        raise SelectionError(
            f"Only stats of {rules.stat_bonus_eligible_max} or less can take bonus points",
            field_name="bonus_points",
            invalid_value=stat.value,
        )
    if assignment.bonus_points_spent >= budget:
        raise SelectionLimitError("No bonus points left", limit=budget, field_name="bonus_points")
    current = assignment.bonus_points.get(stat, 0)
    if value + current + 1 > rules.stat_bonus_cap:
        raise SelectionLimitError(
            f"Bonus points cannot raise a stat above {rules.stat_bonus_cap}",
            limit=rules.stat_bonus_cap,
            field_name="bonus_points",
            invalid_value=stat.value,
        )
    assignment.bonus_points = {**assignment.bonus_points, stat: current + 1}


def remove_bonus_point(assignment: StatAssignment, stat: Stat) -> None:
    """Take back one bonus point from a stat.

    Raises:
        SelectionError: If the stat has no bonus points.
    """
    current = assignment.bonus_points.get(stat, 0)
    if current <= 0:
        raise SelectionError("Stat has no bonus points", field_name="bonus_points", invalid_value=stat.value)
    points = dict(assignment.bonus_points)
    if current == 1:
        del points[stat]
    else:
        points[stat] = current - 1
    assignment.bonus_points = points


def _drop_bonus_points(assignment: StatAssignment, stat: Stat) -> None:
    points = dict(assignment.bonus_points)
    if points.pop(stat, None):
        logger.debug("Bonus points returned", stat=stat.value)
    assignment.bonus_points = points


def final_values(assignment: StatAssignment) -> dict[Stat, int | None]:
    """Get each stat's value including bonus points; None if unassigned."""
    values: dict[Stat, int | None] = {}
    for stat in Stat:
        value = assignment.slots.get(stat)
        values[stat] = None if value is None else value + assignment.bonus_points.get(stat, 0)
    return values


def multiset_intact(assignment: StatAssignment) -> bool:
    """Whether slots and pool together hold exactly the selected array."""
    if assignment.array_id is None:
        return not assignment.pool and not assignment.assigned
    expected = Counter(STAT_ARRAYS[assignment.array_id])
    return Counter([*assignment.assigned, *assignment.pool]) == expected


__all__ = [
    "select_array",
    "pick_up",
    "assign",
    "place",
    "unassign",
    "reset",
    "randomize",
    "is_complete",
    "allocate_bonus_point",
    "remove_bonus_point",
    "final_values",
    "multiset_intact",
]
