"""Dice rolling for Vagabond checks.

This module provides dice rolling on top of the d20 library: free-form
expressions, single dice for the builder's stat-array roll, and checks
against the inverted difficulty scale with Favor and Hinder.
"""

from __future__ import annotations

import random
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import d20

from vagabond_builder.core.constants import DEFAULT_CRIT_NUMBER
from vagabond_builder.core.exceptions import DiceRollError
from vagabond_builder.core.logging import get_logger
from vagabond_builder.models.enums import FavorHinder


logger = get_logger(__name__)

FAVOR_DIE = 6
"""Favor adds a d6 to a check; Hinder subtracts one."""


@dataclass(frozen=True)
class DiceResult:
    """The outcome of rolling a dice expression.

    Attributes:
        expression: The expression that was rolled.
        total: The total result of the roll.
        dice: Individual kept dice values.
    """

    expression: str
    total: int
    dice: list[int]

    @property
    def modifier(self) -> int:
        """Static part of the total (total minus kept dice)."""
        return self.total - sum(self.dice)


@dataclass(frozen=True)
class CheckResult:
    """The outcome of a d20 check against a difficulty.

    Attributes:
        natural: The unmodified d20 face.
        total: d20 plus bonus and any Favor/Hinder die.
        difficulty: Threshold the total had to meet.
        success: Whether total >= difficulty.
        is_critical: Whether the natural roll met the crit threshold.
        favor_hinder: Modifier state the check was rolled with.
    """

    natural: int
    total: int
    difficulty: int
    success: bool
    is_critical: bool
    favor_hinder: FavorHinder


class DiceRoller:
    """Dice rolling backed by the d20 library.

    Example:
        >>> roller = DiceRoller()
        >>> result = roller.roll("2d6+1")
        >>> print(f"Total: {result.total}")
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls. The seed
                applies to this roller only; the global random state is
                left as it was found.
        """
        self._seed = seed
        self._rng = random.Random(seed) if seed is not None else None
        logger.debug("DiceRoller initialized", seed=seed)

    @contextmanager
    def _random_state(self) -> Iterator[None]:
        """Swap this roller's generator state in for the global one.

        d20 only draws from the module-level generator. Not thread-safe.
        """
        if self._rng is None:
            yield
            return
        saved = random.getstate()
        random.setstate(self._rng.getstate())
        try:
            yield
        finally:
            self._rng.setstate(random.getstate())
            random.setstate(saved)

    def roll(self, expression: str) -> DiceResult:
        """Roll dice according to the given expression.

        Args:
            expression: Dice expression (e.g., '1d12', '2d6+3').

        Returns:
            DiceResult containing roll results.

        Raises:
            DiceRollError: If the expression is invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        try:
            with self._random_state():
                result = d20.roll(expression)
        except Exception as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        dice_result = DiceResult(
            expression=expression,
            total=int(result.total),
            dice=self._extract_dice_values(result.expr),
        )
        logger.debug("Dice rolled", expression=expression, total=dice_result.total)
        return dice_result

    def _extract_dice_values(self, expr: Any) -> list[int]:
        """Extract the kept dice values from a d20 expression tree.

        Args:
            expr: The d20 expression tree.

        Returns:
            List of individual dice values.
        """
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        values.append(die.number)
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values

    def roll_die(self, sides: int) -> int:
        """Roll a single die.

        Args:
            sides: Number of faces.

        Returns:
            A uniformly distributed integer in [1, sides].

        Raises:
            DiceRollError: If sides is below 1.
        """
        if sides < 1:
            raise DiceRollError("A die needs at least one side", expression=f"1d{sides}")
        return self.roll(f"1d{sides}").total

    def roll_check(
        self,
        difficulty: int,
        *,
        bonus: int = 0,
        favor_hinder: FavorHinder = FavorHinder.NONE,
        crit_threshold: int = DEFAULT_CRIT_NUMBER,
    ) -> CheckResult:
        """Roll a d20 check against a difficulty.

        Args:
            difficulty: Save, skill or weapon-skill difficulty.
            bonus: Flat bonus added to the d20.
            favor_hinder: Adds or subtracts a d6.
            crit_threshold: Natural roll at or above which the check crits.

        Returns:
            CheckResult for the check.
        """
        natural = self.roll_die(20)
        total = natural + bonus
        if favor_hinder == FavorHinder.FAVOR:
            total += self.roll_die(FAVOR_DIE)
        elif favor_hinder == FavorHinder.HINDER:
            total -= self.roll_die(FAVOR_DIE)

        result = CheckResult(
            natural=natural,
            total=total,
            difficulty=difficulty,
            success=total >= difficulty,
            is_critical=natural >= crit_threshold,
            favor_hinder=favor_hinder,
        )
        logger.info(
            "Check rolled",
            natural=natural,
            total=total,
            difficulty=difficulty,
            success=result.success,
        )
        return result


class D20DieRoller:
    """Async die-roll collaborator for the builder, backed by DiceRoller.

    Hosts that synchronize rolls over the network inject their own
    implementation of the DieRoller protocol instead.
    """

    def __init__(self, roller: DiceRoller | None = None) -> None:
        self._roller = roller or DiceRoller()

    async def roll(self, sides: int) -> int:
        return self._roller.roll_die(sides)


# Module-level convenience roller
_default_roller: DiceRoller | None = None


def roll(expression: str) -> DiceResult:
    """Convenience function to roll dice.

    Args:
        expression: Dice expression (e.g., '1d12').

    Returns:
        DiceResult containing roll results.
    """
    global _default_roller  # noqa: PLW0603
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller.roll(expression)


__all__ = [
    "FAVOR_DIE",
    "DiceResult",
    "CheckResult",
    "DiceRoller",
    "D20DieRoller",
    "roll",
]
