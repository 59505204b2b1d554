"""Bonus formula evaluation.

A bonus specification is a bare number, a numeric string, a formula with
`@path.to.attribute` references, or a list of those (summed). Formulas are
evaluated against an immutable RollData snapshot:

1. Every `@path` reference is replaced by its value from the snapshot.
2. The result must be pure arithmetic: digits, whitespace and
   `. + - * / % ( )`. Dice terms and names are rejected.
3. The arithmetic is evaluated by the d20 library's parser.

evaluate() is the fail-soft entry point used by derivation: a bad entry
logs a warning, contributes 0, and the remaining entries are still summed.
evaluate_strict() raises FormulaError instead.

Example:
    >>> data = RollData({"might": {"total": 3}})
    >>> evaluate(["2", "@might.total"], data)
    5
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Union

import d20

from vagabond_builder.core.exceptions import FormulaError
from vagabond_builder.core.logging import get_logger
from vagabond_builder.models.enums import Skill, Stat, WeaponSkill


if TYPE_CHECKING:
    from vagabond_builder.models.character import CharacterData


logger = get_logger(__name__)

BonusSpec = Union[int, float, str, None]
"""A single bonus contribution: a literal number or a formula string."""

BonusInput = Union[BonusSpec, Sequence[BonusSpec]]
"""A single contribution or a list of contributions to be summed."""

_REFERENCE_PATTERN = re.compile(r"@([A-Za-z_]\w*(?:\.\w+)*)")
_ARITHMETIC_PATTERN = re.compile(r"^[\d\s.+\-*/%()]+$")


# =============================================================================
# Roll Data Snapshot
# =============================================================================


def _freeze(value: Any) -> Any:
    """Recursively convert mappings and lists to read-only equivalents."""
    if isinstance(value, Mapping):
        return MappingProxyType({str(key): _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Recursively convert a frozen snapshot back to plain containers."""
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True, eq=False)
class RollData:
    """Immutable snapshot of the values formulas may reference.

    Attributes:
        values: Nested, read-only mapping addressed by dotted paths.
    """

    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _freeze(self.values))

    def resolve(self, path: str) -> int | float:
        """Resolve a dotted path to a number.

        Args:
            path: Dotted path such as 'might.total' or 'skills.sneak.trained'.

        Returns:
            The numeric value. Booleans resolve to 0 or 1.

        Raises:
            FormulaError: If the path is missing or not numeric.
        """
        node: Any = self.values
        for part in path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                raise FormulaError("Unresolvable reference", path=path)
            node = node[part]
        if isinstance(node, bool):
            return int(node)
        if isinstance(node, (int, float)):
            return node
        raise FormulaError("Reference is not numeric", path=path, details={"value": node})

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of the snapshot."""
        return _thaw(self.values)

    @classmethod
    def build(
        cls,
        character: CharacterData,
        stat_totals: Mapping[Stat, int],
    ) -> RollData:
        """Build the standard snapshot for a character.

        Layout: `<stat>.value`, `<stat>.total`, `skills.<skill>.trained`,
        `weaponSkills.<skill>.trained`, `lvl`, `xp`, and
        `universalCheckBonus`.

        Args:
            character: Persisted character data.
            stat_totals: Stat totals to expose for this phase.

        Returns:
            A frozen RollData.
        """
        data: dict[str, Any] = {}
        for stat in Stat:
            data[stat.value] = {
                "value": character.stat_value(stat),
                "total": stat_totals.get(stat, 0),
            }
        data["skills"] = {
            skill.value: {
                "trained": character.skills[skill].trained,
                "stat": skill.stat.value,
            }
            for skill in Skill
        }
        data["weaponSkills"] = {
            weapon_skill.value: {
                "trained": character.weapon_skills[weapon_skill].trained,
                "stat": weapon_skill.stat.value,
            }
            for weapon_skill in WeaponSkill
        }
        data["lvl"] = character.attributes.level
        data["xp"] = character.attributes.xp
        data["universalCheckBonus"] = character.universal_check_bonus
        return cls(data)


# =============================================================================
# Evaluation
# =============================================================================


@lru_cache(maxsize=512)
def _evaluate_arithmetic(expression: str) -> int:
    """Evaluate a dice-free arithmetic expression with d20.

    Results are cached; the input contains no dice so the total is
    deterministic.

    Raises:
        FormulaError: If d20 cannot parse or evaluate the expression.
    """
    try:
        result = d20.roll(expression)
    except Exception as exc:
        raise FormulaError(f"Invalid arithmetic: {exc}", formula=expression) from exc
    return int(result.total)


def _substitute(formula: str, roll_data: RollData | None) -> str:
    """Replace every @path reference with its parenthesized value."""

    def replace(match: re.Match[str]) -> str:
        path = match.group(1)
        if roll_data is None:
            raise FormulaError("Reference without roll data", formula=formula, path=path)
        return f"({roll_data.resolve(path)})"

    return _REFERENCE_PATTERN.sub(replace, formula)


def evaluate_strict(spec: BonusInput, roll_data: RollData | None = None) -> int:
    """Evaluate a bonus specification, raising on any failure.

    Empty, None and blank specifications evaluate to 0. Fractional results
    truncate toward zero.

    Args:
        spec: A number, numeric string, formula, or list of those.
        roll_data: Snapshot used to resolve @path references.

    Returns:
        The integer result; lists are summed.

    Raises:
        FormulaError: If any entry cannot be evaluated.
    """
    if spec is None:
        return 0
    if isinstance(spec, bool):
        return int(spec)
    if isinstance(spec, (int, float)):
        if not math.isfinite(spec):
            raise FormulaError("Bonus is not a finite number", formula=str(spec))
        return int(spec)
    if isinstance(spec, str):
        text = spec.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        substituted = _substitute(text, roll_data)
        if not _ARITHMETIC_PATTERN.match(substituted):
            raise FormulaError("Formula contains unsupported terms", formula=text)
        return _evaluate_arithmetic(substituted.strip())
    if isinstance(spec, Sequence):
        return sum(evaluate_strict(entry, roll_data) for entry in spec)
    raise FormulaError("Unsupported bonus specification", formula=repr(spec))


def evaluate(spec: BonusInput, roll_data: RollData | None = None) -> int:
    """Evaluate a bonus specification without ever raising.

    Each list entry is evaluated independently. An entry that fails is
    logged and contributes 0; the remaining entries are still summed.

    Args:
        spec: A number, numeric string, formula, or list of those.
        roll_data: Snapshot used to resolve @path references.

    Returns:
        The integer result.
    """
    if isinstance(spec, Sequence) and not isinstance(spec, str):
        return sum(evaluate(entry, roll_data) for entry in spec)
    try:
        return evaluate_strict(spec, roll_data)
    except FormulaError as exc:
        logger.warning("Bonus formula evaluation failed", formula=spec, error=str(exc))
    except Exception as exc:
        logger.warning("Bonus formula evaluation crashed", formula=repr(spec), error=repr(exc))
    return 0


__all__ = [
    "BonusSpec",
    "BonusInput",
    "RollData",
    "evaluate",
    "evaluate_strict",
]
