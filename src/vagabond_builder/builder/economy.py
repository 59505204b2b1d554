"""Starting budget versus gear spend.

All amounts are in base units (silver): gold x10 + silver + copper/10.
The budget is informational only; going over it never blocks a purchase.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, computed_field

from vagabond_builder.models.items import EquipmentItem, StarterPackItem


class Economy(BaseModel):
    """Budget, spend and what is left.

    Attributes:
        budget: Starter pack currency, or the default budget without a pack.
        spend: Cost of the gear tray.
    """

    model_config = ConfigDict(frozen=True)

    budget: float
    spend: float

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining(self) -> float:
        return self.budget - self.spend

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_over(self) -> bool:
        return self.remaining < 0


def compute_economy(
    starting_pack: StarterPackItem | None,
    gear: Iterable[EquipmentItem | None],
    default_budget: float,
) -> Economy:
    """Compute the economy for the current selections.

    Args:
        starting_pack: Selected starter pack, or None.
        gear: Resolved gear tray; unresolved entries (None) cost nothing.
        default_budget: Budget when no pack is selected.

    Returns:
        The Economy.
    """
    budget = starting_pack.system.currency.to_base_units() if starting_pack else default_budget
    spend = sum(item.system.cost.to_base_units() for item in gear if item is not None)
    return Economy(budget=budget, spend=spend)


__all__ = [
    "Economy",
    "compute_economy",
]
