"""Raw material aggregate.

Raw materials are what product orders consume.  They are counted in whole
units of their own ``unit`` and carry a cost so an order can be priced.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import Money


@dataclass
class RawMaterial:
    """A stocked raw material.

    Invariant: ``quantity`` is never negative.
    """

    id: int
    name: str
    unit: str = "pcs"
    quantity: int = 0
    cost_per_unit: Money = field(default_factory=Money.zero)

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValidationError(
                f"Quantity of {self.name} cannot be negative, got {self.quantity}"
            )

    def set_quantity(self, quantity: int) -> None:
        if quantity < 0:
            raise ValidationError("Material quantity cannot be negative")
        self.quantity = quantity

    def deduct(self, quantity: int) -> bool:
        """Take *quantity* out if it is all there; False leaves the level untouched."""
        if quantity <= 0:
            raise ValidationError("Deduction quantity must be positive")
        if quantity > self.quantity:
            return False
        self.quantity -= quantity
        return True

    def restock(self, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Restock quantity must be positive")
        self.quantity += quantity
