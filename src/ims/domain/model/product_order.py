"""ProductOrder aggregate: a work order that turns raw materials into stock.

Creating an order consumes its bill of materials from raw material stock.
Completing it adds the finished quantity to the product's stock.  While an
order is still open (pending or in progress) it holds its materials;
cancelling or deleting an open order gives them back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ims.domain.exceptions import InvalidTransitionError, ValidationError
from ims.domain.model.value_objects import Money, Quantity

MAX_MATERIALS = 50


class ProductOrderStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


OPEN_STATUSES = frozenset({ProductOrderStatus.PENDING, ProductOrderStatus.IN_PROGRESS})

ORDER_TRANSITIONS: dict[ProductOrderStatus, frozenset[ProductOrderStatus]] = {
    ProductOrderStatus.PENDING: frozenset(
        {ProductOrderStatus.IN_PROGRESS, ProductOrderStatus.COMPLETED, ProductOrderStatus.CANCELLED}
    ),
    ProductOrderStatus.IN_PROGRESS: frozenset(
        {ProductOrderStatus.PENDING, ProductOrderStatus.COMPLETED, ProductOrderStatus.CANCELLED}
    ),
    ProductOrderStatus.COMPLETED: frozenset(),
    ProductOrderStatus.CANCELLED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProductOrderMaterial:
    """One bill-of-materials line, with name and cost copied at order time."""

    material_id: int
    material_name: str
    quantity: Quantity
    cost_per_unit: Money
    unit: str = "pcs"
    id: int | None = None  # assigned by the repository

    @property
    def total_cost(self) -> Money:
        return self.cost_per_unit * self.quantity.value


@dataclass
class ProductOrder:
    """Aggregate root for product (work) orders.

    ``id`` is assigned by the repository when the header is inserted.
    """

    product_id: int
    product_name: str
    quantity: Quantity
    materials: list[ProductOrderMaterial]
    id: int | None = None
    status: ProductOrderStatus = ProductOrderStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None

    @staticmethod
    def create(
        product_id: int,
        product_name: str,
        quantity: Quantity,
        materials: list[ProductOrderMaterial],
    ) -> ProductOrder:
        if not product_name or not product_name.strip():
            raise ValidationError("Product name is required")
        if not materials:
            raise ValidationError("Product order needs at least one material")
        if len(materials) > MAX_MATERIALS:
            raise ValidationError(f"Maximum {MAX_MATERIALS} materials per product order")

        now = _utcnow()
        return ProductOrder(
            product_id=product_id,
            product_name=product_name.strip(),
            quantity=quantity,
            materials=list(materials),
            created_at=now,
            updated_at=now,
        )

    @property
    def label(self) -> str:
        return f"#{self.id}" if self.id is not None else "(unsaved)"

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def material_cost(self) -> Money:
        result = Money.zero()
        for line in self.materials:
            result = result + line.total_cost
        return result

    def change_status(self, new_status: ProductOrderStatus) -> ProductOrderStatus:
        """Apply a transition and return the previous status.

        Completed and cancelled orders are final.
        """
        if new_status not in ORDER_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot change product order {self.label} from "
                f"{self.status.value} to {new_status.value}"
            )
        previous = self.status
        self.status = new_status
        self.updated_at = _utcnow()
        if new_status == ProductOrderStatus.COMPLETED:
            self.completed_at = self.updated_at
        return previous
