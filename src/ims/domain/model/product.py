"""Product aggregate.

Products live independently of invoices. They have their own lifecycle:
stock goes up and down, products are added to and removed from the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import Money

DEFAULT_LOW_STOCK_THRESHOLD = 10


class StockStatus(Enum):
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"


@dataclass
class Product:
    """A product in the catalog together with its current stock level.

    Invariant: ``stock`` is never negative.
    """

    id: int
    name: str
    sku: str
    price: Money
    stock: int = 0
    unit: str = "pcs"

    def __post_init__(self) -> None:
        if self.stock < 0:
            raise ValidationError(
                f"Stock for {self.name} cannot be negative, got {self.stock}"
            )

    def status(self, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> StockStatus:
        if self.stock == 0:
            return StockStatus.OUT_OF_STOCK
        if self.stock <= threshold:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    def set_stock(self, quantity: int) -> None:
        """Manual stock adjustment (e.g. after a stock count)."""
        if quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")
        self.stock = quantity

    def deduct(self, quantity: int) -> bool:
        """Take *quantity* units out of stock if they are all available.

        Returns False and leaves stock untouched when there are not enough
        units. Repositories build their conditional decrement on this.
        """
        if quantity <= 0:
            raise ValidationError("Deduction quantity must be positive")
        if quantity > self.stock:
            return False
        self.stock -= quantity
        return True

    def restock(self, quantity: int) -> None:
        """Put *quantity* units back into stock."""
        if quantity <= 0:
            raise ValidationError("Restock quantity must be positive")
        self.stock += quantity
