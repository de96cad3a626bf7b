"""Application service: Set Stock use case (manual stock adjustment)."""

from __future__ import annotations

from ims.domain.exceptions import EntityNotFoundError
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.service.audit import record_activity


class SetStockHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self._product_repo = product_repo
        self._activity_log = activity_log

    def handle(self, product_id: int, quantity: int) -> None:
        """Set the stock level for a product after a count."""
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product #{product_id} not found")

        previous = product.stock
        product.set_stock(quantity)
        self._product_repo.save(product)
        record_activity(
            self._activity_log,
            "update",
            f"Stock of {product.name} adjusted from {previous} to {quantity}",
        )
