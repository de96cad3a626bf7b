"""Application service: Change Product Order Status use case.

The new status is stored first, conditional on the order not having moved
since it was read.  Only then do stock levels follow: completing an order
adds the finished quantity to the product, and cancelling an open order
returns its materials.
"""

from __future__ import annotations

import logging

from ims.application.dto import ProductOrderStatusChangeDTO, product_order_to_dto
from ims.application.show_product_order import (
    find_product_order,
    order_conflict,
    parse_order_status,
)
from ims.domain.exceptions import PersistenceError
from ims.domain.model.product_order import OPEN_STATUSES, ProductOrder, ProductOrderStatus
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.product_order_repository import ProductOrderRepository
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.service.audit import record_activity
from ims.domain.service.material_consumption_service import MaterialConsumptionService

logger = logging.getLogger(__name__)


class ChangeProductOrderStatusHandler:

    def __init__(
        self,
        order_repo: ProductOrderRepository,
        product_repo: ProductRepository,
        consumption: MaterialConsumptionService,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._consumption = consumption
        self._activity_log = activity_log

    def handle(
        self, order_id: int, new_status: str | ProductOrderStatus
    ) -> ProductOrderStatusChangeDTO:
        target = parse_order_status(new_status)
        order = find_product_order(self._order_repo, order_id)

        previous = order.change_status(target)
        if not self._order_repo.update_status(order, expected=previous):
            raise order_conflict(order, self._order_repo.get_by_id(order.id))

        new_stock = None
        unreturned: list[int] = []
        if target == ProductOrderStatus.COMPLETED:
            new_stock = self._add_finished_stock(order)
        elif target == ProductOrderStatus.CANCELLED and previous in OPEN_STATUSES:
            unreturned = self._consumption.give_back(order).failed

        logger.info(
            "Product order %s status changed from %s to %s",
            order.label, previous.value, target.value,
        )
        record_activity(
            self._activity_log,
            "update",
            f"Updated product order {order.label} status to {target.value}",
        )
        return ProductOrderStatusChangeDTO(
            order=product_order_to_dto(order),
            previous_status=previous.value,
            new_product_stock=new_stock,
            unreturned_material_ids=unreturned,
        )

    # --- Internal helpers -----------------------------------------------------

    def _add_finished_stock(self, order: ProductOrder) -> int | None:
        qty = order.quantity.value
        try:
            new_stock = self._product_repo.restock(order.product_id, qty)
        except PersistenceError as exc:
            logger.error(
                "Could not add %d of %s to stock for product order %s: %s",
                qty, order.product_name, order.label, exc,
            )
            return None

        if new_stock is None:
            logger.warning(
                "Product %d (%s) not found; completed order %s recorded without stock",
                order.product_id, order.product_name, order.label,
            )
            return None

        logger.info(
            "Updated inventory for %s: +%d (total: %d)", order.product_name, qty, new_stock
        )
        record_activity(
            self._activity_log,
            "inventory_restock",
            f"Added {qty} {order.product_name} from product order {order.label}",
        )
        return new_stock
