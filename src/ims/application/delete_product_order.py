"""Application service: Delete Product Order use case.

An open order returns its materials once it has been removed; a completed
or cancelled one has nothing left to return.
"""

from __future__ import annotations

import logging

from ims.application.dto import DeletedProductOrderDTO
from ims.application.show_product_order import find_product_order, order_conflict
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.product_order_repository import ProductOrderRepository
from ims.domain.service.audit import record_activity
from ims.domain.service.material_consumption_service import MaterialConsumptionService

logger = logging.getLogger(__name__)


class DeleteProductOrderHandler:

    def __init__(
        self,
        order_repo: ProductOrderRepository,
        consumption: MaterialConsumptionService,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._consumption = consumption
        self._activity_log = activity_log

    def handle(self, order_id: int) -> DeletedProductOrderDTO:
        order = find_product_order(self._order_repo, order_id)

        if not self._order_repo.delete(order.id, expected=order.status):
            raise order_conflict(order, self._order_repo.get_by_id(order.id))

        unreturned: list[int] = []
        if order.is_open:
            unreturned = self._consumption.give_back(order).failed

        logger.info("Deleted product order %s", order.label)
        record_activity(
            self._activity_log, "delete", f"Deleted product order {order.label}"
        )
        return DeletedProductOrderDTO(
            order_id=order.id,
            product_name=order.product_name,
            unreturned_material_ids=unreturned,
        )
