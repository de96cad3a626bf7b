"""Domain service: Material Consumption.

Takes a product order's bill of materials out of raw material stock, all
or nothing, and gives it back when an open order is cancelled or deleted.
Works the same way as inventory fulfillment: check every line, take each
one with a conditional decrement, and start over if a decrement loses a
race.
"""

from __future__ import annotations

import logging

from ims.domain.exceptions import (
    DomainException,
    InsufficientMaterialsError,
    StockContentionError,
)
from ims.domain.model.product_order import ProductOrder, ProductOrderMaterial
from ims.domain.model.shortfall import MaterialShortfall
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.material_repository import MaterialRepository
from ims.domain.service.audit import record_activity
from ims.domain.service.inventory_fulfillment_service import (
    DEFAULT_MAX_ATTEMPTS,
    RestorationResult,
)

logger = logging.getLogger(__name__)


class MaterialConsumptionService:

    def __init__(
        self,
        material_repo: MaterialRepository,
        activity_log: ActivityLog | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._material_repo = material_repo
        self._activity_log = activity_log
        self._max_attempts = max_attempts

    def find_shortfalls(self, materials: list[ProductOrderMaterial]) -> list[MaterialShortfall]:
        remaining: dict[int, int] = {}
        shortfalls: list[MaterialShortfall] = []

        for line in materials:
            if line.material_id not in remaining:
                material = self._material_repo.get_by_id(line.material_id)
                remaining[line.material_id] = material.quantity if material else 0

            available = remaining[line.material_id]
            requested = line.quantity.value
            if requested > available:
                shortfalls.append(
                    MaterialShortfall(
                        material_id=line.material_id,
                        material_name=line.material_name,
                        requested=requested,
                        available=available,
                        unit=line.unit,
                    )
                )
            remaining[line.material_id] = max(0, available - requested)

        return shortfalls

    def consume(self, order: ProductOrder) -> None:
        """Deduct every material line of *order*, or nothing at all."""
        for attempt in range(1, self._max_attempts + 1):
            shortfalls = self.find_shortfalls(order.materials)
            if shortfalls:
                raise InsufficientMaterialsError(shortfalls)

            taken: list[ProductOrderMaterial] = []
            for line in order.materials:
                if not self._material_repo.try_deduct(line.material_id, line.quantity.value):
                    logger.info(
                        "Material %d changed while starting the order for %s "
                        "(attempt %d), re-checking",
                        line.material_id, order.product_name, attempt,
                    )
                    self._put_back(taken)
                    break
                taken.append(line)
            else:
                for line in taken:
                    record_activity(
                        self._activity_log,
                        "material_deduction",
                        f"Used {line.quantity.value} {line.unit} of {line.material_name} "
                        f"for {order.quantity.value}x {order.product_name}",
                    )
                return

        raise StockContentionError(
            f"Material stock kept changing while ordering {order.product_name}; "
            f"gave up after {self._max_attempts} attempts"
        )

    def give_back(self, order: ProductOrder) -> RestorationResult:
        """Return every material line to stock, line by line."""
        result = RestorationResult()
        for line in order.materials:
            qty = line.quantity.value
            try:
                new_level = self._material_repo.restock(line.material_id, qty)
            except DomainException as exc:
                logger.error(
                    "Failed to return %d of %s from product order %s: %s",
                    qty, line.material_name, order.label, exc,
                )
                result.failed.append(line.material_id)
                continue

            if new_level is None:
                logger.warning(
                    "Material %d (%s) no longer exists; %d %s not returned",
                    line.material_id, line.material_name, qty, line.unit,
                )
                result.failed.append(line.material_id)
                continue

            result.restored.append(line.material_id)
            record_activity(
                self._activity_log,
                "material_restoration",
                f"Returned {qty} {line.unit} of {line.material_name} "
                f"from product order {order.label}",
            )
        return result

    # --- Internal helpers -----------------------------------------------------

    def _put_back(self, lines: list[ProductOrderMaterial]) -> None:
        for line in lines:
            try:
                self._material_repo.restock(line.material_id, line.quantity.value)
            except DomainException as exc:
                logger.error(
                    "Could not roll back deduction of %d from material %d: %s",
                    line.quantity.value, line.material_id, exc,
                )
