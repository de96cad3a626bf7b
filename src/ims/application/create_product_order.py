"""Application service: Create Product Order use case.

The bill of materials is taken out of raw material stock first.  The
header and material lines are then written separately; if either write
fails, whatever was written is removed and the materials go back.
"""

from __future__ import annotations

import logging

from ims.application.dto import MaterialSpec, ProductOrderDTO, product_order_to_dto
from ims.domain.exceptions import EntityNotFoundError, PersistenceError
from ims.domain.model.product_order import ProductOrder, ProductOrderMaterial
from ims.domain.model.value_objects import Quantity
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.material_repository import MaterialRepository
from ims.domain.repository.product_order_repository import ProductOrderRepository
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.service.audit import record_activity
from ims.domain.service.material_consumption_service import MaterialConsumptionService

logger = logging.getLogger(__name__)


class CreateProductOrderHandler:

    def __init__(
        self,
        order_repo: ProductOrderRepository,
        product_repo: ProductRepository,
        material_repo: MaterialRepository,
        consumption: MaterialConsumptionService,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._material_repo = material_repo
        self._consumption = consumption
        self._activity_log = activity_log

    def handle(
        self, product_id: int, quantity: int, material_specs: list[MaterialSpec]
    ) -> ProductOrderDTO:
        """Start a work order for *quantity* units of a product.

        Raises InsufficientMaterialsError listing every short material; in
        that case nothing is deducted or written.
        """
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product #{product_id} not found")

        order = ProductOrder.create(
            product_id=product.id,
            product_name=product.name,
            quantity=Quantity(quantity),
            materials=self._build_materials(material_specs),
        )

        self._consumption.consume(order)

        try:
            order.id = self._order_repo.insert_header(order)
        except PersistenceError:
            logger.error(
                "Saving product order for %s failed, returning materials", order.product_name
            )
            self._consumption.give_back(order)
            raise

        try:
            order.materials = self._order_repo.insert_materials(order.id, order.materials)
        except PersistenceError as exc:
            logger.error(
                "Saving materials of product order %s failed, removing it: %s",
                order.label, exc,
            )
            self._remove_orphan_header(order)
            self._consumption.give_back(order)
            raise PersistenceError(
                f"Could not save materials for product order {order.label}"
            ) from exc

        logger.info(
            "Created product order %s for %dx %s",
            order.label, order.quantity.value, order.product_name,
        )
        record_activity(
            self._activity_log,
            "create",
            f"Created product order for {order.quantity.value}x {order.product_name} "
            f"(Order {order.label})",
        )
        return product_order_to_dto(order)

    # --- Internal helpers -----------------------------------------------------

    def _build_materials(self, specs: list[MaterialSpec]) -> list[ProductOrderMaterial]:
        """Snapshot materials into bill-of-materials lines, one per material."""
        quantities: dict[int, int] = {}
        for spec in specs:
            Quantity(spec.quantity)
            quantities[spec.material_id] = quantities.get(spec.material_id, 0) + spec.quantity

        lines: list[ProductOrderMaterial] = []
        for material_id, qty in quantities.items():
            material = self._material_repo.get_by_id(material_id)
            if material is None:
                raise EntityNotFoundError(f"Material #{material_id} not found")
            lines.append(
                ProductOrderMaterial(
                    material_id=material.id,
                    material_name=material.name,
                    quantity=Quantity(qty),
                    cost_per_unit=material.cost_per_unit,
                    unit=material.unit,
                )
            )
        return lines

    def _remove_orphan_header(self, order: ProductOrder) -> None:
        try:
            self._order_repo.delete(order.id)
        except PersistenceError as exc:
            logger.error(
                "Could not remove header of product order %s after failed material save: %s",
                order.label, exc,
            )
