"""JSON-file-backed implementation of ProductOrderRepository.

Material lines are stored inside their order record.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.product_order import (
    ProductOrder,
    ProductOrderMaterial,
    ProductOrderStatus,
)
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.repository.product_order_repository import ProductOrderRepository
from ims.infrastructure.persistence.json_file import JsonFile


class JsonProductOrderRepository(ProductOrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, default={"last_id": 0, "orders": []})

    # --- ProductOrderRepository interface -------------------------------------

    def insert_header(self, order: ProductOrder) -> int:
        with self._file.locked():
            data = self._file.load()
            # IDs are never handed out twice, even after deletes.
            data["last_id"] += 1
            raw = self._to_raw(order)
            raw["id"] = data["last_id"]
            raw["materials"] = []
            data["orders"].append(raw)
            self._file.persist(data)
            return raw["id"]

    def insert_materials(
        self, order_id: int, materials: list[ProductOrderMaterial]
    ) -> list[ProductOrderMaterial]:
        with self._file.locked():
            data = self._file.load()
            raw = self._find(data["orders"], order_id)
            if raw is None:
                raise EntityNotFoundError(f"Product order #{order_id} not found")

            next_line_id = 1 + max(
                (m["id"] for r in data["orders"] for m in r["materials"]), default=0
            )
            saved = [
                ProductOrderMaterial(
                    material_id=line.material_id,
                    material_name=line.material_name,
                    quantity=line.quantity,
                    cost_per_unit=line.cost_per_unit,
                    unit=line.unit,
                    id=next_line_id + offset,
                )
                for offset, line in enumerate(materials)
            ]
            raw["materials"].extend(self._material_to_raw(line) for line in saved)
            self._file.persist(data)
            return saved

    def get_by_id(self, order_id: int) -> ProductOrder | None:
        raw = self._find(self._file.load()["orders"], order_id)
        return self._to_domain(raw) if raw is not None else None

    def list_all(self, include_completed: bool = False) -> list[ProductOrder]:
        orders = [self._to_domain(raw) for raw in self._file.load()["orders"]]
        if not include_completed:
            orders = [o for o in orders if o.status != ProductOrderStatus.COMPLETED]
        return sorted(orders, key=lambda o: (o.created_at, o.id), reverse=True)

    def update_status(self, order: ProductOrder, expected: ProductOrderStatus) -> bool:
        with self._file.locked():
            data = self._file.load()
            raw = self._find(data["orders"], order.id)
            if raw is None or raw["status"] != expected.value:
                return False
            raw["status"] = order.status.value
            raw["updated_at"] = order.updated_at.isoformat()
            raw["completed_at"] = order.completed_at.isoformat() if order.completed_at else None
            self._file.persist(data)
            return True

    def delete(self, order_id: int, expected: ProductOrderStatus | None = None) -> bool:
        with self._file.locked():
            data = self._file.load()
            raw = self._find(data["orders"], order_id)
            if raw is None:
                return False
            if expected is not None and raw["status"] != expected.value:
                return False
            data["orders"] = [r for r in data["orders"] if r is not raw]
            self._file.persist(data)
            return True

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _find(records: list[dict], order_id: int) -> dict | None:
        for raw in records:
            if raw["id"] == order_id:
                return raw
        return None

    @classmethod
    def _to_raw(cls, order: ProductOrder) -> dict:
        return {
            "id": order.id,
            "product_id": order.product_id,
            "product_name": order.product_name,
            "quantity": order.quantity.value,
            "status": order.status.value,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "completed_at": order.completed_at.isoformat() if order.completed_at else None,
            "materials": [cls._material_to_raw(line) for line in order.materials],
        }

    @staticmethod
    def _material_to_raw(line: ProductOrderMaterial) -> dict:
        return {
            "id": line.id,
            "material_id": line.material_id,
            "material_name": line.material_name,
            "quantity": line.quantity.value,
            "unit": line.unit,
            "cost_per_unit": str(line.cost_per_unit.amount),
            "currency": line.cost_per_unit.currency,
        }

    @staticmethod
    def _to_domain(raw: dict) -> ProductOrder:
        completed_at = raw.get("completed_at")
        return ProductOrder(
            id=raw["id"],
            product_id=raw["product_id"],
            product_name=raw["product_name"],
            quantity=Quantity(raw["quantity"]),
            materials=[
                ProductOrderMaterial(
                    material_id=m["material_id"],
                    material_name=m["material_name"],
                    quantity=Quantity(m["quantity"]),
                    cost_per_unit=Money(Decimal(m["cost_per_unit"]), m.get("currency", "USD")),
                    unit=m.get("unit", "pcs"),
                    id=m["id"],
                )
                for m in raw["materials"]
            ],
            status=ProductOrderStatus(raw["status"]),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
        )
