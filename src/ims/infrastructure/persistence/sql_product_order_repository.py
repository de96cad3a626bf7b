"""SQL implementation of ProductOrderRepository (SQLAlchemy).

``product_orders`` holds the header, ``product_order_materials`` the bill
of materials.  Status writes are conditional UPDATEs so two requests can
never both move the same order.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Engine, text
from sqlalchemy.engine import Connection, Row
from sqlalchemy.exc import SQLAlchemyError

from ims.domain.exceptions import EntityNotFoundError, PersistenceError
from ims.domain.model.product_order import (
    ProductOrder,
    ProductOrderMaterial,
    ProductOrderStatus,
)
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.repository.product_order_repository import ProductOrderRepository
from ims.infrastructure.persistence.sql_schema import product_order_materials, product_orders

_HEADER_COLUMNS = (
    "id, product_id, product_name, quantity, status, created_at, updated_at, completed_at"
)
_MATERIAL_COLUMNS = "id, material_id, material_name, quantity, unit, cost_per_unit, currency"


class SqlProductOrderRepository(ProductOrderRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # --- ProductOrderRepository interface -------------------------------------

    def insert_header(self, order: ProductOrder) -> int:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    product_orders.insert().values(
                        product_id=order.product_id,
                        product_name=order.product_name,
                        quantity=order.quantity.value,
                        status=order.status.value,
                        created_at=order.created_at.isoformat(),
                        updated_at=order.updated_at.isoformat(),
                        completed_at=_iso_or_none(order.completed_at),
                    )
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Could not save product order for {order.product_name}: {exc}"
            ) from exc
        return result.inserted_primary_key[0]

    def insert_materials(
        self, order_id: int, materials: list[ProductOrderMaterial]
    ) -> list[ProductOrderMaterial]:
        saved: list[ProductOrderMaterial] = []
        try:
            with self._engine.begin() as conn:
                exists = conn.execute(
                    text("SELECT 1 FROM product_orders WHERE id = :id"), {"id": order_id}
                ).first()
                if exists is None:
                    raise EntityNotFoundError(f"Product order #{order_id} not found")
                for line in materials:
                    result = conn.execute(
                        product_order_materials.insert().values(
                            order_id=order_id,
                            material_id=line.material_id,
                            material_name=line.material_name,
                            quantity=line.quantity.value,
                            unit=line.unit,
                            cost_per_unit=str(line.cost_per_unit.amount),
                            currency=line.cost_per_unit.currency,
                        )
                    )
                    saved.append(
                        ProductOrderMaterial(
                            material_id=line.material_id,
                            material_name=line.material_name,
                            quantity=line.quantity,
                            cost_per_unit=line.cost_per_unit,
                            unit=line.unit,
                            id=result.inserted_primary_key[0],
                        )
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Could not save materials of product order #{order_id}: {exc}"
            ) from exc
        return saved

    def get_by_id(self, order_id: int) -> ProductOrder | None:
        try:
            with self._engine.connect() as conn:
                header = conn.execute(
                    text(f"SELECT {_HEADER_COLUMNS} FROM product_orders WHERE id = :id"),
                    {"id": order_id},
                ).first()
                if header is None:
                    return None
                return self._to_domain(header, self._load_materials(conn, header.id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read product order #{order_id}: {exc}") from exc

    def list_all(self, include_completed: bool = False) -> list[ProductOrder]:
        sql = f"SELECT {_HEADER_COLUMNS} FROM product_orders"
        if not include_completed:
            sql += " WHERE status != 'completed'"
        sql += " ORDER BY created_at DESC, id DESC"
        try:
            with self._engine.connect() as conn:
                headers = conn.execute(text(sql)).fetchall()
                return [self._to_domain(h, self._load_materials(conn, h.id)) for h in headers]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read product orders: {exc}") from exc

    def update_status(self, order: ProductOrder, expected: ProductOrderStatus) -> bool:
        try:
            with self._engine.begin() as conn:
                updated = conn.execute(
                    text(
                        "UPDATE product_orders SET status = :status, updated_at = :updated_at, "
                        "completed_at = :completed_at WHERE id = :id AND status = :expected"
                    ),
                    {
                        "id": order.id,
                        "status": order.status.value,
                        "updated_at": order.updated_at.isoformat(),
                        "completed_at": _iso_or_none(order.completed_at),
                        "expected": expected.value,
                    },
                ).rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Could not update status of product order {order.label}: {exc}"
            ) from exc
        return updated == 1

    def delete(self, order_id: int, expected: ProductOrderStatus | None = None) -> bool:
        sql = "DELETE FROM product_orders WHERE id = :id"
        params: dict = {"id": order_id}
        if expected is not None:
            sql += " AND status = :expected"
            params["expected"] = expected.value
        try:
            with self._engine.begin() as conn:
                deleted = conn.execute(text(sql), params).rowcount
                if deleted == 1:
                    conn.execute(
                        text("DELETE FROM product_order_materials WHERE order_id = :id"),
                        {"id": order_id},
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not delete product order #{order_id}: {exc}") from exc
        return deleted == 1

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _load_materials(conn: Connection, order_id: int) -> list[Row]:
        return conn.execute(
            text(
                f"SELECT {_MATERIAL_COLUMNS} FROM product_order_materials "
                "WHERE order_id = :id ORDER BY id"
            ),
            {"id": order_id},
        ).fetchall()

    @staticmethod
    def _to_domain(header: Row, material_rows: list[Row]) -> ProductOrder:
        return ProductOrder(
            id=header.id,
            product_id=header.product_id,
            product_name=header.product_name,
            quantity=Quantity(header.quantity),
            materials=[
                ProductOrderMaterial(
                    material_id=row.material_id,
                    material_name=row.material_name,
                    quantity=Quantity(row.quantity),
                    cost_per_unit=Money(Decimal(row.cost_per_unit), row.currency),
                    unit=row.unit,
                    id=row.id,
                )
                for row in material_rows
            ],
            status=ProductOrderStatus(header.status),
            created_at=datetime.fromisoformat(header.created_at),
            updated_at=datetime.fromisoformat(header.updated_at),
            completed_at=(
                datetime.fromisoformat(header.completed_at) if header.completed_at else None
            ),
        )


def _iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
