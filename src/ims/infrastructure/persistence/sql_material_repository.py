"""SQL implementation of MaterialRepository (SQLAlchemy)."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Engine, text
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from ims.domain.exceptions import PersistenceError
from ims.domain.model.raw_material import RawMaterial
from ims.domain.model.value_objects import Money
from ims.domain.repository.material_repository import MaterialRepository

_COLUMNS = "id, name, unit, quantity, cost_per_unit, currency"


class SqlMaterialRepository(MaterialRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # --- MaterialRepository interface -----------------------------------------

    def next_id(self) -> int:
        try:
            with self._engine.connect() as conn:
                current = conn.execute(text("SELECT MAX(id) FROM raw_materials")).scalar()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read raw materials: {exc}") from exc
        return (current or 0) + 1

    def get_by_id(self, material_id: int) -> RawMaterial | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM raw_materials WHERE id = :id", {"id": material_id}
        )

    def get_by_name(self, name: str) -> RawMaterial | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM raw_materials WHERE LOWER(name) = :name",
            {"name": name.strip().lower()},
        )

    def list_all(self) -> list[RawMaterial]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(f"SELECT {_COLUMNS} FROM raw_materials ORDER BY id")
                ).fetchall()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read raw materials: {exc}") from exc
        return [self._to_domain(row) for row in rows]

    def save(self, material: RawMaterial) -> None:
        params = {
            "id": material.id,
            "name": material.name,
            "unit": material.unit,
            "quantity": material.quantity,
            "cost_per_unit": str(material.cost_per_unit.amount),
            "currency": material.cost_per_unit.currency,
        }
        try:
            with self._engine.begin() as conn:
                updated = conn.execute(
                    text(
                        "UPDATE raw_materials SET name = :name, unit = :unit, "
                        "quantity = :quantity, cost_per_unit = :cost_per_unit, "
                        "currency = :currency WHERE id = :id"
                    ),
                    params,
                ).rowcount
                if updated == 0:
                    conn.execute(
                        text(
                            f"INSERT INTO raw_materials ({_COLUMNS}) VALUES "
                            "(:id, :name, :unit, :quantity, :cost_per_unit, :currency)"
                        ),
                        params,
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save material {material.name}: {exc}") from exc

    def try_deduct(self, material_id: int, quantity: int) -> bool:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text(
                        "UPDATE raw_materials SET quantity = quantity - :qty "
                        "WHERE id = :id AND quantity >= :qty"
                    ),
                    {"id": material_id, "qty": quantity},
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not deduct material {material_id}: {exc}") from exc
        return result.rowcount == 1

    def restock(self, material_id: int, quantity: int) -> int | None:
        try:
            with self._engine.begin() as conn:
                updated = conn.execute(
                    text("UPDATE raw_materials SET quantity = quantity + :qty WHERE id = :id"),
                    {"id": material_id, "qty": quantity},
                ).rowcount
                if updated == 0:
                    return None
                return conn.execute(
                    text("SELECT quantity FROM raw_materials WHERE id = :id"),
                    {"id": material_id},
                ).scalar_one()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not restock material {material_id}: {exc}") from exc

    # --- Mapping --------------------------------------------------------------

    def _fetch_one(self, sql: str, params: dict) -> RawMaterial | None:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(text(sql), params).first()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read raw materials: {exc}") from exc
        return self._to_domain(row) if row is not None else None

    @staticmethod
    def _to_domain(row: Row) -> RawMaterial:
        return RawMaterial(
            id=row.id,
            name=row.name,
            unit=row.unit,
            quantity=row.quantity,
            cost_per_unit=Money(Decimal(row.cost_per_unit), row.currency),
        )
