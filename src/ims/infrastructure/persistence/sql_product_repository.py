"""SQL implementation of ProductRepository (SQLAlchemy).

Stock changes are single conditional UPDATE statements, so the database
serialises concurrent deductions for us.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Engine, text
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from ims.domain.exceptions import PersistenceError
from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.repository.product_repository import ProductRepository

_COLUMNS = "id, name, sku, price, currency, stock, unit"


class SqlProductRepository(ProductRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # --- ProductRepository interface ------------------------------------------

    def next_id(self) -> int:
        try:
            with self._engine.connect() as conn:
                current = conn.execute(text("SELECT MAX(id) FROM products")).scalar()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read products: {exc}") from exc
        return (current or 0) + 1

    def get_by_id(self, product_id: int) -> Product | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM products WHERE id = :id", {"id": product_id}
        )

    def get_by_sku(self, sku: str) -> Product | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM products WHERE LOWER(sku) = :sku",
            {"sku": sku.strip().lower()},
        )

    def list_all(self) -> list[Product]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(text(f"SELECT {_COLUMNS} FROM products ORDER BY id")).fetchall()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read products: {exc}") from exc
        return [self._to_domain(row) for row in rows]

    def save(self, product: Product) -> None:
        params = {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "stock": product.stock,
            "unit": product.unit,
        }
        try:
            with self._engine.begin() as conn:
                updated = conn.execute(
                    text(
                        "UPDATE products SET name = :name, sku = :sku, price = :price, "
                        "currency = :currency, stock = :stock, unit = :unit WHERE id = :id"
                    ),
                    params,
                ).rowcount
                if updated == 0:
                    conn.execute(
                        text(
                            f"INSERT INTO products ({_COLUMNS}) "
                            "VALUES (:id, :name, :sku, :price, :currency, :stock, :unit)"
                        ),
                        params,
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save product {product.name}: {exc}") from exc

    def try_deduct(self, product_id: int, quantity: int) -> bool:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text(
                        "UPDATE products SET stock = stock - :qty "
                        "WHERE id = :id AND stock >= :qty"
                    ),
                    {"id": product_id, "qty": quantity},
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not deduct stock of product {product_id}: {exc}") from exc
        return result.rowcount == 1

    def restock(self, product_id: int, quantity: int) -> int | None:
        try:
            with self._engine.begin() as conn:
                updated = conn.execute(
                    text("UPDATE products SET stock = stock + :qty WHERE id = :id"),
                    {"id": product_id, "qty": quantity},
                ).rowcount
                if updated == 0:
                    return None
                return conn.execute(
                    text("SELECT stock FROM products WHERE id = :id"), {"id": product_id}
                ).scalar_one()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not restock product {product_id}: {exc}") from exc

    # --- Mapping --------------------------------------------------------------

    def _fetch_one(self, sql: str, params: dict) -> Product | None:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(text(sql), params).first()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read products: {exc}") from exc
        return self._to_domain(row) if row is not None else None

    @staticmethod
    def _to_domain(row: Row) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            sku=row.sku,
            price=Money(Decimal(row.price), row.currency),
            stock=row.stock,
            unit=row.unit,
        )
