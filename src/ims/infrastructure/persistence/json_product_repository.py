"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.repository.product_repository import ProductRepository
from ims.infrastructure.persistence.json_file import JsonFile


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, default=[])

    # --- ProductRepository interface ------------------------------------------

    def next_id(self) -> int:
        records = self._file.load()
        if not records:
            return 1
        return max(r["id"] for r in records) + 1

    def get_by_id(self, product_id: int) -> Product | None:
        for raw in self._file.load():
            if raw["id"] == product_id:
                return self._to_domain(raw)
        return None

    def get_by_sku(self, sku: str) -> Product | None:
        for raw in self._file.load():
            if raw["sku"].lower() == sku.strip().lower():
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Product]:
        products = [self._to_domain(raw) for raw in self._file.load()]
        return sorted(products, key=lambda p: p.id)

    def save(self, product: Product) -> None:
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["id"] == product.id:
                    records[i] = self._to_raw(product)
                    break
            else:
                records.append(self._to_raw(product))
            self._file.persist(records)

    def try_deduct(self, product_id: int, quantity: int) -> bool:
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["id"] == product_id:
                    product = self._to_domain(raw)
                    if not product.deduct(quantity):
                        return False
                    records[i] = self._to_raw(product)
                    self._file.persist(records)
                    return True
            return False

    def restock(self, product_id: int, quantity: int) -> int | None:
        with self._file.locked():
            records = self._file.load()
            for i, raw in enumerate(records):
                if raw["id"] == product_id:
                    product = self._to_domain(raw)
                    product.restock(quantity)
                    records[i] = self._to_raw(product)
                    self._file.persist(records)
                    return product.stock
            return None

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "price": str(product.price.amount),
            "currency": product.price.currency,
            "stock": product.stock,
            "unit": product.unit,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            sku=raw["sku"],
            price=Money(Decimal(raw["price"]), raw.get("currency", "USD")),
            stock=raw.get("stock", 0),
            unit=raw.get("unit", "pcs"),
        )
