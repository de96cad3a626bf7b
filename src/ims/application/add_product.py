"""Application service: Add Product use case."""

from __future__ import annotations

from ims.domain.exceptions import ValidationError
from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        name: str,
        sku: str,
        price: str,
        stock: int = 0,
        unit: str = "pcs",
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not sku or not sku.strip():
            raise ValidationError("Product SKU is required")

        if self._product_repo.get_by_sku(sku) is not None:
            raise ValidationError(f"A product with SKU '{sku}' already exists")

        product = Product(
            id=self._product_repo.next_id(),
            name=name.strip(),
            sku=sku.strip().upper(),
            price=Money.of(price),
            stock=stock,
            unit=unit,
        )
        self._product_repo.save(product)
        return product
