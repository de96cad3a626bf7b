"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, SQL, in-memory)
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique product ID."""

    @abstractmethod
    def get_by_id(self, product_id: int) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Product | None:
        """Return a product by its SKU (case-insensitive), or None."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog, ordered by ID."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product."""

    @abstractmethod
    def try_deduct(self, product_id: int, quantity: int) -> bool:
        """Atomically take *quantity* out of stock if at least that much is there.

        Equivalent to ``UPDATE ... SET stock = stock - n WHERE id = ? AND
        stock >= n``.  Returns False (and changes nothing) when the product
        is missing or short.
        """

    @abstractmethod
    def restock(self, product_id: int, quantity: int) -> int | None:
        """Atomically add *quantity* to stock; return the new level or None if missing."""
