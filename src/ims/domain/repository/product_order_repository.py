"""Abstract repository for ProductOrder aggregate.

Like invoices, the header and the bill of materials are written in two
steps so creation can compensate when the materials fail to persist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.product_order import (
    ProductOrder,
    ProductOrderMaterial,
    ProductOrderStatus,
)


class ProductOrderRepository(ABC):

    @abstractmethod
    def insert_header(self, order: ProductOrder) -> int:
        """Persist a new order without its materials and return its new ID."""

    @abstractmethod
    def insert_materials(
        self, order_id: int, materials: list[ProductOrderMaterial]
    ) -> list[ProductOrderMaterial]:
        """Persist the material lines of an existing header; return them with IDs."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> ProductOrder | None:
        """Return an order with its materials, or None if not found."""

    @abstractmethod
    def list_all(self, include_completed: bool = False) -> list[ProductOrder]:
        """Return orders newest first; completed ones only when asked for."""

    @abstractmethod
    def update_status(self, order: ProductOrder, expected: ProductOrderStatus) -> bool:
        """Persist status, ``updated_at`` and ``completed_at`` if the stored status is *expected*.

        Returns False when the order is missing or was changed first.
        """

    @abstractmethod
    def delete(self, order_id: int, expected: ProductOrderStatus | None = None) -> bool:
        """Remove header and materials together; see InvoiceRepository.delete."""
