"""Application service: Show Inventory and Stock Alerts use cases (queries)."""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.model.product import DEFAULT_LOW_STOCK_THRESHOLD, StockStatus
from ims.domain.repository.product_repository import ProductRepository


@dataclass(frozen=True)
class StockLineDTO:
    product_id: int
    product_name: str
    sku: str
    price: str
    stock: int
    unit: str
    status: str


class ShowInventoryHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        self._product_repo = product_repo
        self._threshold = low_stock_threshold

    def handle(self) -> list[StockLineDTO]:
        return [
            StockLineDTO(
                product_id=p.id,
                product_name=p.name,
                sku=p.sku,
                price=str(p.price),
                stock=p.stock,
                unit=p.unit,
                status=p.status(self._threshold).value,
            )
            for p in self._product_repo.list_all()
        ]


class StockAlertsHandler:
    """Products that need attention: out of stock first, then low stock."""

    _PRIORITY = {StockStatus.OUT_OF_STOCK.value: 0, StockStatus.LOW_STOCK.value: 1}

    def __init__(
        self,
        product_repo: ProductRepository,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> None:
        self._inventory = ShowInventoryHandler(product_repo, low_stock_threshold)

    def handle(self) -> list[StockLineDTO]:
        alerts = [
            line for line in self._inventory.handle()
            if line.status in self._PRIORITY
        ]
        return sorted(alerts, key=lambda line: (self._PRIORITY[line.status], line.stock))
