"""Shortfall value objects for stock and raw material checks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StockShortfall:
    """One invoice line that current stock cannot cover."""

    product_id: int
    product_name: str
    sku: str
    requested: int
    available: int
    unit: str

    @property
    def missing(self) -> int:
        return max(0, self.requested - self.available)


@dataclass(frozen=True)
class MaterialShortfall:
    """One product-order material that raw material stock cannot cover."""

    material_id: int
    material_name: str
    requested: int
    available: int
    unit: str
