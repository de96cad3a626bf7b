"""Shared wiring for the application-layer tests."""

import pytest

from ims.domain.model.product import Product
from ims.domain.model.raw_material import RawMaterial
from ims.domain.model.value_objects import Money
from tests.application.shop import Shop


@pytest.fixture
def shop() -> Shop:
    return Shop(
        [
            Product(id=1, name="Canvas Tote", sku="TOTE-01", price=Money.of("15.00"), stock=10),
            Product(id=2, name="Linen Apron", sku="APRON-02", price=Money.of("25.00"), stock=2),
            Product(id=3, name="Stoneware Mug", sku="MUG-03", price=Money.of("8.50"), stock=40, unit="box"),
        ],
        materials=[
            RawMaterial(id=1, name="Canvas", unit="m", quantity=20, cost_per_unit=Money.of("4.00")),
            RawMaterial(id=2, name="Thread", unit="spool", quantity=5, cost_per_unit=Money.of("1.25")),
        ],
    )
