"""Unit tests for the InventoryFulfillmentService domain service."""

from datetime import date

import pytest

from ims.domain.exceptions import InsufficientStockError, StockContentionError
from ims.domain.model.invoice import Customer, Invoice, InvoiceItem
from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money, Quantity, TaxRate
from ims.domain.service.inventory_fulfillment_service import (
    InventoryFulfillmentService,
)
from tests.fakes import BrokenActivityLog, FakeActivityLog, FakeProductRepository


def _make_invoice(items: list[tuple[int, str, int]]) -> Invoice:
    """Create an invoice with given (product_id, product_name, qty) tuples."""
    line_items = [
        InvoiceItem(
            product_id=pid,
            product_name=pname,
            sku=f"SKU-{pid}",
            quantity=Quantity(qty),
            unit_price=Money.of("10.00"),
        )
        for pid, pname, qty in items
    ]
    invoice = Invoice.create(
        customer=Customer(name="Test"),
        items=line_items,
        issue_date=date(2026, 1, 5),
        due_date=date(2026, 1, 12),
        tax_rate=TaxRate.of("0.12"),
    )
    invoice.invoice_number = "INV-1001"
    return invoice


def _make_products(*specs: tuple[int, str, int]) -> FakeProductRepository:
    """Create repo with (product_id, name, stock) tuples."""
    return FakeProductRepository([
        Product(id=pid, name=name, sku=f"SKU-{pid}", price=Money.of("10.00"), stock=stock, unit="dz")
        for pid, name, stock in specs
    ])


class RacingProductRepository(FakeProductRepository):
    """Loses the first *races* conditional decrements, as if another fulfillment got there first."""

    def __init__(self, products, races: int) -> None:
        super().__init__(products)
        self.races = races

    def try_deduct(self, product_id: int, quantity: int) -> bool:
        if self.races > 0:
            self.races -= 1
            return False
        return super().try_deduct(product_id, quantity)


class TestFindShortfalls:

    def test_no_shortfall_when_covered(self):
        repo = _make_products((1, "Tote Bag", 10))
        svc = InventoryFulfillmentService(repo)
        assert svc.find_shortfalls(_make_invoice([(1, "Tote Bag", 10)])) == []

    def test_reports_every_short_line(self):
        repo = _make_products((1, "Tote Bag", 2), (2, "Apron", 50), (3, "Mug", 0))
        invoice = _make_invoice([(1, "Tote Bag", 5), (2, "Apron", 5), (3, "Mug", 1)])

        shortfalls = InventoryFulfillmentService(repo).find_shortfalls(invoice)

        assert [(s.product_id, s.requested, s.available) for s in shortfalls] == [
            (1, 5, 2),
            (3, 1, 0),
        ]
        assert shortfalls[0].missing == 3
        assert shortfalls[0].unit == "dz"
        assert shortfalls[0].sku == "SKU-1"

    def test_missing_product_counts_as_zero(self):
        repo = _make_products()
        shortfalls = InventoryFulfillmentService(repo).find_shortfalls(
            _make_invoice([(9, "Ghost", 1)])
        )
        assert shortfalls[0].available == 0
        assert shortfalls[0].product_name == "Ghost"

    def test_lines_for_same_product_share_stock(self):
        repo = _make_products((1, "Tote Bag", 5))
        invoice = _make_invoice([(1, "Tote Bag", 3), (1, "Tote Bag", 3)])
        shortfalls = InventoryFulfillmentService(repo).find_shortfalls(invoice)
        assert [(s.requested, s.available) for s in shortfalls] == [(3, 2)]


class TestDeductForInvoice:

    def test_deducts_all_items(self):
        repo = _make_products((1, "Tote Bag", 100), (2, "Apron", 50))
        svc = InventoryFulfillmentService(repo)

        svc.deduct_for_invoice(_make_invoice([(1, "Tote Bag", 10), (2, "Apron", 5)]))

        assert repo.stock_of(1) == 90
        assert repo.stock_of(2) == 45

    def test_insufficient_stock_touches_nothing(self):
        repo = _make_products((1, "Tote Bag", 100), (2, "Apron", 2))
        svc = InventoryFulfillmentService(repo)

        with pytest.raises(InsufficientStockError) as exc_info:
            svc.deduct_for_invoice(_make_invoice([(1, "Tote Bag", 10), (2, "Apron", 5)]))

        assert repo.stock_of(1) == 100
        assert repo.stock_of(2) == 2
        assert len(exc_info.value.shortfalls) == 1
        assert "Apron" in str(exc_info.value)

    def test_lost_race_is_retried(self):
        repo = RacingProductRepository(
            [Product(id=1, name="Tote Bag", sku="SKU-1", price=Money.of("10"), stock=10),
             Product(id=2, name="Apron", sku="SKU-2", price=Money.of("10"), stock=10)],
            races=1,
        )
        svc = InventoryFulfillmentService(repo, max_attempts=3)

        svc.deduct_for_invoice(_make_invoice([(1, "Tote Bag", 4), (2, "Apron", 4)]))

        assert repo.stock_of(1) == 6
        assert repo.stock_of(2) == 6

    def test_partial_deduction_is_rolled_back_before_retry(self):
        products = [
            Product(id=1, name="Tote Bag", sku="SKU-1", price=Money.of("10"), stock=10),
            Product(id=2, name="Apron", sku="SKU-2", price=Money.of("10"), stock=10),
        ]

        class SecondLineLoses(FakeProductRepository):
            def try_deduct(self, product_id, quantity):
                if product_id == 2:
                    return False
                return super().try_deduct(product_id, quantity)

        repo = SecondLineLoses(products)
        svc = InventoryFulfillmentService(repo, max_attempts=2)

        with pytest.raises(StockContentionError):
            svc.deduct_for_invoice(_make_invoice([(1, "Tote Bag", 4), (2, "Apron", 4)]))

        assert repo.stock_of(1) == 10
        assert repo.stock_of(2) == 10

    def test_stock_taken_by_rival_becomes_shortfall(self):
        products = [Product(id=1, name="Tote Bag", sku="SKU-1", price=Money.of("10"), stock=5)]

        class RivalTakesStock(FakeProductRepository):
            def try_deduct(self, product_id, quantity):
                # Another invoice drains the product between check and deduct.
                super().try_deduct(product_id, self.stock_of(product_id))
                return super().try_deduct(product_id, quantity)

        repo = RivalTakesStock(products)
        with pytest.raises(InsufficientStockError) as exc_info:
            InventoryFulfillmentService(repo).deduct_for_invoice(
                _make_invoice([(1, "Tote Bag", 3)])
            )
        assert exc_info.value.shortfalls[0].available == 0
        assert repo.stock_of(1) == 0

    def test_each_deduction_is_logged(self):
        repo = _make_products((1, "Tote Bag", 10), (2, "Apron", 10))
        log = FakeActivityLog()
        InventoryFulfillmentService(repo, activity_log=log).deduct_for_invoice(
            _make_invoice([(1, "Tote Bag", 1), (2, "Apron", 2)])
        )
        assert log.kinds() == ["inventory_deduction", "inventory_deduction"]
        assert "Deducted 2 of Apron for invoice INV-1001" in log.entries[1].message

    def test_broken_activity_log_does_not_abort(self, caplog):
        repo = _make_products((1, "Tote Bag", 10))
        svc = InventoryFulfillmentService(repo, activity_log=BrokenActivityLog())

        svc.deduct_for_invoice(_make_invoice([(1, "Tote Bag", 4)]))

        assert repo.stock_of(1) == 6
        assert "Could not record inventory_deduction activity" in caplog.text


class TestRestoreForInvoice:

    def test_restores_every_line(self):
        repo = _make_products((1, "Tote Bag", 6), (2, "Apron", 0))
        result = InventoryFulfillmentService(repo).restore_for_invoice(
            _make_invoice([(1, "Tote Bag", 4), (2, "Apron", 3)])
        )
        assert repo.stock_of(1) == 10
        assert repo.stock_of(2) == 3
        assert result.complete
        assert result.restored == [1, 2]

    def test_one_failure_does_not_stop_the_others(self):
        repo = _make_products((1, "Tote Bag", 0), (2, "Apron", 0), (3, "Mug", 0))
        repo.fail_restock_for.add(2)

        result = InventoryFulfillmentService(repo).restore_for_invoice(
            _make_invoice([(1, "Tote Bag", 1), (2, "Apron", 2), (3, "Mug", 3)])
        )

        assert repo.stock_of(1) == 1
        assert repo.stock_of(2) == 0
        assert repo.stock_of(3) == 3
        assert result.failed == [2]
        assert not result.complete

    def test_missing_product_is_reported(self):
        repo = _make_products((1, "Tote Bag", 0))
        result = InventoryFulfillmentService(repo).restore_for_invoice(
            _make_invoice([(1, "Tote Bag", 1), (7, "Gone", 2)])
        )
        assert result.restored == [1]
        assert result.failed == [7]

    def test_each_restoration_is_logged(self):
        repo = _make_products((1, "Tote Bag", 0))
        log = FakeActivityLog()
        InventoryFulfillmentService(repo, activity_log=log).restore_for_invoice(
            _make_invoice([(1, "Tote Bag", 2)])
        )
        assert log.kinds() == ["inventory_restoration"]
