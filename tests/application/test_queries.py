"""Tests for the read-side use cases and simple catalog commands."""

import pytest

from ims.application.add_product import AddProductHandler
from ims.application.change_invoice_status import ChangeInvoiceStatusHandler
from ims.application.fulfill_invoice import FulfillInvoiceHandler
from ims.application.invoice_stats import InvoiceStatsHandler
from ims.application.set_stock import SetStockHandler
from ims.application.show_inventory import ShowInventoryHandler, StockAlertsHandler
from ims.application.show_invoice import ListInvoicesHandler, ShowInvoiceHandler
from ims.domain.exceptions import EntityNotFoundError, ValidationError


class TestShowAndListInvoices:

    def test_show_by_id_and_number(self, shop):
        dto = shop.create_invoice((1, 2))
        handler = ShowInvoiceHandler(shop.invoices)
        assert handler.handle(dto.id).invoice_number == "INV-1001"
        assert handler.handle("INV-1001").id == dto.id

    def test_show_unknown(self, shop):
        with pytest.raises(EntityNotFoundError, match="INV-4242"):
            ShowInvoiceHandler(shop.invoices).handle("INV-4242")

    def test_list_filters_by_status(self, shop):
        first = shop.create_invoice((1, 1))
        shop.create_invoice((3, 1))
        FulfillInvoiceHandler(shop.invoices, shop.fulfillment).handle(first.id)

        handler = ListInvoicesHandler(shop.invoices)
        assert len(handler.handle()) == 2
        assert [d.id for d in handler.handle("fulfilled")] == [first.id]
        assert len(handler.handle("PENDING")) == 1

    def test_list_rejects_unknown_status(self, shop):
        with pytest.raises(ValidationError):
            ListInvoicesHandler(shop.invoices).handle("archived")


class TestInvoiceStats:

    def test_counts_and_values(self, shop):
        a = shop.create_invoice((1, 2))   # 30.00 + 3.60
        b = shop.create_invoice((3, 2))   # 17.00 + 2.04
        shop.create_invoice((1, 1))       # 15.00 + 1.80
        FulfillInvoiceHandler(shop.invoices, shop.fulfillment).handle(a.id)
        ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(b.id, "cancelled")

        stats = InvoiceStatsHandler(shop.invoices).handle()

        assert (stats.total, stats.pending, stats.fulfilled, stats.cancelled) == (3, 1, 1, 1)
        assert stats.total_value == "$69.44"
        assert stats.fulfilled_value == "$33.60"

    def test_empty(self, shop):
        stats = InvoiceStatsHandler(shop.invoices).handle()
        assert stats.total == 0
        assert stats.total_value == "$0.00"


class TestInventoryQueries:

    def test_show_inventory_statuses(self, shop):
        lines = {line.sku: line for line in ShowInventoryHandler(shop.products).handle()}
        assert lines["TOTE-01"].status == "low-stock"
        assert lines["APRON-02"].status == "low-stock"
        assert lines["MUG-03"].status == "in-stock"
        assert lines["MUG-03"].unit == "box"

    def test_alerts_put_out_of_stock_first(self, shop):
        SetStockHandler(shop.products).handle(1, 0)

        alerts = StockAlertsHandler(shop.products).handle()

        assert [(a.sku, a.status) for a in alerts] == [
            ("TOTE-01", "out-of-stock"),
            ("APRON-02", "low-stock"),
        ]

    def test_custom_threshold(self, shop):
        alerts = StockAlertsHandler(shop.products, low_stock_threshold=1).handle()
        assert alerts == []


class TestCatalogCommands:

    def test_set_stock(self, shop):
        SetStockHandler(shop.products, activity_log=shop.activity).handle(2, 25)
        assert shop.products.stock_of(2) == 25
        assert shop.activity.kinds() == ["update"]

    def test_set_negative_stock_rejected(self, shop):
        with pytest.raises(ValidationError, match="cannot be negative"):
            SetStockHandler(shop.products).handle(2, -1)
        assert shop.products.stock_of(2) == 2

    def test_set_stock_unknown_product(self, shop):
        with pytest.raises(EntityNotFoundError):
            SetStockHandler(shop.products).handle(77, 1)

    def test_add_product(self, shop):
        product = AddProductHandler(shop.products).handle("Beeswax Candle", "candle-04", "12.5", stock=6, unit="box")
        assert product.id == 4
        assert product.sku == "CANDLE-04"
        assert shop.products.get_by_id(4).stock == 6

    def test_add_product_duplicate_sku(self, shop):
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(shop.products).handle("Other Tote", "tote-01", "5")
