"""Integration tests for the ChangeInvoiceStatus use case."""

import threading

import pytest

from ims.application.change_invoice_status import ChangeInvoiceStatusHandler
from ims.application.fulfill_invoice import FulfillInvoiceHandler
from ims.domain.exceptions import (
    InvalidTransitionError,
    PersistenceError,
    ValidationError,
)
from ims.domain.model.invoice import InvoiceStatus


def _fulfilled(shop, *lines):
    dto = shop.create_invoice(*lines)
    FulfillInvoiceHandler(shop.invoices, shop.fulfillment).handle(dto.id)
    return dto.id


class TestChangeInvoiceStatus:

    def test_cancel_pending_leaves_stock(self, shop):
        dto = shop.create_invoice((1, 4))

        result = ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(
            dto.id, "cancelled"
        )

        assert result.previous_status == "pending"
        assert result.invoice.status == "cancelled"
        assert shop.products.stock_of(1) == 10

    def test_cancel_fulfilled_restores_stock(self, shop):
        invoice_id = _fulfilled(shop, (1, 4), (3, 5))

        ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(
            invoice_id, InvoiceStatus.CANCELLED
        )

        assert shop.products.stock_of(1) == 10
        assert shop.products.stock_of(3) == 40

    def test_revert_then_fulfill_again(self, shop):
        invoice_id = _fulfilled(shop, (1, 4))
        ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(invoice_id, "pending")

        FulfillInvoiceHandler(shop.invoices, shop.fulfillment).handle(invoice_id)

        assert shop.products.stock_of(1) == 6

    def test_reopen_cancelled(self, shop):
        dto = shop.create_invoice((1, 1))
        handler = ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment)
        handler.handle(dto.id, "cancelled")
        result = handler.handle(dto.id, "pending")
        assert result.invoice.status == "pending"

    def test_cannot_fulfill_through_status_change(self, shop):
        dto = shop.create_invoice((1, 4))

        with pytest.raises(InvalidTransitionError):
            ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(dto.id, "fulfilled")

        assert shop.products.stock_of(1) == 10
        assert shop.invoices.get_by_id(dto.id).status == InvoiceStatus.PENDING

    def test_unknown_status_rejected(self, shop):
        dto = shop.create_invoice((1, 1))
        with pytest.raises(ValidationError, match="Unknown invoice status"):
            ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(dto.id, "paid")

    def test_same_status_rejected_without_restoring(self, shop):
        dto = shop.create_invoice((1, 1))
        with pytest.raises(InvalidTransitionError):
            ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(dto.id, "pending")

    def test_failed_restoration_is_reported(self, shop):
        invoice_id = _fulfilled(shop, (1, 4), (3, 5))
        shop.products.fail_restock_for.add(3)

        result = ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(
            invoice_id, "pending"
        )

        assert result.unrestored_product_ids == [3]
        assert shop.products.stock_of(1) == 10
        assert shop.products.stock_of(3) == 35
        assert result.invoice.status == "pending"

    def test_activity_is_recorded(self, shop):
        dto = shop.create_invoice((1, 1))
        ChangeInvoiceStatusHandler(
            shop.invoices, shop.fulfillment, activity_log=shop.activity
        ).handle(dto.id, "cancelled")
        assert shop.activity.kinds()[-1] == "update"


class TestLeavingFulfilledSafely:

    def test_failed_status_save_keeps_stock_deducted(self, shop):
        invoice_id = _fulfilled(shop, (1, 4))
        shop.invoices.fail_update_status = True

        with pytest.raises(PersistenceError):
            ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment).handle(
                invoice_id, "pending"
            )

        assert shop.products.stock_of(1) == 6
        assert shop.invoices.get_by_id(invoice_id).is_fulfilled

    def test_retry_after_failed_save_restores_once(self, shop):
        invoice_id = _fulfilled(shop, (1, 4))
        handler = ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment)
        shop.invoices.fail_update_status = True
        with pytest.raises(PersistenceError):
            handler.handle(invoice_id, "pending")

        shop.invoices.fail_update_status = False
        handler.handle(invoice_id, "pending")

        assert shop.products.stock_of(1) == 10
        assert shop.invoices.get_by_id(invoice_id).status == InvoiceStatus.PENDING

    def test_concurrent_reverts_restore_once(self, shop):
        invoice_id = _fulfilled(shop, (1, 4))
        shop.invoices.hold_reads(2)
        handler = ChangeInvoiceStatusHandler(shop.invoices, shop.fulfillment)
        outcomes: list[str] = []
        lock = threading.Lock()

        def revert(target: str) -> None:
            try:
                handler.handle(invoice_id, target)
                result = "ok"
            except InvalidTransitionError:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [
            threading.Thread(target=revert, args=("pending",)),
            threading.Thread(target=revert, args=("cancelled",)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict", "ok"]
        assert shop.products.stock_of(1) == 10
