"""Unit tests for the Invoice aggregate and its business rules."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

import pytest

from ims.domain.exceptions import (
    AlreadyFulfilledError,
    InvalidTransitionError,
    ValidationError,
)
from ims.domain.model.invoice import Customer, Invoice, InvoiceItem, InvoiceStatus
from ims.domain.model.value_objects import Money, Quantity, TaxRate

ISSUED = date(2026, 3, 2)
DUE = date(2026, 3, 9)


def _make_item(name: str = "Tote Bag", qty: int = 1, price: str = "15.00", pid: int = 1) -> InvoiceItem:
    """Helper to build a valid line item."""
    return InvoiceItem(
        product_id=pid,
        product_name=name,
        sku=f"SKU-{pid}",
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def _create(items=None, customer="Alice", tax="0.12", issue=ISSUED, due=DUE) -> Invoice:
    return Invoice.create(
        customer=Customer(name=customer),
        items=items if items is not None else [_make_item()],
        issue_date=issue,
        due_date=due,
        tax_rate=TaxRate.of(tax),
    )


class TestInvoiceCreation:

    def test_happy_path(self):
        invoice = _create([_make_item(qty=2, price="10.00")])
        assert invoice.customer.name == "Alice"
        assert invoice.status == InvoiceStatus.PENDING
        assert len(invoice.items) == 1
        assert invoice.subtotal == Money.of("20.00")
        assert invoice.id

    def test_customer_name_is_trimmed(self):
        assert _create(customer="  Bob  ").customer.name == "Bob"

    def test_blank_customer_rejected(self):
        with pytest.raises(ValidationError, match="Customer name is required"):
            _create(customer="   ")

    def test_no_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            _create(items=[])

    def test_missing_issue_date_rejected(self):
        with pytest.raises(ValidationError, match="Issue date is required"):
            _create(issue=None)

    def test_missing_due_date_rejected(self):
        with pytest.raises(ValidationError, match="Due date is required"):
            _create(due=None)

    def test_due_before_issue_rejected(self):
        with pytest.raises(ValidationError, match="before issue date"):
            _create(issue=DUE, due=ISSUED)


class TestInvoiceTotals:

    def test_subtotal_is_sum_of_lines(self):
        invoice = _create([
            _make_item("Tote Bag", qty=3, price="15.00", pid=1),
            _make_item("Apron", qty=5, price="25.00", pid=2),
        ])
        assert invoice.subtotal == Money.of("170.00")

    def test_tax_and_total(self):
        invoice = _create([_make_item(qty=3, price="15.00")], tax="0.12")
        assert invoice.tax_amount == Money.of("5.40")
        assert invoice.total_amount == Money.of("50.40")

    @pytest.mark.parametrize(
        "price, qty, tax",
        [("19.99", 3, "0.12"), ("0.05", 7, "0.075"), ("1234.56", 1, "0"), ("3.33", 3, "0.2")],
    )
    def test_total_equals_rounded_subtotal_plus_tax(self, price, qty, tax):
        invoice = _create([_make_item(qty=qty, price=price)], tax=tax)
        subtotal = invoice.subtotal.amount
        expected = (subtotal + subtotal * Decimal(tax)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        assert invoice.total_amount.amount == expected

    def test_line_total(self):
        assert _make_item(qty=4, price="2.50").total_price == Money.of("10.00")


class TestInvoiceTransitions:

    def test_mark_fulfilled(self):
        invoice = _create()
        invoice.mark_fulfilled()
        assert invoice.status == InvoiceStatus.FULFILLED

    def test_fulfill_twice_rejected(self):
        invoice = _create()
        invoice.mark_fulfilled()
        with pytest.raises(AlreadyFulfilledError):
            invoice.mark_fulfilled()

    def test_fulfill_cancelled_rejected(self):
        invoice = _create()
        invoice.change_status(InvoiceStatus.CANCELLED)
        with pytest.raises(InvalidTransitionError, match="re-open"):
            invoice.ensure_can_fulfill()

    def test_status_change_cannot_fulfill(self):
        invoice = _create()
        with pytest.raises(InvalidTransitionError, match="through fulfillment"):
            invoice.change_status(InvoiceStatus.FULFILLED)

    def test_revert_fulfilled_to_pending(self):
        invoice = _create()
        invoice.mark_fulfilled()
        previous = invoice.change_status(InvoiceStatus.PENDING)
        assert previous == InvoiceStatus.FULFILLED
        assert invoice.status == InvoiceStatus.PENDING

    def test_cancel_fulfilled(self):
        invoice = _create()
        invoice.mark_fulfilled()
        invoice.change_status(InvoiceStatus.CANCELLED)
        assert invoice.status == InvoiceStatus.CANCELLED

    def test_reopen_cancelled(self):
        invoice = _create()
        invoice.change_status(InvoiceStatus.CANCELLED)
        invoice.change_status(InvoiceStatus.PENDING)
        assert invoice.status == InvoiceStatus.PENDING

    def test_same_status_rejected(self):
        invoice = _create()
        with pytest.raises(InvalidTransitionError, match="from pending to pending"):
            invoice.change_status(InvoiceStatus.PENDING)

    def test_transition_updates_timestamp(self):
        invoice = _create()
        before = invoice.updated_at
        invoice.mark_fulfilled()
        assert invoice.updated_at >= before
