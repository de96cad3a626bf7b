"""Invoice aggregate — the core of the domain.

The Invoice is an aggregate root that owns its line items.  Line items
are fixed at creation; after that only the status moves, and only along
the transitions listed in ``ALLOWED_TRANSITIONS``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from ims.domain.exceptions import (
    AlreadyFulfilledError,
    InvalidTransitionError,
    ValidationError,
)
from ims.domain.model.value_objects import Money, Quantity, TaxRate


class InvoiceStatus(Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


# Transitions that only change the status.  PENDING -> FULFILLED is
# deliberately absent: it has to go through the fulfillment service so
# stock is checked and deducted.
ALLOWED_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.PENDING: frozenset({InvoiceStatus.CANCELLED}),
    InvoiceStatus.FULFILLED: frozenset({InvoiceStatus.PENDING, InvoiceStatus.CANCELLED}),
    InvoiceStatus.CANCELLED: frozenset({InvoiceStatus.PENDING}),
}

MAX_LINE_ITEMS = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Customer:
    """Who the invoice is billed to, as entered on the invoice."""

    name: str
    email: str = ""
    address: str = ""
    phone: str | None = None


@dataclass(frozen=True)
class InvoiceItem:
    """Snapshot of a product at invoice-creation time.

    Name, SKU and unit price are copied from the product and never follow
    later renames or price changes.
    """

    product_id: int
    product_name: str
    sku: str
    quantity: Quantity
    unit_price: Money
    id: int | None = None  # assigned by the repository

    @property
    def total_price(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Invoice:
    """Aggregate root for customer invoices.

    Use the ``Invoice.create()`` factory for new invoices — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted invoices without re-validating.
    """

    id: str
    invoice_number: str
    customer: Customer
    items: list[InvoiceItem]
    tax_rate: TaxRate
    issue_date: date
    due_date: date
    status: InvoiceStatus = InvoiceStatus.PENDING
    notes: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # --- Factory (used for NEW invoices only) ---------------------------------

    @staticmethod
    def create(
        customer: Customer,
        items: list[InvoiceItem],
        issue_date: date | None,
        due_date: date | None,
        tax_rate: TaxRate,
        notes: str | None = None,
        invoice_number: str = "",
    ) -> Invoice:
        """Create a new pending invoice, enforcing all invariants."""
        if customer is None or not customer.name or not customer.name.strip():
            raise ValidationError("Customer name is required")

        if not items:
            raise ValidationError("Invoice must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per invoice")

        if issue_date is None:
            raise ValidationError("Issue date is required")
        if due_date is None:
            raise ValidationError("Due date is required")
        if due_date < issue_date:
            raise ValidationError(
                f"Due date {due_date.isoformat()} is before issue date "
                f"{issue_date.isoformat()}"
            )

        now = _utcnow()
        return Invoice(
            id=str(uuid.uuid4()),
            invoice_number=invoice_number,
            customer=Customer(
                name=customer.name.strip(),
                email=customer.email.strip(),
                address=customer.address.strip(),
                phone=customer.phone.strip() if customer.phone else None,
            ),
            items=list(items),
            tax_rate=tax_rate,
            issue_date=issue_date,
            due_date=due_date,
            notes=notes or None,
            created_at=now,
            updated_at=now,
        )

    # --- State transitions ----------------------------------------------------

    def ensure_can_fulfill(self) -> None:
        """Raise unless the invoice is pending.

        A second fulfillment is rejected rather than silently accepted, and
        a cancelled invoice has to be re-opened first.
        """
        if self.status == InvoiceStatus.FULFILLED:
            raise AlreadyFulfilledError(self.invoice_number)
        if self.status != InvoiceStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot fulfill invoice {self.invoice_number} in "
                f"{self.status.value} status; re-open it as pending first"
            )

    def mark_fulfilled(self) -> None:
        """Transition PENDING -> FULFILLED.

        Stock deduction must happen *before* calling this (coordinated by
        the application handler via the fulfillment service).
        """
        self.ensure_can_fulfill()
        self.status = InvoiceStatus.FULFILLED
        self.updated_at = _utcnow()

    def ensure_can_change_to(self, new_status: InvoiceStatus) -> None:
        if new_status == InvoiceStatus.FULFILLED:
            raise InvalidTransitionError(
                "Invoices can only be marked fulfilled through fulfillment, "
                "which checks and deducts stock"
            )
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot change invoice {self.invoice_number} from "
                f"{self.status.value} to {new_status.value}"
            )

    def change_status(self, new_status: InvoiceStatus) -> InvoiceStatus:
        """Apply a status-only transition and return the previous status.

        When leaving FULFILLED, stock is put back by the caller once the
        new status has been stored.
        """
        self.ensure_can_change_to(new_status)
        previous = self.status
        self.status = new_status
        self.updated_at = _utcnow()
        return previous

    # --- Computed properties --------------------------------------------------

    @property
    def subtotal(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.total_price
        return result

    @property
    def tax_amount(self) -> Money:
        return self.subtotal.scaled(self.tax_rate)

    @property
    def total_amount(self) -> Money:
        return self.subtotal + self.tax_amount

    @property
    def is_fulfilled(self) -> bool:
        return self.status == InvoiceStatus.FULFILLED
