"""Application service: Create Invoice use case.

Orchestrates the flow between repositories, the numbering service and the
domain model.  Header and items are written separately; if the items fail
to persist the header is deleted again so no invoice without items is
left behind.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from ims.application.dto import CustomerSpec, InvoiceDTO, InvoiceItemSpec, invoice_to_dto
from ims.domain.exceptions import (
    DuplicateInvoiceNumberError,
    EntityNotFoundError,
    PersistenceError,
)
from ims.domain.model.invoice import Customer, Invoice, InvoiceItem
from ims.domain.model.value_objects import Quantity, TaxRate
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.invoice_repository import InvoiceRepository
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.service.audit import record_activity
from ims.domain.service.numbering_service import (
    DEFAULT_MAX_ATTEMPTS,
    InvoiceNumberingService,
)

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = TaxRate(Decimal("0.12"))  # 12% VAT


class CreateInvoiceHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        product_repo: ProductRepository,
        numbering: InvoiceNumberingService,
        activity_log: ActivityLog | None = None,
        default_tax_rate: TaxRate = DEFAULT_TAX_RATE,
        max_number_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._product_repo = product_repo
        self._numbering = numbering
        self._activity_log = activity_log
        self._default_tax_rate = default_tax_rate
        self._max_number_attempts = max_number_attempts

    def handle(
        self,
        customer: CustomerSpec,
        item_specs: list[InvoiceItemSpec],
        issue_date: date | None,
        due_date: date | None,
        tax_rate: TaxRate | None = None,
        notes: str | None = None,
    ) -> InvoiceDTO:
        """Create a new pending invoice.

        Steps:
        1. Resolve each product (fail if not found) and snapshot its
           name, SKU and current price.
        2. Let the Invoice aggregate validate all business rules.
        3. Allocate a number and write the header.
        4. Write the items, deleting the header again if that fails.
        """
        invoice = Invoice.create(
            customer=Customer(
                name=customer.name,
                email=customer.email,
                address=customer.address,
                phone=customer.phone,
            ),
            items=self._build_items(item_specs),
            issue_date=issue_date,
            due_date=due_date,
            tax_rate=tax_rate if tax_rate is not None else self._default_tax_rate,
            notes=notes,
        )

        self._insert_header(invoice)

        try:
            invoice.items = self._invoice_repo.insert_items(invoice.id, invoice.items)
        except PersistenceError as exc:
            logger.error(
                "Saving items of invoice %s failed, removing header: %s",
                invoice.invoice_number, exc,
            )
            self._remove_orphan_header(invoice)
            raise PersistenceError(
                f"Could not save items for invoice {invoice.invoice_number}"
            ) from exc

        logger.info(
            "Created invoice %s for %s (%s)",
            invoice.invoice_number, invoice.customer.name, invoice.total_amount,
        )
        record_activity(
            self._activity_log,
            "create",
            f"Created invoice {invoice.invoice_number} for {invoice.customer.name}",
        )
        return invoice_to_dto(invoice)

    # --- Internal helpers -----------------------------------------------------

    def _build_items(self, item_specs: list[InvoiceItemSpec]) -> list[InvoiceItem]:
        """Snapshot products into line items, one line per product."""
        quantities: dict[int, int] = {}
        for spec in item_specs:
            # Validate each requested quantity before summing duplicates.
            Quantity(spec.quantity)
            quantities[spec.product_id] = quantities.get(spec.product_id, 0) + spec.quantity

        items: list[InvoiceItem] = []
        for product_id, qty in quantities.items():
            product = self._product_repo.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product #{product_id} not found")
            items.append(
                InvoiceItem(
                    product_id=product.id,
                    product_name=product.name,
                    sku=product.sku,
                    quantity=Quantity(qty),
                    unit_price=product.price,  # <-- price snapshot
                )
            )
        return items

    def _insert_header(self, invoice: Invoice) -> None:
        for _ in range(self._max_number_attempts):
            invoice.invoice_number = self._numbering.allocate()
            try:
                self._invoice_repo.insert_header(invoice)
                return
            except DuplicateInvoiceNumberError as exc:
                logger.warning("%s; allocating another number", exc)

        invoice.invoice_number = self._numbering.fallback_number()
        self._invoice_repo.insert_header(invoice)

    def _remove_orphan_header(self, invoice: Invoice) -> None:
        try:
            self._invoice_repo.delete(invoice.id)
        except PersistenceError as exc:
            logger.error(
                "Could not remove header of invoice %s after failed item save: %s",
                invoice.invoice_number, exc,
            )
