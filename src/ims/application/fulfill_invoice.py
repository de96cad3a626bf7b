"""Application service: Fulfill Invoice use case.

Orchestrates the domain service (stock check and deduction) and the
Invoice aggregate (state transition).  This is the only way an invoice
becomes fulfilled.  The status write is conditional on the invoice still
being pending, so of two concurrent fulfillments only one keeps its
deduction; the other puts its stock back.
"""

from __future__ import annotations

import logging

from ims.application.dto import InvoiceDTO, invoice_to_dto
from ims.application.show_invoice import find_invoice, status_conflict
from ims.domain.exceptions import AlreadyFulfilledError, PersistenceError
from ims.domain.model.invoice import InvoiceStatus
from ims.domain.repository.invoice_repository import InvoiceRepository
from ims.domain.service.inventory_fulfillment_service import (
    InventoryFulfillmentService,
)

logger = logging.getLogger(__name__)


class FulfillInvoiceHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        fulfillment: InventoryFulfillmentService,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._fulfillment = fulfillment

    def handle(self, invoice_id: str) -> InvoiceDTO:
        """Fulfill a pending invoice.

        Raises AlreadyFulfilledError on a second attempt and
        InsufficientStockError (listing every short line) when stock does
        not cover the invoice; in both cases nothing is changed.
        """
        invoice = find_invoice(self._invoice_repo, invoice_id)

        invoice.ensure_can_fulfill()

        # Deduct from inventory
        self._fulfillment.deduct_for_invoice(invoice)

        invoice.mark_fulfilled()
        try:
            claimed = self._invoice_repo.update_status(invoice, expected=InvoiceStatus.PENDING)
        except PersistenceError:
            logger.error(
                "Could not save fulfilled status of invoice %s, putting stock back",
                invoice.invoice_number,
            )
            self._fulfillment.restore_for_invoice(invoice)
            raise

        if not claimed:
            logger.warning(
                "Invoice %s changed while it was being fulfilled, putting stock back",
                invoice.invoice_number,
            )
            self._fulfillment.restore_for_invoice(invoice)
            current = self._invoice_repo.get_by_id(invoice.id)
            if current is not None and current.is_fulfilled:
                raise AlreadyFulfilledError(invoice.invoice_number)
            raise status_conflict(invoice, current)

        logger.info("Fulfilled invoice %s", invoice.invoice_number)
        return invoice_to_dto(invoice)
