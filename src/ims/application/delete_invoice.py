"""Application service: Delete Invoice use case.

A fulfilled invoice gives its stock back once it has been removed.  Invoice
numbers are never reused, so deleting does not touch the counter.
"""

from __future__ import annotations

import logging

from ims.application.dto import DeletedInvoiceDTO
from ims.application.show_invoice import find_invoice, status_conflict
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.invoice_repository import InvoiceRepository
from ims.domain.service.audit import record_activity
from ims.domain.service.inventory_fulfillment_service import (
    InventoryFulfillmentService,
)

logger = logging.getLogger(__name__)


class DeleteInvoiceHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        fulfillment: InventoryFulfillmentService,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._fulfillment = fulfillment
        self._activity_log = activity_log

    def handle(self, invoice_id: str) -> DeletedInvoiceDTO:
        """Delete an invoice and put back its stock if it was fulfilled.

        The delete only goes through if the invoice still has the status it
        was read with, so two concurrent deletes restore stock once.
        """
        invoice = find_invoice(self._invoice_repo, invoice_id)

        if not self._invoice_repo.delete(invoice.id, expected=invoice.status):
            raise status_conflict(invoice, self._invoice_repo.get_by_id(invoice.id))

        unrestored: list[int] = []
        if invoice.is_fulfilled:
            unrestored = self._fulfillment.restore_for_invoice(invoice).failed

        logger.info("Deleted invoice %s", invoice.invoice_number)
        record_activity(
            self._activity_log, "delete", f"Deleted invoice {invoice.invoice_number}"
        )
        return DeletedInvoiceDTO(
            invoice_number=invoice.invoice_number,
            was_fulfilled=invoice.is_fulfilled,
            unrestored_product_ids=unrestored,
        )
