"""Application service: Change Invoice Status use case.

Status-only transitions (revert, cancel, re-open).  Moving *into*
fulfilled is refused here; that goes through FulfillInvoiceHandler so
stock is always checked.  Leaving fulfilled puts the invoice's stock back
once the new status is stored.
"""

from __future__ import annotations

import logging

from ims.application.dto import StatusChangeDTO, invoice_to_dto
from ims.application.show_invoice import find_invoice, status_conflict
from ims.domain.exceptions import ValidationError
from ims.domain.model.invoice import InvoiceStatus
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.invoice_repository import InvoiceRepository
from ims.domain.service.audit import record_activity
from ims.domain.service.inventory_fulfillment_service import (
    InventoryFulfillmentService,
)

logger = logging.getLogger(__name__)


class ChangeInvoiceStatusHandler:

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        fulfillment: InventoryFulfillmentService,
        activity_log: ActivityLog | None = None,
    ) -> None:
        self._invoice_repo = invoice_repo
        self._fulfillment = fulfillment
        self._activity_log = activity_log

    def handle(self, invoice_id: str, new_status: str | InvoiceStatus) -> StatusChangeDTO:
        """Move an invoice to *new_status*.

        The status is written first, conditional on the invoice not having
        moved since it was read; stock is put back only once that write has
        gone through, so a failed save or a lost race restores nothing.
        """
        target = self._parse_status(new_status)

        invoice = find_invoice(self._invoice_repo, invoice_id)

        previous = invoice.change_status(target)
        if not self._invoice_repo.update_status(invoice, expected=previous):
            raise status_conflict(invoice, self._invoice_repo.get_by_id(invoice.id))

        unrestored: list[int] = []
        if previous == InvoiceStatus.FULFILLED:
            unrestored = self._fulfillment.restore_for_invoice(invoice).failed

        logger.info(
            "Invoice %s status changed from %s to %s",
            invoice.invoice_number, previous.value, target.value,
        )
        record_activity(
            self._activity_log,
            "update",
            f"Invoice {invoice.invoice_number} status changed from "
            f"{previous.value} to {target.value}",
        )
        return StatusChangeDTO(
            invoice=invoice_to_dto(invoice),
            previous_status=previous.value,
            unrestored_product_ids=unrestored,
        )

    @staticmethod
    def _parse_status(raw: str | InvoiceStatus) -> InvoiceStatus:
        if isinstance(raw, InvoiceStatus):
            return raw
        try:
            return InvoiceStatus(raw.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(s.value for s in InvoiceStatus)
            raise ValidationError(
                f"Unknown invoice status '{raw}' (expected one of: {allowed})"
            ) from exc
