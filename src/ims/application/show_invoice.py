"""Application service: Show / List Invoices use cases (queries)."""

from __future__ import annotations

from ims.application.dto import InvoiceDTO, invoice_to_dto
from ims.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from ims.domain.model.invoice import Invoice, InvoiceStatus
from ims.domain.repository.invoice_repository import InvoiceRepository


def find_invoice(invoice_repo: InvoiceRepository, reference: str) -> Invoice:
    """Look an invoice up by ID or by its number (``INV-1001``)."""
    invoice = invoice_repo.get_by_id(reference)
    if invoice is None:
        invoice = invoice_repo.get_by_number(reference.strip().upper())
    if invoice is None:
        raise EntityNotFoundError(f"Invoice {reference} not found")
    return invoice


def status_conflict(invoice: Invoice, current: Invoice | None) -> DomainException:
    """Error for a conditional write that found the invoice already changed."""
    if current is None:
        return EntityNotFoundError(f"Invoice {invoice.invoice_number} not found")
    return InvalidTransitionError(
        f"Invoice {invoice.invoice_number} was changed to {current.status.value} "
        "by another request"
    )


class ShowInvoiceHandler:

    def __init__(self, invoice_repo: InvoiceRepository) -> None:
        self._invoice_repo = invoice_repo

    def handle(self, reference: str) -> InvoiceDTO:
        return invoice_to_dto(find_invoice(self._invoice_repo, reference))


class ListInvoicesHandler:

    def __init__(self, invoice_repo: InvoiceRepository) -> None:
        self._invoice_repo = invoice_repo

    def handle(self, status: str | None = None) -> list[InvoiceDTO]:
        """Return invoices newest first, optionally only those in *status*."""
        invoices = self._invoice_repo.list_all()
        if status is not None:
            try:
                wanted = InvoiceStatus(status.strip().lower())
            except ValueError as exc:
                raise ValidationError(f"Unknown invoice status '{status}'") from exc
            invoices = [inv for inv in invoices if inv.status == wanted]
        return [invoice_to_dto(inv) for inv in invoices]
