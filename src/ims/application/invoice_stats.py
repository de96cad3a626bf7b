"""Application service: Invoice Statistics use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from ims.domain.model.invoice import InvoiceStatus
from ims.domain.model.value_objects import Money
from ims.domain.repository.invoice_repository import InvoiceRepository


@dataclass(frozen=True)
class InvoiceStatsDTO:
    total: int
    pending: int
    fulfilled: int
    cancelled: int
    total_value: str
    fulfilled_value: str


class InvoiceStatsHandler:

    def __init__(self, invoice_repo: InvoiceRepository) -> None:
        self._invoice_repo = invoice_repo

    def handle(self) -> InvoiceStatsDTO:
        invoices = self._invoice_repo.list_all()

        counts = {status: 0 for status in InvoiceStatus}
        total_value = Money.zero()
        fulfilled_value = Money.zero()
        for invoice in invoices:
            counts[invoice.status] += 1
            total_value = total_value + invoice.total_amount
            if invoice.is_fulfilled:
                fulfilled_value = fulfilled_value + invoice.total_amount

        return InvoiceStatsDTO(
            total=len(invoices),
            pending=counts[InvoiceStatus.PENDING],
            fulfilled=counts[InvoiceStatus.FULFILLED],
            cancelled=counts[InvoiceStatus.CANCELLED],
            total_value=str(total_value),
            fulfilled_value=str(fulfilled_value),
        )
