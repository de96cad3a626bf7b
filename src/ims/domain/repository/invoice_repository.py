"""Abstract repository for Invoice aggregate.

Header and line items are written in two steps so the creation handler
can compensate (delete the header) when the items fail to persist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.invoice import Invoice, InvoiceItem, InvoiceStatus


class InvoiceRepository(ABC):

    @abstractmethod
    def insert_header(self, invoice: Invoice) -> None:
        """Persist a new invoice without its items.

        Raises DuplicateInvoiceNumberError if the number is already used.
        """

    @abstractmethod
    def insert_items(self, invoice_id: str, items: list[InvoiceItem]) -> list[InvoiceItem]:
        """Persist the line items of an existing header; return them with IDs."""

    @abstractmethod
    def get_by_id(self, invoice_id: str) -> Invoice | None:
        """Return an invoice with its items, or None if not found."""

    @abstractmethod
    def get_by_number(self, invoice_number: str) -> Invoice | None:
        """Return an invoice by its human-facing number, or None."""

    @abstractmethod
    def list_all(self) -> list[Invoice]:
        """Return every invoice, newest first."""

    @abstractmethod
    def update_status(self, invoice: Invoice, expected: InvoiceStatus) -> bool:
        """Persist the invoice's status and ``updated_at`` if the stored status is *expected*.

        Equivalent to ``UPDATE ... WHERE id = ? AND status = ?``.  Returns
        False (and changes nothing) when the invoice is missing or another
        caller changed its status first.
        """

    @abstractmethod
    def delete(self, invoice_id: str, expected: InvoiceStatus | None = None) -> bool:
        """Remove header and items together.

        With *expected*, only an invoice still in that status is removed.
        Returns False if nothing was removed.
        """
