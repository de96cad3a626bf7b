"""Abstract repository for the invoice numbering counter."""

from __future__ import annotations

from abc import ABC, abstractmethod

INITIAL_INVOICE_NUMBER = 1001


class InvoiceCounterRepository(ABC):

    @abstractmethod
    def current(self) -> int:
        """Return the next number to be issued (seeded at 1001)."""

    @abstractmethod
    def compare_and_set(self, expected: int, new: int) -> bool:
        """Set the counter to *new* only if it still holds *expected*."""
