"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ims.domain.model.shortfall import MaterialShortfall, StockShortfall


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransitionError(DomainException):
    """The requested status change is not allowed."""


class AlreadyFulfilledError(InvalidTransitionError):
    """The invoice has already been fulfilled."""

    def __init__(self, invoice_number: str) -> None:
        self.invoice_number = invoice_number
        super().__init__(f"Invoice {invoice_number} is already fulfilled")


class InsufficientStockError(DomainException):
    """One or more invoice lines cannot be covered by current stock.

    Carries every short line, not just the first, so the caller can show
    a complete list of what needs restocking.
    """

    def __init__(self, shortfalls: list[StockShortfall]) -> None:
        self.shortfalls = list(shortfalls)
        details = "; ".join(
            f"{s.product_name} ({s.sku}): need {s.requested} {s.unit}, "
            f"have {s.available}"
            for s in self.shortfalls
        )
        super().__init__(f"Insufficient stock for one or more products: {details}")


class PersistenceError(DomainException):
    """The underlying store failed to read or write."""


class DuplicateInvoiceNumberError(PersistenceError):
    """An invoice with the same number already exists in the store."""

    def __init__(self, invoice_number: str) -> None:
        self.invoice_number = invoice_number
        super().__init__(f"Invoice number {invoice_number} is already taken")


class StockContentionError(PersistenceError):
    """Stock kept changing underneath a fulfillment attempt."""


class InsufficientMaterialsError(DomainException):
    """Raw material stock cannot cover a product order."""

    def __init__(self, shortfalls: list[MaterialShortfall]) -> None:
        self.shortfalls = list(shortfalls)
        details = "; ".join(
            f"{s.material_name}: need {s.requested} {s.unit}, have {s.available}"
            for s in self.shortfalls
        )
        super().__init__(f"Insufficient raw materials: {details}")
