"""Domain service: Inventory Fulfillment.

Coordinates the cross-aggregate part of fulfilling an invoice: checking
that every line is covered by current stock, deducting it, and putting it
back when a fulfilled invoice is reverted or deleted.

Deduction is all-or-nothing.  Every line is checked before anything is
touched, and each decrement is a conditional update in the store, so a
concurrent fulfillment can never drive stock below zero.  If a decrement
loses a race after the check passed, the lines already taken in that
attempt are put back and the whole invoice is evaluated again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ims.domain.exceptions import (
    DomainException,
    InsufficientStockError,
    StockContentionError,
)
from ims.domain.model.invoice import Invoice, InvoiceItem
from ims.domain.model.shortfall import StockShortfall
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.service.audit import record_activity

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "pcs"
DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class RestorationResult:
    """Outcome of putting an invoice's quantities back into stock."""

    restored: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed


class InventoryFulfillmentService:

    def __init__(
        self,
        product_repo: ProductRepository,
        activity_log: ActivityLog | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._product_repo = product_repo
        self._activity_log = activity_log
        self._max_attempts = max_attempts

    def find_shortfalls(self, invoice: Invoice) -> list[StockShortfall]:
        """Return one entry per line that current stock cannot cover.

        A missing product counts as zero stock.  Lines for the same
        product draw from the same pool.
        """
        remaining: dict[int, int] = {}
        units: dict[int, str] = {}
        shortfalls: list[StockShortfall] = []

        for line in invoice.items:
            if line.product_id not in remaining:
                product = self._product_repo.get_by_id(line.product_id)
                remaining[line.product_id] = product.stock if product else 0
                units[line.product_id] = product.unit if product else DEFAULT_UNIT

            available = remaining[line.product_id]
            unit = units[line.product_id]
            requested = line.quantity.value
            if requested > available:
                shortfalls.append(
                    StockShortfall(
                        product_id=line.product_id,
                        product_name=line.product_name,
                        sku=line.sku,
                        requested=requested,
                        available=available,
                        unit=unit,
                    )
                )
            remaining[line.product_id] = max(0, available - requested)

        return shortfalls

    def deduct_for_invoice(self, invoice: Invoice) -> None:
        """Deduct every line of the invoice from stock, or nothing at all.

        Raises InsufficientStockError listing every short line, or
        StockContentionError if stock kept moving for ``max_attempts``
        rounds.
        """
        for attempt in range(1, self._max_attempts + 1):
            shortfalls = self.find_shortfalls(invoice)
            if shortfalls:
                raise InsufficientStockError(shortfalls)

            taken: list[InvoiceItem] = []
            for line in invoice.items:
                if not self._product_repo.try_deduct(line.product_id, line.quantity.value):
                    logger.info(
                        "Stock for product %d changed during fulfillment of %s "
                        "(attempt %d), re-checking",
                        line.product_id, invoice.invoice_number, attempt,
                    )
                    self._put_back(taken)
                    break
                taken.append(line)
            else:
                for line in taken:
                    record_activity(
                        self._activity_log,
                        "inventory_deduction",
                        f"Deducted {line.quantity.value} of {line.product_name} "
                        f"for invoice {invoice.invoice_number}",
                    )
                return

        raise StockContentionError(
            f"Stock kept changing while fulfilling invoice {invoice.invoice_number}; "
            f"gave up after {self._max_attempts} attempts"
        )

    def restore_for_invoice(self, invoice: Invoice) -> RestorationResult:
        """Add every line's quantity back to stock.

        Each line is attempted independently: a product that is gone or a
        store error on one line does not stop the others.
        """
        logger.info("Restoring inventory for invoice %s", invoice.invoice_number)
        result = RestorationResult()

        for line in invoice.items:
            qty = line.quantity.value
            try:
                new_stock = self._product_repo.restock(line.product_id, qty)
            except DomainException as exc:
                logger.error(
                    "Failed to restore %d of %s for invoice %s: %s",
                    qty, line.product_name, invoice.invoice_number, exc,
                )
                result.failed.append(line.product_id)
                continue

            if new_stock is None:
                logger.warning(
                    "Product %d (%s) no longer exists; %d units from invoice %s not restored",
                    line.product_id, line.product_name, qty, invoice.invoice_number,
                )
                result.failed.append(line.product_id)
                continue

            result.restored.append(line.product_id)
            logger.info(
                "Restored %d units of %s. New stock: %d",
                qty, line.product_name, new_stock,
            )
            record_activity(
                self._activity_log,
                "inventory_restoration",
                f"Restored {qty} units of {line.product_name} "
                f"from invoice {invoice.invoice_number}",
            )

        return result

    # --- Internal helpers -----------------------------------------------------

    def _put_back(self, lines: list[InvoiceItem]) -> None:
        for line in lines:
            try:
                self._product_repo.restock(line.product_id, line.quantity.value)
            except DomainException as exc:
                logger.error(
                    "Could not roll back deduction of %d from product %d: %s",
                    line.quantity.value, line.product_id, exc,
                )
