"""Domain service: Invoice Numbering.

Hands out human-facing invoice numbers (``INV-1001``, ``INV-1002``, ...)
from a durable counter.  The counter is advanced with compare-and-set, so
two callers that read the same value cannot both win it; the loser re-reads
and tries again.

When the counter cannot be advanced (too many lost races, or the store is
down) the service falls back to a timestamp plus random suffix.  That breaks
the sequential format but keeps the number unique, and invoice creation is
never blocked by the counter alone.
"""

from __future__ import annotations

import logging
import secrets
import time

from ims.domain.exceptions import PersistenceError
from ims.domain.repository.counter_repository import InvoiceCounterRepository

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
DEFAULT_MAX_ATTEMPTS = 5


def format_invoice_number(number: int) -> str:
    return f"{INVOICE_PREFIX}-{number:04d}"


class InvoiceNumberingService:

    def __init__(
        self,
        counter_repo: InvoiceCounterRepository,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._counter_repo = counter_repo
        self._max_attempts = max_attempts

    def allocate(self) -> str:
        """Return a number no other invoice has ever received.

        Never raises: storage failures and exhausted retries both end in
        the fallback format.
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                current = self._counter_repo.current()
                if self._counter_repo.compare_and_set(current, current + 1):
                    return format_invoice_number(current)
            except PersistenceError as exc:
                logger.warning("Invoice counter unavailable, using fallback number: %s", exc)
                return self.fallback_number()
            logger.debug("Lost invoice number %d to a concurrent caller (attempt %d)", current, attempt)

        logger.warning(
            "Could not reserve a sequential invoice number after %d attempts, "
            "using fallback number",
            self._max_attempts,
        )
        return self.fallback_number()

    @staticmethod
    def fallback_number() -> str:
        millis = time.time_ns() // 1_000_000
        return f"{INVOICE_PREFIX}-{millis}-{secrets.token_hex(3).upper()}"
