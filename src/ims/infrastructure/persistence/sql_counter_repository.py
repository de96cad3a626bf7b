"""SQL implementation of InvoiceCounterRepository (single counter row)."""

from __future__ import annotations

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from ims.domain.exceptions import PersistenceError
from ims.domain.repository.counter_repository import InvoiceCounterRepository


class SqlInvoiceCounterRepository(InvoiceCounterRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def current(self) -> int:
        try:
            with self._engine.connect() as conn:
                return conn.execute(
                    text("SELECT next_invoice_number FROM invoice_counter WHERE id = 1")
                ).scalar_one()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read invoice counter: {exc}") from exc

    def compare_and_set(self, expected: int, new: int) -> bool:
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text(
                        "UPDATE invoice_counter SET next_invoice_number = :new "
                        "WHERE id = 1 AND next_invoice_number = :expected"
                    ),
                    {"new": new, "expected": expected},
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not advance invoice counter: {exc}") from exc
        return result.rowcount == 1
