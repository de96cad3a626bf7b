"""JSON-file-backed implementation of InvoiceCounterRepository."""

from __future__ import annotations

from pathlib import Path

from ims.domain.repository.counter_repository import (
    INITIAL_INVOICE_NUMBER,
    InvoiceCounterRepository,
)
from ims.infrastructure.persistence.json_file import JsonFile


class JsonInvoiceCounterRepository(InvoiceCounterRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, default={"next_invoice_number": INITIAL_INVOICE_NUMBER})

    def current(self) -> int:
        return self._file.load()["next_invoice_number"]

    def compare_and_set(self, expected: int, new: int) -> bool:
        with self._file.locked():
            data = self._file.load()
            if data["next_invoice_number"] != expected:
                return False
            data["next_invoice_number"] = new
            self._file.persist(data)
            return True
