"""JSON-file-backed implementation of InvoiceRepository.

Items are stored inside their invoice record, so removing the record
removes its items in the same write.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from ims.domain.exceptions import DuplicateInvoiceNumberError, EntityNotFoundError
from ims.domain.model.invoice import Customer, Invoice, InvoiceItem, InvoiceStatus
from ims.domain.model.value_objects import Money, Quantity, TaxRate
from ims.domain.repository.invoice_repository import InvoiceRepository
from ims.infrastructure.persistence.json_file import JsonFile


class JsonInvoiceRepository(InvoiceRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, default=[])

    # --- InvoiceRepository interface ------------------------------------------

    def insert_header(self, invoice: Invoice) -> None:
        with self._file.locked():
            records = self._file.load()
            if any(r["invoice_number"] == invoice.invoice_number for r in records):
                raise DuplicateInvoiceNumberError(invoice.invoice_number)
            raw = self._to_raw(invoice)
            raw["items"] = []
            records.append(raw)
            self._file.persist(records)

    def insert_items(self, invoice_id: str, items: list[InvoiceItem]) -> list[InvoiceItem]:
        with self._file.locked():
            records = self._file.load()
            raw = self._find(records, invoice_id)
            if raw is None:
                raise EntityNotFoundError(f"Invoice {invoice_id} not found")

            next_line_id = 1 + max(
                (i["id"] for r in records for i in r["items"]), default=0
            )
            saved: list[InvoiceItem] = []
            for offset, item in enumerate(items):
                saved.append(
                    InvoiceItem(
                        product_id=item.product_id,
                        product_name=item.product_name,
                        sku=item.sku,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        id=next_line_id + offset,
                    )
                )
            raw["items"].extend(self._item_to_raw(item) for item in saved)
            self._file.persist(records)
            return saved

    def get_by_id(self, invoice_id: str) -> Invoice | None:
        raw = self._find(self._file.load(), invoice_id)
        return self._to_domain(raw) if raw is not None else None

    def get_by_number(self, invoice_number: str) -> Invoice | None:
        for raw in self._file.load():
            if raw["invoice_number"] == invoice_number:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Invoice]:
        invoices = [self._to_domain(raw) for raw in self._file.load()]
        return sorted(invoices, key=lambda inv: inv.created_at, reverse=True)

    def update_status(self, invoice: Invoice, expected: InvoiceStatus) -> bool:
        with self._file.locked():
            records = self._file.load()
            raw = self._find(records, invoice.id)
            if raw is None or raw["status"] != expected.value:
                return False
            raw["status"] = invoice.status.value
            raw["updated_at"] = invoice.updated_at.isoformat()
            self._file.persist(records)
            return True

    def delete(self, invoice_id: str, expected: InvoiceStatus | None = None) -> bool:
        with self._file.locked():
            records = self._file.load()
            raw = self._find(records, invoice_id)
            if raw is None:
                return False
            if expected is not None and raw["status"] != expected.value:
                return False
            self._file.persist([r for r in records if r is not raw])
            return True

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _find(records: list[dict], invoice_id: str) -> dict | None:
        for raw in records:
            if raw["id"] == invoice_id:
                return raw
        return None

    @classmethod
    def _to_raw(cls, invoice: Invoice) -> dict:
        return {
            "id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "customer_name": invoice.customer.name,
            "customer_email": invoice.customer.email,
            "customer_address": invoice.customer.address,
            "customer_phone": invoice.customer.phone,
            "subtotal": str(invoice.subtotal.amount),
            "tax_rate": str(invoice.tax_rate.value),
            "tax_amount": str(invoice.tax_amount.amount),
            "total_amount": str(invoice.total_amount.amount),
            "status": invoice.status.value,
            "issue_date": invoice.issue_date.isoformat(),
            "due_date": invoice.due_date.isoformat(),
            "notes": invoice.notes,
            "created_at": invoice.created_at.isoformat(),
            "updated_at": invoice.updated_at.isoformat(),
            "items": [cls._item_to_raw(item) for item in invoice.items],
        }

    @staticmethod
    def _item_to_raw(item: InvoiceItem) -> dict:
        return {
            "id": item.id,
            "product_id": item.product_id,
            "product_name": item.product_name,
            "sku": item.sku,
            "quantity": item.quantity.value,
            "unit_price": str(item.unit_price.amount),
            "currency": item.unit_price.currency,
            "total_price": str(item.total_price.amount),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Invoice:
        items = [
            InvoiceItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                sku=i["sku"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", "USD")),
                id=i.get("id"),
            )
            for i in raw["items"]
        ]
        return Invoice(
            id=raw["id"],
            invoice_number=raw["invoice_number"],
            customer=Customer(
                name=raw["customer_name"],
                email=raw.get("customer_email", ""),
                address=raw.get("customer_address", ""),
                phone=raw.get("customer_phone"),
            ),
            items=items,
            tax_rate=TaxRate(Decimal(raw["tax_rate"])),
            issue_date=date.fromisoformat(raw["issue_date"]),
            due_date=date.fromisoformat(raw["due_date"]),
            status=InvoiceStatus(raw["status"]),
            notes=raw.get("notes"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )
