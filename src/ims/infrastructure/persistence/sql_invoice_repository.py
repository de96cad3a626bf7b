"""SQL implementation of InvoiceRepository (SQLAlchemy).

``invoices`` holds the header, ``invoice_items`` the lines.  The unique
constraint on ``invoice_number`` is the last line of defence against two
invoices sharing a number.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Engine, text
from sqlalchemy.engine import Connection, Row
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ims.domain.exceptions import (
    DuplicateInvoiceNumberError,
    EntityNotFoundError,
    PersistenceError,
)
from ims.domain.model.invoice import Customer, Invoice, InvoiceItem, InvoiceStatus
from ims.domain.model.value_objects import Money, Quantity, TaxRate
from ims.domain.repository.invoice_repository import InvoiceRepository
from ims.infrastructure.persistence.sql_schema import invoice_items, invoices

_HEADER_COLUMNS = (
    "id, invoice_number, customer_name, customer_email, customer_address, "
    "customer_phone, tax_rate, status, issue_date, due_date, notes, "
    "created_at, updated_at"
)
_ITEM_COLUMNS = "id, invoice_id, product_id, product_name, sku, quantity, unit_price, currency"


class SqlInvoiceRepository(InvoiceRepository):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # --- InvoiceRepository interface ------------------------------------------

    def insert_header(self, invoice: Invoice) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(invoices.insert().values(**self._header_values(invoice)))
        except IntegrityError as exc:
            if "invoice_number" in str(exc.orig):
                raise DuplicateInvoiceNumberError(invoice.invoice_number) from exc
            raise PersistenceError(f"Could not save invoice {invoice.invoice_number}: {exc}") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save invoice {invoice.invoice_number}: {exc}") from exc

    def insert_items(self, invoice_id: str, items: list[InvoiceItem]) -> list[InvoiceItem]:
        saved: list[InvoiceItem] = []
        try:
            with self._engine.begin() as conn:
                exists = conn.execute(
                    text("SELECT 1 FROM invoices WHERE id = :id"), {"id": invoice_id}
                ).first()
                if exists is None:
                    raise EntityNotFoundError(f"Invoice {invoice_id} not found")
                for item in items:
                    result = conn.execute(
                        invoice_items.insert().values(
                            invoice_id=invoice_id,
                            product_id=item.product_id,
                            product_name=item.product_name,
                            sku=item.sku,
                            quantity=item.quantity.value,
                            unit_price=str(item.unit_price.amount),
                            currency=item.unit_price.currency,
                            total_price=str(item.total_price.amount),
                        )
                    )
                    saved.append(
                        InvoiceItem(
                            product_id=item.product_id,
                            product_name=item.product_name,
                            sku=item.sku,
                            quantity=item.quantity,
                            unit_price=item.unit_price,
                            id=result.inserted_primary_key[0],
                        )
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save items of invoice {invoice_id}: {exc}") from exc
        return saved

    def get_by_id(self, invoice_id: str) -> Invoice | None:
        return self._fetch_one("id = :value", invoice_id)

    def get_by_number(self, invoice_number: str) -> Invoice | None:
        return self._fetch_one("invoice_number = :value", invoice_number)

    def list_all(self) -> list[Invoice]:
        try:
            with self._engine.connect() as conn:
                headers = conn.execute(
                    text(f"SELECT {_HEADER_COLUMNS} FROM invoices ORDER BY created_at DESC")
                ).fetchall()
                return [self._to_domain(h, self._load_items(conn, h.id)) for h in headers]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read invoices: {exc}") from exc

    def update_status(self, invoice: Invoice, expected: InvoiceStatus) -> bool:
        try:
            with self._engine.begin() as conn:
                updated = conn.execute(
                    text(
                        "UPDATE invoices SET status = :status, updated_at = :updated_at "
                        "WHERE id = :id AND status = :expected"
                    ),
                    {
                        "id": invoice.id,
                        "status": invoice.status.value,
                        "updated_at": invoice.updated_at.isoformat(),
                        "expected": expected.value,
                    },
                ).rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Could not update status of invoice {invoice.invoice_number}: {exc}"
            ) from exc
        return updated == 1

    def delete(self, invoice_id: str, expected: InvoiceStatus | None = None) -> bool:
        sql = "DELETE FROM invoices WHERE id = :id"
        params = {"id": invoice_id}
        if expected is not None:
            sql += " AND status = :expected"
            params["expected"] = expected.value
        try:
            with self._engine.begin() as conn:
                deleted = conn.execute(text(sql), params).rowcount
                if deleted == 1:
                    # Same transaction, whether or not the backend enforces
                    # ON DELETE CASCADE.
                    conn.execute(
                        text("DELETE FROM invoice_items WHERE invoice_id = :id"),
                        {"id": invoice_id},
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not delete invoice {invoice_id}: {exc}") from exc
        return deleted == 1

    # --- Mapping --------------------------------------------------------------

    def _fetch_one(self, where: str, value: str) -> Invoice | None:
        try:
            with self._engine.connect() as conn:
                header = conn.execute(
                    text(f"SELECT {_HEADER_COLUMNS} FROM invoices WHERE {where}"),
                    {"value": value},
                ).first()
                if header is None:
                    return None
                return self._to_domain(header, self._load_items(conn, header.id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read invoice {value}: {exc}") from exc

    @staticmethod
    def _load_items(conn: Connection, invoice_id: str) -> list[Row]:
        return conn.execute(
            text(f"SELECT {_ITEM_COLUMNS} FROM invoice_items WHERE invoice_id = :id ORDER BY id"),
            {"id": invoice_id},
        ).fetchall()

    @staticmethod
    def _header_values(invoice: Invoice) -> dict:
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
        }

    @staticmethod
    def _to_domain(header: Row, item_rows: list[Row]) -> Invoice:
        items = [
            InvoiceItem(
                product_id=row.product_id,
                product_name=row.product_name,
                sku=row.sku,
                quantity=Quantity(row.quantity),
                unit_price=Money(Decimal(row.unit_price), row.currency),
                id=row.id,
            )
            for row in item_rows
        ]
        return Invoice(
            id=header.id,
            invoice_number=header.invoice_number,
            customer=Customer(
                name=header.customer_name,
                email=header.customer_email,
                address=header.customer_address,
                phone=header.customer_phone,
            ),
            items=items,
            tax_rate=TaxRate(Decimal(header.tax_rate)),
            issue_date=date.fromisoformat(header.issue_date),
            due_date=date.fromisoformat(header.due_date),
            status=InvoiceStatus(header.status),
            notes=header.notes,
            created_at=datetime.fromisoformat(header.created_at),
            updated_at=datetime.fromisoformat(header.updated_at),
        )
