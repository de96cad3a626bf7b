"""Relational schema for the SQL-backed repositories.

Money, dates and timestamps are stored as ISO / decimal strings so values
round-trip exactly on every backend, including SQLite.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Engine,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy.exc import SQLAlchemyError

from ims.domain.exceptions import PersistenceError
from ims.domain.repository.counter_repository import INITIAL_INVOICE_NUMBER

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", String(255), nullable=False),
    Column("sku", String(100), nullable=False, unique=True),
    Column("price", String(32), nullable=False),
    Column("currency", String(3), nullable=False, server_default="USD"),
    Column("stock", Integer, nullable=False, server_default="0"),
    Column("unit", String(20), nullable=False, server_default="pcs"),
    CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("invoice_number", String(50), nullable=False, unique=True),
    Column("customer_name", String(255), nullable=False),
    Column("customer_email", String(255), nullable=False, server_default=""),
    Column("customer_address", Text, nullable=False, server_default=""),
    Column("customer_phone", String(50)),
    Column("subtotal", String(32), nullable=False),
    Column("tax_rate", String(32), nullable=False),
    Column("tax_amount", String(32), nullable=False),
    Column("total_amount", String(32), nullable=False),
    Column("status", String(20), nullable=False, server_default="pending", index=True),
    Column("issue_date", String(10), nullable=False),
    Column("due_date", String(10), nullable=False),
    Column("notes", Text),
    Column("created_at", String(40), nullable=False, index=True),
    Column("updated_at", String(40), nullable=False),
    CheckConstraint(
        "status IN ('pending', 'fulfilled', 'cancelled')", name="ck_invoices_status"
    ),
)

invoice_items = Table(
    "invoice_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "invoice_id",
        String(36),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("product_id", Integer, nullable=False, index=True),
    Column("product_name", String(255), nullable=False),
    Column("sku", String(100), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", String(32), nullable=False),
    Column("currency", String(3), nullable=False, server_default="USD"),
    Column("total_price", String(32), nullable=False),
)

raw_materials = Table(
    "raw_materials",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", String(255), nullable=False, unique=True),
    Column("unit", String(20), nullable=False, server_default="pcs"),
    Column("quantity", Integer, nullable=False, server_default="0"),
    Column("cost_per_unit", String(32), nullable=False, server_default="0"),
    Column("currency", String(3), nullable=False, server_default="USD"),
    CheckConstraint("quantity >= 0", name="ck_raw_materials_quantity_non_negative"),
)

product_orders = Table(
    "product_orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("product_id", Integer, nullable=False),
    Column("product_name", String(255), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("status", String(20), nullable=False, server_default="pending", index=True),
    Column("created_at", String(40), nullable=False, index=True),
    Column("updated_at", String(40), nullable=False),
    Column("completed_at", String(40)),
    CheckConstraint(
        "status IN ('pending', 'in-progress', 'completed', 'cancelled')",
        name="ck_product_orders_status",
    ),
    sqlite_autoincrement=True,
)

product_order_materials = Table(
    "product_order_materials",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "order_id",
        Integer,
        ForeignKey("product_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("material_id", Integer, nullable=False, index=True),
    Column("material_name", String(255), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit", String(20), nullable=False, server_default="pcs"),
    Column("cost_per_unit", String(32), nullable=False),
    Column("currency", String(3), nullable=False, server_default="USD"),
)

invoice_counter = Table(
    "invoice_counter",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("next_invoice_number", Integer, nullable=False),
)

activity_log = Table(
    "activity_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kind", String(50), nullable=False),
    Column("message", Text, nullable=False),
    Column("created_at", String(40), nullable=False),
)


def create_sql_engine(database_url: str) -> Engine:
    """Create an engine and make sure the schema and counter row exist."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    try:
        engine = create_engine(database_url, connect_args=connect_args)
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        init_schema(engine)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Could not open database {database_url}: {exc}") from exc
    return engine


def init_schema(engine: Engine) -> None:
    metadata.create_all(engine)
    with engine.begin() as conn:
        exists = conn.execute(text("SELECT 1 FROM invoice_counter WHERE id = 1")).first()
        if exists is None:
            conn.execute(
                text("INSERT INTO invoice_counter (id, next_invoice_number) VALUES (1, :n)"),
                {"n": INITIAL_INVOICE_NUMBER},
            )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
