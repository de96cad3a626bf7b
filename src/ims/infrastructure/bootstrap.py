"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  The storage backend is
chosen from settings: JSON files under ``IMS_DATA_DIR`` by default, or a
SQL database when ``IMS_DATABASE_URL`` is set.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine

from ims.config import Settings
from ims.domain.repository.activity_log import ActivityLog
from ims.domain.repository.counter_repository import InvoiceCounterRepository
from ims.domain.repository.invoice_repository import InvoiceRepository
from ims.domain.repository.material_repository import MaterialRepository
from ims.domain.repository.product_order_repository import ProductOrderRepository
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.service.inventory_fulfillment_service import (
    InventoryFulfillmentService,
)
from ims.domain.service.material_consumption_service import MaterialConsumptionService
from ims.domain.service.numbering_service import InvoiceNumberingService
from ims.infrastructure.persistence.json_activity_log import JsonActivityLog
from ims.infrastructure.persistence.json_counter_repository import (
    JsonInvoiceCounterRepository,
)
from ims.infrastructure.persistence.json_invoice_repository import (
    JsonInvoiceRepository,
)
from ims.infrastructure.persistence.json_material_repository import (
    JsonMaterialRepository,
)
from ims.infrastructure.persistence.json_product_order_repository import (
    JsonProductOrderRepository,
)
from ims.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from ims.infrastructure.persistence.sql_activity_log import SqlActivityLog
from ims.infrastructure.persistence.sql_counter_repository import (
    SqlInvoiceCounterRepository,
)
from ims.infrastructure.persistence.sql_invoice_repository import (
    SqlInvoiceRepository,
)
from ims.infrastructure.persistence.sql_material_repository import (
    SqlMaterialRepository,
)
from ims.infrastructure.persistence.sql_product_order_repository import (
    SqlProductOrderRepository,
)
from ims.infrastructure.persistence.sql_product_repository import (
    SqlProductRepository,
)
from ims.infrastructure.persistence.sql_schema import create_sql_engine


@lru_cache(maxsize=1)
def settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def _engine() -> Engine:
    return create_sql_engine(settings().database_url)


def reset() -> None:
    """Forget cached settings and engine (used when the environment changes)."""
    if _engine.cache_info().currsize:
        _engine().dispose()
    _engine.cache_clear()
    settings.cache_clear()


def product_repository() -> ProductRepository:
    if settings().uses_database:
        return SqlProductRepository(_engine())
    return JsonProductRepository(settings().data_dir / "products.json")


def invoice_repository() -> InvoiceRepository:
    if settings().uses_database:
        return SqlInvoiceRepository(_engine())
    return JsonInvoiceRepository(settings().data_dir / "invoices.json")


def material_repository() -> MaterialRepository:
    if settings().uses_database:
        return SqlMaterialRepository(_engine())
    return JsonMaterialRepository(settings().data_dir / "raw_materials.json")


def product_order_repository() -> ProductOrderRepository:
    if settings().uses_database:
        return SqlProductOrderRepository(_engine())
    return JsonProductOrderRepository(settings().data_dir / "product_orders.json")


def counter_repository() -> InvoiceCounterRepository:
    if settings().uses_database:
        return SqlInvoiceCounterRepository(_engine())
    return JsonInvoiceCounterRepository(settings().data_dir / "invoice_counter.json")


def activity_log() -> ActivityLog:
    if settings().uses_database:
        return SqlActivityLog(_engine())
    return JsonActivityLog(settings().data_dir / "activity_log.jsonl")


def numbering_service() -> InvoiceNumberingService:
    return InvoiceNumberingService(
        counter_repository(), max_attempts=settings().number_max_attempts
    )


def fulfillment_service() -> InventoryFulfillmentService:
    return InventoryFulfillmentService(
        product_repository(),
        activity_log=activity_log(),
        max_attempts=settings().fulfill_max_attempts,
    )


def consumption_service() -> MaterialConsumptionService:
    return MaterialConsumptionService(
        material_repository(),
        activity_log=activity_log(),
        max_attempts=settings().fulfill_max_attempts,
    )
