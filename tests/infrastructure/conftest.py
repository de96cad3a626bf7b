"""Fixtures that build every repository against both storage backends."""

from types import SimpleNamespace

import pytest

from ims.infrastructure.persistence.json_activity_log import JsonActivityLog
from ims.infrastructure.persistence.json_counter_repository import (
    JsonInvoiceCounterRepository,
)
from ims.infrastructure.persistence.json_invoice_repository import JsonInvoiceRepository
from ims.infrastructure.persistence.json_material_repository import JsonMaterialRepository
from ims.infrastructure.persistence.json_product_order_repository import (
    JsonProductOrderRepository,
)
from ims.infrastructure.persistence.json_product_repository import JsonProductRepository
from ims.infrastructure.persistence.sql_activity_log import SqlActivityLog
from ims.infrastructure.persistence.sql_counter_repository import (
    SqlInvoiceCounterRepository,
)
from ims.infrastructure.persistence.sql_invoice_repository import SqlInvoiceRepository
from ims.infrastructure.persistence.sql_material_repository import SqlMaterialRepository
from ims.infrastructure.persistence.sql_product_order_repository import (
    SqlProductOrderRepository,
)
from ims.infrastructure.persistence.sql_product_repository import SqlProductRepository
from ims.infrastructure.persistence.sql_schema import create_sql_engine


def _json_store(tmp_path):
    return SimpleNamespace(
        products=JsonProductRepository(tmp_path / "products.json"),
        invoices=JsonInvoiceRepository(tmp_path / "invoices.json"),
        counter=JsonInvoiceCounterRepository(tmp_path / "invoice_counter.json"),
        activity=JsonActivityLog(tmp_path / "activity_log.jsonl"),
        materials=JsonMaterialRepository(tmp_path / "raw_materials.json"),
        orders=JsonProductOrderRepository(tmp_path / "product_orders.json"),
    )


def _sql_store(tmp_path):
    engine = create_sql_engine(f"sqlite:///{tmp_path / 'ims.db'}")
    return SimpleNamespace(
        products=SqlProductRepository(engine),
        invoices=SqlInvoiceRepository(engine),
        counter=SqlInvoiceCounterRepository(engine),
        activity=SqlActivityLog(engine),
        materials=SqlMaterialRepository(engine),
        orders=SqlProductOrderRepository(engine),
        engine=engine,
    )


@pytest.fixture(params=["json", "sql"])
def store(request, tmp_path):
    if request.param == "json":
        yield _json_store(tmp_path)
        return
    backend = _sql_store(tmp_path)
    yield backend
    backend.engine.dispose()
