"""A small in-memory shop: fake repositories plus the services built on them."""

from datetime import date

from ims.application.create_invoice import CreateInvoiceHandler
from ims.application.create_product_order import CreateProductOrderHandler
from ims.application.dto import CustomerSpec, InvoiceItemSpec, MaterialSpec
from ims.domain.model.product import Product
from ims.domain.model.raw_material import RawMaterial
from ims.domain.service.inventory_fulfillment_service import (
    InventoryFulfillmentService,
)
from ims.domain.service.material_consumption_service import MaterialConsumptionService
from ims.domain.service.numbering_service import InvoiceNumberingService
from tests.fakes import (
    FakeActivityLog,
    FakeInvoiceCounterRepository,
    FakeInvoiceRepository,
    FakeMaterialRepository,
    FakeProductOrderRepository,
    FakeProductRepository,
)

ISSUED = date(2026, 4, 1)
DUE = date(2026, 4, 8)


class Shop:
    """Products, materials, invoices and orders held in memory, wired like the CLI does."""

    def __init__(
        self, products: list[Product], materials: list[RawMaterial] | None = None
    ) -> None:
        self.products = FakeProductRepository(products)
        self.materials = FakeMaterialRepository(materials)
        self.orders = FakeProductOrderRepository()
        self.invoices = FakeInvoiceRepository()
        self.counter = FakeInvoiceCounterRepository()
        self.activity = FakeActivityLog()
        self.numbering = InvoiceNumberingService(self.counter)
        self.fulfillment = InventoryFulfillmentService(
            self.products, activity_log=self.activity
        )
        self.consumption = MaterialConsumptionService(
            self.materials, activity_log=self.activity
        )

    def create_invoice(self, *lines: tuple[int, int], customer: str = "Alice"):
        handler = CreateInvoiceHandler(
            self.invoices, self.products, self.numbering, activity_log=self.activity
        )
        return handler.handle(
            customer=CustomerSpec(name=customer),
            item_specs=[InvoiceItemSpec(pid, qty) for pid, qty in lines],
            issue_date=ISSUED,
            due_date=DUE,
        )

    def create_order(self, product_id: int, quantity: int, *materials: tuple[int, int]):
        handler = CreateProductOrderHandler(
            self.orders,
            self.products,
            self.materials,
            self.consumption,
            activity_log=self.activity,
        )
        return handler.handle(
            product_id=product_id,
            quantity=quantity,
            material_specs=[MaterialSpec(mid, qty) for mid, qty in materials],
        )
