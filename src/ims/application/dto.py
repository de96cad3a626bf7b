"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ims.domain.model.invoice import Invoice
from ims.domain.model.product_order import ProductOrder


@dataclass(frozen=True)
class CustomerSpec:
    """Input: who the invoice is for."""

    name: str
    email: str = ""
    address: str = ""
    phone: str | None = None


@dataclass(frozen=True)
class InvoiceItemSpec:
    """Input: which product and how many."""

    product_id: int
    quantity: int


@dataclass(frozen=True)
class InvoiceItemDTO:
    """Output: a single line item as displayed to the user."""

    product_id: int
    product_name: str
    sku: str
    quantity: int
    unit_price: str  # formatted, e.g. "$15.00"
    total_price: str


@dataclass(frozen=True)
class InvoiceDTO:
    """Output: a complete invoice as displayed to the user."""

    id: str
    invoice_number: str
    customer_name: str
    customer_email: str
    customer_address: str
    customer_phone: str | None
    status: str
    items: list[InvoiceItemDTO]
    subtotal: str
    tax_rate: str  # formatted, e.g. "12%"
    tax_amount: str
    total_amount: str
    issue_date: str
    due_date: str
    notes: str | None
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class StatusChangeDTO:
    """Output: result of a status-only transition."""

    invoice: InvoiceDTO
    previous_status: str
    unrestored_product_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class DeletedInvoiceDTO:
    """Output: which invoice was removed."""

    invoice_number: str
    was_fulfilled: bool
    unrestored_product_ids: list[int] = field(default_factory=list)


def invoice_to_dto(invoice: Invoice) -> InvoiceDTO:
    return InvoiceDTO(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        customer_name=invoice.customer.name,
        customer_email=invoice.customer.email,
        customer_address=invoice.customer.address,
        customer_phone=invoice.customer.phone,
        status=invoice.status.value,
        items=[
            InvoiceItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                sku=item.sku,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                total_price=str(item.total_price),
            )
            for item in invoice.items
        ],
        subtotal=str(invoice.subtotal),
        tax_rate=str(invoice.tax_rate),
        tax_amount=str(invoice.tax_amount),
        total_amount=str(invoice.total_amount),
        issue_date=invoice.issue_date.isoformat(),
        due_date=invoice.due_date.isoformat(),
        notes=invoice.notes,
        created_at=invoice.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        updated_at=invoice.updated_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


# --- Product orders -----------------------------------------------------------


@dataclass(frozen=True)
class MaterialSpec:
    """Input: which raw material and how much of it one order uses."""

    material_id: int
    quantity: int


@dataclass(frozen=True)
class ProductOrderMaterialDTO:
    material_id: int
    material_name: str
    quantity: int
    unit: str
    cost_per_unit: str
    total_cost: str


@dataclass(frozen=True)
class ProductOrderDTO:
    id: int
    product_id: int
    product_name: str
    quantity: int
    status: str
    materials: list[ProductOrderMaterialDTO]
    material_cost: str
    created_at: str
    updated_at: str
    completed_at: str | None


@dataclass(frozen=True)
class ProductOrderStatusChangeDTO:
    """Output: result of moving a product order along."""

    order: ProductOrderDTO
    previous_status: str
    new_product_stock: int | None = None
    unreturned_material_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class DeletedProductOrderDTO:
    order_id: int
    product_name: str
    unreturned_material_ids: list[int] = field(default_factory=list)


def product_order_to_dto(order: ProductOrder) -> ProductOrderDTO:
    return ProductOrderDTO(
        id=order.id,
        product_id=order.product_id,
        product_name=order.product_name,
        quantity=order.quantity.value,
        status=order.status.value,
        materials=[
            ProductOrderMaterialDTO(
                material_id=line.material_id,
                material_name=line.material_name,
                quantity=line.quantity.value,
                unit=line.unit,
                cost_per_unit=str(line.cost_per_unit),
                total_cost=str(line.total_cost),
            )
            for line in order.materials
        ],
        material_cost=str(order.material_cost),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        updated_at=order.updated_at.strftime("%Y-%m-%d %H:%M UTC"),
        completed_at=(
            order.completed_at.strftime("%Y-%m-%d %H:%M UTC") if order.completed_at else None
        ),
    )
