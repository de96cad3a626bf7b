"""CLI commands for product (work) orders."""

from __future__ import annotations

import click

from ims.application.change_product_order_status import ChangeProductOrderStatusHandler
from ims.application.create_product_order import CreateProductOrderHandler
from ims.application.delete_product_order import DeleteProductOrderHandler
from ims.application.dto import MaterialSpec, ProductOrderDTO
from ims.application.show_product_order import (
    ListProductOrdersHandler,
    ShowProductOrderHandler,
)
from ims.domain.exceptions import DomainException, InsufficientMaterialsError
from ims.infrastructure.bootstrap import (
    activity_log,
    consumption_service,
    material_repository,
    product_order_repository,
    product_repository,
)


def _parse_materials(raw: str) -> list[MaterialSpec]:
    """Parse '1:3,2:5' (material ID : quantity) into MaterialSpec list."""
    specs: list[MaterialSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        mid_str, sep, qty_str = pair.partition(":")
        try:
            if not sep:
                raise ValueError(pair)
            specs.append(MaterialSpec(material_id=int(mid_str), quantity=int(qty_str)))
        except ValueError:
            raise click.BadParameter(
                f"Invalid material '{pair}'. Expected 'MaterialID:Quantity' as integers."
            )
    return specs


def _display_order(dto: ProductOrderDTO) -> None:
    click.echo(f"Product order #{dto.id}  (status={dto.status})")
    click.echo(f"Product:  {dto.quantity}x {dto.product_name} (#{dto.product_id})")
    click.echo(f"Created:  {dto.created_at}")
    if dto.completed_at:
        click.echo(f"Completed: {dto.completed_at}")
    click.echo()
    click.echo(f"  {'Material':<24} {'Qty':>8} {'Unit':<6} {'Cost':>10} {'Total':>10}")
    click.echo(f"  {'-'*62}")
    for line in dto.materials:
        click.echo(
            f"  {line.material_name:<24} {line.quantity:>8} {line.unit:<6} "
            f"{line.cost_per_unit:>10} {line.total_cost:>10}"
        )
    click.echo(f"  {'-'*62}")
    click.echo(f"  {'Material cost':<50} {dto.material_cost:>10}")


@click.command("create")
@click.option("--product-id", required=True, type=int, help="Product being made.")
@click.option("--quantity", required=True, type=int, help="How many units to make.")
@click.option("--materials", required=True, help="Materials as 'MaterialID:Qty,MaterialID:Qty'.")
def product_order_create(product_id: int, quantity: int, materials: str) -> None:
    """Start a product order (deducts raw materials)."""
    specs = _parse_materials(materials)
    handler = CreateProductOrderHandler(
        order_repo=product_order_repository(),
        product_repo=product_repository(),
        material_repo=material_repository(),
        consumption=consumption_service(),
        activity_log=activity_log(),
    )

    try:
        dto = handler.handle(product_id=product_id, quantity=quantity, material_specs=specs)
    except InsufficientMaterialsError as exc:
        click.echo("Insufficient raw materials:", err=True)
        for s in exc.shortfalls:
            click.echo(
                f"  {s.material_name:<24} need {s.requested} {s.unit}, have {s.available}",
                err=True,
            )
        raise click.ClickException("Product order was not created; no materials were used")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product order #{dto.id} created")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Product order ID.")
def product_order_show(order_id: int) -> None:
    """Show a product order with its materials."""
    try:
        dto = ShowProductOrderHandler(order_repo=product_order_repository()).handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--all", "include_completed", is_flag=True, help="Include completed orders.")
def product_order_list(include_completed: bool) -> None:
    """List active product orders, newest first."""
    handler = ListProductOrdersHandler(order_repo=product_order_repository())

    try:
        dtos = handler.handle(include_completed=include_completed)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not dtos:
        click.echo("No product orders found.")
        return

    click.echo(f"{'ID':>4}  {'Product':<24} {'Qty':>6}  {'Status':<12} {'Cost':>10}")
    click.echo("-" * 62)
    for dto in dtos:
        click.echo(
            f"{dto.id:>4}  {dto.product_name:<24} {dto.quantity:>6}  {dto.status:<12} "
            f"{dto.material_cost:>10}"
        )


@click.command("set-status")
@click.option("--id", "order_id", required=True, type=int, help="Product order ID.")
@click.option("--status", required=True,
              type=click.Choice(["pending", "in-progress", "completed", "cancelled"]),
              help="New status. Completing adds the product to stock.")
def product_order_set_status(order_id: int, status: str) -> None:
    """Move a product order along (start, complete or cancel it)."""
    handler = ChangeProductOrderStatusHandler(
        order_repo=product_order_repository(),
        product_repo=product_repository(),
        consumption=consumption_service(),
        activity_log=activity_log(),
    )

    try:
        result = handler.handle(order_id, status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product order #{result.order.id} changed from "
        f"{result.previous_status} to {result.order.status}"
    )
    if result.new_product_stock is not None:
        click.echo(f"{result.order.product_name} stock is now {result.new_product_stock}")
    elif result.order.status == "completed":
        click.echo(
            f"Warning: {result.order.product_name} was not added to stock", err=True
        )
    if result.unreturned_material_ids:
        ids = ", ".join(f"#{mid}" for mid in result.unreturned_material_ids)
        click.echo(f"Warning: materials {ids} could not be returned", err=True)


@click.command("delete")
@click.option("--id", "order_id", required=True, type=int, help="Product order ID.")
@click.confirmation_option(prompt="Delete this product order?")
def product_order_delete(order_id: int) -> None:
    """Delete a product order (returns materials if it was still open)."""
    handler = DeleteProductOrderHandler(
        order_repo=product_order_repository(),
        consumption=consumption_service(),
        activity_log=activity_log(),
    )

    try:
        result = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product order #{result.order_id} deleted")
    if result.unreturned_material_ids:
        ids = ", ".join(f"#{mid}" for mid in result.unreturned_material_ids)
        click.echo(f"Warning: materials {ids} could not be returned", err=True)
