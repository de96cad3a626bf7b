"""CLI commands for inventory management."""

from __future__ import annotations

import click

from ims.application.set_stock import SetStockHandler
from ims.application.show_inventory import (
    ShowInventoryHandler,
    StockAlertsHandler,
    StockLineDTO,
)
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import activity_log, product_repository, settings


def _display_stock(lines: list[StockLineDTO]) -> None:
    click.echo(f"{'ID':>4}  {'Product':<24} {'SKU':<12} {'Stock':>8}  {'Status':<12}")
    click.echo("-" * 66)
    for line in lines:
        click.echo(
            f"{line.product_id:>4}  {line.product_name:<24} {line.sku:<12} "
            f"{line.stock:>8}  {line.status:<12}"
        )


@click.command("set")
@click.option("--product-id", required=True, type=int, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="Quantity in stock.")
def inventory_set(product_id: int, quantity: int) -> None:
    """Set the stock level of a product."""
    handler = SetStockHandler(
        product_repo=product_repository(),
        activity_log=activity_log(),
    )

    try:
        handler.handle(product_id=product_id, quantity=quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Stock for product #{product_id} set to {quantity}")


@click.command("show")
def inventory_show() -> None:
    """Show current stock levels."""
    handler = ShowInventoryHandler(
        product_repo=product_repository(),
        low_stock_threshold=settings().low_stock_threshold,
    )

    try:
        lines = handler.handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No inventory records found.")
        return
    _display_stock(lines)


@click.command("alerts")
def inventory_alerts() -> None:
    """Show products that are out of stock or running low."""
    handler = StockAlertsHandler(
        product_repo=product_repository(),
        low_stock_threshold=settings().low_stock_threshold,
    )

    try:
        lines = handler.handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("All products are sufficiently stocked.")
        return
    _display_stock(lines)
