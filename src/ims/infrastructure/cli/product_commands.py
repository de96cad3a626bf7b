"""CLI commands for the product catalog."""

from __future__ import annotations

import click

from ims.application.add_product import AddProductHandler
from ims.application.show_inventory import ShowInventoryHandler
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import product_repository, settings


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--sku", required=True, help="Stock keeping unit, must be unique.")
@click.option("--price", required=True, help="Unit price, e.g. 15.00.")
@click.option("--stock", default=0, show_default=True, type=click.IntRange(min=0), help="Initial stock.")
@click.option("--unit", default="pcs", show_default=True, help="Unit the stock is counted in.")
def product_add(name: str, sku: str, price: str, stock: int, unit: str) -> None:
    """Add a product to the catalog."""
    handler = AddProductHandler(product_repo=product_repository())

    try:
        product = handler.handle(name=name, sku=sku, price=price, stock=stock, unit=unit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' ({product.sku}) added at {product.price}")


@click.command("list")
def product_list() -> None:
    """List all products with their prices."""
    handler = ShowInventoryHandler(
        product_repo=product_repository(),
        low_stock_threshold=settings().low_stock_threshold,
    )

    try:
        lines = handler.handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':>4}  {'SKU':<12} {'Product':<24} {'Price':>10}")
    click.echo("-" * 54)
    for line in lines:
        click.echo(f"{line.product_id:>4}  {line.sku:<12} {line.product_name:<24} {line.price:>10}")
