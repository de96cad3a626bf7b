import click

from ims.infrastructure import bootstrap
from ims.infrastructure.cli.activity_commands import activity
from ims.infrastructure.cli.inventory_commands import (
    inventory_alerts,
    inventory_set,
    inventory_show,
)
from ims.infrastructure.cli.invoice_commands import (
    invoice_create,
    invoice_delete,
    invoice_fulfill,
    invoice_list,
    invoice_set_status,
    invoice_show,
    invoice_stats,
)
from ims.infrastructure.cli.material_commands import (
    material_add,
    material_list,
    material_set,
)
from ims.infrastructure.cli.product_commands import product_add, product_list
from ims.infrastructure.cli.product_order_commands import (
    product_order_create,
    product_order_delete,
    product_order_list,
    product_order_set_status,
    product_order_show,
)
from ims.infrastructure.logging_config import configure_logging


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
def cli(verbose: bool) -> None:
    """IMS — Inventory & Invoice Management"""
    settings = bootstrap.settings()
    configure_logging("INFO" if verbose else settings.log_level, settings.log_file)


@cli.group()
def invoice() -> None:
    """Manage invoices."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


@cli.group()
def material() -> None:
    """Manage raw materials."""


@cli.group("product-order")
def product_order() -> None:
    """Manage product (work) orders."""


# Register subcommands
invoice.add_command(invoice_create)
invoice.add_command(invoice_delete)
invoice.add_command(invoice_fulfill)
invoice.add_command(invoice_list)
invoice.add_command(invoice_set_status)
invoice.add_command(invoice_show)
invoice.add_command(invoice_stats)
product.add_command(product_add)
product.add_command(product_list)
inventory.add_command(inventory_alerts)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
cli.add_command(activity)
material.add_command(material_add)
material.add_command(material_list)
material.add_command(material_set)
product_order.add_command(product_order_create)
product_order.add_command(product_order_delete)
product_order.add_command(product_order_list)
product_order.add_command(product_order_set_status)
product_order.add_command(product_order_show)
