"""CLI commands for the Invoice aggregate."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import click

from ims.application.change_invoice_status import ChangeInvoiceStatusHandler
from ims.application.create_invoice import CreateInvoiceHandler
from ims.application.delete_invoice import DeleteInvoiceHandler
from ims.application.dto import CustomerSpec, InvoiceDTO, InvoiceItemSpec
from ims.application.fulfill_invoice import FulfillInvoiceHandler
from ims.application.invoice_stats import InvoiceStatsHandler
from ims.application.show_invoice import ListInvoicesHandler, ShowInvoiceHandler
from ims.domain.exceptions import DomainException, InsufficientStockError
from ims.domain.model.value_objects import TaxRate
from ims.infrastructure.bootstrap import (
    activity_log,
    fulfillment_service,
    invoice_repository,
    numbering_service,
    product_repository,
    settings,
)

DEFAULT_PAYMENT_DAYS = 7


def _parse_items(raw: str) -> list[InvoiceItemSpec]:
    """Parse '1:3,2:5' (product ID : quantity) into InvoiceItemSpec list."""
    specs: list[InvoiceItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductID:Quantity'."
            )
        pid_str, qty_str = pair.split(":", 1)
        try:
            product_id = int(pid_str)
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid item '{pair}'. Product ID and quantity must be integers."
            )
        specs.append(InvoiceItemSpec(product_id=product_id, quantity=qty))
    return specs


def _display_invoice(dto: InvoiceDTO) -> None:
    """Shared formatting for displaying an invoice."""
    click.echo(f"Invoice {dto.invoice_number}  (status={dto.status})")
    click.echo(f"ID:       {dto.id}")
    click.echo(f"Customer: {dto.customer_name}")
    if dto.customer_email:
        click.echo(f"Email:    {dto.customer_email}")
    click.echo(f"Issued:   {dto.issue_date}   Due: {dto.due_date}")
    click.echo()
    click.echo(f"  {'SKU':<12} {'Product':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*60}")
    for item in dto.items:
        click.echo(
            f"  {item.sku:<12} {item.product_name:<20} {item.quantity:>5} "
            f"{item.unit_price:>10} {item.total_price:>10}"
        )
    click.echo(f"  {'-'*60}")
    click.echo(f"  {'Subtotal':<40} {dto.subtotal:>19}")
    click.echo(f"  {'Tax (' + dto.tax_rate + ')':<40} {dto.tax_amount:>19}")
    click.echo(f"  {'Total':<40} {dto.total_amount:>19}")
    if dto.notes:
        click.echo()
        click.echo(f"Notes: {dto.notes}")


@click.command("create")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--email", default="", help="Customer email.")
@click.option("--address", default="", help="Customer address.")
@click.option("--phone", default=None, help="Customer phone.")
@click.option("--items", required=True, help="Items as 'ProductID:Qty,ProductID:Qty'.")
@click.option("--issue-date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Invoice date (default: today).")
@click.option("--due-date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help=f"Delivery/due date (default: {DEFAULT_PAYMENT_DAYS} days after issue).")
@click.option("--tax-rate", default=None, help="Tax rate in percent, e.g. 12.")
@click.option("--notes", default=None, help="Free-form notes.")
def invoice_create(
    customer: str,
    email: str,
    address: str,
    phone: str | None,
    items: str,
    issue_date: datetime | None,
    due_date: datetime | None,
    tax_rate: str | None,
    notes: str | None,
) -> None:
    """Create a new pending invoice."""
    specs = _parse_items(items)
    issued: date = issue_date.date() if issue_date else date.today()
    due: date = due_date.date() if due_date else issued + timedelta(days=DEFAULT_PAYMENT_DAYS)

    handler = CreateInvoiceHandler(
        invoice_repo=invoice_repository(),
        product_repo=product_repository(),
        numbering=numbering_service(),
        activity_log=activity_log(),
        default_tax_rate=settings().default_tax_rate,
        max_number_attempts=settings().number_max_attempts,
    )

    try:
        rate = TaxRate.from_percent(tax_rate) if tax_rate is not None else None
        dto = handler.handle(
            customer=CustomerSpec(name=customer, email=email, address=address, phone=phone),
            item_specs=specs,
            issue_date=issued,
            due_date=due,
            tax_rate=rate,
            notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Invoice {dto.invoice_number} created")
    _display_invoice(dto)


@click.command("show")
@click.option("--id", "reference", required=True, help="Invoice ID or number (INV-1001).")
def invoice_show(reference: str) -> None:
    """Show details of an existing invoice."""
    handler = ShowInvoiceHandler(invoice_repo=invoice_repository())

    try:
        dto = handler.handle(reference)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_invoice(dto)


@click.command("list")
@click.option("--status", type=click.Choice(["pending", "fulfilled", "cancelled"]), default=None,
              help="Only show invoices in this status.")
def invoice_list(status: str | None) -> None:
    """List invoices, newest first."""
    handler = ListInvoicesHandler(invoice_repo=invoice_repository())

    try:
        dtos = handler.handle(status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not dtos:
        click.echo("No invoices found.")
        return

    click.echo(f"{'Number':<22} {'Customer':<20} {'Status':<10} {'Issued':<10} {'Total':>12}")
    click.echo("-" * 78)
    for dto in dtos:
        click.echo(
            f"{dto.invoice_number:<22} {dto.customer_name:<20} {dto.status:<10} "
            f"{dto.issue_date:<10} {dto.total_amount:>12}"
        )


@click.command("fulfill")
@click.option("--id", "reference", required=True, help="Invoice ID or number to fulfill.")
def invoice_fulfill(reference: str) -> None:
    """Fulfill an invoice (checks and deducts stock)."""
    handler = FulfillInvoiceHandler(
        invoice_repo=invoice_repository(),
        fulfillment=fulfillment_service(),
    )

    try:
        dto = handler.handle(reference)
    except InsufficientStockError as exc:
        click.echo("Insufficient stock for one or more products:", err=True)
        click.echo(f"  {'SKU':<12} {'Product':<20} {'Requested':>10} {'Available':>10}", err=True)
        for s in exc.shortfalls:
            click.echo(
                f"  {s.sku:<12} {s.product_name:<20} "
                f"{f'{s.requested} {s.unit}':>10} {f'{s.available} {s.unit}':>10}",
                err=True,
            )
        raise click.ClickException("Invoice was not fulfilled; no stock was deducted")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Invoice {dto.invoice_number} fulfilled")


@click.command("set-status")
@click.option("--id", "reference", required=True, help="Invoice ID or number.")
@click.option("--status", required=True, type=click.Choice(["pending", "cancelled"]),
              help="New status. Use 'invoice fulfill' to fulfill.")
def invoice_set_status(reference: str, status: str) -> None:
    """Revert, cancel or re-open an invoice."""
    handler = ChangeInvoiceStatusHandler(
        invoice_repo=invoice_repository(),
        fulfillment=fulfillment_service(),
        activity_log=activity_log(),
    )

    try:
        result = handler.handle(reference, status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Invoice {result.invoice.invoice_number} changed from "
        f"{result.previous_status} to {result.invoice.status}"
    )
    if result.unrestored_product_ids:
        ids = ", ".join(f"#{pid}" for pid in result.unrestored_product_ids)
        click.echo(f"Warning: stock could not be restored for products {ids}", err=True)


@click.command("delete")
@click.option("--id", "reference", required=True, help="Invoice ID or number.")
@click.confirmation_option(prompt="Delete this invoice?")
def invoice_delete(reference: str) -> None:
    """Delete an invoice (restores stock if it was fulfilled)."""
    handler = DeleteInvoiceHandler(
        invoice_repo=invoice_repository(),
        fulfillment=fulfillment_service(),
        activity_log=activity_log(),
    )

    try:
        result = handler.handle(reference)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Invoice {result.invoice_number} deleted")
    if result.unrestored_product_ids:
        ids = ", ".join(f"#{pid}" for pid in result.unrestored_product_ids)
        click.echo(f"Warning: stock could not be restored for products {ids}", err=True)


@click.command("stats")
def invoice_stats() -> None:
    """Show invoice counts and values."""
    handler = InvoiceStatsHandler(invoice_repo=invoice_repository())

    try:
        stats = handler.handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Invoices:        {stats.total}")
    click.echo(f"  pending:       {stats.pending}")
    click.echo(f"  fulfilled:     {stats.fulfilled}")
    click.echo(f"  cancelled:     {stats.cancelled}")
    click.echo(f"Total value:     {stats.total_value}")
    click.echo(f"Fulfilled value: {stats.fulfilled_value}")
