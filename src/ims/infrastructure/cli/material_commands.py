"""CLI commands for raw materials."""

from __future__ import annotations

import click

from ims.application.manage_materials import (
    AddMaterialHandler,
    ListMaterialsHandler,
    SetMaterialQuantityHandler,
)
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import activity_log, material_repository


@click.command("add")
@click.option("--name", required=True, help="Material name, must be unique.")
@click.option("--unit", default="pcs", show_default=True, help="Unit the material is counted in.")
@click.option("--quantity", default=0, show_default=True, type=click.IntRange(min=0),
              help="Quantity on hand.")
@click.option("--cost", default="0", show_default=True, help="Cost per unit, e.g. 2.50.")
def material_add(name: str, unit: str, quantity: int, cost: str) -> None:
    """Add a raw material."""
    handler = AddMaterialHandler(material_repo=material_repository())

    try:
        material = handler.handle(name=name, unit=unit, quantity=quantity, cost_per_unit=cost)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Material #{material.id} '{material.name}' added ({material.quantity} {material.unit})")


@click.command("list")
def material_list() -> None:
    """List raw materials and what is on hand."""
    try:
        materials = ListMaterialsHandler(material_repo=material_repository()).handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not materials:
        click.echo("No materials found.")
        return

    click.echo(f"{'ID':>4}  {'Material':<24} {'On hand':>10} {'Unit':<8} {'Cost':>10}")
    click.echo("-" * 62)
    for m in materials:
        click.echo(
            f"{m.id:>4}  {m.name:<24} {m.quantity:>10} {m.unit:<8} {str(m.cost_per_unit):>10}"
        )


@click.command("set")
@click.option("--material-id", required=True, type=int, help="Material ID.")
@click.option("--quantity", required=True, type=int, help="Quantity on hand.")
def material_set(material_id: int, quantity: int) -> None:
    """Set the quantity of a raw material."""
    handler = SetMaterialQuantityHandler(
        material_repo=material_repository(),
        activity_log=activity_log(),
    )

    try:
        handler.handle(material_id=material_id, quantity=quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Material #{material_id} quantity set to {quantity}")
