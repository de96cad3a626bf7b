"""CLI command for the activity log."""

from __future__ import annotations

import click

from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import activity_log


@click.command("activity")
@click.option("--limit", default=20, show_default=True, type=click.IntRange(min=1), help="Entries to show.")
def activity(limit: int) -> None:
    """Show the most recent stock and invoice activity."""
    try:
        entries = activity_log().recent(limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not entries:
        click.echo("No activity recorded.")
        return

    for entry in entries:
        click.echo(
            f"{entry.created_at.strftime('%Y-%m-%d %H:%M')}  {entry.kind:<22} {entry.message}"
        )
