"""Click CLI for clinicctl.

Usage:
    python manage.py clinicctl [command] [options]
"""

import click
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone
from rich.console import Console

from .exceptions import NotFoundError

console = Console()


@click.group()
@click.pass_context
def cli(ctx):
    """Clinic flow terminal UI.

    Watch station queues, inspect visits and check stock.
    """
    ctx.ensure_object(dict)


@cli.command()
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), help="Queue day (default today)")
@click.option("--status", help="Only visits in this status")
def queue(day, status):
    """Show a day's visits in queue order."""
    from .selectors import todays_visits, visits_by_status
    from .formatters import format_queue_table

    day = day.date() if day else timezone.localdate()
    visits = visits_by_status(status, day) if status else todays_visits(day)
    console.print(format_queue_table(visits, day))


@cli.command()
@click.argument("visit_id")
def visit(visit_id):
    """Show a visit with its measurement, prescription and sale."""
    from .selectors import get_visit_aggregate
    from .formatters import format_visit_detail

    try:
        aggregate = get_visit_aggregate(visit_id)
    except NotFoundError:
        console.print(f"[red]Visit not found: {visit_id}[/red]")
        return

    console.print(format_visit_detail(aggregate))


@cli.command(name="low-stock")
def low_stock():
    """List medicines at or below their low-stock threshold."""
    from .stock import low_stock_medicines
    from .formatters import format_low_stock_table

    console.print(format_low_stock_table(low_stock_medicines()))


@cli.command()
def pending():
    """List prescriptions waiting at the pharmacy."""
    from .selectors import pending_prescriptions
    from .formatters import format_pending_table

    console.print(format_pending_table(pending_prescriptions()))


@cli.command()
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), help="Report day (default today)")
def stats(day):
    """Show visit counts and income for a day."""
    from .selectors import daily_stats
    from .formatters import format_stats_panel

    day = day.date() if day else timezone.localdate()
    console.print(format_stats_panel(daily_stats(day), day))


@cli.command(name="render")
@click.argument("kind", type=click.Choice(["reception_slip", "prescription", "pharmacy_receipt"]))
@click.argument("object_id")
def render(kind, object_id):
    """Render a printable document as HTML."""
    from .models import PharmacySale, Prescription, Visit
    from .printing import render_document

    model = {"reception_slip": Visit, "prescription": Prescription, "pharmacy_receipt": PharmacySale}[kind]
    try:
        obj = model.objects.filter(pk=object_id).first()
    except DjangoValidationError:
        obj = None
    if obj is None:
        console.print(f"[red]{model.__name__} not found: {object_id}[/red]")
        return

    click.echo(render_document(kind, obj))


def main():
    """Entry point for CLI."""
    cli()
