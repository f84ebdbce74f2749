"""Rich table and panel formatters for clinicctl."""

from uuid import UUID

from rich.panel import Panel
from rich.table import Table

from .selectors import VisitAggregate, staff_name

STATUS_STYLES = {
    "waiting": "yellow",
    "eye_measurement": "blue",
    "with_doctor": "magenta",
    "in_consultation": "bold magenta",
    "pharmacy": "cyan",
    "completed": "green",
}


def short_uuid(uuid_val: UUID | str | None) -> str:
    """First 8 characters of a UUID, or "-" if None."""
    if uuid_val is None:
        return "-"
    return str(uuid_val)[:8]


def status_text(status: str) -> str:
    style = STATUS_STYLES.get(status, "dim")
    return f"[{style}]{status}[/{style}]"


def format_queue_table(visits, day) -> Table:
    """Format a day's visits as a Rich table in queue order.

    Args:
        visits: Visit objects with patient and doctor loaded
        day: The queue day shown in the title

    Returns:
        Rich Table ready for display
    """
    table = Table(title=f"Queue {day:%Y-%m-%d}")
    table.add_column("#", justify="right", style="bold")
    table.add_column("Patient", style="green")
    table.add_column("Status")
    table.add_column("Doctor", style="cyan")
    table.add_column("Room", style="dim")
    table.add_column("Paid", justify="right")
    table.add_column("ID", style="dim")

    for visit in visits:
        table.add_row(
            str(visit.queue_number),
            visit.patient.name,
            status_text(visit.status),
            staff_name(visit.doctor) or "-",
            visit.room_number or "-",
            str(visit.payment_amount) if visit.payment_amount is not None else "-",
            short_uuid(visit.pk),
        )

    return table


def format_visit_detail(aggregate: VisitAggregate) -> Panel:
    """Format a visit with its measurement, prescription and sale as a Panel."""
    visit = aggregate.visit
    patient = aggregate.patient
    lines = [
        f"[bold]ID:[/bold] {visit.pk}",
        f"[bold]Token:[/bold] #{visit.queue_number} ({visit.queue_date:%Y-%m-%d})",
        f"[bold]Status:[/bold] {status_text(visit.status)}",
        f"[bold]Patient:[/bold] {patient.name}, {patient.age}, {patient.gender}, {patient.phone}",
        f"[bold]Doctor:[/bold] {staff_name(visit.doctor) or '-'}",
        f"[bold]Room:[/bold] {visit.room_number or '-'}",
    ]
    if visit.payment_amount is not None:
        lines.append(f"[bold]Payment:[/bold] {visit.payment_amount} ({visit.payment_method})")
    if aggregate.allowed_transitions:
        lines.append(f"[bold]Next:[/bold] {', '.join(aggregate.allowed_transitions)}")

    m = aggregate.measurement
    if m is not None:
        lines.append("")
        lines.append("[bold]Eye Measurement:[/bold]")
        lines.append(
            f"  R: VA {m.visual_acuity_right or '-'} SPH {m.right_sph} CYL {m.right_cyl} AXIS {m.right_axis}"
        )
        lines.append(
            f"  L: VA {m.visual_acuity_left or '-'} SPH {m.left_sph} CYL {m.left_cyl} AXIS {m.left_axis}"
        )
        lines.append(f"  PD {m.pd}  IOP R {m.iop_right} L {m.iop_left}")

    p = aggregate.prescription
    if p is not None:
        lines.append("")
        state = "dispensed" if p.dispensed else "pending"
        where = "clinic pharmacy" if p.buy_from_clinic else "outside"
        lines.append(f"[bold]Prescription:[/bold] {p.diagnosis} ({state}, {where})")
        for item in p.items.all():
            lines.append(f"  - {item.medicine_name} x{item.quantity}: {item.dosage}")

    if aggregate.sale is not None:
        sale = aggregate.sale
        lines.append("")
        lines.append(f"[bold]Sale:[/bold] {sale.total_amount} ({'paid' if sale.paid else 'unpaid'})")

    return Panel("\n".join(lines), title=f"Visit #{visit.queue_number}", border_style="cyan")


def format_low_stock_table(medicines) -> Table:
    table = Table(title="Low Stock")
    table.add_column("Medicine", style="green")
    table.add_column("Category", style="dim")
    table.add_column("Stock", justify="right")
    table.add_column("Threshold", justify="right", style="dim")

    for medicine in medicines:
        stock_style = "red" if medicine.stock == 0 else "yellow"
        table.add_row(
            medicine.name,
            medicine.category,
            f"[{stock_style}]{medicine.stock}[/{stock_style}]",
            str(medicine.low_stock_threshold),
        )

    return table


def format_pending_table(prescriptions) -> Table:
    table = Table(title="Pending Prescriptions")
    table.add_column("#", justify="right", style="bold")
    table.add_column("Patient", style="green")
    table.add_column("Items", style="cyan")
    table.add_column("Written", style="dim")
    table.add_column("ID", style="dim")

    for prescription in prescriptions:
        items = ", ".join(
            f"{item.medicine_name} x{item.quantity}" for item in prescription.items.all()
        )
        table.add_row(
            str(prescription.visit.queue_number),
            prescription.visit.patient.name,
            items or "-",
            prescription.created_at.strftime("%Y-%m-%d %H:%M"),
            short_uuid(prescription.pk),
        )

    return table


def format_stats_panel(stats: dict, day) -> Panel:
    lines = [
        f"[bold]Patients:[/bold] {stats['total_patients']}",
        f"[bold]Completed:[/bold] {stats['completed']}",
        f"[bold]In progress:[/bold] {stats['in_progress']}",
        f"[bold]Income:[/bold] {stats['total_income']}",
    ]
    for method, amount in stats["income_by_method"].items():
        lines.append(f"  {method}: {amount}")

    return Panel("\n".join(lines), title=f"Stats {day:%Y-%m-%d}", border_style="green")
