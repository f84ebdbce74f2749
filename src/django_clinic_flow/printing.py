"""Printable clinic documents.

Renders reception slips, prescription sheets and pharmacy receipts from
templates and hands them to the configured print backend.

Printing is a side effect of a committed write: queue_print() defers the
work to transaction.on_commit(), and print_document() logs failures instead
of raising, so a broken printer never rolls back or blocks the data change.
"""

import logging
from typing import NamedTuple

from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone

from .conf import get_setting, load_print_backend
from .selectors import staff_name

logger = logging.getLogger(__name__)


class PrintDocument(NamedTuple):
    """A rendered document ready for a print backend."""

    kind: str
    object_id: str
    html: str


class BasePrintBackend:
    """Destination for rendered documents (printer spool, file, console)."""

    def send(self, document: PrintDocument) -> None:
        raise NotImplementedError


class ConsolePrintBackend(BasePrintBackend):
    """Logs documents instead of printing them."""

    def send(self, document: PrintDocument) -> None:
        logger.info(
            "Print %s for %s (%d bytes)", document.kind, document.object_id, len(document.html)
        )


class LocMemPrintBackend(BasePrintBackend):
    """
    Keeps documents in memory. For tests.

    `outbox` is a class attribute shared by every instance in the process,
    like django.core.mail.outbox; tests reset it between runs.
    """

    outbox: list[PrintDocument] = []

    def send(self, document: PrintDocument) -> None:
        LocMemPrintBackend.outbox.append(document)


# =============================================================================
# Template contexts
# =============================================================================

def _base_context() -> dict:
    return {
        "clinic_name": get_setting("CLINIC_NAME"),
        "printed_at": timezone.localtime(),
    }


def reception_slip_context(visit) -> dict:
    """Token slip handed to the patient at reception."""
    return {
        **_base_context(),
        "token_number": visit.queue_number,
        "date": timezone.localtime(visit.created_at),
        "patient_name": visit.patient.name,
        "doctor_name": staff_name(visit.doctor) if visit.doctor else "",
        "room_number": visit.room_number,
    }


def prescription_sheet_context(prescription) -> dict:
    visit = prescription.visit
    return {
        **_base_context(),
        "date": timezone.localtime(prescription.created_at),
        "token_number": visit.queue_number,
        "patient": visit.patient,
        "doctor_name": staff_name(prescription.created_by),
        "diagnosis": prescription.diagnosis,
        "follow_up_note": prescription.follow_up_note,
        "items": list(prescription.items.order_by("medicine_name")),
        "measurement": getattr(visit, "eye_measurement", None),
    }


def pharmacy_receipt_context(sale) -> dict:
    return {
        **_base_context(),
        "date": timezone.localtime(sale.created_at),
        "token_number": sale.visit.queue_number,
        "patient": sale.patient,
        "items": list(sale.items.order_by("medicine_name")),
        "total_amount": sale.total_amount,
        "payment_method": sale.get_payment_method_display() if sale.payment_method else "",
        "paid": sale.paid,
        "served_by": staff_name(sale.created_by),
    }


TEMPLATES = {
    "reception_slip": ("django_clinic_flow/reception_slip.html", reception_slip_context),
    "prescription": ("django_clinic_flow/prescription_sheet.html", prescription_sheet_context),
    "pharmacy_receipt": ("django_clinic_flow/pharmacy_receipt.html", pharmacy_receipt_context),
}


def render_document(kind: str, obj) -> str:
    """Render a document to HTML. Raises on unknown kind or template errors."""
    try:
        template, build_context = TEMPLATES[kind]
    except KeyError:
        raise ValueError(f"Unknown document kind: {kind}")
    return render_to_string(template, build_context(obj))


def print_document(kind: str, obj) -> PrintDocument | None:
    """
    Render and send a document.

    Returns the document, or None if rendering or sending failed. Failures
    are logged and never raised.
    """
    try:
        document = PrintDocument(kind=kind, object_id=str(obj.pk), html=render_document(kind, obj))
        load_print_backend().send(document)
    except Exception as e:
        logger.warning(f"Failed to print {kind} for {getattr(obj, 'pk', obj)}: {e}")
        return None
    return document


def queue_print(kind: str, obj) -> None:
    """Print after the current transaction commits."""
    transaction.on_commit(lambda: print_document(kind, obj))
