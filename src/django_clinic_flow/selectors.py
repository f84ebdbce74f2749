"""Read-only queries for station queues and reports.

Uses select_related/prefetch_related so station screens and printouts load a
visit with everything they need in a fixed number of queries.
"""

from datetime import date
from decimal import Decimal
from typing import NamedTuple, Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Count, Prefetch, Q, QuerySet, Sum
from django.utils import timezone

from . import graph
from .exceptions import NotFoundError
from .models import (
    AppRole,
    EyeMeasurement,
    Patient,
    PaymentMethod,
    PharmacySale,
    PharmacySaleItem,
    Prescription,
    PrescriptionMedicine,
    Visit,
    VisitStatus,
)


def staff_name(user) -> str:
    """Display name of a staff user: profile name, full name, then username."""
    if user is None:
        return ""
    profile = getattr(user, "clinic_profile", None)
    if profile is not None and profile.name:
        return profile.name
    if hasattr(user, "get_full_name"):
        name = user.get_full_name()
        if name:
            return name
    return getattr(user, "username", None) or str(user)


def doctors():
    """Users holding the doctor role, for assignment pickers."""
    User = get_user_model()
    return (
        User.objects.filter(clinic_roles__role=AppRole.DOCTOR, is_active=True)
        .select_related("clinic_profile")
        .order_by("username")
        .distinct()
    )


def _visits() -> QuerySet[Visit]:
    return Visit.objects.select_related("patient", "doctor", "doctor__clinic_profile")


def todays_visits(day: date = None) -> QuerySet[Visit]:
    """All visits for a day (default today), in queue order."""
    day = day or timezone.localdate()
    return _visits().filter(queue_date=day).order_by("queue_number")


def visits_by_status(status: str, day: date = None) -> QuerySet[Visit]:
    """A station's queue: visits in `status` for a day, in queue order."""
    return todays_visits(day).filter(status=status)


def doctor_queue(doctor, day: date = None) -> QuerySet[Visit]:
    """Visits assigned to `doctor` that are waiting for or with them."""
    return todays_visits(day).filter(
        doctor=doctor,
        status__in=graph.DOCTOR_QUEUE_STATUSES,
    )


def active_consultation(doctor) -> Optional[Visit]:
    """The visit the doctor is currently seeing, if any."""
    return _visits().filter(doctor=doctor, status=VisitStatus.IN_CONSULTATION).first()


def pending_prescriptions() -> QuerySet[Prescription]:
    """Undispensed clinic-pharmacy prescriptions, oldest first."""
    return (
        Prescription.objects.filter(dispensed=False, buy_from_clinic=True)
        .select_related("visit", "visit__patient")
        .prefetch_related(
            Prefetch("items", queryset=PrescriptionMedicine.objects.order_by("medicine_name"))
        )
        .order_by("created_at")
    )


class VisitAggregate(NamedTuple):
    """A visit with everything hanging off it."""

    visit: Visit
    patient: Patient
    measurement: Optional[EyeMeasurement]
    prescription: Optional[Prescription]
    sale: Optional[PharmacySale]

    @property
    def allowed_transitions(self) -> list[str]:
        return graph.allowed_transitions(self.visit.status)


def get_visit_aggregate(visit_id) -> VisitAggregate:
    """
    Load a visit with patient, doctor, measurement, prescription and sale.

    Raises:
        NotFoundError: If the visit does not exist
    """
    try:
        visit = _visits().get(pk=visit_id)
    except (Visit.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("Visit", visit_id)

    measurement = EyeMeasurement.objects.filter(visit=visit).first()
    prescription = (
        Prescription.objects.filter(visit=visit)
        .prefetch_related("items")
        .first()
    )
    sale = None
    if prescription is not None:
        sale = (
            PharmacySale.objects.filter(prescription=prescription)
            .prefetch_related(Prefetch("items", queryset=PharmacySaleItem.objects.order_by("medicine_name")))
            .first()
        )

    return VisitAggregate(
        visit=visit,
        patient=visit.patient,
        measurement=measurement,
        prescription=prescription,
        sale=sale,
    )


def search_patients(query: str = "", limit: int = 20) -> QuerySet[Patient]:
    """Patients whose name or phone contains `query`; newest first."""
    patients = Patient.objects.order_by("-created_at")
    query = (query or "").strip()
    if query:
        patients = patients.filter(Q(name__icontains=query) | Q(phone__icontains=query))
    return patients[:limit]


class PatientHistory(NamedTuple):
    patient: Patient
    total_visits: int
    total_prescriptions: int
    visits: list[VisitAggregate]


def patient_history(patient_id) -> PatientHistory:
    """
    All visits for a patient, newest first, with measurements and prescriptions.

    Raises:
        NotFoundError: If the patient does not exist
    """
    try:
        patient = Patient.objects.get(pk=patient_id)
    except (Patient.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("Patient", patient_id)

    visits = list(
        Visit.objects.filter(patient=patient)
        .select_related("doctor")
        .order_by("-created_at")
    )
    visit_ids = [v.pk for v in visits]
    measurements = {
        m.visit_id: m for m in EyeMeasurement.objects.filter(visit_id__in=visit_ids)
    }
    prescriptions = {
        p.visit_id: p
        for p in Prescription.objects.filter(visit_id__in=visit_ids).prefetch_related("items")
    }
    sales = {
        s.visit_id: s
        for s in PharmacySale.objects.filter(visit_id__in=visit_ids).prefetch_related("items")
    }

    return PatientHistory(
        patient=patient,
        total_visits=len(visits),
        total_prescriptions=len(prescriptions),
        visits=[
            VisitAggregate(
                visit=v,
                patient=patient,
                measurement=measurements.get(v.pk),
                prescription=prescriptions.get(v.pk),
                sale=sales.get(v.pk),
            )
            for v in visits
        ],
    )


# =============================================================================
# Reports
# =============================================================================

def daily_stats(day: date = None) -> dict:
    """Visit counts and visit payment income for a day."""
    visits = Visit.objects.filter(queue_date=day or timezone.localdate())

    totals = visits.aggregate(
        total=Count("id"),
        completed=Count("id", filter=Q(status=VisitStatus.COMPLETED)),
        income=Sum("payment_amount"),
    )
    by_method = {
        method: visits.filter(payment_method=method).aggregate(s=Sum("payment_amount"))["s"]
        or Decimal("0")
        for method in PaymentMethod.values
    }
    by_status = dict(
        visits.order_by().values("status").annotate(n=Count("id")).values_list("status", "n")
    )

    return {
        "total_patients": totals["total"],
        "completed": totals["completed"],
        "in_progress": totals["total"] - totals["completed"],
        "total_income": totals["income"] or Decimal("0"),
        "income_by_method": by_method,
        "by_status": by_status,
    }


def all_time_stats() -> dict:
    totals = Visit.objects.aggregate(visits=Count("id"), income=Sum("payment_amount"))
    return {
        "total_patients": Patient.objects.count(),
        "total_visits": totals["visits"],
        "total_income": totals["income"] or Decimal("0"),
    }


def sales_for_day(day: date = None) -> QuerySet[PharmacySale]:
    """Pharmacy sales created on a day (local time), newest first."""
    day = day or timezone.localdate()
    return (
        PharmacySale.objects.filter(visit__queue_date=day)
        .select_related("patient", "visit")
        .prefetch_related("items")
        .order_by("-created_at")
    )
