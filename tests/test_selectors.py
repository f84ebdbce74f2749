"""Tests for station queues and report selectors."""

from datetime import date
from decimal import Decimal

import pytest
from freezegun import freeze_time

from django_clinic_flow.exceptions import NotFoundError
from django_clinic_flow.models import Patient, Prescription, StaffProfile
from django_clinic_flow.selectors import (
    all_time_stats,
    daily_stats,
    doctor_queue,
    doctors,
    get_visit_aggregate,
    patient_history,
    pending_prescriptions,
    sales_for_day,
    search_patients,
    staff_name,
    todays_visits,
    visits_by_status,
)
from django_clinic_flow.services import (
    call_for_consultation,
    create_visit,
    dispense,
    record_payment,
    send_to_eye_measurement,
)


@pytest.mark.django_db
class TestQueues:
    """Tests for the station queue selectors."""

    def test_todays_visits_in_queue_order(self, reception_ctx, patient):
        created = [create_visit(reception_ctx, patient.pk) for _ in range(3)]

        assert [v.pk for v in todays_visits()] == [v.pk for v in created]

    def test_other_days_are_excluded(self, reception_ctx, patient):
        with freeze_time("2026-01-10 09:00:00"):
            create_visit(reception_ctx, patient.pk)
        with freeze_time("2026-01-11 09:00:00"):
            create_visit(reception_ctx, patient.pk)

        assert todays_visits(date(2026, 1, 10)).count() == 1

    def test_visits_by_status(self, reception_ctx, patient):
        first = create_visit(reception_ctx, patient.pk)
        create_visit(reception_ctx, patient.pk)
        send_to_eye_measurement(reception_ctx, first.pk)

        assert [v.pk for v in visits_by_status("eye_measurement")] == [first.pk]
        assert visits_by_status("waiting").count() == 1

    def test_doctor_queue(self, visit_with_doctor, reception_ctx, patient, doctor, doctor_ctx, other_doctor):
        waiting = create_visit(reception_ctx, patient.pk, doctor=doctor)
        create_visit(reception_ctx, patient.pk, doctor=other_doctor)
        call_for_consultation(doctor_ctx, visit_with_doctor.pk, doctor)

        queue = list(doctor_queue(doctor))

        assert [v.pk for v in queue] == [visit_with_doctor.pk, waiting.pk]
        assert queue[0].status == "in_consultation"

    def test_pending_prescriptions(self, prescribed_visit, pharmacy_ctx):
        pending = list(pending_prescriptions())
        assert len(pending) == 1
        assert [i.medicine_name for i in pending[0].items.all()] == [
            "Artificial Tears",
            "Moxifloxacin Eye Drops",
        ]

        dispense(pharmacy_ctx, pending[0].pk)

        assert pending_prescriptions().count() == 0

    def test_doctors(self, doctor, other_doctor, pharmacist):
        assert list(doctors()) == [other_doctor, doctor]


@pytest.mark.django_db
class TestVisitAggregate:
    """Tests for get_visit_aggregate."""

    def test_full_aggregate(self, prescribed_visit, patient):
        aggregate = get_visit_aggregate(prescribed_visit.pk)

        assert aggregate.visit == prescribed_visit
        assert aggregate.patient == patient
        assert aggregate.measurement.visual_acuity_right == "6/9"
        assert aggregate.prescription.diagnosis == "Bacterial conjunctivitis"
        assert aggregate.sale is None
        assert aggregate.allowed_transitions == ["completed"]

    def test_bare_visit(self, visit):
        aggregate = get_visit_aggregate(visit.pk)

        assert aggregate.measurement is None
        assert aggregate.prescription is None

    def test_unknown_visit(self):
        with pytest.raises(NotFoundError):
            get_visit_aggregate("not-a-uuid")


@pytest.mark.django_db
class TestPatients:
    """Tests for patient search and history."""

    def test_search_by_name_or_phone(self, patient):
        Patient.objects.create(name="Bilal Ahmed", phone="0311-7654321", age=30, gender="male")

        assert [p.name for p in search_patients("amina")] == ["Amina Khan"]
        assert [p.name for p in search_patients("7654")] == ["Bilal Ahmed"]
        assert len(search_patients("")) == 2

    def test_history(self, prescribed_visit, reception_ctx, patient):
        create_visit(reception_ctx, patient.pk)

        history = patient_history(patient.pk)

        assert history.total_visits == 2
        assert history.total_prescriptions == 1
        assert history.visits[1].prescription.diagnosis == "Bacterial conjunctivitis"
        assert history.visits[0].prescription is None

    def test_history_unknown_patient(self):
        with pytest.raises(NotFoundError):
            patient_history("3f0c6a8e-0000-4000-8000-000000000000")


@pytest.mark.django_db
class TestReports:
    """Tests for daily and all-time stats."""

    def test_daily_stats(self, prescribed_visit, reception_ctx, pharmacy_ctx, patient):
        other = create_visit(reception_ctx, patient.pk)
        record_payment(reception_ctx, prescribed_visit.pk, "cash", "1500")
        record_payment(reception_ctx, other.pk, "card", "800")
        dispense(pharmacy_ctx, Prescription.objects.get(visit=prescribed_visit).pk)

        stats = daily_stats()

        assert stats["total_patients"] == 2
        assert stats["completed"] == 1
        assert stats["in_progress"] == 1
        assert stats["total_income"] == Decimal("2300")
        assert stats["income_by_method"] == {
            "cash": Decimal("1500"),
            "card": Decimal("800"),
            "mobile": Decimal("0"),
        }
        assert stats["by_status"] == {"completed": 1, "waiting": 1}

    def test_empty_day(self):
        stats = daily_stats(date(2020, 1, 1))

        assert stats["total_patients"] == 0
        assert stats["total_income"] == Decimal("0")

    def test_all_time_stats(self, visit, patient):
        stats = all_time_stats()

        assert stats == {"total_patients": 1, "total_visits": 1, "total_income": Decimal("0")}

    def test_sales_for_day(self, prescribed_visit, pharmacy_ctx, medicines):
        prescription = Prescription.objects.get(visit=prescribed_visit)
        dispense(
            pharmacy_ctx,
            prescription.pk,
            sale_items=[{"medicine_id": medicines["drops"].pk, "quantity": 2}],
            payment_method="cash",
        )

        sales = list(sales_for_day())

        assert len(sales) == 1
        assert sales[0].total_amount == Decimal("700.00")


@pytest.mark.django_db
class TestStaffName:
    def test_prefers_profile_name(self, doctor):
        assert staff_name(doctor) == "Dr. Smith"

    def test_falls_back_to_username(self, django_user_model):
        user = django_user_model.objects.create_user(username="nobody")

        assert staff_name(user) == "nobody"

    def test_profile_without_name(self, django_user_model):
        user = django_user_model.objects.create_user(username="blank", first_name="Bea", last_name="Lank")
        StaffProfile.objects.create(user=user, name="")

        assert staff_name(user) == "Bea Lank"

    def test_none(self):
        assert staff_name(None) == ""
