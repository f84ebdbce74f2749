"""Shared fixtures for django-clinic-flow tests."""

from decimal import Decimal

import pytest

from django_clinic_flow.conf import clear_caches
from django_clinic_flow.context import get_station_context
from django_clinic_flow.models import AppRole, Medicine, Patient, StaffProfile, UserRole
from django_clinic_flow.printing import LocMemPrintBackend


def make_staff(django_user_model, username, role, name=None):
    user = django_user_model.objects.create_user(username=username, password="test")
    StaffProfile.objects.create(user=user, name=name or username.title())
    if role is not None:
        UserRole.objects.create(user=user, role=role)
    return user


@pytest.fixture(autouse=True)
def reset_clinic_flow_state():
    """Clear validator caches and the print outbox between tests."""
    clear_caches()
    LocMemPrintBackend.outbox.clear()
    yield
    clear_caches()
    LocMemPrintBackend.outbox.clear()


@pytest.fixture
def admin_user(db, django_user_model):
    return make_staff(django_user_model, "admin", AppRole.ADMIN, name="Clinic Admin")


@pytest.fixture
def receptionist(db, django_user_model):
    return make_staff(django_user_model, "reception", AppRole.RECEPTION, name="Rita Reception")


@pytest.fixture
def eye_tech(db, django_user_model):
    return make_staff(django_user_model, "eyetech", AppRole.EYE_MEASUREMENT, name="Evan Eyes")


@pytest.fixture
def doctor(db, django_user_model):
    return make_staff(django_user_model, "drsmith", AppRole.DOCTOR, name="Dr. Smith")


@pytest.fixture
def other_doctor(db, django_user_model):
    return make_staff(django_user_model, "drjones", AppRole.DOCTOR, name="Dr. Jones")


@pytest.fixture
def pharmacist(db, django_user_model):
    return make_staff(django_user_model, "pharma", AppRole.PHARMACY, name="Paula Pharmacy")


@pytest.fixture
def admin_ctx(admin_user):
    return get_station_context(admin_user)


@pytest.fixture
def reception_ctx(receptionist):
    return get_station_context(receptionist)


@pytest.fixture
def eye_ctx(eye_tech):
    return get_station_context(eye_tech)


@pytest.fixture
def doctor_ctx(doctor):
    return get_station_context(doctor)


@pytest.fixture
def pharmacy_ctx(pharmacist):
    return get_station_context(pharmacist)


@pytest.fixture
def patient(db):
    return Patient.objects.create(name="Amina Khan", phone="0300-1234567", age=42, gender="female")


@pytest.fixture
def medicines(db):
    """A small inventory keyed by short name."""
    return {
        "drops": Medicine.objects.create(
            name="Moxifloxacin Eye Drops", category="Antibiotic", price=Decimal("350.00"), stock=20
        ),
        "tears": Medicine.objects.create(
            name="Artificial Tears", category="Lubricant", price=Decimal("120.00"), stock=3
        ),
        "timolol": Medicine.objects.create(
            name="Timolol 0.5%", category="Glaucoma", price=Decimal("480.50"), stock=50
        ),
    }


@pytest.fixture
def visit(reception_ctx, patient, doctor):
    """A waiting visit assigned to `doctor`."""
    from django_clinic_flow.services import create_visit

    return create_visit(reception_ctx, patient.pk, doctor=doctor, room_number="2")


@pytest.fixture
def visit_with_doctor(visit, reception_ctx, eye_ctx):
    """A measured visit waiting for the doctor."""
    from django_clinic_flow.services import record_measurement, send_to_eye_measurement

    send_to_eye_measurement(reception_ctx, visit.pk)
    return record_measurement(eye_ctx, visit.pk, visual_acuity_right="6/9", right_sph="-1.25")


@pytest.fixture
def prescribed_visit(visit_with_doctor, doctor_ctx, medicines):
    """A visit at the pharmacy with drops x2 and tears x5 prescribed."""
    from django_clinic_flow.services import create_prescription

    return create_prescription(
        doctor_ctx,
        visit_with_doctor.pk,
        diagnosis="Bacterial conjunctivitis",
        medicines=[
            {"medicine_id": medicines["drops"].pk, "quantity": 2, "dosage": "1 drop 4x daily"},
            {"medicine_id": medicines["tears"].pk, "quantity": 5, "dosage": "As needed"},
        ],
    )
