"""Tests for patient registration and staff management."""

import pytest
from django.core.exceptions import PermissionDenied

from django_clinic_flow.context import get_station_context
from django_clinic_flow.exceptions import NotFoundError, ValidationError
from django_clinic_flow.models import Patient, StaffProfile, UserRole
from django_clinic_flow.services import (
    change_role,
    create_staff,
    register_patient,
    revoke_roles,
    update_patient,
    update_staff_name,
)


@pytest.mark.django_db
class TestPatients:
    """Tests for register_patient and update_patient."""

    def test_register(self, reception_ctx):
        patient = register_patient(reception_ctx, " Sara Malik ", "0321-5550000", "27", "female")

        assert patient.name == "Sara Malik"
        assert patient.age == 27
        assert Patient.objects.count() == 1

    @pytest.mark.parametrize(
        "name,phone,age,gender",
        [
            ("", "0321", 20, "male"),
            ("Sara", "", 20, "female"),
            ("Sara", "0321", 151, "female"),
            ("Sara", "0321", -1, "female"),
            ("Sara", "0321", "old", "female"),
            ("Sara", "0321", 20, "unknown"),
        ],
    )
    def test_register_validation(self, reception_ctx, name, phone, age, gender):
        with pytest.raises(ValidationError):
            register_patient(reception_ctx, name, phone, age, gender)

        assert Patient.objects.count() == 0

    def test_pharmacy_cannot_register(self, pharmacy_ctx):
        with pytest.raises(PermissionDenied):
            register_patient(pharmacy_ctx, "Sara", "0321", 20, "female")

    def test_admin_correction(self, admin_ctx, patient):
        patient = update_patient(admin_ctx, patient.pk, phone="0333-0000000", age=43)

        assert patient.phone == "0333-0000000"
        assert patient.age == 43
        assert patient.name == "Amina Khan"

    def test_correction_is_admin_only(self, reception_ctx, patient):
        with pytest.raises(PermissionDenied):
            update_patient(reception_ctx, patient.pk, age=43)

    def test_correction_of_unknown_patient(self, admin_ctx):
        with pytest.raises(NotFoundError):
            update_patient(admin_ctx, "3f0c6a8e-0000-4000-8000-000000000000", age=1)


@pytest.mark.django_db
class TestStaff:
    """Tests for staff creation and role management."""

    def test_create_staff(self, admin_ctx, admin_user):
        user = create_staff(admin_ctx, "nurse1", "nurse@example.com", "s3cret!", "Nadia Nurse", "eye_measurement")

        assert user.check_password("s3cret!")
        assert StaffProfile.objects.get(user=user).name == "Nadia Nurse"
        role = UserRole.objects.get(user=user)
        assert role.role == "eye_measurement"
        assert role.assigned_by == admin_user
        assert get_station_context(user).has_role("eye_measurement")

    def test_duplicate_username(self, admin_ctx, doctor):
        with pytest.raises(ValidationError) as exc_info:
            create_staff(admin_ctx, "drsmith", "", "pw", "Another Smith", "doctor")

        assert exc_info.value.field == "username"

    def test_unknown_role(self, admin_ctx):
        with pytest.raises(ValidationError):
            create_staff(admin_ctx, "x", "", "pw", "X", "janitor")

    def test_only_admin_creates_staff(self, doctor_ctx):
        with pytest.raises(PermissionDenied):
            create_staff(doctor_ctx, "x", "", "pw", "X", "doctor")

    def test_change_role_replaces_roles(self, admin_ctx, eye_tech):
        change_role(admin_ctx, eye_tech, "pharmacy")

        assert list(UserRole.objects.filter(user=eye_tech).values_list("role", flat=True)) == ["pharmacy"]

    def test_revoke_roles(self, admin_ctx, pharmacist):
        assert revoke_roles(admin_ctx, pharmacist) == 1

        assert get_station_context(pharmacist).roles == frozenset()

    def test_cannot_revoke_own_roles(self, admin_ctx, admin_user):
        with pytest.raises(ValidationError):
            revoke_roles(admin_ctx, admin_user)

    def test_update_staff_name(self, admin_ctx, doctor):
        update_staff_name(admin_ctx, doctor, "Dr. Ayesha Smith")

        assert StaffProfile.objects.get(user=doctor).name == "Dr. Ayesha Smith"

    def test_update_staff_name_requires_name(self, admin_ctx, doctor):
        with pytest.raises(ValidationError):
            update_staff_name(admin_ctx, doctor, "  ")
