"""Service functions for the visit lifecycle.

Every mutating operation takes a StationContext first and runs in one
transaction. The visit row is locked with select_for_update() before its
status is read, so two stations acting on the same visit are serialized.

Provides:
- create_visit: Register a visit with today's queue number
- send_to_eye_measurement, record_measurement, correct_measurement
- call_for_consultation, create_prescription
- dispense, mark_sale_paid
- record_payment, assign_visit
- register_patient, update_patient
- create_staff, change_role, revoke_roles, update_staff_name
- get_allowed_transitions, validate_transition
"""

import logging
from decimal import Decimal, InvalidOperation

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.core.validators import DecimalValidator
from django.db import IntegrityError, transaction
from django.utils import timezone

from . import graph
from .conf import get_transition_validators
from .context import StationContext, requires_role
from .exceptions import (
    AlreadyDispensedError,
    ConsultationInProgressError,
    DuplicateRecordError,
    InvalidTransition,
    NotFoundError,
    SaleAlreadyPaidError,
    TransitionBlocked,
    ValidationError,
)
from .models import (
    AppRole,
    EyeMeasurement,
    Gender,
    Medicine,
    Patient,
    PaymentMethod,
    PharmacySale,
    PharmacySaleItem,
    Prescription,
    PrescriptionMedicine,
    StaffProfile,
    UserRole,
    Visit,
    VisitStatus,
)
from .printing import queue_print
from .queue_numbers import run_with_queue_number
from .selectors import staff_name
from .stock import decrement_stock

logger = logging.getLogger(__name__)

# Upper bound of a PositiveIntegerField on every supported backend
MAX_QUANTITY = 2147483647


# =============================================================================
# Lookups and field cleaning
# =============================================================================

def _get_visit(visit_id, for_update: bool = False) -> Visit:
    visits = Visit.objects.select_for_update() if for_update else Visit.objects
    try:
        return visits.get(pk=visit_id)
    except (Visit.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("Visit", visit_id)


def _get_patient(patient_id) -> Patient:
    try:
        return Patient.objects.get(pk=patient_id)
    except (Patient.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("Patient", patient_id)


def _check_doctor(user) -> None:
    if not UserRole.objects.filter(user=user, role=AppRole.DOCTOR).exists():
        raise ValidationError(f"{staff_name(user)} does not hold the doctor role", field="doctor")


def _clean_decimal(value, field: str, minimum=None, model_field=None):
    """
    Parse a decimal input, or None for blank.

    NaN and infinities are rejected. With `model_field`, the value must also
    fit that DecimalField's max_digits and decimal_places.
    """
    if value is None or value == "":
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    if not result.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    if model_field is not None:
        try:
            DecimalValidator(model_field.max_digits, model_field.decimal_places)(result)
        except DjangoValidationError as e:
            raise ValidationError(f"Invalid {field}: {' '.join(e.messages)}", field=field)
    return result


def _clean_int(value, field: str, minimum=None, maximum=None):
    if value is None or value == "":
        return None
    try:
        result = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} must be at most {maximum}", field=field)
    return result


def _clean_payment_method(method) -> str:
    if method not in PaymentMethod.values:
        raise ValidationError(f"Unknown payment method: {method!r}", field="payment_method")
    return method


# =============================================================================
# Transitions
# =============================================================================

def get_allowed_transitions(visit: Visit) -> list[str]:
    """Statuses the visit may move to from its current status."""
    return graph.allowed_transitions(visit.status)


def validate_transition(visit: Visit, to_status: str) -> tuple[bool, list[str], list[str]]:
    """
    Validate whether a transition is allowed.

    Checks the status graph first, then every configured validator.

    Returns:
        Tuple of (allowed, hard_blocks, soft_warnings)
    """
    hard_blocks = []
    soft_warnings = []

    if to_status not in get_allowed_transitions(visit):
        if visit.status in graph.TERMINAL_STATUSES:
            hard_blocks.append(f"Cannot transition from terminal status '{visit.status}'")
        else:
            hard_blocks.append(f"Transition from '{visit.status}' to '{to_status}' not allowed")
        return False, hard_blocks, soft_warnings

    for validator in get_transition_validators():
        blocks, warnings = validator.validate(visit, visit.status, to_status)
        hard_blocks.extend(blocks)
        soft_warnings.extend(warnings)

    return not hard_blocks, hard_blocks, soft_warnings


def _transition(visit: Visit, to_status: str, by_user=None) -> Visit:
    """
    Move a locked visit to `to_status`.

    Raises:
        InvalidTransition: If to_status is not a successor of the current status
        TransitionBlocked: If a validator returns hard blocks
    """
    from_status = visit.status

    if to_status not in get_allowed_transitions(visit):
        if from_status in graph.TERMINAL_STATUSES:
            raise InvalidTransition(
                from_status, to_status,
                f"Cannot transition from terminal status '{from_status}'"
            )
        raise InvalidTransition(from_status, to_status)

    _, hard_blocks, soft_warnings = validate_transition(visit, to_status)
    if hard_blocks:
        raise TransitionBlocked(from_status, to_status, hard_blocks)
    for warning in soft_warnings:
        logger.warning(f"Visit {visit.pk} {from_status} -> {to_status}: {warning}")

    visit.status = to_status
    if to_status in graph.TERMINAL_STATUSES:
        visit.completed_at = timezone.now()
    visit.save(update_fields=["status", "completed_at", "updated_at"])

    logger.info(f"Visit #{visit.queue_number} {from_status} -> {to_status} by {by_user}")
    return visit


# =============================================================================
# Reception
# =============================================================================

@requires_role(AppRole.RECEPTION)
def create_visit(
    ctx: StationContext,
    patient_id,
    doctor=None,
    room_number: str = "",
    print_slip: bool = False,
) -> Visit:
    """
    Create a visit for an existing patient with today's next queue number.

    Args:
        ctx: Acting station
        patient_id: Patient primary key
        doctor: Optional doctor user to assign
        room_number: Optional room
        print_slip: Print the reception slip after commit

    Returns:
        The created Visit in status 'waiting'

    Raises:
        NotFoundError: If the patient does not exist
        ValidationError: If `doctor` does not hold the doctor role
        QueueNumberConflict: If a queue number could not be allocated
    """
    patient = _get_patient(patient_id)
    if doctor is not None:
        _check_doctor(doctor)

    def insert(day, number):
        return Visit.objects.create(
            patient=patient,
            queue_date=day,
            queue_number=number,
            status=graph.INITIAL_STATUS,
            doctor=doctor,
            room_number=(room_number or "").strip(),
        )

    with transaction.atomic():
        visit = run_with_queue_number(insert)
        if print_slip:
            queue_print("reception_slip", visit)

    logger.info(f"Visit #{visit.queue_number} created for {patient.name} by {ctx.user}")
    return visit


@requires_role(AppRole.RECEPTION)
@transaction.atomic
def send_to_eye_measurement(ctx: StationContext, visit_id) -> Visit:
    """Move a waiting visit to the eye measurement station."""
    visit = _get_visit(visit_id, for_update=True)
    return _transition(visit, graph.EYE_MEASUREMENT, ctx.user)


@requires_role(AppRole.RECEPTION)
@transaction.atomic
def record_payment(ctx: StationContext, visit_id, method: str, amount) -> Visit:
    """Record the consultation payment. Allowed in any status."""
    method = _clean_payment_method(method)
    amount = _clean_decimal(
        amount,
        "payment_amount",
        minimum=Decimal("0"),
        model_field=Visit._meta.get_field("payment_amount"),
    )
    if amount is None:
        raise ValidationError("Payment amount is required", field="payment_amount")

    visit = _get_visit(visit_id, for_update=True)
    visit.payment_method = method
    visit.payment_amount = amount
    visit.save(update_fields=["payment_method", "payment_amount", "updated_at"])

    logger.info(f"Payment {amount} ({method}) recorded for visit #{visit.queue_number}")
    return visit


@requires_role(AppRole.RECEPTION)
@transaction.atomic
def assign_visit(ctx: StationContext, visit_id, doctor=None, room_number: str = None) -> Visit:
    """
    Change the assigned doctor and/or room. Never changes status.

    Raises:
        ValidationError: If `doctor` does not hold the doctor role
        ConsultationInProgressError: If an in-consultation visit is moved to a
            doctor who is already seeing someone
    """
    visit = _get_visit(visit_id, for_update=True)
    update_fields = ["updated_at"]

    if doctor is not None and doctor.pk != visit.doctor_id:
        _check_doctor(doctor)
        if visit.status == VisitStatus.IN_CONSULTATION:
            _ensure_doctor_free(doctor, exclude_visit=visit)
        visit.doctor = doctor
        update_fields.append("doctor")

    if room_number is not None:
        visit.room_number = room_number.strip()
        update_fields.append("room_number")

    try:
        with transaction.atomic():
            visit.save(update_fields=update_fields)
    except IntegrityError:
        if doctor is not None:
            _ensure_doctor_free(doctor, exclude_visit=visit)
        raise

    return visit


# =============================================================================
# Eye measurement
# =============================================================================

MEASUREMENT_FIELDS = {
    "visual_acuity_right",
    "visual_acuity_left",
    "right_sph",
    "right_cyl",
    "right_axis",
    "left_sph",
    "left_cyl",
    "left_axis",
    "pd",
    "iop_right",
    "iop_left",
    "notes",
}


def _clean_measurement(data: dict) -> dict:
    unknown = set(data) - MEASUREMENT_FIELDS
    if unknown:
        raise ValidationError(f"Unknown measurement fields: {sorted(unknown)}")

    cleaned = {}
    for field, value in data.items():
        model_field = EyeMeasurement._meta.get_field(field)
        if field in ("right_axis", "left_axis"):
            cleaned[field] = _clean_int(value, field, minimum=0, maximum=180)
        elif field in ("pd", "iop_right", "iop_left"):
            cleaned[field] = _clean_decimal(value, field, minimum=Decimal("0"), model_field=model_field)
        elif field.endswith("_sph") or field.endswith("_cyl"):
            cleaned[field] = _clean_decimal(value, field, model_field=model_field)
        else:
            cleaned[field] = (value or "").strip()
    return cleaned


# Statuses in which a measurement may still be taken
MEASURABLE_STATUSES = frozenset({graph.WAITING, graph.EYE_MEASUREMENT}) | graph.DOCTOR_STATUSES


@requires_role(AppRole.EYE_MEASUREMENT, AppRole.DOCTOR)
@transaction.atomic
def record_measurement(ctx: StationContext, visit_id, **data) -> Visit:
    """
    Record the visit's eye measurement.

    From 'waiting' or 'eye_measurement' the visit moves to 'with_doctor'.
    In a doctor-owned status the status is left alone.

    Raises:
        InvalidTransition: If the visit is past the doctor or already prescribed
        DuplicateRecordError: If the visit already has a measurement
        ValidationError: If a field is out of range
    """
    visit = _get_visit(visit_id, for_update=True)

    if visit.status not in MEASURABLE_STATUSES or Prescription.objects.filter(visit=visit).exists():
        raise InvalidTransition(
            visit.status, graph.WITH_DOCTOR,
            f"Cannot record a measurement for a visit in '{visit.status}' or already prescribed"
        )
    if EyeMeasurement.objects.filter(visit=visit).exists():
        raise DuplicateRecordError("eye measurement", visit.pk)

    cleaned = _clean_measurement(data)
    try:
        with transaction.atomic():
            EyeMeasurement.objects.create(visit=visit, created_by=ctx.user, **cleaned)
    except IntegrityError:
        raise DuplicateRecordError("eye measurement", visit.pk)

    if visit.status not in graph.DOCTOR_STATUSES:
        _transition(visit, graph.WITH_DOCTOR, ctx.user)
    return visit


@requires_role(AppRole.ADMIN)
@transaction.atomic
def correct_measurement(ctx: StationContext, visit_id, **data) -> EyeMeasurement:
    """Administrative correction of an existing measurement. Never changes status."""
    visit = _get_visit(visit_id, for_update=True)
    measurement = EyeMeasurement.objects.filter(visit=visit).first()
    if measurement is None:
        raise NotFoundError("EyeMeasurement", visit_id)

    cleaned = _clean_measurement(data)
    for field, value in cleaned.items():
        setattr(measurement, field, value)
    measurement.save()

    logger.info(f"Measurement for visit #{visit.queue_number} corrected by {ctx.user}")
    return measurement


# =============================================================================
# Doctor
# =============================================================================

def _ensure_doctor_free(doctor, exclude_visit=None) -> None:
    active = Visit.objects.filter(doctor=doctor, status=VisitStatus.IN_CONSULTATION)
    if exclude_visit is not None:
        active = active.exclude(pk=exclude_visit.pk)
    active = active.first()
    if active is not None:
        raise ConsultationInProgressError(staff_name(doctor), active.pk)


@requires_role(AppRole.DOCTOR)
@transaction.atomic
def call_for_consultation(ctx: StationContext, visit_id, doctor) -> Visit:
    """
    Call an assigned visit into the doctor's room.

    Raises:
        PermissionDenied: If a non-admin calls on behalf of another doctor
        ValidationError: If the visit is not assigned to `doctor`
        InvalidTransition: If the visit is not waiting or with the doctor
        ConsultationInProgressError: If the doctor is already seeing a patient
    """
    if not ctx.is_admin and doctor.pk != ctx.user.pk:
        raise PermissionDenied("Doctors can only call their own patients")

    visit = _get_visit(visit_id, for_update=True)
    if visit.doctor_id != doctor.pk:
        raise ValidationError("Visit is not assigned to this doctor", field="doctor")
    if visit.status not in (graph.WAITING, graph.WITH_DOCTOR):
        raise InvalidTransition(visit.status, graph.IN_CONSULTATION)

    _ensure_doctor_free(doctor, exclude_visit=visit)
    try:
        with transaction.atomic():
            _transition(visit, graph.IN_CONSULTATION, ctx.user)
    except IntegrityError:
        visit.refresh_from_db(fields=["status", "completed_at", "updated_at"])
        _ensure_doctor_free(doctor, exclude_visit=visit)
        raise
    return visit


def _clean_prescription_lines(medicines) -> list[dict]:
    lines = []
    seen = set()
    for entry in medicines or []:
        medicine_id = entry.get("medicine_id")
        if medicine_id is None:
            raise ValidationError("Each medicine needs a medicine_id", field="medicines")
        if str(medicine_id) in seen:
            raise ValidationError("A medicine is listed more than once", field="medicines")
        seen.add(str(medicine_id))

        quantity = _clean_int(entry.get("quantity"), "quantity", minimum=1, maximum=MAX_QUANTITY)
        if quantity is None:
            raise ValidationError("quantity is required", field="quantity")
        dosage = (entry.get("dosage") or "").strip()
        if not dosage:
            raise ValidationError("dosage is required", field="dosage")

        lines.append({"medicine_id": medicine_id, "quantity": quantity, "dosage": dosage})
    return lines


def _get_medicines(ids) -> dict:
    try:
        found = {str(m.pk): m for m in Medicine.objects.filter(pk__in=ids)}
    except (ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("Medicine", ids)
    for medicine_id in ids:
        if str(medicine_id) not in found:
            raise NotFoundError("Medicine", medicine_id)
    return found


@requires_role(AppRole.DOCTOR)
@transaction.atomic
def create_prescription(
    ctx: StationContext,
    visit_id,
    diagnosis: str,
    medicines: list[dict],
    buy_from_clinic: bool = True,
    follow_up_note: str = "",
    print_sheet: bool = False,
) -> Visit:
    """
    Write the visit's prescription and route it to pharmacy or completion.

    Args:
        medicines: List of {"medicine_id", "quantity", "dosage"} dicts
        buy_from_clinic: If True the visit moves to 'pharmacy', else 'completed'

    Raises:
        InvalidTransition: If the visit is not with the doctor
        DuplicateRecordError: If the visit already has a prescription
        ValidationError: On empty diagnosis/dosage, quantity < 1 or a repeated medicine
        NotFoundError: If a medicine does not exist
    """
    diagnosis = (diagnosis or "").strip()
    if not diagnosis:
        raise ValidationError("Diagnosis is required", field="diagnosis")
    lines = _clean_prescription_lines(medicines)

    visit = _get_visit(visit_id, for_update=True)
    to_status = graph.PHARMACY if buy_from_clinic else graph.COMPLETED
    if visit.status not in graph.DOCTOR_STATUSES:
        raise InvalidTransition(
            visit.status, to_status, f"Cannot prescribe for a visit in '{visit.status}'"
        )
    if Prescription.objects.filter(visit=visit).exists():
        raise DuplicateRecordError("prescription", visit.pk)

    found = _get_medicines([line["medicine_id"] for line in lines])

    try:
        with transaction.atomic():
            prescription = Prescription.objects.create(
                visit=visit,
                diagnosis=diagnosis,
                follow_up_note=(follow_up_note or "").strip(),
                buy_from_clinic=buy_from_clinic,
                created_by=ctx.user,
            )
    except IntegrityError:
        raise DuplicateRecordError("prescription", visit.pk)

    PrescriptionMedicine.objects.bulk_create([
        PrescriptionMedicine(
            prescription=prescription,
            medicine=found[str(line["medicine_id"])],
            medicine_name=found[str(line["medicine_id"])].name,
            quantity=line["quantity"],
            dosage=line["dosage"],
        )
        for line in lines
    ])

    _transition(visit, to_status, ctx.user)
    if print_sheet:
        queue_print("prescription", prescription)
    return visit


# =============================================================================
# Pharmacy
# =============================================================================

def _build_sale_items(sale_items) -> list[PharmacySaleItem]:
    entries = list(sale_items)
    found = _get_medicines([entry.get("medicine_id") for entry in entries])

    items = []
    for entry in entries:
        medicine = found[str(entry["medicine_id"])]
        quantity = _clean_int(entry.get("quantity"), "quantity", minimum=1, maximum=MAX_QUANTITY)
        if quantity is None:
            raise ValidationError("quantity is required", field="quantity")
        unit_price = _clean_decimal(
            entry.get("unit_price"),
            "unit_price",
            minimum=Decimal("0"),
            model_field=PharmacySaleItem._meta.get_field("unit_price"),
        )
        if unit_price is None:
            unit_price = medicine.price
        items.append(PharmacySaleItem(
            medicine=medicine,
            medicine_name=medicine.name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=unit_price * quantity,
        ))
    return items


@requires_role(AppRole.PHARMACY)
@transaction.atomic
def dispense(
    ctx: StationContext,
    prescription_id,
    sale_items: list[dict] = None,
    payment_method: str = None,
    print_receipt: bool = False,
) -> Visit:
    """
    Dispense a prescription and complete its visit.

    Stock is decremented once per prescription line, clamped at zero. If
    sale_items are given a PharmacySale is recorded; it is marked paid when
    payment_method is given. A payment_method without sale_items is rejected.

    Args:
        sale_items: Optional list of {"medicine_id", "quantity", "unit_price"}
            dicts; unit_price defaults to the medicine's current price

    Raises:
        NotFoundError: If the prescription or a sale medicine does not exist
        AlreadyDispensedError: If the prescription was already dispensed
        InvalidTransition: If the visit is not at the pharmacy
        ValidationError: On a sale for a prescription not bought at the clinic,
            or a payment_method with nothing sold
    """
    try:
        prescription = Prescription.objects.select_for_update().get(pk=prescription_id)
    except (Prescription.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("Prescription", prescription_id)

    if prescription.dispensed:
        raise AlreadyDispensedError(prescription.pk)

    visit = _get_visit(prescription.visit_id, for_update=True)
    if visit.status != VisitStatus.PHARMACY:
        raise InvalidTransition(
            visit.status, graph.COMPLETED, f"Visit is in '{visit.status}', not at the pharmacy"
        )
    if sale_items and not prescription.buy_from_clinic:
        raise ValidationError(
            "Prescription is not marked for purchase at the clinic pharmacy", field="sale_items"
        )
    if payment_method is not None:
        if not sale_items:
            raise ValidationError("payment_method requires sale_items", field="payment_method")
        payment_method = _clean_payment_method(payment_method)

    for item in prescription.items.all():
        decrement_stock(item.medicine_id, item.quantity)

    sale = None
    if sale_items:
        items = _build_sale_items(sale_items)
        now = timezone.now()
        sale = PharmacySale.objects.create(
            prescription=prescription,
            visit=visit,
            patient_id=visit.patient_id,
            total_amount=sum((item.total_price for item in items), Decimal("0")),
            payment_method=payment_method or "",
            paid=payment_method is not None,
            paid_at=now if payment_method is not None else None,
            created_by=ctx.user,
        )
        for item in items:
            item.sale = sale
        PharmacySaleItem.objects.bulk_create(items)

    prescription.dispensed = True
    prescription.dispensed_at = timezone.now()
    prescription.dispensed_by = ctx.user
    prescription.save(update_fields=["dispensed", "dispensed_at", "dispensed_by", "updated_at"])

    _transition(visit, graph.COMPLETED, ctx.user)

    if sale is not None and print_receipt:
        queue_print("pharmacy_receipt", sale)
    logger.info(f"Prescription {prescription.pk} dispensed by {ctx.user}")
    return visit


@requires_role(AppRole.PHARMACY)
@transaction.atomic
def mark_sale_paid(ctx: StationContext, sale_id, payment_method: str) -> PharmacySale:
    """Settle an unpaid sale."""
    payment_method = _clean_payment_method(payment_method)
    try:
        sale = PharmacySale.objects.select_for_update().get(pk=sale_id)
    except (PharmacySale.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("PharmacySale", sale_id)

    if sale.paid:
        raise SaleAlreadyPaidError(sale.pk)

    sale.paid = True
    sale.paid_at = timezone.now()
    sale.payment_method = payment_method
    sale.save(update_fields=["paid", "paid_at", "payment_method", "updated_at"])
    return sale


# =============================================================================
# Patients
# =============================================================================

def _clean_patient_fields(data: dict) -> dict:
    cleaned = {}
    for field in ("name", "phone"):
        if field in data:
            value = (data[field] or "").strip()
            if not value:
                raise ValidationError(f"{field} is required", field=field)
            cleaned[field] = value
    if "age" in data:
        age = _clean_int(data["age"], "age", minimum=0, maximum=150)
        if age is None:
            raise ValidationError("age is required", field="age")
        cleaned["age"] = age
    if "gender" in data:
        if data["gender"] not in Gender.values:
            raise ValidationError(f"Unknown gender: {data['gender']!r}", field="gender")
        cleaned["gender"] = data["gender"]
    return cleaned


@requires_role(AppRole.RECEPTION)
def register_patient(ctx: StationContext, name: str, phone: str, age: int, gender: str) -> Patient:
    """Create a patient record."""
    cleaned = _clean_patient_fields({"name": name, "phone": phone, "age": age, "gender": gender})
    patient = Patient.objects.create(**cleaned)
    logger.info(f"Patient {patient.name} registered by {ctx.user}")
    return patient


@requires_role(AppRole.ADMIN)
def update_patient(ctx: StationContext, patient_id, **changes) -> Patient:
    """Administrative correction of a patient's name, phone, age or gender."""
    unknown = set(changes) - {"name", "phone", "age", "gender"}
    if unknown:
        raise ValidationError(f"Unknown patient fields: {sorted(unknown)}")

    patient = _get_patient(patient_id)
    for field, value in _clean_patient_fields(changes).items():
        setattr(patient, field, value)
    patient.save()
    return patient


# =============================================================================
# Staff
# =============================================================================

def _clean_role(role) -> str:
    if role not in AppRole.values:
        raise ValidationError(f"Unknown role: {role!r}", field="role")
    return role


@requires_role(AppRole.ADMIN)
@transaction.atomic
def create_staff(
    ctx: StationContext,
    username: str,
    email: str,
    password: str,
    name: str,
    role: str,
):
    """Create a login, its StaffProfile and its station role."""
    User = get_user_model()
    username = (username or "").strip()
    name = (name or "").strip()
    role = _clean_role(role)

    if not username:
        raise ValidationError("username is required", field="username")
    if not name:
        raise ValidationError("name is required", field="name")
    if not password:
        raise ValidationError("password is required", field="password")
    if User.objects.filter(username=username).exists():
        raise ValidationError(f"User '{username}' already exists", field="username")

    user = User.objects.create_user(username=username, email=email or "", password=password)
    StaffProfile.objects.create(user=user, name=name, email=email or "")
    UserRole.objects.create(user=user, role=role, assigned_by=ctx.user)

    logger.info(f"Staff {username} created with role {role} by {ctx.user}")
    return user


@requires_role(AppRole.ADMIN)
@transaction.atomic
def change_role(ctx: StationContext, user, role: str) -> UserRole:
    """Replace a staff member's roles with a single role."""
    role = _clean_role(role)
    UserRole.objects.filter(user=user).exclude(role=role).delete()
    user_role, _ = UserRole.objects.get_or_create(
        user=user, role=role, defaults={"assigned_by": ctx.user}
    )
    return user_role


@requires_role(AppRole.ADMIN)
def revoke_roles(ctx: StationContext, user) -> int:
    """
    Remove every station role from a staff member.

    The login stays; without roles every guarded service refuses it.
    Returns the number of roles removed.
    """
    if user.pk == ctx.user.pk:
        raise ValidationError("You cannot revoke your own roles", field="user")
    deleted, _ = UserRole.objects.filter(user=user).delete()
    logger.info(f"Roles revoked for {user} by {ctx.user}")
    return deleted


@requires_role(AppRole.ADMIN)
def update_staff_name(ctx: StationContext, user, name: str) -> StaffProfile:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", field="name")
    profile, _ = StaffProfile.objects.update_or_create(user=user, defaults={"name": name})
    return profile
