"""Models for django-clinic-flow.

Provides:
- StaffProfile, UserRole: staff identity and station role assignment
- Patient: identity record referenced by visits
- Visit: the aggregate root, carrying status and the per-day queue number
- DailyQueueCounter: atomic per-day queue number counter
- EyeMeasurement: at most one per visit
- Prescription, PrescriptionMedicine: at most one prescription per visit
- Medicine: inventory with a non-negative stock count
- PharmacySale, PharmacySaleItem: point-of-sale record for a prescription
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from . import graph


class ClinicBaseModel(models.Model):
    """Base model with UUID primary key and timestamps."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class AppRole(models.TextChoices):
    RECEPTION = "reception", _("Reception")
    EYE_MEASUREMENT = "eye_measurement", _("Eye Measurement")
    DOCTOR = "doctor", _("Doctor")
    PHARMACY = "pharmacy", _("Pharmacy")
    ADMIN = "admin", _("Admin")


class VisitStatus(models.TextChoices):
    WAITING = graph.WAITING, _("Waiting")
    EYE_MEASUREMENT = graph.EYE_MEASUREMENT, _("Eye Measurement")
    WITH_DOCTOR = graph.WITH_DOCTOR, _("With Doctor")
    IN_CONSULTATION = graph.IN_CONSULTATION, _("In Consultation")
    PHARMACY = graph.PHARMACY, _("Pharmacy")
    COMPLETED = graph.COMPLETED, _("Completed")
    REGISTERED = graph.REGISTERED, _("Registered")
    PRESCRIBED = graph.PRESCRIBED, _("Prescribed")


class PaymentMethod(models.TextChoices):
    CASH = "cash", _("Cash")
    CARD = "card", _("Card")
    MOBILE = "mobile", _("Mobile")


class Gender(models.TextChoices):
    MALE = "male", _("Male")
    FEMALE = "female", _("Female")
    OTHER = "other", _("Other")


# =============================================================================
# Staff
# =============================================================================

class StaffProfile(ClinicBaseModel):
    """Display identity of a staff user."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="clinic_profile",
    )
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    avatar_url = models.URLField(blank=True)

    class Meta:
        db_table = "profiles"
        ordering = ["name"]

    def __str__(self):
        return self.name


class UserRole(ClinicBaseModel):
    """
    Assigns a station role to a user.

    Modeled as many-to-many; in practice each staff member holds one role.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="clinic_roles",
    )
    role = models.CharField(max_length=20, choices=AppRole.choices)
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="clinic_roles_assigned",
        help_text="User who assigned this role",
    )

    class Meta:
        db_table = "user_roles"
        constraints = [
            models.UniqueConstraint(fields=["user", "role"], name="unique_user_role"),
        ]

    def __str__(self):
        return f"{self.user} - {self.role}"


# =============================================================================
# Patients and visits
# =============================================================================

class Patient(ClinicBaseModel):
    """Identity record. Changed only through administrative correction."""

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=30)
    age = models.PositiveSmallIntegerField(validators=[MaxValueValidator(150)])
    gender = models.CharField(max_length=10, choices=Gender.choices)

    class Meta:
        db_table = "patients"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["phone"], name="patients_phone_idx"),
            models.Index(fields=["name"], name="patients_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone})"


class Visit(ClinicBaseModel):
    """
    One patient's single-day journey through the clinic stations.

    The station that owns the visit is determined by its status.
    Queue numbers are unique per queue_date (the local creation day).
    """

    patient = models.ForeignKey(
        Patient,
        on_delete=models.PROTECT,
        related_name="visits",
    )
    queue_date = models.DateField(
        help_text="Local calendar day the visit was created (queue number scope)"
    )
    queue_number = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20,
        choices=VisitStatus.choices,
        default=VisitStatus.WAITING,
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="clinic_visits",
    )
    room_number = models.CharField(max_length=20, blank=True)
    payment_method = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        blank=True,
    )
    payment_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "visits"
        ordering = ["queue_date", "queue_number"]
        indexes = [
            models.Index(fields=["queue_date", "status"], name="visits_day_status_idx"),
            models.Index(fields=["doctor", "status"], name="visits_doctor_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["queue_date", "queue_number"],
                name="unique_queue_number_per_day",
            ),
            models.UniqueConstraint(
                fields=["doctor"],
                condition=Q(status=graph.IN_CONSULTATION),
                name="one_consultation_per_doctor",
            ),
            models.CheckConstraint(
                condition=Q(payment_amount__isnull=True) | Q(payment_amount__gte=0),
                name="visit_payment_amount_non_negative",
            ),
        ]

    def __str__(self):
        return f"#{self.queue_number} {self.queue_date} ({self.status})"

    @property
    def is_completed(self) -> bool:
        return self.status == VisitStatus.COMPLETED


class DailyQueueCounter(ClinicBaseModel):
    """Last queue number handed out for a day. Locked with select_for_update."""

    day = models.DateField(unique=True)
    last_number = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "visit_queue_counters"

    def __str__(self):
        return f"{self.day}: {self.last_number}"


# =============================================================================
# Eye measurement
# =============================================================================

def _diopter_field():
    return models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)


def _axis_field():
    return models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(180)],
    )


class EyeMeasurement(ClinicBaseModel):
    """Refraction and pressure readings taken at the eye station."""

    visit = models.OneToOneField(
        Visit,
        on_delete=models.CASCADE,
        related_name="eye_measurement",
    )
    visual_acuity_right = models.CharField(max_length=20, blank=True)
    visual_acuity_left = models.CharField(max_length=20, blank=True)
    right_sph = _diopter_field()
    right_cyl = _diopter_field()
    right_axis = _axis_field()
    left_sph = _diopter_field()
    left_cyl = _diopter_field()
    left_axis = _axis_field()
    pd = models.DecimalField(
        max_digits=4, decimal_places=1, null=True, blank=True,
        help_text="Pupillary distance in mm",
    )
    iop_right = models.DecimalField(
        max_digits=4, decimal_places=1, null=True, blank=True,
        help_text="Intraocular pressure, mmHg",
    )
    iop_left = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="eye_measurements",
    )

    class Meta:
        db_table = "eye_measurements"

    def __str__(self):
        return f"Measurement for {self.visit}"


# =============================================================================
# Inventory
# =============================================================================

class Medicine(ClinicBaseModel):
    """Stock-keeping medicine. Stock never goes below zero."""

    name = models.CharField(max_length=200, unique=True)
    category = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    stock = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=10)

    class Meta:
        db_table = "medicines"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(condition=Q(price__gte=0), name="medicine_price_non_negative"),
            models.CheckConstraint(condition=Q(stock__gte=0), name="medicine_stock_non_negative"),
        ]

    def __str__(self):
        return self.name

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.low_stock_threshold


# =============================================================================
# Prescriptions
# =============================================================================

class Prescription(ClinicBaseModel):
    """The doctor's prescription for a visit. At most one per visit."""

    visit = models.OneToOneField(
        Visit,
        on_delete=models.PROTECT,
        related_name="prescription",
    )
    diagnosis = models.TextField()
    follow_up_note = models.TextField(blank=True)
    buy_from_clinic = models.BooleanField(
        default=True,
        help_text="Patient buys medicines at the clinic pharmacy",
    )
    dispensed = models.BooleanField(default=False)
    dispensed_at = models.DateTimeField(null=True, blank=True)
    dispensed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="dispensed_prescriptions",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="prescriptions",
    )

    class Meta:
        db_table = "prescriptions"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["dispensed", "created_at"], name="prescriptions_pending_idx"),
        ]

    def __str__(self):
        return f"Prescription for {self.visit}"


class PrescriptionMedicine(ClinicBaseModel):
    """Line item of a prescription. medicine_name is snapshotted at prescribing time."""

    prescription = models.ForeignKey(
        Prescription,
        on_delete=models.CASCADE,
        related_name="items",
    )
    medicine = models.ForeignKey(
        Medicine,
        on_delete=models.PROTECT,
        related_name="prescription_items",
    )
    medicine_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    dosage = models.CharField(max_length=200)

    class Meta:
        db_table = "prescription_medicines"
        constraints = [
            models.UniqueConstraint(
                fields=["prescription", "medicine"],
                name="unique_medicine_per_prescription",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="prescription_medicine_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.medicine_name} x{self.quantity}"


# =============================================================================
# Pharmacy sales
# =============================================================================

class PharmacySale(ClinicBaseModel):
    """Point-of-sale record tied one-to-one to a dispensed prescription."""

    prescription = models.OneToOneField(
        Prescription,
        on_delete=models.PROTECT,
        related_name="sale",
    )
    visit = models.ForeignKey(
        Visit,
        on_delete=models.PROTECT,
        related_name="pharmacy_sales",
    )
    patient = models.ForeignKey(
        Patient,
        on_delete=models.PROTECT,
        related_name="pharmacy_sales",
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    payment_method = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        blank=True,
    )
    paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="pharmacy_sales",
    )

    class Meta:
        db_table = "pharmacy_sales"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="pharmacy_sale_total_non_negative",
            ),
        ]

    def __str__(self):
        return f"Sale {self.total_amount} for {self.visit}"


class PharmacySaleItem(ClinicBaseModel):
    """Line item of a sale with a snapshotted name and unit price."""

    sale = models.ForeignKey(
        PharmacySale,
        on_delete=models.CASCADE,
        related_name="items",
    )
    medicine = models.ForeignKey(
        Medicine,
        on_delete=models.PROTECT,
        related_name="sale_items",
    )
    medicine_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "pharmacy_sale_items"
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="pharmacy_sale_item_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.medicine_name} x{self.quantity} @ {self.unit_price}"
