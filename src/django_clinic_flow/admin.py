"""Django admin configuration for clinic flow.

Status, queue numbers and stock are read-only here: they change only through
the service functions, which enforce the lifecycle rules.
"""

from django.contrib import admin

from .models import (
    EyeMeasurement,
    Medicine,
    Patient,
    PharmacySale,
    PharmacySaleItem,
    Prescription,
    PrescriptionMedicine,
    StaffProfile,
    UserRole,
    Visit,
)


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ["name", "user", "email", "created_at"]
    search_fields = ["name", "email", "user__username"]


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ["user", "role", "assigned_by", "created_at"]
    list_filter = ["role"]
    search_fields = ["user__username"]


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ["name", "phone", "age", "gender", "created_at"]
    list_filter = ["gender"]
    search_fields = ["name", "phone"]


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    """Admin for Visit model."""

    list_display = [
        "queue_number",
        "queue_date",
        "patient",
        "status",
        "doctor",
        "room_number",
        "payment_amount",
    ]
    list_filter = ["status", "queue_date"]
    search_fields = ["patient__name", "patient__phone"]
    readonly_fields = [
        "id",
        "queue_date",
        "queue_number",
        "status",
        "completed_at",
        "created_at",
        "updated_at",
    ]


@admin.register(EyeMeasurement)
class EyeMeasurementAdmin(admin.ModelAdmin):
    list_display = ["visit", "visual_acuity_right", "visual_acuity_left", "created_by", "created_at"]
    readonly_fields = ["id", "visit", "created_by", "created_at", "updated_at"]


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ["name", "category", "price", "stock", "low_stock_threshold"]
    list_filter = ["category"]
    search_fields = ["name"]
    readonly_fields = ["stock"]


class PrescriptionMedicineInline(admin.TabularInline):
    """Inline for prescription lines."""

    model = PrescriptionMedicine
    extra = 0
    readonly_fields = ["medicine", "medicine_name", "quantity", "dosage"]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    """Admin for Prescription model."""

    list_display = ["visit", "diagnosis", "buy_from_clinic", "dispensed", "created_by", "created_at"]
    list_filter = ["dispensed", "buy_from_clinic"]
    search_fields = ["visit__patient__name", "diagnosis"]
    readonly_fields = [
        "id",
        "visit",
        "buy_from_clinic",
        "dispensed",
        "dispensed_at",
        "dispensed_by",
        "created_by",
        "created_at",
        "updated_at",
    ]
    inlines = [PrescriptionMedicineInline]


class PharmacySaleItemInline(admin.TabularInline):
    """Inline for sale lines."""

    model = PharmacySaleItem
    extra = 0
    readonly_fields = ["medicine", "medicine_name", "quantity", "unit_price", "total_price"]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(PharmacySale)
class PharmacySaleAdmin(admin.ModelAdmin):
    """Admin for PharmacySale model."""

    list_display = ["visit", "patient", "total_amount", "payment_method", "paid", "created_at"]
    list_filter = ["paid", "payment_method"]
    search_fields = ["patient__name"]
    readonly_fields = [
        "id",
        "prescription",
        "visit",
        "patient",
        "total_amount",
        "created_by",
        "created_at",
        "updated_at",
    ]
    inlines = [PharmacySaleItemInline]
