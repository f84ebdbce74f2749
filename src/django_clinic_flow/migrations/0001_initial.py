# Generated manually for standalone django-clinic-flow package

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def _base_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


PAYMENT_METHOD_CHOICES = [("cash", "Cash"), ("card", "Card"), ("mobile", "Mobile")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="StaffProfile",
            fields=_base_fields() + [
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("avatar_url", models.URLField(blank=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="clinic_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "profiles",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="UserRole",
            fields=_base_fields() + [
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("reception", "Reception"),
                            ("eye_measurement", "Eye Measurement"),
                            ("doctor", "Doctor"),
                            ("pharmacy", "Pharmacy"),
                            ("admin", "Admin"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="clinic_roles",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "assigned_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who assigned this role",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="clinic_roles_assigned",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "user_roles",
                "constraints": [
                    models.UniqueConstraint(fields=("user", "role"), name="unique_user_role"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Patient",
            fields=_base_fields() + [
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(max_length=30)),
                (
                    "age",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MaxValueValidator(150)]
                    ),
                ),
                (
                    "gender",
                    models.CharField(
                        choices=[("male", "Male"), ("female", "Female"), ("other", "Other")],
                        max_length=10,
                    ),
                ),
            ],
            options={
                "db_table": "patients",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["phone"], name="patients_phone_idx"),
                    models.Index(fields=["name"], name="patients_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Visit",
            fields=_base_fields() + [
                (
                    "queue_date",
                    models.DateField(
                        help_text="Local calendar day the visit was created (queue number scope)"
                    ),
                ),
                ("queue_number", models.PositiveIntegerField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("waiting", "Waiting"),
                            ("eye_measurement", "Eye Measurement"),
                            ("with_doctor", "With Doctor"),
                            ("in_consultation", "In Consultation"),
                            ("pharmacy", "Pharmacy"),
                            ("completed", "Completed"),
                            ("registered", "Registered"),
                            ("prescribed", "Prescribed"),
                        ],
                        default="waiting",
                        max_length=20,
                    ),
                ),
                ("room_number", models.CharField(blank=True, max_length=20)),
                (
                    "payment_method",
                    models.CharField(blank=True, choices=PAYMENT_METHOD_CHOICES, max_length=10),
                ),
                (
                    "payment_amount",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True),
                ),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="visits",
                        to="django_clinic_flow.patient",
                    ),
                ),
                (
                    "doctor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="clinic_visits",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "visits",
                "ordering": ["queue_date", "queue_number"],
                "indexes": [
                    models.Index(fields=["queue_date", "status"], name="visits_day_status_idx"),
                    models.Index(fields=["doctor", "status"], name="visits_doctor_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("queue_date", "queue_number"),
                        name="unique_queue_number_per_day",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(status="in_consultation"),
                        fields=("doctor",),
                        name="one_consultation_per_doctor",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(payment_amount__isnull=True)
                        | models.Q(payment_amount__gte=0),
                        name="visit_payment_amount_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DailyQueueCounter",
            fields=_base_fields() + [
                ("day", models.DateField(unique=True)),
                ("last_number", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "visit_queue_counters",
            },
        ),
        migrations.CreateModel(
            name="EyeMeasurement",
            fields=_base_fields() + [
                ("visual_acuity_right", models.CharField(blank=True, max_length=20)),
                ("visual_acuity_left", models.CharField(blank=True, max_length=20)),
                ("right_sph", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("right_cyl", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                (
                    "right_axis",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(180),
                        ],
                    ),
                ),
                ("left_sph", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("left_cyl", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                (
                    "left_axis",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(180),
                        ],
                    ),
                ),
                (
                    "pd",
                    models.DecimalField(
                        blank=True, decimal_places=1, help_text="Pupillary distance in mm",
                        max_digits=4, null=True,
                    ),
                ),
                (
                    "iop_right",
                    models.DecimalField(
                        blank=True, decimal_places=1, help_text="Intraocular pressure, mmHg",
                        max_digits=4, null=True,
                    ),
                ),
                ("iop_left", models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True)),
                ("notes", models.TextField(blank=True)),
                (
                    "visit",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="eye_measurement",
                        to="django_clinic_flow.visit",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="eye_measurements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "eye_measurements",
            },
        ),
        migrations.CreateModel(
            name="Medicine",
            fields=_base_fields() + [
                ("name", models.CharField(max_length=200, unique=True)),
                ("category", models.CharField(max_length=100)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("stock", models.PositiveIntegerField(default=0)),
                ("low_stock_threshold", models.PositiveIntegerField(default=10)),
            ],
            options={
                "db_table": "medicines",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(price__gte=0), name="medicine_price_non_negative"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(stock__gte=0), name="medicine_stock_non_negative"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Prescription",
            fields=_base_fields() + [
                ("diagnosis", models.TextField()),
                ("follow_up_note", models.TextField(blank=True)),
                (
                    "buy_from_clinic",
                    models.BooleanField(
                        default=True, help_text="Patient buys medicines at the clinic pharmacy"
                    ),
                ),
                ("dispensed", models.BooleanField(default=False)),
                ("dispensed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "visit",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="prescription",
                        to="django_clinic_flow.visit",
                    ),
                ),
                (
                    "dispensed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dispensed_prescriptions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="prescriptions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "prescriptions",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["dispensed", "created_at"], name="prescriptions_pending_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PrescriptionMedicine",
            fields=_base_fields() + [
                ("medicine_name", models.CharField(max_length=200)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("dosage", models.CharField(max_length=200)),
                (
                    "prescription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="django_clinic_flow.prescription",
                    ),
                ),
                (
                    "medicine",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="prescription_items",
                        to="django_clinic_flow.medicine",
                    ),
                ),
            ],
            options={
                "db_table": "prescription_medicines",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("prescription", "medicine"),
                        name="unique_medicine_per_prescription",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=1),
                        name="prescription_medicine_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PharmacySale",
            fields=_base_fields() + [
                (
                    "total_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12),
                ),
                (
                    "payment_method",
                    models.CharField(blank=True, choices=PAYMENT_METHOD_CHOICES, max_length=10),
                ),
                ("paid", models.BooleanField(default=False)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "prescription",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sale",
                        to="django_clinic_flow.prescription",
                    ),
                ),
                (
                    "visit",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="pharmacy_sales",
                        to="django_clinic_flow.visit",
                    ),
                ),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="pharmacy_sales",
                        to="django_clinic_flow.patient",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="pharmacy_sales",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "pharmacy_sales",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(total_amount__gte=0),
                        name="pharmacy_sale_total_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PharmacySaleItem",
            fields=_base_fields() + [
                ("medicine_name", models.CharField(max_length=200)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "sale",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="django_clinic_flow.pharmacysale",
                    ),
                ),
                (
                    "medicine",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sale_items",
                        to="django_clinic_flow.medicine",
                    ),
                ),
            ],
            options={
                "db_table": "pharmacy_sale_items",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=1),
                        name="pharmacy_sale_item_quantity_positive",
                    ),
                ],
            },
        ),
    ]
