"""Tests for the stock ledger and medicine management."""

from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied

from django_clinic_flow.exceptions import NotFoundError, ReferentialIntegrityError, ValidationError
from django_clinic_flow.models import Medicine
from django_clinic_flow.stock import (
    adjust_stock,
    create_medicine,
    decrement_stock,
    delete_medicine,
    low_stock_medicines,
    update_medicine,
)


@pytest.mark.django_db
class TestStockLedger:
    """Tests for decrement_stock and adjust_stock."""

    def test_decrement(self, medicines):
        medicine = decrement_stock(medicines["drops"].pk, 4)

        assert medicine.stock == 16

    def test_decrement_clamps_at_zero(self, medicines):
        """new_stock = max(0, old_stock - quantity)."""
        medicine = decrement_stock(medicines["tears"].pk, 5)

        assert medicine.stock == 0
        assert Medicine.objects.get(pk=medicines["tears"].pk).stock == 0

    def test_negative_quantity_is_rejected(self, medicines):
        with pytest.raises(ValidationError):
            decrement_stock(medicines["drops"].pk, -1)

    def test_unknown_medicine(self):
        with pytest.raises(NotFoundError):
            decrement_stock("3f0c6a8e-0000-4000-8000-000000000000", 1)

    def test_restock(self, pharmacy_ctx, medicines):
        assert adjust_stock(pharmacy_ctx, medicines["tears"].pk, 25).stock == 28

    def test_negative_adjustment_clamps(self, admin_ctx, medicines):
        assert adjust_stock(admin_ctx, medicines["tears"].pk, -10).stock == 0

    @pytest.mark.parametrize("change", ["abc", "1.5", None, float("inf"), 10**12])
    def test_bad_adjustment_is_rejected(self, admin_ctx, medicines, change):
        with pytest.raises(ValidationError) as exc_info:
            adjust_stock(admin_ctx, medicines["tears"].pk, change)

        assert exc_info.value.field == "change"
        assert Medicine.objects.get(pk=medicines["tears"].pk).stock == 3

    def test_reception_cannot_adjust(self, reception_ctx, medicines):
        with pytest.raises(PermissionDenied):
            adjust_stock(reception_ctx, medicines["tears"].pk, 5)

    def test_low_stock(self, medicines):
        names = [m.name for m in low_stock_medicines()]

        assert names == ["Artificial Tears"]
        assert medicines["tears"].is_low_stock
        assert not medicines["drops"].is_low_stock


@pytest.mark.django_db
class TestMedicineManagement:
    """Tests for create/update/delete medicine."""

    def test_create(self, admin_ctx):
        medicine = create_medicine(admin_ctx, " Atropine 1% ", "Cycloplegic", "210.5", stock=12)

        assert medicine.name == "Atropine 1%"
        assert medicine.price == Decimal("210.5")
        assert medicine.low_stock_threshold == 10

    def test_duplicate_name_is_case_insensitive(self, admin_ctx, medicines):
        with pytest.raises(ValidationError) as exc_info:
            create_medicine(admin_ctx, "artificial tears", "Lubricant", "100")

        assert exc_info.value.field == "name"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": "", "category": "X", "price": "1"},
            {"name": "A", "category": "", "price": "1"},
            {"name": "A", "category": "X", "price": "-1"},
            {"name": "A", "category": "X", "price": "free"},
            {"name": "A", "category": "X", "price": "1", "stock": -3},
            {"name": "A", "category": "X", "price": "NaN"},
            {"name": "A", "category": "X", "price": "sNaN"},
            {"name": "A", "category": "X", "price": "Infinity"},
            {"name": "A", "category": "X", "price": "123456789012"},
            {"name": "A", "category": "X", "price": "1.999"},
            {"name": "A", "category": "X", "price": "1", "stock": 10**12},
        ],
    )
    def test_create_validation(self, admin_ctx, kwargs):
        with pytest.raises(ValidationError):
            create_medicine(admin_ctx, **kwargs)

        assert not Medicine.objects.filter(name="A").exists()

    def test_create_is_admin_only(self, pharmacy_ctx):
        with pytest.raises(PermissionDenied):
            create_medicine(pharmacy_ctx, "A", "X", "1")

    def test_update(self, admin_ctx, medicines):
        medicine = update_medicine(admin_ctx, medicines["drops"].pk, price="400", low_stock_threshold=5)

        assert medicine.price == Decimal("400")
        assert medicine.low_stock_threshold == 5
        assert medicine.stock == 20

    def test_update_rejects_unknown_fields(self, admin_ctx, medicines):
        with pytest.raises(ValidationError):
            update_medicine(admin_ctx, medicines["drops"].pk, colour="red")

    def test_update_rejects_name_taken(self, admin_ctx, medicines):
        with pytest.raises(ValidationError):
            update_medicine(admin_ctx, medicines["drops"].pk, name="TIMOLOL 0.5%")

    def test_delete_unreferenced(self, admin_ctx, medicines):
        delete_medicine(admin_ctx, medicines["timolol"].pk)

        assert not Medicine.objects.filter(name="Timolol 0.5%").exists()

    def test_delete_referenced_medicine_is_refused(self, admin_ctx, prescribed_visit, medicines):
        """Referenced medicines are never cascaded away."""
        with pytest.raises(ReferentialIntegrityError) as exc_info:
            delete_medicine(admin_ctx, medicines["drops"].pk)

        assert "prescriptions" in str(exc_info.value)
        assert Medicine.objects.filter(pk=medicines["drops"].pk).exists()

    def test_delete_medicine_on_a_sale(self, admin_ctx, prescribed_visit, pharmacy_ctx, medicines):
        from django_clinic_flow.models import Prescription
        from django_clinic_flow.services import dispense

        prescription = Prescription.objects.get(visit=prescribed_visit)
        dispense(
            pharmacy_ctx,
            prescription.pk,
            sale_items=[{"medicine_id": medicines["timolol"].pk, "quantity": 1}],
        )

        with pytest.raises(ReferentialIntegrityError) as exc_info:
            delete_medicine(admin_ctx, medicines["timolol"].pk)

        assert "sales" in str(exc_info.value)
