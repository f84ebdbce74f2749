"""Medicine inventory and stock ledger.

Stock is a non-negative integer per Medicine. Every change is a single SQL
UPDATE clamped with GREATEST(..., 0), so concurrent decrements never read a
stale value and an over-decrement silently lands on zero.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import DecimalValidator
from django.db import transaction
from django.db.models import F, ProtectedError, QuerySet
from django.db.models.functions import Greatest

from .context import StationContext, requires_role
from .exceptions import NotFoundError, ReferentialIntegrityError, ValidationError
from .models import AppRole, Medicine

logger = logging.getLogger(__name__)

# Upper bound of a PositiveIntegerField on every supported backend
MAX_COUNT = 2147483647


def _get_medicine(medicine_id) -> Medicine:
    try:
        return Medicine.objects.get(pk=medicine_id)
    except (Medicine.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise NotFoundError("Medicine", medicine_id)


def _apply_change(medicine_id, change: int) -> Medicine:
    """Add `change` (may be negative) to stock, clamped at zero."""
    medicine = _get_medicine(medicine_id)
    if change < 0 and medicine.stock < -change:
        logger.warning(
            f"Stock for {medicine.name} clamped at 0 (had {medicine.stock}, change {change})"
        )

    Medicine.objects.filter(pk=medicine.pk).update(
        stock=Greatest(F("stock") + change, 0)
    )
    medicine.refresh_from_db(fields=["stock", "updated_at"])
    return medicine


def decrement_stock(medicine_id, quantity: int) -> Medicine:
    """
    Remove `quantity` units from stock.

    new_stock = max(0, old_stock - quantity). Over-decrement is not an error.

    Raises:
        ValidationError: If quantity is negative
        NotFoundError: If the medicine does not exist
    """
    if quantity < 0:
        raise ValidationError("Quantity to decrement cannot be negative", field="quantity")
    return _apply_change(medicine_id, -quantity)


@requires_role(AppRole.ADMIN, AppRole.PHARMACY)
def adjust_stock(ctx: StationContext, medicine_id, change: int) -> Medicine:
    """Manual restock (positive change) or correction (negative), clamped at zero."""
    medicine = _apply_change(medicine_id, _clean_count(change, "change", minimum=None))
    logger.info(f"Stock for {medicine.name} adjusted by {change} to {medicine.stock} by {ctx.user}")
    return medicine


def low_stock_medicines() -> QuerySet[Medicine]:
    """Medicines at or below their low-stock threshold, lowest stock first."""
    return Medicine.objects.filter(stock__lte=F("low_stock_threshold")).order_by("stock", "name")


# =============================================================================
# Medicine management
# =============================================================================

def _clean_price(price) -> Decimal:
    try:
        value = Decimal(str(price))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid price: {price!r}", field="price")
    if not value.is_finite():
        raise ValidationError(f"Invalid price: {price!r}", field="price")
    if value < 0:
        raise ValidationError("Price cannot be negative", field="price")
    price_field = Medicine._meta.get_field("price")
    try:
        DecimalValidator(price_field.max_digits, price_field.decimal_places)(value)
    except DjangoValidationError as e:
        raise ValidationError(f"Invalid price: {' '.join(e.messages)}", field="price")
    return value


def _clean_count(value, field: str, minimum=0) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} cannot be negative", field=field)
    if abs(result) > MAX_COUNT:
        raise ValidationError(f"{field} is out of range", field=field)
    return result


@requires_role(AppRole.ADMIN)
def create_medicine(
    ctx: StationContext,
    name: str,
    category: str,
    price,
    stock: int = 0,
    low_stock_threshold: int = 10,
) -> Medicine:
    """Add a medicine to the inventory."""
    name = (name or "").strip()
    category = (category or "").strip()
    if not name:
        raise ValidationError("Medicine name is required", field="name")
    if not category:
        raise ValidationError("Medicine category is required", field="category")
    if Medicine.objects.filter(name__iexact=name).exists():
        raise ValidationError(f"Medicine '{name}' already exists", field="name")

    return Medicine.objects.create(
        name=name,
        category=category,
        price=_clean_price(price),
        stock=_clean_count(stock, "stock"),
        low_stock_threshold=_clean_count(low_stock_threshold, "low_stock_threshold"),
    )


@requires_role(AppRole.ADMIN)
def update_medicine(ctx: StationContext, medicine_id, **changes) -> Medicine:
    """
    Update name, category, price, stock or low_stock_threshold.

    Existing prescription and sale lines keep their snapshotted names.
    """
    allowed = {"name", "category", "price", "stock", "low_stock_threshold"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Unknown medicine fields: {sorted(unknown)}")

    medicine = _get_medicine(medicine_id)

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Medicine name is required", field="name")
        if Medicine.objects.filter(name__iexact=name).exclude(pk=medicine.pk).exists():
            raise ValidationError(f"Medicine '{name}' already exists", field="name")
        medicine.name = name
    if "category" in changes:
        category = (changes["category"] or "").strip()
        if not category:
            raise ValidationError("Medicine category is required", field="category")
        medicine.category = category
    if "price" in changes:
        medicine.price = _clean_price(changes["price"])
    if "stock" in changes:
        medicine.stock = _clean_count(changes["stock"], "stock")
    if "low_stock_threshold" in changes:
        medicine.low_stock_threshold = _clean_count(
            changes["low_stock_threshold"], "low_stock_threshold"
        )

    medicine.save()
    return medicine


@requires_role(AppRole.ADMIN)
def delete_medicine(ctx: StationContext, medicine_id) -> None:
    """
    Delete a medicine that no prescription or sale references.

    Raises:
        ReferentialIntegrityError: If prescription or sale lines reference it
    """
    medicine = _get_medicine(medicine_id)

    if medicine.sale_items.exists():
        raise ReferentialIntegrityError(
            f"Cannot delete '{medicine.name}': referenced in existing sales. "
            "Consider updating stock to 0 instead."
        )
    if medicine.prescription_items.exists():
        raise ReferentialIntegrityError(
            f"Cannot delete '{medicine.name}': referenced in existing prescriptions. "
            "Consider updating stock to 0 instead."
        )

    try:
        with transaction.atomic():
            medicine.delete()
    except ProtectedError as e:
        raise ReferentialIntegrityError(f"Cannot delete '{medicine.name}': {e}") from e

    logger.info(f"Medicine {medicine.name} deleted by {ctx.user}")
