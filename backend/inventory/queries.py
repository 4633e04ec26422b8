# inventory/queries.py
"""Read-side queries over recorded stock movements."""

from datetime import date, datetime, time, timedelta
import uuid

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from accounting.exceptions import NotFoundError, ValidationError
from inventory.models import InventoryTransaction


def _transactions():
    return InventoryTransaction.objects.select_related(
        "product", "journal_entry", "reverses_transaction"
    ).order_by("-transaction_date", "-transaction_number")


def _as_bounds(start, end) -> tuple[datetime, datetime, bool]:
    """
    Normalize a period to aware datetimes.

    Plain dates cover the whole day: the end bound becomes the start of the
    following day and is matched exclusively.
    """
    end_exclusive = False
    if isinstance(start, date) and not isinstance(start, datetime):
        start = datetime.combine(start, time.min)
    if isinstance(end, date) and not isinstance(end, datetime):
        end = datetime.combine(end + timedelta(days=1), time.min)
        end_exclusive = True

    tz = timezone.get_current_timezone()
    if timezone.is_naive(start):
        start = timezone.make_aware(start, tz)
    if timezone.is_naive(end):
        end = timezone.make_aware(end, tz)
    return start, end, end_exclusive


def get_product_transactions(product_id) -> list[InventoryTransaction]:
    """All movements of one product, newest first."""
    try:
        product_id = uuid.UUID(str(product_id))
    except ValueError:
        raise NotFoundError(f"Product {product_id} not found.", product_id=str(product_id))
    return list(_transactions().filter(product__public_id=product_id))


def get_transactions_by_period(start, end) -> list[InventoryTransaction]:
    """
    Movements recorded between ``start`` and ``end``, both inclusive.

    Accepts dates or datetimes. Raises ValidationError if start is after end.
    """
    if start is None or end is None:
        raise ValidationError("start and end are required.")
    if not isinstance(start, date) or not isinstance(end, date):
        raise ValidationError("start and end must be dates or datetimes.")

    lower, upper, end_exclusive = _as_bounds(start, end)
    if lower > upper or (end_exclusive and lower == upper):
        raise ValidationError("start must not be after end.")

    qs = _transactions().filter(transaction_date__gte=lower)
    if end_exclusive:
        qs = qs.filter(transaction_date__lt=upper)
    else:
        qs = qs.filter(transaction_date__lte=upper)
    return list(qs)


def get_transaction_by_id(transaction_id) -> InventoryTransaction:
    try:
        return _transactions().get(public_id=transaction_id)
    except (InventoryTransaction.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError(
            f"Inventory transaction {transaction_id} not found.",
            transaction_id=str(transaction_id),
        )
