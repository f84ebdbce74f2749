"""Per-day queue number allocation.

Queue numbers restart at 1 every local calendar day. Allocation locks the
day's DailyQueueCounter row with select_for_update(); the unique constraint on
(queue_date, queue_number) catches anything that slips past the lock, and
run_with_queue_number() retries once on that collision.
"""

import logging
from datetime import date

from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from .conf import get_setting
from .exceptions import QueueNumberConflict
from .models import DailyQueueCounter, Visit

logger = logging.getLogger(__name__)


def queue_day(when=None) -> date:
    """Local calendar day used to scope queue numbers."""
    if when is None:
        return timezone.localdate()
    return timezone.localdate(when)


def next_queue_number(day: date = None) -> int:
    """
    Read-only peek: max existing queue number for `day` plus one, or 1.

    Does not reserve the number; use allocate_queue_number() for that.
    """
    day = day or queue_day()
    current = Visit.objects.filter(queue_date=day).aggregate(m=Max("queue_number"))["m"]
    return (current or 0) + 1


def allocate_queue_number(day: date = None) -> int:
    """
    Reserve the next queue number for `day`.

    Must run inside the transaction that inserts the visit, so a rollback
    also releases the number and numbering stays contiguous.

    The counter is reconciled with the visits table so rows written without
    the counter (imports, fixtures) are never reused.
    """
    day = day or queue_day()

    with transaction.atomic():
        counter, _ = DailyQueueCounter.objects.get_or_create(day=day)
        counter = DailyQueueCounter.objects.select_for_update().get(pk=counter.pk)

        existing = Visit.objects.filter(queue_date=day).aggregate(m=Max("queue_number"))["m"]
        counter.last_number = max(counter.last_number, existing or 0) + 1
        counter.save(update_fields=["last_number", "updated_at"])

        return counter.last_number


def run_with_queue_number(insert, day: date = None, retries: int = None):
    """
    Allocate a queue number and call insert(day, number) in one savepoint.

    On IntegrityError (a queue number collision, or a concurrent counter
    row creation) the savepoint is rolled back and the whole step retried.

    Args:
        insert: Callable receiving (day, queue_number) and returning the row
        day: Queue day; defaults to today (local time)
        retries: Extra attempts after the first; defaults to CLINIC_FLOW_QUEUE_RETRIES

    Returns:
        Whatever insert returns

    Raises:
        QueueNumberConflict: If every attempt collided
    """
    day = day or queue_day()
    if retries is None:
        retries = get_setting("QUEUE_RETRIES")
    attempts = retries + 1

    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                number = allocate_queue_number(day)
                return insert(day, number)
        except IntegrityError as e:
            logger.warning(
                f"Queue number collision on {day} (attempt {attempt}/{attempts}): {e}"
            )

    raise QueueNumberConflict(day, attempts)
