# accounting/numbering.py
"""
Sequential document numbers for journal entries and inventory transactions.

Numbers look like ``RCV-202410-000042``: a type prefix, the posting period
(YYYYMM) and a zero-padded counter. Counters live in LedgerSequence rows,
one per (name, period), so every period starts again at 1.

The counter row is locked with select_for_update() and incremented in the
caller's transaction. If the caller rolls back, the increment rolls back
with it, so a number is consumed only when its record commits. The unique
constraints on the number columns are the second line of defence: a
collision surfaces as ConflictError and the recorder retries.
"""

from datetime import date

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models import LedgerSequence


INVENTORY_SEQUENCE = "inventory_transaction_number"
JOURNAL_SEQUENCE = "journal_entry_number"
JOURNAL_PREFIX = "JE"


def period_for(on: date | None = None) -> str:
    on = on or timezone.localdate()
    return on.strftime("%Y%m")


def _next_sequence_value(name: str, period: str) -> int:
    """
    Allocate the next value for a name/period pair.
    Uses select_for_update to avoid concurrent duplicates.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("Sequence values must be allocated inside a transaction.")

    try:
        seq = LedgerSequence.objects.select_for_update().get(name=name, period=period)
    except LedgerSequence.DoesNotExist:
        try:
            with transaction.atomic():
                seq = LedgerSequence.objects.create(name=name, period=period, next_value=1)
        except IntegrityError:
            # Another transaction created the row first
            seq = LedgerSequence.objects.select_for_update().get(name=name, period=period)

    value = seq.next_value
    seq.next_value = value + 1
    seq.save(update_fields=["next_value", "updated_at"])
    return value


def format_number(prefix: str, period: str, value: int) -> str:
    pad = getattr(settings, "LEDGER_NUMBER_PAD", 6)
    return f"{prefix}-{period}-{value:0{pad}d}"


def next_number(name: str, prefix: str, *, on: date | None = None) -> str:
    """Issue the next number of sequence ``name`` for the period containing ``on``."""
    period = period_for(on)
    return format_number(prefix, period, _next_sequence_value(name, period))


def next_journal_entry_number(on: date | None = None) -> str:
    return next_number(JOURNAL_SEQUENCE, JOURNAL_PREFIX, on=on)
