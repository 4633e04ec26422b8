# accounting/queries.py
"""
Read-side queries over the ledger.

Every query is an indexed filter; lines and their accounts are prefetched
so serializing a page of entries costs a fixed number of queries.
"""

from decimal import Decimal
import uuid

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Prefetch

from accounting.exceptions import NotFoundError, ValidationError
from accounting.models import Account, AccountingEntry, JournalEntry


MAX_PAGE_SIZE = 200
DEFAULT_PAGE_SIZE = 50


def _entries_with_lines():
    return JournalEntry.objects.prefetch_related(
        Prefetch(
            "lines",
            queryset=AccountingEntry.objects.select_related("account").order_by("line_no"),
        )
    )


def get_chart_of_accounts(include_inactive: bool = True):
    qs = Account.objects.select_related("parent").order_by("code")
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return list(qs)


def get_account_by_id(account_id) -> Account:
    try:
        return Account.objects.select_related("parent").get(public_id=account_id)
    except (Account.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError(f"Account {account_id} not found.", account_id=str(account_id))


def validate_paging(page_number, page_size) -> tuple[int, int]:
    try:
        page_number = int(page_number)
        page_size = int(page_size)
    except (TypeError, ValueError):
        raise ValidationError("page_number and page_size must be integers.")
    if page_number < 1:
        raise ValidationError("page_number must be at least 1.")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}.")
    return page_number, page_size


def get_journal_entries(page_number: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> list[JournalEntry]:
    """Newest entries first; ties on date are ordered by entry number."""
    page_number, page_size = validate_paging(page_number, page_size)
    offset = (page_number - 1) * page_size
    qs = _entries_with_lines().order_by("-entry_date", "-entry_number")
    return list(qs[offset:offset + page_size])


def get_journal_entry_by_id(entry_id) -> JournalEntry:
    try:
        return _entries_with_lines().get(public_id=entry_id)
    except (JournalEntry.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError(f"Journal entry {entry_id} not found.", entry_id=str(entry_id))


def get_journal_entries_by_product(product_id) -> list[JournalEntry]:
    try:
        product_id = uuid.UUID(str(product_id))
    except ValueError:
        raise NotFoundError(f"Product {product_id} not found.", product_id=str(product_id))
    return list(
        _entries_with_lines()
        .filter(product_id=product_id)
        .order_by("-entry_date", "-entry_number")
    )


def get_trial_balance() -> dict:
    """
    Trial balance from the cached account balances.

    Each analytic account lands in the debit or credit column according to
    the sign of its balance relative to its normal side.
    """
    rows = []
    total_debit = Decimal("0.00")
    total_credit = Decimal("0.00")

    for account in Account.objects.filter(is_analytic=True).order_by("code"):
        if account.debit_total == 0 and account.credit_total == 0:
            continue
        net_debit = account.debit_total - account.credit_total
        debit = net_debit if net_debit > 0 else Decimal("0.00")
        credit = -net_debit if net_debit < 0 else Decimal("0.00")
        total_debit += debit
        total_credit += credit
        rows.append({
            "account_id": str(account.public_id),
            "account_code": account.code,
            "account_name": account.name,
            "account_type": account.account_type,
            "normal_balance": account.normal_balance,
            "balance": account.balance,
            "debit": debit,
            "credit": credit,
        })

    return {
        "accounts": rows,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "is_balanced": total_debit == total_credit,
    }
