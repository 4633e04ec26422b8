# accounting/ledger.py
"""
Ledger writer: the only code that writes journal entries, their lines and
account balances.

A posting is written as one unit:
1. Validate the amount and lock both accounts (in id order)
2. Check both accounts are known, active and analytic
3. Allocate the entry number and insert the entry with its two lines
4. Re-check that the written lines balance
5. Apply the balance deltas with a version-checked F() update

Any failure raises and the surrounding atomic block rolls everything back.
Nothing here tries to repair an unbalanced or otherwise invalid posting.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
import logging

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from accounting.exceptions import (
    ConcurrencyError,
    InvalidAccount,
    InvalidAmount,
    LedgerIntegrityError,
)
from accounting.models import Account, AccountingEntry, EntryType, JournalEntry
from accounting.numbering import next_journal_entry_number
from accounting.policies import can_post_to_account, can_reverse_entry
from accounting.posting_rules import Posting
from projections.write_barrier import ledger_writes_allowed


logger = logging.getLogger(__name__)

MONEY_Q = Decimal("0.01")


def _normalize_amount(amount) -> Decimal:
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(amount)
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(amount)
    quantized = value.quantize(MONEY_Q)
    if quantized != value or quantized <= 0:
        raise InvalidAmount(amount)
    return quantized


def _lock_accounts(codes: list[str]) -> dict[str, Account]:
    """Lock the posting accounts in a stable order to avoid deadlocks."""
    accounts = Account.objects.select_for_update().filter(code__in=codes).order_by("id")
    return {account.code: account for account in accounts}


def _apply_balance(account: Account, entry_type: str, amount: Decimal) -> None:
    """
    Apply one posting to an account's cached balance.

    The update only matches if nobody else bumped the version since the
    account was read; a zero-row update means a lost update was prevented.
    """
    delta = account.signed_amount(entry_type, amount)
    totals = (
        {"debit_total": F("debit_total") + amount}
        if entry_type == EntryType.DEBIT
        else {"credit_total": F("credit_total") + amount}
    )
    updated = Account.objects.filter(pk=account.pk, version=account.version).update(
        balance=F("balance") + delta,
        version=F("version") + 1,
        updated_at=timezone.now(),
        **totals,
    )
    if updated != 1:
        raise ConcurrencyError(
            f"Account {account.code} was modified concurrently.",
            account_code=account.code,
            expected_version=account.version,
        )
    account.version += 1


@transaction.atomic
def write_journal_entry(
    posting: Posting,
    *,
    entry_date: date,
    narrative: str,
    created_by: str,
    document_type: str | None = None,
    document_number: str = "",
    product_id=None,
    inventory_transaction_id=None,
    order_id=None,
    kind: str = JournalEntry.Kind.NORMAL,
    reverses_entry: JournalEntry | None = None,
    debit_description: str = "",
    credit_description: str = "",
    cost_center: str | None = None,
    source_module: str = "inventory",
) -> JournalEntry:
    """
    Write a balanced two-line journal entry and update both account balances.

    Raises:
        InvalidAmount: amount is not a positive 2-decimal money value
        InvalidAccount: an account is unknown, inactive, a summary account,
            or both sides name the same account
        LedgerIntegrityError: the written lines do not balance
        ConcurrencyError: an account balance changed underneath us
    """
    amount = _normalize_amount(posting.amount)

    if posting.debit_account_code == posting.credit_account_code:
        raise InvalidAccount(
            f"Debit and credit account are the same ({posting.debit_account_code}).",
            account_code=posting.debit_account_code,
        )

    with ledger_writes_allowed():
        accounts = _lock_accounts([posting.debit_account_code, posting.credit_account_code])

        for code in (posting.debit_account_code, posting.credit_account_code):
            account = accounts.get(code)
            if account is None:
                raise InvalidAccount(f"Account {code} does not exist.", account_code=code)
            allowed, reason = can_post_to_account(account)
            if not allowed:
                raise InvalidAccount(reason, account_code=code)

        debit_account = accounts[posting.debit_account_code]
        credit_account = accounts[posting.credit_account_code]

        entry_number = next_journal_entry_number(on=entry_date)
        entry = JournalEntry.objects.create(
            entry_number=entry_number,
            entry_date=entry_date,
            document_type=document_type or posting.document_type,
            document_number=document_number or "",
            narrative=narrative,
            total_amount=amount,
            kind=kind,
            reverses_entry=reverses_entry,
            is_posted=True,
            posted_at=timezone.now(),
            source_module=source_module,
            product_id=product_id,
            inventory_transaction_id=inventory_transaction_id,
            order_id=order_id,
            created_by=created_by,
        )

        AccountingEntry.objects.create(
            journal_entry=entry,
            line_no=1,
            account=debit_account,
            entry_type=EntryType.DEBIT,
            amount=amount,
            description=debit_description,
            cost_center=cost_center or "",
        )
        AccountingEntry.objects.create(
            journal_entry=entry,
            line_no=2,
            account=credit_account,
            entry_type=EntryType.CREDIT,
            amount=amount,
            description=credit_description,
            cost_center=cost_center or "",
        )

        _assert_balanced(entry)

        _apply_balance(debit_account, EntryType.DEBIT, amount)
        _apply_balance(credit_account, EntryType.CREDIT, amount)

    logger.info(
        f"Posted {entry.entry_number}: Dr {debit_account.code} / Cr {credit_account.code} {amount}",
        extra={
            "entry_number": entry.entry_number,
            "document_type": entry.document_type,
            "amount": str(amount),
        },
    )
    return entry


def _assert_balanced(entry: JournalEntry) -> None:
    totals = {
        row["entry_type"]: row["total"]
        for row in entry.lines.values("entry_type").annotate(total=Sum("amount"))
    }
    debit = totals.get(EntryType.DEBIT, Decimal("0.00"))
    credit = totals.get(EntryType.CREDIT, Decimal("0.00"))
    if debit != credit or debit <= 0:
        raise LedgerIntegrityError(
            f"Journal entry {entry.entry_number} is not balanced. Debit={debit} Credit={credit}",
            entry_number=entry.entry_number,
        )


def reverse_entry(
    original: JournalEntry,
    *,
    created_by: str,
    entry_date: date | None = None,
    reason: str = "",
    inventory_transaction_id=None,
) -> JournalEntry:
    """
    Post a REVERSAL entry that swaps the debit and credit of ``original``.

    The original entry is left untouched; the two are linked through
    ``reverses_entry``.
    """
    allowed, refusal = can_reverse_entry(original)
    if not allowed:
        raise LedgerIntegrityError(
            f"Cannot reverse {original.entry_number}: {refusal}",
            entry_number=original.entry_number,
        )

    lines = {line.entry_type: line for line in original.lines.select_related("account")}
    debit_line = lines.get(EntryType.DEBIT)
    credit_line = lines.get(EntryType.CREDIT)
    if debit_line is None or credit_line is None or len(lines) != 2:
        raise LedgerIntegrityError(
            f"Journal entry {original.entry_number} does not have exactly one debit and one credit line."
        )

    posting = Posting(
        debit_account_code=debit_line.account.code,
        credit_account_code=credit_line.account.code,
        amount=original.total_amount,
    ).reversed()
    narrative = f"Reversal of {original.entry_number}: {original.narrative}"
    if reason:
        narrative = f"{narrative} ({reason})"

    return write_journal_entry(
        posting,
        entry_date=entry_date or timezone.localdate(),
        narrative=narrative[:500],
        created_by=created_by,
        document_number=original.document_number or original.entry_number,
        product_id=original.product_id,
        inventory_transaction_id=inventory_transaction_id or original.inventory_transaction_id,
        order_id=original.order_id,
        kind=JournalEntry.Kind.REVERSAL,
        reverses_entry=original,
        debit_description=f"Reversal: {credit_line.description}".strip(),
        credit_description=f"Reversal: {debit_line.description}".strip(),
        cost_center=debit_line.cost_center or credit_line.cost_center or None,
        source_module=original.source_module,
    )
