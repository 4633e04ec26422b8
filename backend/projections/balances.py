# projections/balances.py
"""
Account balance reconciliation.

Account.balance, debit_total and credit_total are a cached projection of
the AccountingEntry log, maintained by the ledger writer in the same
transaction as each posting. This module replays the log to check that
cache, and rebuilds it when it has drifted.

The entry log is the source of truth for "what is the balance?"
"""

from decimal import Decimal
from typing import Any, Dict, List
import logging

from django.db import transaction
from django.db.models import Count, Q, Sum

from accounting.models import Account, AccountingEntry, EntryType, JournalEntry
from projections.write_barrier import projection_writes_allowed


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def replay_balances() -> Dict[int, Dict[str, Decimal]]:
    """
    Recompute per-account totals from the entry log with one aggregate query.

    Returns:
        {account_id: {"debit": Decimal, "credit": Decimal, "lines": int}}
    """
    rows = (
        AccountingEntry.objects.values("account_id")
        .annotate(
            debit=Sum("amount", filter=Q(entry_type=EntryType.DEBIT)),
            credit=Sum("amount", filter=Q(entry_type=EntryType.CREDIT)),
            lines=Count("id"),
        )
    )
    return {
        row["account_id"]: {
            "debit": (row["debit"] or ZERO).quantize(CENT),
            "credit": (row["credit"] or ZERO).quantize(CENT),
            "lines": row["lines"],
        }
        for row in rows
    }


def _expected_balance(account: Account, debit: Decimal, credit: Decimal) -> Decimal:
    if account.normal_balance == EntryType.DEBIT:
        return debit - credit
    return credit - debit


def verify_all_balances() -> Dict[str, Any]:
    """
    Verify all cached balances by replaying the entry log.

    Returns:
        {
            "total_accounts": 10,
            "verified": 10,
            "mismatches": [],
            "entries_processed": 50,
        }
    """
    expected_totals = replay_balances()
    entries_processed = sum(totals["lines"] for totals in expected_totals.values())

    mismatches: List[Dict[str, Any]] = []
    verified = 0
    accounts = list(Account.objects.order_by("code"))

    for account in accounts:
        expected = expected_totals.get(account.id, {"debit": ZERO, "credit": ZERO})
        expected_balance = _expected_balance(account, expected["debit"], expected["credit"])

        if (
            account.debit_total != expected["debit"]
            or account.credit_total != expected["credit"]
            or account.balance != expected_balance
        ):
            mismatches.append({
                "account_code": account.code,
                "account_id": str(account.public_id),
                "stored": {
                    "debit": str(account.debit_total),
                    "credit": str(account.credit_total),
                    "balance": str(account.balance),
                },
                "expected": {
                    "debit": str(expected["debit"]),
                    "credit": str(expected["credit"]),
                    "balance": str(expected_balance),
                },
            })
        else:
            verified += 1

    if mismatches:
        logger.error(
            f"Balance verification found {len(mismatches)} mismatched accounts",
            extra={"accounts": [m["account_code"] for m in mismatches]},
        )

    return {
        "total_accounts": len(accounts),
        "verified": verified,
        "mismatches": mismatches,
        "entries_processed": entries_processed,
    }


@transaction.atomic
def rebuild_balances() -> Dict[str, Any]:
    """
    Rewrite every account's cached balance from the entry log.

    Accounts are locked while they are rewritten so no posting can slip in
    between the replay and the update.
    """
    accounts = list(Account.objects.select_for_update().order_by("id"))
    expected_totals = replay_balances()
    repaired = []

    with projection_writes_allowed():
        for account in accounts:
            expected = expected_totals.get(account.id, {"debit": ZERO, "credit": ZERO})
            expected_balance = _expected_balance(account, expected["debit"], expected["credit"])
            if (
                account.debit_total == expected["debit"]
                and account.credit_total == expected["credit"]
                and account.balance == expected_balance
            ):
                continue
            Account.objects.filter(pk=account.pk).update(
                debit_total=expected["debit"],
                credit_total=expected["credit"],
                balance=expected_balance,
                version=account.version + 1,
            )
            repaired.append(account.code)

    if repaired:
        logger.warning(
            f"Rebuilt balances for {len(repaired)} accounts",
            extra={"accounts": repaired},
        )
    return {"total_accounts": len(accounts), "repaired": repaired}


def verify_journal_integrity() -> List[Dict[str, Any]]:
    """Journal entries whose debit and credit lines do not add up."""
    rows = (
        JournalEntry.objects.annotate(
            debit=Sum("lines__amount", filter=Q(lines__entry_type=EntryType.DEBIT)),
            credit=Sum("lines__amount", filter=Q(lines__entry_type=EntryType.CREDIT)),
        )
        .values("entry_number", "total_amount", "debit", "credit")
    )
    broken = []
    for row in rows:
        debit = (row["debit"] or ZERO).quantize(CENT)
        credit = (row["credit"] or ZERO).quantize(CENT)
        if debit != credit or debit != row["total_amount"]:
            broken.append({
                "entry_number": row["entry_number"],
                "total_amount": str(row["total_amount"]),
                "debit": str(debit),
                "credit": str(credit),
            })
    return broken
