# accounting/posting_rules.py
"""
Posting rules: which accounts a stock movement debits and credits.

Each movement type maps to a pair of account ROLES. Roles map to account
codes through settings.LEDGER_ACCOUNT_CODES, so a deployment can point a
role at its own chart without touching code.

    RECEIVING            Dr inventory            Cr accounts_payable (or cash)
    SHIPPING             Dr cost_of_goods_sold   Cr inventory
    ADJUSTMENT / GAIN    Dr inventory            Cr inventory_gain
    ADJUSTMENT / LOSS    Dr shrinkage_expense    Cr inventory
    TRANSFER             no posting

The resolver never falls back to a default account: an unmapped role or a
code with no Account row raises MissingAccountMapping.
"""

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import models

from accounting.exceptions import MissingAccountMapping, UnsupportedTransactionType
from accounting.models import Account, JournalEntry


class TransactionType(models.TextChoices):
    RECEIVING = "RECEIVING", "Receiving"
    SHIPPING = "SHIPPING", "Shipping"
    ADJUSTMENT = "ADJUSTMENT", "Adjustment"
    TRANSFER = "TRANSFER", "Transfer"


class AdjustmentDirection(models.TextChoices):
    GAIN = "GAIN", "Gain"
    LOSS = "LOSS", "Loss"


class Settlement(models.TextChoices):
    PAYABLE = "PAYABLE", "On account"
    CASH = "CASH", "Cash"


class AccountRole(models.TextChoices):
    INVENTORY = "inventory", "Inventory"
    ACCOUNTS_PAYABLE = "accounts_payable", "Accounts payable"
    CASH = "cash", "Cash"
    COST_OF_GOODS_SOLD = "cost_of_goods_sold", "Cost of goods sold"
    SHRINKAGE_EXPENSE = "shrinkage_expense", "Inventory shrinkage"
    INVENTORY_GAIN = "inventory_gain", "Inventory gain"


# (type, direction, settlement) -> (debit role, credit role, document type)
POSTING_RULES = {
    (TransactionType.RECEIVING, None, Settlement.PAYABLE): (
        AccountRole.INVENTORY, AccountRole.ACCOUNTS_PAYABLE, JournalEntry.DocumentType.PURCHASE,
    ),
    (TransactionType.RECEIVING, None, Settlement.CASH): (
        AccountRole.INVENTORY, AccountRole.CASH, JournalEntry.DocumentType.PURCHASE,
    ),
    (TransactionType.SHIPPING, None, None): (
        AccountRole.COST_OF_GOODS_SOLD, AccountRole.INVENTORY, JournalEntry.DocumentType.COGS,
    ),
    (TransactionType.ADJUSTMENT, AdjustmentDirection.GAIN, None): (
        AccountRole.INVENTORY, AccountRole.INVENTORY_GAIN, JournalEntry.DocumentType.ADJUSTMENT,
    ),
    (TransactionType.ADJUSTMENT, AdjustmentDirection.LOSS, None): (
        AccountRole.SHRINKAGE_EXPENSE, AccountRole.INVENTORY, JournalEntry.DocumentType.LOSS,
    ),
}

NO_POST_TYPES = {TransactionType.TRANSFER}


@dataclass(frozen=True)
class Posting:
    debit_account_code: str
    credit_account_code: str
    amount: Decimal
    document_type: str = JournalEntry.DocumentType.PURCHASE

    def reversed(self) -> "Posting":
        return Posting(
            debit_account_code=self.credit_account_code,
            credit_account_code=self.debit_account_code,
            amount=self.amount,
            document_type=JournalEntry.DocumentType.REVERSAL,
        )


def account_code_for(role: str) -> str:
    codes = getattr(settings, "LEDGER_ACCOUNT_CODES", {}) or {}
    code = codes.get(str(role))
    if not code:
        raise MissingAccountMapping(f"No account is configured for posting role '{role}'.", role=str(role))
    return code


def _rule_key(transaction_type, adjustment_direction, settlement):
    if transaction_type == TransactionType.RECEIVING:
        return (transaction_type, None, settlement or Settlement.PAYABLE)
    if transaction_type == TransactionType.ADJUSTMENT:
        return (transaction_type, adjustment_direction, None)
    return (transaction_type, None, None)


def resolve_posting(
    transaction_type: str,
    amount: Decimal,
    *,
    adjustment_direction: str | None = None,
    settlement: str | None = Settlement.PAYABLE,
) -> Posting | None:
    """
    Resolve the debit/credit accounts for a stock movement.

    Returns None for movement types that never post (TRANSFER).

    Raises:
        UnsupportedTransactionType: unknown type, or ADJUSTMENT without a
            GAIN/LOSS direction
        MissingAccountMapping: a role has no configured code, or the code
            has no Account row
    """
    if transaction_type not in TransactionType.values:
        raise UnsupportedTransactionType(
            f"Unsupported inventory transaction type: {transaction_type!r}.",
            transaction_type=str(transaction_type),
        )
    if transaction_type in NO_POST_TYPES:
        return None

    rule = POSTING_RULES.get(_rule_key(transaction_type, adjustment_direction, settlement))
    if rule is None:
        raise UnsupportedTransactionType(
            f"No posting rule for {transaction_type} "
            f"(direction={adjustment_direction}, settlement={settlement}).",
            transaction_type=str(transaction_type),
        )

    debit_role, credit_role, document_type = rule
    debit_code = account_code_for(debit_role)
    credit_code = account_code_for(credit_role)

    known = set(
        Account.objects.filter(code__in=[debit_code, credit_code]).values_list("code", flat=True)
    )
    for role, code in ((debit_role, debit_code), (credit_role, credit_code)):
        if code not in known:
            raise MissingAccountMapping(
                f"Account {code} configured for role '{role}' does not exist.",
                role=str(role),
                code=code,
            )

    return Posting(
        debit_account_code=debit_code,
        credit_account_code=credit_code,
        amount=amount,
        document_type=document_type,
    )
