# accounting/chart.py
"""
Default chart of accounts.

The codes match the default LEDGER_ACCOUNT_CODES mapping, so a freshly
seeded database can post every inventory movement type. Seeding is
idempotent: existing accounts are left as they are.
"""

import logging

from django.db import transaction

from accounting.models import Account
from projections.write_barrier import bootstrap_writes_allowed


logger = logging.getLogger(__name__)

ASSET = Account.AccountType.ASSET
LIABILITY = Account.AccountType.LIABILITY
REVENUE = Account.AccountType.REVENUE
EXPENSE = Account.AccountType.EXPENSE

# (code, name, type, parent code, is_analytic, description)
DEFAULT_CHART_OF_ACCOUNTS = [
    ("1", "Assets", ASSET, None, False, ""),
    ("1.1.01.001", "Cash and Cash Equivalents", ASSET, "1", True, "Cash on hand and bank balances"),
    ("1.1.03.001", "Inventory", ASSET, "1", True, "Merchandise held for sale, at cost"),
    ("2", "Liabilities", LIABILITY, None, False, ""),
    ("2.1.01.001", "Accounts Payable - Suppliers", LIABILITY, "2", True, "Amounts owed to suppliers"),
    ("3", "Expenses", EXPENSE, None, False, ""),
    ("3.1.01.001", "Cost of Goods Sold", EXPENSE, "3", True, "Cost of inventory shipped to customers"),
    ("3.2.01.001", "Inventory Loss", EXPENSE, "3", True, "Shrinkage, damage and write-downs"),
    ("3.2.01.002", "Other Operating Expenses", EXPENSE, "3", True, ""),
    ("4", "Revenue", REVENUE, None, False, ""),
    ("4.2.01.001", "Other Operating Income", REVENUE, "4", True, "Inventory count gains"),
]


@transaction.atomic
def seed_default_chart(chart=None) -> list[Account]:
    """Create any missing accounts from ``chart``. Returns the accounts created."""
    created = []
    by_code = {}
    with bootstrap_writes_allowed():
        for code, name, account_type, parent_code, is_analytic, description in chart or DEFAULT_CHART_OF_ACCOUNTS:
            parent = by_code.get(parent_code) if parent_code else None
            if parent_code and parent is None:
                parent = Account.objects.get(code=parent_code)
            account, was_created = Account.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "account_type": account_type,
                    "parent": parent,
                    "is_analytic": is_analytic,
                    "description": description,
                },
            )
            by_code[code] = account
            if was_created:
                created.append(account)

    if created:
        logger.info(
            f"Seeded {len(created)} accounts",
            extra={"codes": [account.code for account in created]},
        )
    return created
