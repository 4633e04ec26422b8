# accounting/policies.py
"""
Business policy functions for ledger operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; that's the ledger writer's or command's job.

Design Principles:
1. Policies are pure functions (no side effects)
2. Policies return (bool, str) tuples for clear error messages
3. Policies check ONE thing conceptually
"""


def can_post_to_account(account) -> tuple[bool, str]:
    """
    Check if an account can receive postings.

    Summary accounts only group their children; inactive accounts are
    closed for new postings but keep their history.
    """
    if not account.is_active:
        return False, f"Account {account.code} is inactive."
    if not account.is_analytic:
        return False, f"Account {account.code} is a summary account and cannot receive postings."
    return True, ""


def can_deactivate_account(account) -> tuple[bool, str]:
    if not account.is_active:
        return False, f"Account {account.code} is already inactive."
    if account.balance != 0:
        return False, f"Account {account.code} has a non-zero balance ({account.balance})."
    if account.children.filter(is_active=True).exists():
        return False, f"Account {account.code} has active child accounts."
    return True, ""


def can_reverse_entry(entry) -> tuple[bool, str]:
    if not entry.is_posted:
        return False, "Only posted entries can be reversed."
    if entry.kind != entry.Kind.NORMAL:
        return False, "Only NORMAL entries can be reversed."
    if entry.is_reversed:
        return False, "This entry was already reversed."
    return True, ""
