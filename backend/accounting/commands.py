# accounting/commands.py
"""
Command layer for chart-of-accounts operations.

Commands are the single point where business operations happen.
Views call commands; commands enforce rules and perform the writes.

Pattern:
1. Apply business policies (can_*)
2. Perform the operation (model changes, inside a write context)
3. Return CommandResult

Postings themselves are written by accounting.ledger, driven by the
inventory recorder (inventory.commands).
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from accounting.exceptions import LedgerError, NotFoundError, ValidationError
from accounting.models import Account
from accounting.policies import can_deactivate_account
from projections.write_barrier import command_writes_allowed


logger = logging.getLogger(__name__)


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = record_inventory_transaction(...)
        if result.success:
            transaction = result.data
        else:
            error_message = result.error
            error_code = result.error_code
    """

    def __init__(self, success: bool, data=None, error: str = None, exception: LedgerError = None):
        self.success = success
        self.data = data
        self.error = error
        self.exception = exception  # The typed failure, if any

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, exception: LedgerError = None):
        return cls(success=False, error=error, exception=exception)

    @classmethod
    def from_exception(cls, exc: LedgerError):
        return cls.fail(exc.message, exception=exc)

    @property
    def error_code(self) -> str | None:
        if self.success:
            return None
        return self.exception.code if self.exception else "error"

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return self.exception.status_code if self.exception else 400

    def __repr__(self):
        if self.success:
            return f"CommandResult(ok, data={self.data!r})"
        return f"CommandResult(fail, code={self.error_code}, error={self.error!r})"


@transaction.atomic
def deactivate_account(account_id) -> CommandResult:
    """
    Soft-deactivate an account so it stops receiving postings.

    Args:
        account_id: public_id of the account

    Returns:
        CommandResult with the updated Account or error
    """
    try:
        account = Account.objects.select_for_update().get(public_id=account_id)
    except (Account.DoesNotExist, ValueError, DjangoValidationError):
        return CommandResult.from_exception(NotFoundError(f"Account {account_id} not found."))

    allowed, reason = can_deactivate_account(account)
    if not allowed:
        return CommandResult.from_exception(ValidationError(reason))

    with command_writes_allowed():
        account.is_active = False
        account.save(update_fields=["is_active", "updated_at"])

    logger.info(f"Deactivated account {account.code}", extra={"account_code": account.code})
    return CommandResult.ok(account)
