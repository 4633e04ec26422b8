# accounting/exceptions.py
"""
Error taxonomy for the posting engine.

Every failure the engine knows about is a LedgerError subclass carrying a
stable machine-readable ``code`` and the HTTP status the API layer maps it to.

    LedgerError
    ├── ValidationError            bad input, raised before any write
    │   ├── InsufficientStock
    │   └── InvalidAmount
    ├── NotFoundError              referenced account/product/entry absent
    ├── ConflictError              duplicate number or identifier collision
    ├── LedgerIntegrityError       never auto-corrected, aborts the posting
    │   ├── InvalidAccount
    │   ├── MissingAccountMapping
    │   └── UnsupportedTransactionType
    └── ConcurrencyError           lost update on a balance or stock row

Validation and not-found errors are returned to the caller as typed
failures. Integrity errors abort the whole unit of work.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base class for all posting engine failures."""

    code = "ledger_error"
    status_code = 400

    def __init__(self, message: str = "", **context):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or str(self.args[0])
        self.context = context

    def __str__(self):
        return self.message


class ValidationError(LedgerError):
    """The request is malformed or violates an input rule."""

    code = "validation_error"
    status_code = 400


class InsufficientStock(ValidationError):
    """Not enough stock on hand to remove the requested quantity."""

    code = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}.",
            product_id=str(product_id),
            requested=requested,
            available=available,
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidAmount(ValidationError):
    """Posting amounts must be positive."""

    code = "invalid_amount"
    status_code = 400

    def __init__(self, amount):
        super().__init__(f"Posting amount must be greater than zero, got {amount}.", amount=str(amount))
        self.amount = amount if isinstance(amount, Decimal) else None


class NotFoundError(LedgerError):
    code = "not_found"
    status_code = 404


class ConflictError(LedgerError):
    code = "conflict"
    status_code = 409


class LedgerIntegrityError(LedgerError):
    """The ledger would be left inconsistent; the posting is aborted."""

    code = "integrity_error"
    status_code = 422


class InvalidAccount(LedgerIntegrityError):
    """Unknown, inactive or non-postable account."""

    code = "invalid_account"
    status_code = 422


class MissingAccountMapping(LedgerIntegrityError):
    """A posting role has no account configured for it."""

    code = "missing_account_mapping"
    status_code = 422


class UnsupportedTransactionType(LedgerIntegrityError):
    code = "unsupported_transaction_type"
    status_code = 400


class ConcurrencyError(LedgerError):
    """A concurrent writer changed a row between read and update."""

    code = "concurrency_error"
    status_code = 409
