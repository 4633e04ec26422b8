# inventory/commands.py
"""
Inventory transaction recorder.

Turns a physical stock movement into:
- an InventoryTransaction row with a sequential number,
- a balanced journal entry (except for TRANSFER and zero-cost movements),
- updated account balances and on-hand stock,
all committed as one unit.

Pattern:
1. Validate the request (inventory.policies) - nothing is written on failure
2. Inside one atomic block: lock the product, re-check stock, number the
   movement, resolve and write the posting, move the stock, insert the row
3. Retry the whole block on lost updates and number collisions, up to
   settings.LEDGER_POSTING_MAX_ATTEMPTS
4. Return CommandResult
"""

import logging
import time
import uuid

from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from accounting.commands import CommandResult
from accounting.exceptions import (
    ConcurrencyError,
    ConflictError,
    LedgerError,
    LedgerIntegrityError,
    NotFoundError,
    ValidationError,
)
from accounting.ledger import reverse_entry, write_journal_entry
from accounting.numbering import INVENTORY_SEQUENCE, next_number
from accounting.posting_rules import AdjustmentDirection, TransactionType, resolve_posting
from inventory.models import InventoryTransaction, Product, stock_delta_for
from inventory.policies import (
    MovementRequest,
    assert_stock_available,
    can_move_product,
    validate_movement_request,
)
from ops.metrics import observe_posting_duration, record_posting_outcome, record_posting_retry
from projections.write_barrier import command_writes_allowed


logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (ConcurrencyError, ConflictError, IntegrityError, OperationalError)


def _run_with_retries(operation, *args, label: str = "posting"):
    """
    Run ``operation`` in its own atomic block, retrying on lost updates,
    number collisions and lock errors.

    Each attempt starts from scratch: a failed attempt rolls back entirely,
    including any sequence numbers it allocated.
    """
    max_attempts = max(1, int(getattr(settings, "LEDGER_POSTING_MAX_ATTEMPTS", 3)))
    backoff = float(getattr(settings, "LEDGER_RETRY_BACKOFF_SECONDS", 0.05))

    for attempt in range(1, max_attempts + 1):
        try:
            with transaction.atomic():
                return operation(*args)
        except RETRYABLE_ERRORS as exc:
            if attempt >= max_attempts:
                logger.error(
                    f"{label} failed after {attempt} attempts: {exc}",
                    extra={"attempts": attempt, "error": str(exc)},
                )
                if isinstance(exc, (ConflictError, IntegrityError)):
                    raise ConflictError(
                        f"{label} conflicted with a concurrent write; giving up after {attempt} attempts."
                    ) from exc
                raise ConcurrencyError(
                    f"{label} lost a concurrent update; giving up after {attempt} attempts."
                ) from exc
            record_posting_retry()
            logger.warning(
                f"{label} attempt {attempt} failed, retrying: {exc}",
                extra={"attempt": attempt, "error": str(exc)},
            )
            if backoff:
                time.sleep(backoff * attempt)


def _lock_product(product_id, sku: str | None = None) -> Product:
    try:
        product = Product.objects.select_for_update().get(public_id=product_id)
    except Product.DoesNotExist:
        raise NotFoundError(f"Product {product_id} not found.", product_id=str(product_id))
    if not product.is_available:
        raise NotFoundError(f"Product {product_id} not found.", product_id=str(product_id))
    allowed, reason = can_move_product(product, sku)
    if not allowed:
        raise ValidationError(reason, product_id=str(product_id))
    return product


def _apply_stock(product: Product, delta: int) -> None:
    """Versioned stock update; a zero-row update means someone else got there first."""
    if delta == 0:
        return
    updated = Product.objects.filter(pk=product.pk, version=product.version).update(
        stock_quantity=F("stock_quantity") + delta,
        version=F("version") + 1,
        updated_at=timezone.now(),
    )
    if updated != 1:
        raise ConcurrencyError(
            f"Stock for product {product.public_id} was modified concurrently.",
            product_id=str(product.public_id),
        )
    product.stock_quantity += delta
    product.version += 1


def _describe(request: MovementRequest, product_label: str) -> tuple[str, str]:
    """Narrative and line description for the journal entry."""
    quantity_text = f"{request.quantity} units x {request.unit_cost}"
    if request.transaction_type == TransactionType.RECEIVING:
        return f"Purchase of goods - {product_label}", f"Purchase - {quantity_text}"
    if request.transaction_type == TransactionType.SHIPPING:
        return f"Inventory withdrawal - Sale - {product_label}", f"Sale - {quantity_text}"
    if request.adjustment_direction == AdjustmentDirection.GAIN:
        return f"Inventory adjustment (gain) - {product_label}", f"Adjustment gain - {quantity_text}"
    return f"Inventory adjustment (loss) - {product_label}", f"Adjustment loss - {quantity_text}"


def _cost_center(request: MovementRequest) -> str:
    if request.transaction_type == TransactionType.SHIPPING:
        return request.from_location
    return request.to_location or request.from_location


def _post_movement(request: MovementRequest) -> InventoryTransaction:
    with command_writes_allowed():
        product = _lock_product(request.product_id, request.sku)
        delta = stock_delta_for(request.transaction_type, request.quantity, request.adjustment_direction)
        assert_stock_available(product, delta)

        recorded_at = timezone.now()
        number = next_number(
            INVENTORY_SEQUENCE,
            InventoryTransaction.PREFIXES[request.transaction_type],
            on=timezone.localdate(recorded_at),
        )
        txn_public_id = uuid.uuid4()
        total_cost = request.total_cost

        posting = resolve_posting(
            request.transaction_type,
            total_cost,
            adjustment_direction=request.adjustment_direction or None,
            settlement=request.settlement or None,
        )

        entry = None
        if posting is not None and total_cost > 0:
            product_label = f"{request.name or product.name} ({product.sku})"
            narrative, line_description = _describe(request, product_label)
            entry = write_journal_entry(
                posting,
                entry_date=timezone.localdate(recorded_at),
                narrative=narrative,
                created_by=request.actor_id,
                document_number=request.document_number or number,
                product_id=product.public_id,
                inventory_transaction_id=txn_public_id,
                order_id=request.order_id,
                debit_description=line_description,
                credit_description=line_description,
                cost_center=_cost_center(request),
            )

        _apply_stock(product, delta)

        return InventoryTransaction.objects.create(
            public_id=txn_public_id,
            transaction_number=number,
            transaction_date=recorded_at,
            transaction_type=request.transaction_type,
            adjustment_direction=request.adjustment_direction,
            settlement=request.settlement,
            product=product,
            product_sku=product.sku,
            product_name=request.name or product.name,
            from_location=request.from_location,
            to_location=request.to_location,
            quantity=request.quantity,
            unit_cost=request.unit_cost,
            total_cost=total_cost,
            journal_entry=entry,
            order_id=request.order_id,
            document_number=request.document_number,
            notes=request.notes,
            created_by=request.actor_id,
        )


def record_inventory_transaction(
    transaction_type,
    product_id,
    sku,
    name,
    quantity,
    unit_cost,
    to_location,
    actor_id,
    from_location=None,
    order_id=None,
    document_number=None,
    notes=None,
    *,
    adjustment_direction=None,
    settlement=None,
) -> CommandResult:
    """
    Record a stock movement and post it to the ledger.

    Args:
        transaction_type: RECEIVING, SHIPPING, ADJUSTMENT or TRANSFER
        product_id: public_id of the product
        quantity: positive whole number of units
        unit_cost: non-negative cost per unit, trusted as given
        actor_id: opaque identifier of whoever records the movement
        adjustment_direction: GAIN or LOSS, required for ADJUSTMENT
        settlement: PAYABLE (default) or CASH, RECEIVING only

    Returns:
        CommandResult with the InventoryTransaction, or a typed failure
    """
    started = time.monotonic()
    label = str(transaction_type or "").upper()
    if label not in TransactionType.values:
        label = "UNKNOWN"

    try:
        request = validate_movement_request(
            transaction_type,
            product_id,
            sku,
            name,
            quantity,
            unit_cost,
            to_location,
            actor_id,
            from_location=from_location,
            order_id=order_id,
            document_number=document_number,
            notes=notes,
            adjustment_direction=adjustment_direction,
            settlement=settlement,
        )
    except ValidationError as exc:
        logger.info(f"Rejected inventory transaction: {exc}", extra={"code": exc.code})
        record_posting_outcome(label, exc.code)
        return CommandResult.from_exception(exc)

    label = request.transaction_type
    try:
        txn = _run_with_retries(_post_movement, request, label=f"{label} posting")
    except LedgerIntegrityError as exc:
        logger.error(
            f"Integrity violation while recording {label} for product {request.product_id}: {exc}",
            extra={"code": exc.code, "product_id": str(request.product_id)},
        )
        record_posting_outcome(label, exc.code)
        return CommandResult.from_exception(exc)
    except LedgerError as exc:
        logger.warning(
            f"Could not record {label} for product {request.product_id}: {exc}",
            extra={"code": exc.code, "product_id": str(request.product_id)},
        )
        record_posting_outcome(label, exc.code)
        return CommandResult.from_exception(exc)
    finally:
        observe_posting_duration(label, time.monotonic() - started)

    record_posting_outcome(label, "posted")
    logger.info(
        f"Recorded {txn.transaction_number} ({label}) for {txn.product_sku} x{txn.quantity}",
        extra={
            "transaction_number": txn.transaction_number,
            "journal_entry": txn.journal_entry.entry_number if txn.journal_entry else None,
        },
    )
    return CommandResult.ok(txn)


def _reverse_movement(transaction_id, actor_id: str, notes: str) -> InventoryTransaction:
    with command_writes_allowed():
        try:
            original = (
                InventoryTransaction.objects.select_for_update()
                .select_related("journal_entry")
                .get(public_id=transaction_id)
            )
        except InventoryTransaction.DoesNotExist:
            raise NotFoundError(
                f"Inventory transaction {transaction_id} not found.",
                transaction_id=str(transaction_id),
            )

        if original.reverses_transaction_id:
            raise LedgerIntegrityError(
                f"{original.transaction_number} is a reversal and cannot be reversed."
            )
        if InventoryTransaction.objects.filter(reverses_transaction=original).exists():
            raise LedgerIntegrityError(f"{original.transaction_number} was already reversed.")

        try:
            product = Product.objects.select_for_update().get(pk=original.product_id)
        except Product.DoesNotExist:
            raise NotFoundError(f"Product {original.product_id} not found.")
        delta = -original.stock_delta
        assert_stock_available(product, delta)

        recorded_at = timezone.now()
        number = next_number(
            INVENTORY_SEQUENCE,
            InventoryTransaction.PREFIXES[original.transaction_type],
            on=timezone.localdate(recorded_at),
        )
        txn_public_id = uuid.uuid4()

        entry = None
        if original.journal_entry_id:
            entry = reverse_entry(
                original.journal_entry,
                created_by=actor_id,
                entry_date=timezone.localdate(recorded_at),
                reason=notes,
                inventory_transaction_id=txn_public_id,
            )

        _apply_stock(product, delta)

        # A reversal keeps the original type and locations; only a transfer
        # moves the goods back, from its destination to its source.
        from_location, to_location = original.from_location, original.to_location
        if original.transaction_type == TransactionType.TRANSFER:
            from_location, to_location = to_location, from_location

        return InventoryTransaction.objects.create(
            public_id=txn_public_id,
            transaction_number=number,
            transaction_date=recorded_at,
            transaction_type=original.transaction_type,
            adjustment_direction=original.adjustment_direction,
            settlement=original.settlement,
            product=product,
            product_sku=original.product_sku,
            product_name=original.product_name,
            from_location=from_location,
            to_location=to_location,
            quantity=original.quantity,
            unit_cost=original.unit_cost,
            total_cost=original.total_cost,
            journal_entry=entry,
            reverses_transaction=original,
            order_id=original.order_id,
            document_number=original.transaction_number,
            notes=notes,
            created_by=actor_id,
        )


def reverse_inventory_transaction(transaction_id, actor_id, notes=None) -> CommandResult:
    """
    Undo a recorded movement with a new, linked movement.

    The stock effect is undone and the journal entry (if any) is reversed
    with a REVERSAL entry. The original rows are never modified.

    Returns:
        CommandResult with the reversing InventoryTransaction, or a typed failure
    """
    actor = str(actor_id).strip() if actor_id is not None else ""
    if not actor:
        return CommandResult.from_exception(ValidationError("actor_id is required."))
    try:
        transaction_id = uuid.UUID(str(transaction_id))
    except ValueError:
        return CommandResult.from_exception(
            NotFoundError(f"Inventory transaction {transaction_id} not found.")
        )

    try:
        txn = _run_with_retries(
            _reverse_movement, transaction_id, actor, (notes or "").strip(), label="reversal"
        )
    except LedgerError as exc:
        log = logger.error if isinstance(exc, LedgerIntegrityError) else logger.warning
        log(f"Could not reverse inventory transaction {transaction_id}: {exc}", extra={"code": exc.code})
        return CommandResult.from_exception(exc)

    logger.info(
        f"Reversed {txn.document_number} with {txn.transaction_number}",
        extra={"transaction_number": txn.transaction_number},
    )
    return CommandResult.ok(txn)
