# inventory/policies.py
"""
Validation rules for stock movement requests.

Everything here runs before the recorder writes anything: a request that
fails validation leaves no trace in the ledger or on the product.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import uuid

from accounting.exceptions import InsufficientStock, ValidationError
from accounting.posting_rules import AdjustmentDirection, Settlement, TransactionType
from inventory.models import total_cost_for


MAX_QUANTITY = 100_000
MAX_UNIT_COST = Decimal("1000000.00")


@dataclass(frozen=True)
class MovementRequest:
    transaction_type: str
    product_id: uuid.UUID
    sku: str | None
    name: str | None
    quantity: int
    unit_cost: Decimal
    actor_id: str
    from_location: str
    to_location: str
    order_id: uuid.UUID | None = None
    document_number: str = ""
    notes: str = ""
    adjustment_direction: str = ""
    settlement: str = ""

    @property
    def total_cost(self) -> Decimal:
        return total_cost_for(self.quantity, self.unit_cost)


def _parse_choice(value, choices, label: str) -> str:
    if value is None or value == "":
        raise ValidationError(f"{label} is required.")
    normalized = str(value).strip().upper()
    if normalized not in choices.values:
        allowed = ", ".join(choices.values)
        raise ValidationError(f"Unknown {label} {value!r}. Expected one of: {allowed}.")
    return choices(normalized)


def _parse_uuid(value, label: str, required: bool = True):
    if value is None or value == "":
        if required:
            raise ValidationError(f"{label} is required.")
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"{label} must be a valid identifier.")


def _parse_quantity(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("quantity must be a whole number.")
    if value <= 0:
        raise ValidationError("quantity must be greater than zero.")
    if value > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}.")
    return value


def _parse_unit_cost(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("unit_cost is required.")
    try:
        cost = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("unit_cost must be a decimal amount.")
    if not cost.is_finite():
        raise ValidationError("unit_cost must be a decimal amount.")
    if cost < 0:
        raise ValidationError("unit_cost cannot be negative.")
    if cost > MAX_UNIT_COST:
        raise ValidationError(f"unit_cost cannot exceed {MAX_UNIT_COST}.")
    if cost != cost.quantize(Decimal("0.01")):
        raise ValidationError("unit_cost cannot have more than 2 decimal places.")
    return cost.quantize(Decimal("0.01"))


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def validate_movement_request(
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
    adjustment_direction=None,
    settlement=None,
) -> MovementRequest:
    """
    Check a movement request and return it normalized.

    Raises ValidationError describing the first problem found.
    """
    txn_type = _parse_choice(transaction_type, TransactionType, "transaction_type")
    product_uuid = _parse_uuid(product_id, "product_id")
    qty = _parse_quantity(quantity)
    cost = _parse_unit_cost(unit_cost)

    if not _clean(actor_id):
        raise ValidationError("actor_id is required.")

    src = _clean(from_location)
    dst = _clean(to_location)

    if txn_type == TransactionType.RECEIVING and not dst:
        raise ValidationError("to_location is required for RECEIVING.")
    if txn_type == TransactionType.SHIPPING and not src:
        raise ValidationError("from_location is required for SHIPPING.")
    if txn_type == TransactionType.TRANSFER:
        if not src or not dst:
            raise ValidationError("from_location and to_location are required for TRANSFER.")
        if src == dst:
            raise ValidationError("from_location and to_location must differ for TRANSFER.")

    direction = ""
    if txn_type == TransactionType.ADJUSTMENT:
        direction = _parse_choice(adjustment_direction, AdjustmentDirection, "adjustment_direction")
        if not (src or dst):
            raise ValidationError("A location is required for ADJUSTMENT.")
    elif adjustment_direction:
        raise ValidationError("adjustment_direction only applies to ADJUSTMENT.")

    settle = ""
    if txn_type == TransactionType.RECEIVING:
        settle = _parse_choice(settlement, Settlement, "settlement") if settlement else Settlement.PAYABLE
    elif settlement:
        raise ValidationError("settlement only applies to RECEIVING.")

    return MovementRequest(
        transaction_type=txn_type,
        product_id=product_uuid,
        sku=_clean(sku) or None,
        name=_clean(name) or None,
        quantity=qty,
        unit_cost=cost,
        actor_id=_clean(actor_id),
        from_location=src,
        to_location=dst,
        order_id=_parse_uuid(order_id, "order_id", required=False),
        document_number=_clean(document_number),
        notes=_clean(notes),
        adjustment_direction=direction,
        settlement=settle,
    )


def can_move_product(product, sku: str | None = None) -> tuple[bool, str]:
    if sku and sku != product.sku:
        return False, f"SKU {sku!r} does not match product {product.public_id} ({product.sku})."
    return True, ""


def assert_stock_available(product, delta: int) -> None:
    """Raise InsufficientStock if applying ``delta`` would take stock below zero."""
    if delta < 0 and product.stock_quantity + delta < 0:
        raise InsufficientStock(product.public_id, requested=-delta, available=product.stock_quantity)
