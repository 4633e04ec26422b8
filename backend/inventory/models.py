# inventory/models.py
"""
Inventory models.

Product is the boundary record for the catalog, which lives outside the
posting engine: the engine only reads it and moves ``stock_quantity``.

InventoryTransaction is command-owned: rows are inserted once by
inventory.commands.record_inventory_transaction and never changed.
"""

from decimal import Decimal
import uuid

from django.db import models
from django.db.models import Q

from accounting.exceptions import LedgerIntegrityError
from accounting.models import JournalEntry, LedgerQuerySet, MONEY_DECIMAL_PLACES, MONEY_MAX_DIGITS
from accounting.posting_rules import AdjustmentDirection, Settlement, TransactionType
from projections.write_barrier import assert_write_allowed


class Product(models.Model):
    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )
    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    stock_quantity = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sku"]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock_quantity__gte=0),
                name="chk_product_stock_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.sku} - {self.name}"

    @property
    def is_available(self) -> bool:
        return self.is_active and not self.is_deleted


class InventoryTransactionManager(models.Manager):
    def get_queryset(self):
        return LedgerQuerySet(self.model, using=self._db)


class InventoryTransaction(models.Model):
    """A recorded stock movement and the link to its journal entry."""

    WRITE_CONTEXTS = {"command"}

    TransactionType = TransactionType
    AdjustmentDirection = AdjustmentDirection
    Settlement = Settlement

    PREFIXES = {
        TransactionType.RECEIVING: "RCV",
        TransactionType.SHIPPING: "SHP",
        TransactionType.ADJUSTMENT: "ADJ",
        TransactionType.TRANSFER: "TRF",
    }

    objects = InventoryTransactionManager()

    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )
    transaction_number = models.CharField(max_length=50, unique=True)
    transaction_date = models.DateTimeField()
    transaction_type = models.CharField(max_length=20, choices=TransactionType.choices)
    adjustment_direction = models.CharField(
        max_length=10,
        choices=AdjustmentDirection.choices,
        blank=True,
        default="",
    )
    settlement = models.CharField(
        max_length=10,
        choices=Settlement.choices,
        blank=True,
        default="",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    # Snapshot of the product at recording time
    product_sku = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)

    from_location = models.CharField(max_length=100, blank=True, default="")
    to_location = models.CharField(max_length=100, blank=True, default="")

    quantity = models.PositiveIntegerField()
    unit_cost = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    total_cost = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )

    journal_entry = models.OneToOneField(
        JournalEntry,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="inventory_transaction",
    )
    reverses_transaction = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversal_transaction",
    )

    order_id = models.UUIDField(null=True, blank=True, db_index=True)
    document_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_by = models.CharField(max_length=150)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-transaction_date", "-transaction_number"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_inv_txn_quantity_positive",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name="chk_inv_txn_unit_cost_non_negative",
            ),
            models.CheckConstraint(
                condition=~Q(transaction_type="TRANSFER") | Q(journal_entry__isnull=True),
                name="chk_inv_txn_transfer_not_posted",
            ),
        ]
        indexes = [
            models.Index(
                fields=["product", "-transaction_date", "-transaction_number"],
                name="inv_txn_product_date_idx",
            ),
            models.Index(
                fields=["-transaction_date", "-transaction_number"],
                name="inv_txn_date_number_idx",
            ),
        ]

    def __str__(self):
        return f"{self.transaction_number} {self.transaction_type} {self.product_sku} x{self.quantity}"

    def save(self, *args, **kwargs):
        assert_write_allowed("InventoryTransaction", self.WRITE_CONTEXTS)
        if not self._state.adding:
            raise LedgerIntegrityError(
                f"Inventory transaction {self.transaction_number} is immutable once recorded."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise LedgerIntegrityError(
            f"Inventory transaction {self.transaction_number} cannot be deleted. Reverse it instead."
        )

    @property
    def stock_delta(self) -> int:
        """Signed change this movement makes to on-hand stock."""
        delta = stock_delta_for(self.transaction_type, self.quantity, self.adjustment_direction)
        return -delta if self.reverses_transaction_id else delta

    @property
    def is_reversed(self) -> bool:
        return hasattr(self, "reversal_transaction")


def stock_delta_for(transaction_type: str, quantity: int, adjustment_direction: str | None = None) -> int:
    if transaction_type == TransactionType.RECEIVING:
        return quantity
    if transaction_type == TransactionType.SHIPPING:
        return -quantity
    if transaction_type == TransactionType.ADJUSTMENT:
        return quantity if adjustment_direction == AdjustmentDirection.GAIN else -quantity
    return 0


def total_cost_for(quantity: int, unit_cost: Decimal) -> Decimal:
    return (Decimal(quantity) * unit_cost).quantize(Decimal("0.01"))
