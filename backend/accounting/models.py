# accounting/models.py
"""
Ledger models for the Stockledger posting engine.

These tables are LEDGER-OWNED.
==============================
Rows are written by accounting.ledger (journal entries, lines and the
balance columns on Account) inside ledger_writes_allowed(). Nothing else
may save, update or delete them:

- Posted journal entries are immutable; corrections are REVERSAL entries.
- Accounting entries (ledger lines) are insert-only.
- Accounts are never hard-deleted; use accounting.commands.deactivate_account.

Models:
- Account: Chart of Accounts with cached running balances
- LedgerSequence: period-scoped counters used by accounting.numbering
- JournalEntry: journal entry header
- AccountingEntry: one debit or credit line of a journal entry
"""

from decimal import Decimal
import uuid

from django.db import models
from django.db.models import Q, Sum

from accounting.exceptions import LedgerIntegrityError
from projections.write_barrier import assert_write_allowed


MONEY_MAX_DIGITS = 18
MONEY_DECIMAL_PLACES = 2


class LedgerQuerySet(models.QuerySet):
    """QuerySet that refuses bulk writes outside the model's write contexts."""

    def _guard(self, action: str) -> None:
        assert_write_allowed(self.model.__name__, self.model.WRITE_CONTEXTS, action)

    def bulk_create(self, objs, *args, **kwargs):
        """Objects must be pre-validated since save() isn't called."""
        self._guard("bulk_create")
        return super().bulk_create(objs, *args, **kwargs)

    def update(self, **kwargs):
        self._guard("update")
        return super().update(**kwargs)

    def delete(self):
        self._guard("delete")
        return super().delete()


class LedgerManager(models.Manager):
    def get_queryset(self):
        return LedgerQuerySet(self.model, using=self._db)


class LedgerOwnedModel(models.Model):
    WRITE_CONTEXTS: set[str] = {"ledger"}

    objects = LedgerManager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        assert_write_allowed(self.__class__.__name__, self.WRITE_CONTEXTS)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        assert_write_allowed(self.__class__.__name__, self.WRITE_CONTEXTS, "delete")
        return super().delete(*args, **kwargs)


class EntryType(models.TextChoices):
    DEBIT = "DEBIT", "Debit"
    CREDIT = "CREDIT", "Credit"


class LedgerSequence(models.Model):
    """
    Period-scoped counters for sequential document numbers.

    This is a write model used by accounting.numbering to allocate unique
    numbers under concurrency. The row is locked and incremented inside the
    same transaction that inserts the numbered record.
    """

    WRITE_CONTEXTS = {"command", "ledger"}

    objects = LedgerManager()

    name = models.CharField(max_length=100)
    period = models.CharField(max_length=6, help_text="YYYYMM")
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["name", "period"],
                name="uniq_ledger_sequence_period",
            ),
        ]

    def __str__(self):
        return f"{self.name}:{self.period}={self.next_value}"

    def save(self, *args, **kwargs):
        assert_write_allowed("LedgerSequence", self.WRITE_CONTEXTS)
        super().save(*args, **kwargs)


class AccountQuerySet(LedgerQuerySet):
    def delete(self):
        raise LedgerIntegrityError("Accounts are never deleted. Deactivate the account instead.")

    def postable(self):
        return self.filter(is_analytic=True, is_active=True)


class AccountManager(models.Manager):
    def get_queryset(self):
        return AccountQuerySet(self.model, using=self._db)

    def postable(self):
        return self.get_queryset().postable()


class Account(LedgerOwnedModel):
    """
    Chart of Accounts entry.

    Supports:
    - Hierarchical structure (summary parents, analytic leaves)
    - Account types with normal balance rules
    - Soft deactivation (accounts are never deleted)
    - A cached running balance, maintained by the ledger writer and
      reconciled against the entry log by projections.balances
    """

    WRITE_CONTEXTS = {"ledger", "command", "projection", "bootstrap"}

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        EXPENSE = "EXPENSE", "Expense"

    NormalBalance = EntryType

    NORMAL_BALANCE_MAP = {
        AccountType.ASSET: EntryType.DEBIT,
        AccountType.EXPENSE: EntryType.DEBIT,
        AccountType.LIABILITY: EntryType.CREDIT,
        AccountType.EQUITY: EntryType.CREDIT,
        AccountType.REVENUE: EntryType.CREDIT,
    }

    objects = AccountManager()

    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)
    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
    )
    normal_balance = models.CharField(
        max_length=10,
        choices=EntryType.choices,
        editable=False,
    )
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )
    is_analytic = models.BooleanField(
        default=True,
        help_text="Analytic (leaf) accounts receive postings; summary accounts only group them",
    )
    is_active = models.BooleanField(default=True)

    # Cached projection of the entry log; written only by accounting.ledger
    balance = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    debit_total = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    credit_total = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        default=Decimal("0.00"),
    )
    version = models.PositiveIntegerField(default=0)

    description = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["account_type"], name="account_type_idx"),
            models.Index(fields=["parent"], name="account_parent_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def save(self, *args, **kwargs):
        self.normal_balance = self.NORMAL_BALANCE_MAP[self.account_type]
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise LedgerIntegrityError(
            f"Account {self.code} cannot be deleted. Deactivate it instead."
        )

    @property
    def level(self) -> int:
        return len(self.get_ancestors()) + 1

    def get_ancestors(self) -> list["Account"]:
        """Returns list of ancestor accounts from root to immediate parent."""
        ancestors = []
        current = self.parent
        while current:
            ancestors.insert(0, current)
            current = current.parent
        return ancestors

    def get_descendants(self) -> list["Account"]:
        """Returns all descendant accounts (children, grandchildren, etc.)."""
        descendants = list(self.children.all())
        for child in list(descendants):
            descendants.extend(child.get_descendants())
        return descendants

    def signed_amount(self, entry_type: str, amount: Decimal) -> Decimal:
        """
        Effect of a posting on this account's balance.

        Postings on the normal side increase the balance, postings on the
        opposite side decrease it.
        """
        return amount if entry_type == self.normal_balance else -amount


class JournalEntry(LedgerOwnedModel):
    """
    Journal entry header.

    Created already posted, together with its two lines, by
    accounting.ledger.write_journal_entry. A posted entry is never edited;
    reversal creates a new REVERSAL entry pointing at the original.
    """

    class Kind(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        REVERSAL = "REVERSAL", "Reversal"

    class DocumentType(models.TextChoices):
        PURCHASE = "PURCHASE", "Purchase"
        COGS = "COGS", "Cost of goods sold"
        ADJUSTMENT = "ADJUSTMENT", "Inventory gain"
        LOSS = "LOSS", "Inventory loss"
        REVERSAL = "REVERSAL", "Reversal"

    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )
    entry_number = models.CharField(max_length=50, unique=True)
    entry_date = models.DateField()

    document_type = models.CharField(max_length=20, choices=DocumentType.choices)
    document_number = models.CharField(max_length=100, blank=True, default="")
    narrative = models.CharField(max_length=500, blank=True, default="")
    total_amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.NORMAL,
    )

    is_posted = models.BooleanField(default=False)
    posted_at = models.DateTimeField(null=True, blank=True)

    source_module = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Module that created this entry (e.g., 'inventory')",
    )

    # Backlinks to the originating records, by their external identifiers
    product_id = models.UUIDField(null=True, blank=True, db_index=True)
    inventory_transaction_id = models.UUIDField(null=True, blank=True, db_index=True)
    order_id = models.UUIDField(null=True, blank=True, db_index=True)

    reverses_entry = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversal_entry",
    )

    created_by = models.CharField(max_length=150)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["-entry_date", "-entry_number"], name="je_date_number_idx"),
        ]
        ordering = ["-entry_date", "-entry_number"]
        verbose_name_plural = "journal entries"

    def __str__(self):
        return f"{self.entry_number} ({self.entry_date}) {self.total_amount}"

    def save(self, *args, **kwargs):
        if not self._state.adding and type(self).objects.filter(pk=self.pk, is_posted=True).exists():
            raise LedgerIntegrityError(
                f"Journal entry {self.entry_number} is posted and cannot be modified. "
                "Post a reversal instead."
            )
        if self.reverses_entry_id and self.kind != self.Kind.REVERSAL:
            raise LedgerIntegrityError("If reverses_entry is set, kind must be REVERSAL.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.is_posted:
            raise LedgerIntegrityError(
                f"Journal entry {self.entry_number} is posted and cannot be deleted."
            )
        return super().delete(*args, **kwargs)

    @property
    def is_reversed(self) -> bool:
        return hasattr(self, "reversal_entry")

    @property
    def total_debit(self) -> Decimal:
        return self.lines.filter(entry_type=EntryType.DEBIT).aggregate(
            total=Sum("amount")
        )["total"] or Decimal("0.00")

    @property
    def total_credit(self) -> Decimal:
        return self.lines.filter(entry_type=EntryType.CREDIT).aggregate(
            total=Sum("amount")
        )["total"] or Decimal("0.00")

    @property
    def is_balanced(self) -> bool:
        """Check if debits equal credits."""
        return self.total_debit == self.total_credit


class AccountingEntry(LedgerOwnedModel):
    """
    One side of a journal entry: a single debit or credit to one account.
    Insert-only.
    """

    EntryType = EntryType

    public_id = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
    )
    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        related_name="lines",
    )
    line_no = models.PositiveIntegerField()
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="entries",
    )
    entry_type = models.CharField(max_length=10, choices=EntryType.choices)
    amount = models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    description = models.CharField(max_length=255, blank=True, default="")
    cost_center = models.CharField(max_length=100, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["journal_entry", "line_no"]
        verbose_name_plural = "accounting entries"
        constraints = [
            models.UniqueConstraint(
                fields=["journal_entry", "line_no"],
                name="uniq_entry_line_no",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_entry_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(entry_type__in=["DEBIT", "CREDIT"]),
                name="chk_entry_type_valid",
            ),
        ]
        indexes = [
            models.Index(fields=["account", "created_at"], name="entry_account_created_idx"),
        ]

    def __str__(self):
        return f"{self.journal_entry_id} L{self.line_no} {self.entry_type} {self.amount}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise LedgerIntegrityError("Accounting entries are immutable once written.")
        super().save(*args, **kwargs)
