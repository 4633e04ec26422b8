"""
Initial migration for accounting app.

Creates:
- LedgerSequence: period-scoped document number counters
- Account: chart of accounts with cached balances
- JournalEntry: journal entry headers
- AccountingEntry: debit/credit lines
"""
import uuid
from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LedgerSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("period", models.CharField(help_text="YYYYMM", max_length=6)),
                ("next_value", models.BigIntegerField(default=1)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("name", "period"), name="uniq_ledger_sequence_period"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                (
                    "account_type",
                    models.CharField(
                        choices=[
                            ("ASSET", "Asset"),
                            ("LIABILITY", "Liability"),
                            ("EQUITY", "Equity"),
                            ("REVENUE", "Revenue"),
                            ("EXPENSE", "Expense"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "normal_balance",
                    models.CharField(
                        choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")],
                        editable=False,
                        max_length=10,
                    ),
                ),
                (
                    "is_analytic",
                    models.BooleanField(
                        default=True,
                        help_text="Analytic (leaf) accounts receive postings; summary accounts only group them",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("debit_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("version", models.PositiveIntegerField(default=0)),
                ("description", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["account_type"], name="account_type_idx"),
                    models.Index(fields=["parent"], name="account_parent_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("entry_number", models.CharField(max_length=50, unique=True)),
                ("entry_date", models.DateField()),
                (
                    "document_type",
                    models.CharField(
                        choices=[
                            ("PURCHASE", "Purchase"),
                            ("COGS", "Cost of goods sold"),
                            ("ADJUSTMENT", "Inventory gain"),
                            ("LOSS", "Inventory loss"),
                            ("REVERSAL", "Reversal"),
                        ],
                        max_length=20,
                    ),
                ),
                ("document_number", models.CharField(blank=True, default="", max_length=100)),
                ("narrative", models.CharField(blank=True, default="", max_length=500)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                (
                    "kind",
                    models.CharField(
                        choices=[("NORMAL", "Normal"), ("REVERSAL", "Reversal")],
                        default="NORMAL",
                        max_length=20,
                    ),
                ),
                ("is_posted", models.BooleanField(default=False)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "source_module",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Module that created this entry (e.g., 'inventory')",
                        max_length=50,
                    ),
                ),
                ("product_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("inventory_transaction_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("order_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("created_by", models.CharField(max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "reverses_entry",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversal_entry",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ["-entry_date", "-entry_number"],
                "indexes": [
                    models.Index(fields=["-entry_date", "-entry_number"], name="je_date_number_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AccountingEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("line_no", models.PositiveIntegerField()),
                (
                    "entry_type",
                    models.CharField(choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")], max_length=10),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("cost_center", models.CharField(blank=True, default="", max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="entries",
                        to="accounting.account",
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lines",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "accounting entries",
                "ordering": ["journal_entry", "line_no"],
                "indexes": [
                    models.Index(fields=["account", "created_at"], name="entry_account_created_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("journal_entry", "line_no"), name="uniq_entry_line_no"),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="chk_entry_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("entry_type__in", ["DEBIT", "CREDIT"])),
                        name="chk_entry_type_valid",
                    ),
                ],
            },
        ),
    ]
