"""
Initial migration for inventory app.

Creates:
- Product: catalog boundary record carrying on-hand stock
- InventoryTransaction: recorded stock movements linked to journal entries
"""
import uuid

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("stock_quantity", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("is_deleted", models.BooleanField(default=False)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["sku"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("stock_quantity__gte", 0)),
                        name="chk_product_stock_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InventoryTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("transaction_number", models.CharField(max_length=50, unique=True)),
                ("transaction_date", models.DateTimeField()),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("RECEIVING", "Receiving"),
                            ("SHIPPING", "Shipping"),
                            ("ADJUSTMENT", "Adjustment"),
                            ("TRANSFER", "Transfer"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "adjustment_direction",
                    models.CharField(
                        blank=True,
                        choices=[("GAIN", "Gain"), ("LOSS", "Loss")],
                        default="",
                        max_length=10,
                    ),
                ),
                (
                    "settlement",
                    models.CharField(
                        blank=True,
                        choices=[("PAYABLE", "On account"), ("CASH", "Cash")],
                        default="",
                        max_length=10,
                    ),
                ),
                ("product_sku", models.CharField(max_length=64)),
                ("product_name", models.CharField(max_length=255)),
                ("from_location", models.CharField(blank=True, default="", max_length=100)),
                ("to_location", models.CharField(blank=True, default="", max_length=100)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_cost", models.DecimalField(decimal_places=2, max_digits=18)),
                ("total_cost", models.DecimalField(decimal_places=2, max_digits=18)),
                ("order_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("document_number", models.CharField(blank=True, default="", max_length=100)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_by", models.CharField(max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="inventory.product",
                    ),
                ),
                (
                    "journal_entry",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="inventory_transaction",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "reverses_transaction",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversal_transaction",
                        to="inventory.inventorytransaction",
                    ),
                ),
            ],
            options={
                "ordering": ["-transaction_date", "-transaction_number"],
                "indexes": [
                    models.Index(
                        fields=["product", "-transaction_date", "-transaction_number"],
                        name="inv_txn_product_date_idx",
                    ),
                    models.Index(
                        fields=["-transaction_date", "-transaction_number"],
                        name="inv_txn_date_number_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="chk_inv_txn_quantity_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_cost__gte", 0)),
                        name="chk_inv_txn_unit_cost_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("transaction_type", "TRANSFER"), _negated=True),
                            ("journal_entry__isnull", True),
                            _connector="OR",
                        ),
                        name="chk_inv_txn_transfer_not_posted",
                    ),
                ],
            },
        ),
    ]
