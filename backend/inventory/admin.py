# inventory/admin.py
"""
Django admin configuration for inventory models.

Products are maintained by the catalog; the admin may edit their
descriptive fields but never their stock, which only the recorder moves.
Inventory transactions are read-only.
"""

from django.contrib import admin

from accounting.admin import ReadOnlyModelAdmin
from .models import InventoryTransaction, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "stock_quantity", "is_active", "is_deleted")
    list_filter = ("is_active", "is_deleted")
    search_fields = ("sku", "name")
    readonly_fields = ("public_id", "stock_quantity", "version", "created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(ReadOnlyModelAdmin):
    list_display = (
        "transaction_number",
        "transaction_date",
        "transaction_type",
        "product_sku",
        "quantity",
        "unit_cost",
        "total_cost",
        "journal_entry",
    )
    list_filter = ("transaction_type",)
    search_fields = ("transaction_number", "product_sku", "document_number")
    date_hierarchy = "transaction_date"
    raw_id_fields = ("product", "journal_entry", "reverses_transaction")
