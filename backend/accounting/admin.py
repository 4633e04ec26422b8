# accounting/admin.py
"""
Django admin configuration for accounting models.

IMPORTANT: These are LEDGER-OWNED tables.
=========================================
The admin interface is for viewing only. Journal entries and balances are
written by accounting.ledger; edits here would bypass the double-entry
checks and desynchronize balances from the entry log.
"""

from django.contrib import admin

from .models import Account, AccountingEntry, JournalEntry, LedgerSequence


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    Base admin class for ledger-owned models.

    To change the ledger, record or reverse an inventory transaction.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Account)
class AccountAdmin(ReadOnlyModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "normal_balance",
        "is_analytic",
        "is_active",
        "balance",
    )
    list_filter = ("account_type", "is_analytic", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)


class AccountingEntryInline(admin.TabularInline):
    model = AccountingEntry
    extra = 0
    can_delete = False
    fields = ("line_no", "account", "entry_type", "amount", "description", "cost_center")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyModelAdmin):
    list_display = (
        "entry_number",
        "entry_date",
        "document_type",
        "kind",
        "total_amount",
        "is_posted",
        "created_by",
    )
    list_filter = ("document_type", "kind", "is_posted")
    search_fields = ("entry_number", "document_number", "narrative")
    date_hierarchy = "entry_date"
    inlines = [AccountingEntryInline]


@admin.register(LedgerSequence)
class LedgerSequenceAdmin(ReadOnlyModelAdmin):
    list_display = ("name", "period", "next_value", "updated_at")
