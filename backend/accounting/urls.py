# accounting/urls.py
"""
URL configuration for accounting API.

Endpoints:
- /chart-of-accounts/ - Chart of Accounts (read-only)
- /trial-balance/ - Trial balance from cached balances
- /journal-entries/ - Posted journal entries (read-only)
"""

from django.urls import path

from .views import (
    AccountDetailView,
    ChartOfAccountsView,
    JournalEntryDetailView,
    JournalEntryListView,
    ProductJournalEntriesView,
    TrialBalanceView,
)

app_name = "accounting"

urlpatterns = [
    # ==========================================================================
    # Chart of Accounts
    # ==========================================================================
    path(
        "chart-of-accounts/",
        ChartOfAccountsView.as_view(),
        name="chart-of-accounts",
    ),
    path(
        "chart-of-accounts/<uuid:account_id>/",
        AccountDetailView.as_view(),
        name="account-detail",
    ),
    path(
        "trial-balance/",
        TrialBalanceView.as_view(),
        name="trial-balance",
    ),

    # ==========================================================================
    # Journal Entries
    # ==========================================================================
    path(
        "journal-entries/",
        JournalEntryListView.as_view(),
        name="journal-entry-list",
    ),
    path(
        "journal-entries/product/<uuid:product_id>/",
        ProductJournalEntriesView.as_view(),
        name="journal-entries-by-product",
    ),
    path(
        "journal-entries/<uuid:entry_id>/",
        JournalEntryDetailView.as_view(),
        name="journal-entry-detail",
    ),
]
