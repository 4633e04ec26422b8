# inventory/urls.py
"""
URL configuration for inventory API.

Endpoints:
- /transactions/ - Record a stock movement
- /transactions/<id>/ - One movement
- /transactions/<id>/reverse/ - Reverse a movement
- /transactions/product/<product_id>/ - Movements of one product
- /transactions/period/?start=&end= - Movements within a period
"""

from django.urls import path

from .views import (
    InventoryTransactionCreateView,
    InventoryTransactionDetailView,
    InventoryTransactionReverseView,
    ProductTransactionsView,
    TransactionsByPeriodView,
)

app_name = "inventory"

urlpatterns = [
    path(
        "transactions/",
        InventoryTransactionCreateView.as_view(),
        name="transaction-create",
    ),
    path(
        "transactions/period/",
        TransactionsByPeriodView.as_view(),
        name="transactions-by-period",
    ),
    path(
        "transactions/product/<uuid:product_id>/",
        ProductTransactionsView.as_view(),
        name="transactions-by-product",
    ),
    path(
        "transactions/<uuid:transaction_id>/",
        InventoryTransactionDetailView.as_view(),
        name="transaction-detail",
    ),
    path(
        "transactions/<uuid:transaction_id>/reverse/",
        InventoryTransactionReverseView.as_view(),
        name="transaction-reverse",
    ),
]
