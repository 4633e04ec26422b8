# tests/conftest.py
"""
Pytest fixtures for the posting engine tests.

- chart: the default chart of accounts, seeded through seed_default_chart()
- product / stocked_product: catalog rows the recorder moves stock on
- record: shortcut around record_inventory_transaction with sane defaults
- api_client: DRF client authenticated as a regular user
"""

from decimal import Decimal

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounting.chart import seed_default_chart
from accounting.models import Account
from inventory.commands import record_inventory_transaction
from inventory.models import Product


User = get_user_model()

ACTOR = "user-1"


@pytest.fixture(autouse=True, scope="session")
def _testing_settings():
    """Let fixtures write ledger-owned rows directly."""
    settings.TESTING = True
    settings.LEDGER_RETRY_BACKOFF_SECONDS = 0


# =============================================================================
# Ledger Fixtures
# =============================================================================

@pytest.fixture
def chart(db):
    """Seed the default chart of accounts and return it keyed by code."""
    seed_default_chart()
    return {account.code: account for account in Account.objects.all()}


@pytest.fixture
def balance(chart):
    """Current cached balance of an account, read fresh from the database."""

    def _balance(code: str) -> Decimal:
        return Account.objects.get(code=code).balance

    return _balance


# =============================================================================
# Product Fixtures
# =============================================================================

@pytest.fixture
def product(db):
    return Product.objects.create(sku="WID-001", name="Widget", stock_quantity=0)


@pytest.fixture
def other_product(db):
    return Product.objects.create(sku="GAD-001", name="Gadget", stock_quantity=0)


@pytest.fixture
def stocked_product(db):
    """A product with 10 units on hand and no ledger history."""
    return Product.objects.create(sku="STK-001", name="Stocked Widget", stock_quantity=10)


# =============================================================================
# Recorder Shortcut
# =============================================================================

_DEFAULT_LOCATIONS = {
    "RECEIVING": {"to_location": "WH-MAIN"},
    "SHIPPING": {"from_location": "WH-MAIN"},
    "ADJUSTMENT": {"to_location": "WH-MAIN"},
    "TRANSFER": {"from_location": "WH-MAIN", "to_location": "WH-NORTH"},
}


@pytest.fixture
def record(chart):
    """
    Record a movement with default locations and actor.

    Usage:
        result = record(product, "RECEIVING", 10, "100.00")
    """

    def _record(product, transaction_type, quantity, unit_cost, **overrides):
        params = {
            "to_location": None,
            "from_location": None,
            **_DEFAULT_LOCATIONS.get(transaction_type, {}),
            **overrides,
        }
        return record_inventory_transaction(
            transaction_type,
            product.public_id,
            params.pop("sku", product.sku),
            params.pop("name", None),
            quantity,
            Decimal(str(unit_cost)) if isinstance(unit_cost, (int, float)) else unit_cost,
            params.pop("to_location"),
            params.pop("actor_id", ACTOR),
            **params,
        )

    return _record


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def user(db):
    return User.objects.create_user(username="clerk", email="clerk@example.com", password="testpass123")


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def anon_client():
    return APIClient()
