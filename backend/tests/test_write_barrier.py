# tests/test_write_barrier.py
"""
Tests for write barrier enforcement.

These run with settings.TESTING=False so the barrier is live.
"""

from decimal import Decimal

import pytest

from accounting.models import Account, JournalEntry, LedgerSequence
from inventory.commands import record_inventory_transaction, reverse_inventory_transaction
from inventory.models import InventoryTransaction
from projections.balances import rebuild_balances
from projections.write_barrier import (
    command_writes_allowed,
    current_write_context,
    ledger_writes_allowed,
    projection_writes_allowed,
)


@pytest.mark.django_db
def test_direct_account_update_raises(chart, settings):
    settings.TESTING = False

    with pytest.raises(RuntimeError, match="Direct update calls are only allowed"):
        Account.objects.filter(code="1.1.03.001").update(balance=Decimal("1.00"))


@pytest.mark.django_db
def test_direct_journal_entry_save_raises(settings):
    settings.TESTING = False

    entry = JournalEntry(
        entry_number="JE-202410-000099",
        entry_date="2024-10-01",
        document_type=JournalEntry.DocumentType.PURCHASE,
        total_amount=Decimal("1.00"),
        created_by="user-1",
    )
    with pytest.raises(RuntimeError, match="ledger_writes_allowed"):
        entry.save()


@pytest.mark.django_db
def test_command_context_cannot_write_journal(settings):
    settings.TESTING = False

    with command_writes_allowed():
        with pytest.raises(RuntimeError, match="JournalEntry is ledger-owned"):
            JournalEntry.objects.create(
                entry_number="JE-202410-000099",
                entry_date="2024-10-01",
                document_type=JournalEntry.DocumentType.PURCHASE,
                total_amount=Decimal("1.00"),
                created_by="user-1",
            )


@pytest.mark.django_db
def test_sequence_writes_need_a_context(settings):
    settings.TESTING = False

    with pytest.raises(RuntimeError, match="LedgerSequence"):
        LedgerSequence.objects.create(name="test", period="202410")

    with command_writes_allowed():
        LedgerSequence.objects.create(name="test", period="202410")

    assert LedgerSequence.objects.filter(name="test").exists()


@pytest.mark.django_db
def test_inventory_transactions_cannot_be_bulk_updated(settings):
    settings.TESTING = False

    with ledger_writes_allowed():
        with pytest.raises(RuntimeError, match="InventoryTransaction"):
            InventoryTransaction.objects.update(notes="edited")


def test_contexts_nest():
    assert current_write_context() is None

    with command_writes_allowed():
        assert current_write_context() == "command"
        with ledger_writes_allowed():
            assert current_write_context() == "ledger"
        assert current_write_context() == "command"

    assert current_write_context() is None


@pytest.mark.django_db
def test_projection_context_allows_rebuild(chart, settings):
    settings.TESTING = False

    with projection_writes_allowed():
        Account.objects.filter(code="1.1.03.001").update(balance=Decimal("1.00"))

    assert rebuild_balances()["repaired"] == ["1.1.03.001"]


@pytest.mark.django_db
def test_recorder_runs_with_barrier_enabled(record, product, settings):
    settings.TESTING = False

    received = record(product, "RECEIVING", 10, "100.00")
    shipped = record(product, "SHIPPING", 4, "100.00")
    reversed_ = reverse_inventory_transaction(shipped.data.public_id, "user-1")

    assert received.success, received.error
    assert shipped.success, shipped.error
    assert reversed_.success, reversed_.error
    assert Account.objects.get(code="1.1.03.001").balance == Decimal("1000.00")


@pytest.mark.django_db
def test_recorder_validation_failure_with_barrier_enabled(chart, product, settings):
    settings.TESTING = False

    result = record_inventory_transaction(
        "SHIPPING", product.public_id, product.sku, None, 1, Decimal("1.00"), None, "user-1",
        from_location="WH-MAIN",
    )

    assert result.error_code == "insufficient_stock"
