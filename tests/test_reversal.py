"""Tests for ReversalProcessor."""

import pytest

from stockroom.catalog import CatalogStore
from stockroom.errors import NotFoundError
from stockroom.ledger import Ledger
from stockroom.models import Department, Item, TransactionRecord
from stockroom.reversal import ReversalProcessor
from stockroom.store import InventoryStore


def _record(record_id, record_type, quantity, item_id="i1"):
    return TransactionRecord(
        id=record_id, date="2024-05-01", timestamp="2024-05-01T10:00:00+00:00",
        item_id=item_id, item_name="Towel", item_image="", department_id="d1",
        department_name="Kitchen", type=record_type, quantity=quantity,
    )


@pytest.fixture
def store():
    return InventoryStore(
        catalog=CatalogStore(
            items=[Item(id="i1", name="Towel", quantity=10, location="W2")],
            departments=[Department("d1", "Kitchen")],
        ),
        ledger=Ledger([_record("r-in", "in", 5), _record("r-out", "out", 3)]),
    )


def test_delete_in_with_revert_subtracts(store):
    outcome = ReversalProcessor(store).delete_record("r-in", revert=True)
    assert outcome.reverted
    assert store.catalog.get_item("i1").quantity == 5
    assert store.ledger.get("r-in") is None


def test_delete_in_without_revert_keeps_quantity(store):
    outcome = ReversalProcessor(store).delete_record("r-in", revert=False)
    assert not outcome.reverted
    assert outcome.record.id == "r-in"
    assert store.catalog.get_item("i1").quantity == 10
    assert [r.id for r in store.ledger] == ["r-out"]


def test_delete_out_with_revert_adds_back(store):
    ReversalProcessor(store).delete_record("r-out", revert=True)
    assert store.catalog.get_item("i1").quantity == 13


def test_revert_when_item_deleted(store):
    """Record goes away even though the stock can't be adjusted."""
    store.catalog.delete_item("i1")
    outcome = ReversalProcessor(store).delete_record("r-in", revert=True)
    assert not outcome.reverted
    assert store.ledger.get("r-in") is None


def test_delete_unknown_record(store):
    with pytest.raises(NotFoundError):
        ReversalProcessor(store).delete_record("missing", revert=True)
    assert len(store.ledger) == 2
    assert store.catalog.get_item("i1").quantity == 10
