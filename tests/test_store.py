"""Tests for InventoryStore lifecycle."""

import sqlite3
from unittest.mock import patch

import pytest

from stockroom.db import Snapshot, SnapshotDB
from stockroom.models import Item
from stockroom.store import InventoryStore, seed_departments


def test_open_first_run_seeds_departments(tmp_path):
    db = SnapshotDB(tmp_path / "inv.db")
    store = InventoryStore.open(db, ["Frontdesk", "Kitchen"])
    assert [(d.id, d.name) for d in store.catalog.departments] == [
        ("d1", "Frontdesk"), ("d2", "Kitchen"),
    ]
    # seeded departments are persisted immediately
    assert [d.name for d in db.load().departments] == ["Frontdesk", "Kitchen"]
    store.close()


def test_open_existing_does_not_reseed(tmp_path):
    path = tmp_path / "inv.db"
    store = InventoryStore.open(SnapshotDB(path), ["Frontdesk"])
    store.add_department("Laundry")
    store.close()

    reopened = InventoryStore.open(SnapshotDB(path), ["Something else"])
    assert [d.name for d in reopened.catalog.departments] == ["Frontdesk", "Laundry"]
    reopened.close()


def test_mutations_flush(tmp_path):
    path = tmp_path / "inv.db"
    store = InventoryStore.open(SnapshotDB(path), [])
    store.upsert_item(Item(id="i1", name="Towel", quantity=3, location="W2"))
    store.upsert_item(Item(id="i2", name="Soap", quantity=1, location="W2"))
    store.delete_item("i2")
    store.close()

    reopened = InventoryStore.open(SnapshotDB(path), [])
    assert [i.id for i in reopened.catalog.items] == ["i1"]
    reopened.close()


def test_in_memory_store_flush_is_noop():
    store = InventoryStore()
    store.upsert_item(Item(id="i1", name="Towel", location="W2"))
    store.flush()
    assert store.snapshot().items[0].id == "i1"


def test_seed_departments_ids():
    assert [d.id for d in seed_departments(["a", "b", "c"])] == ["d1", "d2", "d3"]


def test_replace_keeps_old_contents_when_save_fails(tmp_path):
    db = SnapshotDB(tmp_path / "inv.db")
    store = InventoryStore.open(db, ["Kitchen"])
    store.upsert_item(Item(id="i1", name="Towel", quantity=3, location="W2"))

    incoming = Snapshot(items=[Item(id="x", name="Mop", location="W2")])
    with patch.object(db, "save", side_effect=sqlite3.OperationalError("disk I/O error")):
        with pytest.raises(sqlite3.OperationalError):
            store.replace(incoming)

    assert [i.id for i in store.catalog.items] == ["i1"]
    assert [d.name for d in store.catalog.departments] == ["Kitchen"]
    assert [i.id for i in db.load().items] == ["i1"]
    store.close()
