"""Explicit store object holding the catalog and the ledger."""

from __future__ import annotations

import logging

from .catalog import CatalogStore
from .db import Snapshot, SnapshotDB
from .ledger import Ledger
from .models import Department, Item

logger = logging.getLogger(__name__)


class InventoryStore:
    """Catalog + ledger with a load/mutate/flush lifecycle.

    Built once from the persisted snapshot; every mutation goes through
    this object (or the commit/reversal processors, which call
    :meth:`flush`) and the whole snapshot is written back afterwards.
    Without a ``db`` the store is purely in memory.
    """

    def __init__(
        self,
        catalog: CatalogStore | None = None,
        ledger: Ledger | None = None,
        db: SnapshotDB | None = None,
    ) -> None:
        self.catalog = catalog or CatalogStore()
        self.ledger = ledger or Ledger()
        self._db = db

    @classmethod
    def open(
        cls,
        db: SnapshotDB,
        default_departments: list[str] | None = None,
    ) -> InventoryStore:
        """Load the store from ``db``, seeding departments on first run."""
        snapshot = db.load()
        if snapshot is None:
            logger.info("No saved inventory found; starting a new one")
            snapshot = Snapshot(departments=seed_departments(default_departments or []))
            store = cls(db=db)
            store.replace(snapshot)
            return store
        store = cls(db=db)
        store._load(snapshot)
        return store

    def _load(self, snapshot: Snapshot) -> None:
        self.catalog = CatalogStore(snapshot.items, snapshot.departments)
        self.ledger = Ledger(snapshot.history)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            items=self.catalog.items,
            departments=self.catalog.departments,
            history=self.ledger.records,
        )

    def replace(self, snapshot: Snapshot) -> None:
        """Swap in all three collections at once.

        The snapshot is written first; if the save fails the in-memory
        store keeps its previous contents.
        """
        if self._db is not None:
            self._db.save(snapshot)
        self._load(snapshot)

    def flush(self) -> None:
        if self._db is not None:
            self._db.save(self.snapshot())

    def close(self) -> None:
        if self._db is not None:
            self._db.close()

    # Catalog commands

    def upsert_item(self, item: Item, *, allow_negative_quantity: bool = False) -> Item:
        stored = self.catalog.upsert_item(item, allow_negative_quantity=allow_negative_quantity)
        self.flush()
        return stored

    def delete_item(self, item_id: str) -> Item:
        removed = self.catalog.delete_item(item_id)
        self.flush()
        return removed

    def delete_items(self, item_ids: list[str]) -> int:
        count = self.catalog.delete_items(item_ids)
        if count:
            self.flush()
        return count

    def relocate_items(self, item_ids: list[str], location: str) -> list[Item]:
        moved = self.catalog.relocate_items(item_ids, location)
        self.flush()
        return moved

    def add_department(self, name: str) -> Department | None:
        dept = self.catalog.add_department(name)
        if dept is not None:
            self.flush()
        return dept


def seed_departments(names: list[str]) -> list[Department]:
    """First-run departments with ids ``d1``, ``d2``, ..."""
    return [Department(id=f"d{n}", name=name) for n, name in enumerate(names, 1)]
