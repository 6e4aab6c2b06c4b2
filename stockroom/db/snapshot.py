"""Whole-snapshot persistence of items, departments and history."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import ValidationError
from ..models import Department, Item, TransactionRecord, now_iso
from .schema import ensure_schema

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "~/.config/stockroom/inventory.db"


@dataclass
class Snapshot:
    """The three persisted collections, always saved together."""

    items: list[Item] = field(default_factory=list)
    departments: list[Department] = field(default_factory=list)
    history: list[TransactionRecord] = field(default_factory=list)


class SnapshotDB:
    """Loads and replaces the catalog and ledger as one unit."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def load(self) -> Snapshot | None:
        """Read the stored snapshot.

        Returns:
            The snapshot, or None if nothing has been saved yet (first run).
            Rows that cannot be read back are skipped with a warning.
        """
        conn = self._get_conn()
        saved = conn.execute(
            "SELECT value FROM snapshot_meta WHERE key = 'saved_at'"
        ).fetchone()
        if saved is None:
            return None

        items = _read_rows(
            conn.execute("SELECT * FROM items ORDER BY position"), _item_from_row, "item"
        )
        departments = _read_rows(
            conn.execute("SELECT * FROM departments ORDER BY position"),
            _department_from_row,
            "department",
        )
        history = _read_rows(
            conn.execute("SELECT * FROM transaction_history ORDER BY position"),
            _record_from_row,
            "history record",
        )
        logger.info(
            "Loaded snapshot: %d items, %d departments, %d history records",
            len(items), len(departments), len(history),
        )
        return Snapshot(items=items, departments=departments, history=history)

    def save(self, snapshot: Snapshot) -> None:
        """Replace all stored collections in a single transaction."""
        conn = self._get_conn()
        with conn:
            conn.execute("DELETE FROM items")
            conn.execute("DELETE FROM departments")
            conn.execute("DELETE FROM transaction_history")
            conn.executemany(
                """INSERT INTO items
                   (id, position, name, unit, quantity, min_stock, location,
                    production_date, expiry_date, image, last_updated)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        i.id, pos, i.name, i.unit, i.quantity, i.min_stock,
                        i.location, i.production_date, i.expiry_date, i.image,
                        i.last_updated,
                    )
                    for pos, i in enumerate(snapshot.items)
                ],
            )
            conn.executemany(
                "INSERT INTO departments (id, position, name) VALUES (?, ?, ?)",
                [(d.id, pos, d.name) for pos, d in enumerate(snapshot.departments)],
            )
            conn.executemany(
                """INSERT INTO transaction_history
                   (id, position, date, timestamp, item_id, item_name, item_image,
                    department_id, department_name, type, quantity)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        r.id, pos, r.date, r.timestamp, r.item_id, r.item_name,
                        r.item_image, r.department_id, r.department_name, r.type,
                        r.quantity,
                    )
                    for pos, r in enumerate(snapshot.history)
                ],
            )
            conn.execute(
                "INSERT OR REPLACE INTO snapshot_meta (key, value) VALUES ('saved_at', ?)",
                (now_iso(),),
            )


def _read_rows(cursor, parse, kind: str) -> list:
    result = []
    for row in cursor.fetchall():
        try:
            result.append(parse(dict(row)))
        except ValidationError as e:
            logger.warning("Skipping malformed %s row %r: %s", kind, row["id"], e)
    return result


def _item_from_row(row: dict) -> Item:
    return Item.from_dict({
        "id": row["id"],
        "name": row["name"],
        "unit": row["unit"],
        "quantity": row["quantity"],
        "minStock": row["min_stock"],
        "location": row["location"],
        "productionDate": row["production_date"],
        "expiryDate": row["expiry_date"],
        "image": row["image"],
        "lastUpdated": row["last_updated"],
    })


def _department_from_row(row: dict) -> Department:
    return Department.from_dict({"id": row["id"], "name": row["name"]})


def _record_from_row(row: dict) -> TransactionRecord:
    return TransactionRecord.from_dict({
        "id": row["id"],
        "date": row["date"],
        "timestamp": row["timestamp"],
        "itemId": row["item_id"],
        "itemName": row["item_name"],
        "itemImage": row["item_image"],
        "departmentId": row["department_id"],
        "departmentName": row["department_name"],
        "type": row["type"],
        "quantity": row["quantity"],
    })
