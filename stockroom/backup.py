"""JSON backup export and destructive restore."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .db import Snapshot
from .errors import InvalidBackupFormat, ValidationError
from .models import Department, Item, TransactionRecord, now_iso, today_iso
from .store import InventoryStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"


def export_backup(store: InventoryStore) -> dict[str, Any]:
    """Return ``{items, departments, history, version, timestamp}``."""
    snapshot = store.snapshot()
    return {
        "items": [i.to_dict() for i in snapshot.items],
        "departments": [d.to_dict() for d in snapshot.departments],
        "history": [r.to_dict() for r in snapshot.history],
        "version": BACKUP_VERSION,
        "timestamp": now_iso(),
    }


def default_backup_name() -> str:
    return f"SmartInventory_Backup_{today_iso()}.json"


def write_backup(store: InventoryStore, path: str | Path) -> Path:
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(export_backup(store), ensure_ascii=False, indent=2), encoding="utf-8"
    )
    return path


def read_backup(path: str | Path) -> dict[str, Any]:
    """Load a backup file.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidBackupFormat: If the file is not a JSON object.
    """
    path = Path(path).expanduser()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidBackupFormat(f"Cannot read backup file {path}: {e}")
    if not isinstance(payload, dict):
        raise InvalidBackupFormat(f"Backup file {path} does not contain an object")
    return payload


def parse_backup(payload: Any) -> Snapshot:
    """Validate a backup payload and convert it to a snapshot.

    ``items`` and ``departments`` must be lists; ``history`` may be
    missing. An entry that cannot be read, or an id used twice within one
    collection, rejects the whole payload.

    Raises:
        InvalidBackupFormat: On any shape or content problem.
    """
    if not isinstance(payload, dict):
        raise InvalidBackupFormat("Backup payload must be an object")
    items = payload.get("items")
    departments = payload.get("departments")
    if not isinstance(items, list) or not isinstance(departments, list):
        raise InvalidBackupFormat("Backup must contain 'items' and 'departments' lists")
    history = payload.get("history")
    if not isinstance(history, list):
        history = []

    try:
        snapshot = Snapshot(
            items=[Item.from_dict(i) for i in items],
            departments=[Department.from_dict(d) for d in departments],
            history=[TransactionRecord.from_dict(r) for r in history],
        )
    except (ValidationError, AttributeError) as e:
        raise InvalidBackupFormat(f"Backup contains an unreadable entry: {e}")

    for kind, entries in (
        ("item", snapshot.items),
        ("department", snapshot.departments),
        ("history record", snapshot.history),
    ):
        duplicates = _duplicate_ids(entries)
        if duplicates:
            raise InvalidBackupFormat(
                f"Backup repeats {kind} ids: {', '.join(duplicates)}"
            )
    return snapshot


def _duplicate_ids(entries) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for entry in entries:
        if entry.id in seen and entry.id not in duplicates:
            duplicates.append(entry.id)
        seen.add(entry.id)
    return duplicates


def restore_backup(store: InventoryStore, payload: Any) -> Snapshot:
    """Replace items, departments and history with the backup's contents."""
    snapshot = parse_backup(payload)
    store.replace(snapshot)
    logger.info(
        "Restored backup: %d items, %d departments, %d history records",
        len(snapshot.items), len(snapshot.departments), len(snapshot.history),
    )
    return snapshot
