"""SQLite persistence for the inventory snapshot and draft sessions."""

from .schema import ensure_schema
from .snapshot import DEFAULT_DB_PATH, Snapshot, SnapshotDB
from .workbench import WorkbenchDB

__all__ = [
    "DEFAULT_DB_PATH",
    "Snapshot",
    "SnapshotDB",
    "WorkbenchDB",
    "ensure_schema",
]
