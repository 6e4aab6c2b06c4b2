"""Storage for unsaved draft sessions between CLI invocations."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from .schema import ensure_schema
from .snapshot import DEFAULT_DB_PATH

logger = logging.getLogger(__name__)


class WorkbenchDB:
    """Manages the draft_sessions table."""

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

    def save_state(self, state: dict, name: str = "default") -> None:
        conn = self._get_conn()
        conn.execute(
            """INSERT OR REPLACE INTO draft_sessions (name, state_json, updated_at)
               VALUES (?, ?, datetime('now', 'localtime'))""",
            (name, json.dumps(state, ensure_ascii=False)),
        )
        conn.commit()

    def load_state(self, name: str = "default") -> dict | None:
        """Return the saved session state, or None if absent or unreadable."""
        conn = self._get_conn()
        row = conn.execute(
            "SELECT state_json FROM draft_sessions WHERE name = ?", (name,)
        ).fetchone()
        if row is None:
            return None
        try:
            state = json.loads(row["state_json"])
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable draft session %r", name)
            return None
        return state if isinstance(state, dict) else None

    def clear(self, name: str = "default") -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM draft_sessions WHERE name = ?", (name,))
        conn.commit()
