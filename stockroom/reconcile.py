"""Committed/draft reconciliation and the per-date editing session."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .commit import CommitProcessor
from .errors import NotFoundError, ValidationError
from .matrix import EMPTY_CELL, Cell, TransactionMatrix
from .models import DIRECTIONS, OUT, Item, TransactionRecord, is_iso_date, today_iso
from .store import InventoryStore

logger = logging.getLogger(__name__)


def replay_committed(records: Iterable[TransactionRecord], date: str) -> TransactionMatrix:
    """Fold the records of one day into a matrix.

    In and out are summed independently per (item, department). The fold
    is order independent and is recomputed on every call.
    """
    matrix = TransactionMatrix()
    for record in records:
        if record.date == date:
            matrix.add(record.item_id, record.department_id, record.type, record.quantity)
    return matrix


@dataclass(frozen=True)
class DisplayCell:
    """Saved and pending amounts for one (item, department) pair."""

    committed: Cell = EMPTY_CELL
    draft: Cell = EMPTY_CELL

    @property
    def committed_in(self) -> int:
        return self.committed.in_qty

    @property
    def committed_out(self) -> int:
        return self.committed.out_qty

    @property
    def draft_in(self) -> int:
        return self.draft.in_qty

    @property
    def draft_out(self) -> int:
        return self.draft.out_qty

    @property
    def total_in(self) -> int:
        return self.committed.in_qty + self.draft.in_qty

    @property
    def total_out(self) -> int:
        return self.committed.out_qty + self.draft.out_qty

    @property
    def is_pending_in(self) -> bool:
        return self.draft.in_qty > 0

    @property
    def is_pending_out(self) -> bool:
        return self.draft.out_qty > 0

    @property
    def is_locked(self) -> bool:
        """True when every amount shown is already saved."""
        return self.draft.is_empty


DisplayMatrix = dict[str, dict[str, DisplayCell]]


def merge_for_display(committed: TransactionMatrix, draft: TransactionMatrix) -> DisplayMatrix:
    """Overlay ``draft`` on ``committed`` cell by cell."""
    merged: DisplayMatrix = {}
    item_ids = list(dict.fromkeys([*committed.item_ids(), *draft.item_ids()]))
    for item_id in item_ids:
        c_depts = committed.departments(item_id)
        d_depts = draft.departments(item_id)
        merged[item_id] = {
            dept_id: DisplayCell(c_depts.get(dept_id, EMPTY_CELL), d_depts.get(dept_id, EMPTY_CELL))
            for dept_id in dict.fromkeys([*c_depts, *d_depts])
        }
    return merged


@dataclass
class OpenRow:
    """An inline entry form left open on an item row."""

    department_id: str
    type: str = OUT
    qty: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"deptId": self.department_id, "type": self.type, "qty": self.qty}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OpenRow:
        row_type = data.get("type")
        return cls(
            department_id=str(data.get("deptId", "")),
            type=row_type if row_type in DIRECTIONS else OUT,
            qty=str(data.get("qty", "")),
        )


@dataclass
class SessionState:
    """What is kept for a date while another date is being edited."""

    selected_item_ids: list[str] = field(default_factory=list)
    draft: TransactionMatrix = field(default_factory=TransactionMatrix)
    open_rows: dict[str, OpenRow] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selectedItemIds": list(self.selected_item_ids),
            "newTransactions": self.draft.to_dict(),
            "activeRows": {k: v.to_dict() for k, v in self.open_rows.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionState:
        """Rebuild a saved session.

        Raises:
            ValidationError: If any part has the wrong shape.
        """
        if not isinstance(data, dict):
            raise ValidationError("Session state must be an object")
        selected = data.get("selectedItemIds", [])
        rows = data.get("activeRows", {})
        if not isinstance(selected, list):
            raise ValidationError("selectedItemIds must be a list")
        if not isinstance(rows, dict) or not all(isinstance(v, dict) for v in rows.values()):
            raise ValidationError("activeRows must map item ids to entry objects")
        return cls(
            selected_item_ids=[str(i) for i in selected],
            draft=TransactionMatrix.from_dict(data.get("newTransactions", {})),
            open_rows={str(k): OpenRow.from_dict(v) for k, v in rows.items()},
        )


@dataclass
class DisplayRow:
    item: Item
    cells: dict[str, DisplayCell]
    department_names: dict[str, str]
    open_row: OpenRow | None = None

    @property
    def has_pending(self) -> bool:
        return any(not c.is_locked for c in self.cells.values())


class Workbench:
    """Daily movement sheet: committed history for a date plus a draft.

    Switching dates keeps the outgoing date's selection, draft and open
    rows, and restores them when that date is opened again.
    """

    def __init__(self, store: InventoryStore, date: str | None = None) -> None:
        self._store = store
        self.active_date = date or today_iso()
        if not is_iso_date(self.active_date):
            raise ValidationError(f"Date must be YYYY-MM-DD, got {self.active_date!r}")
        self.selected_item_ids: list[str] = []
        self.committed = TransactionMatrix()
        self.draft = TransactionMatrix()
        self.open_rows: dict[str, OpenRow] = {}
        self.saved_sessions: dict[str, SessionState] = {}
        self.refresh()

    @property
    def has_drafts(self) -> bool:
        return bool(self.draft)

    def _history_item_ids(self) -> list[str]:
        return list(dict.fromkeys(r.item_id for r in self._store.ledger.for_date(self.active_date)))

    def refresh(self) -> None:
        """Replay the active date and make sure its history items are selected."""
        self.committed = replay_committed(self._store.ledger, self.active_date)
        self.selected_item_ids = list(
            dict.fromkeys([*self.selected_item_ids, *self._history_item_ids()])
        )

    def switch_date(self, date: str) -> None:
        if not is_iso_date(date):
            raise ValidationError(f"Date must be YYYY-MM-DD, got {date!r}")
        self.saved_sessions[self.active_date] = SessionState(
            selected_item_ids=list(self.selected_item_ids),
            draft=self.draft.copy(),
            open_rows=dict(self.open_rows),
        )

        self.active_date = date
        self.committed = replay_committed(self._store.ledger, date)
        history_items = self._history_item_ids()

        saved = self.saved_sessions.get(date)
        if saved is not None:
            self.selected_item_ids = list(dict.fromkeys([*history_items, *saved.selected_item_ids]))
            self.draft = saved.draft.copy()
            self.open_rows = dict(saved.open_rows)
        else:
            self.selected_item_ids = history_items
            self.draft = TransactionMatrix()
            self.open_rows = {}
        logger.debug("Switched sheet to %s (%d items)", date, len(self.selected_item_ids))

    # Item rows

    def add_item_row(self, item_id: str) -> None:
        self._store.catalog.require_item(item_id)
        if item_id not in self.selected_item_ids:
            self.selected_item_ids.append(item_id)

    def remove_item_row(self, item_id: str) -> bool:
        """Hide an item row and drop its pending amounts.

        Returns:
            True if the item has saved records on this date; those stay in
            the history and reappear on the next refresh.
        """
        has_committed = item_id in self.committed
        self.selected_item_ids = [i for i in self.selected_item_ids if i != item_id]
        self.draft.drop_item(item_id)
        self.open_rows.pop(item_id, None)
        return has_committed

    # Inline entry form

    def open_row(self, item_id: str) -> OpenRow:
        self._store.catalog.require_item(item_id)
        departments = self._store.catalog.departments
        row = OpenRow(department_id=departments[0].id if departments else "")
        self.open_rows[item_id] = row
        return row

    def update_row(
        self,
        item_id: str,
        *,
        department_id: str | None = None,
        type: str | None = None,
        qty: str | None = None,
    ) -> OpenRow:
        row = self.open_rows.get(item_id)
        if row is None:
            raise NotFoundError(f"No open entry for item {item_id}")
        if type is not None and type not in DIRECTIONS:
            raise ValidationError(f"Type must be 'in' or 'out', got {type!r}")
        if department_id is not None:
            row.department_id = department_id
        if type is not None:
            row.type = type
        if qty is not None:
            row.qty = qty
        return row

    def cancel_row(self, item_id: str) -> None:
        self.open_rows.pop(item_id, None)

    def submit_row(self, item_id: str) -> None:
        """Stage the open entry for ``item_id`` and close it."""
        row = self.open_rows.get(item_id)
        if row is None:
            raise NotFoundError(f"No open entry for item {item_id}")
        try:
            qty = int(row.qty.strip())
        except ValueError:
            raise ValidationError(f"Quantity must be a whole number, got {row.qty!r}")
        self.stage_entry(item_id, row.department_id, row.type, qty)
        self.cancel_row(item_id)

    # Draft

    def stage_entry(self, item_id: str, department_id: str, type: str, qty: int) -> None:
        """Add ``qty`` to the pending ``type`` amount of a cell.

        Raises:
            ValidationError: If ``qty`` is not a positive integer or
                ``type`` is not in/out.
            NotFoundError: If the item or department does not exist.
        """
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(f"Quantity must be a positive integer, got {qty!r}")
        if type not in DIRECTIONS:
            raise ValidationError(f"Type must be 'in' or 'out', got {type!r}")
        self._store.catalog.require_item(item_id)
        if self._store.catalog.get_department(department_id) is None:
            raise NotFoundError(f"Department not found: {department_id}")
        self.draft.add(item_id, department_id, type, qty)
        if item_id not in self.selected_item_ids:
            self.selected_item_ids.append(item_id)

    def remove_staged(self, item_id: str, department_id: str, type: str) -> None:
        self.draft.clear_direction(item_id, department_id, type)

    def display_matrix(self) -> DisplayMatrix:
        return merge_for_display(self.committed, self.draft)

    def display(self) -> list[DisplayRow]:
        """Rows for the selected items, skipping items no longer in the catalog."""
        merged = self.display_matrix()
        catalog = self._store.catalog
        rows: list[DisplayRow] = []
        for item_id in self.selected_item_ids:
            item = catalog.get_item(item_id)
            if item is None:
                continue
            cells = merged.get(item_id, {})
            rows.append(DisplayRow(
                item=item,
                cells=cells,
                department_names={d: catalog.department_name(d) for d in cells},
                open_row=self.open_rows.get(item_id),
            ))
        return rows

    def commit(self) -> list[TransactionRecord]:
        """Commit the draft for the active date; an empty draft is a no-op."""
        if not self.draft:
            return []
        records = CommitProcessor(self._store).commit(self.draft, self.active_date)
        self.draft = TransactionMatrix()
        self.saved_sessions.pop(self.active_date, None)
        self.refresh()
        return records

    # Persistence

    def to_dict(self) -> dict[str, Any]:
        current = SessionState(self.selected_item_ids, self.draft, self.open_rows)
        return {
            "date": self.active_date,
            "current": current.to_dict(),
            "drafts": {d: s.to_dict() for d, s in self.saved_sessions.items()},
        }

    @classmethod
    def from_dict(cls, store: InventoryStore, data: dict[str, Any]) -> Workbench:
        """Restore a workbench saved with :meth:`to_dict`.

        Raises:
            ValidationError: If the saved state is malformed.
        """
        if not isinstance(data, dict):
            raise ValidationError("Workbench state must be an object")
        drafts = data.get("drafts") or {}
        if not isinstance(drafts, dict):
            raise ValidationError("drafts must map dates to session states")
        date = data.get("date")
        bench = cls(store, date if is_iso_date(date) else None)
        current = SessionState.from_dict(data.get("current") or {})
        bench.selected_item_ids = list(
            dict.fromkeys([*bench.selected_item_ids, *current.selected_item_ids])
        )
        bench.draft = current.draft
        bench.open_rows = current.open_rows
        bench.saved_sessions = {
            d: SessionState.from_dict(s)
            for d, s in drafts.items()
            if is_iso_date(d)
        }
        return bench
