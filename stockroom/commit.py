"""Applies a draft matrix to the catalog and the ledger."""

from __future__ import annotations

import logging

from .errors import InvalidQuantity, NotFoundError, ValidationError
from .matrix import TransactionMatrix
from .models import DIRECTIONS, TransactionRecord, is_iso_date, new_id, now_iso
from .store import InventoryStore

logger = logging.getLogger(__name__)


def _check_amount(item_id: str, department_id: str, direction: str, amount: object) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidQuantity(
            f"Invalid {direction} amount {amount!r} for item {item_id} / department {department_id}"
        )


class CommitProcessor:
    """Turns staged in/out amounts into ledger records and stock changes."""

    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def validate(self, draft: TransactionMatrix, date: str) -> None:
        """Check a draft without touching the store.

        Raises:
            ValidationError: If ``date`` is not ``YYYY-MM-DD``.
            InvalidQuantity: If any amount is not a non-negative integer.
            NotFoundError: If the draft references an item no longer in
                the catalog.
        """
        if not is_iso_date(date):
            raise ValidationError(f"Commit date must be YYYY-MM-DD, got {date!r}")
        missing = []
        for item_id in draft.item_ids():
            if self._store.catalog.get_item(item_id) is None:
                missing.append(item_id)
            for dept_id, cell in draft.departments(item_id).items():
                for direction in DIRECTIONS:
                    _check_amount(item_id, dept_id, direction, cell.get(direction))
        if missing:
            raise NotFoundError(f"Draft references unknown items: {', '.join(missing)}")

    def commit(self, draft: TransactionMatrix, date: str) -> list[TransactionRecord]:
        """Apply ``draft`` as the movements of ``date``.

        Creates one record per nonzero (item, department, direction) and
        adds each item's net change to its quantity once. Quantities may go
        negative. Nothing is changed if validation fails.

        Returns:
            The new ledger records, in draft order.
        """
        self.validate(draft, date)
        if not draft:
            return []

        catalog = self._store.catalog
        timestamp = now_iso()
        records: list[TransactionRecord] = []
        net_changes: dict[str, int] = {}

        for item_id in draft.item_ids():
            item = catalog.require_item(item_id)
            net_change = 0
            for dept_id, cell in draft.departments(item_id).items():
                dept_name = catalog.department_name(dept_id)
                net_change += cell.net
                for direction in DIRECTIONS:
                    amount = cell.get(direction)
                    if amount <= 0:
                        continue
                    records.append(TransactionRecord(
                        id=new_id(),
                        date=date,
                        timestamp=timestamp,
                        item_id=item_id,
                        item_name=item.name,
                        item_image=item.image,
                        department_id=dept_id,
                        department_name=dept_name,
                        type=direction,
                        quantity=amount,
                    ))
            net_changes[item_id] = net_change

        for item_id, net_change in net_changes.items():
            catalog.adjust_quantity(item_id, net_change, timestamp)
        self._store.ledger.append(records)
        self._store.flush()

        logger.info(
            "Committed %d records for %s across %d items", len(records), date, len(net_changes)
        )
        return records
