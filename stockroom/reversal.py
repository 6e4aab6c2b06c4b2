"""Deletion of ledger records with optional stock reversal."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import OUT, TransactionRecord
from .store import InventoryStore

logger = logging.getLogger(__name__)


@dataclass
class ReversalOutcome:
    record: TransactionRecord
    reverted: bool  # False when not requested or the item is gone


class ReversalProcessor:
    """The only way to correct a committed movement."""

    def __init__(self, store: InventoryStore) -> None:
        self._store = store

    def delete_record(self, record_id: str, revert: bool) -> ReversalOutcome:
        """Remove a record and optionally undo its stock effect.

        Undoing an ``in`` subtracts its quantity; undoing an ``out`` adds it
        back. If the item has since been deleted the record is still
        removed and the adjustment is skipped.

        Raises:
            NotFoundError: If no record has this id.
        """
        record = self._store.ledger.remove(record_id)
        reverted = False
        if revert:
            if self._store.catalog.get_item(record.item_id) is None:
                logger.warning(
                    "Item %s no longer exists; record %s deleted without stock reversal",
                    record.item_id, record.id,
                )
            else:
                delta = record.quantity if record.type == OUT else -record.quantity
                self._store.catalog.adjust_quantity(record.item_id, delta)
                reverted = True
        self._store.flush()

        logger.info(
            "Deleted history record %s (%s %d of %s)%s",
            record.id, record.type, record.quantity, record.item_name,
            " with stock reversal" if reverted else "",
        )
        return ReversalOutcome(record=record, reverted=reverted)
