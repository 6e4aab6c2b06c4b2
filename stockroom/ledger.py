"""Append-only history of committed movements."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .errors import NotFoundError
from .models import TransactionRecord


class Ledger:
    """Ordered collection of :class:`TransactionRecord`.

    Records are appended by commits and removed only by reversal; they are
    never edited.
    """

    def __init__(self, records: Iterable[TransactionRecord] | None = None) -> None:
        self._records: list[TransactionRecord] = list(records or [])

    def __iter__(self) -> Iterator[TransactionRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[TransactionRecord]:
        return list(self._records)

    def append(self, records: Iterable[TransactionRecord]) -> None:
        self._records.extend(records)

    def get(self, record_id: str) -> TransactionRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def remove(self, record_id: str) -> TransactionRecord:
        for idx, record in enumerate(self._records):
            if record.id == record_id:
                return self._records.pop(idx)
        raise NotFoundError(f"History record not found: {record_id}")

    def for_date(self, date: str) -> list[TransactionRecord]:
        return [r for r in self._records if r.date == date]

    def for_month(self, month: str) -> list[TransactionRecord]:
        """Records whose date starts with ``YYYY-MM``."""
        return [r for r in self._records if r.date.startswith(month)]

    def for_item(self, item_id: str) -> list[TransactionRecord]:
        return [r for r in self._records if r.item_id == item_id]
