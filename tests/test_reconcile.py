"""Tests for replay_committed and merge_for_display."""

import random

from stockroom.matrix import Cell, TransactionMatrix
from stockroom.models import TransactionRecord
from stockroom.reconcile import DisplayCell, merge_for_display, replay_committed


def _record(n, date, item_id, dept_id, record_type, quantity):
    return TransactionRecord(
        id=f"r{n}", date=date, timestamp=f"{date}T10:00:{n:02d}+00:00", item_id=item_id,
        item_name=item_id, item_image="", department_id=dept_id, department_name=dept_id,
        type=record_type, quantity=quantity,
    )


RECORDS = [
    _record(1, "2024-05-01", "i1", "d1", "in", 3),
    _record(2, "2024-05-01", "i1", "d1", "out", 1),
    _record(3, "2024-05-01", "i1", "d1", "in", 2),
    _record(4, "2024-05-01", "i2", "d2", "out", 4),
    _record(5, "2024-05-02", "i1", "d1", "in", 100),
]


def test_replay_filters_by_date_and_sums():
    matrix = replay_committed(RECORDS, "2024-05-01")
    assert matrix.to_dict() == {
        "i1": {"d1": {"in": 5, "out": 1}},
        "i2": {"d2": {"in": 0, "out": 4}},
    }


def test_replay_is_idempotent():
    assert replay_committed(RECORDS, "2024-05-01") == replay_committed(RECORDS, "2024-05-01")


def test_replay_is_order_independent():
    shuffled = list(RECORDS)
    random.Random(7).shuffle(shuffled)
    assert replay_committed(shuffled, "2024-05-01") == replay_committed(RECORDS, "2024-05-01")
    assert replay_committed(reversed(RECORDS), "2024-05-01") == replay_committed(
        RECORDS, "2024-05-01"
    )


def test_replay_empty_day():
    assert not replay_committed(RECORDS, "2023-01-01")


def test_merge_sums_committed_and_draft():
    committed = TransactionMatrix({"i1": {"d1": Cell(3, 1)}})
    draft = TransactionMatrix({"i1": {"d1": Cell(2, 0), "d2": Cell(0, 4)}, "i2": {"d1": Cell(1, 0)}})

    merged = merge_for_display(committed, draft)

    cell = merged["i1"]["d1"]
    assert (cell.total_in, cell.total_out) == (5, 1)
    assert (cell.committed_in, cell.draft_in, cell.committed_out, cell.draft_out) == (3, 2, 1, 0)
    assert cell.is_pending_in and not cell.is_pending_out
    assert merged["i1"]["d2"].total_out == 4
    assert merged["i2"]["d1"].committed == Cell(0, 0)


def test_merge_marks_purely_committed_cells_locked():
    committed = TransactionMatrix({"i1": {"d1": Cell(3, 1)}})
    merged = merge_for_display(committed, TransactionMatrix())
    assert merged["i1"]["d1"].is_locked
    assert not merged["i1"]["d1"].is_pending_in


def test_display_cell_defaults():
    cell = DisplayCell()
    assert cell.total_in == 0
    assert cell.is_locked
