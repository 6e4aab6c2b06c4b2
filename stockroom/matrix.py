"""Sparse per-item, per-department in/out matrix."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from .errors import ValidationError
from .models import DIRECTIONS, IN


@dataclass(frozen=True)
class Cell:
    """In/out amounts for one (item, department) pair."""

    in_qty: int = 0
    out_qty: int = 0

    def get(self, direction: str) -> int:
        return self.in_qty if direction == IN else self.out_qty

    def with_amount(self, direction: str, amount: int) -> Cell:
        if direction == IN:
            return Cell(amount, self.out_qty)
        return Cell(self.in_qty, amount)

    def __add__(self, other: Cell) -> Cell:
        return Cell(self.in_qty + other.in_qty, self.out_qty + other.out_qty)

    @property
    def is_empty(self) -> bool:
        return self.in_qty == 0 and self.out_qty == 0

    @property
    def net(self) -> int:
        return self.in_qty - self.out_qty


EMPTY_CELL = Cell()


class TransactionMatrix:
    """Mapping ``item_id -> department_id -> Cell``.

    An absent item or department reads as an empty cell. Empty cells and
    items left without departments are removed by :meth:`cleanup`, which
    every mutating method calls, so the matrix never stores zeros.
    """

    def __init__(self, data: dict[str, dict[str, Cell]] | None = None) -> None:
        self._data: dict[str, dict[str, Cell]] = {}
        for item_id, depts in (data or {}).items():
            self._data[item_id] = dict(depts)
        self.cleanup()

    def get(self, item_id: str, department_id: str) -> Cell:
        return self._data.get(item_id, {}).get(department_id, EMPTY_CELL)

    def departments(self, item_id: str) -> dict[str, Cell]:
        return dict(self._data.get(item_id, {}))

    def item_ids(self) -> list[str]:
        return list(self._data)

    def cells(self) -> Iterator[tuple[str, str, Cell]]:
        for item_id, depts in self._data.items():
            for dept_id, cell in depts.items():
                yield item_id, dept_id, cell

    def add(self, item_id: str, department_id: str, direction: str, amount: int) -> None:
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {direction!r}")
        cell = self.get(item_id, department_id)
        self._data.setdefault(item_id, {})[department_id] = cell.with_amount(
            direction, cell.get(direction) + amount
        )
        self.cleanup()

    def clear_direction(self, item_id: str, department_id: str, direction: str) -> None:
        """Zero one direction of a cell; the cell goes away once both are zero."""
        depts = self._data.get(item_id)
        if not depts or department_id not in depts:
            return
        depts[department_id] = depts[department_id].with_amount(direction, 0)
        self.cleanup()

    def drop_item(self, item_id: str) -> None:
        self._data.pop(item_id, None)

    def cleanup(self) -> None:
        for item_id in list(self._data):
            depts = self._data[item_id]
            for dept_id in [d for d, cell in depts.items() if cell.is_empty]:
                del depts[dept_id]
            if not depts:
                del self._data[item_id]

    def copy(self) -> TransactionMatrix:
        return TransactionMatrix(self._data)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return bool(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionMatrix):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"TransactionMatrix({self.to_dict()!r})"

    def to_dict(self) -> dict[str, dict[str, dict[str, int]]]:
        return {
            item_id: {
                dept_id: {"in": cell.in_qty, "out": cell.out_qty}
                for dept_id, cell in depts.items()
            }
            for item_id, depts in self._data.items()
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionMatrix:
        """Rebuild a matrix from ``to_dict`` output; missing amounts read as 0.

        Raises:
            ValidationError: If the data is not nested objects of integer
                amounts.
        """
        if not isinstance(data or {}, dict):
            raise ValidationError(f"Matrix data must be an object, got {type(data).__name__}")
        built: dict[str, dict[str, Cell]] = {}
        for item_id, depts in (data or {}).items():
            if not isinstance(depts, dict):
                raise ValidationError(f"Matrix entry for item {item_id} must be an object")
            for dept_id, amounts in depts.items():
                if not isinstance(amounts, dict):
                    raise ValidationError(
                        f"Matrix cell {item_id}/{dept_id} must be an object"
                    )
                built.setdefault(item_id, {})[dept_id] = Cell(
                    _read_amount(amounts, "in"), _read_amount(amounts, "out")
                )
        return cls(built)


def _read_amount(amounts: dict[str, Any], key: str) -> int:
    value = amounts.get(key) or 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"Matrix amount {key!r} must be a non-negative integer, got {value!r}")
    return value
