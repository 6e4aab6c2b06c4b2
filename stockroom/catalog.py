"""Catalog of stocked items and departments."""

from __future__ import annotations

from dataclasses import replace

from .errors import NotFoundError, ValidationError
from .models import (
    LOCATION_LABELS,
    UNKNOWN_DEPARTMENT,
    WAREHOUSE_1,
    Department,
    Item,
    is_iso_date,
    new_id,
    normalize_location,
    now_iso,
)


def validate_item(item: Item, *, allow_negative_quantity: bool = False) -> Item:
    """Check an item for catalog storage and return a normalized copy.

    W2 items lose any production/expiry dates; W1 items must carry both.
    Commits may leave stock below zero, so edits that keep the current
    quantity pass ``allow_negative_quantity``.

    Raises:
        ValidationError: On an empty name, a non-integer or negative
            quantity/min stock, an unknown location, or missing W1 dates.
    """
    if not item.id:
        raise ValidationError("Item id is required")
    name = (item.name or "").strip()
    if not name:
        raise ValidationError("Item name is required")
    for field_name, value in (("quantity", item.quantity), ("min_stock", item.min_stock)):
        if value is None and field_name == "min_stock":
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{field_name} must be an integer, got {value!r}")
        if value < 0 and not (field_name == "quantity" and allow_negative_quantity):
            raise ValidationError(f"{field_name} must be a non-negative integer, got {value!r}")

    location = normalize_location(item.location)
    if location == WAREHOUSE_1:
        if not is_iso_date(item.production_date) or not is_iso_date(item.expiry_date):
            raise ValidationError(
                f"Warehouse 1 item {name!r} needs production and expiry dates (YYYY-MM-DD)"
            )
        production, expiry = item.production_date, item.expiry_date
    else:
        production = expiry = None

    return replace(
        item,
        name=name,
        unit=(item.unit or "pcs").strip() or "pcs",
        min_stock=item.min_stock or None,
        location=location,
        production_date=production,
        expiry_date=expiry,
    )


class CatalogStore:
    """Holds the item and department collections.

    Only lookups and the edits listed here; callers handle derived cleanup
    (removing an item never touches ledger history).
    """

    def __init__(
        self,
        items: list[Item] | None = None,
        departments: list[Department] | None = None,
    ) -> None:
        self._items: dict[str, Item] = {i.id: i for i in items or []}
        self._departments: dict[str, Department] = {d.id: d for d in departments or []}

    @property
    def items(self) -> list[Item]:
        return list(self._items.values())

    @property
    def departments(self) -> list[Department]:
        return list(self._departments.values())

    def get_item(self, item_id: str) -> Item | None:
        return self._items.get(item_id)

    def get_department(self, department_id: str) -> Department | None:
        return self._departments.get(department_id)

    def department_name(self, department_id: str) -> str:
        dept = self._departments.get(department_id)
        return dept.name if dept else UNKNOWN_DEPARTMENT

    def require_item(self, item_id: str) -> Item:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"Item not found: {item_id}")
        return item

    def upsert_item(self, item: Item, *, allow_negative_quantity: bool = False) -> Item:
        """Insert or replace an item by id.

        A direct edit sets the quantity as given; it is not recorded in
        the ledger.
        """
        validated = validate_item(item, allow_negative_quantity=allow_negative_quantity)
        stored = replace(validated, last_updated=now_iso())
        self._items[stored.id] = stored
        return stored

    def delete_item(self, item_id: str) -> Item:
        if item_id not in self._items:
            raise NotFoundError(f"Item not found: {item_id}")
        return self._items.pop(item_id)

    def delete_items(self, item_ids: list[str]) -> int:
        """Bulk delete; ids that are already gone are ignored."""
        removed = 0
        for item_id in item_ids:
            if self._items.pop(item_id, None) is not None:
                removed += 1
        return removed

    def relocate_items(self, item_ids: list[str], location: str) -> list[Item]:
        """Move items to another warehouse.

        Every id is checked before anything moves. Moving into W1 requires
        items to already carry both dates; moving into W2 clears them.

        Raises:
            NotFoundError: If any id is unknown.
            ValidationError: If an item moving into W1 lacks its dates.
        """
        target = normalize_location(location)
        items = [self.require_item(item_id) for item_id in item_ids]
        if target == WAREHOUSE_1:
            undated = [
                i.name for i in items
                if not is_iso_date(i.production_date) or not is_iso_date(i.expiry_date)
            ]
            if undated:
                raise ValidationError(
                    f"Cannot move to {LOCATION_LABELS[target]} without production/expiry "
                    f"dates: {', '.join(undated)}"
                )

        stamp = now_iso()
        moved: list[Item] = []
        for item in items:
            updated = replace(item, location=target, last_updated=stamp)
            if target != WAREHOUSE_1:
                updated = replace(updated, production_date=None, expiry_date=None)
            self._items[item.id] = updated
            moved.append(updated)
        return moved

    def add_department(self, name: str) -> Department | None:
        """Add a department, or return None if the name is already taken."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Department name is required")
        if any(d.name == name for d in self._departments.values()):
            return None
        dept = Department(id=new_id(), name=name)
        self._departments[dept.id] = dept
        return dept

    def adjust_quantity(self, item_id: str, delta: int, stamp: str | None = None) -> Item:
        """Apply a ledger-driven quantity change. No floor is enforced."""
        item = self.require_item(item_id)
        updated = replace(item, quantity=item.quantity + delta, last_updated=stamp or now_iso())
        self._items[item_id] = updated
        return updated

    def search_items(self, query: str = "", *, low_stock_only: bool = False) -> list[Item]:
        """Case-insensitive filter on name or location."""
        needle = query.strip().lower()
        result = []
        for item in self._items.values():
            if needle and needle not in item.name.lower() \
                    and needle not in item.location.lower() \
                    and needle not in item.location_label.lower():
                continue
            if low_stock_only and not item.is_low_stock:
                continue
            result.append(item)
        return result
