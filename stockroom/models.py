"""Data models for catalog items, departments and ledger records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .errors import ValidationError

WAREHOUSE_1 = "W1"
WAREHOUSE_2 = "W2"

LOCATION_LABELS: dict[str, str] = {
    WAREHOUSE_1: "Warehouse 1",
    WAREHOUSE_2: "Warehouse 2",
}

IN = "in"
OUT = "out"
DIRECTIONS = (IN, OUT)

UNKNOWN_DEPARTMENT = "Unknown Dept"
UNKNOWN_ITEM = "Unknown Item"


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC instant as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def today_iso() -> str:
    return datetime.now().date().isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 instant, accepting a trailing ``Z``.

    Unparseable values sort first instead of raising.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_iso_date(value: Any) -> bool:
    """True for a ``YYYY-MM-DD`` calendar day."""
    if not isinstance(value, str):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def normalize_location(value: Any) -> str:
    """Map ``W1``/``Warehouse 1`` style values to a location code."""
    if isinstance(value, str):
        text = value.strip()
        if text in LOCATION_LABELS:
            return text
        for code, label in LOCATION_LABELS.items():
            if text.lower() == label.lower():
                return code
    raise ValidationError(f"Unknown location: {value!r} (expected W1 or W2)")


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be an integer, got {value!r}")


@dataclass
class Item:
    """A stocked catalog item."""

    id: str
    name: str
    unit: str = "pcs"
    quantity: int = 0
    min_stock: int | None = None
    location: str = WAREHOUSE_1
    production_date: str | None = None  # W1 only
    expiry_date: str | None = None      # W1 only
    image: str = ""
    last_updated: str = field(default_factory=now_iso)

    @property
    def location_label(self) -> str:
        return LOCATION_LABELS.get(self.location, self.location)

    @property
    def is_low_stock(self) -> bool:
        threshold = self.min_stock or 0
        return threshold > 0 and self.quantity <= threshold

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "unit": self.unit,
            "quantity": self.quantity,
            "location": self.location,
            "lastUpdated": self.last_updated,
        }
        if self.min_stock:
            data["minStock"] = self.min_stock
        if self.location == WAREHOUSE_1:
            data["productionDate"] = self.production_date or ""
            data["expiryDate"] = self.expiry_date or ""
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Build an item from its serialized form.

        Raises:
            ValidationError: If ``id``/``name`` are missing or a numeric
                field cannot be read as an integer.
        """
        item_id = data.get("id")
        name = data.get("name")
        if not item_id or not isinstance(name, str):
            raise ValidationError(f"Item record is missing id or name: {data!r}")

        min_stock = data.get("minStock")
        location = normalize_location(data.get("location", WAREHOUSE_1))
        return cls(
            id=str(item_id),
            name=name,
            unit=data.get("unit") or "pcs",
            quantity=_as_int(data.get("quantity", 0), "quantity"),
            min_stock=_as_int(min_stock, "minStock") if min_stock not in (None, "") else None,
            location=location,
            production_date=(data.get("productionDate") or None)
            if location == WAREHOUSE_1 else None,
            expiry_date=(data.get("expiryDate") or None)
            if location == WAREHOUSE_1 else None,
            image=data.get("image") or "",
            last_updated=data.get("lastUpdated") or now_iso(),
        )


@dataclass
class Department:
    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Department:
        dept_id = data.get("id")
        name = data.get("name")
        if not dept_id or not isinstance(name, str):
            raise ValidationError(f"Department record is missing id or name: {data!r}")
        return cls(id=str(dept_id), name=name)


@dataclass(frozen=True)
class TransactionRecord:
    """One committed movement of one item for one department.

    ``item_name``, ``item_image`` and ``department_name`` are snapshots taken
    at commit time so the history stays readable after the item or
    department is renamed or removed.
    """

    id: str
    date: str        # YYYY-MM-DD
    timestamp: str   # commit instant
    item_id: str
    item_name: str
    item_image: str
    department_id: str
    department_name: str
    type: str        # "in" | "out"
    quantity: int

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.type == IN else -self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "timestamp": self.timestamp,
            "itemId": self.item_id,
            "itemName": self.item_name,
            "itemImage": self.item_image,
            "departmentId": self.department_id,
            "departmentName": self.department_name,
            "type": self.type,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionRecord:
        record_type = data.get("type")
        if record_type not in DIRECTIONS:
            raise ValidationError(f"Unknown transaction type: {record_type!r}")
        if not data.get("id") or not data.get("itemId") or not is_iso_date(data.get("date")):
            raise ValidationError(f"Transaction record is incomplete: {data!r}")
        quantity = _as_int(data.get("quantity"), "quantity")
        if quantity <= 0:
            raise ValidationError(f"Transaction quantity must be positive: {quantity}")
        return cls(
            id=str(data["id"]),
            date=data["date"],
            timestamp=data.get("timestamp") or "",
            item_id=str(data["itemId"]),
            item_name=data.get("itemName") or UNKNOWN_ITEM,
            item_image=data.get("itemImage") or "",
            department_id=str(data.get("departmentId") or ""),
            department_name=data.get("departmentName") or UNKNOWN_DEPARTMENT,
            type=record_type,
            quantity=quantity,
        )
