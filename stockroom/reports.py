"""Read-only projections of the catalog and ledger: dashboard, logs, reports, CSV."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .models import (
    IN,
    OUT,
    UNKNOWN_ITEM,
    Item,
    TransactionRecord,
    parse_timestamp,
    today_iso,
)
from .store import InventoryStore

WAREHOUSE_FILTERS = ("all", "W1", "W2")


def current_month() -> str:
    return today_iso()[:7]


def _newest_first(records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    return sorted(records, key=lambda r: parse_timestamp(r.timestamp), reverse=True)


def _sum(records: Iterable[TransactionRecord], direction: str) -> int:
    return sum(r.quantity for r in records if r.type == direction)


@dataclass
class ProcurementLine:
    item: Item
    shortage: int
    suggested: int | None  # None: out of stock with no threshold, amount is up to the buyer

    @property
    def status(self) -> str:
        return "out" if self.item.quantity == 0 else "low"


def procurement_list(items: Iterable[Item]) -> list[ProcurementLine]:
    """Items that are out of stock or at/below their minimum."""
    lines = []
    for item in items:
        min_stock = item.min_stock or 0
        if item.quantity != 0 and not (min_stock and item.quantity <= min_stock):
            continue
        shortage = max(0, min_stock - item.quantity)
        if shortage > 0:
            suggested: int | None = shortage
        else:
            suggested = None if item.quantity == 0 else 0
        lines.append(ProcurementLine(item=item, shortage=shortage, suggested=suggested))
    return lines


def procurement_text(lines: list[ProcurementLine], month: str | None = None) -> str:
    """Plain-text procurement list for pasting into a message."""
    body = []
    for line in lines:
        tag = "Out" if line.status == "out" else "Low"
        buy = "Custom" if line.suggested is None else str(line.suggested)
        body.append(
            f"[{tag}] {line.item.name} | Stock:{line.item.quantity} | Buy:+{buy} {line.item.unit}"
        )
    return f"Procurement List ({month or current_month()}):\n" + "\n".join(body)


@dataclass
class Dashboard:
    month: str
    warehouse: str
    total_items: int
    stock_count: int
    low_stock_items: list[Item]
    monthly_in: int
    monthly_out: int
    top_departments: list[tuple[str, int]]
    procurement: list[ProcurementLine] = field(default_factory=list)


def dashboard(
    store: InventoryStore,
    month: str | None = None,
    warehouse: str = "all",
    top_n: int = 5,
) -> Dashboard:
    """Summary figures for the overview screen.

    ``stock_count`` is the total quantity in the selected warehouse
    (``all``, ``W1`` or ``W2``). Department usage counts ``out`` movements
    grouped by the department name recorded on each record.
    """
    if warehouse not in WAREHOUSE_FILTERS:
        raise ValueError(f"warehouse must be one of {WAREHOUSE_FILTERS}, got {warehouse!r}")
    month = month or current_month()
    items = store.catalog.items
    monthly = store.ledger.for_month(month)

    usage: dict[str, int] = {}
    for record in monthly:
        if record.type == OUT:
            usage[record.department_name] = usage.get(record.department_name, 0) + record.quantity
    top = sorted(usage.items(), key=lambda kv: kv[1], reverse=True)[:top_n]

    return Dashboard(
        month=month,
        warehouse=warehouse,
        total_items=len(items),
        stock_count=sum(
            i.quantity for i in items if warehouse == "all" or i.location == warehouse
        ),
        low_stock_items=[i for i in items if i.is_low_stock],
        monthly_in=_sum(monthly, IN),
        monthly_out=_sum(monthly, OUT),
        top_departments=top,
        procurement=procurement_list(items),
    )


def movement_details(
    records: Iterable[TransactionRecord], month: str, direction: str
) -> list[TransactionRecord]:
    """One month's records of a single direction, newest first."""
    return _newest_first(
        r for r in records if r.date.startswith(month) and r.type == direction
    )


@dataclass
class DayLog:
    date: str
    records: list[TransactionRecord]

    @property
    def total_in(self) -> int:
        return _sum(self.records, IN)

    @property
    def total_out(self) -> int:
        return _sum(self.records, OUT)


def daily_history(records: Iterable[TransactionRecord], search: str = "") -> list[DayLog]:
    """History grouped by date, newest date first.

    ``search`` matches item or department names, case-insensitively.
    """
    needle = search.strip().lower()
    groups: dict[str, list[TransactionRecord]] = {}
    for record in records:
        if needle and needle not in record.item_name.lower() \
                and needle not in record.department_name.lower():
            continue
        groups.setdefault(record.date, []).append(record)
    return [
        DayLog(date=d, records=_newest_first(groups[d]))
        for d in sorted(groups, reverse=True)
    ]


@dataclass
class MonthlyRow:
    item_id: str
    name: str
    image: str
    unit: str
    is_deleted: bool
    total_in: int = 0
    total_out: int = 0

    @property
    def net_change(self) -> int:
        return self.total_in - self.total_out

    @property
    def activity(self) -> int:
        return self.total_in + self.total_out


@dataclass
class MonthlyReport:
    month: str
    rows: list[MonthlyRow]

    @property
    def total_in(self) -> int:
        return sum(r.total_in for r in self.rows)

    @property
    def total_out(self) -> int:
        return sum(r.total_out for r in self.rows)


def monthly_report(
    items: Iterable[Item],
    records: Iterable[TransactionRecord],
    month: str,
    *,
    search: str = "",
    hide_zero: bool = False,
) -> MonthlyReport:
    """Per-item in/out totals for ``YYYY-MM``.

    Every current item appears, even without movement. Deleted items that
    moved during the month appear under their recorded name.
    """
    rows: dict[str, MonthlyRow] = {}
    for item in items:
        rows[item.id] = MonthlyRow(
            item_id=item.id, name=item.name or UNKNOWN_ITEM, image=item.image,
            unit=item.unit or "units", is_deleted=False,
        )
    for record in records:
        if not record.date.startswith(month):
            continue
        row = rows.get(record.item_id)
        if row is None:
            row = rows[record.item_id] = MonthlyRow(
                item_id=record.item_id, name=record.item_name or UNKNOWN_ITEM,
                image=record.item_image, unit="units", is_deleted=True,
            )
        if record.type == IN:
            row.total_in += record.quantity
        else:
            row.total_out += record.quantity

    needle = search.strip().lower()
    selected = [
        r for r in rows.values()
        if needle in r.name.lower() and not (hide_zero and r.activity == 0)
    ]
    selected.sort(key=lambda r: r.activity, reverse=True)
    return MonthlyReport(month=month, rows=selected)


def _to_csv(rows: list[list]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def inventory_csv(store: InventoryStore) -> str:
    """Current inventory followed by the full transaction history."""
    rows: list[list] = [
        ["--- Current Inventory ---"],
        ["ID", "Name", "Unit", "Quantity", "MinStock", "Location", "LastUpdated"],
    ]
    for item in store.catalog.items:
        rows.append([
            item.id, item.name, item.unit, item.quantity, item.min_stock or 0,
            item.location_label, item.last_updated,
        ])
    rows.append([])
    rows.append(["--- Transaction History ---"])
    rows.append(["Date", "Time", "Item", "Department", "Type", "Qty"])
    for record in store.ledger:
        rows.append([
            record.date,
            parse_timestamp(record.timestamp).astimezone().strftime("%H:%M:%S"),
            record.item_name,
            record.department_name,
            "IN" if record.type == IN else "OUT",
            record.quantity,
        ])
    return _to_csv(rows)


def monthly_report_csv(report: MonthlyReport) -> str:
    rows: list[list] = [
        [f"Monthly Report: {report.month}"],
        ["Item", "Status", "Total In", "Total Out", "Net Change"],
    ]
    for row in report.rows:
        rows.append([
            row.name, "Deleted" if row.is_deleted else "Active",
            row.total_in, row.total_out, row.net_change,
        ])
    return _to_csv(rows)


def write_csv(text: str, path: str | Path) -> Path:
    """Write CSV text with a UTF-8 BOM so spreadsheet apps detect the encoding."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8-sig")
    return path
