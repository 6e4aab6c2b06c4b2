"""CLI entry point for the inventory tracker."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from .backup import default_backup_name, read_backup, restore_backup, write_backup
from .config import StockroomConfig, load_config
from .db import SnapshotDB, WorkbenchDB
from .errors import StockroomError, ValidationError
from .models import DIRECTIONS, WAREHOUSE_1, Item, new_id, today_iso
from .reconcile import Workbench
from .reports import (
    current_month,
    daily_history,
    dashboard,
    inventory_csv,
    monthly_report,
    monthly_report_csv,
    procurement_list,
    procurement_text,
    write_csv,
)
from .reversal import ReversalProcessor
from .store import InventoryStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/stockroom/config.toml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockroom",
        description="Two-warehouse inventory tracker with a daily movement ledger",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Config file path (TOML)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at INFO level")

    sub = parser.add_subparsers(dest="command")

    # items
    items = sub.add_parser("items", help="Manage catalog items")
    items_sub = items.add_subparsers(dest="action", required=True)

    items_list = items_sub.add_parser("list", help="List items")
    items_list.add_argument("--search", default="", help="Filter by name or location")
    items_list.add_argument(
        "--low", action="store_true",
        help="Only low-stock items (default from [reports] low_stock_only)",
    )
    items_list.add_argument("--json", action="store_true", help="Output as JSON")

    for name, help_text in (("add", "Add an item"), ("edit", "Edit an item")):
        p = items_sub.add_parser(name, help=help_text)
        if name == "edit":
            p.add_argument("item_id")
        p.add_argument("--name", required=name == "add")
        p.add_argument("--unit", default="pcs" if name == "add" else None)
        p.add_argument("--qty", type=int, default=0 if name == "add" else None)
        p.add_argument("--min-stock", type=int, default=None)
        p.add_argument("--location", choices=["W1", "W2"], default=WAREHOUSE_1 if name == "add" else None)
        p.add_argument("--production-date", default=None, help="YYYY-MM-DD (W1 only)")
        p.add_argument("--expiry-date", default=None, help="YYYY-MM-DD (W1 only)")
        p.add_argument("--image", default=None, help="Image URL or data URI")

    items_delete = items_sub.add_parser("delete", help="Delete an item")
    items_delete.add_argument("item_id")

    items_bulk = items_sub.add_parser("bulk-delete", help="Delete several items")
    items_bulk.add_argument("item_ids", nargs="+")
    items_bulk.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    items_move = items_sub.add_parser("relocate", help="Move items to another warehouse")
    items_move.add_argument("--to", required=True, choices=["W1", "W2"], dest="location")
    items_move.add_argument("item_ids", nargs="+")

    # departments
    depts = sub.add_parser("depts", help="Manage departments")
    depts_sub = depts.add_subparsers(dest="action", required=True)
    depts_sub.add_parser("list", help="List departments")
    depts_add = depts_sub.add_parser("add", help="Add a department")
    depts_add.add_argument("name")

    # daily sheet
    sheet = sub.add_parser("sheet", help="Daily movement sheet (drafts and commits)")
    sheet_sub = sheet.add_subparsers(dest="action", required=True)
    sheet_show = sheet_sub.add_parser("show", help="Show the sheet for the active date")
    sheet_show.add_argument("--json", action="store_true", help="Output as JSON")
    sheet_date = sheet_sub.add_parser("date", help="Switch the active date")
    sheet_date.add_argument("date", nargs="?", default=None, help="YYYY-MM-DD (default: today)")
    sheet_add = sheet_sub.add_parser("add-row", help="Add an item row")
    sheet_add.add_argument("item_id")
    sheet_rm = sheet_sub.add_parser("remove-row", help="Hide an item row and drop its drafts")
    sheet_rm.add_argument("item_id")
    sheet_stage = sheet_sub.add_parser("stage", help="Stage an in/out amount")
    sheet_stage.add_argument("item_id")
    sheet_stage.add_argument("dept_id")
    sheet_stage.add_argument("type", choices=DIRECTIONS)
    sheet_stage.add_argument("qty", type=int)
    sheet_unstage = sheet_sub.add_parser("unstage", help="Remove a staged amount")
    sheet_unstage.add_argument("item_id")
    sheet_unstage.add_argument("dept_id")
    sheet_unstage.add_argument("type", choices=DIRECTIONS)
    sheet_sub.add_parser("commit", help="Save staged amounts for the active date")
    sheet_pdf = sheet_sub.add_parser("pdf", help="Render the sheet to PDF")
    sheet_pdf.add_argument("output", nargs="?", default=None)

    # history
    history = sub.add_parser("history", help="Transaction history")
    history_sub = history.add_subparsers(dest="action", required=True)
    history_list = history_sub.add_parser("list", help="History grouped by date")
    history_list.add_argument("--search", default="", help="Filter by item or department")
    history_list.add_argument("--date", default=None, help="Only this date")
    history_del = history_sub.add_parser("delete", help="Delete a history record")
    history_del.add_argument("record_id")
    history_del.add_argument(
        "--revert", action="store_true", help="Also undo the stock change"
    )

    # reports
    dash = sub.add_parser("dashboard", help="Overview figures")
    dash.add_argument("--month", default=None, help="YYYY-MM (default: this month)")
    dash.add_argument("--warehouse", choices=["all", "W1", "W2"], default="all")

    sub.add_parser("procurement", help="Print the procurement list")

    report = sub.add_parser("report", help="Monthly in/out report")
    report.add_argument("--month", default=None, help="YYYY-MM (default: this month)")
    report.add_argument("--search", default="")
    report.add_argument("--hide-zero", action="store_true")
    report.add_argument("--json", action="store_true", help="Output as JSON")
    report.add_argument("--csv", default=None, metavar="FILE", help="Write CSV")
    report.add_argument("--pdf", default=None, metavar="FILE", help="Write PDF")

    export = sub.add_parser("export", help="Export inventory and history as CSV")
    export.add_argument("output", nargs="?", default=None)

    backup = sub.add_parser("backup", help="Write a JSON backup")
    backup.add_argument("output", nargs="?", default=None)

    restore = sub.add_parser("restore", help="Replace all data with a JSON backup")
    restore.add_argument("input")
    restore.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    config = load_config(args.config or os.environ.get("STOCKROOM_CONFIG") or DEFAULT_CONFIG_PATH)
    logging.basicConfig(
        level=logging.INFO if args.verbose else getattr(logging, config.logging.level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    db = SnapshotDB(config.database.path)
    store = InventoryStore.open(db, config.departments.defaults)
    try:
        _dispatch(config, store, args)
    except (StockroomError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        store.close()


def _dispatch(config: StockroomConfig, store: InventoryStore, args) -> None:
    match args.command:
        case "items":
            _cmd_items(config, store, args)
        case "depts":
            _cmd_depts(store, args)
        case "sheet":
            _cmd_sheet(config, store, args)
        case "history":
            _cmd_history(store, args)
        case "dashboard":
            _cmd_dashboard(config, store, args)
        case "procurement":
            print(procurement_text(procurement_list(store.catalog.items)))
        case "report":
            _cmd_report(store, args)
        case "export":
            output = args.output or _output_path(config, f"Inventory_Export_{today_iso()}.csv")
            path = write_csv(inventory_csv(store), output)
            print(f"Exported to {path}")
        case "backup":
            output = args.output or _output_path(config, default_backup_name())
            path = write_backup(store, output)
            print(f"Backup written to {path}")
        case "restore":
            payload = read_backup(args.input)
            if not _confirm(
                "This will overwrite all current data with the backup file. Continue?", args.yes
            ):
                print("Restore cancelled.")
                return
            snapshot = restore_backup(store, payload)
            bench_db = WorkbenchDB(config.database.path)
            bench_db.clear()
            bench_db.close()
            print(
                f"Data restored: {len(snapshot.items)} items, "
                f"{len(snapshot.departments)} departments, {len(snapshot.history)} records"
            )


def _output_path(config: StockroomConfig, filename: str) -> Path:
    return Path(config.reports.output_dir).expanduser() / filename


def _confirm(question: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _print_item(item: Item) -> None:
    low = "  LOW" if item.is_low_stock else ""
    dates = ""
    if item.location == WAREHOUSE_1:
        dates = f"  prod {item.production_date}  exp {item.expiry_date}"
    print(f"  {item.id}  {item.name:<24} {item.quantity:>6} {item.unit:<6} [{item.location}]{dates}{low}")


def _cmd_items(config: StockroomConfig, store: InventoryStore, args) -> None:
    match args.action:
        case "list":
            items = store.catalog.search_items(
                args.search, low_stock_only=args.low or config.reports.low_stock_only
            )
            if args.json:
                print(json.dumps([i.to_dict() for i in items], ensure_ascii=False, indent=2))
                return
            if not items:
                print("No items.")
                return
            print(f"Items ({len(items)}):")
            for item in items:
                _print_item(item)
        case "add":
            item = store.upsert_item(Item(
                id=new_id(),
                name=args.name,
                unit=args.unit,
                quantity=args.qty,
                min_stock=args.min_stock,
                location=args.location,
                production_date=args.production_date,
                expiry_date=args.expiry_date,
                image=args.image or "",
            ))
            print(f"Added item {item.id}")
            _print_item(item)
        case "edit":
            current = store.catalog.require_item(args.item_id)
            changes = {
                "name": args.name,
                "unit": args.unit,
                "quantity": args.qty,
                "min_stock": args.min_stock,
                "location": args.location,
                "production_date": args.production_date,
                "expiry_date": args.expiry_date,
                "image": args.image,
            }
            # stock driven below zero by commits stays editable until --qty resets it
            item = store.upsert_item(
                replace(current, **{k: v for k, v in changes.items() if v is not None}),
                allow_negative_quantity=args.qty is None,
            )
            print(f"Updated item {item.id}")
            _print_item(item)
        case "delete":
            item = store.delete_item(args.item_id)
            print(f"Deleted item {item.name}")
        case "bulk-delete":
            if not _confirm(f"Delete {len(args.item_ids)} items? This cannot be undone.", args.yes):
                print("Cancelled.")
                return
            count = store.delete_items(args.item_ids)
            print(f"Deleted {count} items")
        case "relocate":
            moved = store.relocate_items(args.item_ids, args.location)
            print(f"Moved {len(moved)} items to {args.location}")


def _cmd_depts(store: InventoryStore, args) -> None:
    match args.action:
        case "list":
            for dept in store.catalog.departments:
                print(f"  {dept.id}  {dept.name}")
        case "add":
            dept = store.add_department(args.name)
            if dept is None:
                print(f"Department already exists: {args.name}", file=sys.stderr)
                sys.exit(1)
            print(f"Added department {dept.id}  {dept.name}")


def _load_workbench(config: StockroomConfig, store: InventoryStore) -> tuple[Workbench, WorkbenchDB]:
    bench_db = WorkbenchDB(config.database.path)
    state = bench_db.load_state()
    if not state:
        return Workbench(store), bench_db
    try:
        bench = Workbench.from_dict(store, state)
    except ValidationError as e:
        logger.warning("Discarding malformed draft session: %s", e)
        bench = Workbench(store)
    return bench, bench_db


def _print_sheet(bench: Workbench) -> None:
    rows = bench.display()
    mode = "today" if bench.active_date == today_iso() else "past date"
    print(f"Sheet {bench.active_date} ({mode}){'  * unsaved drafts' if bench.has_drafts else ''}")
    if not rows:
        print("  No items. Add a row or stage an entry to start recording.")
        return
    for row in rows:
        item = row.item
        low = "  LOW" if item.is_low_stock else ""
        print(f"  {item.name} ({item.id})  stock {item.quantity} {item.unit} [{item.location}]{low}")
        for dept_id, cell in row.cells.items():
            name = row.department_names[dept_id]
            if cell.total_in:
                tag = "pending" if cell.is_pending_in else "saved"
                print(f"      {name:<28} in  +{cell.total_in:<6} ({tag})")
            if cell.total_out:
                tag = "pending" if cell.is_pending_out else "saved"
                print(f"      {name:<28} out -{cell.total_out:<6} ({tag})")


def _cmd_sheet(config: StockroomConfig, store: InventoryStore, args) -> None:
    bench, bench_db = _load_workbench(config, store)
    try:
        match args.action:
            case "show":
                if args.json:
                    print(json.dumps(
                        {
                            "date": bench.active_date,
                            "committed": bench.committed.to_dict(),
                            "draft": bench.draft.to_dict(),
                            "items": bench.selected_item_ids,
                        },
                        ensure_ascii=False,
                        indent=2,
                    ))
                else:
                    _print_sheet(bench)
            case "date":
                bench.switch_date(args.date or today_iso())
                _print_sheet(bench)
            case "add-row":
                bench.add_item_row(args.item_id)
                _print_sheet(bench)
            case "remove-row":
                if bench.remove_item_row(args.item_id):
                    print("Note: saved records for this item remain in the history.")
                _print_sheet(bench)
            case "stage":
                bench.stage_entry(args.item_id, args.dept_id, args.type, args.qty)
                _print_sheet(bench)
            case "unstage":
                bench.remove_staged(args.item_id, args.dept_id, args.type)
                _print_sheet(bench)
            case "commit":
                if not bench.has_drafts:
                    print("Nothing to commit.")
                    return
                records = bench.commit()
                print(f"Saved {len(records)} records for {bench.active_date}.")
                _print_sheet(bench)
            case "pdf":
                from .pdf import generate_daily_sheet_pdf

                output = args.output or _output_path(
                    config, f"Inventory_Sheet_{bench.active_date}.pdf"
                )
                try:
                    path = generate_daily_sheet_pdf(bench.active_date, bench.display(), output)
                except ImportError as e:
                    print(f"PDF error: {e}", file=sys.stderr)
                    sys.exit(1)
                print(f"PDF saved: {path}")
    finally:
        bench_db.save_state(bench.to_dict())
        bench_db.close()


def _cmd_history(store: InventoryStore, args) -> None:
    match args.action:
        case "list":
            records = store.ledger.for_date(args.date) if args.date else store.ledger.records
            logs = daily_history(records, args.search)
            if not logs:
                print("No history records.")
                return
            for log in logs:
                print(f"{log.date}  in +{log.total_in}  out -{log.total_out}")
                for r in log.records:
                    sign = "+" if r.type == "in" else "-"
                    print(f"    {r.id}  {r.item_name:<24} {r.department_name:<28} {sign}{r.quantity}")
        case "delete":
            outcome = ReversalProcessor(store).delete_record(args.record_id, args.revert)
            if outcome.reverted:
                print("Record deleted and inventory reverted.")
            elif args.revert:
                print("Record deleted. The item no longer exists, so stock was not changed.")
            else:
                print("Record deleted. Inventory unchanged.")


def _cmd_dashboard(config: StockroomConfig, store: InventoryStore, args) -> None:
    dash = dashboard(
        store,
        month=args.month,
        warehouse=args.warehouse,
        top_n=config.reports.top_departments,
    )
    print(f"Dashboard {dash.month}  (warehouse: {dash.warehouse})")
    print(f"  Items:        {dash.total_items}")
    print(f"  Stock count:  {dash.stock_count}")
    print(f"  Low stock:    {len(dash.low_stock_items)}")
    print(f"  Month in:     +{dash.monthly_in}")
    print(f"  Month out:    -{dash.monthly_out}")
    if dash.top_departments:
        print("  Top departments by usage:")
        for name, qty in dash.top_departments:
            print(f"    {name:<28} {qty}")
    if dash.procurement:
        print(f"  Procurement needed: {len(dash.procurement)} items")


def _cmd_report(store: InventoryStore, args) -> None:
    report = monthly_report(
        store.catalog.items,
        store.ledger,
        args.month or current_month(),
        search=args.search,
        hide_zero=args.hide_zero,
    )
    if args.json:
        data = {
            "month": report.month,
            "total_in": report.total_in,
            "total_out": report.total_out,
            "rows": [
                {
                    "item_id": r.item_id,
                    "name": r.name,
                    "unit": r.unit,
                    "deleted": r.is_deleted,
                    "total_in": r.total_in,
                    "total_out": r.total_out,
                    "net_change": r.net_change,
                }
                for r in report.rows
            ],
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
    else:
        print(f"Monthly report {report.month}: in +{report.total_in}  out -{report.total_out}")
        for r in report.rows:
            status = " (deleted)" if r.is_deleted else ""
            print(f"  {r.name:<24}{status} in {r.total_in:>5}  out {r.total_out:>5}  net {r.net_change:>+6}")

    if args.csv:
        path = write_csv(monthly_report_csv(report), args.csv)
        print(f"CSV saved: {path}")
    if args.pdf:
        from .pdf import generate_monthly_report_pdf

        try:
            path = generate_monthly_report_pdf(report, args.pdf)
        except ImportError as e:
            print(f"PDF error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"PDF saved: {path}")
