"""End-to-end tests for the stockroom CLI."""

import json

import pytest

from stockroom.cli import build_parser, main
from stockroom.config import DEFAULT_DEPARTMENTS
from stockroom.db import WorkbenchDB
from stockroom.models import today_iso


@pytest.fixture
def run(tmp_path, monkeypatch, capsys):
    """Run the CLI against a throwaway database and return its stdout."""
    monkeypatch.setenv("STOCKROOM_DB_PATH", str(tmp_path / "inventory.db"))
    monkeypatch.delenv("STOCKROOM_CONFIG", raising=False)
    config = str(tmp_path / "config.toml")  # absent unless a test writes it

    def _run(*args: str) -> str:
        capsys.readouterr()
        main(["-c", config, *args])
        return capsys.readouterr().out

    return _run


def _add_item(run, name="Towel", qty=10, *extra) -> str:
    run("items", "add", "--name", name, "--qty", str(qty), "--location", "W2", *extra)
    items = json.loads(run("items", "list", "--json"))
    return next(i["id"] for i in items if i["name"] == name)


def _backup(run, tmp_path) -> dict:
    path = tmp_path / "backup.json"
    run("backup", str(path))
    return json.loads(path.read_text(encoding="utf-8"))


def test_no_command_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_parser_subcommands():
    args = build_parser().parse_args(["history", "delete", "r1", "--revert"])
    assert args.command == "history"
    assert args.record_id == "r1"
    assert args.revert is True


def test_first_run_seeds_departments(run):
    out = run("depts", "list")
    assert "d1" in out
    assert len(out.strip().splitlines()) == len(DEFAULT_DEPARTMENTS)


def test_add_department_and_duplicate(run, capsys):
    assert "Spa" in run("depts", "add", "Spa")
    with pytest.raises(SystemExit) as exc:
        run("depts", "add", "Spa")
    assert exc.value.code == 1


def test_item_add_list_edit_delete(run):
    item_id = _add_item(run, "Towel", 10, "--min-stock", "12")
    assert "LOW" in run("items", "list")
    assert "Towel" in run("items", "list", "--low")

    run("items", "edit", item_id, "--qty", "20")
    items = json.loads(run("items", "list", "--json"))
    assert items[0]["quantity"] == 20
    assert items[0]["minStock"] == 12

    assert "Deleted item Towel" in run("items", "delete", item_id)
    assert "No items." in run("items", "list")


def test_low_stock_only_config_filters_list(run, tmp_path):
    _add_item(run, "Towel", 10, "--min-stock", "12")
    _add_item(run, "Soap", 50, "--min-stock", "5")
    (tmp_path / "config.toml").write_text(
        "[reports]\nlow_stock_only = true\n", encoding="utf-8"
    )
    items = json.loads(run("items", "list", "--json"))
    assert [i["name"] for i in items] == ["Towel"]


def test_edit_item_with_negative_stock(run, capsys):
    item_id = _add_item(run, "Towel", 1)
    run("sheet", "stage", item_id, "d1", "out", "3")
    run("sheet", "commit")

    run("items", "edit", item_id, "--name", "Bath Towel")
    items = json.loads(run("items", "list", "--json"))
    assert (items[0]["name"], items[0]["quantity"]) == ("Bath Towel", -2)

    with pytest.raises(SystemExit):
        run("items", "edit", item_id, "--qty", "-1")
    assert "non-negative" in capsys.readouterr().err
    run("items", "edit", item_id, "--qty", "0")
    assert json.loads(run("items", "list", "--json"))[0]["quantity"] == 0


def test_warehouse_1_requires_dates(run, capsys):
    with pytest.raises(SystemExit) as exc:
        run("items", "add", "--name", "Milk", "--location", "W1")
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err

    run(
        "items", "add", "--name", "Milk", "--location", "W1",
        "--production-date", "2024-05-01", "--expiry-date", "2024-06-01",
    )
    items = json.loads(run("items", "list", "--json"))
    assert items[0]["expiryDate"] == "2024-06-01"


def test_relocate_and_bulk_delete(run):
    a = _add_item(run, "Towel")
    b = _add_item(run, "Soap")
    assert "Moved 2 items to W2" in run("items", "relocate", "--to", "W2", a, b)
    assert "Deleted 2 items" in run("items", "bulk-delete", "--yes", a, b)


def test_sheet_stage_and_commit(run, tmp_path):
    item_id = _add_item(run, "Towel", 10)
    out = run("sheet", "stage", item_id, "d1", "out", "3")
    assert "pending" in out
    assert "unsaved drafts" in out

    # drafts survive between invocations
    state = json.loads(run("sheet", "show", "--json"))
    assert state["draft"] == {item_id: {"d1": {"in": 0, "out": 3}}}
    assert state["committed"] == {}

    assert "Saved 1 records" in run("sheet", "commit")
    items = json.loads(run("items", "list", "--json"))
    assert items[0]["quantity"] == 7

    state = json.loads(run("sheet", "show", "--json"))
    assert state["draft"] == {}
    assert state["committed"] == {item_id: {"d1": {"in": 0, "out": 3}}}
    assert "Nothing to commit." in run("sheet", "commit")


def test_sheet_unstage_and_rows(run):
    item_id = _add_item(run)
    run("sheet", "stage", item_id, "d1", "in", "2")
    run("sheet", "unstage", item_id, "d1", "in")
    state = json.loads(run("sheet", "show", "--json"))
    assert state["draft"] == {}
    assert state["items"] == [item_id]

    run("sheet", "remove-row", item_id)
    assert json.loads(run("sheet", "show", "--json"))["items"] == []
    run("sheet", "add-row", item_id)
    assert json.loads(run("sheet", "show", "--json"))["items"] == [item_id]


def test_sheet_date_switch_keeps_drafts(run):
    item_id = _add_item(run)
    run("sheet", "date", "2024-01-01")
    run("sheet", "stage", item_id, "d2", "in", "4")
    run("sheet", "date", "2024-01-02")
    state = json.loads(run("sheet", "show", "--json"))
    assert state["date"] == "2024-01-02"
    assert state["draft"] == {}

    run("sheet", "date", "2024-01-01")
    state = json.loads(run("sheet", "show", "--json"))
    assert state["draft"] == {item_id: {"d2": {"in": 4, "out": 0}}}


def test_sheet_discards_malformed_session(run, tmp_path):
    item_id = _add_item(run)
    run("sheet", "stage", item_id, "d1", "in", "2")

    bench_db = WorkbenchDB(tmp_path / "inventory.db")
    bench_db.save_state({"date": "2024-01-01", "current": {"activeRows": [item_id]}})
    bench_db.close()

    state = json.loads(run("sheet", "show", "--json"))
    assert state["date"] == today_iso()
    assert state["draft"] == {}


def test_sheet_stage_unknown_item(run, capsys):
    with pytest.raises(SystemExit) as exc:
        run("sheet", "stage", "ghost", "d1", "in", "1")
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err


def test_history_list_and_delete_with_revert(run, tmp_path):
    item_id = _add_item(run, "Towel", 10)
    run("sheet", "stage", item_id, "d1", "out", "4")
    run("sheet", "commit")

    assert "Towel" in run("history", "list")
    assert "Towel" in run("history", "list", "--search", "tow")
    assert "No history records." in run("history", "list", "--search", "nothing")

    record_id = _backup(run, tmp_path)["history"][0]["id"]
    assert "inventory reverted" in run("history", "delete", record_id, "--revert")
    items = json.loads(run("items", "list", "--json"))
    assert items[0]["quantity"] == 10
    assert "No history records." in run("history", "list")


def test_history_delete_unknown(run, capsys):
    with pytest.raises(SystemExit) as exc:
        run("history", "delete", "missing")
    assert exc.value.code == 1


def test_dashboard_procurement_report(run, tmp_path):
    item_id = _add_item(run, "Towel", 10)
    _add_item(run, "Soap", 0)
    run("sheet", "stage", item_id, "d1", "out", "2")
    run("sheet", "commit")

    out = run("dashboard")
    assert "Items:        2" in out
    assert "Month out:    -2" in out

    assert "[Out] Soap" in run("procurement")

    report = json.loads(run("report", "--json", "--hide-zero"))
    assert report["total_out"] == 2
    assert [r["name"] for r in report["rows"]] == ["Towel"]

    csv_path = tmp_path / "report.csv"
    run("report", "--csv", str(csv_path))
    assert csv_path.exists()


def test_export_csv(run, tmp_path):
    _add_item(run)
    path = tmp_path / "export.csv"
    assert "Exported to" in run("export", str(path))
    assert "--- Current Inventory ---" in path.read_text(encoding="utf-8-sig")


def test_backup_and_restore(run, tmp_path):
    _add_item(run, "Towel")
    payload = _backup(run, tmp_path)
    assert payload["version"] == "1.0"

    _add_item(run, "Soap")
    out = run("restore", "--yes", str(tmp_path / "backup.json"))
    assert "Data restored: 1 items" in out
    items = json.loads(run("items", "list", "--json"))
    assert [i["name"] for i in items] == ["Towel"]


def test_restore_cancelled_without_confirmation(run, tmp_path, monkeypatch):
    _add_item(run, "Towel")
    _backup(run, tmp_path)
    _add_item(run, "Soap")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    assert "Restore cancelled." in run("restore", str(tmp_path / "backup.json"))
    assert len(json.loads(run("items", "list", "--json"))) == 2


def test_restore_invalid_file(run, tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text('{"items": 1}', encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        run("restore", "--yes", str(path))
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err
