"""Tests for PDF generation."""

from unittest.mock import patch

import pytest

from stockroom.catalog import CatalogStore
from stockroom.models import Department, Item
from stockroom.reconcile import Workbench
from stockroom.reports import monthly_report
from stockroom.store import InventoryStore


def _require_reportlab():
    try:
        from reportlab.lib.pagesizes import A4  # noqa: F401
    except ImportError:
        pytest.skip("reportlab not installed")


@pytest.fixture
def store():
    return InventoryStore(catalog=CatalogStore(
        items=[
            Item(id="i1", name="Towel", quantity=10, min_stock=12, location="W2"),
            Item(id="i2", name="Soap", quantity=5, location="W2"),
        ],
        departments=[Department("d1", "Kitchen"), Department("d2", "Frontdesk")],
    ))


@pytest.fixture
def bench(store):
    bench = Workbench(store, "2024-05-01")
    bench.stage_entry("i1", "d1", "out", 2)
    bench.commit()
    bench.stage_entry("i1", "d2", "in", 1)
    bench.add_item_row("i2")
    return bench


class TestPDFGeneration:
    def test_daily_sheet_creates_file(self, tmp_path, bench):
        """generate_daily_sheet_pdf writes a PDF with saved and pending rows."""
        _require_reportlab()
        from stockroom.pdf import generate_daily_sheet_pdf

        output = tmp_path / "sheet.pdf"
        result = generate_daily_sheet_pdf(bench.active_date, bench.display(), output)
        assert result == output
        assert output.stat().st_size > 0
        with open(output, "rb") as f:
            assert f.read(4) == b"%PDF"

    def test_daily_sheet_empty(self, tmp_path):
        """An empty sheet still renders."""
        _require_reportlab()
        from stockroom.pdf import generate_daily_sheet_pdf

        output = tmp_path / "empty.pdf"
        generate_daily_sheet_pdf("2024-05-01", [], output)
        assert output.exists()

    def test_creates_parent_dirs(self, tmp_path, bench):
        """PDF output creates parent directories if needed."""
        _require_reportlab()
        from stockroom.pdf import generate_daily_sheet_pdf

        output = tmp_path / "subdir" / "nested" / "sheet.pdf"
        generate_daily_sheet_pdf(bench.active_date, bench.display(), output)
        assert output.exists()

    def test_monthly_report(self, tmp_path, store, bench):
        """generate_monthly_report_pdf renders the report table."""
        _require_reportlab()
        from stockroom.pdf import generate_monthly_report_pdf
        report = monthly_report(store.catalog.items, store.ledger, "2024-05")
        output = tmp_path / "report.pdf"
        generate_monthly_report_pdf(report, output)
        with open(output, "rb") as f:
            assert f.read(4) == b"%PDF"

    def test_renders_without_cjk_font(self, tmp_path, bench):
        """Falls back to a built-in font when no CJK font is installed."""
        _require_reportlab()
        from stockroom.pdf import generate_daily_sheet_pdf

        with patch("stockroom.pdf._FONT_SEARCH_PATHS", ["/nonexistent/font.ttf"]):
            output = generate_daily_sheet_pdf("2024-05-01", bench.display(), tmp_path / "a.pdf")
        assert output.exists()


class TestFontDiscovery:
    def test_find_cjk_font_not_found(self):
        """_find_cjk_font raises when no font exists."""
        from stockroom.pdf import _find_cjk_font

        with patch("stockroom.pdf._FONT_SEARCH_PATHS", ["/nonexistent/font.ttf"]):
            with pytest.raises(FileNotFoundError, match="No CJK font"):
                _find_cjk_font()

    def test_find_cjk_font_found(self, tmp_path):
        from stockroom.pdf import _find_cjk_font

        font = tmp_path / "font.ttc"
        font.write_bytes(b"")
        with patch("stockroom.pdf._FONT_SEARCH_PATHS", ["/nonexistent/font.ttf", str(font)]):
            assert _find_cjk_font() == str(font)

    def test_import_error_message(self):
        """A missing reportlab points at the pdf extra."""
        from stockroom.pdf import generate_monthly_report_pdf
        from stockroom.reports import MonthlyReport

        with patch.dict("sys.modules", {"reportlab": None, "reportlab.lib": None}):
            with pytest.raises(ImportError, match=r"stockroom\[pdf\]"):
                generate_monthly_report_pdf(MonthlyReport("2024-05", []), "/tmp/never.pdf")
