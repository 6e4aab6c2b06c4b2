"""PDF rendering of the daily movement sheet and the monthly report using ReportLab."""

from __future__ import annotations

import logging
from pathlib import Path

from .reconcile import DisplayRow
from .reports import MonthlyReport

logger = logging.getLogger(__name__)

# CJK-capable fonts; department names are often bilingual
_FONT_SEARCH_PATHS = [
    # Noto Sans CJK (Debian/Ubuntu)
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/opentype/noto/NotoSansCJKsc-Regular.otf",
    # Noto Sans CJK (Fedora/RHEL)
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/google-noto-cjk/NotoSansCJK-Regular.ttc",
    # WenQuanYi
    "/usr/share/fonts/truetype/wqy/wqy-microhei.ttc",
    "/usr/share/fonts/truetype/wqy/wqy-zenhei.ttc",
    # macOS
    "/System/Library/Fonts/PingFang.ttc",
    "/System/Library/Fonts/STHeiti Light.ttc",
    "/Library/Fonts/Arial Unicode.ttf",
]

_FALLBACK_FONT = "Helvetica"

_HEADER_COLOR = "#4A90D9"
_PENDING_COLOR = "#FFF3E0"


def _find_cjk_font() -> str:
    """Find a CJK-capable font on the system."""
    for path in _FONT_SEARCH_PATHS:
        if Path(path).exists():
            return path
    raise FileNotFoundError(
        "No CJK font found. Install one of:\n"
        "  Ubuntu/Debian: sudo apt install fonts-noto-cjk\n"
        "  Fedora/RHEL:   sudo dnf install google-noto-sans-cjk-ttc-fonts"
    )


def _register_font() -> str:
    """Register a CJK font with ReportLab, or fall back to Helvetica."""
    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFont

    try:
        font_path = _find_cjk_font()
    except FileNotFoundError:
        logger.warning("No CJK font found; non-Latin names may not render")
        return _FALLBACK_FONT
    font_name = "StockroomCJK"
    pdfmetrics.registerFont(TTFont(font_name, font_path))
    return font_name


def _import_reportlab():
    try:
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
        from reportlab.lib.units import mm
        from reportlab.platypus import (
            Paragraph,
            SimpleDocTemplate,
            Spacer,
            Table,
            TableStyle,
        )
    except ImportError:
        raise ImportError(
            "reportlab is required: pip install 'stockroom[pdf]'"
        )
    return colors, A4, ParagraphStyle, getSampleStyleSheet, mm, (
        Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
    )


def _table_style(colors, font_name: str, TableStyle):
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(_HEADER_COLOR)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, -1), font_name),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
    ])


def generate_daily_sheet_pdf(
    date: str,
    rows: list[DisplayRow],
    output_path: str | Path,
) -> Path:
    """Render the movement sheet for one date.

    Saved amounts and pending (uncommitted) amounts are shown in separate
    columns, and rows carrying pending amounts are shaded.

    Args:
        date: The sheet date (YYYY-MM-DD).
        rows: Output of ``Workbench.display()``.
        output_path: Where to save the PDF file.

    Returns:
        Path to the generated PDF file.

    Raises:
        ImportError: If reportlab is not installed.
    """
    colors, A4, ParagraphStyle, getSampleStyleSheet, mm, platypus = _import_reportlab()
    Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle = platypus

    font_name = _register_font()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "Title_Sheet", parent=styles["Title"], fontName=font_name, fontSize=18, leading=24,
    )
    body_style = ParagraphStyle(
        "Body_Sheet", parent=styles["Normal"], fontName=font_name, fontSize=9, leading=13,
    )

    elements: list = [
        Paragraph(f"Inventory Sheet {date}", title_style),
        Spacer(1, 4 * mm),
    ]

    if not rows:
        elements.append(Paragraph("No movements recorded for this date.", body_style))
        doc.build(elements)
        return output_path

    table_data = [["Item", "Stock", "Loc", "Department", "In", "Out", "Status"]]
    pending_rows: list[int] = []
    for row in rows:
        item = row.item
        stock = f"{item.quantity} {item.unit}" + (" (low)" if item.is_low_stock else "")
        if not row.cells:
            table_data.append([item.name, stock, item.location, "", "", "", ""])
            continue
        for dept_id, cell in row.cells.items():
            table_data.append([
                item.name,
                stock,
                item.location,
                row.department_names.get(dept_id, dept_id),
                f"+{cell.total_in}" if cell.total_in else "",
                f"-{cell.total_out}" if cell.total_out else "",
                "Saved" if cell.is_locked else "Pending",
            ])
            if not cell.is_locked:
                pending_rows.append(len(table_data) - 1)

    col_widths = [45 * mm, 22 * mm, 12 * mm, 45 * mm, 14 * mm, 14 * mm, 20 * mm]
    table = Table(table_data, colWidths=col_widths, repeatRows=1)
    style = _table_style(colors, font_name, TableStyle)
    for idx in pending_rows:
        style.add("BACKGROUND", (0, idx), (-1, idx), colors.HexColor(_PENDING_COLOR))
    table.setStyle(style)
    elements.append(table)

    doc.build(elements)
    return output_path


def generate_monthly_report_pdf(report: MonthlyReport, output_path: str | Path) -> Path:
    """Render a monthly report with its in/out summary.

    Raises:
        ImportError: If reportlab is not installed.
    """
    colors, A4, ParagraphStyle, getSampleStyleSheet, mm, platypus = _import_reportlab()
    Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle = platypus

    font_name = _register_font()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "Title_Report", parent=styles["Title"], fontName=font_name, fontSize=18, leading=24,
    )
    subtitle_style = ParagraphStyle(
        "Subtitle_Report", parent=styles["Normal"], fontName=font_name, fontSize=11,
        leading=15, textColor=colors.grey,
    )

    elements: list = [
        Paragraph(f"Monthly Report {report.month}", title_style),
        Paragraph(
            f"Total in: {report.total_in} / Total out: {report.total_out} / "
            f"Items: {len(report.rows)}",
            subtitle_style,
        ),
        Spacer(1, 5 * mm),
    ]

    table_data = [["Item", "Status", "Total In", "Total Out", "Net Change"]]
    for row in report.rows:
        net = f"+{row.net_change}" if row.net_change > 0 else str(row.net_change)
        table_data.append([
            row.name,
            "Deleted" if row.is_deleted else "Active",
            str(row.total_in),
            str(row.total_out),
            net,
        ])
    col_widths = [70 * mm, 25 * mm, 25 * mm, 25 * mm, 30 * mm]
    table = Table(table_data, colWidths=col_widths, repeatRows=1)
    table.setStyle(_table_style(colors, font_name, TableStyle))
    elements.append(table)

    doc.build(elements)
    return output_path
