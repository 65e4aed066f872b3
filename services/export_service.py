"""
Report and list export: Excel (openpyxl) and PDF (reportlab).

Pure formatting over already-built data. Nothing here reads the store.

Security:
- Spreadsheet formula injection: every text cell is sanitized before it is
  written, and a warning is logged when characters are stripped.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from enum import Enum
from io import BytesIO
from typing import Any, Dict, List, Mapping, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from domain.company import CompanySettings
from services.report_service import SalesReport

logger = logging.getLogger(__name__)

_DANGEROUS_LEADING = {"=", "+", "-", "@", "\t", "\r"}
_INVALID_SHEET_CHARS = set('[]:*?/\\')

HEADER_FILL = HexColor("#323278")
SECTION_FILL = HexColor("#F0F0F0")
ROW_FILL = HexColor("#F5F5F5")
RULE = HexColor("#C8C8C8")
GAIN = HexColor("#008000")
LOSS = HexColor("#C80000")
TOTAL = HexColor("#006400")

W, H = A4
MARGIN = 42
CONTENT_W = W - 2 * MARGIN
ROW_H = 16


def sanitize_cell(value: Any, field_name: str = "unknown") -> Any:
    """
    Neutralize spreadsheet formula injection in text values.

    Leading = + - @ tab and carriage return are stripped from strings.
    Numbers, dates and None are returned unchanged.

    Example:
        sanitize_cell("=HYPERLINK(...)", "name")  # "HYPERLINK(...)", warning logged
        sanitize_cell(Decimal("-5"), "gain_loss")  # unchanged
    """
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        return value

    text = value.strip()
    original_text = text
    stripped_chars = []
    while text and text[0] in _DANGEROUS_LEADING:
        stripped_chars.append(text[0])
        text = text[1:]

    if stripped_chars:
        logger.warning(
            f"Formula injection character(s) stripped from field '{field_name}'",
            extra={
                "field_name": field_name,
                "stripped_characters": "".join(stripped_chars),
                "original_value": original_text[:100],
                "sanitized_value": text[:100],
                "modification_type": "formula_injection_prevention",
            },
        )
    return text


def _excel_value(value: Any, field_name: str) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        # openpyxl rejects timezone-aware datetimes
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return sanitize_cell(value, field_name)


def _sheet_title(name: str) -> str:
    title = "".join(ch for ch in name if ch not in _INVALID_SHEET_CHARS).strip()
    return (title or "Sheet1")[:31]


def _workbook_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def generate_report_id(now: datetime, rng: Optional[random.Random] = None) -> str:
    """REP-<YYYYMMDD>-<0..999>"""

    suffix = (rng or random.Random()).randint(0, 999)
    return f"REP-{now.strftime('%Y%m%d')}-{suffix}"


def report_title(report: SalesReport) -> str:
    return f"{report.granularity.capitalize()} Sales Report"


def _date_range(report: SalesReport, tz: tzinfo) -> str:
    start = report.start.astimezone(tz).strftime("%d/%m/%Y")
    end = report.end.astimezone(tz).strftime("%d/%m/%Y")
    return f"{start} - {end}"


# Excel


def export_rows_to_excel(rows: Sequence[Mapping[str, Any]], sheet_name: str = "Sheet1") -> bytes:
    """
    Write a list of records to a single-sheet workbook.

    Columns are the union of record keys in first-seen order.
    """

    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = _sheet_title(sheet_name)
    sheet.append(columns)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for row in rows:
        sheet.append([_excel_value(row.get(column), column) for column in columns])

    return _workbook_bytes(workbook)


def export_report_to_excel(
    report: SalesReport,
    settings: CompanySettings,
    *,
    generated_at: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> bytes:
    """Workbook with Summary, Sales by Category and Dip Chart sheets."""

    generated = (generated_at or datetime.now(timezone.utc)).astimezone(tz)
    bold = Font(bold=True)
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="323278", end_color="323278", fill_type="solid")

    workbook = Workbook()

    summary = workbook.active
    summary.title = "Summary"
    summary.append([_excel_value(settings.name, "company_name")])
    summary["A1"].font = Font(bold=True, size=14)
    for line in settings.contact_lines():
        summary.append([_excel_value(line, "company_contact")])
    summary.append([])
    summary.append(["Report", report_title(report)])
    summary.append(["Date Range", _date_range(report, tz)])
    summary.append(["Generated On", generated.strftime("%d/%m/%Y %H:%M:%S")])
    summary.append(["Grand Total", float(report.grand_total)])
    summary.append(["Total Volume (L)", float(report.total_volume)])
    if report.comparison is not None:
        summary.append(["Previous Period Total", float(report.comparison.previous_total)])
        summary.append(["Difference", float(report.comparison.difference)])
        summary.append(["Change (%)", float(report.comparison.percent_change)])
    summary.append(["Total Loss (L)", float(report.total_loss)])
    summary.column_dimensions["A"].width = 24
    summary.column_dimensions["B"].width = 28

    sales = workbook.create_sheet("Sales by Category")
    sales.append(["Category", "Product", "Price", "Volume (L)", "Total"])
    for cell in sales[1]:
        cell.font = header_font
        cell.fill = header_fill
    for category in report.categories:
        for product in category.products:
            sales.append(
                [
                    _excel_value(category.category, "category"),
                    _excel_value(product.product_name, "product_name"),
                    float(product.unit_price),
                    float(product.total_volume),
                    float(product.total_amount),
                ]
            )
        sales.append(
            [
                _excel_value(category.category, "category"),
                "Subtotal",
                None,
                float(category.subtotal_volume),
                float(category.subtotal_amount),
            ]
        )
        for cell in sales[sales.max_row]:
            cell.font = bold
    sales.append(["", "Grand Total", None, float(report.total_volume), float(report.grand_total)])
    for cell in sales[sales.max_row]:
        cell.font = bold

    dips = workbook.create_sheet("Dip Chart")
    dips.append(["Tank", "Product", "Dip (mm)", "Volume (L)", "Book Stock", "Gain/Loss", "Loss", "Recorded At"])
    for cell in dips[1]:
        cell.font = header_font
        cell.fill = header_fill
    for row in report.dip_rows:
        dips.append(
            [
                _excel_value(row.tank_name or row.tank_id, "tank_name"),
                _excel_value(row.product_name, "product_name"),
                float(row.dip_mm),
                float(row.dip_liters),
                float(row.remaining_stock),
                float(row.gain_loss),
                float(row.loss),
                row.recorded_at.astimezone(tz).strftime("%d/%m/%Y %H:%M"),
            ]
        )
    dips.append(["Total Loss", None, None, None, None, None, float(report.total_loss), None])
    for cell in dips[dips.max_row]:
        cell.font = bold

    return _workbook_bytes(workbook)


# PDF


class _NumberedCanvas(canvas.Canvas):
    """
    Canvas that defers page output until save() so every page footer can
    show the total page count.
    """

    def __init__(self, *args: Any, footer_left: str = "", footer_right: str = "", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._page_states: List[Dict[str, Any]] = []
        self._footer_left = footer_left
        self._footer_right = footer_right

    def showPage(self) -> None:
        self._page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._page_states)
        for number, state in enumerate(self._page_states, start=1):
            self.__dict__.update(state)
            self._draw_footer(number, total)
            super().showPage()
        super().save()

    def _draw_footer(self, number: int, total: int) -> None:
        self.saveState()
        self.setStrokeColor(RULE)
        self.setLineWidth(0.5)
        self.line(MARGIN, 36, W - MARGIN, 36)
        self.setFont("Helvetica", 8)
        self.setFillColor(HexColor("#000000"))
        self.drawString(MARGIN, 24, self._footer_left)
        self.drawCentredString(W / 2, 24, f"Page {number} of {total}")
        self.drawRightString(W - MARGIN, 24, self._footer_right)
        self.restoreState()


class _ReportPdf:
    def __init__(self, buffer: BytesIO, settings: CompanySettings, report_id: str, generated_at: datetime):
        company = settings.name or "Company"
        self.c = _NumberedCanvas(
            buffer,
            pagesize=A4,
            footer_left=f"© {generated_at.year} {company} - Confidential",
            footer_right=f"Report ID: {report_id}",
        )
        self.c.setTitle("Sales Report")
        self.c.setAuthor(company)
        self.y = H - MARGIN

    def finish(self) -> None:
        self.c.showPage()
        self.c.save()

    def new_page(self) -> None:
        self.c.showPage()
        self.y = H - MARGIN

    def ensure_space(self, height: float) -> None:
        if self.y - height < MARGIN + 20:
            self.new_page()

    def text(self, value: str, x: float, *, size: int = 10, bold: bool = False, color=None, align: str = "left") -> None:
        self.c.saveState()
        self.c.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        if color is not None:
            self.c.setFillColor(color)
        if align == "right":
            self.c.drawRightString(x, self.y, value)
        elif align == "center":
            self.c.drawCentredString(x, self.y, value)
        else:
            self.c.drawString(x, self.y, value)
        self.c.restoreState()

    def section(self, title: str) -> None:
        self.ensure_space(40)
        self.c.saveState()
        self.c.setFillColor(SECTION_FILL)
        self.c.rect(MARGIN, self.y - 6, CONTENT_W, 18, fill=1, stroke=0)
        self.c.restoreState()
        self.text(title, MARGIN + 5, size=12, bold=True)
        self.y -= 26

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        widths: Sequence[float],
        *,
        bold_last: bool = False,
        colors: Optional[Sequence[Optional[Any]]] = None,
    ) -> None:
        def draw_header() -> None:
            self.c.saveState()
            self.c.setFillColor(HEADER_FILL)
            self.c.rect(MARGIN, self.y - 5, sum(widths), ROW_H, fill=1, stroke=0)
            self.c.restoreState()
            x = MARGIN
            for header, width in zip(headers, widths):
                self.text(header, x + 4, size=9, bold=True, color=HexColor("#FFFFFF"))
                x += width
            self.y -= ROW_H

        self.ensure_space(ROW_H * 3)
        draw_header()
        for index, row in enumerate(rows):
            if self.y - ROW_H < MARGIN + 20:
                self.new_page()
                draw_header()
            if index % 2 == 1:
                self.c.saveState()
                self.c.setFillColor(ROW_FILL)
                self.c.rect(MARGIN, self.y - 5, sum(widths), ROW_H, fill=1, stroke=0)
                self.c.restoreState()
            is_total = bold_last and index == len(rows) - 1
            row_color = colors[index] if colors else None
            x = MARGIN
            for column, (value, width) in enumerate(zip(row, widths)):
                self.text(
                    value,
                    x + 4,
                    size=9,
                    bold=is_total,
                    color=row_color if column == len(row) - 2 else None,
                )
                x += width
            self.y -= ROW_H
        self.y -= 12


def export_report_to_pdf(
    report: SalesReport,
    settings: CompanySettings,
    *,
    report_id: str,
    generated_at: datetime,
    tz: tzinfo = timezone.utc,
) -> bytes:
    """
    Render the sales report as an A4 PDF.

    Layout: company header, title and date range, grand total, comparison
    line, one table per category with a subtotal row, and the dip & inventory
    table. Every page carries "Page i of n", a copyright line and the report
    ID in its footer.
    """

    buffer = BytesIO()
    local_generated = generated_at.astimezone(tz)
    pdf = _ReportPdf(buffer, settings, report_id, local_generated)

    # Header
    pdf.text(settings.name or "", MARGIN, size=16, bold=True)
    for line in settings.contact_lines():
        pdf.text(line, W - MARGIN, size=8, align="right")
        pdf.y -= 11
    pdf.y -= 6
    pdf.c.setStrokeColor(RULE)
    pdf.c.line(MARGIN, pdf.y, W - MARGIN, pdf.y)
    pdf.y -= 24

    pdf.text(report_title(report), MARGIN, size=18, bold=True)
    pdf.y -= 16
    pdf.text(f"Date Range: {_date_range(report, tz)}", MARGIN)
    pdf.y -= 13
    pdf.text(f"Generated on: {local_generated.strftime('%d/%m/%Y %H:%M:%S')}", MARGIN)
    pdf.y -= 22

    pdf.section("Sales Summary")
    pdf.text("Grand Total Sales:", MARGIN + 5, bold=True)
    pdf.text(f"{report.grand_total:.2f}", MARGIN + 130, bold=True, color=TOTAL)
    pdf.y -= 16
    if report.comparison is not None:
        change = report.comparison.percent_change
        direction = "increase" if change >= 0 else "decrease"
        pdf.text(
            f"{change:.2f}% {direction} from previous period",
            MARGIN + 5,
            size=9,
            color=GAIN if change >= 0 else LOSS,
        )
        pdf.y -= 14
    pdf.y -= 10

    widths = [CONTENT_W * 0.4, CONTENT_W * 0.2, CONTENT_W * 0.2, CONTENT_W * 0.2]
    for category in report.categories:
        pdf.section(f"{category.category} Products")
        rows = [
            [p.product_name, f"{p.unit_price:.2f}", f"{p.total_volume:.2f}", f"{p.total_amount:.2f}"]
            for p in category.products
        ]
        rows.append(["Subtotal", "", f"{category.subtotal_volume:.2f}", f"{category.subtotal_amount:.2f}"])
        pdf.table(["Product", "Price", "Volume (L)", "Total"], rows, widths, bold_last=True)

    if report.dip_rows:
        pdf.section("Dip Chart & Inventory Data")
        dip_widths = [CONTENT_W * w for w in (0.2, 0.13, 0.15, 0.15, 0.15, 0.22)]
        dip_rows = [
            [
                row.tank_name or row.tank_id,
                f"{row.dip_mm:.1f}",
                f"{row.dip_liters:.1f}",
                f"{row.remaining_stock:.1f}",
                f"{row.gain_loss:.2f}",
                row.recorded_at.astimezone(tz).strftime("%d/%m/%Y %H:%M"),
            ]
            for row in report.dip_rows
        ]
        colors = [GAIN if row.gain_loss > 0 else LOSS if row.gain_loss < 0 else None for row in report.dip_rows]
        pdf.table(
            ["Tank", "Dip (mm)", "Volume (L)", "Book Stock", "Gain/Loss", "Recorded"],
            dip_rows,
            dip_widths,
            colors=colors,
        )
        pdf.text(f"Total Loss: {report.total_loss:.2f} L", MARGIN + 5, bold=True, color=LOSS)
        pdf.y -= 14

    pdf.finish()
    return buffer.getvalue()


__all__ = [
    "export_report_to_excel",
    "export_report_to_pdf",
    "export_rows_to_excel",
    "generate_report_id",
    "report_title",
    "sanitize_cell",
]
