"""
Report export to CSV, JSON, Excel or PDF.

Every report is exported from the same shape: a title, an ordered list of
(key, heading) columns and a list of row dicts keyed by column key.
"""

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas as pdf_canvas

from clubhouse.platform.errors import ValidationError

logger = logging.getLogger(__name__)

Column = Tuple[str, str]


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    XLSX = "xlsx"
    PDF = "pdf"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.PDF: "application/pdf",
}


@dataclass
class ExportedReport:
    filename: str
    content: bytes
    media_type: str
    record_count: int


def parse_export_format(value: str) -> ExportFormat:
    try:
        return ExportFormat((value or "pdf").lower())
    except ValueError:
        raise ValidationError(
            f"Unsupported export format: {value}",
            {"supported": [f.value for f in ExportFormat]},
        )


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


def _json_default(value: Any):
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def format_csv(columns: Sequence[Column], rows: List[dict]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([heading for _, heading in columns])
    for row in rows:
        writer.writerow([_cell(row.get(key)) for key, _ in columns])
    return output.getvalue()


def format_json(rows: List[dict]) -> str:
    return json.dumps(rows, default=_json_default, indent=2)


_SHEET_TITLE_FORBIDDEN = str.maketrans({ch: " " for ch in "[]:*?/\\"})
_SHEET_TITLE_MAX = 31


def _xlsx_cell(value: Any) -> Any:
    # Numbers and dates stay typed so spreadsheets can sum and sort them
    if value is None or isinstance(value, (bool, int, float, Decimal, date)):
        return value
    return str(value)


def format_xlsx(title: str, columns: Sequence[Column], rows: List[dict]) -> bytes:
    """Write a single-sheet workbook with a bold header row."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = (title.translate(_SHEET_TITLE_FORBIDDEN).strip() or "Report")[:_SHEET_TITLE_MAX]

    sheet.append([heading for _, heading in columns])
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(fill_type="solid", start_color="2563EB", end_color="2563EB")
    for cell in sheet[1]:
        cell.font = header_font
        cell.fill = header_fill
    sheet.freeze_panes = "A2"

    for row in rows:
        sheet.append([_xlsx_cell(row.get(key)) for key, _ in columns])

    for header_cell, (key, heading) in zip(sheet[1], columns):
        width = max([len(heading)] + [len(_cell(row.get(key))) for row in rows])
        sheet.column_dimensions[header_cell.column_letter].width = min(width + 2, 60)

    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()


def format_pdf(title: str, columns: Sequence[Column], rows: List[dict], subtitle: str = "") -> bytes:
    """Render a simple paginated table."""
    buf = io.BytesIO()
    page_w, page_h = landscape(A4)
    c = pdf_canvas.Canvas(buf, pagesize=(page_w, page_h))
    margin = 36
    row_h = 16
    col_w = (page_w - margin * 2) / max(1, len(columns))

    def _header(y: float) -> float:
        c.setFillColor(HexColor("#111827"))
        c.setFont("Helvetica-Bold", 14)
        c.drawString(margin, y, title)
        y -= 18
        if subtitle:
            c.setFont("Helvetica", 9)
            c.drawString(margin, y, subtitle)
            y -= 14
        c.setFillColor(HexColor("#2563EB"))
        c.rect(margin, y - 4, page_w - margin * 2, row_h, fill=1, stroke=0)
        c.setFillColor(HexColor("#FFFFFF"))
        c.setFont("Helvetica-Bold", 9)
        for i, (_, heading) in enumerate(columns):
            c.drawString(margin + i * col_w + 4, y, heading)
        return y - row_h

    y = _header(page_h - margin)
    c.setFont("Helvetica", 9)
    c.setFillColor(HexColor("#111827"))
    for row in rows:
        if y < margin + row_h:
            c.showPage()
            y = _header(page_h - margin)
            c.setFont("Helvetica", 9)
            c.setFillColor(HexColor("#111827"))
        for i, (key, _) in enumerate(columns):
            text = _cell(row.get(key))
            # Keep cells inside their column
            max_chars = max(4, int(col_w / 5))
            if len(text) > max_chars:
                text = text[: max_chars - 3] + "..."
            c.drawString(margin + i * col_w + 4, y, text)
        y -= row_h

    c.setFont("Helvetica-Oblique", 8)
    c.setFillColor(HexColor("#6B7280"))
    c.drawString(margin, margin / 2, f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    c.showPage()
    c.save()
    buf.seek(0)
    return buf.read()


def export_report(
    basename: str,
    title: str,
    columns: Sequence[Column],
    rows: List[dict],
    fmt: ExportFormat,
    subtitle: str = "",
) -> ExportedReport:
    """Export rows in the requested format."""
    if fmt is ExportFormat.CSV:
        content = format_csv(columns, rows).encode("utf-8")
    elif fmt is ExportFormat.JSON:
        content = format_json(rows).encode("utf-8")
    elif fmt is ExportFormat.XLSX:
        content = format_xlsx(title, columns, rows)
    else:
        content = format_pdf(title, columns, rows, subtitle)

    logger.info(
        "Report exported",
        extra={"report": basename, "format": fmt.value, "record_count": len(rows)},
    )
    return ExportedReport(
        filename=f"{basename}.{fmt.value}",
        content=content,
        media_type=MEDIA_TYPES[fmt],
        record_count=len(rows),
    )
