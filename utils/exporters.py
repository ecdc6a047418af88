import csv
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from Helpers.errors import StorageError, ValidationError
from Helpers.report_query import ROW_FIELDS, MonthlyReport

logger = logging.getLogger(__name__)

EXPORT_HEADERS = (
    "Complaint No", "Name", "Mobile", "Location", "Department", "Product",
    "Serial Number", "Problem", "Status", "Created At", "Completed At",
)
EXPORT_FORMATS = ("xlsx", "pdf", "csv")

# xlsx column widths, same order as the headers
_XLSX_WIDTHS = (30, 18, 14, 14, 16, 16, 18, 42, 12, 22, 22)
# relative pdf widths; scaled to the page
_PDF_WEIGHTS = (150, 80, 75, 70, 80, 80, 80, 220, 60, 95, 95)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_.-]+")


def rows_to_table(rows: Iterable[Dict[str, Any]]) -> List[List[str]]:
    """One list per complaint in header order; missing values become ''."""
    out = []
    for r in rows:
        out.append(["" if r.get(k) is None else str(r.get(k)) for k in ROW_FIELDS])
    return out


def report_header_lines(report: MonthlyReport) -> List[str]:
    """Summary and filter lines printed above a monthly export."""
    s = report.summary
    return [
        f"Month: {report.month_key} | Total: {s.total} | Pending: {s.pending} | Complete: {s.complete}",
        f"Status: {report.status or 'All'} | Location: {report.location or 'All'}",
    ]


def safe_filename(title: str) -> str:
    name = _UNSAFE_FILENAME.sub("_", (title or "").strip()).strip("._")
    return name or "complaints"


def export_csv(path: Path, table: Sequence[Sequence[str]], title: Optional[str] = None,
               header_lines: Sequence[str] = ()) -> Path:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(EXPORT_HEADERS)
        writer.writerows(table)
    return path


def export_xlsx(path: Path, table: Sequence[Sequence[str]], title: Optional[str] = None,
                header_lines: Sequence[str] = ()) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "Complaints"

    # report summary on top; a bare title when there is none
    preamble = list(header_lines) or ([title] if title else [])
    for i, line in enumerate(preamble, start=1):
        ws.append([line])
        ws.merge_cells(start_row=i, start_column=1, end_row=i, end_column=len(EXPORT_HEADERS))
        ws.cell(row=i, column=1).font = Font(bold=True)
    header_row = len(preamble) + 1

    ws.append(list(EXPORT_HEADERS))
    for cell in ws[header_row]:
        cell.font = Font(bold=True)
    for row in table:
        ws.append(list(row))

    for i, width in enumerate(_XLSX_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width
    last_col = get_column_letter(len(EXPORT_HEADERS))
    ws.auto_filter.ref = f"A{header_row}:{last_col}{header_row + len(table)}"

    wb.save(path)
    return path


def export_pdf(path: Path, table: Sequence[Sequence[str]], title: Optional[str] = None,
               header_lines: Sequence[str] = ()) -> Path:
    doc = SimpleDocTemplate(
        str(path), pagesize=landscape(A4),
        leftMargin=8 * mm, rightMargin=8 * mm, topMargin=8 * mm, bottomMargin=8 * mm,
        title=title or "Complaint Report",
    )
    styles = getSampleStyleSheet()
    cell_style = styles["BodyText"].clone("cell", fontSize=7, leading=8)

    total = sum(_PDF_WEIGHTS)
    col_widths = [doc.width * w / total for w in _PDF_WEIGHTS]

    data = [list(EXPORT_HEADERS)]
    # wrap long text (problem, complaint no) inside the cell
    data += [[Paragraph(escape(v), cell_style) for v in row] for row in table]

    t = Table(data, colWidths=col_widths, repeatRows=1)
    t.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 8),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f1f5f9")),
        ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#cbd5e1")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))

    story = [
        Paragraph(escape(title or "Complaint Report"), styles["Title"]),
        *[Paragraph(escape(line), styles["Normal"]) for line in header_lines],
        Paragraph(f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}", styles["Normal"]),
        Spacer(1, 4 * mm),
        t,
    ]
    doc.build(story)
    return path


_WRITERS = {"csv": export_csv, "xlsx": export_xlsx, "pdf": export_pdf}


def export_report(rows: Iterable[Dict[str, Any]], fmt: str, directory, title: Optional[str] = None,
                  header_lines: Sequence[str] = ()) -> Path:
    fmt = (fmt or "").strip().lower()
    if fmt not in _WRITERS:
        raise ValidationError("format", f"must be one of {', '.join(EXPORT_FORMATS)}")

    table = rows_to_table(rows)
    try:
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{safe_filename(title)}.{fmt}"
        _WRITERS[fmt](path, table, title, header_lines)
    except OSError as e:
        logger.error("Export to %s failed: %s", directory, e)
        raise StorageError(str(e)) from e

    logger.info("Exported %d complaints to %s", len(table), path)
    return path
