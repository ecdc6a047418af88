# routes/reports.py
from fastapi import APIRouter, Depends, Request

from db_sql import get_report_query
from Helpers.errors import ValidationError
from Helpers.report_query import ReportQuery
from Schemas.complaints_schema import ExportRequest, ExportResult
from utils.exporters import export_report, report_header_lines

router = APIRouter()


@router.post("/export", response_model=ExportResult)
def export_complaints(body: ExportRequest, request: Request, reports: ReportQuery = Depends(get_report_query)):
    if body.rows is not None:
        rows = body.rows
        title = body.title or "complaints"
        header_lines = []
    elif body.month:
        report = reports.query(body.month, body.status, body.location)
        rows = report.rows
        title = body.title or f"complaints_{report.month_key}"
        header_lines = report_header_lines(report)
    else:
        raise ValidationError("month", "is required when rows are not supplied")

    path = export_report(rows, body.format, request.app.state.export_dir, title=title, header_lines=header_lines)
    return ExportResult(file_path=str(path), count=len(rows))
