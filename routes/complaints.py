# routes/complaints.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from db_sql import get_store, get_report_query
from Helpers.complaint_store import ComplaintStore
from Helpers.report_query import ReportQuery
from Schemas.complaints_schema import (
    ComplaintCreate, ComplaintUpdate, StatusUpdate,
    CreateResult, ComplaintResult, ListResult, MonthlyReportOut, ReportSummaryOut, UpdateResult
)

router = APIRouter()


@router.post("/", response_model=CreateResult, status_code=status.HTTP_201_CREATED)
def create_complaint(body: ComplaintCreate, store: ComplaintStore = Depends(get_store)):
    created = store.create(body)
    return CreateResult(id=created.id, complaint_no=created.complaint_no)


@router.get("/", response_model=ListResult)
def list_complaints(
        reports: ReportQuery = Depends(get_report_query),
        status_q: Optional[str] = Query(None, alias="status", description="Pending|Complete"),
        date_from: Optional[str] = Query(None, alias="from", description="YYYY-MM-DD"),
        date_to: Optional[str] = Query(None, alias="to", description="YYYY-MM-DD"),
        search: Optional[str] = None,
):
    rows = reports.search(status=status_q, date_from=date_from, date_to=date_to, search=search)
    return ListResult(rows=rows)


@router.get("/by-month", response_model=MonthlyReportOut)
def list_by_month(
        month: str = Query(..., description="YYYYMM"),
        status_q: Optional[str] = Query(None, alias="status"),
        location: Optional[str] = None,
        store: ComplaintStore = Depends(get_store),
):
    report = store.list_by_month(month, status_q, location)
    return MonthlyReportOut(
        month=report.month_key, status=report.status, location=report.location,
        rows=report.rows, summary=ReportSummaryOut.model_validate(report.summary),
    )


@router.get("/lookup", response_model=ComplaintResult)
def get_complaint_by_number(complaint_no: str = Query(...), store: ComplaintStore = Depends(get_store)):
    return ComplaintResult(complaint=store.get_by_number(complaint_no))


@router.get("/{complaint_id:int}", response_model=ComplaintResult)
def get_complaint(complaint_id: int, store: ComplaintStore = Depends(get_store)):
    return ComplaintResult(complaint=store.get(complaint_id))


@router.put("/{complaint_id:int}/status", response_model=UpdateResult)
def update_complaint_status(complaint_id: int, body: StatusUpdate, store: ComplaintStore = Depends(get_store)):
    return UpdateResult(updated=store.update_status(complaint_id, body.status))


@router.put("/{complaint_id:int}", response_model=UpdateResult)
def update_complaint(complaint_id: int, body: ComplaintUpdate, store: ComplaintStore = Depends(get_store)):
    updated = store.update_fields(complaint_id, body)
    return UpdateResult(updated=updated, message="Complaint updated")
