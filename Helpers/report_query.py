from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.orm import sessionmaker

from Helpers.errors import ValidationError
from Models.complaints_models import Complaint, COMPLAINT_STATUSES, STATUS_PENDING, STATUS_COMPLETE
from utils.complaint_codes import normalize_location
from utils.date_utils import is_month_key, parse_date, start_of_day, end_of_day, format_timestamp

# Field order matches the export headers.
ROW_FIELDS = (
    "complaint_no", "name", "mobile", "location", "department", "product",
    "serial_number", "problem", "status", "created_at", "completed_at",
)

SEARCH_COLUMNS = (
    Complaint.complaint_no, Complaint.name, Complaint.mobile, Complaint.location,
    Complaint.department, Complaint.product, Complaint.serial_number,
)


def coerce_status(value: Optional[str]) -> Optional[str]:
    """Map user input onto a stored status value, or None if it is not one."""
    if value is None:
        return None
    wanted = str(value).strip().lower()
    for s in COMPLAINT_STATUSES:
        if s.lower() == wanted:
            return s
    return None


def complaint_row(c: Complaint) -> Dict[str, Any]:
    return {
        "id": c.id,
        "complaint_no": c.complaint_no,
        "name": c.name,
        "mobile": c.mobile,
        "location": c.location,
        "department": c.department,
        "product": c.product,
        "serial_number": c.serial_number,
        "problem": c.problem or "",
        "status": c.status,
        "created_at": format_timestamp(c.created_at),
        "completed_at": format_timestamp(c.completed_at),
    }


@dataclass
class ReportSummary:
    pending: int = 0
    complete: int = 0
    total: int = 0

    @classmethod
    def from_rows(cls, rows: List[Dict[str, Any]]) -> "ReportSummary":
        pending = sum(1 for r in rows if r["status"] == STATUS_PENDING)
        complete = sum(1 for r in rows if r["status"] == STATUS_COMPLETE)
        return cls(pending=pending, complete=complete, total=len(rows))


@dataclass
class MonthlyReport:
    month_key: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)
    status: Optional[str] = None
    location: Optional[str] = None


class ReportQuery:
    """Read-side queries over the complaint table. Never writes."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _fetch(self, stmt) -> List[Dict[str, Any]]:
        stmt = stmt.order_by(Complaint.created_at.desc(), Complaint.id.desc())
        with self.session_factory() as db:
            return [complaint_row(c) for c in db.execute(stmt).scalars().all()]

    def query(self, month: str, status: Optional[str] = None, location: Optional[str] = None) -> MonthlyReport:
        month = (month or "").strip()
        if not is_month_key(month):
            raise ValidationError("month", "must be YYYYMM")

        stmt = select(Complaint).where(Complaint.month_key == month)
        status = coerce_status(status)
        if status:
            stmt = stmt.where(Complaint.status == status)
        location = (location or "").strip() or None
        if location:
            # compare codes so "delhi-north" and "Delhi North" match
            stmt = stmt.where(Complaint.location_code == normalize_location(location))

        rows = self._fetch(stmt)
        return MonthlyReport(
            month_key=month,
            rows=rows,
            summary=ReportSummary.from_rows(rows),
            status=status,
            location=location,
        )

    def search(self, status: Optional[str] = None, date_from: Optional[str] = None,
               date_to: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(Complaint)

        status = coerce_status(status)
        if status:
            stmt = stmt.where(Complaint.status == status)
        if date_from:
            d = parse_date(date_from)
            if d is None:
                raise ValidationError("from", "must be YYYY-MM-DD")
            stmt = stmt.where(Complaint.created_at >= start_of_day(d))
        if date_to:
            d = parse_date(date_to)
            if d is None:
                raise ValidationError("to", "must be YYYY-MM-DD")
            stmt = stmt.where(Complaint.created_at <= end_of_day(d))

        search = (search or "").strip()
        if search:
            stmt = stmt.where(or_(*[col.contains(search, autoescape=True) for col in SEARCH_COLUMNS]))

        return self._fetch(stmt)
