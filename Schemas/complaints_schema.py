from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any


# ---------- Requests ----------
# Fields stay optional here; the store reports missing/malformed fields itself
# so every caller gets the same ValidationError shape.
class ComplaintCreate(BaseModel):
    name: Optional[str] = None
    mobile: Optional[str] = None
    location: Optional[str] = None
    department: Optional[str] = None
    product: Optional[str] = None
    serial_number: Optional[str] = None
    problem: Optional[str] = None


class ComplaintUpdate(BaseModel):
    # location/department are locked once the number is issued
    name: Optional[str] = None
    mobile: Optional[str] = None
    product: Optional[str] = None
    serial_number: Optional[str] = None
    problem: Optional[str] = None
    status: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str


class ExportRequest(BaseModel):
    format: str = Field(..., description="xlsx|pdf|csv")
    title: Optional[str] = None
    rows: Optional[List[Dict[str, Any]]] = None  # export exactly these rows
    month: Optional[str] = None  # otherwise run the monthly report
    status: Optional[str] = None
    location: Optional[str] = None


# ---------- Responses ----------
class ComplaintOut(BaseModel):
    id: int
    complaint_no: str
    name: str
    mobile: str
    location: str
    department: str
    product: str
    serial_number: str
    problem: str
    status: str
    created_at: str
    completed_at: Optional[str] = None


class ReportSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    pending: int
    complete: int
    total: int


class CreateResult(BaseModel):
    ok: bool = True
    id: int
    complaint_no: str


class ComplaintResult(BaseModel):
    ok: bool = True
    complaint: ComplaintOut


class ListResult(BaseModel):
    ok: bool = True
    rows: List[ComplaintOut]


class MonthlyReportOut(BaseModel):
    ok: bool = True
    month: str
    status: Optional[str] = None
    location: Optional[str] = None
    rows: List[ComplaintOut]
    summary: ReportSummaryOut


class UpdateResult(BaseModel):
    ok: bool = True
    updated: bool
    message: Optional[str] = None


class ExportResult(BaseModel):
    ok: bool = True
    file_path: str
    count: int
