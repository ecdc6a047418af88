import logging
import os
import re
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from Helpers.errors import (
    ComplaintError, ValidationError, NotFoundError, InvalidStatusError, UniquenessViolation, StorageError
)
from Helpers.report_query import ReportQuery, MonthlyReport, coerce_status, complaint_row
from Helpers.sequence_allocator import SequenceAllocator
from Models.complaints_models import Complaint, STATUS_PENDING, STATUS_COMPLETE
from utils.complaint_codes import build_complaint_number, normalize_location, normalize_department
from utils.date_utils import day_key, month_key

logger = logging.getLogger(__name__)

DEFAULT_ORG_PREFIX = "JIPL"

REQUIRED_FIELDS = ("name", "mobile", "location", "department", "product", "serial_number", "problem")
EDITABLE_TEXT_FIELDS = ("name", "product", "serial_number", "problem")

MOBILE_MIN_DIGITS = 7
MOBILE_MAX_DIGITS = 15
_MOBILE_RE = re.compile(rf"[0-9]{{{MOBILE_MIN_DIGITS},{MOBILE_MAX_DIGITS}}}")


@dataclass(frozen=True)
class CreatedComplaint:
    id: int
    complaint_no: str


def _as_dict(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=True)
    if isinstance(payload, Mapping):
        return dict(payload)
    raise ValidationError("payload", "must be an object")


def _require_text(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    value = "" if value is None else str(value).strip()
    if not value:
        raise ValidationError(field, "is required")
    return value


def _clean_mobile(value: Any) -> str:
    mobile = "".join(str(value or "").split())
    if not mobile:
        raise ValidationError("mobile", "is required")
    if not _MOBILE_RE.fullmatch(mobile):
        raise ValidationError(
            "mobile", f"must be {MOBILE_MIN_DIGITS}-{MOBILE_MAX_DIGITS} digits"
        )
    return mobile


def _check_status(value: Any) -> str:
    status = coerce_status(value)
    if status is None:
        raise InvalidStatusError(value)
    return status


class ComplaintStore:
    """
    Owns the complaint table: registration, lookups and the status lifecycle.

    Everything is validated before a session is opened, so a rejected request
    never writes. Create runs allocation and insert in one write transaction
    under the allocator lock.
    """

    def __init__(self, session_factory: sessionmaker, allocator: Optional[SequenceAllocator] = None,
                 clock: Optional[Callable[[], datetime]] = None, org_prefix: Optional[str] = None):
        self.session_factory = session_factory
        self.allocator = allocator or SequenceAllocator()
        self.clock = clock or datetime.now
        self.org_prefix = org_prefix or os.getenv("COMPLAINT_ORG_PREFIX", DEFAULT_ORG_PREFIX)
        self.reports = ReportQuery(session_factory)

    @contextmanager
    def _transaction(self, immediate: bool = False):
        db = self.session_factory()
        try:
            if immediate:
                # SQLite: take the write lock before reading the current max
                db.connection(execution_options={"sqlite_begin": "IMMEDIATE"})
            yield db
            db.commit()
        except ComplaintError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            logger.critical("Complaint uniqueness violated: %s", e.orig)
            raise UniquenessViolation(f"Duplicate complaint number: {e.orig}") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Storage failure")
            raise StorageError(str(e)) from e
        finally:
            db.close()

    # ---------- create ----------
    def create(self, payload) -> CreatedComplaint:
        data = _as_dict(payload)
        fields = {f: _require_text(data, f) for f in REQUIRED_FIELDS if f != "mobile"}
        fields["mobile"] = _clean_mobile(data.get("mobile"))

        loc_code = normalize_location(fields["location"])
        dept_code = normalize_department(fields["department"])

        with self.allocator.lock:
            with self._transaction(immediate=True) as db:
                now = self.clock()
                dk = day_key(now)
                seq = self.allocator.next_sequence(db, loc_code, dept_code, dk)
                c = Complaint(
                    complaint_no=build_complaint_number(self.org_prefix, loc_code, dk, dept_code, seq),
                    location_code=loc_code,
                    department_code=dept_code,
                    sequence=seq,
                    day_key=dk,
                    month_key=month_key(now),
                    status=STATUS_PENDING,
                    created_at=now,
                    updated_at=now,
                    completed_at=None,
                    **fields,
                )
                db.add(c)
                db.flush()
                created = CreatedComplaint(id=c.id, complaint_no=c.complaint_no)

        logger.info("Registered complaint %s (id=%s)", created.complaint_no, created.id)
        return created

    # ---------- read ----------
    def get(self, complaint_id: int) -> Dict[str, Any]:
        with self.session_factory() as db:
            c = db.get(Complaint, complaint_id)
            if c is None:
                raise NotFoundError(f"Complaint {complaint_id} not found")
            return complaint_row(c)

    def get_by_number(self, complaint_no: str) -> Dict[str, Any]:
        with self.session_factory() as db:
            c = db.execute(
                select(Complaint).where(Complaint.complaint_no == (complaint_no or "").strip())
            ).scalar_one_or_none()
            if c is None:
                raise NotFoundError(f"Complaint {complaint_no} not found")
            return complaint_row(c)

    # ---------- update ----------
    def update_status(self, complaint_id: int, status: str) -> bool:
        status = _check_status(status)
        now = self.clock()
        if status == STATUS_COMPLETE:
            completed_at = func.coalesce(Complaint.completed_at, now)
        else:
            completed_at = None

        with self._transaction() as db:
            result = db.execute(
                update(Complaint)
                .where(Complaint.id == complaint_id)
                .values(status=status, completed_at=completed_at, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Complaint {complaint_id} not found")

        logger.info("Complaint id=%s status -> %s", complaint_id, status)
        return result.rowcount == 1

    def update_fields(self, complaint_id: int, payload) -> bool:
        """
        Apply a partial edit. Only name, mobile, product, serial_number, problem
        and status are editable; location and department are baked into the
        complaint number, so any other key is ignored.
        """
        data = _as_dict(payload)
        changes: Dict[str, Any] = {}
        for f in EDITABLE_TEXT_FIELDS:
            if data.get(f) is not None:
                changes[f] = _require_text(data, f)
        if data.get("mobile") is not None:
            changes["mobile"] = _clean_mobile(data["mobile"])
        status = _check_status(data["status"]) if data.get("status") is not None else None

        now = self.clock()
        with self._transaction() as db:
            c = db.get(Complaint, complaint_id)
            if c is None:
                raise NotFoundError(f"Complaint {complaint_id} not found")
            for k, v in changes.items():
                setattr(c, k, v)
            c.updated_at = now
            if status == STATUS_COMPLETE:
                c.status = status
                if c.completed_at is None:
                    c.completed_at = now
            elif status == STATUS_PENDING:
                c.status = status
                c.completed_at = None

        logger.info("Complaint id=%s updated: %s", complaint_id,
                    sorted(changes) + (["status"] if status else []))
        return True

    # ---------- reports ----------
    def list_by_month(self, month: str, status: Optional[str] = None,
                      location: Optional[str] = None) -> MonthlyReport:
        return self.reports.query(month, status, location)
