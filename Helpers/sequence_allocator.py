import threading

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from Models.complaints_models import Complaint
from utils.complaint_codes import parse_complaint_number


class SequenceAllocator:
    """
    Computes the next per-scope, per-day sequence from what is already stored.

    There is no counter table: the answer is always max(sequence) + 1 for the
    scope, so nothing needs repairing after an unclean shutdown. Callers must
    hold `lock` and run the lookup in the same write transaction as the insert.
    """

    def __init__(self):
        self.lock = threading.Lock()

    def next_sequence(self, db: Session, location_code: str, department_code: str, day_key: str) -> int:
        current = db.execute(
            select(func.max(Complaint.sequence)).where(
                Complaint.location_code == location_code,
                Complaint.department_code == department_code,
                Complaint.day_key == day_key,
            )
        ).scalar()
        return (current or 0) + 1

    def next_sequence_by_prefix(self, db: Session, prefix: str) -> int:
        """
        Same answer, found by lexicographic max over complaint numbers sharing `prefix`.

        For stores that only index the complaint number and lack the structured
        scope columns (imports, older tables). `create` uses `next_sequence`.
        """
        last = db.execute(
            select(Complaint.complaint_no)
            .where(Complaint.complaint_no.startswith(prefix, autoescape=True))
            .order_by(func.length(Complaint.complaint_no).desc(), Complaint.complaint_no.desc())
            .limit(1)
        ).scalar()
        if not last:
            return 1
        return parse_complaint_number(last).sequence + 1
