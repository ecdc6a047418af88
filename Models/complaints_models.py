# Models/complaints_models.py
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Enum, UniqueConstraint, Index
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

STATUS_PENDING = "Pending"
STATUS_COMPLETE = "Complete"
COMPLAINT_STATUSES = (STATUS_PENDING, STATUS_COMPLETE)


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    complaint_no = Column(String(80), nullable=False, unique=True)
    name = Column(String(120), nullable=False)
    mobile = Column(String(15), nullable=False)
    location = Column(String(120), nullable=False)
    location_code = Column(String(12), nullable=False)
    department = Column(String(120), nullable=False)
    department_code = Column(String(12), nullable=False)
    product = Column(String(120), nullable=False)
    serial_number = Column(String(120), nullable=False)
    problem = Column(Text, nullable=False)
    status = Column(Enum(*COMPLAINT_STATUSES, name="complaint_status_enum"),
                    nullable=False, default=STATUS_PENDING)
    sequence = Column(Integer, nullable=False)
    day_key = Column(String(8), nullable=False)
    month_key = Column(String(6), nullable=False)
    created_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime)
    updated_at = Column(DateTime)

    __table_args__ = (
        # allocator scope; also rejects a duplicate sequence outright
        UniqueConstraint("location_code", "department_code", "day_key", "sequence",
                         name="uq_complaint_scope_seq"),
        Index("idx_complaints_month", "month_key"),
        Index("idx_complaints_status", "status"),
        Index("idx_complaints_created", "created_at"),
    )


class TransactionHistory(Base):
    __tablename__ = "transaction_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    endpoint = Column(String(255), nullable=False)
    method = Column(String(10), nullable=False)
    query_params = Column(Text)
    response_status = Column(Integer)
    author = Column(String(255))
    duration_ms = Column(Integer)
    timestamp = Column(DateTime, nullable=False)
