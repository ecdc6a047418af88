# utils/transaction_logger.py
import json
from datetime import datetime

from Models.complaints_models import TransactionHistory


def log_transaction_sync(session_factory, log: dict):
    """Write a log entry into transaction_history"""
    with session_factory() as db:
        db.add(TransactionHistory(**log))
        db.commit()


def build_log(request, response_status, duration_ms: int):
    """Build log row"""
    return {
        "endpoint": request.url.path,
        "method": request.method,
        "query_params": json.dumps(dict(request.query_params)) if request.query_params else None,
        "response_status": response_status,
        "author": request.headers.get("X-User-Email"),
        "timestamp": datetime.now(),
        "duration_ms": duration_ms,
    }
