import logging
import time

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from utils.transaction_logger import build_log, log_transaction_sync

logger = logging.getLogger(__name__)


class TransactionLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        response = await call_next(request)

        if not getattr(request.app.state, "transaction_log_enabled", False):
            return response

        duration = int((time.time() - start) * 1000)
        log = build_log(request, response.status_code, duration)

        try:
            # same store the routers use, set up in main.py lifespan
            log_transaction_sync(request.app.state.session_factory, log)
        except SQLAlchemyError as e:
            logger.warning("Could not insert transaction log: %s", e)

        return response
