import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from db_sql import make_engine, make_session_factory
from Helpers.complaint_store import ComplaintStore
from Helpers.errors import ComplaintError, UniquenessViolation
from Models.complaints_models import Base as ComplaintsBase
from middlewares.transaction_logger_middleware import TransactionLoggerMiddleware

# ── Routers
from routes.complaints import router as complaints_router
from routes.reports import router as reports_router

load_dotenv()

logger = logging.getLogger("complaint_register")


def configure_logging():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(database_url: Optional[str] = None, export_dir: Optional[str] = None,
               clock: Optional[Callable[[], datetime]] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = make_engine(database_url)
        ComplaintsBase.metadata.create_all(engine)

        app.state.engine = engine
        app.state.session_factory = make_session_factory(engine)
        app.state.store = ComplaintStore(app.state.session_factory, clock=clock)
        app.state.export_dir = export_dir or os.getenv("EXPORT_DIR", "exports")
        app.state.transaction_log_enabled = os.getenv("TRANSACTION_LOG_ENABLED", "true").lower() == "true"
        logger.info("Complaint store ready at %s", engine.url)

        try:
            yield
        finally:
            engine.dispose()

    app = FastAPI(title="Complaint Register API", lifespan=lifespan)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        allow_credentials=os.getenv("CORS_CREDENTIALS", "false").lower() == "true",
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TransactionLoggerMiddleware)

    @app.exception_handler(ComplaintError)
    async def complaint_error_handler(request: Request, exc: ComplaintError):
        if isinstance(exc, UniquenessViolation):
            logger.critical("Integrity alert on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "request"
        return JSONResponse(status_code=422, content={
            "ok": False,
            "error": "ValidationError",
            "field": field,
            "message": f"{field}: {first.get('msg', 'invalid request')}",
        })

    # Register Routers
    app.include_router(complaints_router, prefix="/complaints", tags=["Complaints"])
    app.include_router(reports_router, prefix="/reports", tags=["Reports"])

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


configure_logging()
app = create_app()
