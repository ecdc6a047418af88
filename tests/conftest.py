"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from db_sql import make_engine, make_session_factory
from Helpers.complaint_store import ComplaintStore
from main import create_app
from Models.complaints_models import Base


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 10, 30, 0))


@pytest.fixture
def session_factory(tmp_path):
    """Independent file-backed SQLite store per test."""
    engine = make_engine(f"sqlite:///{tmp_path / 'complaints.db'}")
    Base.metadata.create_all(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory, clock):
    return ComplaintStore(session_factory, clock=clock, org_prefix="JIPL")


@pytest.fixture
def sample_payload():
    """The front-desk example from the registration form."""
    return {
        "name": "A",
        "mobile": "9876543210",
        "location": "Delhi North",
        "department": "Service",
        "product": "AC",
        "serial_number": "SN1",
        "problem": "noise",
    }


@pytest.fixture
def client(tmp_path, clock, monkeypatch):
    monkeypatch.setenv("COMPLAINT_ORG_PREFIX", "JIPL")
    app = create_app(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        export_dir=str(tmp_path / "exports"),
        clock=clock,
    )
    with TestClient(app) as c:
        yield c
