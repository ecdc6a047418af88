"""Tests for the FastAPI endpoints backed by a temp-file store."""

from datetime import timedelta
from pathlib import Path

from openpyxl import load_workbook
from sqlalchemy import select

from Models.complaints_models import TransactionHistory


def _create(client, payload, **overrides):
    return client.post("/complaints/", json={**payload, **overrides})


class TestCreateEndpoint:
    def test_create_returns_number(self, client, sample_payload):
        resp = _create(client, sample_payload)

        assert resp.status_code == 201
        body = resp.json()
        assert body["ok"] is True
        assert body["complaint_no"] == "JIPL/DELHINORTH/20250115/SERVICE/0001"
        assert _create(client, sample_payload).json()["complaint_no"].endswith("/0002")

    def test_validation_failure_shape(self, client, sample_payload):
        resp = _create(client, sample_payload, mobile="12a34")

        assert resp.status_code == 422
        body = resp.json()
        assert body["ok"] is False
        assert body["error"] == "ValidationError"
        assert body["field"] == "mobile"
        assert "mobile" in body["message"]

    def test_missing_field(self, client, sample_payload):
        payload = dict(sample_payload)
        payload.pop("problem")
        body = client.post("/complaints/", json=payload).json()
        assert body["ok"] is False
        assert body["field"] == "problem"

    def test_malformed_body(self, client):
        resp = client.post("/complaints/", json={"name": ["not", "text"]})
        assert resp.status_code == 422
        assert resp.json()["ok"] is False


class TestReadEndpoints:
    def test_get_and_lookup(self, client, sample_payload):
        created = _create(client, sample_payload).json()

        by_id = client.get(f"/complaints/{created['id']}").json()
        assert by_id["complaint"]["complaint_no"] == created["complaint_no"]

        by_no = client.get("/complaints/lookup", params={"complaint_no": created["complaint_no"]}).json()
        assert by_no["complaint"]["id"] == created["id"]

    def test_get_missing(self, client):
        resp = client.get("/complaints/42")
        assert resp.status_code == 404
        assert resp.json() == {"ok": False, "error": "NotFoundError", "message": "Complaint 42 not found"}

    def test_list_with_filters(self, client, sample_payload, clock):
        _create(client, sample_payload)
        clock.now = clock.now + timedelta(days=2)
        _create(client, sample_payload, name="Ravi")

        rows = client.get("/complaints/", params={"from": "2025-01-16"}).json()["rows"]
        assert [r["name"] for r in rows] == ["Ravi"]

        rows = client.get("/complaints/", params={"search": "ravi", "status": "Pending"}).json()["rows"]
        assert len(rows) == 1

        resp = client.get("/complaints/", params={"to": "not-a-date"})
        assert resp.status_code == 422
        assert resp.json()["field"] == "to"

    def test_by_month(self, client, sample_payload):
        ids = [_create(client, sample_payload).json()["id"] for _ in range(3)]
        client.put(f"/complaints/{ids[0]}/status", json={"status": "Complete"})
        _create(client, sample_payload, location="Mumbai")

        body = client.get(
            "/complaints/by-month", params={"month": "202501", "status": "Pending", "location": "Delhi North"}
        ).json()
        assert body["ok"] is True
        assert len(body["rows"]) == 2
        assert body["summary"] == {"pending": 2, "complete": 0, "total": 2}

    def test_by_month_invalid(self, client):
        resp = client.get("/complaints/by-month", params={"month": "2025"})
        assert resp.status_code == 422
        assert resp.json()["field"] == "month"


class TestUpdateEndpoints:
    def test_status_round_trip(self, client, sample_payload):
        cid = _create(client, sample_payload).json()["id"]

        assert client.put(f"/complaints/{cid}/status", json={"status": "Complete"}).json() == {
            "ok": True, "updated": True, "message": None
        }
        assert client.get(f"/complaints/{cid}").json()["complaint"]["completed_at"] is not None

        client.put(f"/complaints/{cid}/status", json={"status": "Pending"})
        assert client.get(f"/complaints/{cid}").json()["complaint"]["completed_at"] is None

    def test_invalid_status(self, client, sample_payload):
        cid = _create(client, sample_payload).json()["id"]
        resp = client.put(f"/complaints/{cid}/status", json={"status": "Done"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "InvalidStatusError"

    def test_status_unknown_id(self, client):
        resp = client.put("/complaints/7/status", json={"status": "Complete"})
        assert resp.status_code == 404

    def test_update_ignores_locked_fields(self, client, sample_payload):
        created = _create(client, sample_payload).json()
        resp = client.put(
            f"/complaints/{created['id']}",
            json={"problem": "loud noise", "location": "Mumbai", "status": "Complete"},
        )
        assert resp.json()["ok"] is True

        row = client.get(f"/complaints/{created['id']}").json()["complaint"]
        assert row["problem"] == "loud noise"
        assert row["location"] == "Delhi North"
        assert row["complaint_no"] == created["complaint_no"]
        assert row["status"] == "Complete"
        assert row["completed_at"] == "2025-01-15 10:30:00"

    def test_update_blank_problem(self, client, sample_payload):
        cid = _create(client, sample_payload).json()["id"]
        resp = client.put(f"/complaints/{cid}", json={"problem": ""})
        assert resp.status_code == 422
        assert resp.json()["field"] == "problem"


class TestExportEndpoint:
    def test_export_month(self, client, sample_payload):
        _create(client, sample_payload)
        body = client.post("/reports/export", json={"format": "csv", "month": "202501"}).json()

        assert body["ok"] is True
        assert body["count"] == 1
        path = Path(body["file_path"])
        assert path.name == "complaints_202501.csv"
        assert path.exists()

    def test_export_month_xlsx_has_summary(self, client, sample_payload):
        _create(client, sample_payload)
        body = client.post("/reports/export", json={"format": "xlsx", "month": "202501",
                                                     "status": "pending", "location": "Delhi North"}).json()

        assert body["ok"] is True
        values = list(load_workbook(body["file_path"]).active.iter_rows(values_only=True))
        assert values[0][0] == "Month: 202501 | Total: 1 | Pending: 1 | Complete: 0"
        assert values[1][0] == "Status: Pending | Location: Delhi North"
        assert values[3][1] == "A"

    def test_export_given_rows(self, client, sample_payload):
        _create(client, sample_payload)
        rows = client.get("/complaints/").json()["rows"]
        body = client.post("/reports/export", json={"format": "xlsx", "rows": rows, "title": "Picked"}).json()
        assert Path(body["file_path"]).name == "Picked.xlsx"

    def test_export_needs_rows_or_month(self, client):
        body = client.post("/reports/export", json={"format": "pdf"}).json()
        assert body["ok"] is False
        assert body["field"] == "month"

    def test_export_bad_format(self, client):
        resp = client.post("/reports/export", json={"format": "docx", "rows": []})
        assert resp.status_code == 422
        assert resp.json()["field"] == "format"


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_requests_are_logged(client, sample_payload):
    _create(client, sample_payload)
    client.get("/health", headers={"X-User-Email": "desk@example.com"})

    with client.app.state.session_factory() as db:
        logs = db.execute(select(TransactionHistory).order_by(TransactionHistory.id)).scalars().all()

    assert [(l.method, l.endpoint, l.response_status) for l in logs] == [
        ("POST", "/complaints/", 201),
        ("GET", "/health", 200),
    ]
    assert logs[1].author == "desk@example.com"
