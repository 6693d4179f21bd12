import httpx
import pytest
from fastapi.testclient import TestClient

from assessment import api as api_module
from assessment.api import create_app
from assessment.persistence import DatabaseConfig, PersistenceClient
from assessment.settings import DatabaseAuthMode, Settings

PAYLOAD = {
    "email": "ana@example.com",
    "overallScore": 4.2,
    "overallStage": 2,
    "captureScore": 12.0,
    "captureStage": 5,
    "storageScore": 0.0,
    "storageStage": 0,
    "analyticsScore": 3.0,
    "analyticsStage": 2,
    "governanceScore": 7.5,
    "governanceStage": 3,
}


@pytest.fixture()
def persistence(tmp_path):
    return PersistenceClient(
        DatabaseConfig(mode=DatabaseAuthMode.CONNECTION_STRING, url=f"sqlite:///{tmp_path / 'api.db'}")
    )


@pytest.fixture()
def api(persistence):
    app = create_app(client=persistence, settings=Settings(_env_file=None))
    with TestClient(app) as c:
        yield c


def test_submit_result_upserts(api, persistence):
    r = api.post("/api/submit-result", json=PAYLOAD)
    assert r.status_code == 200
    assert r.json() == {"ok": True, "rowsAffected": 1}

    r = api.post("/api/submit-result", json={**PAYLOAD, "overallScore": 11.5, "overallStage": 5})
    assert r.status_code == 200
    assert persistence.get_result("ana@example.com").overall_stage == 5


def test_submit_result_rejects_blank_email(api):
    r = api.post("/api/submit-result", json={**PAYLOAD, "email": " "})
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False
    assert "email" in body["error"]


def test_submit_result_rejects_missing_score(api):
    payload = dict(PAYLOAD)
    del payload["analyticsScore"]
    r = api.post("/api/submit-result", json=payload)
    assert r.status_code == 400
    assert any(d["field"] == "analyticsScore" for d in r.json()["details"])


def test_submit_result_rejects_non_finite_score(api):
    body = '{"email": "ana@example.com", "overallScore": NaN}'
    r = api.post("/api/submit-result", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert "overallScore" in r.json()["error"]


def test_submit_result_rejects_invalid_json(api):
    r = api.post("/api/submit-result", content="{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json() == {"ok": False, "error": "Invalid JSON"}


def test_ping_db(api):
    r = api.get("/api/ping-db")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "db": True}


def test_where_am_i(api):
    r = api.get("/api/where-am-i")
    assert r.status_code == 200
    assert r.json()["authMode"] == "connection_string"
    assert r.json()["hasConnStr"] is True


def test_client_is_closed_on_shutdown(persistence):
    app = create_app(client=persistence, settings=Settings(_env_file=None))
    with TestClient(app):
        assert persistence.is_open
    assert not persistence.is_open


@pytest.mark.parametrize("field,value", [("overallScore", "4.2"), ("overallStage", True), ("captureStage", "5")])
def test_submit_result_rejects_non_numeric_values(api, field, value):
    r = api.post("/api/submit-result", json={**PAYLOAD, field: value})
    assert r.status_code == 400
    assert any(d["field"] == field for d in r.json()["details"])


def test_egress_ip(api, monkeypatch):
    async def fake_fetch():
        return "203.0.113.7"

    monkeypatch.setattr(api_module, "fetch_egress_ip", fake_fetch)
    r = api.get("/api/egress-ip")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "ip": "203.0.113.7"}


def test_egress_ip_lookup_failure(api, monkeypatch):
    async def failing_fetch():
        raise httpx.ConnectError("network unreachable")

    monkeypatch.setattr(api_module, "fetch_egress_ip", failing_fetch)
    r = api.get("/api/egress-ip")
    assert r.status_code == 500
    assert r.json() == {"ok": False, "error": "network unreachable"}
