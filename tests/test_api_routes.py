"""
Tests for the /api/v1 JSON endpoints.

Every test builds the app with create_app(config, service=...) so the
service talks to the fake remote client and a tmp_path store from
conftest.py.  The lifespan is not entered, so nothing loads on startup.
"""
import csv
import io
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient

from api.app import create_app
from utils.config import AppConfig
from utils.errors import NetworkError, RemoteError


@pytest.fixture()
def config(tmp_path):
    cfg = AppConfig()
    cfg.load_on_startup = False
    cfg.store_path = tmp_path / "store.json"
    return cfg


@pytest.fixture()
def client(config, loaded_service):
    return TestClient(create_app(config, service=loaded_service))


@pytest.fixture()
def empty_client(config, service):
    """App whose service has not loaded anything yet."""
    return TestClient(create_app(config, service=service))


# ── Health ────────────────────────────────────────────────────────────────────

class TestHealth:
    def test_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["work_orders"] == 4
        assert body["source"] == "remote"

    def test_degraded_when_nothing_loaded(self, empty_client, service, fake_client, network_down):
        fake_client.fail_with = network_down
        service.load()
        resp = empty_client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"

    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert "X-Request-ID" in resp.headers


# ── Work orders ───────────────────────────────────────────────────────────────

class TestWorkOrders:
    def test_list_default(self, client):
        body = client.get("/api/v1/work-orders").json()
        assert body["total"] == 4
        assert body["page"] == 1
        assert (body["start"], body["end"]) == (1, 4)
        assert body["filter_summary"] == "(Showing all)"
        assert [i["request_no"] for i in body["items"]] == ["WO-001", "WO-002", "WO-003", "WO-004"]

    def test_item_shape(self, client):
        item = client.get("/api/v1/work-orders").json()["items"][2]
        assert item["request_no"] == "WO-003"
        assert item["vendor"] == ""
        assert item["cost"] == 0
        assert item["is_open"] is True
        assert (item["request_year"], item["month"]) == (2024, 3)

    def test_filters(self, client):
        body = client.get("/api/v1/work-orders", params={"hospital": "HSA", "service": "FEMS"}).json()
        assert [i["request_no"] for i in body["items"]] == ["WO-003"]
        assert body["filters"]["hospital"] == "HSA"
        assert body["filters"]["service"] == "FEMS"

    def test_filters_persist_between_requests(self, client):
        client.get("/api/v1/work-orders", params={"q": "coils"})
        body = client.get("/api/v1/work-orders").json()
        assert body["total"] == 1
        assert body["filters"]["search"] == "coils"

    def test_page_clamped(self, client, loaded_service, fake_client):
        from conftest import make_rows
        fake_client.rows = make_rows(40)
        loaded_service.load()
        body = client.get("/api/v1/work-orders", params={"page": 9}).json()
        assert body["page"] == 3
        assert (body["start"], body["end"], body["total_pages"]) == (31, 40, 3)

    def test_page_must_be_positive(self, client):
        assert client.get("/api/v1/work-orders", params={"page": 0}).status_code == 422

    def test_stats(self, client):
        client.get("/api/v1/work-orders", params={"hospital": "HSI"})
        assert client.get("/api/v1/work-orders/stats").json() == {
            "total": 4, "open_count": 2, "filtered": 2,
        }

    def test_get_one(self, client):
        body = client.get("/api/v1/work-orders/WO-002").json()
        assert body["action_plan"] == "Replace door sensor"

    def test_get_unknown(self, client):
        resp = client.get("/api/v1/work-orders/NOPE")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Not found"

    def test_reload(self, client, fake_client):
        resp = client.post("/api/v1/work-orders/reload")
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] and body["source"] == "remote" and body["count"] == 4

    def test_reload_falls_back_to_cache(self, client, fake_client, network_down):
        fake_client.fail_with = network_down
        body = client.post("/api/v1/work-orders/reload").json()
        assert body["ok"] and body["used_fallback"] and body["source"] == "cache"

    def test_reload_total_failure(self, empty_client, fake_client):
        fake_client.fail_with = RemoteError("Sheet not found")
        resp = empty_client.post("/api/v1/work-orders/reload")
        assert resp.status_code == 503
        assert resp.json()["error"] == "Failed to load data: Sheet not found"


# ── Filters ───────────────────────────────────────────────────────────────────

class TestFilterOptions:
    def test_from_data(self, client):
        body = client.get("/api/v1/filters").json()
        assert body["hospitals"] == ["HSA", "HSI"]
        assert body["years"] == [2024, 2023]
        assert body["months"] == list(range(1, 13))

    def test_from_remote(self, client, fake_client):
        fake_client.filter_options = {"hospitals": ["X"], "years": [2022], "services": ["Y"]}
        body = client.get("/api/v1/filters", params={"source": "remote"}).json()
        assert body["hospitals"] == ["X"]

    def test_bad_source(self, client):
        assert client.get("/api/v1/filters", params={"source": "db"}).status_code == 422


# ── Action plans ──────────────────────────────────────────────────────────────

class TestActionPlans:
    def test_open_and_save(self, client, fake_client, scheduler):
        opened = client.post("/api/v1/action-plans/WO-001/session").json()
        assert opened["state"] == "editing"
        assert opened["buffer"] == ""

        resp = client.put("/api/v1/action-plans/WO-001", json={"action_plan": " Replace fan "})
        assert resp.status_code == 200
        body = resp.json()
        assert body["action_plan"] == "Replace fan"
        assert body["queued"] is False
        assert body["reload_scheduled"] is True
        assert fake_client.submitted[-1]["request_no"] == "WO-001"
        assert len(scheduler.calls) == 1

        record = client.get("/api/v1/work-orders/WO-001").json()
        assert record["action_plan"] == "Replace fan"
        assert record["is_open"] is False

    def test_save_without_session(self, client):
        resp = client.put("/api/v1/action-plans/WO-001", json={"action_plan": "x"})
        assert resp.status_code == 409

    def test_blank_rejected(self, client, fake_client):
        client.post("/api/v1/action-plans/WO-001/session")
        resp = client.put("/api/v1/action-plans/WO-001", json={"action_plan": "   "})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Please enter an action plan"
        assert fake_client.submitted == []
        assert client.get("/api/v1/action-plans/WO-001/session").json()["state"] == "editing"

    def test_backend_failure_keeps_session(self, client, fake_client):
        client.post("/api/v1/action-plans/WO-001/session")
        fake_client.fail_with = NetworkError("HTTP error! status: 500", status_code=500)
        resp = client.put("/api/v1/action-plans/WO-001", json={"action_plan": "Plan"})
        assert resp.status_code == 502
        session = client.get("/api/v1/action-plans/WO-001/session").json()
        assert session["state"] == "failed"
        assert session["error"] == "HTTP error! status: 500"

    def test_unreachable_backend_is_503(self, client, fake_client, network_down):
        client.post("/api/v1/action-plans/WO-001/session")
        fake_client.fail_with = network_down
        resp = client.put("/api/v1/action-plans/WO-001", json={"action_plan": "Plan"})
        assert resp.status_code == 503

    def test_offline_save_queues(self, client, fake_client):
        client.put("/api/v1/sync/connection", json={"online": False})
        client.post("/api/v1/action-plans/WO-003/session")
        body = client.put("/api/v1/action-plans/WO-003", json={"action_plan": "Later"}).json()
        assert body["queued"] is True
        assert body["reload_scheduled"] is False
        assert fake_client.submitted == []
        pending = client.get("/api/v1/sync/pending").json()
        assert [(p["request_no"], p["action_plan"]) for p in pending] == [("WO-003", "Later")]

    def test_close_session(self, client):
        client.post("/api/v1/action-plans/WO-001/session")
        assert client.delete("/api/v1/action-plans/WO-001/session").status_code == 204
        assert client.get("/api/v1/action-plans/WO-001/session").status_code == 409

    def test_view(self, client):
        body = client.get("/api/v1/action-plans/WO-004").json()
        assert body == {"request_no": "WO-004", "action_plan": "Clean coils",
                        "is_open": False, "updated": None}

    def test_open_unknown(self, client):
        assert client.post("/api/v1/action-plans/NOPE/session").status_code == 404


# ── Download ──────────────────────────────────────────────────────────────────

class TestDownload:
    def test_csv(self, client):
        resp = client.get("/api/v1/download", params={"hospital": "HSA"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.headers["content-disposition"].startswith('attachment; filename="work-orders-')
        assert resp.headers["X-Total-Count"] == "2"
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][0] == "REQUEST NO"
        assert [r[0] for r in rows[1:]] == ["WO-001", "WO-003"]

    def test_xlsx(self, client):
        resp = client.get("/api/v1/download", params={"fmt": "xlsx"})
        assert resp.status_code == 200
        assert resp.content[:2] == b"PK"
        assert ".xlsx" in resp.headers["content-disposition"]

    def test_empty_view(self, client):
        resp = client.get("/api/v1/download", params={"q": "no such thing"})
        assert resp.status_code == 409
        assert resp.json()["detail"] == "No data to export"

    def test_bad_format(self, client):
        assert client.get("/api/v1/download", params={"fmt": "pdf"}).status_code == 422


# ── Sync ──────────────────────────────────────────────────────────────────────

class TestSync:
    def test_status(self, client):
        body = client.get("/api/v1/sync/status").json()
        assert body["online"] is True
        assert body["remote_configured"] is True
        assert body["pending_count"] == 0
        assert body["last_sync"]

    def test_manual_sync(self, client):
        resp = client.post("/api/v1/sync")
        assert resp.status_code == 200
        assert resp.json()["source"] == "remote"

    def test_manual_sync_offline(self, client):
        client.put("/api/v1/sync/connection", json={"online": False})
        resp = client.post("/api/v1/sync")
        assert resp.status_code == 503

    def test_connection_toggle(self, client):
        body = client.put("/api/v1/sync/connection", json={"online": False}).json()
        assert body["online"] is False

    def test_replay(self, client, fake_client):
        client.put("/api/v1/sync/connection", json={"online": False})
        client.post("/api/v1/action-plans/WO-001/session")
        client.put("/api/v1/action-plans/WO-001", json={"action_plan": "Queued"})
        client.put("/api/v1/sync/connection", json={"online": True})
        assert client.get("/api/v1/sync/status").json()["pending_count"] == 1

        body = client.post("/api/v1/sync/pending/replay").json()
        assert body == {"sent": 1, "remaining": 0, "error": None}
        assert fake_client.submitted[-1]["action_plan"] == "Queued"
        assert client.get("/api/v1/sync/pending").json() == []

    def test_replay_offline(self, client):
        client.put("/api/v1/sync/connection", json={"online": False})
        assert client.post("/api/v1/sync/pending/replay").status_code == 503
