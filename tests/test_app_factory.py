"""
Tests for api/app.py — create_app() factory

Verifies the FastAPI app is created with correct configuration,
routers are registered, and middleware and error handlers work.
"""
import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient

from api.app import _JsonFormatter, create_app
from api.service import get_service, set_service
from pipeline.service import DashboardService
from utils.config import AppConfig


@pytest.fixture()
def config(tmp_path):
    cfg = AppConfig()
    cfg.load_on_startup = False
    cfg.api_url = ""
    cfg.store_path = tmp_path / "store.json"
    return cfg


def test_app_metadata(config, service):
    app = create_app(config, service=service)
    assert app.title == "Work Order Dashboard API"
    assert app.version == "1.0.0"


def test_routes_registered(config, service):
    paths = {route.path for route in create_app(config, service=service).routes}
    for expected in (
        "/health",
        "/api/v1/work-orders",
        "/api/v1/work-orders/stats",
        "/api/v1/work-orders/reload",
        "/api/v1/filters",
        "/api/v1/action-plans/{request_no}",
        "/api/v1/download",
        "/api/v1/sync/status",
        "/api/v1/sync/pending/replay",
        "/",
        "/partials/results",
    ):
        assert expected in paths


def test_service_installed(config, service):
    create_app(config, service=service)
    assert get_service() is service


def test_builds_service_from_config(config):
    create_app(config)
    svc = get_service()
    assert isinstance(svc, DashboardService)
    assert svc.client is None
    assert svc.store.path == config.store_path


def test_missing_service_is_503(config, service):
    client = TestClient(create_app(config, service=service))
    set_service(None)
    try:
        resp = client.get("/api/v1/work-orders")
        assert resp.status_code == 503
    finally:
        set_service(service)


def test_lifespan_loads_on_startup(config, service):
    config.load_on_startup = True
    with TestClient(create_app(config, service=service)) as client:
        assert client.get("/health").json()["work_orders"] == 4
    assert service.client.closed


def test_lifespan_without_remote_reports_error(config):
    config.load_on_startup = True
    with TestClient(create_app(config)) as client:
        resp = client.get("/health")
        assert resp.status_code == 503
        assert "No remote API URL configured" in resp.json()["error"]


def test_cors_headers(config, service):
    client = TestClient(create_app(config, service=service))
    resp = client.get("/health", headers={"Origin": "http://example.test"})
    assert resp.headers.get("access-control-allow-origin") == "*"


def test_json_formatter_includes_extras():
    record = logging.LogRecord("workorders_api", logging.INFO, __file__, 1,
                               "request", None, None)
    record.method = "GET"
    record.status = 200
    data = json.loads(_JsonFormatter().format(record))
    assert data["message"] == "request"
    assert data["method"] == "GET"
    assert data["status"] == 200
    assert data["level"] == "INFO"
