"""
Pytest fixtures for the work order dashboard tests.

Provides reusable fixtures: raw backend rows as the Apps Script API
returns them, a fake remote client that records every call, a LocalStore
in tmp_path, and a DashboardService wired to both with an immediate
(recording) scheduler instead of a real timer.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pipeline.service import DashboardService  # noqa: E402
from utils.cache import LocalStore  # noqa: E402
from utils.errors import NetworkError  # noqa: E402
from utils.http import FetchResult, SubmitResult  # noqa: E402


# ── Sample data ───────────────────────────────────────────────────────────────

SAMPLE_ROWS = [
    {
        "REQUEST NO": "WO-001", "HOSPITAL": "HSA", "REQUEST DATE": "2024-03-05",
        "SERVICES": "BEMS", "SUB-SYSTEM": "Chiller", "ACTION PLAN": "",
        "VENDOR": "Acme", "COST": "12000",
    },
    {
        "REQUEST NO": "WO-002", "HOSPITAL": "HSI", "REQUEST DATE": "2023-11-01T00:00:00.000Z",
        "SERVICES": "FEMS", "SUB-SYSTEM": "Lift", "ACTION PLAN": "Replace door sensor",
        "VENDOR": "LiftCo", "COST": 3000,
    },
    {
        "REQUEST NO": "WO-003", "HOSPITAL": "HSA", "REQUEST DATE": "2024-03-20",
        "SERVICES": "FEMS", "SUB-SYSTEM": "Generator", "ACTION PLAN": "",
        "VENDOR": "", "COST": "n/a",
    },
    {
        "REQUEST NO": "WO-004", "HOSPITAL": "HSI", "REQUEST DATE": "2024-07-14",
        "SERVICES": "BEMS", "SUB-SYSTEM": "AHU", "ACTION PLAN": "Clean coils",
        "VENDOR": "CoolAir", "COST": "750.50",
    },
]


def make_rows(n: int) -> list[dict]:
    """*n* distinct raw rows spread over two hospitals and 2023/2024."""
    rows = []
    for i in range(1, n + 1):
        rows.append({
            "REQUEST NO": f"WO-{i:03d}",
            "HOSPITAL": "HSA" if i % 2 else "HSI",
            "REQUEST DATE": f"{2023 + i % 2}-{(i % 12) + 1:02d}-01",
            "SERVICES": "BEMS" if i % 3 else "FEMS",
            "SUB-SYSTEM": "Chiller",
            "ACTION PLAN": "" if i % 4 else "Done",
            "VENDOR": "Acme",
            "COST": str(i * 100),
        })
    return rows


# ── Fake remote client ────────────────────────────────────────────────────────

class FakeRemoteClient:
    """Stands in for utils.http.RemoteClient; records every call.

    Set ``fail_with`` to an exception instance to make every call raise it.
    """

    def __init__(self, rows=None, filter_options=None):
        self.rows = list(rows if rows is not None else SAMPLE_ROWS)
        self.filter_options = filter_options
        self.fetch_calls: list[tuple] = []
        self.submitted: list[dict] = []
        self.fail_with: Exception | None = None
        self.submit_message: str | None = None
        self.closed = False

    def fetch_list(self, action, params=None):
        self.fetch_calls.append((action, params))
        if self.fail_with is not None:
            raise self.fail_with
        if action == "getFilterOptions":
            data = self.filter_options
        else:
            data = [dict(r) for r in self.rows]
        return FetchResult(records=data, raw={"success": True, "data": data})

    def submit(self, payload):
        if self.fail_with is not None:
            raise self.fail_with
        self.submitted.append(payload)
        return SubmitResult(success=True, message=self.submit_message,
                            raw={"success": True, "message": self.submit_message})

    def close(self):
        self.closed = True


class RecordingScheduler:
    """Collects scheduled calls instead of starting timers."""

    def __init__(self):
        self.calls: list[tuple] = []

    def __call__(self, delay, fn):
        self.calls.append((delay, fn))
        return None

    def run_all(self):
        calls, self.calls = self.calls, []
        for _, fn in calls:
            fn()


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def sample_rows():
    return [dict(r) for r in SAMPLE_ROWS]


@pytest.fixture()
def fake_client():
    return FakeRemoteClient()


@pytest.fixture()
def store(tmp_path):
    return LocalStore(tmp_path / "store.json")


@pytest.fixture()
def scheduler():
    return RecordingScheduler()


@pytest.fixture()
def service(fake_client, store, scheduler):
    """An online service with nothing loaded yet."""
    return DashboardService(fake_client, store, scheduler=scheduler, reload_delay=1.0)


@pytest.fixture()
def loaded_service(service):
    """An online service after one successful remote load."""
    outcome = service.load()
    assert outcome.ok
    service.notifications.drain()
    return service


@pytest.fixture()
def network_down():
    return NetworkError("Failed to fetch")
