"""
Unit tests for utils/strings.py, utils/patterns.py and utils/config.py.

No network or file I/O required.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.config import AppConfig, ColumnMapping, KnownValues
from utils.patterns import CALENDAR_DATE, CURRENCY_SYMBOLS, HEADER_SEPARATORS
from utils.strings import (
    header_key,
    is_blank,
    safe_cost,
    safe_float,
    text_or_default,
)


# ── safe_float / safe_cost ────────────────────────────────────────────────────

@pytest.mark.parametrize("value, expected", [
    (None, 0.0),
    ("", 0.0),
    ("12000", 12000.0),
    ("750.50", 750.5),
    ("12,000", 12000.0),
    ("RM 1,200", 1200.0),
    ("$300", 300.0),
    (42, 42.0),
    ("n/a", 0.0),
    ("nan", 0.0),
    ("inf", 0.0),
    (True, 0.0),
])
def test_safe_float(value, expected):
    assert safe_float(value) == expected


def test_safe_float_custom_default():
    assert safe_float("bad", default=-1.0) == -1.0


def test_safe_cost_never_negative():
    assert safe_cost(-5) == 0.0
    assert safe_cost("-10") == 0.0
    assert safe_cost("12,000") == 12000.0


# ── text helpers ──────────────────────────────────────────────────────────────

def test_text_or_default():
    assert text_or_default(None, "x") == "x"
    assert text_or_default("", "x") == "x"
    assert text_or_default(1024.0) == "1024"
    assert text_or_default(12.5) == "12.5"
    assert text_or_default("WO-1") == "WO-1"


@pytest.mark.parametrize("header", ["REQUEST NO", "Request No", "REQUEST_NO", "request-no", " REQUEST  NO "])
def test_header_key(header):
    assert header_key(header) == "REQUEST_NO"


def test_is_blank():
    assert is_blank(None)
    assert is_blank("  \n")
    assert not is_blank("x")


# ── patterns ──────────────────────────────────────────────────────────────────

def test_calendar_date_pattern():
    assert CALENDAR_DATE.match("2024-03-05").groups() == ("2024", "03", "05")
    assert CALENDAR_DATE.match("2024/3/5").groups() == ("2024", "3", "5")
    assert CALENDAR_DATE.match("05-03-2024") is None


def test_misc_patterns():
    assert CURRENCY_SYMBOLS.sub("", "RM100") == "100"
    assert HEADER_SEPARATORS.sub("_", "SUB-SYSTEM") == "SUB_SYSTEM"


# ── config ────────────────────────────────────────────────────────────────────

class TestAppConfig:
    def test_defaults(self, monkeypatch):
        for name in ("WORKORDERS_API_URL", "WORKORDERS_PAGE_SIZE", "WORKORDERS_OFFLINE",
                     "WORKORDERS_HTTP_TIMEOUT", "APP_CORS_ORIGINS", "WORKORDERS_RELOAD_DELAY"):
            monkeypatch.delenv(name, raising=False)
        cfg = AppConfig.from_env()
        assert cfg.api_url == ""
        assert cfg.page_size == 15
        assert cfg.reload_delay == 1.0
        assert cfg.start_offline is False
        assert cfg.http_timeout is None
        assert cfg.cors_origins == ["*"]

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("WORKORDERS_API_URL", "https://script.example.com/exec")
        monkeypatch.setenv("WORKORDERS_PAGE_SIZE", "25")
        monkeypatch.setenv("WORKORDERS_OFFLINE", "true")
        monkeypatch.setenv("WORKORDERS_HTTP_TIMEOUT", "7.5")
        monkeypatch.setenv("APP_CORS_ORIGINS", "http://a.test, http://b.test")
        cfg = AppConfig.from_env()
        assert cfg.api_url == "https://script.example.com/exec"
        assert cfg.page_size == 25
        assert cfg.start_offline is True
        assert cfg.http_timeout == 7.5
        assert cfg.cors_origins == ["http://a.test", "http://b.test"]

    def test_settings_come_from_env_only(self):
        import utils
        for name in ("from_dict", "save_json", "load_json"):
            assert not hasattr(AppConfig, name)
        assert "Config" not in utils.__all__
        assert "normalize_whitespace" not in utils.__all__


class TestColumnMapping:
    def test_map_row(self):
        mapped = ColumnMapping.map_row({
            "REQUEST NO": "A1", "Sub-System": "Lift", "COST": "5", "EXTRA": "ignored",
        })
        assert mapped == {"request_no": "A1", "sub_system": "Lift", "cost": "5"}

    def test_first_non_empty_wins(self):
        mapped = ColumnMapping.map_row({"REQUEST NO": "", "REQUEST_NO": "B2"})
        assert mapped["request_no"] == "B2"


def test_known_values():
    assert KnownValues.ALL == "all"
    assert KnownValues.PAGE_SIZE == 15
    assert len(KnownValues.MONTH_NAMES) == 12
