"""Configuration management utilities for the work order dashboard.

Provides:
- AppConfig, populated from environment variables
- KnownValues: fixed vocabularies shared by the pipeline and the UI
- ColumnMapping: backend spreadsheet headers -> record attribute names
"""

import os as _os
from pathlib import Path
from typing import Any, Dict, Optional

from utils.strings import header_key


def _env_flag(name: str, default: str) -> bool:
    return _os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str) -> Optional[float]:
    raw = _os.getenv(name, "").strip()
    return float(raw) if raw else None


class AppConfig:
    """Application-level configuration loaded from environment variables.

    All env vars have defaults so the application starts without any
    configuration (it simply reports a load error until an API URL is set).

    Environment variables:
        WORKORDERS_API_URL: Remote Apps Script web-app URL (default: empty)
        WORKORDERS_STORE_PATH: Local key-value store file (default: workorders_store.json)
        WORKORDERS_PAGE_SIZE: Rows per page (default: 15)
        WORKORDERS_RELOAD_DELAY: Seconds before the post-save reload (default: 1.0)
        WORKORDERS_OFFLINE: Start in offline mode (default: 0)
        WORKORDERS_HTTP_TIMEOUT: Optional request timeout in seconds (default: none)
        WORKORDERS_LOAD_ON_STARTUP: Load work orders in the app lifespan (default: 1)
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
    """

    def __init__(self) -> None:
        self.api_url = _os.getenv("WORKORDERS_API_URL", "")
        self.store_path = Path(_os.getenv("WORKORDERS_STORE_PATH", "workorders_store.json"))
        self.page_size = int(_os.getenv("WORKORDERS_PAGE_SIZE", "15"))
        self.reload_delay = float(_os.getenv("WORKORDERS_RELOAD_DELAY", "1.0"))
        self.start_offline = _env_flag("WORKORDERS_OFFLINE", "0")
        self.http_timeout = _env_optional_float("WORKORDERS_HTTP_TIMEOUT")
        self.load_on_startup = _env_flag("WORKORDERS_LOAD_ON_STARTUP", "1")
        self.api_port = int(_os.getenv("APP_PORT", "8000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()


class KnownValues:
    """Fixed vocabularies used across the dashboard."""

    ALL = "all"

    DEFAULT_HOSPITAL = "Unknown Hospital"

    PAGE_SIZE = 15

    MONTH_NAMES = [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ]

    TOAST_KINDS = ("success", "error", "warning", "info")
    TOAST_TIMEOUT_SECONDS = 5

    # Action plan character counter colour thresholds
    CHAR_WARNING_THRESHOLD = 500
    CHAR_DANGER_THRESHOLD = 1000

    # Cost cell colour thresholds
    COST_MEDIUM_THRESHOLD = 5000
    COST_HIGH_THRESHOLD = 10000

    # Local store keys (shared with the browser build of the dashboard)
    CACHED_WORK_ORDERS_KEY = "cachedWorkOrders"
    LAST_SYNC_TIME_KEY = "lastSyncTime"
    PENDING_UPDATES_KEY = "pendingUpdates"

    # Remote API actions
    ACTION_GET_WORK_ORDERS = "getWorkOrders"
    ACTION_GET_FILTER_OPTIONS = "getFilterOptions"
    ACTION_UPDATE_ACTION_PLAN = "updateActionPlan"


class ColumnMapping:
    """Maps backend spreadsheet headers to WorkOrderRecord attribute names.

    Keys are canonical header keys (see utils.strings.header_key), so
    "REQUEST NO", "REQUEST_NO" and "Request-No" all resolve to request_no.
    """

    WORK_ORDER_COLUMNS = {
        "REQUEST_NO": "request_no",
        "HOSPITAL": "hospital",
        "REQUEST_DATE": "request_date",
        "SERVICES": "services",
        "SUB_SYSTEM": "sub_system",
        "ACTION_PLAN": "action_plan",
        "VENDOR": "vendor",
        "COST": "cost",
    }

    @classmethod
    def map_row(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        """Project a raw backend row onto record attribute names.

        The first header that maps to an attribute wins; unknown headers
        are ignored (they stay available through the record's raw payload).

        Args:
            row: Raw backend row keyed by spreadsheet header

        Returns:
            Dict keyed by record attribute name
        """
        mapped: Dict[str, Any] = {}
        for header, value in row.items():
            attr = cls.WORK_ORDER_COLUMNS.get(header_key(header))
            if attr is None:
                continue
            if attr not in mapped or mapped[attr] in (None, ""):
                mapped[attr] = value
        return mapped
