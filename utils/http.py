"""HTTP utilities for talking to the spreadsheet-backed work order API.

Provides:
- RetryStrategy / SessionManager: a pooled requests.Session
- RemoteClient: GET (fetch_list) and POST (submit) calls that enforce the
  backend's ``{success, data, error, message}`` envelope

The backend is a Google Apps Script web app.  Every call is a single
attempt: the default RetryStrategy allows zero retries, and there is no
timeout unless one is configured.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

from utils.errors import NetworkError, RemoteError

logger = logging.getLogger(__name__)

_UNKNOWN_REMOTE_ERROR = "Unknown error from Google Sheets"


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 0, backoff_factor: float = 0.0,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 0, a
                         single attempt per call)
            backoff_factor: Exponential backoff multiplier (default: 0.0)
            status_forcelist: HTTP status codes to retry on (default: none)
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or []

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy.

        Status retries never raise from urllib3 itself; the caller sees the
        final response and applies its own status check.
        """
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 4, pool_maxsize: int = 8):
        """Initialize session manager.

        Args:
            retry_strategy: RetryStrategy to use (default: single attempt)
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
        """
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@dataclass
class FetchResult:
    """Successful read: the envelope's ``data`` plus the whole envelope."""

    records: Any
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SubmitResult:
    """Successful write."""

    success: bool
    message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class RemoteClient:
    """Client for the work order Apps Script endpoint.

    Usage::

        client = RemoteClient("https://script.google.com/macros/s/.../exec")
        rows = client.fetch_list("getWorkOrders").records
        client.submit({"action": "updateActionPlan",
                       "request_no": "A1", "action_plan": "Replace pump"})
    """

    def __init__(self, base_url: str, session_manager: Optional[SessionManager] = None,
                 timeout: Optional[float] = None):
        """Initialize the client.

        Args:
            base_url: Web-app URL of the backend
            session_manager: Shared SessionManager (default: a new one)
            timeout: Optional per-request timeout in seconds (default: none)
        """
        self.base_url = base_url
        self.session_manager = session_manager or SessionManager()
        self.timeout = timeout

    def fetch_list(self, action: str, params: Optional[Dict[str, Any]] = None) -> FetchResult:
        """Issue a read request for *action*.

        Parameters with empty values are left out of the query string.

        Raises:
            NetworkError: transport failure, non-2xx status or a body that
                          is not JSON
            RemoteError: the backend answered ``success: false``
        """
        query: Dict[str, Any] = {"action": action}
        for key, value in (params or {}).items():
            if value:
                query[key] = value

        try:
            resp = self.session_manager.session.get(
                self.base_url, params=query, timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Error fetching from Google Sheets: action=%s error=%s", action, e)
            raise NetworkError(str(e), url=self.base_url) from e

        envelope = self._unwrap(resp)
        return FetchResult(records=envelope.get("data"), raw=envelope)

    def submit(self, payload: Dict[str, Any]) -> SubmitResult:
        """Issue a write request with a JSON body.

        Raises:
            NetworkError: transport failure, non-2xx status or a body that
                          is not JSON
            RemoteError: the backend answered ``success: false``
        """
        try:
            resp = self.session_manager.session.post(
                self.base_url, json=payload, timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Error posting to Google Sheets: action=%s error=%s",
                         payload.get("action"), e)
            raise NetworkError(str(e), url=self.base_url) from e

        envelope = self._unwrap(resp)
        return SubmitResult(
            success=bool(envelope.get("success")),
            message=envelope.get("message"),
            raw=envelope,
        )

    def _unwrap(self, resp: requests.Response) -> Dict[str, Any]:
        """Apply the status and envelope checks shared by GET and POST."""
        if not resp.ok:
            message = f"HTTP error! status: {resp.status_code}"
            logger.error("Google Sheets request failed: %s", message)
            raise NetworkError(message, status_code=resp.status_code, url=self.base_url)

        try:
            envelope = resp.json()
        except ValueError as e:
            logger.error("Google Sheets returned a non-JSON body: %s", e)
            raise NetworkError(f"Invalid JSON response: {e}", url=self.base_url) from e

        if not isinstance(envelope, dict) or not envelope.get("success"):
            error = envelope.get("error") if isinstance(envelope, dict) else None
            message = error or _UNKNOWN_REMOTE_ERROR
            logger.error("Google Sheets reported failure: %s", message)
            raise RemoteError(message, envelope=envelope if isinstance(envelope, dict) else None)

        return envelope

    def close(self) -> None:
        self.session_manager.close()
