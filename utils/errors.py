"""Error kinds raised by the work order dashboard.

Every failure the dashboard can recover from derives from DashboardError,
so the API layer can register one handler per kind and fall back to a
generic 500 for anything else.
"""

from __future__ import annotations

from typing import Any, Optional


class DashboardError(Exception):
    """Base class for recoverable dashboard failures."""


class NetworkError(DashboardError):
    """Transport-level failure or non-2xx HTTP status from the remote API."""

    def __init__(self, message: str, *, status_code: Optional[int] = None,
                 url: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class RemoteError(DashboardError):
    """The remote API answered with a ``success: false`` envelope."""

    def __init__(self, message: str, *, envelope: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.envelope = envelope or {}


class NoCacheAvailable(DashboardError):
    """An offline or fallback load found nothing in the local store."""

    def __init__(self, message: str = "No cached data available") -> None:
        super().__init__(message)


class ValidationError(DashboardError):
    """An action plan was saved with an empty (or whitespace-only) buffer."""

    def __init__(self, message: str = "Please enter an action plan") -> None:
        super().__init__(message)


class ExportEmptyError(DashboardError):
    """An export was attempted while the filtered view is empty."""

    def __init__(self, message: str = "No data to export") -> None:
        super().__init__(message)


class RecordNotFoundError(DashboardError):
    """No loaded record carries the requested business key."""

    def __init__(self, request_no: str) -> None:
        self.request_no = request_no
        super().__init__(f"Work order {request_no!r} not found")


class SessionNotOpenError(DashboardError):
    """A save was attempted for a record with no open edit session."""

    def __init__(self, request_no: str) -> None:
        self.request_no = request_no
        super().__init__(f"No open action plan session for {request_no!r}")
