"""
Pydantic request/response models for the API.

Optional fields default to None so that partially filled sheet rows still
produce valid responses.  Field() descriptions and examples feed the
OpenAPI docs.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# ── Work order models ─────────────────────────────────────────────────────────

class WorkOrderOut(BaseModel):
    """One normalized work order."""
    id: int = Field(..., description="1-based position in the current load (not stable across loads)", examples=[1])
    request_no: str = Field(..., description="Request number (business key)", examples=["WO-2024-0153"])
    hospital: str = Field(..., description="Hospital name", examples=["Hospital Sultanah Aminah"])
    request_date: str = Field(..., description="Request date as sent by the sheet", examples=["2024-03-05"])
    services: str = Field(..., description="Service category", examples=["BEMS"])
    sub_system: str = Field(..., description="Sub-system", examples=["Chiller"])
    action_plan: str = Field("", description="Action plan text; empty means the work order is open")
    vendor: str = Field("", description="Vendor name", examples=["Acme Engineering"])
    cost: float = Field(0.0, description="Cost; 0 when missing or invalid", examples=[12000.0])
    request_year: int = Field(..., description="Year derived from the request date", examples=[2024])
    month: int = Field(..., description="Month (1-12) derived from the request date", examples=[3])
    is_open: bool = Field(..., description="True when no action plan has been recorded")
    updated: str | None = Field(None, description="ISO timestamp of the last local action plan edit")


class FilterStateOut(BaseModel):
    """Active filters ("all" = not filtering on that field)."""
    hospital: str = Field("all", examples=["all"])
    year: str = Field("all", examples=["2024"])
    month: str = Field("all", examples=["3"])
    service: str = Field("all", examples=["all"])
    search: str = Field("", examples=["chiller"])


class WorkOrderPage(BaseModel):
    """Response body for GET /api/v1/work-orders."""
    items: list[WorkOrderOut] = Field(..., description="Records on this page")
    page: int = Field(..., description="Current page (1-based)", examples=[1])
    page_size: int = Field(..., description="Records per page", examples=[15])
    start: int = Field(..., description="1-based index of the first record shown (0 when empty)", examples=[1])
    end: int = Field(..., description="1-based index of the last record shown (0 when empty)", examples=[15])
    total: int = Field(..., description="Number of records matching the filters", examples=[42])
    total_pages: int = Field(..., description="Number of pages (never less than 1)", examples=[3])
    filters: FilterStateOut
    filter_summary: str = Field(..., description="Readable summary of active filters", examples=["(Showing all)"])
    source: str | None = Field(None, description="Where the records came from: remote | cache", examples=["remote"])


class StatsOut(BaseModel):
    """Header statistics."""
    total: int = Field(..., description="Loaded work orders", examples=[120])
    open_count: int = Field(..., description="Loaded work orders without an action plan", examples=[37])
    filtered: int = Field(..., description="Work orders matching the active filters", examples=[42])


class FilterOptionsOut(BaseModel):
    """Values offered by the filter selectors."""
    hospitals: list[str] = Field(default_factory=list, examples=[["HSA", "HSI"]])
    years: list[int] = Field(default_factory=list, description="Newest first", examples=[[2024, 2023]])
    services: list[str] = Field(default_factory=list, examples=[["BEMS", "FEMS"]])
    months: list[int] = Field(default_factory=lambda: list(range(1, 13)))


class LoadStepOut(BaseModel):
    step_name: str = Field(..., examples=["fetch_remote"])
    ok: bool
    error: str | None = None
    error_type: str | None = None


class LoadResultOut(BaseModel):
    """Result of a reload or manual sync."""
    ok: bool
    source: str | None = Field(None, description="remote | cache", examples=["remote"])
    count: int = Field(0, description="Records loaded", examples=[120])
    used_fallback: bool = Field(False, description="True when the remote failed and the cache was used")
    error: str | None = Field(None, examples=["Failed to load data: HTTP error! status: 500"])
    steps: list[LoadStepOut] = Field(default_factory=list)


# ── Action plan models ────────────────────────────────────────────────────────

class ActionPlanIn(BaseModel):
    """Request body for PUT /api/v1/action-plans/{request_no}.

    Blank text is accepted here and rejected by the editor with a 422, so
    the error message matches the one shown in the modal.
    """
    action_plan: str = Field(..., max_length=10_000, description="Action plan text",
                             examples=["Replace compressor; vendor visit booked"])


class EditSessionOut(BaseModel):
    """State of an action plan edit session."""
    request_no: str | None = Field(None, examples=["WO-2024-0153"])
    state: str = Field(..., description="closed | editing | saving | saved | failed", examples=["editing"])
    buffer: str = Field("", description="Current editable text")
    char_count: int = Field(0, examples=[42])
    char_level: str = Field("ok", description="ok | warning (>500) | danger (>1000)", examples=["ok"])
    error: str | None = Field(None, description="Last save error, if the session is in the failed state")


class SaveResultOut(BaseModel):
    """Result of a successful save."""
    request_no: str = Field(..., examples=["WO-2024-0153"])
    action_plan: str
    queued: bool = Field(..., description="True when saved offline into the pending queue")
    message: str = Field(..., examples=["Action plan saved to Google Sheets"])
    reload_scheduled: bool = Field(False, description="True when a reconciling reload was scheduled")


# ── Sync models ───────────────────────────────────────────────────────────────

class SyncStatusOut(BaseModel):
    online: bool
    source: str | None = None
    last_sync: str | None = Field(None, description="ISO timestamp of the last successful remote load")
    pending_count: int = Field(0, description="Offline edits waiting to be sent")
    load_error: str | None = None
    remote_configured: bool = Field(..., description="False when WORKORDERS_API_URL is unset")


class ConnectionIn(BaseModel):
    """Request body for PUT /api/v1/sync/connection."""
    online: bool = Field(..., description="New connectivity flag")


class PendingUpdateOut(BaseModel):
    request_no: str = Field(..., examples=["WO-2024-0153"])
    action_plan: str
    timestamp: str = Field(..., examples=["2024-03-05T09:15:00+00:00"])


class ReplayResultOut(BaseModel):
    sent: int = Field(0, description="Pending edits sent")
    remaining: int = Field(0, description="Pending edits still queued")
    error: str | None = None


# ── Error models ──────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error body returned by every exception handler."""
    error: str = Field(..., description="Error category", examples=["Not found"])
    detail: str | None = Field(None, description="Human-readable explanation")
    status_code: int = Field(..., examples=[404])
