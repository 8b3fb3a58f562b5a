"""
Connectivity and offline-queue endpoints.

GET  /sync/status          online flag, last sync, pending count
POST /sync                 manual sync (a remote reload; 503 while offline)
PUT  /sync/connection      switch online/offline
GET  /sync/pending         queued offline edits, oldest first
POST /sync/pending/replay  send the queued edits (never automatic)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import (
    ConnectionIn,
    ErrorResponse,
    LoadResultOut,
    PendingUpdateOut,
    ReplayResultOut,
    SyncStatusOut,
)
from api.service import get_service
from pipeline.service import DashboardService

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/status", response_model=SyncStatusOut, summary="Connection and sync status")
def sync_status(service: DashboardService = Depends(get_service)) -> dict:
    return service.status()


@router.post(
    "",
    response_model=LoadResultOut,
    responses={503: {"model": ErrorResponse, "description": "Offline, or remote and cache both failed"}},
    summary="Manual sync",
)
def manual_sync(service: DashboardService = Depends(get_service)):
    outcome = service.sync()
    if not outcome.ok:
        return JSONResponse(status_code=503, content=outcome.to_dict())
    return outcome.to_dict()


@router.put("/connection", response_model=SyncStatusOut, summary="Set connectivity")
def set_connection(body: ConnectionIn, service: DashboardService = Depends(get_service)) -> dict:
    """Switch between online and offline mode.

    Going online does not send queued edits; use /sync/pending/replay.
    """
    service.set_online(body.online)
    return service.status()


@router.get("/pending", response_model=list[PendingUpdateOut], summary="Queued offline edits")
def list_pending(service: DashboardService = Depends(get_service)) -> list[dict]:
    return [u.to_dict() for u in service.pending_updates()]


@router.post("/pending/replay", response_model=ReplayResultOut, summary="Send queued offline edits")
def replay_pending(service: DashboardService = Depends(get_service)) -> dict:
    outcome = service.replay_pending()
    return {"sent": outcome.sent, "remaining": outcome.remaining, "error": outcome.error}
