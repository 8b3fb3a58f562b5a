"""
Action plan edit sessions.

POST   /action-plans/{request_no}/session   open (or reopen) a session
GET    /action-plans/{request_no}/session   current session state
PUT    /action-plans/{request_no}           save the session buffer
DELETE /action-plans/{request_no}/session   close, discarding the buffer
GET    /action-plans/{request_no}           read-only action plan text

Sessions are keyed by request number, never by the per-load id, so a
reload between open and save still targets the right record.
"""

from fastapi import APIRouter, Depends, status

from api.models import ActionPlanIn, EditSessionOut, ErrorResponse, SaveResultOut
from api.service import get_service
from pipeline.service import DashboardService

router = APIRouter(prefix="/action-plans", tags=["action-plans"])


@router.post(
    "/{request_no}/session",
    response_model=EditSessionOut,
    responses={404: {"model": ErrorResponse}},
    summary="Open an edit session",
)
def open_session(request_no: str, service: DashboardService = Depends(get_service)) -> dict:
    return service.open_edit(request_no).to_dict()


@router.get(
    "/{request_no}/session",
    response_model=EditSessionOut,
    responses={409: {"model": ErrorResponse}},
    summary="Get an edit session",
)
def get_session(request_no: str, service: DashboardService = Depends(get_service)) -> dict:
    return service.get_session(request_no).to_dict()


@router.put(
    "/{request_no}",
    response_model=SaveResultOut,
    responses={
        409: {"model": ErrorResponse, "description": "No open session"},
        422: {"model": ErrorResponse, "description": "Blank action plan"},
        502: {"model": ErrorResponse, "description": "Backend rejected or unreachable"},
    },
    summary="Save an action plan",
)
def save_action_plan(
    request_no: str,
    body: ActionPlanIn,
    service: DashboardService = Depends(get_service),
) -> dict:
    """Save *body* through the open session.

    Online the edit is sent to the backend and a reload is scheduled;
    offline it is queued locally.  On failure the session stays open.
    """
    outcome = service.save_action_plan(request_no, body.action_plan)
    return {
        "request_no": outcome.request_no,
        "action_plan": outcome.action_plan,
        "queued": outcome.queued,
        "message": outcome.message,
        "reload_scheduled": outcome.reload_scheduled,
    }


@router.delete(
    "/{request_no}/session",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close an edit session",
)
def close_session(request_no: str, service: DashboardService = Depends(get_service)) -> None:
    service.close_edit(request_no)


@router.get("/{request_no}", summary="View an action plan")
def view_action_plan(request_no: str, service: DashboardService = Depends(get_service)) -> dict:
    record = service.get_record(request_no)
    return {
        "request_no": record.request_no,
        "action_plan": record.action_plan,
        "is_open": record.is_open,
        "updated": record.updated,
    }
