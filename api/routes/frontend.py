"""
Frontend HTML routes.

Serves the Jinja2 templates for the dashboard page and its HTMX partials.
These routes only read what the service exposes; all state changes go
through the same DashboardService calls as the JSON API.

Routes:
    GET    /                                → index.html (filters, stats, table)
    GET    /partials/results                → partials/results.html (HTMX swap target)
    POST   /partials/reset                  → partials/results.html, filters cleared
    POST   /partials/reload                 → partials/results.html after a load
    GET    /partials/action-plan/{no}       → partials/action_plan.html (edit modal)
    GET    /partials/action-plan/{no}/view  → partials/action_plan.html (read-only)
    POST   /partials/action-plan/{no}       → save; modal re-rendered on failure
    DELETE /partials/action-plan/{no}       → close the modal
    GET    /partials/toasts                 → partials/toasts.html (drains notifications)
"""

from typing import Any

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from api.routes.work_orders import apply_query_filters
from api.service import get_service
from pipeline.filters import describe_filters
from pipeline.service import DashboardService
from utils.config import KnownValues
from utils.errors import DashboardError, SessionNotOpenError

router = APIRouter(tags=["frontend"])

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None

# Fired after any change that should refresh the results table and toasts
_CHANGED_EVENT = "workorders-changed"


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised — call set_templates() first")
    return _templates


def _results_context(service: DashboardService) -> dict[str, Any]:
    """Template context for the results table and header stats."""
    state = service.state
    page = state.current_page
    return {
        "page": page,
        "items": page.items,
        "filters": state.filters,
        "filter_summary": describe_filters(state.filters),
        "stats": state.stats,
        "load_error": state.load_error,
        "source": state.source,
        "status": service.status(),
    }


def _render_results(request: Request, service: DashboardService,
                    headers: dict[str, str] | None = None) -> HTMLResponse:
    return _tmpl().TemplateResponse(
        request,
        "partials/results.html",
        _results_context(service),
        headers=headers,
    )


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request, service: DashboardService = Depends(get_service)) -> HTMLResponse:
    """Main dashboard page."""
    return _tmpl().TemplateResponse(
        request,
        "index.html",
        {
            "options": service.filter_options(),
            "months": list(enumerate(KnownValues.MONTH_NAMES, start=1)),
            "toast_timeout_ms": KnownValues.TOAST_TIMEOUT_SECONDS * 1000,
            **_results_context(service),
        },
    )


@router.get("/partials/results", response_class=HTMLResponse, include_in_schema=False)
def results_partial(
    request: Request,
    hospital: str | None = Query(None),
    year: str | None = Query(None),
    month: str | None = Query(None),
    service_name: str | None = Query(None, alias="service"),
    q: str | None = Query(None),
    page: int | None = Query(None),
    nav: str | None = Query(None, pattern="^(prev|next)$"),
    service: DashboardService = Depends(get_service),
) -> HTMLResponse:
    """HTMX partial: filtered/paginated results table."""
    apply_query_filters(service, hospital, year, month, service_name, q)
    if nav == "prev":
        service.prev_page()
    elif nav == "next":
        service.next_page()
    elif page is not None:
        service.go_to_page(page)
    return _render_results(request, service)


@router.post("/partials/reset", response_class=HTMLResponse, include_in_schema=False)
def reset_partial(request: Request, service: DashboardService = Depends(get_service)) -> HTMLResponse:
    service.reset_filters()
    return _render_results(request, service, headers={"HX-Trigger": _CHANGED_EVENT})


@router.post("/partials/reload", response_class=HTMLResponse, include_in_schema=False)
def reload_partial(request: Request, service: DashboardService = Depends(get_service)) -> HTMLResponse:
    """Refresh / retry / manual sync button: load, then re-render the table."""
    service.load()
    return _render_results(request, service, headers={"HX-Trigger": _CHANGED_EVENT})


@router.get("/partials/action-plan/{request_no}", response_class=HTMLResponse,
            include_in_schema=False)
def action_plan_modal(request_no: str, request: Request,
                      service: DashboardService = Depends(get_service)) -> HTMLResponse:
    """HTMX partial: action plan modal with an open edit session."""
    editor = service.open_edit(request_no)
    return _tmpl().TemplateResponse(
        request,
        "partials/action_plan.html",
        {"editor": editor, "record": editor.record, "read_only": False},
    )


@router.get("/partials/action-plan/{request_no}/view", response_class=HTMLResponse,
            include_in_schema=False)
def action_plan_view(request_no: str, request: Request,
                     service: DashboardService = Depends(get_service)) -> HTMLResponse:
    record = service.get_record(request_no)
    return _tmpl().TemplateResponse(
        request,
        "partials/action_plan.html",
        {"editor": None, "record": record, "read_only": True},
    )


@router.post("/partials/action-plan/{request_no}", response_class=HTMLResponse,
             include_in_schema=False)
def action_plan_save(
    request_no: str,
    request: Request,
    action_plan: str = Form(""),
    service: DashboardService = Depends(get_service),
) -> HTMLResponse:
    """Save from the modal.

    Success closes the modal and tells the page to refresh; a validation or
    backend failure re-renders the still-open modal so the user can retry.
    """
    try:
        service.save_action_plan(request_no, action_plan)
    except SessionNotOpenError:
        # Stale modal: reopen with the posted text so nothing typed is lost
        editor = service.open_edit(request_no)
        editor.update_buffer(action_plan)
        service.notifications.push(
            "Edit Session Reopened", "Review the action plan and save again", "warning",
        )
        return _tmpl().TemplateResponse(
            request,
            "partials/action_plan.html",
            {"editor": editor, "record": editor.record, "read_only": False},
            headers={"HX-Trigger": _CHANGED_EVENT},
        )
    except (DashboardError, OSError):
        editor = service.get_session(request_no)
        return _tmpl().TemplateResponse(
            request,
            "partials/action_plan.html",
            {"editor": editor, "record": editor.record, "read_only": False},
            headers={"HX-Trigger": _CHANGED_EVENT},
        )
    return HTMLResponse("", headers={"HX-Trigger": _CHANGED_EVENT})


@router.delete("/partials/action-plan/{request_no}", response_class=HTMLResponse,
               include_in_schema=False)
def action_plan_close(request_no: str,
                      service: DashboardService = Depends(get_service)) -> HTMLResponse:
    service.close_edit(request_no)
    return HTMLResponse("")


@router.get("/partials/toasts", response_class=HTMLResponse, include_in_schema=False)
def toasts_partial(request: Request, service: DashboardService = Depends(get_service)) -> HTMLResponse:
    """HTMX partial: pending notifications as self-dismissing toasts."""
    return _tmpl().TemplateResponse(
        request,
        "partials/toasts.html",
        {
            "toasts": service.notifications.drain(),
            "toast_timeout_ms": KnownValues.TOAST_TIMEOUT_SECONDS * 1000,
        },
    )
