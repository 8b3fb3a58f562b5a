"""
/api/v1/work-orders endpoints.

GET  /work-orders               filtered, paginated view
GET  /work-orders/stats         total / open / filtered counts
GET  /work-orders/{request_no}  single record by request number
POST /work-orders/reload        load from the backend (cache fallback)

Query parameters set the service's filter state, so the HTML page, the
export and these endpoints always agree on the current view.  Filters
persist until changed; a request without filter parameters keeps them.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from api.models import LoadResultOut, StatsOut, WorkOrderOut, WorkOrderPage
from api.service import get_service
from pipeline.filters import describe_filters
from pipeline.records import FilterState
from pipeline.service import DashboardService

router = APIRouter(prefix="/work-orders", tags=["work-orders"])


def apply_query_filters(
    service: DashboardService,
    hospital: str | None,
    year: str | None,
    month: str | None,
    service_name: str | None,
    q: str | None,
) -> None:
    """Update the service filters when any filter parameter is present."""
    if all(v is None for v in (hospital, year, month, service_name, q)):
        return
    filters = FilterState.from_params(hospital, year, month, service_name, q)
    if filters != service.state.filters:
        service.set_filters(filters)


def page_payload(service: DashboardService) -> dict:
    state = service.state
    page = state.current_page
    return {
        "items": [r.to_dict() for r in page.items],
        "page": page.page,
        "page_size": page.page_size,
        "start": page.start,
        "end": page.end,
        "total": page.total,
        "total_pages": page.total_pages,
        "filters": state.filters.to_dict(),
        "filter_summary": describe_filters(state.filters),
        "source": state.source,
    }


@router.get("", response_model=WorkOrderPage, summary="List work orders")
def list_work_orders(
    hospital: str | None = Query(None, description='Hospital name or "all"'),
    year: str | None = Query(None, description='Request year or "all"'),
    month: str | None = Query(None, description='Month 1-12 or "all"'),
    service_name: str | None = Query(None, alias="service", description='Service category or "all"'),
    q: str | None = Query(None, description="Case-insensitive search text"),
    page: int | None = Query(None, ge=1, description="Page number (clamped to the last page)"),
    service: DashboardService = Depends(get_service),
) -> dict:
    """Return one page of the filtered view.

    Changing any filter resets the page to 1 before *page* is applied.
    """
    apply_query_filters(service, hospital, year, month, service_name, q)
    if page is not None:
        service.go_to_page(page)
    return page_payload(service)


@router.get("/stats", response_model=StatsOut, summary="Header statistics")
def work_order_stats(service: DashboardService = Depends(get_service)) -> StatsOut:
    state = service.state
    stats = state.stats
    return StatsOut(total=stats.total, open_count=stats.open_count,
                    filtered=len(state.filtered))


@router.post(
    "/reload",
    response_model=LoadResultOut,
    responses={503: {"description": "Remote and cache both failed"}},
    summary="Reload work orders",
)
def reload_work_orders(service: DashboardService = Depends(get_service)):
    """Load from the backend, falling back to the local cache."""
    outcome = service.load()
    if not outcome.ok:
        return JSONResponse(status_code=503, content=outcome.to_dict())
    return outcome.to_dict()


@router.get(
    "/{request_no}",
    response_model=WorkOrderOut,
    responses={404: {"description": "No loaded work order has this request number"}},
    summary="Get one work order",
)
def get_work_order(request_no: str, service: DashboardService = Depends(get_service)) -> dict:
    return service.get_record(request_no).to_dict()
