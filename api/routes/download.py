"""
GET /api/v1/download: export the current filtered view.

fmt=csv (default) returns the dashboard's CSV layout; fmt=xlsx returns the
same columns as an Excel workbook built with openpyxl write_only mode.
Optional filter parameters update the view before exporting, exactly as
on /work-orders.  An empty view is rejected with 409.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from api.models import ErrorResponse
from api.routes.work_orders import apply_query_filters
from api.service import get_service
from pipeline.service import DashboardService

router = APIRouter(prefix="/download", tags=["download"])

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get(
    "",
    responses={409: {"model": ErrorResponse, "description": "No data to export"}},
    summary="Download the filtered work orders as CSV or Excel",
)
def download(
    fmt: str = Query("csv", pattern="^(csv|xlsx)$", description="Output format"),
    hospital: str | None = Query(None),
    year: str | None = Query(None),
    month: str | None = Query(None),
    service_name: str | None = Query(None, alias="service"),
    q: str | None = Query(None),
    service: DashboardService = Depends(get_service),
) -> Response:
    apply_query_filters(service, hospital, year, month, service_name, q)
    count = len(service.state.filtered)

    if fmt == "xlsx":
        filename, data = service.export_xlsx()
        media_type = _XLSX_MEDIA_TYPE
    else:
        filename, text = service.export_csv()
        data = text.encode("utf-8")
        media_type = "text/csv; charset=utf-8"

    return Response(
        content=data,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Total-Count": str(count),
        },
    )
