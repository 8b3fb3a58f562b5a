"""
GET /api/v1/filters: selector options for the filter bar.

source=data (default) derives the options from the loaded records;
source=remote asks the backend's getFilterOptions action and falls back to
the derived options when that fails.
"""

from fastapi import APIRouter, Depends, Query

from api.models import FilterOptionsOut
from api.service import get_service
from pipeline.service import DashboardService

router = APIRouter(prefix="/filters", tags=["filters"])


@router.get("", response_model=FilterOptionsOut, summary="Filter selector options")
def get_filter_options(
    source: str = Query("data", pattern="^(data|remote)$", description="data | remote"),
    service: DashboardService = Depends(get_service),
) -> dict:
    return service.filter_options(source).to_dict()
