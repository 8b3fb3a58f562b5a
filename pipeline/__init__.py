"""
Pipeline package -- work order data pipeline.

Re-exports key entry points so callers can do::

    from pipeline import normalize, apply_filters, paginate, to_csv
"""

from pipeline.editor import ActionPlanEditor, EditState
from pipeline.export import export_filename, to_csv, to_xlsx
from pipeline.filters import apply_filters, compute_stats, filter_options
from pipeline.normalize import normalize
from pipeline.pagination import Page, paginate
from pipeline.records import FilterOptions, FilterState, PendingUpdate, Stats, WorkOrderRecord
from pipeline.service import DashboardService
from pipeline.state import DashboardState

__all__ = [
    "ActionPlanEditor",
    "EditState",
    "export_filename",
    "to_csv",
    "to_xlsx",
    "apply_filters",
    "compute_stats",
    "filter_options",
    "normalize",
    "Page",
    "paginate",
    "FilterOptions",
    "FilterState",
    "PendingUpdate",
    "Stats",
    "WorkOrderRecord",
    "DashboardService",
    "DashboardState",
]
