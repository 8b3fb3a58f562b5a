"""
Dashboard application state.

DashboardState is an immutable value: every transition below takes a state
and returns a new one, so normalize -> filter -> paginate can be exercised
without a server, and the service only has to swap one reference.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from pipeline.filters import apply_filters, compute_stats, filter_options
from pipeline.pagination import PAGE_SIZE, Page, next_page, paginate, prev_page
from pipeline.records import FilterOptions, FilterState, Stats, WorkOrderRecord

# Where the current record set came from
SOURCE_REMOTE = "remote"
SOURCE_CACHE = "cache"


@dataclass(frozen=True)
class DashboardState:
    records: tuple[WorkOrderRecord, ...] = ()
    filters: FilterState = FilterState()
    filtered: tuple[WorkOrderRecord, ...] = ()
    page: int = 1
    page_size: int = PAGE_SIZE
    source: str | None = None
    last_sync: str | None = None
    load_error: str | None = None

    @property
    def stats(self) -> Stats:
        return compute_stats(self.records)

    @property
    def options(self) -> FilterOptions:
        return filter_options(self.records)

    @property
    def current_page(self) -> Page:
        return paginate(self.filtered, self.page, self.page_size)

    def find(self, request_no: str) -> WorkOrderRecord | None:
        """First loaded record with business key *request_no*."""
        for record in self.records:
            if record.request_no == request_no:
                return record
        return None


def with_filters(state: DashboardState, filters: FilterState) -> DashboardState:
    """Recompute the filtered view for *filters*; back to page 1."""
    return replace(
        state,
        filters=filters,
        filtered=tuple(apply_filters(state.records, filters)),
        page=1,
    )


def with_records(state: DashboardState, records: Iterable[WorkOrderRecord],
                 source: str, last_sync: str | None = None) -> DashboardState:
    """Replace the whole record set and re-apply the current filters."""
    loaded = replace(
        state,
        records=tuple(records),
        source=source,
        last_sync=last_sync or state.last_sync,
        load_error=None,
    )
    return with_filters(loaded, state.filters)


def with_load_error(state: DashboardState, message: str) -> DashboardState:
    """Keep whatever is displayed and record the failure for the error panel."""
    return replace(state, load_error=message)


def with_page(state: DashboardState, page: int) -> DashboardState:
    """Jump to *page*, clamped to the available pages."""
    return replace(state, page=paginate(state.filtered, page, state.page_size).page)


def with_prev_page(state: DashboardState) -> DashboardState:
    return replace(state, page=prev_page(state.page))


def with_next_page(state: DashboardState) -> DashboardState:
    return replace(state, page=next_page(state.page, len(state.filtered), state.page_size))


def with_action_plan(state: DashboardState, request_no: str, action_plan: str,
                     updated: str | None = None) -> DashboardState:
    """Set the action plan of every record keyed *request_no*.

    The filtered view is patched in place rather than recomputed, so the
    edited row stays on screen and the page does not move.
    """
    def _patch(records: tuple[WorkOrderRecord, ...]) -> tuple[WorkOrderRecord, ...]:
        return tuple(
            r.with_action_plan(action_plan, updated) if r.request_no == request_no else r
            for r in records
        )

    return replace(state, records=_patch(state.records), filtered=_patch(state.filtered))
