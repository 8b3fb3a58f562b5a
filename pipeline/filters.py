"""
Filter/Search Engine.

apply_filters() narrows a record list with a strict conjunction of the
selector values and a case-insensitive substring search, keeping the
original relative order.  The helpers below derive what the filter bar
and the header need from a record list: selector options, the open-count
statistics and a human-readable summary of the active filters.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from pipeline.records import FilterOptions, FilterState, Stats, WorkOrderRecord
from utils.config import KnownValues
from utils.formatting import month_name
from utils.strings import safe_float

# Fields scanned by the free-text search box
SEARCH_FIELDS = ("request_no", "hospital", "services", "sub_system", "vendor", "action_plan")


def _as_int(value: str) -> int | None:
    """Selector value as an integer, or None if it isn't numeric."""
    number = safe_float(value, default=float("nan"))
    if math.isnan(number):
        return None
    return int(number)


def matches_search(record: WorkOrderRecord, term: str) -> bool:
    """True if *term* is empty or found (case-insensitively) in any search field."""
    if not term:
        return True
    needle = term.lower()
    for name in SEARCH_FIELDS:
        value = getattr(record, name) or ""
        if needle in value.lower():
            return True
    return False


def apply_filters(records: Sequence[WorkOrderRecord],
                  filters: FilterState) -> list[WorkOrderRecord]:
    """Return the records that pass every active filter, in input order.

    Filters apply in this order, each reducing the working set:
      1. hospital equals the selected value
      2. request year equals the selected year (numeric comparison)
      3. month equals the selected month (numeric comparison)
      4. services equals the selected value
      5. free-text search over SEARCH_FIELDS

    A selector set to "all" is skipped.  A non-numeric year or month
    selection matches nothing.
    """
    filtered = list(records)

    if filters.hospital != KnownValues.ALL:
        filtered = [r for r in filtered if r.hospital == filters.hospital]

    if filters.year != KnownValues.ALL:
        year = _as_int(filters.year)
        filtered = [r for r in filtered if year is not None and r.request_year == year]

    if filters.month != KnownValues.ALL:
        month = _as_int(filters.month)
        filtered = [r for r in filtered if month is not None and r.month == month]

    if filters.service != KnownValues.ALL:
        filtered = [r for r in filtered if r.services == filters.service]

    if filters.search:
        filtered = [r for r in filtered if matches_search(r, filters.search)]

    return filtered


def filter_options(records: Iterable[WorkOrderRecord]) -> FilterOptions:
    """Distinct selector values present in *records*.

    Hospitals and services are sorted alphabetically, years newest first.
    """
    records = list(records)
    hospitals = sorted({r.hospital for r in records if r.hospital})
    years = sorted({r.request_year for r in records if r.request_year}, reverse=True)
    services = sorted({r.services for r in records if r.services})
    return FilterOptions(
        hospitals=tuple(hospitals),
        years=tuple(years),
        services=tuple(services),
    )


def options_from_remote(data: dict | None) -> FilterOptions:
    """Build FilterOptions from a getFilterOptions payload.

    Raises:
        ValueError: if the payload is not an object
    """
    if not isinstance(data, dict):
        raise ValueError("getFilterOptions returned no options object")
    years = {_as_int(str(y)) for y in data.get("years") or []}
    return FilterOptions(
        hospitals=tuple(sorted({str(h) for h in data.get("hospitals") or [] if h})),
        years=tuple(sorted((y for y in years if y), reverse=True)),
        services=tuple(sorted({str(s) for s in data.get("services") or [] if s})),
    )


def compute_stats(records: Iterable[WorkOrderRecord]) -> Stats:
    """Total record count and the number of open records."""
    total = 0
    open_count = 0
    for record in records:
        total += 1
        if record.is_open:
            open_count += 1
    return Stats(total=total, open_count=open_count)


def describe_filters(filters: FilterState) -> str:
    """Summary of the active filters shown next to the record count.

    Example:
        '(Hospital: HSA, Month: March, Search: "chiller")'
    """
    active: list[str] = []
    if filters.hospital != KnownValues.ALL:
        active.append(f"Hospital: {filters.hospital}")
    if filters.year != KnownValues.ALL:
        active.append(f"Year: {filters.year}")
    if filters.month != KnownValues.ALL:
        month = _as_int(filters.month)
        active.append(f"Month: {month_name(month) if month else filters.month}")
    if filters.service != KnownValues.ALL:
        active.append(f"Service: {filters.service}")
    if filters.search:
        active.append(f'Search: "{filters.search}"')
    if active:
        return f"({', '.join(active)})"
    return "(Showing all)"
