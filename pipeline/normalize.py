"""
Record Normalizer — raw backend rows to WorkOrderRecord.

The backend returns one JSON object per sheet row, keyed by the sheet's
column headers ("REQUEST NO", "SUB-SYSTEM", ...).  normalize() maps each row
onto a WorkOrderRecord in input order, assigning 1-based ids and deriving
the request year/month from the request date.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable

from pipeline.records import WorkOrderRecord
from utils.config import ColumnMapping, KnownValues
from utils.formatting import parse_calendar_date
from utils.strings import safe_cost, text_or_default

logger = logging.getLogger(__name__)


def _derive_year_month(request_date: Any, today: date) -> tuple[int, int]:
    """Year and month of *request_date*, or of *today* when it can't be parsed."""
    if request_date in (None, ""):
        return today.year, today.month
    parsed = parse_calendar_date(request_date)
    if parsed is None:
        logger.warning("Invalid date format: %r", request_date)
        return today.year, today.month
    return parsed.year, parsed.month


def normalize_row(row: dict[str, Any], record_id: int,
                  today: date | None = None) -> WorkOrderRecord:
    """Normalize a single raw backend row."""
    today = today or date.today()
    fields = ColumnMapping.map_row(row) if isinstance(row, dict) else {}
    request_date = fields.get("request_date")
    year, month = _derive_year_month(request_date, today)

    return WorkOrderRecord(
        id=record_id,
        request_no=text_or_default(fields.get("request_no")),
        hospital=text_or_default(fields.get("hospital"), KnownValues.DEFAULT_HOSPITAL),
        request_date=text_or_default(request_date),
        services=text_or_default(fields.get("services")),
        sub_system=text_or_default(fields.get("sub_system")),
        action_plan=text_or_default(fields.get("action_plan")),
        vendor=text_or_default(fields.get("vendor")),
        cost=safe_cost(fields.get("cost")),
        request_year=year,
        month=month,
        raw=row if isinstance(row, dict) else {"value": row},
    )


def normalize(raw_rows: Iterable[dict[str, Any]] | None,
              today: date | None = None) -> list[WorkOrderRecord]:
    """Map raw backend rows to records, preserving input order.

    Args:
        raw_rows: Rows as returned by getWorkOrders (or read from the cache).
        today: Date used when a row has no usable request date
               (default: today's local date).

    Returns:
        Records with ids 1..N in input order.
    """
    today = today or date.today()
    return [
        normalize_row(row, index, today)
        for index, row in enumerate(raw_rows or [], start=1)
    ]
