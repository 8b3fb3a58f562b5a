"""
CSV / Excel export of the filtered work order view.

to_csv() writes the fixed eight-column layout the dashboard has always
produced: an unquoted header line followed by one fully quoted line per
record, lines joined with "\\n".  to_xlsx() writes the same columns to a
workbook via openpyxl write_only mode.
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Any, Sequence

from pipeline.records import WorkOrderRecord
from utils.errors import ExportEmptyError

EXPORT_HEADERS = [
    "REQUEST NO", "HOSPITAL", "DATE", "SERVICES",
    "SUB-SYSTEM", "ACTION PLAN", "VENDOR", "COST",
]


def _format_number(value: float | None) -> str:
    """Cost as text: whole numbers without a trailing ".0"."""
    if value is None:
        return ""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _export_row(record: WorkOrderRecord) -> list[Any]:
    return [
        record.request_no,
        record.hospital,
        record.request_date,
        record.services,
        record.sub_system,
        record.action_plan,
        record.vendor,
        record.cost,
    ]


def _csv_line(values: Sequence[Any], quoting: int) -> str:
    buf = io.StringIO()
    csv.writer(buf, quoting=quoting, lineterminator="").writerow(values)
    return buf.getvalue()


def to_csv(records: Sequence[WorkOrderRecord]) -> str:
    """Serialize *records* as CSV text.

    Every data field is double-quoted with embedded quotes doubled; missing
    values become empty strings.

    Raises:
        ExportEmptyError: if *records* is empty
    """
    if not records:
        raise ExportEmptyError()

    lines = [_csv_line(EXPORT_HEADERS, csv.QUOTE_MINIMAL)]
    for record in records:
        row = _export_row(record)
        cells = ["" if v is None else v for v in row[:-1]]
        cells.append(_format_number(row[-1]))
        lines.append(_csv_line([str(c) for c in cells], csv.QUOTE_ALL))
    return "\n".join(lines)


def to_xlsx(records: Sequence[WorkOrderRecord]) -> bytes:
    """Serialize *records* as an .xlsx workbook (one "Work Orders" sheet).

    Raises:
        ExportEmptyError: if *records* is empty
    """
    if not records:
        raise ExportEmptyError()

    import openpyxl

    wb = openpyxl.Workbook(write_only=True)
    ws = wb.create_sheet("Work Orders")
    ws.append(EXPORT_HEADERS)
    for record in records:
        row = _export_row(record)
        ws.append(["" if v is None else v for v in row])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(ext: str = "csv", today: date | None = None) -> str:
    """File name for a download, e.g. ``work-orders-2025-01-31.csv``.

    The date is the UTC calendar date unless *today* is given.
    """
    today = today or datetime.now(timezone.utc).date()
    return f"work-orders-{today.isoformat()}.{ext}"
