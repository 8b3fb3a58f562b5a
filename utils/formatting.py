"""Output formatting utilities for the work order dashboard.

Provides reusable functions for:
- Formatting cost values and picking their display class
- Parsing and displaying request dates
- Truncating long action plans for table cells
- The action plan character counter level
"""

from datetime import date, datetime
from typing import Optional

from utils.config import KnownValues
from utils.patterns import CALENDAR_DATE


def parse_calendar_date(value) -> Optional[date]:
    """Parse a request date as a local calendar date.

    Any time component ("2024-03-05T16:00:00.000Z") is discarded before
    parsing, so the calendar day written in the sheet is the day returned,
    regardless of the server's timezone.

    Returns:
        datetime.date, or None when the value is missing or unparseable

    Examples:
        parse_calendar_date("2024-03-05") -> date(2024, 3, 5)
        parse_calendar_date("2024/03/05T10:00") -> date(2024, 3, 5)
        parse_calendar_date("soon") -> None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    date_part = str(value).split("T")[0]
    match = CALENDAR_DATE.match(date_part)
    if not match:
        return None
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value, fmt: str = "short") -> str:
    """Format a request date for display.

    Args:
        value: Raw request date string
        fmt: "short" ("5 Mar 2024") or "long" ("Tuesday, 5 March 2024")

    Returns:
        Formatted date, "N/A" when empty, or the input unchanged when it
        cannot be parsed
    """
    if not value:
        return "N/A"
    d = parse_calendar_date(value)
    if d is None:
        return str(value)
    if fmt == "long":
        return f"{d:%A}, {d.day} {d:%B %Y}"
    return f"{d.day} {d:%b %Y}"


def format_cost(value: Optional[float]) -> str:
    """Format a cost with thousands separators.

    Examples:
        format_cost(12000) -> "12,000"
        format_cost(1234.5) -> "1,234.5"
        format_cost(0) -> "0"
    """
    if not value:
        return "0"
    if float(value).is_integer():
        return f"{int(value):,d}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def cost_class(value: Optional[float]) -> str:
    """CSS class for a cost cell: cost-high, cost-medium or cost-low."""
    value = value or 0
    if value > KnownValues.COST_HIGH_THRESHOLD:
        return "cost-high"
    if value > KnownValues.COST_MEDIUM_THRESHOLD:
        return "cost-medium"
    return "cost-low"


def truncate_text(text: str, max_length: int = 60, suffix: str = "...") -> str:
    """Cut *text* to *max_length* characters and append *suffix* if cut.

    Examples:
        truncate_text("Replace the condenser fan motor", 11) -> "Replace the..."
        truncate_text("Short", 10) -> "Short"
    """
    if not text or len(text) <= max_length:
        return text or ""
    return text[:max_length] + suffix


def char_count_level(count: int) -> str:
    """Counter level for the action plan textarea.

    Returns "ok" up to 500 characters, "warning" up to 1000 and "danger"
    beyond that.
    """
    if count > KnownValues.CHAR_DANGER_THRESHOLD:
        return "danger"
    if count > KnownValues.CHAR_WARNING_THRESHOLD:
        return "warning"
    return "ok"


def month_name(month: int) -> str:
    """English month name for 1-12; the number as text otherwise."""
    if 1 <= month <= 12:
        return KnownValues.MONTH_NAMES[month - 1]
    return str(month)
