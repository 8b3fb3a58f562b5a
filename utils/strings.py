"""String processing utilities for the work order dashboard.

safe_float() and header_key() run once per cell on every load, so both lean
on the pre-compiled patterns in utils.patterns.
"""

import math

from utils.patterns import CURRENCY_SYMBOLS, HEADER_SEPARATORS


def safe_float(val, default: float = 0.0) -> float:
    """Safely convert value to float with fallback default.

    Handles:
    - None, empty strings -> default
    - Numeric types -> float
    - Strings with currency symbols, whitespace, commas
    - NaN / infinity -> default
    - Invalid input -> default

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None or val == '' or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        result = float(val)
    else:
        try:
            s = str(val).strip()
            s = CURRENCY_SYMBOLS.sub('', s)
            s = s.replace(',', '').strip()
            result = float(s) if s else default
        except (ValueError, TypeError):
            return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def safe_cost(val) -> float:
    """Parse a work order cost: never negative, NaN or infinite.

    Example:
        safe_cost("12,000") -> 12000.0
        safe_cost("n/a") -> 0.0
        safe_cost(-5) -> 0.0
    """
    value = safe_float(val, 0.0)
    return value if value > 0 else 0.0


def text_or_default(val, default: str = "") -> str:
    """Return *val* as a string, or *default* when it is missing or empty.

    Spreadsheet cells arrive as str, int or float depending on the column
    format; a request number of 1024 should still read as "1024".
    """
    if val is None:
        return default
    if isinstance(val, float) and val.is_integer():
        val = int(val)
    s = str(val)
    return s if s != "" else default


def header_key(name: str) -> str:
    """Canonical lookup key for a spreadsheet column header.

    Example:
        "Request No" -> "REQUEST_NO"
        "SUB-SYSTEM" -> "SUB_SYSTEM"
    """
    return HEADER_SEPARATORS.sub('_', str(name).strip()).upper()


def is_blank(val) -> bool:
    """True when *val* is None or only whitespace."""
    return val is None or str(val).strip() == ""
