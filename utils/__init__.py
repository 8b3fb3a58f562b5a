"""Shared utilities for the work order dashboard."""

# Pattern definitions
from utils.patterns import CALENDAR_DATE, CURRENCY_SYMBOLS, HEADER_SEPARATORS

# String utilities
from utils.strings import (
    safe_float,
    safe_cost,
    text_or_default,
    header_key,
    is_blank,
)

# Error kinds
from utils.errors import (
    DashboardError,
    NetworkError,
    RemoteError,
    NoCacheAvailable,
    ValidationError,
    ExportEmptyError,
    RecordNotFoundError,
    SessionNotOpenError,
)

# Configuration
from utils.config import AppConfig, KnownValues, ColumnMapping

# HTTP utilities
from utils.http import (
    RetryStrategy,
    SessionManager,
    RemoteClient,
    FetchResult,
    SubmitResult,
)

# Local persistence and caching
from utils.cache import LocalStore, TTLCache

# Output formatting
from utils.formatting import (
    parse_calendar_date,
    format_date,
    format_cost,
    cost_class,
    truncate_text,
    char_count_level,
    month_name,
)

__all__ = [
    # Patterns
    "CALENDAR_DATE",
    "CURRENCY_SYMBOLS",
    "HEADER_SEPARATORS",
    # Strings
    "safe_float",
    "safe_cost",
    "text_or_default",
    "header_key",
    "is_blank",
    # Errors
    "DashboardError",
    "NetworkError",
    "RemoteError",
    "NoCacheAvailable",
    "ValidationError",
    "ExportEmptyError",
    "RecordNotFoundError",
    "SessionNotOpenError",
    # Config
    "AppConfig",
    "KnownValues",
    "ColumnMapping",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "RemoteClient",
    "FetchResult",
    "SubmitResult",
    # Cache
    "LocalStore",
    "TTLCache",
    # Formatting
    "parse_calendar_date",
    "format_date",
    "format_cost",
    "cost_class",
    "truncate_text",
    "char_count_level",
    "month_name",
]
