"""Pre-compiled regex patterns for the work order dashboard.

All patterns are compiled once at module import.  The normalizer runs them
once per backend row on every load, so there is no point recompiling them
inside the loop.

Usage:
    from utils.patterns import CALENDAR_DATE, CURRENCY_SYMBOLS

    if CALENDAR_DATE.match(text):
        ...
"""

import re

# Calendar date at the start of a cell: "2024-03-05", "2024/03/05".
# Captures year (1), month (2), day (3).  Anything after the day (a time
# component) is ignored by callers that already split on "T".
CALENDAR_DATE = re.compile(r'^\s*(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?:\s|$)')

# Currency markers stripped during numeric conversion ("RM 1,200", "$300")
CURRENCY_SYMBOLS = re.compile(r'(?i)RM|[\$€£¥₹₽]')

# Separators allowed between words of a spreadsheet header:
# "REQUEST NO", "REQUEST_NO" and "REQUEST-NO" all name the same column.
HEADER_SEPARATORS = re.compile(r'[\s_\-]+')
