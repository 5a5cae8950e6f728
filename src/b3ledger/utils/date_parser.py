"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from dateutil import parser as date_parser

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def parse_date(value: Any) -> Optional[date]:
    """Parse a statement date into a date object.

    Supports:
    - date and datetime objects (as produced by spreadsheet cells)
    - Brazilian day-first strings: "15/03/2024", "15-03-2024"
    - ISO strings: "2024-03-15"
    - "today" and "yesterday"

    Args:
        value: Raw cell value

    Returns:
        Date object, or None for an empty cell

    Raises:
        ValueError: If the value cannot be parsed
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    date_str = str(value).strip().lower()
    if not date_str:
        return None

    today = date.today()
    if date_str == "today":
        return today
    if date_str == "yesterday":
        return today - timedelta(days=1)

    try:
        # dayfirst would swap month and day in ISO dates
        if ISO_DATE.match(date_str):
            return date_parser.isoparse(date_str).date()
        return date_parser.parse(date_str, dayfirst=True).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")
