"""Parsing of the date encodings found on the portal."""
import re
from datetime import date, timedelta
from typing import Optional

DATE_SEPARATORS = re.compile(r'[/-]')
# "2024-01-10T00:00:00Z" or "10/01/2024 09:30"
TIME_SUFFIX = re.compile(r'(?:T|\s+)\d{1,2}:\d{2}.*$')


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse a date string into a civil date.

    Accepts YYYY-MM-DD (and YYYY/MM/DD) when the first part is a four digit
    year, otherwise DD-MM-YYYY or DD/MM/YY. Two digit years are placed in
    the 2000s. Any time of day is ignored and no timezone conversion is done.

    Args:
        date_str: Date string as scraped

    Returns:
        date object or None if the string cannot be parsed
    """
    if not date_str:
        return None

    text = TIME_SUFFIX.sub('', str(date_str).strip())
    parts = [part.strip() for part in DATE_SEPARATORS.split(text)]
    if len(parts) != 3 or not all(part.isascii() and part.isdigit() for part in parts):
        return None

    numbers = [int(part) for part in parts]

    if len(parts[0]) == 4 and numbers[0] > 1900:
        year, month, day = numbers
    else:
        day, month, year = numbers
        if year < 100:
            year += 2000

    try:
        return date(year, month, day)
    except ValueError:
        return None


def add_days(value: date, days: int) -> date:
    """Return the date shifted by a number of days."""
    return value + timedelta(days=days)
