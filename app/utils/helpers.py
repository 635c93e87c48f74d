"""Shared utility functions for dates, numbers and timestamps.

parse_date:         lenient (ISO or DD.MM.YYYY), None on bad input
parse_strict_date:  CSV dates, exactly YYYY-MM-DD, None otherwise
parse_optional_float
utcnow / as_utc:    tz-aware timestamps (SQLite drops tzinfo on read)
"""
import re
from datetime import date, datetime, timezone

_STRICT_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_strict_date(value):
    """Parse a 4-digit-year/2-digit-month/2-digit-day date, else None.

    Used for CSV import where anything looser is treated as absent.
    """
    text = (value or "").strip()
    if not _STRICT_DATE_RE.match(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def parse_optional_float(value):
    """Float for non-empty input, None for empty; raises ValueError on junk."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return float(value)
