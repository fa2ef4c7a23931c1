"""Shared best-effort date parsing and ISO-8601 formatting for import and export"""

import re
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any


# Tried in order after the ISO-8601 check; naive results are taken as UTC.
DATE_FORMATS: tuple[str, ...] = (
    '%Y-%m-%d %H:%M:%S',    # SQL datetime
    '%Y-%m-%d',             # date only
    '%Y-%m-%d %H:%M',
    '%Y/%m/%d %H:%M:%S',
    '%Y/%m/%d %H:%M',
    '%Y/%m/%d',
    '%Y.%m.%d',
    '%B %d, %Y',
    '%b %d, %Y',
    '%d %B %Y',
    '%d %b %Y',
)

_ISO_RE = re.compile(r'^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}')


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_string(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None

    if _ISO_RE.match(text):
        try:
            return datetime.fromisoformat(re.sub(r'[zZ]$', '+00:00', text))
        except ValueError:
            pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def parse_date(value: Any) -> datetime | None:
    """Parse a loosely-typed date value into an aware UTC datetime, or None.

    Accepts datetime/date objects, epoch milliseconds (int/float), and strings in
    SQL-datetime, ISO-8601, date-only, and the other DATE_FORMATS layouts.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        parsed = _parse_string(value)
        return _as_utc(parsed) if parsed else None
    return None


def to_iso(dt: datetime) -> str:
    """Format as YYYY-MM-DDTHH:MM:SS.mmmZ in UTC."""
    dt = _as_utc(dt)
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f'{dt.microsecond // 1000:03d}Z'


def normalize_date(value: Any) -> str | None:
    """Parse value and return its ISO string, or None when unparseable."""
    parsed = parse_date(value)
    return to_iso(parsed) if parsed else None


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def year_month(value: Any) -> str | None:
    """Return the YYYY-MM bucket of value (UTC), or None when unparseable."""
    parsed = parse_date(value)
    return parsed.strftime('%Y-%m') if parsed else None
