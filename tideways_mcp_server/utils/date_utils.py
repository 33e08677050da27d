"""Date helpers for trace queries."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

MAX_TRACE_RANGE_DAYS = 90

DEFAULT_TRACE_WINDOW = timedelta(hours=24)


def format_date_for_api(value: datetime) -> str:
    """Format a datetime as an ISO 8601 UTC string with milliseconds.

    Naive datetimes are taken to be UTC.

    Examples:
        >>> format_date_for_api(datetime(2025, 8, 9, 12, 30, tzinfo=timezone.utc))
        '2025-08-09T12:30:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_trace_date(value: str) -> Optional[datetime]:
    """Parse a trace date such as '2025-08-09 14:30' or an ISO 8601 string.

    Returns an aware UTC datetime, or None when the value cannot be parsed.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def add_default_date_range(
    params: Dict[str, Any], now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Fill in the trailing 24 hour window when neither min_date nor max_date is set.

    Returns a new dictionary; when either date is present the parameters are
    returned unchanged (as a copy).
    """
    params = dict(params)
    if params.get("min_date") or params.get("max_date"):
        return params

    now = now or datetime.now(timezone.utc)
    params["min_date"] = format_date_for_api(now - DEFAULT_TRACE_WINDOW)
    params["max_date"] = format_date_for_api(now)
    return params
