"""
Destination index naming.

Index names are ``<prefix><YYYY.MM.DD>`` where the date is the UTC calendar
day of the record timestamp.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Union

Timestamp = Union[str, int, float, datetime]

DEFAULT_INDEX_PREFIX = "api-"


def parse_timestamp(ts: Timestamp) -> datetime:
    """Parse an ISO string, epoch milliseconds or datetime into an aware UTC datetime.

    Naive datetimes and strings without an offset are taken as UTC.
    """
    if isinstance(ts, bool):
        raise TypeError("timestamp must not be a bool")
    if isinstance(ts, datetime):
        dt = ts
    elif isinstance(ts, (int, float)):
        dt = datetime.fromtimestamp(ts / 1000.0, tz=timezone.utc)
    elif isinstance(ts, str):
        dt = datetime.fromisoformat(ts.strip().replace("Z", "+00:00"))
    else:
        raise TypeError(f"unsupported timestamp type: {type(ts).__name__}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc_date(ts: Timestamp) -> str:
    """UTC calendar date of ``ts`` as ``YYYY.MM.DD``."""
    return parse_timestamp(ts).strftime("%Y.%m.%d")


def index_name(prefix: str, ts: Timestamp) -> str:
    return f"{prefix}{format_utc_date(ts)}"
