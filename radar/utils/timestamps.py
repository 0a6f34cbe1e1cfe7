"""
Timestamp parsing for values coming back from Firestore or JSON payloads.

All datetimes are normalized to timezone-aware UTC to avoid naive/aware
comparison bugs.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse various timestamp formats to timezone-aware datetime (UTC).

    Accepts datetimes, ISO strings (with or without Z), epoch milliseconds
    and Firestore Timestamp-like objects. Returns None when unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as mobile clients send them
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    # Firestore Timestamp / DatetimeWithNanoseconds interface
    if hasattr(value, "timestamp"):
        try:
            return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return None
    return None
