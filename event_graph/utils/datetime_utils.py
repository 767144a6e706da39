"""
Datetime utilities for consistent timestamp handling.

All timestamps in the event graph are naive UTC datetimes so that snapshots
serialize to plain ISO-8601 strings.
"""

from datetime import datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """
    Get current UTC time as a naive datetime (for JSON serialization compatibility).

    Returns:
        Current UTC time as a naive datetime object
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (or pass through a datetime).

    Aware datetimes are converted to naive UTC.

    Args:
        value: ISO string, datetime or None

    Returns:
        Naive UTC datetime, or None when value is empty
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        # fromisoformat on older interpreters rejects the "Z" suffix
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
