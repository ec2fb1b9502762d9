from datetime import datetime, timezone
from typing import Any, Optional


def to_naive_utc(value: datetime) -> datetime:
    """MongoDB hands back naive UTC datetimes, so everything is stored that way"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def coerce_datetime(value: Any) -> Optional[datetime]:
    """
    Read a stored timestamp.
    Older contest documents keep the deadline as an ISO string.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, str):
        try:
            return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None
