"""
Timestamp helpers.

All timestamps inside the core are timezone-aware UTC datetimes.
"""

import datetime as dt
from typing import Union


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def ensure_utc(value: Union[dt.datetime, str]) -> dt.datetime:
    """
    Coerce a datetime or ISO-8601 string to an aware UTC datetime.

    Naive values are taken to be UTC already (SQLite hands them back naive).
    """
    if isinstance(value, str):
        value = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)
