# ABOUTME: Normalizes timestamps to UTC and measures elapsed calendar days.
# ABOUTME: Keeps every service on one definition of "days since" and hour buckets.

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pandas as pd

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(moment) -> datetime:
    """
    Coerce a datetime, pandas Timestamp, or ISO string into an aware UTC datetime.

    Naive values are interpreted as UTC.
    """

    if isinstance(moment, str):
        moment = pd.Timestamp(moment)
    if isinstance(moment, pd.Timestamp):
        moment = moment.to_pydatetime()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def resolve_now(now: Optional[datetime]) -> datetime:
    return utc_now() if now is None else ensure_utc(now)


def days_between(start: datetime, end: datetime) -> int:
    """Absolute difference in UTC calendar days between two instants."""

    return abs((ensure_utc(end).date() - ensure_utc(start).date()).days)


def add_days(moment: datetime, days: int) -> datetime:
    return ensure_utc(moment) + timedelta(days=days)


def sunday_weekday(moment: datetime) -> int:
    """Day of week with Sunday = 0 through Saturday = 6."""

    return (ensure_utc(moment).weekday() + 1) % 7


def day_span(earliest: datetime, latest: datetime) -> int:
    """Whole days covered by a range, never less than one."""

    seconds = (ensure_utc(latest) - ensure_utc(earliest)).total_seconds()
    return max(1, int(-(-seconds // 86400)))
