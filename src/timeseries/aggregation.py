# ABOUTME: Buckets one metric's events by hour, day, week or month and summarizes each bucket.
# ABOUTME: Period keys are UTC strings so lexical order matches chronological order.

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

import numpy as np

from src.common.records import events_to_frame
from src.common.schemas import MetricEvent, TimeRange, validate_metric_kind
from src.common.stats import round_half_up
from src.common.timeutils import ensure_utc, sunday_weekday

AGGREGATION_PERIODS = ("hour", "day", "week", "month")


@dataclass(frozen=True)
class TimeSeriesAggregate:
    period: str
    metric_kind: str
    count: int
    sum: float
    mean: float
    min: float
    max: float
    std_deviation: float


def validate_period(period: str) -> str:
    normalized = str(period).strip().lower()
    if normalized not in AGGREGATION_PERIODS:
        raise ValueError(f"Unsupported aggregation period '{period}'. Expected one of: {', '.join(AGGREGATION_PERIODS)}.")
    return normalized


def week_number(day: date) -> int:
    """Week of the year counted from the weekday of January 1st (Sunday = 0)."""

    jan1 = date(day.year, 1, 1)
    offset = (day - jan1).days
    return math.ceil((offset + sunday_weekday(datetime(jan1.year, 1, 1)) + 1) / 7)


def period_key(moment: datetime, period: str) -> str:
    moment = ensure_utc(moment)
    if period == "hour":
        return moment.strftime("%Y-%m-%dT%H:00:00Z")
    if period == "day":
        return moment.strftime("%Y-%m-%d")
    if period == "week":
        week_start = moment.date() - timedelta(days=sunday_weekday(moment))
        return f"{week_start.year}-W{week_number(week_start):02d}"
    if period == "month":
        return moment.strftime("%Y-%m")
    raise ValueError(f"Unsupported aggregation period '{period}'. Expected one of: {', '.join(AGGREGATION_PERIODS)}.")


def filter_range(events: Iterable[MetricEvent], time_range: Optional[TimeRange]) -> List[MetricEvent]:
    if time_range is None:
        return list(events)
    bounds = TimeRange(ensure_utc(time_range.start), ensure_utc(time_range.end))
    return [e for e in events if bounds.contains(ensure_utc(e.timestamp))]


def aggregate(
    events: Iterable[MetricEvent],
    metric_kind: str,
    period: str,
    time_range: Optional[TimeRange] = None,
) -> List[TimeSeriesAggregate]:
    """
    Summary statistics per period bucket for one metric kind, ascending by period.

    Standard deviation is the population value; mean and deviation are
    rounded to 4 decimals.
    """

    metric_kind = validate_metric_kind(metric_kind)
    period = validate_period(period)

    df = events_to_frame(filter_range(events, time_range))
    if df.empty:
        return []
    df = df[df["metric_kind"] == metric_kind]
    if df.empty:
        return []

    df = df.assign(period=[period_key(ts, period) for ts in df["timestamp"]])
    aggregates = []
    for key, values in df.groupby("period", sort=True)["value"]:
        data = values.to_numpy(dtype=float)
        aggregates.append(
            TimeSeriesAggregate(
                period=key,
                metric_kind=metric_kind,
                count=len(data),
                sum=float(data.sum()),
                mean=round_half_up(float(data.mean()), 4),
                min=float(data.min()),
                max=float(data.max()),
                std_deviation=round_half_up(float(np.std(data)), 4),
            )
        )
    return aggregates
