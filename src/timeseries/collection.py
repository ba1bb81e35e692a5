# ABOUTME: Monitors the health of the metric log and summarizes a single study session.
# ABOUTME: Provides collection stats with a quality label, anomaly lookup and in-session insights.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from src.common.config import DEFAULT_CONFIG, TimeSeriesConfig
from src.common.records import sort_events
from src.common.schemas import ACCURACY_RATE, RESPONSE_TIME, SESSION_DURATION, MetricEvent, TimeRange
from src.common.stats import clamp, mean, round_half_up, variance
from src.common.timeutils import ensure_utc, resolve_now

from .patterns import DataAnomaly, analyze_patterns

EXPECTED_METRICS = (ACCURACY_RATE, RESPONSE_TIME, SESSION_DURATION)
HISTORICAL_ACCURACY = 0.7
STABLE_TREND = "stable"


@dataclass(frozen=True)
class CollectionStats:
    total_data_points: int
    metric_counts: Dict[str, int]
    collection_rate: float  # points per hour over the last day
    last_collection: Optional[datetime]
    data_quality: float
    data_quality_status: str  # good | fair | poor


@dataclass(frozen=True)
class SessionInsights:
    session_trend: str  # improving | declining | stable
    current_patterns: List[str]
    performance_vs_average: float
    recommendations: List[str]


def collection_stats(events: Iterable[MetricEvent], now: Optional[datetime] = None) -> CollectionStats:
    now = resolve_now(now)
    ordered = sort_events(events)
    day_ago = now - timedelta(hours=24)
    recent = [e for e in ordered if ensure_utc(e.timestamp) > day_ago]

    counts: Dict[str, int] = {}
    for event in ordered:
        counts[event.metric_kind] = counts.get(event.metric_kind, 0) + 1

    quality = data_quality(ordered, now)
    return CollectionStats(
        total_data_points=len(ordered),
        metric_counts=counts,
        collection_rate=round_half_up(len(recent) / 24, 2),
        last_collection=ensure_utc(ordered[-1].timestamp) if ordered else None,
        data_quality=quality,
        data_quality_status=quality_status(quality),
    )


def data_quality(events: Sequence[MetricEvent], now: datetime) -> float:
    """
    Product of metric coverage, recency and value validity, clamped to [0, 1].

    Coverage compares distinct kinds against the three core metrics, recency
    expects 50 points in the last week, and validity penalizes values more
    than twice the mean away from it.
    """

    if not events:
        return 0.0

    coverage = len({e.metric_kind for e in events}) / len(EXPECTED_METRICS)
    week_ago = now - timedelta(days=7)
    freshness = min(1.0, sum(1 for e in events if ensure_utc(e.timestamp) > week_ago) / 50)

    values = [e.value for e in events]
    average = mean(values)
    outliers = sum(1 for v in values if abs(v - average) > average * 2)
    validity = 1 - outliers / len(values)

    return clamp(coverage * freshness * validity, 0.0, 1.0)


def quality_status(quality: float) -> str:
    if quality >= 0.8:
        return "good"
    if quality >= 0.6:
        return "fair"
    return "poor"


def find_anomalies(
    events: Iterable[MetricEvent],
    metric_kind: Optional[str] = None,
    time_range: Optional[TimeRange] = None,
    config: TimeSeriesConfig = DEFAULT_CONFIG.timeseries,
) -> List[DataAnomaly]:
    patterns = analyze_patterns(events, time_range, config)
    if metric_kind is not None:
        return next((list(p.anomalies) for p in patterns if p.metric_kind == metric_kind), [])
    return [anomaly for pattern in patterns for anomaly in pattern.anomalies]


def session_insights(
    session_events: Sequence[MetricEvent], duration_minutes: Optional[float] = None
) -> SessionInsights:
    """
    Live feedback for the events of one session.

    When ``duration_minutes`` is omitted it is taken from the first and last
    event timestamps.
    """

    if not session_events:
        return SessionInsights(STABLE_TREND, [], 0.0, ["Start practicing to see insights"])

    ordered = sort_events(session_events)
    if duration_minutes is None:
        elapsed = ensure_utc(ordered[-1].timestamp) - ensure_utc(ordered[0].timestamp)
        duration_minutes = elapsed.total_seconds() / 60

    accuracy = [e.value for e in ordered if e.metric_kind == ACCURACY_RATE]
    trend = session_trend(accuracy)
    patterns = session_patterns(ordered, duration_minutes)
    average = mean(accuracy) if accuracy else 0.5
    versus = (average - HISTORICAL_ACCURACY) / 0.3

    return SessionInsights(
        session_trend=trend,
        current_patterns=patterns,
        performance_vs_average=clamp(versus, -1.0, 1.0),
        recommendations=_session_recommendations(trend, patterns, versus),
    )


def session_trend(accuracy: List[float]) -> str:
    if len(accuracy) < 3:
        return STABLE_TREND
    half = len(accuracy) // 2
    diff = mean(accuracy[half:]) - mean(accuracy[:half])
    if diff > 0.05:
        return "improving"
    if diff < -0.05:
        return "declining"
    return STABLE_TREND


def session_patterns(ordered: Sequence[MetricEvent], duration_minutes: float) -> List[str]:
    patterns = []
    accuracy = [e.value for e in ordered if e.metric_kind == ACCURACY_RATE]
    if len(accuracy) >= 5 and accuracy[-1] - accuracy[0] > 0.2:
        patterns.append("Rapid improvement detected")

    response_times = [e.value for e in ordered if e.metric_kind == RESPONSE_TIME]
    if len(response_times) >= 3 and variance(response_times) < mean(response_times) * 0.1:
        patterns.append("Consistent response timing")

    if duration_minutes > 20:
        patterns.append("Extended focused session")
    elif duration_minutes < 5:
        patterns.append("Quick practice session")
    return patterns


def _session_recommendations(trend: str, patterns: List[str], versus: float) -> List[str]:
    recommendations = []
    if trend == "improving":
        recommendations.append("Great progress! Keep up the momentum")
    elif trend == "declining":
        recommendations.append("Consider taking a short break")

    if versus > 0.5:
        recommendations.append("Excellent performance today!")
    elif versus < -0.5:
        recommendations.append("Try reviewing easier words first")

    if "Extended focused session" in patterns and trend == "declining":
        recommendations.append("You may be getting tired, consider shorter sessions")
    if "Consistent response timing" in patterns:
        recommendations.append("Good focus and rhythm!")
    return recommendations[:3]
