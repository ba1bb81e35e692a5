# ABOUTME: Per-metric trend, seasonality and z-score anomaly analysis over the event log.
# ABOUTME: Each metric kind with enough samples yields one LearningPattern.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from src.common.config import DEFAULT_CONFIG, TimeSeriesConfig
from src.common.records import events_to_frame
from src.common.schemas import ACCURACY_RATE, RESPONSE_TIME, SESSION_DURATION, MetricEvent, TimeRange
from src.common.stats import index_slope, round_half_up, variance
from src.common.timeutils import DAY_NAMES, ensure_utc

from .aggregation import filter_range

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"

SUCCESS_CORRELATION = {ACCURACY_RATE: 0.8, RESPONSE_TIME: -0.3, SESSION_DURATION: 0.4}


@dataclass(frozen=True)
class SeasonalPattern:
    pattern_kind: str  # daily | weekly
    peak_periods: List[str]
    low_periods: List[str]
    confidence: float


@dataclass(frozen=True)
class DataAnomaly:
    timestamp: datetime
    value: float
    expected_value: float
    deviation: float
    severity: str  # low | medium | high
    possible_causes: List[str] = field(default_factory=list)
    metric_kind: Optional[str] = None


@dataclass(frozen=True)
class LearningPattern:
    metric_kind: str
    trend: str
    trend_strength: float
    seasonal_patterns: List[SeasonalPattern]
    anomalies: List[DataAnomaly]
    correlation_score: float


def analyze_patterns(
    events: Iterable[MetricEvent],
    time_range: Optional[TimeRange] = None,
    config: TimeSeriesConfig = DEFAULT_CONFIG.timeseries,
) -> List[LearningPattern]:
    """
    One LearningPattern per metric kind with at least ``config.min_samples`` events.

    Kinds are reported in order of first appearance in the log.
    """

    selected = filter_range(events, time_range)
    kinds = list(dict.fromkeys(e.metric_kind for e in selected))
    patterns = []
    for kind in kinds:
        kind_events = [e for e in selected if e.metric_kind == kind]
        if len(kind_events) < config.min_samples:
            continue
        patterns.append(metric_pattern(kind_events, kind, config))
    return patterns


def metric_pattern(
    kind_events: List[MetricEvent], metric_kind: str, config: TimeSeriesConfig = DEFAULT_CONFIG.timeseries
) -> LearningPattern:
    df = events_to_frame(kind_events)
    direction, strength = trend(df["value"].tolist(), config)
    return LearningPattern(
        metric_kind=metric_kind,
        trend=direction,
        trend_strength=strength,
        seasonal_patterns=seasonal_patterns(df, config),
        anomalies=detect_anomalies(kind_events, config),
        correlation_score=SUCCESS_CORRELATION.get(metric_kind, 0.0),
    )


def trend(values: List[float], config: TimeSeriesConfig = DEFAULT_CONFIG.timeseries) -> Tuple[str, float]:
    """OLS slope over the sample index; strength is |slope| over the population std, capped at 1."""

    if len(values) < 2:
        return STABLE, 0.0

    slope = index_slope(values)
    spread = math.sqrt(variance(values))
    strength = min(1.0, abs(slope) / spread) if spread > 0 else 0.0

    if slope > config.trend_slope_threshold:
        return INCREASING, strength
    if slope < -config.trend_slope_threshold:
        return DECREASING, strength
    return STABLE, strength


def seasonal_patterns(df: pd.DataFrame, config: TimeSeriesConfig = DEFAULT_CONFIG.timeseries) -> List[SeasonalPattern]:
    patterns = []
    hourly = df.groupby("hour")["value"].mean()
    if len(hourly) >= config.min_daily_hours:
        patterns.append(_daily_pattern(hourly))
    weekly = df.groupby("weekday")["value"].mean()
    if len(weekly) >= config.min_weekly_days:
        patterns.append(_weekly_pattern(weekly))
    return patterns


def _daily_pattern(hourly: pd.Series) -> SeasonalPattern:
    ranked = hourly.sort_values(ascending=False, kind="mergesort")
    n = len(ranked)
    peak_count = max(1, math.floor(n * 0.2))
    low_count = max(1, math.floor(n * 0.8))
    spread = variance(hourly.tolist())
    confidence = min(1.0, 1 - 1 / (1 + spread)) if spread > 0 else 0.5
    return SeasonalPattern(
        pattern_kind="daily",
        peak_periods=[f"{int(h)}:00" for h in ranked.index[:peak_count]],
        low_periods=[f"{int(h)}:00" for h in ranked.index[n - low_count :]],
        confidence=round_half_up(confidence, 2),
    )


def _weekly_pattern(weekly: pd.Series) -> SeasonalPattern:
    ranked = weekly.sort_values(ascending=False, kind="mergesort")
    spread = variance(weekly.tolist())
    average = float(weekly.mean())
    if spread > 0:
        confidence = min(1.0, spread / average) if average > 0 else 1.0
    else:
        confidence = 0.3
    return SeasonalPattern(
        pattern_kind="weekly",
        peak_periods=[DAY_NAMES[int(d)] for d in ranked.index[:2]],
        low_periods=[DAY_NAMES[int(d)] for d in ranked.index[-2:]],
        confidence=round_half_up(confidence, 2),
    )


def detect_anomalies(
    kind_events: List[MetricEvent], config: TimeSeriesConfig = DEFAULT_CONFIG.timeseries
) -> List[DataAnomaly]:
    """Flag events more than ``anomaly_z_threshold`` population deviations from the mean."""

    if len(kind_events) < config.min_samples:
        return []

    ordered = sorted(kind_events, key=lambda e: ensure_utc(e.timestamp))
    values = [e.value for e in ordered]
    average = sum(values) / len(values)
    spread = math.sqrt(variance(values))

    anomalies = []
    for event in ordered:
        deviation = abs(event.value - average)
        z_score = deviation / spread if spread > 0 else 0.0
        if z_score <= config.anomaly_z_threshold:
            continue
        if z_score > config.high_z_threshold:
            severity = "high"
        elif z_score > config.medium_z_threshold:
            severity = "medium"
        else:
            severity = "low"
        anomalies.append(
            DataAnomaly(
                timestamp=ensure_utc(event.timestamp),
                value=event.value,
                expected_value=average,
                deviation=deviation,
                severity=severity,
                possible_causes=anomaly_causes(event, average),
                metric_kind=event.metric_kind,
            )
        )
    return anomalies


def anomaly_causes(event: MetricEvent, average: float) -> List[str]:
    hour = ensure_utc(event.timestamp).hour
    causes = []
    if event.value > average * 2:
        causes.append("Exceptional performance session")
        if 9 <= hour <= 11:
            causes.append("Morning focus peak")
        if event.category:
            causes.append("Strong category performance")
    elif event.value < average * 0.5:
        causes.append("Below average performance")
        if hour >= 22 or hour <= 6:
            causes.append("Late night/early morning fatigue")
        if event.metadata.get("rushed"):
            causes.append("Rushed session")
    return causes
