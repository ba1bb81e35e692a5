# ABOUTME: Detects recurring structure in when and how long a learner studies.
# ABOUTME: Runs the daily, weekly, session-shape, wave and consistency detectors over the event log.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from src.common.config import DEFAULT_CONFIG, TemporalConfig
from src.common.records import events_to_frame
from src.common.schemas import ACCURACY_RATE, RESPONSE_TIME, MetricEvent, StudySession
from src.common.stats import autocorrelation, mean, moving_average, variance
from src.common.timeutils import DAY_NAMES, day_span, ensure_utc, resolve_now

DAILY_RHYTHM = "daily_rhythm"
WEEKLY_CYCLE = "weekly_cycle"
BINGE_LEARNING = "binge_learning"
MICRO_SESSIONS = "micro_sessions"
CONSISTENCY_PATTERN = "consistency_pattern"
SEASONAL_DRIFT = "seasonal_drift"
PERFORMANCE_WAVE = "performance_wave"
PLATEAU_BREAKTHROUGH = "plateau_breakthrough"

PATTERN_KINDS = (
    DAILY_RHYTHM,
    WEEKLY_CYCLE,
    BINGE_LEARNING,
    MICRO_SESSIONS,
    CONSISTENCY_PATTERN,
    SEASONAL_DRIFT,
    PERFORMANCE_WAVE,
    PLATEAU_BREAKTHROUGH,
)


@dataclass(frozen=True)
class TemporalPattern:
    pattern_id: str
    pattern_kind: str
    description: str
    confidence: float
    start_time: datetime
    end_time: datetime
    frequency: float  # occurrences per day
    significance_score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


def performance_frame(events: Iterable[MetricEvent]) -> pd.DataFrame:
    """
    Event frame with a ``performance`` column.

    Response times count as 1 / max(value, 1) so that faster answers score
    higher; every other metric contributes its raw value.
    """

    df = events_to_frame(events)
    if df.empty:
        df["performance"] = pd.Series(dtype=float)
        return df
    df["performance"] = np.where(
        df["metric_kind"] == RESPONSE_TIME,
        1.0 / np.maximum(df["value"].astype(float), 1.0),
        df["value"].astype(float),
    )
    return df


def hourly_performance(df: pd.DataFrame) -> pd.DataFrame:
    """Per-hour mean performance and sample count, ordered by hour."""

    if df.empty:
        return pd.DataFrame(columns=["hour", "performance", "count"])
    grouped = df.groupby("hour")["performance"].agg(["mean", "count"]).reset_index()
    return grouped.rename(columns={"mean": "performance"})


def detect_patterns(
    events: Sequence[MetricEvent],
    sessions: Sequence[StudySession],
    config: TemporalConfig = DEFAULT_CONFIG.temporal,
    now: Optional[datetime] = None,
) -> List[TemporalPattern]:
    """
    Run every detector and keep the patterns whose confidence clears the cutoff.

    Logs smaller than ``config.min_data_points`` yield no patterns at all.
    ``now`` anchors forward-looking estimates such as the next wave peak.
    """

    if len(events) < config.min_data_points:
        return []
    return run_detectors(events, sessions, config, config.confidence_threshold, now)


def run_detectors(
    events: Sequence[MetricEvent],
    sessions: Sequence[StudySession],
    config: TemporalConfig,
    cutoff: float,
    now: Optional[datetime] = None,
) -> List[TemporalPattern]:
    df = performance_frame(events)
    patterns: List[TemporalPattern] = []
    patterns.extend(daily_rhythm(df, config))
    patterns.extend(weekly_cycle(df, config))
    patterns.extend(session_shapes(sessions, config))
    patterns.extend(performance_waves(df, config, now))
    patterns.extend(consistency(df, config))
    return [p for p in patterns if p.confidence >= cutoff]


def daily_rhythm(df: pd.DataFrame, config: TemporalConfig = DEFAULT_CONFIG.temporal) -> List[TemporalPattern]:
    hourly = hourly_performance(df)
    if len(hourly) < config.min_active_hours:
        return []

    ranked = hourly[hourly["count"] >= config.min_points_per_hour].sort_values(
        "performance", ascending=False, kind="mergesort"
    )
    if len(ranked) < 3:
        return []

    # Spread across every active hour, not just the well-sampled ones.
    confidence = min(0.9, variance(hourly["performance"].tolist()) * 2)
    if confidence < config.rhythm_confidence_floor:
        return []

    top = ranked.head(3)
    peak_hours = [int(h) for h in top["hour"]]
    return [
        TemporalPattern(
            pattern_id=_pattern_id(DAILY_RHYTHM, df),
            pattern_kind=DAILY_RHYTHM,
            description="Peak performance hours: " + ", ".join(f"{h}:00" for h in peak_hours),
            confidence=confidence,
            start_time=_first(df),
            end_time=_last(df),
            frequency=len(df) / _frame_day_span(df),
            significance_score=confidence,
            metadata={
                "peak_hours": peak_hours,
                "performance_scores": [float(p) for p in top["performance"]],
            },
        )
    ]


def weekly_cycle(df: pd.DataFrame, config: TemporalConfig = DEFAULT_CONFIG.temporal) -> List[TemporalPattern]:
    if df.empty:
        return []
    daily = df.groupby("weekday")["performance"].agg(["mean", "count"]).reset_index()
    if len(daily) < config.min_active_weekdays:
        return []

    spread = variance(daily["mean"].tolist())
    if spread <= config.weekly_variance_threshold:
        return []

    # idxmax/idxmin keep the first weekday on ties.
    best = DAY_NAMES[int(daily.loc[daily["mean"].idxmax(), "weekday"])]
    worst = DAY_NAMES[int(daily.loc[daily["mean"].idxmin(), "weekday"])]
    day_performance = [
        {
            "day": int(row["weekday"]),
            "day_name": DAY_NAMES[int(row["weekday"])],
            "avg_performance": float(row["mean"]),
            "session_count": int(row["count"]),
        }
        for row in daily.to_dict(orient="records")
    ]

    return [
        TemporalPattern(
            pattern_id=_pattern_id(WEEKLY_CYCLE, df),
            pattern_kind=WEEKLY_CYCLE,
            description=f"Best day: {best}, Challenging day: {worst}",
            confidence=min(0.9, spread * 2),
            start_time=_first(df),
            end_time=_last(df),
            frequency=len(df) / (_frame_day_span(df) / 7),
            significance_score=spread,
            metadata={"day_performance": day_performance, "performance_variance": spread},
        )
    ]


def session_shapes(
    sessions: Sequence[StudySession], config: TemporalConfig = DEFAULT_CONFIG.temporal
) -> List[TemporalPattern]:
    if len(sessions) < config.min_sessions:
        return []

    ordered = sorted(sessions, key=lambda s: ensure_utc(s.date))
    start, end = ensure_utc(ordered[0].date), ensure_utc(ordered[-1].date)
    span = day_span(start, end)
    total = len(ordered)
    micro = [s for s in ordered if s.duration_minutes <= config.micro_session_minutes]
    binge = [s for s in ordered if s.duration_minutes >= config.binge_session_minutes]
    epoch = int(start.timestamp())

    patterns = []
    if len(micro) / total > config.micro_share_threshold:
        share = len(micro) / total
        patterns.append(
            TemporalPattern(
                pattern_id=f"{MICRO_SESSIONS}_{epoch}",
                pattern_kind=MICRO_SESSIONS,
                description=f"{share * 100:.0f}% micro sessions (<={config.micro_session_minutes:g} min)",
                confidence=0.8,
                start_time=start,
                end_time=end,
                frequency=len(micro) / span,
                significance_score=share,
                metadata={
                    "micro_session_count": len(micro),
                    "avg_micro_duration": mean([s.duration_minutes for s in micro]),
                },
            )
        )
    if len(binge) / total > config.binge_share_threshold:
        share = len(binge) / total
        patterns.append(
            TemporalPattern(
                pattern_id=f"{BINGE_LEARNING}_{epoch}",
                pattern_kind=BINGE_LEARNING,
                description=f"{share * 100:.0f}% extended sessions (>={config.binge_session_minutes:g} min)",
                confidence=0.8,
                start_time=start,
                end_time=end,
                frequency=len(binge) / span,
                significance_score=share,
                metadata={
                    "binge_session_count": len(binge),
                    "avg_binge_duration": mean([s.duration_minutes for s in binge]),
                },
            )
        )
    return patterns


def performance_waves(
    df: pd.DataFrame,
    config: TemporalConfig = DEFAULT_CONFIG.temporal,
    now: Optional[datetime] = None,
) -> List[TemporalPattern]:
    accuracy = df[df["metric_kind"] == ACCURACY_RATE] if not df.empty else df
    if len(accuracy) < config.wave_min_samples:
        return []

    smoothed = moving_average(accuracy["value"].tolist(), config.wave_smoothing_window)
    amplitude = variance(smoothed)
    cycles = []
    for period in range(config.wave_min_lag, config.wave_max_lag + 1, config.wave_lag_step):
        correlation = autocorrelation(smoothed, period)
        if correlation > config.wave_correlation_threshold:
            cycles.append((period, correlation))
    cycles.sort(key=lambda c: c[1], reverse=True)

    start, end = _first(accuracy), _last(accuracy)
    now = resolve_now(now)
    patterns = []
    for period, correlation in cycles[:3]:
        if correlation <= config.wave_confidence_floor:
            continue
        patterns.append(
            TemporalPattern(
                pattern_id=f"{PERFORMANCE_WAVE}_{int(start.timestamp())}_{period}",
                pattern_kind=PERFORMANCE_WAVE,
                description=f"Performance oscillates with {period}-day period",
                confidence=correlation,
                start_time=start,
                end_time=end,
                frequency=1 / period,
                significance_score=amplitude,
                metadata={
                    "period_days": period,
                    "amplitude": amplitude,
                    "next_peak_estimate": now + timedelta(days=period),
                },
            )
        )
    return patterns


def consistency(df: pd.DataFrame, config: TemporalConfig = DEFAULT_CONFIG.temporal) -> List[TemporalPattern]:
    if df.empty:
        return []
    daily = df.groupby("day")["performance"].agg(["count", "mean"])
    if len(daily) < config.consistency_min_days:
        return []

    engagement_variance = variance(daily["count"].tolist())
    if engagement_variance >= config.consistency_variance_threshold:
        return []

    return [
        TemporalPattern(
            pattern_id=_pattern_id(CONSISTENCY_PATTERN, df),
            pattern_kind=CONSISTENCY_PATTERN,
            description="Highly consistent daily learning engagement",
            confidence=0.9,
            start_time=_first(df),
            end_time=_last(df),
            frequency=len(daily) / _frame_day_span(df),
            significance_score=1 - engagement_variance / 20,
            metadata={
                "engagement_variance": engagement_variance,
                "performance_variance": variance(daily["mean"].tolist()),
                "avg_daily_sessions": float(daily["count"].mean()),
            },
        )
    ]


def _first(df: pd.DataFrame) -> datetime:
    return ensure_utc(df["timestamp"].iloc[0])


def _last(df: pd.DataFrame) -> datetime:
    return ensure_utc(df["timestamp"].iloc[-1])


def _frame_day_span(df: pd.DataFrame) -> int:
    return day_span(_first(df), _last(df))


def _pattern_id(kind: str, df: pd.DataFrame) -> str:
    return f"{kind}_{int(_first(df).timestamp())}"
