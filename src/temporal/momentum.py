# ABOUTME: Measures short-term learning momentum from recent sessions and accuracy.
# ABOUTME: Estimates streak strength, direction, continuation, breakthrough and plateau odds.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from src.common.config import DEFAULT_CONFIG, TemporalConfig
from src.common.records import sort_events
from src.common.schemas import MetricEvent, StudySession
from src.common.stats import clamp, mean, moving_average, round_half_up, variance
from src.common.timeutils import ensure_utc, resolve_now

BUILDING = "building"
MAINTAINING = "maintaining"
DECLINING = "declining"


@dataclass(frozen=True)
class LearningMomentum:
    current_streak_strength: float
    momentum_direction: str
    predicted_continuation: int  # days
    breakthrough_probability: float
    plateau_risk: float


def analyze_momentum(
    events: Iterable[MetricEvent],
    sessions: Iterable[StudySession],
    now: Optional[datetime] = None,
    config: TemporalConfig = DEFAULT_CONFIG.temporal,
) -> LearningMomentum:
    now = resolve_now(now)
    ordered = sort_events(events)
    window = config.momentum_window_days

    recent_events = _since(ordered, now, window)
    recent_sessions = sessions_in_window(sessions, now, window)

    streak = streak_strength(recent_sessions, window)
    direction = momentum_direction(recent_events, config)

    return LearningMomentum(
        current_streak_strength=streak,
        momentum_direction=direction,
        predicted_continuation=predicted_continuation(streak, direction),
        breakthrough_probability=breakthrough_probability(
            _accuracy_values(_since(ordered, now, config.breakthrough_window_days)), config
        ),
        plateau_risk=plateau_risk(_accuracy_values(_since(ordered, now, config.plateau_window_days)), config),
    )


def sessions_in_window(sessions: Iterable[StudySession], now: datetime, window_days: int) -> List[StudySession]:
    """Sessions on the last ``window_days`` UTC calendar days, today included, and not after ``now``."""

    first_day = now.date() - timedelta(days=window_days - 1)
    return [s for s in sessions if first_day <= ensure_utc(s.date).date() and ensure_utc(s.date) <= now]


def streak_strength(recent_sessions: Sequence[StudySession], window_days: int = 14) -> float:
    """Share of the window's days that contain at least one session."""

    if not recent_sessions:
        return 0.0
    active_days = {ensure_utc(s.date).date() for s in recent_sessions}
    return len(active_days) / window_days


def momentum_direction(recent_events: Sequence[MetricEvent], config: TemporalConfig = DEFAULT_CONFIG.temporal) -> str:
    if len(recent_events) < 10:
        return MAINTAINING

    accuracy = _accuracy_values(recent_events)
    if len(accuracy) < 5:
        return MAINTAINING

    half = len(accuracy) // 2
    difference = mean(accuracy[half:]) - mean(accuracy[:half])
    if difference > config.momentum_shift:
        return BUILDING
    if difference < -config.momentum_shift:
        return DECLINING
    return MAINTAINING


def predicted_continuation(streak: float, direction: str) -> int:
    base_days = 7.0
    if direction == BUILDING:
        base_days *= 1.5
    elif direction == DECLINING:
        base_days *= 0.7
    return int(round_half_up(base_days * streak))


def breakthrough_probability(accuracy: List[float], config: TemporalConfig = DEFAULT_CONFIG.temporal) -> float:
    if len(accuracy) < config.breakthrough_min_samples:
        return 0.3
    improvement = mean(accuracy[-10:]) - mean(accuracy)
    return clamp(0.5 + improvement * 2, 0.1, 0.9)


def plateau_risk(accuracy: List[float], config: TemporalConfig = DEFAULT_CONFIG.temporal) -> float:
    """Flat smoothed accuracy over the plateau window reads as a plateau."""

    if len(accuracy) < config.plateau_min_samples:
        return 0.3
    smoothed = moving_average(accuracy, 5)
    return clamp(1 - variance(smoothed) * 10, 0.1, 0.9)


def _since(ordered: Sequence[MetricEvent], now: datetime, days: int) -> List[MetricEvent]:
    cutoff = now - timedelta(days=days)
    return [e for e in ordered if cutoff <= ensure_utc(e.timestamp) <= now]


def _accuracy_values(events: Sequence[MetricEvent]) -> List[float]:
    return [e.value for e in events if e.is_accuracy]
