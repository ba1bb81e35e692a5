# ABOUTME: Derives the learner's time-of-day rhythm from hourly performance.
# ABOUTME: Reports optimal hours, the peak window, energy phases and rhythm strength.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from src.common.config import DEFAULT_CONFIG, TemporalConfig
from src.common.schemas import MetricEvent
from src.common.stats import mean, variance

from .patterns import hourly_performance, performance_frame


@dataclass(frozen=True)
class TimeWindow:
    start_hour: int
    end_hour: int
    performance_multiplier: float


@dataclass(frozen=True)
class EnergyPattern:
    peak_hours: List[int]
    decline_hours: List[int]
    recovery_hours: List[int]
    fatigue_threshold: int  # minutes


@dataclass(frozen=True)
class LearningRhythm:
    optimal_hours: List[int]
    peak_performance_window: TimeWindow
    energy_decline_pattern: EnergyPattern
    consistency_score: float
    rhythm_strength: float


def analyze_rhythm(
    events: Iterable[MetricEvent],
    config: TemporalConfig = DEFAULT_CONFIG.temporal,
) -> LearningRhythm:
    df = performance_frame(events)
    hourly = hourly_performance(df)
    if not hourly.empty:
        hourly = hourly[hourly["count"] >= config.rhythm_min_points_per_hour]
    ranked = hourly.sort_values("performance", ascending=False, kind="mergesort") if not hourly.empty else hourly

    hours = [int(h) for h in ranked["hour"]] if not ranked.empty else []
    scores = [float(p) for p in ranked["performance"]] if not ranked.empty else []

    return LearningRhythm(
        optimal_hours=hours[:4],
        peak_performance_window=peak_window(hours, scores),
        energy_decline_pattern=energy_pattern(hours, config),
        consistency_score=time_consistency(df),
        rhythm_strength=rhythm_strength(scores),
    )


def peak_window(ranked_hours: List[int], ranked_scores: List[float]) -> TimeWindow:
    """Span of the three best hours; the multiplier compares them to the all-hour mean."""

    if not ranked_hours:
        return TimeWindow(start_hour=9, end_hour=11, performance_multiplier=1.0)

    top_hours = ranked_hours[:3]
    top_mean = mean(ranked_scores[:3])
    all_mean = mean(ranked_scores)
    multiplier = top_mean / all_mean if all_mean > 0 else 1.0
    return TimeWindow(
        start_hour=min(top_hours),
        end_hour=max(top_hours) + 1,
        performance_multiplier=min(2.0, multiplier),
    )


def energy_pattern(ranked_hours: List[int], config: TemporalConfig = DEFAULT_CONFIG.temporal) -> EnergyPattern:
    n = len(ranked_hours)
    top_cut = math.ceil(n * 0.3)
    recovery_end = math.ceil(n * 0.7)
    return EnergyPattern(
        peak_hours=ranked_hours[:top_cut],
        decline_hours=ranked_hours[n - top_cut :] if top_cut else [],
        recovery_hours=ranked_hours[top_cut:recovery_end],
        fatigue_threshold=config.fatigue_threshold_minutes,
    )


def rhythm_strength(scores: List[float]) -> float:
    if len(scores) < 3:
        return 0.0
    return min(0.9, variance(scores) / max(mean(scores), 0.1))


def time_consistency(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    counts = df.groupby("day").size().tolist()
    return max(0.0, 1 - variance(counts) / max(mean(counts), 1))
