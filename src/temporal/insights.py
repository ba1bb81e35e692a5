# ABOUTME: Turns detected patterns, rhythm and momentum into learner-facing insights.
# ABOUTME: Builds recommendations, predicts the next optimal session and assesses study times.

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from src.common.config import DEFAULT_CONFIG, TemporalConfig
from src.common.schemas import MetricEvent, StudySession
from src.common.stats import clamp, mean, round_half_up
from src.common.timeutils import ensure_utc, resolve_now

from .momentum import BUILDING, DECLINING, LearningMomentum, analyze_momentum
from .patterns import BINGE_LEARNING, CONSISTENCY_PATTERN, MICRO_SESSIONS, TemporalPattern, run_detectors
from .rhythm import LearningRhythm, analyze_rhythm

INSIGHT_CONFIDENCE = 0.6
MAX_RECOMMENDATIONS = 4


@dataclass(frozen=True)
class TemporalRecommendation:
    recommendation_type: str  # timing | duration | frequency | break
    priority: str  # high | medium | low
    title: str
    description: str
    actionable_steps: List[str]
    expected_benefit: str


@dataclass(frozen=True)
class OptimalSessionPrediction:
    recommended_time: datetime
    confidence: float
    duration_minutes: int
    reasoning: List[str]
    performance_boost_estimate: int  # percent


@dataclass(frozen=True)
class TemporalInsights:
    patterns: List[TemporalPattern]
    rhythm: LearningRhythm
    momentum: LearningMomentum
    recommendations: List[TemporalRecommendation]
    next_optimal_session: OptimalSessionPrediction


@dataclass(frozen=True)
class TimeAssessment:
    is_optimal: bool
    confidence: float
    reason: str


@dataclass(frozen=True)
class StreakAnalysis:
    current_streak: int  # approximate days
    streak_risk: str  # low | medium | high
    days_until_break: int
    strengthening: bool


def build_temporal_insights(
    events: Sequence[MetricEvent],
    sessions: Sequence[StudySession],
    now: Optional[datetime] = None,
    config: TemporalConfig = DEFAULT_CONFIG.temporal,
) -> TemporalInsights:
    """
    Full temporal summary for display.

    Patterns use a looser 0.6 confidence cutoff than detect_patterns and are
    ordered by confidence, strongest first.
    """

    now = resolve_now(now)
    patterns: List[TemporalPattern] = []
    if len(events) >= config.min_data_points:
        patterns = run_detectors(events, sessions, config, INSIGHT_CONFIDENCE, now)
        patterns.sort(key=lambda p: p.confidence, reverse=True)

    rhythm = analyze_rhythm(events, config)
    momentum = analyze_momentum(events, sessions, now=now, config=config)
    return TemporalInsights(
        patterns=patterns,
        rhythm=rhythm,
        momentum=momentum,
        recommendations=recommendations(patterns, rhythm, momentum),
        next_optimal_session=predict_optimal_session(rhythm, momentum, sessions, now),
    )


def recommendations(
    patterns: Sequence[TemporalPattern], rhythm: LearningRhythm, momentum: LearningMomentum
) -> List[TemporalRecommendation]:
    recs: List[TemporalRecommendation] = []

    if rhythm.optimal_hours:
        ranges = format_optimal_hours(rhythm.optimal_hours)
        boost = round_half_up((rhythm.peak_performance_window.performance_multiplier - 1) * 100)
        recs.append(
            TemporalRecommendation(
                "timing",
                "high",
                "Optimize Your Study Schedule",
                f"Your peak learning hours are {ranges}",
                [
                    f"Schedule main study sessions during {ranges}",
                    "Use other times for lighter review or passive learning",
                    "Set reminders for your peak performance windows",
                ],
                f"Up to {boost:.0f}% performance improvement",
            )
        )

    micro = _find(patterns, MICRO_SESSIONS)
    binge = _find(patterns, BINGE_LEARNING)
    if micro is not None and micro.confidence > 0.7:
        recs.append(
            TemporalRecommendation(
                "duration",
                "medium",
                "Embrace Short Learning Bursts",
                "Your data shows excellent results with micro-sessions",
                [
                    "Schedule 3-5 minute learning breaks throughout the day",
                    "Use micro-sessions for vocabulary review",
                    "Try 10-15 minute focused learning blocks",
                ],
                "Better retention and reduced mental fatigue",
            )
        )
    elif binge is not None and binge.confidence > 0.7:
        recs.append(
            TemporalRecommendation(
                "duration",
                "medium",
                "Maximize Deep Learning Sessions",
                "You perform well in extended study sessions",
                [
                    "Block out 45-60 minute focused study periods",
                    "Include short breaks every 20-25 minutes within sessions",
                    "Plan challenging topics for your longer sessions",
                ],
                "Deeper understanding and improved mastery",
            )
        )

    if momentum.momentum_direction == DECLINING and momentum.plateau_risk > 0.7:
        recs.append(
            TemporalRecommendation(
                "break",
                "high",
                "Take a Strategic Break",
                "Your learning momentum indicates potential burnout",
                [
                    "Take a 1-2 day break from intensive studying",
                    "Try passive learning such as listening to audio",
                    "Return with a modified routine to re-energize learning",
                ],
                "Prevent burnout and restore learning motivation",
            )
        )
    elif momentum.momentum_direction == BUILDING:
        recs.append(
            TemporalRecommendation(
                "frequency",
                "high",
                "Maintain Your Learning Momentum",
                "You're in a strong learning phase, keep it going!",
                [
                    "Maintain your current study frequency",
                    "Gradually increase complexity of learning material",
                    "Consider adding a new learning challenge",
                ],
                "Maximize learning gains during peak momentum",
            )
        )

    consistency = _find(patterns, CONSISTENCY_PATTERN)
    if consistency is None or consistency.confidence < 0.6:
        recs.append(
            TemporalRecommendation(
                "frequency",
                "high",
                "Build Learning Consistency",
                "Regular practice will significantly improve your results",
                [
                    "Set a daily learning goal (even just 5 minutes)",
                    "Link learning to an existing daily routine",
                    "Track daily practice to build a visible streak",
                ],
                "Improved retention and faster skill development",
            )
        )

    return recs[:MAX_RECOMMENDATIONS]


def predict_optimal_session(
    rhythm: LearningRhythm,
    momentum: LearningMomentum,
    sessions: Sequence[StudySession],
    now: Optional[datetime] = None,
) -> OptimalSessionPrediction:
    now = resolve_now(now)
    hours = rhythm.optimal_hours or [rhythm.peak_performance_window.start_hour]

    later = [h for h in hours if h > now.hour]
    next_hour = later[0] if later else min(hours)
    target = now.replace(hour=next_hour, minute=0, second=0, microsecond=0)
    if next_hour <= now.hour:
        target += timedelta(days=1)

    bonus = 0.2 if momentum.momentum_direction == BUILDING else -0.1 if momentum.momentum_direction == DECLINING else 0.0
    confidence = clamp(rhythm.rhythm_strength * 0.8 + bonus, 0.3, 0.95)

    recent = sorted(sessions, key=lambda s: ensure_utc(s.date))[-10:]
    avg_duration = mean([s.duration_minutes for s in recent]) if recent else 15
    duration = int(clamp(round_half_up(avg_duration), 10, 60))

    reasoning = [f"{next_hour}:00 aligns with your peak performance window"]
    if momentum.momentum_direction == BUILDING:
        reasoning.append("Your learning momentum is strong, good time to practice")
    if rhythm.rhythm_strength > 0.7:
        reasoning.append("Strong consistency in your learning rhythm patterns")

    return OptimalSessionPrediction(
        recommended_time=target,
        confidence=confidence,
        duration_minutes=duration,
        reasoning=reasoning,
        performance_boost_estimate=int(
            round_half_up((rhythm.peak_performance_window.performance_multiplier - 1) * 100)
        ),
    )


def predict_performance_at(rhythm: LearningRhythm, hour: int) -> float:
    """Expected performance multiplier for a study session starting at ``hour`` (UTC)."""

    multiplier = rhythm.peak_performance_window.performance_multiplier
    if hour in rhythm.optimal_hours:
        return multiplier
    if not rhythm.optimal_hours:
        return multiplier * math.exp(-12 / 4)

    distance = min(min(abs(h - hour), 24 - abs(h - hour)) for h in rhythm.optimal_hours)
    return multiplier * math.exp(-distance / 4)


def assess_time(rhythm: LearningRhythm, at: datetime) -> TimeAssessment:
    hour = ensure_utc(at).hour
    window = rhythm.peak_performance_window
    in_optimal = hour in rhythm.optimal_hours
    in_peak = window.start_hour <= hour <= window.end_hour

    if in_optimal and in_peak:
        return TimeAssessment(
            True, rhythm.rhythm_strength * 0.9, "Peak performance time, historically your best hour for learning"
        )
    if in_optimal:
        return TimeAssessment(True, rhythm.rhythm_strength * 0.7, "Good time for learning based on your patterns")
    if hour in rhythm.energy_decline_pattern.decline_hours:
        return TimeAssessment(
            False, rhythm.rhythm_strength * 0.8, "Low energy period, consider waiting for a better time"
        )
    return TimeAssessment(False, rhythm.rhythm_strength * 0.6, "Moderate time, not your strongest learning period")


def analyze_streak(momentum: LearningMomentum, patterns: Sequence[TemporalPattern]) -> StreakAnalysis:
    strength = momentum.current_streak_strength
    consistent = any(p.pattern_kind == CONSISTENCY_PATTERN and p.confidence > 0.7 for p in patterns)

    risk = "medium"
    if strength > 0.8 and consistent:
        risk = "low"
    if strength < 0.4 or momentum.momentum_direction == DECLINING:
        risk = "high"

    return StreakAnalysis(
        current_streak=int(round_half_up(strength * 14)),
        streak_risk=risk,
        days_until_break=momentum.predicted_continuation,
        strengthening=momentum.momentum_direction == BUILDING,
    )


def format_optimal_hours(hours: Sequence[int]) -> str:
    """
    Collapse hours into readable ranges.

    >>> format_optimal_hours([9, 10, 11, 14])
    '9 AM-12 PM, 2 PM'
    """

    if not hours:
        return "none detected"

    ordered = sorted(hours)
    ranges = []
    start = end = ordered[0]
    for hour in ordered[1:]:
        if hour == end + 1:
            end = hour
            continue
        ranges.append(_format_range(start, end))
        start = end = hour
    ranges.append(_format_range(start, end))
    return ", ".join(ranges)


def _format_hour(hour: int) -> str:
    hour %= 24
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def _format_range(start: int, end: int) -> str:
    if start == end:
        return _format_hour(start)
    return f"{_format_hour(start)}-{_format_hour(end + 1)}"


def _find(patterns: Sequence[TemporalPattern], kind: str) -> Optional[TemporalPattern]:
    return next((p for p in patterns if p.pattern_kind == kind), None)
