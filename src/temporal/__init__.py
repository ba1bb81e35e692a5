# ABOUTME: Groups the behavioural timing analytics: patterns, rhythm and momentum.
# ABOUTME: Re-exports the detectors and the learner-facing insight builders.

from .patterns import TemporalPattern, detect_patterns
from .rhythm import LearningRhythm, analyze_rhythm
from .momentum import LearningMomentum, analyze_momentum
from .insights import (
    TemporalInsights,
    analyze_streak,
    assess_time,
    build_temporal_insights,
    format_optimal_hours,
    predict_performance_at,
)

__all__ = [
    "TemporalPattern",
    "detect_patterns",
    "LearningRhythm",
    "analyze_rhythm",
    "LearningMomentum",
    "analyze_momentum",
    "TemporalInsights",
    "analyze_streak",
    "assess_time",
    "build_temporal_insights",
    "format_optimal_hours",
    "predict_performance_at",
]
