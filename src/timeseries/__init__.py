# ABOUTME: Groups the generic metric time-series analytics.
# ABOUTME: Re-exports aggregation, pattern analysis, correlation and collection monitoring.

from .aggregation import TimeSeriesAggregate, aggregate
from .patterns import DataAnomaly, LearningPattern, analyze_patterns
from .correlation import MetricCorrelation, correlate_metrics
from .collection import collection_stats, find_anomalies, session_insights

__all__ = [
    "TimeSeriesAggregate",
    "aggregate",
    "DataAnomaly",
    "LearningPattern",
    "analyze_patterns",
    "MetricCorrelation",
    "correlate_metrics",
    "collection_stats",
    "find_anomalies",
    "session_insights",
]
