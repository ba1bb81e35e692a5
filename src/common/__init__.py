# ABOUTME: Makes the shared common package importable across the analytics services.
# ABOUTME: Re-exports record schemas, configuration and table conversion helpers.

from .schemas import ItemMetrics, MetricEvent, SpacedRepetitionState, StudySession, TimeRange
from .config import AnalyticsConfig, DEFAULT_CONFIG, load_config
from .records import events_from_frame, events_to_frame, metrics_from_frame, sessions_from_frame

__all__ = [
    "ItemMetrics",
    "MetricEvent",
    "SpacedRepetitionState",
    "StudySession",
    "TimeRange",
    "AnalyticsConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "events_from_frame",
    "events_to_frame",
    "metrics_from_frame",
    "sessions_from_frame",
]
