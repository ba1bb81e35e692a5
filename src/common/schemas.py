# ABOUTME: Defines canonical record structures shared by the analytics services.
# ABOUTME: Centralizes item metrics, metric event, and study session schemas.

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional

ACCURACY_RATE = "accuracy_rate"
RESPONSE_TIME = "response_time"
SESSION_DURATION = "session_duration"
WORDS_PER_MINUTE = "words_per_minute"
RETENTION_RATE = "retention_rate"
MOTIVATION_SCORE = "motivation_score"
DIFFICULTY_PREFERENCE = "difficulty_preference"

METRIC_KINDS = (
    ACCURACY_RATE,
    RESPONSE_TIME,
    SESSION_DURATION,
    WORDS_PER_MINUTE,
    RETENTION_RATE,
    MOTIVATION_SCORE,
    DIFFICULTY_PREFERENCE,
)

ACTIVITY_TYPES = ("flashcard", "quiz", "learning", "review", "challenge", "free_practice")


def validate_metric_kind(metric_kind: str) -> str:
    normalized = str(metric_kind).strip().lower()
    if normalized not in METRIC_KINDS:
        raise ValueError(f"Unsupported metric kind '{metric_kind}'. Expected one of: {', '.join(METRIC_KINDS)}.")
    return normalized


def validate_activity_type(activity_type: str) -> str:
    normalized = str(activity_type).strip().lower()
    if normalized not in ACTIVITY_TYPES:
        raise ValueError(
            f"Unsupported activity type '{activity_type}'. Expected one of: {', '.join(ACTIVITY_TYPES)}."
        )
    return normalized


@dataclass(frozen=True)
class SpacedRepetitionState:
    """Scheduling state persisted alongside an item once a schedule is applied."""

    next_review_date: datetime
    ease_factor: float
    next_interval: int
    repetition_number: int


@dataclass(frozen=True)
class ItemMetrics:
    """Per-item learning counters maintained by the host application."""

    item_id: str
    encounter_count: int
    correct_count: int
    incorrect_count: int
    avg_response_time: float
    first_seen: datetime
    last_seen: datetime
    confidence_score: float
    retention_estimate: float
    next_review_date: datetime
    spaced_repetition: Optional[SpacedRepetitionState] = None
    category: Optional[str] = None

    @property
    def accuracy(self) -> float:
        if self.encounter_count <= 0:
            return 0.0
        return self.correct_count / self.encounter_count


@dataclass(frozen=True)
class MetricEvent:
    """Single time-stamped measurement in the learner's metric log."""

    timestamp: datetime
    metric_kind: str
    value: float
    item_id: Optional[str] = None
    category: Optional[str] = None
    metadata: Mapping[str, object] = field(default_factory=dict)

    @property
    def is_accuracy(self) -> bool:
        return self.metric_kind == ACCURACY_RATE


@dataclass(frozen=True)
class StudySession:
    """Summary of one study session as recorded by the host application."""

    date: datetime
    duration_minutes: float
    words_practiced: int
    activity_type: str
    quiz_score: Optional[float] = None
    xp_earned: int = 0
    words_learned: int = 0


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end
