# ABOUTME: Implements the SM-2 style spaced-repetition recurrence for review scheduling.
# ABOUTME: Produces the next interval, ease factor and repetition count from a 0-5 quality grade.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from src.common.config import DEFAULT_CONFIG, MemoryConfig
from src.common.schemas import ItemMetrics, SpacedRepetitionState
from src.common.stats import clamp, round_half_up
from src.common.timeutils import add_days

MIN_QUALITY = 0
MAX_QUALITY = 5


@dataclass(frozen=True)
class SpacedRepetitionSchedule:
    item_id: str
    next_review_date: datetime
    interval_days: int
    ease_factor: float
    repetition_number: int
    last_quality: int

    def to_state(self) -> SpacedRepetitionState:
        """State the caller persists on the item after applying this schedule."""

        return SpacedRepetitionState(
            next_review_date=self.next_review_date,
            ease_factor=self.ease_factor,
            next_interval=self.interval_days,
            repetition_number=self.repetition_number,
        )


def validate_quality(quality: int) -> int:
    if isinstance(quality, bool) or int(quality) != quality or not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(f"Unsupported quality grade '{quality}'. Expected an integer between 0 and 5.")
    return int(quality)


def ease_delta(quality: int) -> float:
    """SM-2 ease factor adjustment for a successful recall of the given quality."""

    miss = MAX_QUALITY - quality
    return 0.1 - miss * (0.08 + miss * 0.02)


def generate_schedule(
    metrics: ItemMetrics,
    last_review_date: datetime,
    quality: int,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> SpacedRepetitionSchedule:
    """
    Compute the next review schedule for an item that was just reviewed.

    Recurrence:
    - quality < 3 (lapse): interval 1 day, repetition_number reset to 0, ease kept.
    - first success (no state, or repetition 0 after a lapse): interval 1 day.
    - second success (prior repetition 1): interval 6 days.
    - later successes: round(previous interval * ease factor).
    - successes adjust ease by 0.1 - (5 - q)(0.08 + (5 - q) * 0.02).
    Ease never drops below 1.3 and intervals stay within [1, 365] days.
    """

    quality = validate_quality(quality)
    state = metrics.spaced_repetition

    if state is None:
        ease = config.initial_ease_factor
        interval = config.min_interval_days
        repetition = 1
    else:
        ease = state.ease_factor
        interval = state.next_interval
        repetition = state.repetition_number + 1
        if quality >= config.passing_quality:
            if state.repetition_number <= 0:
                interval = config.min_interval_days
            elif state.repetition_number == 1:
                interval = config.second_interval_days
            else:
                interval = int(round_half_up(interval * ease))
            ease = ease + ease_delta(quality)

    if quality < config.passing_quality:
        interval = config.min_interval_days
        repetition = 0

    ease = round_half_up(max(config.min_ease_factor, ease), 2)
    interval = int(clamp(interval, config.min_interval_days, config.max_interval_days))

    return SpacedRepetitionSchedule(
        item_id=metrics.item_id,
        next_review_date=add_days(last_review_date, interval),
        interval_days=interval,
        ease_factor=ease,
        repetition_number=repetition,
        last_quality=quality,
    )
