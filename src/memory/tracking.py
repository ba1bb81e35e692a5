# ABOUTME: Applies a single study interaction to an item's learning counters.
# ABOUTME: Returns updated ItemMetrics plus the metric events the interaction produces.

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from src.common.schemas import ACCURACY_RATE, RESPONSE_TIME, ItemMetrics, MetricEvent
from src.common.stats import clamp
from src.common.timeutils import ensure_utc

from .scheduling import SpacedRepetitionSchedule


def record_interaction(
    existing: Optional[ItemMetrics],
    item_id: str,
    correct: bool,
    response_time: float,
    at: datetime,
    category: Optional[str] = None,
) -> Tuple[ItemMetrics, List[MetricEvent]]:
    """
    Fold one answer into the item's counters.

    The first interaction creates the record; later ones accumulate counts and
    recompute the running average response time incrementally.
    """

    at = ensure_utc(at)
    hit = 1 if correct else 0

    if existing is None:
        metrics = ItemMetrics(
            item_id=item_id,
            encounter_count=1,
            correct_count=hit,
            incorrect_count=1 - hit,
            avg_response_time=float(response_time),
            first_seen=at,
            last_seen=at,
            confidence_score=float(hit),
            retention_estimate=1.0,
            next_review_date=at + timedelta(days=1),
            category=category,
        )
    else:
        encounters = existing.encounter_count + 1
        correct_count = existing.correct_count + hit
        metrics = replace(
            existing,
            encounter_count=encounters,
            correct_count=correct_count,
            incorrect_count=existing.incorrect_count + (1 - hit),
            avg_response_time=(existing.avg_response_time * existing.encounter_count + response_time) / encounters,
            last_seen=at,
            confidence_score=clamp(correct_count / encounters, 0.0, 1.0),
            category=existing.category if category is None else category,
        )

    events = [
        MetricEvent(timestamp=at, metric_kind=ACCURACY_RATE, value=float(hit), item_id=item_id, category=metrics.category),
        MetricEvent(
            timestamp=at, metric_kind=RESPONSE_TIME, value=float(response_time), item_id=item_id, category=metrics.category
        ),
    ]
    return metrics, events


def apply_schedule(metrics: ItemMetrics, schedule: SpacedRepetitionSchedule) -> ItemMetrics:
    if schedule.item_id != metrics.item_id:
        raise ValueError(f"Schedule for '{schedule.item_id}' cannot be applied to item '{metrics.item_id}'.")
    return replace(metrics, spaced_repetition=schedule.to_state(), next_review_date=schedule.next_review_date)
