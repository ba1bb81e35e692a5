# ABOUTME: Summarizes forgetting-curve models across every tracked item.
# ABOUTME: Counts due/overdue items and ranks the most forgettable and strongest memories.

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from src.common.config import DEFAULT_CONFIG, MemoryConfig
from src.common.schemas import ItemMetrics, MetricEvent
from src.common.stats import mean, round_half_up
from src.common.timeutils import days_between, ensure_utc, resolve_now

from .forgetting_curve import ForgettingCurveModel, compute_model

NO_HISTORY_DAYS = 999


@dataclass(frozen=True)
class ItemForgettingProfile:
    item_id: str
    forgetting_rate: float
    memory_strength: float
    stability_factor: float
    last_seen: datetime
    total_reviews: int


@dataclass(frozen=True)
class ForgettingCurveInsights:
    total_items: int
    items_due: int
    items_overdue: int
    optimal_daily_reviews: int
    average_retention: float  # percent
    memory_stability_trend: str  # improving | declining | stable
    most_forgettable_items: List[ItemForgettingProfile]
    strongest_memories: List[ItemForgettingProfile]


def group_events_by_item(events: Iterable[MetricEvent]) -> Dict[str, List[MetricEvent]]:
    grouped: Dict[str, List[MetricEvent]] = defaultdict(list)
    for event in events:
        if event.item_id is not None:
            grouped[event.item_id].append(event)
    return grouped


def days_since_last_event(item_events: Sequence[MetricEvent], now: datetime) -> int:
    if not item_events:
        return NO_HISTORY_DAYS
    latest = max(ensure_utc(e.timestamp) for e in item_events)
    return days_between(latest, now)


def compute_models(
    all_metrics: Sequence[ItemMetrics],
    by_item: Dict[str, List[MetricEvent]],
    now: datetime,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> List[ForgettingCurveModel]:
    return [compute_model(m, by_item.get(m.item_id, []), now=now, config=config) for m in all_metrics]


def get_insights(
    all_metrics: Sequence[ItemMetrics],
    all_events: Iterable[MetricEvent],
    now: Optional[datetime] = None,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> ForgettingCurveInsights:
    now = resolve_now(now)
    by_item = group_events_by_item(all_events)
    models = compute_models(all_metrics, by_item, now, config)

    due = overdue = 0
    for model in models:
        elapsed = days_since_last_event(by_item.get(model.item_id, []), now)
        if elapsed >= model.optimal_interval:
            due += 1
        if elapsed > model.optimal_interval * config.overdue_multiplier:
            overdue += 1

    metrics_by_id = {m.item_id: m for m in all_metrics}
    forgettable = sorted(models, key=lambda m: m.decay_rate, reverse=True)
    strongest = sorted(models, key=lambda m: m.retrieval_strength * m.stability_factor, reverse=True)

    return ForgettingCurveInsights(
        total_items=len(all_metrics),
        items_due=due,
        items_overdue=overdue,
        optimal_daily_reviews=int(round_half_up(len(models) / 30)),
        average_retention=round_half_up(mean([m.retrieval_strength for m in models]) * 100, 2),
        memory_stability_trend=stability_trend(models),
        most_forgettable_items=[_profile(m, metrics_by_id[m.item_id]) for m in forgettable[: config.profile_limit]],
        strongest_memories=[_profile(m, metrics_by_id[m.item_id]) for m in strongest[: config.profile_limit]],
    )


def stability_trend(models: Sequence[ForgettingCurveModel]) -> str:
    if not models:
        return "stable"
    overall = (mean([m.stability_factor for m in models]) + mean([m.retrieval_strength for m in models])) / 2
    if overall > 0.7:
        return "improving"
    if overall < 0.4:
        return "declining"
    return "stable"


def _profile(model: ForgettingCurveModel, metrics: ItemMetrics) -> ItemForgettingProfile:
    return ItemForgettingProfile(
        item_id=model.item_id,
        forgetting_rate=model.decay_rate,
        memory_strength=model.retrieval_strength,
        stability_factor=model.stability_factor,
        last_seen=metrics.last_seen,
        total_reviews=metrics.encounter_count,
    )
