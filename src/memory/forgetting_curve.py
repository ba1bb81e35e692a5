# ABOUTME: Fits a per-item exponential forgetting curve from the item's metric history.
# ABOUTME: Predicts recall probability and review priority for a given review delay.

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from src.common.config import DEFAULT_CONFIG, MemoryConfig
from src.common.records import events_for_item
from src.common.schemas import ItemMetrics, MetricEvent
from src.common.stats import clamp, round_half_up, variance
from src.common.timeutils import days_between, resolve_now

URGENT = "urgent"
DUE = "due"
OPTIONAL = "optional"
TOO_EARLY = "too_early"
PRIORITY_ORDER = {URGENT: 0, DUE: 1, OPTIONAL: 2, TOO_EARLY: 3}


@dataclass(frozen=True)
class ForgettingCurveModel:
    item_id: str
    initial_strength: float
    decay_rate: float
    stability_factor: float
    retrieval_strength: float
    optimal_interval: int  # days
    confidence_level: float


@dataclass(frozen=True)
class ReviewPrediction:
    item_id: str
    success_probability: float
    recommended_delay: float  # days
    difficulty_adjustment: float
    review_priority: str
    reasoning: List[str]


def default_model(item_id: str, config: MemoryConfig = DEFAULT_CONFIG.memory) -> ForgettingCurveModel:
    """Model used while an item has no history to fit."""

    return ForgettingCurveModel(
        item_id=item_id,
        initial_strength=0.3,
        decay_rate=config.default_decay_rate,
        stability_factor=0.5,
        retrieval_strength=0.3,
        optimal_interval=1,
        confidence_level=0.2,
    )


def compute_model(
    metrics: ItemMetrics,
    events: Iterable[MetricEvent],
    now: Optional[datetime] = None,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> ForgettingCurveModel:
    """
    Fit the forgetting curve for one item.

    Only events whose item_id matches the metrics are considered, ordered by
    timestamp. With no history the fixed default model is returned.
    """

    reviews = events_for_item(events, metrics.item_id)
    if not reviews:
        return default_model(metrics.item_id, config)

    now = resolve_now(now)
    decay_rate = _decay_rate(reviews, config)
    stability = _stability_factor(metrics, reviews, config)
    retrieval = _retrieval_strength(reviews, decay_rate, now)

    return ForgettingCurveModel(
        item_id=metrics.item_id,
        initial_strength=_initial_strength(reviews),
        decay_rate=decay_rate,
        stability_factor=stability,
        retrieval_strength=retrieval,
        optimal_interval=_optimal_interval(retrieval, stability, decay_rate, config),
        confidence_level=_model_confidence(reviews, now, config),
    )


def predict_success(
    model: ForgettingCurveModel,
    days_since_last_review: float,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> ReviewPrediction:
    time_decay = math.exp(-model.decay_rate * days_since_last_review)
    current_retention = model.retrieval_strength * time_decay
    probability = clamp(current_retention + model.stability_factor * 0.2, 0.0, config.max_success_probability)

    return ReviewPrediction(
        item_id=model.item_id,
        success_probability=round_half_up(probability, 4),
        recommended_delay=_recommended_delay(model, probability, days_since_last_review, config),
        difficulty_adjustment=_difficulty_adjustment(probability),
        review_priority=_priority(probability, days_since_last_review, model.optimal_interval),
        reasoning=_reasoning(probability, days_since_last_review, model),
    )


def _initial_strength(reviews: Sequence[MetricEvent]) -> float:
    first = reviews[0]
    if first.is_accuracy:
        return clamp(first.value, 0.1, 0.9)
    return 0.3


def _decay_rate(reviews: Sequence[MetricEvent], config: MemoryConfig) -> float:
    if len(reviews) < 3:
        return config.default_decay_rate

    accuracy = [r for r in reviews if r.is_accuracy]
    if len(accuracy) < 2:
        return config.default_decay_rate

    span_days = days_between(accuracy[0].timestamp, accuracy[-1].timestamp)
    if span_days == 0:
        return config.default_decay_rate

    # Declining accuracy per day raises the decay rate above the baseline.
    change_per_day = (accuracy[-1].value - accuracy[0].value) / span_days
    return clamp(config.default_decay_rate - change_per_day * 0.1, config.min_decay_rate, config.max_decay_rate)


def _stability_factor(metrics: ItemMetrics, reviews: Sequence[MetricEvent], config: MemoryConfig) -> float:
    base = min(0.9, metrics.accuracy * 0.8)
    return max(0.1, base + _consistency_bonus(reviews, config))


def _consistency_bonus(reviews: Sequence[MetricEvent], config: MemoryConfig) -> float:
    samples = [r.value for r in reviews if r.is_accuracy]
    if len(samples) < 3:
        return 0.0
    return max(0.0, config.consistency_bonus_cap - variance(samples))


def _retrieval_strength(reviews: Sequence[MetricEvent], decay_rate: float, now: datetime) -> float:
    last = reviews[-1]
    days_since = days_between(last.timestamp, now)
    performance = last.value if last.is_accuracy else 0.5
    return max(0.05, performance * math.exp(-decay_rate * days_since))


def _optimal_interval(retrieval: float, stability: float, decay_rate: float, config: MemoryConfig) -> int:
    adjusted = max(0.1, retrieval * stability)
    if adjusted <= config.target_retention:
        return config.min_interval_days

    interval = math.log(config.target_retention / adjusted) / -decay_rate
    return int(clamp(round_half_up(interval), config.min_interval_days, config.max_interval_days))


def _model_confidence(reviews: Sequence[MetricEvent], now: datetime, config: MemoryConfig) -> float:
    base = min(0.9, len(reviews) / 20)
    recent = sum(1 for r in reviews if days_between(r.timestamp, now) < config.recent_window_days)
    return max(0.1, base + min(0.1, recent / 10))


def _recommended_delay(
    model: ForgettingCurveModel, probability: float, days_since: float, config: MemoryConfig
) -> float:
    if probability > 0.9:
        return min(config.max_interval_days, model.optimal_interval * 1.5)
    if probability < 0.7:
        return 0
    return max(0, model.optimal_interval - days_since)


def _priority(probability: float, days_since: float, optimal_interval: float) -> str:
    if probability < 0.5:
        return URGENT
    if days_since >= optimal_interval:
        return DUE
    if days_since >= optimal_interval * 0.8:
        return OPTIONAL
    return TOO_EARLY


def _difficulty_adjustment(probability: float) -> float:
    if probability > 0.9:
        return 0.3
    if probability < 0.6:
        return -0.3
    return 0.0


def _reasoning(probability: float, days_since: float, model: ForgettingCurveModel) -> List[str]:
    reasoning = [
        f"{round_half_up(probability * 100):.0f}% predicted success probability",
        f"{days_since:g} days since last review",
    ]
    if model.confidence_level > 0.7:
        reasoning.append("High confidence prediction based on review history")
    else:
        reasoning.append("Moderate confidence - limited review history")

    if model.stability_factor > 0.8:
        reasoning.append("Strong memory stability detected")
    elif model.stability_factor < 0.4:
        reasoning.append("Memory appears unstable - frequent review needed")
    return reasoning
