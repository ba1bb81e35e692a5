# ABOUTME: Builds the prioritized review queue and daily plan from forgetting-curve predictions.
# ABOUTME: Also derives session sizing advice and a retention breakdown by item category.

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from src.common.config import DEFAULT_CONFIG, MemoryConfig
from src.common.schemas import ItemMetrics, MetricEvent
from src.common.stats import clamp, mean, round_half_up
from src.common.timeutils import EPOCH, days_between, ensure_utc, resolve_now

from .forgetting_curve import PRIORITY_ORDER, TOO_EARLY, URGENT, DUE, OPTIONAL, compute_model, predict_success
from .insights import ForgettingCurveInsights, compute_models, group_events_by_item

UNCATEGORIZED = "general"
MINUTES_PER_REVIEW = 0.5


@dataclass(frozen=True)
class ReviewContext:
    last_accuracy: float
    total_reviews: int
    average_response_time: float
    forgetting_curve_stage: str  # acquisition | consolidation | maintenance


@dataclass(frozen=True)
class ReviewQueueItem:
    item_id: str
    category: str
    priority: str
    success_probability: float
    days_overdue: int
    predicted_difficulty: str  # easy | medium | hard
    review_context: ReviewContext


@dataclass(frozen=True)
class CategoryReviewSummary:
    category: str
    item_count: int
    priority_distribution: Dict[str, int]
    estimated_time: int


@dataclass(frozen=True)
class DailyReviewPlan:
    total_reviews: int
    urgent_reviews: int
    due_reviews: int
    optional_reviews: int
    estimated_duration: int  # minutes
    categories: List[CategoryReviewSummary]
    optimization_tips: List[str]


@dataclass(frozen=True)
class SessionOptimization:
    optimal_session_length: float
    recommended_review_count: int
    difficulty_progression: str  # easy_to_hard | hard_to_easy | mixed
    break_intervals: List[float]
    focus_areas: List[str]


@dataclass(frozen=True)
class WeakArea:
    area_type: str  # category | word_type
    identifier: str
    retention_rate: float
    impact_score: float


@dataclass(frozen=True)
class RetentionAnalysis:
    overall_retention: float  # percent
    category_retention: Dict[str, float]
    retention_trend: str
    weak_areas: List[WeakArea]
    improvement_suggestions: List[str]


def build_review_queue(
    all_metrics: Sequence[ItemMetrics],
    all_events: Iterable[MetricEvent],
    now: Optional[datetime] = None,
    max_items: int = 50,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> List[ReviewQueueItem]:
    """
    Items worth reviewing now, most urgent first.

    too_early items are skipped; others are kept once their scheduled review
    date has arrived (or immediately when no schedule exists), and urgent
    items are always kept.
    """

    now = resolve_now(now)
    by_item = group_events_by_item(all_events)
    queue: List[ReviewQueueItem] = []

    for metrics in all_metrics:
        model = compute_model(metrics, by_item.get(metrics.item_id, []), now=now, config=config)
        prediction = predict_success(model, days_between(metrics.last_seen, now), config)
        if prediction.review_priority == TOO_EARLY:
            continue

        scheduled = metrics.spaced_repetition.next_review_date if metrics.spaced_repetition else EPOCH
        days_since_scheduled = (now.date() - ensure_utc(scheduled).date()).days
        if days_since_scheduled < 0 and prediction.review_priority != URGENT:
            continue

        queue.append(
            ReviewQueueItem(
                item_id=metrics.item_id,
                category=metrics.category or UNCATEGORIZED,
                priority=prediction.review_priority,
                success_probability=prediction.success_probability,
                days_overdue=max(0, days_since_scheduled),
                predicted_difficulty=_predicted_difficulty(prediction.success_probability),
                review_context=ReviewContext(
                    last_accuracy=metrics.accuracy,
                    total_reviews=metrics.encounter_count,
                    average_response_time=metrics.avg_response_time,
                    forgetting_curve_stage=_curve_stage(metrics.confidence_score),
                ),
            )
        )

    queue.sort(key=lambda item: (PRIORITY_ORDER[item.priority], -item.days_overdue))
    return queue[:max_items]


def plan_daily_reviews(
    all_metrics: Sequence[ItemMetrics],
    all_events: Iterable[MetricEvent],
    now: Optional[datetime] = None,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> DailyReviewPlan:
    queue = build_review_queue(all_metrics, all_events, now=now, max_items=100, config=config)
    counts = _priority_counts(queue)
    estimated = int(round_half_up(len(queue) * MINUTES_PER_REVIEW))

    grouped: Dict[str, List[ReviewQueueItem]] = defaultdict(list)
    for item in queue:
        grouped[item.category].append(item)
    categories = [
        CategoryReviewSummary(
            category=category,
            item_count=len(items),
            priority_distribution=_priority_counts(items),
            estimated_time=int(round_half_up(len(items) * MINUTES_PER_REVIEW)),
        )
        for category, items in grouped.items()
    ]

    return DailyReviewPlan(
        total_reviews=len(queue),
        urgent_reviews=counts[URGENT],
        due_reviews=counts[DUE],
        optional_reviews=counts[OPTIONAL],
        estimated_duration=estimated,
        categories=categories,
        optimization_tips=_optimization_tips(queue, estimated),
    )


def optimize_session(
    all_metrics: Sequence[ItemMetrics],
    all_events: Iterable[MetricEvent],
    now: Optional[datetime] = None,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> SessionOptimization:
    queue = build_review_queue(all_metrics, all_events, now=now, max_items=30, config=config)
    urgent = sum(1 for item in queue if item.priority == URGENT)
    total = len(queue)

    if urgent > total * 0.3:
        progression = "hard_to_easy"
    elif urgent == 0:
        progression = "easy_to_hard"
    else:
        progression = "mixed"

    length = clamp(total * 0.8, 10, 25)
    return SessionOptimization(
        optimal_session_length=length,
        recommended_review_count=min(30, total),
        difficulty_progression=progression,
        break_intervals=[10, 20] if length > 15 else [length],
        focus_areas=_focus_areas(queue),
    )


def analyze_retention(
    all_metrics: Sequence[ItemMetrics],
    all_events: Iterable[MetricEvent],
    now: Optional[datetime] = None,
    config: MemoryConfig = DEFAULT_CONFIG.memory,
) -> RetentionAnalysis:
    now = resolve_now(now)
    models = compute_models(all_metrics, group_events_by_item(all_events), now, config)
    overall = mean([m.retrieval_strength for m in models])

    by_category: Dict[str, List[float]] = defaultdict(list)
    for metrics, model in zip(all_metrics, models):
        by_category[metrics.category or UNCATEGORIZED].append(model.retrieval_strength)
    category_retention = {category: mean(values) for category, values in by_category.items()}

    if overall > 0.7:
        trend = "improving"
    elif overall < 0.5:
        trend = "declining"
    else:
        trend = "stable"

    weak_areas = [
        WeakArea("category", category, retention_rate=retention, impact_score=0.8)
        for category, retention in category_retention.items()
        if retention < 0.6
    ]
    high_decay = [m for m in models if m.decay_rate > 0.2]
    if models and len(high_decay) > len(models) * 0.3:
        weak_areas.append(WeakArea("word_type", "high_decay_words", retention_rate=0.4, impact_score=0.7))
    weak_areas.sort(key=lambda area: area.impact_score, reverse=True)

    return RetentionAnalysis(
        overall_retention=round_half_up(overall * 100, 2),
        category_retention=category_retention,
        retention_trend=trend,
        weak_areas=weak_areas,
        improvement_suggestions=_improvement_suggestions(weak_areas, overall),
    )


def critical_items(insights: ForgettingCurveInsights, limit: int = 5) -> List[str]:
    return [p.item_id for p in insights.most_forgettable_items if p.forgetting_rate > 0.3][:limit]


def _predicted_difficulty(probability: float) -> str:
    if probability > 0.8:
        return "easy"
    if probability > 0.6:
        return "medium"
    return "hard"


def _curve_stage(confidence: float) -> str:
    if confidence > 0.8:
        return "maintenance"
    if confidence > 0.5:
        return "consolidation"
    return "acquisition"


def _priority_counts(items: Sequence[ReviewQueueItem]) -> Dict[str, int]:
    counts = {URGENT: 0, DUE: 0, OPTIONAL: 0}
    for item in items:
        if item.priority in counts:
            counts[item.priority] += 1
    return counts


def _optimization_tips(queue: Sequence[ReviewQueueItem], estimated_duration: int) -> List[str]:
    tips = []
    urgent = sum(1 for item in queue if item.priority == URGENT)
    hard = sum(1 for item in queue if item.predicted_difficulty == "hard")

    if urgent > 10:
        tips.append("Consider breaking reviews into smaller sessions to avoid fatigue")
    if hard > len(queue) * 0.4:
        tips.append("Start with easier words to build confidence before tackling difficult ones")
    if estimated_duration > 30:
        tips.append("Take 5-minute breaks every 15 minutes to maintain focus")
    if len(queue) < 10:
        tips.append("Great job staying on top of reviews! Consider learning new words.")
    return tips[:3]


def _focus_areas(queue: Sequence[ReviewQueueItem]) -> List[str]:
    areas = []
    if any(item.priority == URGENT for item in queue):
        areas.append("Critical word review")

    acquisition = sum(1 for item in queue if item.review_context.forgetting_curve_stage == "acquisition")
    if acquisition > len(queue) * 0.3:
        areas.append("New word acquisition")
    else:
        areas.append("Memory consolidation")

    if any(item.review_context.last_accuracy < 0.6 for item in queue):
        areas.append("Accuracy improvement")
    return areas[:3]


def _improvement_suggestions(weak_areas: Sequence[WeakArea], overall: float) -> List[str]:
    suggestions = []
    if overall < 0.5:
        suggestions.append("Consider reducing daily learning load and focusing on review")
    for area in weak_areas:
        if area.area_type == "category":
            suggestions.append(f"Focus more practice time on {area.identifier} category")
        elif area.area_type == "word_type":
            suggestions.append("Some words may need different learning strategies")
    if not suggestions:
        suggestions.append("Your retention is good! Consider learning new words or harder material")
    return suggestions[:3]
