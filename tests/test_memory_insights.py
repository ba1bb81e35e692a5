# ABOUTME: Tests collection-level forgetting-curve insights.
# ABOUTME: Checks due/overdue counting, rankings, retention averages and critical items.

import math
from datetime import datetime, timedelta, timezone

import pytest

from src.common.schemas import ACCURACY_RATE, ItemMetrics, MetricEvent
from src.memory.insights import ForgettingCurveInsights, ItemForgettingProfile, get_insights
from src.memory.review_queue import critical_items

NOW = datetime(2024, 4, 20, 12, 0, tzinfo=timezone.utc)


def _mk_metrics(item_id, correct, encounters):
    return ItemMetrics(
        item_id=item_id,
        encounter_count=encounters,
        correct_count=correct,
        incorrect_count=encounters - correct,
        avg_response_time=2.0,
        first_seen=NOW - timedelta(days=30),
        last_seen=NOW,
        confidence_score=correct / encounters,
        retention_estimate=0.5,
        next_review_date=NOW,
    )


def _mk_event(item_id, days_ago, value):
    return MetricEvent(
        timestamp=NOW - timedelta(days=days_ago), metric_kind=ACCURACY_RATE, value=value, item_id=item_id
    )


def test_empty_collection_returns_zeroed_insights():
    insights = get_insights([], [], now=NOW)
    assert insights.total_items == 0
    assert insights.items_due == 0
    assert insights.average_retention == 0.0
    assert insights.memory_stability_trend == "stable"
    assert insights.most_forgettable_items == []


def test_insights_count_due_and_rank_items():
    metrics = [_mk_metrics("nuevo", 0, 1), _mk_metrics("olvidado", 1, 3)]
    events = [_mk_event("olvidado", 10, 1.0), _mk_event("olvidado", 5, 0.5), _mk_event("olvidado", 0, 0.0)]

    insights = get_insights(metrics, events, now=NOW)

    # The item without history counts as long overdue; the other was just seen.
    assert insights.total_items == 2
    assert insights.items_due == 1
    assert insights.items_overdue == 1
    assert insights.optimal_daily_reviews == 0
    assert insights.average_retention == pytest.approx((0.3 + 0.05) / 2 * 100)
    assert insights.memory_stability_trend == "declining"

    assert insights.most_forgettable_items[0].item_id == "olvidado"
    assert insights.most_forgettable_items[0].forgetting_rate == pytest.approx(0.11)
    assert insights.strongest_memories[0].item_id == "nuevo"
    assert insights.strongest_memories[0].total_reviews == 1


def test_critical_items_filters_fast_forgetting():
    profiles = [
        ItemForgettingProfile("rapido", 0.45, 0.2, 0.3, NOW, 4),
        ItemForgettingProfile("medio", 0.31, 0.4, 0.5, NOW, 6),
        ItemForgettingProfile("lento", 0.1, 0.9, 0.9, NOW, 12),
    ]
    insights = ForgettingCurveInsights(3, 1, 0, 0, 50.0, "stable", profiles, list(reversed(profiles)))

    assert critical_items(insights) == ["rapido", "medio"]
    assert critical_items(insights, limit=1) == ["rapido"]


def test_average_retention_is_percent():
    metrics = [_mk_metrics("uno", 3, 3)]
    events = [_mk_event("uno", 4, 1.0), _mk_event("uno", 2, 1.0), _mk_event("uno", 1, 1.0)]
    insights = get_insights(metrics, events, now=NOW)
    assert insights.average_retention == pytest.approx(math.exp(-0.1) * 100, abs=0.01)
