# ABOUTME: Tests the review queue, daily plan, session sizing and retention breakdown.
# ABOUTME: Builds a small vocabulary with urgent, due, early and not-yet-scheduled items.

import math
import unittest
from datetime import datetime, timedelta, timezone

from src.common.schemas import ACCURACY_RATE, ItemMetrics, MetricEvent, SpacedRepetitionState
from src.memory.forgetting_curve import DUE, PRIORITY_ORDER, TOO_EARLY, URGENT
from src.memory.review_queue import analyze_retention, build_review_queue, optimize_session, plan_daily_reviews

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def _days(n):
    return NOW + timedelta(days=n)


def _mk_metrics(item_id, correct, encounters, last_seen, confidence, category, next_review=None):
    state = None
    if next_review is not None:
        state = SpacedRepetitionState(next_review_date=next_review, ease_factor=2.5, next_interval=3, repetition_number=2)
    return ItemMetrics(
        item_id=item_id,
        encounter_count=encounters,
        correct_count=correct,
        incorrect_count=encounters - correct,
        avg_response_time=2.0,
        first_seen=_days(-30),
        last_seen=last_seen,
        confidence_score=confidence,
        retention_estimate=0.5,
        next_review_date=last_seen,
        spaced_repetition=state,
        category=category,
    )


def _mk_events(item_id, offsets):
    return [
        MetricEvent(timestamp=_days(offset), metric_kind=ACCURACY_RATE, value=1.0, item_id=item_id)
        for offset in offsets
    ]


class TestReviewQueue(unittest.TestCase):
    def setUp(self):
        self.urgent = _mk_metrics("correr", 1, 4, _days(-3), 0.3, "verbs")
        self.due = _mk_metrics("casa", 3, 3, _days(-2), 0.9, "nouns", next_review=_days(-1))
        self.early = _mk_metrics("sol", 3, 3, NOW, 0.9, "nouns", next_review=_days(5))
        self.later = _mk_metrics("luna", 3, 3, _days(-2), 0.9, "nouns", next_review=_days(3))
        self.events = (
            _mk_events("casa", [-6, -4, -2]) + _mk_events("sol", [-4, -2, 0]) + _mk_events("luna", [-6, -4, -2])
        )
        self.metrics = [self.early, self.due, self.later, self.urgent]

    def test_queue_keeps_urgent_and_reached_items_only(self):
        queue = build_review_queue(self.metrics, self.events, now=NOW)

        self.assertEqual([item.item_id for item in queue], ["correr", "casa"])
        self.assertEqual(queue[0].priority, URGENT)
        self.assertEqual(queue[1].priority, DUE)
        self.assertEqual(queue[1].days_overdue, 1)
        self.assertNotIn(TOO_EARLY, {item.priority for item in queue})

    def test_queue_items_carry_context(self):
        queue = build_review_queue(self.metrics, self.events, now=NOW)
        urgent, due = queue

        self.assertEqual(urgent.predicted_difficulty, "hard")
        self.assertEqual(urgent.review_context.forgetting_curve_stage, "acquisition")
        self.assertAlmostEqual(urgent.review_context.last_accuracy, 0.25)
        self.assertEqual(due.category, "nouns")
        self.assertEqual(due.predicted_difficulty, "easy")
        self.assertEqual(due.review_context.forgetting_curve_stage, "maintenance")

    def test_queue_is_ordered_and_truncated(self):
        queue = build_review_queue(self.metrics, self.events, now=NOW)
        ranks = [PRIORITY_ORDER[item.priority] for item in queue]
        self.assertEqual(ranks, sorted(ranks))
        self.assertEqual(len(build_review_queue(self.metrics, self.events, now=NOW, max_items=1)), 1)

    def test_daily_plan_groups_by_category(self):
        plan = plan_daily_reviews(self.metrics, self.events, now=NOW)

        self.assertEqual(plan.total_reviews, 2)
        self.assertEqual(plan.urgent_reviews, 1)
        self.assertEqual(plan.due_reviews, 1)
        self.assertEqual(plan.optional_reviews, 0)
        self.assertEqual(plan.estimated_duration, 1)
        self.assertEqual({c.category: c.item_count for c in plan.categories}, {"verbs": 1, "nouns": 1})
        self.assertLessEqual(len(plan.optimization_tips), 3)
        self.assertTrue(any("Great job" in tip for tip in plan.optimization_tips))

    def test_session_optimization(self):
        session = optimize_session(self.metrics, self.events, now=NOW)

        self.assertEqual(session.difficulty_progression, "hard_to_easy")
        self.assertEqual(session.optimal_session_length, 10)
        self.assertEqual(session.break_intervals, [10])
        self.assertEqual(session.recommended_review_count, 2)
        self.assertEqual(
            session.focus_areas, ["Critical word review", "New word acquisition", "Accuracy improvement"]
        )

    def test_retention_by_category(self):
        analysis = analyze_retention([self.urgent, self.due], self.events, now=NOW)

        expected = (0.3 + math.exp(-0.2)) / 2
        self.assertAlmostEqual(analysis.overall_retention, expected * 100, places=1)
        self.assertEqual(analysis.retention_trend, "stable")
        self.assertAlmostEqual(analysis.category_retention["verbs"], 0.3)
        self.assertEqual([area.identifier for area in analysis.weak_areas], ["verbs"])
        self.assertEqual(analysis.improvement_suggestions[0], "Focus more practice time on verbs category")


def test_empty_inputs_produce_empty_plan():
    plan = plan_daily_reviews([], [], now=NOW)
    assert plan.total_reviews == 0
    assert plan.categories == []
    session = optimize_session([], [], now=NOW)
    assert session.difficulty_progression == "easy_to_hard"
    assert session.recommended_review_count == 0
