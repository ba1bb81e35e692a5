# ABOUTME: Tests consolidation scoring, interference risk and suggested activities.
# ABOUTME: Uses hand-built item metrics and session histories.

from datetime import datetime, timedelta, timezone

import pytest

from src.common.schemas import ItemMetrics, StudySession
from src.memory.consolidation import analyze_consolidation

NOW = datetime(2024, 6, 20, 8, 0, tzinfo=timezone.utc)


def _mk_metrics(correct, encounters, confidence, days_ago=0):
    seen = NOW - timedelta(days=days_ago)
    return ItemMetrics(
        item_id="agua",
        encounter_count=encounters,
        correct_count=correct,
        incorrect_count=encounters - correct,
        avg_response_time=2.0,
        first_seen=seen - timedelta(days=30),
        last_seen=seen,
        confidence_score=confidence,
        retention_estimate=0.5,
        next_review_date=seen,
    )


def _mk_sessions(count, words):
    return [
        StudySession(date=NOW - timedelta(days=i), duration_minutes=10, words_practiced=words, activity_type="review")
        for i in range(count)
    ]


def test_weak_item_gets_review_and_test_activities():
    result = analyze_consolidation(_mk_metrics(2, 10, 0.2, days_ago=20), [], now=NOW)

    assert result.consolidation_score == pytest.approx(0.12)
    assert result.interference_risk == pytest.approx(0.4)
    assert result.retrieval_practice_needed is True
    assert [a.activity_type for a in result.consolidation_activities] == ["review", "test"]


def test_heavy_recent_practice_raises_interference():
    result = analyze_consolidation(_mk_metrics(8, 10, 0.5), _mk_sessions(5, 20), now=NOW)

    assert result.interference_risk == pytest.approx(0.65)
    assert result.retrieval_practice_needed is True
    types = [a.activity_type for a in result.consolidation_activities]
    assert "context" in types
    priorities = [a.priority for a in result.consolidation_activities]
    assert priorities == sorted(priorities, reverse=True)


def test_well_consolidated_item_needs_no_activities():
    result = analyze_consolidation(_mk_metrics(10, 10, 0.95), _mk_sessions(10, 1), now=NOW)

    assert result.consolidation_score == pytest.approx(0.7)
    assert result.interference_risk == pytest.approx(0.125)
    assert result.consolidation_activities == []
