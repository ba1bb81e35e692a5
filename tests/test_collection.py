# ABOUTME: Tests metric-log health statistics and single-session insights.
# ABOUTME: Covers data quality scoring, collection rate, anomaly lookup and session feedback.

from datetime import datetime, timedelta, timezone

import pytest

from src.common.schemas import ACCURACY_RATE, RESPONSE_TIME, SESSION_DURATION, WORDS_PER_MINUTE, MetricEvent
from src.timeseries.collection import collection_stats, find_anomalies, quality_status, session_insights

NOW = datetime(2024, 5, 20, 18, 0, tzinfo=timezone.utc)


def _mk_event(minutes_ago, value, kind=ACCURACY_RATE, **extra):
    return MetricEvent(timestamp=NOW - timedelta(minutes=minutes_ago), metric_kind=kind, value=value, **extra)


def test_complete_recent_log_has_good_quality():
    events = []
    for i in range(20):
        events.append(_mk_event(i * 10, 0.8))
        events.append(_mk_event(i * 10, 3.0, kind=RESPONSE_TIME))
        events.append(_mk_event(i * 10, 5.0, kind=SESSION_DURATION))

    stats = collection_stats(events, now=NOW)
    assert stats.total_data_points == 60
    assert stats.metric_counts == {ACCURACY_RATE: 20, RESPONSE_TIME: 20, SESSION_DURATION: 20}
    assert stats.data_quality == pytest.approx(1.0)
    assert stats.data_quality_status == "good"
    assert stats.last_collection == NOW


def test_single_metric_kind_limits_coverage():
    events = [_mk_event(i, 0.8) for i in range(50)]
    stats = collection_stats(events, now=NOW)
    assert stats.data_quality == pytest.approx(1 / 3)
    assert stats.data_quality_status == "poor"


def test_collection_rate_counts_last_day():
    events = [_mk_event(30 * i, 0.8) for i in range(48)] + [_mk_event(60 * 30, 0.8)]
    assert collection_stats(events, now=NOW).collection_rate == 2.0


def test_empty_log_stats():
    stats = collection_stats([], now=NOW)
    assert stats.total_data_points == 0
    assert stats.data_quality == 0.0
    assert stats.last_collection is None
    assert stats.collection_rate == 0.0
    assert stats.data_quality_status == "poor"


def test_quality_status_bands():
    assert [quality_status(q) for q in (0.8, 0.79, 0.6, 0.59)] == ["good", "fair", "fair", "poor"]


def test_find_anomalies_filters_by_kind():
    events = [_mk_event(60 * 24 * d, 1.0, kind=WORDS_PER_MINUTE) for d in range(1, 21)]
    events.append(_mk_event(0, 10.0, kind=WORDS_PER_MINUTE))
    events += [_mk_event(60 * 24 * d, 10.0, kind=RESPONSE_TIME) for d in range(1, 21)]
    events.append(_mk_event(0, 0.0, kind=RESPONSE_TIME))

    assert len(find_anomalies(events)) == 2
    (only,) = find_anomalies(events, metric_kind=WORDS_PER_MINUTE)
    assert only.metric_kind == WORDS_PER_MINUTE
    assert only.value == 10.0
    assert find_anomalies(events, metric_kind=ACCURACY_RATE) == []


def test_empty_session_prompts_practice():
    insights = session_insights([])
    assert insights.session_trend == "stable"
    assert insights.recommendations == ["Start practicing to see insights"]


def test_improving_session():
    values = [0.5, 0.5, 0.6, 0.9, 0.9, 0.95]
    events = [_mk_event(25 - 5 * i, v) for i, v in enumerate(values)]

    insights = session_insights(events)
    assert insights.session_trend == "improving"
    assert insights.current_patterns == ["Rapid improvement detected", "Extended focused session"]
    assert insights.performance_vs_average == pytest.approx((0.725 - 0.7) / 0.3)
    assert insights.recommendations == ["Great progress! Keep up the momentum"]


def test_declining_long_session_suggests_break():
    values = [0.9, 0.9, 0.9, 0.3, 0.3, 0.3]
    events = [_mk_event(6 - i, v) for i, v in enumerate(values)]

    insights = session_insights(events, duration_minutes=30)
    assert insights.session_trend == "declining"
    assert insights.recommendations == [
        "Consider taking a short break",
        "You may be getting tired, consider shorter sessions",
    ]


def test_steady_response_times():
    events = [_mk_event(2 - i, 3.0, kind=RESPONSE_TIME) for i in range(3)]
    insights = session_insights(events)
    assert insights.current_patterns == ["Consistent response timing", "Quick practice session"]
    assert insights.performance_vs_average == pytest.approx(-2 / 3)
    assert insights.recommendations == ["Try reviewing easier words first", "Good focus and rhythm!"]
