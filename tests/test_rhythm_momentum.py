# ABOUTME: Tests learning rhythm extraction and momentum scoring.
# ABOUTME: Hour profiles and accuracy sequences are chosen so expected values are exact.

import unittest
from datetime import datetime, timedelta, timezone

import pytest

from src.common.schemas import ACCURACY_RATE, MetricEvent, StudySession
from src.temporal.momentum import BUILDING, DECLINING, MAINTAINING, analyze_momentum
from src.temporal.rhythm import analyze_rhythm

NOW = datetime(2024, 2, 15, 0, 0, tzinfo=timezone.utc)


def rhythm_events():
    day = datetime(2024, 1, 1, tzinfo=timezone.utc)
    events = []
    for hour, value, count in [(9, 1.0, 3), (10, 1.0, 3), (11, 1.0, 3), (14, 0.5, 3), (15, 0.5, 3), (16, 0.5, 3), (20, 0.5, 3), (22, 0.5, 2)]:
        for minute in range(count):
            events.append(MetricEvent(timestamp=day + timedelta(hours=hour, minutes=minute), metric_kind=ACCURACY_RATE, value=value))
    return events


class TestRhythm(unittest.TestCase):
    def test_rhythm_ranks_well_sampled_hours(self):
        rhythm = analyze_rhythm(rhythm_events())

        self.assertEqual(rhythm.optimal_hours, [9, 10, 11, 14])
        window = rhythm.peak_performance_window
        self.assertEqual((window.start_hour, window.end_hour), (9, 12))
        self.assertAlmostEqual(window.performance_multiplier, 1.4)
        energy = rhythm.energy_decline_pattern
        self.assertEqual(energy.peak_hours, [9, 10, 11])
        self.assertEqual(energy.decline_hours, [15, 16, 20])
        self.assertEqual(energy.recovery_hours, [14, 15])
        self.assertEqual(energy.fatigue_threshold, 45)
        self.assertAlmostEqual(rhythm.rhythm_strength, (0.3 / 4.9) / (5 / 7), places=4)
        self.assertEqual(rhythm.consistency_score, 1.0)

    def test_empty_log_uses_default_window(self):
        rhythm = analyze_rhythm([])

        self.assertEqual(rhythm.optimal_hours, [])
        self.assertEqual(rhythm.peak_performance_window.start_hour, 9)
        self.assertEqual(rhythm.peak_performance_window.end_hour, 11)
        self.assertEqual(rhythm.peak_performance_window.performance_multiplier, 1.0)
        self.assertEqual(rhythm.rhythm_strength, 0.0)
        self.assertEqual(rhythm.consistency_score, 0.0)


def _sessions(days_ago):
    return [
        StudySession(date=NOW - timedelta(days=d, hours=3), duration_minutes=10, words_practiced=8, activity_type="review")
        for d in days_ago
    ]


def _accuracy(values, days_back=1):
    start = NOW - timedelta(days=days_back)
    return [
        MetricEvent(timestamp=start + timedelta(minutes=10 * i), metric_kind=ACCURACY_RATE, value=v)
        for i, v in enumerate(values)
    ]


def test_rising_accuracy_builds_momentum():
    momentum = analyze_momentum(_accuracy([0.5] * 6 + [0.9] * 6), _sessions(range(7)), now=NOW)

    assert momentum.current_streak_strength == pytest.approx(0.5)
    assert momentum.momentum_direction == BUILDING
    assert momentum.predicted_continuation == 5
    assert momentum.breakthrough_probability == 0.3
    assert momentum.plateau_risk == 0.3


def test_falling_accuracy_declines():
    momentum = analyze_momentum(_accuracy([0.9] * 6 + [0.5] * 6), _sessions(range(7)), now=NOW)
    assert momentum.momentum_direction == DECLINING
    assert momentum.predicted_continuation == 2


def test_sparse_history_is_maintaining():
    momentum = analyze_momentum(_accuracy([0.5, 0.9]), [], now=NOW)
    assert momentum.momentum_direction == MAINTAINING
    assert momentum.current_streak_strength == 0.0
    assert momentum.predicted_continuation == 0


def test_recent_jump_signals_breakthrough():
    momentum = analyze_momentum(_accuracy([0.5] * 20 + [0.9] * 10, days_back=5), [], now=NOW)
    assert momentum.breakthrough_probability == pytest.approx(0.9)


def test_flat_accuracy_signals_plateau():
    momentum = analyze_momentum(_accuracy([0.7] * 20, days_back=5), [], now=NOW)
    assert momentum.plateau_risk == pytest.approx(0.9)
    assert momentum.momentum_direction == MAINTAINING


def test_old_sessions_do_not_count_toward_streak():
    momentum = analyze_momentum([], _sessions([20, 25, 30]), now=NOW)
    assert momentum.current_streak_strength == 0.0


def test_streak_counts_at_most_the_window_days():
    now = NOW + timedelta(hours=12)
    daily = [
        StudySession(date=now - timedelta(days=14) + timedelta(hours=1, days=i), duration_minutes=10, words_practiced=8, activity_type="review")
        for i in range(15)
    ]
    momentum = analyze_momentum([], daily, now=now)
    assert 0.0 <= momentum.current_streak_strength <= 1.0
    # The session after now and the one fifteen calendar days back fall outside.
    assert momentum.current_streak_strength == pytest.approx(13 / 14)
    assert momentum.predicted_continuation <= 7


def test_future_sessions_and_events_are_ignored():
    future = [
        StudySession(date=NOW + timedelta(days=d), duration_minutes=10, words_practiced=8, activity_type="review")
        for d in range(1, 30)
    ]
    later = [MetricEvent(timestamp=NOW + timedelta(hours=h), metric_kind=ACCURACY_RATE, value=0.7) for h in range(1, 25)]

    momentum = analyze_momentum(later, future, now=NOW)
    assert momentum.current_streak_strength == 0.0
    assert momentum.predicted_continuation == 0
    assert momentum.plateau_risk == 0.3
