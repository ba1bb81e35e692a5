# ABOUTME: Tests the SM-2 recurrence used to schedule item reviews.
# ABOUTME: Covers first reviews, lapses, the fixed second interval and clamping bounds.

import unittest
from datetime import datetime, timedelta, timezone

import pytest

from src.common.schemas import ItemMetrics, SpacedRepetitionState
from src.memory.scheduling import ease_delta, generate_schedule
from src.memory.tracking import apply_schedule

REVIEWED = datetime(2024, 3, 1, 18, 0, tzinfo=timezone.utc)


def _mk_metrics(state=None, item_id="casa"):
    return ItemMetrics(
        item_id=item_id,
        encounter_count=3,
        correct_count=2,
        incorrect_count=1,
        avg_response_time=2.5,
        first_seen=REVIEWED - timedelta(days=10),
        last_seen=REVIEWED,
        confidence_score=0.67,
        retention_estimate=0.8,
        next_review_date=REVIEWED,
        spaced_repetition=state,
    )


def _mk_state(interval, ease, repetition):
    return SpacedRepetitionState(
        next_review_date=REVIEWED, ease_factor=ease, next_interval=interval, repetition_number=repetition
    )


class TestGenerateSchedule(unittest.TestCase):
    def test_first_review_uses_initial_values(self):
        schedule = generate_schedule(_mk_metrics(), REVIEWED, 5)
        self.assertEqual(schedule.interval_days, 1)
        self.assertAlmostEqual(schedule.ease_factor, 2.5)
        self.assertEqual(schedule.repetition_number, 1)
        self.assertEqual(schedule.last_quality, 5)
        self.assertEqual(schedule.next_review_date, REVIEWED + timedelta(days=1))

    def test_two_successful_reviews_end_to_end(self):
        first = generate_schedule(_mk_metrics(), REVIEWED, 5)
        metrics = apply_schedule(_mk_metrics(), first)

        second = generate_schedule(metrics, REVIEWED + timedelta(days=1), 5)
        self.assertEqual(second.interval_days, 6)
        self.assertAlmostEqual(second.ease_factor, 2.6, places=6)
        self.assertEqual(second.repetition_number, 2)

    def test_third_success_multiplies_interval_by_ease(self):
        schedule = generate_schedule(_mk_metrics(_mk_state(6, 2.6, 2)), REVIEWED, 4)
        # round(6 * 2.6) = 16; quality 4 leaves ease unchanged.
        self.assertEqual(schedule.interval_days, 16)
        self.assertAlmostEqual(schedule.ease_factor, 2.6, places=6)
        self.assertEqual(schedule.repetition_number, 3)

    def test_lapse_resets_interval_and_repetition(self):
        for quality in (0, 1, 2):
            schedule = generate_schedule(_mk_metrics(_mk_state(40, 2.2, 5)), REVIEWED, quality)
            self.assertEqual(schedule.interval_days, 1)
            self.assertEqual(schedule.repetition_number, 0)
            self.assertAlmostEqual(schedule.ease_factor, 2.2)

    def test_first_review_lapse_still_resets(self):
        schedule = generate_schedule(_mk_metrics(), REVIEWED, 1)
        self.assertEqual(schedule.interval_days, 1)
        self.assertEqual(schedule.repetition_number, 0)

    def test_success_after_lapse_restarts_at_one_day(self):
        schedule = generate_schedule(_mk_metrics(_mk_state(1, 2.2, 0)), REVIEWED, 5)
        self.assertEqual(schedule.interval_days, 1)
        self.assertEqual(schedule.repetition_number, 1)


@pytest.mark.parametrize("ease", [1.3, 1.8, 2.5, 3.1])
def test_second_success_is_six_days_regardless_of_ease(ease):
    schedule = generate_schedule(_mk_metrics(_mk_state(1, ease, 1)), REVIEWED, 3)
    assert schedule.interval_days == 6
    assert schedule.repetition_number == 2


def test_ease_never_drops_below_floor():
    schedule = generate_schedule(_mk_metrics(_mk_state(10, 1.3, 4)), REVIEWED, 3)
    assert ease_delta(3) == pytest.approx(-0.14)
    assert schedule.ease_factor == pytest.approx(1.3)


def test_interval_is_capped_at_one_year():
    schedule = generate_schedule(_mk_metrics(_mk_state(300, 2.5, 6)), REVIEWED, 5)
    assert schedule.interval_days == 365
    assert schedule.next_review_date == REVIEWED + timedelta(days=365)


def test_bounds_hold_for_every_quality_and_state():
    states = [None, _mk_state(1, 1.3, 0), _mk_state(6, 2.5, 1), _mk_state(200, 2.9, 8)]
    for state in states:
        for quality in range(6):
            schedule = generate_schedule(_mk_metrics(state), REVIEWED, quality)
            assert 1 <= schedule.interval_days <= 365
            assert schedule.ease_factor >= 1.3


@pytest.mark.parametrize("quality", [-1, 6, 2.5])
def test_invalid_quality_raises(quality):
    with pytest.raises(ValueError, match="Unsupported quality grade"):
        generate_schedule(_mk_metrics(), REVIEWED, quality)
