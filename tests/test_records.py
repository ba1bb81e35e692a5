# ABOUTME: Tests conversion between tabular exports and canonical records.
# ABOUTME: Covers the event frame bucket columns and parsing of metrics and session tables.

from datetime import datetime, timezone

import pandas as pd
import pytest

from src.common.records import (
    EVENT_COLUMNS,
    events_from_frame,
    events_to_frame,
    metrics_from_frame,
    sessions_from_frame,
)
from src.common.schemas import ACCURACY_RATE, MetricEvent


def test_event_frame_adds_utc_buckets():
    events = [
        MetricEvent(timestamp=datetime(2024, 3, 4, 9, 30), metric_kind=ACCURACY_RATE, value=0.5),
        MetricEvent(timestamp=datetime(2024, 3, 3, 23, 5, tzinfo=timezone.utc), metric_kind=ACCURACY_RATE, value=1),
    ]
    df = events_to_frame(events)

    assert list(df.columns) == EVENT_COLUMNS
    # Sorted by time: the Sunday event comes first.
    assert df["weekday"].tolist() == [0, 1]
    assert df["hour"].tolist() == [23, 9]
    assert df["day"].tolist() == ["2024-03-03", "2024-03-04"]


def test_empty_event_frame_has_columns():
    df = events_to_frame([])
    assert df.empty
    assert list(df.columns) == EVENT_COLUMNS


def test_events_from_frame_validates_kind():
    good = pd.DataFrame(
        {"timestamp": ["2024-03-04T09:00:00Z"], "metric_kind": ["Accuracy_Rate"], "value": [0.75], "item_id": ["sol"]}
    )
    (event,) = events_from_frame(good)
    assert event.metric_kind == ACCURACY_RATE
    assert event.item_id == "sol"
    assert event.category is None
    assert event.timestamp == datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)

    bad = good.assign(metric_kind=["heart_rate"])
    with pytest.raises(ValueError, match="Unsupported metric kind"):
        events_from_frame(bad)


def test_metrics_from_frame_reads_spaced_repetition_columns():
    df = pd.DataFrame(
        [
            {
                "item_id": "sol",
                "encounter_count": 4,
                "correct_count": 3,
                "avg_response_time": 2.5,
                "first_seen": "2024-03-01T10:00:00Z",
                "last_seen": "2024-03-04T10:00:00Z",
                "confidence_score": 0.75,
                "sr_next_review_date": "2024-03-10T10:00:00Z",
                "sr_ease_factor": 2.6,
                "sr_next_interval": 6,
                "sr_repetition_number": 2,
                "category": "nouns",
            },
            {
                "item_id": "luna",
                "encounter_count": 1,
                "correct_count": 0,
                "first_seen": "2024-03-04T10:00:00Z",
                "last_seen": "2024-03-04T10:00:00Z",
                "sr_next_review_date": None,
            },
        ]
    )
    sol, luna = metrics_from_frame(df)

    assert sol.incorrect_count == 1
    assert sol.spaced_repetition.next_interval == 6
    assert sol.spaced_repetition.next_review_date == datetime(2024, 3, 10, 10, 0, tzinfo=timezone.utc)
    assert sol.category == "nouns"
    assert luna.spaced_repetition is None
    assert luna.next_review_date == luna.last_seen
    assert luna.category is None


def test_sessions_from_frame_sorts_and_validates():
    df = pd.DataFrame(
        {
            "date": ["2024-03-05T18:00:00Z", "2024-03-04T18:00:00Z"],
            "duration_minutes": [12, 30],
            "words_practiced": [10, 25],
            "activity_type": ["quiz", "Review"],
        }
    )
    first, second = sessions_from_frame(df)
    assert first.activity_type == "review"
    assert first.duration_minutes == 30.0
    assert second.quiz_score is None

    with pytest.raises(ValueError, match="Unsupported activity type"):
        sessions_from_frame(df.assign(activity_type=["quiz", "karaoke"]))


def test_blank_activity_type_defaults_to_learning():
    df = pd.DataFrame(
        {
            "date": ["2024-03-04T18:00:00Z", "2024-03-05T18:00:00Z"],
            "duration_minutes": [12, 30],
            "activity_type": ["quiz", None],
        }
    )
    first, second = sessions_from_frame(df)
    assert first.activity_type == "quiz"
    assert second.activity_type == "learning"
