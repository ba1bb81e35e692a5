# ABOUTME: Converts between canonical records and pandas DataFrames.
# ABOUTME: Used by the services for grouping and by the CLI to read tabular exports.

from __future__ import annotations

from typing import Iterable, List, Optional

import pandas as pd

from .schemas import (
    ItemMetrics,
    MetricEvent,
    SpacedRepetitionState,
    StudySession,
    validate_activity_type,
    validate_metric_kind,
)
from .timeutils import ensure_utc

EVENT_COLUMNS = ["timestamp", "metric_kind", "value", "item_id", "category", "hour", "weekday", "day"]


def events_to_frame(events: Iterable[MetricEvent]) -> pd.DataFrame:
    """
    Flatten metric events into a time-ordered DataFrame with UTC bucket columns.

    hour is 0-23, weekday uses Sunday = 0, day is the UTC calendar date.
    """

    rows = []
    for event in events:
        rows.append(
            {
                "timestamp": ensure_utc(event.timestamp),
                "metric_kind": event.metric_kind,
                "value": float(event.value),
                "item_id": event.item_id,
                "category": event.category,
            }
        )

    if not rows:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    df = pd.DataFrame(rows)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df = df.sort_values("timestamp", kind="mergesort").reset_index(drop=True)
    df["hour"] = df["timestamp"].dt.hour
    df["weekday"] = (df["timestamp"].dt.dayofweek + 1) % 7
    df["day"] = df["timestamp"].dt.strftime("%Y-%m-%d")
    return df


def sort_events(events: Iterable[MetricEvent]) -> List[MetricEvent]:
    return sorted(events, key=lambda e: ensure_utc(e.timestamp))


def events_for_item(events: Iterable[MetricEvent], item_id: str) -> List[MetricEvent]:
    return sort_events(e for e in events if e.item_id == item_id)


def _optional(value) -> Optional[object]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def events_from_frame(df: pd.DataFrame) -> List[MetricEvent]:
    """Build MetricEvent records from a table with timestamp, metric_kind and value columns."""

    if df is None or df.empty:
        return []
    frame = df.copy()
    frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True, errors="coerce")
    frame = frame.dropna(subset=["timestamp"])

    events = []
    for row in frame.to_dict(orient="records"):
        item_id = _optional(row.get("item_id"))
        category = _optional(row.get("category"))
        metadata = row.get("metadata")
        events.append(
            MetricEvent(
                timestamp=ensure_utc(row["timestamp"]),
                metric_kind=validate_metric_kind(row["metric_kind"]),
                value=float(row["value"]),
                item_id=None if item_id is None else str(item_id),
                category=None if category is None else str(category),
                metadata=metadata if isinstance(metadata, dict) else {},
            )
        )
    return events


def sessions_from_frame(df: pd.DataFrame) -> List[StudySession]:
    if df is None or df.empty:
        return []
    frame = df.copy()
    frame["date"] = pd.to_datetime(frame["date"], utc=True, errors="coerce")
    frame = frame.dropna(subset=["date"]).sort_values("date", kind="mergesort")

    sessions = []
    for row in frame.to_dict(orient="records"):
        quiz_score = _optional(row.get("quiz_score"))
        sessions.append(
            StudySession(
                date=ensure_utc(row["date"]),
                duration_minutes=float(row["duration_minutes"]),
                words_practiced=int(_optional(row.get("words_practiced")) or 0),
                activity_type=validate_activity_type(_optional(row.get("activity_type")) or "learning"),
                quiz_score=None if quiz_score is None else float(quiz_score),
                xp_earned=int(_optional(row.get("xp_earned")) or 0),
                words_learned=int(_optional(row.get("words_learned")) or 0),
            )
        )
    return sessions


def metrics_from_frame(df: pd.DataFrame) -> List[ItemMetrics]:
    """
    Build ItemMetrics records from a flat table.

    Optional spaced-repetition columns: sr_next_review_date, sr_ease_factor,
    sr_next_interval, sr_repetition_number.
    """

    if df is None or df.empty:
        return []
    frame = df.copy()
    for column in ("first_seen", "last_seen", "next_review_date", "sr_next_review_date"):
        if column in frame.columns:
            frame[column] = pd.to_datetime(frame[column], utc=True, errors="coerce")

    metrics = []
    for row in frame.to_dict(orient="records"):
        sr_state = None
        if _optional(row.get("sr_next_review_date")) is not None:
            sr_state = SpacedRepetitionState(
                next_review_date=ensure_utc(row["sr_next_review_date"]),
                ease_factor=float(row["sr_ease_factor"]),
                next_interval=int(row["sr_next_interval"]),
                repetition_number=int(row["sr_repetition_number"]),
            )
        encounters = int(row.get("encounter_count", 0))
        correct = int(row.get("correct_count", 0))
        confidence = _optional(row.get("confidence_score"))
        category = _optional(row.get("category"))
        metrics.append(
            ItemMetrics(
                item_id=str(row["item_id"]),
                encounter_count=encounters,
                correct_count=correct,
                incorrect_count=int(row.get("incorrect_count", encounters - correct)),
                avg_response_time=float(_optional(row.get("avg_response_time")) or 0.0),
                first_seen=ensure_utc(row["first_seen"]),
                last_seen=ensure_utc(row["last_seen"]),
                confidence_score=float(confidence) if confidence is not None else 0.0,
                retention_estimate=float(_optional(row.get("retention_estimate")) or 0.0),
                next_review_date=ensure_utc(_optional(row.get("next_review_date")) or row["last_seen"]),
                spaced_repetition=sr_state,
                category=None if category is None else str(category),
            )
        )
    return metrics
