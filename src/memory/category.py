# ABOUTME: Summarizes learning progress for one vocabulary category.
# ABOUTME: Computes category totals, daily session trends and the weakest items to revisit.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Collection, Iterable, List, Optional, Sequence

import pandas as pd

from src.common.schemas import ACTIVITY_TYPES, ItemMetrics, StudySession
from src.common.stats import round_half_up
from src.common.timeutils import ensure_utc, resolve_now

# Session activities counted toward every category.
CATEGORY_ACTIVITIES = ("flashcard", "quiz", "learning")
TREND_TIMEFRAMES = {"week": 7, "month": 30, "quarter": 90}


class WeakPointThresholds:
    MAX_CONFIDENCE = 0.5
    MIN_ACCURACY = 0.6
    MIN_ENCOUNTERS = 3
    LOW_ACCURACY = 0.4
    LIMIT = 10


@dataclass(frozen=True)
class CategoryAnalytics:
    category: str
    total_items: int
    items_learned: int
    items_in_progress: int
    average_accuracy: float  # percent
    time_spent_minutes: float
    preferred_mode: str
    last_activity: datetime


@dataclass(frozen=True)
class CategoryTrendPoint:
    date: str
    sessions: int
    words_practiced: int
    xp_earned: int
    average_score: float
    time_spent: float
    efficiency: float  # xp per word practiced


@dataclass(frozen=True)
class CategoryWeakPoint:
    item_id: str
    accuracy_rate: float  # percent
    confidence_score: float  # percent
    encounters: int
    last_seen: datetime
    issue_type: str  # low_accuracy | needs_practice


def category_metrics(all_metrics: Iterable[ItemMetrics], category: str) -> List[ItemMetrics]:
    return [m for m in all_metrics if m.category == category]


def category_analytics(
    category: str,
    all_metrics: Iterable[ItemMetrics],
    sessions: Iterable[StudySession],
    learned_item_ids: Collection[str] = (),
    category_items: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> CategoryAnalytics:
    """
    Progress summary for one category.

    ``category_items`` is the category's full item catalog; when omitted the
    items with metrics in the category stand in for it. Accuracy is weighted
    by encounter count and reported as a percentage.
    """

    metrics = category_metrics(all_metrics, category)
    if category_items is None:
        category_items = [m.item_id for m in metrics]
    catalog = set(category_items)
    metrics = [m for m in metrics if m.item_id in catalog]

    learned = sum(1 for item_id in catalog if item_id in learned_item_ids)
    encounters = sum(m.encounter_count for m in metrics if m.encounter_count > 0)
    correct = sum(m.correct_count for m in metrics if m.encounter_count > 0)
    accuracy = correct / encounters if encounters else 0.0

    relevant = [s for s in sessions if s.activity_type in CATEGORY_ACTIVITIES]
    counts = {activity: 0 for activity in ACTIVITY_TYPES}
    for session in relevant:
        counts[session.activity_type] += 1
    # Ties go to the activity listed last.
    preferred = max(reversed(ACTIVITY_TYPES), key=lambda activity: counts[activity])

    last_activity = max((ensure_utc(s.date) for s in relevant), default=None)
    return CategoryAnalytics(
        category=category,
        total_items=len(catalog),
        items_learned=learned,
        items_in_progress=max(0, len(metrics) - learned),
        average_accuracy=round_half_up(accuracy * 100, 2),
        time_spent_minutes=float(sum(s.duration_minutes for s in relevant)),
        preferred_mode=preferred,
        last_activity=last_activity if last_activity is not None else resolve_now(now),
    )


def category_trends(
    sessions: Iterable[StudySession],
    timeframe: str = "month",
    now: Optional[datetime] = None,
) -> List[CategoryTrendPoint]:
    """Per-day session totals after the start of the timeframe, oldest day first."""

    normalized = str(timeframe).strip().lower()
    if normalized not in TREND_TIMEFRAMES:
        raise ValueError(f"Unsupported trend timeframe '{timeframe}'. Expected one of: {', '.join(TREND_TIMEFRAMES)}.")
    now = resolve_now(now)
    cutoff = now - timedelta(days=TREND_TIMEFRAMES[normalized])

    rows = [
        {
            "date": ensure_utc(s.date),
            "words_practiced": s.words_practiced,
            "xp_earned": s.xp_earned,
            "quiz_score": s.quiz_score if s.quiz_score is not None else 0.0,
            "duration_minutes": s.duration_minutes,
        }
        for s in sessions
        if ensure_utc(s.date) > cutoff
    ]
    if not rows:
        return []

    df = pd.DataFrame(rows)
    df["day"] = [moment.strftime("%Y-%m-%d") for moment in df["date"]]
    daily = (
        df.groupby("day", sort=True)
        .agg(
            sessions=("date", "count"),
            words_practiced=("words_practiced", "sum"),
            xp_earned=("xp_earned", "sum"),
            average_score=("quiz_score", "mean"),
            time_spent=("duration_minutes", "sum"),
        )
        .reset_index()
    )

    points = []
    for row in daily.to_dict(orient="records"):
        words = int(row["words_practiced"])
        xp = int(row["xp_earned"])
        points.append(
            CategoryTrendPoint(
                date=row["day"],
                sessions=int(row["sessions"]),
                words_practiced=words,
                xp_earned=xp,
                average_score=round_half_up(float(row["average_score"]), 2),
                time_spent=float(row["time_spent"]),
                efficiency=xp / words if words > 0 else 0.0,
            )
        )
    return points


def category_weak_points(
    metrics: Iterable[ItemMetrics], limit: int = WeakPointThresholds.LIMIT
) -> List[CategoryWeakPoint]:
    """Items with enough encounters but low confidence or accuracy, least confident first."""

    weak = []
    for m in metrics:
        if m.encounter_count < WeakPointThresholds.MIN_ENCOUNTERS:
            continue
        if m.confidence_score < WeakPointThresholds.MAX_CONFIDENCE or m.accuracy < WeakPointThresholds.MIN_ACCURACY:
            weak.append(m)
    weak.sort(key=lambda m: m.confidence_score)

    return [
        CategoryWeakPoint(
            item_id=m.item_id,
            accuracy_rate=round_half_up(m.accuracy * 100, 2),
            confidence_score=round_half_up(m.confidence_score * 100, 2),
            encounters=m.encounter_count,
            last_seen=ensure_utc(m.last_seen),
            issue_type="low_accuracy" if m.accuracy < WeakPointThresholds.LOW_ACCURACY else "needs_practice",
        )
        for m in weak[:limit]
    ]
