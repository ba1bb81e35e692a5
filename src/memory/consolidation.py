# ABOUTME: Estimates how durably an item has been consolidated into long-term memory.
# ABOUTME: Flags interference risk from heavy recent practice and suggests follow-up activities.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from src.common.schemas import ItemMetrics, StudySession
from src.common.stats import clamp
from src.common.timeutils import days_between, resolve_now


@dataclass(frozen=True)
class ConsolidationActivity:
    activity_type: str  # review | test | context | elaboration
    priority: float
    estimated_benefit: float
    time_required: int  # minutes


@dataclass(frozen=True)
class MemoryConsolidation:
    consolidation_score: float
    interference_risk: float
    retrieval_practice_needed: bool
    consolidation_activities: List[ConsolidationActivity]


def analyze_consolidation(
    metrics: ItemMetrics,
    recent_sessions: Iterable[StudySession],
    now: Optional[datetime] = None,
) -> MemoryConsolidation:
    sessions = list(recent_sessions)
    now = resolve_now(now)

    score = consolidation_score(metrics, sessions, now)
    risk = interference_risk(metrics, sessions)

    return MemoryConsolidation(
        consolidation_score=score,
        interference_risk=risk,
        retrieval_practice_needed=score < 0.7 or risk > 0.6,
        consolidation_activities=_activities(score, risk, metrics),
    )


def consolidation_score(metrics: ItemMetrics, sessions: List[StudySession], now: datetime) -> float:
    """Weighted blend: accuracy 60%, session frequency 30%, recency 10%."""

    days_since_seen = days_between(metrics.last_seen, now)
    score = metrics.accuracy * 0.6
    score += min(0.3, len(sessions) / 10) * 0.3
    score += max(0.0, 0.1 - days_since_seen / 100) * 0.1
    return clamp(score, 0.0, 1.0)


def interference_risk(metrics: ItemMetrics, sessions: List[StudySession]) -> float:
    practiced = sum(s.words_practiced for s in sessions)
    volume_risk = min(0.8, practiced / 50)
    return clamp((volume_risk + (1 - metrics.confidence_score)) / 2, 0.0, 1.0)


def _activities(score: float, risk: float, metrics: ItemMetrics) -> List[ConsolidationActivity]:
    activities: List[ConsolidationActivity] = []
    if score < 0.5:
        activities.append(ConsolidationActivity("review", priority=0.9, estimated_benefit=0.8, time_required=3))
    if risk > 0.6:
        activities.append(ConsolidationActivity("context", priority=0.7, estimated_benefit=0.6, time_required=5))
    if metrics.confidence_score < 0.6:
        activities.append(ConsolidationActivity("test", priority=0.8, estimated_benefit=0.7, time_required=2))
    return sorted(activities, key=lambda a: a.priority, reverse=True)
