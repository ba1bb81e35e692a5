# ABOUTME: Groups the forgetting-curve model, SM-2 scheduler and review planning.
# ABOUTME: Re-exports the per-item and collection-level memory operations.

from .forgetting_curve import ForgettingCurveModel, ReviewPrediction, compute_model, predict_success
from .scheduling import SpacedRepetitionSchedule, generate_schedule
from .consolidation import MemoryConsolidation, analyze_consolidation
from .insights import ForgettingCurveInsights, get_insights
from .tracking import apply_schedule, record_interaction
from .review_queue import analyze_retention, build_review_queue, critical_items, optimize_session, plan_daily_reviews
from .category import CategoryAnalytics, category_analytics, category_trends, category_weak_points

__all__ = [
    "ForgettingCurveModel",
    "ReviewPrediction",
    "compute_model",
    "predict_success",
    "SpacedRepetitionSchedule",
    "generate_schedule",
    "MemoryConsolidation",
    "analyze_consolidation",
    "ForgettingCurveInsights",
    "get_insights",
    "apply_schedule",
    "record_interaction",
    "analyze_retention",
    "build_review_queue",
    "critical_items",
    "optimize_session",
    "plan_daily_reviews",
    "CategoryAnalytics",
    "category_analytics",
    "category_trends",
    "category_weak_points",
]
