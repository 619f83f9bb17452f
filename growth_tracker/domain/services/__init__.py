"""Domain services."""

from growth_tracker.domain.services.analytics import (
    AreaTrend,
    area_history,
    area_trend,
    average_score,
    chart_series,
    insights,
    latest_change,
)
from growth_tracker.domain.services.identity import IdentityProvider
from growth_tracker.domain.services.manager import AssessmentManager, ManagerEvent

__all__ = [
    "AreaTrend",
    "AssessmentManager",
    "IdentityProvider",
    "ManagerEvent",
    "area_history",
    "area_trend",
    "average_score",
    "chart_series",
    "insights",
    "latest_change",
]
