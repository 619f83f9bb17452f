"""
Read-only analytics over a newest-first sequence of assessments.

None of these functions mutate their input; callers pass the manager's
snapshot and render the results.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import structlog
from growth_tracker.domain.models import Area, Assessment, round_half_up
from growth_tracker.domain.reference_data import AREA_DEFINITIONS

logger = structlog.get_logger(__name__)

DEFAULT_TREND_WINDOW = 4
DEFAULT_CHART_LIMIT = 8
INSIGHT_DELTA_THRESHOLD = 2
HIGH_AVERAGE_THRESHOLD = 8
LOW_AVERAGE_THRESHOLD = 6

ONBOARDING_INSIGHT = "Start tracking your growth to receive personalized insights."
HIGH_AVERAGE_INSIGHT = "You're doing well across all areas. Keep up the great work!"
LOW_AVERAGE_INSIGHT = (
    "Consider setting specific goals for improvement in your lower-scoring areas."
)
STEADY_INSIGHT = "You're making steady progress. Focus on consistency for continued growth."


@dataclass(frozen=True, slots=True)
class AreaTrend:
    increasing: bool
    percentage: int


@dataclass(frozen=True, slots=True)
class ScorePoint:
    date: datetime
    score: int


@dataclass(frozen=True, slots=True)
class ChartDataset:
    area: Area
    label: str
    color: str
    data: list[int]


@dataclass(frozen=True, slots=True)
class ChartSeries:
    labels: list[str]
    datasets: list[ChartDataset]


NEUTRAL_TREND = AreaTrend(increasing=True, percentage=0)


def average_score(assessment: Assessment) -> float:
    """Arithmetic mean of the four area scores."""
    scores = [assessment.scores[area] for area in Area]
    return sum(scores) / len(scores)


def format_average(value: float) -> str:
    """One-decimal display form of an average score."""
    return f"{value:.1f}"


def area_trend(
    assessments: Sequence[Assessment],
    area: Area | str,
    window_size: int = DEFAULT_TREND_WINDOW,
) -> AreaTrend:
    """
    Compare the newest and oldest score inside the recent window.

    The window is the first ``min(window_size, len(assessments))`` entries.
    Fewer than two assessments yield a neutral ``(True, 0)`` trend.
    """
    area = Area.coerce(area)
    if len(assessments) < 2:
        return NEUTRAL_TREND

    window = assessments[: max(1, min(window_size, len(assessments)))]
    newest = window[0].scores[area]
    oldest = window[-1].scores[area]
    difference = newest - oldest

    if oldest <= 0:
        logger.warning("area_trend_non_positive_baseline", area=area.value, oldest=oldest)
        return AreaTrend(increasing=difference >= 0, percentage=0)

    return AreaTrend(
        increasing=difference >= 0,
        percentage=round_half_up(abs(difference) / oldest * 100),
    )


def latest_change(assessments: Sequence[Assessment], area: Area | str) -> int:
    """Signed score difference between the two newest assessments."""
    area = Area.coerce(area)
    if len(assessments) < 2:
        return 0
    return assessments[0].scores[area] - assessments[1].scores[area]


def insights(assessments: Sequence[Assessment]) -> list[str]:
    """Human-readable observations about the two most recent assessments."""
    if len(assessments) < 2:
        return [ONBOARDING_INSIGHT]

    latest, previous = assessments[0], assessments[1]
    messages: list[str] = []

    for area, definition in AREA_DEFINITIONS.items():
        difference = latest.scores[area] - previous.scores[area]
        if difference >= INSIGHT_DELTA_THRESHOLD:
            messages.append(
                f"Great progress in {definition.name}! You've improved by {difference} points."
            )
        elif difference <= -INSIGHT_DELTA_THRESHOLD:
            messages.append(
                f"Your {definition.name} score has decreased by {abs(difference)} points. "
                "Consider focusing on this area."
            )

    if messages:
        return messages

    average = average_score(latest)
    if average >= HIGH_AVERAGE_THRESHOLD:
        return [HIGH_AVERAGE_INSIGHT]
    if average <= LOW_AVERAGE_THRESHOLD:
        return [LOW_AVERAGE_INSIGHT]
    return [STEADY_INSIGHT]


def area_history(assessments: Sequence[Assessment], area: Area | str) -> list[ScorePoint]:
    """Oldest-first score points for a single area."""
    area = Area.coerce(area)
    return [ScorePoint(date=item.date, score=item.scores[area]) for item in reversed(assessments)]


def chart_series(
    assessments: Sequence[Assessment], limit: int = DEFAULT_CHART_LIMIT
) -> ChartSeries:
    """Oldest-first labels and one dataset per area for the most recent ``limit`` entries."""
    recent = list(reversed(assessments[:limit]))
    labels = [f"{item.date:%b} {item.date.day}" for item in recent]
    datasets = [
        ChartDataset(
            area=area,
            label=definition.name,
            color=definition.color,
            data=[item.scores[area] for item in recent],
        )
        for area, definition in AREA_DEFINITIONS.items()
    ]
    return ChartSeries(labels=labels, datasets=datasets)
