from __future__ import annotations

from collections.abc import Sequence

from fastapi import APIRouter, Depends, HTTPException, Query, status
from growth_tracker.api.deps import get_manager
from growth_tracker.api.schemas.analytics import (
    AnalyticsSummaryResponse,
    AreaDetailResponse,
    AreaTrendItem,
    ChartDatasetItem,
    ChartResponse,
    ScorePointItem,
)
from growth_tracker.domain import Area, Assessment
from growth_tracker.domain.errors import InvalidArgument
from growth_tracker.domain.reference_data import AREA_DEFINITIONS
from growth_tracker.domain.services import analytics
from growth_tracker.domain.services.manager import AssessmentManager

router = APIRouter(prefix="/analytics", tags=["Analytics"])


def _trend_item(assessments: Sequence[Assessment], area: Area, window: int) -> AreaTrendItem:
    trend = analytics.area_trend(assessments, area, window)
    return AreaTrendItem(
        area=area,
        name=AREA_DEFINITIONS[area].name,
        latest_score=assessments[0].scores[area] if assessments else None,
        increasing=trend.increasing,
        percentage=trend.percentage,
        change=analytics.latest_change(assessments, area),
    )


@router.get("/summary", response_model=AnalyticsSummaryResponse)
async def analytics_summary(
    window: int | None = Query(None, ge=1, description="Trend window size"),
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AnalyticsSummaryResponse:
    """Latest average, per-area trends and insight messages."""
    assessments = manager.assessments
    window = window or manager.settings.trend_window
    average = manager.average_score()

    return AnalyticsSummaryResponse(
        assessment_count=len(assessments),
        average_score=round(average, 1) if average is not None else None,
        average_display=analytics.format_average(average) if average is not None else None,
        trends=[_trend_item(assessments, area, window) for area in Area],
        insights=manager.insights(),
    )


@router.get("/areas/{area}", response_model=AreaDetailResponse)
async def area_detail(
    area: str,
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AreaDetailResponse:
    try:
        resolved = Area.coerce(area)
    except InvalidArgument as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    assessments = manager.assessments
    definition = AREA_DEFINITIONS[resolved]
    window = manager.settings.trend_window

    return AreaDetailResponse(
        area=resolved,
        name=definition.name,
        description=definition.description,
        color=definition.color,
        icon=definition.icon,
        latest_score=assessments[0].scores[resolved] if assessments else None,
        trend=_trend_item(assessments, resolved, window) if len(assessments) > 1 else None,
        history=[
            ScorePointItem(date=point.date, score=point.score)
            for point in analytics.area_history(assessments, resolved)
        ],
    )


@router.get("/chart", response_model=ChartResponse)
async def chart(
    limit: int | None = Query(None, ge=1, description="Number of recent assessments"),
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> ChartResponse:
    series = analytics.chart_series(manager.assessments, limit or manager.settings.chart_limit)
    return ChartResponse(
        labels=series.labels,
        datasets=[
            ChartDatasetItem(
                area=dataset.area,
                label=dataset.label,
                color=dataset.color,
                data=dataset.data,
            )
            for dataset in series.datasets
        ],
    )
