from __future__ import annotations

from datetime import datetime

from growth_tracker.domain import Area
from pydantic import BaseModel


class AreaTrendItem(BaseModel):
    area: Area
    name: str
    latest_score: int | None = None
    increasing: bool
    percentage: int
    change: int


class AnalyticsSummaryResponse(BaseModel):
    assessment_count: int
    average_score: float | None = None
    average_display: str | None = None
    trends: list[AreaTrendItem]
    insights: list[str]


class ScorePointItem(BaseModel):
    date: datetime
    score: int


class AreaDetailResponse(BaseModel):
    area: Area
    name: str
    description: str
    color: str
    icon: str
    latest_score: int | None = None
    trend: AreaTrendItem | None = None
    history: list[ScorePointItem]


class ChartDatasetItem(BaseModel):
    area: Area
    label: str
    color: str
    data: list[int]


class ChartResponse(BaseModel):
    labels: list[str]
    datasets: list[ChartDatasetItem]
