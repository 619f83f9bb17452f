from __future__ import annotations

from datetime import datetime

from growth_tracker.domain import Area, Assessment
from pydantic import BaseModel, Field


class AssessmentItem(BaseModel):
    id: str
    date: datetime
    scores: dict[Area, int]
    notes: dict[Area, str]
    created_at: datetime | None = Field(None, description="Persistence time; null on a draft")
    is_draft: bool = False
    average_score: float

    @classmethod
    def from_domain(cls, assessment: Assessment, average: float) -> AssessmentItem:
        return cls(
            id=assessment.id,
            date=assessment.date,
            scores=dict(assessment.scores),
            notes=dict(assessment.notes),
            created_at=assessment.created_at,
            is_draft=assessment.is_draft,
            average_score=round(average, 1),
        )


class AssessmentListResponse(BaseModel):
    assessments: list[AssessmentItem]
    count: int
    is_loading: bool = False


class ScoreUpdateRequest(BaseModel):
    value: float = Field(..., description="Score; rounded and clamped into 1..10")


class NoteUpdateRequest(BaseModel):
    text: str = Field("", description="Free-text note stored verbatim")
