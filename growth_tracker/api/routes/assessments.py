from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from growth_tracker.api.deps import get_manager, to_http_error
from growth_tracker.api.schemas.assessments import (
    AssessmentItem,
    AssessmentListResponse,
    NoteUpdateRequest,
    ScoreUpdateRequest,
)
from growth_tracker.domain import Assessment
from growth_tracker.domain.errors import GrowthTrackerError
from growth_tracker.domain.services import analytics
from growth_tracker.domain.services.manager import AssessmentManager

router = APIRouter(prefix="/assessments", tags=["Assessments"])


def _item(assessment: Assessment) -> AssessmentItem:
    return AssessmentItem.from_domain(assessment, analytics.average_score(assessment))


def _no_draft() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No assessment in progress")


def _require_draft(manager: AssessmentManager) -> Assessment:
    draft = manager.current_draft
    if draft is None:
        raise _no_draft()
    return draft


@router.get("", response_model=AssessmentListResponse)
async def list_assessments(
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AssessmentListResponse:
    try:
        assessments = await manager.refresh()
    except GrowthTrackerError as exc:
        raise to_http_error(exc) from exc

    return AssessmentListResponse(
        assessments=[_item(item) for item in assessments],
        count=len(assessments),
        is_loading=manager.is_loading,
    )


@router.get("/export")
async def export_assessments(
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> Response:
    """Download the full history as a pretty-printed JSON file."""
    exported = manager.export_data()
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@router.post("/draft", response_model=AssessmentItem, status_code=status.HTTP_201_CREATED)
async def start_draft(
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AssessmentItem:
    """Begin a new assessment; any unsaved draft is discarded."""
    return _item(manager.start())


@router.get("/draft", response_model=AssessmentItem)
async def get_draft(
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AssessmentItem:
    return _item(_require_draft(manager))


@router.delete("/draft", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_draft(
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> Response:
    manager.cancel()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/draft/scores/{area}", response_model=AssessmentItem)
async def update_draft_score(
    area: str,
    payload: ScoreUpdateRequest,
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AssessmentItem:
    try:
        manager.update_score(area, payload.value)
    except GrowthTrackerError as exc:
        raise to_http_error(exc) from exc
    return _item(_require_draft(manager))


@router.put("/draft/notes/{area}", response_model=AssessmentItem)
async def update_draft_note(
    area: str,
    payload: NoteUpdateRequest,
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AssessmentItem:
    try:
        manager.update_note(area, payload.text)
    except GrowthTrackerError as exc:
        raise to_http_error(exc) from exc
    return _item(_require_draft(manager))


@router.post("/draft/save", response_model=AssessmentItem, status_code=status.HTTP_201_CREATED)
async def save_draft(
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> AssessmentItem:
    _require_draft(manager)
    try:
        saved = await manager.save()
    except GrowthTrackerError as exc:
        raise to_http_error(exc) from exc

    if saved is None:
        raise _no_draft()
    return _item(saved)


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assessment(
    assessment_id: str,
    manager: AssessmentManager = Depends(get_manager),  # noqa: B008
) -> Response:
    try:
        await manager.delete(assessment_id)
    except GrowthTrackerError as exc:
        raise to_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
