from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from growth_tracker.api.schemas.areas import AreaItem
from growth_tracker.domain.errors import InvalidArgument
from growth_tracker.domain.reference_data import AREA_DEFINITIONS, get_area_definition

router = APIRouter(prefix="/areas", tags=["Areas"])


@router.get("", response_model=list[AreaItem])
async def list_areas() -> list[AreaItem]:
    return [AreaItem.model_validate(definition) for definition in AREA_DEFINITIONS.values()]


@router.get("/{area}", response_model=AreaItem)
async def get_area(area: str) -> AreaItem:
    try:
        definition = get_area_definition(area)
    except InvalidArgument as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AreaItem.model_validate(definition)
