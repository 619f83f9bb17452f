from __future__ import annotations

from growth_tracker.domain import Area
from pydantic import BaseModel, ConfigDict


class AreaItem(BaseModel):
    area: Area
    name: str
    color: str
    icon: str
    description: str
    prompts: list[str]

    model_config = ConfigDict(from_attributes=True)
