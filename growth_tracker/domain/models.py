from __future__ import annotations

import enum
import math
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from growth_tracker.domain.errors import InvalidArgument

MIN_SCORE = 1
MAX_SCORE = 10
DEFAULT_SCORE = 5
DRAFT_ID_PREFIX = "draft-"


class Area(str, enum.Enum):
    """The four fixed life areas, in declaration order."""

    TECH = "tech"
    PERSONAL = "personal"
    BUSINESS = "business"
    SOCIAL = "social"

    @classmethod
    def coerce(cls, value: Area | str) -> Area:
        """Resolve an area identifier or raise ``InvalidArgument``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidArgument(f"Unknown area '{value}'") from exc


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round to the nearest integer and clamp into the accepted score range."""
    if isinstance(value, bool) or not isinstance(value, int | float) or math.isnan(value):
        raise InvalidArgument(f"Score must be a number, got {value!r}")
    if math.isinf(value):
        return MAX_SCORE if value > 0 else MIN_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, round_half_up(value)))


def _total_map(values: dict[Any, Any], label: str) -> dict[Area, Any]:
    resolved = {Area.coerce(key): value for key, value in values.items()}
    missing = [area.value for area in Area if area not in resolved]
    if missing:
        raise InvalidArgument(f"{label} missing area(s): {', '.join(missing)}")
    return {area: resolved[area] for area in Area}


def default_scores() -> dict[Area, int]:
    return {area: DEFAULT_SCORE for area in Area}


def empty_notes() -> dict[Area, str]:
    return {area: "" for area in Area}


@dataclass(slots=True)
class User:
    """Represents an authenticated actor within the system."""

    user_id: str
    email: str = ""
    roles: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Assessment:
    """A dated snapshot of scores and notes across all four areas.

    Drafts share this shape; they carry a ``draft-`` placeholder id and no
    ``created_at`` until the store persists them.
    """

    id: str
    date: datetime
    scores: dict[Area, int] = field(default_factory=default_scores)
    notes: dict[Area, str] = field(default_factory=empty_notes)
    user_id: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        scores = _total_map(self.scores, "scores")
        self.scores = {area: clamp_score(value) for area, value in scores.items()}
        notes = _total_map(self.notes, "notes")
        self.notes = {area: "" if text is None else str(text) for area, text in notes.items()}

    @classmethod
    def new_draft(cls, *, user_id: str | None = None, now: datetime | None = None) -> Assessment:
        return cls(
            id=f"{DRAFT_ID_PREFIX}{uuid.uuid4()}",
            date=now or datetime.now(UTC),
            user_id=user_id,
        )

    @property
    def is_draft(self) -> bool:
        return self.created_at is None
