from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

from growth_tracker.api.deps import issue_smoke_token
from growth_tracker.core.auth import MEMBER_ROLE
from growth_tracker.core.config import Settings, get_settings
from growth_tracker.domain import Area, Assessment
from growth_tracker.domain.errors import PermissionDenied, StoreUnavailable

BASE_DATE = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


def auth_headers(user_id: str = "member-1", role: str = MEMBER_ROLE) -> dict[str, str]:
    token = issue_smoke_token(user_id, role=role, email="member@example.com")
    return {"Authorization": f"Bearer {token}"}


def make_settings(**overrides: Any) -> Settings:
    defaults: dict[str, Any] = {"store_retry_backoff_seconds": 0.0}
    defaults.update(overrides)
    return get_settings().model_copy(update=defaults)


def make_assessment(
    assessment_id: str = "a-1",
    *,
    weeks_ago: int = 0,
    user_id: str | None = "member-1",
    notes: dict[str, str] | None = None,
    **scores: int,
) -> Assessment:
    """Build a persisted-looking assessment; unspecified areas score 5."""
    date = BASE_DATE - timedelta(weeks=weeks_ago)
    return Assessment(
        id=assessment_id,
        date=date,
        scores={area: scores.get(area.value, 5) for area in Area},
        notes={area: (notes or {}).get(area.value, "") for area in Area},
        user_id=user_id,
        created_at=date,
    )


async def drain(iterations: int = 10) -> None:
    """Let pending tasks on the running loop make progress."""
    for _ in range(iterations):
        await asyncio.sleep(0)


class FakeAssessmentStore:
    """In-memory ``AssessmentStore`` with hooks for slow and failing calls."""

    def __init__(self, documents: dict[str, list[Assessment]] | None = None) -> None:
        self.documents = {user: list(items) for user, items in (documents or {}).items()}
        self.list_calls: list[str] = []
        self.create_calls: list[tuple[str, Assessment]] = []
        self.delete_calls: list[tuple[str, str]] = []
        self.list_gates: dict[str, asyncio.Event] = {}
        self.create_gate: asyncio.Event | None = None
        self.failures_remaining = 0

    def _maybe_fail(self) -> None:
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise StoreUnavailable("backend offline")

    async def list(self, user_id: str) -> list[Assessment]:
        self.list_calls.append(user_id)
        gate = self.list_gates.get(user_id)
        if gate is not None:
            await gate.wait()
        self._maybe_fail()
        items = self.documents.get(user_id, [])
        return sorted(items, key=lambda item: item.date, reverse=True)

    async def create(self, user_id: str, assessment: Assessment) -> Assessment:
        self.create_calls.append((user_id, assessment))
        if self.create_gate is not None:
            await self.create_gate.wait()
        self._maybe_fail()
        if assessment.user_id not in (None, user_id):
            raise PermissionDenied("wrong owner")
        persisted = replace(
            assessment,
            id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=assessment.created_at or datetime.now(UTC),
        )
        self.documents.setdefault(user_id, []).append(persisted)
        return persisted

    async def delete(self, user_id: str, assessment_id: str) -> None:
        self.delete_calls.append((user_id, assessment_id))
        self._maybe_fail()
        self.documents[user_id] = [
            item for item in self.documents.get(user_id, []) if item.id != assessment_id
        ]
