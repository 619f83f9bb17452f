"""
Per-user assessment collection backed by SQLAlchemy.

The store is a leaf: it maps between ``Assessment`` values and rows, keeps
newest-first ordering by ``date`` and translates backend failures into the
domain's store errors. It never retries.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

import structlog
from growth_tracker.domain.errors import PermissionDenied, StoreUnavailable
from growth_tracker.domain.models import Assessment
from growth_tracker.infrastructure.db.models import AssessmentRecord
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = structlog.get_logger(__name__)


class AssessmentStore(Protocol):
    """Contract between the assessment manager and its backing store."""

    async def list(self, user_id: str) -> list[Assessment]:
        """Return the user's assessments, newest first by ``date``."""
        ...

    async def create(self, user_id: str, assessment: Assessment) -> Assessment:
        """Persist ``assessment`` and return it with store-assigned id and ``created_at``."""
        ...

    async def delete(self, user_id: str, assessment_id: str) -> None:
        """Remove a document; unknown ids are ignored."""
        ...


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def record_to_assessment(record: AssessmentRecord) -> Assessment:
    return Assessment(
        id=record.id,
        date=_as_utc(record.date),
        scores=dict(record.scores),
        notes=dict(record.notes),
        user_id=record.user_id,
        created_at=_as_utc(record.created_at),
    )


class SqlAssessmentStore:
    """``AssessmentStore`` implementation on an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def list(self, user_id: str) -> list[Assessment]:
        stmt: Select[tuple[AssessmentRecord]] = (
            select(AssessmentRecord)
            .where(AssessmentRecord.user_id == user_id)
            .order_by(AssessmentRecord.date.desc(), AssessmentRecord.created_at.desc())
        )
        try:
            async with self.session_factory() as session:
                records: Sequence[AssessmentRecord] = (await session.scalars(stmt)).all()
        except SQLAlchemyError as exc:
            logger.error("assessment_store_list_failed", user_id=user_id, error=str(exc))
            raise StoreUnavailable("Could not load assessments") from exc

        return [record_to_assessment(record) for record in records]

    async def create(self, user_id: str, assessment: Assessment) -> Assessment:
        if assessment.user_id not in (None, user_id):
            raise PermissionDenied("Cannot create an assessment for another user")

        record = AssessmentRecord(
            user_id=user_id,
            date=assessment.date,
            scores={area.value: score for area, score in assessment.scores.items()},
            notes={area.value: text for area, text in assessment.notes.items()},
            created_at=assessment.created_at or datetime.now(UTC),
        )
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(record)
                await session.refresh(record)
        except SQLAlchemyError as exc:
            logger.error("assessment_store_create_failed", user_id=user_id, error=str(exc))
            raise StoreUnavailable("Could not save assessment") from exc

        logger.info("assessment_store_created", user_id=user_id, assessment_id=record.id)
        return replace(
            assessment,
            id=record.id,
            user_id=user_id,
            created_at=_as_utc(record.created_at),
        )

    async def delete(self, user_id: str, assessment_id: str) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    record = await session.get(AssessmentRecord, assessment_id)
                    if record is None:
                        return
                    if record.user_id != user_id:
                        raise PermissionDenied("Cannot delete another user's assessment")
                    await session.delete(record)
        except SQLAlchemyError as exc:
            logger.error(
                "assessment_store_delete_failed",
                user_id=user_id,
                assessment_id=assessment_id,
                error=str(exc),
            )
            raise StoreUnavailable("Could not delete assessment") from exc

        logger.info("assessment_store_deleted", user_id=user_id, assessment_id=assessment_id)
