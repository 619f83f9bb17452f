from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AssessmentRecord(Base):
    """One assessment document in a user's collection."""

    __tablename__ = "assessments"
    __table_args__ = (Index("ix_assessments_user_date", "user_id", "date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # {area_id: score}
    scores: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)
    # {area_id: note}
    notes: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<AssessmentRecord(id={self.id}, user_id={self.user_id}, date={self.date})>"
