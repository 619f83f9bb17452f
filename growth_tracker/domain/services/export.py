"""
JSON export of a user's assessment history.

The file is a pretty-printed UTF-8 JSON array, one object per assessment,
and decodes back into equal ``Assessment`` values.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Protocol

import structlog
from growth_tracker.domain.models import Area, Assessment
from pydantic import BaseModel, ConfigDict, TypeAdapter

logger = structlog.get_logger(__name__)

EXPORT_MEDIA_TYPE = "application/json"
EXPORT_FILENAME_TEMPLATE = "growth-assessment-export-{day}.json"


class AssessmentDocument(BaseModel):
    """Wire form of a single exported assessment."""

    id: str
    date: datetime
    scores: dict[Area, int]
    notes: dict[Area, str]
    user_id: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> Assessment:
        return Assessment(
            id=self.id,
            date=self.date,
            scores=dict(self.scores),
            notes=dict(self.notes),
            user_id=self.user_id,
            created_at=self.created_at,
        )


_documents = TypeAdapter(list[AssessmentDocument])


@dataclass(frozen=True, slots=True)
class ExportedFile:
    filename: str
    content: bytes
    media_type: str = EXPORT_MEDIA_TYPE


class FileSink(Protocol):
    """Delivers a generated file to the user."""

    def deliver(self, exported: ExportedFile) -> None: ...


class DirectoryFileSink:
    """Writes exported files into a local directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def deliver(self, exported: ExportedFile) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / exported.filename
        target.write_bytes(exported.content)
        logger.info("export_written", path=str(target), size=len(exported.content))


def export_filename(day: date | None = None) -> str:
    day = day or datetime.now(UTC).date()
    return EXPORT_FILENAME_TEMPLATE.format(day=day.isoformat())


def encode_assessments(assessments: Sequence[Assessment]) -> bytes:
    documents = [AssessmentDocument.model_validate(item) for item in assessments]
    return _documents.dump_json(documents, indent=2)


def decode_assessments(data: bytes | str) -> list[Assessment]:
    return [document.to_domain() for document in _documents.validate_json(data)]


def build_export(assessments: Sequence[Assessment], *, day: date | None = None) -> ExportedFile:
    return ExportedFile(filename=export_filename(day), content=encode_assessments(assessments))
