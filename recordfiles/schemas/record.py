"""
Record Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from recordfiles.attachments.entity import RecordEntity
from recordfiles.schemas.attachment import AttachmentRead, UploadOutcomeRead

if TYPE_CHECKING:
    from recordfiles.attachments.field import S3FilesField
    from recordfiles.models.record import Record


# ── Create ────────────────────────────────────────────────────────────────────

class RecordCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=10000)


# ── Update ────────────────────────────────────────────────────────────────────

class RecordUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None


# ── Read ──────────────────────────────────────────────────────────────────────

class RecordRead(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None
    attachments: list[AttachmentRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: "Record", field: "S3FilesField") -> "RecordRead":
        """Serialize a record, resolving each attachment's public link through the field."""
        entity = RecordEntity(record)
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            attachments=[
                AttachmentRead.from_attachment(item, href=field.href(item))
                for item in field.values(entity)
            ],
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class AttachmentUpdateResult(BaseModel):
    """Response of one attachment-field update: the record plus per-file outcomes."""

    record: RecordRead
    uploads: list[UploadOutcomeRead]
    succeeded: int
    failed: int
