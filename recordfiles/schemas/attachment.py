"""
Attachment Pydantic schemas.
"""
from __future__ import annotations

from pydantic import BaseModel

from recordfiles.attachments.types import Attachment, UploadOutcome


class AttachmentRead(BaseModel):
    id: str
    filename: str | None
    path: str | None
    size: int | None
    filetype: str | None
    url: str | None
    href: str

    @classmethod
    def from_attachment(cls, attachment: Attachment, *, href: str) -> "AttachmentRead":
        return cls(**attachment.model_dump(), href=href)


class UploadOutcomeRead(BaseModel):
    """Result of one file of an upload batch, at its input position."""

    index: int
    filename: str
    attachment: AttachmentRead | None = None
    error: str | None = None

    @classmethod
    def from_outcome(
        cls, outcome: UploadOutcome, *, href: str | None = None
    ) -> "UploadOutcomeRead":
        attachment = None
        if outcome.attachment is not None:
            attachment = AttachmentRead.from_attachment(outcome.attachment, href=href or "")
        return cls(
            index=outcome.index,
            filename=outcome.request.original_name,
            attachment=attachment,
            error=str(outcome.error) if outcome.error is not None else None,
        )
