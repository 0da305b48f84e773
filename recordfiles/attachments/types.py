from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


class Attachment(BaseModel):
    """
    Metadata of one stored file, persisted inside the parent record.
    The bytes live in the object store under ``path + filename``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    filename: str | None = None
    path: str | None = None
    size: int | None = None
    filetype: str | None = None
    url: str | None = None

    @property
    def storage_key(self) -> str:
        return f"{self.path or ''}{self.filename or ''}"


@dataclass(frozen=True)
class UploadRequest:
    """One incoming file, already spooled to a local temporary path."""

    source_path: str
    original_name: str
    mime_type: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class UploadOutcome:
    index: int
    request: UploadRequest
    attachment: Attachment | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchResult:
    """Per-file outcomes of one upload batch, in input order."""

    outcomes: list[UploadOutcome] = field(default_factory=list)

    @property
    def attachments(self) -> list[Attachment]:
        return [o.attachment for o in self.outcomes if o.attachment is not None]

    @property
    def errors(self) -> list[Exception]:
        return [o.error for o in self.outcomes if o.error is not None]

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded


@dataclass
class UpdatePayload:
    """One form-style update of an attachment field."""

    order: str | None = None
    action: str | None = None
    upload_files: UploadRequest | list[UploadRequest] | None = None
