"""
Attachment routes nested under records.
/api/v1/records/{record_id}/attachments
The PATCH endpoint takes multipart/form-data: ``order``, ``action`` and any
number of ``upload_files`` parts, applied in that order.
"""
import os
import tempfile
import uuid
from typing import Annotated

from fastapi import APIRouter, File, Form, Request, UploadFile, status

from recordfiles.attachments import UpdatePayload, UploadRequest
from recordfiles.core.config import settings
from recordfiles.core.dependencies import AttachmentField, DBSession
from recordfiles.core.limiter import limiter
from recordfiles.schemas.attachment import AttachmentRead, UploadOutcomeRead
from recordfiles.schemas.record import AttachmentUpdateResult, RecordRead
from recordfiles.services.record_service import record_service

router = APIRouter(prefix="/records/{record_id}/attachments", tags=["Attachments"])


async def _spool(files: list[UploadFile]) -> list[UploadRequest]:
    """Copy each uploaded part to a named temporary file the pipeline can read."""
    uploads: list[UploadRequest] = []
    for upload in files:
        if not upload.filename:
            continue
        content = await upload.read()
        suffix = os.path.splitext(upload.filename)[1]
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
            tmp.write(content)
        uploads.append(
            UploadRequest(
                source_path=tmp.name,
                original_name=upload.filename,
                mime_type=upload.content_type,
                size=len(content),
            )
        )
    return uploads


def _discard(uploads: list[UploadRequest]) -> None:
    for upload in uploads:
        try:
            os.unlink(upload.source_path)
        except FileNotFoundError:
            pass


@router.get(
    "",
    response_model=list[AttachmentRead],
    summary="List a record's attachments in display order",
)
async def list_attachments(
    record_id: uuid.UUID,
    db: DBSession,
    field: AttachmentField,
) -> list[AttachmentRead]:
    record = await record_service.get_record(db, record_id=record_id)
    return RecordRead.from_record(record, field).attachments


@router.patch(
    "",
    response_model=AttachmentUpdateResult,
    summary="Reorder, remove and upload attachments in one request",
)
@limiter.limit(settings.RATE_LIMIT_UPLOAD)
async def update_attachments(
    request: Request,
    record_id: uuid.UUID,
    db: DBSession,
    field: AttachmentField,
    order: Annotated[str | None, Form()] = None,
    action: Annotated[str | None, Form()] = None,
    upload_files: Annotated[list[UploadFile] | None, File()] = None,
) -> AttachmentUpdateResult:
    uploads = await _spool(upload_files or [])
    try:
        record, result = await record_service.update_attachments(
            db,
            record_id=record_id,
            payload=UpdatePayload(order=order, action=action, upload_files=uploads),
            field=field,
        )
    finally:
        _discard(uploads)

    return AttachmentUpdateResult(
        record=RecordRead.from_record(record, field),
        uploads=[
            UploadOutcomeRead.from_outcome(
                outcome,
                href=field.href(outcome.attachment) if outcome.attachment else None,
            )
            for outcome in result.outcomes
        ],
        succeeded=result.succeeded,
        failed=result.failed,
    )


@router.delete(
    "/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove one attachment and delete its stored file",
)
async def delete_attachment(
    record_id: uuid.UUID,
    attachment_id: str,
    db: DBSession,
    field: AttachmentField,
) -> None:
    await record_service.delete_attachment(
        db, record_id=record_id, attachment_id=attachment_id, field=field
    )
