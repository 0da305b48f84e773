"""
Record routes.
CRUD over records; attachment lists are managed under /records/{id}/attachments.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from recordfiles.core.dependencies import AttachmentField, DBSession
from recordfiles.schemas.pagination import PaginatedResponse
from recordfiles.schemas.record import RecordCreate, RecordRead, RecordUpdate
from recordfiles.services.record_service import record_service

router = APIRouter(prefix="/records", tags=["Records"])


@router.get(
    "/",
    response_model=PaginatedResponse[RecordRead],
    summary="List records with pagination",
)
async def list_records(
    db: DBSession,
    field: AttachmentField,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[RecordRead]:
    records, total = await record_service.list_records(db, page=page, size=size)
    return PaginatedResponse(
        items=[RecordRead.from_record(r, field) for r in records],
        total=total,
        page=page,
        size=size,
    )


@router.post(
    "/",
    response_model=RecordRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a record",
)
async def create_record(
    record_in: RecordCreate,
    db: DBSession,
    field: AttachmentField,
) -> RecordRead:
    record = await record_service.create_record(db, record_in=record_in)
    return RecordRead.from_record(record, field)


@router.get(
    "/{record_id}",
    response_model=RecordRead,
    summary="Get a record by ID",
)
async def get_record(
    record_id: uuid.UUID,
    db: DBSession,
    field: AttachmentField,
) -> RecordRead:
    record = await record_service.get_record(db, record_id=record_id)
    return RecordRead.from_record(record, field)


@router.put(
    "/{record_id}",
    response_model=RecordRead,
    summary="Update a record's title or description",
)
async def update_record(
    record_id: uuid.UUID,
    record_in: RecordUpdate,
    db: DBSession,
    field: AttachmentField,
) -> RecordRead:
    record = await record_service.update_record(db, record_id=record_id, record_in=record_in)
    return RecordRead.from_record(record, field)


@router.delete(
    "/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a record and its stored files",
)
async def delete_record(
    record_id: uuid.UUID,
    db: DBSession,
    field: AttachmentField,
) -> None:
    await record_service.delete_record(db, record_id=record_id, field=field)
