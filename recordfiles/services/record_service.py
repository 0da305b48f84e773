"""
Record business logic service.
Loads records, routes attachment-field updates through the S3 files field and
persists the resulting list back to the row.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from recordfiles.attachments import BatchResult, RecordEntity, S3FilesField, UpdatePayload
from recordfiles.core.exceptions import BadRequestException, NotFoundException
from recordfiles.crud.record import crud_record
from recordfiles.models.record import Record
from recordfiles.schemas.pagination import page_offset
from recordfiles.schemas.record import RecordCreate, RecordUpdate

logger = logging.getLogger(__name__)


class RecordService:

    async def create_record(self, db: AsyncSession, *, record_in: RecordCreate) -> Record:
        record = await crud_record.create_record(db, obj_in=record_in)
        logger.info("Created record %s", record.id)
        return record

    async def get_record(self, db: AsyncSession, *, record_id: uuid.UUID) -> Record:
        record = await crud_record.get(db, record_id)
        if record is None:
            raise NotFoundException("Record", str(record_id))
        return record

    async def list_records(
        self, db: AsyncSession, *, page: int, size: int
    ) -> tuple[list[Record], int]:
        return await crud_record.get_page(db, skip=page_offset(page, size), limit=size)

    async def update_record(
        self, db: AsyncSession, *, record_id: uuid.UUID, record_in: RecordUpdate
    ) -> Record:
        if not record_in.model_fields_set:
            raise BadRequestException("No fields provided to update")
        record = await self.get_record(db, record_id=record_id)
        return await crud_record.update(db, db_obj=record, obj_in=record_in)

    async def delete_record(
        self, db: AsyncSession, *, record_id: uuid.UUID, field: S3FilesField
    ) -> None:
        """Delete a record and schedule removal of every stored file it owns."""
        record = await self.get_record(db, record_id=record_id)
        entity = RecordEntity(record)
        for attachment in list(field.values(entity)):
            field.delete(entity, attachment.id)
        await crud_record.remove(db, db_obj=record)
        logger.info("Deleted record %s", record_id)

    async def update_attachments(
        self,
        db: AsyncSession,
        *,
        record_id: uuid.UUID,
        payload: UpdatePayload,
        field: S3FilesField,
    ) -> tuple[Record, BatchResult]:
        """
        Apply one form-style update (reorder, removals, uploads) to the
        record's attachments. Per-file upload failures are reported in the
        returned batch, never raised; successful files are kept.
        """
        record = await self.get_record(db, record_id=record_id)
        entity = RecordEntity(record)
        result = await field.reconcile(entity, payload)
        if field.is_modified(entity):
            record = await crud_record.save_entity(db, entity=entity)
        if result.failed:
            logger.warning(
                "Record %s: %d of %d upload(s) failed",
                record_id,
                result.failed,
                len(result.outcomes),
            )
        return record, result

    async def delete_attachment(
        self,
        db: AsyncSession,
        *,
        record_id: uuid.UUID,
        attachment_id: str,
        field: S3FilesField,
    ) -> Record:
        record = await self.get_record(db, record_id=record_id)
        entity = RecordEntity(record)
        if field.store.find(entity, attachment_id) is None:
            raise NotFoundException("Attachment", attachment_id)
        field.delete(entity, attachment_id)
        return await crud_record.save_entity(db, entity=entity)


record_service = RecordService()
