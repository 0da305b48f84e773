"""
Record CRUD operations.
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from recordfiles.attachments.entity import RecordEntity
from recordfiles.crud.base import CRUDBase
from recordfiles.models.record import Record
from recordfiles.schemas.record import RecordCreate, RecordUpdate


class CRUDRecord(CRUDBase[Record, RecordCreate, RecordUpdate]):

    async def create_record(self, db: AsyncSession, *, obj_in: RecordCreate) -> Record:
        return await self.create(db, obj_in=obj_in, attachments=[])

    async def save_entity(self, db: AsyncSession, *, entity: RecordEntity) -> Record:
        """Write the entity's attachment lists back to its row and flush."""
        entity.flush()
        return await self.persist(db, entity.instance)


crud_record = CRUDRecord(Record)
