"""
Async CRUD helpers shared by the model-specific CRUD objects.
"""
from __future__ import annotations

import uuid
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recordfiles.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):

    def __init__(self, model: type[ModelType]) -> None:
        self.model = model

    async def get(self, db: AsyncSession, id: uuid.UUID) -> ModelType | None:
        return await db.get(self.model, id)

    async def get_page(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[ModelType], int]:
        """Return (rows, total) for offset pagination, newest first."""
        total = await db.scalar(select(func.count()).select_from(self.model))
        rows = await db.scalars(
            select(self.model)
            .order_by(self.model.created_at.desc())  # type: ignore[attr-defined]
            .offset(skip)
            .limit(limit)
        )
        return list(rows.all()), total or 0

    async def create(
        self, db: AsyncSession, *, obj_in: CreateSchemaType, **values: Any
    ) -> ModelType:
        """Insert a row from a schema; ``values`` set columns the schema does not carry."""
        db_obj = self.model(**obj_in.model_dump(), **values)
        return await self.persist(db, db_obj)

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | dict[str, Any],
    ) -> ModelType:
        """Apply only the fields explicitly set on the schema (or every key of a dict)."""
        changes = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for name, value in changes.items():
            setattr(db_obj, name, value)
        return await self.persist(db, db_obj)

    async def remove(self, db: AsyncSession, *, db_obj: ModelType) -> None:
        await db.delete(db_obj)
        await db.flush()

    async def persist(self, db: AsyncSession, db_obj: ModelType) -> ModelType:
        """Flush pending changes of ``db_obj`` and reload server-side defaults."""
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj
