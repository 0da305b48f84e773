"""
Record ORM model.
Parent entity of the attachments field: the ordered attachment metadata
is embedded in the row as a JSON list (JSONB on PostgreSQL).
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import JSON, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from recordfiles.db.base import Base, TimestampMixin

AttachmentListType = JSON().with_variant(JSONB(), "postgresql")


class Record(TimestampMixin, Base):
    __tablename__ = "records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(
        AttachmentListType,
        nullable=False,
        default=list,
    )

    __table_args__ = (
        Index("ix_records_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Record id={self.id} title={self.title!r} attachments={len(self.attachments or [])}>"
