"""
FastAPI dependency injection functions.
Provides the database session and the records' attachment field.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from recordfiles.attachments import FieldConfig, S3FilesField
from recordfiles.core.config import settings
from recordfiles.db.session import get_db

# Re-export get_db so routes can import from one place
__all__ = ["get_db", "get_attachment_field", "DBSession", "AttachmentField"]


@lru_cache
def get_attachment_field() -> S3FilesField:
    """
    Build the attachment field of the records table from settings.
    Raises ConfigurationError when no bucket is configured.
    """
    config = FieldConfig.resolve(
        "attachments",
        defaults=settings.storage_defaults(),
        s3_path=settings.ATTACHMENTS_S3_PATH,
        allowed_types=settings.ATTACHMENTS_ALLOWED_TYPES,
        date_prefix=settings.ATTACHMENTS_DATE_PREFIX,
        prefix=settings.ATTACHMENTS_PREFIX,
        overwrite=settings.ATTACHMENTS_OVERWRITE,
    )
    return S3FilesField(config)


# Convenience type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
AttachmentField = Annotated[S3FilesField, Depends(get_attachment_field)]
