"""
S3 files field: an ordered, multi-valued attachment list on a parent entity
whose file bytes live in an S3-compatible bucket.
"""
from __future__ import annotations

import posixpath
from collections.abc import Iterable

from recordfiles.attachments.config import FieldConfig
from recordfiles.attachments.entity import Entity
from recordfiles.attachments.pipeline import CompletionCallback, UploadPipeline
from recordfiles.attachments.reconciler import RequestReconciler
from recordfiles.attachments.store import AttachmentStore
from recordfiles.attachments.types import Attachment, BatchResult, UpdatePayload, UploadRequest
from recordfiles.storage.base import StorageCapability
from recordfiles.storage.s3 import S3Storage


class S3FilesField:
    """
    Composes the store, upload pipeline and request reconciler of one field.

    ``storage`` defaults to a boto3 client for the resolved storage settings.
    Hook registration closes the first time the field handles an upload.
    """

    def __init__(self, config: FieldConfig, storage: StorageCapability | None = None) -> None:
        self.config = config
        self.storage = storage if storage is not None else S3Storage(config.storage)
        self.store = AttachmentStore(config.path, self.storage)
        self.pipeline = UploadPipeline(config, self.storage)
        self.reconciler = RequestReconciler(config.path, self.store, self.pipeline)

    @property
    def path(self) -> str:
        return self.config.path

    def values(self, entity: Entity) -> list[Attachment]:
        return entity.get(self.path)

    def exists(self, entity: Entity, attachment_id: str | None = None) -> bool:
        return self.store.exists(entity, attachment_id)

    def reset(self, entity: Entity, attachment_id: str | None = None) -> None:
        self.store.reset(entity, attachment_id)

    def delete(self, entity: Entity, attachment_id: str) -> None:
        self.store.delete(entity, attachment_id)

    def is_modified(self, entity: Entity) -> bool:
        return entity.is_modified(self.path)

    async def upload_files(
        self,
        entity: Entity,
        uploads: Iterable[UploadRequest],
        *,
        append: bool = False,
        on_complete: CompletionCallback | None = None,
    ) -> BatchResult:
        self.config.freeze()
        return await self.pipeline.upload(entity, uploads, append=append, on_complete=on_complete)

    async def reconcile(
        self,
        entity: Entity,
        payload: UpdatePayload,
        *,
        on_complete: CompletionCallback | None = None,
    ) -> BatchResult:
        self.config.freeze()
        return await self.reconciler.reconcile(entity, payload, on_complete=on_complete)

    async def wait_pending(self) -> None:
        await self.store.wait_pending()

    def href(self, attachment: Attachment) -> str:
        """Public link of a stored file."""
        if not attachment.filename:
            return ""
        if self.config.prefix:
            return posixpath.join(self.config.prefix, attachment.filename)
        return attachment.url or ""

    def format(self, entity: Entity, index: int | None = None) -> str:
        values = entity.get(self.path)
        if index is None:
            count = len(values)
            return f"{count} File" if count == 1 else f"{count} Files"
        if not 0 <= index < len(values):
            return ""
        attachment = values[index]
        if self.config.formatter is not None:
            return self.config.formatter(entity, attachment, self.href(attachment))
        return attachment.filename or ""
