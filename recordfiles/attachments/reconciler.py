"""
Turns one form-style update of an attachment field into list operations.

The payload is applied in a fixed order: reorder, then removals, then
uploads. Reorder and removals are synchronous and always finish before the
upload batch starts.
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable

from recordfiles.attachments.entity import Entity
from recordfiles.attachments.pipeline import CompletionCallback, UploadPipeline
from recordfiles.attachments.store import AttachmentStore
from recordfiles.attachments.types import BatchResult, UpdatePayload, UploadRequest

logger = logging.getLogger(__name__)

REMOVAL_METHODS = ("delete", "reset")


def parse_order(order: str) -> list[str]:
    return [item.strip() for item in order.split(",") if item.strip()]


def parse_actions(action: str) -> list[tuple[str, list[str]]]:
    """
    Parse ``method:id1,id2|method:id3`` into ``(method, ids)`` pairs.
    Instructions with an unknown method or no ids are dropped.
    """
    instructions: list[tuple[str, list[str]]] = []
    for chunk in action.split("|"):
        method, _, ids = chunk.partition(":")
        id_list = [item.strip() for item in ids.split(",") if item.strip()]
        if method not in REMOVAL_METHODS or not id_list:
            logger.debug("Ignoring malformed attachment action: %r", chunk)
            continue
        instructions.append((method, id_list))
    return instructions


def normalize_uploads(
    upload_files: UploadRequest | Iterable[UploadRequest] | None,
) -> list[UploadRequest]:
    if upload_files is None:
        return []
    if isinstance(upload_files, UploadRequest):
        upload_files = [upload_files]
    return [upload for upload in upload_files if upload.original_name]


class RequestReconciler:

    def __init__(self, path: str, store: AttachmentStore, pipeline: UploadPipeline) -> None:
        self.path = path
        self.store = store
        self.pipeline = pipeline

    def reorder(self, entity: Entity, order: str) -> None:
        """
        Sort the list by each id's position in ``order``. Ids missing from
        ``order`` rank as -1 and so come first, keeping their relative order.
        """
        positions: dict[str, int] = {}
        for index, item_id in enumerate(parse_order(order)):
            positions.setdefault(item_id, index)
        entity.get(self.path).sort(key=lambda item: positions.get(item.id, -1))

    def remove(self, entity: Entity, action: str) -> None:
        for method, ids in parse_actions(action):
            for attachment_id in ids:
                if method == "delete":
                    self.store.delete(entity, attachment_id)
                else:
                    self.store.reset(entity, attachment_id)

    async def reconcile(
        self,
        entity: Entity,
        payload: UpdatePayload,
        *,
        on_complete: CompletionCallback | None = None,
    ) -> BatchResult:
        if payload.order:
            self.reorder(entity, payload.order)

        if payload.action:
            self.remove(entity, payload.action)

        uploads = normalize_uploads(payload.upload_files)
        if uploads:
            logger.info("Uploading %d file(s) to '%s'", len(uploads), self.path)
            return await self.pipeline.upload(
                entity, uploads, append=True, on_complete=on_complete
            )

        result = BatchResult()
        if on_complete is not None:
            notified = on_complete(result)
            if inspect.isawaitable(notified):
                await notified
        return result
