"""
Operations over one entity's ordered attachment list.

Local state is authoritative: ``delete`` removes the record immediately and
only schedules the remote deletion, whose outcome is logged and discarded.
"""
from __future__ import annotations

import asyncio
import logging

from recordfiles.attachments.entity import Entity
from recordfiles.attachments.types import Attachment
from recordfiles.storage.base import StorageCapability

logger = logging.getLogger(__name__)


class AttachmentStore:

    def __init__(self, path: str, storage: StorageCapability) -> None:
        self.path = path
        self.storage = storage
        self._pending: set[asyncio.Task[None]] = set()

    def find(self, entity: Entity, attachment_id: str) -> Attachment | None:
        for item in entity.get(self.path):
            if item.id == attachment_id:
                return item
        return None

    def exists(self, entity: Entity, attachment_id: str | None = None) -> bool:
        """
        Without an id, whether the list holds anything. With an id, whether
        that record exists with its storage location populated.
        """
        if attachment_id is None:
            return bool(entity.get(self.path))
        item = self.find(entity, attachment_id)
        return item is not None and _is_stored(item)

    def reset(self, entity: Entity, attachment_id: str | None = None) -> None:
        if attachment_id is None:
            entity.set(self.path, [])
            return
        values = entity.get(self.path)
        item = self.find(entity, attachment_id)
        if item is not None:
            values.remove(item)

    def delete(self, entity: Entity, attachment_id: str) -> None:
        item = self.find(entity, attachment_id)
        if item is not None and _is_stored(item):
            self._schedule_remote_delete(item.storage_key)
        self.reset(entity, attachment_id)

    async def wait_pending(self) -> None:
        """Wait for every scheduled remote deletion to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _schedule_remote_delete(self, key: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("No running event loop; object left in storage (orphaned): %s", key)
            return
        task = loop.create_task(self._remote_delete(key))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _remote_delete(self, key: str) -> None:
        try:
            await self.storage.delete_object(key)
            logger.info("Deleted object from storage: %s", key)
        except Exception:
            logger.exception("Failed to delete object from storage (orphaned): %s", key)


def _is_stored(item: Attachment) -> bool:
    return item.path is not None and bool(item.filename)
