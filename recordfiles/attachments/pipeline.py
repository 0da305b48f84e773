"""
Upload pipeline for one batch of files.

Every file is named, validated and transferred concurrently. A failure only
ever fails its own file: the batch result reports, per input position,
either the produced Attachment or the error, and siblings that already
succeeded are never rolled back.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from recordfiles.attachments.config import FieldConfig
from recordfiles.attachments.entity import Entity
from recordfiles.attachments.exceptions import (
    PostHookError,
    StorageTransferError,
    UnsupportedFileTypeError,
)
from recordfiles.attachments.hooks import HookContext
from recordfiles.attachments.types import Attachment, BatchResult, UploadOutcome, UploadRequest
from recordfiles.storage.base import StorageCapability

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
_SCHEME_RE = re.compile(r"^https?:", re.IGNORECASE)

CompletionCallback = Callable[[BatchResult], Any]


def resolve_content_type(upload: UploadRequest) -> str:
    return upload.mime_type or DEFAULT_CONTENT_TYPE


def normalize_url(url: str | None, protocol: str | None) -> str | None:
    """Rewrite the scheme to ``protocol``, or make the URL protocol-relative."""
    if url is None:
        return None
    replacement = f"{protocol.rstrip(':')}:" if protocol else ""
    return _SCHEME_RE.sub(replacement, url, count=1)


class UploadPipeline:

    def __init__(
        self,
        config: FieldConfig,
        storage: StorageCapability,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.storage = storage
        self.clock = clock

    async def upload(
        self,
        entity: Entity,
        uploads: Iterable[UploadRequest],
        *,
        append: bool = False,
        on_complete: CompletionCallback | None = None,
    ) -> BatchResult:
        """
        Transfer every file of the batch and return their joined outcomes.

        ``on_complete`` fires exactly once, after the last file settled.
        With ``append``, each produced Attachment is appended to the entity.
        """
        batch = list(uploads)
        outcomes = await asyncio.gather(
            *(self._process(entity, index, upload, append) for index, upload in enumerate(batch))
        )
        result = BatchResult(outcomes=list(outcomes))
        logger.info(
            "Upload batch settled for '%s': %d succeeded, %d failed",
            self.config.path,
            result.succeeded,
            result.failed,
        )

        if on_complete is not None:
            notified = on_complete(result)
            if inspect.isawaitable(notified):
                await notified
        return result

    def destination_name(self, entity: Entity, upload: UploadRequest) -> str:
        name = upload.original_name
        if self.config.date_prefix:
            name = f"{self.clock().strftime(self.config.date_prefix)}-{name}"
        if self.config.filename is not None:
            name = self.config.filename(entity, name)
        return name

    def build_headers(
        self,
        entity: Entity,
        upload: UploadRequest,
        content_type: str,
    ) -> dict[str, str]:
        headers = {
            "Content-Type": content_type,
            "x-amz-acl": "public-read",
        }
        headers.update(self.config.storage.default_headers)

        custom = self.config.headers
        if callable(custom):
            custom = custom(entity, upload)
        if custom:
            headers.update(custom)

        if not self.config.overwrite:
            headers["If-None-Match"] = "*"
        return headers

    async def _process(
        self,
        entity: Entity,
        index: int,
        upload: UploadRequest,
        append: bool,
    ) -> UploadOutcome:
        error: Exception | None = None
        try:
            attachment = await self._transfer(entity, upload)
        except PostHookError as exc:
            attachment, error = exc.result, exc.error
        except Exception as exc:
            logger.warning("Upload of '%s' failed: %s", upload.original_name, exc)
            return UploadOutcome(index=index, request=upload, error=exc)

        if append:
            entity.get(self.config.path).append(attachment)
        return UploadOutcome(index=index, request=upload, attachment=attachment, error=error)

    async def _transfer(self, entity: Entity, upload: UploadRequest) -> Attachment:
        filename = self.destination_name(entity, upload)
        filetype = resolve_content_type(upload)

        allowed = self.config.allowed_types
        if allowed is not None and filetype not in allowed:
            raise UnsupportedFileTypeError(filetype)

        headers = self.build_headers(entity, upload, filetype)
        storage_path = self.config.storage_path
        key = storage_path + filename

        async def put() -> Attachment:
            logger.info("Uploading '%s' to storage key %s", upload.original_name, key)
            result = await self.storage.put_object(upload.source_path, key, headers)
            if result.status_code != 200:
                raise StorageTransferError(
                    f"Storage returned HTTP status {result.status_code}",
                    status_code=result.status_code,
                )
            return Attachment(
                filename=filename,
                path=storage_path,
                size=upload.size,
                filetype=filetype,
                url=normalize_url(result.url, self.config.protocol),
            )

        context = HookContext(entity=entity, request=upload)
        return await self.config.hooks.run("upload", context, put)
