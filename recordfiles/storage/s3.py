"""
boto3-backed storage capability.

boto3 is blocking, so every call runs in a worker thread via asyncio.to_thread.
Uploads are issued as a single put_object per file.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from recordfiles.storage.base import PutResult, StorageSettings, StorageTransferError

logger = logging.getLogger(__name__)

# HTTP header -> put_object keyword argument
_HEADER_PARAMS: dict[str, str] = {
    "content-type": "ContentType",
    "content-disposition": "ContentDisposition",
    "content-encoding": "ContentEncoding",
    "content-language": "ContentLanguage",
    "cache-control": "CacheControl",
    "if-none-match": "IfNoneMatch",
    "x-amz-acl": "ACL",
    "x-amz-storage-class": "StorageClass",
    "x-amz-server-side-encryption": "ServerSideEncryption",
}
_META_PREFIX = "x-amz-meta-"


def put_object_params(headers: Mapping[str, str]) -> dict[str, Any]:
    """Translate transfer headers into boto3 put_object keyword arguments."""
    params: dict[str, Any] = {}
    metadata: dict[str, str] = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered.startswith(_META_PREFIX):
            metadata[lowered[len(_META_PREFIX):]] = str(value)
        elif lowered in _HEADER_PARAMS:
            params[_HEADER_PARAMS[lowered]] = str(value)
        else:
            logger.debug("Ignoring unsupported transfer header: %s", name)
    if metadata:
        params["Metadata"] = metadata
    return params


class S3Storage:
    """Storage capability for one S3-compatible bucket."""

    def __init__(self, settings: StorageSettings) -> None:
        self.settings = settings
        # Created before any worker thread uses it
        self.client: Any = boto3.session.Session().client(
            "s3",
            region_name=settings.region,
            endpoint_url=settings.endpoint,
            aws_access_key_id=settings.key,
            aws_secret_access_key=settings.secret,
        )

    def object_url(self, key: str) -> str:
        endpoint = self.client.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.settings.bucket}/{quote(key)}"

    async def put_object(
        self,
        source_path: str,
        key: str,
        headers: Mapping[str, str],
    ) -> PutResult:
        params = put_object_params(headers)
        try:
            response = await asyncio.to_thread(self._put, source_path, key, params)
        except ClientError as exc:
            status_code = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if status_code is None:
                raise StorageTransferError(f"Storage rejected upload of '{key}': {exc}") from exc
            logger.warning("Storage returned HTTP %s for '%s'", status_code, key)
            return PutResult(status_code=status_code)
        except (BotoCoreError, OSError) as exc:
            raise StorageTransferError(f"Transfer of '{key}' failed: {exc}") from exc

        return PutResult(
            status_code=response["ResponseMetadata"]["HTTPStatusCode"],
            url=self.object_url(key),
        )

    async def delete_object(self, key: str) -> dict[str, Any]:
        return await asyncio.to_thread(
            self.client.delete_object, Bucket=self.settings.bucket, Key=key
        )

    def _put(self, source_path: str, key: str, params: dict[str, Any]) -> dict[str, Any]:
        with open(source_path, "rb") as body:
            return self.client.put_object(
                Bucket=self.settings.bucket,
                Key=key,
                Body=body,
                **params,
            )
