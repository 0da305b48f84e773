"""
Storage capability contract.
The attachment field only ever talks to the object store through this protocol.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class StorageSettings:
    """Credentials and endpoint of one S3-compatible bucket."""

    bucket: str
    key: str | None = None
    secret: str | None = None
    region: str | None = None
    endpoint: str | None = None
    protocol: str | None = None
    default_headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PutResult:
    status_code: int
    url: str | None = None


class StorageCapability(Protocol):

    async def put_object(
        self,
        source_path: str,
        key: str,
        headers: Mapping[str, str],
    ) -> PutResult:
        """Upload the file at ``source_path`` under ``key``."""
        ...

    async def delete_object(self, key: str) -> dict[str, Any]:
        """Delete ``key``; the response is opaque to callers."""
        ...


class StorageTransferError(Exception):
    """Raised when the object store rejects or fails a transfer."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(detail)
