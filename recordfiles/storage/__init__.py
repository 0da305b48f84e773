from recordfiles.storage.base import (
    PutResult,
    StorageCapability,
    StorageSettings,
    StorageTransferError,
)
from recordfiles.storage.s3 import S3Storage

__all__ = [
    "PutResult",
    "S3Storage",
    "StorageCapability",
    "StorageSettings",
    "StorageTransferError",
]
