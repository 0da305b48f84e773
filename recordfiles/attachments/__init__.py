from recordfiles.attachments.config import FieldConfig
from recordfiles.attachments.entity import Entity, RecordEntity
from recordfiles.attachments.exceptions import (
    AttachmentFieldError,
    ConfigurationError,
    PostHookError,
    StorageTransferError,
    UnsupportedFileTypeError,
)
from recordfiles.attachments.field import S3FilesField
from recordfiles.attachments.hooks import HookChain, HookContext
from recordfiles.attachments.pipeline import UploadPipeline
from recordfiles.attachments.reconciler import RequestReconciler
from recordfiles.attachments.store import AttachmentStore
from recordfiles.attachments.types import (
    Attachment,
    BatchResult,
    UpdatePayload,
    UploadOutcome,
    UploadRequest,
)

__all__ = [
    "Attachment",
    "AttachmentFieldError",
    "AttachmentStore",
    "BatchResult",
    "ConfigurationError",
    "Entity",
    "FieldConfig",
    "HookChain",
    "HookContext",
    "PostHookError",
    "RecordEntity",
    "RequestReconciler",
    "S3FilesField",
    "StorageTransferError",
    "UnsupportedFileTypeError",
    "UpdatePayload",
    "UploadOutcome",
    "UploadPipeline",
    "UploadRequest",
]
