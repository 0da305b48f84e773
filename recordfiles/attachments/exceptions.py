"""
Exceptions raised by the attachment field machinery.
HTTP-facing errors live in recordfiles.core.exceptions.
"""
from __future__ import annotations

from typing import Any

from recordfiles.storage.base import StorageTransferError

__all__ = [
    "AttachmentFieldError",
    "ConfigurationError",
    "PostHookError",
    "StorageTransferError",
    "UnsupportedFileTypeError",
]


class AttachmentFieldError(Exception):
    """Base exception for all attachment field errors."""


class ConfigurationError(AttachmentFieldError):
    """Raised at field construction when its configuration cannot be resolved."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Invalid configuration for attachment field '{path}': {detail}")


class UnsupportedFileTypeError(AttachmentFieldError):
    """Raised when an upload's content type is not in the field's allow-list."""

    def __init__(self, content_type: str) -> None:
        self.content_type = content_type
        super().__init__(f"Unsupported File Type: {content_type}")


class PostHookError(AttachmentFieldError):
    """
    Raised when a post-phase hook fails after the wrapped operation succeeded.

    The operation's result is kept on ``result`` and the handler's exception
    is chained as ``__cause__``.
    """

    def __init__(self, phase: str, result: Any, error: Exception) -> None:
        self.phase = phase
        self.result = result
        self.error = error
        super().__init__(f"{phase} hook failed: {error}")
