"""
Resolved configuration of one attachment field.

Storage settings resolve once, at construction: the field-local override wins,
otherwise the process-wide default is used. Missing both is a configuration
error raised immediately, never at request time.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from recordfiles.attachments.exceptions import ConfigurationError
from recordfiles.attachments.hooks import HookChain, HookHandler
from recordfiles.storage.base import StorageSettings

HOOKED_OPERATIONS = ("upload",)


def _hook_chain() -> HookChain:
    return HookChain(*HOOKED_OPERATIONS)


@dataclass(frozen=True)
class FieldConfig:
    path: str
    storage: StorageSettings
    s3_path: str | None = None
    date_prefix: str | None = None
    allowed_types: tuple[str, ...] | None = None
    filename: Callable[[Any, str], str] | None = None
    headers: Mapping[str, str] | Callable[[Any, Any], Mapping[str, str]] | None = None
    overwrite: bool = True
    prefix: str | None = None
    formatter: Callable[[Any, Any, str], str] | None = None
    hooks: HookChain = field(default_factory=_hook_chain, compare=False)

    @classmethod
    def resolve(
        cls,
        path: str,
        *,
        storage: StorageSettings | Mapping[str, Any] | None = None,
        defaults: StorageSettings | None = None,
        initial: bool = False,
        pre: Mapping[str, HookHandler] | None = None,
        post: Mapping[str, HookHandler] | None = None,
        **options: Any,
    ) -> "FieldConfig":
        """
        Build a FieldConfig for the field at ``path``.

        ``storage`` is the field-local override, ``defaults`` the process-wide
        settings. ``pre``/``post`` map an operation name to a hook handler and
        are registered before any handler added later through register_hook.
        """
        if initial:
            raise ConfigurationError(path, "attachment fields cannot be used as initial fields")

        allowed = {f.name for f in fields(cls)} - {"path", "storage", "hooks"}
        unknown = sorted(set(options) - allowed)
        if unknown:
            raise ConfigurationError(path, f"unknown option(s): {', '.join(unknown)}")

        resolved = _resolve_storage(path, storage, defaults)
        _validate_options(path, options)

        if options.get("allowed_types") is not None:
            options["allowed_types"] = tuple(options["allowed_types"])
        if options.get("overwrite") is None:
            options.pop("overwrite", None)

        config = cls(path=path, storage=resolved, **options)
        for operation, handler in (pre or {}).items():
            config.register_hook(f"pre:{operation}", handler)
        for operation, handler in (post or {}).items():
            config.register_hook(f"post:{operation}", handler)
        return config

    def register_hook(self, phase: str, handler: HookHandler) -> None:
        self.hooks.register(phase, handler)

    def freeze(self) -> None:
        self.hooks.freeze()

    @property
    def storage_path(self) -> str:
        """Key prefix under which this field's objects are stored."""
        if not self.s3_path:
            return ""
        return self.s3_path.rstrip("/") + "/"

    @property
    def protocol(self) -> str | None:
        return self.storage.protocol


def _resolve_storage(
    path: str,
    storage: StorageSettings | Mapping[str, Any] | None,
    defaults: StorageSettings | None,
) -> StorageSettings:
    if isinstance(storage, Mapping):
        try:
            storage = StorageSettings(**storage)
        except TypeError as exc:
            raise ConfigurationError(path, f"invalid storage settings: {exc}") from exc

    resolved = storage or defaults
    if resolved is None:
        raise ConfigurationError(
            path,
            "storage settings are required; set them on the field or configure S3_BUCKET",
        )
    if not resolved.bucket:
        raise ConfigurationError(path, "storage settings must name a bucket")
    return resolved


def _validate_options(path: str, options: Mapping[str, Any]) -> None:
    headers = options.get("headers")
    if headers is not None and not (isinstance(headers, Mapping) or callable(headers)):
        raise ConfigurationError(path, "'headers' must be a mapping or a callable")

    for name in ("filename", "formatter"):
        value = options.get(name)
        if value is not None and not callable(value):
            raise ConfigurationError(path, f"'{name}' must be callable")

    allowed_types = options.get("allowed_types")
    if allowed_types is not None and (
        isinstance(allowed_types, str) or not isinstance(allowed_types, Iterable)
    ):
        raise ConfigurationError(path, "'allowed_types' must be a list of content types")
