"""
Entity accessor contract and its adapter for ORM rows.

Attachment lists are handed out as live Python lists: mutating the list
returned by ``get`` mutates the entity's field. ``RecordEntity.flush`` writes
every touched list back into the row's JSON column.
"""
from __future__ import annotations

import copy
from typing import Any, Protocol

from recordfiles.attachments.types import Attachment


class Entity(Protocol):

    def get(self, path: str) -> list[Attachment]: ...

    def set(self, path: str, value: list[Attachment]) -> None: ...

    def is_modified(self, path: str) -> bool: ...


class RecordEntity:
    """Adapts a SQLAlchemy model whose field paths are JSON list columns."""

    def __init__(self, instance: Any) -> None:
        self.instance = instance
        self._lists: dict[str, list[Attachment]] = {}
        self._snapshots: dict[str, list[dict[str, Any]]] = {}

    def get(self, path: str) -> list[Attachment]:
        if path not in self._lists:
            raw = getattr(self.instance, path) or []
            self._snapshots[path] = copy.deepcopy(list(raw))
            self._lists[path] = [Attachment.model_validate(item) for item in raw]
        return self._lists[path]

    def set(self, path: str, value: list[Attachment]) -> None:
        self.get(path)
        self._lists[path] = list(value)

    def is_modified(self, path: str) -> bool:
        if path not in self._lists:
            return False
        return _dump(self._lists[path]) != self._snapshots[path]

    def flush(self) -> None:
        """Write touched lists back to the model; assignment marks the column dirty."""
        for path, values in self._lists.items():
            setattr(self.instance, path, _dump(values))


def _dump(values: list[Attachment]) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json") for item in values]
