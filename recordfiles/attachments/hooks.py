"""
Ordered pre/post middleware around a single async operation.

Handlers receive the shared HookContext. Returning continues the chain,
raising aborts it. Handlers may be plain functions or coroutine functions.
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from recordfiles.attachments.exceptions import PostHookError

logger = logging.getLogger(__name__)

HookHandler = Callable[["HookContext"], Any]


@dataclass
class HookContext:
    """Mutable state shared by every handler of one chain run."""

    entity: Any
    request: Any
    result: Any = None


class HookChain:
    """
    Mapping of phase name (``"pre:upload"``, ``"post:upload"``) to an ordered
    list of handlers. Only phases declared at construction can be used.
    """

    def __init__(self, *names: str) -> None:
        self._handlers: dict[str, list[HookHandler]] = {}
        for name in names:
            self._handlers[f"pre:{name}"] = []
            self._handlers[f"post:{name}"] = []
        self._frozen = False

    @property
    def phases(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def register(self, phase: str, handler: HookHandler) -> None:
        """Append ``handler`` to ``phase``; registration order is execution order."""
        if self._frozen:
            raise RuntimeError("Hooks cannot be registered once the field is in use")
        if phase not in self._handlers:
            raise ValueError(
                f"Unknown hook phase '{phase}'. Registered phases: {', '.join(self._handlers)}"
            )
        if not callable(handler):
            raise TypeError(f"Hook handler for '{phase}' must be callable")
        self._handlers[phase].append(handler)

    def freeze(self) -> None:
        self._frozen = True

    def handlers(self, phase: str) -> list[HookHandler]:
        return list(self._handlers.get(phase, []))

    async def run(
        self,
        name: str,
        context: HookContext,
        operation: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Run ``pre:<name>`` handlers, then ``operation``, then ``post:<name>``.

        A pre handler or operation failure propagates unchanged and nothing
        after it runs. A post handler failure raises PostHookError, which
        still carries the operation's result. The operation's result is
        returned even if a post handler reassigns ``context.result``.
        """
        for handler in self.handlers(f"pre:{name}"):
            await _call(handler, context)

        result = await operation()
        context.result = result

        for handler in self.handlers(f"post:{name}"):
            try:
                await _call(handler, context)
            except Exception as exc:
                logger.warning("post:%s hook %r failed: %s", name, handler, exc)
                raise PostHookError(f"post:{name}", result, exc) from exc

        return result


async def _call(handler: HookHandler, context: HookContext) -> None:
    outcome = handler(context)
    if inspect.isawaitable(outcome):
        await outcome
