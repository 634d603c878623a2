# src/core/scope.py — v1
"""Current-scope context and per-scope serialization.

Every repository query and detection run operates on the scope held in a
context variable, so concurrent tasks for different scopes never see each
other's scope. ``ScopeLockRegistry`` serializes scope-mutating operations
(full detection, incremental assignment) inside one process.
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

from graphdrift.logging.context import set_scope_context

logger = logging.getLogger(__name__)

_current_scope: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "current_scope", default=None
)


class ScopeNotSetError(RuntimeError):
    """Raised when a scoped operation runs outside a scope context."""


def current_scope() -> str:
    """Return the active scope id.

    Raises:
        ScopeNotSetError: If no scope is active.
    """
    scope_id = _current_scope.get()
    if not scope_id:
        raise ScopeNotSetError("No scope is active; wrap the call in scope_context()")
    return scope_id


def current_scope_or_none() -> str | None:
    return _current_scope.get()


@contextmanager
def scope_context(scope_id: str) -> Iterator[str]:
    """Activate ``scope_id`` for the enclosed block (restored on exit)."""
    if not scope_id:
        raise ValueError("scope_id must be a non-empty string")
    token = _current_scope.set(scope_id)
    set_scope_context(scope_id)
    try:
        yield scope_id
    finally:
        _current_scope.reset(token)
        set_scope_context(_current_scope.get())


class ScopeLockRegistry:
    """One asyncio.Lock per scope id, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, scope_id: str) -> asyncio.Lock:
        lock = self._locks.get(scope_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scope_id] = lock
        return lock

    def is_locked(self, scope_id: str) -> bool:
        lock = self._locks.get(scope_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, scope_id: str) -> AsyncIterator[None]:
        """Hold the scope's lock for the enclosed block."""
        lock = self.lock_for(scope_id)
        if lock.locked():
            logger.debug("Waiting for scope lock: %s", scope_id)
        async with lock:
            yield
