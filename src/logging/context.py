# src/logging/context.py — v1
"""Contextual logging support — attach scope_id, run_id, component, phase to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per detection run or search.
_scope_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_scope_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_run_id", default=None
)
_component: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_component", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "log_phase", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    scope_id: str | None = None
    run_id: str | None = None
    component: str | None = None
    phase: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        scope_id=_scope_id.get(),
        run_id=_run_id.get(),
        component=_component.get(),
        phase=_phase.get(),
    )


def set_scope_context(scope_id: str | None) -> None:
    """Set scope-level context (called when entering a scope)."""
    _scope_id.set(scope_id)


def set_run_context(component: str, run_id: str | None = None) -> None:
    """Set run-level context (called once per detection run or search)."""
    _component.set(component)
    _run_id.set(run_id)
    _phase.set(None)


def set_phase_context(phase: str | None) -> None:
    """Set phase-level context (called per state-machine transition)."""
    _phase.set(phase)


def clear_context() -> None:
    """Reset all context variables."""
    _scope_id.set(None)
    _run_id.set(None)
    _component.set(None)
    _phase.set(None)
