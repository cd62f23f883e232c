# src/logging/context.py — v2
"""Contextual logging support: attach session_id, run_id, phase, state to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging: set per phase invocation.
_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_phase: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "phase", default=None
)
_state: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "state", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    session_id: str | None = None
    run_id: str | None = None
    phase: int | None = None
    state: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        session_id=_session_id.get(),
        run_id=_run_id.get(),
        phase=_phase.get(),
        state=_state.get(),
    )


def set_invocation_context(run_id: str, phase: int, session_id: str | None = None) -> None:
    """Set invocation-level context (called once per phase invocation)."""
    _session_id.set(session_id)
    _run_id.set(run_id)
    _phase.set(phase)
    _state.set(None)


def set_state_context(state: str) -> None:
    """Record the orchestrator state reached by the current invocation."""
    _state.set(state)


def clear_context() -> None:
    """Reset all context variables."""
    _session_id.set(None)
    _run_id.set(None)
    _phase.set(None)
    _state.set(None)
