# src/logging/context.py - v1
"""Contextual logging support: attach session, run, file and stage to log records.

Each file of a batch is processed in its own asyncio task, which copies
the current context, so per-file values never leak between files.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_file_name: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_name", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    session_id: str | None = None
    run_id: str | None = None
    file_name: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        session_id=_session_id.get(),
        run_id=_run_id.get(),
        file_name=_file_name.get(),
        stage=_stage.get(),
    )


def set_run_context(session_id: str, run_id: str) -> None:
    """Set run-level context (called once per batch run)."""
    _session_id.set(session_id)
    _run_id.set(run_id)


def set_file_context(file_name: str, stage: str | None = None) -> None:
    """Set file-level context (called per file and per stage)."""
    _file_name.set(file_name)
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _session_id.set(None)
    _run_id.set(None)
    _file_name.set(None)
    _stage.set(None)
