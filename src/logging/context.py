# src/logging/context.py — v1
"""Contextual logging support: attach document_id, run_id and stage to records."""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

# Set per analysis run / ingestion; copied into worker threads by asyncio.to_thread.
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass(frozen=True)
class LogContext:
    """Immutable snapshot of current logging context."""

    document_id: str | None = None
    run_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        document_id=_document_id.get(),
        run_id=_run_id.get(),
        stage=_stage.get(),
    )


def set_document_context(document_id: str, run_id: str | None = None) -> None:
    """Set document-level context (once per analysis run or ingestion)."""
    _document_id.set(document_id)
    _run_id.set(run_id)


def set_stage(stage: str | None) -> None:
    """Set the current pipeline stage."""
    _stage.set(stage)


@contextmanager
def document_context(document_id: str, run_id: str | None = None) -> Iterator[None]:
    """Scope document context to a block, restoring the previous values."""
    doc_token = _document_id.set(document_id)
    run_token = _run_id.set(run_id)
    stage_token = _stage.set(None)
    try:
        yield
    finally:
        _stage.reset(stage_token)
        _run_id.reset(run_token)
        _document_id.reset(doc_token)


def clear_context() -> None:
    """Reset all context variables."""
    _document_id.set(None)
    _run_id.set(None)
    _stage.set(None)
