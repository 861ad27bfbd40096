# src/pipeline/cancellation.py — v1
"""Cooperative cancellation for analysis runs.

The token is checked between candidate alignments, never inside one.
It is thread-safe so callers on other threads may cancel.
"""

from __future__ import annotations

import threading

from docsim.core.errors import AnalysisCancelledError


class CancellationToken:
    """One-shot cancellation flag shared between caller and run."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def raise_if_cancelled(
        self, document_id: str | None = None, stage: str | None = None,
    ) -> None:
        if self._event.is_set():
            message = "Analysis cancelled by caller"
            if self._reason:
                message = f"{message}: {self._reason}"
            raise AnalysisCancelledError(message, document_id=document_id, stage=stage)
