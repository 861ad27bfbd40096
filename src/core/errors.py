# src/core/errors.py — v1
"""Error taxonomy for the similarity engine.

Every error carries the document id and the pipeline stage it was raised in
so callers can retry or hand the failure to a human reviewer.
"""

from __future__ import annotations


class DocSimError(Exception):
    """Base class for all engine errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.document_id = document_id
        self.stage = stage

    def __str__(self) -> str:
        parts = [self.message]
        if self.document_id is not None:
            parts.append(f"document_id={self.document_id}")
        if self.stage is not None:
            parts.append(f"stage={self.stage}")
        if len(parts) == 1:
            return self.message
        return f"{parts[0]} ({', '.join(parts[1:])})"


class EncodingError(DocSimError):
    """Raw text could not be decoded. Fatal for that document only."""


class EmptyDocumentError(DocSimError):
    """Document produced zero tokens; no meaningful score is possible."""


class IndexCorruptionError(DocSimError):
    """Postings are inconsistent with the ingested documents.

    Never patched silently: the corpus must be reingested.
    """


class AnalysisTimeoutError(DocSimError):
    """Analysis run exceeded its time budget."""

    retryable = True


class AnalysisCancelledError(DocSimError):
    """Caller cancelled the run. No report is produced."""


class DocumentNotFoundError(DocSimError):
    """Referenced corpus document is not ingested."""


class CandidateLookupError(DocSimError):
    """Transient failure resolving a single candidate during alignment."""

    retryable = True


class IndexClosedError(DocSimError):
    """Operation attempted on an index that is not open."""


class InvalidTransitionError(DocSimError):
    """Analysis run state machine received an illegal transition."""
