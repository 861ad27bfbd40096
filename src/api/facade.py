# src/api/facade.py — v1
"""Public API facade: corpus ingestion/removal and document analysis.

Usage:
    from docsim.api.facade import analyze, ingest_corpus_document, open_index

    index = await open_index(settings)
    await ingest_corpus_document("ref-1", text, "author-9", "academic", index)
    report = await analyze("sub-7", submission, "author-3", None, index)

The index is always passed in; this module holds no corpus state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from docsim.api.models import AnalysisRequest, CorpusDocumentInput
from docsim.config.settings import Settings
from docsim.core.errors import EmptyDocumentError
from docsim.core.models import AnalysisReport, Document
from docsim.corpus.store_factory import create_corpus_store
from docsim.index.fingerprint_index import FingerprintIndex
from docsim.logging.context import document_context
from docsim.pipeline.runner import AnalysisRunner
from docsim.text.tokenizer import tokenize

if TYPE_CHECKING:
    from docsim.pipeline.cancellation import CancellationToken
    from docsim.pipeline.state import AnalysisRunState
    from docsim.storage.report_store import ReportStore

logger = logging.getLogger(__name__)


async def open_index(settings: Settings | None = None) -> FingerprintIndex:
    """Create the configured corpus store and open an index on it."""
    settings = settings or Settings()
    store = create_corpus_store(settings)
    index = FingerprintIndex.from_settings(settings, store=store)
    return await index.open()


async def ingest_corpus_document(
    document_id: str,
    raw_text: str | bytes,
    author_id: str,
    origin_tag: str,
    index: FingerprintIndex,
    title: str | None = None,
    url: str | None = None,
) -> Document:
    """Tokenize and index a reference document, replacing any prior version.

    Returns:
        The ingested Document.

    Raises:
        EncodingError: If the text cannot be decoded.
        EmptyDocumentError: If the text has no tokens.
        IndexClosedError: If the index is not open.
    """
    payload = CorpusDocumentInput(
        document_id=document_id,
        raw_text=raw_text,
        author_id=author_id,
        origin=origin_tag,  # type: ignore[arg-type]
        title=title,
        url=url,
    )
    with document_context(document_id):
        document = await asyncio.to_thread(_ingest, payload, index)
        logger.info(
            "Ingested corpus document: origin=%s, tokens=%d, corpus_size=%d",
            document.origin, document.token_count, len(index),
        )
    return document


async def remove_corpus_document(document_id: str, index: FingerprintIndex) -> None:
    """Remove a reference document and all of its postings.

    Raises:
        DocumentNotFoundError: If the id is not in the corpus.
    """
    with document_context(document_id):
        await asyncio.to_thread(index.remove, document_id)
        logger.info("Removed corpus document, corpus_size=%d", len(index))


async def analyze(
    document_id: str,
    raw_text: str | bytes,
    author_id: str,
    corpus_scope: Iterable[str] | None,
    index: FingerprintIndex,
    settings: Settings | None = None,
    cancel_token: CancellationToken | None = None,
    report_store: ReportStore | None = None,
    state: AnalysisRunState | None = None,
    title: str = "",
) -> AnalysisReport:
    """Analyze a submitted document against the corpus.

    Args:
        document_id: Id of the submitted document (never matched against itself).
        raw_text: Extracted plain text.
        author_id: Submitting author, used for self-plagiarism detection.
        corpus_scope: Origin tags to match against (None = all).
        index: Opened fingerprint index.
        settings: Thresholds and limits; loaded from .env if None.
        cancel_token: Lets the caller cancel between candidate alignments.
        report_store: When given, the report is versioned and saved there.
        state: Optional run state to observe progress.
        title: Display title recorded on the report.

    Returns:
        The completed AnalysisReport.

    Raises:
        EncodingError, EmptyDocumentError, AnalysisTimeoutError,
        AnalysisCancelledError, IndexClosedError.
    """
    request = AnalysisRequest(
        document_id=document_id,
        raw_text=raw_text,
        author_id=author_id,
        corpus_scope=None if corpus_scope is None else tuple(corpus_scope),
        title=title,
    )
    settings = settings or Settings()
    if settings.shingle_size != index.shingle_size:
        logger.warning(
            "Settings shingle_size=%d differs from index shingle_size=%d; using the index's",
            settings.shingle_size, index.shingle_size,
        )

    runner = AnalysisRunner(index, settings)
    report = await runner.run(
        document_id=request.document_id,
        raw_text=request.raw_text,
        author_id=request.author_id,
        corpus_scope=request.corpus_scope,
        cancel_token=cancel_token,
        state=state,
        title=request.title,
    )
    if report_store is not None:
        report = await asyncio.to_thread(report_store.save_next, report)
    return report


def _ingest(payload: CorpusDocumentInput, index: FingerprintIndex) -> Document:
    tokens = tokenize(payload.raw_text, document_id=payload.document_id)
    if len(tokens) == 0:
        raise EmptyDocumentError(
            "Corpus document has no tokens",
            document_id=payload.document_id,
            stage="ingesting",
        )
    document = Document(
        id=payload.document_id,
        author_id=payload.author_id,
        origin=payload.origin,
        tokens=tokens,
        ingested_at=datetime.now(timezone.utc),
        title=payload.title or "",
        url=payload.url,
    )
    index.ingest(document)
    return document
