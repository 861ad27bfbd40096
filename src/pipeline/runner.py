# src/pipeline/runner.py — v1
"""Analysis runner: drives one run through its stages.

Supports:
  - bounded fan-out of candidate alignments to worker threads
  - deterministic merge (sorted by source id) regardless of completion order
  - cooperative cancellation checked between candidate alignments
  - a per-run timeout covering every stage; tokenizing, candidate lookup and
    report assembly run in worker threads so the event loop stays responsive
  - best-effort skip of candidates that vanish mid-run

No report is returned unless the run reaches `completed`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from docsim.config.settings import Settings
from docsim.core.errors import (
    AnalysisCancelledError,
    AnalysisTimeoutError,
    CandidateLookupError,
    DocSimError,
    DocumentNotFoundError,
    EmptyDocumentError,
)
from docsim.core.models import AnalysisReport, Document, MatchSpan, TokenStream, normalize_scope
from docsim.index.models import Shingle
from docsim.index.shingler import shingle, winnow
from docsim.logging.context import document_context, set_stage
from docsim.matching.alignment import align
from docsim.matching.candidates import select_candidates
from docsim.matching.models import Candidate
from docsim.pipeline.cancellation import CancellationToken
from docsim.pipeline.state import AnalysisRunState
from docsim.report.assembler import assemble_report
from docsim.scoring.classifier import RiskPolicy
from docsim.text.tokenizer import tokenize

if TYPE_CHECKING:
    from docsim.index.fingerprint_index import FingerprintIndex

logger = logging.getLogger(__name__)


class AnalysisRunner:
    """Execute analysis runs against a shared fingerprint index.

    Args:
        index: Opened fingerprint index (shared, not owned).
        settings: Thresholds, limits and risk policy.
    """

    def __init__(self, index: FingerprintIndex, settings: Settings | None = None) -> None:
        self._index = index
        self._settings = settings or Settings()
        self._policy = RiskPolicy(
            low_max=self._settings.risk_low_max,
            medium_max=self._settings.risk_medium_max,
            self_plagiarism_min_coverage=self._settings.self_plagiarism_min_coverage,
        )

    async def run(
        self,
        document_id: str,
        raw_text: str | bytes,
        author_id: str,
        corpus_scope: Iterable[str] | None = None,
        cancel_token: CancellationToken | None = None,
        state: AnalysisRunState | None = None,
        version: int = 1,
        title: str = "",
    ) -> AnalysisReport:
        """Analyze one document and return its report.

        Raises:
            EncodingError, EmptyDocumentError: Unusable input.
            AnalysisTimeoutError: The run exceeded run_timeout_seconds.
            AnalysisCancelledError: The caller cancelled the run.
        """
        scope = normalize_scope(corpus_scope)
        token = cancel_token or CancellationToken()
        state = state or AnalysisRunState(document_id=document_id)
        state.document_id = document_id

        with document_context(document_id, state.run_id):
            start = time.monotonic()
            logger.info(
                "Starting analysis: document_id=%s, run_id=%s, scope=%s",
                document_id, state.run_id, ",".join(scope),
            )
            try:
                report = await asyncio.wait_for(
                    self._run_stages(
                        document_id, raw_text, author_id, scope, token, state, version, title,
                    ),
                    timeout=self._settings.run_timeout_seconds,
                )
            except asyncio.TimeoutError:
                stage = state.status
                state.fail("timeout")
                logger.error(
                    "Analysis timed out after %.1fs in stage %s",
                    self._settings.run_timeout_seconds, stage,
                )
                raise AnalysisTimeoutError(
                    f"Analysis exceeded {self._settings.run_timeout_seconds:g}s",
                    document_id=document_id,
                    stage=stage,
                ) from None
            except (AnalysisCancelledError, asyncio.CancelledError):
                logger.info("Analysis cancelled in stage %s", state.status)
                if not state.is_terminal:
                    state.cancel()
                raise
            except DocSimError as e:
                if e.stage is None:
                    e.stage = state.status
                if e.document_id is None:
                    e.document_id = document_id
                logger.error("Analysis failed: %s", e)
                state.fail(str(e))
                raise
            except Exception as e:
                logger.exception("Analysis failed unexpectedly in stage %s", state.status)
                state.fail(f"{type(e).__name__}: {e}")
                raise
            finally:
                set_stage(None)

            logger.info(
                "Analysis complete: similarity=%d%%, risk=%s, sources=%d, %.0fms",
                report.similarity, report.risk, report.match_count,
                (time.monotonic() - start) * 1000,
            )
            return report

    async def _run_stages(
        self,
        document_id: str,
        raw_text: str | bytes,
        author_id: str,
        scope: tuple[str, ...],
        token: CancellationToken,
        state: AnalysisRunState,
        version: int,
        title: str,
    ) -> AnalysisReport:
        deadline = time.monotonic() + self._settings.run_timeout_seconds
        generation = self._index.generation

        # --- Tokenizing ---
        self._enter(state, "tokenizing", token, deadline)
        tokens = await asyncio.to_thread(self._tokenize, document_id, raw_text)

        # --- Matching ---
        self._enter(state, "matching", token, deadline)
        query_shingles, candidates = await asyncio.to_thread(
            self._match, document_id, tokens, scope,
        )
        state.candidates_total = len(candidates)

        # --- Aligning ---
        self._enter(state, "aligning", token, deadline)
        query_hashes = [s.hash for s in query_shingles]
        alignments = await self._align_all(
            document_id, tokens, query_hashes, candidates, token, state,
        )

        # --- Scoring ---
        self._enter(state, "scoring", token, deadline)
        report = await asyncio.to_thread(
            assemble_report,
            document_id=document_id,
            run_id=state.run_id,
            author_id=author_id,
            query_tokens=len(tokens),
            alignments=alignments,
            policy=self._policy,
            corpus_scope=scope,
            corpus_generation=generation,
            version=version,
            title=title,
            max_spans_per_source=self._settings.max_spans_per_source,
        )
        state.advance("completed")
        return report

    def _tokenize(self, document_id: str, raw_text: str | bytes) -> TokenStream:
        tokens = tokenize(raw_text, document_id=document_id)
        if len(tokens) == 0:
            raise EmptyDocumentError(
                "Document has no tokens", document_id=document_id, stage="tokenizing",
            )
        return tokens

    def _match(
        self,
        document_id: str,
        tokens: TokenStream,
        scope: tuple[str, ...],
    ) -> tuple[list[Shingle], list[Candidate]]:
        """Shingle the query and pick the sources worth aligning."""
        settings = self._settings
        query_shingles = shingle(tokens.normalized(), self._index.shingle_size)
        if len(tokens) < self._index.shingle_size:
            logger.info(
                "Document shorter than shingle size (%d < %d); nothing to match",
                len(tokens), self._index.shingle_size,
            )
        candidates = select_candidates(
            winnow(query_shingles, self._index.winnow_window),
            self._index,
            origins=scope,
            exclude_document_id=document_id,
            min_shared=settings.min_shared_shingles,
            min_ratio=settings.min_shared_ratio,
            max_candidates=settings.max_candidates,
        )
        return query_shingles, candidates

    async def _align_all(
        self,
        document_id: str,
        tokens: TokenStream,
        query_hashes: Sequence[int],
        candidates: Sequence[Candidate],
        token: CancellationToken,
        state: AnalysisRunState,
    ) -> list[tuple[Document, list[MatchSpan]]]:
        """Align every candidate with bounded concurrency; merge in id order."""
        semaphore = asyncio.Semaphore(self._settings.alignment_concurrency)

        async def align_one(candidate: Candidate) -> tuple[Document, list[MatchSpan]] | None:
            async with semaphore:
                token.raise_if_cancelled(document_id, "aligning")
                try:
                    result = await asyncio.to_thread(
                        self._align_candidate, tokens, query_hashes, candidate,
                    )
                except CandidateLookupError as e:
                    logger.warning("Skipping candidate: %s", e)
                    state.candidates_skipped += 1
                    return None
                state.candidates_aligned += 1
                token.raise_if_cancelled(document_id, "aligning")
                return result

        tasks = [asyncio.create_task(align_one(c)) for c in candidates]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        merged = [r for r in results if r is not None]
        merged.sort(key=lambda r: r[0].id)
        return merged

    def _align_candidate(
        self,
        tokens: TokenStream,
        query_hashes: Sequence[int],
        candidate: Candidate,
    ) -> tuple[Document, list[MatchSpan]]:
        try:
            source, source_shingles = self._index.document_snapshot(candidate.document_id)
        except DocumentNotFoundError as e:
            raise CandidateLookupError(
                "Candidate left the corpus during alignment",
                document_id=candidate.document_id,
                stage="aligning",
            ) from e
        spans = align(
            tokens,
            query_hashes,
            source.tokens,
            [s.hash for s in source_shingles],
            shingle_size=self._index.shingle_size,
            merge_gap=self._settings.merge_gap,
            sentence_context=self._settings.excerpt_sentence_context,
        )
        logger.debug(
            "Aligned %s: %d shared shingles -> %d spans",
            candidate.document_id, candidate.shared_shingles, len(spans),
        )
        return source, spans

    @staticmethod
    def _enter(
        state: AnalysisRunState, stage: str, token: CancellationToken, deadline: float,
    ) -> None:
        token.raise_if_cancelled(state.document_id, stage)
        if time.monotonic() >= deadline:
            raise asyncio.TimeoutError
        state.advance(stage)  # type: ignore[arg-type]
        set_stage(stage)
