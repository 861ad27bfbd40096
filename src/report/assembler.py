# src/report/assembler.py — v1
"""Report assembler: scored alignments to the immutable AnalysisReport.

Ordering is total and input-order independent:
  - sources by similarity desc, coverage desc, document id asc
  - spans within a source by query offset asc
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from docsim.core.models import AnalysisReport, Document, MatchSpan, SourceMatch
from docsim.scoring.classifier import RiskPolicy
from docsim.scoring.scorer import score_overall, score_source

logger = logging.getLogger(__name__)


def build_source_match(
    source: Document,
    spans: Sequence[MatchSpan],
    query_tokens: int,
    query_author_id: str,
    max_spans: int | None = None,
) -> SourceMatch:
    """Score one source and attach its (possibly capped) spans."""
    self_match = source.author_id == query_author_id
    score = score_source(source.id, spans, query_tokens, self_match=self_match)
    ordered = sorted(spans, key=lambda s: (s.query_start, s.source_start))
    if max_spans is not None:
        ordered = ordered[:max_spans]
    return SourceMatch(
        document_id=source.id,
        title=source.display_title,
        origin=source.origin,
        author_id=source.author_id,
        url=source.url,
        spans=tuple(ordered),
        matched_tokens=score.matched_tokens,
        coverage=score.coverage,
        similarity=score.similarity,
        self_match=self_match,
    )


def rank_sources(sources: Iterable[SourceMatch]) -> list[SourceMatch]:
    return sorted(sources, key=lambda s: (-s.similarity, -s.coverage, s.document_id))


def assemble_report(
    *,
    document_id: str,
    run_id: str,
    author_id: str,
    query_tokens: int,
    alignments: Iterable[tuple[Document, Sequence[MatchSpan]]],
    policy: RiskPolicy | None = None,
    corpus_scope: Sequence[str] = (),
    corpus_generation: int = 0,
    version: int = 1,
    title: str = "",
    max_spans_per_source: int | None = None,
    analyzed_at: datetime | None = None,
) -> AnalysisReport:
    """Build the final report from per-source alignments.

    Overall similarity is computed from every span of every source before
    any per-source span cap is applied, so paging spans never changes the
    score.

    Args:
        document_id: Query document id.
        run_id: Identifier of this analysis run.
        author_id: Query author, used for the self-plagiarism flag.
        query_tokens: Number of tokens in the query (> 0).
        alignments: (source document, spans) pairs; sources without spans
            are dropped.
        policy: Risk thresholds; defaults to 15/30 and 5% self coverage.
        corpus_scope: Origin tags that participated.
        corpus_generation: Index generation observed by the run.
        version: Report version for this document id.
        title: Display title of the query document.
        max_spans_per_source: Cap on spans listed per source (None = all).
        analyzed_at: Completion timestamp; now (UTC) by default.
    """
    policy = policy or RiskPolicy()
    spans_by_source: dict[str, Sequence[MatchSpan]] = {}
    sources: list[SourceMatch] = []
    for source, spans in alignments:
        if not spans:
            continue
        spans_by_source[source.id] = spans
        sources.append(
            build_source_match(
                source, spans, query_tokens, author_id, max_spans=max_spans_per_source,
            )
        )

    overall = score_overall(
        spans_by_source,
        query_tokens,
        policy,
        self_match_coverages=[s.coverage for s in sources if s.self_match],
    )
    ranked = rank_sources(sources)

    report = AnalysisReport(
        document_id=document_id,
        run_id=run_id,
        version=version,
        corpus_generation=corpus_generation,
        author_id=author_id,
        title=title,
        word_count=query_tokens,
        similarity=overall.similarity,
        coverage=overall.coverage,
        risk=overall.risk,  # type: ignore[arg-type]
        self_plagiarism=overall.self_plagiarism,
        corpus_scope=tuple(corpus_scope),  # type: ignore[arg-type]
        sources=tuple(ranked),
        analyzed_at=analyzed_at or datetime.now(timezone.utc),
    )
    logger.info(
        "Report assembled: similarity=%d%%, risk=%s, sources=%d, self_plagiarism=%s",
        report.similarity, report.risk, len(ranked), report.self_plagiarism,
    )
    return report

