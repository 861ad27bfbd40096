# src/scoring/scorer.py — v1
"""Coverage aggregation over aligned spans.

Per-source coverage counts each query token once even if several spans of
that source touch it; overall coverage does the same across all sources, so
a passage attributed to two sources is never counted twice.

Percentages are rounded half up, and the overall percentage is capped at the
sum of the rounded per-source percentages so that several sub-percent
sources never add up to more than their listed values.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from docsim.core.models import MatchSpan
from docsim.scoring.classifier import RiskPolicy, to_percent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceScore:
    """Coverage of the query explained by one source."""

    document_id: str
    matched_tokens: int
    coverage: float
    similarity: int
    self_match: bool


@dataclass(frozen=True)
class OverallScore:
    matched_tokens: int
    coverage: float
    similarity: int
    risk: str
    self_plagiarism: bool


def coverage_mask(spans: Iterable[MatchSpan], query_tokens: int) -> np.ndarray:
    """Boolean mask over query tokens covered by any of the spans."""
    mask = np.zeros(query_tokens, dtype=bool)
    for span in spans:
        mask[span.query_start:span.query_end] = True
    return mask


def score_source(
    document_id: str,
    spans: Sequence[MatchSpan],
    query_tokens: int,
    self_match: bool = False,
) -> SourceScore:
    """Score the spans of a single source against the query length."""
    if query_tokens <= 0:
        raise ValueError("query_tokens must be > 0")
    matched = int(coverage_mask(spans, query_tokens).sum())
    coverage = matched / query_tokens
    return SourceScore(
        document_id=document_id,
        matched_tokens=matched,
        coverage=coverage,
        similarity=to_percent(coverage),
        self_match=self_match,
    )


def score_overall(
    spans_by_source: dict[str, Sequence[MatchSpan]],
    query_tokens: int,
    policy: RiskPolicy | None = None,
    self_match_coverages: Iterable[float] = (),
) -> OverallScore:
    """Union coverage across sources, risk tier and self-plagiarism flag.

    `self_match_coverages` are the per-source coverages of sources written
    by the query's author.
    """
    if query_tokens <= 0:
        raise ValueError("query_tokens must be > 0")
    policy = policy or RiskPolicy()

    mask = np.zeros(query_tokens, dtype=bool)
    source_similarity_total = 0
    for spans in spans_by_source.values():
        source_mask = coverage_mask(spans, query_tokens)
        source_similarity_total += to_percent(int(source_mask.sum()) / query_tokens)
        mask |= source_mask
    matched = int(mask.sum())
    coverage = matched / query_tokens
    similarity = min(to_percent(coverage), source_similarity_total)

    self_plagiarism = any(
        c > policy.self_plagiarism_min_coverage for c in self_match_coverages
    )
    risk = policy.classify(similarity)
    logger.debug(
        "Overall coverage %.4f (%d/%d tokens) -> %d%% %s, self_plagiarism=%s",
        coverage, matched, query_tokens, similarity, risk, self_plagiarism,
    )
    return OverallScore(
        matched_tokens=matched,
        coverage=coverage,
        similarity=similarity,
        risk=risk,
        self_plagiarism=self_plagiarism,
    )
