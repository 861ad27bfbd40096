# src/tracking/stats_aggregator.py — v1
"""Cross-document statistics for the dashboard.

Aggregates the latest report of each document into a RiskDistribution:
per-tier counts and integer percentages, average similarity and the
originality rate (100 - average similarity).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from docsim.core.models import AnalysisReport
from docsim.storage.models import ReportSummary
from docsim.tracking.models import RiskDistribution

logger = logging.getLogger(__name__)

RISK_TIERS = ("low", "medium", "high")


def compute_risk_distribution(
    reports: Iterable[AnalysisReport | ReportSummary],
) -> RiskDistribution:
    """Aggregate reports into per-tier counts and percentages.

    Args:
        reports: One report (or summary) per document.

    Returns:
        RiskDistribution; an empty input yields zero counts and a 100%
        originality rate.
    """
    counts = dict.fromkeys(RISK_TIERS, 0)
    total_similarity = 0
    self_plagiarism = 0
    n = 0
    for report in reports:
        counts[report.risk] += 1
        total_similarity += report.similarity
        self_plagiarism += int(report.self_plagiarism)
        n += 1

    if n == 0:
        return RiskDistribution()

    average = round(total_similarity / n, 1)
    distribution = RiskDistribution(
        total_documents=n,
        counts=counts,
        percentages=_integer_percentages(counts, n),
        average_similarity=average,
        originality_rate=round(100.0 - average, 1),
        self_plagiarism_count=self_plagiarism,
    )
    logger.debug("Risk distribution over %d reports: %s", n, counts)
    return distribution


def _integer_percentages(counts: dict[str, int], total: int) -> dict[str, int]:
    """Largest-remainder rounding so the percentages sum to exactly 100."""
    raw = {tier: counts[tier] * 100 / total for tier in RISK_TIERS}
    floors = {tier: int(value) for tier, value in raw.items()}
    remaining = 100 - sum(floors.values())
    by_remainder = sorted(RISK_TIERS, key=lambda t: (-(raw[t] - floors[t]), RISK_TIERS.index(t)))
    for tier in by_remainder[:remaining]:
        floors[tier] += 1
    return floors
