# src/matching/candidates.py — v1
"""Candidate matcher: shared-fingerprint tally over the index.

A corpus document becomes a candidate only when it shares at least
`min_shared` distinct query shingles AND at least `min_ratio` of the
query's distinct shingles.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from typing import TYPE_CHECKING

from docsim.matching.models import Candidate

if TYPE_CHECKING:
    from docsim.index.fingerprint_index import FingerprintIndex
    from docsim.index.models import Shingle

logger = logging.getLogger(__name__)

DEFAULT_MIN_SHARED = 4
DEFAULT_MIN_RATIO = 0.01
DEFAULT_MAX_CANDIDATES = 50


def select_candidates(
    query_shingles: Iterable[Shingle],
    index: FingerprintIndex,
    origins: Iterable[str] | None = None,
    exclude_document_id: str | None = None,
    min_shared: int = DEFAULT_MIN_SHARED,
    min_ratio: float = DEFAULT_MIN_RATIO,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> list[Candidate]:
    """Rank corpus documents by shared shingles with the query.

    Args:
        query_shingles: All shingles of the query document.
        index: Opened fingerprint index.
        origins: Origin tags allowed to participate (None = all).
        exclude_document_id: Id never returned (the query itself, if ingested).
        min_shared: Minimum number of distinct shared shingles.
        min_ratio: Minimum shared / distinct query shingles.
        max_candidates: Cap on returned candidates.

    Returns:
        Candidates sorted by shared count desc, then document id asc.
    """
    distinct = {s.hash for s in query_shingles}
    if not distinct:
        return []

    allowed = set(index.document_ids(origins))
    tally: Counter[str] = Counter()
    for postings in index.lookup_many(distinct).values():
        for document_id in {p.document_id for p in postings}:
            if document_id in allowed and document_id != exclude_document_id:
                tally[document_id] += 1

    total = len(distinct)
    candidates = [
        Candidate(document_id=doc_id, shared_shingles=count, shared_ratio=count / total)
        for doc_id, count in tally.items()
        if count >= min_shared and count / total >= min_ratio
    ]
    candidates.sort(key=lambda c: (-c.shared_shingles, c.document_id))

    if len(candidates) > max_candidates:
        logger.info(
            "Capping candidates at %d (of %d above threshold)",
            max_candidates, len(candidates),
        )
        candidates = candidates[:max_candidates]

    logger.debug(
        "Candidate selection: %d documents touched, %d candidates",
        len(tally), len(candidates),
    )
    return candidates
