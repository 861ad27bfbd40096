# src/matching/alignment.py — v1
"""Alignment engine: query/source shingle sequences to MatchSpans.

Two passes:
  1. Greedy monotone walk over the query's shingle hashes. A matching
     shingle extends the open run when its source position comes after the
     previous match and neither side skipped more than `merge_gap`
     shingles; the exact diagonal continuation is preferred. Otherwise the
     run is closed and a new one is seeded at the source position with the
     longest exact diagonal (lowest position on ties).
  2. Runs are converted to token ranges, runs within `merge_gap` tokens of
     each other on both sides are merged, and leftover query-space overlap
     is trimmed so spans are disjoint and sorted by query offset.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass

from docsim.core.models import MatchSpan, TokenStream

DEFAULT_MERGE_GAP = 2
# Seeding looks at no more than this many source positions of one hash
MAX_SEED_POSITIONS = 64


@dataclass
class _Run:
    q_first: int
    s_first: int
    q_last: int
    s_last: int


@dataclass(frozen=True)
class TokenRange:
    """Aligned token ranges [q_start, q_end) / [s_start, s_end)."""

    q_start: int
    q_end: int
    s_start: int
    s_end: int


def align_shingles(
    query_hashes: Sequence[int],
    source_hashes: Sequence[int],
    merge_gap: int = DEFAULT_MERGE_GAP,
) -> list[tuple[int, int, int, int]]:
    """Greedy monotone runs over two shingle-hash sequences.

    Returns:
        (q_first, q_last, s_first, s_last) shingle indices per run, in
        query order.
    """
    positions: dict[int, list[int]] = {}
    for j, h in enumerate(source_hashes):
        positions.setdefault(h, []).append(j)

    runs: list[_Run] = []
    current: _Run | None = None

    for i, h in enumerate(query_hashes):
        candidates = positions.get(h)
        if not candidates:
            continue

        if current is not None:
            if i - current.q_last - 1 <= merge_gap:
                j = _continuation(candidates, current, i, merge_gap)
                if j is not None:
                    current.q_last, current.s_last = i, j
                    continue
            runs.append(current)

        j = _best_seed(query_hashes, source_hashes, i, candidates)
        current = _Run(q_first=i, s_first=j, q_last=i, s_last=j)

    if current is not None:
        runs.append(current)

    return [(r.q_first, r.q_last, r.s_first, r.s_last) for r in runs]


def runs_to_ranges(
    runs: Sequence[tuple[int, int, int, int]],
    shingle_size: int,
    merge_gap: int = DEFAULT_MERGE_GAP,
) -> list[TokenRange]:
    """Convert shingle runs to merged, disjoint token ranges."""
    ranges: list[TokenRange] = []
    for q_first, q_last, s_first, s_last in sorted(runs):
        nxt = TokenRange(q_first, q_last + shingle_size, s_first, s_last + shingle_size)
        if not ranges:
            ranges.append(nxt)
            continue

        prev = ranges[-1]
        query_overlap = max(0, prev.q_end - nxt.q_start)
        source_overlap = max(0, prev.s_end - nxt.s_start)
        if (
            nxt.q_start - prev.q_end <= merge_gap
            and nxt.s_start >= prev.s_start
            and nxt.s_start - prev.s_end <= merge_gap
            and source_overlap <= query_overlap
        ):
            ranges[-1] = TokenRange(
                prev.q_start,
                max(prev.q_end, nxt.q_end),
                prev.s_start,
                max(prev.s_end, nxt.s_end),
            )
            continue

        if query_overlap:
            q_start = nxt.q_start + query_overlap
            s_start = min(nxt.s_start + query_overlap, nxt.s_end - 1)
            if q_start >= nxt.q_end:
                continue
            nxt = TokenRange(q_start, nxt.q_end, s_start, nxt.s_end)
        ranges.append(nxt)
    return ranges


def align(
    query: TokenStream,
    query_hashes: Sequence[int],
    source: TokenStream,
    source_hashes: Sequence[int],
    shingle_size: int,
    merge_gap: int = DEFAULT_MERGE_GAP,
    sentence_context: bool = False,
) -> list[MatchSpan]:
    """Align a query against one source and cut verbatim excerpts.

    Args:
        query: Query token stream.
        query_hashes: Query shingle hashes in offset order.
        source: Source token stream.
        source_hashes: Source shingle hashes in offset order.
        shingle_size: Tokens per shingle used to build both hash sequences.
        merge_gap: Max skipped shingles/tokens tolerated inside one span.
        sentence_context: Widen excerpts to whole sentences.

    Returns:
        Disjoint MatchSpans sorted by query_start.
    """
    runs = align_shingles(query_hashes, source_hashes, merge_gap)
    ranges = runs_to_ranges(runs, shingle_size, merge_gap)
    return [_to_span(r, query, source, sentence_context) for r in ranges]


def _continuation(
    candidates: list[int], run: _Run, i: int, merge_gap: int,
) -> int | None:
    """Source position extending `run` with query shingle i, if any."""
    expected = run.s_last + (i - run.q_last)
    k = bisect.bisect_left(candidates, expected)
    if k < len(candidates) and candidates[k] == expected:
        return expected
    k = bisect.bisect_right(candidates, run.s_last)
    if k < len(candidates) and candidates[k] - run.s_last - 1 <= merge_gap:
        return candidates[k]
    return None


def _best_seed(
    query_hashes: Sequence[int],
    source_hashes: Sequence[int],
    i: int,
    candidates: list[int],
) -> int:
    best_j = candidates[0]
    best_len = -1
    for j in candidates[:MAX_SEED_POSITIONS]:
        length = 0
        while (
            i + length < len(query_hashes)
            and j + length < len(source_hashes)
            and query_hashes[i + length] == source_hashes[j + length]
        ):
            length += 1
        if length > best_len:
            best_j, best_len = j, length
    return best_j


def _to_span(
    r: TokenRange,
    query: TokenStream,
    source: TokenStream,
    sentence_context: bool,
) -> MatchSpan:
    q_chars = query.char_span(r.q_start, r.q_end)
    s_chars = source.char_span(r.s_start, r.s_end)
    q_bytes = query.byte_span(r.q_start, r.q_end)
    s_bytes = source.byte_span(r.s_start, r.s_end)
    exact = [t.raw for t in query.tokens[r.q_start:r.q_end]] == [
        t.raw for t in source.tokens[r.s_start:r.s_end]
    ]
    return MatchSpan(
        query_start=r.q_start,
        query_end=r.q_end,
        source_start=r.s_start,
        source_end=r.s_end,
        exact=exact,
        query_char_start=q_chars[0],
        query_char_end=q_chars[1],
        source_char_start=s_chars[0],
        source_char_end=s_chars[1],
        query_byte_start=q_bytes[0],
        query_byte_end=q_bytes[1],
        source_byte_start=s_bytes[0],
        source_byte_end=s_bytes[1],
        query_excerpt=query.excerpt(r.q_start, r.q_end, sentence_context),
        source_excerpt=source.excerpt(r.s_start, r.s_end, sentence_context),
    )
