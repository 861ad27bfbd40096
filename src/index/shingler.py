# src/index/shingler.py — v1
"""Shingling and winnowing of normalized token sequences.

Winnowing keeps, for every window of `window` consecutive shingles, the
rightmost minimal hash. Any shared run of at least shingle_size + window - 1
tokens is then guaranteed to share one selected hash; shorter shared runs
may be missed. window <= 1 keeps every shingle.
"""

from __future__ import annotations

from collections.abc import Sequence

from docsim.index.models import Shingle
from docsim.index.rolling_hash import RollingHash, token_hash


def shingle(tokens: Sequence[str], k: int) -> list[Shingle]:
    """Produce the N-k+1 hashed shingles of a token sequence.

    Returns an empty list when the sequence is shorter than k.
    """
    roller = RollingHash(k)
    hashes = roller.hashes([token_hash(t) for t in tokens])
    return [Shingle(h, i) for i, h in enumerate(hashes)]


def winnow(shingles: Sequence[Shingle], window: int) -> list[Shingle]:
    """Select fingerprints with robust winnowing.

    Args:
        shingles: Shingles in offset order.
        window: Number of consecutive shingles per winnowing window.

    Returns:
        Selected shingles in offset order, each at most once.
    """
    if window <= 1 or len(shingles) <= 1:
        return list(shingles)
    if len(shingles) <= window:
        return [_rightmost_min(shingles, 0, len(shingles))]

    selected: list[Shingle] = []
    last_offset = -1
    for start in range(len(shingles) - window + 1):
        chosen = _rightmost_min(shingles, start, start + window)
        if chosen.offset != last_offset:
            selected.append(chosen)
            last_offset = chosen.offset
    return selected


def _rightmost_min(shingles: Sequence[Shingle], start: int, end: int) -> Shingle:
    best = shingles[start]
    for s in shingles[start + 1 : end]:
        if s.hash <= best.hash:
            best = s
    return best
