# src/index/rolling_hash.py — v1
"""64-bit Rabin-Karp rolling hash over token hashes.

Token hashes come from blake2b so values are stable across processes
(Python's built-in hash() is salted per interpreter and must not be used).
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

MASK64 = (1 << 64) - 1
# Odd 64-bit multiplier (FNV-1a 64 prime)
BASE = 0x100000001B3


def token_hash(text: str) -> int:
    """Stable unsigned 64-bit hash of a normalized token."""
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big")


class RollingHash:
    """Polynomial hash of a k-token window, updated in O(1) per slide.

    H(t0..tk-1) = sum(t_i * BASE^(k-1-i)) mod 2^64
    """

    def __init__(self, k: int) -> None:
        if k < 1:
            raise ValueError(f"Window size must be >= 1, got {k}")
        self.k = k
        self._lead_power = pow(BASE, k - 1, 1 << 64)

    def initial(self, window: Sequence[int]) -> int:
        """Hash of a full window of k token hashes."""
        if len(window) != self.k:
            raise ValueError(f"Expected {self.k} token hashes, got {len(window)}")
        value = 0
        for h in window:
            value = (value * BASE + h) & MASK64
        return value

    def roll(self, current: int, outgoing: int, incoming: int) -> int:
        """Slide the window one token: drop `outgoing`, append `incoming`."""
        value = (current - outgoing * self._lead_power) & MASK64
        return (value * BASE + incoming) & MASK64

    def hashes(self, token_hashes: Sequence[int]) -> list[int]:
        """All window hashes of a token-hash sequence (N-k+1 values)."""
        n = len(token_hashes)
        if n < self.k:
            return []
        current = self.initial(token_hashes[: self.k])
        out = [current]
        for i in range(self.k, n):
            current = self.roll(current, token_hashes[i - self.k], token_hashes[i])
            out.append(current)
        return out
