# src/index/models.py — v1
"""Index domain models: Shingle, Posting, IndexStats."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel


class Shingle(NamedTuple):
    """Hashed window of k consecutive tokens starting at `offset`."""

    hash: int
    offset: int


class Posting(NamedTuple):
    """One occurrence of a shingle hash in an ingested document."""

    document_id: str
    offset: int


class IndexStats(BaseModel):
    """Snapshot of index size and configuration."""

    shingle_size: int
    winnow_window: int
    document_count: int
    distinct_hashes: int
    postings_count: int
    generation: int
