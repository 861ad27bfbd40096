# src/matching/models.py — v1
"""Matching models: Candidate."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Candidate:
    """Corpus document provisionally matched by shared fingerprints."""

    document_id: str
    shared_shingles: int
    shared_ratio: float
