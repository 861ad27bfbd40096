# src/tracking/models.py — v1
"""Tracking domain models: RiskDistribution."""

from __future__ import annotations

from pydantic import BaseModel


class RiskDistribution(BaseModel):
    """Dashboard view over a set of analysis reports."""

    total_documents: int = 0
    counts: dict[str, int] = {"low": 0, "medium": 0, "high": 0}
    percentages: dict[str, int] = {"low": 0, "medium": 0, "high": 0}
    average_similarity: float = 0.0
    originality_rate: float = 100.0
    self_plagiarism_count: int = 0
