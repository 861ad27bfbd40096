# src/scoring/classifier.py — v1
"""Risk policy: pure mapping from a similarity percentage to a risk tier."""

from __future__ import annotations

import math

from pydantic import BaseModel, model_validator

from docsim.core.models import RiskTier


class RiskPolicy(BaseModel):
    """Tier boundaries, inclusive upper bounds in percent.

    A same-author source marks self-plagiarism only when its coverage is
    strictly above self_plagiarism_min_coverage.
    """

    model_config = {"frozen": True}

    low_max: int = 15
    medium_max: int = 30
    self_plagiarism_min_coverage: float = 0.05

    @model_validator(mode="after")
    def validate_bounds(self) -> RiskPolicy:
        if not 0 <= self.low_max < self.medium_max <= 100:
            raise ValueError("Risk bounds must satisfy 0 <= low_max < medium_max <= 100")
        if not 0.0 <= self.self_plagiarism_min_coverage <= 1.0:
            raise ValueError("self_plagiarism_min_coverage must be within [0, 1]")
        return self

    def classify(self, similarity: int) -> RiskTier:
        return classify_risk(similarity, self.low_max, self.medium_max)


def to_percent(ratio: float) -> int:
    """Ratio in [0, 1] to an integer percentage, rounding half up."""
    return max(0, min(100, math.floor(ratio * 100 + 0.5)))


def classify_risk(similarity: int, low_max: int = 15, medium_max: int = 30) -> RiskTier:
    """<= low_max is low, <= medium_max is medium, anything above is high."""
    if similarity <= low_max:
        return "low"
    if similarity <= medium_max:
        return "medium"
    return "high"
