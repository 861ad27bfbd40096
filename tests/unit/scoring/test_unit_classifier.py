# tests/unit/scoring/test_unit_classifier.py — v1
"""Tests for scoring/classifier.py — percent rounding and risk tiers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from docsim.scoring.classifier import RiskPolicy, classify_risk, to_percent


class TestToPercent:
    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [(0.0, 0), (0.004, 0), (0.005, 1), (0.5, 50), (0.125, 13), (1.0, 100)],
    )
    def test_half_up(self, ratio, expected):
        assert to_percent(ratio) == expected

    def test_clamped(self):
        assert to_percent(-0.2) == 0
        assert to_percent(1.7) == 100


class TestClassifyRisk:
    @pytest.mark.parametrize(
        ("similarity", "tier"),
        [(0, "low"), (15, "low"), (16, "medium"), (30, "medium"), (31, "high"), (100, "high")],
    )
    def test_default_boundaries(self, similarity, tier):
        assert classify_risk(similarity) == tier

    def test_custom_boundaries(self):
        assert classify_risk(20, low_max=20, medium_max=40) == "low"
        assert classify_risk(41, low_max=20, medium_max=40) == "high"


class TestRiskPolicy:
    def test_defaults(self):
        policy = RiskPolicy()
        assert policy.classify(50) == "high"
        assert policy.classify(25) == "medium"

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValidationError):
            RiskPolicy(low_max=40, medium_max=30)

    def test_coverage_out_of_range(self):
        with pytest.raises(ValidationError):
            RiskPolicy(self_plagiarism_min_coverage=1.5)

    def test_frozen(self):
        policy = RiskPolicy()
        with pytest.raises(ValidationError):
            policy.low_max = 5
