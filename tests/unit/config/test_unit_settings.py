# tests/unit/config/test_unit_settings.py — v1
"""Tests for config/settings.py — defaults, env loading, validators."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from docsim.config.settings import ConfigurationError, Settings, load_settings


class TestDefaults:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.shingle_size == 5
        assert s.winnow_window == 1
        assert s.min_shared_shingles == 4
        assert s.min_shared_ratio == 0.01
        assert s.max_candidates == 50
        assert s.merge_gap == 2
        assert (s.risk_low_max, s.risk_medium_max) == (15, 30)
        assert s.self_plagiarism_min_coverage == 0.05
        assert s.max_spans_per_source is None
        assert s.alignment_concurrency == 4
        assert s.run_timeout_seconds == 30.0
        assert s.corpus_backend == "memory"
        assert s.log_format == "json"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DOCSIM_SHINGLE_SIZE", "7")
        monkeypatch.setenv("DOCSIM_CORPUS_BACKEND", "sqlite")
        s = Settings(_env_file=None)
        assert s.shingle_size == 7
        assert s.corpus_backend == "sqlite"

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("DOCSIM_MERGE_GAP=5\nDOCSIM_REPORTS_ROOT=/tmp/r\n", encoding="utf-8")
        s = Settings(_env_file=env)
        assert s.merge_gap == 5
        assert s.reports_root == Path("/tmp/r")

    def test_load_settings_overrides(self):
        s = load_settings(max_candidates=3)
        assert s.max_candidates == 3


class TestFieldValidators:
    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("shingle_size", 0),
            ("winnow_window", 0),
            ("alignment_concurrency", 0),
            ("max_candidates", 0),
            ("merge_gap", -1),
            ("min_shared_shingles", -1),
            ("min_shared_ratio", 1.5),
            ("self_plagiarism_min_coverage", -0.1),
            ("run_timeout_seconds", 0),
        ],
    )
    def test_rejected(self, field, value):
        with pytest.raises(ValidationError, match=field):
            Settings(_env_file=None, **{field: value})


class TestConsistency:
    def test_inverted_risk_thresholds(self):
        with pytest.raises(ConfigurationError, match="RISK thresholds"):
            Settings(_env_file=None, risk_low_max=40, risk_medium_max=30)

    def test_persistent_backend_requires_root(self):
        with pytest.raises(ConfigurationError, match="requires CORPUS_ROOT"):
            Settings(_env_file=None, corpus_backend="json", corpus_root=None)

    def test_span_cap_positive(self):
        with pytest.raises(ConfigurationError, match="MAX_SPANS_PER_SOURCE"):
            Settings(_env_file=None, max_spans_per_source=0)

    def test_errors_combined(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(
                _env_file=None, risk_low_max=50, risk_medium_max=10, max_spans_per_source=0,
            )
        assert ";" in str(exc_info.value)
