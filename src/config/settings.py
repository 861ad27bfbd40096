# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for matching thresholds, risk policy, concurrency
limits, corpus persistence and logging. Every variable is read with the
DOCSIM_ prefix (e.g. DOCSIM_SHINGLE_SIZE=7).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_prefix="DOCSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Shingling ===
    # Changing shingle_size invalidates the persisted index (full reingestion).
    shingle_size: int = 5
    # Winnowing window for postings. 1 = index every shingle. Larger windows
    # shrink the index but a shared passage shorter than
    # shingle_size + winnow_window - 1 tokens may no longer make its source a
    # candidate. Alignment itself always uses every shingle.
    winnow_window: int = 1

    # === Candidate selection ===
    min_shared_shingles: int = 4
    min_shared_ratio: float = 0.01
    max_candidates: int = 50

    # === Alignment ===
    merge_gap: int = 2

    # === Risk policy ===
    risk_low_max: int = 15
    risk_medium_max: int = 30
    self_plagiarism_min_coverage: float = 0.05

    # === Report ===
    max_spans_per_source: int | None = None
    excerpt_sentence_context: bool = False

    # === Run limits ===
    alignment_concurrency: int = 4
    run_timeout_seconds: float = 30.0

    # === Corpus persistence ===
    corpus_backend: Literal["memory", "json", "sqlite"] = "memory"
    corpus_root: Path | None = Path("~/.docsim/corpus")
    reports_root: Path = Path("~/.docsim/reports")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("shingle_size", "winnow_window", "alignment_concurrency")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("min_shared_shingles", "merge_gap")
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("min_shared_ratio", "self_plagiarism_min_coverage")
    @classmethod
    def validate_ratio(cls, v: float, info) -> float:  # noqa: N805
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"{info.field_name} must be within [0, 1]")
        return v

    @field_validator("max_candidates")
    @classmethod
    def validate_max_candidates(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("max_candidates must be >= 1")
        return v

    @field_validator("run_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("run_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not 0 <= self.risk_low_max < self.risk_medium_max <= 100:
            errors.append(
                "RISK thresholds must satisfy 0 <= RISK_LOW_MAX < RISK_MEDIUM_MAX <= 100"
            )

        if self.corpus_backend != "memory" and self.corpus_root is None:
            errors.append(f"CORPUS_BACKEND={self.corpus_backend} requires CORPUS_ROOT")

        if self.max_spans_per_source is not None and self.max_spans_per_source < 1:
            errors.append("MAX_SPANS_PER_SOURCE must be >= 1 when set")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
