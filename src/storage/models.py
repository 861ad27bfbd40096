# src/storage/models.py — v1
"""Storage domain models: ReportSummary."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from docsim.core.models import AnalysisReport, RiskTier


class ReportSummary(BaseModel):
    """One row of a document's report history."""

    document_id: str
    run_id: str
    version: int
    title: str = ""
    similarity: int
    risk: RiskTier
    self_plagiarism: bool = False
    match_count: int = 0
    word_count: int = 0
    analyzed_at: datetime
    status: Literal["pending", "processing", "completed"] = "completed"

    @classmethod
    def from_report(cls, report: AnalysisReport) -> ReportSummary:
        return cls(
            document_id=report.document_id,
            run_id=report.run_id,
            version=report.version,
            title=report.title or report.document_id,
            similarity=report.similarity,
            risk=report.risk,
            self_plagiarism=report.self_plagiarism,
            match_count=report.match_count,
            word_count=report.word_count,
            analyzed_at=report.analyzed_at,
        )
