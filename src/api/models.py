# src/api/models.py — v1
"""API-level request models: CorpusDocumentInput, AnalysisRequest."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from docsim.core.models import OriginTag, normalize_scope


class CorpusDocumentInput(BaseModel):
    """A reference document to add to the corpus."""

    document_id: str
    raw_text: str | bytes
    author_id: str
    origin: OriginTag
    title: str | None = None
    url: str | None = None

    @field_validator("document_id", "author_id")
    @classmethod
    def validate_identifier(cls, v: str, info) -> str:  # noqa: N805
        if not v.strip():
            raise ValueError(f"{info.field_name} must not be blank")
        return v


class AnalysisRequest(BaseModel):
    """A submitted document to analyze against the corpus."""

    document_id: str
    raw_text: str | bytes
    author_id: str
    corpus_scope: tuple[OriginTag, ...] | None = None
    title: str = ""

    @field_validator("document_id", "author_id")
    @classmethod
    def validate_identifier(cls, v: str, info) -> str:  # noqa: N805
        if not v.strip():
            raise ValueError(f"{info.field_name} must not be blank")
        return v

    @field_validator("corpus_scope", mode="before")
    @classmethod
    def validate_scope(cls, v: object) -> object:  # noqa: N805
        if v is None:
            return None
        return normalize_scope(v)  # type: ignore[arg-type]
