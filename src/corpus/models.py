# src/corpus/models.py — v1
"""Corpus persistence models: StoredDocument, CorpusManifest."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from docsim.core.models import OriginTag


class StoredDocument(BaseModel):
    """Persisted form of a corpus document.

    Raw text is kept (not tokens or shingles) so the index can be rebuilt
    under any shingling configuration.
    """

    document_id: str
    author_id: str
    origin: OriginTag
    raw_text: str
    ingested_at: datetime
    title: str = ""
    url: str | None = None


class CorpusManifest(BaseModel):
    """Index configuration and counts recorded at persist time."""

    shingle_size: int
    winnow_window: int
    document_count: int
    postings_count: int
    generation: int
    persisted_at: datetime
