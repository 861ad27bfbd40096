# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample texts, document factories and opened in-memory indexes.
No external services: every store is in-memory or under tmp_path.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from docsim.config.settings import Settings
from docsim.core.models import Document
from docsim.index.fingerprint_index import FingerprintIndex
from docsim.text.tokenizer import tokenize


# === SAMPLE TEXTS ===

SOURCE_TEXT = (
    "The European Union regulates cybersecurity through the NIS2 Directive. "
    "Member states must transpose the directive into national law by October 2024. "
    "Essential entities face stricter supervision than important entities."
)

UNRELATED_TEXT = (
    "Photosynthesis converts light energy into chemical energy stored in glucose. "
    "Chlorophyll absorbs mostly blue and red wavelengths of visible light."
)


@pytest.fixture
def source_text() -> str:
    return SOURCE_TEXT


@pytest.fixture
def unrelated_text() -> str:
    return UNRELATED_TEXT


# === FIXTURES: Documents ===


@pytest.fixture
def make_document():
    """Factory building a Document from raw text."""

    def _make(
        document_id: str,
        text: str,
        author_id: str = "author-x",
        origin: str = "external",
        title: str = "",
        url: str | None = None,
    ) -> Document:
        return Document(
            id=document_id,
            author_id=author_id,
            origin=origin,  # type: ignore[arg-type]
            tokens=tokenize(text, document_id=document_id),
            ingested_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
            title=title,
            url=url,
        )

    return _make


# === FIXTURES: Index and settings ===


@pytest.fixture
def settings() -> Settings:
    """Settings with permissive candidate thresholds for short test texts."""
    return Settings(
        shingle_size=3,
        min_shared_shingles=1,
        min_shared_ratio=0.0,
        corpus_backend="memory",
        run_timeout_seconds=10.0,
    )


@pytest_asyncio.fixture
async def index(settings: Settings) -> FingerprintIndex:
    """Opened in-memory index with the test shingle size."""
    idx = FingerprintIndex.from_settings(settings)
    await idx.open()
    yield idx
    await idx.close()
