# tests/unit/corpus/test_unit_corpus_stores.py — v1
"""Tests for corpus stores — memory, JSON and SQLite backends plus the factory."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docsim.config.settings import Settings
from docsim.core.errors import IndexCorruptionError
from docsim.corpus.json_store import JsonCorpusStore
from docsim.corpus.memory_store import MemoryCorpusStore
from docsim.corpus.models import CorpusManifest, StoredDocument
from docsim.corpus.sqlite_store import SqliteCorpusStore
from docsim.corpus.store_factory import create_corpus_store


@pytest.fixture
def stored_doc() -> StoredDocument:
    return StoredDocument(
        document_id="paper/2024:001",
        author_id="author-7",
        origin="academic",
        raw_text="Essential entities face stricter supervision.",
        ingested_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        title="Supervision regimes",
        url="https://example.org/paper-001",
    )


@pytest.fixture
def manifest() -> CorpusManifest:
    return CorpusManifest(
        shingle_size=5,
        winnow_window=1,
        document_count=1,
        postings_count=3,
        generation=4,
        persisted_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryCorpusStore()
    if request.param == "json":
        return JsonCorpusStore(tmp_path / "corpus")
    return SqliteCorpusStore(tmp_path / "corpus.db")


class TestCorpusStoreContract:
    @pytest.mark.asyncio
    async def test_put_and_get(self, store, stored_doc):
        await store.put(stored_doc)
        assert await store.get(stored_doc.document_id) == stored_doc
        await store.close()

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_put_replaces(self, store, stored_doc):
        await store.put(stored_doc)
        await store.put(stored_doc.model_copy(update={"title": "Revised"}))
        result = await store.get(stored_doc.document_id)
        assert result.title == "Revised"
        assert len(await store.list_documents()) == 1

    @pytest.mark.asyncio
    async def test_delete(self, store, stored_doc):
        await store.put(stored_doc)
        await store.delete(stored_doc.document_id)
        assert await store.get(stored_doc.document_id) is None
        await store.delete(stored_doc.document_id)

    @pytest.mark.asyncio
    async def test_list_ordered_by_id(self, store, stored_doc):
        for doc_id in ("c", "a", "b"):
            await store.put(stored_doc.model_copy(update={"document_id": doc_id}))
        assert [d.document_id for d in await store.list_documents()] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_manifest_roundtrip(self, store, manifest):
        assert await store.load_manifest() is None
        await store.save_manifest(manifest)
        assert await store.load_manifest() == manifest


class TestJsonCorpusStore:
    @pytest.mark.asyncio
    async def test_survives_new_instance(self, tmp_path, stored_doc):
        await JsonCorpusStore(tmp_path).put(stored_doc)
        assert await JsonCorpusStore(tmp_path).get(stored_doc.document_id) == stored_doc

    @pytest.mark.asyncio
    async def test_unsafe_id_stays_inside_root(self, tmp_path, stored_doc):
        store = JsonCorpusStore(tmp_path)
        await store.put(stored_doc.model_copy(update={"document_id": "../../escape"}))
        files = list((tmp_path / "documents").iterdir())
        assert len(files) == 1
        assert files[0].parent == tmp_path / "documents"

    @pytest.mark.asyncio
    async def test_unreadable_document_is_corruption(self, tmp_path, stored_doc):
        store = JsonCorpusStore(tmp_path)
        await store.put(stored_doc)
        (next((tmp_path / "documents").glob("*.json"))).write_text("{not json", encoding="utf-8")
        with pytest.raises(IndexCorruptionError):
            await store.list_documents()

    @pytest.mark.asyncio
    async def test_unreadable_manifest_is_corruption(self, tmp_path):
        store = JsonCorpusStore(tmp_path)
        (tmp_path / "manifest.json").write_text("[]", encoding="utf-8")
        with pytest.raises(IndexCorruptionError):
            await store.load_manifest()


class TestSqliteCorpusStore:
    @pytest.mark.asyncio
    async def test_survives_reconnect(self, tmp_path, stored_doc):
        db = tmp_path / "corpus.db"
        first = SqliteCorpusStore(db)
        await first.put(stored_doc)
        await first.close()
        second = SqliteCorpusStore(db)
        assert await second.get(stored_doc.document_id) == stored_doc
        await second.close()


class TestStoreFactory:
    def test_default_is_memory(self):
        assert isinstance(create_corpus_store(), MemoryCorpusStore)

    def test_json(self, tmp_path):
        settings = Settings(corpus_backend="json", corpus_root=tmp_path)
        assert isinstance(create_corpus_store(settings), JsonCorpusStore)

    def test_sqlite(self, tmp_path):
        settings = Settings(corpus_backend="sqlite", corpus_root=tmp_path)
        store = create_corpus_store(settings)
        assert isinstance(store, SqliteCorpusStore)
        assert (tmp_path / "docsim_corpus.db").exists()
