# tests/integration/test_int_engine.py — v1
"""End-to-end tests over the public facade: ingestion, analysis, reports.

Covers determinism, idempotent ingestion, monotonic coverage, no double
counting, identical-document and partial-overlap scenarios, empty input,
self-plagiarism and persistence across restarts.
"""

from __future__ import annotations

import pytest

from docsim.api.facade import (
    analyze,
    ingest_corpus_document,
    open_index,
    remove_corpus_document,
)
from docsim.config.settings import Settings
from docsim.core.errors import EmptyDocumentError
from docsim.index.fingerprint_index import FingerprintIndex
from docsim.pipeline.state import AnalysisRunState
from docsim.storage.report_store import ReportStore
from docsim.tracking.stats_aggregator import compute_risk_distribution

PASSAGE_A = (
    "Large language models are trained on vast corpora of text gathered from "
    "the public web and licensed collections."
)
PASSAGE_B = (
    "Evaluation of such systems requires held out benchmarks that were never "
    "seen during training."
)
PASSAGE_C = (
    "Coral reefs host roughly a quarter of all marine species despite covering "
    "a tiny fraction of the ocean floor."
)
SUBMISSION = f"{PASSAGE_A} {PASSAGE_B} {PASSAGE_C}"


def _settings(**overrides) -> Settings:
    params = dict(
        _env_file=None,
        shingle_size=3,
        min_shared_shingles=1,
        min_shared_ratio=0.0,
        corpus_backend="memory",
    )
    params.update(overrides)
    return Settings(**params)


async def _index(settings: Settings) -> FingerprintIndex:
    return await FingerprintIndex.from_settings(settings).open()


class TestScenarios:
    @pytest.mark.asyncio
    async def test_partial_overlap_k2(self):
        # Only two shingles are shared, below the default candidate minimum of four.
        settings = _settings(shingle_size=2)
        index = await _index(settings)
        await ingest_corpus_document("src", "A B C X Y Z", "other", "external", index)

        report = await analyze("q", "A B C D E F", "me", None, index, settings=settings)

        assert len(report.sources) == 1
        spans = report.sources[0].spans
        assert len(spans) == 1
        assert (spans[0].query_start, spans[0].query_end) == (0, 3)
        assert report.coverage == pytest.approx(0.5)
        assert report.similarity == 50
        # 50% is above the default medium ceiling of 30%
        assert report.risk == "high"

    @pytest.mark.asyncio
    async def test_partial_overlap_k2_below_default_candidate_minimum(self):
        settings = _settings(shingle_size=2, min_shared_shingles=4, min_shared_ratio=0.01)
        index = await _index(settings)
        await ingest_corpus_document("src", "A B C X Y Z", "other", "external", index)

        report = await analyze("q", "A B C D E F", "me", None, index, settings=settings)

        assert report.sources == ()
        assert report.similarity == 0
        assert report.risk == "low"

    @pytest.mark.asyncio
    async def test_identical_document(self):
        settings = _settings()
        index = await _index(settings)
        await ingest_corpus_document("src", SUBMISSION, "other", "academic", index)

        report = await analyze("q", SUBMISSION, "me", None, index, settings=settings)

        assert report.similarity == 100
        assert report.match_count == 1
        span = report.sources[0].spans[0]
        assert (span.query_start, span.query_end) == (0, report.word_count)
        assert span.exact
        assert report.sources[0].matched_text == SUBMISSION.rstrip(".")

    @pytest.mark.asyncio
    async def test_empty_query(self):
        settings = _settings()
        index = await _index(settings)
        state = AnalysisRunState()
        with pytest.raises(EmptyDocumentError):
            await analyze("q", "", "me", None, index, settings=settings, state=state)
        assert state.ui_status == "failed"

    @pytest.mark.asyncio
    async def test_self_plagiarism_at_forty_percent(self):
        settings = _settings(shingle_size=2)
        index = await _index(settings)
        await ingest_corpus_document(
            "old-paper", "alpha beta gamma delta zeta eta theta", "me", "internal", index,
        )
        report = await analyze(
            "new-paper", "alpha beta gamma delta one two three four five six",
            "me", None, index, settings=settings,
        )
        assert report.sources[0].coverage == pytest.approx(0.4)
        assert report.self_plagiarism
        assert report.sources[0].self_match

    @pytest.mark.asyncio
    async def test_other_author_is_not_self_plagiarism(self):
        settings = _settings(shingle_size=2)
        index = await _index(settings)
        await ingest_corpus_document(
            "old-paper", "alpha beta gamma delta zeta eta theta", "someone", "internal", index,
        )
        report = await analyze(
            "new-paper", "alpha beta gamma delta one two three four five six",
            "me", None, index, settings=settings,
        )
        assert not report.self_plagiarism


class TestProperties:
    @pytest.mark.asyncio
    async def test_deterministic_across_ingestion_order(self):
        settings = _settings()
        docs = [("a", PASSAGE_A), ("b", PASSAGE_B), ("c", PASSAGE_C)]
        forward = await _index(settings)
        backward = await _index(settings)
        for doc_id, text in docs:
            await ingest_corpus_document(doc_id, text, "x", "external", forward)
        for doc_id, text in reversed(docs):
            await ingest_corpus_document(doc_id, text, "x", "external", backward)

        r1 = await analyze("q", SUBMISSION, "me", None, forward, settings=settings)
        r2 = await analyze("q", SUBMISSION, "me", None, forward, settings=settings)
        r3 = await analyze("q", SUBMISSION, "me", None, backward, settings=settings)
        assert r1.canonical_json() == r2.canonical_json() == r3.canonical_json()

    @pytest.mark.asyncio
    async def test_idempotent_ingestion(self):
        settings = _settings()
        index = await _index(settings)
        await ingest_corpus_document("a", PASSAGE_A, "x", "external", index)
        hashes = [s.hash for s in index.shingles_for("a")]
        before = index.lookup_many(hashes)
        report_before = await analyze("q", SUBMISSION, "me", None, index, settings=settings)

        await ingest_corpus_document("a", PASSAGE_A, "x", "external", index)

        assert index.lookup_many(hashes) == before
        report_after = await analyze("q", SUBMISSION, "me", None, index, settings=settings)
        assert report_after.canonical_json() == report_before.canonical_json()

    @pytest.mark.asyncio
    async def test_monotonic_coverage(self):
        settings = _settings()
        index = await _index(settings)
        similarities = []
        for doc_id, text in (("a", PASSAGE_A), ("b", PASSAGE_B), ("c", PASSAGE_C)):
            await ingest_corpus_document(doc_id, text, "x", "external", index)
            report = await analyze("q", SUBMISSION, "me", None, index, settings=settings)
            similarities.append(report.similarity)
        assert similarities == sorted(similarities)
        assert similarities[-1] == 100

    @pytest.mark.asyncio
    async def test_no_double_counting(self):
        settings = _settings()
        index = await _index(settings)
        # Two sources carry the same passage; a third covers a disjoint one
        await ingest_corpus_document("dup-1", PASSAGE_A, "x", "external", index)
        await ingest_corpus_document("dup-2", PASSAGE_A, "y", "academic", index)
        await ingest_corpus_document("other", PASSAGE_C, "z", "external", index)

        report = await analyze("q", SUBMISSION, "me", None, index, settings=settings)

        per_source = sum(s.similarity for s in report.sources)
        assert report.similarity < per_source
        by_id = {s.document_id: s for s in report.sources}
        assert by_id["dup-1"].similarity == by_id["dup-2"].similarity
        assert report.similarity == pytest.approx(
            by_id["dup-1"].similarity + by_id["other"].similarity, abs=1,
        )

    @pytest.mark.asyncio
    async def test_removed_source_no_longer_matches(self):
        settings = _settings()
        index = await _index(settings)
        await ingest_corpus_document("a", PASSAGE_A, "x", "external", index)
        await remove_corpus_document("a", index)
        report = await analyze("q", SUBMISSION, "me", None, index, settings=settings)
        assert report.similarity == 0


class TestPersistentCorpus:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("backend", ["json", "sqlite"])
    async def test_restart_gives_same_report(self, tmp_path, backend):
        settings = _settings(corpus_backend=backend, corpus_root=tmp_path / "corpus")
        async with await open_index(settings) as index:
            await ingest_corpus_document("a", PASSAGE_A, "x", "external", index, title="A")
            await ingest_corpus_document("c", PASSAGE_C, "z", "academic", index)
            before = await analyze("q", SUBMISSION, "me", None, index, settings=settings)

        async with await open_index(settings) as index:
            after = await analyze("q", SUBMISSION, "me", None, index, settings=settings)

        assert after.canonical_json() == before.canonical_json()
        assert {s.title for s in after.sources} == {"A", "c"}

    @pytest.mark.asyncio
    async def test_dashboard_over_saved_reports(self, tmp_path):
        settings = _settings()
        index = await _index(settings)
        store = ReportStore(tmp_path / "reports")
        await ingest_corpus_document("a", PASSAGE_A, "x", "external", index)

        await analyze("full", PASSAGE_A, "me", None, index, settings, report_store=store)
        await analyze("clean", PASSAGE_C, "me", None, index, settings, report_store=store)

        dist = compute_risk_distribution(store.latest_reports())
        assert dist.total_documents == 2
        assert dist.counts == {"low": 1, "medium": 0, "high": 1}
        assert dist.originality_rate == 50.0
        assert store.latest_reports()[0].to_ui_dict()["id"] == "clean"
