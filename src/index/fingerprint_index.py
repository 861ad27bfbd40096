# src/index/fingerprint_index.py — v1
"""Inverted fingerprint index: shingle hash -> ordered postings.

Lifecycle: open() -> ingest()/remove()/lookup() -> persist() -> close().
The index is an explicitly owned object passed to every analysis call;
there is no module-level instance.

Thread safety:
  - one re-entrant lock guards postings and the document table; readers
    hold it only long enough to copy what they need
  - a per-document-id lock serializes ingest/remove of the same id so the
    remove-then-append update stays atomic for that id
  - shingling of an incoming document runs outside the postings lock
"""

from __future__ import annotations

import bisect
import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from docsim.core.errors import (
    DocumentNotFoundError,
    IndexClosedError,
    IndexCorruptionError,
)
from docsim.core.models import Document
from docsim.corpus.models import CorpusManifest, StoredDocument
from docsim.index.models import IndexStats, Posting, Shingle
from docsim.index.shingler import shingle, winnow
from docsim.text.tokenizer import tokenize

if TYPE_CHECKING:
    from docsim.config.settings import Settings
    from docsim.corpus.base_corpus_store import BaseCorpusStore

logger = logging.getLogger(__name__)


class FingerprintIndex:
    """Append-only (per document) inverted index over shingle hashes.

    Args:
        shingle_size: Tokens per shingle (k). Fixed for the index lifetime.
        winnow_window: Winnowing window for postings; 1 indexes every shingle.
        store: Optional corpus store used by open()/persist().
    """

    def __init__(
        self,
        shingle_size: int = 5,
        winnow_window: int = 1,
        store: BaseCorpusStore | None = None,
    ) -> None:
        if shingle_size < 1:
            raise ValueError("shingle_size must be >= 1")
        if winnow_window < 1:
            raise ValueError("winnow_window must be >= 1")
        self.shingle_size = shingle_size
        self.winnow_window = winnow_window
        self._store = store

        self._postings: dict[int, list[Posting]] = {}
        self._documents: dict[str, Document] = {}
        self._shingles: dict[str, tuple[Shingle, ...]] = {}
        self._indexed_hashes: dict[str, frozenset[int]] = {}

        self._lock = threading.RLock()
        # document id -> [lock, threads holding or waiting on it]
        self._doc_locks: dict[str, list] = {}
        self._doc_locks_guard = threading.Lock()

        self._generation = 0
        self._is_open = False
        self._dirty: set[str] = set()
        self._deleted: set[str] = set()

    @classmethod
    def from_settings(
        cls, settings: Settings, store: BaseCorpusStore | None = None,
    ) -> FingerprintIndex:
        """Build an (unopened) index with the configured shingling."""
        return cls(
            shingle_size=settings.shingle_size,
            winnow_window=settings.winnow_window,
            store=store,
        )

    # --- Lifecycle ---

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def generation(self) -> int:
        """Monotonic counter bumped by every ingest/remove."""
        return self._generation

    async def open(self) -> FingerprintIndex:
        """Load persisted documents (if a store is attached) and rebuild postings.

        Raises:
            IndexCorruptionError: If the persisted manifest does not match the
                rebuilt index under the same shingling configuration.
        """
        if self._is_open:
            return self
        if self._store is None:
            self._is_open = True
            logger.debug("Opened in-memory index (k=%d)", self.shingle_size)
            return self

        manifest = await self._store.load_manifest()
        stored = await self._store.list_documents()
        for doc in stored:
            self._add(self._from_stored(doc))

        same_config = manifest is not None and (
            manifest.shingle_size == self.shingle_size
            and manifest.winnow_window == self.winnow_window
        )
        if manifest is not None and not same_config:
            logger.warning(
                "Shingling changed (k=%d, w=%d -> k=%d, w=%d): reingested %d documents",
                manifest.shingle_size, manifest.winnow_window,
                self.shingle_size, self.winnow_window, len(stored),
            )
            self._dirty.update(d.document_id for d in stored)
        elif manifest is not None:
            postings_count = self._postings_count()
            if (
                manifest.document_count != len(self._documents)
                or manifest.postings_count != postings_count
            ):
                raise IndexCorruptionError(
                    "Persisted corpus does not match its manifest "
                    f"(documents {len(self._documents)}/{manifest.document_count}, "
                    f"postings {postings_count}/{manifest.postings_count}); "
                    "full reingestion required",
                    stage="open",
                )

        self._generation = manifest.generation if manifest is not None else 0
        self.verify()
        self._is_open = True
        logger.info(
            "Opened index: %d documents, %d postings (k=%d, w=%d)",
            len(self._documents), self._postings_count(),
            self.shingle_size, self.winnow_window,
        )
        return self

    async def persist(self) -> None:
        """Write changed documents and the manifest to the attached store."""
        if self._store is None:
            return
        with self._lock:
            dirty = {i: self._documents[i] for i in self._dirty if i in self._documents}
            deleted = set(self._deleted)
            self._dirty.clear()
            self._deleted.clear()
            stats = self.stats()

        for document_id in sorted(deleted):
            await self._store.delete(document_id)
        for document_id in sorted(dirty):
            await self._store.put(self._to_stored(dirty[document_id]))
        await self._store.save_manifest(
            CorpusManifest(
                shingle_size=stats.shingle_size,
                winnow_window=stats.winnow_window,
                document_count=stats.document_count,
                postings_count=stats.postings_count,
                generation=stats.generation,
                persisted_at=datetime.now(timezone.utc),
            )
        )
        logger.debug(
            "Persisted index: %d written, %d deleted", len(dirty), len(deleted),
        )

    async def close(self) -> None:
        """Persist (when backed by a store) and close the index."""
        if not self._is_open:
            return
        await self.persist()
        if self._store is not None:
            await self._store.close()
        self._is_open = False

    async def __aenter__(self) -> FingerprintIndex:
        return await self.open()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Mutation ---

    def ingest(self, document: Document) -> None:
        """Index a document, replacing any previous version with the same id.

        Re-ingesting an identical document leaves postings unchanged.
        """
        self._check_open()
        with self._document_lock(document.id):
            self._add(document)
            with self._lock:
                self._dirty.add(document.id)
                self._deleted.discard(document.id)
        logger.debug(
            "Ingested %s: %d tokens, %d shingles",
            document.id, document.token_count, len(self._shingles.get(document.id, ())),
        )

    def remove(self, document_id: str) -> None:
        """Drop a document and all its postings.

        Raises:
            DocumentNotFoundError: If the id is not ingested.
        """
        self._check_open()
        with self._document_lock(document_id):
            with self._lock:
                if document_id not in self._documents:
                    raise DocumentNotFoundError(
                        "Document is not in the corpus", document_id=document_id,
                    )
                self._remove_locked(document_id)
                self._generation += 1
                self._dirty.discard(document_id)
                self._deleted.add(document_id)
        logger.debug("Removed %s from index", document_id)

    # --- Queries ---

    def lookup(self, hash_value: int) -> list[Posting]:
        """Postings for one shingle hash (a copy, ordered by document id then offset)."""
        self._check_open()
        with self._lock:
            return list(self._postings.get(hash_value, ()))

    def lookup_many(self, hashes: Iterable[int]) -> dict[int, list[Posting]]:
        """Postings for many hashes under a single lock acquisition."""
        self._check_open()
        with self._lock:
            return {
                h: list(self._postings[h]) for h in set(hashes) if h in self._postings
            }

    def get_document(self, document_id: str) -> Document:
        """Return an ingested document.

        Raises:
            DocumentNotFoundError: If the id is not ingested.
        """
        with self._lock:
            try:
                return self._documents[document_id]
            except KeyError:
                raise DocumentNotFoundError(
                    "Document is not in the corpus", document_id=document_id,
                ) from None

    def shingles_for(self, document_id: str) -> tuple[Shingle, ...]:
        """Full (unwinnowed) shingle sequence of an ingested document."""
        with self._lock:
            try:
                return self._shingles[document_id]
            except KeyError:
                raise DocumentNotFoundError(
                    "Document is not in the corpus", document_id=document_id,
                ) from None

    def document_snapshot(self, document_id: str) -> tuple[Document, tuple[Shingle, ...]]:
        """Document and its shingles read atomically (same version of both)."""
        with self._lock:
            if document_id not in self._documents:
                raise DocumentNotFoundError(
                    "Document is not in the corpus", document_id=document_id,
                )
            return self._documents[document_id], self._shingles[document_id]

    def document_ids(self, origins: Iterable[str] | None = None) -> list[str]:
        """Sorted ids of ingested documents, optionally filtered by origin."""
        wanted = None if origins is None else set(origins)
        with self._lock:
            return sorted(
                doc_id for doc_id, doc in self._documents.items()
                if wanted is None or doc.origin in wanted
            )

    def __contains__(self, document_id: object) -> bool:
        with self._lock:
            return document_id in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def stats(self) -> IndexStats:
        with self._lock:
            return IndexStats(
                shingle_size=self.shingle_size,
                winnow_window=self.winnow_window,
                document_count=len(self._documents),
                distinct_hashes=len(self._postings),
                postings_count=self._postings_count(),
                generation=self._generation,
            )

    def verify(self) -> None:
        """Check that postings are exactly the indexed shingles of every document.

        Raises:
            IndexCorruptionError: On the first inconsistency found.
        """
        with self._lock:
            expected: dict[int, list[Posting]] = {}
            for doc_id in self._documents:
                if doc_id not in self._shingles:
                    raise IndexCorruptionError(
                        "Document has no shingle table", document_id=doc_id, stage="verify",
                    )
                for s in winnow(self._shingles[doc_id], self.winnow_window):
                    expected.setdefault(s.hash, []).append(Posting(doc_id, s.offset))
            for postings in expected.values():
                postings.sort()

            for hash_value, postings in self._postings.items():
                if expected.get(hash_value) != postings:
                    orphan = next(
                        (p.document_id for p in postings if p.document_id not in self._documents),
                        None,
                    )
                    raise IndexCorruptionError(
                        f"Postings for hash {hash_value:016x} disagree with documents",
                        document_id=orphan,
                        stage="verify",
                    )
            missing = set(expected) - set(self._postings)
            if missing:
                raise IndexCorruptionError(
                    f"{len(missing)} shingle hash(es) missing from postings",
                    stage="verify",
                )

    # --- Internals ---

    def _add(self, document: Document) -> None:
        shingles = tuple(shingle(document.tokens.normalized(), self.shingle_size))
        indexed = winnow(shingles, self.winnow_window)
        with self._lock:
            self._remove_locked(document.id)
            for s in indexed:
                bisect.insort(self._postings.setdefault(s.hash, []), Posting(document.id, s.offset))
            self._documents[document.id] = document
            self._shingles[document.id] = shingles
            self._indexed_hashes[document.id] = frozenset(s.hash for s in indexed)
            self._generation += 1

    def _remove_locked(self, document_id: str) -> None:
        for hash_value in self._indexed_hashes.pop(document_id, frozenset()):
            remaining = [
                p for p in self._postings.get(hash_value, ()) if p.document_id != document_id
            ]
            if remaining:
                self._postings[hash_value] = remaining
            else:
                self._postings.pop(hash_value, None)
        self._documents.pop(document_id, None)
        self._shingles.pop(document_id, None)

    def _postings_count(self) -> int:
        return sum(len(p) for p in self._postings.values())

    @contextmanager
    def _document_lock(self, document_id: str) -> Iterator[None]:
        with self._doc_locks_guard:
            entry = self._doc_locks.setdefault(document_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._doc_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._doc_locks[document_id]

    def _check_open(self) -> None:
        if not self._is_open:
            raise IndexClosedError("Fingerprint index is not open")

    @staticmethod
    def _from_stored(stored: StoredDocument) -> Document:
        return Document(
            id=stored.document_id,
            author_id=stored.author_id,
            origin=stored.origin,
            tokens=tokenize(stored.raw_text, document_id=stored.document_id),
            ingested_at=stored.ingested_at,
            title=stored.title,
            url=stored.url,
        )

    @staticmethod
    def _to_stored(document: Document) -> StoredDocument:
        return StoredDocument(
            document_id=document.id,
            author_id=document.author_id,
            origin=document.origin,
            raw_text=document.tokens.text,
            ingested_at=document.ingested_at,
            title=document.title,
            url=document.url,
        )
