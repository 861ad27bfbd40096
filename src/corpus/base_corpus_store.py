# src/corpus/base_corpus_store.py — v1
"""Abstract corpus store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docsim.corpus.models import CorpusManifest, StoredDocument


class BaseCorpusStore(ABC):
    """Unified interface for corpus persistence backends."""

    @abstractmethod
    async def get(self, document_id: str) -> StoredDocument | None:
        """Retrieve a stored document by id."""

    @abstractmethod
    async def put(self, document: StoredDocument) -> None:
        """Store (or replace) a document."""

    @abstractmethod
    async def delete(self, document_id: str) -> None:
        """Remove a stored document. Unknown ids are ignored."""

    @abstractmethod
    async def list_documents(self) -> list[StoredDocument]:
        """All stored documents, ordered by document id."""

    @abstractmethod
    async def load_manifest(self) -> CorpusManifest | None:
        """Last persisted manifest, or None for a fresh store."""

    @abstractmethod
    async def save_manifest(self, manifest: CorpusManifest) -> None:
        """Persist the manifest."""

    async def close(self) -> None:
        """Release backend resources."""
