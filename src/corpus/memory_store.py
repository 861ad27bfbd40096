# src/corpus/memory_store.py — v1
"""In-process corpus store (CORPUS_BACKEND=memory), used for tests and one-shot runs."""

from __future__ import annotations

from docsim.corpus.base_corpus_store import BaseCorpusStore
from docsim.corpus.models import CorpusManifest, StoredDocument


class MemoryCorpusStore(BaseCorpusStore):
    """Dictionary-backed corpus store. Contents die with the process."""

    def __init__(self) -> None:
        self._documents: dict[str, StoredDocument] = {}
        self._manifest: CorpusManifest | None = None

    async def get(self, document_id: str) -> StoredDocument | None:
        return self._documents.get(document_id)

    async def put(self, document: StoredDocument) -> None:
        self._documents[document.document_id] = document

    async def delete(self, document_id: str) -> None:
        self._documents.pop(document_id, None)

    async def list_documents(self) -> list[StoredDocument]:
        return [self._documents[k] for k in sorted(self._documents)]

    async def load_manifest(self) -> CorpusManifest | None:
        return self._manifest

    async def save_manifest(self, manifest: CorpusManifest) -> None:
        self._manifest = manifest
