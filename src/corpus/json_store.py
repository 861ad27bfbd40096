# src/corpus/json_store.py — v1
"""JSON file-based corpus store (CORPUS_BACKEND=json).

Layout under CORPUS_ROOT:
    documents/{document_id}.json
    manifest.json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from docsim.core.errors import IndexCorruptionError
from docsim.corpus.base_corpus_store import BaseCorpusStore
from docsim.corpus.models import CorpusManifest, StoredDocument
from docsim.storage.layout import safe_name

logger = logging.getLogger(__name__)


class JsonCorpusStore(BaseCorpusStore):
    """File-based corpus store, one JSON file per document."""

    def __init__(self, corpus_root: Path | str) -> None:
        self._root = Path(corpus_root).expanduser()
        self._docs_dir = self._root / "documents"
        self._docs_dir.mkdir(parents=True, exist_ok=True)

    async def get(self, document_id: str) -> StoredDocument | None:
        path = self._document_path(document_id)
        if not path.exists():
            return None
        return self._read(path)

    async def put(self, document: StoredDocument) -> None:
        path = self._document_path(document.document_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, document_id: str) -> None:
        path = self._document_path(document_id)
        if path.exists():
            path.unlink()

    async def list_documents(self) -> list[StoredDocument]:
        documents = [self._read(p) for p in self._docs_dir.glob("*.json")]
        documents.sort(key=lambda d: d.document_id)
        return documents

    async def load_manifest(self) -> CorpusManifest | None:
        path = self._root / "manifest.json"
        if not path.exists():
            return None
        try:
            return CorpusManifest(**json.loads(path.read_text(encoding="utf-8")))
        except Exception as e:
            raise IndexCorruptionError(f"Unreadable corpus manifest {path}: {e}") from e

    async def save_manifest(self, manifest: CorpusManifest) -> None:
        path = self._root / "manifest.json"
        path.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")

    def _read(self, path: Path) -> StoredDocument:
        # A document file that cannot be read would silently shrink the corpus
        try:
            return StoredDocument(**json.loads(path.read_text(encoding="utf-8")))
        except Exception as e:
            raise IndexCorruptionError(f"Unreadable corpus document {path}: {e}") from e

    def _document_path(self, document_id: str) -> Path:
        return self._docs_dir / f"{safe_name(document_id)}.json"
