# src/corpus/sqlite_store.py — v1
"""SQLite-based corpus store (CORPUS_BACKEND=sqlite).

Uses stdlib sqlite3. Better than JSON once the corpus holds many documents.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path

from docsim.core.errors import IndexCorruptionError
from docsim.corpus.base_corpus_store import BaseCorpusStore
from docsim.corpus.models import CorpusManifest, StoredDocument

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    document_id TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    origin TEXT NOT NULL,
    author_id TEXT NOT NULL,
    ingested_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_documents_origin ON documents(origin);
CREATE TABLE IF NOT EXISTS manifest (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    data TEXT NOT NULL
);
"""


class SqliteCorpusStore(BaseCorpusStore):
    """SQLite-backed corpus store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, document_id: str) -> StoredDocument | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT data FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
        if row is None:
            return None
        return self._decode(document_id, row[0])

    async def put(self, document: StoredDocument) -> None:
        with self._lock:
            self._conn.execute(
                """INSERT OR REPLACE INTO documents
                   (document_id, data, origin, author_id, ingested_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    document.document_id,
                    document.model_dump_json(),
                    document.origin,
                    document.author_id,
                    document.ingested_at.isoformat(),
                ),
            )
            self._conn.commit()

    async def delete(self, document_id: str) -> None:
        with self._lock:
            self._conn.execute(
                "DELETE FROM documents WHERE document_id = ?", (document_id,)
            )
            self._conn.commit()

    async def list_documents(self) -> list[StoredDocument]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT document_id, data FROM documents ORDER BY document_id"
            ).fetchall()
        return [self._decode(doc_id, data) for doc_id, data in rows]

    async def load_manifest(self) -> CorpusManifest | None:
        with self._lock:
            row = self._conn.execute("SELECT data FROM manifest WHERE id = 1").fetchone()
        if row is None:
            return None
        try:
            return CorpusManifest(**json.loads(row[0]))
        except Exception as e:
            raise IndexCorruptionError(f"Unreadable corpus manifest: {e}") from e

    async def save_manifest(self, manifest: CorpusManifest) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO manifest (id, data) VALUES (1, ?)",
                (manifest.model_dump_json(),),
            )
            self._conn.commit()

    async def close(self) -> None:
        with self._lock:
            self._conn.close()

    @staticmethod
    def _decode(document_id: str, data: str) -> StoredDocument:
        try:
            return StoredDocument(**json.loads(data))
        except Exception as e:
            raise IndexCorruptionError(
                f"Unreadable corpus row: {e}", document_id=document_id
            ) from e
