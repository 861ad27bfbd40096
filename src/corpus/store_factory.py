# src/corpus/store_factory.py — v1
"""Factory for corpus store instantiation."""

from __future__ import annotations

from docsim.config.settings import Settings
from docsim.corpus.base_corpus_store import BaseCorpusStore


def create_corpus_store(settings: Settings | None = None) -> BaseCorpusStore:
    """Instantiate the configured corpus backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseCorpusStore implementation.
    """
    backend = "memory" if settings is None else settings.corpus_backend

    if backend == "memory":
        from docsim.corpus.memory_store import MemoryCorpusStore
        return MemoryCorpusStore()

    if backend == "json":
        from docsim.corpus.json_store import JsonCorpusStore
        return JsonCorpusStore(corpus_root=settings.corpus_root)  # type: ignore[union-attr,arg-type]

    if backend == "sqlite":
        from docsim.corpus.sqlite_store import SqliteCorpusStore
        root = settings.corpus_root.expanduser()  # type: ignore[union-attr]
        return SqliteCorpusStore(db_path=root / "docsim_corpus.db")

    raise ValueError(f"Unsupported corpus backend: {backend!r}")
