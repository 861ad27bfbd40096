# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, computed_field

OriginTag = Literal["internal", "external", "academic"]
RiskTier = Literal["low", "medium", "high"]

ORIGIN_TAGS: tuple[str, ...] = get_args(OriginTag)
SENTENCE_TERMINATORS = ".!?…"


def normalize_scope(scope: Iterable[str] | None) -> tuple[str, ...]:
    """Validate a corpus scope and return it as a sorted tuple of origin tags.

    None means every origin participates.
    """
    if scope is None:
        return ORIGIN_TAGS
    if isinstance(scope, str):
        scope = [scope]
    tags = sorted(set(scope))
    unknown = [t for t in tags if t not in ORIGIN_TAGS]
    if unknown:
        raise ValueError(
            f"Unknown origin tag(s) in corpus scope: {unknown}; "
            f"expected a subset of {list(ORIGIN_TAGS)}"
        )
    return tuple(tags)


# === TOKENS ===


class Token(BaseModel):
    """One normalized token with its position in the original text."""

    model_config = {"frozen": True}

    text: str
    raw: str
    start: int
    end: int
    byte_start: int
    byte_end: int
    sentence: int = 0


class TokenStream(BaseModel):
    """Ordered tokens of a document plus the text they were cut from."""

    model_config = {"frozen": True}

    text: str
    tokens: tuple[Token, ...] = ()
    sentence_boundaries: tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.tokens)

    def normalized(self) -> list[str]:
        """Normalized token texts, in order."""
        return [t.text for t in self.tokens]

    def char_span(self, start: int, end: int) -> tuple[int, int]:
        """Character offsets covering tokens [start, end)."""
        if start >= end:
            raise ValueError(f"Empty token range [{start}, {end})")
        return self.tokens[start].start, self.tokens[end - 1].end

    def byte_span(self, start: int, end: int) -> tuple[int, int]:
        """UTF-8 byte offsets covering tokens [start, end)."""
        if start >= end:
            raise ValueError(f"Empty token range [{start}, {end})")
        return self.tokens[start].byte_start, self.tokens[end - 1].byte_end

    def excerpt(self, start: int, end: int, sentence_context: bool = False) -> str:
        """Verbatim original text for tokens [start, end).

        With sentence_context the range is widened to whole sentences,
        trailing terminator included.
        """
        if sentence_context:
            first_sentence = self.tokens[start].sentence
            last_sentence = self.tokens[end - 1].sentence
            while start > 0 and self.tokens[start - 1].sentence == first_sentence:
                start -= 1
            while end < len(self.tokens) and self.tokens[end].sentence == last_sentence:
                end += 1
        char_start, char_end = self.char_span(start, end)
        if sentence_context:
            while (
                char_end < len(self.text)
                and self.text[char_end] in SENTENCE_TERMINATORS
            ):
                char_end += 1
        return self.text[char_start:char_end]


# === CORPUS ===


class Document(BaseModel):
    """An ingested document. Immutable once created."""

    model_config = {"frozen": True}

    id: str
    author_id: str
    origin: OriginTag
    tokens: TokenStream
    ingested_at: datetime
    title: str = ""
    url: str | None = None

    @property
    def token_count(self) -> int:
        return len(self.tokens)

    @property
    def display_title(self) -> str:
        return self.title or self.id


# === MATCHES ===


class MatchSpan(BaseModel):
    """Contiguous region of the query aligned to a region of one source."""

    model_config = {"frozen": True}

    query_start: int
    query_end: int
    source_start: int
    source_end: int
    exact: bool
    query_char_start: int = 0
    query_char_end: int = 0
    source_char_start: int = 0
    source_char_end: int = 0
    query_byte_start: int = 0
    query_byte_end: int = 0
    source_byte_start: int = 0
    source_byte_end: int = 0
    query_excerpt: str = ""
    source_excerpt: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def length(self) -> int:
        """Number of query tokens covered."""
        return self.query_end - self.query_start

    @property
    def source_length(self) -> int:
        return self.source_end - self.source_start


class SourceMatch(BaseModel):
    """All spans between the query and a single source document."""

    model_config = {"frozen": True}

    document_id: str
    title: str
    origin: OriginTag
    author_id: str
    url: str | None = None
    spans: tuple[MatchSpan, ...] = ()
    matched_tokens: int = 0
    coverage: float = 0.0
    similarity: int = 0
    self_match: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def matched_text(self) -> str:
        """Query-side excerpts, joined in query order."""
        return " … ".join(s.query_excerpt for s in self.spans)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def original_text(self) -> str:
        """Source-side excerpts, joined in query order."""
        return " … ".join(s.source_excerpt for s in self.spans)


class AnalysisReport(BaseModel):
    """Top-level output of one analysis run."""

    model_config = {"frozen": True}

    document_id: str
    run_id: str
    version: int = 1
    corpus_generation: int = 0
    author_id: str
    title: str = ""
    word_count: int
    similarity: int
    coverage: float
    risk: RiskTier
    self_plagiarism: bool
    corpus_scope: tuple[OriginTag, ...] = ORIGIN_TAGS  # type: ignore[assignment]
    sources: tuple[SourceMatch, ...] = ()
    analyzed_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def match_count(self) -> int:
        return len(self.sources)

    def canonical_json(self) -> str:
        """JSON without per-run identity fields; identical for identical inputs."""
        return self.model_dump_json(
            exclude={"run_id", "analyzed_at", "version", "corpus_generation"}
        )

    def to_ui_dict(self) -> dict[str, Any]:
        """Field-for-field shape consumed by the report pages."""
        return {
            "id": self.document_id,
            "title": self.title or self.document_id,
            "similarity": self.similarity,
            "risk": self.risk,
            "selfPlagiarism": self.self_plagiarism,
            "matchCount": self.match_count,
            "wordCount": self.word_count,
            "analyzedAt": self.analyzed_at.isoformat(),
            "sources": [
                {
                    "id": s.document_id,
                    "title": s.title,
                    "type": s.origin,
                    "url": s.url,
                    "similarity": s.similarity,
                    "matchedText": s.matched_text,
                    "originalText": s.original_text,
                }
                for s in self.sources
            ],
        }

