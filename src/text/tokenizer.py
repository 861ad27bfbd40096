# src/text/tokenizer.py — v1
"""Tokenizer/normalizer: raw extracted text to a normalized token stream.

Rules:
  - input bytes are decoded as strict UTF-8
  - tokens are runs of letters/digits (combining marks and intra-word
    apostrophes stay inside the token)
  - each token is NFKC-normalized, casefolded and stripped of punctuation
  - sentence terminators (. ! ? …) are kept as boundary markers only
  - whitespace never produces tokens

Character and UTF-8 byte offsets into the original text are kept on every
token so excerpts can be cut verbatim later. Output is fully deterministic.
"""

from __future__ import annotations

import logging
import re
import unicodedata

from docsim.core.errors import EncodingError
from docsim.core.models import Token, TokenStream

logger = logging.getLogger(__name__)

_MARKS = "\u0300-\u036f\u1ab0-\u1aff\u1dc0-\u1dff\u20d0-\u20ff\ufe20-\ufe2f"
_WORD_CHAR = rf"(?:[^\W_]|[{_MARKS}])"
_TOKEN_RE = re.compile(
    rf"(?P<word>[^\W_]{_WORD_CHAR}*(?:['’]{_WORD_CHAR}+)*)"
    r"|(?P<term>[.!?…]+)(?=[\s\"'”’)\]]|$)"
)
_DROP_CATEGORIES = ("P", "S", "Z", "C")

STAGE = "tokenizing"


def decode_text(raw: str | bytes, document_id: str | None = None) -> str:
    """Decode raw input to text, refusing anything not valid UTF-8.

    Raises:
        EncodingError: On undecodable bytes or unpaired surrogates.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(
                f"Undecodable byte sequence at byte offset {e.start}: {e.reason}",
                document_id=document_id,
                stage=STAGE,
            ) from e
    if isinstance(raw, str):
        try:
            raw.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Unencodable character at offset {e.start}: {e.reason}",
                document_id=document_id,
                stage=STAGE,
            ) from e
        return raw
    raise TypeError(f"Expected str or bytes, got {type(raw).__name__}")


def normalize_token(raw: str) -> str:
    """NFKC + casefold + punctuation strip for a single word."""
    folded = unicodedata.normalize("NFKC", raw).casefold()
    cleaned = "".join(
        ch for ch in folded if not unicodedata.category(ch).startswith(_DROP_CATEGORIES)
    )
    # NFKC can turn a word character into punctuation only; keep it rather than lose it
    return cleaned or folded


def tokenize(raw: str | bytes, document_id: str | None = None) -> TokenStream:
    """Turn raw text into a normalized TokenStream.

    Args:
        raw: Extracted plain text, as str or UTF-8 bytes.
        document_id: Used only for error context.

    Returns:
        TokenStream holding the decoded original text and its tokens.

    Raises:
        EncodingError: If the input cannot be decoded.
    """
    text = decode_text(raw, document_id)

    tokens: list[Token] = []
    boundaries: list[int] = []
    sentence = 0
    sentence_open = False
    byte_pos = 0
    char_pos = 0

    for match in _TOKEN_RE.finditer(text):
        if match.group("term") is not None:
            if sentence_open:
                sentence += 1
                sentence_open = False
            continue

        start, end = match.span()
        byte_start = byte_pos + len(text[char_pos:start].encode("utf-8"))
        word = match.group("word")
        byte_end = byte_start + len(word.encode("utf-8"))
        byte_pos, char_pos = byte_end, end

        if not sentence_open:
            boundaries.append(len(tokens))
            sentence_open = True

        tokens.append(
            Token(
                text=normalize_token(word),
                raw=word,
                start=start,
                end=end,
                byte_start=byte_start,
                byte_end=byte_end,
                sentence=sentence,
            )
        )

    logger.debug(
        "Tokenized %d chars into %d tokens, %d sentences",
        len(text), len(tokens), len(boundaries),
    )
    return TokenStream(
        text=text,
        tokens=tuple(tokens),
        sentence_boundaries=tuple(boundaries),
    )
