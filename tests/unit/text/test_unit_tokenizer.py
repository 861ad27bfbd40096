# tests/unit/text/test_unit_tokenizer.py — v1
"""Tests for text/tokenizer.py — decoding, normalization, offsets, sentences."""

from __future__ import annotations

import pytest

from docsim.core.errors import EncodingError
from docsim.text.tokenizer import decode_text, normalize_token, tokenize


class TestDecodeText:
    def test_str_passthrough(self):
        assert decode_text("plain text") == "plain text"

    def test_utf8_bytes(self):
        assert decode_text("café".encode("utf-8")) == "café"

    def test_invalid_bytes_raise(self):
        with pytest.raises(EncodingError) as exc_info:
            decode_text(b"abc\xff\xfe", document_id="doc-1")
        assert exc_info.value.document_id == "doc-1"
        assert exc_info.value.stage == "tokenizing"
        assert "byte offset 3" in str(exc_info.value)

    def test_lone_surrogate_raises(self):
        with pytest.raises(EncodingError):
            decode_text("abc\ud800def")

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            decode_text(42)  # type: ignore[arg-type]


class TestNormalizeToken:
    def test_casefold(self):
        assert normalize_token("Hello") == "hello"
        assert normalize_token("Straße") == "strasse"

    def test_nfkc_ligature(self):
        assert normalize_token("ﬁle") == "file"

    def test_apostrophes_stripped(self):
        assert normalize_token("Don't") == "dont"
        assert normalize_token("l’homme") == "lhomme"

    def test_combining_marks_composed(self):
        assert normalize_token("e\u0301cole") == "\u00e9cole"


class TestTokenize:
    def test_basic_words(self):
        stream = tokenize("Hello, World!")
        assert [t.raw for t in stream.tokens] == ["Hello", "World"]
        assert stream.normalized() == ["hello", "world"]

    def test_whitespace_only_is_empty(self):
        stream = tokenize("  \n\t  ")
        assert len(stream) == 0
        assert stream.sentence_boundaries == ()

    def test_punctuation_never_a_token(self):
        stream = tokenize("-- ... !!! ?? ;;")
        assert len(stream) == 0

    def test_hyphen_and_underscore_split(self):
        stream = tokenize("state-of-the-art foo_bar")
        assert stream.normalized() == ["state", "of", "the", "art", "foo", "bar"]

    def test_intra_word_apostrophe_kept_in_raw(self):
        stream = tokenize("Don't stop")
        assert stream.tokens[0].raw == "Don't"
        assert stream.tokens[0].text == "dont"

    def test_decimal_point_is_not_sentence_end(self):
        stream = tokenize("Pi is 3.14 roughly")
        assert stream.normalized() == ["pi", "is", "3", "14", "roughly"]
        assert {t.sentence for t in stream.tokens} == {0}

    def test_sentence_indices_and_boundaries(self):
        stream = tokenize("One two. Three four! Five… Six")
        assert [t.sentence for t in stream.tokens] == [0, 0, 1, 1, 2, 3]
        assert stream.sentence_boundaries == (0, 2, 4, 5)

    def test_char_offsets_slice_original(self):
        text = "  The quick,  brown fox."
        stream = tokenize(text)
        for token in stream.tokens:
            assert text[token.start:token.end] == token.raw

    def test_byte_offsets_with_multibyte(self):
        text = "café au lait"
        stream = tokenize(text)
        encoded = text.encode("utf-8")
        cafe, au = stream.tokens[0], stream.tokens[1]
        assert (cafe.start, cafe.end) == (0, 4)
        assert (cafe.byte_start, cafe.byte_end) == (0, 5)
        assert (au.byte_start, au.byte_end) == (6, 8)
        for token in stream.tokens:
            assert encoded[token.byte_start:token.byte_end].decode("utf-8") == token.raw

    def test_combining_sequence_single_token(self):
        stream = tokenize("une e\u0301cole")
        assert stream.normalized() == ["une", "\u00e9cole"]
        assert stream.tokens[1].raw == "e\u0301cole"

    def test_bytes_and_str_equivalent(self):
        text = "Grüße aus Köln. Bis bald!"
        assert tokenize(text) == tokenize(text.encode("utf-8"))

    def test_deterministic(self):
        text = "Repeatable tokenization, every single time."
        assert tokenize(text) == tokenize(text)

    def test_invalid_bytes_raise(self):
        with pytest.raises(EncodingError):
            tokenize(b"\xc3\x28", document_id="bad")


class TestExcerpt:
    TEXT = "First sentence here. Second one follows."

    def test_plain_excerpt(self):
        stream = tokenize(self.TEXT)
        assert stream.excerpt(0, 2) == "First sentence"

    def test_sentence_context_widens(self):
        stream = tokenize(self.TEXT)
        assert stream.excerpt(1, 2, sentence_context=True) == "First sentence here."

    def test_sentence_context_spanning_two_sentences(self):
        stream = tokenize(self.TEXT)
        assert stream.excerpt(2, 4, sentence_context=True) == self.TEXT

    def test_empty_range_rejected(self):
        stream = tokenize(self.TEXT)
        with pytest.raises(ValueError):
            stream.char_span(2, 2)
