from __future__ import annotations

import pytest

from parallign.parsers.sentences import (
    TokenizedSentence,
    decode_bytes,
    parse_sentences,
    read_sentences,
    tokenize,
)


def test_tokenize_lowercases_and_drops_punctuation():
    assert tokenize("It was the best of times,") == ("it", "was", "the", "best", "of", "times")
    assert tokenize("Straße, FRÜHLING!") == ("strasse", "frühling")
    assert tokenize("...") == ()


def test_parse_sentences_skips_blank_lines():
    sentences = parse_sentences("First line.\n\n   \nSecond line.\n")
    assert [str(s) for s in sentences] == ["First line.", "Second line."]
    assert sentences[1].words() == ("second", "line")
    assert isinstance(sentences[0], TokenizedSentence)


def test_decode_bytes_strips_bom():
    assert decode_bytes(b"\xef\xbb\xbfHallo") == "Hallo"


def test_decode_bytes_falls_back_to_detected_encoding():
    text = decode_bytes("Der Frühling über der Straße".encode("latin-1"))
    assert text.startswith("Der Fr")


def test_read_sentences(tmp_path):
    path = tmp_path / "text.txt"
    path.write_text("Es war die beste Zeit.\nEs war die schlechteste Zeit.\n", encoding="utf-8")
    sentences = read_sentences(path)
    assert len(sentences) == 2
    assert sentences[0].tokens[-1] == "zeit"


def test_read_sentences_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_sentences(tmp_path / "missing.txt")
