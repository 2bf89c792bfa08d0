"""Line-per-sentence text reader.

The alignment engine consumes already tokenized sentences. This module is a
small collaborator for the CLI: it decodes a file, treats every non-empty line
as one sentence and splits it into lower-cased word tokens.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

import chardet  # type: ignore

logger = logging.getLogger(__name__)

_word_re = re.compile(r"\w+", re.UNICODE)


@dataclass(frozen=True)
class TokenizedSentence:
	"""One sentence with its raw text and word tokens."""
	text: str
	tokens: Tuple[str, ...]

	def words(self) -> Tuple[str, ...]:
		return self.tokens

	def __str__(self) -> str:
		return self.text


def decode_bytes(data: bytes) -> str:
	"""Decode file bytes as UTF-8, falling back to chardet's guess."""
	if data.startswith(b"\xef\xbb\xbf"):
		data = data[3:]
	try:
		return data.decode("utf-8")
	except UnicodeDecodeError:
		pass

	detected = chardet.detect(data)
	encoding = detected.get("encoding") or "utf-8"
	logger.info("Detected encoding %s (confidence %.2f)", encoding, detected.get("confidence") or 0.0)
	try:
		return data.decode(encoding)
	except (UnicodeDecodeError, LookupError):
		logger.warning("Failed to decode with %s, falling back to UTF-8 with replacement", encoding)
		return data.decode("utf-8", errors="replace")


def tokenize(line: str) -> Tuple[str, ...]:
	"""Lower-cased word tokens of one line."""
	# Examples: "It was the best of times," -> ("it", "was", "the", "best", "of", "times")
	return tuple(m.group(0).casefold() for m in _word_re.finditer(line))


def parse_sentences(text: str) -> List[TokenizedSentence]:
	"""One sentence per non-empty line."""
	sentences: List[TokenizedSentence] = []
	for line in text.splitlines():
		line = line.strip()
		if line:
			sentences.append(TokenizedSentence(line, tokenize(line)))
	return sentences


def read_sentences(path: Union[str, Path]) -> List[TokenizedSentence]:
	"""Read a line-per-sentence file."""
	p = Path(path)
	if not p.is_file():
		raise FileNotFoundError(f"Text file not found: {path}")
	return parse_sentences(decode_bytes(p.read_bytes()))
