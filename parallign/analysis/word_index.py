"""Word to sentence index for one text.

The index is built once per text and is read-only afterwards. It stores
sentence indices only; token positions are derived on request from the
caller's sentences, which are referenced, never copied.
"""

from __future__ import annotations

from bisect import bisect_left
from typing import Dict, Hashable, Iterable, Iterator, List, Sequence, Tuple

from parallign.util.types import words_of


class WordIndex:
    """Maps each distinct word to the ordered sentence indices containing it."""

    def __init__(
        self,
        text: Sequence,
        sentences: Dict[Hashable, List[int]],
        vocabularies: List[Tuple[Hashable, ...]],
    ):
        self._text = text
        self._sentences = sentences
        self._vocabularies = vocabularies

    @classmethod
    def build(cls, text: Sequence) -> "WordIndex":
        """Index ``text``; a word repeated inside a sentence counts once for it."""
        sentences: Dict[Hashable, List[int]] = {}
        vocabularies: List[Tuple[Hashable, ...]] = []

        for i, sentence in enumerate(text):
            seen: Dict[Hashable, None] = {}
            for word in words_of(sentence):
                if word not in seen:
                    seen[word] = None
                    sentences.setdefault(word, []).append(i)
            vocabularies.append(tuple(seen))

        return cls(text, sentences, vocabularies)

    def __len__(self) -> int:
        return len(self._sentences)

    def __contains__(self, word: Hashable) -> bool:
        return word in self._sentences

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._sentences)

    @property
    def num_sentences(self) -> int:
        return len(self._vocabularies)

    def sentences(self, word: Hashable) -> List[int]:
        """Sentence indices containing ``word`` in increasing order."""
        return self._sentences.get(word, [])

    def positions(self, word: Hashable) -> List[Tuple[int, int]]:
        """All ``(sentence, token position)`` occurrences of ``word``."""
        return [
            (i, position)
            for i in self.sentences(word)
            for position, token in enumerate(words_of(self._text[i]))
            if token == word
        ]

    def occurrences(self, word: Hashable) -> int:
        """Number of sentences containing ``word``."""
        return len(self._sentences.get(word, ()))

    def sentences_in(self, word: Hashable, start: int, end: int) -> List[int]:
        """Sentence indices containing ``word`` within ``[start, end)``."""
        indices = self._sentences.get(word)
        if not indices:
            return []
        lo = bisect_left(indices, start)
        hi = bisect_left(indices, end, lo)
        return indices[lo:hi]

    def vocabulary(self, sentence: int) -> Tuple[Hashable, ...]:
        """Distinct words of one sentence in first-seen order."""
        return self._vocabularies[sentence]

    def words_in(self, start: int, end: int) -> List[Hashable]:
        """Distinct words of the sentences in ``[start, end)``, first-seen order."""
        seen: Dict[Hashable, None] = {}
        for i in range(max(0, start), min(end, len(self._vocabularies))):
            for word in self._vocabularies[i]:
                seen.setdefault(word, None)
        return list(seen)


def build_indices(text_a: Sequence, text_b: Sequence) -> Tuple[WordIndex, WordIndex]:
    """Build the word indices of both texts."""
    return WordIndex.build(text_a), WordIndex.build(text_b)


def shared_vocabulary(index_a: WordIndex, index_b: WordIndex) -> Iterable[Hashable]:
    """Words present in both texts (useful for diagnosing weak signals)."""
    smaller, larger = (index_a, index_b) if len(index_a) <= len(index_b) else (index_b, index_a)
    return [word for word in smaller if word in larger]
