"""Queryable alignment result.

The result keeps references to the caller's sentence sequences and resolves
any sentence index of either text to its bead in constant time.
"""

from __future__ import annotations

import operator
from typing import Any, Dict, Hashable, Iterator, Optional, Sequence, Tuple

import numpy as np

from parallign.util.types import Anchor, Bead, words_of


class SentenceGroup:
    """Consecutive sentences of one text, as referenced by a bead.

    Iterating yields the caller's sentence objects in text order. Every call to
    ``iter()`` starts afresh, so a group can be traversed any number of times.
    """

    def __init__(self, text: Sequence, indices: range):
        self._text = text
        self._indices = indices

    @property
    def indices(self) -> range:
        return self._indices

    def __iter__(self) -> Iterator[Any]:
        return (self._text[i] for i in self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    def __bool__(self) -> bool:
        return len(self._indices) > 0

    def __repr__(self) -> str:
        return f"SentenceGroup({self._indices.start}..{self._indices.stop})"

    def words(self) -> Iterator[Hashable]:
        """All tokens of the group in text order."""
        for i in self._indices:
            yield from words_of(self._text[i])

    def joined(self, separator: str = " ") -> str:
        """Tokens of the group joined into one string."""
        return separator.join(str(word) for word in self.words())


def _checked_index(i: Any, size: int, side: str) -> int:
    i = operator.index(i)
    if not 0 <= i < size:
        raise IndexError(f"Sentence index {i} out of range for text {side} with {size} sentences")
    return i


class Output:
    """Alignment of text A with text B as an ordered list of beads."""

    def __init__(
        self,
        text_a: Sequence,
        text_b: Sequence,
        beads: Sequence[Bead],
        anchors: Sequence[Anchor] = (),
        coverage: Sequence[float] = (),
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self._a = text_a
        self._b = text_b
        self._beads: Tuple[Bead, ...] = tuple(beads)
        self._anchors: Tuple[Anchor, ...] = tuple(anchors)
        self._coverage: Tuple[float, ...] = tuple(coverage)
        self.metadata: Dict[str, Any] = metadata if metadata is not None else {}

        self._a_to_bead = np.full(len(text_a), -1, dtype=np.int64)
        self._b_to_bead = np.full(len(text_b), -1, dtype=np.int64)
        for k, bead in enumerate(self._beads):
            self._a_to_bead[bead.a_start:bead.a_end] = k
            self._b_to_bead[bead.b_start:bead.b_end] = k

    # ------------------------------------------------------------------
    # Collection protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._beads)

    def __iter__(self) -> Iterator[Bead]:
        return iter(self._beads)

    def __getitem__(self, k: int) -> Bead:
        return self._beads[k]

    @property
    def beads(self) -> Tuple[Bead, ...]:
        return self._beads

    @property
    def anchors(self) -> Tuple[Anchor, ...]:
        return self._anchors

    @property
    def coverage(self) -> Tuple[float, ...]:
        """Anchored share of all sentences after each anchoring pass."""
        return self._coverage

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def bead_index_for_a(self, i: int) -> int:
        return int(self._a_to_bead[_checked_index(i, len(self._a), "A")])

    def bead_index_for_b(self, j: int) -> int:
        return int(self._b_to_bead[_checked_index(j, len(self._b), "B")])

    def bead_for_a(self, i: int) -> Bead:
        """Bead containing sentence ``i`` of text A."""
        return self._beads[self.bead_index_for_a(i)]

    def bead_for_b(self, j: int) -> Bead:
        """Bead containing sentence ``j`` of text B."""
        return self._beads[self.bead_index_for_b(j)]

    def a_alignments(self, i: int) -> SentenceGroup:
        """Sentences of text B aligned to sentence ``i`` of text A (possibly none)."""
        bead = self.bead_for_a(i)
        return SentenceGroup(self._b, bead.b_indices)

    def b_alignments(self, j: int) -> SentenceGroup:
        """Sentences of text A aligned to sentence ``j`` of text B (possibly none)."""
        bead = self.bead_for_b(j)
        return SentenceGroup(self._a, bead.a_indices)

    def pairs(self) -> Iterator[Tuple[SentenceGroup, SentenceGroup]]:
        """``(A group, B group)`` for every bead in order."""
        for bead in self._beads:
            yield SentenceGroup(self._a, bead.a_indices), SentenceGroup(self._b, bead.b_indices)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable view of the alignment."""
        return {
            "num_sentences_a": len(self._a),
            "num_sentences_b": len(self._b),
            "beads": [bead.to_dict() for bead in self._beads],
            "anchors": [
                {"a": anchor.a, "b": anchor.b, "score": round(anchor.score, 6),
                 "support": anchor.support, "iteration": anchor.iteration}
                for anchor in self._anchors
            ],
            "coverage": [round(c, 6) for c in self._coverage],
            "metadata": self.metadata,
        }