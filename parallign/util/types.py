"""Core data types for the parallign sentence alignment engine.

This module defines the fundamental data structures shared by the word index,
the anchoring passes and the bead aligner.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Hashable, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class Sentence(Protocol):
    """Anything that can hand out the ordered word tokens of one sentence.

    Tokens only need to be hashable and comparable by equality. Plain token
    sequences (lists, tuples) are accepted wherever a Sentence is expected.
    """

    def words(self) -> Sequence[Hashable]:
        ...


def words_of(sentence: Any) -> Sequence[Hashable]:
    """Return the token view of ``sentence`` without copying it."""
    if isinstance(sentence, Sentence):
        return sentence.words()
    if isinstance(sentence, (str, bytes)):
        raise TypeError(
            "Sentences must be token sequences or expose words(); tokenize raw strings first"
        )
    if isinstance(sentence, Sequence):
        return sentence
    raise TypeError(f"Unsupported sentence type: {type(sentence).__name__}")


@dataclass(frozen=True)
class Envelope:
    """Rectangular search region of the (A index x B index) plane.

    Ranges are half-open: rows ``[a_start, a_end)`` of text A and columns
    ``[b_start, b_end)`` of text B. The bounding anchors sit just outside the
    rectangle at ``(a_start - 1, b_start - 1)`` and ``(a_end, b_end)``; for
    the full text pair these are the virtual corners ``(-1, -1)`` and
    ``(len(A), len(B))``.
    """
    a_start: int
    a_end: int
    b_start: int
    b_end: int

    @property
    def height(self) -> int:
        return self.a_end - self.a_start

    @property
    def width(self) -> int:
        return self.b_end - self.b_start

    @property
    def is_empty(self) -> bool:
        return self.height <= 0 or self.width <= 0

    def contains(self, a: int, b: int) -> bool:
        return self.a_start <= a < self.a_end and self.b_start <= b < self.b_end

    def diagonal(self, a: float) -> float:
        """Expected B coordinate of row ``a`` on the line between the bounding anchors."""
        span_a = self.height + 1
        span_b = self.width + 1
        return (self.b_start - 1) + (a - (self.a_start - 1)) * span_b / span_a


@dataclass(frozen=True)
class CandidatePair:
    """A hypothesized translation pair scoped to one envelope.

    Attributes:
        word_a: Token from text A
        word_b: Token from text B
        score: Dice coefficient of the banded occurrence matching (0..1)
        freq_a: Sentences of the envelope's A range containing ``word_a``
        freq_b: Sentences of the envelope's B range containing ``word_b``
        matched: Size of the banded monotonic matching between the occurrences
        mapped: True when the pair came from the caller's association mapper
    """
    word_a: Hashable
    word_b: Hashable
    score: float
    freq_a: int
    freq_b: int
    matched: int
    mapped: bool = False


@dataclass(frozen=True)
class Anchor:
    """A committed sentence correspondence ``(a, b)``.

    Attributes:
        a: Sentence index in text A
        b: Sentence index in text B
        score: Summed score of the word pairs supporting this cell
        support: Number of distinct word pairs supporting this cell
        iteration: Pass (0-based) in which the anchor was committed
    """
    a: int
    b: int
    score: float = 0.0
    support: int = 0
    iteration: int = 0

    @property
    def coordinates(self) -> Tuple[int, int]:
        return (self.a, self.b)


@dataclass(frozen=True)
class Bead:
    """Final alignment unit grouping consecutive sentences of both texts.

    Bead i represents:
        A[a_start:a_end] <-> B[b_start:b_end]
    Either side may be empty (insertion/deletion beads).
    """
    a_start: int
    a_end: int
    b_start: int
    b_end: int
    cost: float = 0.0
    anchored: bool = False

    @property
    def a_indices(self) -> range:
        return range(self.a_start, self.a_end)

    @property
    def b_indices(self) -> range:
        return range(self.b_start, self.b_end)

    @property
    def kind(self) -> str:
        """Bead type label such as ``"1-1"`` or ``"2-1"``."""
        return f"{self.a_end - self.a_start}-{self.b_end - self.b_start}"

    def to_dict(self) -> dict:
        return {
            "a": [self.a_start, self.a_end],
            "b": [self.b_start, self.b_end],
            "kind": self.kind,
            "cost": round(self.cost, 6),
            "anchored": self.anchored,
        }
