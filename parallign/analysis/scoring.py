"""Co-occurrence scoring of candidate word pairs inside an envelope.

A word of text A and a word of text B are likely translations when their
occurrences line up along the envelope diagonal. For every pair of words that
co-occur in at least one band cell we compute the Dice coefficient

    score = 2 * c / (f_a + f_b)

where ``f_a``/``f_b`` are the in-envelope sentence counts of both words and
``c`` is the largest monotonic matching of their occurrences in which every
matched pair falls inside the band. Scattered occurrences (high dispersion
around the diagonal) cannot be matched and lower the score.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Hashable, List, Optional, Tuple

import numpy as np

from parallign.analysis.word_index import WordIndex
from parallign.util.types import CandidatePair, Envelope

logger = logging.getLogger(__name__)

WordPair = Tuple[Hashable, Hashable]


def banded_match_count(in_band: np.ndarray) -> int:
    """Size of the largest monotonic matching of two occurrence lists.

    ``in_band[k, l]`` tells whether occurrence ``k`` of A may be matched with
    occurrence ``l`` of B. This is a longest common subsequence where
    "equal" means "inside the band"; each DP row is filled with a running
    maximum instead of an inner loop.
    """
    m, n = in_band.shape
    if m == 0 or n == 0:
        return 0

    prev = np.zeros(n + 1, dtype=np.int32)
    for k in range(m):
        step = np.empty(n + 1, dtype=np.int32)
        step[0] = 0
        step[1:] = np.maximum(prev[1:], prev[:-1] + in_band[k].astype(np.int32))
        prev = np.maximum.accumulate(step)
    return int(prev[-1])


def _local_occurrences(
    index: WordIndex, word: Hashable, start: int, end: int
) -> np.ndarray:
    return np.asarray(index.sentences_in(word, start, end), dtype=np.int64) - start


def _eligible_words(
    index: WordIndex,
    start: int,
    end: int,
    floor: int,
    ceiling: int,
    max_share: float,
) -> Dict[Hashable, bool]:
    """Map each word of ``[start, end)`` to whether it passes the frequency filters."""
    size = end - start
    share_limit = max_share * size
    eligible: Dict[Hashable, bool] = {}
    for word in index.words_in(start, end):
        count = len(index.sentences_in(word, start, end))
        eligible[word] = floor <= count <= ceiling and count <= share_limit
    return eligible


def enumerate_band_pairs(
    index_a: WordIndex,
    index_b: WordIndex,
    envelope: Envelope,
    band: np.ndarray,
    keep_a: Callable[[Hashable], bool],
    keep_b: Callable[[Hashable], bool],
) -> List[WordPair]:
    """Distinct word pairs co-occurring in at least one band cell, in scan order."""
    seen: Dict[WordPair, None] = {}
    for r, row in enumerate(band):
        cols = np.flatnonzero(row)
        if cols.size == 0:
            continue
        words_a = [w for w in index_a.vocabulary(envelope.a_start + r) if keep_a(w)]
        if not words_a:
            continue
        # Distinct B words of the row's band cells, in column order
        words_b: Dict[Hashable, None] = {}
        for c in cols:
            for w in index_b.vocabulary(envelope.b_start + int(c)):
                if w not in words_b and keep_b(w):
                    words_b[w] = None
        for wa in words_a:
            for wb in words_b:
                seen.setdefault((wa, wb), None)
    return list(seen)


def score_pair(
    index_a: WordIndex,
    index_b: WordIndex,
    envelope: Envelope,
    band: np.ndarray,
    word_a: Hashable,
    word_b: Hashable,
) -> Tuple[float, int, int, int]:
    """Return ``(score, freq_a, freq_b, matched)`` for one word pair."""
    occ_a = _local_occurrences(index_a, word_a, envelope.a_start, envelope.a_end)
    occ_b = _local_occurrences(index_b, word_b, envelope.b_start, envelope.b_end)
    freq_a, freq_b = len(occ_a), len(occ_b)
    if freq_a == 0 or freq_b == 0:
        return 0.0, freq_a, freq_b, 0

    in_band = band[occ_a[:, np.newaxis], occ_b[np.newaxis, :]]
    matched = banded_match_count(in_band)
    return 2.0 * matched / (freq_a + freq_b), freq_a, freq_b, matched


def score_candidates(
    index_a: WordIndex,
    index_b: WordIndex,
    envelope: Envelope,
    band: np.ndarray,
    *,
    significance: float,
    frequency_floor: int,
    frequency_ceiling: int,
    max_word_share: float = 1.0,
    association_mapper: Optional[Callable[[Hashable, Hashable], bool]] = None,
    metadata: Optional[Dict] = None,
) -> Dict[WordPair, CandidatePair]:
    """MAIN: Score every candidate word pair of ``envelope``.

    Only pairs clearing the frequency floor/ceiling (on both sides) and the
    significance threshold are returned. Pairs accepted by
    ``association_mapper`` score 1.0 and skip the frequency filters.
    """
    if envelope.is_empty:
        return {}

    eligible_a = _eligible_words(
        index_a, envelope.a_start, envelope.a_end, frequency_floor, frequency_ceiling, max_word_share
    )
    eligible_b = _eligible_words(
        index_b, envelope.b_start, envelope.b_end, frequency_floor, frequency_ceiling, max_word_share
    )

    if association_mapper is None:
        keep_a = eligible_a.__getitem__
        keep_b = eligible_b.__getitem__
    else:
        # Mapped pairs bypass the filters, so every word has to be enumerated
        keep_a = keep_b = lambda word: True

    pairs = enumerate_band_pairs(index_a, index_b, envelope, band, keep_a, keep_b)

    candidates: Dict[WordPair, CandidatePair] = {}
    rejected = 0
    for word_a, word_b in pairs:
        if association_mapper is not None and association_mapper(word_a, word_b):
            _, freq_a, freq_b, matched = score_pair(index_a, index_b, envelope, band, word_a, word_b)
            candidates[(word_a, word_b)] = CandidatePair(
                word_a, word_b, 1.0, freq_a, freq_b, matched, mapped=True
            )
            continue
        if not (eligible_a[word_a] and eligible_b[word_b]):
            continue

        score, freq_a, freq_b, matched = score_pair(index_a, index_b, envelope, band, word_a, word_b)
        if score >= significance:
            candidates[(word_a, word_b)] = CandidatePair(word_a, word_b, score, freq_a, freq_b, matched)
        else:
            rejected += 1

    logger.debug(
        "Envelope %s: %d pairs enumerated, %d candidates, %d below significance %.2f",
        envelope, len(pairs), len(candidates), rejected, significance,
    )
    if metadata is not None:
        stats = metadata.setdefault("scoring", {"pairs_enumerated": 0, "candidates": 0, "rejected": 0})
        stats["pairs_enumerated"] += len(pairs)
        stats["candidates"] += len(candidates)
        stats["rejected"] += rejected

    return candidates
