"""Anchor selection from scored word pairs.

Each significant word pair nominates the occurrence cells where an A
occurrence and a B occurrence are each other's closest in-band partner. The
nominations of all pairs are pooled per cell, and the heaviest chain of cells
that increases strictly in both coordinates becomes the new anchor set of the
envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from parallign.analysis.envelope import diagonal_distance
from parallign.analysis.word_index import WordIndex
from parallign.util.types import Anchor, CandidatePair, Envelope


@dataclass
class CellSupport:
    """Pooled nominations of one ``(a, b)`` cell."""
    a: int
    b: int
    score: float = 0.0
    support: int = 0
    distance: float = 0.0


def mutual_closest_cells(
    index_a: WordIndex,
    index_b: WordIndex,
    envelope: Envelope,
    band: np.ndarray,
    pair: CandidatePair,
) -> List[Tuple[int, int]]:
    """Occurrence cells of ``pair`` that are mutually closest to the diagonal.

    An A occurrence ``i`` and a B occurrence ``j`` are kept when ``j`` is the
    in-band B occurrence closest to the diagonal at row ``i`` and ``i`` is the
    in-band A occurrence whose diagonal point is closest to ``j``. Ties go to
    the earlier occurrence.
    """
    occ_a = np.asarray(index_a.sentences_in(pair.word_a, envelope.a_start, envelope.a_end), dtype=np.int64)
    occ_b = np.asarray(index_b.sentences_in(pair.word_b, envelope.b_start, envelope.b_end), dtype=np.int64)
    if occ_a.size == 0 or occ_b.size == 0:
        return []

    in_band = band[(occ_a - envelope.a_start)[:, np.newaxis], (occ_b - envelope.b_start)[np.newaxis, :]]
    if not in_band.any():
        return []

    expected = np.array([envelope.diagonal(a) for a in occ_a], dtype=np.float64)
    distance = np.abs(occ_b[np.newaxis, :].astype(np.float64) - expected[:, np.newaxis])
    distance = np.where(in_band, distance, np.inf)

    best_col = np.argmin(distance, axis=1)
    best_row = np.argmin(distance, axis=0)

    cells: List[Tuple[int, int]] = []
    for k in range(len(occ_a)):
        l = int(best_col[k])
        if not np.isfinite(distance[k, l]):
            continue
        if int(best_row[l]) == k:
            cells.append((int(occ_a[k]), int(occ_b[l])))
    return cells


def pool_nominations(
    index_a: WordIndex,
    index_b: WordIndex,
    envelope: Envelope,
    band: np.ndarray,
    candidates: Iterable[CandidatePair],
) -> Dict[Tuple[int, int], CellSupport]:
    """Aggregate the mutually closest cells of all candidates per cell."""
    pooled: Dict[Tuple[int, int], CellSupport] = {}
    for pair in candidates:
        for a, b in mutual_closest_cells(index_a, index_b, envelope, band, pair):
            cell = pooled.get((a, b))
            if cell is None:
                cell = pooled[(a, b)] = CellSupport(a, b, distance=diagonal_distance(envelope, a, b))
            cell.score += pair.score
            cell.support += 1
    return pooled


def _best_end(indices: np.ndarray, score: np.ndarray, length: np.ndarray, distance: np.ndarray) -> int:
    """Index of the best chain among ``indices``; the earliest one wins ties."""
    order = np.lexsort((indices, distance[indices], -length[indices], -score[indices]))
    return int(indices[order[0]])


def heaviest_monotonic_chain(cells: Sequence[CellSupport]) -> List[CellSupport]:
    """Maximum-weight chain strictly increasing in both coordinates.

    Chains are compared by (total score, length, -total diagonal distance);
    remaining ties keep the chain found first in ``(a, b)`` order, so the
    result does not depend on the order in which cells were nominated. Each
    DP row is a vectorised scan over the cells of earlier rows.
    """
    if not cells:
        return []

    ordered = sorted(cells, key=lambda cell: (cell.a, cell.b))
    n = len(ordered)
    a = np.array([cell.a for cell in ordered], dtype=np.int64)
    b = np.array([cell.b for cell in ordered], dtype=np.int64)

    # Best chain ending at each cell; totals are rounded to keep float noise out of the ties
    score = np.zeros(n, dtype=np.float64)
    length = np.ones(n, dtype=np.int64)
    distance = np.zeros(n, dtype=np.float64)
    back = np.full(n, -1, dtype=np.int64)

    for k, cell in enumerate(ordered):
        score[k] = round(cell.score, 9)
        distance[k] = round(cell.distance, 9)
        # Cells of earlier rows form a prefix of the sorted order
        limit = int(np.searchsorted(a, cell.a, side="left"))
        prev = np.flatnonzero(b[:limit] < cell.b)
        if prev.size == 0:
            continue
        j = _best_end(prev, score, length, distance)
        extended = (
            round(float(score[j]) + cell.score, 9),
            int(length[j]) + 1,
            round(float(distance[j]) + cell.distance, 9),
        )
        if (extended[0], extended[1], -extended[2]) > (score[k], length[k], -distance[k]):
            score[k], length[k], distance[k] = extended
            back[k] = j

    chain: List[CellSupport] = []
    cursor = _best_end(np.arange(n), score, length, distance)
    while cursor >= 0:
        chain.append(ordered[cursor])
        cursor = int(back[cursor])
    chain.reverse()
    return chain


def select_anchors(
    index_a: WordIndex,
    index_b: WordIndex,
    envelope: Envelope,
    band: np.ndarray,
    candidates: Dict[Tuple, CandidatePair],
    *,
    min_support: int = 1,
    iteration: int = 0,
    metadata: Optional[Dict] = None,
) -> List[Anchor]:
    """MAIN: Choose the new anchors of ``envelope`` from its scored candidates."""
    if not candidates or envelope.is_empty:
        return []

    pooled = pool_nominations(index_a, index_b, envelope, band, candidates.values())
    eligible = [cell for cell in pooled.values() if cell.support >= min_support]
    chain = heaviest_monotonic_chain(eligible)

    if metadata is not None:
        stats = metadata.setdefault("selection", {"cells_nominated": 0, "cells_eligible": 0, "anchors": 0})
        stats["cells_nominated"] += len(pooled)
        stats["cells_eligible"] += len(eligible)
        stats["anchors"] += len(chain)

    return [
        Anchor(cell.a, cell.b, score=cell.score, support=cell.support, iteration=iteration)
        for cell in chain
    ]


def is_monotonic(anchors: Sequence[Anchor]) -> bool:
    """True when no two anchors cross: ``a1 < a2`` iff ``b1 < b2``."""
    ordered = sorted(anchors, key=lambda anchor: (anchor.a, anchor.b))
    return all(
        prev.a < cur.a and prev.b < cur.b
        for prev, cur in zip(ordered, ordered[1:])
    )
