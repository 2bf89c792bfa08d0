from __future__ import annotations

from parallign.analysis.anchors import (
    CellSupport,
    heaviest_monotonic_chain,
    is_monotonic,
    select_anchors,
)
from parallign.analysis.envelope import build_band, full_envelope
from parallign.analysis.scoring import score_candidates
from parallign.analysis.word_index import build_indices
from parallign.util.types import Anchor


def _coords(chain):
    return [(cell.a, cell.b) for cell in chain]


def test_chain_prefers_heavier_cells_over_longer_chains():
    cells = [
        CellSupport(0, 0, 1.0, 1),
        CellSupport(1, 1, 1.0, 1),
        CellSupport(2, 2, 1.0, 1),
        CellSupport(1, 3, 5.0, 3),
    ]
    assert _coords(heaviest_monotonic_chain(cells)) == [(0, 0), (1, 3)]


def test_chain_is_strictly_increasing():
    cells = [CellSupport(0, 0, 1.0, 1), CellSupport(0, 1, 1.0, 1), CellSupport(1, 1, 1.0, 1)]
    chain = _coords(heaviest_monotonic_chain(cells))
    assert chain == [(0, 0), (1, 1)]


def test_chain_ties_break_on_diagonal_distance():
    cells = [CellSupport(2, 3, 1.0, 1, distance=1.0), CellSupport(2, 2, 1.0, 1, distance=0.0)]
    assert _coords(heaviest_monotonic_chain(cells)) == [(2, 2)]


def test_chain_ties_do_not_depend_on_input_order():
    cells = [CellSupport(3, 2, 1.0, 1), CellSupport(2, 3, 1.0, 1)]
    assert _coords(heaviest_monotonic_chain(cells)) == [(2, 3)]
    assert _coords(heaviest_monotonic_chain(list(reversed(cells)))) == [(2, 3)]


def test_empty_chain():
    assert heaviest_monotonic_chain([]) == []


def _indexed():
    text_a = [[f"a{i}"] for i in range(8)]
    text_b = [[f"b{i}"] for i in range(8)]
    for i in (1, 5):
        text_a[i].append("x")
        text_b[i].append("y")
    index_a, index_b = build_indices(text_a, text_b)
    env = full_envelope(8, 8)
    band = build_band(env)
    candidates = score_candidates(
        index_a, index_b, env, band, significance=0.8, frequency_floor=2, frequency_ceiling=100,
    )
    return index_a, index_b, env, band, candidates


def test_select_anchors_at_mutually_closest_cells():
    index_a, index_b, env, band, candidates = _indexed()
    metadata = {}
    anchors = select_anchors(index_a, index_b, env, band, candidates, iteration=3, metadata=metadata)
    assert [anchor.coordinates for anchor in anchors] == [(1, 1), (5, 5)]
    assert all(anchor.iteration == 3 and anchor.support == 1 for anchor in anchors)
    assert metadata["selection"]["anchors"] == 2


def test_select_anchors_respects_min_support():
    index_a, index_b, env, band, candidates = _indexed()
    assert select_anchors(index_a, index_b, env, band, candidates, min_support=2) == []


def test_select_anchors_without_candidates():
    index_a, index_b, env, band, _ = _indexed()
    assert select_anchors(index_a, index_b, env, band, {}) == []


def test_is_monotonic():
    assert is_monotonic([Anchor(1, 1), Anchor(4, 6)])
    assert is_monotonic([])
    assert not is_monotonic([Anchor(1, 5), Anchor(4, 3)])
    assert not is_monotonic([Anchor(1, 5), Anchor(1, 6)])


def test_chain_over_many_cells_follows_the_heavier_diagonal():
    cells = [CellSupport(i, i, 1.0, 1) for i in range(300)]
    cells += [CellSupport(i, i + 1, 0.9, 1, distance=1.0) for i in range(300)]
    chain = heaviest_monotonic_chain(cells)
    assert _coords(chain) == [(i, i) for i in range(300)]
