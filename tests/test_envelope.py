from __future__ import annotations

import pytest

from parallign.analysis.envelope import (
    build_band,
    diagonal_distance,
    full_envelope,
    is_terminal,
    split_envelope,
)
from parallign.util.types import Anchor, Envelope


def test_band_contains_the_diagonal_of_a_square_envelope():
    band = build_band(full_envelope(10, 10))
    assert band.shape == (10, 10)
    assert all(band[i, i] for i in range(10))


def test_band_is_narrow_at_the_anchors_and_wide_in_the_middle():
    band = build_band(full_envelope(10, 10))
    assert band[0].sum() == 1
    assert band[9].sum() == 1
    assert band[5].sum() > band[0].sum()


def test_band_reaches_every_row_of_a_skewed_envelope():
    band = build_band(Envelope(0, 5, 0, 20))
    assert band.shape == (5, 20)
    assert band.any(axis=1).all()


def test_band_scale_widens_the_band():
    env = full_envelope(30, 30)
    assert build_band(env, 2.0).sum() > build_band(env, 1.0).sum()


def test_empty_envelope_gives_empty_band():
    band = build_band(Envelope(3, 3, 0, 4))
    assert band.shape == (0, 4)


def test_diagonal_runs_between_bounding_anchors():
    env = Envelope(4, 7, 10, 13)
    assert env.diagonal(3) == pytest.approx(9.0)
    assert env.diagonal(7) == pytest.approx(13.0)
    assert diagonal_distance(env, 5, 11) == pytest.approx(0.0)


def test_split_envelope_between_anchors():
    env = full_envelope(10, 12)
    pieces = split_envelope(env, [Anchor(6, 7), Anchor(3, 4)])
    assert pieces == [
        Envelope(0, 3, 0, 4),
        Envelope(4, 6, 5, 7),
        Envelope(7, 10, 8, 12),
    ]


def test_split_envelope_leaves_anchors_out_and_covers_the_rest():
    env = full_envelope(10, 12)
    anchors = [Anchor(3, 4), Anchor(6, 7)]
    pieces = split_envelope(env, anchors)
    rows = sorted(a for piece in pieces for a in range(piece.a_start, piece.a_end))
    cols = sorted(b for piece in pieces for b in range(piece.b_start, piece.b_end))
    assert rows == [a for a in range(10) if a not in (3, 6)]
    assert cols == [b for b in range(12) if b not in (4, 7)]


def test_adjacent_anchors_produce_an_empty_piece():
    pieces = split_envelope(full_envelope(6, 6), [Anchor(2, 2), Anchor(3, 3)])
    assert len(pieces) == 3
    assert pieces[1].is_empty


def test_split_without_anchors_returns_the_envelope():
    env = Envelope(2, 8, 1, 9)
    assert split_envelope(env, []) == [env]


def test_split_rejects_anchor_outside_envelope():
    with pytest.raises(ValueError):
        split_envelope(Envelope(2, 8, 1, 9), [Anchor(1, 3)])


def test_split_rejects_crossing_anchors():
    with pytest.raises(ValueError):
        split_envelope(full_envelope(10, 10), [Anchor(3, 6), Anchor(5, 4)])


def test_is_terminal():
    assert is_terminal(Envelope(0, 1, 0, 10), 2)
    assert is_terminal(Envelope(0, 5, 3, 3), 1)
    assert not is_terminal(Envelope(0, 2, 0, 2), 2)
