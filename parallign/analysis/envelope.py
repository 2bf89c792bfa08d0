"""Search envelopes and their refinement between anchors.

An envelope is the rectangle of sentence pairs lying strictly between two
consecutive anchors. Inside it only a band around the straight line joining
the two anchors is searched. The band is widest in the middle of the
envelope (where positional drift accumulates) and narrows toward the anchors,
giving the parallelogram-like region of Kay & Roescheisen's method.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Tuple

import numpy as np

from parallign.util.types import Anchor, Envelope


def full_envelope(len_a: int, len_b: int) -> Envelope:
    """Envelope spanning both complete texts."""
    return Envelope(0, len_a, 0, len_b)


def band_half_widths(envelope: Envelope, band_scale: float = 1.0) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(diagonal, half_width)`` arrays with one entry per envelope row.

    The half width is ``band_scale * sqrt(span) / 2`` at the envelope centre and
    shrinks linearly toward both bounding anchors, but never below half the
    slope so consecutive rows stay connected.
    """
    span_a = envelope.height + 1
    span_b = envelope.width + 1
    rows = np.arange(envelope.a_start, envelope.a_end, dtype=np.float64)

    progress = (rows - (envelope.a_start - 1)) / span_a
    diagonal = (envelope.b_start - 1) + progress * span_b
    taper = 1.0 - np.abs(1.0 - 2.0 * progress)

    floor = 0.5 * max(span_b / span_a, 1.0)
    half = np.maximum(floor, 0.5 * band_scale * math.sqrt(max(span_a, span_b)) * taper)
    return diagonal, half


def build_band(envelope: Envelope, band_scale: float = 1.0) -> np.ndarray:
    """Boolean mask of shape ``(height, width)`` marking the searchable cells."""
    if envelope.is_empty:
        return np.zeros((max(envelope.height, 0), max(envelope.width, 0)), dtype=bool)

    diagonal, half = band_half_widths(envelope, band_scale)
    cols = np.arange(envelope.b_start, envelope.b_end, dtype=np.float64)
    distance = np.abs(cols[np.newaxis, :] - diagonal[:, np.newaxis])
    return distance <= half[:, np.newaxis]


def diagonal_distance(envelope: Envelope, a: int, b: int) -> float:
    """Distance of cell ``(a, b)`` from the envelope diagonal, in B sentences."""
    return abs(b - envelope.diagonal(a))


def split_envelope(envelope: Envelope, anchors: Iterable[Anchor]) -> List[Envelope]:
    """Split ``envelope`` into the sub-envelopes between consecutive anchors.

    The envelope's own corners act as implicit boundary anchors. Anchors must
    lie inside the envelope and be strictly monotonic; the result has
    ``len(anchors) + 1`` envelopes (some possibly empty), none overlapping.
    """
    ordered = sorted(anchors, key=lambda anchor: (anchor.a, anchor.b))
    pieces: List[Envelope] = []
    prev_a, prev_b = envelope.a_start - 1, envelope.b_start - 1

    for anchor in ordered:
        if not envelope.contains(anchor.a, anchor.b):
            raise ValueError(f"Anchor {anchor.coordinates} lies outside {envelope}")
        if anchor.a <= prev_a or anchor.b <= prev_b:
            raise ValueError(f"Anchor {anchor.coordinates} crosses a previous anchor")
        pieces.append(Envelope(prev_a + 1, anchor.a, prev_b + 1, anchor.b))
        prev_a, prev_b = anchor.a, anchor.b

    pieces.append(Envelope(prev_a + 1, envelope.a_end, prev_b + 1, envelope.b_end))
    return pieces


def is_terminal(envelope: Envelope, min_size: int) -> bool:
    """True when the envelope is too small on either axis to refine further."""
    return envelope.height < min_size or envelope.width < min_size
