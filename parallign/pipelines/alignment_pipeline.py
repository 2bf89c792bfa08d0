"""Bitext alignment pipeline.

This pipeline takes two tokenized texts, indexes their words, runs repeated
anchoring passes (score -> select -> refine) over a work-list of envelopes
and finally aligns sentence beads between the committed anchors.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from ..analysis.anchors import select_anchors
from ..analysis.beads import align_beads
from ..analysis.envelope import build_band, full_envelope, is_terminal, split_envelope
from ..analysis.scoring import score_candidates
from ..analysis.word_index import WordIndex, build_indices, shared_vocabulary
from ..config import AlignmentConfig
from ..output import Output
from ..util.types import Anchor, CandidatePair, Envelope, words_of

logger = logging.getLogger(__name__)


@dataclass
class PassReport:
    """Statistics of one anchoring pass."""
    iteration: int
    significance: float
    frequency_floor: int
    envelopes: int
    candidates: int
    new_anchors: int
    total_anchors: int
    coverage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "significance": round(self.significance, 6),
            "frequency_floor": self.frequency_floor,
            "envelopes": self.envelopes,
            "candidates": self.candidates,
            "new_anchors": self.new_anchors,
            "total_anchors": self.total_anchors,
            "coverage": round(self.coverage, 6),
        }


class AlignmentPipeline:
    """Pipeline aligning two texts given as sequences of tokenized sentences."""

    def __init__(self, text_a: Sequence, text_b: Sequence, config: Optional[AlignmentConfig] = None):
        self.text_a = text_a
        self.text_b = text_b
        self.config = config or AlignmentConfig()
        self.metadata: Dict[str, Any] = {}
        self.anchors: List[Anchor] = []
        self.coverage: List[float] = []
        self.passes: List[PassReport] = []

    def run(self) -> Output:
        """Run the complete alignment pipeline."""
        start_time = time.time()

        # Phase 1: Index both texts
        index_a, index_b = build_indices(self.text_a, self.text_b)
        lengths_a = np.array([len(words_of(s)) for s in self.text_a], dtype=np.int64)
        lengths_b = np.array([len(words_of(s)) for s in self.text_b], dtype=np.int64)
        logger.debug(
            "Indexed %d/%d sentences with %d/%d distinct words",
            index_a.num_sentences, index_b.num_sentences, len(index_a), len(index_b),
        )

        # Phase 2: Anchoring passes
        anchor_start = time.time()
        stop_reason = self._anchor(index_a, index_b)
        anchor_time = time.time() - anchor_start

        # Phase 3: Bead alignment between anchors
        beads = align_beads(lengths_a, lengths_b, self.anchors, self.config, self.metadata)

        self.metadata.setdefault("anchoring", {}).update({
            "config": self.config.to_dict(),
            "shared_vocabulary": len(shared_vocabulary(index_a, index_b)),
            "passes": [report.to_dict() for report in self.passes],
            "num_anchors": len(self.anchors),
            "stop_reason": stop_reason,
            "computation_time": round(anchor_time, 3),
        })
        self.metadata["total_time"] = round(time.time() - start_time, 3)

        logger.info(
            "Aligned %d x %d sentences: %d anchors in %d passes (%s), %d beads",
            len(self.text_a), len(self.text_b), len(self.anchors), len(self.passes),
            stop_reason, len(beads),
        )
        return Output(self.text_a, self.text_b, beads, self.anchors, self.coverage, self.metadata)

    def _anchor(self, index_a: WordIndex, index_b: WordIndex) -> str:
        """Run anchoring passes until convergence; return why they stopped."""
        config = self.config
        envelope = full_envelope(index_a.num_sentences, index_b.num_sentences)
        pending: Deque[Envelope] = deque()
        if not is_terminal(envelope, config.min_envelope_size):
            pending.append(envelope)

        anchored_a: Set[int] = set()
        anchored_b: Set[int] = set()
        total = index_a.num_sentences + index_b.num_sentences

        for iteration in range(config.max_iterations):
            if not pending:
                return "no pending envelopes"

            significance = config.significance_at(iteration)
            floor = config.frequency_floor_at(iteration)
            settled = config.thresholds_settled(iteration)

            # Score every pending envelope before any selection happens
            scored: List[Tuple[Envelope, np.ndarray, Dict[Any, CandidatePair]]] = []
            for env in pending:
                band = build_band(env, config.band_scale)
                candidates = score_candidates(
                    index_a, index_b, env, band,
                    significance=significance,
                    frequency_floor=floor,
                    frequency_ceiling=config.max_word_frequency,
                    max_word_share=config.max_word_share,
                    association_mapper=config.association_mapper,
                    metadata=self.metadata,
                )
                scored.append((env, band, candidates))

            # Select, commit and refine
            next_pending: Deque[Envelope] = deque()
            new_anchors: List[Anchor] = []
            for env, band, candidates in scored:
                found = select_anchors(
                    index_a, index_b, env, band, candidates,
                    min_support=config.min_anchor_support,
                    iteration=iteration,
                    metadata=self.metadata,
                )
                if found:
                    new_anchors.extend(found)
                    for sub in split_envelope(env, found):
                        if not is_terminal(sub, config.min_envelope_size):
                            next_pending.append(sub)
                elif not settled:
                    # Lower thresholds next pass may still find anchors here
                    next_pending.append(env)

            self.anchors.extend(new_anchors)
            self.anchors.sort(key=lambda anchor: (anchor.a, anchor.b))
            for anchor in new_anchors:
                anchored_a.add(anchor.a)
                anchored_b.add(anchor.b)
            coverage = (len(anchored_a) + len(anchored_b)) / total if total else 1.0
            self.coverage.append(coverage)

            report = PassReport(
                iteration=iteration,
                significance=significance,
                frequency_floor=floor,
                envelopes=len(scored),
                candidates=sum(len(c) for _, _, c in scored),
                new_anchors=len(new_anchors),
                total_anchors=len(self.anchors),
                coverage=coverage,
            )
            self.passes.append(report)
            logger.debug("Pass %d: %s", iteration, report.to_dict())

            if not new_anchors and settled:
                return "converged"
            if coverage >= config.min_coverage:
                return "coverage reached"
            pending = next_pending

        return "no pending envelopes" if not pending else "iteration cap"


def align(
    text_a: Sequence,
    text_b: Sequence,
    config: Optional[AlignmentConfig] = None,
) -> Output:
    """MAIN: Align two texts given as sequences of tokenized sentences.

    Args:
        text_a: Sentences of the first text; each a token sequence or an
            object exposing ``words()``
        text_b: Sentences of the second text
        config: Alignment options; defaults to ``AlignmentConfig()``

    Returns:
        Output with beads partitioning both texts, the committed anchors and
        per-pass coverage
    """
    return AlignmentPipeline(text_a, text_b, config).run()
