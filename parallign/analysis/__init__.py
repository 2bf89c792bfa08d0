"""Alignment engine components: word index, scoring, anchors, envelopes and beads."""
