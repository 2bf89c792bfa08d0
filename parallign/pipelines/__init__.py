"""Pipeline modules for orchestrating the alignment workflow."""

from .alignment_pipeline import AlignmentPipeline, PassReport, align

__all__ = [
    "AlignmentPipeline",
    "PassReport",
    "align",
]
