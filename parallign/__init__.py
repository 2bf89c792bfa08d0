"""Dictionary-free sentence alignment of parallel texts.

Example:

    from parallign import AlignmentConfig, align

    output = align(english_sentences, german_sentences, AlignmentConfig(max_iterations=10))
    for sentence in output.a_alignments(0):
        ...
"""

from .config import AlignmentConfig, ConfigurationError
from .output import Output, SentenceGroup
from .pipelines import AlignmentPipeline, align
from .util.types import Anchor, Bead, Envelope, Sentence

__all__ = [
    "AlignmentConfig",
    "AlignmentPipeline",
    "Anchor",
    "Bead",
    "ConfigurationError",
    "Envelope",
    "Output",
    "Sentence",
    "SentenceGroup",
    "align",
]

__version__ = "0.1.0"
