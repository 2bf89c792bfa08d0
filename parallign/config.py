"""Configuration for the alignment engine.

All options default to the standard behaviour of the algorithm. A few
process-level settings can be overridden via environment variables:
- PARALLIGN_LOG_LEVEL: log level used by the CLI (defaults to INFO)
- PARALLIGN_MAX_ITERATIONS: default iteration cap (defaults to 20)
"""

from __future__ import annotations

import math
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Callable, Dict, Final, Hashable, Mapping, Optional


LOG_LEVEL: Final[str] = os.getenv("PARALLIGN_LOG_LEVEL", "INFO").upper()
DEFAULT_MAX_ITERATIONS: Final[int] = int(os.getenv("PARALLIGN_MAX_ITERATIONS", "20"))

# Bead types searched by the dynamic program, as (sentences of A, sentences of B)
BEAD_TYPES: Final[Dict[str, tuple]] = {
    "1-1": (1, 1),
    "1-0": (1, 0),
    "0-1": (0, 1),
    "2-1": (2, 1),
    "1-2": (1, 2),
    "2-2": (2, 2),
}
REQUIRED_BEAD_TYPES: Final[tuple] = ("1-1", "1-0", "0-1")

# Gale & Church (1993) bead priors; insertion/deletion and 2-1/1-2 share their mass
BEAD_PRIORS: Final[Dict[str, float]] = {
    "1-1": 0.89,
    "1-0": 0.0099 / 2,
    "0-1": 0.0099 / 2,
    "2-1": 0.089 / 2,
    "1-2": 0.089 / 2,
    "2-2": 0.011,
}


def default_bead_weights() -> Dict[str, float]:
    """Return bead costs as negative log priors."""
    return {kind: -math.log(p) for kind, p in BEAD_PRIORS.items()}


class ConfigurationError(ValueError):
    """Raised when an AlignmentConfig is constructed with invalid options."""


def _to_number(name: str, value: Any, kind: str) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        if kind == "int":
            number = float(value)
            if not number.is_integer():
                raise ValueError
            return int(number)
        return float(value)
    except (ValueError, OverflowError):
        raise ConfigurationError(f"{name} must be {'an integer' if kind == 'int' else 'a number'}, got {value!r}") from None


def _coerce(name: str, value: Any, annotation: str) -> Any:
    """Convert a plain (JSON) value to the type of config field ``name``."""
    # Field annotations are strings under postponed evaluation
    if annotation.startswith("Optional["):
        if value is None:
            return None
        annotation = annotation[len("Optional["):-1]
    if annotation in ("int", "float"):
        return _to_number(name, value, annotation)
    if annotation.startswith("Dict["):
        if not isinstance(value, Mapping):
            raise ConfigurationError(f"{name} must be a mapping, got {value!r}")
        return {str(k): _to_number(f"{name}[{k}]", v, "float") for k, v in value.items()}
    return value


@dataclass(frozen=True)
class AlignmentConfig:
    """Configuration for anchoring passes and bead alignment."""
    # Candidate word filtering
    min_word_frequency: int = 2
    max_word_frequency: int = 100
    max_word_share: float = 0.5
    frequency_taper: int = 0
    frequency_minimum: int = 1

    # Significance of diagonal co-occurrence (Dice score of banded matches)
    significance_threshold: float = 0.8
    significance_taper: float = 0.05
    significance_minimum: float = 0.6
    band_scale: float = 1.0

    # Anchoring and recursion
    min_anchor_support: int = 1
    min_envelope_size: int = 2
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    min_coverage: float = 0.95

    # Bead alignment
    bead_weights: Dict[str, float] = field(default_factory=default_bead_weights)
    length_weight: float = 1.0
    anchor_bonus: float = 1.0
    expected_ratio: Optional[float] = None
    band_margin_pct: Optional[float] = 0.10

    # Known translations, given top priority when scoring
    association_mapper: Optional[Callable[[Hashable, Hashable], bool]] = None

    def __post_init__(self) -> None:
        try:
            self._validate()
        except TypeError as e:
            raise ConfigurationError(f"Invalid option type: {e}") from e

    def _validate(self) -> None:
        if self.min_word_frequency < 1:
            raise ConfigurationError("min_word_frequency must be at least 1")
        if self.min_word_frequency > self.max_word_frequency:
            raise ConfigurationError(
                f"Frequency floor ({self.min_word_frequency}) exceeds ceiling ({self.max_word_frequency})"
            )
        if self.frequency_taper < 0:
            raise ConfigurationError("frequency_taper must be non-negative")
        if not 1 <= self.frequency_minimum <= self.min_word_frequency:
            raise ConfigurationError("frequency_minimum must lie between 1 and min_word_frequency")
        if not 0.0 < self.max_word_share <= 1.0:
            raise ConfigurationError("max_word_share must lie in (0, 1]")

        for name in ("significance_threshold", "significance_minimum"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must lie in [0, 1], got {value}")
        if self.significance_minimum > self.significance_threshold:
            raise ConfigurationError("significance_minimum exceeds significance_threshold")
        if self.significance_taper < 0.0:
            raise ConfigurationError("significance_taper must be non-negative")
        if self.band_scale <= 0.0:
            raise ConfigurationError("band_scale must be positive")

        if self.min_anchor_support < 1:
            raise ConfigurationError("min_anchor_support must be at least 1")
        if self.min_envelope_size < 1:
            raise ConfigurationError("min_envelope_size must be at least 1")
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be positive, got {self.max_iterations}")
        if not 0.0 <= self.min_coverage <= 1.0:
            raise ConfigurationError("min_coverage must lie in [0, 1]")

        unknown = set(self.bead_weights) - set(BEAD_TYPES)
        if unknown:
            raise ConfigurationError(f"Unknown bead types: {sorted(unknown)}")
        missing = [kind for kind in REQUIRED_BEAD_TYPES if kind not in self.bead_weights]
        if missing:
            raise ConfigurationError(f"Bead weights must include {missing}")
        for kind, weight in self.bead_weights.items():
            if not math.isfinite(weight) or weight < 0.0:
                raise ConfigurationError(f"Bead weight for {kind} must be a finite non-negative number")
        if self.length_weight < 0.0:
            raise ConfigurationError("length_weight must be non-negative")
        if self.anchor_bonus < 0.0:
            raise ConfigurationError("anchor_bonus must be non-negative")
        if self.expected_ratio is not None and not self.expected_ratio > 0.0:
            raise ConfigurationError("expected_ratio must be positive")
        if self.band_margin_pct is not None and self.band_margin_pct < 0.0:
            raise ConfigurationError("band_margin_pct must be non-negative or None")
        if self.association_mapper is not None and not callable(self.association_mapper):
            raise ConfigurationError("association_mapper must be callable")

    # ------------------------------------------------------------------
    # Per-pass thresholds
    # ------------------------------------------------------------------

    def significance_at(self, iteration: int) -> float:
        """Significance threshold in effect during pass ``iteration``."""
        tapered = self.significance_threshold - iteration * self.significance_taper
        return max(self.significance_minimum, tapered)

    def frequency_floor_at(self, iteration: int) -> int:
        """Frequency floor in effect during pass ``iteration``."""
        tapered = self.min_word_frequency - iteration * self.frequency_taper
        return max(self.frequency_minimum, tapered)

    def thresholds_settled(self, iteration: int) -> bool:
        """True once neither threshold can be lowered further after ``iteration``."""
        return (
            self.significance_at(iteration + 1) == self.significance_at(iteration)
            and self.frequency_floor_at(iteration + 1) == self.frequency_floor_at(iteration)
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AlignmentConfig":
        """Build a config from a plain mapping such as a parsed JSON file."""
        known = {f.name for f in fields(cls)} - {"association_mapper"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        types = {f.name: f.type for f in fields(cls)}
        values = {name: _coerce(name, value, types[name]) for name, value in data.items()}
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "AlignmentConfig":
        """Return a copy with the given non-None options replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        """Serialisable view used for run metadata."""
        data = asdict(self)
        data.pop("association_mapper", None)
        data["uses_association_mapper"] = self.association_mapper is not None
        return data
