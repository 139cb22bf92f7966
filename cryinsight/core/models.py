"""
Core data models for CryInsight.

Immutable domain models representing decoded audio, extracted features,
reference profiles and analysis results.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

import numpy as np

# Tolerance for the distribution-sums-to-one invariant
DISTRIBUTION_TOLERANCE: float = 1e-6


class CryCategory(str, Enum):
    """
    Closed set of cry categories.

    Declaration order matters: it breaks ties when two categories
    share the highest probability.
    """

    HUNGRY = "hungry"
    BELLY_PAIN = "belly_pain"
    BURPING = "burping"
    DISCOMFORT = "discomfort"
    COLD_HOT = "cold_hot"
    LAUGH = "laugh"
    LONELY = "lonely"
    NOISE = "noise"
    SCARED = "scared"
    SILENCE = "silence"
    TIRED = "tired"

    @classmethod
    def ordered(cls) -> List["CryCategory"]:
        """All categories in declaration order."""
        return list(cls)


class PatternFlag(str, Enum):
    """Named boolean traits a reference profile can carry."""

    RHYTHMIC = "rhythmic"
    SUDDEN_ONSET = "sudden_onset"
    SUSTAINED = "sustained"
    LOW_ENERGY = "low_energy"
    BUILDUP = "buildup"
    AGITATED = "agitated"
    INTENSITY_GROWTH = "intensity_growth"
    SUDDEN_INTENSITY = "sudden_intensity"


class PipelineStage(str, Enum):
    """States one analysis passes through."""

    IDLE = "idle"
    DECODING = "decoding"
    EXTRACTING = "extracting"
    SCORING = "scoring"
    EXPLAINING = "explaining"
    FALLBACK_SCORING = "fallback_scoring"
    DONE = "done"


@dataclass(frozen=True)
class AudioSample:
    """
    Immutable decoded recording.

    Owned by the invocation that decoded it and discarded once
    features are extracted.
    """

    samples: np.ndarray  # mono float32, read-only
    sample_rate: int
    duration: float  # seconds, from container metadata
    media_type: Optional[str] = None
    source_hash: Optional[str] = None  # SHA-256 of the submitted bytes

    def __post_init__(self) -> None:
        samples = np.ascontiguousarray(self.samples, dtype=np.float32)
        if samples.ndim != 1:
            raise ValueError(f"AudioSample expects mono samples, got shape {samples.shape}")
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        samples.setflags(write=False)
        object.__setattr__(self, 'samples', samples)

    @property
    def sample_count(self) -> int:
        """Number of decoded samples."""
        return int(self.samples.shape[0])

    @property
    def signal_duration(self) -> float:
        """Duration implied by the decoded samples, in seconds."""
        return self.sample_count / self.sample_rate


@dataclass(frozen=True)
class RhythmStats:
    """Pulse statistics of the short-term energy envelope."""

    pulse_count: int = 0
    regularity_score: float = 0.0  # [0.0, 1.0]
    tempo_bpm: float = 0.0

    def __post_init__(self) -> None:
        validate_unit_interval(self.regularity_score, "regularity_score")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pulse_count': self.pulse_count,
            'regularity_score': self.regularity_score,
            'tempo_bpm': self.tempo_bpm,
        }


@dataclass(frozen=True)
class IntensityStats:
    """Loudness statistics of the waveform."""

    rms: float = 0.0
    dynamic_range: float = 0.0
    growth_trend: float = 0.0  # > 0 means the clip gets louder

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rms': self.rms,
            'dynamic_range': self.dynamic_range,
            'growth_trend': self.growth_trend,
        }


@dataclass(frozen=True)
class FeatureVector:
    """
    Fixed-shape feature vector extracted from one AudioSample.

    Sequences are stored as tuples so two extractions of the same
    sample compare equal bit-for-bit.
    """

    pitch_hz: float
    energy_bands: Tuple[float, ...]
    rhythm: RhythmStats
    intensity: IntensityStats
    spectral_shape: Tuple[float, ...]

    @classmethod
    def empty(cls, n_bands: int, n_coefficients: int) -> "FeatureVector":
        """Zeroed vector used for silent or empty recordings."""
        return cls(
            pitch_hz=0.0,
            energy_bands=(0.0,) * n_bands,
            rhythm=RhythmStats(),
            intensity=IntensityStats(),
            spectral_shape=(0.0,) * n_coefficients,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pitch_hz': self.pitch_hz,
            'energy_bands': list(self.energy_bands),
            'rhythm': self.rhythm.to_dict(),
            'intensity': self.intensity.to_dict(),
            'spectral_shape': list(self.spectral_shape),
        }


@dataclass(frozen=True)
class CategoryProfile:
    """Reference description of one cry category."""

    label: CryCategory
    pitch_range: Tuple[float, float]  # (low_hz, high_hz), inclusive
    flags: FrozenSet[PatternFlag]
    reference_spectral_shape: Tuple[float, ...]

    def __post_init__(self) -> None:
        low, high = self.pitch_range
        if low > high:
            raise ValueError(
                f"Invalid pitch range for {self.label.value}: {self.pitch_range}"
            )
        object.__setattr__(self, 'flags', frozenset(self.flags))
        object.__setattr__(
            self,
            'reference_spectral_shape',
            tuple(float(v) for v in self.reference_spectral_shape)
        )

    def has(self, flag: PatternFlag) -> bool:
        """Return True if the profile carries ``flag``."""
        return flag in self.flags

    def pitch_in_range(self, pitch_hz: float) -> bool:
        low, high = self.pitch_range
        return low <= pitch_hz <= high


# Raw per-category scores; every category is present
ScoreMap = Dict[CryCategory, float]


def empty_score_map() -> ScoreMap:
    """ScoreMap with every category set to 0.0."""
    return {category: 0.0 for category in CryCategory}


@dataclass(frozen=True)
class AnalysisResult:
    """Terminal result of one cry analysis."""

    primary_category: CryCategory
    confidence: float  # [0.0, 1.0]
    distribution: Mapping[CryCategory, float]
    explanation: str

    # Metadata
    duration: Optional[float] = None
    used_fallback: bool = False
    processing_time: float = 0.0
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self) -> None:
        """Validate the distribution invariants."""
        object.__setattr__(
            self,
            'distribution',
            MappingProxyType({
                category: float(self.distribution[category])
                for category in CryCategory if category in self.distribution
            })
        )
        validate_distribution(self.distribution)
        validate_confidence(self.confidence)

        if self.confidence != self.distribution[self.primary_category]:
            raise ValueError(
                f"Confidence {self.confidence} does not match "
                f"distribution[{self.primary_category.value}] = "
                f"{self.distribution[self.primary_category]}"
            )

        expected = argmax_category(self.distribution)
        if expected is not self.primary_category:
            raise ValueError(
                f"Primary category {self.primary_category.value} is not the "
                f"argmax of the distribution ({expected.value})"
            )

    def sorted_distribution(self) -> List[Tuple[CryCategory, float]]:
        """Distribution sorted by probability, highest first."""
        return sorted(
            self.distribution.items(),
            key=lambda item: item[1],
            reverse=True
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'primary_category': self.primary_category.value,
            'confidence': self.confidence,
            'distribution': {
                category.value: value
                for category, value in self.distribution.items()
            },
            'explanation': self.explanation,
            'duration': self.duration,
            'used_fallback': self.used_fallback,
            'processing_time': self.processing_time,
            'timestamp': self.timestamp.isoformat(),
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def get_summary(self) -> str:
        """Get human-readable one-line summary."""
        parts = [
            f"Cry: {self.primary_category.value}",
            f"Confidence: {self.confidence:.0%}",
        ]
        runner_up = self.sorted_distribution()[1]
        parts.append(f"Next: {runner_up[0].value} ({runner_up[1]:.0%})")
        if self.used_fallback:
            parts.append("Estimated (fallback)")
        return " | ".join(parts)


# Validation helpers

def validate_confidence(confidence: float) -> None:
    """Validate confidence score is in valid range."""
    if not (0.0 <= confidence <= 1.0):
        raise ValueError(f"Confidence must be in [0.0, 1.0], got {confidence}")


def validate_unit_interval(value: float, name: str) -> None:
    """Validate a score lies in [0.0, 1.0]."""
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")


def validate_distribution(distribution: Mapping[CryCategory, float]) -> None:
    """Validate a probability distribution over the full category set."""
    missing = [c.value for c in CryCategory if c not in distribution]
    if missing:
        raise ValueError(f"Distribution is missing categories: {missing}")

    for category, value in distribution.items():
        if not math.isfinite(value) or value < 0.0:
            raise ValueError(
                f"Invalid probability for {category.value}: {value}"
            )

    total = math.fsum(distribution.values())
    if abs(total - 1.0) > DISTRIBUTION_TOLERANCE:
        raise ValueError(f"Distribution must sum to 1.0, got {total}")


def argmax_category(values: Mapping[CryCategory, float]) -> CryCategory:
    """Highest-valued category; ties go to the first-declared category."""
    best = CryCategory.ordered()[0]
    best_value = -math.inf
    for category in CryCategory:
        value = values.get(category, 0.0)
        if value > best_value:
            best = category
            best_value = value
    return best
