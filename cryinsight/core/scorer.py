"""
Profile scorer for CryInsight.

Compares a FeatureVector against every reference profile, turns the raw
scores into a probability distribution and picks the primary category.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from cryinsight.core.models import (
    CategoryProfile,
    CryCategory,
    FeatureVector,
    PatternFlag,
    ScoreMap,
    argmax_category,
    empty_score_map,
)
from cryinsight.core.profiles import ProfileTable, default_profile_table
from cryinsight.utils.errors import ConfigurationError

# Sub-score values
MATCH_SCORE: float = 1.0
PARTIAL_SCORE: float = 0.5

# Feature thresholds used by the pattern rules
REGULARITY_THRESHOLD: float = 0.7
LOUD_RMS_THRESHOLD: float = 0.3
QUIET_RMS_THRESHOLD: float = 0.2

DEFAULT_SHARPNESS: float = 16.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    """Relative weight of each sub-score; must sum to 1.0."""

    pitch: float = 0.25
    rhythm: float = 0.25
    intensity: float = 0.20
    spectral: float = 0.30

    def __post_init__(self) -> None:
        values = (self.pitch, self.rhythm, self.intensity, self.spectral)
        if any(v < 0 for v in values):
            raise ConfigurationError(
                f"Scoring weights must be non-negative, got {values}",
                config_key="scorer.weights"
            )
        if abs(math.fsum(values) - 1.0) > 1e-9:
            raise ConfigurationError(
                f"Scoring weights must sum to 1.0, got {math.fsum(values):.4f}",
                config_key="scorer.weights"
            )

    @classmethod
    def from_dict(cls, weights: Mapping[str, float]) -> "ScoringWeights":
        unknown = set(weights) - {"pitch", "rhythm", "intensity", "spectral"}
        if unknown:
            raise ConfigurationError(
                f"Unknown scoring weights: {sorted(unknown)}",
                config_key="scorer.weights"
            )
        return cls(**{k: float(v) for k, v in weights.items()})


@dataclass(frozen=True)
class SubScores:
    """Per-profile breakdown of a raw score."""

    pitch: float
    rhythm: float
    intensity: float
    spectral: float

    def weighted(self, weights: ScoringWeights) -> float:
        return (
            weights.pitch * self.pitch +
            weights.rhythm * self.rhythm +
            weights.intensity * self.intensity +
            weights.spectral * self.spectral
        )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity over the overlapping prefix of two vectors.

    Returns 0.0 when the overlap is empty, either prefix has zero norm,
    or the result is not finite.
    """
    length = min(len(a), len(b))
    if length == 0:
        return 0.0

    x = np.asarray(a[:length], dtype=np.float64)
    y = np.asarray(b[:length], dtype=np.float64)
    norm = float(np.linalg.norm(x) * np.linalg.norm(y))
    if norm == 0.0 or not math.isfinite(norm):
        return 0.0

    similarity = float(np.dot(x, y) / norm)
    if not math.isfinite(similarity):
        return 0.0
    return similarity


class CryScorer:
    """
    Heuristic similarity scorer.

    Holds only immutable configuration: the profile table and weights are
    injected at construction and shared safely across analyses.
    """

    def __init__(
        self,
        profiles: Optional[ProfileTable] = None,
        weights: Optional[ScoringWeights] = None,
        sharpness: float = DEFAULT_SHARPNESS
    ):
        """
        Initialize scorer.

        Args:
            profiles: Reference profile table (process default if None)
            weights: Sub-score weights (0.25/0.25/0.20/0.30 if None)
            sharpness: Exponent applied to raw scores before normalizing;
                       1.0 gives the plain score/sum ratio
        """
        if sharpness <= 0:
            raise ConfigurationError(
                f"Sharpness must be positive, got {sharpness}",
                config_key="scorer.sharpness"
            )
        self.profiles = profiles if profiles is not None else default_profile_table()
        self.weights = weights or ScoringWeights()
        self.sharpness = float(sharpness)

    def sub_scores(self, features: FeatureVector, profile: CategoryProfile) -> SubScores:
        """Evaluate the four sub-scores of one profile."""
        rhythm = features.rhythm
        intensity = features.intensity

        pitch_score = MATCH_SCORE if profile.pitch_in_range(features.pitch_hz) else PARTIAL_SCORE

        rhythm_match = (
            (profile.has(PatternFlag.RHYTHMIC) and rhythm.regularity_score > REGULARITY_THRESHOLD) or
            (profile.has(PatternFlag.BUILDUP) and intensity.growth_trend > 0)
        )

        intensity_match = (
            (profile.has(PatternFlag.INTENSITY_GROWTH) and intensity.growth_trend > 0) or
            (profile.has(PatternFlag.SUDDEN_INTENSITY) and intensity.rms > LOUD_RMS_THRESHOLD) or
            (profile.has(PatternFlag.LOW_ENERGY) and intensity.rms < QUIET_RMS_THRESHOLD)
        )

        return SubScores(
            pitch=pitch_score,
            rhythm=MATCH_SCORE if rhythm_match else PARTIAL_SCORE,
            intensity=MATCH_SCORE if intensity_match else PARTIAL_SCORE,
            spectral=cosine_similarity(
                features.spectral_shape, profile.reference_spectral_shape
            ),
        )

    def score(self, features: FeatureVector) -> ScoreMap:
        """Raw weighted score of every category."""
        scores = empty_score_map()
        for category, profile in self.profiles.items():
            scores[category] = self.sub_scores(features, profile).weighted(self.weights)
        return scores

    def normalize(self, scores: Mapping[CryCategory, float]) -> Dict[CryCategory, float]:
        """
        Turn raw scores into a probability distribution.

        Falls back to a uniform distribution when nothing scored above zero.
        """
        categories = list(CryCategory)
        raw = np.array(
            [max(0.0, float(scores.get(c, 0.0))) for c in categories],
            dtype=np.float64
        )
        if not np.all(np.isfinite(raw)):
            raw = np.where(np.isfinite(raw), raw, 0.0)

        peak = float(raw.max())
        if peak <= 0.0:
            logger.debug("All raw scores are zero, using uniform distribution")
            return {c: 1.0 / len(categories) for c in categories}

        # Divide by the peak first so large exponents cannot overflow
        adjusted = (raw / peak) ** self.sharpness
        total = math.fsum(adjusted)
        if total <= 0.0 or not math.isfinite(total):
            return {c: 1.0 / len(categories) for c in categories}

        return {c: float(v / total) for c, v in zip(categories, adjusted)}

    @staticmethod
    def select_primary(distribution: Mapping[CryCategory, float]) -> CryCategory:
        """Argmax of the distribution; ties go to the first-declared category."""
        return argmax_category(distribution)

    def classify(
        self, features: FeatureVector
    ) -> Tuple[ScoreMap, Dict[CryCategory, float], CryCategory]:
        """
        Score, normalize and pick the primary category.

        Returns:
            Tuple: (raw scores, distribution, primary category)
        """
        scores = self.score(features)
        distribution = self.normalize(scores)
        primary = self.select_primary(distribution)

        logger.debug(
            "Scored profiles: " +
            ", ".join(f"{c.value}={s:.3f}" for c, s in scores.items())
        )
        return scores, distribution, primary


def create_scorer(
    config: Optional[Dict[str, Any]] = None,
    profiles: Optional[ProfileTable] = None
) -> CryScorer:
    """
    Factory function to create CryScorer with configuration.

    Args:
        config: Optional ``scorer`` configuration section
        profiles: Optional profile table to inject

    Returns:
        CryScorer: Configured scorer
    """
    if config is None:
        config = {}

    weights_config = config.get('weights')
    weights = ScoringWeights.from_dict(weights_config) if weights_config else None

    return CryScorer(
        profiles=profiles,
        weights=weights,
        sharpness=config.get('sharpness', DEFAULT_SHARPNESS)
    )
