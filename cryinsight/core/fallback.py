"""
Fallback estimator for CryInsight.

Produces a plausible distribution when the heuristic pipeline cannot
decode or measure a recording. The only signal used is the coarse
recording duration; everything else is a seeded random draw.
"""

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from cryinsight.core.analyzer_base import BaseAnalyzer
from cryinsight.core.decoder import SignalDecoder
from cryinsight.core.explanation import ExplanationGenerator
from cryinsight.core.models import AnalysisResult, CryCategory, PipelineStage

SHORT_CLIP_SECONDS: float = 5.0
LONG_CLIP_SECONDS: float = 10.0

CONFIDENCE_RANGE: Tuple[float, float] = (0.5, 0.8)
MIN_SECONDARY: int = 2
MAX_SECONDARY: int = 4

# Lower bound on secondary weights keeps every secondary share below the primary
SECONDARY_WEIGHT_RANGE: Tuple[float, float] = (0.1, 1.0)

# Weight vectors in CryCategory declaration order:
# hungry, belly_pain, burping, discomfort, cold_hot, laugh,
# lonely, noise, scared, silence, tired
BUCKET_WEIGHTS: Dict[str, Tuple[float, ...]] = {
    'short': (0.10, 0.16, 0.18, 0.10, 0.04, 0.08, 0.04, 0.08, 0.14, 0.04, 0.04),
    'medium': (0.22, 0.12, 0.08, 0.14, 0.08, 0.05, 0.08, 0.05, 0.06, 0.02, 0.10),
    'long': (0.20, 0.08, 0.04, 0.12, 0.12, 0.03, 0.14, 0.04, 0.03, 0.02, 0.18),
}


def duration_bucket(duration: float) -> str:
    """Bucket name for a duration: <5 s short, 5-10 s medium, >10 s long."""
    if duration < SHORT_CLIP_SECONDS:
        return 'short'
    if duration <= LONG_CLIP_SECONDS:
        return 'medium'
    return 'long'


def bucket_weights(duration: float) -> np.ndarray:
    """Normalized category weights for the bucket ``duration`` falls in."""
    weights = np.asarray(BUCKET_WEIGHTS[duration_bucket(duration)], dtype=np.float64)
    return weights / weights.sum()


class FallbackEstimator(BaseAnalyzer):
    """
    Duration-weighted random estimator.

    Nondeterministic unless a seeded generator is injected. Shares the
    generator across calls, so concurrent callers wanting reproducible
    draws should each hold their own estimator.
    """

    def __init__(
        self,
        decoder: Optional[SignalDecoder] = None,
        explainer: Optional[ExplanationGenerator] = None,
        rng: Optional[np.random.Generator] = None
    ):
        super().__init__("fallback", "1.0.0")
        self.decoder = decoder or SignalDecoder()
        self.explainer = explainer or ExplanationGenerator()
        self.rng = rng if rng is not None else np.random.default_rng()

    def _analyze_impl(self, data: bytes, media_type: Optional[str]) -> AnalysisResult:
        return self.estimate(data)

    def estimate(self, data: bytes) -> AnalysisResult:
        """
        Estimate a result from the raw buffer.

        Never raises for unreadable audio: the duration probe falls back
        to the default duration.
        """
        start_time = time.perf_counter()
        self.logger.debug(f"Stage {PipelineStage.FALLBACK_SCORING.value}")

        duration = self.probe_duration(data)
        categories = CryCategory.ordered()

        primary = categories[int(self.rng.choice(len(categories), p=bucket_weights(duration)))]
        confidence = float(self.rng.uniform(*CONFIDENCE_RANGE))
        distribution = self._spread(primary, confidence, categories)
        confidence = distribution[primary]

        explanation = self.explainer.explain_without_features(
            primary, confidence, duration, rng=self.rng
        )

        self.logger.debug(
            f"Estimated {primary.value} ({confidence:.2f}) "
            f"from {duration_bucket(duration)} clip of {duration:.1f}s"
        )
        return AnalysisResult(
            primary_category=primary,
            confidence=confidence,
            distribution=distribution,
            explanation=explanation,
            duration=duration,
            used_fallback=True,
            processing_time=time.perf_counter() - start_time
        )

    def probe_duration(self, data: bytes) -> float:
        if not data:
            return self.decoder.default_duration
        return self.decoder.probe_duration(data)

    def _spread(
        self,
        primary: CryCategory,
        confidence: float,
        categories: Sequence[CryCategory]
    ) -> Dict[CryCategory, float]:
        """Split the remaining mass over 2-4 randomly chosen secondary categories."""
        others: List[CryCategory] = [c for c in categories if c is not primary]
        count = int(self.rng.integers(MIN_SECONDARY, MAX_SECONDARY + 1))
        chosen = self.rng.choice(len(others), size=count, replace=False)

        weights = self.rng.uniform(*SECONDARY_WEIGHT_RANGE, size=count)
        shares = (1.0 - confidence) * weights / weights.sum()

        distribution = {category: 0.0 for category in categories}
        distribution[primary] = confidence
        for index, share in zip(chosen, shares):
            distribution[others[int(index)]] = float(share)
        return distribution


def create_fallback_estimator(
    config: Optional[Dict[str, Any]] = None,
    decoder: Optional[SignalDecoder] = None,
    explainer: Optional[ExplanationGenerator] = None
) -> FallbackEstimator:
    """
    Factory function to create FallbackEstimator with configuration.

    Args:
        config: Optional ``fallback`` configuration section
        decoder: Decoder used for the duration probe
        explainer: Explanation generator

    Returns:
        FallbackEstimator: Configured estimator
    """
    if config is None:
        config = {}

    return FallbackEstimator(
        decoder=decoder,
        explainer=explainer,
        rng=np.random.default_rng(config.get('seed'))
    )
