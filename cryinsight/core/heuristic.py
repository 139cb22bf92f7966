"""
Heuristic cry analyzer.

Runs the deterministic pipeline:
decode -> extract features -> score against profiles -> explain.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, Optional

from cryinsight.core.analyzer_base import BaseAnalyzer
from cryinsight.core.decoder import SignalDecoder, create_signal_decoder
from cryinsight.core.explanation import ExplanationGenerator
from cryinsight.core.features import FeatureExtractor, create_feature_extractor
from cryinsight.core.models import AnalysisResult, AudioSample, PipelineStage
from cryinsight.core.profiles import default_profile_table
from cryinsight.core.scorer import CryScorer, create_scorer
from cryinsight.utils.errors import DecodeError

DEFAULT_DECODE_TIMEOUT: float = 5.0


class HeuristicCryAnalyzer(BaseAnalyzer):
    """
    Feature-similarity cry classifier.

    Components are injected and hold no per-analysis state; each call
    builds its own AudioSample and FeatureVector.
    """

    def __init__(
        self,
        decoder: Optional[SignalDecoder] = None,
        extractor: Optional[FeatureExtractor] = None,
        scorer: Optional[CryScorer] = None,
        explainer: Optional[ExplanationGenerator] = None,
        decode_timeout: Optional[float] = DEFAULT_DECODE_TIMEOUT
    ):
        """
        Initialize the pipeline.

        Args:
            decoder: Signal decoder
            extractor: Feature extractor
            scorer: Profile scorer
            explainer: Explanation generator
            decode_timeout: Seconds before a decode is abandoned (None disables)
        """
        super().__init__("heuristic", "1.0.0")
        self.decoder = decoder or SignalDecoder()
        self.extractor = extractor or FeatureExtractor()
        self.scorer = scorer or CryScorer()
        self.explainer = explainer or ExplanationGenerator()
        self.decode_timeout = decode_timeout

    def _analyze_impl(self, data: bytes, media_type: Optional[str]) -> AnalysisResult:
        start_time = time.perf_counter()
        stage = PipelineStage.IDLE

        stage = self._advance(stage, PipelineStage.DECODING)
        audio = self.decode(data, media_type)

        stage = self._advance(stage, PipelineStage.EXTRACTING)
        features = self.extractor.extract(audio)

        stage = self._advance(stage, PipelineStage.SCORING)
        _, distribution, primary = self.scorer.classify(features)
        confidence = distribution[primary]

        stage = self._advance(stage, PipelineStage.EXPLAINING)
        explanation = self.explainer.explain(primary, confidence, features, audio.duration)

        self._advance(stage, PipelineStage.DONE)
        return AnalysisResult(
            primary_category=primary,
            confidence=confidence,
            distribution=distribution,
            explanation=explanation,
            duration=audio.duration,
            used_fallback=False,
            processing_time=time.perf_counter() - start_time
        )

    def decode(self, data: bytes, media_type: Optional[str] = None) -> AudioSample:
        """
        Decode with the configured timeout.

        Raises:
            DecodeError: On decode failure or when the timeout expires
        """
        if self.decode_timeout is None:
            return self.decoder.decode(data, media_type)

        # One worker per call: a hung decode keeps only its own thread busy
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cry-decode")
        try:
            future = executor.submit(self.decoder.decode, data, media_type)
            return future.result(timeout=self.decode_timeout)
        except FutureTimeoutError as e:
            raise DecodeError(
                f"Decoding timed out after {self.decode_timeout:.1f}s",
                media_type=media_type
            ) from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _advance(self, current: PipelineStage, target: PipelineStage) -> PipelineStage:
        self.logger.debug(f"Stage {current.value} -> {target.value}")
        return target


def create_heuristic_analyzer(config: Dict[str, Any]) -> HeuristicCryAnalyzer:
    """
    Factory function to build the heuristic pipeline from configuration.

    Args:
        config: Full configuration dictionary

    Returns:
        HeuristicCryAnalyzer: Configured analyzer
    """
    decoder_config = config.get('decoder', {})
    features_config = config.get('features', {})

    extractor = create_feature_extractor(features_config)
    profiles = default_profile_table(
        extractor.n_bands,
        extractor.n_coefficients,
        decoder_config.get('target_sample_rate', 22050),
        extractor.n_fft
    )

    return HeuristicCryAnalyzer(
        decoder=create_signal_decoder(decoder_config),
        extractor=extractor,
        scorer=create_scorer(config.get('scorer', {}), profiles=profiles),
        explainer=ExplanationGenerator(),
        decode_timeout=decoder_config.get('decode_timeout', DEFAULT_DECODE_TIMEOUT)
    )
