"""
Multi-strategy analyzer for CryInsight.

Implements the failure-driven fallback pattern: the heuristic pipeline
answers when it can, and the fallback estimator answers when it can't.
"""

import dataclasses
import logging
from typing import Optional, Tuple

from cryinsight.core.analyzer_base import Analyzer
from cryinsight.core.models import AnalysisResult, PipelineStage


class MultiStrategyAnalyzer:
    """
    Analyzer that tries primary first, falls back to secondary on failure.

    Design:
    - Primary analyzer: deterministic heuristic pipeline
    - Fallback analyzer: duration-weighted estimator
    - Any exception raised by the primary routes the original bytes
      to the fallback

    Returns:
        Tuple[AnalysisResult, bool]: (result, used_fallback)
    """

    def __init__(
        self,
        name: str,
        primary: Analyzer,
        fallback: Analyzer
    ):
        """
        Initialize multi-strategy analyzer.

        Args:
            name: Analyzer name
            primary: Deterministic analyzer
            fallback: Analyzer that always answers
        """
        self._name = name
        self.primary = primary
        self.fallback = fallback
        self.logger = logging.getLogger(f"multi_strategy.{name}")

    @property
    def name(self) -> str:
        """Return analyzer name."""
        return self._name

    @property
    def version(self) -> str:
        """Version includes both primary and fallback versions."""
        return f"{self.primary.version}+{self.fallback.version}"

    def analyze(
        self,
        data: bytes,
        media_type: Optional[str] = None
    ) -> Tuple[AnalysisResult, bool]:
        """
        Analyze with failure-driven fallback.

        Process:
        1. Run primary analyzer
        2. On success, return its result
        3. On any failure, run fallback analyzer on the same bytes
        4. Mark the fallback result

        Args:
            data: Raw audio bytes
            media_type: Declared MIME type or extension

        Returns:
            Tuple[AnalysisResult, bool]: (result, used_fallback)
        """
        # Step 1: Run primary analyzer
        self.logger.debug(f"Running primary analyzer: {self.primary.name}")
        try:
            result = self.primary.analyze(data, media_type)
            return (result, False)

        except Exception as e:
            # Steps 3-4: Route the original bytes to the fallback
            self.logger.warning(
                f"{self.primary.name} failed ({type(e).__name__}: {e}), "
                f"stage {PipelineStage.FALLBACK_SCORING.value} via {self.fallback.name}"
            )

        fallback_result = self.fallback.analyze(data, media_type)
        self.logger.info(
            f"Fallback result: {fallback_result.primary_category.value} "
            f"({fallback_result.confidence:.3f})"
        )

        if not fallback_result.used_fallback:
            fallback_result = dataclasses.replace(fallback_result, used_fallback=True)
        return (fallback_result, True)
