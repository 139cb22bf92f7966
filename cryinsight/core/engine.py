"""
Analysis engine for CryInsight.

Public entry point: hands audio to the multi-strategy analyzer and always
returns an AnalysisResult for any byte buffer.
"""

import asyncio
import dataclasses
import logging
import mimetypes
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np

from cryinsight.core.decoder import create_signal_decoder
from cryinsight.core.explanation import ExplanationGenerator
from cryinsight.core.fallback import FallbackEstimator, create_fallback_estimator
from cryinsight.core.heuristic import HeuristicCryAnalyzer, create_heuristic_analyzer
from cryinsight.core.models import AnalysisResult, PipelineStage
from cryinsight.core.multi_strategy import MultiStrategyAnalyzer
from cryinsight.utils.logging import create_logger_with_context


class CryAnalysisEngine:
    """
    Main analysis engine - orchestrates the pipeline and its fallback.

    Design:
    - Dependency Injection: analyzers injected (testable)
    - Independent invocations: no state shared between analyses
    - Error Handling: bad audio yields a fallback result, never an error
    """

    def __init__(
        self,
        heuristic: HeuristicCryAnalyzer,
        fallback: FallbackEstimator,
        max_workers: int = 4
    ):
        """
        Initialize analysis engine.

        Args:
            heuristic: Deterministic pipeline analyzer
            fallback: Estimator used when the pipeline fails
            max_workers: Max parallel analyses for batch and async calls
        """
        self.heuristic = heuristic
        self.fallback = fallback
        self.analyzer = MultiStrategyAnalyzer("cry", heuristic, fallback)
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.logger = logging.getLogger('engine')

    def analyze(self, data: bytes, media_type: Optional[str] = None) -> AnalysisResult:
        """
        Analyze an audio buffer completely.

        Args:
            data: Raw audio bytes
            media_type: Declared MIME type or extension, sniffed if None

        Returns:
            AnalysisResult: Heuristic result, or a fallback estimate
        """
        start_time = time.perf_counter()
        log = create_logger_with_context(
            'engine', {'audio_bytes': len(data), 'media_type': media_type}
        )

        log.info(f"Analyzing {len(data)} bytes ({media_type or 'unknown type'})")
        result, used_fallback = self.analyzer.analyze(data, media_type)

        processing_time = time.perf_counter() - start_time
        result = dataclasses.replace(
            result,
            used_fallback=used_fallback,
            processing_time=processing_time
        )

        log.debug(f"Stage {PipelineStage.DONE.value}")
        log.info(
            f"Analysis complete in {processing_time:.3f}s: "
            f"{result.primary_category.value} ({result.confidence:.0%})"
            + (" [fallback]" if used_fallback else "")
        )
        return result

    def analyze_file(self, file_path: Union[str, Path]) -> AnalysisResult:
        """
        Analyze an audio file.

        Args:
            file_path: Path to audio file

        Returns:
            AnalysisResult: Complete analysis result

        Raises:
            OSError: If the file cannot be read
        """
        file_path = Path(file_path)
        data = file_path.read_bytes()
        media_type, _ = mimetypes.guess_type(file_path.name)
        return self.analyze(data, media_type or file_path.suffix or None)

    def analyze_batch(
        self, file_paths: List[Union[str, Path]]
    ) -> List[Optional[AnalysisResult]]:
        """
        Analyze multiple files.

        Args:
            file_paths: List of file paths

        Returns:
            List[AnalysisResult]: Results in same order as input, None
            for files that could not be read
        """
        paths = [Path(p) for p in file_paths]
        self.logger.info(f"Analyzing batch of {len(paths)} files")

        # Submit all tasks
        futures = {
            self.executor.submit(self.analyze_file, path): index
            for index, path in enumerate(paths)
        }

        # Collect results in order
        results: List[Optional[AnalysisResult]] = [None] * len(paths)
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                self.logger.error(f"Failed to analyze {paths[index]}: {e}")

        return results

    async def analyze_async(
        self, data: bytes, media_type: Optional[str] = None
    ) -> AnalysisResult:
        """
        Run the whole analysis as one awaitable operation.

        There are no partial results; callers wanting cancellation simply
        discard the result when it arrives.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.analyze, data, media_type)

    def shutdown(self) -> None:
        """Shutdown thread pools gracefully."""
        self.logger.info("Shutting down analysis engine")
        self.executor.shutdown(wait=True)

    def __enter__(self) -> "CryAnalysisEngine":
        """Context manager support."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context exit."""
        self.shutdown()


def create_analysis_engine(
    config: Optional[Dict[str, Any]] = None,
    rng: Optional[np.random.Generator] = None
) -> CryAnalysisEngine:
    """
    Factory function to create fully configured analysis engine.

    Args:
        config: Full configuration dictionary (defaults if None)
        rng: Random generator for the fallback estimator; seeded from
             ``fallback.seed`` if None

    Returns:
        CryAnalysisEngine: Ready-to-use engine
    """
    if config is None:
        from cryinsight.utils.config import get_default_config
        config = get_default_config()

    explainer = ExplanationGenerator()
    heuristic = create_heuristic_analyzer(config)

    fallback = create_fallback_estimator(
        config.get('fallback', {}),
        decoder=create_signal_decoder(config.get('decoder', {})),
        explainer=explainer
    )
    if rng is not None:
        fallback.rng = rng

    return CryAnalysisEngine(
        heuristic=heuristic,
        fallback=fallback,
        max_workers=config.get('performance', {}).get('max_workers', 4)
    )
