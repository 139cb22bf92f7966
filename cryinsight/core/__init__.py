"""
Core module containing data models, the cry analysis pipeline and engine.

Uses lazy imports for modules with heavy dependencies (librosa, soundfile).
"""

# Models are lightweight - import directly
from cryinsight.core.models import (
    AnalysisResult,
    AudioSample,
    CategoryProfile,
    CryCategory,
    FeatureVector,
    IntensityStats,
    PatternFlag,
    PipelineStage,
    RhythmStats,
    validate_confidence,
    validate_distribution,
)

__all__ = [
    # Models (always available)
    "AnalysisResult",
    "AudioSample",
    "CategoryProfile",
    "CryCategory",
    "FeatureVector",
    "IntensityStats",
    "PatternFlag",
    "PipelineStage",
    "RhythmStats",
    "validate_confidence",
    "validate_distribution",
    # Heavy modules (lazy loaded)
    "SignalDecoder",
    "create_signal_decoder",
    "FeatureExtractor",
    "CryScorer",
    "ExplanationGenerator",
    "FallbackEstimator",
    "HeuristicCryAnalyzer",
    "MultiStrategyAnalyzer",
    "CryAnalysisEngine",
    "create_analysis_engine",
    "ResultWriter",
    "TextResultWriter",
    "JSONResultWriter",
    "create_result_writer",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name in ("SignalDecoder", "create_signal_decoder"):
        from cryinsight.core.decoder import SignalDecoder, create_signal_decoder
        return SignalDecoder if name == "SignalDecoder" else create_signal_decoder
    elif name == "FeatureExtractor":
        from cryinsight.core.features import FeatureExtractor
        return FeatureExtractor
    elif name == "CryScorer":
        from cryinsight.core.scorer import CryScorer
        return CryScorer
    elif name == "ExplanationGenerator":
        from cryinsight.core.explanation import ExplanationGenerator
        return ExplanationGenerator
    elif name == "FallbackEstimator":
        from cryinsight.core.fallback import FallbackEstimator
        return FallbackEstimator
    elif name == "HeuristicCryAnalyzer":
        from cryinsight.core.heuristic import HeuristicCryAnalyzer
        return HeuristicCryAnalyzer
    elif name == "MultiStrategyAnalyzer":
        from cryinsight.core.multi_strategy import MultiStrategyAnalyzer
        return MultiStrategyAnalyzer
    elif name in ("CryAnalysisEngine", "create_analysis_engine"):
        from cryinsight.core.engine import CryAnalysisEngine, create_analysis_engine
        return CryAnalysisEngine if name == "CryAnalysisEngine" else create_analysis_engine
    elif name in ("ResultWriter", "TextResultWriter", "JSONResultWriter", "create_result_writer"):
        from cryinsight.core.result_writer import (
            JSONResultWriter,
            ResultWriter,
            TextResultWriter,
            create_result_writer,
        )
        return {
            "ResultWriter": ResultWriter,
            "TextResultWriter": TextResultWriter,
            "JSONResultWriter": JSONResultWriter,
            "create_result_writer": create_result_writer,
        }[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
