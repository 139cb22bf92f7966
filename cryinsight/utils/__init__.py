"""
Utility modules for configuration, logging, and error handling.
"""

from cryinsight.utils.errors import (
    CryAnalysisError,
    DecodeError,
    MetadataUnavailable,
    ExtractionDegenerate,
    AnalysisError,
    ConfigurationError,
)
from cryinsight.utils.logging import get_logger, setup_logging, JSONFormatter
from cryinsight.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "CryAnalysisError",
    "DecodeError",
    "MetadataUnavailable",
    "ExtractionDegenerate",
    "AnalysisError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
