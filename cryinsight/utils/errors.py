"""
Custom exceptions for the cry analysis pipeline.

Only ConfigurationError is meant to reach callers. Decode and extraction
problems are caught at the pipeline boundary and routed to the fallback
estimator, so a caller always receives an AnalysisResult.
"""

from typing import Any, Optional


class CryAnalysisError(Exception):
    """Base exception for all cry analysis errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class DecodeError(CryAnalysisError):
    """Raised when an audio buffer cannot be decoded into samples."""

    def __init__(self, message: str, media_type: Optional[str] = None):
        super().__init__(message, details={"media_type": media_type})
        self.media_type = media_type


class MetadataUnavailable(CryAnalysisError):
    """Raised when container metadata (duration) cannot be read.

    Non-fatal: the decoder substitutes a default duration.
    """


class ExtractionDegenerate(CryAnalysisError):
    """Raised when a waveform carries no usable signal (empty or silent).

    Non-fatal: the extractor returns zeroed sub-features instead.
    """

    def __init__(self, message: str, feature_name: Optional[str] = None):
        super().__init__(message, details={"feature_name": feature_name})
        self.feature_name = feature_name


class AnalysisError(CryAnalysisError):
    """Raised when an analyzer fails for an unexpected reason."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.analyzer_name = analyzer_name
        self.original_error = original_error
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class ConfigurationError(CryAnalysisError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}
