"""
Analyzer base interface for CryInsight.

Defines the contract shared by the heuristic pipeline and the fallback
estimator using Protocol (structural subtyping).
"""

import logging
import time
from abc import abstractmethod
from typing import Optional, Protocol

from cryinsight.core.models import AnalysisResult
from cryinsight.utils.errors import AnalysisError, CryAnalysisError


class Analyzer(Protocol):
    """
    Protocol for anything that turns an audio buffer into an AnalysisResult.

    A class doesn't need to inherit from Analyzer to be compatible -
    it just needs the members below.
    """

    @property
    def name(self) -> str:
        """Analyzer name (e.g., 'heuristic', 'fallback')."""
        ...

    @property
    def version(self) -> str:
        """Analyzer version for result tracking."""
        ...

    def analyze(self, data: bytes, media_type: Optional[str] = None) -> AnalysisResult:
        """
        Analyze an audio buffer.

        Raises:
            CryAnalysisError: If analysis fails
        """
        ...


class BaseAnalyzer:
    """
    Optional base class providing timing, logging and error wrapping.

    Uses Template Method pattern - analyze() provides the template,
    subclasses implement _analyze_impl().
    """

    def __init__(self, name: str, version: str):
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"analyzer.{name}")

    @property
    def name(self) -> str:
        """Return analyzer name."""
        return self._name

    @property
    def version(self) -> str:
        """Return analyzer version."""
        return self._version

    def analyze(self, data: bytes, media_type: Optional[str] = None) -> AnalysisResult:
        """
        Template method with timing and error handling.

        Errors from the CryAnalysisError hierarchy propagate unchanged;
        anything else is wrapped in AnalysisError.
        """
        start_time = time.perf_counter()

        try:
            self.logger.debug(f"Starting analysis of {len(data)} bytes ({media_type or 'unknown type'})")

            result = self._analyze_impl(data, media_type)

            elapsed = time.perf_counter() - start_time
            self.logger.info(f"Analysis complete in {elapsed:.3f}s")

            return result

        except CryAnalysisError:
            raise

        except Exception as e:
            self.logger.error(f"Analysis failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    @abstractmethod
    def _analyze_impl(self, data: bytes, media_type: Optional[str]) -> AnalysisResult:
        """Subclasses implement actual analysis logic."""
        raise NotImplementedError
