"""
Result writers for saving cry analysis reports.

Each output format is a separate writer behind the ResultWriter interface.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, TextIO

from cryinsight.core.explanation import CATEGORY_INFO
from cryinsight.core.models import AnalysisResult


class ResultWriter(ABC):
    """Abstract base class for result writers (Strategy Pattern)."""

    @abstractmethod
    def write(self, results: Dict[Path, AnalysisResult], output_path: Path) -> None:
        """Write results to the specified path."""
        pass


class TextResultWriter(ResultWriter):
    """Writes analysis results to a human-readable text file."""

    def __init__(self, include_timestamp: bool = True, bar_width: int = 30):
        """
        Initialize text writer.

        Args:
            include_timestamp: Whether to include timestamp in output
            bar_width: Character width of a 100% distribution bar
        """
        self.include_timestamp = include_timestamp
        self.bar_width = bar_width
        self.logger = logging.getLogger("result_writer.text")

    def write(self, results: Dict[Path, AnalysisResult], output_path: Path) -> None:
        """
        Write results to a text file.

        Args:
            results: Dictionary mapping file paths to their analysis results
            output_path: Path to output text file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("=" * 70 + "\n")
            f.write("CRYINSIGHT ANALYSIS REPORT\n")
            f.write("=" * 70 + "\n")

            if self.include_timestamp:
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

            f.write(f"Recordings Analyzed: {len(results)}\n")
            fallback_count = sum(1 for r in results.values() if r.used_fallback)
            if fallback_count:
                f.write(f"Estimated Without Features: {fallback_count}\n")
            f.write("=" * 70 + "\n\n")

            for file_path, result in results.items():
                self._write_single_result(f, Path(file_path), result)

            f.write("=" * 70 + "\n")
            f.write("END OF REPORT\n")
            f.write("=" * 70 + "\n")

        self.logger.info(f"Results written to: {output_path}")

    def _write_single_result(self, f: TextIO, file_path: Path, result: AnalysisResult) -> None:
        f.write("-" * 70 + "\n")
        f.write(f"FILE: {file_path.name}\n")
        f.write(f"PATH: {file_path}\n")
        f.write("-" * 70 + "\n")

        f.write(f"Processing Time: {result.processing_time:.3f}s\n")
        if result.duration is not None:
            f.write(f"Duration: {result.duration:.1f}s\n")

        title = CATEGORY_INFO[result.primary_category].title
        f.write(f"\nPrimary: {title} ({result.confidence:.0%})\n")
        if result.used_fallback:
            f.write("Method: estimate (audio could not be measured)\n")

        f.write("\nDistribution:\n")
        for category, probability in result.sorted_distribution():
            bar = "#" * int(round(probability * self.bar_width))
            f.write(f"  {category.value:<12} {probability:6.1%} {bar}\n")

        f.write(f"\nExplanation:\n  {result.explanation}\n")
        f.write("\n")


class JSONResultWriter(ResultWriter):
    """Writes analysis results to a JSON file."""

    def __init__(self, indent: int = 2):
        """
        Initialize JSON writer.

        Args:
            indent: JSON indentation level
        """
        self.indent = indent
        self.logger = logging.getLogger("result_writer.json")

    def write(self, results: Dict[Path, AnalysisResult], output_path: Path) -> None:
        """
        Write results to a JSON file.

        Args:
            results: Dictionary mapping file paths to their analysis results
            output_path: Path to output JSON file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_data = {
            "generated": datetime.now().isoformat(),
            "total_files": len(results),
            "results": {
                str(path): result.to_dict()
                for path, result in results.items()
            }
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=self.indent, default=str)

        self.logger.info(f"Results written to: {output_path}")


def create_result_writer(format: str = "text", **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate result writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ResultWriter instance
    """
    writers = {
        "text": TextResultWriter,
        "txt": TextResultWriter,
        "json": JSONResultWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
