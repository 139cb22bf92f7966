"""
CryInsight - Infant Cry Analysis CLI

This module provides the command-line interface for CryInsight.
It can be invoked as 'cryinsight' from anywhere after installation.

Example usage:
    # Single recording
    cryinsight path/to/cry.wav
    cryinsight --output result.json path/to/cry.wav

    # Batch processing
    cryinsight --batch path/to/recordings/
    cryinsight --batch --recursive path/to/recordings/
    cryinsight --batch --output-file report.txt cry1.wav cry2.wav
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from cryinsight import __version__
from cryinsight.core.engine import create_analysis_engine
from cryinsight.core.explanation import CATEGORY_INFO, TIP_CONFIDENCE
from cryinsight.core.models import AnalysisResult
from cryinsight.utils.config import load_config
from cryinsight.utils.logging import setup_logging

# Supported audio extensions
AUDIO_EXTENSIONS = {'.wav', '.mp3', '.flac', '.ogg', '.m4a', '.aiff', '.aif', '.webm'}

BAR_WIDTH = 30


def print_single_result(file_path: Path, result: AnalysisResult) -> None:
    """Print analysis results for a single recording to console."""
    info = CATEGORY_INFO[result.primary_category]

    print("\n" + "=" * 60)
    print("CRYINSIGHT ANALYSIS RESULTS")
    print("=" * 60)
    print(f"File: {file_path.name}")
    print(f"Processing Time: {result.processing_time:.3f}s")
    if result.duration is not None:
        print(f"Duration: {result.duration:.1f}s")
    print("-" * 60)
    print(f"Primary: {info.title} ({result.confidence:.0%})")
    if result.used_fallback:
        print("Note: the audio could not be measured; this is an estimate.")
    print("-" * 60)

    print("\nDistribution:")
    for category, probability in result.sorted_distribution():
        bar = "#" * int(round(probability * BAR_WIDTH))
        print(f"  {CATEGORY_INFO[category].title:<20} {probability:6.1%} {bar}")

    print(f"\nExplanation:\n  {result.explanation}")

    if info.caregiver_tips and result.confidence > TIP_CONFIDENCE:
        print("\nWhat you can try:")
        for tip in info.caregiver_tips:
            print(f"  - {tip}")


def collect_audio_files(inputs: List[Path], recursive: bool = False) -> List[Path]:
    """
    Expand files and directories into a sorted, de-duplicated file list.

    Args:
        inputs: Files or directories
        recursive: Search directories recursively

    Returns:
        List[Path]: Audio files in input order
    """
    files: List[Path] = []
    seen = set()

    for path in inputs:
        path = Path(path)
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            candidates = sorted(
                p for p in path.glob(pattern)
                if p.is_file() and p.suffix.lower() in AUDIO_EXTENSIONS
            )
        else:
            candidates = [path]

        for candidate in candidates:
            key = candidate.resolve()
            if key not in seen:
                seen.add(key)
                files.append(candidate)

    return files


def analyze_single_file(
    audio_file: Path,
    config: dict,
    output_json: Optional[Path] = None,
    output_txt: Optional[Path] = None,
    verbose: bool = False
) -> int:
    """
    Analyze a single recording.

    Args:
        audio_file: Path to audio file
        config: Configuration dictionary
        output_json: Optional path for JSON output
        output_txt: Optional path for text output
        verbose: Enable verbose error output

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not audio_file.exists():
        print(f"Error: Audio file not found: {audio_file}")
        return 1

    print(f"Analyzing: {audio_file}")
    engine = create_analysis_engine(config)

    try:
        result = engine.analyze_file(audio_file)

        print_single_result(audio_file, result)

        if output_json:
            with open(output_json, 'w', encoding='utf-8') as f:
                f.write(result.to_json(indent=2))
            print(f"\nJSON results saved to: {output_json}")

        if output_txt:
            from cryinsight.core.result_writer import TextResultWriter
            writer = TextResultWriter()
            writer.write({audio_file: result}, output_txt)
            print(f"Text results saved to: {output_txt}")

        return 0

    except Exception as e:
        print(f"Error during analysis: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1

    finally:
        engine.shutdown()


def analyze_batch(
    inputs: List[Path],
    config: dict,
    recursive: bool = False,
    output_txt: Optional[Path] = None,
    output_json: Optional[Path] = None,
    verbose: bool = False
) -> int:
    """
    Analyze multiple recordings in batch mode.

    Args:
        inputs: List of paths (files or directories)
        config: Configuration dictionary
        recursive: Search directories recursively
        output_txt: Optional path for text output
        output_json: Optional path for JSON output
        verbose: Enable verbose error output

    Returns:
        Exit code (0 for success, 1 for errors)
    """
    from cryinsight.core.result_writer import JSONResultWriter, TextResultWriter

    files = collect_audio_files(inputs, recursive=recursive)
    if not files:
        print("Error: No audio files found")
        return 1

    engine = create_analysis_engine(config)

    try:
        start = datetime.now()
        print(f"Processing {len(files)} file(s)...")
        results = engine.analyze_batch(files)
        elapsed = (datetime.now() - start).total_seconds()

        successful: Dict[Path, AnalysisResult] = {}
        failed: List[Path] = []
        for path, result in zip(files, results):
            if result is None:
                failed.append(path)
            else:
                successful[path] = result
                print(f"  {path.name}: {result.get_summary()}")

        print("\n" + "=" * 60)
        print("BATCH PROCESSING COMPLETE")
        print("=" * 60)
        print(f"Total Files: {len(files)}")
        print(f"Successful: {len(successful)}")
        print(f"Estimated (fallback): {sum(1 for r in successful.values() if r.used_fallback)}")
        print(f"Failed: {len(failed)}")
        print(f"Total Time: {elapsed:.2f}s")

        if failed:
            print("\nFailed Files:")
            for path in failed:
                print(f"  {path}")

        # Write text output (default if no output specified)
        if output_txt or (not output_json and successful):
            txt_path = output_txt or Path(
                f"cryinsight_results_{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
            )
            TextResultWriter().write(successful, txt_path)
            print(f"\nText results saved to: {txt_path}")

        if output_json:
            JSONResultWriter().write(successful, output_json)
            print(f"JSON results saved to: {output_json}")

        return 0 if not failed else 1

    except Exception as e:
        print(f"Error during batch processing: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1

    finally:
        engine.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cryinsight",
        description="Classify infant cry recordings and explain the result",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single recording:
    cryinsight cry.wav
    cryinsight --output result.json cry.wav
    cryinsight --output-file report.txt cry.wav

  Batch processing:
    cryinsight --batch recordings/
    cryinsight --batch --recursive recordings/
    cryinsight --batch cry1.wav cry2.wav cry3.wav
        """
    )

    parser.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        help="Audio file(s) or directory to analyze"
    )
    parser.add_argument(
        "--batch",
        "-b",
        action="store_true",
        help="Enable batch processing mode for multiple files or directories"
    )
    parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Search directories recursively (only with --batch)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save JSON output (single file mode)"
    )
    parser.add_argument(
        "--output-file",
        "-o",
        type=Path,
        default=None,
        help="Path to save text results file (.txt)"
    )
    parser.add_argument(
        "--output-json",
        type=Path,
        default=None,
        help="Path to save JSON results file (batch mode)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the fallback estimator (reproducible estimates)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"CryInsight {__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for CryInsight."""
    args = build_parser().parse_args(argv)

    # Load configuration
    config_path = str(args.config) if args.config else None
    config = load_config(config_path)
    if args.seed is not None:
        config.setdefault('fallback', {})['seed'] = args.seed

    # Setup logging
    log_level = "DEBUG" if args.verbose else config.get("logging", {}).get("level", "INFO")
    setup_logging(
        level=log_level,
        log_format=config.get("logging", {}).get("format", "text"),
        colored=True,
        console_enabled=True
    )

    is_batch = args.batch or len(args.inputs) > 1 or args.inputs[0].is_dir()

    if is_batch:
        exit_code = analyze_batch(
            inputs=args.inputs,
            config=config,
            recursive=args.recursive,
            output_txt=args.output_file,
            output_json=args.output_json,
            verbose=args.verbose
        )
    else:
        exit_code = analyze_single_file(
            audio_file=args.inputs[0],
            config=config,
            output_json=args.output,
            output_txt=args.output_file,
            verbose=args.verbose
        )

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
