"""Tests for the command-line interface."""

import json
import logging
from pathlib import Path

import pytest

from cryinsight.cli import build_parser, collect_audio_files, main, print_single_result
from cryinsight.core.models import AnalysisResult, CryCategory


@pytest.fixture(autouse=True)
def restore_root_logger():
    # main() reconfigures the root logger against the captured stderr
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestParser:
    def test_defaults(self, tmp_path):
        args = build_parser().parse_args([str(tmp_path / "cry.wav")])
        assert not args.batch
        assert args.seed is None
        assert args.output is None

    def test_flags(self, tmp_path):
        args = build_parser().parse_args(
            ["-b", "-r", "--seed", "7", "-o", "out.txt", str(tmp_path)]
        )
        assert args.batch and args.recursive
        assert args.seed == 7
        assert args.output_file.name == "out.txt"


def _result(confidence: float) -> AnalysisResult:
    distribution = {c: 0.0 for c in CryCategory}
    distribution[CryCategory.HUNGRY] = confidence
    distribution[CryCategory.TIRED] = 1.0 - confidence
    return AnalysisResult(
        primary_category=CryCategory.HUNGRY,
        confidence=confidence,
        distribution=distribution,
        explanation="Hungry.",
    )


class TestPrintSingleResult:
    def test_tips_shown_when_confident(self, capsys):
        print_single_result(Path("cry.wav"), _result(0.8))
        assert "What you can try:" in capsys.readouterr().out

    def test_tips_hidden_when_uncertain(self, capsys):
        print_single_result(Path("cry.wav"), _result(0.55))
        assert "What you can try:" not in capsys.readouterr().out


class TestCollectAudioFiles:
    def test_directory_listing(self, tmp_path):
        (tmp_path / "a.wav").write_bytes(b"x")
        (tmp_path / "b.txt").write_bytes(b"x")
        nested = tmp_path / "nested"
        nested.mkdir()
        (nested / "c.flac").write_bytes(b"x")

        flat = collect_audio_files([tmp_path])
        deep = collect_audio_files([tmp_path], recursive=True)

        assert [p.name for p in flat] == ["a.wav"]
        assert sorted(p.name for p in deep) == ["a.wav", "c.flac"]

    def test_duplicates_removed(self, tmp_path):
        wav = tmp_path / "a.wav"
        wav.write_bytes(b"x")
        assert collect_audio_files([wav, tmp_path]) == [wav]


class TestMain:
    def test_single_file(self, hunger_wav, tmp_path, capsys):
        audio = tmp_path / "cry.wav"
        audio.write_bytes(hunger_wav)
        output = tmp_path / "result.json"

        with pytest.raises(SystemExit) as exc_info:
            main([str(audio), "--output", str(output)])

        assert exc_info.value.code == 0
        printed = capsys.readouterr().out
        assert "Primary: Hunger" in printed
        assert json.loads(output.read_text())["primary_category"] == "hungry"

    def test_unreadable_audio_still_answers(self, garbage_bytes, tmp_path, capsys):
        audio = tmp_path / "broken.wav"
        audio.write_bytes(garbage_bytes)

        with pytest.raises(SystemExit) as exc_info:
            main([str(audio), "--seed", "3"])

        assert exc_info.value.code == 0
        assert "this is an estimate" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.wav")])
        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().out

    def test_batch_writes_reports(self, hunger_wav, silent_wav, tmp_path):
        (tmp_path / "one.wav").write_bytes(hunger_wav)
        (tmp_path / "two.wav").write_bytes(silent_wav)
        report = tmp_path / "report.txt"
        report_json = tmp_path / "report.json"

        with pytest.raises(SystemExit) as exc_info:
            main([
                "--batch", str(tmp_path),
                "--output-file", str(report),
                "--output-json", str(report_json),
            ])

        assert exc_info.value.code == 0
        assert "Recordings Analyzed: 2" in report.read_text(encoding="utf-8")
        assert json.loads(report_json.read_text())["total_files"] == 2
