"""Tests for result writers."""

import json
from pathlib import Path

import pytest

from cryinsight.core.models import AnalysisResult, CryCategory
from cryinsight.core.result_writer import (
    JSONResultWriter,
    TextResultWriter,
    create_result_writer,
)


@pytest.fixture
def results():
    hungry = {c: 0.0 for c in CryCategory}
    hungry[CryCategory.HUNGRY] = 0.8
    hungry[CryCategory.TIRED] = 0.2

    estimate = {c: 0.0 for c in CryCategory}
    estimate[CryCategory.LONELY] = 0.6
    estimate[CryCategory.SCARED] = 0.25
    estimate[CryCategory.LAUGH] = 0.15

    return {
        Path("recordings/morning.wav"): AnalysisResult(
            primary_category=CryCategory.HUNGRY,
            confidence=0.8,
            distribution=hungry,
            explanation="Based on 3.0 seconds of audio, this cry shows high indicators of a hunger cry.",
            duration=3.0,
        ),
        Path("recordings/broken.webm"): AnalysisResult(
            primary_category=CryCategory.LONELY,
            confidence=0.6,
            distribution=estimate,
            explanation="Estimated.",
            duration=10.0,
            used_fallback=True,
        ),
    }


class TestTextResultWriter:
    def test_writes_report(self, results, tmp_path):
        output = tmp_path / "out" / "report.txt"
        TextResultWriter(include_timestamp=False).write(results, output)

        text = output.read_text(encoding="utf-8")
        assert "CRYINSIGHT ANALYSIS REPORT" in text
        assert "Recordings Analyzed: 2" in text
        assert "Estimated Without Features: 1" in text
        assert "FILE: morning.wav" in text
        assert "Primary: Hunger (80%)" in text
        assert "Primary: Loneliness (60%)" in text
        assert "hunger cry" in text
        assert "Generated:" not in text

    def test_distribution_sorted(self, results, tmp_path):
        path = Path("recordings/broken.webm")
        output = tmp_path / "report.txt"
        TextResultWriter().write({path: results[path]}, output)

        text = output.read_text(encoding="utf-8")
        assert "Method: estimate" in text
        assert text.index("lonely") < text.index("scared") < text.index("laugh ")


class TestJSONResultWriter:
    def test_writes_json(self, results, tmp_path):
        output = tmp_path / "report.json"
        JSONResultWriter().write(results, output)

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["total_files"] == 2
        morning = data["results"][str(Path("recordings/morning.wav"))]
        assert morning["primary_category"] == "hungry"
        assert morning["distribution"]["tired"] == pytest.approx(0.2)


class TestFactory:
    @pytest.mark.parametrize("fmt,cls", [("text", TextResultWriter), ("TXT", TextResultWriter), ("json", JSONResultWriter)])
    def test_known_formats(self, fmt, cls):
        assert isinstance(create_result_writer(fmt), cls)

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown format"):
            create_result_writer("xml")
