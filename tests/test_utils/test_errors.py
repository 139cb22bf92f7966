"""Tests for the exception hierarchy."""

import pytest

from cryinsight.utils.errors import (
    AnalysisError,
    ConfigurationError,
    CryAnalysisError,
    DecodeError,
    ExtractionDegenerate,
    MetadataUnavailable,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            DecodeError("bad"),
            MetadataUnavailable("no header"),
            ExtractionDegenerate("silent"),
            AnalysisError("failed"),
            ConfigurationError("invalid"),
        ],
    )
    def test_all_derive_from_base(self, error):
        assert isinstance(error, CryAnalysisError)


class TestDetails:
    def test_plain_message(self):
        assert str(CryAnalysisError("plain")) == "plain"

    def test_decode_error_records_media_type(self):
        error = DecodeError("cannot decode", media_type="audio/webm")
        assert error.media_type == "audio/webm"
        assert "audio/webm" in str(error)

    def test_extraction_feature_name(self):
        error = ExtractionDegenerate("silent", feature_name="waveform")
        assert error.feature_name == "waveform"

    def test_analysis_error_wraps_original(self):
        original = RuntimeError("boom")
        error = AnalysisError("heuristic failed", analyzer_name="heuristic", original_error=original)
        assert error.original_error is original
        assert error.details["original_error"] == "boom"

    def test_configuration_key(self):
        error = ConfigurationError("bad weights", config_key="scorer.weights")
        assert error.config_key == "scorer.weights"
        assert "scorer.weights" in str(error)
