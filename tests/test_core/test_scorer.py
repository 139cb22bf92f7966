"""Tests for the profile scorer."""

import math

import pytest

from cryinsight.core.models import (
    CryCategory,
    FeatureVector,
    IntensityStats,
    RhythmStats,
)
from cryinsight.core.profiles import default_profile_table
from cryinsight.core.scorer import (
    CryScorer,
    ScoringWeights,
    SubScores,
    cosine_similarity,
    create_scorer,
)
from cryinsight.utils.errors import ConfigurationError


def hungry_features() -> FeatureVector:
    """Dominant 450 Hz, regular pulses, rising intensity, hungry-like spectrum."""
    return FeatureVector(
        pitch_hz=450.0,
        energy_bands=(0.0,) * 40,
        rhythm=RhythmStats(pulse_count=7, regularity_score=0.95, tempo_bpm=150.0),
        intensity=IntensityStats(rms=0.31, dynamic_range=1.9, growth_trend=0.02),
        spectral_shape=default_profile_table()[CryCategory.HUNGRY].reference_spectral_shape,
    )


class TestCosineSimilarity:
    def test_identical(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_uses_common_prefix(self):
        assert cosine_similarity([1.0, 0.0, 5.0], [1.0, 0.0]) == pytest.approx(1.0)

    def test_empty_overlap(self):
        assert cosine_similarity([], [1.0, 2.0]) == 0.0

    def test_zero_norm(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_non_finite(self):
        assert cosine_similarity([math.inf, 1.0], [1.0, 1.0]) == 0.0


class TestScoringWeights:
    def test_defaults_sum_to_one(self):
        weights = ScoringWeights()
        assert weights.pitch + weights.rhythm + weights.intensity + weights.spectral == pytest.approx(1.0)

    def test_must_sum_to_one(self):
        with pytest.raises(ConfigurationError):
            ScoringWeights(pitch=0.5, rhythm=0.5, intensity=0.5, spectral=0.5)

    def test_negative_rejected(self):
        with pytest.raises(ConfigurationError):
            ScoringWeights(pitch=-0.25, rhythm=0.75, intensity=0.2, spectral=0.3)

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigurationError):
            ScoringWeights.from_dict({"pitch": 1.0, "volume": 0.0})

    def test_weighted_sum(self):
        subs = SubScores(pitch=1.0, rhythm=0.5, intensity=1.0, spectral=0.0)
        assert subs.weighted(ScoringWeights()) == pytest.approx(0.25 + 0.125 + 0.20)


class TestSubScores:
    def test_hungry_profile_matches_everything(self):
        scorer = CryScorer()
        subs = scorer.sub_scores(hungry_features(), scorer.profiles[CryCategory.HUNGRY])
        assert subs.pitch == 1.0
        assert subs.rhythm == 1.0
        assert subs.intensity == 1.0
        assert subs.spectral == pytest.approx(1.0)

    def test_mismatch_scores_half(self):
        scorer = CryScorer()
        subs = scorer.sub_scores(hungry_features(), scorer.profiles[CryCategory.SCARED])
        assert subs.pitch == 0.5
        assert subs.rhythm == 0.5
        # sudden_intensity needs rms above 0.3
        assert subs.intensity == 1.0

    def test_low_energy_match(self):
        scorer = CryScorer()
        quiet = FeatureVector.empty(40, 13)
        subs = scorer.sub_scores(quiet, scorer.profiles[CryCategory.TIRED])
        assert subs.intensity == 1.0
        assert subs.spectral == 0.0


class TestClassify:
    def test_hunger_scenario(self):
        scores, distribution, primary = CryScorer().classify(hungry_features())

        assert primary is CryCategory.HUNGRY
        assert distribution[CryCategory.HUNGRY] > 0.5
        assert max(scores, key=scores.get) is CryCategory.HUNGRY

    def test_silence_wins_for_empty_features(self):
        _, distribution, primary = CryScorer().classify(FeatureVector.empty(40, 13))
        assert primary is CryCategory.SILENCE

    def test_distribution_is_complete_and_normalized(self):
        _, distribution, _ = CryScorer().classify(hungry_features())
        assert set(distribution) == set(CryCategory)
        assert math.fsum(distribution.values()) == pytest.approx(1.0, abs=1e-9)
        assert all(0.0 <= v <= 1.0 for v in distribution.values())

    def test_deterministic(self):
        scorer = CryScorer()
        assert scorer.classify(hungry_features()) == scorer.classify(hungry_features())

    def test_mismatched_spectral_length(self):
        features = FeatureVector(
            pitch_hz=450.0,
            energy_bands=(0.0,) * 40,
            rhythm=RhythmStats(),
            intensity=IntensityStats(),
            spectral_shape=(),
        )
        scores, distribution, _ = CryScorer().classify(features)
        assert math.fsum(distribution.values()) == pytest.approx(1.0)
        assert all(s >= 0 for s in scores.values())


class TestNormalize:
    def test_sharpness_one_is_plain_ratio(self):
        scorer = CryScorer(sharpness=1.0)
        scores = {c: 0.0 for c in CryCategory}
        scores[CryCategory.HUNGRY] = 3.0
        scores[CryCategory.TIRED] = 1.0
        distribution = scorer.normalize(scores)
        assert distribution[CryCategory.HUNGRY] == pytest.approx(0.75)
        assert distribution[CryCategory.TIRED] == pytest.approx(0.25)

    def test_all_zero_gives_uniform(self):
        distribution = CryScorer().normalize({c: 0.0 for c in CryCategory})
        assert all(v == pytest.approx(1 / 11) for v in distribution.values())

    def test_negative_scores_clamped(self):
        scores = {c: -1.0 for c in CryCategory}
        scores[CryCategory.LAUGH] = 0.5
        distribution = CryScorer().normalize(scores)
        assert distribution[CryCategory.LAUGH] == pytest.approx(1.0)

    def test_sharpness_preserves_order(self):
        scores = {c: 0.1 * (i + 1) for i, c in enumerate(CryCategory)}
        sharp = CryScorer(sharpness=16.0).normalize(scores)
        flat = CryScorer(sharpness=1.0).normalize(scores)
        assert max(sharp, key=sharp.get) is max(flat, key=flat.get) is CryCategory.TIRED
        assert sharp[CryCategory.TIRED] > flat[CryCategory.TIRED]

    def test_tie_goes_to_first_declared(self):
        scores = {c: 0.0 for c in CryCategory}
        scores[CryCategory.TIRED] = 0.7
        scores[CryCategory.BURPING] = 0.7
        distribution = CryScorer().normalize(scores)
        assert CryScorer.select_primary(distribution) is CryCategory.BURPING

    def test_invalid_sharpness(self):
        with pytest.raises(ConfigurationError):
            CryScorer(sharpness=0)


class TestFactory:
    def test_from_config(self):
        scorer = create_scorer({
            "weights": {"pitch": 0.4, "rhythm": 0.2, "intensity": 0.2, "spectral": 0.2},
            "sharpness": 2.0,
        })
        assert scorer.weights.pitch == 0.4
        assert scorer.sharpness == 2.0

    def test_injected_profiles(self):
        table = default_profile_table()
        assert create_scorer({}, profiles=table).profiles is table
