"""Tests for the reference profile table."""

import numpy as np
import pytest

from cryinsight.core.models import CategoryProfile, CryCategory, PatternFlag
from cryinsight.core.profiles import (
    PATTERN_FLAGS,
    SPECTRAL_ENVELOPES,
    ProfileTable,
    build_profile_table,
    default_profile_table,
    reference_shape,
)


class TestProfileTable:
    def test_covers_every_category_in_order(self):
        table = default_profile_table()
        assert list(table) == CryCategory.ordered()
        assert len(table) == 11

    def test_default_table_is_shared(self):
        assert default_profile_table() is default_profile_table()

    def test_table_is_read_only(self):
        table = default_profile_table()
        with pytest.raises(TypeError):
            table[CryCategory.HUNGRY] = table[CryCategory.TIRED]

    def test_missing_category_rejected(self):
        profiles = [p for c, p in default_profile_table().items() if c is not CryCategory.NOISE]
        with pytest.raises(ValueError, match="missing"):
            ProfileTable(profiles)

    def test_duplicate_category_rejected(self):
        profiles = list(default_profile_table().values())
        profiles.append(profiles[0])
        with pytest.raises(ValueError, match="Duplicate"):
            ProfileTable(profiles)

    def test_shapes_follow_feature_layout(self):
        table = build_profile_table(n_bands=20, n_coefficients=8)
        for profile in table.values():
            assert len(profile.reference_spectral_shape) == 8


class TestProfiles:
    def test_hungry_profile(self):
        hungry = default_profile_table()[CryCategory.HUNGRY]
        assert hungry.pitch_in_range(450.0)
        assert hungry.has(PatternFlag.RHYTHMIC)
        assert hungry.has(PatternFlag.BUILDUP)
        assert hungry.has(PatternFlag.INTENSITY_GROWTH)

    def test_noise_has_no_flags(self):
        assert PATTERN_FLAGS[CryCategory.NOISE] == frozenset()

    def test_silence_reference_shape_is_zero(self):
        shape = default_profile_table()[CryCategory.SILENCE].reference_spectral_shape
        assert not any(shape)

    def test_every_category_has_an_envelope(self):
        assert set(SPECTRAL_ENVELOPES) == set(CryCategory)

    def test_reference_shape_follows_fft_size(self):
        envelope = SPECTRAL_ENVELOPES[CryCategory.HUNGRY]
        assert reference_shape(envelope, n_fft=2048) != reference_shape(envelope)

    def test_reference_shape_starts_with_rms(self):
        envelope = SPECTRAL_ENVELOPES[CryCategory.BELLY_PAIN]
        shape = reference_shape(envelope)
        assert shape[0] == envelope.rms
        assert np.all(np.isfinite(shape))

    def test_profiles_are_frozen(self):
        profile = default_profile_table()[CryCategory.TIRED]
        assert isinstance(profile, CategoryProfile)
        with pytest.raises(AttributeError):
            profile.pitch_range = (0.0, 1.0)
