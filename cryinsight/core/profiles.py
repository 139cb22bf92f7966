"""
Reference cry profiles.

One CategoryProfile per CryCategory: the pitch range a cry of that kind
usually falls in, the pattern traits it shows, and a reference spectral
shape to compare extracted features against. The table is built once per
process and handed to the scorer; nothing mutates it afterwards.
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, NamedTuple, Optional

import numpy as np

from cryinsight.core.features import N_BANDS, N_COEFFICIENTS, N_FFT, spectral_fingerprint
from cryinsight.core.models import CategoryProfile, CryCategory, PatternFlag


class SpectralEnvelope(NamedTuple):
    """Hand-authored spectral envelope of a typical cry."""

    center_hz: float
    width_hz: float
    level: float  # mean band magnitude at the center
    rms: float


NOMINAL_SAMPLE_RATE: int = 22050

PITCH_RANGES: Dict[CryCategory, tuple] = {
    CryCategory.HUNGRY: (300.0, 600.0),
    CryCategory.BELLY_PAIN: (600.0, 1200.0),
    CryCategory.BURPING: (250.0, 500.0),
    CryCategory.DISCOMFORT: (350.0, 700.0),
    CryCategory.COLD_HOT: (500.0, 900.0),
    CryCategory.LAUGH: (150.0, 400.0),
    CryCategory.LONELY: (200.0, 400.0),
    CryCategory.NOISE: (20.0, 8000.0),
    CryCategory.SCARED: (700.0, 1500.0),
    CryCategory.SILENCE: (0.0, 80.0),
    CryCategory.TIRED: (200.0, 420.0),
}

PATTERN_FLAGS: Dict[CryCategory, frozenset] = {
    CryCategory.HUNGRY: frozenset({
        PatternFlag.RHYTHMIC, PatternFlag.BUILDUP, PatternFlag.INTENSITY_GROWTH,
    }),
    CryCategory.BELLY_PAIN: frozenset({
        PatternFlag.SUDDEN_ONSET, PatternFlag.SUSTAINED,
        PatternFlag.AGITATED, PatternFlag.SUDDEN_INTENSITY,
    }),
    CryCategory.BURPING: frozenset({PatternFlag.SUDDEN_ONSET, PatternFlag.AGITATED}),
    CryCategory.DISCOMFORT: frozenset({PatternFlag.AGITATED, PatternFlag.SUSTAINED}),
    CryCategory.COLD_HOT: frozenset({PatternFlag.SUSTAINED, PatternFlag.INTENSITY_GROWTH}),
    CryCategory.LAUGH: frozenset({PatternFlag.RHYTHMIC}),
    CryCategory.LONELY: frozenset({PatternFlag.BUILDUP, PatternFlag.LOW_ENERGY}),
    CryCategory.NOISE: frozenset(),
    CryCategory.SCARED: frozenset({
        PatternFlag.SUDDEN_ONSET, PatternFlag.AGITATED, PatternFlag.SUDDEN_INTENSITY,
    }),
    CryCategory.SILENCE: frozenset({PatternFlag.LOW_ENERGY}),
    CryCategory.TIRED: frozenset({PatternFlag.LOW_ENERGY, PatternFlag.SUSTAINED}),
}

SPECTRAL_ENVELOPES: Dict[CryCategory, SpectralEnvelope] = {
    CryCategory.HUNGRY: SpectralEnvelope(450.0, 80.0, 14.0, 0.30),
    CryCategory.BELLY_PAIN: SpectralEnvelope(900.0, 200.0, 18.0, 0.45),
    CryCategory.BURPING: SpectralEnvelope(375.0, 100.0, 8.0, 0.25),
    CryCategory.DISCOMFORT: SpectralEnvelope(520.0, 150.0, 10.0, 0.25),
    CryCategory.COLD_HOT: SpectralEnvelope(700.0, 150.0, 10.0, 0.25),
    CryCategory.LAUGH: SpectralEnvelope(300.0, 120.0, 8.0, 0.20),
    CryCategory.LONELY: SpectralEnvelope(320.0, 100.0, 6.0, 0.15),
    CryCategory.NOISE: SpectralEnvelope(2500.0, 3000.0, 3.0, 0.20),
    CryCategory.SCARED: SpectralEnvelope(1100.0, 250.0, 16.0, 0.40),
    # No energy anywhere: the reference shape is all zeros
    CryCategory.SILENCE: SpectralEnvelope(0.0, 1.0, 0.0, 0.0),
    CryCategory.TIRED: SpectralEnvelope(330.0, 90.0, 5.0, 0.12),
}


def reference_shape(
    envelope: SpectralEnvelope,
    n_bands: int = N_BANDS,
    n_coefficients: int = N_COEFFICIENTS,
    sample_rate: int = NOMINAL_SAMPLE_RATE,
    n_fft: int = N_FFT
) -> tuple:
    """Spectral shape a recording with ``envelope`` would produce."""
    # Same band layout as FeatureExtractor.energy_bands
    band_width = ((n_fft // 2) // n_bands) * sample_rate / n_fft
    centers = (np.arange(n_bands) + 0.5) * band_width
    bands = envelope.level * np.exp(
        -0.5 * ((centers - envelope.center_hz) / envelope.width_hz) ** 2
    )
    shape = spectral_fingerprint(bands, envelope.rms, n_coefficients)
    return tuple(float(v) for v in shape)


class ProfileTable(Mapping):
    """
    Immutable CryCategory -> CategoryProfile mapping.

    Iterates in category declaration order and must cover every category.
    """

    def __init__(self, profiles: Iterable[CategoryProfile]):
        by_label: Dict[CryCategory, CategoryProfile] = {}
        for profile in profiles:
            if profile.label in by_label:
                raise ValueError(f"Duplicate profile for {profile.label.value}")
            by_label[profile.label] = profile

        missing = [c.value for c in CryCategory if c not in by_label]
        if missing:
            raise ValueError(f"Profile table is missing categories: {missing}")

        self._profiles = MappingProxyType(
            {category: by_label[category] for category in CryCategory}
        )

    def __getitem__(self, category: CryCategory) -> CategoryProfile:
        return self._profiles[category]

    def __iter__(self) -> Iterator[CryCategory]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __repr__(self) -> str:
        return f"ProfileTable({len(self)} profiles)"


def build_profile_table(
    n_bands: int = N_BANDS,
    n_coefficients: int = N_COEFFICIENTS,
    sample_rate: int = NOMINAL_SAMPLE_RATE,
    n_fft: int = N_FFT,
    pitch_ranges: Optional[Mapping[CryCategory, tuple]] = None
) -> ProfileTable:
    """Assemble the reference table for a given feature layout."""
    pitch_ranges = pitch_ranges or PITCH_RANGES
    return ProfileTable(
        CategoryProfile(
            label=category,
            pitch_range=pitch_ranges[category],
            flags=PATTERN_FLAGS[category],
            reference_spectral_shape=reference_shape(
                SPECTRAL_ENVELOPES[category], n_bands, n_coefficients, sample_rate, n_fft
            ),
        )
        for category in CryCategory
    )


@lru_cache(maxsize=None)
def default_profile_table(
    n_bands: int = N_BANDS,
    n_coefficients: int = N_COEFFICIENTS,
    sample_rate: int = NOMINAL_SAMPLE_RATE,
    n_fft: int = N_FFT
) -> ProfileTable:
    """Process-wide table, built on first use."""
    return build_profile_table(n_bands, n_coefficients, sample_rate, n_fft)
