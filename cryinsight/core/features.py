"""
Feature extractor for CryInsight.

Computes the fixed cry feature vector (energy bands, dominant pitch,
pulse rhythm, intensity and a cepstrum-like spectral shape) from a
decoded AudioSample.
"""

import logging
from typing import Any, Dict, Optional

import librosa
import numpy as np
from scipy.fft import dct

from cryinsight.core.models import AudioSample, FeatureVector, IntensityStats, RhythmStats
from cryinsight.utils.errors import ExtractionDegenerate

# Defaults
N_FFT: int = 1024
HOP_LENGTH: int = 512
N_BANDS: int = 40
N_COEFFICIENTS: int = 13
RHYTHM_FRAME_LENGTH: int = 512
INTENSITY_FRAME_LENGTH: int = 4096
PEAK_THRESHOLD: float = 0.1

# Below this RMS a recording is treated as silent
SILENCE_RMS: float = 1e-8

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """
    Stateless feature extraction using librosa and numpy.

    Instances only hold analysis parameters, so one extractor can serve
    concurrent analyses.
    """

    def __init__(
        self,
        n_fft: int = N_FFT,
        hop_length: int = HOP_LENGTH,
        n_bands: int = N_BANDS,
        n_coefficients: int = N_COEFFICIENTS,
        rhythm_frame_length: int = RHYTHM_FRAME_LENGTH,
        intensity_frame_length: int = INTENSITY_FRAME_LENGTH,
        peak_threshold: float = PEAK_THRESHOLD
    ):
        if n_bands < 1 or n_bands > n_fft // 2:
            raise ValueError(f"n_bands must be in [1, {n_fft // 2}], got {n_bands}")
        if n_coefficients < 1:
            raise ValueError(f"n_coefficients must be positive, got {n_coefficients}")

        self.n_fft = n_fft
        self.hop_length = hop_length
        self.n_bands = n_bands
        self.n_coefficients = n_coefficients
        self.rhythm_frame_length = rhythm_frame_length
        self.intensity_frame_length = intensity_frame_length
        self.peak_threshold = peak_threshold

    @property
    def num_bins(self) -> int:
        """Number of spectrum bins considered (n_fft / 2)."""
        return self.n_fft // 2

    def extract(self, audio: AudioSample) -> FeatureVector:
        """
        Extract all features from an audio sample.

        Never fails on a valid AudioSample: empty or silent recordings
        produce a zeroed vector.

        Args:
            audio: AudioSample to extract features from

        Returns:
            FeatureVector: Extracted features
        """
        samples = audio.samples.astype(np.float64)
        sr = audio.sample_rate

        try:
            self._check_signal(samples)
        except ExtractionDegenerate as e:
            logger.debug(f"Degenerate recording, using zeroed features: {e}")
            return FeatureVector.empty(self.n_bands, self.n_coefficients)

        spectrum = self.average_spectrum(samples)
        energy_bands = self.energy_bands(spectrum)
        pitch_hz = self.estimate_pitch(spectrum, sr)
        rhythm = self.rhythm_stats(samples, sr)
        intensity = self.intensity_stats(samples)
        spectral_shape = self.spectral_shape(energy_bands, intensity.rms)

        return FeatureVector(
            pitch_hz=pitch_hz,
            energy_bands=tuple(float(v) for v in energy_bands),
            rhythm=rhythm,
            intensity=intensity,
            spectral_shape=tuple(float(v) for v in spectral_shape)
        )

    def _check_signal(self, samples: np.ndarray) -> None:
        if samples.size == 0:
            raise ExtractionDegenerate("Recording has no samples", feature_name="waveform")
        if not np.all(np.isfinite(samples)):
            # Not degenerate: let the pipeline treat it as a failed extraction
            raise ValueError("Recording contains non-finite samples")
        if np.sqrt(np.mean(samples ** 2)) < SILENCE_RMS:
            raise ExtractionDegenerate("Recording is silent", feature_name="waveform")

    def average_spectrum(self, samples: np.ndarray) -> np.ndarray:
        """
        Magnitude spectrum averaged over all STFT frames.

        Returns:
            np.ndarray: Shape (num_bins,)
        """
        if samples.size < self.n_fft:
            samples = np.pad(samples, (0, self.n_fft - samples.size))

        stft = librosa.stft(
            samples,
            n_fft=self.n_fft,
            hop_length=self.hop_length,
            window='hann',
            center=False
        )
        magnitude = np.abs(stft)
        return magnitude.mean(axis=1)[:self.num_bins]

    @property
    def bins_per_band(self) -> int:
        """Width of every energy band, in spectrum bins."""
        return self.num_bins // self.n_bands

    def energy_bands(self, spectrum: np.ndarray) -> np.ndarray:
        """
        Mean magnitude of each of n_bands equal-width bands.

        Bands start at bin 0; bins past n_bands * bins_per_band are left out.
        """
        width = self.bins_per_band
        return spectrum[:self.n_bands * width].reshape(self.n_bands, width).mean(axis=1)

    def estimate_pitch(self, spectrum: np.ndarray, sr: int) -> float:
        """Frequency of the strongest bin, in Hz."""
        if spectrum.size == 0 or not np.any(spectrum > 0):
            return 0.0
        peak_bin = int(np.argmax(spectrum))
        return float(peak_bin * sr / (2 * self.num_bins))

    def rhythm_stats(self, samples: np.ndarray, sr: int) -> RhythmStats:
        """
        Pulse statistics from the short-term energy envelope.

        A frame is a pulse when its energy exceeds both neighbours and
        the peak threshold.
        """
        energy = self.frame_rms(samples, self.rhythm_frame_length)
        if energy.size < 3:
            return RhythmStats()

        inner = energy[1:-1]
        is_peak = (
            (inner > energy[:-2]) &
            (inner > energy[2:]) &
            (inner > self.peak_threshold)
        )
        peaks = np.flatnonzero(is_peak) + 1

        if peaks.size < 2:
            return RhythmStats(pulse_count=int(peaks.size))

        intervals = np.diff(peaks) * self.rhythm_frame_length / sr
        mean_interval = float(np.mean(intervals))
        if mean_interval <= 0:
            return RhythmStats(pulse_count=int(peaks.size))

        variation = float(np.std(intervals)) / mean_interval
        regularity = 1.0 - min(1.0, variation)

        return RhythmStats(
            pulse_count=int(peaks.size),
            regularity_score=float(min(1.0, max(0.0, regularity))),
            tempo_bpm=60.0 / mean_interval
        )

    def intensity_stats(self, samples: np.ndarray) -> IntensityStats:
        """RMS, peak-to-peak range and loudness trend of the waveform."""
        rms = float(np.sqrt(np.mean(samples ** 2)))
        dynamic_range = float(np.max(samples) - np.min(samples))

        frame_rms = self.frame_rms(samples, self.intensity_frame_length)
        if frame_rms.size < 2:
            growth_trend = 0.0
        else:
            growth_trend = float(np.mean(np.diff(frame_rms)))

        return IntensityStats(
            rms=rms,
            dynamic_range=dynamic_range,
            growth_trend=growth_trend
        )

    def spectral_shape(self, energy_bands: np.ndarray, rms: float) -> np.ndarray:
        """
        Compact spectral fingerprint.

        Element 0 is the overall RMS; the rest are the leading DCT-II
        coefficients of the log-compressed band energies.
        """
        return spectral_fingerprint(energy_bands, rms, self.n_coefficients)

    @staticmethod
    def frame_rms(samples: np.ndarray, frame_length: int) -> np.ndarray:
        """RMS of consecutive non-overlapping frames (partial tail dropped)."""
        if samples.size < frame_length:
            return np.zeros(0)
        return librosa.feature.rms(
            y=samples,
            frame_length=frame_length,
            hop_length=frame_length,
            center=False
        )[0]


def spectral_fingerprint(
    energy_bands: np.ndarray,
    rms: float,
    n_coefficients: int = N_COEFFICIENTS
) -> np.ndarray:
    """Shared by the extractor and the reference profile table."""
    log_bands = np.log1p(np.asarray(energy_bands, dtype=np.float64))
    cepstrum = dct(log_bands, type=2, norm='ortho')
    shape = np.zeros(n_coefficients)
    shape[0] = rms
    count = min(n_coefficients - 1, cepstrum.size)
    shape[1:1 + count] = cepstrum[:count]
    return shape


def create_feature_extractor(config: Optional[Dict[str, Any]] = None) -> FeatureExtractor:
    """
    Factory function to create FeatureExtractor with configuration.

    Args:
        config: Optional ``features`` configuration section

    Returns:
        FeatureExtractor: Configured extractor
    """
    if config is None:
        config = {}

    return FeatureExtractor(
        n_fft=config.get('n_fft', N_FFT),
        hop_length=config.get('hop_length', HOP_LENGTH),
        n_bands=config.get('n_bands', N_BANDS),
        n_coefficients=config.get('n_coefficients', N_COEFFICIENTS),
        rhythm_frame_length=config.get('rhythm_frame_length', RHYTHM_FRAME_LENGTH),
        intensity_frame_length=config.get('intensity_frame_length', INTENSITY_FRAME_LENGTH),
        peak_threshold=config.get('peak_threshold', PEAK_THRESHOLD)
    )
