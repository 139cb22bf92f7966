"""Shared fixtures for core pipeline tests."""

import io

import numpy as np
import pytest
import soundfile as sf

from cryinsight.core.models import AudioSample

SR = 22050
HUNGER_PITCH = 10 * SR / 512  # 430.7 Hz


# ---------------------------------------------------------------------------
# Signal builders
# ---------------------------------------------------------------------------


def make_tone(freq: float = 450.0, duration: float = 1.0, amplitude: float = 0.5, sr: int = SR) -> np.ndarray:
    """Pure sine tone."""
    t = np.arange(int(duration * sr)) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def make_hunger_cry(duration: float = 3.0, pitch: float = HUNGER_PITCH, sr: int = SR) -> np.ndarray:
    """
    Tone with regular bursts every 0.4 s that gets louder over time.

    Mimics the rhythmic, building pattern of a hungry cry. The default
    pitch fits a whole number of periods in each 512-sample frame.
    """
    t = np.arange(int(duration * sr)) / sr
    tone = np.sin(2 * np.pi * pitch * t)
    bursts = np.sin(np.pi * t / 0.4) ** 2
    ramp = np.linspace(0.4, 1.0, t.size)
    return (tone * bursts * ramp).astype(np.float32)


def to_wav_bytes(samples: np.ndarray, sr: int = SR, subtype: str = "PCM_16") -> bytes:
    """Encode samples as an in-memory WAV file."""
    buffer = io.BytesIO()
    sf.write(buffer, samples, sr, format="WAV", subtype=subtype)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hunger_samples():
    return make_hunger_cry()


@pytest.fixture
def hunger_wav(hunger_samples):
    """3 s WAV of the hunger-pattern signal."""
    return to_wav_bytes(hunger_samples)


@pytest.fixture
def silent_wav():
    """2 s WAV of digital silence."""
    return to_wav_bytes(np.zeros(2 * SR, dtype=np.float32))


@pytest.fixture
def garbage_bytes():
    """Bytes that no audio decoder accepts."""
    return b"this is definitely not an audio file" * 16


@pytest.fixture
def hunger_audio(hunger_samples):
    return AudioSample(samples=hunger_samples, sample_rate=SR, duration=3.0)


@pytest.fixture
def tone_audio():
    return AudioSample(samples=make_tone(duration=2.0), sample_rate=SR, duration=2.0)


@pytest.fixture
def seeded_rng():
    return np.random.default_rng(1234)
