"""
Signal decoder for CryInsight.

Turns a raw audio byte buffer into a mono AudioSample at the analysis
sample rate.
"""

import hashlib
import io
import logging
import math
import mimetypes
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import librosa
import numpy as np
import soundfile as sf

from cryinsight.core.models import AudioSample
from cryinsight.utils.errors import DecodeError, MetadataUnavailable


# Constants
MEDIA_TYPES: Dict[str, str] = {
    'audio/wav': '.wav',
    'audio/x-wav': '.wav',
    'audio/wave': '.wav',
    'audio/vnd.wave': '.wav',
    'audio/flac': '.flac',
    'audio/x-flac': '.flac',
    'audio/ogg': '.ogg',
    'audio/aiff': '.aiff',
    'audio/x-aiff': '.aiff',
    'audio/mpeg': '.mp3',
    'audio/mp3': '.mp3',
    'audio/mp4': '.m4a',
    'audio/x-m4a': '.m4a',
    'audio/webm': '.webm',
}

TARGET_SAMPLE_RATE: int = 22050  # Hz
DEFAULT_DURATION: float = 10.0  # seconds, used when metadata is missing
MAX_BYTES: int = 52428800  # 50 MB

logger = logging.getLogger(__name__)


class SignalDecoder:
    """
    Decodes audio buffers and creates AudioSample instances.

    Thread-safe and stateless - can be used concurrently.
    """

    def __init__(
        self,
        target_sr: int = TARGET_SAMPLE_RATE,
        default_duration: float = DEFAULT_DURATION,
        max_bytes: int = MAX_BYTES
    ):
        """
        Initialize decoder with configuration.

        Args:
            target_sr: Sample rate every decoded signal is resampled to
            default_duration: Duration reported when metadata is unavailable
            max_bytes: Largest buffer accepted
        """
        self.target_sr = target_sr
        self.default_duration = default_duration
        self.max_bytes = max_bytes

    def decode(self, data: bytes, media_type: Optional[str] = None) -> AudioSample:
        """
        Decode an audio buffer.

        Args:
            data: Raw bytes of an audio file
            media_type: Declared MIME type or file extension, sniffed if None

        Returns:
            AudioSample: Mono, resampled, immutable sample

        Raises:
            DecodeError: Buffer is empty, too large or not decodable audio
        """
        # Step 1: Validate buffer
        self._validate_buffer(data, media_type)

        # Step 2: Resolve container type
        suffix = self.resolve_suffix(data, media_type)

        # Step 3: Read duration metadata (non-fatal)
        try:
            duration = self._probe_metadata(data)
        except MetadataUnavailable as e:
            logger.warning(
                f"Duration metadata unavailable ({e}), "
                f"assuming {self.default_duration:.1f}s"
            )
            duration = self.default_duration

        # Step 4: Decode, down-mix and resample
        samples, sample_rate = self._load_samples(data, suffix, media_type)

        # Step 5: Validate decoded samples
        samples = self._validate_samples(samples, media_type)

        return AudioSample(
            samples=samples,
            sample_rate=sample_rate,
            duration=duration,
            media_type=media_type or suffix.lstrip('.'),
            source_hash=hashlib.sha256(data).hexdigest()
        )

    def probe_duration(self, data: bytes) -> float:
        """
        Best-effort duration of a buffer without decoding it.

        Returns the default duration when the buffer is unreadable.
        """
        try:
            return self._probe_metadata(data)
        except MetadataUnavailable as e:
            logger.debug(f"Duration probe failed: {e}")
            return self.default_duration

    def resolve_suffix(self, data: bytes, media_type: Optional[str] = None) -> str:
        """Map a declared media type to a file suffix, sniffing magic bytes otherwise."""
        if media_type:
            declared = media_type.split(';')[0].strip().lower()
            if declared in MEDIA_TYPES:
                return MEDIA_TYPES[declared]
            if declared.startswith('.'):
                return declared
            guessed = mimetypes.guess_extension(declared)
            if guessed:
                return guessed

        return sniff_suffix(data)

    def _validate_buffer(self, data: bytes, media_type: Optional[str]) -> None:
        if not data:
            raise DecodeError("Audio buffer is empty", media_type=media_type)

        if len(data) > self.max_bytes:
            raise DecodeError(
                f"Audio buffer too large: {len(data) / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_bytes / 1024 / 1024:.1f} MB",
                media_type=media_type
            )

    def _probe_metadata(self, data: bytes) -> float:
        """Read the container's declared duration."""
        try:
            with io.BytesIO(data) as buffer:
                info = sf.info(buffer)
        except Exception as e:
            raise MetadataUnavailable(f"Could not read metadata: {e}")

        duration = float(info.duration)
        if not math.isfinite(duration) or duration <= 0:
            raise MetadataUnavailable(f"Container reports duration {duration}")

        logger.debug(
            f"Container metadata: {info.samplerate} Hz, "
            f"{info.channels} ch, {info.subtype}, {duration:.2f}s"
        )
        return duration

    def _load_samples(
        self, data: bytes, suffix: str, media_type: Optional[str]
    ) -> Tuple[np.ndarray, int]:
        """Decode with soundfile, falling back to librosa/audioread via a temp file."""
        try:
            with io.BytesIO(data) as buffer:
                audio, sample_rate = sf.read(buffer, dtype='float32', always_2d=True)
            mono = np.mean(audio, axis=1)
        except Exception as e:
            logger.debug(f"soundfile could not decode buffer ({e}), trying librosa")
            mono, sample_rate = self._load_with_librosa(data, suffix, media_type)
            return mono, sample_rate

        if sample_rate != self.target_sr and mono.size > 0:
            mono = librosa.resample(mono, orig_sr=sample_rate, target_sr=self.target_sr)
            sample_rate = self.target_sr

        return mono.astype(np.float32), int(sample_rate)

    def _load_with_librosa(
        self, data: bytes, suffix: str, media_type: Optional[str]
    ) -> Tuple[np.ndarray, int]:
        # audioread needs a real path; the directory is removed on every exit path
        with tempfile.TemporaryDirectory(prefix="cryinsight-") as tmp_dir:
            path = Path(tmp_dir) / f"input{suffix or '.bin'}"
            path.write_bytes(data)
            try:
                mono, sample_rate = librosa.load(
                    str(path),
                    sr=self.target_sr,
                    mono=True,
                    dtype=np.float32
                )
            except Exception as e:
                raise DecodeError(
                    f"Failed to decode audio buffer: {e}",
                    media_type=media_type
                ) from e

        return mono, int(sample_rate)

    def _validate_samples(
        self, samples: np.ndarray, media_type: Optional[str]
    ) -> np.ndarray:
        """Validate decoded audio integrity."""
        if samples.size == 0:
            raise DecodeError("Decoded audio contains no samples", media_type=media_type)

        if not np.all(np.isfinite(samples)):
            raise DecodeError("Decoded audio contains non-finite samples", media_type=media_type)

        rms = float(np.sqrt(np.mean(samples.astype(np.float64) ** 2)))
        if rms < 1e-6:
            logger.warning("Audio appears to be silent")

        max_abs = float(np.max(np.abs(samples)))
        if max_abs > 1.0:
            logger.warning(f"Audio contains clipping (max: {max_abs:.2f}), normalizing")
            samples = samples / max_abs

        return samples


def sniff_suffix(data: bytes) -> str:
    """Guess a container suffix from the buffer's magic bytes."""
    head = data[:12]
    if head[:4] == b'RIFF' and head[8:12] == b'WAVE':
        return '.wav'
    if head[:4] == b'fLaC':
        return '.flac'
    if head[:4] == b'OggS':
        return '.ogg'
    if head[:4] == b'FORM' and head[8:12] in (b'AIFF', b'AIFC'):
        return '.aiff'
    if head[:3] == b'ID3' or (len(head) >= 2 and head[0] == 0xFF and head[1] & 0xE0 == 0xE0):
        return '.mp3'
    if head[4:8] == b'ftyp':
        return '.m4a'
    if head[:4] == b'\x1a\x45\xdf\xa3':
        return '.webm'
    return ''


def create_signal_decoder(config: Optional[Dict[str, Any]] = None) -> SignalDecoder:
    """
    Factory function to create SignalDecoder with configuration.

    Args:
        config: Optional ``decoder`` configuration section

    Returns:
        SignalDecoder: Configured decoder instance
    """
    if config is None:
        config = {}

    return SignalDecoder(
        target_sr=config.get('target_sample_rate', TARGET_SAMPLE_RATE),
        default_duration=config.get('default_duration', DEFAULT_DURATION),
        max_bytes=config.get('max_bytes', MAX_BYTES)
    )
