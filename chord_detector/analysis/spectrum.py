"""Byte spectrum extraction - turn a recording into per-frame analyser spectra.

Reproduces what a browser analyser node hands to the detector each tick:
- Blackman-windowed FFT magnitude, scaled by 1 / fft_size
- Exponential smoothing across frames
- Decibel conversion mapped linearly onto 0-255
"""

from dataclasses import dataclass
from typing import Iterator, Optional

import librosa
import numpy as np

from ..core.constants import (
    ACTIVITY_RMS_THRESHOLD,
    BYTE_MAX,
    DEFAULT_FFT_SIZE,
    DEFAULT_MAX_DECIBELS,
    DEFAULT_MIN_DECIBELS,
    DEFAULT_SMOOTHING,
    SILENCE_THRESHOLD,
)


@dataclass
class SpectrumFrame:
    """One analysis tick of a recording."""

    time: float  # Centre of the analysis window in seconds
    magnitudes: np.ndarray  # uint8 spectrum, fft_size // 2 bins
    rms: float  # RMS amplitude of the time-domain window
    active: bool  # rms above the activity threshold
    frequency: Optional[float] = None  # Strongest bin in Hz, None when quiet


class ByteSpectrumAnalyzer:
    """Produce 0-255 magnitude spectra frame by frame."""

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        hop_length: Optional[int] = None,
        smoothing: float = DEFAULT_SMOOTHING,
        min_decibels: float = DEFAULT_MIN_DECIBELS,
        max_decibels: float = DEFAULT_MAX_DECIBELS,
        activity_threshold: float = ACTIVITY_RMS_THRESHOLD,
    ):
        """
        Initialize ByteSpectrumAnalyzer.

        Args:
            fft_size: FFT window size (spectra have fft_size // 2 bins)
            hop_length: Samples between frames (default: fft_size // 4)
            smoothing: Time constant of the smoothing across frames (0-1)
            min_decibels: Level mapped to 0
            max_decibels: Level mapped to 255
            activity_threshold: RMS amplitude above which audio counts as active
        """
        if fft_size < 2 or fft_size % 2:
            raise ValueError(f"fft_size must be an even number >= 2, got {fft_size}")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"smoothing must be in [0, 1), got {smoothing}")
        if max_decibels <= min_decibels:
            raise ValueError("max_decibels must be greater than min_decibels")
        if hop_length is not None and hop_length <= 0:
            raise ValueError(f"hop_length must be positive, got {hop_length}")

        self.fft_size = fft_size
        self.hop_length = hop_length or fft_size // 4
        self.smoothing = smoothing
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self.activity_threshold = activity_threshold

    @property
    def n_bins(self) -> int:
        return self.fft_size // 2

    def bin_resolution(self, sr: int) -> float:
        """Width of one bin in Hz."""
        return sr / self.fft_size

    def spectrogram(self, audio: np.ndarray) -> np.ndarray:
        """
        Compute the byte spectrogram of a recording.

        Args:
            audio: Mono audio array

        Returns:
            uint8 array [n_frames, fft_size // 2]
        """
        audio = self._pad(audio)
        stft = librosa.stft(
            audio,
            n_fft=self.fft_size,
            hop_length=self.hop_length,
            window="blackman",
            center=False,
        )
        magnitude = np.abs(stft[:self.n_bins]).T / self.fft_size

        smoothed = np.empty_like(magnitude)
        previous = np.zeros(self.n_bins)
        for i, frame in enumerate(magnitude):
            previous = self.smoothing * previous + (1.0 - self.smoothing) * frame
            smoothed[i] = previous

        return self.to_bytes(smoothed)

    def to_bytes(self, magnitude: np.ndarray) -> np.ndarray:
        """Map linear magnitudes onto 0-255 through the decibel window."""
        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(magnitude)
        scale = BYTE_MAX / (self.max_decibels - self.min_decibels)
        scaled = np.floor(scale * (decibels - self.min_decibels))
        scaled = np.nan_to_num(scaled, nan=0.0, neginf=0.0, posinf=float(BYTE_MAX))
        return np.clip(scaled, 0, BYTE_MAX).astype(np.uint8)

    def rms(self, audio: np.ndarray) -> np.ndarray:
        """RMS amplitude of each analysis window."""
        audio = self._pad(audio)
        return librosa.feature.rms(
            y=audio,
            frame_length=self.fft_size,
            hop_length=self.hop_length,
            center=False,
        )[0]

    def frames(self, audio: np.ndarray, sr: int) -> Iterator[SpectrumFrame]:
        """
        Iterate over analysis ticks of a recording.

        Args:
            audio: Mono audio array
            sr: Sample rate

        Yields:
            SpectrumFrame per hop
        """
        spectra = self.spectrogram(audio)
        levels = self.rms(audio)
        times = librosa.frames_to_time(
            np.arange(len(spectra)),
            sr=sr,
            hop_length=self.hop_length,
            n_fft=self.fft_size,
        )

        for time, magnitudes, level in zip(times, spectra, levels):
            yield SpectrumFrame(
                time=float(time),
                magnitudes=magnitudes,
                rms=float(level),
                active=self.is_active(level),
                frequency=self.dominant_frequency(magnitudes, sr),
            )

    def is_active(self, level: float) -> bool:
        """Check if an RMS level counts as audible signal."""
        return bool(level > self.activity_threshold)

    def dominant_frequency(
        self,
        magnitudes: np.ndarray,
        sr: int,
        min_level: float = SILENCE_THRESHOLD,
    ) -> Optional[float]:
        """
        Frequency of the strongest bin.

        Returns:
            Frequency in Hz, or None if the strongest bin is below min_level
        """
        magnitudes = np.asarray(magnitudes)
        if magnitudes.size == 0:
            return None
        index = int(np.argmax(magnitudes))
        if magnitudes[index] < min_level:
            return None
        return index * self.bin_resolution(sr)

    def _pad(self, audio: np.ndarray) -> np.ndarray:
        """Make sure at least one full window is available."""
        audio = np.asarray(audio, dtype=np.float32)
        if audio.ndim > 1:
            audio = librosa.to_mono(audio)
        if len(audio) < self.fft_size:
            audio = np.pad(audio, (0, self.fft_size - len(audio)))
        return audio
