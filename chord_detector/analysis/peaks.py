"""Spectrum peak finding - locate fundamental frequencies in a byte spectrum.

Works on a single magnitude-spectrum snapshot (values 0-255, one per FFT bin):
- Band limiting to guitar/voice fundamentals
- Moving-average smoothing against single-bin noise
- Frequency-dependent amplitude threshold
- Parabolic interpolation for sub-bin precision
- Semitone-spaced deduplication
- Harmonic (overtone) suppression
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.constants import (
    DEFAULT_MAX_PEAKS,
    MAX_FREQUENCY,
    MIN_FREQUENCY,
    SILENCE_THRESHOLD,
)


@dataclass
class PeakFinderConfig:
    """Configuration for spectrum peak finding.

    Attributes:
        min_frequency: Lower edge of the search band in Hz (default: 80)
        max_frequency: Upper edge of the search band in Hz (default: 1200)
        smoothing_radius: Half-width of the moving average in bins (default: 3)
        silence_threshold: Mean band magnitude below which the frame is silent (default: 10)
        threshold_floor: Amplitude threshold reached at high frequencies (default: 15)
        threshold_boost: Extra threshold applied at the bottom of the band (default: 30)
        threshold_decay: Decay length of the boost, in multiples of the lowest band bin (default: 2)
        min_separation_semitones: Minimum pitch distance between peaks (default: 1.0)
        harmonic_tolerance: Relative deviation accepted as a harmonic (default: 0.03)
        harmonic_ratios: Integer multiples checked for overtones (default: 2-4)
        max_peaks: Maximum number of peaks returned (default: 6)
    """

    min_frequency: float = MIN_FREQUENCY
    max_frequency: float = MAX_FREQUENCY
    smoothing_radius: int = 3
    silence_threshold: float = SILENCE_THRESHOLD
    threshold_floor: float = 15.0
    threshold_boost: float = 30.0
    threshold_decay: float = 2.0
    min_separation_semitones: float = 1.0
    harmonic_tolerance: float = 0.03
    harmonic_ratios: Tuple[int, ...] = (2, 3, 4)
    max_peaks: int = DEFAULT_MAX_PEAKS


@dataclass(frozen=True)
class Peak:
    """A spectral peak."""

    frequency: float  # Refined frequency in Hz
    magnitude: int  # Raw spectrum value at the peak bin
    bin: int  # Bin the peak was refined around


class PeakFinder:
    """Find the most salient fundamental frequencies in a magnitude spectrum.

    The finder holds only its configuration; every call works on the
    spectrum it is given and keeps nothing between calls.
    """

    def __init__(self, config: Optional[PeakFinderConfig] = None):
        self.config = config if config is not None else PeakFinderConfig()

    def find_peaks(
        self,
        spectrum: Sequence[float],
        sample_rate: float,
        fft_size: int,
        max_peaks: Optional[int] = None,
    ) -> List[float]:
        """
        Find peak frequencies, strongest first.

        Args:
            spectrum: Magnitude spectrum (0-255 per bin, length fft_size / 2)
            sample_rate: Sample rate in Hz
            fft_size: FFT size used to produce the spectrum
            max_peaks: Override for config.max_peaks

        Returns:
            Up to max_peaks frequencies in Hz
        """
        peaks = self.find_peak_details(spectrum, sample_rate, fft_size, max_peaks)
        return [p.frequency for p in peaks]

    def find_peak_details(
        self,
        spectrum: Sequence[float],
        sample_rate: float,
        fft_size: int,
        max_peaks: Optional[int] = None,
    ) -> List[Peak]:
        """Same as find_peaks, returning Peak values."""
        limit = self.config.max_peaks if max_peaks is None else max_peaks
        data = as_spectrum(spectrum)
        if data.size < 3 or limit <= 0:
            return []

        bin_size = bin_resolution(sample_rate, fft_size)
        if bin_size is None:
            return []

        min_bin, max_bin = self.band_bins(bin_size)
        start = max(min_bin, 1)
        stop = min(data.size - 1, max_bin)
        if stop <= start:
            return []

        if self.is_silent(data[start:stop]):
            return []

        smoothed = self.smooth(data)
        candidates = self._find_candidates(data, smoothed, start, stop, min_bin, bin_size)
        peaks = self._deduplicate(candidates)
        return self._suppress_harmonics(peaks, limit)

    def band_bins(self, bin_size: float) -> Tuple[int, int]:
        """Bin indices of the search band edges."""
        return (
            int(math.floor(self.config.min_frequency / bin_size)),
            int(math.floor(self.config.max_frequency / bin_size)),
        )

    def is_silent(self, band: np.ndarray) -> bool:
        """Check if the analysis band is mostly silent.

        The band is silent when its mean level is under the silence threshold
        and no single bin reaches the strictest peak threshold.
        """
        if band.size == 0:
            return True
        if float(np.mean(band)) >= self.config.silence_threshold:
            return False
        loudest = self.config.threshold_floor + self.config.threshold_boost
        return float(np.max(band)) < loudest

    def smooth(self, data: np.ndarray) -> np.ndarray:
        """
        Symmetric moving average.

        Bins closer than the radius to either end have no full window
        and are left at zero, so they never become candidates.
        """
        radius = self.config.smoothing_radius
        if radius <= 0:
            return data.copy()

        width = 2 * radius + 1
        smoothed = np.zeros_like(data)
        if data.size < width:
            return smoothed

        kernel = np.ones(width) / width
        smoothed[radius:data.size - radius] = np.convolve(data, kernel, mode="valid")
        return smoothed

    def threshold(self, bin_index: int, min_bin: int) -> float:
        """Amplitude threshold, higher in the strong low end of the band."""
        decay = max(min_bin, 1) * self.config.threshold_decay
        return self.config.threshold_floor + self.config.threshold_boost * math.exp(
            -bin_index / decay
        )

    def _find_candidates(
        self,
        data: np.ndarray,
        smoothed: np.ndarray,
        start: int,
        stop: int,
        min_bin: int,
        bin_size: float,
    ) -> List[Peak]:
        candidates = []

        for i in range(start, stop):
            value = smoothed[i]
            if value <= self.threshold(i, min_bin):
                continue
            # Strict local maximum; the raw level breaks ties on a flat top
            here = (value, data[i])
            left = (smoothed[i - 1], data[i - 1])
            right = (smoothed[i + 1], data[i + 1])
            if not (here > left and here > right):
                continue

            # Raw maximum next to the smoothed one
            peak_bin = i
            for j in (i - 1, i + 1):
                if data[j] > data[peak_bin]:
                    peak_bin = j

            frequency = (peak_bin + self._parabolic_offset(data, peak_bin)) * bin_size
            if frequency <= 0:
                continue
            candidates.append(Peak(
                frequency=frequency,
                magnitude=int(data[peak_bin]),
                bin=peak_bin,
            ))

        return candidates

    @staticmethod
    def _parabolic_offset(data: np.ndarray, peak_bin: int) -> float:
        """Sub-bin offset of the vertex through three raw samples, within +-0.5."""
        if peak_bin <= 0 or peak_bin >= data.size - 1:
            return 0.0

        alpha = data[peak_bin - 1]
        beta = data[peak_bin]
        gamma = data[peak_bin + 1]
        denominator = alpha - 2 * beta + gamma
        if denominator == 0:
            return 0.0

        offset = 0.5 * (alpha - gamma) / denominator
        return float(min(0.5, max(-0.5, offset)))

    def _deduplicate(self, candidates: List[Peak]) -> List[Peak]:
        """
        Keep the stronger of any two candidates closer than the minimum
        pitch separation.

        Candidates are visited strongest first, so every accepted peak is at
        least min_separation_semitones from every other; the result is
        ordered by descending magnitude.
        """
        ordered = sorted(candidates, key=lambda p: p.magnitude, reverse=True)
        accepted: List[Peak] = []

        for candidate in ordered:
            if all(
                semitone_distance(candidate.frequency, peak.frequency)
                >= self.config.min_separation_semitones
                for peak in accepted
            ):
                accepted.append(candidate)

        return accepted

    def _suppress_harmonics(self, peaks: List[Peak], limit: int) -> List[Peak]:
        """Drop peaks sitting on an overtone of a stronger, kept peak."""
        kept: List[Peak] = []

        for peak in peaks:
            if any(self._is_harmonic(peak, stronger) for stronger in kept):
                continue
            kept.append(peak)
            if len(kept) >= limit:
                break

        return kept

    def _is_harmonic(self, peak: Peak, fundamental: Peak) -> bool:
        for ratio in self.config.harmonic_ratios:
            expected = fundamental.frequency * ratio
            if abs(peak.frequency / expected - 1) < self.config.harmonic_tolerance:
                return True
        return False


def as_spectrum(spectrum: Sequence[float]) -> np.ndarray:
    """
    Coerce a spectrum to a clean float array.

    Non-numeric input becomes an empty array; NaN and negative values
    become 0 and values above 255 are clipped.
    """
    try:
        data = np.asarray(spectrum, dtype=np.float64).ravel()
    except (TypeError, ValueError):
        return np.zeros(0)
    data = np.nan_to_num(data, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(data, 0.0, 255.0)


def bin_resolution(sample_rate: float, fft_size: int) -> Optional[float]:
    """Width of one FFT bin in Hz, or None for unusable metadata."""
    try:
        sample_rate = float(sample_rate)
        fft_size = float(fft_size)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(sample_rate) and math.isfinite(fft_size)):
        return None
    if sample_rate <= 0 or fft_size <= 0:
        return None
    return sample_rate / fft_size


def semitone_distance(f1: float, f2: float) -> float:
    """Absolute distance between two frequencies in semitones."""
    return abs(12 * math.log2(f1 / f2))


_default_finder = PeakFinder()


def find_peaks(
    spectrum: Sequence[float],
    sample_rate: float,
    fft_size: int,
    max_peaks: int = DEFAULT_MAX_PEAKS,
) -> List[float]:
    """Find peak frequencies with the default configuration."""
    return _default_finder.find_peaks(spectrum, sample_rate, fft_size, max_peaks)
