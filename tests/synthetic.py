"""Synthetic analyser spectra and audio for tests."""

import numpy as np

# 22 Hz per bin: 220 Hz -> bin 10, 440 Hz -> bin 20
SAMPLE_RATE = 45056
FFT_SIZE = 2048
BIN_SIZE = SAMPLE_RATE / FFT_SIZE

# Main lobe of a windowed sinusoid, normalised to its peak
LOBE = np.array([40, 120, 200, 255, 200, 120, 40]) / 255.0


def make_spectrum(peaks, n_bins: int = FFT_SIZE // 2, floor: float = 0.0) -> np.ndarray:
    """
    Build a byte spectrum with symmetric lobes.

    Args:
        peaks: Mapping of centre bin -> peak height (0-255)
        n_bins: Spectrum length
        floor: Constant background level
    """
    spectrum = np.full(n_bins, float(floor))
    half = len(LOBE) // 2
    for centre, height in peaks.items():
        spectrum[centre - half:centre + half + 1] += LOBE * height
    return np.clip(spectrum, 0, 255)


def generate_sine_wave(freq: float, duration: float, sr: int = 44100,
                       amplitude: float = 0.1) -> np.ndarray:
    """Generate a sine wave at given frequency."""
    t = np.linspace(0, duration, int(sr * duration), endpoint=False)
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)
