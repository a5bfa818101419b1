"""Analysis layer - Low-level spectrum analysis.

This layer works on raw spectra:
- Byte spectra from recordings (analyser node behaviour)
- Peak finding with harmonic suppression
"""

from .spectrum import ByteSpectrumAnalyzer, SpectrumFrame
from .peaks import Peak, PeakFinder, PeakFinderConfig, find_peaks

__all__ = [
    "ByteSpectrumAnalyzer",
    "SpectrumFrame",
    "Peak",
    "PeakFinder",
    "PeakFinderConfig",
    "find_peaks",
]
