"""Chord Detector - Real-time chord recognition from magnitude spectra.

Architecture Layers:
    1. core/       - Note and pitch-class types, 12-TET frequency mapping
    2. input/      - Recording loading for offline analysis
    3. analysis/   - Byte spectra and spectrum peak finding
    4. inference/  - Chord template matching and the detection pipeline
    5. processing/ - Chord history and timelines across frames
"""

__version__ = "0.3.0"

# Core types
from .core import Note, PitchClass, Spelling, closest_note

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import ByteSpectrumAnalyzer, PeakFinder, PeakFinderConfig, find_peaks

# Inference layer
from .inference import (
    ChordDetector,
    ChordMatcher,
    ChordMatcherConfig,
    ChordResult,
    detect_chord,
    identify_chord,
)

# Processing layer
from .processing import ChordHistory, build_timeline

__all__ = [
    # Core
    "Note",
    "PitchClass",
    "Spelling",
    "closest_note",
    # Input
    "AudioLoader",
    # Analysis
    "ByteSpectrumAnalyzer",
    "PeakFinder",
    "PeakFinderConfig",
    "find_peaks",
    # Inference
    "ChordDetector",
    "ChordMatcher",
    "ChordMatcherConfig",
    "ChordResult",
    "detect_chord",
    "identify_chord",
    # Processing
    "ChordHistory",
    "build_timeline",
]
