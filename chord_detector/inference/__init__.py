"""Inference layer - Musical understanding of detected peaks.

This layer turns notes into harmony:
- Chord template matching with bass-note priority
- The full spectrum-to-chord detection pipeline

Pipeline: Peaks → Notes → Chord template search → ChordResult
"""

from .chords import (
    CHORD_TEMPLATES,
    ChordMatch,
    ChordMatcher,
    ChordMatcherConfig,
    ChordTemplate,
    identify_chord,
)
from .detector import ChordDetector, ChordResult, EMPTY_RESULT, detect_chord

__all__ = [
    # Chord matching
    "CHORD_TEMPLATES",
    "ChordMatch",
    "ChordMatcher",
    "ChordMatcherConfig",
    "ChordTemplate",
    "identify_chord",
    # Detection pipeline
    "ChordDetector",
    "ChordResult",
    "EMPTY_RESULT",
    "detect_chord",
]
