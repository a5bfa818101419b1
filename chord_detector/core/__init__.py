"""Core types and constants for Chord Detector."""

from .note import (
    Note,
    PitchClass,
    Spelling,
    UNKNOWN_NOTE,
    closest_note,
    midi_to_freq,
)
from .constants import (
    PITCH_NAMES,
    SHARP_NAMES,
    FLAT_NAMES,
    A4_FREQUENCY,
    DEFAULT_SR,
    DEFAULT_FFT_SIZE,
)

__all__ = [
    "Note",
    "PitchClass",
    "Spelling",
    "UNKNOWN_NOTE",
    "closest_note",
    "midi_to_freq",
    "PITCH_NAMES",
    "SHARP_NAMES",
    "FLAT_NAMES",
    "A4_FREQUENCY",
    "DEFAULT_SR",
    "DEFAULT_FFT_SIZE",
]
