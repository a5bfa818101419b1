"""Note value types - pitch classes, spellings and frequency mapping."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .constants import (
    A4_FREQUENCY,
    A4_MIDI,
    A4_SEMITONES_FROM_C0,
    FLAT_NAMES,
    SHARP_NAMES,
)


class Spelling(Enum):
    """Which accidental to prefer when naming a black-key pitch class."""

    SHARP = "sharp"
    FLAT = "flat"


@dataclass(frozen=True)
class PitchClass:
    """One of the 12 equal-tempered pitch classes (0 = C)."""

    index: int
    preferred: Spelling = Spelling.SHARP

    @property
    def sharp_name(self) -> str:
        return SHARP_NAMES[self.index]

    @property
    def flat_name(self) -> str:
        return FLAT_NAMES[self.index]

    @property
    def is_natural(self) -> bool:
        return self.sharp_name == self.flat_name

    @property
    def spellings(self) -> Tuple[str, ...]:
        """Both spellings, preferred first (one entry for naturals)."""
        if self.is_natural:
            return (self.sharp_name,)
        if self.preferred is Spelling.FLAT:
            return (self.flat_name, self.sharp_name)
        return (self.sharp_name, self.flat_name)

    @property
    def name(self) -> str:
        return self.spellings[0]

    @property
    def alias(self) -> str:
        """Display form, e.g. 'C#/Db' or 'E'."""
        return "/".join(self.spellings)

    @classmethod
    def from_name(cls, name: str) -> "PitchClass":
        """Parse a spelled pitch class ('C', 'F#', 'Bb')."""
        if name in SHARP_NAMES:
            return cls(SHARP_NAMES.index(name), Spelling.SHARP)
        if name in FLAT_NAMES:
            return cls(FLAT_NAMES.index(name), Spelling.FLAT)
        raise ValueError(f"Unknown pitch class: {name!r}")


@dataclass(frozen=True)
class Note:
    """A detected note, retuned to its equal-tempered frequency."""

    pitch_class: Optional[PitchClass]
    octave: int
    frequency: float  # Exact 12-TET frequency in Hz
    cents: float = 0.0  # Deviation of the measured frequency

    @property
    def is_known(self) -> bool:
        return self.pitch_class is not None

    @property
    def name(self) -> str:
        """Pitch class alias (e.g. 'A#/Bb'), or 'Unknown'."""
        if self.pitch_class is None:
            return "Unknown"
        return self.pitch_class.alias

    @property
    def label(self) -> str:
        """Preferred spelling with octave (e.g. 'A4')."""
        if self.pitch_class is None:
            return "Unknown"
        return f"{self.pitch_class.name}{self.octave}"

    @property
    def midi(self) -> Optional[int]:
        if self.pitch_class is None:
            return None
        return (self.octave + 1) * 12 + self.pitch_class.index

    @classmethod
    def from_midi(cls, midi: int, preferred: Spelling = Spelling.SHARP) -> "Note":
        return cls(
            pitch_class=PitchClass(midi % 12, preferred),
            octave=midi // 12 - 1,
            frequency=midi_to_freq(midi),
        )

    @classmethod
    def from_name(cls, text: str) -> "Note":
        """Parse scientific pitch notation such as 'C4', 'F#3' or 'Bb-1'."""
        text = text.strip()
        split = 1
        if len(text) > 1 and text[1] in "#b":
            split = 2
        pitch_name = text[:1].upper() + text[1:split]
        try:
            octave = int(text[split:])
        except ValueError:
            raise ValueError(f"Invalid note name: {text!r}") from None
        pitch_class = PitchClass.from_name(pitch_name)
        return cls.from_midi((octave + 1) * 12 + pitch_class.index, pitch_class.preferred)


UNKNOWN_NOTE = Note(pitch_class=None, octave=0, frequency=0.0)


def midi_to_freq(midi: int) -> float:
    """Convert MIDI pitch to frequency (Hz)."""
    return A4_FREQUENCY * (2 ** ((midi - A4_MIDI) / 12.0))


def closest_note(frequency: float) -> Note:
    """
    Map a frequency to the nearest equal-tempered note.

    The semitone distance from A4 is rounded to the nearest integer; the
    returned note carries the exact 12-TET frequency of that semitone and
    the measured deviation in cents.

    Args:
        frequency: Frequency in Hz

    Returns:
        Note, or UNKNOWN_NOTE for non-positive or non-finite input
    """
    try:
        frequency = float(frequency)
    except (TypeError, ValueError):
        return UNKNOWN_NOTE
    if not math.isfinite(frequency) or frequency <= 0:
        return UNKNOWN_NOTE

    exact = 12 * math.log2(frequency / A4_FREQUENCY)
    semitones = int(round(exact))
    from_c0 = semitones + A4_SEMITONES_FROM_C0

    return Note(
        pitch_class=PitchClass(from_c0 % 12),
        octave=from_c0 // 12,
        frequency=A4_FREQUENCY * 2 ** (semitones / 12.0),
        cents=100.0 * (exact - semitones),
    )
