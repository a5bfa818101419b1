"""Chord detection pipeline - spectrum snapshot in, chord result out.

Pipeline: spectrum -> PeakFinder -> closest_note -> ChordMatcher -> ChordResult

Detection never raises: silence, missing peaks and unusable input all come
back as ordinary results, so a real-time loop can call it once per frame.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core import Note, closest_note
from ..analysis.peaks import PeakFinder, PeakFinderConfig, bin_resolution
from .chords import ChordMatcher, ChordMatcherConfig


@dataclass(frozen=True)
class ChordResult:
    """Detected chord for one analysis frame.

    notes[i] is the note closest to frequencies[i].
    """

    name: str  # "" when nothing was detected
    formula: str
    notes: Tuple[Note, ...] = field(default_factory=tuple)
    frequencies: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.name == ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "name": self.name,
            "formula": self.formula,
            "notes": [
                {
                    "name": n.name,
                    "octave": n.octave,
                    "frequency": n.frequency,
                    "cents": n.cents,
                }
                for n in self.notes
            ],
            "frequencies": list(self.frequencies),
        }


EMPTY_RESULT = ChordResult(name="", formula="")


class ChordDetector:
    """Detect the chord (or single note) sounding in a magnitude spectrum.

    Holds only immutable configuration, so one instance can serve any
    number of callers; concurrent callers just need their own spectrum
    buffers.
    """

    def __init__(
        self,
        peak_config: Optional[PeakFinderConfig] = None,
        matcher_config: Optional[ChordMatcherConfig] = None,
    ):
        self.peak_finder = PeakFinder(peak_config)
        self.matcher = ChordMatcher(matcher_config)

    def detect_chord(
        self,
        spectrum: Sequence[float],
        sample_rate: float,
        fft_size: int,
    ) -> ChordResult:
        """
        Detect the chord in one spectrum snapshot.

        Args:
            spectrum: Magnitude spectrum (0-255 per bin, length fft_size / 2)
            sample_rate: Sample rate in Hz
            fft_size: FFT size used to produce the spectrum

        Returns:
            ChordResult; EMPTY_RESULT for silence or unusable input
        """
        if bin_resolution(sample_rate, fft_size) is None:
            warnings.warn(
                f"Cannot detect chords with sample_rate={sample_rate!r}, "
                f"fft_size={fft_size!r}"
            )
            return EMPTY_RESULT

        frequencies = self.peak_finder.find_peaks(spectrum, sample_rate, fft_size)
        if not frequencies:
            return EMPTY_RESULT

        notes = tuple(closest_note(f) for f in frequencies)
        match = self.matcher.identify(notes)

        return ChordResult(
            name=match.name,
            formula=match.formula,
            notes=notes,
            frequencies=tuple(frequencies),
        )


_default_detector = ChordDetector()


def detect_chord(
    spectrum: Sequence[float],
    sample_rate: float,
    fft_size: int,
) -> ChordResult:
    """Detect a chord with the default configuration."""
    return _default_detector.detect_chord(spectrum, sample_rate, fft_size)
