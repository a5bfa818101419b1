"""Chord matching - name the harmony implied by a handful of detected notes.

Implements weighted template matching:
- Chord templates as scale-degree formulas (root x quality search)
- Bass priority: lower notes weigh more and are tried as roots first
- Penalties for unexplained notes and missing root/third/fifth
- Deterministic tie-break on search order
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..core import Note, PitchClass
from ..core.constants import MIN_FREQUENCY


# Semitones above the root for each scale degree
DEGREE_SEMITONES: Dict[str, int] = {
    "1": 0,
    "b2": 1,
    "2": 2,
    "b3": 3,
    "3": 4,
    "4": 5,
    "b5": 6,
    "5": 7,
    "#5": 8,
    "6": 9,
    "b7": 10,
    "7": 11,
}

# Root, third (major or minor) and fifth
ESSENTIAL_DEGREES = frozenset({"1", "3", "b3", "5"})


@dataclass(frozen=True)
class ChordTemplate:
    """A chord quality and its scale-degree formula."""

    quality: str  # Symbol suffix: "" (major), "m", "7", ...
    degrees: Tuple[str, ...]

    @property
    def formula(self) -> str:
        """Formula string, e.g. '1-b3-5'."""
        return "-".join(self.degrees)

    @property
    def semitones(self) -> Tuple[int, ...]:
        return tuple(DEGREE_SEMITONES[d] for d in self.degrees)

    @property
    def essential_degrees(self) -> Tuple[str, ...]:
        return tuple(d for d in self.degrees if d in ESSENTIAL_DEGREES)

    def pitch_classes(self, root: int) -> Tuple[int, ...]:
        """Pitch classes of this chord built on root (0-11)."""
        return tuple((root + s) % 12 for s in self.semitones)


# Search order doubles as tie-break order
CHORD_TEMPLATES: Tuple[ChordTemplate, ...] = (
    ChordTemplate("", ("1", "3", "5")),
    ChordTemplate("m", ("1", "b3", "5")),
    ChordTemplate("7", ("1", "3", "5", "b7")),
    ChordTemplate("maj7", ("1", "3", "5", "7")),
    ChordTemplate("m7", ("1", "b3", "5", "b7")),
    ChordTemplate("dim", ("1", "b3", "b5")),
    ChordTemplate("aug", ("1", "3", "#5")),
    ChordTemplate("sus4", ("1", "4", "5")),
    ChordTemplate("sus2", ("1", "2", "5")),
    ChordTemplate("6", ("1", "3", "5", "6")),
    ChordTemplate("m6", ("1", "b3", "5", "6")),
)


@dataclass
class ChordMatcherConfig:
    """Configuration for chord matching.

    Attributes:
        min_weight_frequency: Frequency floor for note weights in Hz (default: 80)
        match_weight: Multiplier on the weight of a note the chord explains (default: 2.0)
        mismatch_penalty: Multiplier on the weight of an unexplained note (default: 0.5)
        missing_essential_penalty: Penalty per missing root/third/fifth (default: 2.0)
    """

    min_weight_frequency: float = MIN_FREQUENCY
    match_weight: float = 2.0
    mismatch_penalty: float = 0.5
    missing_essential_penalty: float = 2.0


@dataclass(frozen=True)
class ChordMatch:
    """Outcome of a chord search."""

    name: str  # Chord symbol, e.g. "Am"; "" when no notes
    formula: str  # e.g. "1-b3-5"; "1" for a single note
    score: Optional[float] = None  # None unless a template won
    root: Optional[str] = None
    quality: Optional[str] = None

    @property
    def is_template_match(self) -> bool:
        return self.score is not None


NO_MATCH = ChordMatch(name="", formula="")


@dataclass(frozen=True)
class _WeightedNote:
    pitch_class: PitchClass
    weight: float


class ChordMatcher:
    """Identify a chord from detected notes by weighted template matching.

    Every (root, quality) pair is scored as

        sum(match_weight * w for explained notes)
        - sum(mismatch_penalty * w for unexplained notes)
        - missing_essential_penalty * (missing root/third/fifth)

    with w = 1 / max(frequency, min_weight_frequency). A template needs at
    least min(2, len(formula)) explained notes to be considered. The first
    pair reaching the strictly highest score wins, so equal scores resolve
    by root order (lowest notes first) and then template order. Scores are
    compared exactly; nearly-equal scores are not ties.
    """

    def __init__(
        self,
        config: Optional[ChordMatcherConfig] = None,
        templates: Sequence[ChordTemplate] = CHORD_TEMPLATES,
    ):
        self.config = config if config is not None else ChordMatcherConfig()
        self.templates = tuple(templates)

    def identify(self, notes: Sequence[Note]) -> ChordMatch:
        """
        Identify the chord formed by notes.

        Args:
            notes: Detected notes (unknown notes are ignored)

        Returns:
            ChordMatch; NO_MATCH for no notes, the note's pitch class with
            formula "1" for a single note or when no template scores positive
        """
        known = [n for n in notes if n.pitch_class is not None]
        if not known:
            return NO_MATCH

        if len(known) == 1:
            return self._unison(known[0].pitch_class)

        weighted = self._weigh(known)
        best = self._search(weighted)
        if best is not None and best.score > 0:
            return best

        return self._unison(weighted[0].pitch_class)

    def _weigh(self, notes: List[Note]) -> List[_WeightedNote]:
        """Weight notes by inverse frequency, heaviest (lowest) first."""
        floor = self.config.min_weight_frequency
        weighted = [
            _WeightedNote(n.pitch_class, 1.0 / max(n.frequency, floor))
            for n in notes
        ]
        weighted.sort(key=lambda n: n.weight, reverse=True)
        return weighted

    @staticmethod
    def candidate_roots(weighted: Sequence[_WeightedNote]) -> List[PitchClass]:
        """Distinct root candidates in bass-first order."""
        roots: List[PitchClass] = []
        seen = set()
        for note in weighted:
            if note.pitch_class.index not in seen:
                seen.add(note.pitch_class.index)
                roots.append(note.pitch_class)
        return roots

    def _search(self, weighted: List[_WeightedNote]) -> Optional[ChordMatch]:
        best: Optional[ChordMatch] = None

        for root in self.candidate_roots(weighted):
            for spelling in root.spellings:
                for template in self.templates:
                    matched, score = self.score(weighted, root.index, template)
                    if matched < min(2, len(template.degrees)):
                        continue
                    if best is None or score > best.score:
                        best = ChordMatch(
                            name=spelling + template.quality,
                            formula=template.formula,
                            score=score,
                            root=spelling,
                            quality=template.quality,
                        )

        return best

    def score(
        self,
        weighted: Sequence[_WeightedNote],
        root: int,
        template: ChordTemplate,
    ) -> Tuple[int, float]:
        """
        Score one chord hypothesis.

        Returns:
            (number of explained notes, score)
        """
        expected = set(template.pitch_classes(root))
        present = {n.pitch_class.index for n in weighted}

        matched = 0
        score = 0.0
        for note in weighted:
            if note.pitch_class.index in expected:
                score += note.weight * self.config.match_weight
                matched += 1
            else:
                score -= note.weight * self.config.mismatch_penalty

        missing = sum(
            1 for degree in template.essential_degrees
            if (root + DEGREE_SEMITONES[degree]) % 12 not in present
        )
        score -= missing * self.config.missing_essential_penalty

        return matched, score

    @staticmethod
    def _unison(pitch_class: PitchClass) -> ChordMatch:
        return ChordMatch(name=pitch_class.name, formula="1")


_default_matcher = ChordMatcher()


def identify_chord(notes: Sequence[Note]) -> Dict[str, str]:
    """Identify a chord with the default configuration as {name, formula}."""
    match = _default_matcher.identify(notes)
    return {"name": match.name, "formula": match.formula}
