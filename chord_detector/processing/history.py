"""Chord history - debounce per-frame results into a readable log.

Detection is stateless and runs every frame; anything that needs memory
across frames lives here:
- ChordHistory: change log with a minimum interval between entries
- build_timeline: merge consecutive frames into chord segments
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..inference.detector import ChordResult


@dataclass
class HistoryEntry:
    """A logged chord change."""

    name: str
    time: float  # Seconds, on the caller's clock


class ChordHistory:
    """Keep the most recent chord changes, newest first."""

    def __init__(self, min_interval: float = 2.0, max_entries: int = 10):
        """
        Initialize ChordHistory.

        Args:
            min_interval: Minimum seconds between two logged chords
            max_entries: Number of entries kept
        """
        self.min_interval = min_interval
        self.max_entries = max_entries
        self._entries: List[HistoryEntry] = []
        self._last_name = ""
        self._last_time: Optional[float] = None

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def record(self, result: ChordResult, time: float) -> bool:
        """
        Offer a detection result to the log.

        Args:
            result: Detection result for this frame
            time: Frame time in seconds

        Returns:
            True if the chord was logged
        """
        if result.is_empty or result.name == self._last_name:
            return False
        if self._last_time is not None and time - self._last_time <= self.min_interval:
            return False

        self._last_name = result.name
        self._last_time = time
        self._entries.insert(0, HistoryEntry(name=result.name, time=time))
        del self._entries[self.max_entries:]
        return True

    def clear(self) -> None:
        """Forget all entries."""
        self._entries = []
        self._last_name = ""
        self._last_time = None


@dataclass
class ChordSegment:
    """A stretch of consecutive frames with the same chord."""

    name: str
    formula: str
    onset: float
    offset: float
    frames: int = 1

    @property
    def duration(self) -> float:
        return self.offset - self.onset

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "formula": self.formula,
            "onset": self.onset,
            "offset": self.offset,
            "frames": self.frames,
        }


def build_timeline(
    times: Sequence[float],
    results: Sequence[ChordResult],
    min_duration: float = 0.0,
) -> List[ChordSegment]:
    """
    Merge per-frame results into chord segments.

    A segment runs from its first frame to the start of the next frame with
    a different result (or to its own last frame at the end of input).
    Frames without a chord end the current segment and are not reported.

    Args:
        times: Frame times in seconds, ascending
        results: Detection result per frame
        min_duration: Segments shorter than this are dropped

    Returns:
        List of ChordSegment
    """
    segments: List[ChordSegment] = []
    current: Optional[ChordSegment] = None

    for time, result in zip(times, results):
        if current is not None and result.name == current.name:
            current.offset = time
            current.frames += 1
            continue

        if current is not None:
            current.offset = time
            segments.append(current)
            current = None

        if not result.is_empty:
            current = ChordSegment(
                name=result.name,
                formula=result.formula,
                onset=time,
                offset=time,
            )

    if current is not None:
        segments.append(current)

    return [s for s in segments if s.duration >= min_duration]
