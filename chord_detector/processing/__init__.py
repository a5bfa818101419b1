"""Processing layer - Frame-level post-processing.

This layer turns per-frame detections into musical events:
- Debounced chord change history
- Chord timeline segments
"""

from .history import ChordHistory, HistoryEntry, ChordSegment, build_timeline

__all__ = [
    "ChordHistory",
    "HistoryEntry",
    "ChordSegment",
    "build_timeline",
]
