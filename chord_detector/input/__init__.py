"""Input layer - Recording loading."""

from .loader import AudioLoader

__all__ = ["AudioLoader"]
