"""Audio loading for offline chord detection."""

import numpy as np
import librosa
from pathlib import Path
from typing import Tuple, Optional

from ..core.constants import DEFAULT_SR


class AudioLoader:
    """Load recordings as mono float arrays at a fixed sample rate."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a"}

    def __init__(
        self,
        target_sr: Optional[int] = DEFAULT_SR,
        mono: bool = True,
        normalize: bool = True,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Sample rate to resample to (None keeps the file's rate)
            mono: Mix down to mono if True
            normalize: Peak-normalize to [-1, 1] if True
        """
        self.target_sr = target_sr
        self.mono = mono
        self.normalize = normalize

    def load(self, path: str) -> Tuple[np.ndarray, int]:
        """
        Load a recording.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (audio array, sample rate)

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format not supported
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        audio, sr = librosa.load(str(path), sr=self.target_sr, mono=self.mono)

        if self.normalize:
            peak = np.abs(audio).max() if audio.size else 0.0
            if peak > 0:
                audio = audio / peak

        return audio, int(sr)

    def get_duration(self, audio: np.ndarray, sr: int) -> float:
        """Get duration in seconds."""
        return audio.shape[-1] / sr
