from dataclasses import dataclass, field

import numpy as np

from .errors import InvalidArgumentError


@dataclass
class Spectrogram:
    """
    Flat buffer of stacked frames.
    data: 1-D float32 array of length num_frames * frame_size.
    """
    data: np.ndarray
    frame_size: int

    def __post_init__(self):
        if isinstance(self.frame_size, bool) or not isinstance(self.frame_size, (int, np.integer)) \
                or self.frame_size <= 0:
            raise InvalidArgumentError(f"frame_size must be a positive int, but got {self.frame_size!r}")
        self.frame_size = int(self.frame_size)
        self.data = np.asarray(self.data, dtype=np.float32).ravel()
        if len(self.data) % self.frame_size != 0:
            raise InvalidArgumentError(
                f"Spectrogram length {len(self.data)} is not a multiple of frame_size {self.frame_size}")

    @property
    def num_frames(self) -> int:
        return len(self.data) // self.frame_size

    @classmethod
    def from_frames(cls, frames: np.ndarray) -> "Spectrogram":
        """Builds a spectrogram from a (num_frames, frame_size) array."""
        frames = np.asarray(frames, dtype=np.float32)
        if frames.ndim != 2:
            raise InvalidArgumentError(f"Expected a 2-D (num_frames, frame_size) array, got shape {frames.shape}")
        return cls(data=frames.reshape(-1), frame_size=frames.shape[1])

    def to_frames(self) -> np.ndarray:
        return self.data.reshape(self.num_frames, self.frame_size)


@dataclass
class Example:
    label: str
    spectrogram: Spectrogram = field(repr=False)
