"""Value types shared by every stage of the pipeline.

- Waveform: uniformly sampled signal with its sampling rate
- Events: beat sample indices
- RRSeries: beat-to-beat intervals in seconds

Instances are immutable; the arrays they carry are marked read-only.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Union

import numpy as np

ArrayLike = Union[np.ndarray, Iterable[float]]


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded away from zero (62.5 -> 63)."""
    return int(np.sign(value) * np.floor(abs(value) + 0.5))


def seconds_to_samples(seconds: float, fs: float) -> int:
    """Sample count for a duration, never below 1."""
    return max(1, round_half_up(seconds * fs))


def _frozen_array(values, dtype) -> np.ndarray:
    if not isinstance(values, np.ndarray):
        values = list(values)
    arr = np.array(values, dtype=dtype).reshape(-1)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Waveform:
    """Uniformly sampled waveform."""
    fs: float            # Sampling rate (Hz)
    samples: np.ndarray  # Float samples

    def __post_init__(self):
        fs = float(self.fs)
        if not np.isfinite(fs) or fs <= 0:
            raise ValueError(f"Sampling rate must be positive, got {self.fs!r}")
        object.__setattr__(self, "fs", fs)
        object.__setattr__(self, "samples", _frozen_array(self.samples, np.float64))

    def __len__(self) -> int:
        return len(self.samples)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Waveform):
            return NotImplemented
        return self.fs == other.fs and np.array_equal(self.samples, other.samples)

    @property
    def n_samples(self) -> int:
        """Number of samples."""
        return len(self.samples)

    @property
    def duration_seconds(self) -> float:
        """Total duration in seconds."""
        return len(self.samples) / self.fs

    def to_dict(self) -> Dict[str, Any]:
        return {"fs": self.fs, "samples": self.samples.tolist()}


@dataclass(frozen=True, eq=False)
class Events:
    """Point events on the sample axis (e.g. R-peak indices)."""
    indices: np.ndarray

    def __post_init__(self):
        arr = self.indices
        if not isinstance(arr, np.ndarray):
            arr = np.asarray(list(arr))
        if arr.size and np.any(arr < 0):
            raise ValueError("Event indices must be non-negative")
        object.__setattr__(self, "indices", _frozen_array(arr, np.int64))

    @classmethod
    def from_indices(cls, indices: Iterable[int]) -> "Events":
        return cls(np.fromiter((int(i) for i in indices), dtype=np.int64))

    def __len__(self) -> int:
        return len(self.indices)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Events):
            return NotImplemented
        return np.array_equal(self.indices, other.indices)

    def times(self, fs: float) -> np.ndarray:
        """Event times in seconds."""
        return self.indices / float(fs)

    def to_dict(self) -> Dict[str, List[int]]:
        return {"indices": self.indices.tolist()}


@dataclass(frozen=True, eq=False)
class RRSeries:
    """RR intervals in seconds."""
    rr: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "rr", _frozen_array(self.rr, np.float64))

    @classmethod
    def from_events(cls, events: Events, fs: float) -> "RRSeries":
        """Consecutive index differences divided by ``fs``."""
        if len(events) < 2:
            return cls(np.array([], dtype=np.float64))
        return cls(np.diff(events.indices).astype(np.float64) / float(fs))

    def __len__(self) -> int:
        return len(self.rr)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RRSeries):
            return NotImplemented
        return np.array_equal(self.rr, other.rr)

    def to_dict(self) -> Dict[str, List[float]]:
        return {"rr": self.rr.tolist()}
