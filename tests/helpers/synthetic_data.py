"""
Synthetic test data generators for beat waveforms and RR series.

Provides functions to generate controlled, reproducible test data for unit testing.
"""

from pathlib import Path
from typing import Iterable, Optional

import numpy as np

# RR sequence (s) used by the beat recovery tests
PERIODIC_RR = [0.82, 0.78, 0.80, 0.79, 0.83, 0.77, 0.84, 0.88]

# RR sequence (s) used by the frequency and nonlinear regression tests
REGRESSION_RR = [
    0.82, 0.78, 0.80, 0.79, 0.83, 0.77, 0.84, 0.88, 0.86, 0.81,
    0.79, 0.82, 0.85, 0.78, 0.80, 0.79, 0.83, 0.84, 0.82, 0.81,
]


def beat_times_from_rr(rr: Iterable[float], first_beat: float = 0.5) -> np.ndarray:
    """Beat times (s): ``first_beat`` followed by the cumulative RR sums."""
    rr = np.asarray(list(rr), dtype=np.float64)
    return first_beat + np.concatenate([[0.0], np.cumsum(rr)])


def generate_pulse_train(
    beat_times: Iterable[float],
    fs: float = 250.0,
    duration: Optional[float] = None,
    amplitude: float = 1.0,
    width: float = 0.01,
    baseline: float = 0.0,
    noise_std: float = 0.0,
    seed: int = 0,
) -> np.ndarray:
    """
    Generate a train of narrow Gaussian pulses (R-wave surrogate).

    Args:
        beat_times: Pulse centres in seconds
        fs: Sample rate in Hz
        duration: Total length in seconds (default: last beat + 0.5 s)
        amplitude: Pulse height
        width: Gaussian sigma in seconds
        baseline: Constant offset
        noise_std: Standard deviation of additive white noise
        seed: RNG seed for the noise

    Returns:
        Sample array
    """
    beat_times = np.asarray(list(beat_times), dtype=np.float64)
    if duration is None:
        duration = float(beat_times[-1]) + 0.5 if beat_times.size else 1.0

    n_samples = int(round(duration * fs))
    t = np.arange(n_samples) / fs

    samples = np.full(n_samples, float(baseline))
    for centre in beat_times:
        samples += amplitude * np.exp(-0.5 * ((t - centre) / width) ** 2)

    if noise_std > 0:
        rng = np.random.default_rng(seed)
        samples += rng.normal(0.0, noise_std, n_samples)

    return samples


def write_series(path: Path, values: Iterable[float], header: Optional[str] = None) -> Path:
    """Write one value per line, optionally preceded by a ``#`` comment."""
    lines = []
    if header is not None:
        lines.append(f"# {header}")
    lines.extend(repr(float(v)) for v in values)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
