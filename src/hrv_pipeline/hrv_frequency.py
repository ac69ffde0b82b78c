"""Welch-based HRV frequency analysis.

Approach:
- RR intervals (s) -> instantaneous heart rate (bpm) held on a uniform grid
- Hann-windowed segments with 50% overlap, one-sided periodograms averaged
- VLF/LF/HF band powers summed over the bins inside each half-open band

No detrending is applied, so the DC bin (mean heart rate) is part of
``total_power``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np
from scipy import signal

from .config import Config, default_config
from .signal import RRSeries, round_half_up


@dataclass(frozen=True)
class HRVPsd:
    """Welch PSD of the resampled heart rate plus derived band powers."""

    lf: float
    hf: float
    vlf: float
    lf_hf: float
    total_power: float
    points: Tuple[Tuple[float, float], ...] = ()  # (frequency Hz, power)

    @property
    def frequencies(self) -> np.ndarray:
        return np.array([f for f, _ in self.points], dtype=np.float64)

    @property
    def power(self) -> np.ndarray:
        return np.array([p for _, p in self.points], dtype=np.float64)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lf": self.lf,
            "hf": self.hf,
            "vlf": self.vlf,
            "lf_hf": self.lf_hf,
            "total_power": self.total_power,
            "points": [[f, p] for f, p in self.points],
        }


def _integrate_band(freqs: np.ndarray, power: np.ndarray, band: Tuple[float, float]) -> float:
    mask = (freqs >= band[0]) & (freqs < band[1])
    if not np.any(mask):
        return 0.0
    return float(np.sum(power[mask]))


def _rr_to_heart_rate_grid(rr_s: np.ndarray, fs_interp: float) -> np.ndarray:
    """Hold instantaneous heart rate (60 / RR) on a uniform ``fs_interp`` grid."""
    if rr_s.size == 0:
        return np.array([], dtype=np.float64)

    beat_times = np.cumsum(rr_s)
    n = int(math.ceil(beat_times[-1] * fs_interp))
    if n <= 0:
        return np.array([], dtype=np.float64)

    t = np.arange(n) / fs_interp
    # Interval whose end time is the first one at or after t
    idx = np.searchsorted(beat_times, t, side="left")
    idx = np.minimum(idx, rr_s.size - 1)
    held = rr_s[idx]

    heart_rate = np.full(n, 60.0)
    np.divide(60.0, held, out=heart_rate, where=held != 0.0)
    return heart_rate


def _periodic_hann(n: int) -> np.ndarray:
    """0.5 * (1 - cos(2*pi*k/n)), k = 0..n-1."""
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * np.arange(n) / n))


def welch_psd(
    x: np.ndarray,
    fs: float,
    *,
    config: Config = default_config,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Averaged one-sided periodogram with a periodic Hann window.

    Segments overlap by half and are not detrended. Each bin holds
    ``|X|^2 / N`` (doubled except DC and Nyquist), i.e. Welch's density
    rescaled by ``fs * sum(w^2) / N``.

    Parameters
    ----------
    x : np.ndarray
        Uniformly sampled signal.
    fs : float
        Sampling frequency of ``x`` in Hz.
    config : Config
        Segment length (HRV_SEGMENT_SEC) and its lower clamp.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        (frequencies, power); both empty when ``x`` is empty.
    """
    n = int(x.size)
    if n == 0:
        return np.array([], dtype=np.float64), np.array([], dtype=np.float64)

    nperseg = round_half_up(fs * config.HRV_SEGMENT_SEC)
    nperseg = min(max(nperseg, config.HRV_MIN_SEGMENT), n)
    step = max(1, nperseg // 2)

    taper = _periodic_hann(nperseg)
    window_energy = float(np.sum(taper ** 2))
    if window_energy == 0.0:
        # A one-sample Hann window is a single zero
        return np.fft.rfftfreq(nperseg, d=1.0 / fs), np.zeros(nperseg // 2 + 1)

    freqs, density = signal.welch(
        x,
        fs=fs,
        window=taper,
        nperseg=nperseg,
        noverlap=nperseg - step,
        detrend=False,
        scaling="density",
    )
    power = density * (fs * window_energy / nperseg)
    return freqs, power


def hrv_psd(
    rr: RRSeries,
    fs_interp: float = 4.0,
    config: Config = default_config,
) -> HRVPsd:
    """Compute the Welch PSD of an RR series and its VLF/LF/HF band powers.

    Notes
    -----
    - Empty RR input yields empty ``points`` and zero powers.
    - ``lf_hf`` is 0 when HF power is 0.
    """
    rr_s = np.asarray(rr.rr, dtype=np.float64)
    heart_rate = _rr_to_heart_rate_grid(rr_s, fs_interp)
    freqs, power = welch_psd(heart_rate, fs_interp, config=config)

    vlf = _integrate_band(freqs, power, config.VLF_BAND)
    lf = _integrate_band(freqs, power, config.LF_BAND)
    hf = _integrate_band(freqs, power, config.HF_BAND)
    total_power = float(np.sum(power)) if power.size else 0.0
    lf_hf = lf / hf if hf > 0 else 0.0

    return HRVPsd(
        lf=lf,
        hf=hf,
        vlf=vlf,
        lf_hf=float(lf_hf),
        total_power=total_power,
        points=tuple((float(f), float(p)) for f, p in zip(freqs, power)),
    )
