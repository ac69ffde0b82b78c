"""
Nonlinear HRV metrics.

Provides:
- Poincaré plot dispersion (SD1, SD2)
- Sample entropy (m=2, r=0.2*SDNN)
- Detrended fluctuation analysis, short-term exponent (alpha1, scales 4-16 beats)
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Tuple

import numpy as np

from .config import Config, default_config
from .hrv import _sample_sdnn
from .signal import RRSeries


@dataclass(frozen=True)
class HRVNonlinear:
    """Nonlinear HRV metrics."""
    sd1: float           # Poincaré short-axis dispersion (s)
    sd2: float           # Poincaré long-axis dispersion (s)
    samp_entropy: float  # Sample entropy (dimensionless)
    dfa_alpha1: float    # Short-term DFA scaling exponent

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def poincare_sd1(rr_s: np.ndarray) -> float:
    """SD1 = sqrt(0.5 * population variance of successive differences)."""
    if rr_s.size < 2:
        return 0.0
    diffs = np.diff(rr_s)
    return float(np.sqrt(0.5 * np.var(diffs)))


def sample_entropy(data: np.ndarray, m: int, r: float) -> float:
    """
    Sample entropy with Chebyshev distance and strict ``< r`` matching.

    Templates start at 0..n-m-1 so that every length-m template also has a
    length-(m+1) extension. Pairs are compared row by row to keep memory
    linear in the series length.

    Returns 0 when the series is too short or either match count is 0.
    """
    n = int(data.size)
    if n <= m + 1:
        return 0.0

    templates = np.lib.stride_tricks.sliding_window_view(data, m + 1)  # (n - m, m + 1)
    count_m = 0
    count_m1 = 0
    for i in range(templates.shape[0] - 1):
        dist = np.abs(templates[i + 1:] - templates[i])
        match_m = dist[:, :m].max(axis=1) < r
        count_m += int(np.count_nonzero(match_m))
        count_m1 += int(np.count_nonzero(match_m & (dist[:, m] < r)))

    if count_m == 0 or count_m1 == 0:
        return 0.0
    return float(-np.log(count_m1 / count_m))


def _ols(x: np.ndarray, y: np.ndarray) -> Tuple[float, float]:
    """Ordinary least squares line; returns (slope, intercept)."""
    n = x.size
    sum_x = x.sum()
    sum_y = y.sum()
    denom = n * np.dot(x, x) - sum_x * sum_x
    if n < 2 or abs(denom) < np.finfo(float).eps:
        return 0.0, float(sum_y / n) if n else 0.0
    slope = (n * np.dot(x, y) - sum_x * sum_y) / denom
    return float(slope), float((sum_y - slope * sum_x) / n)


def dfa_alpha1(rr_s: np.ndarray, config: Config = default_config) -> float:
    """
    Short-term DFA exponent.

    The mean-centred RR series is integrated into a profile; for each window
    size the profile is cut into non-overlapping windows, each detrended by
    an OLS line, and the RMS residual is collected. alpha1 is the OLS slope
    of ln(rms) against ln(window).
    """
    min_window = config.DFA_MIN_WINDOW
    if rr_s.size < 2 * min_window:
        return 0.0

    profile = np.cumsum(rr_s - rr_s.mean())
    max_window = min(rr_s.size, config.DFA_MAX_WINDOW)

    scales: List[float] = []
    fluctuations: List[float] = []
    for window in range(min_window, max_window + 1):
        n_segments = profile.size // window
        if n_segments == 0:
            continue
        x = np.arange(window, dtype=np.float64)
        total = 0.0
        for k in range(n_segments):
            segment = profile[k * window:(k + 1) * window]
            slope, intercept = _ols(x, segment)
            residual = segment - (slope * x + intercept)
            total += float(np.dot(residual, residual)) / window
        rms = np.sqrt(total / n_segments)
        if np.isfinite(rms) and rms > 0:
            scales.append(float(window))
            fluctuations.append(float(rms))

    if len(scales) < 2:
        return 0.0

    log_n = np.log(scales)
    log_f = np.log(fluctuations)
    slope, _ = _ols(log_n, log_f)
    return slope


def hrv_nonlinear(rr: RRSeries, config: Config = default_config) -> HRVNonlinear:
    """
    Compute Poincaré, sample entropy and DFA metrics.

    Parameters
    ----------
    rr : RRSeries
        RR intervals in seconds.
    config : Config
        Pipeline configuration (sample entropy and DFA constants).

    Returns
    -------
    HRVNonlinear
        All fields are 0 for series too short to support them.
    """
    rr_s = np.asarray(rr.rr, dtype=np.float64)

    sd1 = poincare_sd1(rr_s)
    sdnn = _sample_sdnn(rr_s)
    sd2 = float(np.sqrt(max(0.0, 2.0 * sdnn * sdnn - sd1 * sd1)))

    r = config.SAMPEN_R_FACTOR * max(sdnn, config.SAMPEN_R_FLOOR)
    samp_entropy = sample_entropy(rr_s, config.SAMPEN_M, r)

    return HRVNonlinear(
        sd1=sd1,
        sd2=sd2,
        samp_entropy=samp_entropy,
        dfa_alpha1=dfa_alpha1(rr_s, config),
    )
