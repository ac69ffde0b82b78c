"""
HRV (Heart Rate Variability) analysis module.

Provides:
- RR interval derivation from beat indices
- Time-domain HRV metrics (AVNN, SDNN, RMSSD, pNN50)
- Small RR summaries used by dashboards (mean RR, heart rate, histogram)

RR intervals are in seconds and pNN50 is a fraction in [0, 1].
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple

import numpy as np

from .config import Config, default_config
from .signal import Events, RRSeries


@dataclass(frozen=True)
class HRVTime:
    """Time-domain HRV metrics."""
    n: int         # Number of RR intervals
    avnn: float    # Mean RR interval (s)
    sdnn: float    # Sample standard deviation of RR (s)
    rmssd: float   # Root mean square of successive differences (s)
    pnn50: float   # Fraction of successive differences > 50 ms

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def derive_rr(events: Events, fs: float) -> RRSeries:
    """
    Convert consecutive beat indices into RR intervals.

    Parameters
    ----------
    events : Events
        Beat sample indices.
    fs : float
        Sampling frequency in Hz.

    Returns
    -------
    RRSeries
        ``len(events) - 1`` intervals in seconds (empty for fewer than 2 beats).
    """
    return RRSeries.from_events(events, fs)


def _sample_sdnn(rr: np.ndarray) -> float:
    if rr.size < 2:
        return 0.0
    return float(np.std(rr, ddof=1))


def hrv_time(rr: RRSeries, config: Config = default_config) -> HRVTime:
    """
    Compute time-domain HRV metrics.

    Parameters
    ----------
    rr : RRSeries
        RR intervals in seconds.
    config : Config
        Pipeline configuration (pNN50 threshold).

    Returns
    -------
    HRVTime
        Metrics; variance-based fields are 0 for fewer than 2 intervals.
    """
    values = np.asarray(rr.rr, dtype=np.float64)
    n = int(values.size)

    avnn = float(np.mean(values)) if n > 0 else 0.0
    sdnn = _sample_sdnn(values)

    if n > 1:
        diff_rr = np.diff(values)
        rmssd = float(np.sqrt(np.sum(diff_rr ** 2) / (n - 1)))
        pnn50 = float(np.sum(np.abs(diff_rr) > config.PNN50_THRESHOLD_S) / (n - 1))
    else:
        rmssd = 0.0
        pnn50 = 0.0

    return HRVTime(n=n, avnn=avnn, sdnn=sdnn, rmssd=rmssd, pnn50=pnn50)


def average_rr(rr: RRSeries) -> Optional[float]:
    """Mean RR interval in seconds, or None for an empty series."""
    if len(rr) == 0:
        return None
    return float(np.mean(rr.rr))


def heart_rate_from_rr(rr: RRSeries) -> Optional[float]:
    """Mean heart rate in bpm (60 / mean RR)."""
    mean = average_rr(rr)
    if mean is None or mean <= 0:
        return None
    return 60.0 / mean


def rr_histogram(rr: RRSeries, bins: int) -> Optional[List[Tuple[float, float]]]:
    """
    RR distribution as (bin_center, fraction) pairs.

    Returns None when there is nothing to bin (empty series, ``bins == 0``
    or a constant series).
    """
    if len(rr) == 0 or bins <= 0:
        return None
    values = np.asarray(rr.rr, dtype=np.float64)
    lo = float(values.min())
    hi = float(values.max())
    if abs(hi - lo) < np.finfo(float).eps:
        return None

    width = (hi - lo) / bins
    idx = np.floor((values - lo) / width).astype(int)
    idx = np.clip(idx, 0, bins - 1)
    counts = np.bincount(idx, minlength=bins)
    total = counts.sum()

    return [
        (lo + width * (i + 0.5), float(count) / total)
        for i, count in enumerate(counts.tolist())
    ]
