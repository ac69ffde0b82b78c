"""
Signal quality index (SQI) module.

Provides:
- Kurtosis of the raw waveform (peaky ECG vs. flat/clipped signal)
- SNR against short-window local variance
- RR coefficient of variation
- Spectral entropy of the full-record spectrum
- Pulse spike ratio (abrupt sample-to-sample jumps)
- Combined accept/reject decision
"""

from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np
from scipy import stats

from .config import Config, default_config
from .signal import RRSeries, Waveform


@dataclass(frozen=True)
class SQIResult:
    """Signal quality indicators."""
    kurtosis: float
    snr: float
    rr_cv: float
    spectral_entropy: float  # bits
    ppg_spike_ratio: float

    def is_acceptable(self, config: Config = default_config) -> bool:
        """True when kurtosis, SNR and RR variability are all within limits."""
        return (
            self.kurtosis >= config.SQI_MIN_KURTOSIS
            and self.snr >= config.SQI_MIN_SNR
            and self.rr_cv <= config.SQI_MAX_RR_CV
        )

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def compute_kurtosis(waveform: Waveform) -> float:
    """
    Pearson kurtosis m4 / m2^2 with population moments.

    Returns 0 for empty or constant input, and for near-constant input where
    scipy reports the moments as lost to cancellation (NaN).
    """
    data = waveform.samples
    if data.size == 0 or np.var(data) == 0.0:
        return 0.0
    kurt = float(stats.kurtosis(data, fisher=False, bias=True))
    if not np.isfinite(kurt):
        return 0.0
    return kurt


def compute_snr(waveform: Waveform, config: Config = default_config) -> float:
    """
    Mean signal power over mean local variance.

    Local variance is the population variance of each complete,
    non-overlapping window of ``SQI_SNR_WINDOW`` samples; it is floored at
    ``SQI_NOISE_FLOOR``. Returns 0 when no complete window exists.
    """
    data = waveform.samples
    window = config.SQI_SNR_WINDOW
    n_windows = data.size // window
    if n_windows == 0:
        return 0.0

    signal_power = float(np.mean(data * data))
    blocks = data[:n_windows * window].reshape(n_windows, window)
    noise_power = max(float(np.mean(np.var(blocks, axis=1))), config.SQI_NOISE_FLOOR)
    return max(signal_power / noise_power, 0.0)


def compute_rr_cv(rr: RRSeries) -> float:
    """Population standard deviation of RR divided by mean RR."""
    if len(rr) == 0:
        return 0.0
    mean = float(np.mean(rr.rr))
    if mean == 0.0:
        return 0.0
    return float(np.std(rr.rr) / mean)


def compute_spectral_entropy(waveform: Waveform) -> float:
    """Shannon entropy (bits) of the normalized one-sided power spectrum."""
    data = waveform.samples
    if data.size == 0:
        return 0.0
    spectrum = np.fft.rfft(data)
    power = spectrum.real ** 2 + spectrum.imag ** 2
    if np.sum(power) == 0.0:
        return 0.0
    # zero-power bins contribute nothing
    return float(stats.entropy(power, base=2))


def compute_ppg_spike_ratio(waveform: Waveform, config: Config = default_config) -> float:
    """Fraction of |first differences| above mean + 2*std of |first differences|."""
    data = waveform.samples
    if data.size < 2:
        return 0.0
    diffs = np.abs(np.diff(data))
    sd = float(np.std(diffs))
    if sd == 0.0:
        return 0.0
    threshold = float(np.mean(diffs)) + config.SQI_SPIKE_SIGMA * sd
    return float(np.count_nonzero(diffs > threshold) / diffs.size)


def evaluate_sqi(
    waveform: Waveform,
    rr: RRSeries,
    config: Config = default_config,
) -> SQIResult:
    """
    Compute all signal quality indicators.

    Parameters
    ----------
    waveform : Waveform
        Raw (unfiltered) waveform.
    rr : RRSeries
        RR intervals derived from the waveform.
    config : Config
        Pipeline configuration.

    Returns
    -------
    SQIResult
        Indicators; every one resolves to 0 for degenerate input.
    """
    return SQIResult(
        kurtosis=compute_kurtosis(waveform),
        snr=compute_snr(waveform, config),
        rr_cv=compute_rr_cv(rr),
        spectral_entropy=compute_spectral_entropy(waveform),
        ppg_spike_ratio=compute_ppg_spike_ratio(waveform, config),
    )
