"""
Signal conditioning for beat detection.

Cascades single-pole high-pass and low-pass filters, a first difference,
squaring and a moving-window integrator to produce a beat-emphasizing
envelope. Every stage is causal: output at index i depends only on inputs
at indices <= i.
"""

import logging
from dataclasses import dataclass

import numpy as np
from scipy import signal

from .config import DetectorConfig, default_detector_config
from .signal import Waveform, seconds_to_samples

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ConditionedSignal:
    """Output of :func:`condition_signal`."""
    bandpassed: np.ndarray  # High/low-pass filtered waveform (unsquared)
    envelope: np.ndarray    # Integrated squared derivative


def _rc(cutoff_hz: float) -> float:
    return 1.0 / (2.0 * np.pi * cutoff_hz)


def _stage_enabled(cutoff_hz: float, fs: float) -> bool:
    return 0.0 < cutoff_hz < fs / 2.0


def highpass_filter(x: np.ndarray, fs: float, cutoff: float) -> np.ndarray:
    """
    Single-pole high-pass: y[i] = a * (y[i-1] + x[i] - x[i-1]).

    The filter starts at rest on the first sample, so a DC offset does not
    produce a start-up step.

    Parameters
    ----------
    x : np.ndarray
        Input samples.
    fs : float
        Sampling frequency in Hz.
    cutoff : float
        Corner frequency in Hz.

    Returns
    -------
    np.ndarray
        Filtered samples (same length as ``x``).
    """
    if x.size == 0:
        return np.asarray(x, dtype=np.float64)
    dt = 1.0 / fs
    rc = _rc(cutoff)
    alpha = rc / (rc + dt)
    b = np.array([alpha, -alpha])
    a = np.array([1.0, -alpha])
    # Transposed direct form state so that y[0] = a * (x[0] - x[0]) = 0
    zi = np.array([-alpha * x[0]])
    y, _ = signal.lfilter(b, a, x, zi=zi)
    return y


def lowpass_filter(x: np.ndarray, fs: float, cutoff: float) -> np.ndarray:
    """Single-pole low-pass: y[i] = y[i-1] + a * (x[i] - y[i-1]), y[-1] = 0."""
    if x.size == 0:
        return np.asarray(x, dtype=np.float64)
    dt = 1.0 / fs
    rc = _rc(cutoff)
    alpha = dt / (rc + dt)
    return signal.lfilter([alpha], [1.0, alpha - 1.0], x)


def moving_average(x: np.ndarray, window: int) -> np.ndarray:
    """Causal moving average; the first ``window - 1`` outputs see zero history."""
    window = max(1, int(window))
    if x.size == 0:
        return np.asarray(x, dtype=np.float64)
    return signal.lfilter(np.full(window, 1.0 / window), [1.0], x)


def bandpass(waveform: Waveform, config: DetectorConfig = default_detector_config) -> np.ndarray:
    """
    Apply the high-pass then low-pass stage.

    A stage is skipped when its cutoff is <= 0 or at/above Nyquist.
    """
    fs = waveform.fs
    x = np.array(waveform.samples, dtype=np.float64)

    if _stage_enabled(config.lowcut_hz, fs):
        x = highpass_filter(x, fs, config.lowcut_hz)
    else:
        logger.debug("High-pass stage skipped (cutoff=%s Hz, fs=%s Hz)", config.lowcut_hz, fs)

    if _stage_enabled(config.highcut_hz, fs):
        x = lowpass_filter(x, fs, config.highcut_hz)
    else:
        logger.debug("Low-pass stage skipped (cutoff=%s Hz, fs=%s Hz)", config.highcut_hz, fs)

    return x


def condition_signal(
    waveform: Waveform,
    config: DetectorConfig = default_detector_config,
) -> ConditionedSignal:
    """
    Produce the bandpassed waveform and its beat-emphasizing envelope.

    Parameters
    ----------
    waveform : Waveform
        Raw samples with sampling rate.
    config : DetectorConfig
        Cutoffs and integration window.

    Returns
    -------
    ConditionedSignal
        ``bandpassed`` (filtered, unsquared) and ``envelope``
        (moving average of the squared first difference).
    """
    if waveform.n_samples == 0:
        empty = np.array([], dtype=np.float64)
        return ConditionedSignal(bandpassed=empty, envelope=empty.copy())

    filtered = bandpass(waveform, config)

    # First difference, d[0] = 0
    derivative = np.diff(filtered, prepend=filtered[0])
    squared = derivative * derivative

    window = seconds_to_samples(config.integration_window_s, waveform.fs)
    envelope = moving_average(squared, window)

    return ConditionedSignal(bandpassed=filtered, envelope=envelope)
