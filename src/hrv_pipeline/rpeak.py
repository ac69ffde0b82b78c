"""Beat (R-peak) detection.

Adaptive threshold detector over the conditioned envelope, with a naive
moving-average peak picker used when the adaptive pass finds fewer than two
beats. Which of the two produced the result is decided here and is not
part of the returned ``Events``.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

from .config import (
    Config,
    DetectorConfig,
    default_config,
    default_detector_config,
)
from .preprocess import condition_signal, moving_average
from .signal import Events, Waveform, round_half_up, seconds_to_samples

logger = logging.getLogger(__name__)

# Exponential tracker weight for the newest envelope sample
LEVEL_UPDATE_WEIGHT = 0.125


class DetectorMethod(str, Enum):
    ADAPTIVE = "adaptive"
    FALLBACK = "fallback"


@dataclass
class _LevelTracker:
    """Running signal/noise levels of the envelope."""
    signal_level: float
    noise_level: float

    def threshold(self, scale: float) -> float:
        return self.noise_level + scale * max(0.0, self.signal_level - self.noise_level)

    def update_signal(self, value: float) -> None:
        self.signal_level = LEVEL_UPDATE_WEIGHT * value + (1.0 - LEVEL_UPDATE_WEIGHT) * self.signal_level

    def update_noise(self, value: float) -> None:
        self.noise_level = LEVEL_UPDATE_WEIGHT * value + (1.0 - LEVEL_UPDATE_WEIGHT) * self.noise_level


@dataclass(frozen=True)
class _DetectionResult:
    events: Events
    method_used: DetectorMethod


def detect(waveform: Waveform, min_rr_s: float) -> Events:
    """Detect beats with the default detector settings and the given refractory period."""
    return detect_with_config(waveform, default_detector_config.with_min_rr(min_rr_s))


def detect_with_config(
    waveform: Waveform,
    config: DetectorConfig = default_detector_config,
) -> Events:
    """Detect beats in ``waveform``.

    Parameters
    ----------
    waveform : Waveform
        Raw samples (ECG or pulsatile signal).
    config : DetectorConfig
        Conditioning, threshold and refractory settings.

    Returns
    -------
    Events
        Strictly increasing beat sample indices (possibly empty).
    """
    return _detect_beats(waveform, config).events


def _detect_beats(waveform: Waveform, config: DetectorConfig) -> _DetectionResult:
    if waveform.n_samples == 0:
        return _DetectionResult(Events.from_indices([]), DetectorMethod.ADAPTIVE)

    peaks = _adaptive_detection(waveform, config)
    if len(peaks) >= 2:
        logger.debug("Adaptive detector found %d beats", len(peaks))
        return _DetectionResult(Events(peaks), DetectorMethod.ADAPTIVE)

    logger.debug(
        "Adaptive detector found %d beat(s); using moving-average peak picker", len(peaks)
    )
    peaks = _fallback_detection(waveform, config.min_rr_s)
    return _DetectionResult(Events(peaks), DetectorMethod.FALLBACK)


def _adaptive_detection(waveform: Waveform, config: DetectorConfig) -> np.ndarray:
    """Condition the waveform and scan its envelope."""
    conditioned = condition_signal(waveform, config)
    return _scan_envelope(conditioned.envelope, conditioned.bandpassed, waveform.fs, config)


def _scan_envelope(
    envelope: np.ndarray,
    bandpassed: np.ndarray,
    fs: float,
    config: DetectorConfig,
) -> np.ndarray:
    """
    Single forward pass over the envelope with adaptive signal/noise levels.

    The refractory period is measured between threshold crossings; each
    crossing is refined to the band-passed maximum of the preceding
    ``search_back`` samples. Refined positions are only sorted and
    de-duplicated, so two of them may end up closer than the refractory
    period.
    """
    if envelope.size == 0:
        return np.array([], dtype=np.int64)

    refractory = seconds_to_samples(config.min_rr_s, fs)
    search_back = seconds_to_samples(config.search_back_s, fs)

    init_len = min(envelope.size, max(1, round_half_up(fs)))
    init_level = float(np.mean(envelope[:init_len]))
    tracker = _LevelTracker(signal_level=init_level, noise_level=0.5 * init_level)
    threshold = tracker.threshold(config.threshold_scale)

    positions: List[int] = []
    last_detection: Optional[int] = None

    for i, value in enumerate(envelope.tolist()):
        refractory_over = last_detection is None or i - last_detection >= refractory
        # A flat envelope sits exactly on a zero threshold; it must not fire
        if value > 0.0 and value >= threshold and refractory_over:
            start = max(0, i - search_back)
            positions.append(start + int(np.argmax(bandpassed[start:i + 1])))
            last_detection = i
            tracker.update_signal(value)
        else:
            tracker.update_noise(value)
        threshold = tracker.threshold(config.threshold_scale)

    return np.unique(np.asarray(positions, dtype=np.int64))


def _fallback_detection(
    waveform: Waveform,
    min_rr_s: float,
    config: Config = default_config,
) -> np.ndarray:
    """Naive peak picker: local maxima of the signal above its moving average."""
    data = np.asarray(waveform.samples, dtype=np.float64)
    fs = waveform.fs
    if data.size < 3:
        return np.array([], dtype=np.int64)

    min_gap = seconds_to_samples(min_rr_s, fs)
    # Baseline width is truncated to whole samples
    window = max(1, int(config.FALLBACK_BASELINE_SEC * fs))

    residual = data - moving_average(data, window)
    centre = residual[1:-1]
    is_peak = (centre > 0.0) & (centre > residual[:-2]) & (centre > residual[2:])
    candidates = np.flatnonzero(is_peak) + 1

    peaks: List[int] = []
    for idx in candidates.tolist():
        if not peaks or idx - peaks[-1] >= min_gap:
            peaks.append(idx)

    return np.asarray(peaks, dtype=np.int64)
