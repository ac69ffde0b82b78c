"""Beat detection to HRV in one call."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import DetectorConfig, default_detector_config
from .hrv import HRVTime, derive_rr, hrv_time
from .rpeak import detect_with_config
from .signal import Events, RRSeries, Waveform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Beats, RR intervals and time-domain HRV of one recording."""
    fs: float
    sample_count: int
    events: Events
    rr: RRSeries
    hrv_time: HRVTime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fs": self.fs,
            "sample_count": self.sample_count,
            "events": self.events.to_dict(),
            "rr": self.rr.to_dict(),
            "hrv_time": self.hrv_time.to_dict(),
        }


def run_pipeline(
    waveform: Waveform,
    config: DetectorConfig = default_detector_config,
    events: Optional[Events] = None,
) -> PipelineResult:
    """
    Detect beats (unless supplied), derive RR and compute time-domain HRV.

    Parameters
    ----------
    waveform : Waveform
        Raw recording.
    config : DetectorConfig
        Detector settings; ignored when ``events`` is given.
    events : Events, optional
        Externally annotated beats, used as given.

    Returns
    -------
    PipelineResult
    """
    if events is None:
        events = detect_with_config(waveform, config)
        logger.debug("Detected %d beats in %d samples", len(events), waveform.n_samples)
    else:
        logger.debug("Using %d supplied events", len(events))

    rr = derive_rr(events, waveform.fs)
    return PipelineResult(
        fs=waveform.fs,
        sample_count=waveform.n_samples,
        events=events,
        rr=rr,
        hrv_time=hrv_time(rr),
    )
