"""hrv_pipeline configuration.

Centralizes configurable parameters for signal conditioning, beat detection,
HRV analysis and signal-quality scoring.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Tuple


@dataclass(frozen=True)
class DetectorConfig:
    """Adaptive beat detector parameters.

    All values are positive. ``min_rr_s`` is the physiological refractory
    floor: two detections are never closer than this.
    """

    lowcut_hz: float = 5.0               # high-pass corner (baseline wander)
    highcut_hz: float = 15.0             # low-pass corner (EMG / mains)
    integration_window_s: float = 0.150  # moving-window integrator width
    min_rr_s: float = 0.25               # refractory period
    threshold_scale: float = 0.6         # fraction of (signal - noise) above noise
    search_back_s: float = 0.15          # look-back for the local maximum

    def with_min_rr(self, min_rr_s: float) -> "DetectorConfig":
        """Return a copy with a different refractory period."""
        return replace(self, min_rr_s=float(min_rr_s))


@dataclass
class Config:
    """Pipeline configuration parameters."""

    # ==========================================================================
    # Signal Acquisition Parameters
    # ==========================================================================
    SAMPLING_RATE: float = 250.0  # Hz, default for plain text recordings

    # ==========================================================================
    # Fallback (naive) Peak Picker
    # ==========================================================================
    # Width of the moving-average baseline subtracted before local-max picking
    FALLBACK_BASELINE_SEC: float = 0.150

    # ==========================================================================
    # HRV Time Domain
    # ==========================================================================
    PNN50_THRESHOLD_S: float = 0.050

    # ==========================================================================
    # HRV Frequency Domain Parameters
    # ==========================================================================
    # Instantaneous heart rate is resampled onto this uniform grid (Hz)
    HRV_INTERP_FS: float = 4.0
    # Welch segment length in seconds of resampled signal
    HRV_SEGMENT_SEC: float = 30.0
    HRV_MIN_SEGMENT: int = 4

    # Frequency bands for HRV analysis (Hz), half-open [low, high)
    VLF_BAND: Tuple[float, float] = (0.003, 0.04)
    LF_BAND: Tuple[float, float] = (0.04, 0.15)
    HF_BAND: Tuple[float, float] = (0.15, 0.4)

    # ==========================================================================
    # HRV Nonlinear Parameters
    # ==========================================================================
    SAMPEN_M: int = 2
    SAMPEN_R_FACTOR: float = 0.2   # r = factor * max(sdnn, SAMPEN_R_FLOOR)
    SAMPEN_R_FLOOR: float = 1e-4
    DFA_MIN_WINDOW: int = 4
    DFA_MAX_WINDOW: int = 16

    # ==========================================================================
    # Signal Quality Index
    # ==========================================================================
    SQI_SNR_WINDOW: int = 5        # samples per local-variance window
    SQI_NOISE_FLOOR: float = 1e-9
    SQI_SPIKE_SIGMA: float = 2.0
    SQI_MIN_KURTOSIS: float = 0.0
    SQI_MIN_SNR: float = 1.0
    SQI_MAX_RR_CV: float = 0.2

    # ==========================================================================
    # Output File Naming
    # ==========================================================================
    RESULTS_DIR: str = "Results"
    EVENTS_PREFIX: str = "events_"
    DIAGNOSIS_PREFIX: str = "diagnosis_"
    HRV_SUMMARY_FILE: str = "hrv_summary.csv"

    # ==========================================================================
    # Visualization Parameters
    # ==========================================================================
    WAVEFORM_ZOOM_SECONDS: float = 10.0
    PSD_FREQ_MAX: float = 0.5  # Hz

    def get_results_dir(self, base: Path) -> Path:
        """Get (and create) the results directory under ``base``."""
        results_dir = Path(base) / self.RESULTS_DIR
        results_dir.mkdir(parents=True, exist_ok=True)
        return results_dir

    def get_events_path(self, base: Path, recording_name: str) -> Path:
        """Get path for a pipeline result JSON file."""
        return self.get_results_dir(base) / f"{self.EVENTS_PREFIX}{recording_name}.json"

    def get_diagnosis_path(self, base: Path, recording_name: str) -> Path:
        """Get path for a diagnosis HTML report."""
        return self.get_results_dir(base) / f"{self.DIAGNOSIS_PREFIX}{recording_name}.html"


# Default configuration instances
default_config = Config()
default_detector_config = DetectorConfig()
