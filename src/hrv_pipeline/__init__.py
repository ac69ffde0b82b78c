# Beat/HRV Pipeline
# Raw waveform -> beats -> RR intervals -> HRV (time, frequency, nonlinear) + signal quality

from .config import Config, DetectorConfig
from .signal import Waveform, Events, RRSeries
from .preprocess import condition_signal
from .rpeak import detect, detect_with_config
from .hrv import HRVTime, derive_rr, hrv_time
from .hrv_frequency import HRVPsd, hrv_psd
from .hrv_nonlinear import HRVNonlinear, hrv_nonlinear
from .sqi import SQIResult, evaluate_sqi
from .pipeline import PipelineResult, run_pipeline

__all__ = [
    "Config",
    "DetectorConfig",
    "Waveform",
    "Events",
    "RRSeries",
    "condition_signal",
    "detect",
    "detect_with_config",
    "HRVTime",
    "derive_rr",
    "hrv_time",
    "HRVPsd",
    "hrv_psd",
    "HRVNonlinear",
    "hrv_nonlinear",
    "SQIResult",
    "evaluate_sqi",
    "PipelineResult",
    "run_pipeline",
]
